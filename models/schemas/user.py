from marshmallow import EXCLUDE, Schema, fields, pre_load, validate


def _norm_email(v):
    return v.strip().lower() if isinstance(v, str) else v


class _CredentialsSchema(Schema):
    email = fields.Email(required=True)
    # Any string is accepted, even an empty one
    password = fields.String(required=True, load_only=True)

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict) and "email" in data:
            data = dict(data)
            data["email"] = _norm_email(data["email"])
        return data


class UserCreateSchema(_CredentialsSchema):
    pass


class UserUpdateSchema(_CredentialsSchema):
    pass


class UserLoginSchema(_CredentialsSchema):
    # Optional access-token lifetime; missing or <= 0 means the default
    expires_in_seconds = fields.Integer(load_default=None, allow_none=True)


class UserOutSchema(Schema):
    id = fields.String(allow_none=False)
    created_at = fields.DateTime()
    updated_at = fields.DateTime()
    email = fields.String()
    is_chirpy_red = fields.Boolean()


class PolkaDataSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    user_id = fields.String(load_default=None, allow_none=True)


class PolkaEventSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    event = fields.String(required=True, validate=validate.Length(min=1))
    data = fields.Nested(PolkaDataSchema, load_default=dict)
