from models.base_model import Base
from models.user import User
from models.refresh_token import RefreshToken, RefreshTokenStatus
from models.db_storage import DBStorage

__all__ = ["Base", "User", "RefreshToken", "RefreshTokenStatus", "DBStorage"]
