from .refresh_token import RefreshTokenRepository
from .task import TaskRepository
from .user import UserRepository

__all__ = [
    "RefreshTokenRepository",
    "TaskRepository",
    "UserRepository",
]
