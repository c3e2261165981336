from taskhub.models.refresh_token import RefreshToken
from taskhub.models.task import Task
from taskhub.models.user import User

__all__ = [
    "RefreshToken",
    "Task",
    "User",
]
