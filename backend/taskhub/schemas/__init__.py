"""Convenience exports for application schemas."""

from __future__ import annotations

from .auth import (
    AuthResponseSchema,
    LoginSchema,
    LogoutSchema,
    RefreshTokenSchema,
    RegisterSchema,
    WhoAmISchema,
)
from .common import MetaSchema, PaginationQuerySchema, build_meta
from .task import TaskCreateSchema, TaskListQuerySchema, TaskSchema, TaskUpdateSchema

__all__ = [
    "AuthResponseSchema",
    "LoginSchema",
    "LogoutSchema",
    "RefreshTokenSchema",
    "RegisterSchema",
    "WhoAmISchema",
    "MetaSchema",
    "PaginationQuerySchema",
    "build_meta",
    "TaskCreateSchema",
    "TaskListQuerySchema",
    "TaskSchema",
    "TaskUpdateSchema",
]
