"""User model: the authentication identity that owns tasks and sessions."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates
from werkzeug.security import check_password_hash, generate_password_hash

from taskhub.core.extensions import db

from .base import PKMixin, ReprMixin, TimestampMixin

if TYPE_CHECKING:
    from .refresh_token import RefreshToken
    from .task import Task

DEFAULT_ROLE = "User"


class User(PKMixin, ReprMixin, TimestampMixin, db.Model):
    """
    Registered account.

    Fields
    ------
    username : str
        Login name, unique, 3-64 characters.
    email : str
        Contact email, unique, stored normalized (lowercase, trimmed).
    role : str
        Authorization role copied into access tokens (``"User"`` by default).
    password_hash : str
        Hashed password (write-only setter via ``password``).
    """

    __tablename__ = "users"
    __repr_attrs__ = ("username", "role")

    username: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    email: Mapped[str] = mapped_column(String(254), nullable=False, index=True)
    role: Mapped[str] = mapped_column(String(32), nullable=False, default=DEFAULT_ROLE)
    password_hash: Mapped[str] = mapped_column(String(254), nullable=False)

    refresh_tokens: Mapped[list[RefreshToken]] = relationship(
        back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )
    tasks: Mapped[list[Task]] = relationship(
        back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )

    __table_args__ = (
        UniqueConstraint("email", name="uq_users_email"),
        UniqueConstraint("username", name="uq_users_username"),
    )

    # ------------------------------ credentials ------------------------------
    @property
    def password(self) -> Any:  # pragma: no cover - write-only
        raise AttributeError("User.password is write-only; use verify_password().")

    @password.setter
    def password(self, raw: str) -> None:
        """Store a salted hash of ``raw`` (werkzeug's default scheme)."""
        if not isinstance(raw, str) or not raw:
            raise ValueError("Password must be a non-empty string.")
        self.password_hash = generate_password_hash(raw)

    def verify_password(self, raw: str) -> bool:
        """``True`` when ``raw`` matches the stored hash; accounts without a hash never match."""
        return bool(self.password_hash) and bool(check_password_hash(self.password_hash, raw))

    # ------------------------------ normalisation ----------------------------
    @validates("email")
    def _normalize_email(self, key: str, value: str) -> str:
        """Lowercase and trim; full format validation belongs to the API schema."""
        email = value.strip().lower() if isinstance(value, str) else ""
        local, _, domain = email.partition("@")
        if not local or "." not in domain:
            raise ValueError("Email format looks invalid.")
        return email

    @validates("username")
    def _normalize_username(self, key: str, value: str) -> str:
        name = value.strip() if isinstance(value, str) else ""
        if not name:
            raise ValueError("Username is required.")
        return name

    @validates("role")
    def _normalize_role(self, key: str, value: str | None) -> str:
        return (value or "").strip() or DEFAULT_ROLE
