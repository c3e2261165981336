"""Factory Boy definition for :class:`taskhub.models.user.User`."""

from __future__ import annotations

import factory

from taskhub.models.user import DEFAULT_ROLE, User
from tests.factories import BaseFactory

DEFAULT_PASSWORD = "Passw0rd"


class UserFactory(BaseFactory):
    """Build persisted :class:`User` instances with a known password."""

    class Meta:
        model = User

    id = None  # let autoincrement handle it
    username = factory.Sequence(lambda n: f"user{n}")
    email = factory.Sequence(lambda n: f"user{n}@example.com")
    role = DEFAULT_ROLE
    password_hash = factory.LazyFunction(lambda: "")  # set via postgen

    @factory.post_generation
    def password(obj, create, extracted, **kwargs):
        """Set password using model setter (ensures hashing)."""
        obj.password = extracted or DEFAULT_PASSWORD
