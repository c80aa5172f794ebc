"""Authenticated principal issued by the identity provider."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Principal:
    """Authenticated user - id, email, verification flag."""

    id: str
    email: str | None = None
    email_verified: bool = False

    @property
    def is_authenticated(self) -> bool:
        return bool(self.id)
