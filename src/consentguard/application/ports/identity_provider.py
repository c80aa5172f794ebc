"""Identity provider port."""

from collections.abc import Callable
from typing import Protocol

from consentguard.domain.entities import Principal

# Called with the new principal on sign-in, None on sign-out.
PrincipalListener = Callable[[Principal | None], None]


class IdentityProvider(Protocol):
    """Issues the authenticated principal and notifies on sign-in/sign-out."""

    @property
    def available(self) -> bool: ...

    def current_principal(self) -> Principal | None: ...

    def subscribe(self, listener: PrincipalListener) -> None: ...
