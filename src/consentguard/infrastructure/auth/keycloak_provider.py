"""Keycloak OIDC identity provider."""

from keycloak import KeycloakOpenID
from keycloak.exceptions import KeycloakError

from consentguard.application.ports import PrincipalListener
from consentguard.domain.entities import Principal
from consentguard.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


class KeycloakIdentityProvider:
    """Keycloak OIDC - introspects tokens and tracks the signed-in principal."""

    def __init__(
        self,
        server_url: str,
        realm: str,
        client_id: str,
        client_secret: str = "",
    ) -> None:
        self._keycloak = KeycloakOpenID(
            server_url=server_url,
            realm_name=realm,
            client_id=client_id,
            client_secret_key=client_secret,
        )
        self._principal: Principal | None = None
        self._listeners: list[PrincipalListener] = []

    @property
    def available(self) -> bool:
        return True

    def current_principal(self) -> Principal | None:
        return self._principal

    def subscribe(self, listener: PrincipalListener) -> None:
        self._listeners.append(listener)

    def decode_token(self, token: str) -> Principal | None:
        """Introspect token, return the principal or None when inactive or invalid."""
        try:
            token_info = self._keycloak.introspect(token)
        except KeycloakError as exc:
            logger.warning("token_introspection_failed", error=str(exc))
            return None
        if not token_info.get("active"):
            return None
        return Principal(
            id=token_info.get("sub", ""),
            email=token_info.get("email"),
            email_verified=bool(token_info.get("email_verified", False)),
        )

    def authenticate(self, token: str) -> Principal | None:
        """Sign in with token and notify subscribers."""
        principal = self.decode_token(token)
        if principal is None or not principal.is_authenticated:
            return None
        self._principal = principal
        logger.info("principal_signed_in", user_id=principal.id)
        self._notify(principal)
        return principal

    def sign_out(self) -> None:
        if self._principal is None:
            return
        logger.info("principal_signed_out", user_id=self._principal.id)
        self._principal = None
        self._notify(None)

    def _notify(self, principal: Principal | None) -> None:
        for listener in list(self._listeners):
            listener(principal)


class UnavailableIdentityProvider:
    """Identity provider placeholder when no identity backend is configured."""

    @property
    def available(self) -> bool:
        return False

    def current_principal(self) -> Principal | None:
        return None

    def subscribe(self, listener: PrincipalListener) -> None:
        # Nothing will ever sign in.
        return None
