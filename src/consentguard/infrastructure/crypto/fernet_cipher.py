"""Fernet cipher for sensitive consent fields."""

from cryptography.fernet import Fernet, InvalidToken

from consentguard.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


class CipherUnavailable(RuntimeError):
    """No encryption key is configured."""


class FernetCipher:
    """Symmetric encryption with a URL-safe base64 32-byte key.

    Tokens are returned as UTF-8 strings suitable for TEXT columns.
    """

    def __init__(self, key: str | bytes) -> None:
        self._fernet = Fernet(key.encode() if isinstance(key, str) else key)

    @property
    def available(self) -> bool:
        return True

    def encrypt(self, plaintext: str) -> str:
        return self._fernet.encrypt(plaintext.encode("utf-8")).decode("utf-8")

    def decrypt(self, ciphertext: str) -> str:
        """Raises ``cryptography.fernet.InvalidToken`` for a wrong key or corrupted token."""
        try:
            return self._fernet.decrypt(ciphertext.encode("utf-8")).decode("utf-8")
        except InvalidToken:
            logger.error("fernet_decryption_failed")
            raise

    @staticmethod
    def generate_key() -> str:
        return Fernet.generate_key().decode("ascii")


class UnavailableCipher:
    """Cipher placeholder when no key is configured; callers branch on ``available``."""

    @property
    def available(self) -> bool:
        return False

    def encrypt(self, plaintext: str) -> str:
        raise CipherUnavailable("no consent encryption key configured")

    def decrypt(self, ciphertext: str) -> str:
        raise CipherUnavailable("no consent encryption key configured")
