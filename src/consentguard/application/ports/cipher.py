"""Cipher port - encryption of sensitive consent fields."""

from typing import Protocol


class Cipher(Protocol):
    """Opaque encrypt/decrypt collaborator."""

    @property
    def available(self) -> bool: ...

    def encrypt(self, plaintext: str) -> str: ...

    def decrypt(self, ciphertext: str) -> str: ...
