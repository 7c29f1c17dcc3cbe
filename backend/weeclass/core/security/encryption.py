# weeclass/core/security/encryption.py

from typing import Optional

from cryptography.fernet import Fernet, InvalidToken


class PayloadCipher:
    """
    Encrypts record payloads at rest when a Fernet key is configured.
    Without a key it passes text through unchanged.

    Generate a key with:
      from cryptography.fernet import Fernet; print(Fernet.generate_key().decode())
    """

    def __init__(self, key: Optional[str] = None):
        if key:
            key_bytes = key.encode("utf-8") if isinstance(key, str) else key
            self._fernet: Optional[Fernet] = Fernet(key_bytes)
        else:
            self._fernet = None

    @property
    def enabled(self) -> bool:
        return self._fernet is not None

    def encrypt_text(self, plain: str) -> str:
        if self._fernet is None:
            return plain
        return self._fernet.encrypt(plain.encode("utf-8")).decode("utf-8")

    def decrypt_text(self, token: str) -> str:
        if self._fernet is None:
            return token
        try:
            return self._fernet.decrypt(token.encode("utf-8")).decode("utf-8")
        except InvalidToken:
            # rows written before the key was configured are plaintext JSON
            return token
