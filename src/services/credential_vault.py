"""Symmetric encryption of provider credentials.

Secrets are sealed with AES-256-GCM under a key derived from the master secret
with scrypt. The derivation uses a fixed salt so a given master secret always
yields the same key across processes; a fresh random nonce per call keeps equal
plaintexts from producing equal envelopes.

Envelope format: ``"<ivHex>:<cipherHex>"`` where the cipher part includes the
GCM authentication tag.
"""

import logging
import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt

from src.services.config import Settings
from src.services.errors import DecryptionError, EncryptionError

logger = logging.getLogger(__name__)

KDF_SALT = b"cooperative-payments/credential-vault/v1"
KDF_N = 2**14
KDF_R = 8
KDF_P = 1
KEY_LENGTH = 32
NONCE_LENGTH = 12
ENVELOPE_SEPARATOR = ":"


class CredentialVault:
    """Encrypts and decrypts secret strings with a key bound to one master secret.

    Stateless apart from the immutable master secret given at construction.
    Performs no I/O. The derived key is computed on first use and cached.
    """

    __slots__ = ("_master_secret", "_key")

    def __init__(self, master_secret: str):
        """Initialize vault.

        Args:
            master_secret: Process master secret (e.g. PAYMENT_ENCRYPTION_KEY)
        """
        self._master_secret = master_secret or ""
        self._key: bytes | None = None

    def __repr__(self) -> str:
        return "<CredentialVault(master_secret=***)>"

    def _derive_key(self) -> bytes:
        if self._key is None:
            kdf = Scrypt(salt=KDF_SALT, length=KEY_LENGTH, n=KDF_N, r=KDF_R, p=KDF_P)
            self._key = kdf.derive(self._master_secret.encode("utf-8"))
        return self._key

    def encrypt(self, plaintext: str) -> str:
        """Seal a secret string into an envelope.

        Args:
            plaintext: Secret to encrypt (may be empty)

        Returns:
            Envelope string "<ivHex>:<cipherHex>"

        Raises:
            EncryptionError: If the master secret is empty or the cipher fails
        """
        if not self._master_secret:
            logger.error("Credential encryption attempted without a master secret")
            raise EncryptionError("Encryption key is not configured")

        try:
            nonce = os.urandom(NONCE_LENGTH)
            data = plaintext.encode("utf-8", errors="surrogatepass")
            ciphertext = AESGCM(self._derive_key()).encrypt(nonce, data, None)
        except (ValueError, TypeError, AttributeError) as e:
            logger.error(f"Credential encryption failed: {type(e).__name__}")
            raise EncryptionError("Failed to encrypt sensitive data") from None

        return f"{nonce.hex()}{ENVELOPE_SEPARATOR}{ciphertext.hex()}"

    def decrypt(self, envelope: str) -> str:
        """Open an envelope produced by encrypt().

        Args:
            envelope: "<ivHex>:<cipherHex>" string

        Returns:
            Original plaintext

        Raises:
            DecryptionError: If the envelope is malformed, was produced under a
                different key, or has been tampered with
        """
        if not self._master_secret:
            logger.error("Credential decryption attempted without a master secret")
            raise DecryptionError("Encryption key is not configured")

        if not isinstance(envelope, str) or ENVELOPE_SEPARATOR not in envelope:
            raise DecryptionError("Malformed credential envelope")

        iv_hex, cipher_hex = envelope.split(ENVELOPE_SEPARATOR, 1)
        try:
            nonce = bytes.fromhex(iv_hex)
            ciphertext = bytes.fromhex(cipher_hex)
        except ValueError:
            raise DecryptionError("Malformed credential envelope") from None

        if len(nonce) != NONCE_LENGTH:
            raise DecryptionError("Malformed credential envelope")

        try:
            plaintext = AESGCM(self._derive_key()).decrypt(nonce, ciphertext, None)
            return plaintext.decode("utf-8", errors="surrogatepass")
        except (InvalidTag, ValueError):
            logger.warning("Credential envelope failed authentication")
            raise DecryptionError("Failed to decrypt sensitive data") from None

    def encrypt_optional(self, plaintext: str | None) -> str | None:
        """Encrypt a value, passing None through."""
        return None if plaintext is None else self.encrypt(plaintext)

    def decrypt_optional(self, envelope: str | None) -> str | None:
        """Decrypt a value, passing None through."""
        return None if envelope is None else self.decrypt(envelope)


def build_vault(settings: Settings) -> CredentialVault:
    """Create the vault from application settings."""
    return CredentialVault(settings.payment_encryption_key.get_secret_value())


__all__ = ["CredentialVault", "build_vault"]
