"""Opaque handshake state tokens.

The handshake state travels through Salesforce inside the OAuth ``state``
query parameter. It is encrypted with Fernet (AES-128-CBC + HMAC-SHA256),
so any modification of the token fails authentication on the way back and
nothing is trusted before it has been decrypted.

Several comma-separated keys may be configured for rotation: the first
one encrypts, all of them are tried for decryption.
"""

from __future__ import annotations

import base64

import msgspec
from cryptography.fernet import Fernet, InvalidToken, MultiFernet
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from ..errors import DecryptionError, EncryptionConfigError
from ..logging_config import get_logger
from ..models import HandshakeState

logger = get_logger("oauth.state")

_KDF_INFO = b"salesforce-handshake-state"


def _derive_fernet_key(source_material: str) -> bytes:
    """Derive a Fernet key from arbitrary secret material."""
    derived = HKDF(
        algorithm=hashes.SHA256(),
        length=32,
        salt=None,
        info=_KDF_INFO,
    ).derive(source_material.encode("utf-8"))
    return base64.urlsafe_b64encode(derived)


def _build_fernet(cipher_master: str | None) -> MultiFernet | None:
    if not cipher_master:
        return None

    fernets: list[Fernet] = []
    for raw_key in cipher_master.split(","):
        key = raw_key.strip()
        if not key:
            continue
        # If the key looks like a Fernet key (base64, 44 chars), use it directly
        # Otherwise, use it as source material for key derivation
        try:
            fernets.append(Fernet(key.encode("utf-8")))
        except ValueError:
            fernets.append(Fernet(_derive_fernet_key(key)))

    if not fernets:
        return None
    return MultiFernet(fernets)


class StateCodec:
    """Encrypts and decrypts handshake state.

    Example:
        >>> codec = StateCodec(Fernet.generate_key().decode())
        >>> token = codec.encode_state(HandshakeState(state_url="https://x", client_id="CID"))
        >>> codec.decode_state(token).client_id
        'CID'
    """

    def __init__(self, cipher_master: str | None) -> None:
        """Initialize the codec.

        Args:
            cipher_master: Comma-separated key(s). Fernet keys are used as is,
                anything else is treated as source material for HKDF.
                ``None`` leaves the codec unconfigured: every call fails.
        """
        self._fernet = _build_fernet(cipher_master)

    @property
    def is_configured(self) -> bool:
        return self._fernet is not None

    def encrypt(self, plaintext: str) -> str:
        """Encrypt plaintext into an opaque, URL-safe token.

        Raises:
            EncryptionConfigError: If no key is configured or encryption fails
        """
        if self._fernet is None:
            logger.error("Payload encryption error: no encryption key configured (CIPHER_MASTER)")
            raise EncryptionConfigError("Encryption is not configured: CIPHER_MASTER is not set")

        try:
            return self._fernet.encrypt(plaintext.encode("utf-8")).decode("ascii")
        except (TypeError, ValueError) as e:
            logger.error("Payload encryption error: %r", e)
            raise EncryptionConfigError(f"Payload encryption failed: {e}") from e

    def decrypt(self, ciphertext: str) -> str:
        """Decrypt a token produced by :meth:`encrypt`.

        Raises:
            DecryptionError: If the token is malformed, tampered with,
                encrypted under another key, or no key is configured
        """
        if self._fernet is None:
            logger.error("Encryption not correctly configured: no encryption key (CIPHER_MASTER)")
            raise DecryptionError("Encryption is not configured: CIPHER_MASTER is not set")

        try:
            plaintext = self._fernet.decrypt(ciphertext.encode("utf-8"))
        except (InvalidToken, TypeError, ValueError) as e:
            logger.error("Encryption not correctly configured or invalid state token: %r", e)
            raise DecryptionError("State token could not be decrypted") from e

        try:
            return plaintext.decode("utf-8")
        except UnicodeDecodeError as e:
            logger.error("Decrypted state is not valid UTF-8: %r", e)
            raise DecryptionError("Decrypted state is not valid text") from e

    def encode_state(self, state: HandshakeState) -> str:
        """Serialize a HandshakeState canonically and encrypt it."""
        return self.encrypt(msgspec.json.encode(state).decode("utf-8"))

    def decode_state(self, token: str) -> HandshakeState:
        """Decrypt a token and parse it back into a HandshakeState.

        Raises:
            DecryptionError: If decryption fails or the payload is not a
                handshake state
        """
        plaintext = self.decrypt(token)
        try:
            return msgspec.json.decode(plaintext, type=HandshakeState)
        except msgspec.DecodeError as e:
            logger.error("Decrypted payload is not a handshake state: %s", e)
            raise DecryptionError("Decrypted payload is not a handshake state") from e
