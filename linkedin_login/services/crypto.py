from __future__ import annotations

import hashlib
import logging
import os
from dataclasses import dataclass
from typing import Optional, Union

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

logger = logging.getLogger(__name__)

# Development fallback only. Deployments must set SESSION_SECRET.
DEFAULT_DEV_SECRET = "linkedin-login-dev-secret-change-me"

IV_LENGTH = 16


@dataclass(frozen=True)
class DecodeFailure:
    reason: str

    def __bool__(self) -> bool:
        return False


class SessionCipher:
    """AES-256-CBC codec for serialized session records.

    Output format is ``"<iv hex>:<ciphertext hex>"``. The IV is random per call
    and travels with the blob, so decoding only needs the shared secret. There
    is no authentication tag: this provides confidentiality, not tamper
    evidence.
    """

    def __init__(self, secret: Optional[str] = None):
        if not secret:
            logger.warning(
                "SESSION_SECRET is not set; using the built-in development secret. "
                "Stored sessions are effectively unprotected."
            )
            secret = DEFAULT_DEV_SECRET
        self._key = hashlib.sha256(secret.encode("utf-8")).digest()

    def _cipher(self, iv: bytes) -> Cipher:
        return Cipher(algorithms.AES(self._key), modes.CBC(iv))

    def encode(self, plain: str) -> str:
        iv = os.urandom(IV_LENGTH)
        padder = padding.PKCS7(algorithms.AES.block_size).padder()
        padded = padder.update(plain.encode("utf-8")) + padder.finalize()
        encryptor = self._cipher(iv).encryptor()
        ciphertext = encryptor.update(padded) + encryptor.finalize()
        return f"{iv.hex()}:{ciphertext.hex()}"

    def decode(self, blob: str) -> Union[str, DecodeFailure]:
        """Decrypt ``blob``; never raises, returns ``DecodeFailure`` instead."""
        if not isinstance(blob, str) or ":" not in blob:
            return DecodeFailure("not an iv:ciphertext blob")

        iv_hex, _, body_hex = blob.partition(":")
        try:
            iv = bytes.fromhex(iv_hex)
            ciphertext = bytes.fromhex(body_hex)
        except ValueError:
            return DecodeFailure("blob is not hex encoded")
        if len(iv) != IV_LENGTH or not ciphertext or len(ciphertext) % IV_LENGTH:
            return DecodeFailure("blob has invalid iv or block length")

        try:
            decryptor = self._cipher(iv).decryptor()
            padded = decryptor.update(ciphertext) + decryptor.finalize()
            unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
            plain = unpadder.update(padded) + unpadder.finalize()
            return plain.decode("utf-8")
        except ValueError as e:
            # Wrong key or corrupt data surfaces as bad padding or invalid UTF-8.
            return DecodeFailure(f"decryption failed: {e}")
