"""
Deterministic field cipher.

Ciphertext produced here is used inside DynamoDB keys, so the same plaintext
must always encrypt to the same value: the key and IV are fixed, derived by
hashing two long-lived secrets. There is no per-record randomness and no
authentication tag; this cipher only hides values at rest and must not be
used where confidentiality against chosen-plaintext attackers matters.
"""

import base64
import binascii
import hashlib
import json
from typing import Any, Dict, Tuple

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

SUPPORTED_METHODS = {'aes-256-cbc': (32, 16)}


class CipherError(Exception):
    """Raised when a value cannot be encrypted or decrypted."""


def derive_key_material(secret_key: str, secret_iv: str, method: str = 'aes-256-cbc') -> Tuple[bytes, bytes]:
    """
    Hash the secrets into key and IV bytes.

    The key is the first 32 hex characters of sha512(secret_key) and the IV the
    first 16 hex characters of sha512(secret_iv), each taken as ASCII bytes.
    """
    if method not in SUPPORTED_METHODS:
        raise CipherError(f'Unsupported encryption method: {method}')
    key_length, iv_length = SUPPORTED_METHODS[method]
    key = hashlib.sha512(secret_key.encode('utf-8')).hexdigest()[:key_length].encode('ascii')
    iv = hashlib.sha512(secret_iv.encode('utf-8')).hexdigest()[:iv_length].encode('ascii')
    return key, iv


def serialize_value(value: Any) -> str:
    """Strings are encrypted as-is, everything else as its JSON text."""
    if isinstance(value, str):
        return value
    return json.dumps(value, separators=(',', ':'), sort_keys=True)


def is_blank(value: Any) -> bool:
    return value is None or value == ''


class DeterministicCipher:
    """AES-CBC with PKCS7 padding and base64 text output."""

    def __init__(self, key: bytes, iv: bytes):
        self._key = key
        self._iv = iv

    @classmethod
    def from_secrets(cls, secret_key: str, secret_iv: str, method: str = 'aes-256-cbc') -> 'DeterministicCipher':
        key, iv = derive_key_material(secret_key, secret_iv, method)
        return cls(key, iv)

    def _cipher(self) -> Cipher:
        return Cipher(algorithms.AES(self._key), modes.CBC(self._iv))

    def encrypt(self, plaintext: str) -> str:
        padder = padding.PKCS7(algorithms.AES.block_size).padder()
        padded = padder.update(plaintext.encode('utf-8')) + padder.finalize()
        encryptor = self._cipher().encryptor()
        return base64.b64encode(encryptor.update(padded) + encryptor.finalize()).decode('ascii')

    def decrypt(self, ciphertext: str) -> str:
        try:
            raw = base64.b64decode(ciphertext, validate=True)
            decryptor = self._cipher().decryptor()
            padded = decryptor.update(raw) + decryptor.finalize()
            unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
            return (unpadder.update(padded) + unpadder.finalize()).decode('utf-8')
        except (binascii.Error, ValueError, UnicodeDecodeError) as exc:
            raise CipherError(f'Unable to decrypt value: {exc}') from exc

    def encrypt_value(self, value: Any) -> Any:
        """Encrypt one field value; blank values pass through."""
        if is_blank(value):
            return value
        return self.encrypt(serialize_value(value))

    def decrypt_value(self, value: Any) -> Any:
        if is_blank(value):
            return value
        if not isinstance(value, str):
            raise CipherError(f'Ciphertext must be a string, got {type(value).__name__}')
        return self.decrypt(value)

    def encrypt_fields(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return {name: self.encrypt_value(value) for name, value in data.items()}

    def decrypt_fields(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return {name: self.decrypt_value(value) for name, value in data.items()}
