# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the MindHaven Wellness project.
# Licensed under the MIT License - see the LICENSE file for details.

import asyncio
import base64
import binascii
import os
import secrets

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

# 🔐 Wire format: base64(nonce || ciphertext || tag)
NONCE_LENGTH = 12
TAG_LENGTH = 16
KEY_LENGTH = 32
PBKDF2_ITERATIONS = 100_000
SECRET_BYTES = 16


class EncryptionServiceError(Exception):
    """Base class for journal encryption failures."""


class KeyDerivationError(EncryptionServiceError):
    pass


class EncryptionError(EncryptionServiceError):
    pass


class DecryptionError(EncryptionServiceError):
    pass


class JournalKey:
    """
    Opaque AES-256-GCM key derived for a single user.

    Only encrypt()/decrypt() in this module use it; the raw key bytes are
    never exposed through repr() or str().
    """

    __slots__ = ("_aesgcm",)

    def __init__(self, key_bytes: bytes):
        if len(key_bytes) != KEY_LENGTH:
            raise KeyDerivationError("Derived key has an unexpected length.")
        self._aesgcm = AESGCM(key_bytes)

    def __repr__(self) -> str:
        return "<JournalKey AES-256-GCM>"

    __str__ = __repr__


def _b64decode_strict(text: str) -> bytes:
    raw = base64.b64decode(text, validate=True)
    # Reject encodings whose unused trailing bits differ from ours
    if base64.b64encode(raw).decode("ascii") != text:
        raise binascii.Error("Non-canonical base64")
    return raw


# 🔑 Key derivation
def derive_key(user_id: str, secret: str) -> JournalKey:
    if not user_id or not isinstance(user_id, str):
        raise KeyDerivationError("A user id is required to derive a journal key.")
    if not secret or not isinstance(secret, str):
        raise KeyDerivationError("An encryption secret is required to derive a journal key.")

    try:
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=KEY_LENGTH,
            salt=user_id.encode("utf-8"),
            iterations=PBKDF2_ITERATIONS,
        )
        key_bytes = kdf.derive(secret.encode("utf-8"))
    except Exception as e:
        raise KeyDerivationError("Key derivation primitive failed.") from e

    return JournalKey(key_bytes)


# 🔐 Encrypt/Decrypt helpers
def encrypt(plaintext: str, key: JournalKey) -> str:
    if not isinstance(key, JournalKey):
        raise EncryptionError("A derived journal key is required.")
    if not isinstance(plaintext, str):
        raise EncryptionError("Only text can be encrypted.")

    nonce = os.urandom(NONCE_LENGTH)
    try:
        sealed = key._aesgcm.encrypt(nonce, plaintext.encode("utf-8"), None)
    except Exception:
        # Not chained: the cause may echo the input
        raise EncryptionError("Failed to encrypt data.") from None

    return base64.b64encode(nonce + sealed).decode("ascii")


def decrypt(ciphertext_b64: str, key: JournalKey) -> str:
    if not isinstance(key, JournalKey):
        raise DecryptionError("A derived journal key is required.")
    if not isinstance(ciphertext_b64, str) or not ciphertext_b64:
        raise DecryptionError("Ciphertext must be a non-empty string.")

    try:
        raw = _b64decode_strict(ciphertext_b64)
    except (binascii.Error, ValueError):
        raise DecryptionError("Ciphertext is not valid base64.") from None

    if len(raw) < NONCE_LENGTH + TAG_LENGTH:
        raise DecryptionError("Ciphertext is too short.")

    nonce, sealed = raw[:NONCE_LENGTH], raw[NONCE_LENGTH:]
    try:
        data = key._aesgcm.decrypt(nonce, sealed, None)
    except InvalidTag:
        raise DecryptionError("Failed to decrypt data: wrong key or tampered content.") from None

    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        raise DecryptionError("Decrypted data is not valid UTF-8.") from None


def is_encrypted(text) -> bool:
    """
    Best-effort check for ciphertext produced by encrypt().

    Any canonical base64 string longer than a bare nonce passes, so plaintext
    that happens to be valid base64 is misclassified.
    """
    if not text or not isinstance(text, str):
        return False
    try:
        decoded = _b64decode_strict(text)
    except (binascii.Error, ValueError):
        return False
    return len(decoded) > NONCE_LENGTH


def generate_secret() -> str:
    return secrets.token_bytes(SECRET_BYTES).hex()


# ⏳ Non-blocking variants for batch work inside request handlers
async def derive_key_async(user_id: str, secret: str) -> JournalKey:
    return await asyncio.to_thread(derive_key, user_id, secret)


async def encrypt_async(plaintext: str, key: JournalKey) -> str:
    return await asyncio.to_thread(encrypt, plaintext, key)


async def decrypt_async(ciphertext_b64: str, key: JournalKey) -> str:
    return await asyncio.to_thread(decrypt, ciphertext_b64, key)
