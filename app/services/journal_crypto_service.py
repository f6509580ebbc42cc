# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the MindHaven Wellness project.
# Licensed under the MIT License - see the LICENSE file for details.

import asyncio
import logging
import time
from datetime import datetime
from typing import List, Optional

from app.utils.encryption import (
    DecryptionError,
    JournalKey,
    KeyDerivationError,
    decrypt_async,
    derive_key_async,
    encrypt_async,
    generate_secret,
    is_encrypted,
)
from app.utils.secret_store import SecretStore

logger = logging.getLogger(__name__)

CONTENT_PLACEHOLDER = "[Encrypted content - unable to decrypt]"
TITLE_PLACEHOLDER = "[Encrypted title]"


class EncryptionNotReadyError(Exception):
    """Raised when a journal write is attempted before the key exists."""


async def initialize_encryption(user_id: str, store: SecretStore) -> JournalKey:
    """
    Loads (or creates on first use) the user's secret and derives the journal key.
    """
    if not user_id:
        raise KeyDerivationError("A user id is required to initialize encryption.")

    try:
        secret = store.get_secret(user_id)
    except Exception as e:
        raise KeyDerivationError("Could not read the local encryption secret.") from e

    if secret is None:
        secret = generate_secret()
        try:
            store.set_secret(user_id, secret)
        except Exception as e:
            raise KeyDerivationError("Could not store a new encryption secret.") from e
        logger.info(f"🔑 Created journal encryption secret for user {user_id}")

    key = await derive_key_async(user_id, secret)
    logger.info(f"🔐 Journal encryption ready for user {user_id}")
    return key


class EncryptionSession:
    """One-way readiness gate: not ready until a key has been derived once."""

    def __init__(self, user_id: str, store: SecretStore):
        self.user_id = user_id
        self.store = store
        self._key: Optional[JournalKey] = None

    @property
    def ready(self) -> bool:
        return self._key is not None

    async def initialize(self) -> JournalKey:
        if self._key is None:
            self._key = await initialize_encryption(self.user_id, self.store)
        return self._key

    def require_key(self) -> JournalKey:
        if self._key is None:
            raise EncryptionNotReadyError("Encryption is not ready. Please try again in a moment.")
        return self._key


def new_entry_id(now: Optional[datetime] = None) -> str:
    if now is not None:
        return str(int(now.timestamp() * 1000))
    return str(time.time_ns() // 1_000_000)


def unique_entry_id(existing_ids, now: Optional[datetime] = None) -> str:
    """Time-based id, bumped by one millisecond until it clashes with none of `existing_ids`."""
    taken = {str(i) for i in existing_ids}
    candidate = int(new_entry_id(now))
    while str(candidate) in taken:
        candidate += 1
    return str(candidate)


async def encrypt_journal_fields(entry: dict, key: JournalKey) -> dict:
    title, content = await asyncio.gather(
        encrypt_async(entry.get("title") or "", key),
        encrypt_async(entry.get("content") or "", key),
    )
    encrypted = dict(entry)
    encrypted["title"] = title
    encrypted["content"] = content
    encrypted["encrypted"] = True
    return encrypted


async def _decrypt_field(value, key: JournalKey, placeholder: str, entry_id) -> Optional[str]:
    if not is_encrypted(value):
        return value
    try:
        return await decrypt_async(value, key)
    except DecryptionError:
        logger.warning(f"⚠️ Could not decrypt journal entry {entry_id}")
        return placeholder


async def decrypt_journal_entry(entry: dict, key: JournalKey) -> dict:
    entry_id = entry.get("id")
    title, content = await asyncio.gather(
        _decrypt_field(entry.get("title"), key, TITLE_PLACEHOLDER, entry_id),
        _decrypt_field(entry.get("content"), key, CONTENT_PLACEHOLDER, entry_id),
    )
    decrypted = dict(entry)
    decrypted["title"] = title
    decrypted["content"] = content
    return decrypted


async def decrypt_journal_entries(entries: List[dict], key: JournalKey) -> List[dict]:
    return list(await asyncio.gather(*(decrypt_journal_entry(e, key) for e in entries)))
