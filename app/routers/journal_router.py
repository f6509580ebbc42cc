# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the MindHaven Wellness project.
# Licensed under the MIT License - see the LICENSE file for details.

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.models.database import get_db
from app.schemas.entry_schemas import JournalEntryRequest, JournalEntryResponse, JournalListResponse
from app.services.analytics_engine import parse_timestamp
from app.services.document_store import load_collection, save_collection
from app.services.journal_crypto_service import (
    EncryptionNotReadyError,
    EncryptionSession,
    decrypt_journal_entries,
    encrypt_journal_fields,
    unique_entry_id,
)
from app.utils.encryption import EncryptionServiceError
from app.utils.secret_store import DatabaseSecretStore

logger = logging.getLogger(__name__)

router = APIRouter()

COLLECTION = "journal_entries"


async def _ready_session(user_id: str, db: Session) -> EncryptionSession:
    session = EncryptionSession(user_id, DatabaseSecretStore(db))
    try:
        await session.initialize()
    except EncryptionServiceError as e:
        logger.error(f"❌ Journal encryption unavailable for user {user_id}: {e}")
    return session


def _require_key(session: EncryptionSession):
    # ❌ Refuse writes instead of storing plaintext
    try:
        return session.require_key()
    except EncryptionNotReadyError as e:
        raise HTTPException(status_code=503, detail=str(e))


@router.post("/journal/{user_id}", response_model=JournalEntryResponse)
async def create_journal_entry(user_id: str, payload: JournalEntryRequest, db: Session = Depends(get_db)):
    key = _require_key(await _ready_session(user_id, db))

    now = datetime.now(timezone.utc)
    entry = {
        "title": payload.title,
        "content": payload.content,
        "mood": payload.mood,
        "tags": payload.tags,
        "timestamp": now.isoformat(),
    }
    stored = await encrypt_journal_fields(entry, key)

    # 🔒 No awaits between load and save
    entries = load_collection(db, user_id, COLLECTION)
    stored["id"] = unique_entry_id((e.get("id") for e in entries), now)
    entries.append(stored)
    save_collection(db, user_id, COLLECTION, entries)

    return {"message": "Journal entry saved", "entry": {**entry, "id": stored["id"], "encrypted": True}}


@router.get("/journal/{user_id}", response_model=JournalListResponse)
async def list_journal_entries(
    user_id: str,
    tag: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db)
):
    key = _require_key(await _ready_session(user_id, db))

    entries = await decrypt_journal_entries(load_collection(db, user_id, COLLECTION), key)

    if tag:
        entries = [e for e in entries if tag in (e.get("tags") or [])]
    if search:
        needle = search.lower()
        entries = [
            e for e in entries
            if needle in (e.get("title") or "").lower() or needle in (e.get("content") or "").lower()
        ]

    entries.sort(key=lambda e: parse_timestamp(e["timestamp"]), reverse=True)
    return {"entries": entries}


@router.put("/journal/{user_id}/{entry_id}", response_model=JournalEntryResponse)
async def update_journal_entry(user_id: str, entry_id: str, payload: JournalEntryRequest, db: Session = Depends(get_db)):
    key = _require_key(await _ready_session(user_id, db))

    changes = {
        "title": payload.title,
        "content": payload.content,
        "mood": payload.mood,
        "tags": payload.tags,
        "updated_at": datetime.now(timezone.utc).isoformat(),
    }
    encrypted_changes = await encrypt_journal_fields(changes, key)

    entries = load_collection(db, user_id, COLLECTION)
    index = next((i for i, e in enumerate(entries) if e.get("id") == entry_id), None)
    if index is None:
        raise HTTPException(status_code=404, detail="Journal entry not found")

    entries[index] = {**entries[index], **encrypted_changes}
    save_collection(db, user_id, COLLECTION, entries)

    return {"message": "Journal entry updated", "entry": {**entries[index], **changes}}


@router.delete("/journal/{user_id}/{entry_id}")
async def delete_journal_entry(user_id: str, entry_id: str, db: Session = Depends(get_db)):
    entries = load_collection(db, user_id, COLLECTION)
    remaining = [e for e in entries if e.get("id") != entry_id]
    if len(remaining) == len(entries):
        raise HTTPException(status_code=404, detail="Journal entry not found")

    save_collection(db, user_id, COLLECTION, remaining)
    return {"message": "Journal entry deleted", "id": entry_id}
