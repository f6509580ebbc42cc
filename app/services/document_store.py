# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the MindHaven Wellness project.
# Licensed under the MIT License - see the LICENSE file for details.

import json
import logging
from datetime import datetime
from typing import List

from sqlalchemy.orm import Session

from app.models.user_document import UserDocument

logger = logging.getLogger(__name__)

COLLECTIONS = ("mood_entries", "sleep_entries", "stress_entries", "journal_entries")


def _check_collection(collection: str):
    if collection not in COLLECTIONS:
        raise ValueError(f"Unknown collection '{collection}'.")


def load_collection(db: Session, user_id: str, collection: str) -> List[dict]:
    _check_collection(collection)
    doc = db.query(UserDocument).filter(
        UserDocument.user_id == user_id,
        UserDocument.collection == collection
    ).first()
    if not doc or not doc.payload:
        return []
    return json.loads(doc.payload)


def save_collection(db: Session, user_id: str, collection: str, entries: List[dict]) -> None:
    """
    Replaces the whole stored array; there are no partial updates.
    """
    _check_collection(collection)
    payload = json.dumps(entries, default=lambda o: o.isoformat() if isinstance(o, datetime) else str(o))

    doc = db.query(UserDocument).filter(
        UserDocument.user_id == user_id,
        UserDocument.collection == collection
    ).first()
    if doc:
        doc.payload = payload
    else:
        doc = UserDocument(user_id=user_id, collection=collection, payload=payload)
        db.add(doc)
    db.commit()

    logger.info(f"💾 Saved {len(entries)} {collection} for user {user_id}")
