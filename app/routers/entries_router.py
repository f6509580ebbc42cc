# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the MindHaven Wellness project.
# Licensed under the MIT License - see the LICENSE file for details.

import json
from datetime import datetime, timezone

from fastapi import APIRouter, Body, Depends, HTTPException
from pydantic import ValidationError
from sqlalchemy.orm import Session

from app.models.database import get_db
from app.schemas.entry_schemas import MoodEntry, SleepEntry, StressEntry
from app.services.document_store import load_collection, save_collection
from app.services.insight_service import METRICS

router = APIRouter()

ENTRY_SCHEMAS = {"mood": MoodEntry, "sleep": SleepEntry, "stress": StressEntry}


def _collection_for(metric: str) -> str:
    if metric not in METRICS:
        raise HTTPException(status_code=404, detail=f"Unknown metric '{metric}'.")
    return METRICS[metric]["collection"]


@router.post("/entries/{user_id}/{metric}")
async def add_entry(user_id: str, metric: str, payload: dict = Body(...), db: Session = Depends(get_db)):
    collection = _collection_for(metric)

    try:
        entry = ENTRY_SCHEMAS[metric].model_validate(payload)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=json.loads(e.json()))

    record = entry.model_dump()
    timestamp = record["timestamp"] or datetime.now(timezone.utc)
    record["timestamp"] = timestamp.isoformat()

    entries = load_collection(db, user_id, collection)
    entries.append(record)
    save_collection(db, user_id, collection, entries)

    return {"message": "Entry recorded", "entry": record, "total": len(entries)}


@router.get("/entries/{user_id}/{metric}")
async def list_entries(user_id: str, metric: str, db: Session = Depends(get_db)):
    entries = load_collection(db, user_id, _collection_for(metric))
    return {"metric": metric, "entries": entries}


@router.delete("/entries/{user_id}/{metric}/{index}")
async def delete_entry(user_id: str, metric: str, index: int, db: Session = Depends(get_db)):
    collection = _collection_for(metric)
    entries = load_collection(db, user_id, collection)

    if index < 0 or index >= len(entries):
        raise HTTPException(status_code=404, detail="Entry not found")

    removed = entries.pop(index)
    save_collection(db, user_id, collection, entries)
    return {"message": "Entry deleted", "entry": removed}
