# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the MindHaven Wellness project.
# Licensed under the MIT License - see the LICENSE file for details.


from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.orm import Session

from app.models.database import get_db
from app.utils.encryption import decrypt, derive_key, encrypt

router = APIRouter()


@router.get("/healthz")
async def health_check(db: Session = Depends(get_db)):
    result = {
        "db_connection": False,
        "crypto_roundtrip": False
    }

    try:
        # ✅ Check DB read
        db.execute(text("SELECT 1"))
        result["db_connection"] = True

        # ✅ AES-GCM available and working
        probe_key = derive_key("healthz", "healthz-probe")
        result["crypto_roundtrip"] = decrypt(encrypt("ok", probe_key), probe_key) == "ok"

        return {
            "status": "ok" if all(result.values()) else "partial",
            "details": result
        }

    except Exception as e:
        return {
            "status": "error",
            "error": str(e),
            "details": result
        }
