# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the MindHaven Wellness project.
# Licensed under the MIT License - see the LICENSE file for details.

import logging
from typing import Dict, Optional, Protocol

from sqlalchemy.orm import Session

from app.models.encryption_secret import EncryptionSecret

logger = logging.getLogger(__name__)


class SecretStore(Protocol):
    """Local, non-synced storage for per-user encryption secrets."""

    def get_secret(self, user_id: str) -> Optional[str]:
        ...

    def set_secret(self, user_id: str, secret: str) -> None:
        ...


class InMemorySecretStore:
    def __init__(self, secrets: Optional[Dict[str, str]] = None):
        self._secrets: Dict[str, str] = dict(secrets or {})

    def get_secret(self, user_id: str) -> Optional[str]:
        return self._secrets.get(user_id)

    def set_secret(self, user_id: str, secret: str) -> None:
        self._secrets[user_id] = secret


class DatabaseSecretStore:
    """
    Keeps secrets in the local `encryption_secrets` table.

    Losing a row makes every journal entry encrypted under it unreadable.
    """

    def __init__(self, db: Session):
        self.db = db

    def get_secret(self, user_id: str) -> Optional[str]:
        row = self.db.query(EncryptionSecret).filter(EncryptionSecret.user_id == user_id).first()
        return row.secret if row else None

    def set_secret(self, user_id: str, secret: str) -> None:
        row = self.db.query(EncryptionSecret).filter(EncryptionSecret.user_id == user_id).first()
        if row:
            logger.warning(f"⚠️ Overwriting encryption secret for user {user_id}")
            row.secret = secret
        else:
            row = EncryptionSecret(user_id=user_id, secret=secret)
            self.db.add(row)
        self.db.commit()
