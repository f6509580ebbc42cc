# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the MindHaven Wellness project.
# Licensed under the MIT License - see the LICENSE file for details.


from sqlalchemy import Column, Integer, String, DateTime
from datetime import datetime
from app.models.database import Base


class EncryptionSecret(Base):
    __tablename__ = "encryption_secrets"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, unique=True, index=True, nullable=False)

    # 🔐 Hex secret used as PBKDF2 password material, never sent to clients
    secret = Column(String, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
