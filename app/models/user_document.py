# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the MindHaven Wellness project.
# Licensed under the MIT License - see the LICENSE file for details.


from sqlalchemy import Column, Integer, String, Text, DateTime, UniqueConstraint
from datetime import datetime
from app.models.database import Base


class UserDocument(Base):
    __tablename__ = "user_documents"
    __table_args__ = (
        UniqueConstraint("user_id", "collection", name="uq_user_collection"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, index=True, nullable=False)
    collection = Column(String, nullable=False)  # e.g., mood_entries, journal_entries

    # JSON array, always overwritten as a whole
    payload = Column(Text, nullable=False, default="[]")

    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
