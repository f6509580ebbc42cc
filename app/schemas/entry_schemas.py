# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the MindHaven Wellness project.
# Licensed under the MIT License - see the LICENSE file for details.

from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime


class MoodEntry(BaseModel):
    score: float = Field(..., ge=1, le=10)
    notes: Optional[str] = None
    triggers: List[str] = []
    activities: List[str] = []
    timestamp: Optional[datetime] = None


class SleepEntry(BaseModel):
    hours: float = Field(..., ge=0, le=24)
    quality: Optional[int] = Field(None, ge=1, le=5)
    bedtime: Optional[str] = Field(None, pattern=r"^\d{2}:\d{2}$")
    wake_time: Optional[str] = Field(None, pattern=r"^\d{2}:\d{2}$")
    factors: List[str] = []
    timestamp: Optional[datetime] = None


class StressEntry(BaseModel):
    level: float = Field(..., ge=1, le=10)
    sources: List[str] = []
    symptoms: List[str] = []
    timestamp: Optional[datetime] = None


class JournalEntryRequest(BaseModel):
    title: str
    content: str
    mood: int = Field(3, ge=1, le=5)
    tags: List[str] = []


class JournalEntryOut(BaseModel):
    id: str
    title: Optional[str]
    content: Optional[str]
    mood: Optional[int] = 3
    tags: List[str] = []
    timestamp: str
    updated_at: Optional[str] = None
    encrypted: bool = False


class JournalEntryResponse(BaseModel):
    message: str
    entry: JournalEntryOut


class JournalListResponse(BaseModel):
    entries: List[JournalEntryOut]
