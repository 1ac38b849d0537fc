"""Lesson and teaching session schemas."""

from datetime import date, datetime, time
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class TeachingSessionIn(BaseModel):
    subject_type: str
    teacher_id: int
    assistant_id: Optional[int] = None
    room_id: Optional[int] = None
    # Wall-clock times in the lesson's time zone
    start_time: time
    end_time: time


class LessonCreate(BaseModel):
    name: str = Field(min_length=1)
    class_id: int
    scheduled_date: date
    timezone: Optional[str] = None
    sessions: List[TeachingSessionIn] = Field(min_length=1)


class LessonUpdate(LessonCreate):
    pass


class TeachingSessionRead(BaseModel):
    id: int
    subject_type: str
    teacher_id: int
    assistant_id: Optional[int] = None
    room_id: Optional[int] = None
    start_at: datetime
    end_at: datetime
    local_start_time: time
    local_end_time: time
    duration_minutes: int


class LessonRead(BaseModel):
    id: int
    owner_id: int
    class_id: int
    name: str
    scheduled_date: date
    timezone: str
    sessions: List[TeachingSessionRead]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
