from __future__ import annotations

from pydantic import BaseModel

from app.domain.entities import SessionType, WeekType


class ScheduleEntryOut(BaseModel):
    subject_id: str
    session_number: int
    faculty_id: str
    room_id: str
    time_slot_id: str
    batch: str
    session_type: SessionType
    week_type: WeekType = WeekType.both

    model_config = {"from_attributes": True}
