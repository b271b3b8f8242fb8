"""
Calendar event endpoints. Reads are public; mutations require a signed-in admin.
"""

from fastapi import APIRouter, Depends, Query, HTTPException
from sqlalchemy.orm import Session
from pydantic import BaseModel, Field, model_validator
from datetime import datetime
from typing import Optional

from app.database import get_db
from app.models.event import EventCategory
from app.models.user import User
from app.services import db_service
from app.api.v1.deps import get_current_user


router = APIRouter(prefix="/events", tags=["Events"])


class EventRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    start_time: datetime
    end_time: datetime
    category: EventCategory
    link: Optional[str] = None

    class Config:
        extra = "forbid"
        use_enum_values = True

    @model_validator(mode="after")
    def check_time_range(self):
        if self.end_time < self.start_time:
            raise ValueError("end_time must not be before start_time")
        return self


class EventResponse(BaseModel):
    id: int
    title: str
    description: Optional[str]
    start_time: datetime
    end_time: datetime
    category: str
    link: Optional[str]
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


@router.get("", response_model=list[EventResponse])
def list_events(
    category: Optional[EventCategory] = Query(None, description="Filter by category"),
    db: Session = Depends(get_db)
):
    """List events in chronological order."""
    return db_service.get_all_events(db, category=category.value if category else None)


@router.post("", response_model=EventResponse, status_code=201)
def create_event(
    data: EventRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return db_service.create_event(db, data.model_dump())


@router.put("/{event_id}", response_model=EventResponse)
def update_event(
    event_id: int,
    data: EventRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    event = db_service.update_event(db, event_id, data.model_dump())
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")
    return event


@router.delete("/{event_id}")
def delete_event(
    event_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    if not db_service.delete_event(db, event_id):
        raise HTTPException(status_code=404, detail="Event not found")
    return {"success": True}
