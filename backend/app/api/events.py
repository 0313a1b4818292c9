from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session, select
from typing import List
from datetime import datetime
from app.api.deps import get_db, admin_required
from app.models.user import User
from app.models.event import Event, EventContentType
from app.schemas.event import EventResponse, EventCreate, EventUpdate
from app.services.audit import log_admin_action

router = APIRouter(prefix="/api/events", tags=["events"])
admin_router = APIRouter(prefix="/api/admin/events", tags=["admin-events"])


@router.get("/", response_model=List[EventResponse])
def list_events(
    active: bool = Query(False, description="Only active events inside their date window"),
    db: Session = Depends(get_db)
):
    stmt = select(Event)
    if active:
        now = datetime.utcnow()
        stmt = stmt.where(Event.is_active == True, Event.start_date <= now, Event.end_date >= now)
    return db.exec(stmt.order_by(Event.position, Event.start_date.desc())).all()


@router.get("/{event_id}", response_model=EventResponse)
def get_event(event_id: int, db: Session = Depends(get_db)):
    event = db.get(Event, event_id)
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")
    return event


@admin_router.post("/", response_model=EventResponse, status_code=201)
def create_event(
    data: EventCreate,
    db: Session = Depends(get_db),
    admin: User = Depends(admin_required)
):
    event = Event(**data.model_dump())
    db.add(event)
    log_admin_action(db, "EVENT_CREATE", f"Created event {event.title}", admin.id)
    db.commit()
    db.refresh(event)
    return event


@admin_router.put("/{event_id}", response_model=EventResponse)
def update_event(
    event_id: int,
    data: EventUpdate,
    db: Session = Depends(get_db),
    admin: User = Depends(admin_required)
):
    event = db.get(Event, event_id)
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")

    update_data = data.model_dump(exclude_unset=True)

    start = update_data.get("start_date", event.start_date)
    end = update_data.get("end_date", event.end_date)
    if end < start:
        raise HTTPException(status_code=400, detail="end_date cannot be before start_date")

    content_type = update_data.get("content_type", event.content_type)
    video_url = update_data.get("video_url", event.video_url)
    if content_type == EventContentType.VIDEO and not video_url:
        raise HTTPException(status_code=400, detail="video_url is required for video events")

    for key, value in update_data.items():
        setattr(event, key, value)

    event.updated_at = datetime.utcnow()
    db.add(event)
    log_admin_action(db, "EVENT_UPDATE", f"Updated event {event.title}", admin.id)
    db.commit()
    db.refresh(event)
    return event


@admin_router.delete("/{event_id}")
def delete_event(
    event_id: int,
    db: Session = Depends(get_db),
    admin: User = Depends(admin_required)
):
    event = db.get(Event, event_id)
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")

    title = event.title
    db.delete(event)
    log_admin_action(db, "EVENT_DELETE", f"Deleted event {title}", admin.id)
    db.commit()
    return {"message": "Event deleted"}
