"""Audit event query API endpoints."""

from typing import Any, Dict, List, Optional
from uuid import UUID
from datetime import datetime

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict
from sqlalchemy.orm import Session

from procurement.api.deps import get_db, get_current_user
from procurement.core.rbac import require_permission
from procurement.core.security import AuthContext
from procurement.db.models import Event

router = APIRouter(prefix="/events", tags=["events"])


# Schemas
class EventResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    entity_type: str
    entity_id: UUID
    action: str
    payload: Dict[str, Any]
    user_id: Optional[UUID]
    created_at: datetime


class EventListResponse(BaseModel):
    items: List[EventResponse]
    total: int
    limit: int
    offset: int


# Endpoints
@router.get("", response_model=EventListResponse)
@require_permission("events:list")
async def list_events(
    entity_type: Optional[str] = None,
    entity_id: Optional[UUID] = None,
    action: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    """
    List audit events, newest first.

    Supports filtering by entity, action and date range.
    """
    query = db.query(Event)

    if entity_type:
        query = query.filter(Event.entity_type == entity_type)

    if entity_id:
        query = query.filter(Event.entity_id == entity_id)

    if action:
        query = query.filter(Event.action == action)

    if start_date:
        query = query.filter(Event.created_at >= start_date)

    if end_date:
        query = query.filter(Event.created_at <= end_date)

    total = query.count()
    events = query.order_by(Event.created_at.desc()).offset(offset).limit(limit).all()

    return EventListResponse(
        items=[EventResponse.model_validate(e) for e in events],
        total=total,
        limit=limit,
        offset=offset,
    )
