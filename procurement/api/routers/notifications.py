"""In-app notification API endpoints."""

from typing import Any, Dict, List, Literal, Optional
from uuid import UUID
from datetime import datetime

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import func
from sqlalchemy.orm import Session

from procurement.api.deps import get_db, get_current_user
from procurement.api.schemas import SuccessResponse
from procurement.core.errors import InvalidInputError, NotFoundError
from procurement.core.rbac import require_permission
from procurement.core.security import AuthContext
from procurement.db.models import Notification, NotificationType, Profile
from procurement.services import NotificationService

router = APIRouter(prefix="/notifications", tags=["notifications"])


# Schemas
class NotificationCreate(BaseModel):
    user_ids: List[UUID] = Field(..., min_length=1)
    title: str = Field(..., min_length=1, max_length=255)
    message: str = Field(..., min_length=1)
    type: NotificationType = NotificationType.INFO
    entity_type: Optional[str] = Field(None, max_length=50)
    entity_id: Optional[UUID] = None
    action_url: Optional[str] = Field(None, max_length=512)
    metadata: Dict[str, Any] = Field(default_factory=dict)


class MarkReadRequest(BaseModel):
    ids: List[UUID] = Field(default_factory=list)
    all: bool = False


class NotificationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    title: str
    message: str
    type: str
    entity_type: Optional[str]
    entity_id: Optional[UUID]
    action_url: Optional[str]
    metadata: Dict[str, Any] = Field(default_factory=dict, validation_alias="extra_data")
    read: bool
    created_at: datetime


class NotificationListResponse(BaseModel):
    items: List[NotificationResponse]
    total: int
    unread: int
    limit: int
    offset: int


# Endpoints
@router.get("", response_model=NotificationListResponse)
@require_permission("notifications:list")
async def list_notifications(
    read: Literal["true", "false", "all"] = "all",
    type_filter: Optional[NotificationType] = Query(None, alias="type"),
    entity_type: Optional[str] = None,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    """List the caller's own notifications, newest first."""
    query = db.query(Notification).filter(Notification.user_id == current_user.user_id)

    if read != "all":
        query = query.filter(Notification.read.is_(read == "true"))
    if type_filter:
        query = query.filter(Notification.type == type_filter.value)
    if entity_type:
        query = query.filter(Notification.entity_type == entity_type)

    total = query.count()
    notifications = query.order_by(Notification.created_at.desc()).offset(offset).limit(limit).all()

    unread = db.query(func.count(Notification.id)).filter(
        Notification.user_id == current_user.user_id,
        Notification.read.is_(False),
    ).scalar()

    return NotificationListResponse(
        items=[NotificationResponse.model_validate(n) for n in notifications],
        total=total,
        unread=unread or 0,
        limit=limit,
        offset=offset,
    )


@router.post("", response_model=List[NotificationResponse], status_code=status.HTTP_201_CREATED)
@require_permission("notifications:create")
async def create_notifications(
    data: NotificationCreate,
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    """Send a notification to one or more profiles."""
    user_ids = set(data.user_ids)
    found = {row.id for row in db.query(Profile.id).filter(Profile.id.in_(user_ids))}
    missing = user_ids - found
    if missing:
        raise NotFoundError(f"Unknown profiles: {', '.join(sorted(str(m) for m in missing))}")

    notifications = NotificationService(db).create_bulk_notifications(
        data.user_ids,
        title=data.title,
        message=data.message,
        type=data.type,
        entity_type=data.entity_type,
        entity_id=data.entity_id,
        action_url=data.action_url,
        metadata=data.metadata,
    )
    db.commit()
    return [NotificationResponse.model_validate(n) for n in notifications]


@router.patch("", response_model=SuccessResponse)
@require_permission("notifications:update")
async def mark_read(
    data: MarkReadRequest,
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    """Mark the caller's notifications as read, by id or all at once."""
    if not data.all and not data.ids:
        raise InvalidInputError(
            "Provide notification ids or set all to true",
            [{"field": "ids", "message": "at least one id is required unless all is true"}],
        )

    query = db.query(Notification).filter(
        Notification.user_id == current_user.user_id,
        Notification.read.is_(False),
    )
    if not data.all:
        query = query.filter(Notification.id.in_(data.ids))

    updated = query.update({Notification.read: True}, synchronize_session=False)
    db.commit()
    return SuccessResponse(message=f"{updated} notification(s) marked as read", data={"updated": updated})


@router.delete("", response_model=SuccessResponse)
@require_permission("notifications:delete")
async def delete_notifications(
    ids: List[UUID] = Query(...),
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    """Delete the caller's own notifications."""
    deleted = db.query(Notification).filter(
        Notification.user_id == current_user.user_id,
        Notification.id.in_(ids),
    ).delete(synchronize_session=False)
    db.commit()
    return SuccessResponse(message=f"{deleted} notification(s) deleted", data={"deleted": deleted})
