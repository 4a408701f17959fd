"""RFP document API endpoints."""

from typing import List, Literal, Optional
from uuid import UUID
from datetime import datetime

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from procurement.api.deps import get_db, get_current_user
from procurement.api.schemas import SuccessResponse
from procurement.core.errors import NotFoundError
from procurement.core.events import EntityTypes, EventActions, log_event
from procurement.core.rbac import require_permission
from procurement.core.security import AuthContext
from procurement.db.models import RfpDoc, Tender

router = APIRouter(prefix="/rfp", tags=["rfp"])

ORDER_COLUMNS = {
    "created_at": RfpDoc.created_at,
    "title": RfpDoc.title,
    "is_mandatory": RfpDoc.is_mandatory,
}

NULLABLE_FIELDS = {"description", "file_url"}


# Schemas
class RfpDocCreate(BaseModel):
    tender_id: UUID
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    file_url: Optional[str] = Field(None, max_length=512)
    required_fields: List[str] = Field(default_factory=list)
    is_mandatory: bool = True


class RfpDocUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    file_url: Optional[str] = Field(None, max_length=512)
    required_fields: Optional[List[str]] = None
    is_mandatory: Optional[bool] = None


class RfpDocResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    tender_id: UUID
    title: str
    description: Optional[str]
    file_url: Optional[str]
    required_fields: List[str]
    is_mandatory: bool
    created_at: datetime
    updated_at: datetime


class RfpDocListResponse(BaseModel):
    items: List[RfpDocResponse]
    total: int
    limit: int
    offset: int


def _get_doc(db: Session, doc_id: UUID) -> RfpDoc:
    doc = db.query(RfpDoc).filter(RfpDoc.id == doc_id).first()
    if not doc:
        raise NotFoundError("RFP document not found")
    return doc


# Endpoints
@router.get("", response_model=RfpDocListResponse)
@require_permission("rfp_docs:list")
async def list_rfp_docs(
    tender_id: Optional[UUID] = None,
    is_mandatory: Optional[bool] = None,
    order_by: Literal["created_at", "title", "is_mandatory"] = "created_at",
    order_dir: Literal["asc", "desc"] = "desc",
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    query = db.query(RfpDoc)

    if tender_id:
        query = query.filter(RfpDoc.tender_id == tender_id)
    if is_mandatory is not None:
        query = query.filter(RfpDoc.is_mandatory.is_(is_mandatory))

    total = query.count()

    column = ORDER_COLUMNS[order_by]
    docs = (
        query.order_by(column.asc() if order_dir == "asc" else column.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )

    return RfpDocListResponse(
        items=[RfpDocResponse.model_validate(d) for d in docs],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.post("", response_model=RfpDocResponse, status_code=status.HTTP_201_CREATED)
@require_permission("rfp_docs:create")
async def create_rfp_doc(
    data: RfpDocCreate,
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    tender = db.query(Tender).filter(Tender.id == data.tender_id).first()
    if not tender:
        raise NotFoundError("Tender not found")

    doc = RfpDoc(**data.model_dump())
    db.add(doc)
    db.flush()

    log_event(
        db,
        EntityTypes.RFP_DOC,
        doc.id,
        EventActions.CREATED,
        {
            "tender_id": tender.id,
            "title": doc.title,
            "is_mandatory": doc.is_mandatory,
            "required_fields_count": len(doc.required_fields),
        },
        actor_id=current_user.user_id,
    )
    db.commit()
    db.refresh(doc)
    return RfpDocResponse.model_validate(doc)


@router.patch("/{doc_id}", response_model=RfpDocResponse)
@require_permission("rfp_docs:update")
async def update_rfp_doc(
    doc_id: UUID,
    data: RfpDocUpdate,
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    doc = _get_doc(db, doc_id)

    changes = data.model_dump(exclude_unset=True)
    for field, value in changes.items():
        if value is None and field not in NULLABLE_FIELDS:
            continue
        setattr(doc, field, value)
    db.flush()

    log_event(
        db,
        EntityTypes.RFP_DOC,
        doc.id,
        EventActions.UPDATED,
        {"fields": sorted(changes)},
        actor_id=current_user.user_id,
    )
    db.commit()
    db.refresh(doc)
    return RfpDocResponse.model_validate(doc)


@router.delete("/{doc_id}", response_model=SuccessResponse)
@require_permission("rfp_docs:delete")
async def delete_rfp_doc(
    doc_id: UUID,
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    doc = _get_doc(db, doc_id)
    payload = {"tender_id": doc.tender_id, "title": doc.title}

    db.delete(doc)
    db.flush()
    log_event(db, EntityTypes.RFP_DOC, doc_id, EventActions.DELETED, payload, actor_id=current_user.user_id)
    db.commit()
    return SuccessResponse(message="RFP document deleted")
