"""Supplier registry API endpoints."""

from typing import List, Optional
from uuid import UUID
from datetime import datetime

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from sqlalchemy import or_
from sqlalchemy.orm import Session

from procurement.api.deps import get_db, get_current_user
from procurement.core.errors import NotFoundError
from procurement.core.events import EntityTypes, EventActions, log_event
from procurement.core.rbac import require_permission
from procurement.core.security import AuthContext
from procurement.db.models import Supplier, SupplierStatus

router = APIRouter(prefix="/suppliers", tags=["suppliers"])

NULLABLE_FIELDS = {"rnc", "contact_email"}


# Schemas
class SupplierCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    rnc: Optional[str] = Field(None, max_length=50)
    status: SupplierStatus = SupplierStatus.ACTIVO
    certified: bool = False
    certifications: List[str] = Field(default_factory=list)
    experience_years: int = Field(0, ge=0)
    support_months: int = Field(0, ge=0)
    contact_email: Optional[EmailStr] = None


class SupplierUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    rnc: Optional[str] = Field(None, max_length=50)
    status: Optional[SupplierStatus] = None
    certified: Optional[bool] = None
    certifications: Optional[List[str]] = None
    experience_years: Optional[int] = Field(None, ge=0)
    support_months: Optional[int] = Field(None, ge=0)
    contact_email: Optional[EmailStr] = None


class SupplierResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    rnc: Optional[str]
    status: str
    certified: bool
    certifications: List[str]
    experience_years: int
    support_months: int
    contact_email: Optional[str]
    created_at: datetime
    updated_at: datetime


class SupplierListResponse(BaseModel):
    items: List[SupplierResponse]
    total: int
    limit: int
    offset: int


# Endpoints
@router.get("", response_model=SupplierListResponse)
@require_permission("suppliers:list")
async def list_suppliers(
    status_filter: Optional[SupplierStatus] = Query(None, alias="status"),
    certified: Optional[bool] = None,
    search: Optional[str] = Query(None, description="Matches name or RNC"),
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    query = db.query(Supplier)

    if status_filter:
        query = query.filter(Supplier.status == status_filter.value)
    if certified is not None:
        query = query.filter(Supplier.certified.is_(certified))
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(Supplier.name.ilike(pattern), Supplier.rnc.ilike(pattern)))

    total = query.count()
    suppliers = query.order_by(Supplier.name.asc()).offset(offset).limit(limit).all()

    return SupplierListResponse(
        items=[SupplierResponse.model_validate(s) for s in suppliers],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.post("", response_model=SupplierResponse, status_code=status.HTTP_201_CREATED)
@require_permission("suppliers:create")
async def create_supplier(
    data: SupplierCreate,
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    values = data.model_dump()
    values["status"] = data.status.value
    supplier = Supplier(**values)
    db.add(supplier)
    db.flush()

    log_event(
        db,
        EntityTypes.SUPPLIER,
        supplier.id,
        EventActions.CREATED,
        {"name": supplier.name, "rnc": supplier.rnc, "status": supplier.status},
        actor_id=current_user.user_id,
    )
    db.commit()
    db.refresh(supplier)
    return SupplierResponse.model_validate(supplier)


@router.patch("/{supplier_id}", response_model=SupplierResponse)
@require_permission("suppliers:update")
async def update_supplier(
    supplier_id: UUID,
    data: SupplierUpdate,
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    supplier = db.query(Supplier).filter(Supplier.id == supplier_id).first()
    if not supplier:
        raise NotFoundError("Supplier not found")

    changes = data.model_dump(exclude_unset=True)
    if changes.get("status") is not None:
        changes["status"] = SupplierStatus(changes["status"]).value

    for field, value in changes.items():
        if value is None and field not in NULLABLE_FIELDS:
            continue
        setattr(supplier, field, value)
    db.flush()

    log_event(
        db,
        EntityTypes.SUPPLIER,
        supplier.id,
        EventActions.UPDATED,
        {"fields": sorted(changes)},
        actor_id=current_user.user_id,
    )
    db.commit()
    db.refresh(supplier)
    return SupplierResponse.model_validate(supplier)
