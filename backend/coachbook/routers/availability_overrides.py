# backend/coachbook/routers/availability_overrides.py
# PATCH = 405, DELETE = ALLOWED (hard); one override per date

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.tables import AvailabilityOverrides as DBAvailabilityOverrides
from ..schemas.availability_overrides import (
    AvailabilityOverrideCreate,
    AvailabilityOverrideRead,
)

router = APIRouter(prefix="/availability_overrides", tags=["availability_overrides"])


@router.get("/", response_model=list[AvailabilityOverrideRead])
def list_availability_overrides(db: Session = Depends(get_db)):
    return db.query(DBAvailabilityOverrides).order_by(DBAvailabilityOverrides.date).all()


@router.post(
    "/", response_model=AvailabilityOverrideRead, status_code=status.HTTP_201_CREATED
)
def create_availability_override(
    data: AvailabilityOverrideCreate,
    db: Session = Depends(get_db),
):
    obj = DBAvailabilityOverrides(**data.model_dump())
    db.add(obj)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"An override for {data.date.isoformat()} already exists",
        )
    db.refresh(obj)
    return obj


@router.patch("/{id}")
def patch_not_allowed():
    raise HTTPException(
        status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
        detail="Method not allowed",
    )


@router.delete("/{id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_availability_override(id: int, db: Session = Depends(get_db)):
    obj = db.get(DBAvailabilityOverrides, id)
    if not obj:
        raise HTTPException(status_code=404, detail="Not found")
    db.delete(obj)
    db.commit()
