from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from academy.api.deps import get_db, require_admin
from academy.models.location import Location
from academy.models.user import User
from academy.schemas.location import LocationCreate, LocationOut, LocationUpdate

router = APIRouter()


def _get_location(db: Session, location_id: str) -> Location:
    location = db.get(Location, location_id)
    if location is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Location not found")
    return location


@router.get("/locations", response_model=list[LocationOut])
def list_locations(db: Session = Depends(get_db)) -> list[LocationOut]:
    return list(db.execute(select(Location).order_by(Location.name.asc())).scalars())


@router.get("/admin/locations", response_model=list[LocationOut])
def admin_list_locations(current_user: User = Depends(require_admin), db: Session = Depends(get_db)) -> list[LocationOut]:
    return list(db.execute(select(Location).order_by(Location.name.asc())).scalars())


@router.post("/admin/locations", response_model=LocationOut, status_code=status.HTTP_201_CREATED)
def create_location(
    payload: LocationCreate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> LocationOut:
    if db.execute(select(Location.id).where(Location.name == payload.name)).first():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Location name already exists")
    location = Location(**payload.model_dump())
    db.add(location)
    db.commit()
    db.refresh(location)
    return location


@router.put("/admin/locations/{location_id}", response_model=LocationOut)
def update_location(
    location_id: str,
    payload: LocationUpdate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> LocationOut:
    location = _get_location(db, location_id)
    for key, value in payload.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(location, key, value)
    db.commit()
    db.refresh(location)
    return location


@router.delete("/admin/locations/{location_id}")
def delete_location(location_id: str, current_user: User = Depends(require_admin), db: Session = Depends(get_db)) -> dict:
    db.delete(_get_location(db, location_id))
    db.commit()
    return {"success": True}
