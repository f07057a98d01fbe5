from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.models.apartment import Apartment
from app.api.deps import get_admin_from_token, parse_id
from app.schemas.apartment import ApartmentCreateRequest, ApartmentUpdateRequest, UnitQuantityRequest
from app.services import inventory

router = APIRouter(prefix="/api/apartments", tags=["Apartments"])

_SORTS = {
    "sortOrder": Apartment.sort_order.asc(),
    "price": Apartment.price_base.asc(),
    "-price": Apartment.price_base.desc(),
    "area": Apartment.area_built_up.asc(),
    "-area": Apartment.area_built_up.desc(),
    "-createdAt": Apartment.created_at.desc(),
}


@router.get("")
def list_apartments(
    db: Session = Depends(get_db),
    project_id: str | None = Query(None, alias="projectId"),
    type: str | None = Query(None),
    bedrooms: int | None = Query(None),
    bathrooms: int | None = Query(None),
    min_price: float | None = Query(None, alias="minPrice"),
    max_price: float | None = Query(None, alias="maxPrice"),
    min_area: float | None = Query(None, alias="minArea"),
    max_area: float | None = Query(None, alias="maxArea"),
    facing: str | None = Query(None),
    available: bool | None = Query(None),
    sort: str = Query("sortOrder"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
):
    q = db.query(Apartment).filter(Apartment.is_active.is_(True))
    if project_id:
        q = q.filter(Apartment.project_id == parse_id(project_id, "P", "Project"))
    if type:
        q = q.filter(Apartment.type.ilike(f"%{type}%"))
    if bedrooms is not None:
        q = q.filter(Apartment.bedrooms == bedrooms)
    if bathrooms is not None:
        q = q.filter(Apartment.bathrooms == bathrooms)
    if facing:
        q = q.filter(Apartment.facing == facing)
    if available is not None:
        q = q.filter(Apartment.is_available.is_(available))
    if min_price is not None:
        q = q.filter(Apartment.price_base >= min_price)
    if max_price is not None:
        q = q.filter(Apartment.price_base <= max_price)
    if min_area is not None:
        q = q.filter(Apartment.area_built_up >= min_area)
    if max_area is not None:
        q = q.filter(Apartment.area_built_up <= max_area)
    total = q.count()
    order = _SORTS.get(sort, Apartment.sort_order.asc())
    apartments = q.order_by(order, Apartment.id).offset((page - 1) * limit).limit(limit).all()
    pages = (total + limit - 1) // limit
    return {
        "success": True,
        "data": {
            "apartments": [a.to_dict() for a in apartments],
            "pagination": {
                "currentPage": page,
                "totalPages": pages,
                "totalApartments": total,
                "hasNextPage": page < pages,
                "hasPrevPage": page > 1,
            },
        },
    }


@router.get("/project/{project_id}")
def list_project_apartments(
    project_id: str,
    db: Session = Depends(get_db),
    available: bool | None = Query(None),
):
    pid = parse_id(project_id, "P", "Project")
    q = db.query(Apartment).filter(Apartment.project_id == pid, Apartment.is_active.is_(True))
    if available is not None:
        q = q.filter(Apartment.is_available.is_(available))
    apartments = q.order_by(Apartment.sort_order, Apartment.id).all()
    return {"success": True, "data": {"apartments": [a.to_dict() for a in apartments]}}


@router.get("/project/{project_id}/types")
def list_apartment_types(project_id: str, db: Session = Depends(get_db)):
    pid = parse_id(project_id, "P", "Project")
    return {"success": True, "data": {"types": inventory.apartment_types(db, pid)}}


@router.get("/{apartment_id}")
def get_apartment(apartment_id: str, db: Session = Depends(get_db)):
    uid = parse_id(apartment_id, "U", "Apartment")
    apartment = db.query(Apartment).filter(Apartment.id == uid, Apartment.is_active.is_(True)).first()
    if not apartment:
        raise HTTPException(status_code=404, detail="Apartment not found")
    return {"success": True, "data": {"apartment": apartment.to_dict()}}


@router.post("", status_code=201)
def create_apartment(
    data: ApartmentCreateRequest,
    db: Session = Depends(get_db),
    admin=Depends(get_admin_from_token),
):
    pid = parse_id(data.project_id, "P", "Project")
    apartment = inventory.create_apartment(db, data.to_values(pid), created_by=admin.id)
    return {
        "success": True,
        "message": "Apartment created successfully",
        "data": {"apartment": apartment.to_dict()},
    }


@router.put("/{apartment_id}")
def update_apartment(
    apartment_id: str,
    data: ApartmentUpdateRequest,
    db: Session = Depends(get_db),
    admin=Depends(get_admin_from_token),
):
    uid = parse_id(apartment_id, "U", "Apartment")
    apartment = inventory.update_apartment(db, uid, data.to_changes())
    return {
        "success": True,
        "message": "Apartment updated successfully",
        "data": {"apartment": apartment.to_dict()},
    }


@router.delete("/{apartment_id}")
def delete_apartment(
    apartment_id: str,
    db: Session = Depends(get_db),
    admin=Depends(get_admin_from_token),
):
    uid = parse_id(apartment_id, "U", "Apartment")
    inventory.deactivate_apartment(db, uid)
    return {"success": True, "message": "Apartment deleted successfully"}


@router.patch("/{apartment_id}/book")
def book_apartment_units(
    apartment_id: str,
    data: UnitQuantityRequest | None = None,
    db: Session = Depends(get_db),
    admin=Depends(get_admin_from_token),
):
    uid = parse_id(apartment_id, "U", "Apartment")
    quantity = data.quantity if data else 1
    counts = inventory.book_units(db, uid, quantity)
    return {"success": True, "message": f"{quantity} unit(s) booked successfully", "data": counts}


@router.patch("/{apartment_id}/release")
def release_apartment_units(
    apartment_id: str,
    data: UnitQuantityRequest | None = None,
    db: Session = Depends(get_db),
    admin=Depends(get_admin_from_token),
):
    uid = parse_id(apartment_id, "U", "Apartment")
    quantity = data.quantity if data else 1
    counts = inventory.release_units(db, uid, quantity)
    return {"success": True, "message": f"{quantity} unit(s) released successfully", "data": counts}
