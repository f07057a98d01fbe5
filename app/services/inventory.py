"""
Inventory ledger

Book/release units on an apartment type and keep the parent project's
available_units rollup in step. Counter changes are single conditional
UPDATE statements, so two concurrent bookings cannot both pass the
availability check against the same stale read.
"""
import logging

from sqlalchemy import update, func
from sqlalchemy.orm import Session

from app.models.apartment import Apartment
from app.models.project import Project
from app.services.errors import InsufficientInventory, OverRelease, NotFound, ProjectNotFound, ValidationError, commit

logger = logging.getLogger(__name__)

# Fields an admin edit may not touch through update_apartment.
_PROTECTED_FIELDS = {"id", "project_id", "created_by", "created_at", "updated_at"}


def _check_quantity(quantity) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
        raise ValidationError("quantity must be a positive integer")
    return quantity


def _get_apartment(db: Session, unit_id: int, active_only: bool = False) -> Apartment:
    apartment = db.get(Apartment, unit_id)
    if not apartment or (active_only and not apartment.is_active):
        raise NotFound("Apartment not found")
    return apartment


def recompute_project_availability(db: Session, project_id: int) -> int:
    """Count active, available apartment types of the project and cache it on the project.

    The cached value is a count of apartment records, not a sum of their unit
    counts. Flushes but does not commit.
    """
    count = (
        db.query(func.count(Apartment.id))
        .filter(
            Apartment.project_id == project_id,
            Apartment.is_available.is_(True),
            Apartment.is_active.is_(True),
        )
        .scalar()
    ) or 0
    result = db.execute(
        update(Project)
        .where(Project.id == project_id)
        # cache write: keep updated_at as the last user-facing edit
        .values(available_units=count, updated_at=Project.updated_at)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise ProjectNotFound(project_id)
    project = db.get(Project, project_id)
    if project is not None:
        db.refresh(project, attribute_names=["available_units"])
    return count


def refresh_project_rollup(db: Session, project_id: int) -> int | None:
    """Recompute and commit the project rollup. Failures are logged, never raised.

    Called after the apartment change has been committed; that change stands
    even when the rollup cannot be written.
    """
    try:
        count = recompute_project_availability(db, project_id)
        db.commit()
        return count
    except Exception:
        db.rollback()
        logger.exception("Error updating available units for project P%s", project_id)
        return None


def book_units(db: Session, unit_id: int, quantity: int = 1) -> dict:
    """Move `quantity` units from available to sold. Raises InsufficientInventory untouched."""
    quantity = _check_quantity(quantity)
    result = db.execute(
        update(Apartment)
        .where(
            Apartment.id == unit_id,
            Apartment.is_active.is_(True),
            Apartment.available_units >= quantity,
        )
        .ordered_values(
            # evaluated against the pre-update row on every backend, MySQL included
            (Apartment.is_available, Apartment.available_units - quantity > 0),
            (Apartment.available_units, Apartment.available_units - quantity),
            (Apartment.sold_units, Apartment.sold_units + quantity),
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        db.rollback()
        apartment = _get_apartment(db, unit_id, active_only=True)
        raise InsufficientInventory(unit_id, quantity, apartment.available_units or 0)
    commit(db)

    apartment = _get_apartment(db, unit_id)
    db.refresh(apartment)
    logger.info(
        "Booked %s unit(s) on U%s: available=%s sold=%s",
        quantity, unit_id, apartment.available_units, apartment.sold_units,
    )
    refresh_project_rollup(db, apartment.project_id)
    return _counts(apartment)


def release_units(db: Session, unit_id: int, quantity: int = 1) -> dict:
    """Move `quantity` units from sold back to available. Raises OverRelease untouched."""
    quantity = _check_quantity(quantity)
    result = db.execute(
        update(Apartment)
        .where(
            Apartment.id == unit_id,
            Apartment.is_active.is_(True),
            Apartment.sold_units >= quantity,
        )
        .ordered_values(
            (Apartment.available_units, Apartment.available_units + quantity),
            (Apartment.sold_units, Apartment.sold_units - quantity),
            (Apartment.is_available, True),
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        db.rollback()
        apartment = _get_apartment(db, unit_id, active_only=True)
        raise OverRelease(unit_id, quantity, apartment.sold_units or 0)
    commit(db)

    apartment = _get_apartment(db, unit_id)
    db.refresh(apartment)
    logger.info(
        "Released %s unit(s) on U%s: available=%s sold=%s",
        quantity, unit_id, apartment.available_units, apartment.sold_units,
    )
    refresh_project_rollup(db, apartment.project_id)
    return _counts(apartment)


def _counts(apartment: Apartment) -> dict:
    return {
        "availableUnits": apartment.available_units,
        "soldUnits": apartment.sold_units,
        "isAvailable": bool(apartment.is_available),
    }


def create_apartment(db: Session, data: dict, created_by: int | None = None) -> Apartment:
    project = db.get(Project, data.get("project_id"))
    if not project:
        raise ProjectNotFound(data.get("project_id"))

    values = dict(data)
    if values.get("available_units") is None:
        values["available_units"] = values.get("total_units") or 1
    if values.get("sold_units") is None:
        values["sold_units"] = 0
    values["is_available"] = values["available_units"] > 0

    apartment = Apartment(**values, created_by=created_by)
    apartment.refresh_price_per_sqft()
    db.add(apartment)
    commit(db)
    db.refresh(apartment)
    logger.info("Created apartment U%s (%s) in project P%s", apartment.id, apartment.type, project.id)
    refresh_project_rollup(db, project.id)
    return apartment


def update_apartment(db: Session, unit_id: int, changes: dict) -> Apartment:
    """Admin edit. Counters are written as given; keeping them consistent is the admin's call."""
    apartment = _get_apartment(db, unit_id)
    for key, value in changes.items():
        if key in _PROTECTED_FIELDS or value is None:
            continue
        setattr(apartment, key, value)
    if "available_units" in changes and changes.get("is_available") is None and apartment.available_units is not None:
        apartment.is_available = apartment.available_units > 0
    if "price_base" in changes or "area_built_up" in changes:
        apartment.refresh_price_per_sqft()
    commit(db)
    db.refresh(apartment)
    refresh_project_rollup(db, apartment.project_id)
    return apartment


def deactivate_apartment(db: Session, unit_id: int) -> Apartment:
    """Soft delete: apartments are retired, never removed."""
    apartment = _get_apartment(db, unit_id)
    apartment.is_active = False
    commit(db)
    logger.info("Deactivated apartment U%s", unit_id)
    refresh_project_rollup(db, apartment.project_id)
    return apartment


def deactivate_project(db: Session, project_id: int) -> Project:
    """Soft delete a project and every apartment under it."""
    project = db.get(Project, project_id)
    if not project:
        raise ProjectNotFound(project_id)
    project.is_active = False
    db.execute(
        update(Apartment)
        .where(Apartment.project_id == project_id)
        .values(is_active=False)
        .execution_options(synchronize_session=False)
    )
    commit(db)
    refresh_project_rollup(db, project_id)
    return project


def apartment_types(db: Session, project_id: int) -> list[dict]:
    """Per-type summary of a project's active apartments, cheapest first."""
    rows = (
        db.query(
            Apartment.type,
            func.count(Apartment.id),
            func.min(Apartment.price_base),
            func.max(Apartment.price_base),
            func.min(Apartment.area_built_up),
            func.max(Apartment.area_built_up),
            func.sum(Apartment.available_units),
        )
        .filter(Apartment.project_id == project_id, Apartment.is_active.is_(True))
        .group_by(Apartment.type)
        .order_by(func.min(Apartment.price_base))
        .all()
    )
    return [
        {
            "type": t,
            "count": count,
            "minPrice": float(min_price) if min_price is not None else None,
            "maxPrice": float(max_price) if max_price is not None else None,
            "minArea": float(min_area) if min_area is not None else None,
            "maxArea": float(max_area) if max_area is not None else None,
            "availableUnits": int(available or 0),
        }
        for t, count, min_price, max_price, min_area, max_area, available in rows
    ]

