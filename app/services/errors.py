"""Errors raised by the bookkeeping services. main.py turns them into JSON responses."""
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session


class BookkeepingError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(BookkeepingError):
    status_code = 400


class NotFound(BookkeepingError):
    status_code = 404


class ProjectNotFound(NotFound):
    def __init__(self, project_id=None):
        msg = "Project not found" if project_id is None else f"Project P{project_id} not found"
        super().__init__(msg)
        self.project_id = project_id


class InsufficientInventory(BookkeepingError):
    status_code = 409

    def __init__(self, unit_id: int, requested: int, available: int):
        super().__init__(
            f"Not enough units available for U{unit_id}: requested {requested}, "
            f"available {available}, short by {requested - available}"
        )
        self.unit_id = unit_id
        self.requested = requested
        self.available = available
        self.shortfall = requested - available


class OverRelease(BookkeepingError):
    status_code = 409

    def __init__(self, unit_id: int, requested: int, sold: int):
        super().__init__(
            f"Cannot release more units than sold for U{unit_id}: requested {requested}, sold {sold}"
        )
        self.unit_id = unit_id
        self.requested = requested
        self.sold = sold


def commit(db: Session) -> None:
    """Commit the session; a constraint violation rolls back and becomes a ValidationError."""
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise ValidationError(str(e.orig)) from e
