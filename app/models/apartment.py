import enum

from sqlalchemy import Column, Integer, String, Numeric, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.db.session import Base


class Facing(str, enum.Enum):
    NORTH = "north"
    SOUTH = "south"
    EAST = "east"
    WEST = "west"
    NORTH_EAST = "north-east"
    NORTH_WEST = "north-west"
    SOUTH_EAST = "south-east"
    SOUTH_WEST = "south-west"


class Apartment(Base):
    """One sellable unit configuration (e.g. 2BHK) within a project, with its own counters."""
    __tablename__ = "apartments"

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False, index=True)
    type = Column(String(20), nullable=False)  # 2BHK, Penthouse, ...
    name = Column(String(50), nullable=True)
    description = Column(String(500), nullable=True)
    bedrooms = Column(Integer, nullable=False, default=0)
    bathrooms = Column(Integer, nullable=False, default=0)
    area_built_up = Column(Numeric(10, 2), nullable=False)
    area_unit = Column(String(10), default="sqft")  # sqft | sqm
    price_base = Column(Numeric(15, 2), nullable=False)
    price_per_sqft = Column(Integer, nullable=True)
    facing = Column(String(20), nullable=True)  # Facing

    # availableUnits + soldUnits == totalUnits after every ledger operation
    total_units = Column(Integer, nullable=False, default=1)
    available_units = Column(Integer, nullable=False, default=1)
    sold_units = Column(Integer, nullable=False, default=0)
    is_available = Column(Boolean, nullable=False, default=True, index=True)

    is_active = Column(Boolean, default=True, index=True)
    is_featured = Column(Boolean, default=False)
    sort_order = Column(Integer, default=0)
    created_by = Column(Integer, ForeignKey("admins.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    project = relationship("Project", back_populates="apartments")

    def refresh_price_per_sqft(self) -> None:
        if self.price_base is not None and self.area_built_up and self.area_built_up > 0:
            self.price_per_sqft = round(float(self.price_base) / float(self.area_built_up))

    def availability(self) -> dict:
        return {
            "totalUnits": self.total_units,
            "availableUnits": self.available_units,
            "soldUnits": self.sold_units,
            "isAvailable": bool(self.is_available),
        }

    def to_dict(self) -> dict:
        return {
            "id": f"U{self.id}",
            "projectId": f"P{self.project_id}",
            "type": self.type,
            "name": self.name or "",
            "description": self.description or "",
            "bedrooms": self.bedrooms,
            "bathrooms": self.bathrooms,
            "area": {
                "builtUp": float(self.area_built_up) if self.area_built_up is not None else None,
                "unit": self.area_unit or "sqft",
            },
            "price": {
                "base": float(self.price_base) if self.price_base is not None else None,
                "perSqFt": self.price_per_sqft,
            },
            "facing": self.facing,
            "availability": self.availability(),
            "isActive": self.is_active,
            "isFeatured": self.is_featured,
            "sortOrder": self.sort_order or 0,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
