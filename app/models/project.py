import enum
import re

from sqlalchemy import Column, Integer, String, Numeric, Text, Boolean, DateTime
from sqlalchemy.orm import relationship, validates
from sqlalchemy.sql import func
from app.db.session import Base


class ProjectStatus(str, enum.Enum):
    UPCOMING = "upcoming"
    ONGOING = "ongoing"
    COMPLETED = "completed"


class ProjectCategory(str, enum.Enum):
    RESIDENTIAL = "residential"
    COMMERCIAL = "commercial"
    MIXED = "mixed"


def slugify(title: str) -> str:
    slug = re.sub(r"[^a-zA-Z0-9]", "-", title.lower())
    slug = re.sub(r"-+", "-", slug)
    return slug.strip("-")


class Project(Base):
    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(100), nullable=False)
    slug = Column(String(120), index=True)
    description = Column(Text, nullable=True)
    location = Column(String(255), nullable=True)
    status = Column(String(20), default=ProjectStatus.UPCOMING.value)  # ProjectStatus
    category = Column(String(20), default=ProjectCategory.RESIDENTIAL.value)  # ProjectCategory
    starting_price = Column(Numeric(15, 2), nullable=True)
    max_price = Column(Numeric(15, 2), nullable=True)
    total_units = Column(Integer, nullable=True)
    # Rollup cache: number of active apartment types currently available.
    # Written only by services.inventory.recompute_project_availability.
    available_units = Column(Integer, default=0)
    brochure_url = Column(String(500), nullable=True)
    lead_count = Column(Integer, default=0)
    view_count = Column(Integer, default=0)
    is_active = Column(Boolean, default=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    apartments = relationship("Apartment", back_populates="project")

    @validates("title")
    def _set_slug(self, key, title):
        self.slug = slugify(title or "")
        return title

    def to_dict(self) -> dict:
        return {
            "id": f"P{self.id}",
            "title": self.title,
            "slug": self.slug,
            "description": self.description or "",
            "location": self.location or "",
            "status": self.status,
            "category": self.category,
            "startingPrice": float(self.starting_price) if self.starting_price is not None else None,
            "maxPrice": float(self.max_price) if self.max_price is not None else None,
            "totalUnits": self.total_units,
            "availableUnits": self.available_units or 0,
            "brochureUrl": self.brochure_url,
            "leadCount": self.lead_count or 0,
            "viewCount": self.view_count or 0,
            "isActive": self.is_active,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
