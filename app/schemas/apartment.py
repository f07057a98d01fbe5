from pydantic import BaseModel, Field
from typing import Optional, Union

from app.models.apartment import Facing


class AreaIn(BaseModel):
    built_up: float = Field(..., ge=1, alias="builtUp")
    unit: str = Field("sqft", pattern=r"^(sqft|sqm)$")

    model_config = {"populate_by_name": True}


class PriceIn(BaseModel):
    base: float = Field(..., ge=0)


class AvailabilityIn(BaseModel):
    total_units: int = Field(1, ge=1, alias="totalUnits")
    available_units: Optional[int] = Field(None, ge=0, alias="availableUnits")
    sold_units: Optional[int] = Field(None, ge=0, alias="soldUnits")
    is_available: Optional[bool] = Field(None, alias="isAvailable")

    model_config = {"populate_by_name": True}


class AreaPatch(BaseModel):
    built_up: Optional[float] = Field(None, ge=1, alias="builtUp")
    unit: Optional[str] = Field(None, pattern=r"^(sqft|sqm)$")

    model_config = {"populate_by_name": True}


class AvailabilityPatch(BaseModel):
    """Partial counter edit: only the fields sent are written."""
    total_units: Optional[int] = Field(None, ge=1, alias="totalUnits")
    available_units: Optional[int] = Field(None, ge=0, alias="availableUnits")
    sold_units: Optional[int] = Field(None, ge=0, alias="soldUnits")
    is_available: Optional[bool] = Field(None, alias="isAvailable")

    model_config = {"populate_by_name": True}


class ApartmentCreateRequest(BaseModel):
    """Nested shape matches what the admin form posts and what the API returns."""
    project_id: Union[int, str] = Field(..., alias="projectId")
    type: str = Field(..., min_length=1, max_length=20)
    name: Optional[str] = Field(None, max_length=50)
    description: Optional[str] = Field(None, max_length=500)
    bedrooms: int = Field(..., ge=0, le=10)
    bathrooms: int = Field(..., ge=0, le=10)
    area: AreaIn
    price: PriceIn
    facing: Optional[Facing] = None
    availability: AvailabilityIn = AvailabilityIn()
    is_featured: bool = Field(False, alias="isFeatured")
    sort_order: int = Field(0, alias="sortOrder")

    model_config = {"populate_by_name": True, "use_enum_values": True}

    def to_values(self, project_id: int) -> dict:
        return {
            "project_id": project_id,
            "type": self.type.strip(),
            "name": self.name,
            "description": self.description,
            "bedrooms": self.bedrooms,
            "bathrooms": self.bathrooms,
            "area_built_up": self.area.built_up,
            "area_unit": self.area.unit,
            "price_base": self.price.base,
            "facing": self.facing,
            "total_units": self.availability.total_units,
            "available_units": self.availability.available_units,
            "sold_units": self.availability.sold_units,
            "is_featured": self.is_featured,
            "sort_order": self.sort_order,
        }


class ApartmentUpdateRequest(BaseModel):
    type: Optional[str] = Field(None, min_length=1, max_length=20)
    name: Optional[str] = Field(None, max_length=50)
    description: Optional[str] = Field(None, max_length=500)
    bedrooms: Optional[int] = Field(None, ge=0, le=10)
    bathrooms: Optional[int] = Field(None, ge=0, le=10)
    area: Optional[AreaPatch] = None
    price: Optional[PriceIn] = None
    facing: Optional[Facing] = None
    availability: Optional[AvailabilityPatch] = None
    is_featured: Optional[bool] = Field(None, alias="isFeatured")
    sort_order: Optional[int] = Field(None, alias="sortOrder")

    model_config = {"populate_by_name": True, "use_enum_values": True}

    def to_changes(self) -> dict:
        changes = {
            "type": self.type,
            "name": self.name,
            "description": self.description,
            "bedrooms": self.bedrooms,
            "bathrooms": self.bathrooms,
            "facing": self.facing,
            "is_featured": self.is_featured,
            "sort_order": self.sort_order,
        }
        if self.area:
            changes["area_built_up"] = self.area.built_up
            changes["area_unit"] = self.area.unit
        if self.price:
            changes["price_base"] = self.price.base
        if self.availability:
            a = self.availability
            changes["total_units"] = a.total_units
            changes["available_units"] = a.available_units
            changes["sold_units"] = a.sold_units
            changes["is_available"] = a.is_available
        return {k: v for k, v in changes.items() if v is not None}


class UnitQuantityRequest(BaseModel):
    quantity: int = Field(1, ge=1)
