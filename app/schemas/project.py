from pydantic import BaseModel, Field
from typing import Optional

from app.models.project import ProjectStatus, ProjectCategory


class ProjectCreateRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    location: Optional[str] = None
    status: ProjectStatus = ProjectStatus.UPCOMING
    category: ProjectCategory = ProjectCategory.RESIDENTIAL
    starting_price: Optional[float] = Field(None, ge=0, alias="startingPrice")
    max_price: Optional[float] = Field(None, ge=0, alias="maxPrice")
    total_units: Optional[int] = Field(None, ge=1, alias="totalUnits")
    brochure_url: Optional[str] = Field(None, alias="brochureUrl")

    model_config = {"populate_by_name": True, "use_enum_values": True}


class ProjectUpdateRequest(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    location: Optional[str] = None
    status: Optional[ProjectStatus] = None
    category: Optional[ProjectCategory] = None
    starting_price: Optional[float] = Field(None, ge=0, alias="startingPrice")
    max_price: Optional[float] = Field(None, ge=0, alias="maxPrice")
    total_units: Optional[int] = Field(None, ge=1, alias="totalUnits")
    brochure_url: Optional[str] = Field(None, alias="brochureUrl")

    model_config = {"populate_by_name": True, "use_enum_values": True}
