from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Optional, Union

from app.models.lead import LeadSource, LeadType, LeadStatus, LeadPriority, ContactMethod, ContactOutcome

MOBILE_PATTERN = r"^[6-9]\d{9}$"
EMAIL_PATTERN = r"^\w+([.-]?\w+)*@\w+([.-]?\w+)*(\.\w{2,3})+$"


class LeadSubmitRequest(BaseModel):
    """Public contact / brochure form. Frontend sends camelCase."""
    mobile: str = Field(..., pattern=MOBILE_PATTERN)
    project_id: Union[int, str] = Field(..., alias="projectId")
    apartment_id: Optional[Union[int, str]] = Field(None, alias="apartmentId")
    name: Optional[str] = Field(None, max_length=50)
    email: Optional[str] = Field(None, pattern=EMAIL_PATTERN)
    lead_type: Optional[LeadType] = Field(None, alias="leadType")
    source: Optional[LeadSource] = None
    budget_min: Optional[float] = Field(None, ge=0, alias="budgetMin")
    budget_max: Optional[float] = Field(None, ge=0, alias="budgetMax")
    requirements: Optional[str] = None
    utm_source: Optional[str] = Field(None, alias="utmSource")
    utm_medium: Optional[str] = Field(None, alias="utmMedium")
    utm_campaign: Optional[str] = Field(None, alias="utmCampaign")

    model_config = {"populate_by_name": True, "use_enum_values": True}

    @field_validator("name")
    @classmethod
    def _strip_name(cls, v):
        if v is None:
            return None
        return v.strip() or None

    @field_validator("email", mode="before")
    @classmethod
    def _lower_email(cls, v):
        if isinstance(v, str):
            return v.strip().lower() or None
        return v


class BrochureRequest(BaseModel):
    mobile: str = Field(..., pattern=MOBILE_PATTERN)
    project_id: Union[int, str] = Field(..., alias="projectId")
    name: Optional[str] = Field(None, max_length=50)
    email: Optional[str] = Field(None, pattern=EMAIL_PATTERN)

    model_config = {"populate_by_name": True}

    @field_validator("email", mode="before")
    @classmethod
    def _lower_email(cls, v):
        if isinstance(v, str):
            return v.strip().lower() or None
        return v


class LeadUpdateRequest(BaseModel):
    name: Optional[str] = Field(None, max_length=50)
    email: Optional[str] = Field(None, pattern=EMAIL_PATTERN)
    status: Optional[LeadStatus] = None
    priority: Optional[LeadPriority] = None
    source: Optional[LeadSource] = None
    lead_type: Optional[LeadType] = Field(None, alias="leadType")
    assigned_to: Optional[int] = Field(None, alias="assignedTo")
    budget_min: Optional[float] = Field(None, ge=0, alias="budgetMin")
    budget_max: Optional[float] = Field(None, ge=0, alias="budgetMax")
    requirements: Optional[str] = None
    conversion_value: Optional[float] = Field(None, ge=0, alias="conversionValue")
    is_active: Optional[bool] = Field(None, alias="isActive")

    model_config = {"populate_by_name": True, "use_enum_values": True}


class LeadStatusUpdateRequest(BaseModel):
    status: LeadStatus

    model_config = {"use_enum_values": True}


class ContactHistoryRequest(BaseModel):
    method: ContactMethod
    notes: Optional[str] = None
    outcome: Optional[ContactOutcome] = None

    model_config = {"use_enum_values": True}


class LeadNoteRequest(BaseModel):
    content: str = Field(..., min_length=1, max_length=1000)
    is_important: bool = Field(False, alias="isImportant")

    model_config = {"populate_by_name": True}


class FollowUpRequest(BaseModel):
    follow_up_date: datetime = Field(..., alias="followUpDate")
    notes: Optional[str] = None

    model_config = {"populate_by_name": True}
