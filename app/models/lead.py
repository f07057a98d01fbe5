"""
Lead model

Inquiries captured from the public site (contact form, brochure downloads) and
worked by admins. One active lead per (mobile, project); contact history and
notes are append-only child rows.
"""
import enum
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Numeric, Text, Boolean, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.db.session import Base


class LeadSource(str, enum.Enum):
    WEBSITE = "website"
    PHONE = "phone"
    EMAIL = "email"
    SOCIAL_MEDIA = "social_media"
    REFERRAL = "referral"
    ADVERTISEMENT = "advertisement"
    WALK_IN = "walk_in"
    OTHER = "other"


class LeadType(str, enum.Enum):
    BROCHURE_DOWNLOAD = "brochure_download"
    CONTACT_INQUIRY = "contact_inquiry"
    SITE_VISIT = "site_visit"
    CALLBACK_REQUEST = "callback_request"
    EMI_CALCULATOR = "emi_calculator"
    OTHER = "other"


class LeadStatus(str, enum.Enum):
    """new -> contacted -> qualified -> interested | not_interested -> converted | lost"""
    NEW = "new"
    CONTACTED = "contacted"
    QUALIFIED = "qualified"
    INTERESTED = "interested"
    NOT_INTERESTED = "not_interested"
    CONVERTED = "converted"
    LOST = "lost"


class LeadPriority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class ContactMethod(str, enum.Enum):
    PHONE = "phone"
    EMAIL = "email"
    SMS = "sms"
    WHATSAPP = "whatsapp"
    MEETING = "meeting"
    SITE_VISIT = "site_visit"
    WEBSITE = "website"
    SYSTEM = "system"


class ContactOutcome(str, enum.Enum):
    SUCCESSFUL = "successful"
    NO_RESPONSE = "no_response"
    CALLBACK_REQUESTED = "callback_requested"
    NOT_INTERESTED = "not_interested"
    FOLLOW_UP_NEEDED = "follow_up_needed"


# Statuses that drop a lead out of the follow-up queue.
CLOSED_STATUSES = (LeadStatus.CONVERTED.value, LeadStatus.LOST.value, LeadStatus.NOT_INTERESTED.value)
QUALIFYING_STATUSES = (LeadStatus.INTERESTED.value, LeadStatus.CONVERTED.value)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


class Lead(Base):
    __tablename__ = "leads"
    __table_args__ = (
        Index("ix_leads_mobile_project_active", "mobile", "project_id", "is_active"),
        Index("ix_leads_project_status", "project_id", "status"),
    )

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), nullable=True)
    mobile = Column(String(10), nullable=False, index=True)
    email = Column(String(255), nullable=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False)
    apartment_id = Column(Integer, ForeignKey("apartments.id"), nullable=True)

    source = Column(String(30), default=LeadSource.WEBSITE.value)
    lead_type = Column(String(30), default=LeadType.BROCHURE_DOWNLOAD.value)
    status = Column(String(30), default=LeadStatus.NEW.value, index=True)
    priority = Column(String(20), default=LeadPriority.MEDIUM.value)

    budget_min = Column(Numeric(15, 2), nullable=True)
    budget_max = Column(Numeric(15, 2), nullable=True)
    requirements = Column(Text, nullable=True)

    follow_up_date = Column(DateTime(timezone=True), nullable=True, index=True)
    last_contacted_at = Column(DateTime(timezone=True), nullable=True)
    assigned_to = Column(Integer, ForeignKey("admins.id"), nullable=True)

    utm_source = Column(String(100), nullable=True)
    utm_medium = Column(String(100), nullable=True)
    utm_campaign = Column(String(100), nullable=True)

    # Request metadata, stored as received
    ip_address = Column(String(64), nullable=True)
    user_agent = Column(String(500), nullable=True)
    referrer = Column(String(500), nullable=True)

    is_active = Column(Boolean, default=True)
    is_qualified = Column(Boolean, default=False)
    conversion_date = Column(DateTime(timezone=True), nullable=True)
    conversion_value = Column(Numeric(15, 2), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    project = relationship("Project")
    apartment = relationship("Apartment")
    contact_history = relationship(
        "LeadContact", back_populates="lead", order_by="LeadContact.id", cascade="all, delete-orphan"
    )
    notes = relationship(
        "LeadNote", back_populates="lead", order_by="LeadNote.id", cascade="all, delete-orphan"
    )

    def add_contact(self, method: str, notes: str | None = None, outcome: str | None = None,
                    contacted_by: int | None = None, date: datetime | None = None) -> "LeadContact":
        """Append a contact-history entry and move last_contacted_at to it."""
        entry = LeadContact(
            date=date or utcnow(),
            method=method,
            notes=notes,
            outcome=outcome,
            contacted_by=contacted_by,
        )
        self.contact_history.append(entry)
        self.last_contacted_at = entry.date
        return entry

    def add_note(self, content: str, added_by: int, is_important: bool = False) -> "LeadNote":
        note = LeadNote(content=content, added_by=added_by, added_at=utcnow(), is_important=is_important)
        self.notes.append(note)
        return note

    def to_dict(self, detail: bool = False) -> dict:
        out = {
            "id": f"L{self.id}",
            "name": self.name or "",
            "mobile": self.mobile,
            "email": self.email or "",
            "projectId": f"P{self.project_id}",
            "projectTitle": self.project.title if self.project else "",
            "apartmentId": f"U{self.apartment_id}" if self.apartment_id else None,
            "source": self.source,
            "leadType": self.lead_type,
            "status": self.status,
            "priority": self.priority,
            "isQualified": bool(self.is_qualified),
            "conversionDate": _iso(self.conversion_date),
            "followUpDate": _iso(self.follow_up_date),
            "lastContactedAt": _iso(self.last_contacted_at),
            "assignedTo": self.assigned_to,
            "createdAt": _iso(self.created_at),
        }
        if detail:
            out["contactHistory"] = [c.to_dict() for c in self.contact_history]
            out["notes"] = [n.to_dict() for n in self.notes]
            out["budget"] = {
                "min": float(self.budget_min) if self.budget_min is not None else None,
                "max": float(self.budget_max) if self.budget_max is not None else None,
            }
            out["requirements"] = self.requirements or ""
        return out


class LeadContact(Base):
    """Contact history row. Rows are only ever inserted."""
    __tablename__ = "lead_contacts"

    id = Column(Integer, primary_key=True, index=True)
    lead_id = Column(Integer, ForeignKey("leads.id"), nullable=False, index=True)
    date = Column(DateTime(timezone=True), nullable=False)
    method = Column(String(20), nullable=False)  # ContactMethod
    notes = Column(Text, nullable=True)
    contacted_by = Column(Integer, ForeignKey("admins.id"), nullable=True)
    outcome = Column(String(30), nullable=True)  # ContactOutcome

    lead = relationship("Lead", back_populates="contact_history")

    def to_dict(self) -> dict:
        return {
            "date": _iso(self.date),
            "method": self.method,
            "notes": self.notes or "",
            "contactedBy": self.contacted_by,
            "outcome": self.outcome,
        }


class LeadNote(Base):
    """Admin note on a lead. Rows are only ever inserted."""
    __tablename__ = "lead_notes"

    id = Column(Integer, primary_key=True, index=True)
    lead_id = Column(Integer, ForeignKey("leads.id"), nullable=False, index=True)
    content = Column(String(1000), nullable=False)
    added_by = Column(Integer, ForeignKey("admins.id"), nullable=False)
    added_at = Column(DateTime(timezone=True), nullable=False)
    is_important = Column(Boolean, default=False)

    lead = relationship("Lead", back_populates="notes")

    def to_dict(self) -> dict:
        return {
            "content": self.content,
            "addedBy": self.added_by,
            "addedAt": _iso(self.added_at),
            "isImportant": bool(self.is_important),
        }
