"""
Lead deduplication and status machine.

Public submissions are merged into the active lead for the same
(mobile, project) instead of creating a second row. Status changes, contacts
and notes are recorded in the lead's append-only logs.
"""
import csv
import io
import logging
from datetime import datetime, timezone

from sqlalchemy import update, func, or_
from sqlalchemy.orm import Session

from app.models.lead import (
    Lead,
    LeadStatus,
    LeadType,
    ContactMethod,
    ContactOutcome,
    CLOSED_STATUSES,
    QUALIFYING_STATUSES,
    utcnow,
)
from app.models.project import Project
from app.services.errors import NotFound, ProjectNotFound, ValidationError, commit

logger = logging.getLogger(__name__)

# Fields a public submission may set on a new lead.
_SUBMIT_FIELDS = (
    "name", "mobile", "email", "project_id", "apartment_id", "source", "lead_type",
    "budget_min", "budget_max", "requirements", "utm_source", "utm_medium", "utm_campaign",
)
_META_FIELDS = ("ip_address", "user_agent", "referrer")
_READ_ONLY = {"id", "contact_history", "notes", "created_at", "updated_at", "last_contacted_at"}

_SORTS = {
    "createdAt": Lead.created_at.asc(),
    "-createdAt": Lead.created_at.desc(),
    "followUpDate": Lead.follow_up_date.asc(),
    "-followUpDate": Lead.follow_up_date.desc(),
    "lastContactedAt": Lead.last_contacted_at.asc(),
    "-lastContactedAt": Lead.last_contacted_at.desc(),
    "name": Lead.name.asc(),
}


def _as_utc(value: datetime) -> datetime:
    return value.astimezone(timezone.utc) if value.tzinfo else value.replace(tzinfo=timezone.utc)


def get_lead(db: Session, lead_id: int) -> Lead:
    lead = db.get(Lead, lead_id)
    if not lead:
        raise NotFound("Lead not found")
    return lead


def find_active_lead(db: Session, mobile: str, project_id: int) -> Lead | None:
    return (
        db.query(Lead)
        .filter(Lead.mobile == mobile, Lead.project_id == project_id, Lead.is_active.is_(True))
        .order_by(Lead.id)
        .first()
    )


def _upsert(db: Session, data: dict, meta: dict | None, merge_note: str) -> tuple[Lead, bool]:
    existing = find_active_lead(db, data["mobile"], data["project_id"])
    if existing:
        # fill gaps only; a populated name/email is never overwritten
        if data.get("email") and not existing.email:
            existing.email = data["email"]
        if data.get("name") and not existing.name:
            existing.name = data["name"]
        if data.get("lead_type"):
            existing.lead_type = data["lead_type"]
        existing.add_contact(
            method=ContactMethod.WEBSITE.value,
            notes=merge_note,
            outcome=ContactOutcome.SUCCESSFUL.value,
        )
        commit(db)
        db.refresh(existing)
        logger.info("Merged submission into lead L%s (project P%s)", existing.id, existing.project_id)
        return existing, False

    values = {k: data[k] for k in _SUBMIT_FIELDS if data.get(k) is not None}
    for k in _META_FIELDS:
        if meta and meta.get(k):
            values[k] = meta[k]
    lead = Lead(**values)
    db.add(lead)
    db.execute(
        update(Project)
        .where(Project.id == data["project_id"])
        .values(lead_count=func.coalesce(Project.lead_count, 0) + 1, updated_at=Project.updated_at)
        .execution_options(synchronize_session=False)
    )
    commit(db)
    db.refresh(lead)
    logger.info("Created lead L%s for project P%s", lead.id, lead.project_id)
    return lead, True


def submit_lead(db: Session, data: dict, meta: dict | None = None) -> tuple[Lead, bool]:
    """Find-or-merge a public submission. Returns (lead, created)."""
    project = db.get(Project, data.get("project_id"))
    if not project:
        raise ProjectNotFound(data.get("project_id"))
    note = f"Duplicate lead submission - {data.get('lead_type') or 'general inquiry'}"
    return _upsert(db, data, meta, note)


def request_brochure(db: Session, data: dict, meta: dict | None = None) -> dict:
    """Brochure download funnel: capture the lead, hand back the brochure URL."""
    project = db.get(Project, data.get("project_id"))
    if not project:
        raise ProjectNotFound(data.get("project_id"))
    if not project.brochure_url:
        raise NotFound("Brochure not available for this project")
    data = {**data, "lead_type": LeadType.BROCHURE_DOWNLOAD.value, "source": "website"}
    lead, _ = _upsert(db, data, meta, "Brochure download request")
    return {
        "brochureUrl": project.brochure_url,
        "projectTitle": project.title,
        "leadId": f"L{lead.id}",
    }


def update_status(db: Session, lead_id: int, new_status: str, actor_id: int | None) -> Lead:
    """Move a lead to `new_status`, logging the transition.

    converted stamps conversion_date once; interested/converted set
    is_qualified, which is never cleared afterwards.
    """
    try:
        new_status = LeadStatus(new_status).value
    except ValueError:
        raise ValidationError(f"Invalid status: {new_status}")
    lead = get_lead(db, lead_id)
    old_status = lead.status
    lead.status = new_status
    lead.add_contact(
        method=ContactMethod.SYSTEM.value,
        notes=f"Status changed from {old_status} to {new_status}",
        outcome=ContactOutcome.SUCCESSFUL.value,
        contacted_by=actor_id,
    )
    if new_status == LeadStatus.CONVERTED.value and not lead.conversion_date:
        lead.conversion_date = utcnow()
    if new_status in QUALIFYING_STATUSES:
        lead.is_qualified = True
    commit(db)
    db.refresh(lead)
    logger.info("Lead L%s status %s -> %s by admin %s", lead.id, old_status, new_status, actor_id)
    return lead


def add_contact_history(db: Session, lead_id: int, method: str, notes: str | None = None,
                        outcome: str | None = None, actor_id: int | None = None) -> Lead:
    try:
        method = ContactMethod(method).value
        outcome = ContactOutcome(outcome).value if outcome else None
    except ValueError as e:
        raise ValidationError(str(e))
    lead = get_lead(db, lead_id)
    lead.add_contact(method=method, notes=notes, outcome=outcome, contacted_by=actor_id)
    commit(db)
    db.refresh(lead)
    return lead


def add_note(db: Session, lead_id: int, content: str, actor_id: int, is_important: bool = False) -> Lead:
    if not content or not content.strip():
        raise ValidationError("Note content is required")
    if len(content) > 1000:
        raise ValidationError("Note cannot exceed 1000 characters")
    lead = get_lead(db, lead_id)
    lead.add_note(content=content, added_by=actor_id, is_important=is_important)
    commit(db)
    db.refresh(lead)
    return lead


def schedule_follow_up(db: Session, lead_id: int, follow_up_date: datetime, notes: str | None,
                       actor_id: int | None) -> Lead:
    """Set the follow-up date; non-empty notes are kept as a lead note. Status is left alone."""
    lead = get_lead(db, lead_id)
    follow_up_date = _as_utc(follow_up_date)
    lead.follow_up_date = follow_up_date
    if notes:
        lead.add_note(
            content=f"Follow-up scheduled for {follow_up_date.strftime('%a %b %d %Y')}: {notes}",
            added_by=actor_id,
        )
    commit(db)
    db.refresh(lead)
    return lead


def get_follow_up_leads(db: Session, as_of: datetime | None = None) -> list[Lead]:
    as_of = _as_utc(as_of) if as_of else utcnow()
    return (
        db.query(Lead)
        .filter(
            Lead.is_active.is_(True),
            Lead.follow_up_date.isnot(None),
            Lead.follow_up_date <= as_of,
            Lead.status.notin_(CLOSED_STATUSES),
        )
        .order_by(Lead.follow_up_date.asc())
        .all()
    )


def update_lead(db: Session, lead_id: int, changes: dict, actor_id: int | None = None) -> Lead:
    """Admin edit. Audit logs are never touched; a status change goes through update_status."""
    lead = get_lead(db, lead_id)
    new_status = changes.pop("status", None)
    if changes.get("is_active") and not lead.is_active:
        active = find_active_lead(db, lead.mobile, lead.project_id)
        if active:
            raise ValidationError(f"Lead L{active.id} is already active for this mobile and project")
    for key, value in changes.items():
        if key in _READ_ONLY or value is None:
            continue
        setattr(lead, key, value)
    commit(db)
    if new_status and new_status != lead.status:
        return update_status(db, lead_id, new_status, actor_id)
    db.refresh(lead)
    return lead


def _filtered(db: Session, filters: dict):
    q = db.query(Lead).filter(Lead.is_active.is_(True))
    if filters.get("project_id"):
        q = q.filter(Lead.project_id == filters["project_id"])
    for key, column in (
        ("status", Lead.status),
        ("priority", Lead.priority),
        ("source", Lead.source),
        ("lead_type", Lead.lead_type),
        ("assigned_to", Lead.assigned_to),
    ):
        if filters.get(key):
            q = q.filter(column == filters[key])
    if filters.get("date_from"):
        q = q.filter(Lead.created_at >= filters["date_from"])
    if filters.get("date_to"):
        q = q.filter(Lead.created_at <= filters["date_to"])
    if filters.get("search"):
        s = f"%{filters['search']}%"
        q = q.filter(or_(Lead.name.ilike(s), Lead.mobile.ilike(s), Lead.email.ilike(s)))
    return q


def list_leads(db: Session, filters: dict, page: int = 1, limit: int = 20,
               sort: str = "-createdAt") -> tuple[list[Lead], int]:
    q = _filtered(db, filters)
    total = q.count()
    order = _SORTS.get(sort, Lead.created_at.desc())
    leads = q.order_by(order, Lead.id.desc()).offset((page - 1) * limit).limit(limit).all()
    return leads, total


def lead_stats(db: Session, project_id: int | None = None, date_from: datetime | None = None,
               date_to: datetime | None = None) -> dict:
    q = db.query(Lead.status, Lead.created_at, Lead.last_contacted_at).filter(Lead.is_active.is_(True))
    if project_id:
        q = q.filter(Lead.project_id == project_id)
    if date_from:
        q = q.filter(Lead.created_at >= date_from)
    if date_to:
        q = q.filter(Lead.created_at <= date_to)

    breakdown: dict[str, dict] = {}
    for status, created_at, contacted_at in q.all():
        row = breakdown.setdefault(status, {"_id": status, "count": 0, "_waits": []})
        row["count"] += 1
        if created_at and contacted_at:
            wait = (_as_utc(contacted_at) - _as_utc(created_at)).total_seconds() * 1000
            row["_waits"].append(wait)
    status_breakdown = []
    for row in breakdown.values():
        waits = row.pop("_waits")
        row["avgResponseTime"] = sum(waits) / len(waits) if waits else None
        status_breakdown.append(row)

    active = db.query(Lead).filter(Lead.is_active.is_(True))
    total = active.count()
    qualified = active.filter(Lead.is_qualified.is_(True)).count()
    converted = active.filter(Lead.status == LeadStatus.CONVERTED.value).count()

    def _group(column):
        rows = (
            db.query(column, func.count(Lead.id))
            .filter(Lead.is_active.is_(True))
            .group_by(column)
            .all()
        )
        return [{"_id": key, "count": count} for key, count in rows]

    return {
        "statusBreakdown": status_breakdown,
        "overview": {
            "totalLeads": total,
            "qualifiedLeads": qualified,
            "convertedLeads": converted,
            "conversionRate": f"{converted / total * 100:.2f}" if total else "0.00",
        },
        "sourceBreakdown": _group(Lead.source),
        "typeBreakdown": _group(Lead.lead_type),
    }


CSV_HEADERS = [
    "Name", "Mobile", "Email", "Project", "Status", "Priority",
    "Source", "Lead Type", "Assigned To", "Created Date", "Last Contacted",
]


def export_leads_csv(db: Session, filters: dict) -> str:
    leads = _filtered(db, filters).order_by(Lead.created_at.desc(), Lead.id.desc()).all()
    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for lead in leads:
        writer.writerow([
            lead.name or "",
            lead.mobile,
            lead.email or "",
            lead.project.title if lead.project else "",
            lead.status,
            lead.priority,
            lead.source,
            lead.lead_type,
            lead.assigned_to or "",
            lead.created_at.strftime("%Y-%m-%d") if lead.created_at else "",
            lead.last_contacted_at.strftime("%Y-%m-%d") if lead.last_contacted_at else "",
        ])
    return buf.getvalue()
