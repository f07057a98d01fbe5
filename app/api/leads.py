from datetime import datetime

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse, Response
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.api.deps import get_admin_from_token, parse_id
from app.schemas.lead import (
    LeadSubmitRequest,
    BrochureRequest,
    LeadUpdateRequest,
    LeadStatusUpdateRequest,
    ContactHistoryRequest,
    LeadNoteRequest,
    FollowUpRequest,
)
from app.services import leads as lead_service

router = APIRouter(prefix="/api/leads", tags=["Leads"])


def _request_meta(request: Request) -> dict:
    return {
        "ip_address": request.client.host if request.client else None,
        "user_agent": request.headers.get("user-agent"),
        "referrer": request.headers.get("referer"),
    }


def _filters(
    project_id: str | None = Query(None, alias="projectId"),
    status: str | None = Query(None),
    priority: str | None = Query(None),
    source: str | None = Query(None),
    lead_type: str | None = Query(None, alias="leadType"),
    assigned_to: int | None = Query(None, alias="assignedTo"),
    date_from: datetime | None = Query(None, alias="dateFrom"),
    date_to: datetime | None = Query(None, alias="dateTo"),
    search: str | None = Query(None),
) -> dict:
    return {
        "project_id": parse_id(project_id, "P", "Project") if project_id else None,
        "status": status,
        "priority": priority,
        "source": source,
        "lead_type": lead_type,
        "assigned_to": assigned_to,
        "date_from": date_from,
        "date_to": date_to,
        "search": search,
    }


# ---- public ----

@router.post("")
def submit_lead(data: LeadSubmitRequest, request: Request, db: Session = Depends(get_db)):
    values = data.model_dump()
    values["project_id"] = parse_id(data.project_id, "P", "Project")
    if data.apartment_id is not None:
        values["apartment_id"] = parse_id(data.apartment_id, "U", "Apartment")
    lead, created = lead_service.submit_lead(db, values, _request_meta(request))
    if created:
        return JSONResponse(
            status_code=201,
            content={"success": True, "message": "Lead created successfully", "data": {"lead": lead.to_dict()}},
        )
    return {"success": True, "message": "Lead information updated successfully", "data": {"lead": lead.to_dict()}}


@router.post("/brochure-download")
def brochure_download(data: BrochureRequest, request: Request, db: Session = Depends(get_db)):
    values = data.model_dump()
    values["project_id"] = parse_id(data.project_id, "P", "Project")
    result = lead_service.request_brochure(db, values, _request_meta(request))
    return {
        "success": True,
        "message": "Lead captured successfully. Brochure download will start shortly.",
        "data": result,
    }


# ---- admin ----

@router.get("/follow-up")
def follow_up_leads(
    db: Session = Depends(get_db),
    admin=Depends(get_admin_from_token),
    date: datetime | None = Query(None),
):
    leads = lead_service.get_follow_up_leads(db, date)
    return {"success": True, "data": {"leads": [lead.to_dict() for lead in leads], "count": len(leads)}}


@router.get("/stats")
def stats(
    db: Session = Depends(get_db),
    admin=Depends(get_admin_from_token),
    project_id: str | None = Query(None, alias="projectId"),
    date_from: datetime | None = Query(None, alias="dateFrom"),
    date_to: datetime | None = Query(None, alias="dateTo"),
):
    pid = parse_id(project_id, "P", "Project") if project_id else None
    return {"success": True, "data": lead_service.lead_stats(db, pid, date_from, date_to)}


@router.get("/export")
def export_leads(
    db: Session = Depends(get_db),
    admin=Depends(get_admin_from_token),
    filters: dict = Depends(_filters),
    format: str = Query("csv"),
):
    if format == "csv":
        content = lead_service.export_leads_csv(db, filters)
        filename = f"leads-export-{int(datetime.now().timestamp() * 1000)}.csv"
        return Response(
            content=content,
            media_type="text/csv",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )
    leads, total = lead_service.list_leads(db, filters, page=1, limit=100000)
    return {"success": True, "data": {"leads": [lead.to_dict() for lead in leads], "count": total}}


@router.get("")
def list_leads(
    db: Session = Depends(get_db),
    admin=Depends(get_admin_from_token),
    filters: dict = Depends(_filters),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=200),
    sort: str = Query("-createdAt"),
):
    leads, total = lead_service.list_leads(db, filters, page, limit, sort)
    pages = (total + limit - 1) // limit
    return {
        "success": True,
        "data": {
            "leads": [lead.to_dict() for lead in leads],
            "pagination": {
                "currentPage": page,
                "totalPages": pages,
                "totalLeads": total,
                "hasNextPage": page < pages,
                "hasPrevPage": page > 1,
            },
        },
    }


@router.get("/{lead_id}")
def get_lead(lead_id: str, db: Session = Depends(get_db), admin=Depends(get_admin_from_token)):
    lead = lead_service.get_lead(db, parse_id(lead_id, "L", "Lead"))
    return {"success": True, "data": {"lead": lead.to_dict(detail=True)}}


@router.put("/{lead_id}")
def update_lead(
    lead_id: str,
    data: LeadUpdateRequest,
    db: Session = Depends(get_db),
    admin=Depends(get_admin_from_token),
):
    lead = lead_service.update_lead(db, parse_id(lead_id, "L", "Lead"), data.model_dump(exclude_none=True), admin.id)
    return {"success": True, "message": "Lead updated successfully", "data": {"lead": lead.to_dict(detail=True)}}


@router.patch("/{lead_id}/status")
def update_lead_status(
    lead_id: str,
    data: LeadStatusUpdateRequest,
    db: Session = Depends(get_db),
    admin=Depends(get_admin_from_token),
):
    lead = lead_service.update_status(db, parse_id(lead_id, "L", "Lead"), data.status, admin.id)
    return {"success": True, "message": "Lead status updated successfully", "data": {"status": lead.status}}


@router.post("/{lead_id}/contact")
def add_contact(
    lead_id: str,
    data: ContactHistoryRequest,
    db: Session = Depends(get_db),
    admin=Depends(get_admin_from_token),
):
    lead_service.add_contact_history(
        db, parse_id(lead_id, "L", "Lead"), data.method, data.notes, data.outcome, admin.id
    )
    return {"success": True, "message": "Contact history added successfully"}


@router.post("/{lead_id}/notes")
def add_note(
    lead_id: str,
    data: LeadNoteRequest,
    db: Session = Depends(get_db),
    admin=Depends(get_admin_from_token),
):
    lead_service.add_note(db, parse_id(lead_id, "L", "Lead"), data.content, admin.id, data.is_important)
    return {"success": True, "message": "Note added successfully"}


@router.patch("/{lead_id}/follow-up")
def schedule_follow_up(
    lead_id: str,
    data: FollowUpRequest,
    db: Session = Depends(get_db),
    admin=Depends(get_admin_from_token),
):
    lead = lead_service.schedule_follow_up(
        db, parse_id(lead_id, "L", "Lead"), data.follow_up_date, data.notes, admin.id
    )
    return {
        "success": True,
        "message": "Follow-up scheduled successfully",
        "data": {"followUpDate": lead.follow_up_date.isoformat() if lead.follow_up_date else None},
    }
