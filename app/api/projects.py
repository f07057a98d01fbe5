import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import update
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.models.project import Project
from app.api.deps import get_admin_from_token, parse_id
from app.schemas.project import ProjectCreateRequest, ProjectUpdateRequest
from app.services import inventory

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/projects", tags=["Projects"])


@router.get("")
def list_projects(
    db: Session = Depends(get_db),
    status: str | None = Query(None),
    category: str | None = Query(None),
    search: str | None = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
):
    q = db.query(Project).filter(Project.is_active.is_(True))
    if status:
        q = q.filter(Project.status == status)
    if category:
        q = q.filter(Project.category == category)
    if search:
        s = f"%{search}%"
        q = q.filter((Project.title.ilike(s)) | (Project.location.ilike(s)))
    total = q.count()
    projects = q.order_by(Project.created_at.desc(), Project.id.desc()).offset((page - 1) * limit).limit(limit).all()
    pages = (total + limit - 1) // limit
    return {
        "success": True,
        "data": {
            "projects": [p.to_dict() for p in projects],
            "pagination": {
                "currentPage": page,
                "totalPages": pages,
                "totalProjects": total,
                "hasNextPage": page < pages,
                "hasPrevPage": page > 1,
            },
        },
    }


@router.get("/{project_id}")
def get_project(project_id: str, db: Session = Depends(get_db)):
    pid = parse_id(project_id, "P", "Project")
    project = db.query(Project).filter(Project.id == pid, Project.is_active.is_(True)).first()
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    db.execute(
        update(Project)
        .where(Project.id == pid)
        .values(view_count=Project.view_count + 1, updated_at=Project.updated_at)
        .execution_options(synchronize_session=False)
    )
    db.commit()
    db.refresh(project)
    return {"success": True, "data": {"project": project.to_dict()}}


@router.post("", status_code=201)
def create_project(
    data: ProjectCreateRequest,
    db: Session = Depends(get_db),
    admin=Depends(get_admin_from_token),
):
    project = Project(**data.model_dump(), available_units=0)
    db.add(project)
    db.commit()
    db.refresh(project)
    logger.info("Project P%s created by admin %s", project.id, admin.id)
    return {"success": True, "message": "Project created successfully", "data": {"project": project.to_dict()}}


@router.put("/{project_id}")
def update_project(
    project_id: str,
    data: ProjectUpdateRequest,
    db: Session = Depends(get_db),
    admin=Depends(get_admin_from_token),
):
    pid = parse_id(project_id, "P", "Project")
    project = db.query(Project).filter(Project.id == pid).first()
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    for key, value in data.model_dump(exclude_none=True).items():
        setattr(project, key, value)
    db.commit()
    db.refresh(project)
    return {"success": True, "message": "Project updated successfully", "data": {"project": project.to_dict()}}


@router.delete("/{project_id}")
def delete_project(
    project_id: str,
    db: Session = Depends(get_db),
    admin=Depends(get_admin_from_token),
):
    pid = parse_id(project_id, "P", "Project")
    inventory.deactivate_project(db, pid)
    return {"success": True, "message": "Project deleted successfully"}


@router.post("/{project_id}/recompute")
def recompute_availability(
    project_id: str,
    db: Session = Depends(get_db),
    admin=Depends(get_admin_from_token),
):
    pid = parse_id(project_id, "P", "Project")
    count = inventory.recompute_project_availability(db, pid)
    db.commit()
    return {"success": True, "data": {"availableUnits": count}}
