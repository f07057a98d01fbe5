"""Seed the admin user and a sample project with a couple of apartment types."""
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.db.session import SessionLocal, engine, Base
from app.models import Admin, Project
from app.core.config import ADMIN_EMAIL, ADMIN_PASSWORD
from app.core.security import hash_password
from app.services import inventory

Base.metadata.create_all(bind=engine)
db = SessionLocal()

if not db.query(Admin).first():
    admin = Admin(email=ADMIN_EMAIL.lower(), password_hash=hash_password(ADMIN_PASSWORD), name="Admin")
    db.add(admin)
    db.commit()
    print(f"Created admin: {ADMIN_EMAIL}")

if not db.query(Project).first():
    project = Project(
        title="Skyline Residency",
        location="Baner, Pune",
        status="ongoing",
        category="residential",
        total_units=60,
        brochure_url="https://example.com/brochures/skyline-residency.pdf",
    )
    db.add(project)
    db.commit()
    admin_id = db.query(Admin.id).scalar()
    for apt_type, beds, area, price, units in (
        ("2BHK", 2, 950, 7500000, 40),
        ("3BHK", 3, 1350, 10500000, 20),
    ):
        inventory.create_apartment(
            db,
            {
                "project_id": project.id,
                "type": apt_type,
                "bedrooms": beds,
                "bathrooms": beds,
                "area_built_up": area,
                "price_base": price,
                "total_units": units,
            },
            created_by=admin_id,
        )
    print(f"Created sample project P{project.id} with 2 apartment types")

db.close()
print("Init complete.")
