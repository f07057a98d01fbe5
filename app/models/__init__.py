from app.models.admin import Admin
from app.models.project import Project
from app.models.apartment import Apartment
from app.models.lead import Lead, LeadContact, LeadNote

__all__ = ["Admin", "Project", "Apartment", "Lead", "LeadContact", "LeadNote"]
