"""
HTTP surface tests: auth, inventory endpoints, lead capture and admin lead endpoints.

Run with: pytest tests/test_api.py -v
"""
from app.models import Apartment, Lead, Project

ADMIN_PASSWORD = "testpass123"


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "OK"}
    assert response.headers["X-Robots-Tag"] == "noindex, nofollow"


class TestAuth:
    def test_login_and_me(self, client, admin):
        response = client.post("/api/auth/admin/login", json={"email": "Admin@Test.local", "password": ADMIN_PASSWORD})
        assert response.status_code == 200
        token = response.json()["token"]

        me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert me.status_code == 200
        assert me.json()["user"]["email"] == "admin@test.local"

    def test_wrong_password(self, client, admin):
        response = client.post("/api/auth/admin/login", json={"email": admin.email, "password": "nope"})
        assert response.status_code == 401

    def test_admin_routes_need_token(self, client, apartment):
        assert client.patch(f"/api/apartments/U{apartment.id}/book", json={"quantity": 1}).status_code == 401
        assert client.get("/api/leads").status_code == 401

    def test_garbage_token(self, client):
        response = client.get("/api/leads/stats", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401

    def test_disabled_admin(self, client, db, admin, auth_headers):
        admin.is_active = False
        db.commit()
        assert client.get("/api/auth/me", headers=auth_headers).status_code == 403


class TestInventoryEndpoints:
    def test_book_then_release(self, client, db, apartment, auth_headers):
        response = client.patch(f"/api/apartments/U{apartment.id}/book", json={"quantity": 4}, headers=auth_headers)
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"] == {"availableUnits": 6, "soldUnits": 4, "isAvailable": True}

        response = client.patch(f"/api/apartments/{apartment.id}/release", json={"quantity": 3}, headers=auth_headers)
        assert response.json()["data"] == {"availableUnits": 9, "soldUnits": 1, "isAvailable": True}

    def test_book_without_body_books_one(self, client, apartment, auth_headers):
        response = client.patch(f"/api/apartments/U{apartment.id}/book", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["data"]["soldUnits"] == 1

    def test_overbooking_is_conflict(self, client, db, apartment, auth_headers):
        response = client.patch(f"/api/apartments/U{apartment.id}/book", json={"quantity": 11}, headers=auth_headers)
        assert response.status_code == 409
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "InsufficientInventory"
        assert "short by 1" in body["message"]

        db.expire_all()
        apt = db.get(Apartment, apartment.id)
        assert (apt.available_units, apt.sold_units) == (10, 0)

    def test_over_release_is_conflict(self, client, apartment, auth_headers):
        response = client.patch(f"/api/apartments/U{apartment.id}/release", json={"quantity": 1}, headers=auth_headers)
        assert response.status_code == 409
        assert response.json()["error"] == "OverRelease"

    def test_zero_quantity_rejected(self, client, apartment, auth_headers):
        response = client.patch(f"/api/apartments/U{apartment.id}/book", json={"quantity": 0}, headers=auth_headers)
        assert response.status_code == 422

    def test_unknown_unit(self, client, auth_headers):
        response = client.patch("/api/apartments/U999/book", json={"quantity": 1}, headers=auth_headers)
        assert response.status_code == 404

    def test_create_apartment(self, client, db, project, auth_headers):
        payload = {
            "projectId": f"P{project.id}",
            "type": "3BHK",
            "bedrooms": 3,
            "bathrooms": 2,
            "area": {"builtUp": 1400},
            "price": {"base": 9800000},
            "availability": {"totalUnits": 12},
        }
        response = client.post("/api/apartments", json=payload, headers=auth_headers)
        assert response.status_code == 201
        apartment = response.json()["data"]["apartment"]
        assert apartment["availability"] == {
            "totalUnits": 12, "availableUnits": 12, "soldUnits": 0, "isAvailable": True,
        }
        assert apartment["price"]["perSqFt"] == 7000

        db.expire_all()
        assert db.get(Project, project.id).available_units == 1

    def test_partial_edit_keeps_other_counters(self, client, apartment, auth_headers):
        response = client.put(f"/api/apartments/U{apartment.id}", json={"availability": {"availableUnits": 5}},
                              headers=auth_headers)
        assert response.status_code == 200
        availability = response.json()["data"]["apartment"]["availability"]
        assert availability["totalUnits"] == 10
        assert availability["availableUnits"] == 5

    def test_sold_out_drops_from_project_rollup(self, client, db, project, make_apartment, auth_headers):
        a = make_apartment(total_units=2)
        make_apartment(total_units=2, apt_type="3BHK")
        client.patch(f"/api/apartments/U{a.id}/book", json={"quantity": 2}, headers=auth_headers)

        response = client.get(f"/api/projects/P{project.id}")
        assert response.json()["data"]["project"]["availableUnits"] == 1

    def test_types_summary(self, client, project, make_apartment):
        make_apartment(apt_type="2BHK")
        make_apartment(apt_type="3BHK", price=8000000)
        response = client.get(f"/api/apartments/project/P{project.id}/types")
        assert [t["type"] for t in response.json()["data"]["types"]] == ["2BHK", "3BHK"]


class TestProjectEndpoints:
    def test_detail_counts_views(self, client, db, project):
        client.get(f"/api/projects/P{project.id}")
        response = client.get(f"/api/projects/{project.id}")
        assert response.json()["data"]["project"]["viewCount"] == 2

    def test_create_and_update(self, client, auth_headers):
        response = client.post("/api/projects", json={
            "title": "Sunrise Towers", "location": "Kharadi, Pune", "status": "ongoing",
        }, headers=auth_headers)
        assert response.status_code == 201
        created = response.json()["data"]["project"]
        assert created["slug"] == "sunrise-towers"
        assert created["availableUnits"] == 0

        response = client.put(f"/api/projects/{created['id']}", json={"brochureUrl": "https://cdn.example.com/s.pdf"},
                              headers=auth_headers)
        assert response.json()["data"]["project"]["brochureUrl"] == "https://cdn.example.com/s.pdf"

        listing = client.get("/api/projects", params={"search": "sunrise"}).json()["data"]
        assert listing["pagination"]["totalProjects"] == 1

    def test_bad_id(self, client):
        assert client.get("/api/projects/Pabc").status_code == 404

    def test_delete_cascades(self, client, db, project, apartment, auth_headers):
        response = client.delete(f"/api/projects/P{project.id}", headers=auth_headers)
        assert response.status_code == 200

        db.expire_all()
        assert db.get(Apartment, apartment.id).is_active is False
        assert client.get(f"/api/projects/P{project.id}").status_code == 404
        assert client.get(f"/api/apartments/U{apartment.id}").status_code == 404

    def test_recompute(self, client, project, make_apartment, auth_headers):
        make_apartment()
        make_apartment(apt_type="3BHK")
        response = client.post(f"/api/projects/P{project.id}/recompute", headers=auth_headers)
        assert response.json()["data"] == {"availableUnits": 2}

    def test_recompute_unknown_project(self, client, auth_headers):
        response = client.post("/api/projects/P404/recompute", headers=auth_headers)
        assert response.status_code == 404
        assert response.json()["error"] == "ProjectNotFound"


class TestLeadCapture:
    def test_submit_then_merge(self, client, db, project):
        payload = {"mobile": "9876543210", "projectId": f"P{project.id}", "name": "Asha"}
        response = client.post("/api/leads", json=payload)
        assert response.status_code == 201
        lead_id = response.json()["data"]["lead"]["id"]

        response = client.post("/api/leads", json={
            "mobile": "9876543210", "projectId": f"P{project.id}", "email": "A@X.com", "name": "Different",
        })
        assert response.status_code == 200
        lead = response.json()["data"]["lead"]
        assert lead["id"] == lead_id
        assert lead["name"] == "Asha"
        assert lead["email"] == "a@x.com"
        assert db.query(Lead).count() == 1

    def test_invalid_mobile(self, client, project):
        response = client.post("/api/leads", json={"mobile": "12345", "projectId": f"P{project.id}"})
        assert response.status_code == 422

    def test_unknown_project(self, client, db):
        response = client.post("/api/leads", json={"mobile": "9876543210", "projectId": "P999"})
        assert response.status_code == 404
        assert response.json()["error"] == "ProjectNotFound"
        assert db.query(Lead).count() == 0

    def test_brochure_download(self, client, project):
        response = client.post("/api/leads/brochure-download", json={
            "mobile": "9876543210", "projectId": f"P{project.id}", "name": "Asha",
        })
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["brochureUrl"] == project.brochure_url
        assert data["leadId"].startswith("L")


class TestLeadAdmin:
    def _lead(self, client, project, mobile="9876543210"):
        response = client.post("/api/leads", json={"mobile": mobile, "projectId": f"P{project.id}"})
        return response.json()["data"]["lead"]["id"]

    def test_status_change(self, client, project, auth_headers):
        lead_id = self._lead(client, project)
        response = client.patch(f"/api/leads/{lead_id}/status", json={"status": "converted"}, headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "converted"

        detail = client.get(f"/api/leads/{lead_id}", headers=auth_headers).json()["data"]["lead"]
        assert detail["conversionDate"] is not None
        assert detail["isQualified"] is True
        assert detail["contactHistory"][-1]["notes"] == "Status changed from new to converted"

    def test_reactivation_conflict(self, client, project, auth_headers):
        old_id = self._lead(client, project)
        client.put(f"/api/leads/{old_id}", json={"isActive": False}, headers=auth_headers)
        self._lead(client, project)

        response = client.put(f"/api/leads/{old_id}", json={"isActive": True}, headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["error"] == "ValidationError"

    def test_invalid_status(self, client, project, auth_headers):
        lead_id = self._lead(client, project)
        response = client.patch(f"/api/leads/{lead_id}/status", json={"status": "archived"}, headers=auth_headers)
        assert response.status_code == 422

    def test_contact_and_notes(self, client, project, auth_headers):
        lead_id = self._lead(client, project)
        client.post(f"/api/leads/{lead_id}/contact", json={"method": "phone", "outcome": "no_response"},
                    headers=auth_headers)
        client.post(f"/api/leads/{lead_id}/notes", json={"content": "Wants a high floor", "isImportant": True},
                    headers=auth_headers)

        detail = client.get(f"/api/leads/{lead_id}", headers=auth_headers).json()["data"]["lead"]
        assert detail["contactHistory"][-1]["method"] == "phone"
        assert detail["lastContactedAt"] is not None
        assert detail["notes"][0]["content"] == "Wants a high floor"
        assert detail["notes"][0]["isImportant"] is True

    def test_follow_up_queue(self, client, project, auth_headers):
        lead_id = self._lead(client, project)
        response = client.patch(
            f"/api/leads/{lead_id}/follow-up",
            json={"followUpDate": "2026-03-05T10:00:00Z", "notes": "call back"},
            headers=auth_headers,
        )
        assert response.status_code == 200

        due = client.get("/api/leads/follow-up", params={"date": "2026-03-06T00:00:00Z"}, headers=auth_headers)
        assert due.json()["data"]["count"] == 1
        early = client.get("/api/leads/follow-up", params={"date": "2026-03-01T00:00:00Z"}, headers=auth_headers)
        assert early.json()["data"]["count"] == 0

    def test_list_and_stats(self, client, project, auth_headers):
        self._lead(client, project, "9000000001")
        self._lead(client, project, "9000000002")

        listing = client.get("/api/leads", params={"limit": 1}, headers=auth_headers).json()["data"]
        assert len(listing["leads"]) == 1
        assert listing["pagination"]["totalLeads"] == 2
        assert listing["pagination"]["hasNextPage"] is True

        stats = client.get("/api/leads/stats", headers=auth_headers).json()["data"]
        assert stats["overview"]["totalLeads"] == 2

    def test_csv_export(self, client, project, auth_headers):
        self._lead(client, project)
        response = client.get("/api/leads/export", headers=auth_headers)
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert "attachment" in response.headers["content-disposition"]
        assert '"9876543210"' in response.text
