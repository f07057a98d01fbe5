"""
Inventory ledger tests: booking/releasing units and the project rollup.

Run with: pytest tests/test_inventory.py -v
"""
import logging

import pytest

from app.models import Apartment, Project
from app.schemas.apartment import ApartmentUpdateRequest
from app.services import inventory
from app.services.errors import InsufficientInventory, OverRelease, NotFound, ProjectNotFound, ValidationError


def _counts(db, unit_id):
    db.expire_all()
    apt = db.get(Apartment, unit_id)
    return apt.total_units, apt.available_units, apt.sold_units, apt.is_available


class TestCreate:
    def test_available_units_default_to_total(self, apartment):
        assert apartment.total_units == 10
        assert apartment.available_units == 10
        assert apartment.sold_units == 0
        assert apartment.is_available is True

    def test_price_per_sqft_derived(self, make_apartment):
        apt = make_apartment(price=7500000, area_built_up=1500)
        assert apt.price_per_sqft == 5000

    def test_unknown_project(self, db):
        with pytest.raises(ProjectNotFound):
            inventory.create_apartment(db, {
                "project_id": 999, "type": "1BHK", "bedrooms": 1, "bathrooms": 1,
                "area_built_up": 500, "price_base": 100, "total_units": 1,
            })

    def test_create_refreshes_project_rollup(self, db, project, make_apartment):
        make_apartment(apt_type="2BHK")
        make_apartment(apt_type="3BHK")
        db.expire_all()
        assert db.get(Project, project.id).available_units == 2


class TestBookRelease:
    def test_concrete_scenario(self, db, apartment):
        assert inventory.book_units(db, apartment.id, 4) == {
            "availableUnits": 6, "soldUnits": 4, "isAvailable": True,
        }
        assert inventory.book_units(db, apartment.id, 6) == {
            "availableUnits": 0, "soldUnits": 10, "isAvailable": False,
        }
        assert inventory.release_units(db, apartment.id, 3) == {
            "availableUnits": 3, "soldUnits": 7, "isAvailable": True,
        }

    def test_default_quantity_is_one(self, db, apartment):
        result = inventory.book_units(db, apartment.id)
        assert result["availableUnits"] == 9
        assert result["soldUnits"] == 1

    def test_overbooking_leaves_counts_unchanged(self, db, apartment):
        inventory.book_units(db, apartment.id, 8)
        with pytest.raises(InsufficientInventory) as exc:
            inventory.book_units(db, apartment.id, 5)
        assert exc.value.shortfall == 3
        assert f"U{apartment.id}" in str(exc.value)
        assert _counts(db, apartment.id) == (10, 2, 8, True)

    def test_over_release_leaves_counts_unchanged(self, db, apartment):
        inventory.book_units(db, apartment.id, 2)
        with pytest.raises(OverRelease):
            inventory.release_units(db, apartment.id, 3)
        assert _counts(db, apartment.id) == (10, 8, 2, True)

    def test_release_on_untouched_unit_fails(self, db, apartment):
        with pytest.raises(OverRelease):
            inventory.release_units(db, apartment.id, 1)

    def test_invariant_holds_across_sequence(self, db, apartment):
        steps = [("book", 3), ("book", 2), ("release", 4), ("book", 9), ("release", 1), ("book", 1)]
        for op, qty in steps:
            if op == "book":
                inventory.book_units(db, apartment.id, qty)
            else:
                inventory.release_units(db, apartment.id, qty)
            total, available, sold, is_available = _counts(db, apartment.id)
            assert available + sold == total
            assert is_available == (available > 0)

    def test_failed_calls_keep_invariant(self, db, apartment):
        for qty in (11, 20):
            with pytest.raises(InsufficientInventory):
                inventory.book_units(db, apartment.id, qty)
        total, available, sold, _ = _counts(db, apartment.id)
        assert available + sold == total == 10

    @pytest.mark.parametrize("qty", [0, -1, 1.5, True])
    def test_quantity_must_be_positive_int(self, db, apartment, qty):
        with pytest.raises(ValidationError):
            inventory.book_units(db, apartment.id, qty)
        with pytest.raises(ValidationError):
            inventory.release_units(db, apartment.id, qty)

    def test_inactive_unit_cannot_be_booked_or_released(self, db, apartment):
        inventory.book_units(db, apartment.id, 2)
        inventory.deactivate_apartment(db, apartment.id)

        with pytest.raises(NotFound):
            inventory.book_units(db, apartment.id, 1)
        with pytest.raises(NotFound):
            inventory.book_units(db, apartment.id, 50)
        with pytest.raises(NotFound):
            inventory.release_units(db, apartment.id, 1)
        assert _counts(db, apartment.id) == (10, 8, 2, True)

    def test_missing_unit(self, db):
        with pytest.raises(NotFound):
            inventory.book_units(db, 12345, 1)
        with pytest.raises(NotFound):
            inventory.release_units(db, 12345, 1)


class TestProjectRollup:
    def test_sold_out_type_drops_from_rollup(self, db, project, make_apartment):
        a = make_apartment(total_units=2, apt_type="2BHK")
        make_apartment(total_units=5, apt_type="3BHK")
        inventory.book_units(db, a.id, 2)
        db.expire_all()
        assert db.get(Project, project.id).available_units == 1

        inventory.release_units(db, a.id, 1)
        db.expire_all()
        assert db.get(Project, project.id).available_units == 2

    def test_counts_records_not_units(self, db, project, make_apartment):
        make_apartment(total_units=40)
        make_apartment(total_units=3)
        assert inventory.recompute_project_availability(db, project.id) == 2

    def test_recompute_is_idempotent(self, db, project, make_apartment):
        make_apartment()
        first = inventory.recompute_project_availability(db, project.id)
        second = inventory.recompute_project_availability(db, project.id)
        assert first == second
        assert db.get(Project, project.id).available_units == second

    def test_inactive_apartments_not_counted(self, db, project, make_apartment):
        a = make_apartment()
        make_apartment()
        inventory.deactivate_apartment(db, a.id)
        db.expire_all()
        assert db.get(Project, project.id).available_units == 1

    def test_recompute_unknown_project(self, db):
        with pytest.raises(ProjectNotFound):
            inventory.recompute_project_availability(db, 4040)

    def test_rollup_failure_does_not_undo_booking(self, db, apartment, monkeypatch, caplog):
        def boom(*args, **kwargs):
            raise RuntimeError("rollup store unavailable")

        monkeypatch.setattr(inventory, "recompute_project_availability", boom)
        with caplog.at_level(logging.ERROR, logger="app.services.inventory"):
            result = inventory.book_units(db, apartment.id, 4)

        assert result["availableUnits"] == 6
        assert _counts(db, apartment.id) == (10, 6, 4, True)
        assert "Error updating available units" in caplog.text


class TestAdminEdits:
    def test_update_derives_is_available(self, db, apartment):
        apt = inventory.update_apartment(db, apartment.id, {"available_units": 0, "sold_units": 10})
        assert apt.is_available is False

    def test_partial_availability_edit_keeps_total(self, db, apartment):
        changes = ApartmentUpdateRequest(availability={"availableUnits": 5, "soldUnits": 5}).to_changes()
        assert changes == {"available_units": 5, "sold_units": 5}

        apt = inventory.update_apartment(db, apartment.id, changes)
        assert (apt.total_units, apt.available_units, apt.sold_units) == (10, 5, 5)

    def test_partial_area_edit_keeps_unit(self, db, make_apartment):
        apt = make_apartment(area_unit="sqm")
        changes = ApartmentUpdateRequest(area={"builtUp": 2000}).to_changes()
        apt = inventory.update_apartment(db, apt.id, changes)
        assert apt.area_unit == "sqm"
        assert apt.price_per_sqft == 2500

    def test_update_recomputes_price(self, db, apartment):
        apt = inventory.update_apartment(db, apartment.id, {"price_base": 2000000})
        assert apt.price_per_sqft == 2000

    def test_deactivate_project_cascades(self, db, project, make_apartment):
        a = make_apartment()
        b = make_apartment(apt_type="3BHK")
        inventory.deactivate_project(db, project.id)
        db.expire_all()
        assert db.get(Apartment, a.id).is_active is False
        assert db.get(Apartment, b.id).is_active is False
        p = db.get(Project, project.id)
        assert p.is_active is False
        assert p.available_units == 0


def test_apartment_types_summary(db, project, make_apartment):
    make_apartment(apt_type="3BHK", price=9000000, total_units=4)
    make_apartment(apt_type="2BHK", price=5000000, total_units=6)
    make_apartment(apt_type="2BHK", price=5500000, total_units=2)

    types = inventory.apartment_types(db, project.id)

    assert [t["type"] for t in types] == ["2BHK", "3BHK"]
    two = types[0]
    assert two["count"] == 2
    assert two["minPrice"] == 5000000
    assert two["maxPrice"] == 5500000
    assert two["availableUnits"] == 8
