"""
Raw material (scrap gold) tests.
"""

from decimal import Decimal

import pytest

from jewelpos.extensions import db
from jewelpos.models import RawMaterial, RawMaterialCondition, RawMaterialStatus
from jewelpos.services import raw_material_service
from jewelpos.validation import ConflictError, NotFoundError, ValidationError


@pytest.fixture
def material(catalog, admin_user):
    return raw_material_service.create_raw_material({
        "location_id": catalog["warehouse"].id,
        "gold_category_id": catalog["category"].id,
        "weight_grams": "10.5",
        "buy_price_per_gram": 900000,
        "supplier_name": "Pak Budi",
        "notes": "Gelang rusak",
    }, user_id=admin_user.id)


class TestCreateRawMaterial:

    def test_defaults_and_total(self, material, admin_user):
        assert material.code.startswith("RM")
        assert material.status == RawMaterialStatus.AVAILABLE
        assert material.condition == RawMaterialCondition.LIKE_NEW
        assert material.total_buy_price == Decimal("9450000.00")
        assert material.weight_gross == Decimal("10.500")
        assert material.received_by_id == admin_user.id
        assert material.transaction_id is None

    def test_codes_are_sequential(self, material, catalog):
        other = raw_material_service.create_raw_material({
            "location_id": catalog["warehouse"].id,
            "weight_grams": 1,
            "buy_price_per_gram": 1,
        })
        assert int(other.code[-5:]) == int(material.code[-5:]) + 1

    @pytest.mark.parametrize(
        "override",
        [
            {"weight_grams": 0},
            {"weight_grams": None},
            {"buy_price_per_gram": -1},
            {"purity": 101},
            {"condition": "melted"},
        ],
    )
    def test_rejects_invalid_payload(self, catalog, override):
        payload = {"location_id": catalog["warehouse"].id, "weight_grams": 1, "buy_price_per_gram": 1}
        payload.update(override)
        with pytest.raises(ValidationError):
            raw_material_service.create_raw_material(payload)
        assert db.session.query(RawMaterial).count() == 0

    def test_unknown_references(self, catalog):
        with pytest.raises(NotFoundError):
            raw_material_service.create_raw_material({
                "location_id": catalog["warehouse"].id,
                "member_id": 9999,
                "weight_grams": 1,
                "buy_price_per_gram": 1,
            })
        assert db.session.query(RawMaterial).count() == 0


class TestListRawMaterials:

    def test_filters_and_total(self, material, catalog):
        raw_material_service.create_raw_material({
            "location_id": catalog["shop"].id,
            "weight_grams": 2,
            "buy_price_per_gram": 1,
            "condition": "damaged",
        })

        rows, total = raw_material_service.list_raw_materials()
        assert total == 2

        rows, total = raw_material_service.list_raw_materials(location_id=catalog["warehouse"].id)
        assert [r.id for r in rows] == [material.id]

        rows, total = raw_material_service.list_raw_materials(condition=RawMaterialCondition.DAMAGED)
        assert total == 1

        rows, total = raw_material_service.list_raw_materials(search="budi")
        assert [r.id for r in rows] == [material.id]

        rows, total = raw_material_service.list_raw_materials(limit=1, offset=1)
        assert total == 2
        assert len(rows) == 1


class TestUpdateRawMaterial:

    def test_recomputes_total(self, material):
        updated = raw_material_service.update_raw_material(material.id, {"weight_grams": 10, "buy_price_per_gram": 950000})
        assert updated.total_buy_price == Decimal("9500000.00")

    def test_process_then_sell(self, material):
        processed = raw_material_service.update_raw_material(material.id, {"status": "processed"})
        assert processed.status == RawMaterialStatus.PROCESSED
        assert processed.processed_at is not None

        sold = raw_material_service.update_raw_material(material.id, {"status": "sold"})
        assert sold.status == RawMaterialStatus.SOLD

    @pytest.mark.parametrize(
        "path",
        [
            ["sold", "available"],
            ["sold", "processed"],
            ["processed", "available"],
        ],
    )
    def test_illegal_transitions(self, material, path):
        *steps, last = path
        for step in steps:
            raw_material_service.update_raw_material(material.id, {"status": step})
        with pytest.raises(ConflictError):
            raw_material_service.update_raw_material(material.id, {"status": last})

    def test_invalid_status(self, material):
        with pytest.raises(ValidationError):
            raw_material_service.update_raw_material(material.id, {"status": "melted"})

    def test_unknown(self, catalog):
        with pytest.raises(NotFoundError):
            raw_material_service.update_raw_material(9999, {"notes": "x"})


class TestDeleteRawMaterial:

    def test_soft_delete(self, material):
        raw_material_service.delete_raw_material(material.id)
        with pytest.raises(NotFoundError):
            raw_material_service.get_raw_material(material.id)
        assert db.session.get(RawMaterial, material.id).deleted_at is not None

    def test_processed_material_is_kept(self, material):
        raw_material_service.update_raw_material(material.id, {"status": "processed"})
        with pytest.raises(ConflictError):
            raw_material_service.delete_raw_material(material.id)
        assert db.session.get(RawMaterial, material.id).deleted_at is None
