"""
Member account tests.
"""

from datetime import date
from decimal import Decimal

import pytest

from jewelpos.extensions import db
from jewelpos.models import Member, MemberType
from jewelpos.services import member_service
from jewelpos.validation import NotFoundError, ValidationError


class TestCreateMember:

    def test_allocates_code_and_defaults(self, app):
        m = member_service.create_member({"name": "Dewi Lestari", "phone": "0811", "birth_date": "1990-05-17"})

        assert m.member_code.startswith("MBR")
        assert m.type == MemberType.REGULAR
        assert m.points == 0
        assert m.transaction_count == 0
        assert m.birth_date == date(1990, 5, 17)
        assert m.is_active is True

    def test_codes_are_sequential(self, app):
        a = member_service.create_member({"name": "A"})
        b = member_service.create_member({"name": "B"})
        assert int(b.member_code[-5:]) == int(a.member_code[-5:]) + 1

    def test_loyalty_fields_are_not_client_writable(self, app):
        m = member_service.create_member({"name": "C", "points": 500, "type": "platinum", "total_purchase": 1})
        assert m.points == 0
        assert m.type == MemberType.REGULAR

    @pytest.mark.parametrize(
        "payload",
        [
            {},
            {"name": ""},
            {"name": "x" * 101},
            {"name": "D", "birth_date": "17/05/1990"},
        ],
    )
    def test_rejects_invalid_payload(self, app, payload):
        with pytest.raises(ValidationError):
            member_service.create_member(payload)
        assert db.session.query(Member).count() == 0


class TestMemberLookups:

    def test_get_by_code(self, member):
        assert member_service.get_member_by_code("MBR2026010100001").id == member.id
        with pytest.raises(NotFoundError):
            member_service.get_member_by_code("MBR0")

    def test_search(self, member):
        member_service.create_member({"name": "Budi Santoso", "phone": "0822"})
        assert [m.name for m in member_service.list_members(search="siti")] == ["Siti Rahma"]
        assert [m.name for m in member_service.list_members(search="0822")] == ["Budi Santoso"]
        assert len(member_service.list_members(member_type=MemberType.GOLD)) == 0


class TestUpdateAndDelete:

    def test_update_contact_fields_only(self, member):
        updated = member_service.update_member(member.id, {"phone": "0899", "points": 1000})
        assert updated.phone == "0899"
        assert updated.points == 0

    def test_delete_hides_member(self, member):
        member_service.delete_member(member.id)
        with pytest.raises(NotFoundError):
            member_service.get_member(member.id)
        row = db.session.get(Member, member.id)
        assert row.deleted_at is not None
        assert row.is_active is False


class TestBonusPoints:

    def test_awards_points_without_changing_totals(self, member):
        m = member_service.add_member_points(member.id, 1250000)
        assert m.points == 12
        assert m.total_purchase == Decimal("0.00")

    @pytest.mark.parametrize("amount", [0, -100, None, "abc"])
    def test_rejects_non_positive_amount(self, member, amount):
        with pytest.raises(ValidationError):
            member_service.add_member_points(member.id, amount)

    def test_unknown_member(self, app):
        with pytest.raises(NotFoundError):
            member_service.add_member_points(9999, 100000)
