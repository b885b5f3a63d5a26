# Overview: Member loyalty accrual (incremental and full recalculation).

"""
Member Loyalty Accumulator

Two explicitly separate modes:
- apply_sale / apply_purchase: incremental, called by the transaction
  engine inside its unit of work. Never commits.
- recalculate_member_stats: repair sweep that re-derives totals, points and
  tier from completed transactions. Never called from the hot path.
"""

from __future__ import annotations

import logging
from decimal import ROUND_FLOOR, Decimal

from sqlalchemy import func

from ..extensions import db
from ..models import Member, MemberType, Transaction, TransactionStatus, TransactionType
from ..validation import quantize_money
from .concurrency import run_with_retry

logger = logging.getLogger(__name__)

PURCHASE_POINT_UNIT = Decimal("100000")   # 1 point per 100,000 spent at the store
SELL_POINT_UNIT = Decimal("200000")       # 1 point per 200,000 sold to the store

# Checked top-down; first threshold reached wins
TIER_THRESHOLDS = (
    (Decimal("100000000"), MemberType.PLATINUM),
    (Decimal("50000000"), MemberType.GOLD),
    (Decimal("20000000"), MemberType.SILVER),
)


def tier_for(total_purchase) -> MemberType:
    total = Decimal(total_purchase or 0)
    for threshold, tier in TIER_THRESHOLDS:
        if total >= threshold:
            return tier
    return MemberType.REGULAR


def _floor_div(amount, unit: Decimal) -> int:
    value = Decimal(amount or 0)
    if value <= 0:
        return 0
    return int((value / unit).to_integral_value(rounding=ROUND_FLOOR))


def points_from_purchase(amount) -> int:
    return _floor_div(amount, PURCHASE_POINT_UNIT)


def points_from_sell(amount) -> int:
    return _floor_div(amount, SELL_POINT_UNIT)


def apply_sale(member: Member, grand_total: Decimal) -> None:
    """The member bought from the store."""
    member.total_purchase = quantize_money(Decimal(member.total_purchase or 0) + grand_total)
    member.transaction_count = (member.transaction_count or 0) + 1
    member.points = (member.points or 0) + points_from_purchase(grand_total)
    member.type = tier_for(member.total_purchase)


def apply_purchase(member: Member, grand_total: Decimal) -> None:
    """The member sold gold to the store. Tier follows total_purchase only."""
    member.total_sell = quantize_money(Decimal(member.total_sell or 0) + grand_total)
    member.transaction_count = (member.transaction_count or 0) + 1
    member.points = (member.points or 0) + points_from_sell(grand_total)


def apply_bonus_points(member: Member, amount: Decimal) -> int:
    """Manual award at the purchase rate; totals are untouched."""
    points = points_from_purchase(amount)
    member.points = (member.points or 0) + points
    member.type = tier_for(member.total_purchase)
    return points


def recalculate_member_stats(member_id: int | None = None) -> int:
    """
    Replace totals, count, points and tier of one member (or all) with values
    re-derived from completed transactions. Returns the number of members
    updated.
    """
    def _op() -> int:
        members_query = db.session.query(Member).filter(Member.deleted_at.is_(None))
        if member_id is not None:
            members_query = members_query.filter(Member.id == member_id)
        members = members_query.all()

        rows = (
            db.session.query(
                Transaction.member_id,
                Transaction.type,
                func.coalesce(func.sum(Transaction.grand_total), 0),
                func.count(Transaction.id),
            )
            .filter(
                Transaction.member_id.isnot(None),
                Transaction.status == TransactionStatus.COMPLETED,
            )
            .group_by(Transaction.member_id, Transaction.type)
            .all()
        )
        totals: dict[int, dict] = {}
        for mid, tx_type, amount, count in rows:
            entry = totals.setdefault(mid, {"purchase": Decimal("0"), "sell": Decimal("0"), "count": 0})
            key = "purchase" if tx_type == TransactionType.SALE else "sell"
            entry[key] += Decimal(str(amount))
            entry["count"] += count

        for member in members:
            entry = totals.get(member.id, {"purchase": Decimal("0"), "sell": Decimal("0"), "count": 0})
            member.total_purchase = quantize_money(entry["purchase"])
            member.total_sell = quantize_money(entry["sell"])
            member.transaction_count = entry["count"]
            member.points = points_from_purchase(entry["purchase"]) + points_from_sell(entry["sell"])
            member.type = tier_for(entry["purchase"])

        db.session.commit()
        return len(members)

    updated = run_with_retry(_op)
    logger.info("Recalculated loyalty stats for %d member(s)", updated)
    return updated
