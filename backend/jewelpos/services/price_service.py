# Overview: Gold price revisions (bulk update + audit log) and the daily update check.

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal

from flask import current_app
from sqlalchemy.orm import joinedload

from ..extensions import db
from ..models import GoldCategory, PriceDetail, PriceUpdateLog
from ..time_utils import local_day_bounds, to_utc_z, utcnow
from ..validation import (
    NotFoundError,
    ValidationError,
    coerce_decimal,
    coerce_int,
    coerce_str,
    quantize_money,
)
from . import catalog_service
from .concurrency import begin_write, lock_for_update, run_with_retry
from .ledger_service import append_ledger_event

logger = logging.getLogger(__name__)


def _parse_entries(entries) -> list[tuple[int, Decimal, Decimal]]:
    if not isinstance(entries, list) or not entries:
        raise ValidationError("prices must be a non-empty list")

    parsed = []
    seen = set()
    for idx, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise ValidationError(f"prices[{idx}] must be an object")
        category_id = coerce_int(entry.get("gold_category_id"), f"prices[{idx}].gold_category_id", minimum=1)
        if category_id in seen:
            raise ValidationError(
                "Duplicate gold_category_id in price update",
                details={"gold_category_id": category_id},
            )
        seen.add(category_id)
        buy = quantize_money(coerce_decimal(entry.get("buy_price"), f"prices[{idx}].buy_price", minimum=Decimal("0")))
        sell = quantize_money(coerce_decimal(entry.get("sell_price"), f"prices[{idx}].sell_price", minimum=Decimal("0")))
        parsed.append((category_id, buy, sell))
    return parsed


def bulk_update_prices(entries, *, notes: str | None = None, user_id: int | None = None) -> PriceUpdateLog:
    """
    Revise buy/sell prices of several gold categories as one unit.

    Every entry yields a PriceDetail with the old and new values; the log
    and all live price changes commit together or not at all.
    """
    parsed = _parse_entries(entries)
    notes = coerce_str(notes, "notes", max_length=500) or None

    def _op() -> PriceUpdateLog:
        begin_write()
        log = PriceUpdateLog(update_date=utcnow(), updated_by_id=user_id, notes=notes)
        db.session.add(log)
        db.session.flush()

        for category_id, buy, sell in parsed:
            category = lock_for_update(
                db.session.query(GoldCategory).filter(
                    GoldCategory.id == category_id,
                    GoldCategory.deleted_at.is_(None),
                )
            ).first()
            if not category:
                raise NotFoundError(f"Gold category {category_id} not found")

            db.session.add(PriceDetail(
                price_update_log_id=log.id,
                gold_category_id=category.id,
                old_buy_price=category.buy_price,
                new_buy_price=buy,
                old_sell_price=category.sell_price,
                new_sell_price=sell,
            ))
            category.buy_price = buy
            category.sell_price = sell

        append_ledger_event(
            event_type="PRICES_REVISED",
            event_category="pricing",
            entity_type="price_update_log",
            entity_id=log.id,
            actor_user_id=user_id,
            note=notes,
            payload={"categories": [c for c, _, _ in parsed]},
        )
        db.session.commit()
        return log

    log = run_with_retry(_op)
    logger.info("Price update %s revised %d gold categories", log.id, len(parsed))
    return log


def latest_price_update() -> PriceUpdateLog | None:
    return (
        db.session.query(PriceUpdateLog)
        .order_by(PriceUpdateLog.update_date.desc(), PriceUpdateLog.id.desc())
        .first()
    )


def check_price_update_needed(tz: str | None = None, now: datetime | None = None) -> dict:
    """
    Whether today's prices have been entered yet, "today" being the calendar
    day in `tz` (defaults to PRICE_UPDATE_TIMEZONE). Advisory only.
    """
    tz_name = tz or current_app.config.get("PRICE_UPDATE_TIMEZONE", "UTC")
    try:
        day_start, day_end = local_day_bounds(tz_name, now)
    except ValueError as exc:
        raise ValidationError(str(exc))

    last = latest_price_update()
    needs_update = True
    if last is not None:
        last_at = last.update_date
        if last_at.tzinfo is not None:
            last_at = last_at.replace(tzinfo=None)
        needs_update = not (day_start <= last_at < day_end)

    categories = catalog_service.list_gold_categories(active_only=True)
    return {
        "needs_update": needs_update,
        "last_update": to_utc_z(last.update_date) if last else None,
        "last_updated_by": last.updated_by.username if last and last.updated_by else None,
        "timezone": tz_name,
        "categories": [c.to_dict() for c in categories],
    }


def list_price_update_logs(
    *,
    start: datetime | None = None,
    end: datetime | None = None,
    limit: int = 50,
) -> list[PriceUpdateLog]:
    query = db.session.query(PriceUpdateLog).options(joinedload(PriceUpdateLog.updated_by))
    if start is not None:
        query = query.filter(PriceUpdateLog.update_date >= start)
    if end is not None:
        query = query.filter(PriceUpdateLog.update_date < end)
    return query.order_by(PriceUpdateLog.update_date.desc(), PriceUpdateLog.id.desc()).limit(limit).all()


def get_price_update_log(log_id: int) -> PriceUpdateLog:
    log = db.session.query(PriceUpdateLog).filter(PriceUpdateLog.id == log_id).first()
    if not log:
        raise NotFoundError(f"Price update {log_id} not found")
    return log
