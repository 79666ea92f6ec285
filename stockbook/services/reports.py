"""Read-side aggregation over items, sales and the reporting clock.

Nothing here writes or caches; each call queries the store afresh. The
queries composing one report are not snapshot-isolated from each other.
"""

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import and_, func, select
from sqlalchemy.orm import Session

from stockbook.core.timeframes import (
    local_date_range_utc,
    local_midnight_utc,
    local_today,
    month_label,
    month_range_utc,
    month_start,
    reporting_zone,
    to_local,
    trailing_months,
)
from stockbook.models.inventory import Item, Sale
from stockbook.schemas.inventory import (
    AnalyticsSummaryOut,
    ItemReportRow,
    MonthlySalesPoint,
    MonthlySalesQuery,
    SalesReportQuery,
    SalesReportRow,
)
from stockbook.services.common import normalize_name, parse_input, storage_errors, to_decimal, to_money
from stockbook.services.errors import ValidationError


def item_report(db: Session, owner_id: int, name: str | None = None) -> list[ItemReportRow]:
    sold_qty = func.coalesce(func.sum(Sale.quantity), 0)
    query = (
        select(Item.name, Item.quantity, Item.selling_rate, sold_qty)
        .outerjoin(Sale, and_(Sale.item_id == Item.id, Sale.owner_id == owner_id))
        .where(Item.owner_id == owner_id)
        .group_by(Item.id, Item.name, Item.quantity, Item.selling_rate)
        .order_by(Item.name.asc(), Item.id.asc())
    )
    if name and name.strip():
        query = query.where(Item.name_key == normalize_name(name))

    with storage_errors(db, "item report"):
        rows = db.execute(query).all()

    return [
        ItemReportRow(
            item_name=item_name,
            available_qty=to_decimal(quantity),
            selling_rate=to_money(selling_rate),
            sold_qty=to_decimal(sold),
        )
        for item_name, quantity, selling_rate, sold in rows
    ]


def sales_report(db: Session, owner_id: int, date_from, date_to) -> list[SalesReportRow]:
    """Sales whose local calendar date falls in ``[date_from, date_to]``, oldest first."""
    if date_from in (None, "") or date_to in (None, ""):
        raise ValidationError("Missing date range")
    period = parse_input(SalesReportQuery, date_from=date_from, date_to=date_to)
    zone = reporting_zone()
    start, end = local_date_range_utc(period.date_from, period.date_to, zone)

    with storage_errors(db, "sales report"):
        rows = db.execute(
            select(Sale.created_at, Item.name, Sale.quantity, Sale.selling_price, Sale.total_price)
            .join(Item, Item.id == Sale.item_id)
            .where(
                Sale.owner_id == owner_id,
                Sale.created_at >= start,
                Sale.created_at < end,
            )
            .order_by(Sale.created_at.asc(), Sale.id.asc())
        ).all()

    return [
        SalesReportRow(
            created_at=created_at,
            sale_date=to_local(created_at, zone).date(),
            item_name=item_name,
            quantity=to_decimal(quantity),
            selling_price=to_money(selling_price),
            total_price=to_money(total_price),
        )
        for created_at, item_name, quantity, selling_price, total_price in rows
    ]


def analytics_summary(db: Session, owner_id: int, now: datetime | None = None) -> AnalyticsSummaryOut:
    month_from, month_to = month_range_utc(local_today(now))

    with storage_errors(db, "analytics summary"):
        total_stock = db.scalar(
            select(func.coalesce(func.sum(Item.quantity * Item.selling_rate), 0)).where(Item.owner_id == owner_id)
        )
        total_sales = db.scalar(
            select(func.coalesce(func.sum(Sale.total_price), 0)).where(Sale.owner_id == owner_id)
        )
        monthly_sales = db.scalar(
            select(func.coalesce(func.sum(Sale.total_price), 0)).where(
                Sale.owner_id == owner_id,
                Sale.created_at >= month_from,
                Sale.created_at < month_to,
            )
        )

    return AnalyticsSummaryOut(
        total_stock=to_money(total_stock),
        total_sales=to_money(total_sales),
        monthly_sales=to_money(monthly_sales),
    )


def monthly_sales_series(
    db: Session,
    owner_id: int,
    months: int = 13,
    now: datetime | None = None,
) -> list[MonthlySalesPoint]:
    """Sales totals for the last ``months`` calendar months, oldest first.

    The month list is generated first and sales are folded into it, so
    months without any sale still appear with a zero total.
    """
    window = parse_input(MonthlySalesQuery, months=months)
    zone = reporting_zone()
    buckets: dict[date, Decimal] = {first_day: Decimal("0") for first_day in trailing_months(window.months, now, zone)}
    first_month = min(buckets)
    range_start = local_midnight_utc(first_month, zone)
    _, range_end = month_range_utc(max(buckets), zone)

    with storage_errors(db, "monthly sales series"):
        rows = db.execute(
            select(Sale.created_at, Sale.total_price).where(
                Sale.owner_id == owner_id,
                Sale.created_at >= range_start,
                Sale.created_at < range_end,
            )
        ).all()

    for created_at, total_price in rows:
        bucket = month_start(to_local(created_at, zone).date())
        if bucket in buckets:
            buckets[bucket] += to_decimal(total_price)

    return [
        MonthlySalesPoint(month_start=first_day, month=month_label(first_day), total_sales=to_money(total))
        for first_day, total in sorted(buckets.items())
    ]
