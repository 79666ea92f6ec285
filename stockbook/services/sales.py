import logging
from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from stockbook.core.timeframes import as_utc, utc_now
from stockbook.models.inventory import Item, Sale
from stockbook.schemas.inventory import SaleCreateRequest, SaleOut
from stockbook.services.common import (
    normalize_name,
    parse_input,
    rounded_quantity,
    storage_errors,
    to_decimal,
    to_money,
)
from stockbook.services.errors import InsufficientStockError, NotFoundError

logger = logging.getLogger(__name__)


def record_sale(
    db: Session,
    owner_id: int,
    *,
    item_name,
    quantity,
    selling_price=None,
    sold_at: datetime | None = None,
) -> SaleOut:
    """Debit stock and append a sale row in one transaction.

    Sales that would take the item below zero are rejected. The unit
    price defaults to the item's current selling rate. ``sold_at`` is for
    back-filling history from code; the HTTP API always records the
    current time.
    """
    payload = parse_input(
        SaleCreateRequest,
        item_name=item_name,
        quantity=quantity,
        selling_price=selling_price,
    )

    with storage_errors(db, "record sale"):
        item = db.scalar(
            select(Item)
            .where(Item.owner_id == owner_id, Item.name_key == normalize_name(payload.item_name))
            .with_for_update()
        )
        if not item:
            raise NotFoundError("Item not found")

        available = to_decimal(item.quantity)
        if available < payload.quantity:
            logger.warning(
                "owner=%s sale rejected item=%s requested=%s available=%s",
                owner_id,
                item.name,
                payload.quantity,
                available,
            )
            raise InsufficientStockError(f"Insufficient stock for {item.name}: {available} available")

        unit_price = payload.selling_price if payload.selling_price is not None else to_decimal(item.selling_rate)
        total_price = to_money(unit_price * payload.quantity)

        # Conditional decrement: a concurrent sale that drained the row makes this match nothing.
        result = db.execute(
            update(Item)
            .where(Item.id == item.id, rounded_quantity(Item.quantity) >= payload.quantity)
            .values(quantity=rounded_quantity(Item.quantity - payload.quantity), updated_at=utc_now())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise InsufficientStockError(f"Insufficient stock for {item.name}")

        sale = Sale(
            owner_id=owner_id,
            item_id=item.id,
            quantity=payload.quantity,
            selling_price=unit_price,
            total_price=total_price,
            created_at=as_utc(sold_at).replace(tzinfo=None) if sold_at else utc_now(),
        )
        db.add(sale)
        db.commit()
        db.refresh(sale)
        db.refresh(item)

    logger.info(
        "owner=%s sale item=%s qty=%s total=%s remaining=%s",
        owner_id,
        item.name,
        sale.quantity,
        sale.total_price,
        item.quantity,
    )
    return SaleOut(
        id=sale.id,
        item_id=item.id,
        item_name=item.name,
        quantity=sale.quantity,
        selling_price=sale.selling_price,
        total_price=sale.total_price,
        available_qty=item.quantity,
        created_at=sale.created_at,
    )
