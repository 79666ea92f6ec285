import logging

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from stockbook.core.timeframes import utc_now
from stockbook.models.inventory import Item
from stockbook.schemas.inventory import ItemInfoOut, ItemOut, StockAddRequest, StockAddResult
from stockbook.services.common import normalize_name, parse_input, rounded_quantity, storage_errors
from stockbook.services.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

# Dialects with INSERT .. ON CONFLICT DO UPDATE support.
_UPSERT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def _upsert_item(db: Session, owner_id: int, payload: StockAddRequest, name_key: str) -> int:
    now = utc_now()
    insert = _UPSERT_INSERTS.get(db.get_bind().dialect.name)
    if insert is None:
        return _locked_upsert_item(db, owner_id, payload, name_key)

    stmt = insert(Item).values(
        owner_id=owner_id,
        name=payload.name,
        name_key=name_key,
        quantity=payload.quantity,
        buying_rate=payload.buying_rate,
        selling_rate=payload.selling_rate,
        created_at=now,
        updated_at=now,
    )
    # Restock is additive on quantity; rates are last-write-wins.
    stmt = stmt.on_conflict_do_update(
        index_elements=["owner_id", "name_key"],
        set_={
            "quantity": rounded_quantity(Item.quantity + stmt.excluded.quantity),
            "buying_rate": stmt.excluded.buying_rate,
            "selling_rate": stmt.excluded.selling_rate,
            "updated_at": stmt.excluded.updated_at,
        },
    ).returning(Item.id)
    return db.execute(stmt).scalar_one()


def _locked_upsert_item(db: Session, owner_id: int, payload: StockAddRequest, name_key: str) -> int:
    item = db.scalar(
        select(Item)
        .where(Item.owner_id == owner_id, Item.name_key == name_key)
        .with_for_update()
    )
    if item:
        item.quantity = item.quantity + payload.quantity
        item.buying_rate = payload.buying_rate
        item.selling_rate = payload.selling_rate
    else:
        item = Item(
            owner_id=owner_id,
            name=payload.name,
            name_key=name_key,
            quantity=payload.quantity,
            buying_rate=payload.buying_rate,
            selling_rate=payload.selling_rate,
        )
        db.add(item)
    db.flush()
    return item.id


def add_stock(db: Session, owner_id: int, *, name, quantity, buying_rate, selling_rate) -> StockAddResult:
    """Create an item or restock an existing one with the same normalized name.

    The insert-or-increment runs as a single statement so two concurrent
    restocks of one item cannot lose an update.
    """
    payload = parse_input(
        StockAddRequest,
        name=name,
        quantity=quantity,
        buying_rate=buying_rate,
        selling_rate=selling_rate,
    )
    name_key = normalize_name(payload.name)

    with storage_errors(db, "add stock"):
        existed = db.scalar(
            select(Item.id).where(Item.owner_id == owner_id, Item.name_key == name_key)
        ) is not None
        item_id = _upsert_item(db, owner_id, payload, name_key)
        db.commit()
        item = db.scalar(
            select(Item).where(Item.id == item_id).execution_options(populate_existing=True)
        )

    logger.info(
        "owner=%s %s item=%s qty+=%s now=%s",
        owner_id,
        "restocked" if existed else "created",
        item.name,
        payload.quantity,
        item.quantity,
    )
    return StockAddResult(
        message="Stock updated" if existed else "New item added",
        created=not existed,
        item=ItemOut.model_validate(item),
    )


def list_item_names(db: Session, owner_id: int) -> list[str]:
    with storage_errors(db, "list item names"):
        return list(
            db.scalars(select(Item.name).where(Item.owner_id == owner_id).order_by(Item.name.asc())).all()
        )


def find_item(db: Session, owner_id: int, name: str) -> Item | None:
    return db.scalar(
        select(Item).where(Item.owner_id == owner_id, Item.name_key == normalize_name(name))
    )


def get_item_info(db: Session, owner_id: int, name: str | None) -> ItemInfoOut:
    if not name or not name.strip():
        raise ValidationError("Missing item name")
    with storage_errors(db, "item info"):
        item = find_item(db, owner_id, name)
    if not item:
        raise NotFoundError("Item not found")
    return ItemInfoOut.model_validate(item)
