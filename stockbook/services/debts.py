import logging
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from stockbook.models.inventory import DebtEntry
from stockbook.schemas.debts import (
    CustomerDuesOut,
    CustomerNumberQuery,
    DebtEntryCreate,
    DebtEntryOut,
    LedgerEntryOut,
)
from stockbook.services.common import parse_input, storage_errors, to_money

logger = logging.getLogger(__name__)


def add_debt_entry(db: Session, owner_id: int, *, customer_name, customer_number, total=None, credit=None) -> DebtEntryOut:
    payload = parse_input(
        DebtEntryCreate,
        customer_name=customer_name,
        customer_number=customer_number,
        total=total,
        credit=credit,
    )
    entry = DebtEntry(
        owner_id=owner_id,
        customer_name=payload.customer_name,
        customer_number=payload.customer_number,
        total=payload.total,
        credit=payload.credit,
    )
    with storage_errors(db, "add debt entry"):
        db.add(entry)
        db.commit()
        db.refresh(entry)

    logger.info(
        "owner=%s debt entry customer=%s total=%s credit=%s",
        owner_id,
        entry.customer_number,
        entry.total,
        entry.credit,
    )
    return DebtEntryOut.model_validate(entry)


def get_customer_ledger(db: Session, owner_id: int, customer_number) -> list[LedgerEntryOut]:
    """All entries for one customer, oldest first, with the running balance after each."""
    query = parse_input(CustomerNumberQuery, customer_number=customer_number)
    with storage_errors(db, "customer ledger"):
        entries = db.scalars(
            select(DebtEntry)
            .where(DebtEntry.owner_id == owner_id, DebtEntry.customer_number == query.customer_number)
            .order_by(DebtEntry.created_at.asc(), DebtEntry.id.asc())
        ).all()

    ledger: list[LedgerEntryOut] = []
    total_so_far = Decimal("0")
    credit_so_far = Decimal("0")
    for entry in entries:
        total_so_far += to_money(entry.total)
        credit_so_far += to_money(entry.credit)
        ledger.append(
            LedgerEntryOut(
                id=entry.id,
                customer_name=entry.customer_name,
                customer_number=entry.customer_number,
                total=to_money(entry.total),
                credit=to_money(entry.credit),
                created_at=entry.created_at,
                balance=total_so_far - credit_so_far,
            )
        )
    return ledger


def get_dues_summary(db: Session, owner_id: int) -> list[CustomerDuesOut]:
    with storage_errors(db, "dues summary"):
        rows = db.execute(
            select(
                DebtEntry.customer_name,
                DebtEntry.customer_number,
                func.coalesce(func.sum(DebtEntry.total), 0),
                func.coalesce(func.sum(DebtEntry.credit), 0),
                func.coalesce(func.sum(DebtEntry.total - DebtEntry.credit), 0),
            )
            .where(DebtEntry.owner_id == owner_id)
            .group_by(DebtEntry.customer_name, DebtEntry.customer_number)
            .order_by(DebtEntry.customer_name.asc(), DebtEntry.customer_number.asc())
        ).all()

    return [
        CustomerDuesOut(
            customer_name=name,
            customer_number=number,
            total=to_money(total),
            credit=to_money(credit),
            balance=to_money(balance),
        )
        for name, number, total, credit, balance in rows
    ]
