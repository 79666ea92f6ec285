from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from stockbook.api.deps import get_owner_id
from stockbook.db.database import get_db
from stockbook.schemas.debts import CustomerDuesOut, DebtEntryCreate, DebtEntryOut, LedgerEntryOut
from stockbook.services.debts import add_debt_entry, get_customer_ledger, get_dues_summary
from stockbook.services.documents import PDF_MEDIA_TYPE, ledger_document, render_pdf

router = APIRouter(prefix="/debts", tags=["Debts"])


@router.post("", response_model=DebtEntryOut, status_code=status.HTTP_201_CREATED)
def create_debt_entry(
    payload: DebtEntryCreate,
    owner_id: int = Depends(get_owner_id),
    db: Session = Depends(get_db),
):
    return add_debt_entry(db, owner_id, **payload.model_dump())


@router.get("", response_model=list[CustomerDuesOut])
def list_dues(owner_id: int = Depends(get_owner_id), db: Session = Depends(get_db)):
    return get_dues_summary(db, owner_id)


@router.get("/{customer_number}", response_model=list[LedgerEntryOut])
def get_ledger(customer_number: str, owner_id: int = Depends(get_owner_id), db: Session = Depends(get_db)):
    return get_customer_ledger(db, owner_id, customer_number)


@router.get("/{customer_number}/pdf")
def export_ledger_pdf(customer_number: str, owner_id: int = Depends(get_owner_id), db: Session = Depends(get_db)):
    entries = get_customer_ledger(db, owner_id, customer_number)
    document = ledger_document(entries, customer_number.strip())
    return Response(
        content=render_pdf(document),
        media_type=PDF_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="ledger_{customer_number.strip()}.pdf"'},
    )
