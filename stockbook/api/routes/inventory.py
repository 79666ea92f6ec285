from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from stockbook.api.deps import get_owner_id
from stockbook.db.database import get_db
from stockbook.schemas.inventory import (
    AnalyticsSummaryOut,
    ItemInfoOut,
    ItemReportRow,
    MonthlySalesPoint,
    SaleCreateRequest,
    SaleOut,
    SalesReportQuery,
    SalesReportRow,
    StockAddRequest,
    StockAddResult,
)
from stockbook.services.common import parse_input
from stockbook.services.documents import (
    PDF_MEDIA_TYPE,
    XLSX_MEDIA_TYPE,
    item_report_document,
    render_pdf,
    render_xlsx,
    sales_report_document,
)
from stockbook.services.items import add_stock, get_item_info, list_item_names
from stockbook.services.reports import analytics_summary, item_report, monthly_sales_series, sales_report
from stockbook.services.sales import record_sale

router = APIRouter(tags=["Inventory"])


def _download(content: bytes, media_type: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/items", response_model=StockAddResult, status_code=status.HTTP_201_CREATED)
def add_item_stock(
    payload: StockAddRequest,
    response: Response,
    owner_id: int = Depends(get_owner_id),
    db: Session = Depends(get_db),
):
    result = add_stock(db, owner_id, **payload.model_dump())
    if not result.created:
        response.status_code = status.HTTP_200_OK
    return result


@router.get("/items/names", response_model=list[str])
def get_item_names(owner_id: int = Depends(get_owner_id), db: Session = Depends(get_db)):
    return list_item_names(db, owner_id)


@router.get("/items/info", response_model=ItemInfoOut)
def get_item_details(
    name: str | None = Query(default=None),
    owner_id: int = Depends(get_owner_id),
    db: Session = Depends(get_db),
):
    return get_item_info(db, owner_id, name)


@router.get("/items/report", response_model=list[ItemReportRow])
def get_item_report(
    name: str | None = Query(default=None),
    owner_id: int = Depends(get_owner_id),
    db: Session = Depends(get_db),
):
    return item_report(db, owner_id, name)


@router.get("/items/report/pdf")
def export_item_report_pdf(
    name: str | None = Query(default=None),
    owner_id: int = Depends(get_owner_id),
    db: Session = Depends(get_db),
):
    document = item_report_document(item_report(db, owner_id, name))
    return _download(render_pdf(document), PDF_MEDIA_TYPE, "stock_report.pdf")


@router.get("/items/report/excel")
def export_item_report_excel(
    name: str | None = Query(default=None),
    owner_id: int = Depends(get_owner_id),
    db: Session = Depends(get_db),
):
    document = item_report_document(item_report(db, owner_id, name))
    return _download(render_xlsx(document), XLSX_MEDIA_TYPE, "stock_report.xlsx")


@router.post("/sales", response_model=SaleOut, status_code=status.HTTP_201_CREATED)
def create_sale(
    payload: SaleCreateRequest,
    owner_id: int = Depends(get_owner_id),
    db: Session = Depends(get_db),
):
    return record_sale(db, owner_id, **payload.model_dump())


@router.get("/sales/report", response_model=list[SalesReportRow])
def get_sales_report(
    date_from: str | None = Query(default=None, alias="from"),
    date_to: str | None = Query(default=None, alias="to"),
    owner_id: int = Depends(get_owner_id),
    db: Session = Depends(get_db),
):
    return sales_report(db, owner_id, date_from, date_to)


def _sales_report_document(db: Session, owner_id: int, date_from: str | None, date_to: str | None):
    rows = sales_report(db, owner_id, date_from, date_to)
    period = parse_input(SalesReportQuery, date_from=date_from, date_to=date_to)
    return sales_report_document(rows, period.date_from, period.date_to)


@router.get("/sales/report/pdf")
def export_sales_report_pdf(
    date_from: str | None = Query(default=None, alias="from"),
    date_to: str | None = Query(default=None, alias="to"),
    owner_id: int = Depends(get_owner_id),
    db: Session = Depends(get_db),
):
    document = _sales_report_document(db, owner_id, date_from, date_to)
    return _download(render_pdf(document), PDF_MEDIA_TYPE, "sales_report.pdf")


@router.get("/sales/report/excel")
def export_sales_report_excel(
    date_from: str | None = Query(default=None, alias="from"),
    date_to: str | None = Query(default=None, alias="to"),
    owner_id: int = Depends(get_owner_id),
    db: Session = Depends(get_db),
):
    document = _sales_report_document(db, owner_id, date_from, date_to)
    return _download(render_xlsx(document), XLSX_MEDIA_TYPE, "sales_report.xlsx")


@router.get("/sales/monthly", response_model=list[MonthlySalesPoint])
def get_monthly_sales(
    months: int = Query(default=13),
    owner_id: int = Depends(get_owner_id),
    db: Session = Depends(get_db),
):
    return monthly_sales_series(db, owner_id, months)


@router.get("/sales/last-12-months", response_model=list[MonthlySalesPoint])
def get_last_12_months(owner_id: int = Depends(get_owner_id), db: Session = Depends(get_db)):
    return monthly_sales_series(db, owner_id, 12)


@router.get("/sales/last-13-months", response_model=list[MonthlySalesPoint])
def get_last_13_months(owner_id: int = Depends(get_owner_id), db: Session = Depends(get_db)):
    return monthly_sales_series(db, owner_id, 13)


@router.get("/analytics/summary", response_model=AnalyticsSummaryOut)
def get_analytics_summary(owner_id: int = Depends(get_owner_id), db: Session = Depends(get_db)):
    return analytics_summary(db, owner_id)
