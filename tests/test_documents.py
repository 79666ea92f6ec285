from datetime import date, datetime
from decimal import Decimal
from io import BytesIO

from openpyxl import load_workbook

from stockbook.schemas.debts import LedgerEntryOut
from stockbook.schemas.inventory import ItemReportRow, SalesReportRow
from stockbook.services.documents import (
    item_report_document,
    ledger_document,
    render_pdf,
    render_xlsx,
    sales_report_document,
)


def _sales_rows():
    return [
        SalesReportRow(
            created_at=datetime(2026, 3, 10, 20, 0),
            sale_date=date(2026, 3, 11),
            item_name="Rice",
            quantity=Decimal("2"),
            selling_price=Decimal("50.00"),
            total_price=Decimal("100.00"),
        ),
        SalesReportRow(
            created_at=datetime(2026, 3, 11, 5, 0),
            sale_date=date(2026, 3, 11),
            item_name="Dal",
            quantity=Decimal("1"),
            selling_price=Decimal("110.00"),
            total_price=Decimal("110.00"),
        ),
    ]


def test_sales_report_document_has_grand_total():
    document = sales_report_document(_sales_rows(), date(2026, 3, 11), date(2026, 3, 11))

    assert document.footer[-1] == Decimal("210.00")
    assert document.rows[0][:3] == [1, date(2026, 3, 11), "Rice"]
    assert "2026-03-11" in document.subtitle


def test_item_report_xlsx_layout():
    rows = [
        ItemReportRow(item_name="Dal", available_qty=Decimal("20"), selling_rate=Decimal("110"), sold_qty=Decimal("0")),
        ItemReportRow(item_name="Rice", available_qty=Decimal("12"), selling_rate=Decimal("55"), sold_qty=Decimal("3")),
    ]

    workbook = load_workbook(BytesIO(render_xlsx(item_report_document(rows))))
    sheet = workbook.active

    assert sheet["A1"].value == "Stock Report"
    assert [cell.value for cell in sheet[2]] == ["Sl", "Item Name", "Available", "Rate", "Sold"]
    assert [cell.value for cell in sheet[4]] == [2, "Rice", 12, 55, 3]
    assert sheet["C3"].number_format == "#,##0.00"


def test_sales_report_xlsx_footer_row():
    document = sales_report_document(_sales_rows(), date(2026, 3, 11), date(2026, 3, 11))

    sheet = load_workbook(BytesIO(render_xlsx(document))).active

    assert sheet["A2"].value.startswith("From: 2026-03-11")
    assert sheet.cell(row=sheet.max_row, column=3).value == "Grand Total"
    assert sheet.cell(row=sheet.max_row, column=6).value == 210


def test_render_pdf_produces_pdf_bytes():
    document = sales_report_document(_sales_rows(), date(2026, 3, 11), date(2026, 3, 11))

    content = render_pdf(document)

    assert content.startswith(b"%PDF")


def test_ledger_document_uses_local_dates():
    entries = [
        LedgerEntryOut(
            id=1,
            customer_name="Asha",
            customer_number="9876543210",
            total=Decimal("100"),
            credit=Decimal("30"),
            created_at=datetime(2026, 3, 10, 20, 0),
            balance=Decimal("70"),
        )
    ]

    document = ledger_document(entries, "9876543210")

    assert document.subtitle == "Asha (9876543210)"
    assert document.rows[0][1] == datetime(2026, 3, 11, 1, 30)
    assert document.rows[0][-1] == Decimal("70")
    assert render_pdf(document).startswith(b"%PDF")
