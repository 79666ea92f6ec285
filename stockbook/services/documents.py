"""Render already-computed report rows as PDF or XLSX downloads.

Formatting only: callers pass finished rows, these functions lay them out.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from io import BytesIO
from xml.sax.saxutils import escape

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, Side
from openpyxl.utils import get_column_letter
from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from stockbook.core.timeframes import to_local
from stockbook.schemas.debts import LedgerEntryOut
from stockbook.schemas.inventory import ItemReportRow, SalesReportRow

PDF_MEDIA_TYPE = "application/pdf"
XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
NUMBER_FORMAT = "#,##0.00"

_THIN = Side(style="thin")
_BORDER = Border(top=_THIN, bottom=_THIN, left=_THIN, right=_THIN)


@dataclass(frozen=True)
class Column:
    header: str
    width: int
    numeric: bool = False


@dataclass(frozen=True)
class TableDocument:
    title: str
    columns: Sequence[Column]
    rows: Sequence[Sequence[object]]
    subtitle: str | None = None
    footer: Sequence[object] | None = None


def _text(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, Decimal):
        return f"{value:,.2f}"
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d %H:%M")
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def render_pdf(document: TableDocument) -> bytes:
    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        leftMargin=40,
        rightMargin=40,
        topMargin=40,
        bottomMargin=40,
        title=document.title,
    )
    styles = getSampleStyleSheet()
    centered = ParagraphStyle("Centered", parent=styles["Normal"], alignment=TA_CENTER)
    cell_style = ParagraphStyle("Cell", parent=styles["Normal"], fontSize=9, leading=11)

    elements = [Paragraph(escape(document.title), styles["Title"])]
    if document.subtitle:
        elements.append(Paragraph(escape(document.subtitle), centered))
    elements.append(Spacer(1, 12))

    data: list[list[object]] = [[column.header for column in document.columns]]
    for row in document.rows:
        data.append(
            [
                _text(value) if column.numeric else Paragraph(escape(_text(value)), cell_style)
                for value, column in zip(row, document.columns)
            ]
        )
    if document.footer:
        data.append([_text(value) for value in document.footer])

    total_weight = sum(column.width for column in document.columns)
    col_widths = [doc.width * column.width / total_weight for column in document.columns]
    style = [
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#e5e7eb")),
        ("FONTSIZE", (0, 0), (-1, -1), 9),
        ("GRID", (0, 0), (-1, -1), 0.5, colors.black),
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
    ]
    for index, column in enumerate(document.columns):
        if column.numeric:
            style.append(("ALIGN", (index, 0), (index, -1), "RIGHT"))
    if document.footer:
        style.append(("FONTNAME", (0, -1), (-1, -1), "Helvetica-Bold"))

    table = Table(data, colWidths=col_widths, repeatRows=1)
    table.setStyle(TableStyle(style))
    elements.append(table)
    doc.build(elements)
    return buffer.getvalue()


def _cell_value(value: object) -> object:
    if isinstance(value, Decimal):
        return float(value)
    return value


def render_xlsx(document: TableDocument) -> bytes:
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = document.title[:31]
    width = len(document.columns)

    sheet.append([document.title])
    title_rows = [1]
    sheet["A1"].font = Font(size=16, bold=True)
    if document.subtitle:
        sheet.append([document.subtitle])
        title_rows.append(2)
    for row_index in title_rows:
        if width > 1:
            sheet.merge_cells(start_row=row_index, start_column=1, end_row=row_index, end_column=width)
        sheet.cell(row=row_index, column=1).alignment = Alignment(horizontal="center")

    sheet.append([column.header for column in document.columns])
    for cell in sheet[sheet.max_row]:
        cell.font = Font(bold=True)
        cell.alignment = Alignment(horizontal="center")
        cell.border = _BORDER

    for row in document.rows:
        sheet.append([_cell_value(value) for value in row])
        for cell, column in zip(sheet[sheet.max_row], document.columns):
            cell.border = _BORDER
            if column.numeric:
                cell.number_format = NUMBER_FORMAT

    if document.footer:
        sheet.append([])
        sheet.append([_cell_value(value) for value in document.footer])
        for cell, column in zip(sheet[sheet.max_row], document.columns):
            cell.font = Font(bold=True)
            if column.numeric:
                cell.number_format = NUMBER_FORMAT

    for index, column in enumerate(document.columns, start=1):
        sheet.column_dimensions[get_column_letter(index)].width = column.width

    buffer = BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def item_report_document(rows: Sequence[ItemReportRow]) -> TableDocument:
    return TableDocument(
        title="Stock Report",
        columns=[
            Column("Sl", 6),
            Column("Item Name", 30),
            Column("Available", 12, numeric=True),
            Column("Rate", 12, numeric=True),
            Column("Sold", 12, numeric=True),
        ],
        rows=[
            [index, row.item_name, row.available_qty, row.selling_rate, row.sold_qty]
            for index, row in enumerate(rows, start=1)
        ],
    )


def sales_report_document(rows: Sequence[SalesReportRow], date_from: date, date_to: date) -> TableDocument:
    grand_total = sum((row.total_price for row in rows), Decimal("0"))
    return TableDocument(
        title="Sales Report",
        subtitle=f"From: {date_from.isoformat()}   To: {date_to.isoformat()}",
        columns=[
            Column("Sl", 6),
            Column("Date", 12),
            Column("Item Name", 30),
            Column("Quantity", 12, numeric=True),
            Column("Rate", 12, numeric=True),
            Column("Amount", 14, numeric=True),
        ],
        rows=[
            [index, row.sale_date, row.item_name, row.quantity, row.selling_price, row.total_price]
            for index, row in enumerate(rows, start=1)
        ],
        footer=["", "", "Grand Total", None, None, grand_total],
    )


def ledger_document(entries: Sequence[LedgerEntryOut], customer_number: str) -> TableDocument:
    customer_name = entries[-1].customer_name if entries else ""
    return TableDocument(
        title="Customer Ledger",
        subtitle=f"{customer_name} ({customer_number})".strip(),
        columns=[
            Column("Sl", 6),
            Column("Date", 18),
            Column("Total", 14, numeric=True),
            Column("Credit", 14, numeric=True),
            Column("Balance", 14, numeric=True),
        ],
        rows=[
            [index, to_local(entry.created_at).replace(tzinfo=None), entry.total, entry.credit, entry.balance]
            for index, entry in enumerate(entries, start=1)
        ],
    )
