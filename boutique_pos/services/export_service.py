# Overview: Binary exports: statistics workbook (xlsx), statistics report (PDF)
# and printable barcode label sheets (PDF).

from __future__ import annotations

from io import BytesIO

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from reportlab.graphics.barcode.code128 import Code128
from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch, mm
from reportlab.pdfgen import canvas
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from ..formatting import format_currency
from ..time_utils import utcnow


XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
PDF_MIMETYPE = "application/pdf"

HEADER_COLOR = "3B82F6"

# Label sheet geometry (A4, 3 x 8 labels of 60 x 30 mm)
LABEL_COLUMNS = 3
LABEL_ROWS = 8
LABEL_WIDTH = 60 * mm
LABEL_HEIGHT = 30 * mm
LABELS_TOP_MARGIN = 20 * mm
BAR_HEIGHT = 12 * mm


# ---------------------------------------------------------------------------
# Excel
# ---------------------------------------------------------------------------

_header_font = Font(bold=True, color="FFFFFF", size=11)
_header_fill = PatternFill(start_color=HEADER_COLOR, end_color=HEADER_COLOR, fill_type="solid")
_title_font = Font(bold=True, size=14)
_date_font = Font(italic=True, size=10, color="666666")
_thin_border = Border(
    left=Side(style="thin"),
    right=Side(style="thin"),
    top=Side(style="thin"),
    bottom=Side(style="thin"),
)


def _write_sheet(ws, title: str, subtitle: str, headers: list[str], rows: list[list]) -> None:
    width = max(len(headers), 2)

    ws.merge_cells(start_row=1, start_column=1, end_row=1, end_column=width)
    title_cell = ws.cell(row=1, column=1, value=title)
    title_cell.font = _title_font
    title_cell.alignment = Alignment(horizontal="center")

    ws.merge_cells(start_row=2, start_column=1, end_row=2, end_column=width)
    date_cell = ws.cell(row=2, column=1, value=subtitle)
    date_cell.font = _date_font
    date_cell.alignment = Alignment(horizontal="center")

    header_row = 4
    for col_idx, header in enumerate(headers, 1):
        cell = ws.cell(row=header_row, column=col_idx, value=header)
        cell.font = _header_font
        cell.fill = _header_fill
        cell.alignment = Alignment(horizontal="center")
        cell.border = _thin_border

    for row_idx, row in enumerate(rows, header_row + 1):
        for col_idx, value in enumerate(row, 1):
            cell = ws.cell(row=row_idx, column=col_idx, value=value)
            cell.border = _thin_border
            if isinstance(value, (int, float)):
                cell.alignment = Alignment(horizontal="right")
                if isinstance(value, float):
                    cell.number_format = "#,##0.00"
            else:
                cell.alignment = Alignment(horizontal="left")

    # Merged title rows are skipped when sizing columns
    for col_idx in range(1, len(headers) + 1):
        letter = get_column_letter(col_idx)
        lengths = [
            len(str(ws.cell(row=r, column=col_idx).value))
            for r in range(header_row, header_row + len(rows) + 1)
            if ws.cell(row=r, column=col_idx).value is not None
        ]
        ws.column_dimensions[letter].width = min(max(lengths, default=8) + 2, 50)


def build_statistics_workbook(stats: dict, *, shop_name: str, currency: str) -> BytesIO:
    """
    Workbook with Summary, Daily Sales, Top Products, Category Analysis and
    Payment Methods sheets, built from admin_statistics() output.
    """
    period = stats["period"]
    subtitle = (
        f"{period['start'][:10]} to {period['end'][:10]} | "
        f"Generated: {utcnow().strftime('%Y-%m-%d %H:%M:%S')} UTC"
    )
    summary = stats["summary"]

    wb = Workbook()

    ws = wb.active
    ws.title = "Summary"
    _write_sheet(ws, f"{shop_name} - Sales Summary", subtitle, ["Metric", "Value"], [
        [f"Total Revenue ({currency})", summary["totalRevenue"]],
        ["Total Transactions", summary["totalTransactions"]],
        [f"Average Order Value ({currency})", summary["avgOrderValue"]],
        [f"Total Discounts ({currency})", summary["totalDiscounts"]],
        ["Items Sold", summary["itemsSold"]],
        ["Active Staff", summary["activeStaff"]],
        ["Revenue Change (%)", summary["revenueChange"]],
        ["Transaction Change (%)", summary["transactionChange"]],
        ["Average Order Change (%)", summary["avgOrderChange"]],
    ])

    _write_sheet(
        wb.create_sheet("Daily Sales"), "Daily Sales", subtitle,
        ["Date", f"Revenue ({currency})", "Transactions"],
        [[d["date"], d["revenue"], d["transactions"]] for d in stats["dailyData"]],
    )
    _write_sheet(
        wb.create_sheet("Top Products"), "Top Products", subtitle,
        ["Rank", "Product", "Barcode", "Quantity Sold", f"Revenue ({currency})"],
        [
            [i, p["name"], p["barcode"], p["quantity"], p["revenue"]]
            for i, p in enumerate(stats["topProducts"], 1)
        ],
    )
    _write_sheet(
        wb.create_sheet("Category Analysis"), "Category Analysis", subtitle,
        ["Category", "Items Sold", f"Revenue ({currency})", "Share (%)"],
        [[c["name"], c["items_sold"], c["revenue"], c["percentage"]] for c in stats["categories"]],
    )
    _write_sheet(
        wb.create_sheet("Payment Methods"), "Payment Methods", subtitle,
        ["Method", "Transactions", f"Revenue ({currency})", "Share (%)"],
        [
            [m["method"].upper(), m["count"], m["revenue"], m["percentage"]]
            for m in stats["paymentMethods"]
        ],
    )

    output = BytesIO()
    wb.save(output)
    output.seek(0)
    return output


# ---------------------------------------------------------------------------
# PDF report
# ---------------------------------------------------------------------------

def _table(data: list[list], col_widths: list[float], header_color: str = "#3B82F6") -> Table:
    table = Table(data, colWidths=col_widths, repeatRows=1)
    table.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor(header_color)),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.whitesmoke),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), 9),
        ("ALIGN", (0, 0), (-1, -1), "LEFT"),
        ("ALIGN", (1, 1), (-1, -1), "RIGHT"),
        ("BOTTOMPADDING", (0, 0), (-1, 0), 8),
        ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
        ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, colors.HexColor("#F3F4F6")]),
    ]))
    return table


def build_statistics_pdf(stats: dict, *, shop_name: str, currency: str) -> BytesIO:
    output = BytesIO()
    doc = SimpleDocTemplate(
        output,
        pagesize=A4,
        title=f"{shop_name} Sales Report",
        leftMargin=0.75 * inch,
        rightMargin=0.75 * inch,
    )
    styles = getSampleStyleSheet()
    title_style = ParagraphStyle(
        "ReportTitle",
        parent=styles["Heading1"],
        fontSize=20,
        textColor=colors.HexColor("#3B82F6"),
        spaceAfter=6,
        alignment=TA_CENTER,
    )
    heading_style = ParagraphStyle(
        "ReportHeading",
        parent=styles["Heading2"],
        fontSize=13,
        textColor=colors.HexColor("#1F2937"),
        spaceBefore=16,
        spaceAfter=8,
    )
    period = stats["period"]
    summary = stats["summary"]

    def cur(value):
        return format_currency(value, currency)

    story = [
        Paragraph(f"{shop_name} Sales Report", title_style),
        Paragraph(
            f"{period['start'][:10]} to {period['end'][:10]} &middot; "
            f"generated {utcnow().strftime('%Y-%m-%d %H:%M')} UTC",
            styles["Normal"],
        ),
        Spacer(1, 0.2 * inch),
        Paragraph("Summary", heading_style),
        _table([
            ["Metric", "Value", "Change"],
            ["Total Revenue", cur(summary["totalRevenue"]), f"{summary['revenueChange']:+.2f}%"],
            ["Transactions", str(summary["totalTransactions"]), f"{summary['transactionChange']:+.2f}%"],
            ["Average Order", cur(summary["avgOrderValue"]), f"{summary['avgOrderChange']:+.2f}%"],
            ["Discounts", cur(summary["totalDiscounts"]), ""],
            ["Items Sold", str(summary["itemsSold"]), ""],
            ["Active Staff", str(summary["activeStaff"]), ""],
        ], [2.5 * inch, 2 * inch, 1.5 * inch]),
        Paragraph("Payment Methods", heading_style),
        _table(
            [["Method", "Transactions", "Revenue", "Share"]] + [
                [m["method"].upper(), str(m["count"]), cur(m["revenue"]), f"{m['percentage']:.2f}%"]
                for m in stats["paymentMethods"]
            ],
            [1.5 * inch, 1.5 * inch, 2 * inch, 1 * inch],
            header_color="#10B981",
        ),
    ]

    if stats["topProducts"]:
        story += [
            Paragraph("Top Products", heading_style),
            _table(
                [["Product", "Qty", "Revenue"]] + [
                    [p["name"][:40], str(p["quantity"]), cur(p["revenue"])]
                    for p in stats["topProducts"]
                ],
                [3.5 * inch, 1 * inch, 1.5 * inch],
            ),
        ]
    if stats["categories"]:
        story += [
            Paragraph("Categories", heading_style),
            _table(
                [["Category", "Items", "Revenue", "Share"]] + [
                    [c["name"], str(c["items_sold"]), cur(c["revenue"]), f"{c['percentage']:.2f}%"]
                    for c in stats["categories"]
                ],
                [2.5 * inch, 1 * inch, 1.5 * inch, 1 * inch],
            ),
        ]

    active_days = [d for d in stats["dailyData"] if d["transactions"]]
    if active_days:
        story += [
            Paragraph("Daily Sales", heading_style),
            _table(
                [["Date", "Transactions", "Revenue"]] + [
                    [d["date"], str(d["transactions"]), cur(d["revenue"])] for d in active_days
                ],
                [2 * inch, 1.5 * inch, 2 * inch],
            ),
        ]

    doc.build(story)
    output.seek(0)
    return output


# ---------------------------------------------------------------------------
# Barcode labels
# ---------------------------------------------------------------------------

def _fit_code128(value: str, max_width: float) -> Code128:
    bar_width = 0.35 * mm
    symbol = Code128(value, barHeight=BAR_HEIGHT, barWidth=bar_width, humanReadable=False)
    while symbol.width > max_width and bar_width > 0.15 * mm:
        bar_width -= 0.05 * mm
        symbol = Code128(value, barHeight=BAR_HEIGHT, barWidth=bar_width, humanReadable=False)
    return symbol


def build_barcode_labels_pdf(codes: list[str], *, shop_name: str) -> BytesIO:
    """
    A4 label sheet: 3 columns x 8 rows of 60 x 30 mm Code128 labels, the
    printed code under each symbol and a footer with page numbers.
    """
    output = BytesIO()
    pdf = canvas.Canvas(output, pagesize=A4)
    page_width, page_height = A4
    per_page = LABEL_COLUMNS * LABEL_ROWS
    pages = max((len(codes) + per_page - 1) // per_page, 1)
    left = (page_width - LABEL_COLUMNS * LABEL_WIDTH) / 2
    generated = utcnow().strftime("%Y-%m-%d %H:%M")

    for page in range(pages):
        chunk = codes[page * per_page:(page + 1) * per_page]
        for i, code in enumerate(chunk):
            row, col = divmod(i, LABEL_COLUMNS)
            x = left + col * LABEL_WIDTH
            y = page_height - LABELS_TOP_MARGIN - (row + 1) * LABEL_HEIGHT

            # Cut guide
            pdf.setStrokeColor(colors.HexColor("#D1D5DB"))
            pdf.setLineWidth(0.3)
            pdf.rect(x, y, LABEL_WIDTH, LABEL_HEIGHT)

            pdf.setFillColor(colors.black)
            pdf.setFont("Helvetica", 6)
            pdf.drawCentredString(x + LABEL_WIDTH / 2, y + LABEL_HEIGHT - 4 * mm, shop_name[:40])

            symbol = _fit_code128(code, LABEL_WIDTH - 6 * mm)
            symbol.drawOn(pdf, x + (LABEL_WIDTH - symbol.width) / 2, y + 8 * mm)

            pdf.setFont("Helvetica-Bold", 9)
            pdf.drawCentredString(x + LABEL_WIDTH / 2, y + 3.5 * mm, code)

        pdf.setFont("Helvetica-Oblique", 8)
        pdf.setFillColor(colors.HexColor("#6B7280"))
        pdf.drawCentredString(
            page_width / 2,
            12 * mm,
            f"{shop_name} barcode labels | {len(codes)} labels | generated {generated} UTC "
            f"| page {page + 1} of {pages}",
        )
        pdf.showPage()

    pdf.save()
    output.seek(0)
    return output
