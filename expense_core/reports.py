"""Monthly expense report: structured summary plus a paginated PDF rendering."""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal
from functools import partial
from typing import Callable, Iterable, List, Optional, Tuple
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_LEFT
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from .aggregation import CategoryTotal, category_totals, filter_by_month, total_amount
from .categories import DEFAULT_REGISTRY, Category, CategoryRegistry
from .models import Expense

LOGGER = logging.getLogger(__name__)

REPORT_TITLE = "Monthly Expense Report"
EMPTY_NOTICE = "No expenses found for this month."

HEADER_BLUE = colors.Color(59 / 255, 130 / 255, 246 / 255)
HEADER_GREEN = colors.Color(16 / 255, 185 / 255, 129 / 255)
ROW_ALTERNATE = colors.Color(248 / 255, 250 / 255, 252 / 255)
TEXT_DARK = colors.Color(40 / 255, 40 / 255, 40 / 255)
TEXT_MUTED = colors.Color(100 / 255, 100 / 255, 100 / 255)
TEXT_FAINT = colors.Color(150 / 255, 150 / 255, 150 / 255)

PAGE_MARGIN = 20 * mm
FOOTER_OFFSET = 10 * mm


@dataclass(frozen=True)
class ReportRow:
    date: date
    description: str
    category: Category
    amount: Decimal


@dataclass(frozen=True)
class MonthlyReport:
    month: str
    year: str
    generated_at: datetime
    rows: List[ReportRow] = field(default_factory=list)
    total: Decimal = Decimal("0.00")
    breakdown: List[CategoryTotal] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.rows)

    @property
    def is_empty(self) -> bool:
        return not self.rows


@dataclass(frozen=True)
class ReportDocument:
    """Rendered report ready to be written by the caller."""

    filename: str
    content: bytes
    page_count: int
    sections: Tuple[str, ...]

    def save(self, writer: Callable[[str, bytes], None]) -> None:
        writer(self.filename, self.content)


def report_filename(month: str, year: str, extension: str = "pdf") -> str:
    return f"expense-report-{month}-{year}.{extension}"


def format_report_date(value: date) -> str:
    return f"{value.month}/{value.day}/{value.year}"


def format_money(amount: Decimal, symbol: str = "$") -> str:
    return f"{symbol}{amount:.2f}"


def build_monthly_report(
    expenses: Iterable[Expense],
    month: str,
    year: str,
    *,
    registry: CategoryRegistry = DEFAULT_REGISTRY,
    now: Optional[datetime] = None,
) -> MonthlyReport:
    """Filter to one month and compute the summary, item rows and breakdown.

    Rows keep the collection's insertion order. An empty month (or an empty
    collection) yields a report with no rows and no breakdown.
    """
    generated_at = now or datetime.now(timezone.utc)
    monthly = filter_by_month(expenses, month, year)
    if not monthly:
        return MonthlyReport(month=month, year=year, generated_at=generated_at)

    rows = [
        ReportRow(
            date=expense.date,
            description=expense.description,
            category=registry.resolve(expense.category),
            amount=expense.amount,
        )
        for expense in monthly
    ]
    return MonthlyReport(
        month=month,
        year=year,
        generated_at=generated_at,
        rows=rows,
        total=total_amount(monthly),
        breakdown=category_totals(monthly, registry),
    )


class _FooterCanvas(canvas.Canvas):
    """Canvas that defers page output until the total page count is known."""

    def __init__(
        self,
        *args,
        footer_text: str = "",
        draw_footer: bool = True,
        on_save: Optional[Callable[[int], None]] = None,
        **kwargs,
    ) -> None:
        canvas.Canvas.__init__(self, *args, **kwargs)
        self._footer_text = footer_text
        self._draw_footer = draw_footer
        self._on_save = on_save
        self._saved_page_states: List[dict] = []

    def showPage(self) -> None:
        self._saved_page_states.append(dict(self.__dict__))
        self._startPage()

    def save(self) -> None:
        page_count = len(self._saved_page_states)
        for state in self._saved_page_states:
            self.__dict__.update(state)
            if self._draw_footer:
                self._render_footer(page_count)
            canvas.Canvas.showPage(self)
        if self._on_save is not None:
            self._on_save(page_count)
        canvas.Canvas.save(self)

    def _render_footer(self, page_count: int) -> None:
        width, _height = self._pagesize
        self.saveState()
        self.setFont("Helvetica", 9)
        self.setFillColor(TEXT_MUTED)
        self.drawString(PAGE_MARGIN, FOOTER_OFFSET, self._footer_text)
        self.drawRightString(
            width - PAGE_MARGIN,
            FOOTER_OFFSET,
            f"Page {self.getPageNumber()} of {page_count}",
        )
        self.restoreState()


def _table_style(header_color: colors.Color, amount_column: int) -> TableStyle:
    return TableStyle(
        [
            ("BACKGROUND", (0, 0), (-1, 0), header_color),
            ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
            ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
            ("FONTSIZE", (0, 0), (-1, -1), 10),
            ("TOPPADDING", (0, 0), (-1, -1), 5),
            ("BOTTOMPADDING", (0, 0), (-1, -1), 5),
            ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
            ("ALIGN", (amount_column, 0), (amount_column, -1), "RIGHT"),
            ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, ROW_ALTERNATE]),
            ("LINEBELOW", (0, -1), (-1, -1), 0.25, colors.lightgrey),
        ]
    )


def render_pdf(report: MonthlyReport, *, currency_symbol: str = "$") -> ReportDocument:
    """Lay out ``report`` as an A4 PDF and return it in memory."""
    styles = getSampleStyleSheet()
    title_style = ParagraphStyle("ReportTitle", parent=styles["Title"], alignment=TA_LEFT, textColor=TEXT_DARK)
    subtitle_style = ParagraphStyle("ReportSubtitle", parent=styles["Normal"], fontSize=12, textColor=TEXT_MUTED)
    heading_style = ParagraphStyle("ReportHeading", parent=styles["Heading3"], fontSize=14, textColor=TEXT_DARK)
    body_style = ParagraphStyle("ReportBody", parent=styles["Normal"], fontSize=12, leading=16, textColor=TEXT_DARK)
    notice_style = ParagraphStyle("ReportNotice", parent=styles["Normal"], fontSize=14, textColor=TEXT_FAINT)
    cell_style = ParagraphStyle("ReportCell", parent=styles["Normal"], fontSize=10, leading=12)

    story: list = [
        Paragraph(REPORT_TITLE, title_style),
        Paragraph(escape(f"{report.month} {report.year}"), subtitle_style),
        Spacer(1, 8 * mm),
    ]
    sections: List[str] = ["header"]

    if report.is_empty:
        story.append(Paragraph(EMPTY_NOTICE, notice_style))
        sections.append("notice")
    else:
        story.extend(
            [
                Paragraph("Summary:", heading_style),
                Paragraph(f"Total Amount: {escape(format_money(report.total, currency_symbol))}", body_style),
                Paragraph(f"Total Transactions: {report.count}", body_style),
                Spacer(1, 6 * mm),
            ]
        )
        sections.append("summary")

        item_data: list = [["Date", "Description", "Category", "Amount"]]
        for row in report.rows:
            item_data.append(
                [
                    format_report_date(row.date),
                    Paragraph(escape(row.description), cell_style),
                    row.category.name,
                    format_money(row.amount, currency_symbol),
                ]
            )
        items = Table(item_data, colWidths=[28 * mm, 72 * mm, 40 * mm, 30 * mm], repeatRows=1)
        items.setStyle(_table_style(HEADER_BLUE, amount_column=3))
        story.append(items)
        sections.append("expenses")

        if report.breakdown:
            breakdown_data: list = [["Category", "Transactions", "Amount"]]
            for entry in report.breakdown:
                breakdown_data.append(
                    [entry.category.name, str(entry.count), format_money(entry.total, currency_symbol)]
                )
            breakdown = Table(breakdown_data, colWidths=[80 * mm, 40 * mm, 50 * mm], repeatRows=1)
            breakdown.setStyle(_table_style(HEADER_GREEN, amount_column=2))
            story.extend(
                [Spacer(1, 8 * mm), Paragraph("Category Breakdown:", heading_style), breakdown]
            )
            sections.append("category_breakdown")
        sections.append("footer")

    page_counts: List[int] = []
    canvasmaker = partial(
        _FooterCanvas,
        footer_text=f"Generated on {format_report_date(report.generated_at.date())}",
        draw_footer=not report.is_empty,
        on_save=page_counts.append,
    )

    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        leftMargin=PAGE_MARGIN,
        rightMargin=PAGE_MARGIN,
        topMargin=PAGE_MARGIN,
        bottomMargin=PAGE_MARGIN,
        title=f"{REPORT_TITLE} - {report.month} {report.year}",
    )
    doc.build(story, canvasmaker=canvasmaker)

    page_count = page_counts[0] if page_counts else 1
    LOGGER.info(
        "Rendered report for %s %s: %d rows, %d page(s)",
        report.month,
        report.year,
        report.count,
        page_count,
    )
    return ReportDocument(
        filename=report_filename(report.month, report.year),
        content=buffer.getvalue(),
        page_count=page_count,
        sections=tuple(sections),
    )


def generate_monthly_report(
    expenses: Iterable[Expense],
    month: str,
    year: str,
    *,
    registry: CategoryRegistry = DEFAULT_REGISTRY,
    now: Optional[datetime] = None,
    currency_symbol: str = "$",
) -> ReportDocument:
    report = build_monthly_report(expenses, month, year, registry=registry, now=now)
    return render_pdf(report, currency_symbol=currency_symbol)
