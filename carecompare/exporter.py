"""Export helpers that render a plan's itemized estimate as DOCX or PDF.

The DOCX report embeds a bar chart of per-person out-of-pocket spend drawn with
matplotlib; the PDF report lists the same figures as text.
"""
from __future__ import annotations

import io
import logging
import re
import unicodedata

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
from docx import Document  # noqa: E402
from docx.shared import Inches  # noqa: E402
from fpdf import FPDF  # noqa: E402
from fpdf.enums import XPos, YPos  # noqa: E402

from carecompare.formatting import format_currency, percent  # noqa: E402
from carecompare.models import FullBreakdown, PersonBreakdown  # noqa: E402

logger = logging.getLogger(__name__)

DOCX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


def _summary_rows(breakdown: FullBreakdown) -> list[tuple[str, str]]:
    premium = breakdown.premium_breakdown
    oop = breakdown.oop_breakdown
    deductible = breakdown.deductible_breakdown
    return [
        ("Monthly premium", format_currency(premium.monthly_premium)),
        ("Annual premium", format_currency(premium.annual_premium)),
        ("Deductible paid", format_currency(deductible.total_paid)),
        ("Coinsurance paid", format_currency(breakdown.coinsurance_breakdown.total_paid)),
        ("Household out-of-pocket", format_currency(oop.final_family_oop)),
        ("Estimated annual total", format_currency(breakdown.grand_total)),
    ]


def _person_rows(person: PersonBreakdown) -> list[tuple[str, str]]:
    rows = [
        ("Copay charges", format_currency(person.exempt_total)),
        ("Deductible-applicable charges", format_currency(person.deductible_applicable_total)),
        ("Deductible paid", format_currency(person.deductible_paid)),
        (f"Coinsurance ({percent(person.coinsurance_rate)})", format_currency(person.coinsurance_paid)),
        ("Out-of-pocket", format_currency(person.out_of_pocket)),
    ]
    if person.note:
        rows.append(("Note", person.note))
    return rows


def _render_oop_chart(breakdown: FullBreakdown) -> bytes | None:
    """Return PNG bytes of per-person out-of-pocket spend, or None when there is nobody to plot."""

    if not breakdown.person_breakdowns:
        return None
    labels = [person.person_name or f"Person {index + 1}" for index, person in enumerate(breakdown.person_breakdowns)]
    values = [person.out_of_pocket for person in breakdown.person_breakdowns]
    fig, ax = plt.subplots(figsize=(5, 2.5))
    try:
        ax.bar(labels, values, color="#2563eb")
        ax.set_ylabel("Out-of-pocket ($)")
        ax.set_title("Estimated out-of-pocket by person")
        buf = io.BytesIO()
        fig.savefig(buf, format="png", bbox_inches="tight")
        return buf.getvalue()
    finally:
        plt.close(fig)


def _add_table(doc, rows: list[tuple[str, str]]) -> None:
    table = doc.add_table(rows=1, cols=2)
    header = table.rows[0].cells
    header[0].text = "Item"
    header[1].text = "Amount"
    for label, value in rows:
        cells = table.add_row().cells
        cells[0].text = label
        cells[1].text = value


def build_breakdown_docx(breakdown: FullBreakdown) -> bytes:
    """Return DOCX bytes with the plan summary, a chart and each person's itemized charges."""

    doc = Document()
    doc.add_heading(f"Cost estimate - {breakdown.plan_name or 'Untitled plan'}", level=1)
    doc.add_paragraph("Plan summary:", style="Intense Quote")
    _add_table(doc, _summary_rows(breakdown))

    chart = _render_oop_chart(breakdown)
    if chart:
        doc.add_paragraph("")
        doc.add_picture(io.BytesIO(chart), width=Inches(5))

    for person in breakdown.person_breakdowns:
        doc.add_heading(person.person_name or "Household member", level=2)
        _add_table(doc, _person_rows(person))
        for item in person.exempt + person.deductible_applicable:
            doc.add_paragraph(f"{item.label}: {item.calculation_note}", style="List Bullet")

    bio = io.BytesIO()
    doc.save(bio)
    return bio.getvalue()


def _safe_pdf_text(s: str) -> str:
    """Return a latin-1 string the built-in PDF fonts can render."""

    s = str(s)
    s = s.replace("—", "-").replace("–", "-")
    s = s.replace("‘", "'").replace("’", "'")
    s = s.replace("“", '"').replace("”", '"')
    s = s.replace("…", "...")
    s = unicodedata.normalize("NFKC", s)
    # FPDF cannot wrap very long unbroken tokens
    s = re.sub(r"(\S{40})", r"\1 ", s)
    return s.encode("latin-1", errors="ignore").decode("latin-1")


def _normalize_pdf_output(out: object) -> bytes:
    if isinstance(out, bytes):
        return out
    if isinstance(out, bytearray):
        return bytes(out)
    return str(out).encode("latin-1")


def build_breakdown_pdf(breakdown: FullBreakdown) -> bytes:
    """Return a text PDF with the same sections as the DOCX report."""

    pdf = FPDF()
    pdf.set_auto_page_break(auto=True, margin=12)
    pdf.add_page()

    def line(text: str, *, size: int = 10, style: str = "", height: int = 6) -> None:
        pdf.set_font("Helvetica", style=style, size=size)
        pdf.multi_cell(0, height, _safe_pdf_text(text), new_x=XPos.LMARGIN, new_y=YPos.NEXT)

    line(f"Cost estimate - {breakdown.plan_name or 'Untitled plan'}", size=14, style="B", height=8)
    pdf.ln(2)
    line("Plan summary:", size=11, style="B")
    for label, value in _summary_rows(breakdown):
        line(f"{label}: {value}")

    for person in breakdown.person_breakdowns:
        pdf.ln(4)
        line(person.person_name or "Household member", size=11, style="B")
        for label, value in _person_rows(person):
            line(f"{label}: {value}")
        for item in person.exempt + person.deductible_applicable:
            line(f"- {item.label}: {item.calculation_note}", size=9, height=5)

    return _normalize_pdf_output(pdf.output())
