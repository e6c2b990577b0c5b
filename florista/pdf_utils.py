from __future__ import annotations

# =========================================
# pdf_utils.py
# Florista - PDF generation helpers
# =========================================
# Produces a simple, printable cost sheet for the finished product using ReportLab.
# =========================================

from io import BytesIO
from datetime import datetime

from reportlab.lib.pagesizes import letter
from reportlab.lib.units import inch
from reportlab.pdfgen import canvas

from florista.pricing import format_money, format_percent, format_quantity
from florista.preview_utils import Branding
from florista.workflow import FlowerData, ProductData


def cost_sheet_rows(flower: FlowerData, product: ProductData) -> list[tuple[str, str]]:
    fin = product.financials(flower)
    return [
        ("Flower", flower.name),
        ("Price per dozen", f"${format_money(flower.price_per_dozen)}"),
        ("Unit price", f"${format_money(flower.unit_price)}"),
        ("Flowers used", format_quantity(product.flower_quantity)),
        ("Total flower cost", f"${format_money(fin.total_flower_cost)}"),
        ("Sale price", f"${format_money(product.sale_price)}"),
        ("Profit", f"${format_money(fin.profit)}"),
        ("Margin", format_percent(fin.profit_margin)),
    ]


def build_cost_sheet_pdf_bytes(flower: FlowerData, product: ProductData,
                               branding: Branding | None = None) -> bytes:
    """
    Returns PDF bytes: product header, description, then the cost breakdown
    table from cost_sheet_rows().
    """
    branding = branding or Branding()
    buf = BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    width, height = letter

    # ---- Header
    margin = 0.6 * inch
    y = height - margin

    c.setFont("Helvetica-Bold", 16)
    c.drawString(margin, y, f"{branding.business_name} - Product Cost Sheet")
    y -= 0.28 * inch

    c.setFont("Helvetica", 10)
    c.drawString(margin, y, f"Product: {product.name}")
    c.drawRightString(width - margin, y, f"Created: {datetime.now().strftime('%m-%d-%Y %H:%M')}")
    y -= 0.30 * inch

    # ---- Description
    c.setFont("Helvetica-Bold", 12)
    c.drawString(margin, y, "Description")
    y -= 0.18 * inch

    c.setFont("Helvetica", 10)
    max_w = width - 2 * margin
    for para in product.description.splitlines():
        cur = ""
        for w in para.split():
            candidate = (cur + " " + w).strip()
            if cur and c.stringWidth(candidate, "Helvetica", 10) > max_w:
                c.drawString(margin, y, cur)
                y -= 0.16 * inch
                cur = w
            else:
                cur = candidate
        c.drawString(margin, y, cur)
        y -= 0.16 * inch
    y -= 0.16 * inch

    # ---- Breakdown table
    c.setFont("Helvetica-Bold", 12)
    c.drawString(margin, y, "Cost Breakdown")
    y -= 0.12 * inch

    c.setLineWidth(0.5)
    c.line(margin, y, width - margin, y)
    y -= 0.20 * inch

    col_value = width - margin
    for label, value in cost_sheet_rows(flower, product):
        bold = label in ("Profit", "Margin")
        c.setFont("Helvetica-Bold" if bold else "Helvetica", 10)
        c.drawString(margin, y, label)
        c.drawRightString(col_value, y, value)
        y -= 0.20 * inch

    # ---- Footer note
    c.setFont("Helvetica-Oblique", 8)
    c.drawString(margin, margin * 0.8, f"{branding.business_name} · Tel. {branding.phone}")

    c.showPage()
    c.save()

    buf.seek(0)
    return buf.read()
