# pdf_export.py — ReelCut ver1.0
#
# This file handles all PDF output:
# - Summary page with reel comparison, totals and production balance
# - One page per pass of the chosen reel: plates across the usable width,
#   cut lengths and the waste band
# - Suggestions page: quantity rounding and leftover fillers
# - Lucida Sans Unicode fonts + monospace for numeric alignment

from reportlab.pdfgen import canvas
from reportlab.lib.pagesizes import A4, portrait, landscape
from reportlab.lib.colors import Color, black, white
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont, TTFError

from typing import Dict, List

from models import BoxId, BoxSpec, CutPlan
from io_utils import parse_bool
from planner import ProductionPlan

import logging
import os

logger = logging.getLogger(__name__)


# ------------------------------------------------------------
# mm → pt
# ------------------------------------------------------------
def mm_to_pt(mm: float) -> float:
    return mm * 72.0 / 25.4


# ------------------------------------------------------------
# Parse hex RGB like "F00", "FF0000"
# ------------------------------------------------------------
def parse_rgb(hex_str: str) -> Color:
    s = hex_str.strip().lstrip("#")
    if len(s) == 3:
        s = "".join(ch * 2 for ch in s)
    if len(s) != 6:
        return black
    try:
        r = int(s[0:2], 16) / 255
        g = int(s[2:4], 16) / 255
        b = int(s[4:6], 16) / 255
    except ValueError:
        return black
    return Color(r, g, b)


# ------------------------------------------------------------
# FONT LOADING (Lucida Sans Unicode)
# ------------------------------------------------------------
# Lucida Sans Unicode when the system has it, Helvetica otherwise.
# Numeric columns use the builtin Courier.

LUCIDA_NAME = "LucidaSansUnicode_ReelCut"
MONO_NAME = "Courier"

FONT_PATHS = [
    "/usr/share/fonts/truetype/lucida/LucidaSansUnicode.ttf",
    "/usr/share/fonts/truetype/LucidaSansUnicode.ttf",
    "/Library/Fonts/LucidaSansUnicode.ttf",
    "C:/Windows/Fonts/l_10646.ttf",
    "C:/Windows/Fonts/LSANS.TTF",
]


def register_fonts():
    global LUCIDA_NAME

    lucida_path = next((p for p in FONT_PATHS if os.path.isfile(p)), None)
    if lucida_path is None:
        LUCIDA_NAME = "Helvetica"
        return

    try:
        pdfmetrics.registerFont(TTFont(LUCIDA_NAME, lucida_path))
    except TTFError as e:
        logger.warning("could not load %s (%s), using Helvetica", lucida_path, e)
        LUCIDA_NAME = "Helvetica"


# ------------------------------------------------------------
# WHITE BACKGROUND LABEL FOR CUT LENGTHS
# ------------------------------------------------------------

def draw_cut_label(c: canvas.Canvas, text: str, x_pt: float, y_pt: float,
                   font_size: float, color: Color, mono: bool = False):
    """Cut length label on a white padded box."""
    font = MONO_NAME if mono else LUCIDA_NAME
    c.setFont(font, font_size)

    w = pdfmetrics.stringWidth(text, font, font_size)
    pad = font_size * 0.4
    box_w = w + pad * 2
    box_h = font_size * 1.5

    c.setFillColor(white)
    c.rect(x_pt - box_w / 2, y_pt - box_h / 2, box_w, box_h, fill=1, stroke=0)

    c.setFillColor(color)
    c.drawCentredString(x_pt, y_pt - font_size * 0.45, text)


# ------------------------------------------------------------
# PLATE RECTANGLES WITH LABEL
# ------------------------------------------------------------

def draw_plate_rect(c: canvas.Canvas,
                    x_pt: float, y_top_pt: float,
                    w_pt: float, h_pt: float,
                    color: Color,
                    label: str,
                    font_size: float = 8):
    c.setStrokeColor(color)
    c.rect(x_pt, y_top_pt - h_pt, w_pt, h_pt, stroke=1, fill=0)

    cx = x_pt + w_pt / 2
    cy = y_top_pt - h_pt / 2 - font_size * 0.4
    c.setFillColor(color)
    c.setFont(LUCIDA_NAME, font_size)
    c.drawCentredString(cx, cy, label)


# ------------------------------------------------------------
# PASS PAGE
# ------------------------------------------------------------

def draw_pass_page(c: canvas.Canvas,
                   page_width_pt: float, page_height_pt: float,
                   margin_mm: float,
                   reel_color: Color, plate_color: Color, waste_color: Color,
                   plan: CutPlan,
                   boxes: Dict[BoxId, BoxSpec],
                   pass_number: int,
                   total_passes: int):
    """
    Draws one pass: the reel runs left→right (plate length), its usable
    width top→bottom holds the plates side by side, then the waste band.
    """
    margin_pt = mm_to_pt(margin_mm)
    header_h_pt = mm_to_pt(25.0)

    usable_w_pt = page_width_pt - 2 * margin_pt
    usable_h_pt = page_height_pt - 2 * margin_pt - header_h_pt

    run_mm = max(plan.cut_lengths_mm)
    across_mm = plan.reel.usable_mm

    scale = min(usable_w_pt / run_mm, usable_h_pt / across_mm)

    x0_pt = margin_pt + (usable_w_pt - run_mm * scale) / 2
    y0_pt = page_height_pt - margin_pt - header_h_pt

    # HEADER
    c.setFont(LUCIDA_NAME, 14)
    c.setFillColor(reel_color)
    reel = plan.reel
    c.drawString(
        margin_pt, page_height_pt - margin_pt - 12,
        f"{reel.name}, usable {reel.usable_mm} mm, trim {reel.trim_mm} mm "
        f"(pass {pass_number}/{total_passes})"
    )
    c.setFont(LUCIDA_NAME, 10)
    lengths = " + ".join(f"{x} mm" for x in plan.cut_lengths_mm)
    c.drawString(
        margin_pt, page_height_pt - margin_pt - 30,
        f"Rows: {plan.rows}   Cut lengths: {lengths}   "
        f"Waste: {plan.waste_mm} mm ({plan.waste_percent:.1f}%, {plan.rating})   "
        f"Linear: {plan.linear_m:.2f} m"
    )

    # REEL OUTLINE
    c.setStrokeColor(reel_color)
    c.rect(x0_pt, y0_pt - across_mm * scale, run_mm * scale, across_mm * scale,
           stroke=1, fill=0)

    # PLATES
    y_mm = 0
    for slot in plan.slots:
        box = boxes.get(slot.box_id)
        name = box.name if box else slot.box_id
        for _ in range(slot.count):
            draw_plate_rect(
                c,
                x0_pt,
                y0_pt - y_mm * scale,
                slot.plate_length_mm * scale,
                slot.plate_height_mm * scale,
                plate_color,
                f"{name} ({slot.plate_length_mm}x{slot.plate_height_mm})",
                font_size=8,
            )
            y_mm += slot.plate_height_mm

    # WASTE BAND
    if plan.waste_mm > 0:
        c.setFillColor(waste_color)
        c.setStrokeColor(waste_color)
        c.rect(x0_pt, y0_pt - across_mm * scale, run_mm * scale, plan.waste_mm * scale,
               stroke=1, fill=1)

    # CUT LENGTH LABELS
    for length in plan.cut_lengths_mm:
        draw_cut_label(c, f"{length}", x0_pt + length * scale, y0_pt + 6, 7,
                       reel_color, mono=True)


# ------------------------------------------------------------
# TABLE DRAWING ENGINE (FULL-WIDTH, STACKED TABLES)
# ------------------------------------------------------------

def draw_table(
    c: canvas.Canvas,
    x0_pt: float, y0_pt: float,
    col_widths: List[float],
    row_height_pt: float,
    data: List[List[str]],
    font_size: float = 10,
    numeric_cols: List[int] = None
):
    """
    Grid table, top-left corner at (x0_pt, y0_pt). Numeric columns are
    right aligned in the monospace font.
    """
    if numeric_cols is None:
        numeric_cols = []

    for r, row in enumerate(data):
        y_top = y0_pt - r * row_height_pt

        for c_idx, w in enumerate(col_widths):
            x_left = x0_pt + sum(col_widths[:c_idx])

            c.setStrokeColor(black)
            c.setLineWidth(1)
            c.rect(x_left, y_top - row_height_pt, w, row_height_pt, stroke=1, fill=0)

            text = row[c_idx] if c_idx < len(row) and row[c_idx] is not None else ""
            font_name = MONO_NAME if c_idx in numeric_cols else LUCIDA_NAME
            c.setFont(font_name, font_size)
            c.setFillColor(black)

            ty = y_top - row_height_pt + (row_height_pt * 0.33)
            if c_idx in numeric_cols:
                tw = pdfmetrics.stringWidth(text, font_name, font_size)
                c.drawString(x_left + w - tw - 3, ty, text)
            else:
                c.drawString(x_left + 3, ty, text)


def _table_height(data: List[List[str]], row_height_pt: float) -> float:
    return row_height_pt * len(data) + mm_to_pt(8)


# ------------------------------------------------------------
# SUMMARY PAGE
# ------------------------------------------------------------

def draw_summary_page(
    c: canvas.Canvas,
    page_w_pt: float,
    page_h_pt: float,
    margin_mm: float,
    plan: ProductionPlan
):
    """
    Header
    Table 1: reel comparison
    Table 2: production balance on the chosen reel
    Table 3: single-lane baseline per reel
    Notes:   infeasible boxes, residual demand
    """
    margin_pt = mm_to_pt(margin_mm)
    y = page_h_pt - margin_pt

    c.setFont(LUCIDA_NAME, 20)
    c.setFillColor(black)
    c.drawString(margin_pt, y, "ReelCut production sheet")
    y -= mm_to_pt(8)
    c.setFont(LUCIDA_NAME, 11)
    c.drawString(
        margin_pt, y,
        f"Chosen reel: {plan.chosen.reel.name}   "
        f"Saved vs single-lane: {plan.saved_linear_m:.2f} m"
    )
    y -= mm_to_pt(8)

    table_width = page_w_pt - 2 * margin_pt
    row_h = mm_to_pt(7)

    # table 1: reels
    reel_data = [["Reel", "Passes", "Rows", "Plates", "Linear (m)", "Avg waste"]]
    for rid, t in plan.totals.items():
        mark = " *" if rid == plan.chosen_reel else ""
        reel_data.append([
            f"{plan.runs[rid].reel.name}{mark}",
            f"{t.passes}",
            f"{t.rows}",
            f"{t.total_plates}",
            f"{t.total_linear_m:.2f}",
            f"{t.weighted_waste_percent:.2f}%",
        ])
    draw_table(c, margin_pt, y, [table_width / 6] * 6, row_h, reel_data,
               font_size=9, numeric_cols=[1, 2, 3, 4, 5])
    y -= _table_height(reel_data, row_h)

    # table 2: balance
    bal_data = [["Box", "Requested", "Plates", "Boxes", "Surplus"]]
    for b in plan.balance:
        bal_data.append([
            b.box_id, f"{b.requested}", f"{b.produced_plates}",
            f"{b.produced_boxes}", f"{b.surplus}",
        ])
    draw_table(c, margin_pt, y, [table_width / 5] * 5, row_h, bal_data,
               font_size=9, numeric_cols=[1, 2, 3, 4])
    y -= _table_height(bal_data, row_h)

    # table 3: single-lane baseline, each box on its best reel
    base_data = [["Single-lane reel", "Boxes", "Linear (m)"]]
    for rid, rb in sorted(plan.baseline_totals.items()):
        base_data.append([rid, f"{rb.boxes}", f"{rb.linear_m:.2f}"])
    if len(base_data) > 1:
        draw_table(c, margin_pt, y, [table_width / 3] * 3, row_h, base_data,
                   font_size=9, numeric_cols=[1, 2])
        y -= _table_height(base_data, row_h)

    # NOTES
    c.setFont(LUCIDA_NAME, 10)
    c.setFillColor(black)
    notes = []
    if plan.unplaceable:
        notes.append("Fits no reel: " + ", ".join(plan.unplaceable))
    if plan.chosen.unplaceable:
        notes.append(f"Unplaceable on {plan.chosen.reel.name}: "
                     + ", ".join(plan.chosen.unplaceable))
    if plan.chosen.residual:
        notes.append("Pending plates after pass limit: " + ", ".join(
            f"{bid}={n}" for bid, n in plan.chosen.residual.items()))
    for line in notes:
        c.drawString(margin_pt, y, line)
        y -= mm_to_pt(6)


# ------------------------------------------------------------
# SUGGESTIONS PAGE
# ------------------------------------------------------------

def draw_suggestions_page(
    c: canvas.Canvas,
    page_w_pt: float,
    page_h_pt: float,
    margin_mm: float,
    plan: ProductionPlan
):
    margin_pt = mm_to_pt(margin_mm)
    y = page_h_pt - margin_pt
    table_width = page_w_pt - 2 * margin_pt
    row_h = mm_to_pt(6)

    c.setFont(LUCIDA_NAME, 16)
    c.setFillColor(black)
    c.drawString(margin_pt, y, "Quantity suggestions")
    y -= mm_to_pt(6)

    data = [["Box", "Ordered", "Suggested", "Diff", "Reel", "Rows", "Waste", "Reason"]]
    for bid, sugg in plan.suggestions.items():
        for s in sugg:
            data.append([
                bid, f"{s.original_quantity}", f"{s.suggested_quantity}",
                f"{s.difference:+d}", s.reel_id, f"{s.rows}",
                f"{s.waste_percent:.1f}%", s.reason,
            ])
    widths = [0.1, 0.08, 0.08, 0.07, 0.07, 0.07, 0.08, 0.45]
    draw_table(c, margin_pt, y, [table_width * w for w in widths], row_h, data,
               font_size=8, numeric_cols=[1, 2, 3, 5, 6])
    y -= _table_height(data, row_h)

    if not plan.fillers:
        return

    c.setFont(LUCIDA_NAME, 16)
    c.drawString(margin_pt, y, "Leftover fillers")
    y -= mm_to_pt(6)

    data = [["Pass", "Box", "Leftover (mm)", "Fits", "Remaining (mm)", "New length"]]
    for f in plan.fillers:
        data.append([
            f"{f.pass_index}", f.box_id, f"{f.leftover_mm}", f"{f.count}",
            f"{f.remaining_mm}", "yes" if f.adds_cut_length else "no",
        ])
    draw_table(c, margin_pt, y, [table_width / 6] * 6, row_h, data,
               font_size=8, numeric_cols=[0, 2, 3, 4])


# ------------------------------------------------------------
# FINAL PDF GENERATOR
# ------------------------------------------------------------

def generate_pdf(
    output_path: str,
    plan: ProductionPlan,
    boxes: Dict[BoxId, BoxSpec],
    cfg: Dict[str, str]
):
    """
    Generates the complete PDF:
      - optional summary page
      - pass pages of the chosen reel
      - optional suggestions page
    """
    register_fonts()

    gen_summary = parse_bool(cfg.get("generate-summary", "true"))
    gen_passes = parse_bool(cfg.get("generate-passes", "true"))
    gen_suggestions = parse_bool(cfg.get("generate-suggestions", "true"))

    reel_color = parse_rgb(cfg.get("reel-color", "000"))
    plate_color = parse_rgb(cfg.get("plate-color", "777"))
    waste_color = parse_rgb(cfg.get("waste-color", "F88"))

    margin_mm = float(cfg.get("margin", "10"))

    orientation = (cfg.get("orientation", "h") or "h").lower()
    pagesize = landscape(A4) if orientation == "h" else portrait(A4)
    page_w_pt, page_h_pt = pagesize

    c = canvas.Canvas(output_path, pagesize=pagesize)

    if gen_summary:
        draw_summary_page(c, page_w_pt, page_h_pt, margin_mm, plan)
        c.showPage()

    if gen_passes:
        plans = plan.chosen.plans
        for idx, p in enumerate(plans, start=1):
            draw_pass_page(
                c=c,
                page_width_pt=page_w_pt,
                page_height_pt=page_h_pt,
                margin_mm=margin_mm,
                reel_color=reel_color,
                plate_color=plate_color,
                waste_color=waste_color,
                plan=p,
                boxes=boxes,
                pass_number=idx,
                total_passes=len(plans),
            )
            c.showPage()

    if gen_suggestions and (plan.suggestions or plan.fillers):
        draw_suggestions_page(c, page_w_pt, page_h_pt, margin_mm, plan)
        c.showPage()

    c.save()
