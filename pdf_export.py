# pdf_export.py - boardcut ver1.0
#
# This file handles all PDF output:
# - Board pages with placed pieces, usable area and waste rectangles
# - Summary page with stacked tables (overview, boards, unplaced pieces)
# - Lucida Sans Unicode font when installed, Helvetica otherwise

from reportlab.pdfgen import canvas
from reportlab.lib.pagesizes import A4, portrait, landscape
from reportlab.lib.colors import Color, black, white
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont

from typing import Dict, List, Optional

from models import BoardPlan, PackingResult, Rect, board_kind
from summary import LayoutSummary, format_area_m2, format_percent
from io_utils import format_length, parse_bool

import logging
import os


log = logging.getLogger(__name__)


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


def lighten(color: Color, amount: float = 0.8) -> Color:
    """Blend toward white; used for waste fill."""
    return Color(
        color.red + (1 - color.red) * amount,
        color.green + (1 - color.green) * amount,
        color.blue + (1 - color.blue) * amount,
    )


# ------------------------------------------------------------
# FONT LOADING
# ------------------------------------------------------------

FONT_NAME = "Helvetica"
MONO_NAME = "Courier"

_LUCIDA_NAME = "LucidaSansUnicode_boardcut"
_LUCIDA_PATHS = [
    "/usr/share/fonts/truetype/lucida/LucidaSansUnicode.ttf",
    "/usr/share/fonts/truetype/LucidaSansUnicode.ttf",
    "/Library/Fonts/LucidaSansUnicode.ttf",
    "C:/Windows/Fonts/l_10646.ttf",
    "C:/Windows/Fonts/LSANS.TTF",
]


def register_fonts():
    """
    Register Lucida Sans Unicode if one of the known TTF paths exists,
    otherwise keep the builtin Helvetica. Numbers use builtin Courier.
    """
    global FONT_NAME

    for path in _LUCIDA_PATHS:
        if not os.path.isfile(path):
            continue
        try:
            pdfmetrics.registerFont(TTFont(_LUCIDA_NAME, path))
        except Exception as e:  # reportlab raises TTFError and plain IOError
            log.warning("could not load font %s: %s", path, e)
            continue
        FONT_NAME = _LUCIDA_NAME
        return

    FONT_NAME = "Helvetica"


# ------------------------------------------------------------
# PIECE RECTANGLES WITH LABEL
# ------------------------------------------------------------

def draw_item_rect(c: canvas.Canvas,
                   x_pt: float, y_top_pt: float,
                   w_pt: float, h_pt: float,
                   item_color: Color,
                   label: str,
                   sub_label: str = "",
                   font_size: float = 8):
    """
    Draw rectangle + centered label (and optional size line) for a placement.
    Labels that do not fit the width are shortened with '...'.
    """
    c.setStrokeColor(item_color)
    c.setFillColor(white)
    c.rect(x_pt, y_top_pt - h_pt, w_pt, h_pt, stroke=1, fill=1)

    if w_pt < font_size or h_pt < font_size:
        return

    text = fit_text(label, FONT_NAME, font_size, w_pt * 0.9)
    cx = x_pt + w_pt / 2
    cy = y_top_pt - h_pt / 2

    c.setFillColor(item_color)
    c.setFont(FONT_NAME, font_size)
    if sub_label and h_pt >= font_size * 3:
        c.drawCentredString(cx, cy + font_size * 0.2, text)
        c.setFont(MONO_NAME, font_size * 0.8)
        c.drawCentredString(cx, cy - font_size * 1.0,
                            fit_text(sub_label, MONO_NAME, font_size * 0.8, w_pt * 0.9))
    else:
        c.drawCentredString(cx, cy - font_size * 0.4, text)


def fit_text(text: str, font: str, font_size: float, max_w_pt: float) -> str:
    if pdfmetrics.stringWidth(text, font, font_size) <= max_w_pt:
        return text
    while text and pdfmetrics.stringWidth(text + "...", font, font_size) > max_w_pt:
        text = text[:-1]
    return text + "..." if text else ""


# ------------------------------------------------------------
# WASTE RECTANGLES + BOARD DRAWING
# ------------------------------------------------------------

def draw_waste_rect(c: canvas.Canvas,
                    r: Rect,
                    board_x0_pt: float,
                    board_y0_pt: float,
                    scale: float,
                    waste_color: Color):
    x_pt = board_x0_pt + r.x * scale
    y_pt_top = board_y0_pt - r.y * scale
    w_pt = r.w * scale
    h_pt = r.h * scale

    c.setStrokeColor(waste_color)
    c.setFillColor(lighten(waste_color))
    c.rect(x_pt, y_pt_top - h_pt, w_pt, h_pt, stroke=0, fill=1)


def draw_board_page(c: canvas.Canvas,
                    page_width_pt: float, page_height_pt: float,
                    margin_mm: float,
                    board_color: Color, item_color: Color, waste_color: Color,
                    generate_waste: bool,
                    plan: BoardPlan,
                    total_boards: int,
                    unit: str):
    """
    Draws:
      - Header
      - Board outline and usable area
      - Waste rectangles
      - Placements
    """

    margin_pt = mm_to_pt(margin_mm)
    header_h_pt = mm_to_pt(20.0)

    usable_w_pt = page_width_pt - 2 * margin_pt
    usable_h_pt = page_height_pt - 2 * margin_pt - header_h_pt

    board_w_mm = plan.width_mm
    board_h_mm = plan.height_mm

    scale = min(
        usable_w_pt / board_w_mm if board_w_mm > 0 else 1,
        usable_h_pt / board_h_mm if board_h_mm > 0 else 1
    )

    board_x0_pt = margin_pt + (usable_w_pt - board_w_mm * scale) / 2
    board_y0_pt = page_height_pt - margin_pt - header_h_pt

    # HEADER
    c.setFont(FONT_NAME, 14)
    c.setFillColor(board_color)
    c.setStrokeColor(board_color)

    header_text = (
        f"Board {plan.board_index + 1}/{total_boards} ({board_kind(plan)}), "
        f"size: {format_length(board_w_mm, unit)} x {format_length(board_h_mm, unit)} {unit}, "
        f"utilization: {format_percent(plan.utilization)}, "
        f"waste: {format_area_m2(plan.waste_area_mm2)}"
    )
    c.drawString(margin_pt, page_height_pt - margin_pt - 12, header_text)

    # BOARD OUTLINE
    c.setStrokeColor(board_color)
    c.rect(
        board_x0_pt,
        board_y0_pt - board_h_mm * scale,
        board_w_mm * scale,
        board_h_mm * scale,
        stroke=1,
        fill=0
    )

    # USABLE AREA (only differs from the outline when there is a margin)
    u = plan.usable_rect
    if (u.w, u.h) != (board_w_mm, board_h_mm):
        c.setDash(3, 3)
        c.rect(
            board_x0_pt + u.x * scale,
            board_y0_pt - (u.y + u.h) * scale,
            u.w * scale,
            u.h * scale,
            stroke=1,
            fill=0
        )
        c.setDash()

    # WASTE
    if generate_waste:
        for r in plan.waste_rects:
            draw_waste_rect(c, r, board_x0_pt, board_y0_pt, scale, waste_color)

    # PLACEMENTS
    for p in plan.placements:
        x_pt = board_x0_pt + p.x * scale
        y_top_pt = board_y0_pt - p.y * scale
        w_pt = p.w * scale
        h_pt = p.h * scale

        size = f"{format_length(p.w, unit)}x{format_length(p.h, unit)}"
        if p.rotated:
            size += " R"
        draw_item_rect(c, x_pt, y_top_pt, w_pt, h_pt, item_color, p.label, size, font_size=8)


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
    numeric_cols: Optional[List[int]] = None
):
    """
    Draws a table with a black grid; numeric columns are right aligned in
    monospace. x0_pt, y0_pt = top-left corner of table, data[0] is the header.
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
            font_name = MONO_NAME if c_idx in numeric_cols and r > 0 else FONT_NAME
            c.setFont(font_name, font_size)
            c.setFillColor(black)

            text = fit_text(text, font_name, font_size, w - 6)
            ty = y_top - row_height_pt + (row_height_pt * 0.33)

            if c_idx in numeric_cols:
                tw = pdfmetrics.stringWidth(text, font_name, font_size)
                c.drawString(x_left + w - tw - 3, ty, text)
            else:
                c.drawString(x_left + 3, ty, text)


# ------------------------------------------------------------
# SUMMARY PAGE
# ------------------------------------------------------------

def draw_summary_page(
    c: canvas.Canvas,
    page_w_pt: float,
    page_h_pt: float,
    margin_mm: float,
    result: PackingResult,
    summary: LayoutSummary,
    unit: str
):
    """
    Draws:
      Header
      Table 1: Overview
      Table 2: Boards
      Table 3: Unplaced pieces (if any)
    """

    margin_pt = mm_to_pt(margin_mm)
    y = page_h_pt - margin_pt

    c.setFont(FONT_NAME, 20)
    c.setFillColor(black)
    c.drawString(margin_pt, y, "boardcut layout summary")
    y -= mm_to_pt(15)

    table_width = page_w_pt - 2 * margin_pt
    row_h = mm_to_pt(7)

    # --------------------------------------------------------
    # TABLE 1 - OVERVIEW
    # --------------------------------------------------------
    overview = [
        ["Boards", "Stock boards", "Placements", "Unplaced", "Utilization", "Waste"],
        [
            str(summary.board_count),
            str(summary.stock_board_count),
            str(summary.placed_count),
            str(summary.unplaced_count),
            format_percent(summary.total_utilization),
            format_area_m2(summary.total_waste_area_mm2),
        ],
    ]
    draw_table(c, margin_pt, y, [table_width / 6] * 6, row_h, overview,
               font_size=9, numeric_cols=[0, 1, 2, 3, 4, 5])
    y -= row_h * len(overview) + mm_to_pt(10)

    # --------------------------------------------------------
    # TABLE 2 - BOARDS
    # --------------------------------------------------------
    board_rows = [["#", "Source", f"Size ({unit})", "Pieces", "Utilization", "Waste"]]
    for plan in result.boards:
        board_rows.append([
            str(plan.board_index + 1),
            board_kind(plan),
            f"{format_length(plan.width_mm, unit)} x {format_length(plan.height_mm, unit)}",
            str(len(plan.placements)),
            format_percent(plan.utilization),
            format_area_m2(plan.waste_area_mm2),
        ])

    max_rows = int((y - margin_pt) / row_h) - 1
    if len(board_rows) > max_rows > 1:
        board_rows = board_rows[:max_rows - 1] + [["...", "", "", "", "", ""]]

    draw_table(c, margin_pt, y, [table_width / 6] * 6, row_h, board_rows,
               font_size=9, numeric_cols=[0, 3, 4, 5])
    y -= row_h * len(board_rows) + mm_to_pt(10)

    # --------------------------------------------------------
    # TABLE 3 - UNPLACED
    # --------------------------------------------------------
    if not result.unplaced:
        return

    rows = [["Piece", f"Size ({unit})", "Qty", "Reason", "Message"]]
    for u in result.unplaced:
        rows.append([
            u.label or u.piece_id,
            f"{format_length(u.width_mm, unit)} x {format_length(u.height_mm, unit)}",
            str(u.quantity),
            u.reason,
            u.message,
        ])

    col_widths = [table_width * 0.15, table_width * 0.15, table_width * 0.08,
                  table_width * 0.1, table_width * 0.52]

    # continue on a new page when the table does not fit
    if y - row_h * len(rows) < margin_pt:
        c.showPage()
        y = page_h_pt - margin_pt
    draw_table(c, margin_pt, y, col_widths, row_h, rows, font_size=9, numeric_cols=[2])


# ------------------------------------------------------------
# FINAL PDF GENERATOR
# ------------------------------------------------------------

def generate_pdf(
    output_path: str,
    result: PackingResult,
    summary: LayoutSummary,
    cfg: Dict[str, str],
    unit: str = "mm"
):
    """
    Generates the complete PDF:
      - optional summary page
      - board pages
    """

    register_fonts()

    gen_summary = parse_bool(cfg.get("generate-summary", "true"))
    gen_waste = parse_bool(cfg.get("generate-waste", "true"))

    board_color = parse_rgb(cfg.get("board-color", "000"))
    item_color = parse_rgb(cfg.get("item-color", "246"))
    waste_color = parse_rgb(cfg.get("waste-color", "F00"))

    margin_mm = float(cfg.get("page-margin", "10"))

    orientation = (cfg.get("orientation", "h") or "h").lower()
    pagesize = landscape(A4) if orientation == "h" else portrait(A4)
    page_w_pt, page_h_pt = pagesize

    c = canvas.Canvas(output_path, pagesize=pagesize)

    if gen_summary:
        draw_summary_page(
            c=c,
            page_w_pt=page_w_pt,
            page_h_pt=page_h_pt,
            margin_mm=margin_mm,
            result=result,
            summary=summary,
            unit=unit
        )
        c.showPage()

    for plan in result.boards:
        draw_board_page(
            c=c,
            page_width_pt=page_w_pt,
            page_height_pt=page_h_pt,
            margin_mm=margin_mm,
            board_color=board_color,
            item_color=item_color,
            waste_color=waste_color,
            generate_waste=gen_waste,
            plan=plan,
            total_boards=len(result.boards),
            unit=unit
        )
        c.showPage()

    c.save()
    log.info("wrote %s (%d board pages)", output_path, len(result.boards))
