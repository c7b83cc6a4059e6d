# packing.py - boardcut ver1.0
#
# Max-Rects multi-board packer.
# Consumes stock boards in priority order before opening the unlimited
# default board, places pieces largest-first with best short side fit,
# and reports every unit it could not place as data (never raises).

import logging
import math
import uuid
from collections import deque
from dataclasses import replace
from typing import Callable, Deque, List, Optional, Sequence, Tuple

from models import (
    BoardConfig, BoardPlan, InternalBoard, NormalizedPiece, PackingResult,
    Placement, Rect, StockPiece, UnplacedPiece,
    REASON_INVALID, REASON_LIMIT, REASON_TOO_LARGE
)
from geometry import (
    area, expand_used_rect, find_best_candidate, normalize_waste_rects,
    split_free_rects
)
from rotation import fits_within


log = logging.getLogger(__name__)

DEFAULT_MAX_PLACEMENTS = 5000
DEFAULT_MAX_WASTE_RECTS = 250

MSG_INVALID_BOARD = "Invalid board (non-positive dimensions)."
MSG_NO_USABLE_AREA = "No usable area (margin too large)."
MSG_INVALID_PIECE = "Invalid dimensions or quantity."
MSG_TOO_LARGE = "Larger than every available board."
MSG_NOT_PLACEABLE = "Cannot be placed (too large for the remaining boards)."


def _limit_message(max_placements: int) -> str:
    return f"Quantity too high for a fluid computation (limit: {max_placements} placements)."


def _unplaced(piece: NormalizedPiece, quantity: int, reason: str, message: str) -> UnplacedPiece:
    return UnplacedPiece(
        piece_id=piece.id,
        label=piece.label,
        width_mm=piece.width_mm,
        height_mm=piece.height_mm,
        quantity=quantity,
        reason=reason,
        message=message
    )


def _new_id() -> str:
    return uuid.uuid4().hex


# -------------------------------------------------------------
# Input preparation
# -------------------------------------------------------------

def usable_size(width_mm: float, height_mm: float, margin_mm: float) -> Tuple[float, float]:
    return (
        max(0, width_mm - margin_mm * 2),
        max(0, height_mm - margin_mm * 2),
    )


def expand_stock(stock: Sequence[StockPiece]) -> Deque[Tuple[float, float]]:
    """
    One queue entry per stock unit, in list order. Entries with
    non-positive sides contribute nothing.
    """
    queue: Deque[Tuple[float, float]] = deque()
    for s in stock:
        if s.width_mm > 0 and s.height_mm > 0:
            for _ in range(max(0, int(s.quantity))):
                queue.append((s.width_mm, s.height_mm))
    return queue


def largest_usable_size(
    board: BoardConfig,
    stock: Sequence[StockPiece],
    margin_mm: float
) -> Tuple[float, float]:
    """
    Per-axis maximum of the usable sizes of the default board and every
    stock type. Width and height may come from different boards.
    """
    max_w, max_h = usable_size(board.width_mm, board.height_mm, margin_mm)
    for s in stock:
        sw, sh = usable_size(s.width_mm, s.height_mm, margin_mm)
        if sw > 0 and sh > 0:
            max_w = max(max_w, sw)
            max_h = max(max_h, sh)
    return max_w, max_h


def filter_pieces(
    pieces: Sequence[NormalizedPiece],
    max_w: float,
    max_h: float,
    global_rotation_allowed: bool
) -> Tuple[List[NormalizedPiece], List[UnplacedPiece]]:
    valid: List[NormalizedPiece] = []
    unplaced: List[UnplacedPiece] = []

    for p in pieces:
        if p.count <= 0 or p.width_mm <= 0 or p.height_mm <= 0:
            unplaced.append(_unplaced(p, max(0, p.count), REASON_INVALID, MSG_INVALID_PIECE))
            continue

        allow_rotate = global_rotation_allowed and p.can_rotate
        if not fits_within(p.width_mm, p.height_mm, max_w, max_h, allow_rotate):
            unplaced.append(_unplaced(p, p.count, REASON_TOO_LARGE, MSG_TOO_LARGE))
            continue

        valid.append(p)

    return valid, unplaced


def throttle_quantities(
    pieces: Sequence[NormalizedPiece],
    max_placements: int
) -> Tuple[List[NormalizedPiece], List[UnplacedPiece]]:
    """
    Scales every count by max_placements / total when the total is over the
    limit, keeping at least one unit per piece type. Returns new pieces and
    one 'limit' record per piece that lost units.
    """
    total = sum(p.count for p in pieces)
    if total <= max_placements:
        return list(pieces), []

    ratio = max_placements / total
    kept: List[NormalizedPiece] = []
    dropped: List[UnplacedPiece] = []

    for p in pieces:
        keep = max(1, math.floor(p.count * ratio))
        if keep < p.count:
            dropped.append(_unplaced(p, p.count - keep, REASON_LIMIT, _limit_message(max_placements)))
            kept.append(replace(p, count=keep))
        else:
            kept.append(p)

    log.debug("throttled %d requested placements to ratio %.4f", total, ratio)
    return kept, dropped


def sort_pieces(pieces: Sequence[NormalizedPiece]) -> List[NormalizedPiece]:
    """Area descending, then longest side descending. Stable."""
    return sorted(
        pieces,
        key=lambda p: (p.width_mm * p.height_mm, max(p.width_mm, p.height_mm)),
        reverse=True
    )


# -------------------------------------------------------------
# Board helpers
# -------------------------------------------------------------

def place_on_board(
    board: InternalBoard,
    piece: NormalizedPiece,
    allow_rotate: bool,
    kerf_mm: float,
    new_id: Callable[[], str]
) -> bool:
    """
    Seats one unit of piece on board if any free rect can take it.
    The stored placement keeps the raw size; the free partition loses the
    kerf-expanded rect.
    """
    cand = find_best_candidate(board.free_rects, piece.width_mm, piece.height_mm, allow_rotate)
    if cand is None:
        return False

    container = board.free_rects[cand.rect_index]
    placed_rect = Rect(cand.x, cand.y, cand.w, cand.h)
    used_rect = expand_used_rect(placed_rect, container, kerf_mm)

    board.placements.append(
        Placement(
            id=new_id(),
            piece_id=piece.id,
            label=piece.label,
            x=placed_rect.x,
            y=placed_rect.y,
            w=placed_rect.w,
            h=placed_rect.h,
            rotated=cand.rotated,
            board_index=board.board_index
        )
    )
    board.used_area_mm2 += placed_rect.w * placed_rect.h
    board.free_rects = split_free_rects(board.free_rects, used_rect)
    return True


def compute_utilization(used_area_mm2: float, board_area_mm2: float) -> float:
    if board_area_mm2 <= 0:
        return 0.0
    return max(0.0, min(100.0, used_area_mm2 / board_area_mm2 * 100))


def _invalid_result(pieces: Sequence[NormalizedPiece], message: str) -> PackingResult:
    return PackingResult(
        boards=[],
        unplaced=[_unplaced(p, max(0, p.count), REASON_INVALID, message) for p in pieces],
        total_utilization=0.0,
        total_used_area_mm2=0.0,
        total_waste_area_mm2=0.0
    )


def _build_plans(boards: List[InternalBoard], max_waste_rects: int) -> List[BoardPlan]:
    """Drops empty boards, reindexes the rest densely from 0."""
    plans: List[BoardPlan] = []
    for b in boards:
        if b.is_empty():
            continue

        index = len(plans)
        placements = [replace(p, board_index=index) for p in b.placements]
        board_area = area(b.board_rect)

        plans.append(
            BoardPlan(
                board_index=index,
                placements=placements,
                waste_rects=normalize_waste_rects(b.free_rects, max_waste_rects),
                utilization=compute_utilization(b.used_area_mm2, board_area),
                usable_rect=b.usable_rect,
                used_area_mm2=b.used_area_mm2,
                waste_area_mm2=max(0, board_area - b.used_area_mm2),
                width_mm=b.width_mm,
                height_mm=b.height_mm,
                is_stock=b.is_stock
            )
        )
    return plans


# -------------------------------------------------------------
# Engine
# -------------------------------------------------------------

def pack_max_rects(
    board: BoardConfig,
    stock: Sequence[StockPiece],
    pieces: Sequence[NormalizedPiece],
    global_rotation_allowed: bool = True,
    max_placements: int = DEFAULT_MAX_PLACEMENTS,
    max_waste_rects_per_board: int = DEFAULT_MAX_WASTE_RECTS,
    id_factory: Optional[Callable[[], str]] = None
) -> PackingResult:
    """
    Packs `pieces` onto stock boards (consumed first, in order) and then
    onto as many default boards as needed.

    Deterministic for a given input; `id_factory` only affects placement ids.
    """
    new_id = id_factory or _new_id

    # --- BOARD VALIDATION ---
    if board.width_mm <= 0 or board.height_mm <= 0:
        return _invalid_result(pieces, MSG_INVALID_BOARD)

    margin_mm = max(0, board.margin_mm)
    kerf_mm = max(0, board.kerf_mm)

    default_w, default_h = usable_size(board.width_mm, board.height_mm, margin_mm)
    if default_w <= 0 or default_h <= 0:
        return _invalid_result(pieces, MSG_NO_USABLE_AREA)

    # --- STOCK / PIECES ---
    stock_queue = expand_stock(stock)
    max_w, max_h = largest_usable_size(board, stock, margin_mm)

    valid, unplaced = filter_pieces(pieces, max_w, max_h, global_rotation_allowed)
    valid, limited = throttle_quantities(valid, max_placements)
    unplaced.extend(limited)
    ordered = sort_pieces(valid)

    boards: List[InternalBoard] = []

    def open_board() -> InternalBoard:
        if stock_queue:
            w, h = stock_queue.popleft()
            is_stock = True
        else:
            w, h = board.width_mm, board.height_mm
            is_stock = False
        b = InternalBoard(len(boards), w, h, margin_mm, is_stock)
        boards.append(b)
        log.debug("opened %r", b)
        return b

    # --- PLACEMENT LOOP ---
    for piece in ordered:
        allow_rotate = global_rotation_allowed and piece.can_rotate

        for i in range(piece.count):
            placed = any(
                place_on_board(b, piece, allow_rotate, kerf_mm, new_id)
                for b in boards
            )

            # open new boards one at a time; stock first, then one default
            attempts = 0
            max_attempts = len(stock_queue) + 1
            while not placed and attempts < max_attempts:
                b = open_board()
                if place_on_board(b, piece, allow_rotate, kerf_mm, new_id):
                    placed = True
                elif not b.is_stock:
                    # default boards all share one shape
                    break
                attempts += 1

            if not placed:
                unplaced.append(_unplaced(piece, piece.count - i, REASON_TOO_LARGE, MSG_NOT_PLACEABLE))
                break

    # --- RESULT ---
    plans = _build_plans(boards, max_waste_rects_per_board)

    total_used = sum(p.used_area_mm2 for p in plans)
    total_waste = sum(p.waste_area_mm2 for p in plans)
    total_board_area = sum(p.width_mm * p.height_mm for p in plans)

    result = PackingResult(
        boards=plans,
        unplaced=unplaced,
        total_utilization=compute_utilization(total_used, total_board_area),
        total_used_area_mm2=total_used,
        total_waste_area_mm2=total_waste
    )
    log.info(
        "packed %d placements on %d boards (%d opened), %d units unplaced",
        result.placed_count, len(plans), len(boards), result.unplaced_count
    )
    return result
