# models.py - boardcut ver1.0
# Data structures for boards, stock, pieces, placements and packing results.

from dataclasses import dataclass, field
from typing import List


ROTATION_INHERIT = "inherit"
ROTATION_ALLOWED = "allowed"
ROTATION_FORBIDDEN = "forbidden"
ROTATION_MODES = (ROTATION_INHERIT, ROTATION_ALLOWED, ROTATION_FORBIDDEN)

REASON_TOO_LARGE = "tooLarge"
REASON_INVALID = "invalid"
REASON_LIMIT = "limit"


# ------------------------------
# Geometry
# ------------------------------

@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle, (x, y) is the top-left corner in board mm."""
    x: float
    y: float
    w: float
    h: float

    @property
    def area(self) -> float:
        return max(0, self.w) * max(0, self.h)


# ------------------------------
# Inputs
# ------------------------------

@dataclass
class BoardConfig:
    width_mm: float
    height_mm: float
    kerf_mm: float = 0.0      # blade width, added right/bottom of each piece
    margin_mm: float = 0.0    # unusable border on every edge
    unit: str = "mm"          # display unit only


@dataclass
class StockPiece:
    id: str
    width_mm: float
    height_mm: float
    quantity: int


@dataclass
class CutPiece:
    id: str
    label: str
    width_mm: float
    height_mm: float
    quantity: int
    rotation: str = ROTATION_INHERIT


@dataclass
class Job:
    """Everything needed to recompute a layout; this is what gets saved."""
    board: BoardConfig
    cuts: List[CutPiece] = field(default_factory=list)
    stock: List[StockPiece] = field(default_factory=list)
    global_rotation_default: bool = True


@dataclass(frozen=True)
class NormalizedPiece:
    id: str
    label: str
    width_mm: float
    height_mm: float
    can_rotate: bool
    count: int


# ------------------------------
# Outputs
# ------------------------------

@dataclass(frozen=True)
class Placement:
    id: str
    piece_id: str
    label: str
    x: float
    y: float
    w: float
    h: float
    rotated: bool
    board_index: int

    @property
    def rect(self) -> Rect:
        return Rect(self.x, self.y, self.w, self.h)


@dataclass
class BoardPlan:
    board_index: int
    placements: List[Placement]
    waste_rects: List[Rect]
    utilization: float
    usable_rect: Rect
    used_area_mm2: float
    waste_area_mm2: float
    width_mm: float
    height_mm: float
    is_stock: bool = False


@dataclass
class UnplacedPiece:
    piece_id: str
    label: str
    width_mm: float
    height_mm: float
    quantity: int
    reason: str
    message: str


@dataclass
class PackingResult:
    boards: List[BoardPlan] = field(default_factory=list)
    unplaced: List[UnplacedPiece] = field(default_factory=list)
    total_utilization: float = 0.0
    total_used_area_mm2: float = 0.0
    total_waste_area_mm2: float = 0.0

    @property
    def placed_count(self) -> int:
        return sum(len(b.placements) for b in self.boards)

    @property
    def unplaced_count(self) -> int:
        return sum(max(0, u.quantity) for u in self.unplaced)


# ------------------------------
# Engine working state
# ------------------------------

class InternalBoard:
    """
    One opened board during a packing run. Holds:
    - the full board rect and the usable rect (inside the margin)
    - the current free-rectangle partition
    - placements in the order they were seated
    """

    def __init__(self, index: int, width_mm: float, height_mm: float,
                 margin_mm: float, is_stock: bool):
        self.board_index = index
        self.board_rect = Rect(0, 0, width_mm, height_mm)
        self.usable_rect = Rect(
            margin_mm,
            margin_mm,
            max(0, width_mm - margin_mm * 2),
            max(0, height_mm - margin_mm * 2),
        )
        self.is_stock = is_stock

        # a stock board smaller than twice the margin has nothing to offer
        self.free_rects: List[Rect] = [self.usable_rect] if self.usable_rect.area > 0 else []
        self.placements: List[Placement] = []
        self.used_area_mm2: float = 0.0

    @property
    def width_mm(self) -> float:
        return self.board_rect.w

    @property
    def height_mm(self) -> float:
        return self.board_rect.h

    def is_empty(self) -> bool:
        return not self.placements

    def __repr__(self) -> str:
        kind = "stock" if self.is_stock else "default"
        return (
            f"InternalBoard(#{self.board_index} {kind} "
            f"{self.width_mm}x{self.height_mm}, placements={len(self.placements)}, "
            f"free={len(self.free_rects)})"
        )


def board_kind(plan: BoardPlan) -> str:
    return "stock" if plan.is_stock else "default"
