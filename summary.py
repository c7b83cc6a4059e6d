# summary.py - boardcut ver1.0
#
# Aggregates a PackingResult into the counters shown on the summary page
# and printed by the CLI. Formatting of areas and percentages lives here too.

import math
from dataclasses import dataclass, field
from typing import Dict, Tuple

from models import PackingResult


# -------------------------------------------------------------
# Data structures
# -------------------------------------------------------------

@dataclass
class LayoutSummary:
    board_count: int = 0
    stock_board_count: int = 0
    default_board_count: int = 0

    placed_count: int = 0
    unplaced_count: int = 0            # sum of unplaced quantities

    total_utilization: float = 0.0
    total_used_area_mm2: float = 0.0
    total_waste_area_mm2: float = 0.0

    boards_by_size: Dict[Tuple[float, float], int] = field(default_factory=dict)
    unplaced_by_reason: Dict[str, int] = field(default_factory=dict)

    @property
    def all_placed(self) -> bool:
        # zero-quantity invalid records still count as unplaced
        return not self.unplaced_by_reason


# -------------------------------------------------------------
# Helpers
# -------------------------------------------------------------

def format_percent(value: float) -> str:
    if not math.isfinite(value):
        return "0%"
    return f"{round(value)}%"


def format_area_m2(mm2: float) -> str:
    """mm² to m², three decimals at most."""
    if not math.isfinite(mm2):
        return "0 m²"
    text = f"{mm2 / 1_000_000:.3f}".rstrip("0").rstrip(".")
    return f"{text or '0'} m²"


def plural(n: int, one: str, many: str) -> str:
    return one if n == 1 else many


# -------------------------------------------------------------
# Main summary computation
# -------------------------------------------------------------

def compute_summary(result: PackingResult) -> LayoutSummary:
    summary = LayoutSummary()

    # --- BOARDS ---
    for b in result.boards:
        summary.board_count += 1
        if b.is_stock:
            summary.stock_board_count += 1
        else:
            summary.default_board_count += 1

        size = (b.width_mm, b.height_mm)
        summary.boards_by_size[size] = summary.boards_by_size.get(size, 0) + 1
        summary.placed_count += len(b.placements)

    # --- UNPLACED ---
    for u in result.unplaced:
        qty = max(0, u.quantity)
        summary.unplaced_count += qty
        summary.unplaced_by_reason[u.reason] = summary.unplaced_by_reason.get(u.reason, 0) + qty

    # --- AREAS ---
    summary.total_utilization = result.total_utilization
    summary.total_used_area_mm2 = result.total_used_area_mm2
    summary.total_waste_area_mm2 = result.total_waste_area_mm2

    return summary
