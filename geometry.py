# geometry.py - boardcut ver1.0
#
# Free-rectangle bookkeeping for the Max-Rects packer:
# - best short side fit candidate search
# - kerf expansion of the consumed rectangle
# - splitting / pruning of the free partition
# - post-hoc waste normalization for reporting

from dataclasses import dataclass
from typing import List, Optional

from models import Rect
from rotation import get_orientation_candidates


@dataclass(frozen=True)
class PlacementCandidate:
    x: float
    y: float
    w: float
    h: float
    rotated: bool
    rect_index: int     # index of the containing free rect
    score1: float       # short side leftover
    score2: float       # long side leftover


# -------------------------------------------------------------
# Rect predicates
# -------------------------------------------------------------

def area(r: Rect) -> float:
    return max(0, r.w) * max(0, r.h)


def intersects(a: Rect, b: Rect) -> bool:
    """Positive-area overlap only. Touching edges is NOT an intersection."""
    return a.x < b.x + b.w and a.x + a.w > b.x and a.y < b.y + b.h and a.y + a.h > b.y


def contains(outer: Rect, inner: Rect) -> bool:
    return (
        inner.x >= outer.x and
        inner.y >= outer.y and
        inner.x + inner.w <= outer.x + outer.w and
        inner.y + inner.h <= outer.y + outer.h
    )


def clamp_non_negative(r: Rect) -> Optional[Rect]:
    """Returns None for rectangles without area."""
    w = max(0, r.w)
    h = max(0, r.h)
    if w == 0 or h == 0:
        return None
    return Rect(r.x, r.y, w, h)


# -------------------------------------------------------------
# Placement
# -------------------------------------------------------------

def expand_used_rect(placed: Rect, container: Rect, kerf_mm: float) -> Rect:
    """
    Grows the placed rect by the kerf on its right and bottom edges,
    never past the free rect it was cut from.
    """
    remaining_right = container.x + container.w - (placed.x + placed.w)
    remaining_bottom = container.y + container.h - (placed.y + placed.h)
    extra_w = min(kerf_mm, max(0, remaining_right)) if kerf_mm > 0 else 0
    extra_h = min(kerf_mm, max(0, remaining_bottom)) if kerf_mm > 0 else 0
    return Rect(placed.x, placed.y, placed.w + extra_w, placed.h + extra_h)


def find_best_candidate(
    free_rects: List[Rect],
    w: float, h: float,
    allow_rotate: bool
) -> Optional[PlacementCandidate]:
    """
    Best Short Side Fit, Best Long Side Fit as tiebreak.
    On equal scores the earliest free rect (and unrotated before rotated) wins.
    """
    best: Optional[PlacementCandidate] = None
    orientations = get_orientation_candidates(w, h, allow_rotate)

    for i, r in enumerate(free_rects):
        for tw, th, rotated in orientations:
            if tw > r.w or th > r.h:
                continue

            leftover_w = r.w - tw
            leftover_h = r.h - th
            cand = PlacementCandidate(
                x=r.x,
                y=r.y,
                w=tw,
                h=th,
                rotated=rotated,
                rect_index=i,
                score1=min(leftover_w, leftover_h),
                score2=max(leftover_w, leftover_h),
            )

            if best is None or (cand.score1, cand.score2) < (best.score1, best.score2):
                best = cand

    return best


# -------------------------------------------------------------
# Free partition maintenance
# -------------------------------------------------------------

def split_free_rects(free_rects: List[Rect], used_rect: Rect) -> List[Rect]:
    """
    Every free rect overlapping used_rect is replaced by its left, right,
    top and bottom strips around it. Strips overlap each other on purpose
    (maximal rectangles); only full containment is pruned afterwards.
    """
    nxt: List[Rect] = []
    used_right = used_rect.x + used_rect.w
    used_bottom = used_rect.y + used_rect.h

    for r in free_rects:
        if not intersects(r, used_rect):
            nxt.append(r)
            continue

        right = r.x + r.w
        bottom = r.y + r.h

        parts = (
            Rect(r.x, r.y, used_rect.x - r.x, r.h),            # left
            Rect(used_right, r.y, right - used_right, r.h),    # right
            Rect(r.x, r.y, r.w, used_rect.y - r.y),            # top
            Rect(r.x, used_bottom, r.w, bottom - used_bottom), # bottom
        )
        for p in parts:
            kept = clamp_non_negative(p)
            if kept is not None:
                nxt.append(kept)

    return prune_contained(nxt)


def prune_contained(rects: List[Rect]) -> List[Rect]:
    """
    Drops empty rects and any rect lying inside a larger one already kept.
    Larger areas are processed first; the sort is stable.
    """
    filtered = [c for c in (clamp_non_negative(r) for r in rects) if c is not None]
    filtered.sort(key=area, reverse=True)

    kept: List[Rect] = []
    for r in filtered:
        if not any(contains(k, r) for k in kept):
            kept.append(r)
    return kept


# -------------------------------------------------------------
# Waste rectangles (reporting only)
# -------------------------------------------------------------

def subtract_rect(base: Rect, cut: Rect) -> List[Rect]:
    """base minus cut as up to four non-overlapping rects."""
    if not intersects(base, cut):
        return [base]

    ix1 = max(base.x, cut.x)
    iy1 = max(base.y, cut.y)
    ix2 = min(base.x + base.w, cut.x + cut.w)
    iy2 = min(base.y + base.h, cut.y + cut.h)

    pieces = (
        Rect(base.x, base.y, ix1 - base.x, base.h),
        Rect(ix2, base.y, base.x + base.w - ix2, base.h),
        Rect(ix1, base.y, ix2 - ix1, iy1 - base.y),
        Rect(ix1, iy2, ix2 - ix1, base.y + base.h - iy2),
    )
    return [c for c in (clamp_non_negative(p) for p in pieces) if c is not None]


def normalize_waste_rects(free_rects: List[Rect], limit: int) -> List[Rect]:
    """
    Turns the overlapping free partition into a disjoint set of waste
    rectangles, largest first, capped at `limit` entries.
    """
    if limit <= 0:
        return []

    ordered = [c for c in (clamp_non_negative(r) for r in free_rects) if c is not None]
    ordered.sort(key=area, reverse=True)

    result: List[Rect] = []
    for r in ordered:
        parts = [r]
        for accepted in result:
            parts = [piece for p in parts for piece in subtract_rect(p, accepted)]
            if not parts:
                break

        for p in parts:
            result.append(p)
            if len(result) >= limit:
                return result

    return result


def total_area(rects: List[Rect]) -> float:
    return sum(area(r) for r in rects)
