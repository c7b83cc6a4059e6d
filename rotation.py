# rotation.py - boardcut ver1.0
#
# Resolves per-piece rotation modes against the global default and lists the
# orientations the packer may try for a piece.

from typing import Iterable, List, Tuple

from models import (
    CutPiece, NormalizedPiece,
    ROTATION_ALLOWED, ROTATION_FORBIDDEN, ROTATION_INHERIT, ROTATION_MODES
)


# ---------------------------------------
# Rotation mode
# ---------------------------------------

_MODE_ALIASES = {
    "yes": ROTATION_ALLOWED,
    "true": ROTATION_ALLOWED,
    "y": ROTATION_ALLOWED,
    "1": ROTATION_ALLOWED,
    "no": ROTATION_FORBIDDEN,
    "false": ROTATION_FORBIDDEN,
    "n": ROTATION_FORBIDDEN,
    "0": ROTATION_FORBIDDEN,
    "": ROTATION_INHERIT,
    "default": ROTATION_INHERIT,
}


def normalize_rotation_mode(value) -> str:
    """Unknown or missing values fall back to 'inherit'."""
    if value is None:
        return ROTATION_INHERIT
    if isinstance(value, bool):
        return ROTATION_ALLOWED if value else ROTATION_FORBIDDEN
    v = str(value).strip().lower()
    if v in ROTATION_MODES:
        return v
    return _MODE_ALIASES.get(v, ROTATION_INHERIT)


def resolve_can_rotate(mode: str, global_default: bool) -> bool:
    if mode == ROTATION_ALLOWED:
        return True
    if mode == ROTATION_FORBIDDEN:
        return False
    return bool(global_default)


def normalize_pieces(cuts: Iterable[CutPiece], global_default: bool) -> List[NormalizedPiece]:
    """
    Converts user-facing cut pieces to the engine's input records.
    The rotation mode is resolved here, the engine only sees `can_rotate`.
    """
    return [
        NormalizedPiece(
            id=c.id,
            label=c.label,
            width_mm=c.width_mm,
            height_mm=c.height_mm,
            can_rotate=resolve_can_rotate(c.rotation, global_default),
            count=c.quantity,
        )
        for c in cuts
    ]


# ---------------------------------------
# Orientation candidates
# ---------------------------------------

def get_orientation_candidates(
    width_mm: float,
    height_mm: float,
    allow_rotate: bool
) -> List[Tuple[float, float, bool]]:
    """
    Returns a list of (width_mm, height_mm, rotated) orientations, the
    unrotated one first. Square pieces never get a rotated duplicate.
    """
    candidates = [(width_mm, height_mm, False)]
    if allow_rotate and width_mm != height_mm:
        candidates.append((height_mm, width_mm, True))
    return candidates


def fits_within(
    width_mm: float,
    height_mm: float,
    max_w: float,
    max_h: float,
    allow_rotate: bool
) -> bool:
    """True if any allowed orientation fits inside max_w x max_h."""
    return any(
        w <= max_w and h <= max_h
        for (w, h, _) in get_orientation_candidates(width_mm, height_mm, allow_rotate)
    )
