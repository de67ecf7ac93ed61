# plates.py — ReelCut ver1.0
#
# Converts folded box dimensions into flattened plate dimensions using the
# Regular Slotted Container (RSC) relation, and decides whether the plate
# must be produced as two overlapping half-plates (double plate).

import math
from typing import Iterable, List, NamedTuple

from models import (
    BoxId, BoxSpec, InvalidDimension, MachineLimits, ReelProfile,
    DEFAULT_LIMITS
)


class PlateGeometry(NamedTuple):
    unfolded_length_mm: int
    plate_length_mm: int
    plate_height_mm: int
    plate_multiplier: int


# ---------------------------------------
# Helper: dimension checks
# ---------------------------------------

def _check_positive(**dims) -> None:
    bad = [f"{k}={v}" for k, v in dims.items() if v is None or v <= 0]
    if bad:
        raise InvalidDimension("dimensions must be > 0: " + ", ".join(bad))


# ---------------------------------------
# Plate split rule
# ---------------------------------------

def split_plate(
    unfolded_length_mm: int,
    plate_height_mm: int,
    limits: MachineLimits = DEFAULT_LIMITS
) -> PlateGeometry:
    """
    Single plate when the unfolded length fits the machine, otherwise two
    half-plates of ceil(L/2) + overlap each. The half-plate itself must
    still fit, or the box cannot be produced.
    """
    _check_positive(plate_length=unfolded_length_mm, plate_height=plate_height_mm)

    if unfolded_length_mm <= limits.max_plate_length_mm:
        return PlateGeometry(unfolded_length_mm, unfolded_length_mm, plate_height_mm, 1)

    half = math.ceil(unfolded_length_mm / 2) + limits.overlap_mm
    if half > limits.max_plate_length_mm:
        raise InvalidDimension(
            f"unfolded length {unfolded_length_mm} mm needs half-plates of {half} mm, "
            f"above the {limits.max_plate_length_mm} mm machine limit"
        )
    return PlateGeometry(unfolded_length_mm, half, plate_height_mm, 2)


def derive_unfolded(
    length_mm: int,
    width_mm: int,
    height_mm: int,
    limits: MachineLimits = DEFAULT_LIMITS
) -> PlateGeometry:
    """
    plate length = 2L + 2W + glue flap
    plate height = H + W
    """
    _check_positive(length=length_mm, width=width_mm, height=height_mm)

    unfolded = 2 * length_mm + 2 * width_mm + limits.glue_flap_mm
    plate_h = height_mm + width_mm
    return split_plate(unfolded, plate_h, limits)


# ---------------------------------------
# BoxSpec construction
# ---------------------------------------

def make_box_spec(
    box_id: str,
    name: str,
    length_mm: int,
    width_mm: int,
    height_mm: int,
    limits: MachineLimits = DEFAULT_LIMITS
) -> BoxSpec:
    g = derive_unfolded(length_mm, width_mm, height_mm, limits)
    return BoxSpec(
        box_id=BoxId(box_id),
        name=name or box_id,
        length_mm=length_mm,
        width_mm=width_mm,
        height_mm=height_mm,
        unfolded_length_mm=g.unfolded_length_mm,
        plate_length_mm=g.plate_length_mm,
        plate_height_mm=g.plate_height_mm,
        plate_multiplier=g.plate_multiplier,
    )


def box_from_plate(
    box_id: str,
    name: str,
    unfolded_length_mm: int,
    plate_height_mm: int,
    limits: MachineLimits = DEFAULT_LIMITS
) -> BoxSpec:
    """Box given by pre-derived flattened dimensions (no folded dims)."""
    g = split_plate(unfolded_length_mm, plate_height_mm, limits)
    return BoxSpec(
        box_id=BoxId(box_id),
        name=name or box_id,
        length_mm=None,
        width_mm=None,
        height_mm=None,
        unfolded_length_mm=g.unfolded_length_mm,
        plate_length_mm=g.plate_length_mm,
        plate_height_mm=g.plate_height_mm,
        plate_multiplier=g.plate_multiplier,
    )


# ---------------------------------------
# Reel validation
# ---------------------------------------

def validate_reels(reels: Iterable[ReelProfile]) -> List[ReelProfile]:
    """
    Raises InvalidDimension listing every bad reel:
    usable width must be > 0 and below the nominal width.
    """
    reels = list(reels)
    problems = []
    seen = set()
    for r in reels:
        if r.usable_mm <= 0:
            problems.append(f"{r.reel_id}: usable width {r.usable_mm} mm must be > 0")
        elif r.usable_mm >= r.width_mm:
            problems.append(
                f"{r.reel_id}: usable width {r.usable_mm} mm must be below "
                f"nominal width {r.width_mm} mm"
            )
        if r.reel_id in seen:
            problems.append(f"{r.reel_id}: duplicate reel id")
        seen.add(r.reel_id)

    if not reels:
        problems.append("no reels configured")

    if problems:
        msg = "Invalid reel profiles:\n"
        msg += "\n".join(f"- {p}" for p in problems)
        raise InvalidDimension(msg)
    return reels

