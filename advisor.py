# advisor.py — ReelCut ver1.0
#
# Quantity rounding: proposes order quantities close to the requested one
# that fill whole rows on a reel. Leftover fillers: catalog boxes that could
# use the unused width of a committed pass.

import math
from typing import Dict, Iterable, List

from models import (
    BoxId, BoxSpec, CutPlan, FillerSuggestion, MachineLimits,
    ProductionRequest, QuantitySuggestion, ReelProfile, DEFAULT_LIMITS
)


# -------------------------------------------------------------
# Quantity rounding
# -------------------------------------------------------------

def _reason(diff: int, per_row: int, rows: int) -> str:
    if diff == 0:
        return f"exact match: {rows} full rows of {per_row}"
    if diff > 0:
        return f"completes a row: +{diff} boxes fill row {rows}"
    return f"saves material: {diff} boxes drops a partial row"


def _suggestions_on_reel(
    box: BoxSpec,
    quantity: int,
    reel: ReelProfile,
    limits: MachineLimits
) -> List[QuantitySuggestion]:
    per_row = reel.usable_mm // box.plate_height_mm
    if per_row == 0:
        return []

    floor_qty = math.ceil(quantity * limits.quantity_tolerance)
    waste_mm = reel.usable_mm - per_row * box.plate_height_mm
    waste_percent = 100 * waste_mm / reel.usable_mm

    rows_exact = math.ceil(quantity / per_row)
    out = []
    for rows in (rows_exact - 1, rows_exact, rows_exact + 1):
        if rows <= 0:
            continue
        suggested = rows * per_row
        if suggested < floor_qty:
            continue
        diff = suggested - quantity
        out.append(QuantitySuggestion(
            box_id=box.box_id,
            original_quantity=quantity,
            suggested_quantity=suggested,
            difference=diff,
            reel_id=reel.reel_id,
            boxes_per_row=per_row,
            rows=rows,
            waste_percent=waste_percent,
            # both half-plates are cut for a double-plate box
            linear_m=rows * box.plate_length_mm * box.plate_multiplier / 1000,
            is_minimum=suggested >= quantity,
            reason=_reason(diff, per_row, rows),
        ))
    return out


def _suggestion_key(s: QuantitySuggestion):
    return (
        not s.is_minimum,
        s.waste_percent,
        abs(s.difference) / s.original_quantity,
        s.suggested_quantity,
        s.reel_id,
    )


def suggest_quantities(
    box: BoxSpec,
    quantity: int,
    reels: Iterable[ReelProfile],
    limits: MachineLimits = DEFAULT_LIMITS
) -> List[QuantitySuggestion]:
    """
    Up to `limits.max_suggestions` quantities for one box, across all reels:
    quantities that meet the order first, then lower waste, then the
    smallest relative change. Nothing is suggested for a zero quantity.
    """
    if quantity <= 0:
        return []

    seen = set()
    merged: List[QuantitySuggestion] = []
    for reel in reels:
        for s in _suggestions_on_reel(box, quantity, reel, limits):
            key = (s.suggested_quantity, s.reel_id)
            if key in seen:
                continue
            seen.add(key)
            merged.append(s)

    merged.sort(key=_suggestion_key)
    return merged[:max(limits.max_suggestions, 0)]


def suggest_all(
    boxes: Dict[BoxId, BoxSpec],
    requests: Iterable[ProductionRequest],
    reels: Iterable[ReelProfile],
    limits: MachineLimits = DEFAULT_LIMITS
) -> Dict[BoxId, List[QuantitySuggestion]]:
    reels = list(reels)
    out: Dict[BoxId, List[QuantitySuggestion]] = {}
    for req in sorted(requests, key=lambda r: r.box_id):
        sugg = suggest_quantities(boxes[req.box_id], req.quantity, reels, limits)
        if sugg:
            out[req.box_id] = sugg
    return out


# -------------------------------------------------------------
# Leftover fillers
# -------------------------------------------------------------

def suggest_leftover_fillers(
    plans: List[CutPlan],
    catalog: Iterable[BoxSpec],
    limits: MachineLimits = DEFAULT_LIMITS
) -> List[FillerSuggestion]:
    """
    For every pass whose leftover width is at least
    `limits.filler_min_leftover_mm`, catalog boxes whose plate height fits
    the leftover without breaking the cut-length limit of the pass.
    """
    catalog = sorted(catalog, key=lambda b: b.box_id)
    out: List[FillerSuggestion] = []

    for idx, plan in enumerate(plans, start=1):
        leftover = plan.waste_mm
        if leftover < limits.filler_min_leftover_mm:
            continue

        found = []
        for box in catalog:
            count = leftover // box.plate_height_mm
            if count == 0:
                continue
            adds_length = box.plate_length_mm not in plan.cut_lengths_mm
            if adds_length and len(plan.cut_lengths_mm) >= limits.max_cut_lengths:
                continue
            found.append(FillerSuggestion(
                pass_index=idx,
                box_id=box.box_id,
                leftover_mm=leftover,
                count=count,
                remaining_mm=leftover - count * box.plate_height_mm,
                adds_cut_length=adds_length,
            ))

        found.sort(key=lambda f: (f.remaining_mm, f.box_id))
        out.extend(found)

    return out
