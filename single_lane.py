# single_lane.py — ReelCut ver1.0
#
# Baseline: one box type per reel, no combinations. For every requested box
# and every reel, the simple "N plates across the width" layout, its waste and
# its linear metres. Used as the comparison point for the combined packer.

import math
from dataclasses import dataclass, field
from fractions import Fraction
from typing import Dict, Iterable, List, Optional

from models import BoxId, BoxSpec, ProductionRequest, ReelId, ReelProfile, rate_waste


# -------------------------------------------------------------
# Data structures
# -------------------------------------------------------------

@dataclass(frozen=True)
class LaneOption:
    box_id: BoxId
    reel: ReelProfile
    boxes_per_row: int
    row_width_mm: int
    quantity: int
    plates_needed: int
    rows: int
    linear_m: float

    @property
    def waste_mm(self) -> int:
        return self.reel.usable_mm - self.row_width_mm

    @property
    def waste_ratio(self) -> Fraction:
        return Fraction(self.waste_mm, self.reel.usable_mm)

    @property
    def waste_percent(self) -> float:
        return float(self.waste_ratio * 100)

    @property
    def rating(self) -> str:
        return rate_waste(self.waste_percent)


@dataclass
class SingleLaneReport:
    options: Dict[BoxId, List[LaneOption]] = field(default_factory=dict)  # best first
    infeasible: List[BoxId] = field(default_factory=list)

    @property
    def best(self) -> Dict[BoxId, LaneOption]:
        return {bid: opts[0] for bid, opts in self.options.items() if opts}


# -------------------------------------------------------------
# Helpers
# -------------------------------------------------------------

def lane_option(box: BoxSpec, reel: ReelProfile, quantity: int) -> Optional[LaneOption]:
    """
    boxes_per_row = floor(usable / plate height); None when nothing fits.
    rows = ceil(quantity * multiplier / boxes_per_row)
    """
    per_row = reel.usable_mm // box.plate_height_mm
    if per_row == 0:
        return None

    plates = quantity * box.plate_multiplier
    rows = math.ceil(plates / per_row)
    return LaneOption(
        box_id=box.box_id,
        reel=reel,
        boxes_per_row=per_row,
        row_width_mm=per_row * box.plate_height_mm,
        quantity=quantity,
        plates_needed=plates,
        rows=rows,
        linear_m=rows * box.plate_length_mm / 1000,
    )


def _option_key(o: LaneOption):
    return (o.waste_ratio, o.linear_m, o.reel.reel_id)


# -------------------------------------------------------------
# Main report
# -------------------------------------------------------------

def single_lane_report(
    boxes: Dict[BoxId, BoxSpec],
    requests: Iterable[ProductionRequest],
    reels: Iterable[ReelProfile]
) -> SingleLaneReport:
    """
    Options per requested box, sorted by lowest waste then lowest linear
    metres. Boxes that fit no reel are listed in `infeasible`; requests for
    zero boxes are skipped.
    """
    reels = list(reels)
    report = SingleLaneReport()

    for req in sorted(requests, key=lambda r: r.box_id):
        if req.quantity <= 0:
            continue
        box = boxes[req.box_id]
        opts = [
            o for o in (lane_option(box, reel, req.quantity) for reel in reels)
            if o is not None
        ]
        if not opts:
            report.infeasible.append(req.box_id)
            continue
        report.options[req.box_id] = sorted(opts, key=_option_key)

    return report


def options_for_reel(report: SingleLaneReport, reel_id: ReelId) -> Dict[BoxId, LaneOption]:
    """The single-lane option of every box on one given reel (where it fits)."""
    out: Dict[BoxId, LaneOption] = {}
    for bid, opts in report.options.items():
        for o in opts:
            if o.reel.reel_id == reel_id:
                out[bid] = o
    return out
