# summary.py — ReelCut ver1.0
#
# Aggregate totals for packer runs and the single-lane baseline, reel
# selection, and per-box production balance.

from dataclasses import dataclass
from fractions import Fraction
from typing import Dict, Iterable, List, Optional

from models import BoxId, BoxSpec, CutPlan, PackingResult, ProductionRequest, ReelId
from single_lane import SingleLaneReport, options_for_reel


# -------------------------------------------------------------
# Data structures
# -------------------------------------------------------------

@dataclass
class PlanTotals:
    passes: int = 0
    rows: int = 0
    total_plates: int = 0
    total_linear_m: float = 0.0
    weighted_waste: Fraction = Fraction(0)     # row-weighted waste ratio

    @property
    def weighted_waste_percent(self) -> float:
        return float(self.weighted_waste * 100)


@dataclass
class ReelBaseline:
    reel_id: ReelId
    linear_m: float = 0.0
    boxes: int = 0


@dataclass
class BoxBalance:
    box_id: BoxId
    requested: int
    produced_plates: int
    produced_boxes: int

    @property
    def surplus(self) -> int:
        return self.produced_boxes - self.requested


# -------------------------------------------------------------
# Totals
# -------------------------------------------------------------

def compute_totals(plans: Iterable[CutPlan]) -> PlanTotals:
    t = PlanTotals()
    waste_rows = Fraction(0)
    for p in plans:
        t.passes += 1
        t.rows += p.rows
        t.total_plates += p.plates
        t.total_linear_m += p.linear_m
        waste_rows += p.waste_ratio * p.rows

    if t.rows:
        t.weighted_waste = waste_rows / t.rows
    return t


def baseline_totals(report: SingleLaneReport) -> Dict[ReelId, ReelBaseline]:
    """Linear metres and boxes per reel when every box uses its best single-lane option."""
    out: Dict[ReelId, ReelBaseline] = {}
    for opt in report.best.values():
        rb = out.setdefault(opt.reel.reel_id, ReelBaseline(reel_id=opt.reel.reel_id))
        rb.linear_m += opt.linear_m
        rb.boxes += opt.quantity
    return out


def baseline_linear_m_on_reel(report: SingleLaneReport, reel_id: ReelId) -> float:
    return sum(o.linear_m for o in options_for_reel(report, reel_id).values())


# -------------------------------------------------------------
# Reel choice
# -------------------------------------------------------------

def _result_key(r: PackingResult):
    t = compute_totals(r.plans)
    return (
        len(r.unplaceable),
        r.is_partial,
        t.weighted_waste,
        t.total_linear_m,
        r.reel.reel_id,
    )


def choose_reel(
    results: Dict[ReelId, PackingResult],
    forced: Optional[ReelId] = None
) -> ReelId:
    """
    A forced reel wins when it was run. Otherwise: fewest unplaceable types,
    complete before partial, lowest row-weighted waste, fewest metres.
    """
    if not results:
        raise ValueError("no packing results to choose from")
    if forced is not None:
        if forced not in results:
            raise ValueError(f"forced reel '{forced}' is not configured")
        return forced
    return min(results.values(), key=_result_key).reel.reel_id


# -------------------------------------------------------------
# Production balance
# -------------------------------------------------------------

def production_balance(
    result: PackingResult,
    boxes: Dict[BoxId, BoxSpec],
    requests: Iterable[ProductionRequest]
) -> List[BoxBalance]:
    plates: Dict[BoxId, int] = {}
    for p in result.plans:
        for s in p.slots:
            plates[s.box_id] = plates.get(s.box_id, 0) + s.count * p.rows

    out = []
    for req in sorted(requests, key=lambda r: r.box_id):
        made = plates.get(req.box_id, 0)
        out.append(BoxBalance(
            box_id=req.box_id,
            requested=req.quantity,
            produced_plates=made,
            produced_boxes=made // boxes[req.box_id].plate_multiplier,
        ))
    return out
