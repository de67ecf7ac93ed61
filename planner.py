# planner.py — ReelCut ver1.0
#
# Runs the whole optimization for one order: single-lane baseline, one
# combined-lane packer run per reel, reel choice, quantity advice and
# leftover fillers for the chosen reel.

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from models import (
    BoxId, BoxSpec, FillerSuggestion, MachineLimits, PackingResult,
    ProductionRequest, QuantitySuggestion, ReelId, ReelProfile, DEFAULT_LIMITS
)
from plates import validate_reels
from single_lane import SingleLaneReport, single_lane_report
from packing import pack_reel
from advisor import suggest_all, suggest_leftover_fillers
from summary import (
    BoxBalance, PlanTotals, ReelBaseline, baseline_linear_m_on_reel,
    baseline_totals, choose_reel, compute_totals, production_balance
)


@dataclass
class ProductionPlan:
    requests: List[ProductionRequest]
    baseline: SingleLaneReport
    runs: Dict[ReelId, PackingResult]
    chosen_reel: ReelId
    totals: Dict[ReelId, PlanTotals]
    suggestions: Dict[BoxId, List[QuantitySuggestion]] = field(default_factory=dict)
    fillers: List[FillerSuggestion] = field(default_factory=list)
    balance: List[BoxBalance] = field(default_factory=list)
    saved_linear_m: float = 0.0     # baseline metres on the chosen reel minus combined
    baseline_totals: Dict[ReelId, ReelBaseline] = field(default_factory=dict)

    @property
    def chosen(self) -> PackingResult:
        return self.runs[self.chosen_reel]

    @property
    def unplaceable(self) -> List[BoxId]:
        """Boxes that fit none of the reels."""
        return list(self.baseline.infeasible)


def merge_requests(requests: Iterable[ProductionRequest]) -> List[ProductionRequest]:
    """One request per box, quantities summed, sorted by box id."""
    totals: Dict[BoxId, int] = {}
    for r in requests:
        if r.quantity < 0:
            raise ValueError(f"quantity for '{r.box_id}' must be >= 0, got {r.quantity}")
        totals[r.box_id] = totals.get(r.box_id, 0) + r.quantity
    return [ProductionRequest(box_id=b, quantity=q) for b, q in sorted(totals.items())]


def build_production_plan(
    boxes: Dict[BoxId, BoxSpec],
    requests: Iterable[ProductionRequest],
    reels: Iterable[ReelProfile],
    limits: MachineLimits = DEFAULT_LIMITS,
    forced_reel: Optional[ReelId] = None
) -> ProductionPlan:
    reels = validate_reels(reels)
    requests = merge_requests(requests)

    unknown = [r.box_id for r in requests if r.box_id not in boxes]
    if unknown:
        raise ValueError("Unknown box ids in order: " + ", ".join(unknown))

    baseline = single_lane_report(boxes, requests, reels)

    runs: Dict[ReelId, PackingResult] = {}
    for reel in reels:
        runs[reel.reel_id] = pack_reel(boxes, requests, reel, limits)

    chosen = choose_reel(runs, forced_reel)
    result = runs[chosen]
    totals = {rid: compute_totals(r.plans) for rid, r in runs.items()}

    return ProductionPlan(
        requests=requests,
        baseline=baseline,
        runs=runs,
        chosen_reel=chosen,
        totals=totals,
        suggestions=suggest_all(boxes, requests, reels, limits),
        fillers=suggest_leftover_fillers(result.plans, boxes.values(), limits),
        balance=production_balance(result, boxes, requests),
        saved_linear_m=baseline_linear_m_on_reel(baseline, chosen) - totals[chosen].total_linear_m,
        baseline_totals=baseline_totals(baseline),
    )
