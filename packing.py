# packing.py — ReelCut ver1.0
#
# Combined-lane packer. Greedily builds passes across one reel that put
# plates of several box types side by side, with at most
# `max_cut_lengths` distinct plate lengths per pass.
#
# Each iteration:
#   1. groups the pending box types by plate length,
#   2. for every choice of up to `max_cut_lengths` length groups, enumerates
#      width-feasible (type, count) selections by bounded backtracking,
#   3. scores each selection by (100 - waste%) x plates produced,
#   4. commits the best one for as many rows as its scarcest type allows.
# Decisions are never revisited. Not an exact cutting-stock solver.

import logging
import math
from dataclasses import dataclass
from fractions import Fraction
from itertools import combinations
from typing import Dict, FrozenSet, Iterable, Iterator, List, Optional, Tuple

from models import (
    BoxId, BoxSpec, CutPlan, CutSlot, MachineLimits, PackingResult,
    ProductionRequest, ReelProfile, DEFAULT_LIMITS
)

logger = logging.getLogger(__name__)

Selection = Tuple[Tuple[BoxSpec, int], ...]


@dataclass(frozen=True)
class Candidate:
    selection: Selection
    used_width_mm: int
    usable_mm: int
    rows: int

    @property
    def waste_ratio(self) -> Fraction:
        return Fraction(self.usable_mm - self.used_width_mm, self.usable_mm)

    @property
    def plates(self) -> int:
        return sum(count for _, count in self.selection) * self.rows

    @property
    def score(self) -> Fraction:
        # (100 - waste%) * plates produced, kept exact
        return (1 - self.waste_ratio) * 100 * self.plates

    @property
    def cut_lengths(self) -> Tuple[int, ...]:
        return tuple(sorted({box.plate_length_mm for box, _ in self.selection}))


# -------------------------------------------------------------
# Enumeration
# -------------------------------------------------------------

def _order_types(boxes: Iterable[BoxSpec]) -> List[BoxSpec]:
    """Tallest plates first: they exhaust the width fastest."""
    return sorted(boxes, key=lambda b: (-b.plate_height_mm, b.box_id))


def _suffix_lengths(types: List[BoxSpec]) -> List[FrozenSet[int]]:
    """suffix[i] = plate lengths present in types[i:]."""
    suffix = [frozenset()]
    for box in reversed(types):
        suffix.append(suffix[-1] | {box.plate_length_mm})
    suffix.reverse()
    return suffix


def enumerate_selections(
    types: List[BoxSpec],
    pending: Dict[BoxId, int],
    width_mm: int,
    start: int = 0,
    chosen: Selection = (),
    need: FrozenSet[int] = frozenset(),
    suffix: Optional[List[FrozenSet[int]]] = None
) -> Iterator[Selection]:
    """
    Yields every non-empty selection of (type, count) whose total width fits
    `width_mm` and that contains every plate length in `need`. Counts are
    tried from the largest feasible (bounded by the remaining width and the
    type's pending plates) down to 1. `types` must already be in visiting
    order. Selections are immutable tuples.
    """
    if suffix is None:
        suffix = _suffix_lengths(types)

    for idx in range(start, len(types)):
        # no remaining type has a missing length
        if not need <= suffix[idx]:
            break
        box = types[idx]
        still_needed = need - {box.plate_length_mm}
        max_count = min(width_mm // box.plate_height_mm, pending[box.box_id])
        for count in range(max_count, 0, -1):
            picked = chosen + ((box, count),)
            if not still_needed:
                yield picked
            yield from enumerate_selections(
                types, pending, width_mm - count * box.plate_height_mm, idx + 1, picked,
                still_needed, suffix
            )


def score_candidate(
    selection: Selection,
    pending: Dict[BoxId, int],
    reel: ReelProfile
) -> Optional[Candidate]:
    """
    rows = min over slots of ceil(pending / count). None when the selection
    cannot produce a row.
    """
    if not selection:
        return None
    used = sum(box.plate_height_mm * count for box, count in selection)
    if used > reel.usable_mm:
        return None

    rows = min(math.ceil(pending[box.box_id] / count) for box, count in selection)
    if rows <= 0:
        return None
    return Candidate(selection=selection, used_width_mm=used,
                     usable_mm=reel.usable_mm, rows=rows)


def _candidate_rank(c: Candidate):
    # higher score, then lower waste, then fewer cut lengths
    return (c.score, -c.waste_ratio, -len(c.cut_lengths))


def select_best_candidate(candidates: Iterable[Candidate]) -> Optional[Candidate]:
    """First candidate with the highest rank wins, so enumeration order breaks exact ties."""
    best = None
    best_rank = None
    for c in candidates:
        rank = _candidate_rank(c)
        if best is None or rank > best_rank:
            best, best_rank = c, rank
    return best


def length_groupings(lengths: List[int], max_cut_lengths: int) -> Iterator[Tuple[int, ...]]:
    """Singles first, then pairs, ... in ascending length order."""
    for r in range(1, max_cut_lengths + 1):
        yield from combinations(sorted(lengths), r)


def enumerate_candidates(
    boxes: Dict[BoxId, BoxSpec],
    pending: Dict[BoxId, int],
    reel: ReelProfile,
    limits: MachineLimits = DEFAULT_LIMITS
) -> Iterator[Candidate]:
    """All scored candidates for one iteration, in deterministic order."""
    groups: Dict[int, List[BoxSpec]] = {}
    for bid in sorted(pending):
        if pending[bid] > 0:
            box = boxes[bid]
            groups.setdefault(box.plate_length_mm, []).append(box)

    for grouping in length_groupings(list(groups), limits.max_cut_lengths):
        types = _order_types(b for length in grouping for b in groups[length])
        # selections missing one of the grouping's lengths belong to a smaller grouping
        for selection in enumerate_selections(types, pending, reel.usable_mm,
                                              need=frozenset(grouping)):
            cand = score_candidate(selection, pending, reel)
            if cand is not None:
                yield cand


# -------------------------------------------------------------
# Packer
# -------------------------------------------------------------

def initial_pending(
    boxes: Dict[BoxId, BoxSpec],
    requests: Iterable[ProductionRequest]
) -> Dict[BoxId, int]:
    """Fresh working map: requested quantity x plate multiplier, per box."""
    pending: Dict[BoxId, int] = {}
    for req in requests:
        if req.quantity <= 0:
            continue
        plates = req.quantity * boxes[req.box_id].plate_multiplier
        pending[req.box_id] = pending.get(req.box_id, 0) + plates
    return pending


def _to_plan(cand: Candidate, reel: ReelProfile) -> CutPlan:
    slots = tuple(
        CutSlot(
            box_id=box.box_id,
            plate_height_mm=box.plate_height_mm,
            plate_length_mm=box.plate_length_mm,
            count=count,
        )
        for box, count in cand.selection
    )
    return CutPlan(reel=reel, slots=slots, cut_lengths_mm=cand.cut_lengths, rows=cand.rows)


def pack_reel(
    boxes: Dict[BoxId, BoxSpec],
    requests: Iterable[ProductionRequest],
    reel: ReelProfile,
    limits: MachineLimits = DEFAULT_LIMITS
) -> PackingResult:
    """
    Runs the greedy pass builder on one reel. The pending map is private to
    this call. Stops when everything is placed, when nothing placeable is
    left, or after `limits.max_passes` passes (residual is then reported).
    """
    pending = initial_pending(boxes, requests)
    result = PackingResult(reel=reel)

    # types that cannot fit the reel even once
    for bid in sorted(pending):
        if boxes[bid].plate_height_mm > reel.usable_mm:
            result.unplaceable.append(bid)
            del pending[bid]

    while pending:
        if len(result.plans) >= limits.max_passes:
            result.hit_iteration_cap = True
            break

        best = select_best_candidate(enumerate_candidates(boxes, pending, reel, limits))
        if best is None:
            result.unplaceable.extend(sorted(pending))
            pending.clear()
            break

        plan = _to_plan(best, reel)
        result.plans.append(plan)
        for box, count in best.selection:
            left = pending[box.box_id] - count * best.rows
            if left > 0:
                pending[box.box_id] = left
            else:
                del pending[box.box_id]

        logger.debug(
            "reel %s pass %d: %s x %d rows, waste %.2f%%",
            reel.reel_id, len(result.plans),
            ", ".join(f"{s.box_id}x{s.count}" for s in plan.slots),
            plan.rows, plan.waste_percent,
        )

    if pending:
        result.residual = dict(sorted(pending.items()))
        logger.warning(
            "reel %s: stopped after %d passes with %d plates pending",
            reel.reel_id, len(result.plans), sum(pending.values()),
        )
    if result.unplaceable:
        logger.warning(
            "reel %s: unplaceable box types: %s",
            reel.reel_id, ", ".join(result.unplaceable),
        )

    return result
