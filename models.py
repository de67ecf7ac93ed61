# models.py — ReelCut ver1.0
# Data structures for box types, reels, production requests and cut plans.

from dataclasses import dataclass, field
from fractions import Fraction
from typing import Dict, List, NewType, Optional, Tuple


BoxId = NewType("BoxId", str)
ReelId = NewType("ReelId", str)


class InvalidDimension(ValueError):
    """A folded box, plate or reel dimension that cannot be produced."""


# ------------------------------
# Machine constants
# ------------------------------

@dataclass(frozen=True)
class MachineLimits:
    max_plate_length_mm: int = 2080
    max_cut_lengths: int = 2         # distinct cut lengths per pass
    overlap_mm: int = 25             # double-plate (chapetón) overlap
    glue_flap_mm: int = 50
    quantity_tolerance: Fraction = Fraction(95, 100)
    max_passes: int = 50
    max_suggestions: int = 4
    filler_min_leftover_mm: int = 100


DEFAULT_LIMITS = MachineLimits()


def rate_waste(waste_percent: float) -> str:
    """
    < 10 %  → optimal
    < 20 %  → acceptable
    else    → high-waste
    """
    if waste_percent < 10:
        return "optimal"
    if waste_percent < 20:
        return "acceptable"
    return "high-waste"


# ------------------------------
# Basic Specs
# ------------------------------

@dataclass(frozen=True)
class ReelProfile:
    reel_id: ReelId
    width_mm: int       # nominal reel width
    usable_mm: int      # width left after edge trim

    @property
    def name(self) -> str:
        return f"Reel {self.reel_id}m"

    @property
    def trim_mm(self) -> int:
        return self.width_mm - self.usable_mm


STANDARD_REELS: Tuple[ReelProfile, ...] = (
    ReelProfile(reel_id=ReelId("1.60"), width_mm=1600, usable_mm=1520),
    ReelProfile(reel_id=ReelId("1.30"), width_mm=1300, usable_mm=1230),
)


@dataclass(frozen=True)
class BoxSpec:
    """
    One box type, flattened.
    plate_length_mm is the length of ONE physical plate: the whole unfolded
    length, or the half-plate length when plate_multiplier == 2.
    plate_height_mm runs across the reel width.
    """
    box_id: BoxId
    name: str
    length_mm: Optional[int]     # folded dims; None when loaded as plate dims
    width_mm: Optional[int]
    height_mm: Optional[int]
    unfolded_length_mm: int
    plate_length_mm: int
    plate_height_mm: int
    plate_multiplier: int = 1

    @property
    def is_double_plate(self) -> bool:
        return self.plate_multiplier == 2


@dataclass(frozen=True)
class ProductionRequest:
    box_id: BoxId
    quantity: int


# ------------------------------
# Cut plan structures
# ------------------------------

@dataclass(frozen=True)
class CutSlot:
    box_id: BoxId
    plate_height_mm: int
    plate_length_mm: int
    count: int           # plates of this box side by side in the pass

    @property
    def width_mm(self) -> int:
        return self.plate_height_mm * self.count


@dataclass(frozen=True)
class CutPlan:
    """
    One pass across the reel, repeated `rows` times.
    Widths are integer mm; waste_percent is derived from the exact ratio.
    """
    reel: ReelProfile
    slots: Tuple[CutSlot, ...]
    cut_lengths_mm: Tuple[int, ...]
    rows: int

    @property
    def used_width_mm(self) -> int:
        return sum(s.width_mm for s in self.slots)

    @property
    def waste_mm(self) -> int:
        return self.reel.usable_mm - self.used_width_mm

    @property
    def waste_ratio(self) -> Fraction:
        return Fraction(self.waste_mm, self.reel.usable_mm)

    @property
    def waste_percent(self) -> float:
        return float(self.waste_ratio * 100)

    @property
    def rating(self) -> str:
        return rate_waste(self.waste_percent)

    @property
    def plates_per_row(self) -> int:
        return sum(s.count for s in self.slots)

    @property
    def plates(self) -> int:
        return self.plates_per_row * self.rows

    @property
    def linear_m(self) -> float:
        return self.rows * max(self.cut_lengths_mm) / 1000


@dataclass(frozen=True)
class QuantitySuggestion:
    box_id: BoxId
    original_quantity: int
    suggested_quantity: int
    difference: int
    reel_id: ReelId
    boxes_per_row: int
    rows: int
    waste_percent: float
    linear_m: float
    is_minimum: bool       # suggested >= original
    reason: str


@dataclass(frozen=True)
class FillerSuggestion:
    pass_index: int        # 1-based index into the chosen reel's plans
    box_id: BoxId
    leftover_mm: int
    count: int             # plates that fit across the leftover
    remaining_mm: int
    adds_cut_length: bool


# ------------------------------
# Result structures
# ------------------------------

@dataclass
class PackingResult:
    """Combined-lane packer output for one reel."""
    reel: ReelProfile
    plans: List[CutPlan] = field(default_factory=list)
    unplaceable: List[BoxId] = field(default_factory=list)
    residual: Dict[BoxId, int] = field(default_factory=dict)   # pending plates
    hit_iteration_cap: bool = False

    @property
    def is_partial(self) -> bool:
        return bool(self.residual)
