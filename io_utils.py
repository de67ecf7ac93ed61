# io_utils.py — ReelCut ver1.0
# Reading CSV files, parsing config, validating fields, JSON export.

import csv
import json
from dataclasses import dataclass
from fractions import Fraction
from typing import Any, Dict, List, Optional, Tuple

from models import (
    BoxId, BoxSpec, InvalidDimension, MachineLimits, ProductionRequest,
    ReelId, ReelProfile, STANDARD_REELS
)
from plates import box_from_plate, make_box_spec


# ------------------------------
# Boolean parser
# ------------------------------

def parse_bool(val: str) -> bool:
    if val is None:
        return False
    v = val.strip().lower()
    return v in ("1", "true", "yes", "y", "si", "sí")


# ------------------------------
# Config parser (strict one key per line)
# ------------------------------

def parse_properties(path: str) -> Dict[str, str]:
    """
    Conservative parser:
    - One key=value per line
    - Lines without '=' are ignored
    - '#' at start of line = comment
    """
    props: Dict[str, str] = {}
    with open(path, "r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if "=" not in line:
                continue
            key, val = line.split("=", 1)
            props[key.strip()] = val.strip()
    return props


# ------------------------------
# Settings
# ------------------------------

@dataclass(frozen=True)
class Settings:
    limits: MachineLimits
    reels: Tuple[ReelProfile, ...]
    forced_reel: Optional[ReelId]     # None = choose automatically
    dimension_scale: int              # 1 for mm, 10 for cm


def _int(cfg: Dict[str, str], key: str, default: int) -> int:
    raw = cfg.get(key)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"config key '{key}' must be an integer, got '{raw}'") from None


def _fraction(cfg: Dict[str, str], key: str, default: Fraction) -> Fraction:
    raw = cfg.get(key)
    if raw is None or raw == "":
        return default
    try:
        return Fraction(raw)
    except (ValueError, ZeroDivisionError):
        raise ValueError(f"config key '{key}' must be a number, got '{raw}'") from None


def load_settings(cfg: Dict[str, str]) -> Settings:
    """Builds Settings from parsed properties; missing keys keep the machine defaults."""
    d = MachineLimits()
    limits = MachineLimits(
        max_plate_length_mm=_int(cfg, "max-plate-length", d.max_plate_length_mm),
        max_cut_lengths=_int(cfg, "max-cut-lengths", d.max_cut_lengths),
        overlap_mm=_int(cfg, "overlap", d.overlap_mm),
        glue_flap_mm=_int(cfg, "glue-flap", d.glue_flap_mm),
        quantity_tolerance=_fraction(cfg, "quantity-tolerance", d.quantity_tolerance),
        max_passes=_int(cfg, "max-passes", d.max_passes),
        max_suggestions=_int(cfg, "max-suggestions", d.max_suggestions),
        filler_min_leftover_mm=_int(cfg, "filler-min-leftover", d.filler_min_leftover_mm),
    )
    if limits.max_cut_lengths < 1:
        raise ValueError("config key 'max-cut-lengths' must be >= 1")
    if limits.max_passes < 1:
        raise ValueError("config key 'max-passes' must be >= 1")
    if limits.max_suggestions < 1:
        raise ValueError("config key 'max-suggestions' must be >= 1")
    if not 0 < limits.quantity_tolerance <= 1:
        raise ValueError("config key 'quantity-tolerance' must be in (0, 1]")

    defaults = {r.reel_id: r for r in STANDARD_REELS}
    ids = [s.strip() for s in cfg.get("reels", ",".join(defaults)).split(",") if s.strip()]
    reels = []
    for rid in ids:
        std = defaults.get(rid)
        reels.append(ReelProfile(
            reel_id=ReelId(rid),
            width_mm=_int(cfg, f"reel.{rid}.width", std.width_mm if std else 0),
            usable_mm=_int(cfg, f"reel.{rid}.usable", std.usable_mm if std else 0),
        ))

    forced = cfg.get("reel", "auto").strip()
    if forced.lower() == "auto" or forced == "":
        forced_reel = None
    elif forced in ids:
        forced_reel = ReelId(forced)
    else:
        raise ValueError(f"config key 'reel' names unknown reel '{forced}'")

    unit = cfg.get("dimension-unit", "mm").strip().lower()
    if unit not in ("mm", "cm"):
        raise ValueError(f"config key 'dimension-unit' must be mm or cm, got '{unit}'")

    return Settings(
        limits=limits,
        reels=tuple(reels),
        forced_reel=forced_reel,
        dimension_scale=10 if unit == "cm" else 1,
    )


# ------------------------------
# Boxes CSV
# ------------------------------

def parse_boxes(path: str, settings: Settings) -> Dict[BoxId, BoxSpec]:
    """
    Columns: id, name and either length,width,height (folded) or
    plate_length,plate_height (already flattened). Every bad row is
    reported in one InvalidDimension.
    """
    boxes: Dict[BoxId, BoxSpec] = {}
    problems: List[str] = []
    scale = settings.dimension_scale

    with open(path, newline="", encoding="utf-8") as f:
        reader = csv.DictReader(f)
        fields = set(reader.fieldnames or [])
        if "id" not in fields:
            raise ValueError("boxes.csv missing 'id' column")
        folded = {"length", "width", "height"}.issubset(fields)
        flat = {"plate_length", "plate_height"}.issubset(fields)
        if not (folded or flat):
            raise ValueError(
                "boxes.csv needs length,width,height OR plate_length,plate_height columns"
            )

        for line_no, row in enumerate(reader, start=2):
            box_id = (row.get("id") or "").strip()
            if not box_id:
                continue
            if box_id in boxes:
                raise ValueError(f"Box ids must be unique: '{box_id}' repeated on line {line_no}")
            name = (row.get("name") or "").strip()

            try:
                if folded and (row.get("length") or "").strip():
                    box = make_box_spec(
                        box_id, name,
                        int(row["length"]) * scale,
                        int(row["width"]) * scale,
                        int(row["height"]) * scale,
                        settings.limits,
                    )
                else:
                    box = box_from_plate(
                        box_id, name,
                        int(row["plate_length"]),
                        int(row["plate_height"]),
                        settings.limits,
                    )
            except InvalidDimension as e:
                problems.append(f"{box_id}: {e}")
                continue
            except (KeyError, TypeError, ValueError):
                raise ValueError(f"boxes.csv line {line_no}: missing or non-numeric dimension") from None

            boxes[box.box_id] = box

    if problems:
        msg = "Invalid box dimensions:\n"
        msg += "\n".join(f"- {p}" for p in problems)
        raise InvalidDimension(msg)

    return boxes


# ------------------------------
# Order CSV
# ------------------------------

def parse_order(path: str) -> List[ProductionRequest]:
    requests: List[ProductionRequest] = []
    with open(path, newline="", encoding="utf-8") as f:
        reader = csv.DictReader(f)
        if not {"box", "quantity"}.issubset(set(reader.fieldnames or [])):
            raise ValueError("order.csv missing required columns (box, quantity)")

        for line_no, row in enumerate(reader, start=2):
            box_id = (row.get("box") or "").strip()
            if not box_id:
                continue
            raw = (row.get("quantity") or "0").strip() or "0"
            try:
                qty = int(raw)
            except ValueError:
                raise ValueError(f"order.csv line {line_no}: quantity '{raw}' is not an integer") from None
            if qty < 0:
                raise ValueError(f"order.csv line {line_no}: quantity must be >= 0")
            requests.append(ProductionRequest(box_id=BoxId(box_id), quantity=qty))

    return requests


# ------------------------------
# JSON export
# ------------------------------

def _pct(x: float) -> float:
    return round(x, 2)


def _plan_dict(p) -> Dict[str, Any]:
    return {
        "reel": p.reel.reel_id,
        "cut_lengths_mm": list(p.cut_lengths_mm),
        "slots": [
            {
                "box": s.box_id,
                "plate_height_mm": s.plate_height_mm,
                "plate_length_mm": s.plate_length_mm,
                "count": s.count,
            }
            for s in p.slots
        ],
        "used_width_mm": p.used_width_mm,
        "waste_mm": p.waste_mm,
        "waste_percent": _pct(p.waste_percent),
        "rating": p.rating,
        "rows": p.rows,
        "plates": p.plates,
        "linear_m": round(p.linear_m, 3),
    }


def plan_to_dict(plan) -> Dict[str, Any]:
    """ProductionPlan → plain dicts/lists. Percents rounded to 2 decimals here only."""
    runs = {}
    for rid, r in plan.runs.items():
        t = plan.totals[rid]
        runs[rid] = {
            "passes": [_plan_dict(p) for p in r.plans],
            "totals": {
                "passes": t.passes,
                "rows": t.rows,
                "plates": t.total_plates,
                "linear_m": round(t.total_linear_m, 3),
                "weighted_waste_percent": _pct(t.weighted_waste_percent),
            },
            "unplaceable": list(r.unplaceable),
            "residual_plates": dict(r.residual),
            "hit_iteration_cap": r.hit_iteration_cap,
        }

    baseline = {
        bid: [
            {
                "reel": o.reel.reel_id,
                "boxes_per_row": o.boxes_per_row,
                "waste_percent": _pct(o.waste_percent),
                "rating": o.rating,
                "rows": o.rows,
                "linear_m": round(o.linear_m, 3),
            }
            for o in opts
        ]
        for bid, opts in plan.baseline.options.items()
    }

    return {
        "chosen_reel": plan.chosen_reel,
        "runs": runs,
        "baseline": baseline,
        "infeasible": plan.unplaceable,
        "saved_linear_m": round(plan.saved_linear_m, 3),
        "baseline_totals": {
            rid: {"boxes": rb.boxes, "linear_m": round(rb.linear_m, 3)}
            for rid, rb in sorted(plan.baseline_totals.items())
        },
        "balance": [
            {
                "box": b.box_id,
                "requested": b.requested,
                "produced_plates": b.produced_plates,
                "produced_boxes": b.produced_boxes,
                "surplus": b.surplus,
            }
            for b in plan.balance
        ],
        "suggestions": {
            bid: [
                {
                    "suggested": s.suggested_quantity,
                    "difference": s.difference,
                    "reel": s.reel_id,
                    "boxes_per_row": s.boxes_per_row,
                    "rows": s.rows,
                    "waste_percent": _pct(s.waste_percent),
                    "linear_m": round(s.linear_m, 3),
                    "is_minimum": s.is_minimum,
                    "reason": s.reason,
                }
                for s in sugg
            ]
            for bid, sugg in plan.suggestions.items()
        },
        "fillers": [
            {
                "pass": f.pass_index,
                "box": f.box_id,
                "leftover_mm": f.leftover_mm,
                "count": f.count,
                "remaining_mm": f.remaining_mm,
                "adds_cut_length": f.adds_cut_length,
            }
            for f in plan.fillers
        ],
    }


def write_plan_json(path: str, plan) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(plan_to_dict(plan), f, indent=2, ensure_ascii=False)
