# ReelCut ver1.0 — main entry
# - Boxes and order from CSV, machine/reel settings from config.properties
# - Clean error reporting (no traceback)
# - PDF production sheet, optional JSON plan

import argparse
import logging

from io_utils import (
    parse_boxes, parse_order, parse_properties, load_settings, write_plan_json
)
from models import InvalidDimension, ReelId
from planner import build_production_plan
from pdf_export import generate_pdf


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="ReelCut 1.0 reel cutting planner")
    parser.add_argument("boxes_csv", help="boxes.csv input (box catalog)")
    parser.add_argument("order_csv", help="order.csv input (box, quantity)")
    parser.add_argument("config_properties", help="config.properties input")
    parser.add_argument("output_pdf", help="output PDF path")
    parser.add_argument("--json", dest="json_path", help="also write the plan as JSON")
    parser.add_argument("--reel", help="force a reel id (overrides config 'reel')")
    parser.add_argument("--verbose", action="store_true", help="log every committed pass")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    # --- LOAD INPUT FILES ---
    try:
        cfg = parse_properties(args.config_properties)
        settings = load_settings(cfg)
        boxes = parse_boxes(args.boxes_csv, settings)
        requests = parse_order(args.order_csv)

        forced = ReelId(args.reel) if args.reel else settings.forced_reel

        # --- OPTIMIZATION ---
        plan = build_production_plan(
            boxes,
            requests,
            settings.reels,
            limits=settings.limits,
            forced_reel=forced,
        )
    except InvalidDimension as e:
        print("\n[ERROR] Invalid dimensions:")
        print(str(e).strip())
        print("No output created.\n")
        return 2
    except ValueError as e:
        print("\n[ERROR] Invalid input:")
        print(str(e).strip())
        print("No output created.\n")
        return 2

    # --- WARNINGS ---
    chosen = plan.chosen
    if plan.unplaceable:
        print("[WARNING] Boxes that fit no reel: " + ", ".join(plan.unplaceable))
    if chosen.unplaceable:
        print(f"[WARNING] Unplaceable on {chosen.reel.name}: " + ", ".join(chosen.unplaceable))
    if chosen.is_partial:
        print(f"[WARNING] Pass limit ({settings.limits.max_passes}) reached, pending plates: "
              + ", ".join(f"{b}={n}" for b, n in chosen.residual.items()))

    # --- OUTPUT ---
    generate_pdf(args.output_pdf, plan, boxes, cfg)
    if args.json_path:
        write_plan_json(args.json_path, plan)

    t = plan.totals[plan.chosen_reel]
    print(f"Success! PDF saved to {args.output_pdf}")
    print(f"{chosen.reel.name}: {t.passes} passes, {t.total_linear_m:.2f} m, "
          f"average waste {t.weighted_waste_percent:.2f}%")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
