"""
Tests for summary.py and planner.py: totals, reel choice, balance and the
end-to-end production plan.
"""

import unittest
from fractions import Fraction

from models import (
    BoxId, CutPlan, CutSlot, InvalidDimension, PackingResult, ProductionRequest,
    ReelId, ReelProfile, STANDARD_REELS
)
from plates import box_from_plate
from planner import build_production_plan, merge_requests
from summary import baseline_totals, choose_reel, compute_totals, production_balance
from single_lane import single_lane_report


WIDE = STANDARD_REELS[0]
NARROW = STANDARD_REELS[1]


def _req(bid, qty):
    return ProductionRequest(BoxId(bid), qty)


def _boxes(*boxes):
    return {b.box_id: b for b in boxes}


class TestComputeTotals(unittest.TestCase):

    def test_empty(self):
        t = compute_totals([])
        self.assertEqual((t.passes, t.rows, t.total_plates), (0, 0, 0))
        self.assertEqual(t.weighted_waste_percent, 0.0)

    def test_row_weighted_waste(self):
        p1 = CutPlan(WIDE, (CutSlot(BoxId("A"), 300, 850, 5),), (850,), rows=200)
        p2 = CutPlan(WIDE, (CutSlot(BoxId("B"), 400, 850, 3),), (850,), rows=1)
        t = compute_totals([p1, p2])
        self.assertEqual(t.passes, 2)
        self.assertEqual(t.rows, 201)
        self.assertEqual(t.total_plates, 1003)
        self.assertAlmostEqual(t.total_linear_m, 170.0 + 0.85)
        self.assertEqual(t.weighted_waste, Fraction(20 * 200 + 320, 1520 * 201))


class TestChooseReel(unittest.TestCase):

    def _result(self, reel, waste_slots, unplaceable=(), residual=None):
        plans = [CutPlan(reel, (CutSlot(BoxId("A"), h, 850, n),), (850,), rows=10)
                 for h, n in waste_slots]
        return PackingResult(reel=reel, plans=plans, unplaceable=list(unplaceable),
                             residual=dict(residual or {}))

    def test_lower_waste_wins(self):
        results = {
            WIDE.reel_id: self._result(WIDE, [(300, 5)]),       # 20/1520
            NARROW.reel_id: self._result(NARROW, [(300, 4)]),   # 30/1230
        }
        self.assertEqual(choose_reel(results), "1.60")

    def test_unplaceable_loses(self):
        results = {
            WIDE.reel_id: self._result(WIDE, [(300, 5)], unplaceable=["X"]),
            NARROW.reel_id: self._result(NARROW, [(300, 3)]),
        }
        self.assertEqual(choose_reel(results), "1.30")

    def test_partial_loses(self):
        results = {
            WIDE.reel_id: self._result(WIDE, [(300, 5)], residual={"A": 5}),
            NARROW.reel_id: self._result(NARROW, [(300, 3)]),
        }
        self.assertEqual(choose_reel(results), "1.30")

    def test_forced(self):
        results = {
            WIDE.reel_id: self._result(WIDE, [(300, 5)]),
            NARROW.reel_id: self._result(NARROW, [(300, 3)]),
        }
        self.assertEqual(choose_reel(results, ReelId("1.30")), "1.30")
        with self.assertRaises(ValueError):
            choose_reel(results, ReelId("9.99"))

    def test_no_results(self):
        with self.assertRaises(ValueError):
            choose_reel({})


class TestBalanceAndBaseline(unittest.TestCase):

    def test_balance_counts_double_plates(self):
        boxes = _boxes(box_from_plate("A", "", 850, 300), box_from_plate("D", "", 2450, 1000))
        plans = [
            CutPlan(WIDE, (CutSlot(BoxId("A"), 300, 850, 5),), (850,), rows=201),
            CutPlan(WIDE, (CutSlot(BoxId("D"), 1000, 1250, 1),), (1250,), rows=20),
        ]
        res = PackingResult(reel=WIDE, plans=plans)
        bal = {b.box_id: b for b in production_balance(res, boxes, [_req("A", 1000), _req("D", 10)])}
        self.assertEqual(bal["A"].produced_boxes, 1005)
        self.assertEqual(bal["A"].surplus, 5)
        self.assertEqual(bal["D"].produced_plates, 20)
        self.assertEqual(bal["D"].produced_boxes, 10)
        self.assertEqual(bal["D"].surplus, 0)

    def test_baseline_totals_per_reel(self):
        boxes = _boxes(box_from_plate("A", "", 850, 300), box_from_plate("B", "", 850, 400))
        report = single_lane_report(boxes, [_req("A", 1000), _req("B", 300)], STANDARD_REELS)
        totals = baseline_totals(report)
        self.assertEqual(totals["1.60"].boxes, 1000)
        self.assertAlmostEqual(totals["1.60"].linear_m, 170.0)
        self.assertEqual(totals["1.30"].boxes, 300)


class TestMergeRequests(unittest.TestCase):

    def test_sums_and_sorts(self):
        merged = merge_requests([_req("B", 5), _req("A", 3), _req("B", 7), _req("C", 0)])
        self.assertEqual(merged, [_req("A", 3), _req("B", 12), _req("C", 0)])

    def test_negative_rejected(self):
        with self.assertRaises(ValueError):
            merge_requests([_req("A", -1)])


class TestBuildProductionPlan(unittest.TestCase):

    def setUp(self):
        self.boxes = _boxes(
            box_from_plate("A", "", 850, 300),
            box_from_plate("B", "", 1050, 350),
            box_from_plate("D", "", 2450, 1000),
        )

    def test_single_box_prefers_wide_reel(self):
        plan = build_production_plan(self.boxes, [_req("A", 1000)], STANDARD_REELS)
        self.assertEqual(plan.chosen_reel, "1.60")
        self.assertEqual(len(plan.chosen.plans), 1)
        self.assertAlmostEqual(plan.totals["1.60"].total_linear_m, 170.0)
        self.assertAlmostEqual(plan.saved_linear_m, 0.0)
        self.assertIn("A", plan.suggestions)
        self.assertEqual(set(plan.runs), {"1.60", "1.30"})

    def test_forced_reel(self):
        plan = build_production_plan(self.boxes, [_req("A", 1000)], STANDARD_REELS,
                                     forced_reel=ReelId("1.30"))
        self.assertEqual(plan.chosen_reel, "1.30")
        self.assertEqual(plan.chosen.plans[0].slots[0].count, 4)

    def test_mixed_order_complete(self):
        reqs = [_req("A", 400), _req("B", 250), _req("D", 30), _req("A", 100)]
        plan = build_production_plan(self.boxes, reqs, STANDARD_REELS)
        for res in plan.runs.values():
            self.assertFalse(res.is_partial)
        bal = {b.box_id: b for b in plan.balance}
        self.assertEqual(bal["A"].requested, 500)
        for b in plan.balance:
            self.assertGreaterEqual(b.surplus, 0)

    def test_box_fitting_one_reel(self):
        boxes = _boxes(box_from_plate("A", "", 850, 300), box_from_plate("W", "", 850, 1300))
        plan = build_production_plan(boxes, [_req("A", 100), _req("W", 10)], STANDARD_REELS)
        self.assertEqual(plan.runs["1.30"].unplaceable, ["W"])
        self.assertEqual(plan.chosen_reel, "1.60")
        self.assertEqual(plan.unplaceable, [])

    def test_box_fitting_no_reel(self):
        boxes = _boxes(box_from_plate("BIG", "", 850, 1600))
        plan = build_production_plan(boxes, [_req("BIG", 10)], STANDARD_REELS)
        self.assertEqual(plan.unplaceable, ["BIG"])
        self.assertEqual(plan.chosen.plans, [])

    def test_baseline_totals_on_plan(self):
        plan = build_production_plan(self.boxes, [_req("A", 1000)], STANDARD_REELS)
        self.assertEqual(set(plan.baseline_totals), {"1.60"})
        self.assertEqual(plan.baseline_totals["1.60"].boxes, 1000)
        self.assertAlmostEqual(plan.baseline_totals["1.60"].linear_m, 170.0)

    def test_zero_quantity_box_not_reported_unplaceable(self):
        boxes = _boxes(box_from_plate("A", "", 850, 300), box_from_plate("BIG", "", 850, 1600))
        plan = build_production_plan(boxes, [_req("A", 100), _req("BIG", 0)], STANDARD_REELS)
        self.assertEqual(plan.unplaceable, [])
        self.assertEqual(plan.chosen.unplaceable, [])
        bal = {b.box_id: b for b in plan.balance}
        self.assertEqual((bal["BIG"].requested, bal["BIG"].produced_boxes), (0, 0))

    def test_unknown_box_rejected(self):
        with self.assertRaises(ValueError):
            build_production_plan(self.boxes, [_req("NOPE", 1)], STANDARD_REELS)

    def test_bad_reel_rejected(self):
        with self.assertRaises(InvalidDimension):
            build_production_plan(self.boxes, [_req("A", 1)],
                                  [ReelProfile(ReelId("x"), 1000, 0)])

    def test_repeatable(self):
        reqs = [_req("A", 400), _req("B", 250), _req("D", 30)]
        first = build_production_plan(self.boxes, reqs, STANDARD_REELS)
        second = build_production_plan(self.boxes, reqs, STANDARD_REELS)
        self.assertEqual(first.chosen.plans, second.chosen.plans)
        self.assertEqual(first.suggestions, second.suggestions)


if __name__ == '__main__':
    unittest.main(verbosity=2)
