"""
Tests for plates.py: RSC derivation, double-plate split, reel validation.

Run with:
    python -m pytest test_plates.py -v
"""

import unittest

from models import InvalidDimension, MachineLimits, ReelId, ReelProfile
from plates import (
    box_from_plate, derive_unfolded, make_box_spec, split_plate, validate_reels
)


class TestDeriveUnfolded(unittest.TestCase):

    def test_regular_box(self):
        g = derive_unfolded(200, 200, 100)
        self.assertEqual(g.plate_length_mm, 850)
        self.assertEqual(g.plate_height_mm, 300)
        self.assertEqual(g.plate_multiplier, 1)
        self.assertEqual(g.unfolded_length_mm, 850)

    def test_double_plate(self):
        # 2*700 + 2*500 + 50 = 2450 → two halves of 1225 + 25
        g = derive_unfolded(700, 500, 500)
        self.assertEqual(g.unfolded_length_mm, 2450)
        self.assertEqual(g.plate_multiplier, 2)
        self.assertEqual(g.plate_length_mm, 1250)
        self.assertEqual(g.plate_height_mm, 1000)
        self.assertLessEqual(g.plate_length_mm, 2080)

    def test_halves_cover_full_length(self):
        g = derive_unfolded(700, 500, 500)
        self.assertGreaterEqual(2 * g.plate_length_mm - 25, g.unfolded_length_mm)

    def test_exact_limit_is_single_plate(self):
        # 2*515 + 2*500 + 50 = 2080
        g = derive_unfolded(515, 500, 100)
        self.assertEqual(g.plate_length_mm, 2080)
        self.assertEqual(g.plate_multiplier, 1)

    def test_custom_glue_flap(self):
        g = derive_unfolded(200, 200, 100, MachineLimits(glue_flap_mm=30))
        self.assertEqual(g.plate_length_mm, 830)

    def test_zero_dimension_rejected(self):
        with self.assertRaises(InvalidDimension):
            derive_unfolded(0, 200, 100)

    def test_negative_dimension_rejected(self):
        with self.assertRaises(InvalidDimension):
            derive_unfolded(200, -5, 100)

    def test_invalid_dimension_is_value_error(self):
        with self.assertRaises(ValueError):
            derive_unfolded(200, 200, 0)

    def test_deterministic(self):
        self.assertEqual(derive_unfolded(300, 200, 150), derive_unfolded(300, 200, 150))


class TestSplitPlate(unittest.TestCase):

    def test_one_over_limit_rounds_up(self):
        g = split_plate(2081, 300)
        self.assertEqual(g.plate_multiplier, 2)
        self.assertEqual(g.plate_length_mm, 1041 + 25)

    def test_unsplittable_plate_rejected(self):
        # ceil(4200/2) + 25 = 2125 > 2080
        with self.assertRaises(InvalidDimension):
            split_plate(4200, 300)

    def test_zero_height_rejected(self):
        with self.assertRaises(InvalidDimension):
            split_plate(850, 0)


class TestBoxSpecConstruction(unittest.TestCase):

    def test_make_box_spec_keeps_folded_dims(self):
        box = make_box_spec("20x20x10", "20×20×10", 200, 200, 100)
        self.assertEqual(box.box_id, "20x20x10")
        self.assertEqual((box.length_mm, box.width_mm, box.height_mm), (200, 200, 100))
        self.assertEqual(box.plate_length_mm, 850)
        self.assertFalse(box.is_double_plate)

    def test_name_defaults_to_id(self):
        self.assertEqual(make_box_spec("B1", "", 200, 200, 100).name, "B1")

    def test_box_from_plate_splits(self):
        box = box_from_plate("70x50x50", "", 2450, 1000)
        self.assertTrue(box.is_double_plate)
        self.assertEqual(box.plate_length_mm, 1250)
        self.assertIsNone(box.length_mm)

    def test_box_spec_is_immutable(self):
        box = make_box_spec("B1", "", 200, 200, 100)
        with self.assertRaises(Exception):
            box.plate_height_mm = 10


class TestValidateReels(unittest.TestCase):

    def test_standard_reels_ok(self):
        reels = [ReelProfile(ReelId("1.60"), 1600, 1520),
                 ReelProfile(ReelId("1.30"), 1300, 1230)]
        self.assertEqual(validate_reels(reels), reels)

    def test_zero_usable_rejected(self):
        with self.assertRaises(InvalidDimension):
            validate_reels([ReelProfile(ReelId("x"), 1600, 0)])

    def test_usable_not_below_width_rejected(self):
        with self.assertRaises(InvalidDimension):
            validate_reels([ReelProfile(ReelId("x"), 1600, 1600)])

    def test_empty_rejected(self):
        with self.assertRaises(InvalidDimension):
            validate_reels([])

    def test_all_problems_reported(self):
        with self.assertRaises(InvalidDimension) as ctx:
            validate_reels([
                ReelProfile(ReelId("a"), 1600, -1),
                ReelProfile(ReelId("b"), 1000, 1200),
                ReelProfile(ReelId("b"), 1300, 1230),
            ])
        msg = str(ctx.exception)
        self.assertIn("a:", msg)
        self.assertIn("b:", msg)
        self.assertIn("duplicate", msg)


if __name__ == '__main__':
    unittest.main(verbosity=2)
