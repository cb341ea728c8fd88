"""Tests for metric/imperial conversion helpers."""

import math
import os
import sys
import unittest

_root = os.path.join(os.path.dirname(__file__), "..")
if _root not in sys.path:
    sys.path.insert(0, _root)

from cncprobe.Units import (  # noqa: E402
    IMPERIAL_UNITS,
    METRIC_UNITS,
    from_mm,
    in2mm,
    map_position_to_units,
    map_units_to_value,
    map_value_to_units,
    mm2in,
    to_mm,
)


class TestConversion(unittest.TestCase):

    def test_metric_is_identity(self):
        self.assertEqual(to_mm(12.5, METRIC_UNITS), 12.5)
        self.assertEqual(from_mm(12.5, METRIC_UNITS), 12.5)

    def test_imperial_uses_25_4(self):
        self.assertAlmostEqual(to_mm(1, IMPERIAL_UNITS), 25.4)
        self.assertAlmostEqual(from_mm(25.4, IMPERIAL_UNITS), 1.0)
        self.assertAlmostEqual(in2mm(2), 50.8)
        self.assertAlmostEqual(mm2in(50.8), 2.0)

    def test_round_trip_within_one_thousandth(self):
        """from_mm(to_mm(v)) returns v for both units."""
        for unit in (METRIC_UNITS, IMPERIAL_UNITS):
            for v in (0, 0.001, 0.5, 1, 3.14159, 19.5, 250, 12345.678):
                with self.subTest(unit=unit, v=v):
                    self.assertAlmostEqual(
                        from_mm(to_mm(v, unit), unit), v, delta=0.001)

    def test_negative_and_nan_pass_through(self):
        self.assertAlmostEqual(to_mm(-1, IMPERIAL_UNITS), -25.4)
        self.assertTrue(math.isnan(to_mm(float("nan"), IMPERIAL_UNITS)))
        self.assertTrue(math.isnan(from_mm(float("nan"), METRIC_UNITS)))


class TestDisplayMapping(unittest.TestCase):

    def test_metric_display_rounds_to_three_decimals(self):
        self.assertEqual(map_value_to_units(10.12345, METRIC_UNITS), 10.123)

    def test_imperial_display_rounds_to_four_decimals(self):
        self.assertEqual(map_value_to_units(10, IMPERIAL_UNITS), 0.3937)

    def test_missing_value_displays_as_zero(self):
        self.assertEqual(map_value_to_units(None), 0.0)
        self.assertEqual(map_value_to_units("garbage"), 0.0)

    def test_stored_strings_are_parsed(self):
        self.assertEqual(map_value_to_units("19.5", METRIC_UNITS), 19.5)

    def test_position_mapping(self):
        self.assertEqual(map_position_to_units(25.4, IMPERIAL_UNITS), 1.0)
        self.assertEqual(map_position_to_units(-3.00049, METRIC_UNITS), -3.0)

    def test_units_to_value_persists_three_decimals(self):
        self.assertEqual(map_units_to_value(0.3937, IMPERIAL_UNITS), 10.0)
        self.assertEqual(map_units_to_value(5.12345, METRIC_UNITS), 5.123)


if __name__ == "__main__":
    unittest.main()
