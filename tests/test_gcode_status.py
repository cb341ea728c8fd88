"""Tests for G-code sender progress and bounding box tracking."""

import os
import sys
import unittest

_root = os.path.join(os.path.dirname(__file__), "..")
if _root not in sys.path:
    sys.path.insert(0, _root)

from cncprobe.ControllerState import GRBL  # noqa: E402
from cncprobe.GCodeStatus import GCodeStatus  # noqa: E402
from cncprobe.Transport import LoopbackTransport  # noqa: E402
from cncprobe.Units import IMPERIAL_UNITS, METRIC_UNITS  # noqa: E402


BBOX = {
    "min": {"x": -10, "y": 0, "z": -2.5},
    "max": {"x": 40, "y": 25.4, "z": 5},
}


class TestGCodeStatus(unittest.TestCase):

    def setUp(self):
        self.transport = LoopbackTransport()
        self.status = GCodeStatus()
        self.status.attach(self.transport.bus)
        self.transport.open("/dev/ttyACM0", GRBL)

    def test_connect(self):
        self.assertTrue(self.status.status.connected)
        self.assertEqual(self.status.status.port, "/dev/ttyACM0")
        self.assertEqual(self.status.unit, METRIC_UNITS)

    def test_bbox_delta(self):
        self.transport.gcode_bbox(BBOX)
        box = self.status.bbox()
        self.assertEqual(box["delta"], {"x": 50, "y": 25.4, "z": 7.5})
        self.assertEqual(box["min"]["z"], -2.5)

    def test_empty_bbox_event(self):
        self.transport.gcode_bbox(BBOX)
        self.transport.gcode_bbox(None)
        box = self.status.bbox()
        self.assertEqual(box["max"], {"x": 0, "y": 0, "z": 0})
        self.assertEqual(box["delta"], {"x": 0, "y": 0, "z": 0})

    def test_bbox_missing_axes_are_zero(self):
        self.transport.gcode_bbox({"min": {"x": 1}, "max": {"x": 3}})
        box = self.status.bbox()
        self.assertEqual(box["delta"], {"x": 2, "y": 0, "z": 0})

    def test_bbox_follows_display_unit(self):
        self.transport.gcode_bbox(BBOX)
        self.transport.controller_state(GRBL, {
            "parserstate": {"modal": {"units": "G20"}},
        })
        self.assertEqual(self.status.unit, IMPERIAL_UNITS)
        box = self.status.bbox()
        self.assertEqual(box["max"]["y"], 1.0)
        self.assertEqual(box["delta"]["x"], 1.9685)

    def test_unload_clears_bbox(self):
        self.transport.gcode_bbox(BBOX)
        self.transport.gcode_unload()
        box = self.status.bbox()
        for corner in ("min", "max", "delta"):
            self.assertEqual(box[corner], {"x": 0, "y": 0, "z": 0})

    def test_sender_status_partial_update(self):
        self.transport.sender_status({"total": 120, "sent": 10})
        self.transport.sender_status({"sent": 20, "received": 18,
                                      "unknown": 1})
        progress = self.status.progress()
        self.assertEqual(progress["total"], 120)
        self.assertEqual(progress["sent"], 20)
        self.assertEqual(progress["received"], 18)
        self.assertEqual(progress["elapsedTime"], 0)
        self.assertNotIn("unknown", progress)

    def test_progress_is_a_copy(self):
        self.status.progress()["total"] = 99
        self.assertEqual(self.status.progress()["total"], 0)

    def test_disconnect_resets(self):
        self.transport.gcode_bbox(BBOX)
        self.transport.sender_status({"total": 5})
        self.transport.close()
        self.assertFalse(self.status.status.connected)
        self.assertEqual(self.status.progress()["total"], 0)
        self.assertEqual(self.status.bbox()["max"]["x"], 0)

    def test_detach(self):
        self.status.detach()
        self.transport.sender_status({"total": 5})
        self.assertEqual(self.status.progress()["total"], 0)


if __name__ == "__main__":
    unittest.main()
