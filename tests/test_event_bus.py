"""Tests for the EventBus and the loopback transport."""

import os
import sys
import unittest
from unittest.mock import MagicMock

_root = os.path.join(os.path.dirname(__file__), "..")
if _root not in sys.path:
    sys.path.insert(0, _root)

from cncprobe.EventBus import EventBus  # noqa: E402
from cncprobe.Transport import (  # noqa: E402
    CONTROLLER_STATE,
    GCODE_UNLOAD,
    SERIALPORT_CLOSE,
    SERIALPORT_OPEN,
    WORKFLOW_STATE,
    LoopbackTransport,
)


class TestEventBus(unittest.TestCase):

    def setUp(self):
        self.bus = EventBus()

    def test_emit_passes_arguments(self):
        cb = MagicMock()
        self.bus.on("controller:state", cb)
        self.bus.emit("controller:state", "Grbl", {"status": {}})
        cb.assert_called_once_with("Grbl", {"status": {}})

    def test_subscribers_run_in_order(self):
        calls = []
        self.bus.on("e", lambda: calls.append(1))
        self.bus.on("e", lambda: calls.append(2))
        self.bus.emit("e")
        self.assertEqual(calls, [1, 2])

    def test_duplicate_subscription_ignored(self):
        cb = MagicMock()
        self.bus.on("e", cb)
        self.bus.on("e", cb)
        self.bus.emit("e")
        self.assertEqual(cb.call_count, 1)

    def test_off(self):
        cb = MagicMock()
        self.bus.on("e", cb)
        self.bus.off("e", cb)
        self.bus.off("e", cb)
        self.bus.off("never", cb)
        self.bus.emit("e")
        cb.assert_not_called()

    def test_on_many_off_many(self):
        a, b = MagicMock(), MagicMock()
        handlers = {"a": a, "b": b}
        self.bus.on_many(handlers)
        self.assertEqual(self.bus.subscribers("a"), [a])
        self.bus.off_many(handlers)
        self.assertEqual(self.bus.subscribers("a"), [])
        self.assertEqual(self.bus.subscribers("b"), [])

    def test_subscriber_exception_propagates(self):
        self.bus.on("e", MagicMock(side_effect=ValueError("bad")))
        with self.assertRaises(ValueError):
            self.bus.emit("e")

    def test_clear(self):
        self.bus.on("a", MagicMock())
        self.bus.on("b", MagicMock())
        self.bus.clear("a")
        self.assertEqual(self.bus.subscribers("a"), [])
        self.assertEqual(len(self.bus.subscribers("b")), 1)
        self.bus.clear()
        self.assertEqual(self.bus.subscribers("b"), [])


class TestLoopbackTransport(unittest.TestCase):

    def setUp(self):
        self.transport = LoopbackTransport()
        self.events = []
        for name in (SERIALPORT_OPEN, SERIALPORT_CLOSE, CONTROLLER_STATE,
                     WORKFLOW_STATE, GCODE_UNLOAD):
            self.transport.bus.on(
                name,
                lambda *args, _name=name: self.events.append((_name, args)))

    def test_submit_refused_when_closed(self):
        self.assertFalse(self.transport.submit(["G0 X1"]))
        self.assertEqual(self.transport.drain(), [])

    def test_submit_batches(self):
        self.transport.open("COM3", "Grbl")
        self.assertTrue(self.transport.submit(["G91", "G0 Z5", "G90"]))
        self.assertTrue(self.transport.submit(("G4 P1",)))
        self.assertEqual(self.transport.drain(),
                         [["G91", "G0 Z5", "G90"], ["G4 P1"]])
        self.assertEqual(self.transport.drain(), [])

    def test_open_close_events(self):
        self.transport.open("COM3", "Marlin")
        self.transport.close()
        self.assertEqual(self.events, [
            (SERIALPORT_OPEN, ({"port": "COM3",
                                "controllerType": "Marlin"},)),
            (SERIALPORT_CLOSE, ({"port": "COM3"},)),
        ])
        self.assertIsNone(self.transport.port)

    def test_replayed_events(self):
        self.transport.controller_state("TinyG", {"sr": {}})
        self.transport.workflow_state("running")
        self.transport.gcode_unload()
        self.assertEqual(self.events, [
            (CONTROLLER_STATE, ("TinyG", {"sr": {}})),
            (WORKFLOW_STATE, ("running",)),
            (GCODE_UNLOAD, ()),
        ])

    def test_shared_bus(self):
        bus = EventBus()
        transport = LoopbackTransport(bus)
        self.assertIs(transport.bus, bus)


if __name__ == "__main__":
    unittest.main()
