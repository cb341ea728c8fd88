# Qt signal definitions for the probe panel
#
# ProbeSession observers run on whichever thread delivered the transport
# event. The panel re-emits snapshots through these signals so widget
# updates happen on the Qt main thread.

from PySide6.QtCore import QObject, Signal


class ProbeSignals(QObject):
    """Signal hub between a ProbeSession and its Qt widgets."""

    snapshot_changed = Signal(object)      # SessionSnapshot
    probe_submitted = Signal(list)         # submitted G-code lines
    status_message = Signal(str)           # text for a status bar
