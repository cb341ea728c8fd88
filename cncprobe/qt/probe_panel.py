# Qt Probe Panel - touch plate probing bound to a ProbeSession
#
# Presents the probe parameters of a ProbeSession, forwards every edit
# to the session and refreshes itself from session snapshots. The Probe
# button opens a preview of the generated cycle; accepting it submits
# the cycle through the session.

from PySide6.QtWidgets import (
    QWidget, QVBoxLayout, QGridLayout,
    QGroupBox, QLabel, QPushButton, QDoubleSpinBox,
    QComboBox, QCheckBox, QDialog, QDialogButtonBox,
    QPlainTextEdit, QMessageBox,
)

from ..Errors import ProbeError
from ..ProbeCycle import AXES
from ..Units import IMPERIAL_UNITS, UNIT_DECIMALS
from .signals import ProbeSignals


PROBE_CMD = [
    "G38.2 stop on contact else error",
    "G38.3 stop on contact",
    "G38.4 stop on loss contact else error",
    "G38.5 stop on loss contact",
]


def _is_number(value):
    return isinstance(value, float) and value == value


# ======================================================================
# RunProbeDialog - preview of the generated probe cycle
# ======================================================================
class RunProbeDialog(QDialog):
    """Read-only listing of the probe commands with Run/Cancel."""

    def __init__(self, lines, parent=None):
        super().__init__(parent)
        self.setWindowTitle("Probe")

        layout = QVBoxLayout(self)
        layout.addWidget(QLabel("Probe commands:"))

        self.commands = QPlainTextEdit()
        self.commands.setReadOnly(True)
        self.commands.setPlainText("\n".join(lines))
        layout.addWidget(self.commands)

        buttons = QDialogButtonBox(
            QDialogButtonBox.StandardButton.Ok
            | QDialogButtonBox.StandardButton.Cancel)
        buttons.button(QDialogButtonBox.StandardButton.Ok).setText(
            "Run Probe")
        buttons.accepted.connect(self.accept)
        buttons.rejected.connect(self.reject)
        layout.addWidget(buttons)


# ======================================================================
# ProbePanel
# ======================================================================
class ProbePanel(QWidget):
    """Probe axis, command, TLO toggle and touch plate geometry."""

    def __init__(self, session, parent=None):
        super().__init__(parent)
        self.session = session
        self.signals = ProbeSignals()

        group = QGroupBox("Probe")
        gl = QGridLayout(group)
        row = 0

        gl.addWidget(QLabel("Probe Axis:"), row, 0)
        self.probe_axis = QComboBox()
        self.probe_axis.addItems(AXES)
        self.probe_axis.currentTextChanged.connect(self._on_axis_changed)
        gl.addWidget(self.probe_axis, row, 1, 1, 2)
        row += 1

        gl.addWidget(QLabel("Probe Command:"), row, 0)
        self.probe_cmd = QComboBox()
        self.probe_cmd.addItems(PROBE_CMD)
        self.probe_cmd.currentTextChanged.connect(self._on_command_changed)
        gl.addWidget(self.probe_cmd, row, 1, 1, 2)
        row += 1

        self.use_tlo = QCheckBox("Apply tool length offset")
        self.use_tlo.toggled.connect(self._on_tlo_toggled)
        gl.addWidget(self.use_tlo, row, 0, 1, 3)
        row += 1

        self._unit_labels = []
        self.probe_depth = self._add_length(
            gl, row, "Probe Depth:", self.session.edit_depth)
        row += 1
        self.probe_feedrate = self._add_length(
            gl, row, "Probe Feedrate:", self.session.edit_feedrate,
            per_minute=True)
        row += 1
        self.touch_plate_height = self._add_length(
            gl, row, "Touch Plate Thickness:", self.session.edit_plate_height)
        row += 1
        self.retraction_distance = self._add_length(
            gl, row, "Retraction Distance:", self.session.edit_retraction)
        row += 1

        gl.setColumnStretch(1, 1)

        self.probe_btn = QPushButton("Probe")
        self.probe_btn.clicked.connect(self._on_probe)

        layout = QVBoxLayout(self)
        layout.setContentsMargins(4, 4, 4, 4)
        layout.addWidget(group)
        layout.addWidget(self.probe_btn)
        layout.addStretch()

        # Session observers may run off the main thread
        self.signals.snapshot_changed.connect(self.update_snapshot)
        self._observer = self.signals.snapshot_changed.emit
        self.session.observe(self._observer)
        self.update_snapshot(self.session.snapshot())

    def _add_length(self, gl, row, label, edit, per_minute=False):
        gl.addWidget(QLabel(label), row, 0)
        spin = QDoubleSpinBox()
        spin.setRange(0, 100000)
        spin.setDecimals(UNIT_DECIMALS[self.session.status.unit])
        spin.valueChanged.connect(edit)
        gl.addWidget(spin, row, 1)
        unit_label = QLabel()
        gl.addWidget(unit_label, row, 2)
        self._unit_labels.append((unit_label, per_minute))
        return spin

    # ------------------------------------------------------------------
    # Session -> widgets
    # ------------------------------------------------------------------
    def update_snapshot(self, snapshot):
        """Refresh every widget from a SessionSnapshot."""
        params = snapshot.params
        unit = snapshot.status.unit
        widgets = [
            self.probe_axis, self.probe_cmd, self.use_tlo,
            self.probe_depth, self.probe_feedrate,
            self.touch_plate_height, self.retraction_distance,
        ]
        for w in widgets:
            w.blockSignals(True)
        try:
            self.probe_axis.setCurrentText(params.axis)
            for i, p in enumerate(PROBE_CMD):
                if p.split()[0] == params.command:
                    self.probe_cmd.setCurrentIndex(i)
                    break
            self.use_tlo.setChecked(bool(params.use_tlo))

            decimals = UNIT_DECIMALS.get(unit, 3)
            for spin, value in [
                (self.probe_depth, params.depth),
                (self.probe_feedrate, params.feedrate),
                (self.touch_plate_height, params.touch_plate_height),
                (self.retraction_distance, params.retraction_distance),
            ]:
                spin.setDecimals(decimals)
                # Keep what the user typed when the session holds text
                if _is_number(value):
                    spin.setValue(value)
        finally:
            for w in widgets:
                w.blockSignals(False)

        name = "in" if unit == IMPERIAL_UNITS else "mm"
        for label, per_minute in self._unit_labels:
            label.setText(f"{name}/min" if per_minute else name)

        self.probe_btn.setEnabled(snapshot.can_probe)

    # ------------------------------------------------------------------
    # Widgets -> session
    # ------------------------------------------------------------------
    def _on_axis_changed(self, text):
        self.session.edit_axis(text)

    def _on_command_changed(self, text):
        self.session.edit_command(text.split()[0])

    def _on_tlo_toggled(self, checked):
        if bool(checked) != bool(self.session.params.use_tlo):
            self.session.toggle_tlo()

    # ------------------------------------------------------------------
    # Probe
    # ------------------------------------------------------------------
    def _on_probe(self):
        try:
            lines = self.session.preview_probe()
        except ProbeError as e:
            QMessageBox.critical(self, "Probe Error", str(e))
            return
        dialog = RunProbeDialog(lines, self)
        if dialog.exec():
            self.run_probe()

    def run_probe(self):
        """Submit the probe cycle. Returns the lines, or None on error."""
        try:
            lines = self.session.run_probe()
        except ProbeError as e:
            QMessageBox.critical(self, "Probe Error", str(e))
            return None
        self.signals.probe_submitted.emit(lines)
        self.signals.status_message.emit(
            f"Probe cycle sent ({len(lines)} lines)")
        return lines

    def closeEvent(self, event):
        self.session.unobserve(self._observer)
        super().closeEvent(event)
