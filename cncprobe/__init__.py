# cncprobe - Controller state normalization and probe cycle generation
#
# Core modules are toolkit-independent; the Qt presentation adapter
# lives in cncprobe.qt and is the only part that imports PySide6.

__version__ = "0.1.0"
