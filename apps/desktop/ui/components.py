"""
Small reusable widgets shared by the main window and the alert popup.
"""

from __future__ import annotations

from PySide6.QtWidgets import QFrame, QLabel, QPushButton, QVBoxLayout


class Card(QFrame):
    """Rounded container used for each section of the window."""

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setObjectName("Card")
        self.layout = QVBoxLayout(self)
        self.layout.setContentsMargins(16, 16, 16, 16)
        self.layout.setSpacing(12)


class PrimaryButton(QPushButton):
    def __init__(self, text: str = "", parent=None):
        super().__init__(text, parent)
        self.setObjectName("PrimaryButton")


class SecondaryButton(QPushButton):
    def __init__(self, text: str = "", parent=None):
        super().__init__(text, parent)
        self.setObjectName("SecondaryButton")


class DangerButton(QPushButton):
    """Compact button for destructive actions (terminate, kill)."""

    def __init__(self, text: str = "", parent=None):
        super().__init__(text, parent)
        self.setObjectName("DangerButton")


class StatusPill(QLabel):
    """Status indicator pill, restyled through its object name."""

    VARIANTS = {
        "idle": "StatusPill",
        "active": "StatusPillActive",
        "alert": "StatusPillAlert",
    }

    def __init__(self, text: str = "", variant: str = "idle", parent=None):
        super().__init__(text, parent)
        self.set_variant(variant)

    def set_variant(self, variant: str) -> None:
        self.setObjectName(self.VARIANTS.get(variant, "StatusPill"))
        # Object-name selectors only re-apply after a polish cycle.
        self.style().unpolish(self)
        self.style().polish(self)
