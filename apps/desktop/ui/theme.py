"""
Stylesheet tokens and QSS generation for the monitor window and alert popup.
"""

from __future__ import annotations

from typing import Literal

SPACING = {
    "xs": "4px",
    "sm": "8px",
    "md": "12px",
    "xl": "24px",
}

FONT_FAMILY = "Segoe UI, -apple-system, BlinkMacSystemFont, sans-serif"

ACCENTS = {
    "blue": "#0A84FF",
    "red": "#FF453A",
    "orange": "#FF9F0A",
    "green": "#30D158",
    "gray": "#8E8E93",
}

LIGHT_COLORS = {
    "background": "#F5F5F7",
    "surface": "#FFFFFF",
    "surface_alt": "#F2F2F7",
    "text_primary": "#1C1C1E",
    "text_secondary": "#6E6E73",
    "border": "#E5E5EA",
}

DARK_COLORS = {
    "background": "#111113",
    "surface": "#1C1C1E",
    "surface_alt": "#2C2C2E",
    "text_primary": "#F2F2F7",
    "text_secondary": "#98989D",
    "border": "#38383A",
}

ThemeMode = Literal["light", "dark"]

# Bands used to color the CPU column, mirroring the low/medium/high badges
# of the process list.
CPU_BANDS = ((50.0, "red"), (20.0, "orange"))


def cpu_color(cpu_usage: float) -> str:
    for floor, accent in CPU_BANDS:
        if cpu_usage > floor:
            return ACCENTS[accent]
    return ACCENTS["green"]


def _rgba(hex_color: str, alpha: float) -> str:
    hex_color = hex_color.lstrip("#")
    r, g, b = int(hex_color[0:2], 16), int(hex_color[2:4], 16), int(hex_color[4:6], 16)
    return f"rgba({r}, {g}, {b}, {alpha})"


class Theme:
    """QSS provider for light and dark modes."""

    def __init__(self, mode: ThemeMode = "dark"):
        self.mode = mode
        self.colors = LIGHT_COLORS if mode == "light" else DARK_COLORS

    def toggle_mode(self) -> None:
        self.mode = "dark" if self.mode == "light" else "light"
        self.colors = LIGHT_COLORS if self.mode == "light" else DARK_COLORS

    def get_stylesheet(self) -> str:
        c = self.colors
        return f"""
        QMainWindow, QWidget#AlertPopup {{
            background-color: {c["background"]};
            color: {c["text_primary"]};
            font-family: {FONT_FAMILY};
        }}

        QLabel {{
            color: {c["text_primary"]};
        }}

        QLabel#TitleLabel {{
            font-size: 26px;
            font-weight: 700;
        }}

        QLabel#SectionLabel {{
            font-size: 17px;
            font-weight: 600;
        }}

        QLabel#HintLabel {{
            font-size: 13px;
            color: {c["text_secondary"]};
        }}

        QFrame#Card {{
            background-color: {c["surface"]};
            border: 1px solid {c["border"]};
            border-radius: 14px;
        }}

        QPushButton#PrimaryButton {{
            background-color: {ACCENTS["blue"]};
            color: #FFFFFF;
            border: none;
            border-radius: 18px;
            padding: {SPACING["sm"]} {SPACING["xl"]};
            font-weight: 600;
            min-height: 32px;
        }}

        QPushButton#PrimaryButton:disabled {{
            background-color: {c["border"]};
            color: {c["text_secondary"]};
        }}

        QPushButton#SecondaryButton {{
            background-color: {c["surface_alt"]};
            color: {ACCENTS["blue"]};
            border: 1px solid {c["border"]};
            border-radius: 18px;
            padding: {SPACING["sm"]} {SPACING["xl"]};
            min-height: 32px;
        }}

        QPushButton#DangerButton {{
            background-color: {_rgba(ACCENTS["red"], 0.15)};
            color: {ACCENTS["red"]};
            border: 1px solid {_rgba(ACCENTS["red"], 0.4)};
            border-radius: 14px;
            padding: {SPACING["xs"]} {SPACING["md"]};
        }}

        QTableWidget, QListWidget {{
            background-color: transparent;
            color: {c["text_primary"]};
            border: none;
            gridline-color: {c["border"]};
        }}

        QHeaderView::section {{
            background-color: {c["surface_alt"]};
            color: {c["text_secondary"]};
            border: none;
            padding: {SPACING["xs"]} {SPACING["sm"]};
        }}

        QSpinBox, QDoubleSpinBox, QComboBox {{
            background-color: {c["surface"]};
            color: {c["text_primary"]};
            border: 1px solid {c["border"]};
            border-radius: 8px;
            padding: {SPACING["xs"]} {SPACING["sm"]};
            min-height: 28px;
        }}

        QCheckBox {{
            color: {c["text_primary"]};
            spacing: {SPACING["sm"]};
        }}

        QLabel#StatusPill {{
            background-color: {c["surface_alt"]};
            color: {c["text_secondary"]};
            border-radius: 12px;
            padding: {SPACING["xs"]} {SPACING["md"]};
            font-size: 13px;
            font-weight: 500;
        }}

        QLabel#StatusPillActive {{
            background-color: {_rgba(ACCENTS["green"], 0.15)};
            color: {ACCENTS["green"]};
            border-radius: 12px;
            padding: {SPACING["xs"]} {SPACING["md"]};
        }}

        QLabel#StatusPillAlert {{
            background-color: {_rgba(ACCENTS["red"], 0.15)};
            color: {ACCENTS["red"]};
            border-radius: 12px;
            padding: {SPACING["xs"]} {SPACING["md"]};
            font-weight: 600;
        }}
        """
