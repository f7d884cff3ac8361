from __future__ import annotations

# All temperatures in the app are °F; nothing converts units.
TEMP_UNIT: str = "°F"

# Fixed vertical range of the trend chart so one outlier does not squash
# the normal band.
Y_AXIS_MIN: float = 95.0
Y_AXIS_MAX: float = 106.0

# (lower bound, upper bound, label, band fill). Half-open, contiguous.
FEVER_ZONES: tuple[tuple[float, float, str, str], ...] = (
    (0.0, 99.1, "Normal", "rgba(75, 192, 192, 0.1)"),
    (99.1, 100.4, "Low-grade", "rgba(255, 206, 86, 0.1)"),
    (100.4, 102.2, "Moderate", "rgba(255, 159, 64, 0.1)"),
    (102.2, 105.8, "High-grade", "rgba(255, 99, 132, 0.1)"),
)

LINE_COLOR: str = "#3B82F6"

OCR_INSTRUCTION: str = (
    "Extract the numerical temperature reading from this image of a digital "
    "thermometer. Return only the number, for example: 98.6"
)
DEFAULT_OCR_MODEL: str = "gemini-2.5-flash"
