"""Filename-derived metadata: base name, polarization, season."""

import re
from typing import Optional

SEASONS = ("Winter", "Spring", "Summer", "Autumn", "Unknown")

_SEASON_BY_MONTH = {
    12: "Winter", 1: "Winter", 2: "Winter",
    3: "Spring", 4: "Spring", 5: "Spring",
    6: "Summer", 7: "Summer", 8: "Summer",
    9: "Autumn", 10: "Autumn", 11: "Autumn",
}

_DIGIT_RUN = re.compile(r"\d+")


def strip_extension(file_name: str) -> str:
    """Drop everything from the last dot on ("a.b.tif" -> "a.b")."""
    dot = file_name.rfind(".")
    return file_name if dot < 0 else file_name[:dot]


def infer_polarization(file_name: str) -> str:
    if "VV" in file_name:
        return "VV"
    if "VH" in file_name:
        return "VH"
    return "OTHER"


def season_from_month(month: int) -> str:
    return _SEASON_BY_MONTH.get(month, "Unknown")


def infer_season(file_name: Optional[str]) -> str:
    """Season of the first plausible YYYYMMDD run of exactly eight digits."""
    if not file_name:
        return "Unknown"
    for run in _DIGIT_RUN.findall(file_name):
        if len(run) != 8:
            continue
        year, month, day = int(run[:4]), int(run[4:6]), int(run[6:8])
        if year < 1900 or not (1 <= month <= 12) or not (1 <= day <= 31):
            continue
        return season_from_month(month)
    return "Unknown"
