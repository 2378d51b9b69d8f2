# -*- coding: utf-8 -*-
"""Display unit conversion and progress helpers. Stored values are always ml."""

from __future__ import annotations

from typing import List

OZ_TO_ML = 29.5735

QUICK_ADD = {
    "ml": [250, 500, 750],
    "oz": [8, 16, 24],
}


def to_ml(amount: float, units: str) -> int:
    if units == "oz":
        return int(round(amount * OZ_TO_ML))
    return int(round(amount))


def from_ml(ml: float, units: str) -> float:
    if units == "oz":
        return round(ml / OZ_TO_ML, 1)
    return float(ml)


def quick_add_amounts(units: str) -> List[int]:
    return list(QUICK_ADD.get(units, QUICK_ADD["ml"]))


def progress_percent(value: float, goal: float) -> int:
    if goal <= 0:
        return 0
    return int(round(min(value / goal * 100, 100)))
