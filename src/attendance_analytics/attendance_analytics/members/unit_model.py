from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Unit:
    unit_id: int
    name: str
