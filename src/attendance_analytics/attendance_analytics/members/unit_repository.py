from __future__ import annotations

from typing import Collection, Optional, Protocol, Sequence

from .unit_model import Unit


class UnitRepository(Protocol):
    def list_units(self, *, unit_ids: Optional[Collection[int]] = None) -> Sequence[Unit]:
        raise NotImplementedError
