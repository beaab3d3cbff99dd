"""
Slot state store.

Every write to a slot goes through `SlotStore.update`, which merges the given
fields into the existing record and bumps the slot's `generation`. Deferred
clears capture the generation they were scheduled against and only apply if
the slot has not been written since.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Iterator

    from .types import Occupant


@dataclass(frozen=True, slots=True)
class Slot:
    id: int
    occupant: Occupant | None = None
    visible: bool = False
    feedback: bool = False  # Hit feedback showing (slot was just emptied by a hit)
    generation: int = 0


class SlotStore:
    """Fixed-size container of immutable `Slot` records."""

    _slots: list[Slot]

    def __init__(self, count: int) -> None:
        if count < 1:
            msg = f"slot count must be positive, got {count}"
            raise ValueError(msg)

        self._slots = [Slot(id=i) for i in range(count)]

    def __len__(self) -> int:
        return len(self._slots)

    def __iter__(self) -> Iterator[Slot]:
        return iter(self._slots)

    def __getitem__(self, slot_id: int) -> Slot:
        assert 0 <= slot_id < len(self._slots), f"slot id {slot_id} outside 0..{len(self._slots) - 1}"
        return self._slots[slot_id]

    def get(self, slot_id: int) -> Slot | None:
        """Return slot with given id, or None if there is no such slot."""
        if not (0 <= slot_id < len(self._slots)):
            return None
        return self._slots[slot_id]

    def update(self, slot_id: int, **changes: Any) -> Slot:  # noqa: ANN401
        """Merge `changes` into one slot & bump its generation.

        Returns:
            The new slot record
        """
        slot = self[slot_id]
        new = replace(slot, **changes, generation=slot.generation + 1)
        self._slots[slot_id] = new
        return new

    def reset(self) -> None:
        """Blank every slot.

        Generations keep counting so guards from before the reset can never
        match a blanked slot.
        """
        self._slots = [Slot(id=s.id, generation=s.generation + 1) for s in self._slots]

    def snapshot(self) -> tuple[Slot, ...]:
        return tuple(self._slots)
