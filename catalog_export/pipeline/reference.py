"""Reference-domain lookups used to label item rows."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Protocol


class ReferenceSource(Protocol):
    def locations(self) -> dict: ...

    def item_statuses(self) -> dict: ...


@dataclass(frozen=True)
class ReferenceLookup:
    locations: Mapping = field(default_factory=dict)
    statuses: Mapping = field(default_factory=dict)

    @classmethod
    def load(cls, source: ReferenceSource) -> "ReferenceLookup":
        # Both domains are read in full before any item row is streamed.
        return cls(locations=dict(source.locations()), statuses=dict(source.item_statuses()))

    def location(self, code) -> str:
        return _label(self.locations, code)

    def status(self, code) -> str:
        return _label(self.statuses, code)


def _label(mapping: Mapping, code) -> str:
    if code is None:
        return ""
    label = mapping.get(code)
    return "" if label is None else str(label)
