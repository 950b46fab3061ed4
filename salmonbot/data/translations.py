"""Read-only id to display-name lookup built from a splatoon3.ink locale file."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from types import MappingProxyType
from typing import Any, Mapping

logger = logging.getLogger(__name__)

PLACEHOLDER_NAME = "???"

STAGES = "stages"
WEAPONS = "weapons"


def _names(section: Any) -> Mapping[str, str]:
    if not isinstance(section, dict):
        return MappingProxyType({})
    names = {}
    for key, value in section.items():
        if isinstance(value, dict) and isinstance(value.get("name"), str):
            names[key] = value["name"]
    return MappingProxyType(names)


@dataclass(frozen=True)
class TranslationTable:
    """Stage and weapon names keyed by their opaque feed ids."""

    stages: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    items: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def from_locale(cls, document: dict[str, Any]) -> "TranslationTable":
        return cls(stages=_names(document.get(STAGES)), items=_names(document.get(WEAPONS)))

    @classmethod
    def empty(cls) -> "TranslationTable":
        return cls()

    def resolve_stage_name(self, stage_id: str) -> str | None:
        """Return the stage name, or None if the id is unknown."""
        name = self.stages.get(stage_id)
        if name is None:
            logger.info("Stage with key %s not found", stage_id)
        return name

    def resolve_item_name(self, item_id: str) -> str | None:
        """Return the weapon name, or None if the id is unknown."""
        name = self.items.get(item_id)
        if name is None:
            logger.info("Weapon with key %s not found", item_id)
        return name


__all__ = ["PLACEHOLDER_NAME", "TranslationTable"]
