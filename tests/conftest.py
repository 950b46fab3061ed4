from __future__ import annotations

from typing import Any, Callable

import pytest


def _node(
    start: str = "2024-06-01T00:00:00Z",
    end: str = "2024-06-01T01:00:00Z",
    boss_id: str | None = "Q29vcEVuZW15LTIz",
    stage_id: str = "S",
    weapon_ids: tuple[str, ...] = ("A", "B", "C", "D"),
) -> dict[str, Any]:
    return {
        "startTime": start,
        "endTime": end,
        "setting": {
            "boss": {"id": boss_id, "name": "Cohozuna"} if boss_id is not None else None,
            "coopStage": {"id": stage_id, "image": {"url": f"https://img.example/{stage_id}.png"}},
            "weapons": [
                {"__splatoon3ink_id": weapon_id, "image": {"url": f"https://img.example/{weapon_id}.png"}}
                for weapon_id in weapon_ids
            ],
        },
    }


def _document(*nodes: dict[str, Any]) -> dict[str, Any]:
    return {"data": {"coopGroupingSchedule": {"regularSchedules": {"nodes": list(nodes)}}}}


@pytest.fixture()
def make_node() -> Callable[..., dict[str, Any]]:
    return _node


@pytest.fixture()
def make_document() -> Callable[..., dict[str, Any]]:
    return _document


@pytest.fixture()
def locale_document() -> dict[str, Any]:
    return {
        "stages": {"S": {"name": "Spawning Grounds"}},
        "weapons": {
            "A": {"name": "Splattershot"},
            "B": {"name": "Roller"},
        },
    }
