"""Render a rotation card from saved schedule and locale JSON files."""

from __future__ import annotations

import argparse
from datetime import datetime, timezone
import json
from typing import Any

from salmonbot.data.assets import AssetFetcher
from salmonbot.data.schedule import parse_schedule, parse_timestamp
from salmonbot.data.splatoon_client import SplatoonClient
from salmonbot.data.translations import PLACEHOLDER_NAME, TranslationTable
from salmonbot.logic.selector import select_active_entry
from salmonbot.notify.message import format_rotation_message
from salmonbot.rendering import Compositor, RenderSpec


def _load_json(path: str) -> dict[str, Any]:
    with open(path, "r", encoding="utf-8") as handle:
        return json.load(handle)


def main() -> int:
    parser = argparse.ArgumentParser()
    parser.add_argument("schedule", help="saved schedules.json")
    parser.add_argument("--locale", help="saved locale JSON (e.g. ko-KR.json)")
    parser.add_argument("--at", help="ISO-8601 time to select the rotation for (default: now)")
    parser.add_argument("--assets", default="assets/")
    parser.add_argument("--scratch", default="preview_output/cache/")
    parser.add_argument("--output", default="preview_output/finalImage.png")
    parser.add_argument("--background", help="background file under --assets to force")
    args = parser.parse_args()

    now = parse_timestamp(args.at) if args.at else datetime.now(timezone.utc)
    feed = parse_schedule(_load_json(args.schedule))
    entry = select_active_entry(feed, now)
    table = TranslationTable.from_locale(_load_json(args.locale)) if args.locale else TranslationTable.empty()

    stage_name = table.resolve_stage_name(entry.stage_id) or PLACEHOLDER_NAME
    item_names = [table.resolve_item_name(item_id) or PLACEHOLDER_NAME for item_id in entry.item_ids]

    fetcher = AssetFetcher(SplatoonClient(), args.scratch)
    stage_path, item_paths = fetcher.fetch_entry_images(entry)
    compositor = Compositor(args.assets, args.output, background_override=args.background)
    output = compositor.render(
        RenderSpec(
            background_key=entry.category_id,
            stage_image_path=stage_path,
            item_image_paths=tuple(item_paths),
            label_text=stage_name,
        )
    )

    message = format_rotation_message(entry, stage_name, item_names, now)
    print(message.title)
    print(message.description)
    print(f"Card written to {output}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
