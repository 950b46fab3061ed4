"""Downloads rotation images to fixed scratch paths."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
import logging
import os
from pathlib import Path

from salmonbot.data.schedule import ScheduleEntry
from salmonbot.data.splatoon_client import SplatoonClient

logger = logging.getLogger(__name__)

STAGE_FILE_NAME = "stage.png"
ITEM_FILE_TEMPLATE = "weapon{index}.png"


class AssetFetcher:
    """Store remote images under a scratch directory with deterministic names."""

    def __init__(self, client: SplatoonClient, scratch_dir: str | Path, max_workers: int = 5) -> None:
        self._client = client
        self._scratch_dir = Path(scratch_dir)
        self._max_workers = max_workers

    @property
    def scratch_dir(self) -> Path:
        return self._scratch_dir

    def fetch(self, url: str, file_name: str) -> Path:
        """Download url to <scratch_dir>/<file_name> and return the path."""
        payload = self._client.download(url)
        self._scratch_dir.mkdir(parents=True, exist_ok=True)
        path = self._scratch_dir / file_name
        tmp_path = path.with_name(f".{path.name}.part")
        with open(tmp_path, "wb") as handle:
            handle.write(payload)
        os.replace(tmp_path, path)
        logger.debug("Stored %s (%d bytes) at %s", url, len(payload), path)
        return path

    def fetch_entry_images(self, entry: ScheduleEntry) -> tuple[Path, list[Path]]:
        """Download the stage photo and weapon icons for one rotation.

        All downloads run concurrently and every one of them has finished when
        this returns; the first failure is re-raised.
        """
        jobs = [(entry.image_refs.stage, STAGE_FILE_NAME)]
        jobs.extend(
            (url, ITEM_FILE_TEMPLATE.format(index=index))
            for index, url in enumerate(entry.image_refs.items, start=1)
        )
        with ThreadPoolExecutor(max_workers=self._max_workers) as pool:
            futures = [pool.submit(self.fetch, url, name) for url, name in jobs]
            paths = [future.result() for future in futures]
        return paths[0], paths[1:]


__all__ = ["AssetFetcher", "ITEM_FILE_TEMPLATE", "STAGE_FILE_NAME"]
