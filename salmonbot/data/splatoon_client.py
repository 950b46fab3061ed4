"""splatoon3.ink data client."""

from __future__ import annotations

from typing import Any

import requests

SCHEDULE_URL = "https://splatoon3.ink/data/schedules.json"
TRANSLATION_URL = "https://splatoon3.ink/data/locale/ko-KR.json"
USER_AGENT = "salmonbot/0.1 (Salmon Run rotation notifier)"


class TransportError(Exception):
    """Raised when a feed or asset request fails or returns a non-200 response."""


class SplatoonClient:
    """Thin wrapper around the splatoon3.ink JSON endpoints using requests."""

    def __init__(
        self,
        schedule_url: str = SCHEDULE_URL,
        translation_url: str = TRANSLATION_URL,
        timeout_seconds: int = 10,
    ) -> None:
        self._schedule_url = schedule_url
        self._translation_url = translation_url
        self._timeout_seconds = timeout_seconds

    def get_schedule(self) -> dict[str, Any]:
        """Fetch the raw schedules document."""
        return self._get_json(self._schedule_url)

    def get_translations(self) -> dict[str, Any]:
        """Fetch the raw locale document."""
        return self._get_json(self._translation_url)

    def download(self, url: str) -> bytes:
        """Fetch a binary resource such as a stage or weapon image."""
        response = self._get(url)
        return response.content

    def _get_json(self, url: str) -> dict[str, Any]:
        response = self._get(url)
        try:
            data = response.json()
        except ValueError as exc:
            raise TransportError(f"Response from {url} was not valid JSON") from exc
        if not isinstance(data, dict):
            raise TransportError(f"Response from {url} was not a JSON object")
        return data

    def _get(self, url: str) -> requests.Response:
        headers = {"User-Agent": USER_AGENT}
        try:
            response = requests.get(url, headers=headers, timeout=self._timeout_seconds)
        except requests.RequestException as exc:
            raise TransportError(f"Request to {url} failed: {exc}") from exc

        if response.status_code != 200:
            body_text = response.text.strip()
            detail = f"Status {response.status_code}"
            if body_text:
                detail = f"{detail}, Body: {body_text[:200]}"
            raise TransportError(f"Request to {url} failed: {detail}")
        return response


__all__ = ["SCHEDULE_URL", "TRANSLATION_URL", "SplatoonClient", "TransportError"]
