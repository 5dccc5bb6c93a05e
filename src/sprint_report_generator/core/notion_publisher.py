"""Publish reports as Notion pages through the Notion REST API."""

from __future__ import annotations

import logging
import time
from typing import Any

import requests

from sprint_report_generator.core.data_models import PublishResult, ReportStructured
from sprint_report_generator.core.errors import PublishError
from sprint_report_generator.core.notion_blocks import Block, build_page_blocks, page_title

logger = logging.getLogger(__name__)

NOTION_API = "https://api.notion.com/v1"
NOTION_VERSION = "2022-06-28"

_BATCH_SIZE = 100  # Notion accepts at most 100 children per request
_MAX_RETRIES = 4
_BACKOFF_BASE = 1.0  # seconds
_TIMEOUT = 30


class NotionPublisher:
    """Create one Notion page per report under a fixed parent page."""

    def __init__(
        self,
        api_key: str,
        parent_page_id: str,
        *,
        language: str = "en",
        session: requests.Session | None = None,
    ) -> None:
        self._parent_page_id = parent_page_id
        self._language = language
        self._session = session or requests.Session()
        self._session.headers.update({
            "Authorization": f"Bearer {api_key}",
            "Notion-Version": NOTION_VERSION,
            "Content-Type": "application/json",
        })

    def create_report_page(self, sprint_name: str, report: ReportStructured) -> PublishResult:
        """Create the page, then append any blocks beyond the first batch.

        Raises :class:`PublishError` on any API failure.
        """
        title = page_title(sprint_name, self._language)
        blocks = build_page_blocks(report, self._language)
        logger.info("Creating Notion page %r (%d blocks)", title, len(blocks))

        page = self._request("POST", "/pages", {
            "parent": {"page_id": self._parent_page_id},
            "properties": {"title": {"title": [{"text": {"content": title}}]}},
            "children": blocks[:_BATCH_SIZE],
        })
        page_id = str(page.get("id", ""))
        if not page_id:
            raise PublishError("Notion did not return a page id")

        for batch in _batches(blocks[_BATCH_SIZE:], _BATCH_SIZE):
            logger.debug("Appending %d block(s) to %s", len(batch), page_id)
            self._request("PATCH", f"/blocks/{page_id}/children", {"children": batch})

        url = page.get("url") or f"https://www.notion.so/{page_id.replace('-', '')}"
        logger.info("Notion page created: %s", url)
        return PublishResult(id=page_id, url=url)

    # -- internals ------------------------------------------------------------

    def _request(self, method: str, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        """Send a request with exponential backoff on 429."""
        for attempt in range(_MAX_RETRIES):
            try:
                resp = self._session.request(
                    method, f"{NOTION_API}{path}", json=payload, timeout=_TIMEOUT,
                )
            except requests.RequestException as exc:
                raise PublishError(f"Notion request failed: {exc}") from exc
            if resp.status_code == 429 and attempt < _MAX_RETRIES - 1:
                delay = _BACKOFF_BASE * (2**attempt)
                logger.warning("Rate limited, retrying in %.1fs", delay)
                time.sleep(delay)
                continue
            if resp.status_code >= 400:
                raise PublishError(f"Notion API error {resp.status_code}: {resp.text[:200]}")
            return resp.json()

        raise PublishError("Notion request failed")  # unreachable


def _batches(blocks: list[Block], size: int) -> list[list[Block]]:
    return [blocks[i:i + size] for i in range(0, len(blocks), size)]
