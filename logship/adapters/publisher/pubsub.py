"""
PubSubPublisher — Google Cloud Pub/Sub adapter using google-cloud-pubsub.

Install extras: pip install "logship[pubsub]"

Publish semantics
-----------------
Each record becomes one Pub/Sub message whose data is the UTF-8 encoded
record text. All messages of a batch are handed to the client first, then
every publish future is awaited; the batch succeeds only if every future
resolves to a message id.

A partially published batch is reported as failed and will be re-sent in
full on a later tick. Duplicates are acceptable under at-least-once
delivery.

Note: google-cloud-pubsub futures are blocking. Waiting on them is wrapped
in asyncio.to_thread to avoid blocking the event loop.
"""
from __future__ import annotations

import asyncio
import dataclasses
from collections.abc import Sequence
from typing import TYPE_CHECKING

from logship.domain.errors import PublishError
from logship.domain.models import PublishResult

if TYPE_CHECKING:
    from google.cloud.pubsub_v1 import PublisherClient


@dataclasses.dataclass
class PubSubPublisher:
    """
    Google Cloud Pub/Sub adapter.

    Parameters
    ----------
    project_id : Google Cloud project that owns the topic
    topic_id   : Pub/Sub topic id (not the full path)
    client     : google.cloud.pubsub_v1.PublisherClient — created lazily if omitted
    timeout    : seconds to wait for each message id
    """

    project_id: str
    topic_id: str
    client: PublisherClient | None = None
    timeout: float = 60.0

    def __post_init__(self) -> None:
        if not self.project_id or not self.project_id.strip():
            raise ValueError("project_id is required")
        if not self.topic_id or not self.topic_id.strip():
            raise ValueError("topic_id is required")

    @property
    def topic_path(self) -> str:
        return f"projects/{self.project_id}/topics/{self.topic_id}"

    def _get_client(self) -> PublisherClient:
        if self.client is not None:
            return self.client
        try:
            from google.cloud import pubsub_v1  # type: ignore[import-untyped]
        except ImportError as exc:
            raise ImportError(
                "PubSubPublisher requires google-cloud-pubsub. "
                "Install with: pip install 'logship[pubsub]'"
            ) from exc
        self.client = pubsub_v1.PublisherClient()
        return self.client

    async def publish(self, records: Sequence[str]) -> PublishResult:
        """Publish one batch. Raises PublishError when the client fails."""
        try:
            ids = await asyncio.to_thread(self._sync_publish, list(records))
        except PublishError:
            raise
        except Exception as exc:
            raise PublishError("Pub/Sub publish failed", exc) from exc

        if len(ids) != len(records):
            return PublishResult.failed(
                f"Received {len(ids)} message ids for {len(records)} messages"
            )
        return PublishResult.ok(ids)

    # ------------------------------------------------------------------ #
    # Synchronous implementation (executed in a thread-pool worker)       #
    # ------------------------------------------------------------------ #

    def _sync_publish(self, records: list[str]) -> list[str]:
        client = self._get_client()
        futures = [
            client.publish(self.topic_path, data=record.encode("utf-8"))  # type: ignore[attr-defined]
            for record in records
        ]
        return [str(future.result(timeout=self.timeout)) for future in futures]
