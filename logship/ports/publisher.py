"""
PublisherPort — the remote endpoint seen from the shipping loop.

Any object satisfying this structural Protocol can act as the publish client.
No base class or registration is required — Python's structural subtyping
(duck typing + Protocol) is sufficient.

Publish contract
----------------
publish(records)
  - records is an ordered, non-empty sequence of record texts (one buffer line each)
  - returns PublishResult.ok(...) once the endpoint accepted the whole batch
  - returns PublishResult.failed(message) when it did not
  - may raise; the shipper treats any exception as a failed result

The same batch may be published more than once (at-least-once delivery):
a crash between a successful publish and the bookmark write re-sends it.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from logship.domain.models import PublishResult


@runtime_checkable
class PublisherPort(Protocol):
    """
    Minimal interface required by the shipping loop.

    Implementing adapters (built-in):
      - InMemoryPublisher — records batches in a list, for testing
      - PubSubPublisher   — Google Cloud Pub/Sub (google-cloud-pubsub)
    """

    async def publish(self, records: Sequence[str]) -> PublishResult:
        """
        Deliver one batch.

        Parameters
        ----------
        records : record texts in file order

        Returns
        -------
        PublishResult : success flag, message ids, or an error description
        """
        ...
