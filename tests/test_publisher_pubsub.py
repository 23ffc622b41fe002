from unittest.mock import MagicMock, patch

import pytest

from logship.adapters.publisher.pubsub import PubSubPublisher
from logship.domain.errors import PublishError
from logship.ports.publisher import PublisherPort


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _make_publisher() -> tuple[PubSubPublisher, MagicMock]:
    """Return (publisher, client_mock) where every publish resolves to a fresh id."""
    client = MagicMock()
    counter = iter(range(1, 1_000))

    def _publish(topic, data):
        future = MagicMock()
        future.result.return_value = str(next(counter))
        return future

    client.publish.side_effect = _publish
    publisher = PubSubPublisher(project_id="my-project", topic_id="logs", client=client)
    return publisher, client


def test_satisfies_publisher_port():
    publisher, _ = _make_publisher()
    assert isinstance(publisher, PublisherPort)


def test_topic_path():
    publisher, _ = _make_publisher()
    assert publisher.topic_path == "projects/my-project/topics/logs"


@pytest.mark.parametrize("project_id,topic_id", [("", "logs"), ("proj", ""), ("  ", "logs")])
def test_missing_identifiers_raise(project_id, topic_id):
    with pytest.raises(ValueError):
        PubSubPublisher(project_id=project_id, topic_id=topic_id, client=MagicMock())


# ---------------------------------------------------------------------------
# async publish() — patches _sync_publish to bypass asyncio.to_thread
# ---------------------------------------------------------------------------

async def test_publish_returns_message_ids():
    publisher, _ = _make_publisher()
    with patch.object(publisher, "_sync_publish", return_value=["10", "11"]):
        result = await publisher.publish(["a", "b"])
    assert result.success
    assert result.message_ids == ("10", "11")


async def test_publish_passes_records_as_list():
    publisher, _ = _make_publisher()
    with patch.object(publisher, "_sync_publish", return_value=["1"]) as mock_sp:
        await publisher.publish(("only",))
    mock_sp.assert_called_once_with(["only"])


async def test_missing_message_ids_is_failure():
    publisher, _ = _make_publisher()
    with patch.object(publisher, "_sync_publish", return_value=["1"]):
        result = await publisher.publish(["a", "b"])
    assert not result.success
    assert "1 message ids for 2 messages" in (result.error or "")


async def test_exception_becomes_publish_error():
    publisher, _ = _make_publisher()
    with patch.object(publisher, "_sync_publish", side_effect=RuntimeError("deadline")):
        with pytest.raises(PublishError) as excinfo:
            await publisher.publish(["a"])
    assert isinstance(excinfo.value.cause, RuntimeError)


# ---------------------------------------------------------------------------
# _sync_publish() — tests the synchronous implementation directly
# ---------------------------------------------------------------------------

def test_sync_publish_encodes_records_as_utf8():
    publisher, client = _make_publisher()
    ids = publisher._sync_publish(["héllo", "{}"])
    assert ids == ["1", "2"]
    calls = client.publish.call_args_list
    assert calls[0].args == ("projects/my-project/topics/logs",)
    assert calls[0].kwargs == {"data": "héllo".encode("utf-8")}
    assert calls[1].kwargs == {"data": b"{}"}


def test_sync_publish_waits_with_timeout():
    publisher, client = _make_publisher()
    publisher.timeout = 5.0
    future = MagicMock()
    future.result.return_value = "9"
    client.publish.side_effect = None
    client.publish.return_value = future
    publisher._sync_publish(["a"])
    future.result.assert_called_once_with(timeout=5.0)


def test_sync_publish_propagates_future_errors():
    publisher, client = _make_publisher()
    future = MagicMock()
    future.result.side_effect = TimeoutError()
    client.publish.side_effect = None
    client.publish.return_value = future
    with pytest.raises(TimeoutError):
        publisher._sync_publish(["a"])


def test_lazy_client_creation():
    pubsub_v1 = pytest.importorskip("google.cloud.pubsub_v1")
    publisher = PubSubPublisher(project_id="my-project", topic_id="logs")
    with patch.object(pubsub_v1, "PublisherClient") as client_cls:
        client = publisher._get_client()
    assert client is client_cls.return_value
    assert publisher.client is client
