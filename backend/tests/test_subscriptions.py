import asyncio

import pytest
from starlette.websockets import WebSocketDisconnect

from routes import notifications
from utils.subscriptions import Subscription


class FakeChangeStream:
    def __init__(self, events=0, fail=None, block=False):
        self.events = events
        self.fail = fail
        self.block = block
        self.closed = False

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        self.closed = True
        return False

    def __aiter__(self):
        return self._changes()

    async def _changes(self):
        for i in range(self.events):
            await asyncio.sleep(0)
            yield {"operationType": "update", "seq": i}
        if self.fail:
            raise self.fail
        if self.block:
            await asyncio.Event().wait()


def _subscription(stream, snapshots, errors):
    counter = {"n": 0}

    async def fetch():
        counter["n"] += 1
        return [{"id": f"row-{counter['n']}"}]

    async def on_snapshot(rows):
        snapshots.append(rows)

    async def on_error(e):
        errors.append(e)

    return Subscription("products", fetch, lambda: stream, on_snapshot, on_error)


def test_snapshot_on_start_and_after_each_change():
    snapshots, errors = [], []
    stream = FakeChangeStream(events=2)

    async def main():
        await _subscription(stream, snapshots, errors).start().wait()

    asyncio.run(main())

    assert snapshots == [[{"id": "row-1"}], [{"id": "row-2"}], [{"id": "row-3"}]]
    assert errors == []
    assert stream.closed


def test_error_is_reported_once_without_retry():
    snapshots, errors = [], []
    failure = RuntimeError("change stream lost")

    async def main():
        sub = _subscription(FakeChangeStream(events=1, fail=failure), snapshots, errors).start()
        await sub.wait()
        return sub.active

    assert asyncio.run(main()) is False
    assert errors == [failure]
    assert len(snapshots) == 2


def test_cancel_disposes_the_stream():
    snapshots, errors = [], []
    stream = FakeChangeStream(block=True)

    async def main():
        sub = _subscription(stream, snapshots, errors).start()
        while not snapshots:
            await asyncio.sleep(0)
        assert sub.active
        sub.cancel()
        await sub.wait()
        return sub.active

    assert asyncio.run(main()) is False
    assert stream.closed
    assert errors == []


def test_failing_error_handler_does_not_escape():
    async def fetch():
        raise RuntimeError("boom")

    async def on_snapshot(rows):
        pass

    async def on_error(e):
        raise ConnectionError("client gone")

    async def main():
        await Subscription("x", fetch, FakeChangeStream, on_snapshot, on_error).start().wait()

    asyncio.run(main())


# =========================
# WEBSOCKET FEED
# =========================

@pytest.fixture
def live(monkeypatch, user):
    async def admin_only(websocket, db):
        return user if websocket.query_params.get("token") == "good" else None

    def fake_watch_feed(db, feed, on_snapshot, on_error=None):
        async def fetch():
            return [{"id": "n1", "feed": feed}]

        stream = FakeChangeStream(fail=RuntimeError("replica set required"))
        return Subscription(feed, fetch, lambda: stream, on_snapshot, on_error).start()

    monkeypatch.setattr(notifications, "get_websocket_admin", admin_only)
    monkeypatch.setattr(notifications, "watch_feed", fake_watch_feed)


def test_live_feed_pushes_snapshot_then_error(client, live):
    with client.websocket_connect("/api/live/notifications?token=good") as ws:
        first = ws.receive_json()
        second = ws.receive_json()

    assert first == {"type": "snapshot", "feed": "notifications", "data": [{"id": "n1", "feed": "notifications"}]}
    assert second == {"type": "error", "feed": "notifications", "message": "Error receiving real-time updates."}


@pytest.mark.parametrize("path", ["/api/live/notifications?token=bad", "/api/live/orders?token=good"])
def test_live_feed_refuses_bad_token_or_feed(client, live, path):
    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect(path):
            pass


def test_notification_feed(client, db, run):
    run(db.notifications.insert_one({"type": "product_upload", "message": "New product uploaded: Lamp"}))

    assert client.get("/api/admin/notifications").json()["count"] == 1
    assert client.delete("/api/admin/notifications").json()["cleared"] == 1
    assert run(db.notifications.count_documents({})) == 0
