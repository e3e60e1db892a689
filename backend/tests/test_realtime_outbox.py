import anyio
import pytest

from academy.services import notifications as notification_service
from academy.services.notification_hub import NotificationHub


@pytest.fixture
def dispatched(monkeypatch):
    sent: list[list[tuple[str, dict]]] = []
    monkeypatch.setattr(notification_service, "dispatch_realtime", lambda messages: sent.append(list(messages)))
    return sent


def test_realtime_push_waits_for_commit(session_factory, dispatched):
    with session_factory() as db:
        notification_service.create_notification(db, user_id="u1", title="Added to V1", message="Welcome")
        assert dispatched == []

        db.commit()

    assert len(dispatched) == 1
    user_id, payload = dispatched[0][0]
    assert user_id == "u1"
    assert payload["event"] == "notification.created"
    assert payload["notification"]["title"] == "Added to V1"


def test_rolled_back_notifications_are_never_pushed(session_factory, dispatched):
    with session_factory() as db:
        notification_service.create_notification(db, user_id="u1", title="Dropped", message="Never saved")
        db.rollback()
        db.commit()

    with session_factory() as db:
        notification_service.create_notification(db, user_id="u2", title="Abandoned", message="Session closed")

    assert dispatched == []


def test_one_commit_pushes_every_queued_notification(session_factory, dispatched):
    with session_factory() as db:
        for user_id in ("u1", "u2"):
            notification_service.create_notification(db, user_id=user_id, title="Schedule", message="Updated")
        db.commit()
        db.commit()

    assert [[user_id for user_id, _ in batch] for batch in dispatched] == [["u1", "u2"]]


class FakeSocket:
    def __init__(self, *, broken: bool = False) -> None:
        self.broken = broken
        self.accepted = False
        self.sent: list[dict] = []

    async def accept(self) -> None:
        self.accepted = True

    async def send_json(self, payload: dict) -> None:
        if self.broken:
            raise RuntimeError("socket closed")
        self.sent.append(payload)


def test_hub_publishes_in_order_and_drops_broken_sockets():
    hub = NotificationHub()
    healthy = FakeSocket()
    broken = FakeSocket(broken=True)

    async def scenario() -> int:
        await hub.connect("u1", healthy)
        await hub.connect("u1", broken)
        await hub.connect("u2", FakeSocket())
        delivered = await hub.publish_many([("u1", {"n": 1}), ("u3", {"n": 2}), ("u1", {"n": 3})])
        return delivered

    assert anyio.run(scenario) == 2
    assert healthy.accepted
    assert healthy.sent == [{"n": 1}, {"n": 3}]
    assert hub.connected_users() == 2

    async def leave() -> None:
        await hub.disconnect("u1", healthy)
        await hub.disconnect("u1", healthy)

    anyio.run(leave)
    assert hub.connected_users() == 1
