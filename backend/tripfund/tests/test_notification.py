"""
Tests for notification rendering and dispatch.
"""
import httpx
import pytest

from tripfund.services.notification_service import (
    MESSAGE_BUILDERS,
    LoggingNotifier,
    NotificationEvent,
    WebhookNotifier,
    dispatch,
    render_message,
)


def test_every_event_has_a_message_builder():
    assert set(MESSAGE_BUILDERS) == set(NotificationEvent)


def test_render_invitation_received_includes_message():
    message = render_message(NotificationEvent.INVITATION_RECEIVED, {
        "inviter_name": "alice", "trip_name": "Tokyo", "message": "Bring snacks",
    })
    assert message["title"] == "alice invited you to a trip"
    assert "Tokyo" in message["content"]
    assert "Bring snacks" in message["content"]


def test_render_member_joined_mentions_replaced_member():
    message = render_message(NotificationEvent.MEMBER_JOINED, {
        "member_name": "bob", "trip_name": "Tokyo", "replaced_member_name": "Li",
    })
    assert "took over the records of Li" in message["content"]


def test_webhook_posts_rendered_message():
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["url"] = str(request.url)
        captured["body"] = request.read()
        return httpx.Response(204)

    client = httpx.Client(transport=httpx.MockTransport(handler))
    notifier = WebhookNotifier("https://hooks.example.com/notify", client=client)

    sent = dispatch(notifier, NotificationEvent.INVITATION_CANCELLED, [3, 1, 3], {"trip_name": "Tokyo"})

    assert sent is True
    assert captured["url"] == "https://hooks.example.com/notify"
    assert b'"recipient_ids":[1,3]' in captured["body"].replace(b" ", b"")
    assert b"invitation_cancelled" in captured["body"]


def test_dispatch_swallows_delivery_errors():
    client = httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(500)))
    notifier = WebhookNotifier("https://hooks.example.com/notify", client=client)

    assert dispatch(notifier, NotificationEvent.MEMBER_JOINED, [1], {
        "member_name": "bob", "trip_name": "Tokyo",
    }) is False


def test_dispatch_swallows_unexpected_errors():
    class Broken:
        def notify(self, event, recipient_ids, payload):
            raise RuntimeError("boom")

    assert dispatch(Broken(), NotificationEvent.INVITATION_ACCEPTED, [1], {}) is False


@pytest.mark.parametrize("recipients", [[], ()])
def test_dispatch_without_recipients_is_a_no_op(recipients):
    assert dispatch(LoggingNotifier(), NotificationEvent.MEMBER_JOINED, recipients, {}) is False


def test_logging_notifier_logs(caplog):
    caplog.set_level("INFO", logger="tripfund.services.notification_service")

    assert dispatch(LoggingNotifier(), NotificationEvent.INVITATION_CANCELLED, [5], {"trip_name": "Tokyo"})
    assert "invitation_cancelled" in caplog.text
