"""
Notification dispatch for membership events.

Message text comes from a static table keyed by ``NotificationEvent``; the
transport is pluggable (log only, or POST to a webhook). Dispatch always runs
after the database transaction has committed and never raises: a failed
notification must not undo a membership change.
"""
import enum
import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol, Tuple
import httpx
from tripfund.core.config import settings

logger = logging.getLogger(__name__)


class NotificationEvent(str, enum.Enum):
    """Events the membership core emits."""
    INVITATION_RECEIVED = "invitation_received"
    INVITATION_ACCEPTED = "invitation_accepted"
    INVITATION_REJECTED = "invitation_rejected"
    INVITATION_CANCELLED = "invitation_cancelled"
    MEMBER_JOINED = "member_joined"


def _invitation_received(payload: Dict[str, Any]) -> Tuple[str, str]:
    content = f'{payload["inviter_name"]} invited you to join the trip "{payload["trip_name"]}".'
    if payload.get("message"):
        content += f'\nMessage: {payload["message"]}'
    return f'{payload["inviter_name"]} invited you to a trip', content


def _invitation_accepted(payload: Dict[str, Any]) -> Tuple[str, str]:
    return (
        "Invitation accepted",
        f'{payload["member_name"]} accepted your invitation and joined "{payload["trip_name"]}".',
    )


def _invitation_rejected(payload: Dict[str, Any]) -> Tuple[str, str]:
    return (
        "Invitation declined",
        f'{payload["member_name"]} declined your invitation to "{payload["trip_name"]}".',
    )


def _invitation_cancelled(payload: Dict[str, Any]) -> Tuple[str, str]:
    return (
        "Invitation withdrawn",
        f'Your invitation to "{payload["trip_name"]}" was cancelled.',
    )


def _member_joined(payload: Dict[str, Any]) -> Tuple[str, str]:
    if payload.get("replaced_member_name"):
        content = (
            f'{payload["member_name"]} joined "{payload["trip_name"]}" '
            f'and took over the records of {payload["replaced_member_name"]}.'
        )
    else:
        content = f'{payload["member_name"]} joined "{payload["trip_name"]}".'
    return "New trip member", content


MESSAGE_BUILDERS: Dict[NotificationEvent, Callable[[Dict[str, Any]], Tuple[str, str]]] = {
    NotificationEvent.INVITATION_RECEIVED: _invitation_received,
    NotificationEvent.INVITATION_ACCEPTED: _invitation_accepted,
    NotificationEvent.INVITATION_REJECTED: _invitation_rejected,
    NotificationEvent.INVITATION_CANCELLED: _invitation_cancelled,
    NotificationEvent.MEMBER_JOINED: _member_joined,
}


def render_message(event: NotificationEvent, payload: Dict[str, Any]) -> Dict[str, str]:
    """Build the title/content pair for an event."""
    title, content = MESSAGE_BUILDERS[event](payload)
    return {"title": title, "content": content}


class Notifier(Protocol):
    """Transport for notifications."""

    def notify(self, event: NotificationEvent, recipient_ids: List[int], payload: Dict[str, Any]) -> None:
        ...


class LoggingNotifier:
    """Writes notifications to the log. Used when no webhook is configured."""

    def notify(self, event: NotificationEvent, recipient_ids: List[int], payload: Dict[str, Any]) -> None:
        message = render_message(event, payload)
        logger.info(f"Notify {event.value} -> {recipient_ids}: {message['title']}")


class WebhookNotifier:
    """POSTs each notification as JSON to a delivery service."""

    def __init__(self, url: str, timeout: float = 5.0, client: Optional[httpx.Client] = None):
        self.url = url
        self.timeout = timeout
        self.client = client

    def notify(self, event: NotificationEvent, recipient_ids: List[int], payload: Dict[str, Any]) -> None:
        body = {
            "event": event.value,
            "recipient_ids": recipient_ids,
            "payload": payload,
            **render_message(event, payload),
        }
        if self.client is not None:
            response = self.client.post(self.url, json=body, timeout=self.timeout)
        else:
            response = httpx.post(self.url, json=body, timeout=self.timeout)
        response.raise_for_status()


def get_notifier() -> Notifier:
    """Pick the transport from settings."""
    if settings.NOTIFY_WEBHOOK_URL:
        return WebhookNotifier(settings.NOTIFY_WEBHOOK_URL, timeout=settings.NOTIFY_TIMEOUT_SECONDS)
    return LoggingNotifier()


def dispatch(
    notifier: Notifier,
    event: NotificationEvent,
    recipient_ids: Iterable[int],
    payload: Dict[str, Any],
) -> bool:
    """
    Fire-and-forget delivery. Returns whether the notifier accepted the
    message; failures are logged and swallowed.
    """
    recipients = sorted(set(recipient_ids))
    if not recipients:
        return False
    try:
        notifier.notify(event, recipients, payload)
        return True
    except httpx.HTTPError as e:
        logger.warning(f"Notification {event.value} to {recipients} failed: {e}")
    except Exception as e:
        logger.error(f"Unexpected error sending notification {event.value}: {e}", exc_info=True)
    return False
