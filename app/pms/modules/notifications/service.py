from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

from app.pms.models import User, UserRole
from app.pms.modules.notifications.models import Notification

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.pms.modules.batches.models import Batch

MAX_MESSAGE_LENGTH = 2000


def validate_message(raw: str | None) -> tuple[str | None, str | None]:
    """Return (message, error)."""
    message = (raw or "").strip()
    if not message:
        return None, "Message is required."
    if len(message) > MAX_MESSAGE_LENGTH:
        return None, f"Message must be at most {MAX_MESSAGE_LENGTH} characters."
    return message, None


def notify_user(s: "Session", recipient: User, message: str, *, sender: User | None = None) -> Notification:
    n = Notification(
        recipient_user_id=recipient.id,
        sender_user_id=sender.id if sender else None,
        message=message,
        is_read=False,
    )
    s.add(n)
    return n


def notify_users(s: "Session", recipients: Iterable[User], message: str, *, sender: User | None = None) -> list[Notification]:
    return [notify_user(s, r, message, sender=sender) for r in recipients]


def notify_batch(s: "Session", batch: "Batch", message: str, *, sender: User | None = None) -> list[Notification]:
    """Notify every student in the batch."""
    return notify_users(s, (st.user for st in batch.students), message, sender=sender)


def notify_role(s: "Session", role: UserRole, message: str, *, sender: User | None = None) -> list[Notification]:
    """Broadcast to every active user holding `role`."""
    recipients = (
        s.query(User)
        .filter(User.role == role.value)
        .filter(User.is_active.is_(True))
        .order_by(User.id.asc())
        .all()
    )
    return notify_users(s, recipients, message, sender=sender)


def notifications_for(s: "Session", user: User, *, limit: int = 50) -> list[Notification]:
    """Unread first, then newest first."""
    return (
        s.query(Notification)
        .filter(Notification.recipient_user_id == user.id)
        .order_by(Notification.is_read.asc(), Notification.created_at.desc(), Notification.id.desc())
        .limit(limit)
        .all()
    )


def unread_count(s: "Session", user: User) -> int:
    return (
        s.query(Notification)
        .filter(Notification.recipient_user_id == user.id)
        .filter(Notification.is_read.is_(False))
        .count()
    )


def mark_read(s: "Session", user: User, notification_id: int) -> Notification | None:
    """Mark one of the user's own notifications read. Returns None if it is not theirs."""
    n = s.get(Notification, notification_id)
    if not n or n.recipient_user_id != user.id:
        return None
    n.is_read = True
    return n
