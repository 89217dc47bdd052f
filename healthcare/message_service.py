from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.orm import Session

from .db import db_session
from .errors import NotFoundError, PermissionDeniedError, ValidationError
from .models import Message, User
from .serializers import message_flat

logger = logging.getLogger(__name__)


def _clean(subject: str, content: str) -> tuple[str, str]:
    subject = (subject or "").strip()
    content = (content or "").strip()
    if not 3 <= len(subject) <= 200:
        raise ValidationError("Subject must be between 3 and 200 characters")
    if not 10 <= len(content) <= 2000:
        raise ValidationError("Message must be between 10 and 2000 characters")
    return subject, content


def _get(s: Session, message_id: int) -> Message:
    m = s.get(Message, message_id)
    if m is None:
        raise NotFoundError("Message not found")
    return m


def _visible_to(m: Message, user_id: int) -> bool:
    return (m.sender_id == user_id and not m.sender_deleted) or (
        m.receiver_id == user_id and not m.receiver_deleted
    )


def _inbox(user_id: int):
    return and_(Message.receiver_id == user_id, Message.receiver_deleted.is_(False))


def _outbox(user_id: int):
    return and_(Message.sender_id == user_id, Message.sender_deleted.is_(False))


def _newest_first(q):
    return q.order_by(Message.created_at.desc(), Message.id.desc())


def send_message(sender_id: int, receiver_id: int, subject: str, content: str) -> dict[str, Any]:
    subject, content = _clean(subject, content)
    if sender_id == receiver_id:
        raise ValidationError("You cannot send a message to yourself")

    with db_session() as s:
        if s.get(User, receiver_id) is None:
            raise NotFoundError("Receiver not found")
        m = Message(sender_id=sender_id, receiver_id=receiver_id, subject=subject, message_content=content)
        s.add(m)
        s.flush()
        s.refresh(m)
        logger.info("message %s sent from %s to %s", m.id, sender_id, receiver_id)
        return message_flat(m)


def get_message(user_id: int, message_id: int) -> dict[str, Any]:
    with db_session() as s:
        m = _get(s, message_id)
        if not _visible_to(m, user_id):
            raise PermissionDeniedError("Access denied")
        return message_flat(m)


def list_messages(user_id: int) -> list[dict[str, Any]]:
    with db_session() as s:
        q = select(Message).where(or_(_inbox(user_id), _outbox(user_id)))
        return [message_flat(m) for m in s.scalars(_newest_first(q))]


def list_received(user_id: int) -> list[dict[str, Any]]:
    with db_session() as s:
        return [message_flat(m) for m in s.scalars(_newest_first(select(Message).where(_inbox(user_id))))]


def list_sent(user_id: int) -> list[dict[str, Any]]:
    with db_session() as s:
        return [message_flat(m) for m in s.scalars(_newest_first(select(Message).where(_outbox(user_id))))]


def list_unread(user_id: int) -> list[dict[str, Any]]:
    with db_session() as s:
        q = select(Message).where(_inbox(user_id), Message.is_read.is_(False))
        return [message_flat(m) for m in s.scalars(_newest_first(q))]


def unread_count(user_id: int) -> int:
    with db_session() as s:
        return int(
            s.scalar(select(func.count(Message.id)).where(_inbox(user_id), Message.is_read.is_(False))) or 0
        )


def conversation(user_id: int, other_id: int) -> list[dict[str, Any]]:
    """Both directions between two users, oldest first."""
    with db_session() as s:
        if s.get(User, other_id) is None:
            raise NotFoundError("User not found")
        q = select(Message).where(
            or_(
                and_(_outbox(user_id), Message.receiver_id == other_id),
                and_(_inbox(user_id), Message.sender_id == other_id),
            )
        )
        return [message_flat(m) for m in s.scalars(q.order_by(Message.created_at.asc(), Message.id.asc()))]


def mark_read(user_id: int, message_id: int) -> dict[str, Any]:
    with db_session() as s:
        m = _get(s, message_id)
        if m.receiver_id != user_id:
            raise PermissionDeniedError("Only the receiver can mark a message as read")
        m.is_read = True
        s.flush()
        return message_flat(m)


def mark_all_read(user_id: int) -> int:
    with db_session() as s:
        result = s.execute(
            update(Message)
            .where(_inbox(user_id), Message.is_read.is_(False))
            .values(is_read=True)
            .execution_options(synchronize_session=False)
        )
        return int(result.rowcount or 0)


def delete_message(user_id: int, message_id: int) -> None:
    """Hide the message for the caller; the row goes once both sides deleted it."""
    with db_session() as s:
        m = _get(s, message_id)
        if not _visible_to(m, user_id):
            raise PermissionDeniedError("Access denied")
        if m.sender_id == user_id:
            m.sender_deleted = True
        if m.receiver_id == user_id:
            m.receiver_deleted = True
        if m.sender_deleted and m.receiver_deleted:
            s.delete(m)
        logger.info("message %s deleted by user %s", message_id, user_id)


def reply(user_id: int, message_id: int, content: str) -> dict[str, Any]:
    with db_session() as s:
        original = _get(s, message_id)
        if original.receiver_id != user_id:
            raise PermissionDeniedError("You can only reply to messages you received")
        subject = original.subject if original.subject.startswith("Re: ") else f"Re: {original.subject}"
        to_id = original.sender_id

    return send_message(user_id, to_id, subject[:200], content)
