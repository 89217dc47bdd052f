from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from .. import message_service
from ..deps import get_current_user
from ..models import User
from ..schemas import MessageIn, ReplyIn

router = APIRouter(prefix="/api/messages", tags=["Messages"])


@router.post("", status_code=201)
def send(payload: MessageIn, user: User = Depends(get_current_user)) -> dict[str, Any]:
    message = message_service.send_message(user.id, payload.receiver_id, payload.subject, payload.message_content)
    return {"message": "Message sent successfully", "data": message}


@router.get("")
def my_messages(user: User = Depends(get_current_user)) -> dict[str, Any]:
    items = message_service.list_messages(user.id)
    return {"messages": items, "count": len(items)}


@router.get("/sent")
def sent(user: User = Depends(get_current_user)) -> dict[str, Any]:
    items = message_service.list_sent(user.id)
    return {"messages": items, "count": len(items)}


@router.get("/received")
def received(user: User = Depends(get_current_user)) -> dict[str, Any]:
    items = message_service.list_received(user.id)
    return {"messages": items, "count": len(items)}


@router.get("/unread")
def unread(user: User = Depends(get_current_user)) -> dict[str, Any]:
    items = message_service.list_unread(user.id)
    return {"messages": items, "count": len(items)}


@router.get("/unread/count")
def unread_count(user: User = Depends(get_current_user)) -> dict[str, Any]:
    return {"unread_count": message_service.unread_count(user.id)}


@router.put("/read-all")
def read_all(user: User = Depends(get_current_user)) -> dict[str, Any]:
    updated = message_service.mark_all_read(user.id)
    return {"message": "All messages marked as read", "updated": updated}


@router.get("/conversation/{user_id}")
def conversation(user_id: int, user: User = Depends(get_current_user)) -> dict[str, Any]:
    items = message_service.conversation(user.id, user_id)
    return {"messages": items, "count": len(items)}


@router.get("/{message_id}")
def get_one(message_id: int, user: User = Depends(get_current_user)) -> dict[str, Any]:
    return {"data": message_service.get_message(user.id, message_id)}


@router.put("/{message_id}/read")
def mark_read(message_id: int, user: User = Depends(get_current_user)) -> dict[str, Any]:
    return {"message": "Message marked as read", "data": message_service.mark_read(user.id, message_id)}


@router.delete("/{message_id}")
def delete(message_id: int, user: User = Depends(get_current_user)) -> dict[str, Any]:
    message_service.delete_message(user.id, message_id)
    return {"message": "Message deleted successfully"}


@router.post("/{message_id}/reply", status_code=201)
def reply(message_id: int, payload: ReplyIn, user: User = Depends(get_current_user)) -> dict[str, Any]:
    message = message_service.reply(user.id, message_id, payload.message_content)
    return {"message": "Reply sent successfully", "data": message}
