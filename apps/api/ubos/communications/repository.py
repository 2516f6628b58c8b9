from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from ubos.communications.models import Message, MessageThread
from ubos.platform.tenancy.repository import ScopedRepository


class MessageThreadRepository(ScopedRepository[MessageThread]):
    model = MessageThread
    resource = "communications.thread"

    def ordering(self) -> tuple[Any, ...]:
        return (MessageThread.last_message_at.desc().nulls_last(), MessageThread.created_at.desc())


class MessageRepository:
    """Messages carry no organization column of their own.

    Every method takes the parent thread, which callers can only obtain
    through ``MessageThreadRepository.get`` and therefore through the
    caller's organization scope.
    """

    def list_for_thread(self, session: Session, thread: MessageThread) -> list[Message]:
        stmt = select(Message).where(Message.thread_id == thread.id).order_by(Message.created_at.asc())
        return list(session.scalars(stmt).all())

    def create_in_thread(
        self,
        session: Session,
        thread: MessageThread,
        *,
        sender_id: str,
        sender_name: str | None,
        content: str,
        sent_at: datetime,
    ) -> Message:
        message = Message(
            thread_id=thread.id,
            sender_id=sender_id,
            sender_name=sender_name,
            content=content,
            created_at=sent_at,
        )
        session.add(message)
        thread.last_message_at = sent_at
        thread.updated_at = sent_at
        session.commit()
        session.refresh(message)
        return message
