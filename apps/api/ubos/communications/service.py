from __future__ import annotations

import uuid
from dataclasses import dataclass

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ubos.communications.models import MessageThread
from ubos.communications.repository import MessageRepository, MessageThreadRepository
from ubos.communications.schemas import MessageCreate, MessageRead, ThreadCreate, ThreadRead
from ubos.engagements.repository import EngagementRepository
from ubos.identity.repository import IdentityRepository
from ubos.platform.tenancy.context import OrgContext
from ubos.platform.tenancy.guards import require_reference
from ubos.platform.tenancy.repository import utcnow


@dataclass(slots=True)
class CommunicationService:
    thread_repository: MessageThreadRepository = MessageThreadRepository()
    message_repository: MessageRepository = MessageRepository()
    engagement_repository: EngagementRepository = EngagementRepository()
    identity_repository: IdentityRepository = IdentityRepository()

    def list_threads(self, session: Session, ctx: OrgContext) -> list[ThreadRead]:
        return [ThreadRead.model_validate(row) for row in self.thread_repository.list(session, ctx)]

    def get_thread(self, session: Session, ctx: OrgContext, thread_id: uuid.UUID) -> ThreadRead:
        return ThreadRead.model_validate(self._require_thread(session, ctx, thread_id))

    def create_thread(self, session: Session, ctx: OrgContext, dto: ThreadCreate) -> ThreadRead:
        require_reference(session, ctx, self.engagement_repository, dto.engagement_id, field="engagement_id")
        payload = dto.model_dump()
        payload["created_by_id"] = ctx.user_id
        row = self.thread_repository.create(session, ctx, payload)
        return ThreadRead.model_validate(row)

    def list_messages(self, session: Session, ctx: OrgContext, thread_id: uuid.UUID) -> list[MessageRead]:
        thread = self._require_thread(session, ctx, thread_id)
        return [MessageRead.model_validate(row) for row in self.message_repository.list_for_thread(session, thread)]

    def post_message(self, session: Session, ctx: OrgContext, thread_id: uuid.UUID, dto: MessageCreate) -> MessageRead:
        thread = self._require_thread(session, ctx, thread_id)
        sender = self.identity_repository.get_user(session, ctx.user_id)
        message = self.message_repository.create_in_thread(
            session,
            thread,
            sender_id=ctx.user_id,
            sender_name=sender.display_name if sender is not None else "Unknown",
            content=dto.content,
            sent_at=utcnow(),
        )
        return MessageRead.model_validate(message)

    def _require_thread(self, session: Session, ctx: OrgContext, thread_id: uuid.UUID) -> MessageThread:
        thread = self.thread_repository.get(session, ctx, thread_id)
        if thread is None:
            raise HTTPException(status_code=404, detail="thread not found")
        return thread


communication_service = CommunicationService()
