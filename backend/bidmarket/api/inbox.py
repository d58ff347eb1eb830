"""Inbox API router for account notifications."""

from typing import Optional
from datetime import datetime
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from bidmarket.database import get_db
from bidmarket.api.deps import get_current_account
from bidmarket.models.account import Account
from bidmarket.schemas.message import MessageList, MessageResponse, MarkReadResponse
from bidmarket.services.message_service import get_inbox, mark_as_read

router = APIRouter()


@router.get("", response_model=MessageList)
async def get_account_inbox(
    unread_only: bool = Query(False),
    bid_request_id: Optional[str] = Query(None),
    since: Optional[datetime] = Query(None),
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    current_account: Account = Depends(get_current_account),
    db: AsyncSession = Depends(get_db)
):
    """
    Get messages for the current account.
    """
    messages, total, unread_count = await get_inbox(
        db=db,
        account_id=current_account.id,
        unread_only=unread_only,
        bid_request_id=bid_request_id,
        since=since,
        limit=limit,
        offset=offset
    )

    return MessageList(
        messages=[MessageResponse.model_validate(m) for m in messages],
        total=total,
        unread_count=unread_count
    )


@router.post("/{message_id}/read", response_model=MarkReadResponse)
async def mark_message_read(
    message_id: str,
    current_account: Account = Depends(get_current_account),
    db: AsyncSession = Depends(get_db)
):
    """
    Mark a message as read.
    """
    message = await mark_as_read(db, message_id, current_account.id)
    return MarkReadResponse(
        message_id=message.id,
        read_at=message.read_at
    )
