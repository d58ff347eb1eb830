"""Message service for inbox notifications between warehouses and factories."""

from typing import List, Optional, Dict, Any
from datetime import datetime
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_, func

from bidmarket.core.clock import utcnow
from bidmarket.core.exceptions import ForbiddenError, NotFoundError
from bidmarket.models.message import Message


async def create_auto_message(
    db: AsyncSession,
    message_type: str,
    from_account_id: str,
    to_account_id: str,
    content_data: Dict[str, Any],
    bid_request_id: Optional[str] = None,
    bid_id: Optional[str] = None,
    commit: bool = True
) -> Message:
    """
    Create an automatic notification message.

    Args:
        db: Database session
        message_type: Type of message
        from_account_id: Account whose action triggered the message
        to_account_id: Recipient account
        content_data: Message content
        bid_request_id: Related bid request, if any
        bid_id: Related bid, if any
        commit: Commit immediately; pass False to batch several messages

    Returns:
        Created message
    """
    message = Message(
        from_account_id=from_account_id,
        to_account_id=to_account_id,
        bid_request_id=bid_request_id,
        bid_id=bid_id,
        message_type=message_type,
        content=content_data,
    )

    db.add(message)
    if commit:
        await db.commit()
        await db.refresh(message)

    return message


async def get_inbox(
    db: AsyncSession,
    account_id: str,
    unread_only: bool = False,
    bid_request_id: Optional[str] = None,
    since: Optional[datetime] = None,
    limit: int = 50,
    offset: int = 0
) -> tuple[List[Message], int, int]:
    """
    Get messages for an account's inbox.

    Args:
        db: Database session
        account_id: Recipient account
        unread_only: Only return unread messages
        bid_request_id: Filter by bid request
        since: Only messages after this timestamp
        limit: Maximum results
        offset: Pagination offset

    Returns:
        Tuple of (messages, total_count, unread_count)
    """
    query = select(Message).where(Message.to_account_id == account_id)

    if unread_only:
        query = query.where(Message.read_at.is_(None))

    if bid_request_id:
        query = query.where(Message.bid_request_id == bid_request_id)

    if since:
        query = query.where(Message.created_at >= since)

    count_query = select(func.count()).select_from(query.subquery())
    total_count = (await db.execute(count_query)).scalar()

    unread_query = select(func.count()).where(
        and_(
            Message.to_account_id == account_id,
            Message.read_at.is_(None)
        )
    )
    unread_count = (await db.execute(unread_query)).scalar()

    query = query.order_by(Message.created_at.desc()).offset(offset).limit(limit)
    result = await db.execute(query)
    messages = list(result.scalars().all())

    return messages, total_count, unread_count


async def mark_as_read(
    db: AsyncSession,
    message_id: str,
    account_id: str
) -> Message:
    """
    Mark a message as read.

    Raises:
        NotFoundError: If the message does not exist
        ForbiddenError: If the message is addressed to someone else
    """
    result = await db.execute(
        select(Message).where(Message.id == message_id)
    )
    message = result.scalar_one_or_none()

    if not message:
        raise NotFoundError("Message not found", code="MESSAGE_NOT_FOUND")

    if message.to_account_id != account_id:
        raise ForbiddenError("This message is not addressed to you", code="NOT_MESSAGE_RECIPIENT")

    if message.read_at is None:
        message.read_at = utcnow()
        await db.commit()
        await db.refresh(message)

    return message
