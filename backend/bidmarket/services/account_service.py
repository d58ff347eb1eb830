"""Account service: the identity directory consumed by the auction engine."""

from dataclasses import dataclass
import logging
from typing import Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from bidmarket.core.exceptions import ConflictError
from bidmarket.core.security import generate_api_key, hash_api_key
from bidmarket.models.account import Account, AccountRole
from bidmarket.schemas.account import AccountCreate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccountIdentity:
    """The slice of an account the auction engine is allowed to see."""
    id: str
    role: str
    name: str
    location: dict

    @property
    def is_warehouse(self) -> bool:
        return self.role == AccountRole.WAREHOUSE.value

    @property
    def is_factory(self) -> bool:
        return self.role == AccountRole.FACTORY.value


async def create_account(db: AsyncSession, account_data: AccountCreate) -> Tuple[Account, str]:
    """
    Register a warehouse or factory with a fresh API key.

    Args:
        db: Database session
        account_data: Account creation data

    Returns:
        Tuple of (Account, plaintext_api_key)

    Raises:
        ConflictError: If the email is already registered
    """
    api_key = generate_api_key()

    location = account_data.location
    account = Account(
        email=account_data.email.lower(),
        name=account_data.name,
        role=account_data.role,
        api_key_hash=hash_api_key(api_key),
        phone=account_data.phone,
        address=location.address,
        city=location.city,
        state=location.state,
        latitude=location.latitude,
        longitude=location.longitude,
        certifications=account_data.certifications,
    )

    db.add(account)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError(
            f"Account with email '{account_data.email}' already exists",
            code="DUPLICATE_EMAIL"
        )
    await db.refresh(account)

    logger.info(f"Registered {account.role} account {account.id}")
    return account, api_key


async def get_account_by_id(db: AsyncSession, account_id: str) -> Optional[Account]:
    result = await db.execute(
        select(Account).where(Account.id == account_id)
    )
    return result.scalar_one_or_none()


async def get_account_by_api_key(db: AsyncSession, api_key: str) -> Optional[Account]:
    """Resolve an API key to its account via the stored hash."""
    result = await db.execute(
        select(Account).where(Account.api_key_hash == hash_api_key(api_key))
    )
    return result.scalar_one_or_none()


async def get_user(db: AsyncSession, account_id: str) -> Optional[AccountIdentity]:
    """
    Look up an account's role, name and location.

    Returns:
        AccountIdentity or None if the account does not exist
    """
    account = await get_account_by_id(db, account_id)
    if not account:
        return None

    return AccountIdentity(
        id=account.id,
        role=account.role,
        name=account.name,
        location=account.location,
    )
