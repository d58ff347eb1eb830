"""Accounts API router."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from bidmarket.database import get_db
from bidmarket.api.deps import get_current_account
from bidmarket.core.exceptions import NotFoundError
from bidmarket.models.account import Account
from bidmarket.schemas.account import (
    AccountCreate,
    AccountPublic,
    AccountResponse,
    AccountRegisterResponse,
)
from bidmarket.services.account_service import create_account, get_account_by_id

router = APIRouter()


@router.post("", response_model=AccountRegisterResponse, status_code=status.HTTP_201_CREATED)
async def register_account(
    account_data: AccountCreate,
    db: AsyncSession = Depends(get_db)
):
    """
    Register a warehouse or factory (public endpoint).

    Returns the API key ONLY ONCE - save it securely!
    """
    account, api_key = await create_account(db, account_data)

    return AccountRegisterResponse(
        account_id=account.id,
        name=account.name,
        role=account.role,
        api_key=api_key,
        created_at=account.created_at
    )


@router.get("/me", response_model=AccountResponse)
async def get_my_account(
    current_account: Account = Depends(get_current_account)
):
    """
    Get the authenticated account's full profile.
    """
    return AccountResponse.model_validate(current_account)


@router.get("/{account_id}", response_model=AccountPublic)
async def get_account(
    account_id: str,
    db: AsyncSession = Depends(get_db),
    current_account: Account = Depends(get_current_account)
):
    """
    Get a counterparty's public profile.
    """
    account = await get_account_by_id(db, account_id)
    if not account:
        raise NotFoundError(f"Account {account_id} not found", code="ACCOUNT_NOT_FOUND")

    return AccountPublic.model_validate(account)
