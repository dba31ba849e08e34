"""Profile router: the organizer's payment accounts and rewards points."""

from typing import Annotated
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

import models
import schemas
from database import get_db
from dependencies import get_current_user
from utils.payment_links import clean_payment_accounts
from utils.rewards import rewards_summary


router = APIRouter(tags=["profile"])


def _accounts_of(user: models.User) -> schemas.PaymentAccounts:
    return schemas.PaymentAccounts(
        venmo=user.venmo_username,
        cashapp=user.cashapp_tag,
        paypal=user.paypal_username
    )


@router.get("/users/me/payment-accounts", response_model=schemas.PaymentAccounts)
async def get_payment_accounts(current_user: Annotated[models.User, Depends(get_current_user)]):
    return _accounts_of(current_user)


@router.put("/users/me/payment-accounts", response_model=schemas.PaymentAccounts)
async def update_payment_accounts(
    accounts: schemas.PaymentAccounts,
    current_user: Annotated[models.User, Depends(get_current_user)],
    db: Session = Depends(get_db)
):
    """
    Replace the accounts guests pay into.
    Handles are normalised ("@alex" -> "alex", "$alex" -> "alex"); empty values clear them.
    """
    cleaned = clean_payment_accounts(accounts)
    current_user.venmo_username = cleaned.venmo
    current_user.cashapp_tag = cleaned.cashapp
    current_user.paypal_username = cleaned.paypal
    db.commit()
    db.refresh(current_user)
    return _accounts_of(current_user)


@router.get("/users/me/rewards", response_model=schemas.RewardsSummary)
async def get_rewards(
    current_user: Annotated[models.User, Depends(get_current_user)],
    db: Session = Depends(get_db)
):
    return rewards_summary(db, current_user)
