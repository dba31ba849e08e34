"""Rewards points for organizers whose tabs get fully paid back."""

import logging
from datetime import datetime, timezone
from decimal import Decimal, ROUND_FLOOR

from sqlalchemy.orm import Session

import models
import schemas
from utils.allocation import tab_subtotal

logger = logging.getLogger(__name__)

POINTS_PER_DOLLAR = 1


def points_for_subtotal(subtotal: Decimal) -> int:
    """One point per whole dollar of the tab subtotal."""
    if subtotal <= 0:
        return 0
    return int(subtotal.to_integral_value(rounding=ROUND_FLOOR)) * POINTS_PER_DOLLAR


def award_points_for_tab(db: Session, tab: schemas.Tab) -> int:
    """
    Credit the tab's creator once. The caller marks the tab as awarded.

    Returns:
        int: Points earned (0 if already awarded or nothing to award)
    """
    if tab.points_awarded or tab.created_by is None:
        return 0
    user = db.query(models.User).filter(models.User.id == tab.created_by).first()
    if not user:
        logger.error(f"No organizer found for tab {tab.id}")
        return 0

    subtotal = tab_subtotal(tab)
    points = points_for_subtotal(subtotal)
    if points == 0:
        return 0

    user.points_balance = (user.points_balance or 0) + points
    user.points_lifetime = (user.points_lifetime or 0) + points
    db.add(models.PointsHistory(
        user_id=user.id,
        tab_id=tab.id,
        tab_name=tab.restaurant_name or "Tab",
        subtotal=float(subtotal),
        points_earned=points,
        earned_at=datetime.now(timezone.utc).isoformat()
    ))
    db.commit()
    logger.info(f"Awarded {points} points to user {user.id} for tab {tab.id}")
    return points


def rewards_summary(db: Session, user: models.User) -> schemas.RewardsSummary:
    history = db.query(models.PointsHistory).filter(
        models.PointsHistory.user_id == user.id
    ).order_by(models.PointsHistory.id.desc()).all()
    return schemas.RewardsSummary(
        balance=user.points_balance or 0,
        lifetime=user.points_lifetime or 0,
        history=[schemas.PointsEntry.model_validate(entry) for entry in history]
    )
