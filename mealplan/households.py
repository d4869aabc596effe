# households.py
# Household membership and join codes.
#
# A user is a member of exactly one household at a time. Whenever a user is
# taken out of a household they are given a new household of their own.

import logging
import secrets
import string
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from sqlalchemy.orm import Session

from mealplan import models
from mealplan import schemas
from mealplan.core.config import settings
from mealplan.core.errors import NotFoundError, ValidationError
from mealplan.core.logging_events import log_operation
from mealplan.db.session import transaction

logger = logging.getLogger(__name__)

JOIN_CODE_ALPHABET = string.ascii_uppercase + string.digits

# Resolves a user id to its profile (email, last name)
UserDirectory = Callable[[str], schemas.UserProfile]


def household_name_for(user: schemas.UserProfile) -> str:
    return f"{user.last_name or 'My'} Household"


def _provision_household(db: Session, user: schemas.UserProfile) -> models.Household:
    # Runs inside the caller's transaction; the user must have no membership
    db_household = models.Household(name=household_name_for(user))
    db.add(db_household)
    db.flush()
    db.add(models.HouseholdMember(household_id=db_household.id, user_id=user.id, email=user.email))
    db.flush()
    logger.info(f"Created household {db_household.id} for user {user.id}")
    return db_household


def _drop_membership(db: Session, user_id: str) -> int:
    return (
        db.query(models.HouseholdMember)
        .filter(models.HouseholdMember.user_id == user_id)
        .delete(synchronize_session="fetch")
    )


def get_household_id_for_user(db: Session, user_id: str) -> int:
    household_id = (
        db.query(models.HouseholdMember.household_id)
        .filter(models.HouseholdMember.user_id == user_id)
        .scalar()
    )
    if household_id is None:
        raise NotFoundError(f"user {user_id} has no household")
    return household_id


def get_household(db: Session, user: schemas.UserProfile) -> models.Household:
    """
    The user's household with its members. A user seen for the first time
    gets a household of their own.
    """
    membership = (
        db.query(models.HouseholdMember)
        .filter(models.HouseholdMember.user_id == user.id)
        .first()
    )
    if membership is None:
        with transaction(db):
            db_household = _provision_household(db, user)
        return db.query(models.Household).filter(models.Household.id == db_household.id).one()

    return db.query(models.Household).filter(models.Household.id == membership.household_id).one()


def list_household_members(db: Session, household_id: int) -> List[str]:
    return [
        user_id
        for (user_id,) in db.query(models.HouseholdMember.user_id)
        .filter(models.HouseholdMember.household_id == household_id)
        .order_by(models.HouseholdMember.id)
        .all()
    ]


def generate_join_code(
    db: Session, household_id: int, duration: Optional[timedelta] = None
) -> models.HouseholdJoinCode:
    """
    Issue a random code that lets another user join `household_id` until it
    expires.
    """
    duration = duration or timedelta(minutes=settings.JOIN_CODE_TTL_MINUTES)
    code = "".join(secrets.choice(JOIN_CODE_ALPHABET) for _ in range(settings.JOIN_CODE_LENGTH))

    with transaction(db):
        db_code = models.HouseholdJoinCode(
            code=code,
            household_id=household_id,
            expires_at=datetime.now() + duration,
        )
        db.add(db_code)

    logger.info(f"Issued join code for household {household_id}")
    return db_code


def join_household_by_code(db: Session, user: schemas.UserProfile, code: str) -> int:
    """
    Move the user into the household the code was issued for.
    Returns the household id.
    """
    household_id = (
        db.query(models.HouseholdJoinCode.household_id)
        .filter(
            models.HouseholdJoinCode.code == code.strip().upper(),
            models.HouseholdJoinCode.expires_at > datetime.now(),
        )
        .scalar()
    )
    if household_id is None:
        raise ValidationError("invalid or expired code")

    with log_operation("households.join", household_id=household_id, user_id=user.id):
        with transaction(db):
            _drop_membership(db, user.id)
            db.add(models.HouseholdMember(household_id=household_id, user_id=user.id, email=user.email))

    logger.info(f"User {user.id} joined household {household_id}")
    return household_id


def leave_household(db: Session, user: schemas.UserProfile) -> models.Household:
    """
    Take the user out of their household and into a brand-new one.
    """
    with log_operation("households.leave", user_id=user.id):
        with transaction(db):
            _drop_membership(db, user.id)
            _provision_household(db, user)

    return get_household(db, user)


def remove_household_member(
    db: Session,
    household_id: int,
    actor_user_id: str,
    target_user_id: str,
    directory: UserDirectory,
) -> None:
    """
    Remove another member from `household_id`. The removed user is moved
    into a new household named after the profile the directory returns.
    """
    if actor_user_id == target_user_id:
        raise ValidationError("cannot remove yourself")

    membership = (
        db.query(models.HouseholdMember)
        .filter(
            models.HouseholdMember.household_id == household_id,
            models.HouseholdMember.user_id == target_user_id,
        )
        .first()
    )
    if membership is None:
        raise NotFoundError(f"user {target_user_id} is not a member of household {household_id}")

    target = directory(target_user_id)

    with log_operation("households.remove_member", household_id=household_id, user_id=target_user_id):
        with transaction(db):
            _drop_membership(db, target_user_id)
            _provision_household(db, target)

    logger.info(f"User {actor_user_id} removed {target_user_id} from household {household_id}")
