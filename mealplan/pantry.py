# pantry.py
# One pantry of staple item names per household.

import logging
from typing import Iterable, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from mealplan import models
from mealplan.core.config import settings
from mealplan.core.logging_events import log_operation
from mealplan.db.collections import replace_children
from mealplan.db.session import transaction

logger = logging.getLogger(__name__)


def normalize_items(items: Iterable[str]) -> List[str]:
    """
    Lower-cased, stripped, non-empty item names with duplicates dropped,
    first occurrence wins.
    """
    names = []
    for item in items:
        name = item.strip().lower()
        if not name:
            continue
        if name in names:
            logger.debug(f"Pantry item {name!r} already present, skipping")
            continue
        names.append(name)
    return names


def _find_pantry(db: Session, household_id: int) -> Optional[models.Pantry]:
    return db.query(models.Pantry).filter(models.Pantry.household_id == household_id).first()


def _write_pantry(db: Session, household_id: int, items: Iterable[str]) -> models.Pantry:
    # Runs inside the caller's transaction; inserts the pantry row when missing
    db_pantry = _find_pantry(db, household_id)
    if db_pantry is None:
        db_pantry = models.Pantry(household_id=household_id)
        db.add(db_pantry)
        db.flush()  # Need ID

    replace_children(db, models.PantryItem, "pantry_id", db_pantry.id, [
        {"item_name": name} for name in normalize_items(items)
    ])
    return db_pantry


def get_pantry(db: Session, household_id: int) -> models.Pantry:
    """
    Return the household's pantry, creating it with the default staples the
    first time it is asked for.
    """
    db_pantry = _find_pantry(db, household_id)
    if db_pantry is None:
        logger.info(f"No pantry for household {household_id}, creating one with default items")
        return create_pantry(db, household_id, settings.DEFAULT_PANTRY_ITEMS)
    return db_pantry


def create_pantry(db: Session, household_id: int, items: Iterable[str]) -> models.Pantry:
    """
    Create the household's pantry holding `items`. If it already exists this
    is the same as update_pantry.
    """
    items = list(items)
    try:
        with log_operation("pantry.create", household_id=household_id):
            with transaction(db):
                db_pantry = _write_pantry(db, household_id, items)
    except IntegrityError:
        # Only a pantry created concurrently for the same household is benign
        if _find_pantry(db, household_id) is None:
            raise
        logger.warning(f"Pantry for household {household_id} already exists, updating instead")
        return update_pantry(db, household_id, items)

    return db_pantry


def update_pantry(db: Session, household_id: int, items: Iterable[str]) -> models.Pantry:
    """
    Replace every item in the household's pantry with `items`.
    """
    items = list(items)

    with log_operation("pantry.update", household_id=household_id):
        with transaction(db):
            db_pantry = _write_pantry(db, household_id, items)

    return db_pantry


def delete_pantry(db: Session, household_id: int) -> None:
    """
    Empty the household's pantry. The pantry row itself is kept.
    """
    with log_operation("pantry.delete", household_id=household_id):
        with transaction(db):
            _write_pantry(db, household_id, [])

    logger.info(f"Emptied pantry of household {household_id}")
