# plans.py
# Calendar plans of meals, scoped to a household.

import logging
from datetime import date
from typing import List, Optional

from sqlalchemy.orm import Session

from mealplan import models
from mealplan import schemas
from mealplan.core.errors import NotFoundError, UnauthorizedError, ValidationError
from mealplan.core.logging_events import log_operation
from mealplan.db.collections import replace_children
from mealplan.db.session import transaction

logger = logging.getLogger(__name__)


def validate_plan(plan: schemas.PlanBase, today: Optional[date] = None) -> None:
    """
    Both dates must be today or later and the range must not be inverted.
    """
    today = today or date.today()
    if plan.start_date < today or plan.end_date < today:
        raise ValidationError("start date and end date must be in the future")
    if plan.start_date > plan.end_date:
        raise ValidationError("start date must be before end date")


def get_plan(db: Session, plan_id: int) -> models.Plan:
    logger.debug(f"Retrieving plan with id {plan_id}")
    db_plan = db.query(models.Plan).filter(models.Plan.id == plan_id).first()
    if not db_plan:
        raise NotFoundError(f"plan {plan_id} not found")
    return db_plan


def get_household_plan(db: Session, plan_id: int, household_id: int) -> models.Plan:
    """
    Fetch a plan on behalf of a household, refusing plans owned by another one.
    """
    db_plan = get_plan(db, plan_id)
    if db_plan.household_id != household_id:
        logger.warning(f"Household {household_id} tried to access plan {plan_id} of household {db_plan.household_id}")
        raise UnauthorizedError(f"plan {plan_id} does not belong to household {household_id}")
    return db_plan


def get_plans(db: Session, household_id: int) -> List[models.Plan]:
    """
    All of a household's plans, earliest start first.
    """
    return (
        db.query(models.Plan)
        .filter(models.Plan.household_id == household_id)
        .order_by(models.Plan.start_date.asc(), models.Plan.id.asc())
        .all()
    )


def get_last_plan(db: Session, household_id: int, today: Optional[date] = None) -> Optional[models.Plan]:
    """
    The most recently started plan, or None.
    """
    today = today or date.today()
    return (
        db.query(models.Plan)
        .filter(models.Plan.household_id == household_id, models.Plan.start_date <= today)
        .order_by(models.Plan.start_date.desc(), models.Plan.id.desc())
        .first()
    )


def get_next_plan(db: Session, household_id: int, today: Optional[date] = None) -> Optional[models.Plan]:
    """
    The earliest plan starting after today, or None.
    """
    today = today or date.today()
    return (
        db.query(models.Plan)
        .filter(models.Plan.household_id == household_id, models.Plan.start_date > today)
        .order_by(models.Plan.start_date.asc(), models.Plan.id.asc())
        .first()
    )


def get_future_plans(db: Session, household_id: int, today: Optional[date] = None) -> List[models.Plan]:
    """
    Plans that have not ended yet as of today, earliest start first.
    """
    today = today or date.today()
    return (
        db.query(models.Plan)
        .filter(models.Plan.household_id == household_id, models.Plan.end_date > today)
        .order_by(models.Plan.start_date.asc(), models.Plan.id.asc())
        .all()
    )


def _write_plan(db: Session, db_plan: models.Plan, plan: schemas.PlanCreate) -> None:
    db_plan.start_date = plan.start_date
    db_plan.end_date = plan.end_date

    meal_ids = []
    for meal_id in plan.meals:
        if meal_id not in meal_ids:
            meal_ids.append(meal_id)
    replace_children(db, models.PlanMeal, "plan_id", db_plan.id, [
        {"meal_id": meal_id} for meal_id in meal_ids
    ])


def create_plan(
    db: Session, plan: schemas.PlanCreate, household_id: int, today: Optional[date] = None
) -> models.Plan:
    """
    Create a plan for the household and link its meals.
    """
    validate_plan(plan, today=today)

    with log_operation("plans.create", household_id=household_id):
        with transaction(db):
            db_plan = models.Plan(
                start_date=plan.start_date,
                end_date=plan.end_date,
                household_id=household_id,
            )
            db.add(db_plan)
            db.flush()  # Need ID
            _write_plan(db, db_plan, plan)

    logger.info(f"Created plan {db_plan.id} for household {household_id}")
    return get_plan(db, db_plan.id)


def update_plan(
    db: Session, plan_id: int, plan: schemas.PlanCreate, today: Optional[date] = None
) -> models.Plan:
    """
    Replace a plan's dates and meal links. The owning household never changes;
    callers check ownership first (see get_household_plan).
    """
    if plan_id <= 0:
        raise ValidationError(f"invalid plan id: {plan_id}")
    validate_plan(plan, today=today)

    with log_operation("plans.update", plan_id=plan_id):
        db_plan = get_plan(db, plan_id)
        with transaction(db):
            _write_plan(db, db_plan, plan)

    return get_plan(db, plan_id)


def delete_plan(db: Session, plan_id: int) -> None:
    """
    Delete a plan with its meal links and shopping status.
    """
    with log_operation("plans.delete", plan_id=plan_id):
        get_plan(db, plan_id)
        with transaction(db):
            db.query(models.PlanMeal).filter(models.PlanMeal.plan_id == plan_id).delete(synchronize_session="fetch")
            db.query(models.ShoppingStatus).filter(models.ShoppingStatus.plan_id == plan_id).delete(synchronize_session="fetch")
            db.query(models.Plan).filter(models.Plan.id == plan_id).delete(synchronize_session="fetch")

    logger.info(f"Deleted plan {plan_id}")


def get_plan_ingredients(db: Session, plan_id: int) -> List[schemas.Ingredient]:
    """
    Every ingredient needed for a plan, flattened in plan order and then in
    insertion order within each meal. A meal already lists the ingredients
    of the recipes it links, so recipe links are not followed here.
    """
    db_plan = get_plan(db, plan_id)
    ingredients = []
    for link in db_plan.meal_links:
        meal = db.query(models.Meal).filter(models.Meal.id == link.meal_id).first()
        if not meal:
            logger.warning(f"Plan {plan_id} links missing meal {link.meal_id}")
            continue
        ingredients.extend(schemas.Ingredient.model_validate(item) for item in meal.ingredients)

    logger.debug(f"Plan {plan_id} needs {len(ingredients)} ingredients")
    return ingredients
