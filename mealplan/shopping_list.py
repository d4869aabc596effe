# shopping_list.py
# Shopping list for a household's next plan.
#
# The list itself is never stored. Each read recomputes it from the plan's
# ingredients minus pantry staples, then marks the items whose exact
# {name, amount} pair is in the plan's persisted shopping status.

import logging
from datetime import date
from typing import Iterable, Optional, Set, Tuple

from sqlalchemy.orm import Session

from mealplan import models
from mealplan import schemas
from mealplan.core.errors import NoUpcomingPlanError, ValidationError
from mealplan.core.logging_events import log_operation
from mealplan.db.session import transaction
from mealplan.pantry import get_pantry
from mealplan.plans import get_household_plan, get_next_plan, get_plan_ingredients

logger = logging.getLogger(__name__)


def in_pantry(ingredient_name: str, pantry_items: Iterable[str]) -> bool:
    """
    Loose match: "Kosher Salt" is covered by the pantry item "salt".
    """
    name = ingredient_name.lower()
    return any(item and item.lower() in name for item in pantry_items)


def build_shopping_list(
    plan: schemas.Plan,
    ingredients: Iterable[schemas.Ingredient],
    pantry_items: Iterable[str],
    status: schemas.ShoppingStatus,
) -> schemas.ShoppingList:
    """
    Drop pantry staples and mark checked items, keeping ingredient order.
    Checked state needs an exact name and amount match.
    """
    pantry_items = list(pantry_items)
    checked: Set[Tuple[str, str]] = {(item.name, item.amount) for item in status.items}

    items = [
        schemas.ShoppingListItem(
            name=ingredient.name,
            amount=ingredient.amount,
            checked=(ingredient.name, ingredient.amount) in checked,
        )
        for ingredient in ingredients
        if not in_pantry(ingredient.name, pantry_items)
    ]
    return schemas.ShoppingList(plan=plan, ingredients=items)


def get_or_create_status(db: Session, plan_id: int) -> schemas.ShoppingStatus:
    """
    The plan's persisted shopping status. An empty one is stored the first
    time a plan is shopped for.
    """
    db_status = db.query(models.ShoppingStatus).filter(models.ShoppingStatus.plan_id == plan_id).first()
    if db_status is None:
        logger.debug(f"Creating empty shopping status for plan {plan_id}")
        with transaction(db):
            db_status = models.ShoppingStatus(plan_id=plan_id, status=schemas.ShoppingStatus().model_dump())
            db.add(db_status)
    return schemas.ShoppingStatus.model_validate(db_status.status)


def _shopping_list_for_plan(db: Session, db_plan: models.Plan) -> schemas.ShoppingList:
    pantry = get_pantry(db, db_plan.household_id)
    pantry_items = [item.item_name for item in pantry.items]
    status = get_or_create_status(db, db_plan.id)
    ingredients = get_plan_ingredients(db, db_plan.id)
    return build_shopping_list(schemas.Plan.model_validate(db_plan), ingredients, pantry_items, status)


def get_shopping_list(db: Session, household_id: int, today: Optional[date] = None) -> schemas.ShoppingList:
    """
    Shopping list for the household's next plan.
    Raises NoUpcomingPlanError when nothing is planned after today.
    """
    with log_operation("shopping_list.get", household_id=household_id):
        db_plan = get_next_plan(db, household_id, today=today)
        if db_plan is None:
            raise NoUpcomingPlanError(f"household {household_id} has no upcoming plan")

        shopping_list = _shopping_list_for_plan(db, db_plan)

    logger.debug(f"Shopping list for plan {db_plan.id} has {len(shopping_list.ingredients)} items")
    return shopping_list


def update_shopping_list(
    db: Session, household_id: int, shopping_list: schemas.ShoppingList
) -> schemas.ShoppingList:
    """
    Persist which items of the list are checked, replacing whatever was
    stored for that plan before. Unchecked items are simply left out.
    """
    plan_id = shopping_list.plan.id
    if plan_id <= 0:
        raise ValidationError(f"invalid plan id: {plan_id}")

    with log_operation("shopping_list.update", household_id=household_id, plan_id=plan_id):
        db_plan = get_household_plan(db, plan_id, household_id)

        status = schemas.ShoppingStatus(items=[
            schemas.StatusItem(name=item.name, amount=item.amount)
            for item in shopping_list.ingredients
            if item.checked
        ])

        with transaction(db):
            db_status = db.query(models.ShoppingStatus).filter(models.ShoppingStatus.plan_id == plan_id).first()
            if db_status is None:
                db_status = models.ShoppingStatus(plan_id=plan_id)
                db.add(db_status)
            db_status.status = status.model_dump()

        logger.info(f"Saved {len(status.items)} checked items for plan {plan_id}")
        return _shopping_list_for_plan(db, db_plan)
