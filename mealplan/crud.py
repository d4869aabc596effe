# crud.py
# Create, Read, Update, Delete (CRUD) operations for the shared catalog:
# recipes, meals and tags. None of these are household scoped.

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from mealplan import models
from mealplan import schemas
from mealplan.core.errors import NotFoundError, ValidationError
from mealplan.core.logging_events import log_operation
from mealplan.core.slugs import make_unique_slug
from mealplan.db.collections import replace_children
from mealplan.db.session import transaction

# Get a logger instance
logger = logging.getLogger(__name__)


def validate_catalog_entry(entry) -> None:
    """
    Name and description are required on recipes and meals.
    """
    if not entry.name.strip() or not entry.description.strip():
        raise ValidationError("name and description are required")


def _dedupe(values: List, normalize=lambda value: value) -> List:
    # Keeps first occurrence order
    seen = []
    for item in values:
        value = normalize(item)
        if value not in seen:
            seen.append(value)
    return seen


# --- Tag Functions ---

def get_all_tags(db: Session) -> List[str]:
    """
    Every tag name known to the catalog, alphabetically.
    """
    return [name for (name,) in db.query(models.Tag.name).order_by(models.Tag.name.asc()).all()]


def get_or_create_tag(db: Session, name: str) -> models.Tag:
    """
    Look up a tag by its lower-cased name and insert it when missing.
    Runs inside the caller's transaction.
    """
    tag_name = name.strip().lower()
    tag = db.query(models.Tag).filter(models.Tag.name == tag_name).first()
    if not tag:
        logger.debug(f"Creating tag {tag_name}")
        tag = models.Tag(name=tag_name)
        db.add(tag)
        db.flush()
    return tag


# --- Recipe CRUD Functions ---

def get_recipe(db: Session, recipe_id: int) -> models.Recipe:
    """
    Retrieve a single recipe. Ingredients, steps and tags load from the
    recipe's relationships.
    """
    logger.debug(f"Retrieving recipe with id {recipe_id}")
    db_recipe = db.query(models.Recipe).filter(models.Recipe.id == recipe_id).first()
    if not db_recipe:
        raise NotFoundError(f"recipe {recipe_id} not found")
    return db_recipe


def get_recipe_by_slug(db: Session, slug: str) -> models.Recipe:
    logger.debug(f"Retrieving recipe with slug {slug}")
    db_recipe = db.query(models.Recipe).filter(models.Recipe.slug == slug).first()
    if not db_recipe:
        raise NotFoundError(f"recipe {slug!r} not found")
    return db_recipe


def get_recipes(db: Session, skip: int = 0, limit: Optional[int] = None) -> List[models.Recipe]:
    """
    Retrieve a list of recipes.
    """
    logger.debug(f"Retrieving all recipes skipping {skip}, up to limit {limit}")
    query = db.query(models.Recipe).order_by(models.Recipe.id).offset(skip)
    if limit is not None:
        query = query.limit(limit)
    return query.all()


def recipe_slug_exists(db: Session, slug: str) -> bool:
    return db.query(models.Recipe.id).filter(models.Recipe.slug == slug).first() is not None


def _write_recipe(db: Session, db_recipe: models.Recipe, recipe: schemas.RecipeCreate) -> None:
    # Single code path reconciling the parent columns and all child collections
    db_recipe.name = recipe.name
    db_recipe.description = recipe.description
    db_recipe.image = recipe.image

    replace_children(db, models.RecipeIngredient, "recipe_id", db_recipe.id, [
        {"name": item.name, "amount": item.amount, "calories": item.calories}
        for item in recipe.ingredients
    ])
    replace_children(db, models.RecipeStep, "recipe_id", db_recipe.id, [
        {"order": step.order, "text": step.text}
        for step in recipe.steps
    ])

    if recipe.tags is not None:
        tag_names = [name for name in _dedupe(recipe.tags, lambda n: n.strip().lower()) if name]
        tag_ids = [get_or_create_tag(db, name).id for name in tag_names]
        replace_children(db, models.RecipeTag, "recipe_id", db_recipe.id, [
            {"tag_id": tag_id} for tag_id in tag_ids
        ])


def create_recipe(db: Session, recipe: schemas.RecipeCreate) -> models.Recipe:
    """
    Create a new recipe with a unique slug, then fill in its ingredients,
    steps and tags through the same path as update_recipe.
    """
    validate_catalog_entry(recipe)
    logger.debug(f"Creating recipe: {recipe.name}")

    with log_operation("recipes.create", recipe_name=recipe.name):
        slug = make_unique_slug(lambda candidate: recipe_slug_exists(db, candidate), recipe.name)
        with transaction(db):
            db_recipe = models.Recipe(name=recipe.name, description=recipe.description, slug=slug)
            db.add(db_recipe)
            db.flush()  # Need ID
            _write_recipe(db, db_recipe, recipe)

    logger.info(f"Created recipe {db_recipe.id} with slug {slug}")
    return get_recipe(db, db_recipe.id)


def update_recipe(db: Session, recipe_id: int, recipe: schemas.RecipeCreate) -> models.Recipe:
    """
    Update an existing recipe.
    Full replacement strategy for sub-resources: submitted lists become the
    recipe's lists exactly. The slug never changes.
    """
    validate_catalog_entry(recipe)
    logger.debug(f"Updating recipe {recipe_id} with: {recipe}")

    with log_operation("recipes.update", recipe_id=recipe_id):
        db_recipe = get_recipe(db, recipe_id)
        with transaction(db):
            _write_recipe(db, db_recipe, recipe)

    return get_recipe(db, recipe_id)


def delete_recipe(db: Session, recipe_id: int) -> None:
    """
    Delete a recipe along with its ingredients, steps, tag links and any
    meal links pointing at it.
    """
    with log_operation("recipes.delete", recipe_id=recipe_id):
        get_recipe(db, recipe_id)
        with transaction(db):
            db.query(models.RecipeIngredient).filter(models.RecipeIngredient.recipe_id == recipe_id).delete(synchronize_session="fetch")
            db.query(models.RecipeStep).filter(models.RecipeStep.recipe_id == recipe_id).delete(synchronize_session="fetch")
            db.query(models.RecipeTag).filter(models.RecipeTag.recipe_id == recipe_id).delete(synchronize_session="fetch")
            db.query(models.MealRecipe).filter(models.MealRecipe.recipe_id == recipe_id).delete(synchronize_session="fetch")
            db.query(models.Recipe).filter(models.Recipe.id == recipe_id).delete(synchronize_session="fetch")

    logger.info(f"Deleted recipe {recipe_id}")


# --- Meal CRUD Functions ---

def get_meal(db: Session, meal_id: int) -> models.Meal:
    """
    Retrieve a single meal with its ingredients, steps and recipe links.
    """
    logger.debug(f"Retrieving meal with id {meal_id}")
    db_meal = db.query(models.Meal).filter(models.Meal.id == meal_id).first()
    if not db_meal:
        raise NotFoundError(f"meal {meal_id} not found")
    return db_meal


def get_meal_by_slug(db: Session, slug: str) -> models.Meal:
    logger.debug(f"Retrieving meal with slug {slug}")
    db_meal = db.query(models.Meal).filter(models.Meal.slug == slug).first()
    if not db_meal:
        raise NotFoundError(f"meal {slug!r} not found")
    return db_meal


def get_meals(db: Session, skip: int = 0, limit: Optional[int] = None) -> List[models.Meal]:
    logger.debug(f"Retrieving all meals skipping {skip}, up to limit {limit}")
    query = db.query(models.Meal).order_by(models.Meal.id).offset(skip)
    if limit is not None:
        query = query.limit(limit)
    return query.all()


def meal_slug_exists(db: Session, slug: str) -> bool:
    return db.query(models.Meal.id).filter(models.Meal.slug == slug).first() is not None


def _write_meal(db: Session, db_meal: models.Meal, meal: schemas.MealCreate) -> None:
    db_meal.name = meal.name
    db_meal.description = meal.description
    db_meal.image = meal.image

    replace_children(db, models.MealIngredient, "meal_id", db_meal.id, [
        {"name": item.name, "amount": item.amount}
        for item in meal.ingredients
    ])
    replace_children(db, models.MealStep, "meal_id", db_meal.id, [
        {"order": step.order, "text": step.text}
        for step in meal.steps
    ])
    replace_children(db, models.MealRecipe, "meal_id", db_meal.id, [
        {"recipe_id": recipe_id} for recipe_id in _dedupe(meal.recipes)
    ])


def create_meal(db: Session, meal: schemas.MealCreate) -> models.Meal:
    """
    Create a new meal with a unique slug, then fill in its ingredients,
    steps and recipe links through the same path as update_meal.
    """
    validate_catalog_entry(meal)
    logger.debug(f"Creating meal: {meal.name}")

    with log_operation("meals.create", meal_name=meal.name):
        slug = make_unique_slug(lambda candidate: meal_slug_exists(db, candidate), meal.name)
        with transaction(db):
            db_meal = models.Meal(name=meal.name, description=meal.description, slug=slug)
            db.add(db_meal)
            db.flush()  # Need ID
            _write_meal(db, db_meal, meal)

    logger.info(f"Created meal {db_meal.id} with slug {slug}")
    return get_meal(db, db_meal.id)


def update_meal(db: Session, meal_id: int, meal: schemas.MealCreate) -> models.Meal:
    """
    Update an existing meal, replacing its ingredients, steps and recipe
    links with the submitted ones.
    """
    validate_catalog_entry(meal)
    logger.debug(f"Updating meal {meal_id} with: {meal}")

    with log_operation("meals.update", meal_id=meal_id):
        db_meal = get_meal(db, meal_id)
        with transaction(db):
            _write_meal(db, db_meal, meal)

    return get_meal(db, meal_id)


def delete_meal(db: Session, meal_id: int) -> None:
    """
    Delete a meal along with its ingredients, steps, recipe links and its
    place on any plan.
    """
    with log_operation("meals.delete", meal_id=meal_id):
        get_meal(db, meal_id)
        with transaction(db):
            db.query(models.MealIngredient).filter(models.MealIngredient.meal_id == meal_id).delete(synchronize_session="fetch")
            db.query(models.MealStep).filter(models.MealStep.meal_id == meal_id).delete(synchronize_session="fetch")
            db.query(models.MealRecipe).filter(models.MealRecipe.meal_id == meal_id).delete(synchronize_session="fetch")
            db.query(models.PlanMeal).filter(models.PlanMeal.meal_id == meal_id).delete(synchronize_session="fetch")
            db.query(models.Meal).filter(models.Meal.id == meal_id).delete(synchronize_session="fetch")

    logger.info(f"Deleted meal {meal_id}")
