# models.py
# Defines the SQLAlchemy ORM models for the database tables.
#
# Child rows are deleted explicitly by the stores, so relationships here are
# used for reading only and carry no delete cascade.

from sqlalchemy import (
    Column, Date, DateTime, ForeignKey, Integer, JSON, String, Text, UniqueConstraint, func
)
from sqlalchemy.orm import relationship

from mealplan.db.session import Base


# --- Households ---

class Household(Base):
    """
    Tenant boundary for plans, pantry and shopping lists.
    """
    __tablename__ = "households"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    created_at = Column(DateTime, default=func.now())

    members = relationship("HouseholdMember", order_by="HouseholdMember.id")


class HouseholdMember(Base):
    """
    A user belongs to exactly one household, hence the unique user_id.
    """
    __tablename__ = "household_members"

    id = Column(Integer, primary_key=True, index=True)
    household_id = Column(Integer, ForeignKey("households.id"), index=True, nullable=False)
    user_id = Column(String, unique=True, index=True, nullable=False)
    email = Column(String, nullable=True)


class HouseholdJoinCode(Base):
    __tablename__ = "household_join_codes"

    code = Column(String, primary_key=True)
    household_id = Column(Integer, ForeignKey("households.id"), index=True, nullable=False)
    expires_at = Column(DateTime, nullable=False)


# --- Recipes ---

class Recipe(Base):
    """
    Recipe model for the 'recipes' table.
    """
    __tablename__ = "recipes"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, index=True, nullable=False)
    description = Column(Text, nullable=False)
    slug = Column(String, unique=True, index=True, nullable=False)
    image = Column(String, nullable=True)

    ingredients = relationship("RecipeIngredient", order_by="RecipeIngredient.id")
    steps = relationship("RecipeStep", order_by="RecipeStep.order")
    tags = relationship("Tag", secondary="recipe_tags", order_by="Tag.name", viewonly=True)

    def __str__(self):
        return f"{self.id}: {self.name} ({self.slug})"


class RecipeIngredient(Base):
    __tablename__ = "recipe_ingredients"

    id = Column(Integer, primary_key=True, index=True)
    recipe_id = Column(Integer, ForeignKey("recipes.id"), index=True, nullable=False)
    name = Column(String, nullable=False)
    amount = Column(String, nullable=False, default="")
    calories = Column(Integer, nullable=True)


class RecipeStep(Base):
    __tablename__ = "recipe_steps"

    id = Column(Integer, primary_key=True, index=True)
    recipe_id = Column(Integer, ForeignKey("recipes.id"), index=True, nullable=False)
    order = Column(Integer, nullable=False)
    text = Column(Text, nullable=False)


class Tag(Base):
    """
    Global, lower-cased tag names. Created the first time a recipe uses them.
    """
    __tablename__ = "tags"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, index=True, nullable=False)


class RecipeTag(Base):
    """
    Association between Recipe and Tag.
    """
    __tablename__ = "recipe_tags"

    recipe_id = Column(Integer, ForeignKey("recipes.id"), primary_key=True)
    tag_id = Column(Integer, ForeignKey("tags.id"), primary_key=True)


# --- Meals ---

class Meal(Base):
    """
    Meal model for the 'meals' table. A meal has its own ingredients and
    steps and may also reference recipes.
    """
    __tablename__ = "meals"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, index=True, nullable=False)
    description = Column(Text, nullable=False)
    slug = Column(String, unique=True, index=True, nullable=False)
    image = Column(String, nullable=True)

    ingredients = relationship("MealIngredient", order_by="MealIngredient.id")
    steps = relationship("MealStep", order_by="MealStep.order")
    recipe_links = relationship("MealRecipe", order_by="MealRecipe.id")

    def __str__(self):
        return f"{self.id}: {self.name} ({self.slug})"


class MealIngredient(Base):
    __tablename__ = "meal_ingredients"

    id = Column(Integer, primary_key=True, index=True)
    meal_id = Column(Integer, ForeignKey("meals.id"), index=True, nullable=False)
    name = Column(String, nullable=False)
    amount = Column(String, nullable=False, default="")


class MealStep(Base):
    __tablename__ = "meal_steps"

    id = Column(Integer, primary_key=True, index=True)
    meal_id = Column(Integer, ForeignKey("meals.id"), index=True, nullable=False)
    order = Column(Integer, nullable=False)
    text = Column(Text, nullable=False)


class MealRecipe(Base):
    """
    Association between Meal and Recipe.
    """
    __tablename__ = "meal_recipes"
    __table_args__ = (UniqueConstraint("meal_id", "recipe_id"),)

    id = Column(Integer, primary_key=True, index=True)
    meal_id = Column(Integer, ForeignKey("meals.id"), index=True, nullable=False)
    recipe_id = Column(Integer, ForeignKey("recipes.id"), index=True, nullable=False)


# --- Plans ---

class Plan(Base):
    """
    Inclusive date range of meals for one household.
    """
    __tablename__ = "plans"

    id = Column(Integer, primary_key=True, index=True)
    start_date = Column(Date, index=True, nullable=False)
    end_date = Column(Date, index=True, nullable=False)
    household_id = Column(Integer, ForeignKey("households.id"), index=True, nullable=False)

    meal_links = relationship("PlanMeal", order_by="PlanMeal.id")

    def __str__(self):
        return f"{self.id}: {self.start_date} - {self.end_date} (household {self.household_id})"


class PlanMeal(Base):
    """
    Association between Plan and Meal.
    """
    __tablename__ = "plan_meals"
    __table_args__ = (UniqueConstraint("plan_id", "meal_id"),)

    id = Column(Integer, primary_key=True, index=True)
    plan_id = Column(Integer, ForeignKey("plans.id"), index=True, nullable=False)
    meal_id = Column(Integer, ForeignKey("meals.id"), index=True, nullable=False)


class ShoppingStatus(Base):
    """
    The checked-off {name, amount} pairs of a plan's shopping list, stored as
    one JSON document because it is always read and written whole.
    """
    __tablename__ = "shopping_status"

    plan_id = Column(Integer, ForeignKey("plans.id"), primary_key=True)
    status = Column(JSON, nullable=False, default=lambda: {"items": []})


# --- Pantry ---

class Pantry(Base):
    __tablename__ = "pantry"

    id = Column(Integer, primary_key=True, index=True)
    household_id = Column(Integer, ForeignKey("households.id"), unique=True, index=True, nullable=False)

    items = relationship("PantryItem", order_by="PantryItem.id")


class PantryItem(Base):
    __tablename__ = "pantry_items"
    __table_args__ = (UniqueConstraint("pantry_id", "item_name"),)

    id = Column(Integer, primary_key=True, index=True)
    pantry_id = Column(Integer, ForeignKey("pantry.id"), index=True, nullable=False)
    item_name = Column(String, nullable=False)
