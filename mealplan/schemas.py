# schemas.py
# Defines the Pydantic models (schemas) for data validation and serialization.
#
# *Create schemas are the drafts handed to the stores; the read schemas are
# built straight from ORM rows with model_validate().

from pydantic import BaseModel, EmailStr, ConfigDict, model_validator
from typing import List, Optional, Any
from datetime import date, datetime


# --- Ingredient / Step Schemas ---

class IngredientBase(BaseModel):
    name: str
    amount: str = ""

class RecipeIngredientCreate(IngredientBase):
    calories: Optional[int] = None

class RecipeIngredient(RecipeIngredientCreate):
    id: int
    model_config = ConfigDict(from_attributes=True)

class MealIngredientCreate(IngredientBase):
    pass

class MealIngredient(MealIngredientCreate):
    id: int
    model_config = ConfigDict(from_attributes=True)

class Ingredient(IngredientBase):
    """A plain {name, amount} pair as listed on a plan."""
    model_config = ConfigDict(from_attributes=True)

class StepBase(BaseModel):
    order: int
    text: str

class StepCreate(StepBase):
    pass

class Step(StepBase):
    id: int
    model_config = ConfigDict(from_attributes=True)


# --- Recipe Schemas ---

class RecipeBase(BaseModel):
    # Emptiness is checked by the store so it can raise its own ValidationError
    name: str = ""
    description: str = ""
    image: Optional[str] = None

class RecipeCreate(RecipeBase):
    ingredients: List[RecipeIngredientCreate] = []
    steps: List[StepCreate] = []
    # None leaves the current tag links alone, [] removes them all
    tags: Optional[List[str]] = None

class Recipe(RecipeBase):
    id: int
    slug: str
    ingredients: List[RecipeIngredient] = []
    steps: List[Step] = []
    tags: List[str] = []

    @model_validator(mode='before')
    @classmethod
    def map_tag_names(cls, data: Any) -> Any:
        if hasattr(data, "tags"):  # Is an ORM object
            return {
                "id": data.id,
                "name": data.name,
                "description": data.description,
                "slug": data.slug,
                "image": data.image,
                "ingredients": data.ingredients,
                "steps": data.steps,
                "tags": [tag.name for tag in data.tags],
            }
        return data

    model_config = ConfigDict(from_attributes=True)


# --- Meal Schemas ---

class MealBase(BaseModel):
    name: str = ""
    description: str = ""
    image: Optional[str] = None

class MealCreate(MealBase):
    ingredients: List[MealIngredientCreate] = []
    steps: List[StepCreate] = []
    recipes: List[int] = []

class Meal(MealBase):
    id: int
    slug: str
    ingredients: List[MealIngredient] = []
    steps: List[Step] = []
    recipes: List[int] = []

    @model_validator(mode='before')
    @classmethod
    def map_recipe_links(cls, data: Any) -> Any:
        if hasattr(data, "recipe_links"):  # Is an ORM object
            return {
                "id": data.id,
                "name": data.name,
                "description": data.description,
                "slug": data.slug,
                "image": data.image,
                "ingredients": data.ingredients,
                "steps": data.steps,
                "recipes": [link.recipe_id for link in data.recipe_links],
            }
        return data

    model_config = ConfigDict(from_attributes=True)


# --- Plan Schemas ---

class PlanBase(BaseModel):
    start_date: date
    end_date: date

class PlanCreate(PlanBase):
    meals: List[int] = []

class Plan(PlanBase):
    id: int
    household_id: int
    meals: List[int] = []

    @model_validator(mode='before')
    @classmethod
    def map_meal_links(cls, data: Any) -> Any:
        if hasattr(data, "meal_links"):  # Is an ORM object
            return {
                "id": data.id,
                "start_date": data.start_date,
                "end_date": data.end_date,
                "household_id": data.household_id,
                "meals": [link.meal_id for link in data.meal_links],
            }
        return data

    model_config = ConfigDict(from_attributes=True)


# --- Pantry Schemas ---

class PantryUpdate(BaseModel):
    items: List[str] = []

class Pantry(BaseModel):
    id: int
    household_id: int
    items: List[str] = []

    @model_validator(mode='before')
    @classmethod
    def map_item_names(cls, data: Any) -> Any:
        if hasattr(data, "household_id") and hasattr(data, "items"):  # Is an ORM object
            return {
                "id": data.id,
                "household_id": data.household_id,
                "items": [item.item_name for item in data.items],
            }
        return data

    model_config = ConfigDict(from_attributes=True)


# --- Shopping List Schemas ---

class StatusItem(BaseModel):
    name: str
    amount: str = ""

class ShoppingStatus(BaseModel):
    items: List[StatusItem] = []

class ShoppingListItem(BaseModel):
    name: str
    amount: str = ""
    checked: bool = False

class ShoppingList(BaseModel):
    plan: Plan
    ingredients: List[ShoppingListItem] = []


# --- Household Schemas ---

class UserProfile(BaseModel):
    """
    Identity of an already authenticated user, as resolved by the caller's
    user directory.
    """
    id: str
    email: Optional[EmailStr] = None
    last_name: Optional[str] = None

class HouseholdMember(BaseModel):
    household_id: int
    user_id: str
    email: Optional[str] = None
    model_config = ConfigDict(from_attributes=True)

class Household(BaseModel):
    id: int
    name: str
    members: List[HouseholdMember] = []
    model_config = ConfigDict(from_attributes=True)

class JoinCode(BaseModel):
    code: str
    household_id: int
    expires_at: datetime
    model_config = ConfigDict(from_attributes=True)
