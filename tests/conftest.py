import pytest
from datetime import date, timedelta
from typing import Generator
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# It is important to set environment variables before importing mealplan modules
import os
os.environ["DATABASE_URL"] = "sqlite://"

from mealplan import crud, models, plans, schemas
from mealplan.db.session import Base, init_db

TODAY = date(2026, 10, 18)


@pytest.fixture(scope="function")
def db_engine():
    # A fresh in-memory database per test, shared by every connection
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db(db_engine) -> Generator:
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = TestingSessionLocal()
    yield session
    session.close()


@pytest.fixture
def household(db):
    household = models.Household(name="Test Household")
    db.add(household)
    db.commit()
    db.refresh(household)
    return household


@pytest.fixture
def other_household(db):
    household = models.Household(name="Other Household")
    db.add(household)
    db.commit()
    db.refresh(household)
    return household


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def make_meal(db):
    """Factory creating a meal from (name, amount) ingredient pairs."""

    def _make_meal(name: str, ingredients, recipes=None) -> models.Meal:
        meal_in = schemas.MealCreate(
            name=name,
            description=f"{name} description",
            ingredients=[
                schemas.MealIngredientCreate(name=item_name, amount=amount)
                for item_name, amount in ingredients
            ],
            recipes=recipes or [],
        )
        return crud.create_meal(db, meal_in)

    return _make_meal


@pytest.fixture
def make_plan(db, household, today):
    """Factory creating a plan for `household` relative to the test day."""

    def _make_plan(start_offset: int, length: int = 6, meals=None, household_id=None) -> models.Plan:
        start = today + timedelta(days=start_offset)
        plan_in = schemas.PlanCreate(
            start_date=start,
            end_date=start + timedelta(days=length),
            meals=meals or [],
        )
        # Plans starting before the test day bypass date validation
        validation_day = min(today, start)
        return plans.create_plan(db, plan_in, household_id or household.id, today=validation_day)

    return _make_plan
