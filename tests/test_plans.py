"""Tests for the plan store."""

import pytest
from datetime import timedelta

from mealplan import models, plans, schemas
from mealplan.core.errors import NotFoundError, UnauthorizedError, ValidationError


class TestValidatePlan:
    def test_rejects_start_yesterday(self, today):
        plan = schemas.PlanCreate(start_date=today - timedelta(days=1), end_date=today)
        with pytest.raises(ValidationError):
            plans.validate_plan(plan, today=today)

    def test_rejects_end_before_start(self, today):
        plan = schemas.PlanCreate(start_date=today + timedelta(days=3), end_date=today + timedelta(days=2))
        with pytest.raises(ValidationError):
            plans.validate_plan(plan, today=today)

    def test_accepts_single_day_today(self, today):
        plans.validate_plan(schemas.PlanCreate(start_date=today, end_date=today), today=today)


class TestPlanStore:
    def test_create_links_meals(self, db, household, make_meal, today):
        breakfast = make_meal("Breakfast", [("Eggs", "6")])
        dinner = make_meal("Dinner", [("Rice", "2 cups")])

        plan = plans.create_plan(db, schemas.PlanCreate(
            start_date=today,
            end_date=today + timedelta(days=6),
            meals=[breakfast.id, dinner.id],
        ), household.id, today=today)

        assert plan.household_id == household.id
        data = schemas.Plan.model_validate(plan)
        assert sorted(data.meals) == sorted([breakfast.id, dinner.id])
        assert data.start_date == today

    def test_create_invalid_writes_nothing(self, db, household, today):
        with pytest.raises(ValidationError):
            plans.create_plan(db, schemas.PlanCreate(
                start_date=today + timedelta(days=2),
                end_date=today,
            ), household.id, today=today)
        assert db.query(models.Plan).count() == 0

    def test_update_replaces_dates_and_meals(self, db, make_plan, make_meal, today):
        first = make_meal("First", [])
        second = make_meal("Second", [])
        plan = make_plan(1, meals=[first.id])

        updated = plans.update_plan(db, plan.id, schemas.PlanCreate(
            start_date=today + timedelta(days=2),
            end_date=today + timedelta(days=4),
            meals=[second.id],
        ), today=today)

        assert updated.start_date == today + timedelta(days=2)
        assert [link.meal_id for link in updated.meal_links] == [second.id]
        assert db.query(models.PlanMeal).count() == 1

    def test_update_validation(self, db, make_plan, today):
        plan = make_plan(1)
        with pytest.raises(ValidationError):
            plans.update_plan(db, plan.id, schemas.PlanCreate(
                start_date=today - timedelta(days=5),
                end_date=today,
            ), today=today)
        with pytest.raises(ValidationError):
            plans.update_plan(db, 0, schemas.PlanCreate(start_date=today, end_date=today), today=today)

    def test_update_missing_plan(self, db, today):
        with pytest.raises(NotFoundError):
            plans.update_plan(db, 99, schemas.PlanCreate(start_date=today, end_date=today), today=today)

    def test_delete_removes_links_and_status(self, db, make_plan, make_meal):
        meal = make_meal("Dinner", [])
        plan = make_plan(1, meals=[meal.id])
        plan_id = plan.id
        db.add(models.ShoppingStatus(plan_id=plan_id, status={"items": []}))
        db.commit()

        plans.delete_plan(db, plan_id)

        with pytest.raises(NotFoundError):
            plans.get_plan(db, plan_id)
        assert db.query(models.PlanMeal).count() == 0
        assert db.query(models.ShoppingStatus).count() == 0

    def test_delete_missing_plan(self, db):
        with pytest.raises(NotFoundError):
            plans.delete_plan(db, 5)


class TestHouseholdPlanQueries:
    def test_list_is_ordered_by_start(self, db, household, make_plan):
        later = make_plan(10)
        sooner = make_plan(2)
        past = make_plan(-20)

        assert [p.id for p in plans.get_plans(db, household.id)] == [past.id, sooner.id, later.id]

    def test_last_next_and_future(self, db, household, make_plan, today):
        long_ago = make_plan(-30, length=2)
        current = make_plan(-2, length=6)
        starting_today = make_plan(0, length=0)
        next_week = make_plan(5)
        later = make_plan(12)

        assert plans.get_last_plan(db, household.id, today=today).id == starting_today.id
        assert plans.get_next_plan(db, household.id, today=today).id == next_week.id
        future = plans.get_future_plans(db, household.id, today=today)
        assert [p.id for p in future] == [current.id, next_week.id, later.id]
        assert long_ago.id not in [p.id for p in future]

    def test_queries_are_household_scoped(self, db, household, other_household, make_plan, today):
        make_plan(3, household_id=other_household.id)

        assert plans.get_plans(db, household.id) == []
        assert plans.get_next_plan(db, household.id, today=today) is None
        assert plans.get_last_plan(db, household.id, today=today) is None
        assert plans.get_future_plans(db, household.id, today=today) == []

    def test_household_plan_guard(self, db, household, other_household, make_plan):
        plan = make_plan(1)

        assert plans.get_household_plan(db, plan.id, household.id).id == plan.id
        with pytest.raises(UnauthorizedError):
            plans.get_household_plan(db, plan.id, other_household.id)


class TestPlanIngredients:
    def test_flattens_meal_ingredients_in_plan_order(self, db, make_meal, make_plan):
        pasta = make_meal("Pasta", [("Spaghetti", "1 lb"), ("Parmesan", "1 cup")])
        salad = make_meal("Salad", [("Lettuce", "1 head")])
        plan = make_plan(1, meals=[pasta.id, salad.id])

        ingredients = plans.get_plan_ingredients(db, plan.id)

        assert [(i.name, i.amount) for i in ingredients] == [
            ("Spaghetti", "1 lb"),
            ("Parmesan", "1 cup"),
            ("Lettuce", "1 head"),
        ]

    def test_linked_recipe_ingredients_are_not_repeated(self, db, make_meal, make_plan):
        from mealplan import crud

        sauce = crud.create_recipe(db, schemas.RecipeCreate(
            name="Tomato Sauce",
            description="Simple",
            ingredients=[{"name": "Tomatoes", "amount": "4"}],
        ))
        # The meal carries the recipe's ingredients itself
        pasta = make_meal("Pasta", [("Spaghetti", "1 lb"), ("Tomatoes", "4")], recipes=[sauce.id])
        plan = make_plan(1, meals=[pasta.id])

        ingredients = plans.get_plan_ingredients(db, plan.id)

        assert [(i.name, i.amount) for i in ingredients] == [
            ("Spaghetti", "1 lb"),
            ("Tomatoes", "4"),
        ]
