"""Tests for the household pantry."""

import pytest
from unittest.mock import patch
from sqlalchemy.exc import IntegrityError

from mealplan import models, pantry, schemas
from mealplan.core.config import settings


def item_names(db_pantry):
    return [item.item_name for item in db_pantry.items]


def test_get_creates_default_pantry(db, household):
    db_pantry = pantry.get_pantry(db, household.id)

    assert db_pantry.household_id == household.id
    assert item_names(db_pantry) == ["salt", "pepper", "olive oil", "butter", "flour", "sugar"]
    assert item_names(db_pantry) == settings.DEFAULT_PANTRY_ITEMS


def test_get_is_stable(db, household):
    first = pantry.get_pantry(db, household.id)
    second = pantry.get_pantry(db, household.id)

    assert first.id == second.id
    assert db.query(models.Pantry).count() == 1


def test_update_lowercases_and_drops_duplicates(db, household):
    db_pantry = pantry.update_pantry(db, household.id, ["Rice", "rice", " Soy Sauce ", ""])

    assert item_names(db_pantry) == ["rice", "soy sauce"]
    data = schemas.Pantry.model_validate(db_pantry)
    assert data.items == ["rice", "soy sauce"]


def test_create_on_existing_pantry_updates(db, household):
    existing = pantry.get_pantry(db, household.id)

    created = pantry.create_pantry(db, household.id, ["cumin"])

    assert created.id == existing.id
    assert item_names(created) == ["cumin"]
    assert db.query(models.Pantry).count() == 1


def test_create_new_pantry(db, household):
    created = pantry.create_pantry(db, household.id, ["Honey"])
    assert item_names(created) == ["honey"]


def test_delete_keeps_pantry_row(db, household):
    db_pantry = pantry.update_pantry(db, household.id, ["rice"])
    pantry_id = db_pantry.id

    pantry.delete_pantry(db, household.id)

    assert db.query(models.PantryItem).count() == 0
    assert pantry.get_pantry(db, household.id).id == pantry_id
    assert item_names(pantry.get_pantry(db, household.id)) == []


def test_pantries_are_per_household(db, household, other_household):
    pantry.update_pantry(db, household.id, ["rice"])
    pantry.update_pantry(db, other_household.id, ["beans"])

    assert item_names(pantry.get_pantry(db, household.id)) == ["rice"]
    assert item_names(pantry.get_pantry(db, other_household.id)) == ["beans"]


def test_failed_create_leaves_no_pantry(db, household):
    # The unique (pantry_id, item_name) constraint rejects the repeated item
    with patch("mealplan.pantry.normalize_items", return_value=["rice", "rice"]):
        with pytest.raises(IntegrityError):
            pantry.create_pantry(db, household.id, ["rice"])

    assert db.query(models.Pantry).count() == 0
    assert db.query(models.PantryItem).count() == 0


def test_failed_update_of_missing_pantry_leaves_nothing(db, household):
    with patch("mealplan.pantry.normalize_items", return_value=["rice", "rice"]):
        with pytest.raises(IntegrityError):
            pantry.update_pantry(db, household.id, ["rice"])

    assert db.query(models.Pantry).count() == 0


def test_failed_update_keeps_previous_items(db, household):
    pantry.update_pantry(db, household.id, ["beans"])

    with patch("mealplan.pantry.normalize_items", return_value=["rice", "rice"]):
        with pytest.raises(IntegrityError):
            pantry.update_pantry(db, household.id, ["rice"])

    assert item_names(pantry.get_pantry(db, household.id)) == ["beans"]


def test_update_missing_pantry_skips_defaults(db, household):
    db_pantry = pantry.update_pantry(db, household.id, ["rice"])

    assert item_names(db_pantry) == ["rice"]
    assert db.query(models.PantryItem).count() == 1
