# errors.py
# Exceptions raised by the meal planning stores.
#
# Callers map these to responses by class, never by message text.


class MealPlanError(Exception):
    """Base class for every expected failure raised by the engine."""


class ValidationError(MealPlanError):
    """
    Input was rejected before anything was written.
    Safe to retry once the input is corrected.
    """


class NotFoundError(MealPlanError):
    """A lookup by id, slug or household matched no row."""


class NoUpcomingPlanError(NotFoundError):
    """The household has no plan starting in the future to shop for."""


class UnauthorizedError(MealPlanError):
    """The referenced row exists but belongs to another household."""
