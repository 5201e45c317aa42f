"""Rule-based categorization of transaction descriptions.

Rules are matched in order against the lower-cased description and the first hit wins; anything unmatched is
`Other`. Income and expense descriptions use separate rule lists.
"""

from typing import NamedTuple

FALLBACK_CATEGORY = "Other"

INCOME_CATEGORIES = ("Salary", "Freelance", "Investment", "Bonus", "Other")
EXPENSE_CATEGORIES = ("Food", "Rent", "Utilities", "Transport", "Entertainment", "Shopping", "Other")


class CategoryRule(NamedTuple):
    """Category assigned when any keyword occurs in the description."""

    category: str
    keywords: tuple[str, ...]


INCOME_RULES = (
    CategoryRule("Salary", ("gehalt", "lohn")),
    CategoryRule("Freelance", ("honorar", "freelance")),
    CategoryRule("Other", ("steuer",)),
)

EXPENSE_RULES = (
    CategoryRule("Food", ("rewe", "edeka", "lidl", "cafe", "restaurant")),
    CategoryRule("Shopping", ("amazon", "dm-drogerie")),
    CategoryRule("Transport", ("db ", "bvg")),
    CategoryRule("Entertainment", ("netflix", "spotify")),
    CategoryRule("Utilities", ("stadtwerke", "strom", "gas", "telekom")),
)


def categorize(description: str, is_expense: bool) -> str:
    """Return the category of the first rule whose keyword occurs in the description."""
    text = description.lower()
    for rule in EXPENSE_RULES if is_expense else INCOME_RULES:
        if any(keyword in text for keyword in rule.keywords):
            return rule.category
    return FALLBACK_CATEGORY


def categories_for_type(transaction_type: str) -> tuple[str, ...]:
    """Return the categories valid for a transaction type."""
    return INCOME_CATEGORIES if transaction_type == "income" else EXPENSE_CATEGORIES


def is_valid_category(category: str, transaction_type: str) -> bool:
    """Check whether a category is allowed for a transaction type."""
    return category in categories_for_type(transaction_type)
