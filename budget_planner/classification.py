"""Category role classification.

This module sorts user categories into the three roles the budget engine
routes amounts by: income, savings and expense. Classification looks only
at a category's label and value, never at individual transactions, so a
category keeps the same role for the whole computation.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional

from .models import Category


class CategoryRole(str, Enum):
    INCOME = "income"
    SAVINGS = "savings"
    EXPENSE = "expense"


INCOME_VALUES = frozenset({
    'salary',
    'investment',
    'gift-received',
    'gift_received',
    'interest-earned',
    'interest_earned',
    'refund',
    'refunds',
})
INCOME_LABEL_PATTERN = re.compile(r'gift|interest|refund', re.IGNORECASE)

SAVINGS_VALUES = frozenset({'savings', 'saving', 'savings-account', 'savings_account'})
SAVINGS_PATTERN = re.compile(r'saving', re.IGNORECASE)


def is_income_category(category: Category) -> bool:
    """Check whether a category looks like an income source.

    Args:
        category: Category to test

    Returns:
        True for the built-in income values, or labels mentioning gifts,
        interest or refunds

    Example:
        >>> is_income_category(Category('Interest Earned', 'bank-interest'))
        True
    """
    if category.value in INCOME_VALUES:
        return True
    return bool(INCOME_LABEL_PATTERN.search(category.label or ''))


def is_savings_category(category: Category) -> bool:
    """Check whether a category represents money moved into savings.

    Both the label and the value are searched for ``saving``.

    Example:
        >>> is_savings_category(Category('Emergency Fund', 'emergency-savings'))
        True
    """
    if category.value in SAVINGS_VALUES:
        return True
    return bool(
        SAVINGS_PATTERN.search(category.label or '')
        or SAVINGS_PATTERN.search(category.value or '')
    )


def classify_category(category: Category) -> CategoryRole:
    """Assign exactly one role to a category.

    Savings wins over income when a category matches both tests, since
    savings categories are left out of the income and expense totals
    altogether. Anything that is neither is an expense.

    Example:
        >>> classify_category(Category('Savings Interest', 'savings-interest'))
        <CategoryRole.SAVINGS: 'savings'>
        >>> classify_category(Category('Groceries', 'groceries'))
        <CategoryRole.EXPENSE: 'expense'>
    """
    if is_savings_category(category):
        return CategoryRole.SAVINGS
    if is_income_category(category):
        return CategoryRole.INCOME
    return CategoryRole.EXPENSE


@dataclass
class CategoryClassification:
    """Disjoint income/savings/expense partitions, in input order."""

    income: List[Category] = field(default_factory=list)
    savings: List[Category] = field(default_factory=list)
    expense: List[Category] = field(default_factory=list)
    _roles: Dict[str, CategoryRole] = field(default_factory=dict, repr=False)

    def role_of(self, value: Optional[str]) -> Optional[CategoryRole]:
        """Role of a category value, or None when the value is unknown."""
        if not value:
            return None
        return self._roles.get(value)

    def is_savings(self, value: Optional[str]) -> bool:
        return self.role_of(value) is CategoryRole.SAVINGS

    @property
    def labels(self) -> Dict[str, str]:
        return {cat.value: cat.label for cat in self.income + self.savings + self.expense}

    def values(self, role: CategoryRole) -> List[str]:
        bucket = {
            CategoryRole.INCOME: self.income,
            CategoryRole.SAVINGS: self.savings,
            CategoryRole.EXPENSE: self.expense,
        }[role]
        return [cat.value for cat in bucket]


def classify_categories(categories: Iterable[Category]) -> CategoryClassification:
    """Partition categories into income, savings and expense sets.

    Duplicate values keep the first occurrence.

    Args:
        categories: User categories (label + value)

    Returns:
        CategoryClassification with the three partitions

    Example:
        >>> result = classify_categories([
        ...     Category('Salary', 'salary'),
        ...     Category('Rent', 'rent'),
        ...     Category('Savings', 'savings'),
        ... ])
        >>> [c.value for c in result.expense]
        ['rent']
    """
    result = CategoryClassification()
    for category in categories:
        if not category.value or category.value in result._roles:
            continue
        role = classify_category(category)
        result._roles[category.value] = role
        if role is CategoryRole.SAVINGS:
            result.savings.append(category)
        elif role is CategoryRole.INCOME:
            result.income.append(category)
        else:
            result.expense.append(category)
    return result
