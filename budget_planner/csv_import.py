"""Loading transactions and categories from CSV exports.

Column names are matched case-insensitively with a few common aliases
("Transaction Date", "Account", ...). Rows whose amount or date cannot be
parsed are skipped and reported through the module logger.
"""

from __future__ import annotations

import logging
import re
from datetime import date, datetime
from typing import Any, Dict, List, Optional

import pandas as pd

from .models import Category, Transaction, TransactionType

logger = logging.getLogger(__name__)

COLUMN_ALIASES: Dict[str, tuple] = {
    'id': ('id', 'transaction id'),
    'date': ('date', 'transaction date', 'posted date', 'post date'),
    'description': ('description', 'memo', 'payee'),
    'amount': ('amount', 'value'),
    'type': ('type', 'transaction type'),
    'category': ('category',),
    'account_id': ('account_id', 'account id', 'account'),
}

_ISO_DATE = re.compile(r'^(\d{4})-(\d{1,2})-(\d{1,2})')
_US_DATE = re.compile(r'^(\d{1,2})/(\d{1,2})/(\d{4})')
_CURRENCY_MARKS = re.compile(r'[$€£¥,\s]')


def parse_amount(value: Any) -> Optional[float]:
    """Convert textual amounts into floats.

    Handles currency symbols, thousands separators and accounting
    negatives such as ``(123.45)``.

    Example:
        >>> parse_amount('$1,234.50')
        1234.5
        >>> parse_amount('(20.00)')
        -20.0
        >>> parse_amount('n/a') is None
        True
    """
    if value is None:
        return None
    if isinstance(value, (int, float)):
        return None if pd.isna(value) else float(value)
    cleaned = _CURRENCY_MARKS.sub('', str(value))
    if not cleaned:
        return None
    if cleaned.startswith('(') and cleaned.endswith(')'):
        cleaned = f"-{cleaned[1:-1]}"
    try:
        return float(cleaned)
    except ValueError:
        return None


def parse_date(value: Any) -> Optional[date]:
    """Parse ``YYYY-MM-DD``, US ``MM/DD/YYYY`` or anything pandas understands.

    Example:
        >>> parse_date('03/15/2024')
        datetime.date(2024, 3, 15)
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None

    try:
        iso = _ISO_DATE.match(text)
        if iso:
            return date(int(iso.group(1)), int(iso.group(2)), int(iso.group(3)))
        us = _US_DATE.match(text)
        if us:
            return date(int(us.group(3)), int(us.group(1)), int(us.group(2)))
    except ValueError:
        return None

    parsed = pd.to_datetime(text, errors='coerce')
    if pd.isna(parsed):
        return None
    return parsed.date()


def _parse_type(value: Any, amount: float) -> TransactionType:
    text = str(value or '').strip().lower()
    try:
        return TransactionType(text)
    except ValueError:
        return TransactionType.INCOME if amount > 0 else TransactionType.EXPENSE


def _rename_columns(df: pd.DataFrame) -> pd.DataFrame:
    lookup = {str(col).strip().lower(): col for col in df.columns}
    renames = {}
    for target, aliases in COLUMN_ALIASES.items():
        for alias in aliases:
            if alias in lookup and lookup[alias] not in renames:
                renames[lookup[alias]] = target
                break
    return df.rename(columns=renames)


def read_csv_frame(path_or_buffer) -> pd.DataFrame:
    """Read a CSV as strings with normalized column names."""
    df = pd.read_csv(path_or_buffer, dtype=str, keep_default_na=False, skipinitialspace=True)
    return _rename_columns(df)


def transactions_from_frame(df: pd.DataFrame) -> List[Transaction]:
    """Build Transaction records from a frame with normalized columns.

    Rows without a usable amount or date are skipped. A missing or
    unknown ``type`` is inferred from the sign of the amount.
    """
    missing = {'amount', 'date'} - set(df.columns)
    if missing:
        raise KeyError(f"Missing required columns: {', '.join(sorted(missing))}")

    transactions: List[Transaction] = []
    skipped = 0
    for position, row in enumerate(df.to_dict(orient='records'), start=1):
        amount = parse_amount(row.get('amount'))
        when = parse_date(row.get('date'))
        if amount is None or when is None:
            skipped += 1
            continue
        category = str(row.get('category') or '').strip() or None
        transactions.append(Transaction(
            id=str(row.get('id') or f"row-{position}"),
            amount=amount,
            type=_parse_type(row.get('type'), amount),
            date=when,
            category=category,
            description=str(row.get('description') or '').strip(),
            account_id=str(row.get('account_id') or '').strip(),
        ))

    if skipped:
        logger.warning("Skipped %d of %d rows with an invalid amount or date", skipped, len(df))
    return transactions


def load_transactions_csv(path_or_buffer) -> List[Transaction]:
    """Load transactions from a CSV file path or file-like object."""
    return transactions_from_frame(read_csv_frame(path_or_buffer))


def _slugify(label: str) -> str:
    return re.sub(r'[^a-z0-9]+', '-', label.strip().lower()).strip('-')


def categories_from_records(records) -> List[Category]:
    """Build categories from dicts with ``label`` and optional ``value``/``icon``."""
    categories: List[Category] = []
    for record in records:
        label = str(record.get('label') or '').strip()
        value = str(record.get('value') or '').strip() or _slugify(label)
        if not label and not value:
            continue
        categories.append(Category(
            label=label or value,
            value=value,
            icon=str(record.get('icon') or '').strip() or 'Circle',
        ))
    return categories


def load_categories_csv(path_or_buffer) -> List[Category]:
    """Load categories from a CSV with ``label``, ``value`` and ``icon`` columns."""
    df = pd.read_csv(path_or_buffer, dtype=str, keep_default_na=False, skipinitialspace=True)
    df.columns = [str(col).strip().lower() for col in df.columns]
    return categories_from_records(df.to_dict(orient='records'))
