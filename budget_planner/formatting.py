"""Formatting utilities for currency and percentage display."""

from __future__ import annotations

from typing import Union

Number = Union[float, int]


def escape_dollar_for_markdown(amount: float) -> str:
    """Format a dollar amount and escape the dollar sign for markdown.

    Streamlit markdown treats ``$`` as a LaTeX delimiter, so plain dollar
    amounts in ``st.markdown`` come out italicised.

    Example:
        >>> escape_dollar_for_markdown(1234.56)
        '\\\\$1,234.56'
    """
    return format_currency(amount).replace("$", "\\$")


def format_currency(amount: Number, include_sign: bool = True, decimals: int = 2) -> str:
    """Format a currency amount; negatives get a leading minus.

    Example:
        >>> format_currency(1234.56)
        '$1,234.56'
        >>> format_currency(-40, decimals=0)
        '-$40'
    """
    formatted = f"{abs(amount):,.{decimals}f}"
    if include_sign:
        formatted = f"${formatted}"
    return f"-{formatted}" if amount < 0 else formatted


def format_percent(value: Number, decimals: int = 1) -> str:
    """Format a percentage value.

    Example:
        >>> format_percent(12.345)
        '12.3%'
    """
    return f"{value:.{decimals}f}%"
