"""
Input validators used across CLI commands.

Every check raises ValidationError before any network call is made.
"""

from __future__ import annotations

import math
from typing import Optional, Union

from .constants import REPPO_DECIMALS
from .errors import ValidationError
from .units import PrecisionError, parse_units

TITLE_MIN, TITLE_MAX = 3, 50
DESCRIPTION_MIN, DESCRIPTION_MAX = 10, 200


def validate_title(value: str) -> str:
    title = str(value or "")
    if len(title) < TITLE_MIN:
        raise ValidationError(f"Title must be at least {TITLE_MIN} characters")
    if len(title) > TITLE_MAX:
        raise ValidationError(f"Title must be at most {TITLE_MAX} characters")
    return title


def validate_description(value: str) -> str:
    description = str(value or "")
    if len(description) < DESCRIPTION_MIN:
        raise ValidationError(f"Description must be at least {DESCRIPTION_MIN} characters")
    if len(description) > DESCRIPTION_MAX:
        raise ValidationError(f"Description must be at most {DESCRIPTION_MAX} characters")
    return description


def validate_body(value: str) -> str:
    body = str(value or "")
    if not body.strip():
        raise ValidationError("Body cannot be empty")
    return body


def validate_amount(value: str, decimals: int = REPPO_DECIMALS) -> int:
    try:
        amount = parse_units(value, decimals)
    except PrecisionError as exc:
        raise ValidationError(str(exc))
    except ValueError:
        raise ValidationError(f"Amount must be a number (got {value!r})")
    if amount <= 0:
        raise ValidationError("Amount must be greater than 0")
    return amount


def validate_slippage(value: Optional[Union[str, float]]) -> float:
    if value is None or value == "":
        return 1.0
    try:
        slippage = float(value)
    except (TypeError, ValueError):
        raise ValidationError("Slippage must be a number between 0 and 100")
    if not math.isfinite(slippage) or slippage < 0 or slippage > 100:
        raise ValidationError("Slippage must be a number between 0 and 100")
    return slippage
