"""
Comparison operators for base conditions.

Each operator is a plain function (left, right) -> bool registered in
COMPARATORS. Operators never raise on malformed operands: a value of the
wrong type simply makes the comparison False. Only an operator name outside
the vocabulary raises UnknownOperatorError.
"""

import logging
import math
import re
from collections.abc import Mapping
from datetime import date, datetime
from typing import Any, Callable, Dict, Optional, Tuple

from form_rules.errors import UnknownOperatorError
from form_rules.utils import formats
from form_rules.utils.date_parsing import is_business_day, is_weekend, parse_date

logger = logging.getLogger(__name__)

Comparator = Callable[[Any, Any], bool]


def is_number(value: Any) -> bool:
    """int or float, but not bool."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_list(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def values_equal(left: Any, right: Any) -> bool:
    """
    Structural equality with booleans kept distinct from numbers.

    1 == 1.0 holds, True == 1 does not. Lists and mappings compare element-wise.
    """
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right
    if _is_list(left) and _is_list(right):
        return len(left) == len(right) and all(values_equal(a, b) for a, b in zip(left, right))
    if isinstance(left, Mapping) and isinstance(right, Mapping):
        return left.keys() == right.keys() and all(values_equal(left[k], right[k]) for k in left)
    if is_number(left) and is_number(right):
        return left == right
    if type(left) is not type(right) and not (
        isinstance(left, (date, datetime)) and isinstance(right, (date, datetime))
    ):
        return False
    return left == right


def _ordering_pair(left: Any, right: Any) -> Optional[Tuple[Any, Any]]:
    """Return operands that can be ordered, or None when they cannot."""
    if is_number(left) and is_number(right):
        return left, right
    if isinstance(left, str) and isinstance(right, str):
        return left, right
    if isinstance(left, (date, datetime, str)) and isinstance(right, (date, datetime, str)):
        left_date, right_date = parse_date(left), parse_date(right)
        if left_date is not None and right_date is not None:
            return left_date, right_date
    return None


def _ordered(check: Callable[[Any, Any], bool]) -> Comparator:
    def compare(left: Any, right: Any) -> bool:
        pair = _ordering_pair(left, right)
        return pair is not None and check(*pair)
    return compare


def _contains(left: Any, right: Any) -> bool:
    if isinstance(left, str):
        return isinstance(right, str) and right in left
    if _is_list(left):
        return any(values_equal(item, right) for item in left)
    return False


def _in(left: Any, right: Any) -> bool:
    if _is_list(right):
        return any(values_equal(left, item) for item in right)
    if isinstance(right, str) and isinstance(left, str):
        return left in right
    return False


def _is_empty(left: Any, right: Any = None) -> bool:
    if left is None:
        return True
    if isinstance(left, (str, list, tuple, set, frozenset, Mapping)):
        return len(left) == 0
    return False


def _matches_regex(left: Any, right: Any) -> bool:
    if not (isinstance(left, str) and isinstance(right, str)):
        return False
    try:
        return re.search(right, left) is not None
    except re.error:
        logger.debug(f"Invalid regex pattern {right!r}")
        return False


def _date_compare(check: Callable[[datetime, datetime], bool]) -> Comparator:
    def compare(left: Any, right: Any) -> bool:
        left_date, right_date = parse_date(left), parse_date(right)
        if left_date is None or right_date is None:
            return False
        return check(left_date, right_date)
    return compare


def _between(left: Any, right: Any) -> bool:
    if not (_is_list(right) and len(right) == 2):
        return False
    low, high = right
    if is_number(left) and is_number(low) and is_number(high):
        return low <= left <= high
    # Date ranges
    if not is_number(left):
        left_date, low_date, high_date = parse_date(left), parse_date(low), parse_date(high)
        if None not in (left_date, low_date, high_date):
            return low_date <= left_date <= high_date
    return False


def _multiple_of(left: Any, right: Any) -> bool:
    if not (is_number(left) and is_number(right)) or right == 0:
        return False
    if isinstance(left, float) or isinstance(right, float):
        if not (math.isfinite(left) and math.isfinite(right)):
            return False
    return left % right == 0


def _is_integer(left: Any, right: Any = None) -> bool:
    if isinstance(left, int) and not isinstance(left, bool):
        return True
    return isinstance(left, float) and left.is_integer()


def _length(check: Callable[[int, Any], bool]) -> Comparator:
    def compare(left: Any, right: Any) -> bool:
        if not (isinstance(left, str) or _is_list(left)) or not is_number(right):
            return False
        return check(len(left), right)
    return compare


def _negate(comparator: Comparator) -> Comparator:
    def compare(left: Any, right: Any) -> bool:
        return not comparator(left, right)
    return compare


COMPARATORS: Dict[str, Comparator] = {
    # Basic
    "equals": values_equal,
    "not_equals": _negate(values_equal),
    "greater_than": _ordered(lambda a, b: a > b),
    "greater_than_or_equal": _ordered(lambda a, b: a >= b),
    "less_than": _ordered(lambda a, b: a < b),
    "less_than_or_equal": _ordered(lambda a, b: a <= b),
    # Text
    "contains": _contains,
    "not_contains": _negate(_contains),
    "starts_with": lambda a, b: isinstance(a, str) and isinstance(b, str) and a.startswith(b),
    "ends_with": lambda a, b: isinstance(a, str) and isinstance(b, str) and a.endswith(b),
    "matches_regex": _matches_regex,
    "not_matches_regex": _negate(_matches_regex),
    # Membership
    "in": _in,
    "not_in": _negate(_in),
    # Emptiness
    "is_empty": _is_empty,
    "is_not_empty": _negate(_is_empty),
    # Formats
    "email_format": lambda a, _b: formats.is_email(a),
    "url_format": lambda a, _b: formats.is_url(a),
    "phone_format": lambda a, _b: formats.is_phone(a),
    "credit_card_format": lambda a, _b: formats.is_credit_card(a),
    "uuid_format": lambda a, _b: formats.is_uuid(a),
    # Dates
    "before_date": _date_compare(lambda a, b: a < b),
    "after_date": _date_compare(lambda a, b: a > b),
    "is_weekend": lambda a, _b: is_weekend(a),
    "is_business_day": lambda a, _b: is_business_day(a),
    # Numeric range
    "between": _between,
    "not_between": _negate(_between),
    "multiple_of": _multiple_of,
    "is_integer": _is_integer,
    # Length
    "length_equals": _length(lambda n, expected: n == expected),
    "length_greater_than": _length(lambda n, expected: n > expected),
    "length_less_than": _length(lambda n, expected: n < expected),
}


def evaluate_comparison(left: Any, operator: str, right: Any) -> bool:
    """
    Compare two resolved values with a named operator.

    Args:
        left: Field value (after transform)
        operator: Operator name from the comparison vocabulary
        right: Resolved comparison value

    Returns:
        Comparison result; malformed operands give False

    Raises:
        UnknownOperatorError: If the operator is not in the vocabulary
    """
    comparator = COMPARATORS.get(operator) if isinstance(operator, str) else None
    if comparator is None:
        raise UnknownOperatorError(operator)

    try:
        return bool(comparator(left, right))
    except (TypeError, ValueError, ArithmeticError) as e:
        logger.debug(f"Comparison '{operator}' failed on {left!r} / {right!r}: {e}")
        return False
