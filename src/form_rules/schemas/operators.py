"""
Operator Registry - metadata for condition operators.

Used by:
- The rule linter (authoring-time validation of operators and value shapes)
- The CLI `operators` listing

The evaluator dispatches through COMPARATORS in
form_rules.engine.comparisons, which holds exactly the names registered
here; adding a comparison requires an entry in both.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, List, Optional


class ComparisonOperator(str, Enum):
    """Operators usable in a base condition."""
    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    GREATER_THAN = "greater_than"
    GREATER_THAN_OR_EQUAL = "greater_than_or_equal"
    LESS_THAN = "less_than"
    LESS_THAN_OR_EQUAL = "less_than_or_equal"
    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"
    STARTS_WITH = "starts_with"
    ENDS_WITH = "ends_with"
    IN = "in"
    NOT_IN = "not_in"
    IS_EMPTY = "is_empty"
    IS_NOT_EMPTY = "is_not_empty"
    MATCHES_REGEX = "matches_regex"
    NOT_MATCHES_REGEX = "not_matches_regex"
    EMAIL_FORMAT = "email_format"
    URL_FORMAT = "url_format"
    PHONE_FORMAT = "phone_format"
    CREDIT_CARD_FORMAT = "credit_card_format"
    UUID_FORMAT = "uuid_format"
    BEFORE_DATE = "before_date"
    AFTER_DATE = "after_date"
    IS_WEEKEND = "is_weekend"
    IS_BUSINESS_DAY = "is_business_day"
    BETWEEN = "between"
    NOT_BETWEEN = "not_between"
    MULTIPLE_OF = "multiple_of"
    IS_INTEGER = "is_integer"
    LENGTH_EQUALS = "length_equals"
    LENGTH_GREATER_THAN = "length_greater_than"
    LENGTH_LESS_THAN = "length_less_than"


class LogicalOperator(str, Enum):
    """Operators combining child conditions."""
    AND = "and"
    OR = "or"
    NOT = "not"


class OperatorCategory(str, Enum):
    """Grouping used when presenting operators to rule authors."""
    BASIC = "basic"
    TEXT = "text"
    FORMAT = "format"
    DATE = "date"
    ADVANCED = "advanced"


CATEGORY_LABELS: Dict[OperatorCategory, str] = {
    OperatorCategory.BASIC: "Basic Comparison",
    OperatorCategory.TEXT: "Text Operations",
    OperatorCategory.FORMAT: "Format Validation",
    OperatorCategory.DATE: "Date Operations",
    OperatorCategory.ADVANCED: "Advanced",
}

CATEGORY_ORDER: Dict[OperatorCategory, int] = {
    OperatorCategory.BASIC: 1,
    OperatorCategory.TEXT: 2,
    OperatorCategory.FORMAT: 3,
    OperatorCategory.DATE: 4,
    OperatorCategory.ADVANCED: 5,
}


@dataclass(frozen=True)
class OperatorSpec:
    """
    Specification for a single comparison operator.

    Attributes:
        name: Canonical operator name (e.g., "equals")
        label: Human-readable label
        category: Presentation category
        supported_types: Field types the operator applies to
        description: One-line description for rule authors
        requires_value: Whether the condition needs a comparison value
        expects_array: Whether the comparison value must be a list
        expects_range: Whether the comparison value must be a [min, max] pair
    """
    name: str
    label: str
    category: OperatorCategory
    supported_types: FrozenSet[str]
    description: str
    requires_value: bool = True
    expects_array: bool = False
    expects_range: bool = False


def _spec(
    op: ComparisonOperator,
    label: str,
    category: OperatorCategory,
    types: List[str],
    description: str,
    **flags: bool,
) -> OperatorSpec:
    return OperatorSpec(
        name=op.value,
        label=label,
        category=category,
        supported_types=frozenset(types),
        description=description,
        **flags,
    )


_C = ComparisonOperator
_BASIC, _TEXT, _FORMAT, _DATE, _ADV = (
    OperatorCategory.BASIC,
    OperatorCategory.TEXT,
    OperatorCategory.FORMAT,
    OperatorCategory.DATE,
    OperatorCategory.ADVANCED,
)

OPERATOR_REGISTRY: Dict[str, OperatorSpec] = {
    spec.name: spec
    for spec in (
        # Basic comparison
        _spec(_C.EQUALS, "Equals", _BASIC, ["string", "number", "boolean", "date"], "Exact match comparison"),
        _spec(_C.NOT_EQUALS, "Not Equals", _BASIC, ["string", "number", "boolean", "date"], "Values must not match"),
        _spec(_C.GREATER_THAN, "Greater Than", _BASIC, ["number", "date"], "Value must be greater"),
        _spec(_C.GREATER_THAN_OR_EQUAL, "Greater Than or Equal", _BASIC, ["number", "date"], "Value must be greater or equal"),
        _spec(_C.LESS_THAN, "Less Than", _BASIC, ["number", "date"], "Value must be less"),
        _spec(_C.LESS_THAN_OR_EQUAL, "Less Than or Equal", _BASIC, ["number", "date"], "Value must be less or equal"),
        # Text operations
        _spec(_C.CONTAINS, "Contains", _TEXT, ["string", "array"], "Text contains substring or array contains item"),
        _spec(_C.NOT_CONTAINS, "Does Not Contain", _TEXT, ["string", "array"], "Text does not contain substring"),
        _spec(_C.STARTS_WITH, "Starts With", _TEXT, ["string"], "Text begins with specified value"),
        _spec(_C.ENDS_WITH, "Ends With", _TEXT, ["string"], "Text ends with specified value"),
        _spec(_C.MATCHES_REGEX, "Matches Pattern", _TEXT, ["string"], "Text matches regular expression"),
        _spec(_C.NOT_MATCHES_REGEX, "Does Not Match Pattern", _TEXT, ["string"], "Text does not match regular expression"),
        # Format validation
        _spec(_C.EMAIL_FORMAT, "Valid Email Format", _FORMAT, ["string"], "Validates email address format", requires_value=False),
        _spec(_C.URL_FORMAT, "Valid URL Format", _FORMAT, ["string"], "Validates URL format", requires_value=False),
        _spec(_C.PHONE_FORMAT, "Valid Phone Format", _FORMAT, ["string"], "Validates phone number format", requires_value=False),
        _spec(_C.CREDIT_CARD_FORMAT, "Valid Credit Card", _FORMAT, ["string"], "Validates credit card number format", requires_value=False),
        _spec(_C.UUID_FORMAT, "Valid UUID", _FORMAT, ["string"], "Validates UUID format", requires_value=False),
        # Date operations
        _spec(_C.BEFORE_DATE, "Before Date", _DATE, ["date"], "Date is before specified date"),
        _spec(_C.AFTER_DATE, "After Date", _DATE, ["date"], "Date is after specified date"),
        _spec(_C.IS_WEEKEND, "Is Weekend", _DATE, ["date"], "Date falls on weekend", requires_value=False),
        _spec(_C.IS_BUSINESS_DAY, "Is Business Day", _DATE, ["date"], "Date is a business day", requires_value=False),
        # Advanced
        _spec(_C.IN, "In List", _ADV, ["string", "number", "boolean"], "Value exists in provided list", expects_array=True),
        _spec(_C.NOT_IN, "Not In List", _ADV, ["string", "number", "boolean"], "Value does not exist in provided list", expects_array=True),
        _spec(_C.BETWEEN, "Between", _ADV, ["number", "date"], "Value is between two values", expects_range=True),
        _spec(_C.NOT_BETWEEN, "Not Between", _ADV, ["number", "date"], "Value is not between two values", expects_range=True),
        _spec(_C.IS_EMPTY, "Is Empty", _ADV, ["string", "array"], "Field is empty or null", requires_value=False),
        _spec(_C.IS_NOT_EMPTY, "Is Not Empty", _ADV, ["string", "array"], "Field has a value", requires_value=False),
        _spec(_C.MULTIPLE_OF, "Multiple Of", _ADV, ["number"], "Number is a multiple of specified value"),
        _spec(_C.IS_INTEGER, "Is Integer", _ADV, ["number"], "Number is a whole integer", requires_value=False),
        _spec(_C.LENGTH_EQUALS, "Length Equals", _ADV, ["string", "array"], "Text or array length equals specified value"),
        _spec(_C.LENGTH_GREATER_THAN, "Length Greater Than", _ADV, ["string", "array"], "Text or array length is greater than specified value"),
        _spec(_C.LENGTH_LESS_THAN, "Length Less Than", _ADV, ["string", "array"], "Text or array length is less than specified value"),
    )
}

LOGICAL_OPERATORS: FrozenSet[str] = frozenset(op.value for op in LogicalOperator)


def is_valid_comparison_operator(operator: object) -> bool:
    """Check whether a name belongs to the comparison vocabulary."""
    return isinstance(operator, str) and operator in OPERATOR_REGISTRY


def is_valid_logical_operator(operator: object) -> bool:
    """Check whether a name is one of and/or/not."""
    return isinstance(operator, str) and operator in LOGICAL_OPERATORS


def get_operator_spec(operator: str) -> Optional[OperatorSpec]:
    """Return the registry entry for an operator, or None if unknown."""
    return OPERATOR_REGISTRY.get(operator)


def get_operators_for_field_type(field_type: str) -> List[OperatorSpec]:
    """
    List operators applicable to a field type, in presentation order.

    Args:
        field_type: One of string, number, boolean, date, array

    Returns:
        Operator specs sorted by category order, registry order within a category
    """
    matches = [spec for spec in OPERATOR_REGISTRY.values() if field_type in spec.supported_types]
    return sorted(matches, key=lambda s: CATEGORY_ORDER[s.category])


def get_operators_by_category() -> Dict[OperatorCategory, List[OperatorSpec]]:
    """Group all operators by category, categories in presentation order."""
    grouped: Dict[OperatorCategory, List[OperatorSpec]] = {
        category: [] for category in sorted(CATEGORY_ORDER, key=CATEGORY_ORDER.get)
    }
    for spec in OPERATOR_REGISTRY.values():
        grouped[spec.category].append(spec)
    return grouped


def requires_value(operator: str) -> bool:
    spec = OPERATOR_REGISTRY.get(operator)
    return spec.requires_value if spec else True


def expects_array(operator: str) -> bool:
    spec = OPERATOR_REGISTRY.get(operator)
    return spec.expects_array if spec else False


def expects_range(operator: str) -> bool:
    spec = OPERATOR_REGISTRY.get(operator)
    return spec.expects_range if spec else False
