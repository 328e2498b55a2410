"""
Filter expressions for discovery search.

A filter is either a plain mapping of field -> value (equality on every
field) or an ordered sequence of clauses with explicit operators. Both
forms normalise to the same clause list so equivalent filters produce the
same request payload. Keys are not checked against any product schema.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from .errors import ValidationError


class FilterOperator(Enum):
    EQ = "="
    GT = ">"
    GTE = ">="
    LT = "<"
    LTE = "<="
    IN = "in"


@dataclass(frozen=True)
class FilterClause:
    """Single predicate: ``key operator value``."""
    key: str
    operator: FilterOperator
    value: Any

    def __post_init__(self):
        if not isinstance(self.key, str) or not self.key:
            raise ValidationError("Filter key must be a non-empty string")
        if self.operator is FilterOperator.IN and not isinstance(self.value, (list, tuple)):
            raise ValidationError(f"Filter 'in' on '{self.key}' requires a list value")

    def to_dict(self) -> Dict[str, Any]:
        value = list(self.value) if isinstance(self.value, tuple) else self.value
        return {"key": self.key, "operator": self.operator.value, "value": value}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> FilterClause:
        try:
            key = data["key"]
            value = data["value"]
        except KeyError as e:
            raise ValidationError(f"Filter clause is missing {e.args[0]!r}") from e
        raw_op = data.get("operator", "=")
        try:
            operator = raw_op if isinstance(raw_op, FilterOperator) else FilterOperator(raw_op)
        except ValueError as e:
            allowed = ", ".join(op.value for op in FilterOperator)
            raise ValidationError(f"Unsupported filter operator {raw_op!r} (allowed: {allowed})") from e
        return cls(key=key, operator=operator, value=value)


FilterExpression = Union[
    Mapping[str, Any],
    Sequence[Union[FilterClause, Mapping[str, Any]]],
]


def normalize_filter(expression: Optional[FilterExpression]) -> List[FilterClause]:
    """Turn either filter form into an ordered list of clauses."""
    if expression is None:
        return []
    if isinstance(expression, Mapping):
        return [FilterClause(key=key, operator=FilterOperator.EQ, value=value)
                for key, value in expression.items()]
    if isinstance(expression, (str, bytes)) or not isinstance(expression, Sequence):
        raise ValidationError(f"Filter must be a mapping or a list of clauses, got {type(expression).__name__}")
    clauses = []
    for item in expression:
        if isinstance(item, FilterClause):
            clauses.append(item)
        elif isinstance(item, Mapping):
            clauses.append(FilterClause.from_dict(item))
        else:
            raise ValidationError(f"Invalid filter clause: {item!r}")
    return clauses


def filter_to_wire(expression: Optional[FilterExpression]) -> Optional[List[Dict[str, Any]]]:
    """Serialise a filter for the request body, or None when there is none."""
    clauses = normalize_filter(expression)
    if not clauses:
        return None
    return [clause.to_dict() for clause in clauses]
