from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional, Union


class RuleStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    UNKNOWN = "unknown"  # провайдер не отдаёт статус


class ValueKind(str, Enum):
    PERCENTAGE = "percentage"      # -N%
    FIXED_AMOUNT = "fixed_amount"  # -N в основных единицах ($)
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class DiscountRule:
    id: str
    status: RuleStatus
    value_kind: ValueKind
    value: Decimal
    minimum_subtotal: Optional[Decimal] = None
    usage_limit: Optional[int] = None
    usage_count: int = 0


class IneligibleReason(str, Enum):
    NOT_FOUND = "not_found"
    INACTIVE = "inactive"
    BELOW_MINIMUM_SUBTOTAL = "below_minimum_subtotal"
    USAGE_LIMIT_REACHED = "usage_limit_reached"
    MALFORMED_RULE = "malformed_rule"


@dataclass(frozen=True)
class Ineligible:
    reason: IneligibleReason
    details: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "details", MappingProxyType(dict(self.details)))

    @property
    def eligible(self) -> bool:
        return False


@dataclass(frozen=True)
class Eligible:
    discount_amount_cents: int
    original_total_cents: int
    new_total_cents: int

    @property
    def eligible(self) -> bool:
        return True


EvaluationResult = Union[Eligible, Ineligible]
