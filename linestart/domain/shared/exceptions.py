"""
Domain Exceptions

Every error the scheduling core reports derives from ``DomainError`` and
carries an ``ErrorType`` discriminator, so the API layer can map errors to
responses without inspecting messages.
"""

from enum import Enum
from typing import Any


class ErrorType(str, Enum):
    """Error type enumeration for discriminated unions."""

    VALIDATION = "validation"
    BUSINESS_RULE = "business_rule"
    NOT_FOUND = "not_found"
    CONCURRENCY = "concurrency"
    CONSISTENCY = "consistency"
    PERSISTENCE = "persistence"


class DomainError(Exception):
    """Base class for all domain errors with type discrimination."""

    def __init__(
        self,
        message: str,
        error_type: ErrorType,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_type = error_type
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for API responses."""
        return {
            "type": self.error_type.value,
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class InvalidTransition(DomainError):
    """Raised when a work order state machine precondition is violated."""

    def __init__(
        self, work_order_id: str, current_status: str, attempted: str, reason: str = ""
    ) -> None:
        message = (
            f"Work order {work_order_id} cannot {attempted} from status "
            f"'{current_status}'"
        )
        if reason:
            message = f"{message}: {reason}"
        super().__init__(
            message,
            ErrorType.BUSINESS_RULE,
            {
                "work_order_id": work_order_id,
                "current_status": current_status,
                "attempted": attempted,
            },
        )
        self.work_order_id = work_order_id
        self.current_status = current_status
        self.attempted = attempted


class InvalidRate(DomainError):
    """Raised when a resource throughput is not a positive number."""

    def __init__(self, units_per_hour: float) -> None:
        super().__init__(
            f"Production rate must be greater than 0, got {units_per_hour}",
            ErrorType.VALIDATION,
            {"field": "units_per_hour", "value": units_per_hour},
        )
        self.units_per_hour = units_per_hour


class InvalidQuantity(DomainError):
    """Raised when a quantity or time input is out of range."""

    def __init__(self, field_name: str, value: Any, message: str) -> None:
        super().__init__(
            f"Invalid {field_name}: {message}",
            ErrorType.VALIDATION,
            {"field": field_name, "value": value},
        )
        self.field_name = field_name
        self.value = value


class InvalidCustomField(DomainError):
    """Raised when job custom field values do not match the configured schema."""

    def __init__(self, field_name: str, message: str) -> None:
        super().__init__(
            f"Custom field '{field_name}': {message}",
            ErrorType.VALIDATION,
            {"field": field_name},
        )
        self.field_name = field_name


class ConcurrentModification(DomainError):
    """Raised when a compare-and-set write loses the race; re-read and retry."""

    def __init__(
        self,
        entity_type: str,
        entity_id: str,
        expected_version: int,
        actual_version: int | None = None,
    ) -> None:
        message = (
            f"{entity_type} {entity_id} was modified concurrently "
            f"(expected version {expected_version}"
        )
        if actual_version is not None:
            message += f", found {actual_version}"
        message += ")"
        super().__init__(
            message,
            ErrorType.CONCURRENCY,
            {
                "entity_type": entity_type,
                "entity_id": entity_id,
                "expected_version": expected_version,
                "actual_version": actual_version,
            },
        )
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.expected_version = expected_version
        self.actual_version = actual_version


class ReferenceNotFound(DomainError):
    """Raised when a referenced job, resource or work order does not exist."""

    def __init__(self, entity_type: str, entity_id: str) -> None:
        super().__init__(
            f"{entity_type} not found: {entity_id}",
            ErrorType.NOT_FOUND,
            {"entity_type": entity_type, "entity_id": entity_id},
        )
        self.entity_type = entity_type
        self.entity_id = entity_id


class PartialSplitInconsistency(DomainError):
    """Raised when a partial work order has no remainder on its job."""

    def __init__(self, work_order_id: str, detail: str) -> None:
        super().__init__(
            f"Partial work order {work_order_id} is inconsistent: {detail}",
            ErrorType.CONSISTENCY,
            {"work_order_id": work_order_id},
        )
        self.work_order_id = work_order_id


class ResourceInUse(DomainError):
    """Raised when a resource with open work orders would be deleted."""

    def __init__(self, resource_id: str, open_work_orders: int) -> None:
        super().__init__(
            f"Resource {resource_id} still holds {open_work_orders} open work orders",
            ErrorType.BUSINESS_RULE,
            {"resource_id": resource_id, "open_work_orders": open_work_orders},
        )
        self.resource_id = resource_id
