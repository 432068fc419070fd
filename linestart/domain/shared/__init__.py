from .base import AggregateRoot, Entity, ValueObject, as_naive_utc, new_id, utc_now
from .exceptions import (
    ConcurrentModification,
    DomainError,
    ErrorType,
    InvalidCustomField,
    InvalidQuantity,
    InvalidRate,
    InvalidTransition,
    PartialSplitInconsistency,
    ReferenceNotFound,
    ResourceInUse,
)

__all__ = [
    "AggregateRoot",
    "as_naive_utc",
    "Entity",
    "ValueObject",
    "new_id",
    "utc_now",
    "DomainError",
    "ErrorType",
    "InvalidTransition",
    "InvalidRate",
    "InvalidQuantity",
    "InvalidCustomField",
    "ConcurrentModification",
    "ReferenceNotFound",
    "PartialSplitInconsistency",
    "ResourceInUse",
]
