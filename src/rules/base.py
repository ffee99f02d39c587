# src/rules/base.py
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

# Re-exported so rule modules depend on one place for the read surface.
from src.store.entity_store import StoreView  # noqa: F401


class RejectionReason(str, Enum):
    """Why a proposed operation was refused. Local and recoverable."""
    ENTITY_NOT_FOUND = "EntityNotFound"
    RESOURCE_UNAVAILABLE = "ResourceUnavailable"
    LICENSE_EXPIRED = "LicenseExpired"
    CAPACITY_EXCEEDED = "CapacityExceeded"
    INVALID_TRANSITION = "InvalidTransition"
    INVALID_ODOMETER = "InvalidOdometer"
    # registry-level
    DUPLICATE_LICENSE_PLATE = "DuplicateLicensePlate"
    INVALID_INPUT = "InvalidInput"


@dataclass(frozen=True)
class Rejection:
    """
    A refused operation.
    `message` is user-facing and meant to be shown verbatim.
    """
    reason: RejectionReason
    message: str

    def __str__(self) -> str:
        return f"{self.reason.value}: {self.message}"


class RejectedOperation(Exception):
    """Raised only by Outcome.unwrap(), for callers that prefer exceptions."""

    def __init__(self, rejection: Rejection) -> None:
        super().__init__(str(rejection))
        self.rejection = rejection


@dataclass(frozen=True)
class Outcome:
    """
    Result of a validation rule or lifecycle command.

    Either accepted (optionally carrying a value such as a new id) or rejected
    with a specific Rejection. Rules and commands return these; they never raise
    for control flow.
    """
    value: Any = None
    rejection: Optional[Rejection] = None

    @classmethod
    def accept(cls, value: Any = None) -> "Outcome":
        return cls(value=value)

    @classmethod
    def reject(cls, reason: RejectionReason, message: str) -> "Outcome":
        return cls(rejection=Rejection(reason=reason, message=message))

    @property
    def ok(self) -> bool:
        return self.rejection is None

    @property
    def reason(self) -> Optional[RejectionReason]:
        return None if self.rejection is None else self.rejection.reason

    @property
    def message(self) -> Optional[str]:
        return None if self.rejection is None else self.rejection.message

    def unwrap(self) -> Any:
        if self.rejection is not None:
            raise RejectedOperation(self.rejection)
        return self.value

    def __bool__(self) -> bool:
        return self.ok


ACCEPTED = Outcome()
