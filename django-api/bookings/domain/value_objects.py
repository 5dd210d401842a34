"""Domain primitives that enforce validity at creation time."""

from dataclasses import dataclass
from enum import Enum
from typing import Self
from uuid import UUID


@dataclass(frozen=True)
class ClassInstanceId:
    """Unique identifier for a scheduled class occurrence."""

    value: UUID

    @classmethod
    def from_string(cls, value: str) -> Self:
        return cls(value=UUID(value))

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class BookingId:
    """Unique identifier for a Booking."""

    value: UUID

    @classmethod
    def from_string(cls, value: str) -> Self:
        return cls(value=UUID(value))

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class MemberId:
    """Unique identifier for a studio member."""

    value: UUID

    @classmethod
    def from_string(cls, value: str) -> Self:
        return cls(value=UUID(value))

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class StudioId:
    """Unique identifier for a Studio."""

    value: UUID

    @classmethod
    def from_string(cls, value: str) -> Self:
        return cls(value=UUID(value))

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class Capacity:
    """Non-negative integer representing capacity."""

    value: int

    def __post_init__(self) -> None:
        if self.value < 0:
            raise ValueError("Capacity cannot be negative")


class CreditSource(Enum):
    """Every way a member can pay for one class visit."""

    COMP_CLASS = "comp_class"
    SUBSCRIPTION_UNLIMITED = "subscription_unlimited"
    SUBSCRIPTION_LIMITED = "subscription_limited"
    CLASS_PACK = "class_pack"
    NONE = "none"


@dataclass(frozen=True)
class CreditCheck:
    """Outcome of resolving a member's payment eligibility at a point in time.

    ``remaining_after`` is the projected balance once one unit is deducted;
    it is None for unlimited subscriptions and when no credit was found.
    """

    has_credits: bool
    source: CreditSource
    source_id: UUID | None = None
    remaining_after: int | None = None

    def __post_init__(self) -> None:
        if self.has_credits and (self.source is CreditSource.NONE or self.source_id is None):
            raise ValueError("A usable credit check needs a concrete source and source_id")
        if not self.has_credits and self.source is not CreditSource.NONE:
            raise ValueError("A check without credits must have source NONE")
        if self.remaining_after is not None and self.remaining_after < 0:
            raise ValueError("remaining_after cannot be negative")

    @classmethod
    def none(cls) -> Self:
        return cls(has_credits=False, source=CreditSource.NONE)

    @classmethod
    def charged_to(cls, source: CreditSource, source_id: UUID | None) -> Self:
        """Rebuild the check recorded on a booking so its credit can be refunded."""
        if source is CreditSource.NONE or source_id is None:
            return cls.none()
        return cls(has_credits=True, source=source, source_id=source_id)
