"""Data models for classification results."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Generic, Iterable, TypeVar, Union

F = TypeVar("F")
C = TypeVar("C")


@dataclass(frozen=True, init=False)
class Classification(Generic[F, C]):
    """A featureset paired with the category it was scored against.

    ``probability`` defaults to 1 so a record can be built before scoring.
    The featureset is stored as a tuple in input order; repeated features
    are kept.
    """

    featureset: tuple[F, ...]
    category: C
    probability: Decimal

    def __init__(
        self,
        featureset: Iterable[F],
        category: C,
        probability: Decimal | int | float | str = 1,
    ) -> None:
        object.__setattr__(self, "featureset", tuple(featureset))
        object.__setattr__(self, "category", category)
        object.__setattr__(self, "probability", to_decimal(probability))

    def __str__(self) -> str:
        return (
            f"Classification [category={self.category}, "
            f"probability={self.probability}, "
            f"featureset={list(self.featureset)}]"
        )

    def to_dict(self) -> dict:
        return {
            "category": self.category,
            "probability": str(self.probability),
            "featureset": list(self.featureset),
        }


def to_decimal(value: Union[Decimal, int, float, str]) -> Decimal:
    """Convert a number to ``Decimal``, reading floats by their shortest repr.

    ``0.1`` becomes ``Decimal("0.1")`` rather than its binary expansion.

    Raises:
        ValueError: If the value is not a number.
    """
    if isinstance(value, float):
        return Decimal(repr(value))
    try:
        return Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise ValueError(f"not a decimal number: {value!r}") from None
