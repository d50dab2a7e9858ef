"""Exception types raised by the classification engine."""

from __future__ import annotations


class ClassificationError(Exception):
    """Base class for errors raised while scoring a featureset."""


class UndefinedPriorError(ClassificationError):
    """Raised when category priors cannot be computed.

    This happens when the likelihood source knows categories but reports a
    zero observation total, so ``count / total`` has no value.
    """

    def __init__(self, category: object) -> None:
        super().__init__(
            f"Prior for category {category!r} is undefined: categories total is 0"
        )
        self.category = category


class LikelihoodSourceError(ClassificationError, ValueError):
    """Raised when the likelihood source returns data outside its contract."""
