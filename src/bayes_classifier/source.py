"""Likelihood sources: the learned counts the classification engine reads.

``LikelihoodSource`` is the read-only contract the engine is written
against. ``FrequencyTable`` is the in-memory implementation shipped with the
package: it accumulates category and feature occurrence counts and turns
them into smoothed per-feature likelihoods.

Smoothing follows the weighted-average scheme::

    likelihood = (weight * assumed + total * basic) / (weight + total)

where ``basic`` is the raw ``P(feature | category)`` frequency and ``total``
is how often the feature was seen in any category. A feature never seen
before therefore gets ``assumed`` instead of zero, which keeps a single
unknown token from wiping out an otherwise strong category.
"""

from __future__ import annotations

import copy
import json
import logging
import threading
from collections import Counter, defaultdict
from decimal import ROUND_HALF_EVEN, Context, Decimal, localcontext
from pathlib import Path
from typing import Hashable, Iterable, Protocol, Union, runtime_checkable

from .models import to_decimal

logger = logging.getLogger(__name__)

Number = Union[Decimal, int, float]

MODEL_FORMAT_VERSION = "1.0"

# Ratios are computed here regardless of the caller's decimal context.
_RATIO_CONTEXT = Context(prec=28, rounding=ROUND_HALF_EVEN)


@runtime_checkable
class LikelihoodSource(Protocol):
    """Read-only view of a learned category/feature frequency model."""

    def category_count(self, category: Hashable) -> int:
        """Number of observations labeled with ``category`` (0 if unseen)."""

    def categories_total(self) -> int:
        """Sum of ``category_count`` over all known categories."""

    def known_categories(self) -> set:
        """All categories observed so far (may be empty)."""

    def feature_likelihood(self, feature: Hashable, category: Hashable) -> Number:
        """Smoothed ``P(feature | category)`` in ``[0, 1]``, never exactly 0."""


# ---------------------------------------------------------------------------
# In-memory frequency table
# ---------------------------------------------------------------------------

class FrequencyTable:
    """Thread-safe in-memory category/feature counts.

    Example::

        table = FrequencyTable()
        table.learn("spam", ["free", "money"])
        table.learn("ham", ["meeting", "tomorrow"])

        table.category_count("spam")              # 1
        table.feature_likelihood("free", "spam")  # Decimal('0.75')

    Args:
        weight: How many observations the assumed probability is worth.
        assumed_probability: Likelihood given to features never observed.
    """

    def __init__(
        self,
        weight: Number = 1,
        assumed_probability: Number = Decimal("0.5"),
    ) -> None:
        self.weight = to_decimal(weight)
        self.assumed_probability = to_decimal(assumed_probability)
        if not (self.weight.is_finite() and self.assumed_probability.is_finite()):
            raise ValueError("weight and assumed_probability must be finite")
        if self.weight < 0:
            raise ValueError(f"weight must be non-negative, got {self.weight}")
        if not 0 <= self.assumed_probability <= 1:
            raise ValueError(
                f"assumed_probability must be in [0, 1], got {self.assumed_probability}"
            )

        self._lock = threading.RLock()
        self._category_counts: Counter = Counter()
        self._feature_counts: dict[Hashable, Counter] = defaultdict(Counter)
        self._feature_totals: Counter = Counter()

    # ------------------------------------------------------------------
    # Learning
    # ------------------------------------------------------------------

    def learn(self, category: Hashable, features: Iterable[Hashable]) -> None:
        """Record one observation of ``features`` labeled ``category``.

        Each distinct feature is counted once per observation, so a feature's
        count never exceeds its category's count.
        """
        distinct = set(features)
        with self._lock:
            self._category_counts[category] += 1
            counts = self._feature_counts[category]
            for feature in distinct:
                counts[feature] += 1
                self._feature_totals[feature] += 1
        logger.debug("Learned %r with %d distinct features", category, len(distinct))

    def fit(
        self,
        featuresets: list[Iterable[Hashable]],
        labels: list[Hashable],
    ) -> "FrequencyTable":
        """Learn a batch of labeled featuresets.

        Args:
            featuresets: One iterable of features per observation.
            labels: Category of each observation (same length).

        Returns:
            Self (for method chaining).

        Raises:
            ValueError: If featuresets and labels have different lengths.
        """
        if len(featuresets) != len(labels):
            raise ValueError(
                f"featuresets ({len(featuresets)}) and labels ({len(labels)}) "
                "must have same length"
            )
        for features, label in zip(featuresets, labels):
            self.learn(label, features)
        return self

    # ------------------------------------------------------------------
    # LikelihoodSource contract
    # ------------------------------------------------------------------

    def category_count(self, category: Hashable) -> int:
        with self._lock:
            return self._category_counts.get(category, 0)

    def categories_total(self) -> int:
        with self._lock:
            return sum(self._category_counts.values())

    def known_categories(self) -> set:
        with self._lock:
            return set(self._category_counts)

    def feature_likelihood(self, feature: Hashable, category: Hashable) -> Decimal:
        with self._lock:
            basic = self.feature_probability(feature, category)
            total = Decimal(self._feature_totals.get(feature, 0))
        with localcontext(_RATIO_CONTEXT):
            denominator = self.weight + total
            if denominator == 0:
                # Zero weight and an unseen feature: nothing to average.
                return self.assumed_probability
            return (self.weight * self.assumed_probability + total * basic) / denominator

    # ------------------------------------------------------------------
    # Raw counts
    # ------------------------------------------------------------------

    def feature_count(self, feature: Hashable, category: Hashable) -> int:
        with self._lock:
            counts = self._feature_counts.get(category)
            return counts.get(feature, 0) if counts else 0

    def feature_total(self, feature: Hashable) -> int:
        with self._lock:
            return self._feature_totals.get(feature, 0)

    def feature_probability(self, feature: Hashable, category: Hashable) -> Decimal:
        """Unsmoothed ``P(feature | category)``; 0 for an unknown category."""
        with self._lock:
            category_count = self._category_counts.get(category, 0)
            if category_count == 0:
                return Decimal(0)
            with localcontext(_RATIO_CONTEXT):
                return Decimal(self.feature_count(feature, category)) / Decimal(category_count)

    @property
    def features(self) -> set:
        """All features observed in any category."""
        with self._lock:
            return set(self._feature_totals)

    def snapshot(self) -> "FrequencyTable":
        """Return an independent copy of the current counts.

        Classify against a snapshot when another thread keeps calling
        ``learn`` so every lookup in one ranking sees the same counts.
        """
        with self._lock:
            clone = FrequencyTable(self.weight, self.assumed_probability)
            clone._category_counts = copy.deepcopy(self._category_counts)
            clone._feature_counts = copy.deepcopy(self._feature_counts)
            clone._feature_totals = copy.deepcopy(self._feature_totals)
        return clone

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def to_dict(self) -> dict:
        """Serialize the table to JSON-compatible data."""
        with self._lock:
            categories = [
                {
                    "category": category,
                    "count": count,
                    "features": [
                        [feature, n]
                        for feature, n in self._feature_counts.get(category, Counter()).items()
                    ],
                }
                for category, count in self._category_counts.items()
            ]
        return {
            "version": MODEL_FORMAT_VERSION,
            "weight": str(self.weight),
            "assumed_probability": str(self.assumed_probability),
            "categories": categories,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "FrequencyTable":
        """Rebuild a table from ``to_dict`` output.

        Raises:
            ValueError: If the data has an unknown version, missing or
                malformed fields, or negative counts.
        """
        if not isinstance(data, dict):
            raise ValueError(f"Model data must be an object, got {type(data).__name__}")
        version = data.get("version")
        if version != MODEL_FORMAT_VERSION:
            raise ValueError(f"Unsupported model format version: {version!r}")

        try:
            table = cls(
                weight=to_decimal(data["weight"]),
                assumed_probability=to_decimal(data["assumed_probability"]),
            )
            for entry in data["categories"]:
                category = entry["category"]
                count = int(entry["count"])
                if count < 0:
                    raise ValueError(f"Negative count {count} for category {category!r}")
                table._category_counts[category] = count
                for feature, n in entry["features"]:
                    n = int(n)
                    if n < 0:
                        raise ValueError(
                            f"Negative count {n} for feature {feature!r} in {category!r}"
                        )
                    table._feature_counts[category][feature] = n
                    table._feature_totals[feature] += n
        except KeyError as e:
            raise ValueError(f"Malformed model data: missing field {e}") from None
        except (OverflowError, TypeError) as e:
            raise ValueError(f"Malformed model data: {e}") from None
        return table

    def save(self, path: str | Path) -> None:
        """Write the table to a JSON file, creating parent directories."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2)
        logger.info("Saved model with %d categories to %s", len(self.known_categories()), path)

    @classmethod
    def load(cls, path: str | Path) -> "FrequencyTable":
        """Load a table previously written by ``save``."""
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        table = cls.from_dict(data)
        logger.info("Loaded model with %d categories from %s", len(table.known_categories()), path)
        return table
