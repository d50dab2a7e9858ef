"""Naive Bayes probability engine and category ranker.

Scores a featureset against every category a likelihood source knows::

    posterior(category) = prior(category) * PROD(likelihood(feature | category))

and ranks the categories by that score. All arithmetic is done with
``decimal.Decimal`` so results are reproducible across platforms; the
scores are unnormalized naive Bayes values, not calibrated probabilities.
"""

from __future__ import annotations

import logging
import math
from decimal import (
    MAX_EMAX,
    MAX_PREC,
    MIN_EMIN,
    ROUND_HALF_UP,
    Context,
    Decimal,
    localcontext,
)
from typing import Generic, Hashable, Iterable, Optional, TypeVar

from .errors import LikelihoodSourceError, UndefinedPriorError
from .models import Classification, to_decimal
from .source import LikelihoodSource

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Hashable)
C = TypeVar("C", bound=Hashable)

# Multiplication under this context never rounds.
_EXACT = Context(prec=MAX_PREC, Emax=MAX_EMAX, Emin=MIN_EMIN)


class BayesClassifier(Generic[F, C]):
    """Ranks categories for a featureset using a ``LikelihoodSource``.

    The classifier keeps no state of its own; every call reads the source
    and returns new ``Classification`` records. Concurrent calls are safe as
    long as the source itself answers consistently.

    Example::

        table = FrequencyTable()
        table.learn("spam", ["free", "money"])
        table.learn("ham", ["meeting", "agenda"])

        classifier = BayesClassifier(table)
        best = classifier.classify(["free"])
        print(best.category, best.probability)

        for entry in classifier.classify_detailed(["free"]):
            print(entry)

    Args:
        source: Provider of category counts and feature likelihoods.
        precision: Significant digits kept in products. ``None`` (the
            default) multiplies exactly.
    """

    def __init__(
        self,
        source: LikelihoodSource,
        precision: Optional[int] = None,
    ) -> None:
        if precision is not None and precision < 1:
            raise ValueError(f"precision must be a positive integer, got {precision}")
        self._source = source
        self._precision = precision
        if precision is None:
            self._context = _EXACT
        else:
            self._context = Context(
                prec=precision, rounding=ROUND_HALF_UP, Emax=MAX_EMAX, Emin=MIN_EMIN,
            )

    @property
    def source(self) -> LikelihoodSource:
        return self._source

    @property
    def precision(self) -> Optional[int]:
        return self._precision

    # ------------------------------------------------------------------
    # Probability engine
    # ------------------------------------------------------------------

    def features_likelihood_product(self, features: Iterable[F], category: C) -> Decimal:
        """Multiply ``P(feature | category)`` over every feature.

        Repeated features contribute once per occurrence. An empty featureset
        gives 1, leaving the prior unchanged.
        """
        # Likelihoods are read outside the product context.
        likelihoods = [self._likelihood(feature, category) for feature in features]
        product = Decimal(1)
        with localcontext(self._context):
            for likelihood in likelihoods:
                product *= likelihood
        return product

    def category_prior(self, category: C) -> Decimal:
        """Relative frequency of ``category``, rounded half-up to 2 places.

        The rounding happens before the prior is combined with the feature
        product and is part of the observable result.

        Raises:
            UndefinedPriorError: If the source reports a total of 0.
            LikelihoodSourceError: If the counts are negative or inconsistent.
        """
        count = self._count(self._source.category_count(category), category)
        total = self._count(self._source.categories_total(), "<total>")
        if total == 0:
            logger.warning("Categories total is 0; prior for %r is undefined", category)
            raise UndefinedPriorError(category)
        if count > total:
            self._violation(
                f"Category count {count} for {category!r} exceeds total {total}"
            )

        # Integer division keeps the half-up rounding exact.
        hundredths, remainder = divmod(count * 100, total)
        if 2 * remainder >= total:
            hundredths += 1
        return Decimal(hundredths).scaleb(-2, _EXACT)

    def category_posterior(self, features: Iterable[F], category: C) -> Decimal:
        """Prior times the feature likelihood product for ``category``."""
        prior = self.category_prior(category)
        product = self.features_likelihood_product(features, category)
        with localcontext(self._context):
            return prior * product

    # ------------------------------------------------------------------
    # Ranking
    # ------------------------------------------------------------------

    def score_all_categories(self, features: Iterable[F]) -> list[Classification[F, C]]:
        """Score every known category and sort ascending by probability.

        Ties are broken by category so two categories with the same score
        both stay in the result. Categories that cannot be compared with each
        other fall back to their ``repr`` for the tie-break.
        """
        featureset = tuple(features)
        categories = self._source.known_categories()
        if not categories:
            return []

        scored = [
            Classification(featureset, category, self.category_posterior(featureset, category))
            for category in categories
        ]
        try:
            ranked = sorted(scored, key=lambda c: (c.probability, c.category))
        except TypeError:
            ranked = sorted(scored, key=lambda c: (c.probability, repr(c.category)))

        logger.debug(
            "Ranked %d categories for %d features; best=%r",
            len(ranked), len(featureset), ranked[-1].category,
        )
        return ranked

    def classify(self, features: Iterable[F]) -> Optional[Classification[F, C]]:
        """Return the highest scoring classification, or ``None``.

        ``None`` means the source knows no categories. When several
        categories share the top score, the one that sorts last by category
        is returned; that pick is deterministic but carries no meaning.
        """
        ranked = self.score_all_categories(features)
        if not ranked:
            return None
        return ranked[-1]

    def classify_detailed(self, features: Iterable[F]) -> list[Classification[F, C]]:
        """Return every category's classification, ascending by probability."""
        return self.score_all_categories(features)

    # ------------------------------------------------------------------
    # Source value checks
    # ------------------------------------------------------------------

    def _likelihood(self, feature: F, category: C) -> Decimal:
        value = self._source.feature_likelihood(feature, category)
        if isinstance(value, bool):
            self._violation(f"Likelihood for {feature!r} in {category!r} is not a number: {value!r}")
        if isinstance(value, float):
            if not math.isfinite(value):
                self._violation(f"Likelihood for {feature!r} in {category!r} is {value}")
            value = to_decimal(value)
        elif isinstance(value, int):
            value = Decimal(value)
        elif isinstance(value, Decimal):
            if not value.is_finite():
                self._violation(f"Likelihood for {feature!r} in {category!r} is {value}")
        else:
            self._violation(
                f"Likelihood for {feature!r} in {category!r} is not a number: {value!r}"
            )

        if not 0 <= value <= 1:
            self._violation(
                f"Likelihood {value} for {feature!r} in {category!r} is outside [0, 1]"
            )
        return value

    def _count(self, value: int, label: object) -> int:
        if isinstance(value, bool) or not isinstance(value, int):
            self._violation(f"Count for {label!r} is not an integer: {value!r}")
        if value < 0:
            self._violation(f"Count for {label!r} is negative: {value}")
        return value

    @staticmethod
    def _violation(message: str) -> None:
        logger.warning("Likelihood source contract violation: %s", message)
        raise LikelihoodSourceError(message)
