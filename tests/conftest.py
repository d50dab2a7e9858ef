"""Shared test fixtures for bayes-classifier tests."""

from __future__ import annotations

import logging
from decimal import Decimal

import pytest

from bayes_classifier import BayesClassifier, FrequencyTable


class StubSource:
    """Likelihood source backed by fixed tables.

    Unlisted (feature, category) pairs get ``default``.
    """

    def __init__(self, counts: dict, likelihoods: dict | None = None,
                 default=Decimal("0.5"), total: int | None = None) -> None:
        self.counts = counts
        self.likelihoods = likelihoods or {}
        self.default = default
        self.total = total
        self.likelihood_calls: list[tuple] = []

    def category_count(self, category) -> int:
        return self.counts.get(category, 0)

    def categories_total(self) -> int:
        return self.total if self.total is not None else sum(self.counts.values())

    def known_categories(self) -> set:
        return set(self.counts)

    def feature_likelihood(self, feature, category):
        self.likelihood_calls.append((feature, category))
        return self.likelihoods.get((feature, category), self.default)


@pytest.fixture
def spam_ham_source() -> StubSource:
    """The spam/ham model: 3 spam and 7 ham observations."""
    return StubSource(
        counts={"spam": 3, "ham": 7},
        likelihoods={
            ("free", "spam"): Decimal("0.8"),
            ("free", "ham"): Decimal("0.1"),
        },
    )


@pytest.fixture
def spam_ham_classifier(spam_ham_source: StubSource) -> BayesClassifier:
    return BayesClassifier(spam_ham_source)


@pytest.fixture
def trained_table() -> FrequencyTable:
    """A small frequency table learned from tokenized messages."""
    table = FrequencyTable()
    table.learn("spam", ["free", "money", "now"])
    table.learn("spam", ["free", "prize", "claim"])
    table.learn("spam", ["cheap", "pills", "now"])
    table.learn("ham", ["meeting", "tomorrow", "agenda"])
    table.learn("ham", ["lunch", "tomorrow"])
    return table


@pytest.fixture
def observations_file(tmp_path):
    """JSON Lines training data mixing feature lists and raw text."""
    path = tmp_path / "observations.jsonl"
    path.write_text(
        '{"category": "spam", "features": ["free", "money", "now"]}\n'
        '{"category": "spam", "text": "Claim your FREE prize now"}\n'
        "\n"
        '{"category": "ham", "features": ["meeting", "tomorrow", "agenda"]}\n'
        '{"category": "ham", "text": "Lunch tomorrow with the team?"}\n',
        encoding="utf-8",
    )
    return path


@pytest.fixture
def make_source():
    """Factory for ad-hoc ``StubSource`` models."""
    return StubSource


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo configure_logging() so log capture works in every test."""
    yield
    logger = logging.getLogger("bayes_classifier")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
