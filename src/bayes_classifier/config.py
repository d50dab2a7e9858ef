"""Runtime settings and logging setup.

Settings come from ``BAYES_*`` environment variables, with a ``.env`` file
in the working directory filling in variables the process does not set.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Optional

from dotenv import dotenv_values
from rich.console import Console
from rich.logging import RichHandler

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class Settings:
    """Configuration shared by the CLI and library entry points.

    Attributes:
        log_level: Root log level for the package loggers.
        precision: Significant digits kept in likelihood products
            (``None`` multiplies exactly).
        smoothing_weight: Weight of the assumed probability when smoothing.
        assumed_probability: Likelihood given to unseen features.
        model_path: Default model file for commands that read a model.
    """

    log_level: str = "WARNING"
    precision: Optional[int] = None
    smoothing_weight: Decimal = Decimal("1")
    assumed_probability: Decimal = Decimal("0.5")
    model_path: Optional[Path] = None

    def __post_init__(self) -> None:
        self.log_level = self.log_level.upper()
        if self.log_level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}, got {self.log_level!r}")
        if self.precision is not None and self.precision < 1:
            raise ValueError(f"precision must be a positive integer, got {self.precision}")
        if not (self.smoothing_weight.is_finite() and self.assumed_probability.is_finite()):
            raise ValueError("smoothing_weight and assumed_probability must be finite")
        if self.smoothing_weight < 0:
            raise ValueError(f"smoothing_weight must be non-negative, got {self.smoothing_weight}")
        if not 0 <= self.assumed_probability <= 1:
            raise ValueError(
                f"assumed_probability must be in [0, 1], got {self.assumed_probability}"
            )

    @classmethod
    def from_env(cls, env_file: str | Path | None = ".env") -> "Settings":
        """Build settings from the environment.

        Values in ``env_file`` (relative to the working directory) fill in
        variables that are not set in the process environment.
        """
        env = {**dotenv_values(env_file), **os.environ} if env_file else dict(os.environ)
        precision = _env(env, "BAYES_PRECISION", int)
        weight = _env(env, "BAYES_SMOOTHING_WEIGHT", _decimal)
        assumed = _env(env, "BAYES_ASSUMED_PROBABILITY", _decimal)
        model_path = env.get("BAYES_MODEL_PATH")
        return cls(
            log_level=env.get("BAYES_LOG_LEVEL") or "WARNING",
            precision=precision,
            smoothing_weight=weight if weight is not None else Decimal("1"),
            assumed_probability=assumed if assumed is not None else Decimal("0.5"),
            model_path=Path(model_path) if model_path else None,
        )


def configure_logging(level: str = "WARNING", console: Optional[Console] = None) -> None:
    """Send ``bayes_classifier`` log records to stderr through rich."""
    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))

    package_logger = logging.getLogger("bayes_classifier")
    for existing in list(package_logger.handlers):
        package_logger.removeHandler(existing)
    package_logger.addHandler(handler)
    package_logger.setLevel(getattr(logging, level.upper()))
    package_logger.propagate = False


def _decimal(raw: str) -> Decimal:
    try:
        return Decimal(raw)
    except InvalidOperation:
        raise ValueError(f"not a decimal number: {raw!r}") from None


def _env(env: dict, name: str, convert):
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return None
    try:
        return convert(raw.strip())
    except ValueError as e:
        raise ValueError(f"Invalid value for {name}: {e}") from None
