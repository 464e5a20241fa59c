"""Match configuration and outcome calibration tables.

All tuning constants are hot-reloadable from the `match` section of
rules.json. Bad values fail fast with InvalidConfigError before a match
is created.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from footsim.errors import InvalidConfigError

logger = logging.getLogger(__name__)

DEFAULT_RULES_PATH = Path(__file__).resolve().parents[3] / "config" / "rules.json"


class SubstitutionStrategy(str, Enum):
    """Closed set of bundled substitution policies."""
    DEFAULT = "default"
    AGGRESSIVE = "aggressive"
    CONSERVATIVE = "conservative"


class Calibration(BaseModel):
    """Per-minute base rates for the outcome resolver.

    Rates are for a perfectly balanced contest (attack share 0.5) and are
    scaled by the actual attack share, discipline, and fitness each minute.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    base_shot: float = Field(default=0.26, ge=0.0, le=1.0)
    base_goal: float = Field(default=0.032, ge=0.0, le=1.0)
    goal_ceiling: float = Field(default=0.06, ge=0.0, le=1.0, description="Hard per-minute goal cap")
    on_target_rate: float = Field(default=0.42, ge=0.0, le=1.0)
    assist_rate: float = Field(default=0.75, ge=0.0, le=1.0)
    base_foul: float = Field(default=0.22, ge=0.0, le=1.0)
    base_yellow: float = Field(default=0.16, ge=0.0, le=1.0, description="Booking chance per foul")
    base_red: float = Field(default=0.012, ge=0.0, le=1.0, description="Straight red chance per foul")
    base_injury: float = Field(default=0.004, ge=0.0, le=1.0)
    base_turnover: float = Field(default=0.34, ge=0.0, le=1.0)

    @classmethod
    def preset(cls, name: str) -> "Calibration":
        try:
            return CALIBRATION_PRESETS[name]
        except KeyError:
            known = ", ".join(sorted(CALIBRATION_PRESETS))
            raise ValueError(f"Unknown calibration preset {name!r} (known: {known})") from None


CALIBRATION_PRESETS: dict[str, Calibration] = {
    "default": Calibration(),
    # Open, end-to-end football: more chances, more fouls, fewer quiet minutes
    "aggressive": Calibration(
        base_shot=0.32, base_goal=0.038, goal_ceiling=0.07,
        base_foul=0.27, base_yellow=0.19, base_red=0.016, base_turnover=0.40,
    ),
    # Cagey, low-event football
    "conservative": Calibration(
        base_shot=0.20, base_goal=0.024, goal_ceiling=0.05,
        base_foul=0.18, base_yellow=0.13, base_red=0.008, base_turnover=0.28,
    ),
}


class MatchConfig(BaseModel):
    """Recognized match options. Unknown keys are rejected."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    regulation_minutes: int = 90
    added_time_range: tuple[int, int] = (0, 5)  # drawn per period
    max_substitutions: int = 3
    home_advantage_factor: float = 0.05
    fatigue_floor: float = 0.45
    extra_time: bool = False
    extra_time_minutes: int = 30
    substitution_strategy: SubstitutionStrategy = SubstitutionStrategy.DEFAULT
    calibration: Calibration = Field(default_factory=Calibration)

    @field_validator("calibration", mode="before")
    @classmethod
    def calibration_from_preset(cls, v: Any) -> Any:
        if isinstance(v, str):
            return Calibration.preset(v)
        return v

    @property
    def max_added_time(self) -> int:
        """Upper bound on stoppage time across both halves."""
        return 2 * self.added_time_range[1]

    @property
    def max_match_minutes(self) -> int:
        """Upper bound on minute ticks for any match under this config."""
        total = self.regulation_minutes + self.max_added_time
        if self.extra_time:
            total += self.extra_time_minutes
        return total

    def check(self) -> None:
        """Raise InvalidConfigError if any option is out of range."""
        if self.regulation_minutes <= 0:
            raise InvalidConfigError(
                f"regulation_minutes must be positive, got {self.regulation_minutes}"
            )
        low, high = self.added_time_range
        if low < 0 or high < low:
            raise InvalidConfigError(
                f"added_time_range must satisfy 0 <= low <= high, got {self.added_time_range}"
            )
        if self.max_substitutions < 0:
            raise InvalidConfigError(
                f"max_substitutions must be >= 0, got {self.max_substitutions}"
            )
        if not -1.0 < self.home_advantage_factor < 1.0:
            raise InvalidConfigError(
                f"home_advantage_factor must be in (-1, 1), got {self.home_advantage_factor}"
            )
        if not 0.0 <= self.fatigue_floor <= 1.0:
            raise InvalidConfigError(
                f"fatigue_floor must be in [0, 1], got {self.fatigue_floor}"
            )
        if self.extra_time and self.extra_time_minutes <= 0:
            raise InvalidConfigError(
                f"extra_time_minutes must be positive, got {self.extra_time_minutes}"
            )


def coerce_config(config: MatchConfig | Mapping[str, Any] | None) -> MatchConfig:
    """Build and check a MatchConfig from None, a mapping, or an instance."""
    if config is None:
        result = MatchConfig()
    elif isinstance(config, MatchConfig):
        result = config
    elif isinstance(config, Mapping):
        try:
            result = MatchConfig.model_validate(dict(config))
        except ValidationError as exc:
            raise InvalidConfigError(f"Invalid match config: {exc}") from exc
    else:
        raise InvalidConfigError(
            f"config must be a MatchConfig or mapping, got {type(config).__name__}"
        )
    result.check()
    return result


def load_config(rules_path: str | Path | None = None) -> MatchConfig:
    """Load the `match` section of rules.json into a checked MatchConfig.

    A missing file is not an error: defaults are used and a warning logged.
    """
    path = Path(rules_path) if rules_path is not None else DEFAULT_RULES_PATH
    if not path.exists():
        logger.warning(f"Rules file not found: {path}, using defaults")
        return coerce_config(None)

    with open(path) as f:
        try:
            rules = json.load(f)
        except json.JSONDecodeError as exc:
            raise InvalidConfigError(f"Rules file {path} is not valid JSON: {exc}") from exc

    match_rules = rules.get("match", {})
    logger.debug(f"Loaded match rules from {path}: {sorted(match_rules)}")
    return coerce_config(match_rules)
