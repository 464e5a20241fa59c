"""Player model — the immutable rated input to every simulated match.

Each player carries four 1-100 ratings:
- attack: chance creation and finishing
- defense: tackling, positioning, goalkeeping
- stamina: how slowly fitness decays over the match
- discipline: how rarely the player fouls or gets booked

Position category only changes how much attack/defense counts toward the
team aggregate. There are no formations or pitch coordinates.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

RATING_MIN = 1
RATING_MAX = 100


class PositionCategory(str, Enum):
    """Coarse position groups used for rating weights and bench matching."""
    GOALKEEPER = "GK"
    DEFENDER = "DEF"
    MIDFIELDER = "MID"
    FORWARD = "FWD"


# Contribution of each rating to the team aggregate, by position category.
# Forwards drive attack, defenders and goalkeepers hold the back line.
ATTACK_WEIGHTS: dict[PositionCategory, float] = {
    PositionCategory.GOALKEEPER: 0.1,
    PositionCategory.DEFENDER: 0.5,
    PositionCategory.MIDFIELDER: 1.0,
    PositionCategory.FORWARD: 1.5,
}
DEFENSE_WEIGHTS: dict[PositionCategory, float] = {
    PositionCategory.GOALKEEPER: 1.5,
    PositionCategory.DEFENDER: 1.3,
    PositionCategory.MIDFIELDER: 0.8,
    PositionCategory.FORWARD: 0.3,
}

# Relative likelihood of committing a foul, before discipline is applied
FOUL_WEIGHTS: dict[PositionCategory, float] = {
    PositionCategory.GOALKEEPER: 0.2,
    PositionCategory.DEFENDER: 1.3,
    PositionCategory.MIDFIELDER: 1.1,
    PositionCategory.FORWARD: 0.7,
}


class Player(BaseModel):
    """A rated footballer. Frozen: ratings never change during a match."""

    model_config = ConfigDict(frozen=True)

    player_id: str = Field(min_length=1, description="Unique id, referenced by every event")
    name: str = Field(default="", description="Display name")
    position: PositionCategory = Field(default=PositionCategory.MIDFIELDER)
    attack: int = Field(default=50, ge=RATING_MIN, le=RATING_MAX)
    defense: int = Field(default=50, ge=RATING_MIN, le=RATING_MAX)
    stamina: int = Field(default=50, ge=RATING_MIN, le=RATING_MAX, description="Higher = slower fitness decay")
    discipline: int = Field(default=50, ge=RATING_MIN, le=RATING_MAX, description="Higher = fewer fouls/cards")

    @property
    def display_name(self) -> str:
        return self.name or self.player_id

    @property
    def is_goalkeeper(self) -> bool:
        return self.position == PositionCategory.GOALKEEPER

    @property
    def attack_contribution(self) -> float:
        """Attack rating weighted by position category."""
        return self.attack * ATTACK_WEIGHTS[self.position]

    @property
    def defense_contribution(self) -> float:
        """Defense rating weighted by position category."""
        return self.defense * DEFENSE_WEIGHTS[self.position]

    @property
    def overall(self) -> float:
        """Single rating used to rank players within their category.

        Goalkeepers and defenders are judged on defense, forwards on
        attack, midfielders on the average of both.
        """
        if self.position in (PositionCategory.GOALKEEPER, PositionCategory.DEFENDER):
            return float(self.defense)
        if self.position == PositionCategory.FORWARD:
            return float(self.attack)
        return (self.attack + self.defense) / 2.0

    @property
    def fitness_decay_multiplier(self) -> float:
        """Per-minute decay scale: 1.5× at stamina 1, 0.5× at stamina 100."""
        return 1.5 - self.stamina / RATING_MAX

    @property
    def foul_propensity(self) -> float:
        """Relative foul likelihood; inverted discipline times position weight."""
        return (RATING_MAX + 1 - self.discipline) * FOUL_WEIGHTS[self.position]
