"""
Game rule configuration and validation.
"""

from pydantic import BaseModel, Field, field_validator

from .constants import MAX_ROOM_SIZE, MIN_ROOM_SIZE, ValueSet, get_variant


class RuleConfig(BaseModel):
    """Configuration for game rules and timings."""

    variant: str = Field(
        default="menteur",
        description="Card set in use: 'menteur' (7 values + jokers) or 'rank' (52 cards)"
    )
    min_players: int = Field(
        default=MIN_ROOM_SIZE,
        ge=MIN_ROOM_SIZE,
        le=MAX_ROOM_SIZE,
        description="Minimum number of players required to start"
    )
    max_players: int = Field(
        default=MAX_ROOM_SIZE,
        ge=MIN_ROOM_SIZE,
        le=MAX_ROOM_SIZE,
        description="Maximum number of players allowed in a room"
    )
    default_room_size: int = Field(
        default=4,
        ge=MIN_ROOM_SIZE,
        le=MAX_ROOM_SIZE,
        description="Room capacity used when the creator does not pick one"
    )
    max_ai_players: int = Field(
        default=5,
        ge=1,
        le=MAX_ROOM_SIZE - 1,
        description="Maximum number of AI opponents in a local game"
    )
    challenge_delay: float = Field(
        default=3.0,
        ge=0,
        le=30,
        description="Seconds the revealed cards stay on the table before the pile moves"
    )
    ai_think_delay: float = Field(
        default=1.5,
        ge=0,
        le=30,
        description="Seconds an AI player 'thinks' before acting"
    )
    ai_challenge_probability: float = Field(
        default=0.3,
        ge=0,
        le=1,
        description="Chance an AI calls liar on the previous claim instead of playing"
    )
    ai_max_cards: int = Field(
        default=2,
        ge=1,
        le=4,
        description="Largest number of cards an AI puts down in one play"
    )
    enforce_progression: bool = Field(
        default=True,
        description="Reject claims that are not the next value of the cycle"
    )

    @field_validator('variant')
    @classmethod
    def validate_variant(cls, v):
        """Make sure the variant names a known value set."""
        get_variant(v)
        return v

    @field_validator('max_players')
    @classmethod
    def validate_max_players(cls, v, info):
        """Validate maximum players doesn't go below minimum."""
        min_players = info.data.get('min_players', MIN_ROOM_SIZE)
        if v < min_players:
            raise ValueError(f'max_players ({v}) must be >= min_players ({min_players})')
        return v

    @property
    def value_set(self) -> ValueSet:
        return get_variant(self.variant)

    def clamp_room_size(self, requested) -> int:
        """Clamp a requested capacity into [min_players, max_players]."""
        if not requested:
            requested = self.default_room_size
        return min(max(int(requested), self.min_players), self.max_players)

    def validate_player_count(self, player_count: int) -> bool:
        """Check if a player count is valid for this configuration."""
        return self.min_players <= player_count <= self.max_players


# Default configuration instance
default_rules = RuleConfig()


def create_rules(**overrides) -> RuleConfig:
    """Create a RuleConfig with optional overrides."""
    config_dict = default_rules.model_dump()
    config_dict.update(overrides)
    return RuleConfig(**config_dict)
