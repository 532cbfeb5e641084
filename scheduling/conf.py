"""
Scheduling engine settings.

Responsibilities:
  - Typed policy configuration using pydantic-settings
  - Validate SCHEDULING_* environment variables at startup

Infrastructure settings (database, cache, logging) stay in the Django
settings module; this covers only the rules of the engine itself.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from scheduling.domain import TallyPolicy, TieBreak


class SchedulingSettings(BaseSettings):
    """
    Engine settings loaded from environment variables.

    Attributes:
        min_votes_to_finalize: Votes required before finalize may pick a winner (default: 1)
        tie_break: Ordering for equal vote counts, earliest_start or creation_order
        allow_reopen: Allow organizers to move scheduled events back to draft (default: False)
        candidates_cache_seconds: TTL of the cached candidate listing (default: 30)
    """

    min_votes_to_finalize: int = Field(default=1, ge=0)
    tie_break: TieBreak = TieBreak.EARLIEST_START
    allow_reopen: bool = False
    candidates_cache_seconds: int = Field(default=30, ge=0)

    model_config = SettingsConfigDict(
        env_prefix="SCHEDULING_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def tally_policy(self) -> TallyPolicy:
        return TallyPolicy(min_votes=self.min_votes_to_finalize, tie_break=self.tie_break)


@lru_cache
def get_scheduling_settings() -> SchedulingSettings:
    """Get singleton SchedulingSettings instance."""
    return SchedulingSettings()
