"""Value types for the replicated tracker document.

The wire format uses the camelCase keys written by the web client
(``playerNames``, ``levelCaps``, ``sumDeaths`` ...). Python code uses the
snake_case attribute names; ``to_payload()`` produces the wire form.
"""

from typing import Any, Dict, Iterable, List, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

MIN_PLAYERS = 1
MAX_PLAYERS = 3
TEAM_CAPACITY = 6

# Level caps with an id of 9 or more are Elite Four / Champion fights
GYM_BADGE_COUNT = 8
ELITE_FOUR_FIRST_ID = 9


class DocumentModel(BaseModel):
    """Base model with camelCase wire aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Member(DocumentModel):
    """One player's Pokémon inside a linked pair."""

    name: str = ""
    nickname: str = ""

    @property
    def is_empty(self) -> bool:
        return not self.name and not self.nickname


class LinkedPair(DocumentModel):
    """A soul link: one Pokémon per player, caught on the same route."""

    id: int
    route: str = ""
    members: List[Member] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        """A hole: nothing entered yet. Kept so the UI can render the slot."""
        return not self.route and all(member.is_empty for member in self.members)


class RivalOptions(DocumentModel):
    male: str
    female: str


class VariableRival(DocumentModel):
    """Rival whose identity depends on the chosen player character."""

    name: str
    key: str
    options: RivalOptions


class Milestone(DocumentModel):
    """A fight that can be marked as completed."""

    id: int
    level: str = ""
    done: bool = False

    @property
    def label(self) -> str:
        return str(self.id)


class LevelCap(Milestone):
    """Gym, Elite Four or Champion milestone."""

    arena: str = ""

    @property
    def label(self) -> str:
        return self.arena


class RivalCap(Milestone):
    """Rival fight milestone. ``revealed`` only ever goes from False to True."""

    location: str = ""
    rival: Union[str, VariableRival] = ""
    revealed: bool = False

    @property
    def label(self) -> str:
        return self.location


class Stats(DocumentModel):
    """Run statistics. Per-player lists are indexed like ``players``."""

    runs: int = 1
    best: int = 0
    top4_items: List[int] = Field(default_factory=list)
    deaths: List[int] = Field(default_factory=list)
    sum_deaths: List[int] = Field(default_factory=list)
    legendary_encounters: int = 0


class TrackerDocument(DocumentModel):
    """The single replicated aggregate describing one challenge run."""

    players: List[str] = Field(default_factory=list, alias="playerNames")
    team: List[LinkedPair] = Field(default_factory=list)
    box: List[LinkedPair] = Field(default_factory=list)
    graveyard: List[LinkedPair] = Field(default_factory=list)
    rules: List[str] = Field(default_factory=list)
    ruleset_id: str = ""
    level_caps: List[LevelCap] = Field(default_factory=list)
    rival_caps: List[RivalCap] = Field(default_factory=list)
    stats: Stats = Field(default_factory=Stats)
    legendary_tracker_enabled: bool = True
    rival_censor_enabled: bool = True
    hardcore_mode_enabled: bool = True
    run_started_at: int = 0

    @property
    def player_count(self) -> int:
        return len(self.players)

    def to_payload(self) -> Dict[str, Any]:
        """Serialize to the JSON wire format."""
        return self.model_dump(by_alias=True, mode="json")


def empty_members(player_count: int) -> List[Member]:
    return [Member() for _ in range(player_count)]


def filled_pairs(pairs: Iterable[LinkedPair]) -> List[LinkedPair]:
    """Pairs that are not holes."""
    return [pair for pair in pairs if not pair.is_empty]
