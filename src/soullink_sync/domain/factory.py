"""Creation of new tracker documents from templates."""

import time
from typing import List, Optional, Sequence

from .models import MAX_PLAYERS, Stats, TrackerDocument
from ..data.game_versions import GameVersion, get_game_version
from ..data.rulesets import Ruleset, get_ruleset

DEFAULT_PLAYER_NAMES = ("Player 1", "Player 2")


def now_millis() -> int:
    return int(time.time() * 1000)


def sanitize_player_names(names: Optional[Sequence[str]]) -> List[str]:
    """Trim names, keep at most three, and drop non-strings."""
    if not names:
        return []
    return [name.strip() if isinstance(name, str) else "" for name in list(names)[:MAX_PLAYERS]]


def sanitize_rules(rules: Optional[Sequence[str]]) -> List[str]:
    """Trimmed non-empty rule strings."""
    if not rules:
        return []
    return [rule.strip() for rule in rules if isinstance(rule, str) and rule.strip()]


def fresh_stats(player_count: int) -> Stats:
    return Stats(
        runs=1,
        best=0,
        top4_items=[0] * player_count,
        deaths=[0] * player_count,
        sum_deaths=[0] * player_count,
        legendary_encounters=0,
    )


def create_tracker_document(
    game_version: Optional[GameVersion] = None,
    player_names: Optional[Sequence[str]] = None,
    ruleset: Optional[Ruleset] = None,
    now: Optional[int] = None,
) -> TrackerDocument:
    """
    Build a brand-new tracker document.

    Args:
        game_version: Template supplying level cap and rival milestones
        player_names: One to three player names
        ruleset: Ruleset supplying the initial rules text
        now: Run start timestamp in epoch milliseconds

    Raises:
        ValueError: If no player names are given
    """
    players = sanitize_player_names(player_names)
    if not players:
        raise ValueError("A tracker needs at least one player")

    game_version = game_version or get_game_version(None)
    ruleset = ruleset or get_ruleset(None)
    rules = sanitize_rules(ruleset.rules) or list(get_ruleset(None).rules)

    return TrackerDocument(
        players=players,
        rules=rules,
        ruleset_id=ruleset.id,
        level_caps=[
            cap.model_copy(update={"done": False}) for cap in game_version.level_caps
        ],
        rival_caps=[
            cap.model_copy(deep=True, update={"done": False, "revealed": False})
            for cap in game_version.rival_caps
        ],
        stats=fresh_stats(len(players)),
        run_started_at=now if now is not None else now_millis(),
    )


def default_document(game_version_id: Optional[str] = None) -> TrackerDocument:
    """Document seeded when a tracker has no remote state yet."""
    return create_tracker_document(
        game_version=get_game_version(game_version_id),
        player_names=DEFAULT_PLAYER_NAMES,
    )
