"""
Schema coercion for tracker documents arriving from outside the process.

``coerce`` is the only way an external payload (remote snapshot, push
notification, persisted copy) becomes a ``TrackerDocument``. It never raises:
every field that is missing or has the wrong type is replaced by the matching
field of the last known good document.
"""

import math
from typing import Any, List, Mapping, Optional, Sequence

from .models import (
    MAX_PLAYERS,
    TEAM_CAPACITY,
    LevelCap,
    LinkedPair,
    Member,
    RivalCap,
    RivalOptions,
    Stats,
    TrackerDocument,
    VariableRival,
    empty_members,
)
from ..utils.logging_config import get_logger

logger = get_logger('sanitizer')

LEGACY_PLAYER_KEYS = ("player1", "player2", "player3")
LEGACY_PLAYER_NAME_KEYS = ("player1Name", "player2Name", "player3Name")


def _is_number(value: Any) -> bool:
    """Strict numeric check: bools and NaN/inf are not numbers."""
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, float) and math.isfinite(value)


def _coerce_int(value: Any, fallback: int) -> int:
    return int(value) if _is_number(value) else fallback


def _coerce_str(value: Any, fallback: str) -> str:
    return value if isinstance(value, str) else fallback


def _coerce_bool(raw: Mapping, key: str, fallback: bool) -> bool:
    return bool(raw[key]) if key in raw else fallback


def _coerce_level(value: Any, fallback: str) -> str:
    """Level caps are display strings like "14/12"; plain numbers are accepted."""
    if isinstance(value, str):
        return value
    if _is_number(value):
        try:
            return str(int(value))
        except ValueError:
            # Beyond the interpreter's int-to-str digit limit
            return fallback
    return fallback


def _resize(values: Sequence[int], count: int) -> List[int]:
    resized = list(values[:count])
    resized.extend([0] * (count - len(resized)))
    return resized


def _coerce_players(raw: Mapping, fallback: List[str]) -> List[str]:
    value = raw.get("playerNames")
    if value is None and any(key in raw for key in LEGACY_PLAYER_NAME_KEYS):
        logger.debug("Migrating legacy playerXName keys")
        value = [raw[key] for key in LEGACY_PLAYER_NAME_KEYS if key in raw]

    if not isinstance(value, list) or not value:
        return list(fallback)

    names = []
    for index, name in enumerate(value[:MAX_PLAYERS]):
        if isinstance(name, str):
            names.append(name)
        else:
            names.append(fallback[index] if index < len(fallback) else "")
    return names


def _coerce_member(value: Any) -> Member:
    if not isinstance(value, Mapping):
        return Member()
    return Member(
        name=_coerce_str(value.get("name"), ""),
        nickname=_coerce_str(value.get("nickname"), ""),
    )


def _coerce_members(raw_pair: Mapping, player_count: int) -> List[Member]:
    value = raw_pair.get("members")
    if value is None and any(key in raw_pair for key in LEGACY_PLAYER_KEYS):
        value = [raw_pair.get(key) for key in LEGACY_PLAYER_KEYS[:player_count]]
    if not isinstance(value, list):
        return empty_members(player_count)

    members = [_coerce_member(member) for member in value[:player_count]]
    members.extend(empty_members(player_count - len(members)))
    return members


def _resize_pair(pair: LinkedPair, player_count: int) -> LinkedPair:
    members = [member.model_copy() for member in pair.members[:player_count]]
    members.extend(empty_members(player_count - len(members)))
    return LinkedPair(id=pair.id, route=pair.route, members=members)


def _valid_pair_id(value: Any) -> Optional[int]:
    if not _is_number(value):
        return None
    if isinstance(value, int):
        # Arbitrarily large JSON integers do not fit in a float
        return value
    return int(value) if value.is_integer() else None


def _coerce_pairs(value: Any, fallback: List[LinkedPair], player_count: int) -> List[LinkedPair]:
    if not isinstance(value, list):
        return [_resize_pair(pair, player_count) for pair in fallback]

    raw_ids = [
        _valid_pair_id(item.get("id")) if isinstance(item, Mapping) else None
        for item in value
    ]
    next_id = max((pair_id for pair_id in raw_ids if pair_id is not None), default=0) + 1

    pairs = []
    used_ids = set()
    for item, pair_id in zip(value, raw_ids):
        # Missing or duplicated ids get fresh ones above every valid id
        if pair_id is None or pair_id in used_ids:
            pair_id = next_id
            next_id += 1
        used_ids.add(pair_id)

        if isinstance(item, Mapping):
            pairs.append(
                LinkedPair(
                    id=pair_id,
                    route=_coerce_str(item.get("route"), ""),
                    members=_coerce_members(item, player_count),
                )
            )
        else:
            pairs.append(LinkedPair(id=pair_id, members=empty_members(player_count)))
    return pairs


def _coerce_rival(value: Any, fallback: Any) -> Any:
    if isinstance(value, str):
        return value
    if isinstance(value, Mapping):
        options = value.get("options")
        if (
            isinstance(value.get("name"), str)
            and isinstance(value.get("key"), str)
            and isinstance(options, Mapping)
            and isinstance(options.get("male"), str)
            and isinstance(options.get("female"), str)
        ):
            return VariableRival(
                name=value["name"],
                key=value["key"],
                options=RivalOptions(male=options["male"], female=options["female"]),
            )
    return fallback.model_copy() if isinstance(fallback, VariableRival) else fallback


def _coerce_level_caps(value: Any, fallback: List[LevelCap]) -> List[LevelCap]:
    if not isinstance(value, list):
        return [cap.model_copy() for cap in fallback]

    caps = []
    for index, item in enumerate(value):
        base = fallback[index] if index < len(fallback) else LevelCap(id=index + 1)
        if not isinstance(item, Mapping):
            caps.append(base.model_copy())
            continue
        caps.append(
            LevelCap(
                id=_coerce_int(item.get("id"), base.id),
                arena=_coerce_str(item.get("arena"), base.arena),
                level=_coerce_level(item.get("level"), base.level),
                done=_coerce_bool(item, "done", base.done),
            )
        )
    return caps


def _coerce_rival_caps(value: Any, fallback: List[RivalCap]) -> List[RivalCap]:
    if not isinstance(value, list):
        return [cap.model_copy(deep=True) for cap in fallback]

    caps = []
    for index, item in enumerate(value):
        base = fallback[index] if index < len(fallback) else RivalCap(id=index + 1)
        if not isinstance(item, Mapping):
            caps.append(base.model_copy(deep=True))
            continue
        caps.append(
            RivalCap(
                id=_coerce_int(item.get("id"), base.id),
                location=_coerce_str(item.get("location"), base.location),
                rival=_coerce_rival(item.get("rival"), base.rival),
                level=_coerce_level(item.get("level"), base.level),
                done=_coerce_bool(item, "done", base.done),
                revealed=_coerce_bool(item, "revealed", base.revealed),
            )
        )
    return caps


def _coerce_player_values(value: Any, fallback: List[int], player_count: int) -> List[int]:
    """Per-player counters, aligned to ``player_count`` entries."""
    if isinstance(value, Mapping):
        # Legacy two-player format: {"player1": 3, "player2": 1}
        value = [value.get(key) for key in LEGACY_PLAYER_KEYS[:player_count]]
    if not isinstance(value, list):
        return _resize(fallback, player_count)

    values = []
    for index, item in enumerate(value[:player_count]):
        values.append(_coerce_int(item, fallback[index] if index < len(fallback) else 0))
    return _resize(values, player_count)


def _coerce_stats(value: Any, fallback: Stats, player_count: int) -> Stats:
    if not isinstance(value, Mapping):
        value = {}
    return Stats(
        runs=_coerce_int(value.get("runs"), fallback.runs),
        best=_coerce_int(value.get("best"), fallback.best),
        top4_items=_coerce_player_values(value.get("top4Items"), fallback.top4_items, player_count),
        deaths=_coerce_player_values(value.get("deaths"), fallback.deaths, player_count),
        sum_deaths=_coerce_player_values(value.get("sumDeaths"), fallback.sum_deaths, player_count),
        legendary_encounters=_coerce_int(
            value.get("legendaryEncounters"), fallback.legendary_encounters
        ),
    )


def _coerce_rules(value: Any, fallback: List[str]) -> List[str]:
    if not isinstance(value, list):
        return list(fallback)
    return [rule if isinstance(rule, str) else "" for rule in value]


def coerce(raw: Any, fallback: TrackerDocument) -> TrackerDocument:
    """
    Repair an arbitrary external value into a valid tracker document.

    Args:
        raw: Decoded JSON of unknown shape (may be None)
        fallback: Last known good document supplying every missing field

    Returns:
        A structurally valid TrackerDocument. Idempotent:
        ``coerce(coerce(x, f), f) == coerce(x, f)``.
    """
    if isinstance(raw, TrackerDocument):
        raw = raw.to_payload()
    if not isinstance(raw, Mapping):
        if raw is not None:
            logger.debug(f"Replacing non-object payload of type {type(raw).__name__} with fallback")
        return fallback.model_copy(deep=True)

    players = _coerce_players(raw, fallback.players)
    player_count = len(players)

    return TrackerDocument(
        players=players,
        team=_coerce_pairs(raw.get("team"), fallback.team, player_count)[:TEAM_CAPACITY],
        box=_coerce_pairs(raw.get("box"), fallback.box, player_count),
        graveyard=_coerce_pairs(raw.get("graveyard"), fallback.graveyard, player_count),
        rules=_coerce_rules(raw.get("rules"), fallback.rules),
        ruleset_id=_coerce_str(raw.get("rulesetId"), fallback.ruleset_id),
        level_caps=_coerce_level_caps(raw.get("levelCaps"), fallback.level_caps),
        rival_caps=_coerce_rival_caps(raw.get("rivalCaps"), fallback.rival_caps),
        stats=_coerce_stats(raw.get("stats"), fallback.stats, player_count),
        legendary_tracker_enabled=_coerce_bool(
            raw, "legendaryTrackerEnabled", fallback.legendary_tracker_enabled
        ),
        rival_censor_enabled=_coerce_bool(raw, "rivalCensorEnabled", fallback.rival_censor_enabled),
        hardcore_mode_enabled=_coerce_bool(
            raw, "hardcoreModeEnabled", fallback.hardcore_mode_enabled
        ),
        run_started_at=_coerce_int(raw.get("runStartedAt"), fallback.run_started_at),
    )
