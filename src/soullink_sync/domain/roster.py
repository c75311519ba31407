"""Pure edits of linked pairs, players, rules and flags."""

from typing import List, Optional, Sequence, Tuple, Union

from .models import TEAM_CAPACITY, LinkedPair, Member, TrackerDocument, empty_members
from ..core.enums import PairLocation, TrackerFlag
from ..utils.logging_config import get_logger

logger = get_logger('roster')

FAILED_ENCOUNTER_NAME = "Failed Encounter"


def next_pair_id(doc: TrackerDocument) -> int:
    """Ids grow with creation order across team, box and graveyard."""
    ids = [pair.id for pair in doc.team + doc.box + doc.graveyard]
    return max(ids, default=0) + 1


def find_pair(doc: TrackerDocument, pair_id: int) -> Optional[Tuple[PairLocation, int]]:
    """Return (location, position) of a pair, or None."""
    for location in PairLocation:
        for position, pair in enumerate(getattr(doc, location.value)):
            if pair.id == pair_id:
                return location, position
    return None


def _members(doc: TrackerDocument, members: Optional[Sequence[Member]]) -> List[Member]:
    result = [member.model_copy() for member in (members or [])][: doc.player_count]
    result.extend(empty_members(doc.player_count - len(result)))
    return result


def add_pair(
    doc: TrackerDocument,
    location: Union[PairLocation, str],
    route: str = "",
    members: Optional[Sequence[Member]] = None,
) -> TrackerDocument:
    """Append a new pair. A full team rejects the addition."""
    location = PairLocation(location)
    if location is PairLocation.TEAM and len(doc.team) >= TEAM_CAPACITY:
        logger.debug("add_pair rejected: team is full")
        return doc

    updated = doc.model_copy(deep=True)
    pair = LinkedPair(id=next_pair_id(doc), route=route, members=_members(doc, members))
    getattr(updated, location.value).append(pair)
    return updated


def update_route(doc: TrackerDocument, pair_id: int, route: str) -> TrackerDocument:
    found = find_pair(doc, pair_id)
    if found is None:
        return doc
    location, position = found
    updated = doc.model_copy(deep=True)
    getattr(updated, location.value)[position].route = route
    return updated


def update_member(
    doc: TrackerDocument,
    pair_id: int,
    player_index: int,
    name: Optional[str] = None,
    nickname: Optional[str] = None,
) -> TrackerDocument:
    """Edit one player's Pokémon in a pair, e.g. after an evolution."""
    found = find_pair(doc, pair_id)
    if found is None or not 0 <= player_index < doc.player_count:
        return doc
    location, position = found
    updated = doc.model_copy(deep=True)
    member = getattr(updated, location.value)[position].members[player_index]
    if name is not None:
        member.name = name
    if nickname is not None:
        member.nickname = nickname
    return updated


def move_pair(
    doc: TrackerDocument, pair_id: int, target: Union[PairLocation, str]
) -> TrackerDocument:
    """Swap a pair between team and box. The graveyard is one-way."""
    target = PairLocation(target)
    found = find_pair(doc, pair_id)
    if found is None or target is PairLocation.GRAVEYARD:
        return doc
    location, position = found
    if location is PairLocation.GRAVEYARD or location is target:
        return doc
    if target is PairLocation.TEAM and len(doc.team) >= TEAM_CAPACITY:
        logger.debug(f"move_pair rejected: team is full (pair {pair_id})")
        return doc

    updated = doc.model_copy(deep=True)
    pair = getattr(updated, location.value).pop(position)
    getattr(updated, target.value).append(pair)
    return updated


def remove_pair(doc: TrackerDocument, pair_id: int) -> TrackerDocument:
    """Delete a pair outright (entered by mistake); no death is counted."""
    found = find_pair(doc, pair_id)
    if found is None:
        return doc
    location, position = found
    updated = doc.model_copy(deep=True)
    del getattr(updated, location.value)[position]
    return updated


def add_manual_loss(
    doc: TrackerDocument,
    route: str,
    names: Optional[Sequence[str]] = None,
    culprit_index: int = 0,
) -> TrackerDocument:
    """Record an encounter that was lost before it joined the team."""
    route = route.strip()
    if not route or not 0 <= culprit_index < doc.player_count:
        return doc

    names = list(names or [])
    members = [
        Member(
            name=(names[i].strip() if i < len(names) and names[i] else "") or FAILED_ENCOUNTER_NAME,
            nickname="",
        )
        for i in range(doc.player_count)
    ]
    updated = doc.model_copy(deep=True)
    updated.graveyard.append(LinkedPair(id=next_pair_id(doc), route=route, members=members))
    updated.stats.deaths[culprit_index] += 1
    return updated


def rename_player(doc: TrackerDocument, index: int, name: str) -> TrackerDocument:
    """Rename a player. The number of players never changes."""
    name = name.strip()
    if not name or not 0 <= index < doc.player_count:
        return doc
    updated = doc.model_copy(deep=True)
    updated.players[index] = name
    return updated


def set_rules(doc: TrackerDocument, rules: Sequence[str], ruleset_id: Optional[str] = None) -> TrackerDocument:
    updated = doc.model_copy(deep=True)
    updated.rules = [rule.strip() for rule in rules if rule.strip()]
    if ruleset_id is not None:
        updated.ruleset_id = ruleset_id
    return updated


def set_flag(doc: TrackerDocument, flag: Union[TrackerFlag, str], value: bool) -> TrackerDocument:
    flag = TrackerFlag(flag)
    updated = doc.model_copy(deep=True)
    setattr(updated, flag.value, bool(value))
    return updated
