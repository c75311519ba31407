"""
Pure progression rules for tracker documents.

Every function takes a document and returns a document without side effects.
Rejected operations (out-of-order milestone toggles, unknown pairs, invalid
player indexes) return the very same document object so callers can detect
the no-op with an identity check.
"""

from typing import List, Optional, Sequence, Union

from .factory import create_tracker_document, now_millis
from .models import (
    ELITE_FOUR_FIRST_ID,
    GYM_BADGE_COUNT,
    LinkedPair,
    Milestone,
    TrackerDocument,
)
from ..core.enums import PlayerStat, ResetMode
from ..data.game_versions import GameVersion
from ..data.rulesets import Ruleset
from ..utils.logging_config import get_logger

logger = get_logger('progression')


def first_not_done(caps: Sequence[Milestone]) -> Optional[int]:
    """Index of the current milestone, or None when everything is done."""
    for index, cap in enumerate(caps):
        if not cap.done:
            return index
    return None


def last_done(caps: Sequence[Milestone]) -> Optional[int]:
    for index in range(len(caps) - 1, -1, -1):
        if caps[index].done:
            return index
    return None


def can_toggle_milestone(caps: Sequence[Milestone], index: int) -> bool:
    """
    Check the contiguous done-prefix rule.

    A milestone may only be marked done if it is the first not-done one, and
    only be un-marked if it is the last done one.
    """
    if not 0 <= index < len(caps):
        return False
    if caps[index].done:
        return last_done(caps) == index
    return first_not_done(caps) == index


def _toggle(doc: TrackerDocument, attribute: str, index: int) -> TrackerDocument:
    if not can_toggle_milestone(getattr(doc, attribute), index):
        logger.debug(f"Rejected out-of-order toggle of {attribute}[{index}]")
        return doc

    updated = doc.model_copy(deep=True)
    cap = getattr(updated, attribute)[index]
    cap.done = not cap.done
    return ratchet_best(updated)


def toggle_level_cap(doc: TrackerDocument, index: int) -> TrackerDocument:
    return _toggle(doc, "level_caps", index)


def toggle_rival_cap(doc: TrackerDocument, index: int) -> TrackerDocument:
    return _toggle(doc, "rival_caps", index)


def can_reveal_rival(doc: TrackerDocument, index: int) -> bool:
    """With the rival censor on, only the first unrevealed rival can be revealed."""
    if not 0 <= index < len(doc.rival_caps):
        return False
    if doc.rival_caps[index].revealed:
        return False
    if not doc.rival_censor_enabled:
        return True
    first_hidden = next(
        (i for i, cap in enumerate(doc.rival_caps) if not cap.revealed), None
    )
    return first_hidden == index


def reveal_rival(doc: TrackerDocument, index: int) -> TrackerDocument:
    if not can_reveal_rival(doc, index):
        return doc
    updated = doc.model_copy(deep=True)
    updated.rival_caps[index].revealed = True
    return updated


def compute_best(doc: TrackerDocument) -> int:
    """Number of gym badges earned in the current run."""
    return sum(
        1
        for cap in doc.level_caps[:GYM_BADGE_COUNT]
        if cap.done and cap.id < ELITE_FOUR_FIRST_ID
    )


def ratchet_best(doc: TrackerDocument) -> TrackerDocument:
    """Raise ``stats.best`` to the current badge count; never lowers it."""
    best = compute_best(doc)
    if best <= doc.stats.best:
        return doc
    updated = doc.model_copy(deep=True)
    updated.stats.best = best
    return updated


def reset_run(
    doc: TrackerDocument,
    mode: Union[ResetMode, str],
    template: Optional[GameVersion] = None,
    ruleset: Optional[Ruleset] = None,
    now: Optional[int] = None,
) -> TrackerDocument:
    """
    Start over.

    Args:
        doc: Current document
        mode: ``full`` creates a fresh document; ``current`` starts the next
              run keeping rules, flags and best; ``legendaryOnly`` only clears
              the legendary encounter counter
        template: Game version for a full reset (defaults to the document's
                  own milestones)
        ruleset: Ruleset for a full reset (defaults to the default ruleset)
        now: New run start timestamp in epoch milliseconds
    """
    mode = ResetMode(mode)
    started_at = now if now is not None else now_millis()

    if mode is ResetMode.FULL:
        if template is None:
            template = GameVersion(
                id="", name="", level_caps=doc.level_caps, rival_caps=doc.rival_caps
            )
        return create_tracker_document(template, doc.players, ruleset, started_at)

    updated = doc.model_copy(deep=True)

    if mode is ResetMode.LEGENDARY_ONLY:
        updated.stats.legendary_encounters = 0
        return updated

    for cap in updated.level_caps:
        cap.done = False
    for cap in updated.rival_caps:
        cap.done = False
        cap.revealed = False

    stats = updated.stats
    stats.runs += 1
    stats.sum_deaths = [total + deaths for total, deaths in zip(stats.sum_deaths, stats.deaths)]
    stats.deaths = [0] * len(stats.deaths)
    stats.top4_items = [0] * len(stats.top4_items)

    updated.team = []
    updated.box = []
    updated.graveyard = []
    updated.run_started_at = started_at

    logger.info(f"Started run {stats.runs} (best so far: {stats.best})")
    return updated


def _valid_player_index(doc: TrackerDocument, index: int) -> bool:
    return 0 <= index < doc.player_count


def add_loss(doc: TrackerDocument, pair_id: int, culprit_index: int) -> TrackerDocument:
    """Move a pair from team or box to the graveyard and count the death."""
    if not _valid_player_index(doc, culprit_index):
        return doc

    for attribute in ("team", "box"):
        pairs: List[LinkedPair] = getattr(doc, attribute)
        position = next((i for i, pair in enumerate(pairs) if pair.id == pair_id), None)
        if position is None:
            continue

        updated = doc.model_copy(deep=True)
        pair = getattr(updated, attribute).pop(position)
        updated.graveyard.append(pair)
        updated.stats.deaths[culprit_index] += 1
        return updated

    logger.debug(f"add_loss ignored: no pair {pair_id} in team or box")
    return doc


def record_legendary_encounter(doc: TrackerDocument) -> TrackerDocument:
    updated = doc.model_copy(deep=True)
    updated.stats.legendary_encounters += 1
    return updated


def set_player_stat(
    doc: TrackerDocument, stat: Union[PlayerStat, str], index: int, value: int
) -> TrackerDocument:
    """Manually correct a per-player counter. Negative values are rejected."""
    stat = PlayerStat(stat)
    if not _valid_player_index(doc, index) or isinstance(value, bool) or value < 0:
        return doc
    updated = doc.model_copy(deep=True)
    getattr(updated.stats, stat.value)[index] = int(value)
    return updated
