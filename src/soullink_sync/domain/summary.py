"""Read-only views derived from a tracker document."""

from dataclasses import dataclass
from typing import List, Optional, Sequence, Union

from .models import ELITE_FOUR_FIRST_ID, GYM_BADGE_COUNT, LevelCap, RivalCap, TrackerDocument, VariableRival
from .progression import first_not_done
from ..core.enums import MilestoneCategory, RivalGender

NO_BADGE_LABEL = "No gym yet"
CHALLENGE_COMPLETE_LABEL = "Challenge complete!"

CATEGORY_WEIGHTS = {
    MilestoneCategory.GYM: 1.5,
    MilestoneCategory.ELITE4_CHAMP: 0.6,
    MilestoneCategory.RIVAL: 0.75,
}


@dataclass(frozen=True)
class WeightedProgress:
    completed: float
    total: float
    pct: int
    raw_completed: int
    raw_total: int


@dataclass(frozen=True)
class TrackerSummary:
    """Overview shown in tracker lists."""

    team_count: int
    box_count: int
    graveyard_count: int
    death_count: int
    runs: int
    champion_done: bool
    progress_label: str


def classify_level_cap(cap: LevelCap) -> MilestoneCategory:
    if cap.id >= ELITE_FOUR_FIRST_ID:
        return MilestoneCategory.ELITE4_CHAMP
    return MilestoneCategory.GYM


def compute_weighted_progress(
    level_caps: Sequence[LevelCap], rival_caps: Sequence[RivalCap]
) -> WeightedProgress:
    """
    Progress percentage where gym badges weigh more than the final fights.

    When every level cap is done the result is exactly 100 regardless of
    rounding or how many rival fights the game has.
    """
    completed = 0.0
    total = 0.0
    raw_completed = 0

    for cap in level_caps:
        weight = CATEGORY_WEIGHTS[classify_level_cap(cap)]
        total += weight
        if cap.done:
            completed += weight
            raw_completed += 1

    for cap in rival_caps:
        weight = CATEGORY_WEIGHTS[MilestoneCategory.RIVAL]
        total += weight
        if cap.done:
            completed += weight
            raw_completed += 1

    if level_caps and all(cap.done for cap in level_caps):
        pct = 100
    elif total > 0:
        pct = round(completed / total * 100)
    else:
        pct = 0

    return WeightedProgress(
        completed=completed,
        total=total,
        pct=pct,
        raw_completed=raw_completed,
        raw_total=len(level_caps) + len(rival_caps),
    )


def format_best_label(best: Optional[int], level_caps: Sequence[LevelCap]) -> str:
    """Human label for a best-run badge count."""
    count = best or 0
    if count <= 0:
        return NO_BADGE_LABEL
    if count <= GYM_BADGE_COUNT:
        if count - 1 < len(level_caps):
            return level_caps[count - 1].arena
        return f"Gym {count}"
    if count <= 12:
        return f"Elite Four | {count - 8}/4"
    return CHALLENGE_COMPLETE_LABEL


def current_level_cap(doc: TrackerDocument) -> Optional[LevelCap]:
    """The first level cap not yet beaten."""
    index = first_not_done(doc.level_caps)
    return doc.level_caps[index] if index is not None else None


def cleared_routes(doc: TrackerDocument) -> List[str]:
    """Distinct routes already used by a pair, in first-seen order."""
    seen = set()
    routes = []
    for pair in doc.team + doc.box + doc.graveyard:
        route = pair.route.strip()
        if route and route.lower() not in seen:
            seen.add(route.lower())
            routes.append(route)
    return routes


def resolve_rival_name(rival: Union[str, VariableRival], gender: Optional[RivalGender] = None) -> str:
    if isinstance(rival, str):
        return rival
    if gender is None:
        return rival.name
    option = rival.options.female if RivalGender(gender) is RivalGender.FEMALE else rival.options.male
    return option.capitalize()


def summarize(doc: TrackerDocument) -> TrackerSummary:
    champion = doc.level_caps[-1] if doc.level_caps else None
    return TrackerSummary(
        team_count=sum(1 for pair in doc.team if not pair.is_empty),
        box_count=sum(1 for pair in doc.box if not pair.is_empty),
        graveyard_count=len(doc.graveyard),
        death_count=sum(doc.stats.deaths),
        runs=doc.stats.runs,
        champion_done=bool(champion and champion.done),
        progress_label=format_best_label(doc.stats.best, doc.level_caps),
    )
