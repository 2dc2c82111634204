"""Team-level metrics aggregated from match records."""

import math
from typing import Iterable, Optional, Sequence

from .config import get_point_values
from .constants import (
    GOBLIN_FORMULA_FLAG,
    MAX_SHIFTS,
    RPMAGIC_CLIMB_WEIGHT,
    RPMAGIC_SCORE_SCALE,
    RPMAGIC_SCORE_WEIGHT,
)
from .models import TeamAggregate
from .schemas import MatchRecord, PointValues
from .scoring import climb_time_adjustment


def mean(values: Sequence[float]) -> float:
    """Arithmetic mean that is 0 for no values and independent of order."""
    if not values:
        return 0.0
    return math.fsum(values) / len(values)


def std_dev(values: Sequence[float]) -> float:
    """Population standard deviation."""
    if not values:
        return 0.0
    avg = mean(values)
    return math.sqrt(math.fsum((v - avg) ** 2 for v in values) / len(values))


def consistency_index(scores: Sequence[float]) -> float:
    """
    How repeatable a team's scoring is, 0-100.

    100 - (stddev / average) * 100, floored at 0. A zero average (or no
    matches) counts as perfectly consistent.
    """
    avg = mean(scores)
    if avg == 0:
        return 100.0
    spread = std_dev(scores) / avg * 100
    return min(100.0, max(0.0, 100.0 - spread))


def uptime_pct(avg_downtime_sec: float, match_duration_sec: float) -> float:
    """Share of the match the robot was running, from average downtime."""
    return max(0.0, 100.0 - (avg_downtime_sec / match_duration_sec) * 100.0)


def broke_rate(records: Sequence[MatchRecord]) -> tuple[int, int, float]:
    """
    Percentage of matches with a reported breakdown.

    Records where nobody reported either way are left out entirely.

    Returns:
        Tuple of (broke_count, reported_count, rate_pct)
    """
    reported = [r.broke for r in records if r.broke is not None]
    broke_count = sum(1 for b in reported if b)
    if not reported:
        return broke_count, 0, 0.0
    return broke_count, len(reported), broke_count / len(reported) * 100.0


def climb_points(record: MatchRecord, points: PointValues) -> tuple[float, float]:
    """(auto climb points, teleop climb points) for one match."""
    auto = points.auto_tower_level1 if record.inputs.autonomous.tower_level1 else 0.0
    teleop = points.tower_points(record.inputs.teleop.climb_level)
    return auto, teleop


def climbed(record: MatchRecord) -> bool:
    return record.inputs.autonomous.tower_level1 or record.inputs.teleop.climb_level > 0


def clank_index(records: Sequence[MatchRecord], points: PointValues) -> float:
    """
    CLANK (Climb Level Accuracy & No-Knockdown).

    Average of climb points plus the climb time adjustment per match. The time
    adjustment counts whenever a climb time was recorded, even if no level was reached.
    """
    adjusted = [
        sum(climb_points(r, points)) + climb_time_adjustment(r.inputs.teleop.climb_sec, points)
        for r in records
    ]
    return mean(adjusted)


def rpmagic_index(avg_score: float, climb_rate: float) -> float:
    """
    RPMAGIC: marginal probability (0-1) of this team's contribution earning a ranking point.

    (avg_score / 200) * 0.5 + climb_rate * 0.4, clamped to [0, 1].
    """
    raw = (avg_score / RPMAGIC_SCORE_SCALE) * RPMAGIC_SCORE_WEIGHT + climb_rate * RPMAGIC_CLIMB_WEIGHT
    return min(1.0, max(0.0, raw))


def goblin_index(scores: Sequence[float]) -> float:
    """
    GOBLIN: actual score minus the score expected from the team's other matches, averaged.

    Positive means luckier than expected. Needs at least two matches.
    """
    n = len(scores)
    if n < 2:
        return 0.0
    total = math.fsum(scores)
    diffs = [s - (total - s) / (n - 1) for s in scores]
    return math.fsum(diffs) / n


def shift_averages(records: Sequence[MatchRecord]) -> tuple[float, ...]:
    """Average fuel per teleop shift; every record counts toward every slot."""
    if not records:
        return (0.0,) * MAX_SHIFTS
    slots = [r.inputs.teleop.shift_slots() for r in records]
    return tuple(round(mean([s[i] for s in slots]), 2) for i in range(MAX_SHIFTS))


def _display(value: float, digits: int) -> float:
    # + 0.0 turns a rounded -0.0 into 0.0
    return round(value, digits) + 0.0


def compute_team_aggregate(
    records: Iterable[MatchRecord],
    points: Optional[PointValues] = None,
) -> TeamAggregate:
    """
    Summarize one team's match records.

    The result depends only on the set of records, not their order. An empty
    collection gives zeros everywhere except consistency, which is 100.

    Args:
        records: MatchRecords for a single team
        points: Point table for climb values (default: configured season)

    Returns:
        TeamAggregate with averages rounded for display
    """
    records = list(records)
    n = len(records)
    if n == 0:
        return TeamAggregate(formula_flags=[GOBLIN_FORMULA_FLAG])
    if points is None:
        points = get_point_values()

    scores = [r.final_score for r in records]
    avg_score = mean(scores)

    downtime = mean([r.average_downtime or 0.0 for r in records])
    broke_count, broke_reported, broke_pct = broke_rate(records)

    climbs = [climb_points(r, points) for r in records]
    climb_rate = sum(1 for r in records if climbed(r)) / n
    climb_times = [
        r.inputs.teleop.climb_sec
        for r in records
        if r.inputs.teleop.climb_level > 0 and r.inputs.teleop.climb_sec is not None
    ]

    return TeamAggregate(
        match_count=n,
        avg_autonomous_points=_display(mean([r.autonomous_points for r in records]), 1),
        avg_teleop_points=_display(mean([r.teleop_points for r in records]), 1),
        avg_endgame_points=_display(mean([r.endgame_points for r in records]), 1),
        avg_total_score=_display(avg_score, 1),
        avg_defense_rating=_display(mean([r.defense_rating for r in records]), 1),
        best_score=max(scores),
        worst_score=min(scores),
        score_std_dev=_display(std_dev(scores), 2),
        consistency=_display(consistency_index(scores), 2),
        avg_downtime_sec=_display(downtime, 2),
        uptime_pct=_display(uptime_pct(downtime, points.match_duration_sec), 1),
        broke_count=broke_count,
        broke_reported=broke_reported,
        broke_rate=_display(broke_pct, 1),
        avg_auto_fuel=_display(mean([r.inputs.autonomous.fuel for r in records]), 2),
        avg_teleop_fuel=_display(mean([r.inputs.teleop.total_fuel for r in records]), 2),
        avg_endgame_fuel=_display(mean([r.inputs.endgame.fuel for r in records]), 2),
        avg_climb_pts=_display(mean([auto + teleop for auto, teleop in climbs]), 2),
        avg_auto_climb_pts=_display(mean([auto for auto, _ in climbs]), 2),
        avg_teleop_climb_pts=_display(mean([teleop for _, teleop in climbs]), 2),
        climb_rate=_display(climb_rate, 3),
        avg_climb_sec=_display(mean(climb_times), 2),
        avg_autonomous_cleansing=_display(mean([r.inputs.autonomous.cleansing for r in records]), 2),
        avg_teleop_cleansing=_display(mean([r.inputs.teleop.cleansing for r in records]), 2),
        shift_averages=shift_averages(records),
        clank=_display(clank_index(records, points), 1),
        rpmagic=_display(rpmagic_index(avg_score, climb_rate), 3),
        goblin=_display(goblin_index(scores), 1),
        formula_flags=[GOBLIN_FORMULA_FLAG],
    )
