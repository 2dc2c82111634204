"""Sanity checks for scores, match records, aggregates and pit scouting forms."""

import math
from typing import Iterable, Optional

from pydantic import ValidationError

from .constants import FUEL_WARNING_LIMIT
from .models import ScoreBreakdown, TeamAggregate
from .schemas import MatchRecord, PitScoutingRecord, PointValues
from .scoring import compute_score


def validate_score_breakdown(score: ScoreBreakdown, label: str = 'score') -> list[str]:
    """
    Check that a computed score is reasonable and internally consistent.

    Sanity checks:
    - No NaN or infinity values
    - Final score in a plausible range (-10 to 400)
    - Breakdown entries add up to the final score (within rounding)

    Returns:
        List of warning messages (empty if no issues)
    """
    warnings = []

    periods = (score.autonomous_points, score.teleop_points, score.endgame_points)
    if not all(math.isfinite(p) for p in periods):
        warnings.append(f'{label} has non-finite period points: {periods}')
        return warnings

    if score.final_score > 400:
        warnings.append(f'{label} scored {score.final_score:.1f} pts (unusually high - check inputs)')
    elif score.final_score < -10:
        warnings.append(f'{label} scored {score.final_score:.1f} pts (unusually low - check inputs)')

    breakdown_sum = math.fsum(score.breakdown.values())
    diff = abs(breakdown_sum - score.final_score)
    if diff > 0.1:
        warnings.append(
            f'{label} breakdown sum ({breakdown_sum:.1f}) != total ({score.final_score:.1f}) - difference: {diff:.1f}'
        )

    return warnings


def validate_match_record(record: MatchRecord, points: Optional[PointValues] = None) -> list[str]:
    """
    Check a stored match record against its own notes.

    Sanity checks:
    - Stored final score equals the sum of stored period points
    - Stored scores match a rescore of the notes (flags season/table drift)
    - Fuel counts within the per-period limit

    Returns:
        List of warning messages (empty if no issues)
    """
    label = f'{record.match_id} team {record.team_number}'
    warnings = []

    period_sum = record.autonomous_points + record.teleop_points + record.endgame_points
    if abs(period_sum - record.final_score) > 0.1:
        warnings.append(
            f'{label} final score ({record.final_score:.1f}) != period sum ({period_sum:.1f})'
        )

    rescored = compute_score(record.inputs, points)
    warnings.extend(validate_score_breakdown(rescored, label))
    if abs(rescored.final_score - record.final_score) > 0.1:
        warnings.append(
            f'{label} stored score ({record.final_score:.1f}) != rescored ({rescored.final_score:.1f})'
        )

    fuel_counts = {
        'auto fuel': record.inputs.autonomous.fuel,
        'teleop fuel': record.inputs.teleop.total_fuel,
        'endgame fuel': record.inputs.endgame.fuel,
    }
    for name, count in fuel_counts.items():
        if count > FUEL_WARNING_LIMIT:
            warnings.append(f'{label} has {count:g} {name} (max {FUEL_WARNING_LIMIT})')

    return warnings


def validate_team_aggregate(team_number: int, aggregate: TeamAggregate) -> list[str]:
    """
    Check that a team aggregate holds only finite, in-range values.

    Returns:
        List of warning messages (empty if no issues)
    """
    warnings = []

    for name, value in aggregate.as_dict().items():
        if isinstance(value, float) and not math.isfinite(value):
            warnings.append(f'Team {team_number} {name} is {value}')

    for name in ('consistency', 'uptime_pct', 'broke_rate'):
        value = getattr(aggregate, name)
        if not 0 <= value <= 100:
            warnings.append(f'Team {team_number} {name} out of range: {value}')

    if not 0 <= aggregate.climb_rate <= 1:
        warnings.append(f'Team {team_number} climb_rate out of range: {aggregate.climb_rate}')

    return warnings


def validate_pit_scouting(data: dict) -> list[str]:
    """
    Validate a pit scouting form.

    Returns:
        List of validation error messages (empty if valid)
    """
    try:
        PitScoutingRecord.model_validate(data)
    except ValidationError as e:
        errors = []
        for error in e.errors():
            field = '.'.join(str(part) for part in error['loc'])
            message = error['msg'].removeprefix('Value error, ')
            errors.append(f'{field}: {message}' if field else message)
        return errors
    return []


def validate_all_records(
    records: Iterable[MatchRecord],
    points: Optional[PointValues] = None,
) -> tuple[list[str], list[str]]:
    """
    Validate every record of an event.

    Returns:
        Tuple of (errors, warnings)
        - errors: Duplicate submissions for the same team and match
        - warnings: Issues to review but not block reporting
    """
    errors: list[str] = []
    warnings: list[str] = []

    seen = set()
    duplicates = set()
    for record in records:
        key = (record.match_id, record.team_number)
        if key in seen:
            duplicates.add(key)
        seen.add(key)
        warnings.extend(validate_match_record(record, points))

    for match_id, team_number in sorted(duplicates):
        errors.append(f'Team {team_number} was scouted more than once in {match_id}')

    return errors, warnings
