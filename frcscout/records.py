"""Conversion between scouting_data table rows and MatchRecord."""

import math
from typing import Any, Mapping, Optional

from .notes import notes_payload, parse_notes
from .schemas import MatchRecord, PointValues, ScoringInputs, coerce_count
from .scoring import compute_score

SCORE_COLUMNS = ('autonomous_points', 'teleop_points', 'endgame_points', 'final_score')


def _score(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def record_from_row(row: Mapping, points: Optional[PointValues] = None) -> MatchRecord:
    """
    Build a MatchRecord from a stored row.

    Score columns are taken as stored. A row missing any of them (older
    exports) is rescored from its notes. The cleansing columns, when set,
    take precedence over the counts in the notes.

    Raises:
        pydantic.ValidationError: If the identity columns are unusable
    """
    parsed = parse_notes(row.get('notes'))
    autonomous, teleop = parsed.autonomous, parsed.teleop
    auto_cleansing = _score(row.get('autonomous_cleansing'))
    if auto_cleansing is not None:
        autonomous = autonomous.model_copy(update={'cleansing': coerce_count(auto_cleansing)})
    teleop_cleansing = _score(row.get('teleop_cleansing'))
    if teleop_cleansing is not None:
        teleop = teleop.model_copy(update={'cleansing': coerce_count(teleop_cleansing)})

    inputs = ScoringInputs(
        autonomous=autonomous,
        teleop=teleop,
        endgame=parsed.endgame,
        defense_rating=row.get('defense_rating'),
        comments=row.get('comments'),
        average_downtime=row.get('average_downtime'),
        broke=row.get('broke'),
    )

    scores = {column: _score(row.get(column)) for column in SCORE_COLUMNS}
    if any(value is None for value in scores.values()):
        scores = compute_score(inputs, points).rounded()

    return MatchRecord(
        id=str(row['id']) if row.get('id') is not None else None,
        match_id=row.get('match_id'),
        team_number=row.get('team_number'),
        alliance_color=row.get('alliance_color'),
        alliance_position=row.get('alliance_position'),
        inputs=inputs,
        scout_id=row.get('scout_id'),
        submitted_by_name=row.get('submitted_by_name'),
        submitted_by_email=row.get('submitted_by_email'),
        submitted_at=row.get('submitted_at'),
        created_at=row.get('created_at'),
        **scores,
    )


def record_to_row(record: MatchRecord) -> dict:
    """Row for the scouting_data table; unset identity/timestamp columns are left to the store."""
    row = {
        'match_id': record.match_id,
        'team_number': record.team_number,
        'alliance_color': record.alliance_color,
        'alliance_position': record.alliance_position,
        'autonomous_points': record.autonomous_points,
        'teleop_points': record.teleop_points,
        'endgame_points': record.endgame_points,
        'final_score': record.final_score,
        'autonomous_cleansing': record.inputs.autonomous.cleansing,
        'teleop_cleansing': record.inputs.teleop.cleansing,
        'defense_rating': record.defense_rating,
        'comments': record.inputs.comments,
        'average_downtime': record.average_downtime,
        'broke': record.broke,
        'notes': notes_payload(record.inputs),
        'scout_id': record.scout_id,
        'submitted_by_name': record.submitted_by_name,
        'submitted_by_email': record.submitted_by_email,
        'submitted_at': record.submitted_at,
    }
    if record.id is not None:
        row['id'] = record.id
    if record.created_at is not None:
        row['created_at'] = record.created_at
    return row
