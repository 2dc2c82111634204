"""Write side: turning a submitted form into stored rows."""

import logging
from typing import Optional

from .builder import ScoutingFormBuilder
from .records import record_to_row
from .schemas import PitScoutingRecord, PointValues
from .store import SupabaseClient, get_client
from .validators import validate_pit_scouting

logger = logging.getLogger('frcscout.submission')


def is_admin(user: Optional[dict]) -> bool:
    """Admin flag as supplied by the auth layer."""
    if not user:
        return False
    if user.get('is_admin') is True or user.get('role') == 'admin':
        return True
    for metadata_key in ('user_metadata', 'app_metadata'):
        metadata = user.get(metadata_key) or {}
        if metadata.get('role') == 'admin':
            return True
    return False


def _section(payload: dict, key: str) -> dict:
    section = payload.get(key)
    return section if isinstance(section, dict) else {}


def prepare_submission(
    payload: dict,
    user: Optional[dict] = None,
    points: Optional[PointValues] = None,
) -> dict:
    """
    Score a submitted scouting form and return the row to store.

    The score is computed here, before anything is persisted.

    Args:
        payload: Form body with match_id, team_number, alliance_color,
            alliance_position and the autonomous / teleop / endgame /
            miscellaneous sections
        user: Logged-in user (id, email, name)
        points: Point table (default: configured season)

    Raises:
        ScoutingFormError: If the match details are missing or invalid
    """
    misc = _section(payload, 'miscellaneous')
    builder = (
        ScoutingFormBuilder(points)
        .match_details(
            payload.get('match_id'),
            payload.get('team_number'),
            payload.get('alliance_color'),
            payload.get('alliance_position'),
        )
        .autonomous(**_section(payload, 'autonomous'))
        .teleop(**_section(payload, 'teleop'))
        .endgame(**_section(payload, 'endgame'))
        .miscellaneous(
            defense_rating=misc.get('defense_rating', 0),
            comments=misc.get('comments', ''),
            average_downtime=misc.get('average_downtime'),
            broke=misc.get('broke'),
        )
    )
    return record_to_row(builder.build(user))


def submit_scouting_data(
    payload: dict,
    user: Optional[dict] = None,
    client: Optional[SupabaseClient] = None,
    points: Optional[PointValues] = None,
) -> dict:
    """Score and insert one submission; returns the stored row."""
    row = prepare_submission(payload, user, points)
    created = (client or get_client()).insert_scouting_row(row)
    logger.info(
        f'Stored {row["match_id"]} team {row["team_number"]}: {row["final_score"]} pts'
    )
    return created


def delete_scouting_data(
    record_id: str,
    user: Optional[dict],
    client: Optional[SupabaseClient] = None,
) -> None:
    """
    Remove a submission. Records are otherwise never changed after submission.

    Raises:
        PermissionError: If the user is not an admin
    """
    if not is_admin(user):
        raise PermissionError('Only admins can delete scouting data')
    (client or get_client()).delete_scouting_row(record_id)
    logger.info(f'Deleted scouting record {record_id}')


def submit_pit_scouting(
    data: dict,
    user: Optional[dict] = None,
    client: Optional[SupabaseClient] = None,
) -> dict:
    """
    Validate and insert a pit scouting record.

    Raises:
        ValueError: With every validation message if the record is invalid
    """
    errors = validate_pit_scouting(data)
    if errors:
        raise ValueError('; '.join(errors))

    record = PitScoutingRecord.model_validate(data)
    row = record.model_dump(exclude_none=True)
    if user:
        row.setdefault('submitted_by_name', user.get('name') or user.get('email'))
        row.setdefault('submitted_by_email', user.get('email'))
    return (client or get_client()).insert_pit_scouting(row)
