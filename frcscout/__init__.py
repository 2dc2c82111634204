from .models import ScoreBreakdown, TeamAggregate
from .schemas import (
    AutonomousInputs,
    TeleopInputs,
    EndgameInputs,
    ScoringInputs,
    MatchRecord,
    PitScoutingRecord,
    PointValues,
)
from .scoring import (
    score_autonomous,
    score_teleop,
    score_endgame,
    climb_speed_adjustment,
    climb_time_adjustment,
    compute_score,
)
from .notes import parse_notes, notes_payload
from .records import record_from_row, record_to_row
from .metrics import (
    compute_team_aggregate,
    consistency_index,
    clank_index,
    rpmagic_index,
    goblin_index,
)
from .builder import ScoutingFormBuilder, ScoutingFormError
from .data_fetcher import ScoutingDataFetcher
from .submission import (
    prepare_submission,
    submit_scouting_data,
    delete_scouting_data,
    submit_pit_scouting,
)

__all__ = [
    # Models
    'ScoreBreakdown',
    'TeamAggregate',
    'AutonomousInputs',
    'TeleopInputs',
    'EndgameInputs',
    'ScoringInputs',
    'MatchRecord',
    'PitScoutingRecord',
    'PointValues',
    # Scoring functions
    'score_autonomous',
    'score_teleop',
    'score_endgame',
    'climb_speed_adjustment',
    'climb_time_adjustment',
    'compute_score',
    # Notes payload
    'parse_notes',
    'notes_payload',
    'record_from_row',
    'record_to_row',
    # Team metrics
    'compute_team_aggregate',
    'consistency_index',
    'clank_index',
    'rpmagic_index',
    'goblin_index',
    # Form submission
    'ScoutingFormBuilder',
    'ScoutingFormError',
    'prepare_submission',
    'submit_scouting_data',
    'delete_scouting_data',
    'submit_pit_scouting',
    # Data fetching
    'ScoutingDataFetcher',
]
