"""Constants and point tables for the FRC scouting engine."""

# Season whose rules apply when no season is configured
DEFAULT_SEASON = 2026

# Point values per scoring action, keyed by season.
# Keep every season complete so tables can be swapped without code changes.
SEASON_POINT_VALUES = {
    2026: {
        'auto_leave': 0,            # REBUILT awards no leave bonus
        'auto_fuel': 1,             # per FUEL in the active HUB
        'auto_tower_level1': 15,
        'teleop_fuel': 1,           # per FUEL in the active HUB
        'teleop_tower_level1': 10,
        'teleop_tower_level2': 20,  # above LOW RUNG
        'teleop_tower_level3': 30,  # above MID RUNG
        'endgame_fuel': 1,          # per FUEL in the shared zone
        'climb_fast_bonus': 2,
        'climb_slow_penalty': -2,
        'climb_fast_threshold_sec': 3.0,
        'climb_slow_threshold_sec': 6.0,
        'match_duration_sec': 150.0,
    },
}

# Teleop is tracked in at most this many shifts
MAX_SHIFTS = 5

# Time buckets recorded by the stopwatch tracker (seconds into the period)
BALL_BUCKET_KEYS = (
    'balls_0_15',
    'balls_15_30',
    'balls_30_45',
    'balls_45_60',
    'balls_60_75',
    'balls_75_90',
)

# Stopwatch run choices: (label, fuel value) indexed by ``ball_choice``
BALL_CHOICE_OPTIONS = (
    ('1-4', 2.5),
    ('5-8', 6.5),
    ('9-12', 10.5),
    ('13-16', 14.5),
    ('17-20', 18.5),
    ('20+', 22.0),
)
BALL_CHOICE_VALUES = tuple(value for _, value in BALL_CHOICE_OPTIONS)

# Fuel counts above this in one period are flagged for review
FUEL_WARNING_LIMIT = 150

# Defense rating bounds
DEFENSE_RATING_MIN = 0
DEFENSE_RATING_MAX = 10

# RPMAGIC weights: (avg_score / scale) * score_weight + climb_rate * climb_weight
RPMAGIC_SCORE_SCALE = 200.0
RPMAGIC_SCORE_WEIGHT = 0.5
RPMAGIC_CLIMB_WEIGHT = 0.4

GOBLIN_FORMULA_FLAG = 'GOBLIN: formula incomplete - confirm with domain owner'

# Table names in the hosted store
SCOUTING_TABLE = 'scouting_data'
PIT_SCOUTING_TABLE = 'pit_scouting'


def season_match_pattern(season: int) -> str:
    """PostgREST ``like`` pattern matching match ids of one season (e.g. avalanche_2026_qm1)."""
    return f'*{season}*'
