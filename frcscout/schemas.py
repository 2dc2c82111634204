"""Pydantic schemas for scouting inputs, persisted records and configuration."""

import math
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from .constants import DEFENSE_RATING_MAX, DEFENSE_RATING_MIN, MAX_SHIFTS


def coerce_count(value: Any) -> float:
    """Turn a recorded count into a non-negative finite number; anything else becomes 0."""
    if isinstance(value, bool):
        return float(value)
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(number) or number < 0:
        return 0.0
    return number


def coerce_flag(value: Any) -> bool:
    """Read a checkbox value that may have been stored as a bool, number or string."""
    if isinstance(value, str):
        return value.strip().lower() in ('true', '1', 'yes', 'on')
    return bool(value)


def coerce_seconds(value: Any) -> float | None:
    """Optional timing in seconds: finite and non-negative, two decimals, else None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number) or number < 0:
        return None
    return round(number, 2)


def fold_shifts(shifts: Any) -> tuple[float, ...]:
    """Normalize per-shift counts, folding anything past the last shift into it."""
    if not isinstance(shifts, (list, tuple)):
        return ()
    counts = [coerce_count(s) for s in shifts]
    if len(counts) > MAX_SHIFTS:
        overflow = math.fsum(counts[MAX_SHIFTS - 1:])
        counts = counts[:MAX_SHIFTS - 1] + [overflow]
    return tuple(counts)


class PointValues(BaseModel):
    """Point value per scoring action for one season."""

    auto_leave: float
    auto_fuel: float
    auto_tower_level1: float
    teleop_fuel: float
    teleop_tower_level1: float
    teleop_tower_level2: float
    teleop_tower_level3: float
    endgame_fuel: float
    climb_fast_bonus: float
    climb_slow_penalty: float
    climb_fast_threshold_sec: float = Field(..., ge=0)
    climb_slow_threshold_sec: float = Field(..., ge=0)
    match_duration_sec: float = Field(..., gt=0)

    @model_validator(mode='after')
    def check_thresholds(self):
        """The fast-climb window must end before the slow-climb window starts."""
        if self.climb_fast_threshold_sec > self.climb_slow_threshold_sec:
            raise ValueError(
                f'climb_fast_threshold_sec ({self.climb_fast_threshold_sec}) exceeds '
                f'climb_slow_threshold_sec ({self.climb_slow_threshold_sec})'
            )
        return self

    def tower_points(self, level: int) -> float:
        """Teleop climb points for a tower level (0 = no climb)."""
        if level == 3:
            return self.teleop_tower_level3
        if level == 2:
            return self.teleop_tower_level2
        if level == 1:
            return self.teleop_tower_level1
        return 0.0

    class Config:
        extra = 'forbid'
        frozen = True


class AutonomousInputs(BaseModel):
    """What a scout saw during the autonomous period."""

    leave: bool = False
    fuel: float = 0.0
    tower_level1: bool = False
    cleansing: float = 0.0
    duration_sec: float | None = None

    @field_validator('fuel', 'cleansing', mode='before')
    @classmethod
    def non_negative(cls, v):
        return coerce_count(v)

    @field_validator('leave', 'tower_level1', mode='before')
    @classmethod
    def checkbox(cls, v):
        return coerce_flag(v)

    @field_validator('duration_sec', mode='before')
    @classmethod
    def seconds(cls, v):
        return coerce_seconds(v)

    class Config:
        extra = 'ignore'
        frozen = True


class TeleopInputs(BaseModel):
    """What a scout saw during teleop, including the climb."""

    fuel: float = 0.0
    fuel_shifts: tuple[float, ...] = ()
    tower_level1: bool = False
    tower_level2: bool = False
    tower_level3: bool = False
    climb_sec: float | None = None
    cleansing: float = 0.0

    @model_validator(mode='before')
    @classmethod
    def single_tower_level(cls, data):
        """Only one tower level can be held; the highest recorded one wins."""
        if not isinstance(data, dict):
            return data
        data = dict(data)
        claimed = False
        for key in ('tower_level3', 'tower_level2', 'tower_level1'):
            held = coerce_flag(data.get(key)) and not claimed
            claimed = claimed or held
            data[key] = held
        return data

    @field_validator('fuel', 'cleansing', mode='before')
    @classmethod
    def non_negative(cls, v):
        return coerce_count(v)

    @field_validator('fuel_shifts', mode='before')
    @classmethod
    def shifts(cls, v):
        return fold_shifts(v)

    @field_validator('climb_sec', mode='before')
    @classmethod
    def seconds(cls, v):
        return coerce_seconds(v)

    @property
    def has_shift_detail(self) -> bool:
        return len(self.fuel_shifts) > 0

    @property
    def total_fuel(self) -> float:
        """Shift counts when recorded, otherwise the single aggregate count."""
        if self.has_shift_detail:
            return math.fsum(self.fuel_shifts)
        return self.fuel

    @property
    def climb_level(self) -> int:
        if self.tower_level3:
            return 3
        if self.tower_level2:
            return 2
        if self.tower_level1:
            return 1
        return 0

    def shift_slots(self) -> tuple[float, ...]:
        """
        Fuel per shift padded to MAX_SHIFTS slots.

        Records without shift detail put their aggregate count in the first slot.
        """
        if self.has_shift_detail:
            slots = list(self.fuel_shifts)
        else:
            slots = [self.fuel]
        return tuple(slots + [0.0] * (MAX_SHIFTS - len(slots)))

    class Config:
        extra = 'ignore'
        frozen = True


class EndgameInputs(BaseModel):
    """Fuel scored into the shared zone at the end of the match."""

    fuel: float = 0.0

    @field_validator('fuel', mode='before')
    @classmethod
    def non_negative(cls, v):
        return coerce_count(v)

    class Config:
        extra = 'ignore'
        frozen = True


class ScoringInputs(BaseModel):
    """Everything a scout records about one team in one match."""

    autonomous: AutonomousInputs = Field(default_factory=AutonomousInputs)
    teleop: TeleopInputs = Field(default_factory=TeleopInputs)
    endgame: EndgameInputs = Field(default_factory=EndgameInputs)
    defense_rating: int = 0
    comments: str = ''
    average_downtime: float | None = None
    broke: bool | None = None

    @field_validator('autonomous', 'teleop', 'endgame', mode='before')
    @classmethod
    def period(cls, v):
        if isinstance(v, BaseModel):
            return v
        return v if isinstance(v, dict) else {}

    @field_validator('defense_rating', mode='before')
    @classmethod
    def clamp_defense(cls, v):
        rating = coerce_count(v)
        return int(min(DEFENSE_RATING_MAX, max(DEFENSE_RATING_MIN, round(rating))))

    @field_validator('comments', mode='before')
    @classmethod
    def text(cls, v):
        return '' if v is None else str(v)

    @field_validator('average_downtime', mode='before')
    @classmethod
    def downtime(cls, v):
        return coerce_seconds(v)

    @field_validator('broke', mode='before')
    @classmethod
    def tri_state(cls, v):
        # None means the scout did not say; keep it distinct from False
        return None if v is None else coerce_flag(v)

    class Config:
        extra = 'ignore'
        frozen = True


class MatchRecord(BaseModel):
    """One persisted scouting submission (a row of the scouting_data table)."""

    id: str | None = None
    match_id: str = Field(..., min_length=1)
    team_number: int = Field(..., ge=1, le=99999)
    alliance_color: str = Field(..., pattern=r'^(red|blue)$')
    alliance_position: int | None = Field(None, ge=1, le=3)
    inputs: ScoringInputs = Field(default_factory=ScoringInputs)
    autonomous_points: float = 0.0
    teleop_points: float = 0.0
    endgame_points: float = 0.0
    final_score: float = 0.0
    scout_id: str | None = None
    submitted_by_name: str | None = None
    submitted_by_email: str | None = None
    submitted_at: str | None = None
    created_at: str | None = None

    @field_validator('alliance_color', mode='before')
    @classmethod
    def lower_color(cls, v):
        return v.strip().lower() if isinstance(v, str) else v

    @property
    def defense_rating(self) -> int:
        return self.inputs.defense_rating

    @property
    def average_downtime(self) -> float | None:
        return self.inputs.average_downtime

    @property
    def broke(self) -> bool | None:
        return self.inputs.broke

    class Config:
        extra = 'ignore'
        frozen = True


class RobotDimensions(BaseModel):
    """Robot frame size in inches."""

    length: float | None = Field(None, ge=0, le=100)
    width: float | None = Field(None, ge=0, le=100)
    height: float | None = Field(None, ge=0, le=100)

    class Config:
        extra = 'forbid'


class PitScoutingRecord(BaseModel):
    """Robot inspection notes taken in the pits."""

    id: str | None = None
    team_number: int = Field(..., ge=1, le=99999)
    robot_name: str = Field(..., min_length=1, max_length=100)
    drive_type: str = Field(..., min_length=1)
    drive_train_other: str | None = None
    autonomous_capabilities: list[str] = Field(..., min_length=1)
    teleop_capabilities: list[str] = Field(..., min_length=1)
    endgame_capabilities: list[str] = Field(..., min_length=1)
    overall_rating: int = Field(..., ge=1, le=10)
    programming_language: str | None = Field(None, max_length=50)
    notes: str | None = Field(None, max_length=1000)
    robot_dimensions: RobotDimensions | None = None
    weight: float | None = Field(None, ge=0, le=200)
    submitted_by_name: str | None = None
    submitted_by_email: str | None = None
    created_at: str | None = None

    @field_validator('robot_name', 'drive_type', mode='before')
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    @model_validator(mode='after')
    def other_drive_train(self):
        """A drive type of 'Other' needs a description."""
        if self.drive_type == 'Other' and not (self.drive_train_other or '').strip():
            raise ValueError('Please specify the drive train type')
        return self

    class Config:
        extra = 'ignore'


class ScoutingConfig(BaseModel):
    """Contents of data/scouting_config.json."""

    current_season: int = Field(..., ge=2020, le=2100)
    event_key: str | None = None
    point_overrides: dict[str, float] = Field(default_factory=dict)
    log_level: str = Field(default='INFO', pattern=r'^(DEBUG|INFO|WARNING|ERROR)$')

    @field_validator('point_overrides')
    @classmethod
    def known_actions(cls, v):
        """Ensure overrides only name scoring actions that exist."""
        for key in v:
            if key not in PointValues.model_fields:
                raise ValueError(f'Unknown point value: {key}')
        return v

    class Config:
        extra = 'forbid'
