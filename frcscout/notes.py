"""Normalization of the persisted ``notes`` payload into canonical ScoringInputs.

Historical rows store notes in two layouts:

    flat:   {"auto_fuel_active_hub": 4, "teleop_fuel_shifts": [3, 5], "climb_sec": 2.4, ...}
    nested: {"autonomous": {...}, "teleop": {...}, "endgame": {...}}

The layout is detected once here; everything downstream sees ScoringInputs only.
"""

import json
import logging
import math
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from .constants import BALL_BUCKET_KEYS, BALL_CHOICE_VALUES
from .schemas import (
    AutonomousInputs,
    EndgameInputs,
    ScoringInputs,
    TeleopInputs,
    coerce_count,
)

logger = logging.getLogger('frcscout.notes')


def decode_notes(notes: Any) -> dict:
    """Decode a notes value (None, JSON text or mapping) into a dict; corrupt input gives {}."""
    if notes is None:
        return {}
    if isinstance(notes, Mapping):
        return dict(notes)
    if isinstance(notes, (str, bytes)):
        try:
            decoded = json.loads(notes or '{}')
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning(f'Unparsable notes payload, scoring as empty: {e}')
            return {}
        if decoded is None:
            return {}
        if not isinstance(decoded, dict):
            logger.warning(f'Notes payload is {type(decoded).__name__}, not an object')
            return {}
        return decoded
    logger.warning(f'Unsupported notes type {type(notes).__name__}, scoring as empty')
    return {}


def is_nested(payload: Mapping) -> bool:
    """Nested payloads keep each period under its own key."""
    return isinstance(payload.get('autonomous'), Mapping) or isinstance(payload.get('teleop'), Mapping)


def run_values(phase: Mapping) -> list[float]:
    """Fuel value of each stopwatch run, looked up from its ball choice."""
    runs = phase.get('runs')
    if not isinstance(runs, list):
        return []
    values = []
    for run in runs:
        choice = run.get('ball_choice') if isinstance(run, Mapping) else None
        if isinstance(choice, int) and not isinstance(choice, bool) and 0 <= choice < len(BALL_CHOICE_VALUES):
            values.append(BALL_CHOICE_VALUES[choice])
        else:
            values.append(0.0)
    return values


def bucket_values(phase: Mapping) -> list[float]:
    return [coerce_count(phase.get(key)) for key in BALL_BUCKET_KEYS]


def resolve_fuel(phase: Mapping, count_key: str) -> float:
    """Stopwatch runs beat time buckets, which beat the explicit count."""
    from_runs = math.fsum(run_values(phase))
    if from_runs > 0:
        return from_runs
    from_buckets = math.fsum(bucket_values(phase))
    if from_buckets > 0:
        return from_buckets
    return coerce_count(phase.get(count_key))


def resolve_shifts(phase: Mapping) -> list[float]:
    """Explicit shift counts, else one shift per run, else the non-empty time buckets."""
    shifts = phase.get('teleop_fuel_shifts')
    if isinstance(shifts, (list, tuple)):
        return list(shifts)
    runs = run_values(phase)
    if runs:
        return runs
    buckets = bucket_values(phase)
    if any(buckets):
        return buckets
    return []


def parse_autonomous(phase: Mapping) -> AutonomousInputs:
    return AutonomousInputs(
        leave=phase.get('auto_leave'),
        fuel=resolve_fuel(phase, 'auto_fuel_active_hub'),
        tower_level1=phase.get('auto_tower_level1'),
        cleansing=phase.get('autonomous_cleansing'),
        duration_sec=phase.get('duration_sec'),
    )


def parse_teleop(phase: Mapping) -> TeleopInputs:
    return TeleopInputs(
        fuel=resolve_fuel(phase, 'teleop_fuel_active_hub'),
        fuel_shifts=resolve_shifts(phase),
        tower_level1=phase.get('teleop_tower_level1'),
        tower_level2=phase.get('teleop_tower_level2'),
        tower_level3=phase.get('teleop_tower_level3'),
        climb_sec=phase.get('climb_sec'),
        cleansing=phase.get('teleop_cleansing'),
    )


def parse_endgame(phase: Mapping) -> EndgameInputs:
    return EndgameInputs(fuel=phase.get('endgame_fuel'))


def parse_notes(notes: Any) -> ScoringInputs:
    """
    Normalize a notes payload into ScoringInputs.

    Never raises: unreadable payloads produce all-zero inputs.

    Args:
        notes: JSON text, dict (flat or nested layout), or None

    Returns:
        ScoringInputs with period data filled in and auxiliary fields at defaults
    """
    payload = decode_notes(notes)

    if is_nested(payload):
        auto_phase = payload.get('autonomous')
        teleop_phase = payload.get('teleop')
        endgame_phase = payload.get('endgame')
        auto_phase = auto_phase if isinstance(auto_phase, Mapping) else {}
        teleop_phase = teleop_phase if isinstance(teleop_phase, Mapping) else {}
        endgame_phase = endgame_phase if isinstance(endgame_phase, Mapping) else {}
    else:
        # Runs and buckets in a flat payload were recorded on the teleop screen
        auto_phase = {
            k: v for k, v in payload.items() if k != 'runs' and k not in BALL_BUCKET_KEYS
        }
        teleop_phase = payload
        endgame_phase = payload

    try:
        return ScoringInputs(
            autonomous=parse_autonomous(auto_phase),
            teleop=parse_teleop(teleop_phase),
            endgame=parse_endgame(endgame_phase),
        )
    except ValidationError as e:
        logger.warning(f'Notes payload failed normalization, scoring as empty: {e}')
        return ScoringInputs()


def notes_payload(inputs: ScoringInputs) -> dict:
    """Nested notes payload written alongside a new record."""
    auto = inputs.autonomous
    teleop = inputs.teleop
    return {
        'autonomous': {
            'auto_leave': auto.leave,
            'auto_fuel_active_hub': auto.fuel,
            'auto_tower_level1': auto.tower_level1,
            'autonomous_cleansing': auto.cleansing,
            'duration_sec': auto.duration_sec,
        },
        'teleop': {
            'teleop_fuel_active_hub': teleop.total_fuel,
            'teleop_fuel_shifts': list(teleop.fuel_shifts),
            'teleop_tower_level1': teleop.tower_level1,
            'teleop_tower_level2': teleop.tower_level2,
            'teleop_tower_level3': teleop.tower_level3,
            'climb_sec': teleop.climb_sec,
            'teleop_cleansing': teleop.cleansing,
        },
        'endgame': {
            'endgame_fuel': inputs.endgame.fuel,
        },
    }
