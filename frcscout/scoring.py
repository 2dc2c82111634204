"""Scoring functions for each period of a match."""

from typing import Dict, Mapping, Optional, Tuple, Union

from .config import get_point_values
from .models import ScoreBreakdown
from .notes import parse_notes
from .schemas import (
    AutonomousInputs,
    EndgameInputs,
    PointValues,
    ScoringInputs,
    TeleopInputs,
)


def score_autonomous(auto: AutonomousInputs, points: PointValues) -> Tuple[float, Dict[str, float]]:
    """
    Score the autonomous period.

    Scoring (2026):
        - Leaving the starting zone: auto_leave
        - FUEL in the active HUB: 1 point each
        - TOWER level 1 climb: 15 points
    """
    total = 0.0
    breakdown = {}

    leave_pts = points.auto_leave if auto.leave else 0.0
    if leave_pts:
        breakdown['auto_leave'] = leave_pts
    total += leave_pts

    fuel_pts = auto.fuel * points.auto_fuel
    if fuel_pts:
        breakdown['auto_fuel'] = fuel_pts
    total += fuel_pts

    tower_pts = points.auto_tower_level1 if auto.tower_level1 else 0.0
    if tower_pts:
        breakdown['auto_tower_level1'] = tower_pts
    total += tower_pts

    return total, breakdown


def climb_time_adjustment(climb_sec: Optional[float], points: PointValues) -> float:
    """
    Bonus or penalty for a recorded climb duration.

    Fast boundary is inclusive, slow boundary exclusive: with 3s/6s thresholds
    2.0s and 3.0s earn the bonus, 6.0s is neutral and 6.01s is penalized.
    """
    if climb_sec is None:
        return 0.0
    if climb_sec <= points.climb_fast_threshold_sec:
        return points.climb_fast_bonus
    if climb_sec > points.climb_slow_threshold_sec:
        return points.climb_slow_penalty
    return 0.0


def climb_speed_adjustment(teleop: TeleopInputs, points: PointValues) -> float:
    """Climb time adjustment counted in teleop points; needs a tower level to have been reached."""
    if teleop.climb_level == 0:
        return 0.0
    return climb_time_adjustment(teleop.climb_sec, points)


def score_teleop(teleop: TeleopInputs, points: PointValues) -> Tuple[float, Dict[str, float]]:
    """
    Score the teleop period.

    Scoring (2026):
        - FUEL in the active HUB: 1 point each (sum of shifts when recorded)
        - TOWER level 1 / 2 / 3: 10 / 20 / 30 points (highest only)
        - Climb speed: +2 for <= 3s, -2 for > 6s, on top of the level points
    """
    total = 0.0
    breakdown = {}

    fuel_pts = teleop.total_fuel * points.teleop_fuel
    if fuel_pts:
        breakdown['teleop_fuel'] = fuel_pts
    total += fuel_pts

    level = teleop.climb_level
    tower_pts = points.tower_points(level)
    if tower_pts:
        breakdown[f'teleop_tower_level{level}'] = tower_pts
    total += tower_pts

    speed_pts = climb_speed_adjustment(teleop, points)
    if speed_pts:
        breakdown['climb_speed'] = speed_pts
    total += speed_pts

    return total, breakdown


def score_endgame(endgame: EndgameInputs, points: PointValues) -> Tuple[float, Dict[str, float]]:
    """Score the endgame: FUEL in the shared zone, 1 point each."""
    breakdown = {}
    fuel_pts = endgame.fuel * points.endgame_fuel
    if fuel_pts:
        breakdown['endgame_fuel'] = fuel_pts
    return fuel_pts, breakdown


def compute_score(
    inputs: Union[ScoringInputs, Mapping, None],
    points: Optional[PointValues] = None,
) -> ScoreBreakdown:
    """
    Score one team's match.

    Accepts canonical ScoringInputs or a raw notes mapping (flat or nested).
    Missing or invalid fields count as zero, so this never raises on bad data.

    Args:
        inputs: ScoringInputs, notes mapping, or None
        points: Point table (default: configured season)

    Returns:
        ScoreBreakdown with per-period points and per-action breakdown
    """
    if not isinstance(inputs, ScoringInputs):
        inputs = parse_notes(inputs)
    if points is None:
        points = get_point_values()

    auto_pts, auto_breakdown = score_autonomous(inputs.autonomous, points)
    teleop_pts, teleop_breakdown = score_teleop(inputs.teleop, points)
    endgame_pts, endgame_breakdown = score_endgame(inputs.endgame, points)

    return ScoreBreakdown(
        autonomous_points=auto_pts,
        teleop_points=teleop_pts,
        endgame_points=endgame_pts,
        breakdown={**auto_breakdown, **teleop_breakdown, **endgame_breakdown},
    )
