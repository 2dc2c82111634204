"""Derived results computed by the scoring and metrics engines (never persisted)."""

from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from .constants import MAX_SHIFTS


@dataclass(frozen=True)
class ScoreBreakdown:
    """Points earned in one match, per period and per scoring action."""
    autonomous_points: float = 0.0
    teleop_points: float = 0.0
    endgame_points: float = 0.0
    breakdown: Dict[str, float] = field(default_factory=dict)

    @property
    def final_score(self) -> float:
        return self.autonomous_points + self.teleop_points + self.endgame_points

    def rounded(self) -> Dict[str, float]:
        """Score columns as stored and displayed (one decimal, total from full precision)."""
        return {
            'autonomous_points': round(self.autonomous_points, 1),
            'teleop_points': round(self.teleop_points, 1),
            'endgame_points': round(self.endgame_points, 1),
            'final_score': round(self.final_score, 1),
        }


@dataclass(frozen=True)
class TeamAggregate:
    """Team-level summary over a set of match records."""
    match_count: int = 0
    avg_autonomous_points: float = 0.0
    avg_teleop_points: float = 0.0
    avg_endgame_points: float = 0.0
    avg_total_score: float = 0.0
    avg_defense_rating: float = 0.0
    best_score: float = 0.0
    worst_score: float = 0.0
    score_std_dev: float = 0.0
    consistency: float = 100.0
    avg_downtime_sec: float = 0.0
    uptime_pct: float = 0.0
    broke_count: int = 0
    broke_reported: int = 0
    broke_rate: float = 0.0
    avg_auto_fuel: float = 0.0
    avg_teleop_fuel: float = 0.0
    avg_endgame_fuel: float = 0.0
    avg_climb_pts: float = 0.0
    avg_auto_climb_pts: float = 0.0
    avg_teleop_climb_pts: float = 0.0
    climb_rate: float = 0.0
    avg_climb_sec: float = 0.0
    avg_autonomous_cleansing: float = 0.0
    avg_teleop_cleansing: float = 0.0
    shift_averages: Tuple[float, ...] = (0.0,) * MAX_SHIFTS
    clank: float = 0.0
    rpmagic: float = 0.0
    goblin: float = 0.0
    formula_flags: List[str] = field(default_factory=list)  # Composite indices needing review

    def as_dict(self) -> dict:
        """Plain dict for JSON responses and data frames."""
        data = {name: getattr(self, name) for name in self.__dataclass_fields__}
        data['shift_averages'] = list(self.shift_averages)
        data['formula_flags'] = list(self.formula_flags)
        return data
