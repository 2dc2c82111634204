"""Step-by-step assembly of a scouting submission."""

from datetime import datetime, timezone
from typing import Any, Optional

from .notes import parse_notes
from .schemas import MatchRecord, PointValues, ScoringInputs
from .scoring import compute_score

STEPS = ('match_details', 'autonomous', 'teleop', 'endgame', 'miscellaneous')
TOWER_LEVEL_KEYS = ('teleop_tower_level1', 'teleop_tower_level2', 'teleop_tower_level3')


class ScoutingFormError(ValueError):
    """Raised when a submission cannot be built from the collected steps."""


class ScoutingFormBuilder:
    """
    Collects the scouting form one step at a time.

    Each step merges its fields into the pending submission; revisiting a
    step overwrites what it set before. ``build`` scores the match and
    returns an immutable MatchRecord.

    Example:
        record = (
            ScoutingFormBuilder()
            .match_details('avalanche_2026_qm4', 6897, 'red', 2)
            .autonomous(auto_fuel_active_hub=6, auto_tower_level1=True)
            .teleop(teleop_fuel_shifts=[4, 7, 3], teleop_tower_level2=True, climb_sec=2.8)
            .miscellaneous(defense_rating=6, comments='fast cycles', broke=False)
            .build({'id': 'u1', 'email': 'scout@example.com'})
        )
    """

    def __init__(self, points: Optional[PointValues] = None):
        self.points = points
        self._match: dict[str, Any] = {}
        self._autonomous: dict[str, Any] = {}
        self._teleop: dict[str, Any] = {}
        self._endgame: dict[str, Any] = {}
        self._misc: dict[str, Any] = {}
        self._completed: list[str] = []

    @property
    def completed_steps(self) -> tuple[str, ...]:
        return tuple(step for step in STEPS if step in self._completed)

    def _mark(self, step: str) -> 'ScoutingFormBuilder':
        if step not in self._completed:
            self._completed.append(step)
        return self

    def match_details(
        self,
        match_id: str,
        team_number: int,
        alliance_color: str,
        alliance_position: Optional[int] = None,
    ) -> 'ScoutingFormBuilder':
        self._match = {
            'match_id': match_id,
            'team_number': team_number,
            'alliance_color': alliance_color,
            'alliance_position': alliance_position,
        }
        return self._mark('match_details')

    def autonomous(self, **fields: Any) -> 'ScoutingFormBuilder':
        """Autonomous fields, keyed like the notes payload (auto_fuel_active_hub, ...)."""
        self._autonomous.update(fields)
        return self._mark('autonomous')

    def teleop(self, **fields: Any) -> 'ScoutingFormBuilder':
        """Teleop fields; choosing a tower level clears the other levels."""
        if any(fields.get(key) for key in TOWER_LEVEL_KEYS):
            for key in TOWER_LEVEL_KEYS:
                self._teleop[key] = False
        self._teleop.update(fields)
        return self._mark('teleop')

    def endgame(self, **fields: Any) -> 'ScoutingFormBuilder':
        self._endgame.update(fields)
        return self._mark('endgame')

    def miscellaneous(
        self,
        defense_rating: int = 0,
        comments: str = '',
        average_downtime: Optional[float] = None,
        broke: Optional[bool] = None,
    ) -> 'ScoutingFormBuilder':
        self._misc = {
            'defense_rating': defense_rating,
            'comments': comments,
            'average_downtime': average_downtime,
            'broke': broke,
        }
        return self._mark('miscellaneous')

    def notes(self) -> dict:
        """Nested notes payload collected so far."""
        return {
            'autonomous': dict(self._autonomous),
            'teleop': dict(self._teleop),
            'endgame': dict(self._endgame),
        }

    def inputs(self) -> ScoringInputs:
        """Canonical scoring inputs collected so far."""
        parsed = parse_notes(self.notes())
        return ScoringInputs(
            autonomous=parsed.autonomous,
            teleop=parsed.teleop,
            endgame=parsed.endgame,
            **self._misc,
        )

    def build(self, submitter: Optional[dict] = None) -> MatchRecord:
        """
        Score the collected steps and freeze them into a MatchRecord.

        Args:
            submitter: Logged-in user dict (id, email, name)

        Raises:
            ScoutingFormError: If match details were never entered or are invalid
        """
        if 'match_details' not in self._completed:
            raise ScoutingFormError('Match details are required before submitting')

        submitter = submitter or {}
        inputs = self.inputs()
        score = compute_score(inputs, self.points)

        try:
            return MatchRecord(
                **self._match,
                inputs=inputs,
                **score.rounded(),
                scout_id=submitter.get('id'),
                submitted_by_name=submitter.get('name') or submitter.get('email'),
                submitted_by_email=submitter.get('email'),
                submitted_at=datetime.now(timezone.utc).isoformat(),
            )
        except ValueError as e:
            raise ScoutingFormError(f'Invalid match details: {e}') from e
