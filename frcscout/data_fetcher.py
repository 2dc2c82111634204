"""Bulk loading of scouting rows using polars."""

import json
import logging
import math
from typing import Any, Optional

import polars as pl
from pydantic import ValidationError

from .config import get_current_season
from .metrics import compute_team_aggregate
from .models import TeamAggregate
from .records import record_from_row
from .schemas import MatchRecord, PointValues
from .store import SupabaseClient, get_client

logger = logging.getLogger('frcscout.data_fetcher')

FRAME_SCHEMA = {
    'id': pl.Utf8,
    'match_id': pl.Utf8,
    'team_number': pl.Int64,
    'alliance_color': pl.Utf8,
    'alliance_position': pl.Int64,
    'autonomous_points': pl.Float64,
    'teleop_points': pl.Float64,
    'endgame_points': pl.Float64,
    'final_score': pl.Float64,
    'autonomous_cleansing': pl.Float64,
    'teleop_cleansing': pl.Float64,
    'defense_rating': pl.Float64,
    'comments': pl.Utf8,
    'average_downtime': pl.Float64,
    'broke': pl.Boolean,
    'notes': pl.Utf8,
    'scout_id': pl.Utf8,
    'submitted_by_name': pl.Utf8,
    'submitted_by_email': pl.Utf8,
    'submitted_at': pl.Utf8,
    'created_at': pl.Utf8,
}


def _as_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _as_int(value: Any) -> Optional[int]:
    number = _as_float(value)
    return int(number) if number is not None and number.is_integer() else None


def _as_text(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def _prepare_row(row: dict) -> dict:
    """Coerce one raw row to the frame's column types; notes become JSON text."""
    prepared = {}
    for column, dtype in FRAME_SCHEMA.items():
        value = row.get(column)
        if column == 'notes':
            prepared[column] = value if isinstance(value, str) or value is None else json.dumps(value, default=str)
        elif dtype == pl.Int64:
            prepared[column] = _as_int(value)
        elif dtype == pl.Float64:
            prepared[column] = _as_float(value)
        elif dtype == pl.Boolean:
            prepared[column] = value if isinstance(value, bool) else None
        else:
            prepared[column] = _as_text(value)
    return prepared


def build_frame(
    rows: list[dict],
    season: Optional[int] = None,
    event_key: Optional[str] = None,
) -> pl.DataFrame:
    """
    Build a typed DataFrame from raw scouting rows.

    Rows without a usable team number are dropped. When a season (or event
    key) is given, only rows whose match id contains it are kept.
    """
    frame = pl.DataFrame([_prepare_row(row) for row in rows], schema=FRAME_SCHEMA)

    usable = frame.filter(pl.col('team_number').is_not_null() & pl.col('match_id').is_not_null())
    if usable.height < frame.height:
        logger.warning(f'Dropped {frame.height - usable.height} rows without team number or match id')

    if season is not None:
        usable = usable.filter(pl.col('match_id').str.contains(str(season), literal=True))
    if event_key:
        usable = usable.filter(pl.col('match_id').str.contains(event_key, literal=True))
    return usable


class ScoutingDataFetcher:
    """Fetches and caches one season's scouting rows."""

    def __init__(
        self,
        season: Optional[int] = None,
        client: Optional[SupabaseClient] = None,
        rows: Optional[list[dict]] = None,
        event_key: Optional[str] = None,
    ):
        """
        Args:
            season: Season year (default: current season from config)
            client: Supabase client (default: process-wide client); ignored when rows are given
            rows: Already-loaded rows, e.g. from an export file
            event_key: Only keep matches of this event
        """
        self.season = season if season is not None else get_current_season()
        self.client = client
        self.event_key = event_key
        self._raw_rows = rows
        self._static_rows = rows is not None
        self._frame: Optional[pl.DataFrame] = None

    @property
    def frame(self) -> pl.DataFrame:
        """Lazy load scouting rows."""
        if self._frame is None:
            if self._raw_rows is None:
                client = self.client or get_client()
                logger.info(f'Loading scouting rows for {self.season}...')
                self._raw_rows = client.fetch_scouting_rows(season=self.season)
            self._frame = build_frame(self._raw_rows, self.season, self.event_key)
            logger.info(f'Loaded {self._frame.height} scouting rows for {self.season}')
        return self._frame

    def refresh(self) -> None:
        """Forget cached rows (e.g. after a delete) so the next read refetches."""
        self._frame = None
        if not self._static_rows:
            self._raw_rows = None

    def team_numbers(self) -> list[int]:
        return self.frame.get_column('team_number').unique().sort().to_list()

    def records_for_team(self, team_number: int) -> list[MatchRecord]:
        """MatchRecords for one team, oldest first; unreadable rows are skipped."""
        team_rows = self.frame.filter(pl.col('team_number') == team_number).sort(
            'created_at', nulls_last=True
        )
        records = []
        for row in team_rows.iter_rows(named=True):
            try:
                records.append(record_from_row(row))
            except ValidationError as e:
                logger.warning(f'Skipping row {row.get("id")} for team {team_number}: {e}')
        return records

    def team_aggregate(self, team_number: int, points: Optional[PointValues] = None) -> TeamAggregate:
        return compute_team_aggregate(self.records_for_team(team_number), points)

    def team_aggregates(self, points: Optional[PointValues] = None) -> dict[int, TeamAggregate]:
        return {team: self.team_aggregate(team, points) for team in self.team_numbers()}

    def summary_frame(self, points: Optional[PointValues] = None) -> pl.DataFrame:
        """One row per team, best average total score first."""
        rows = []
        for team, aggregate in self.team_aggregates(points).items():
            data = aggregate.as_dict()
            data.pop('formula_flags')
            rows.append({'team_number': team, **data})
        if not rows:
            return pl.DataFrame({'team_number': []}, schema={'team_number': pl.Int64})
        return pl.DataFrame(rows).sort(['avg_total_score', 'team_number'], descending=[True, False])
