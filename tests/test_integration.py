"""Integration tests for end-to-end workflows."""

import json
import logging
from unittest.mock import Mock

import pytest
import requests
from pydantic import ValidationError

import scout_report
from frcscout import config
from frcscout.builder import ScoutingFormError
from frcscout.constants import SEASON_POINT_VALUES
from frcscout.data_fetcher import ScoutingDataFetcher, build_frame
from frcscout.logging_config import get_logger, setup_logging
from frcscout.records import record_from_row, record_to_row
from frcscout.schemas import PointValues
from frcscout.store import SupabaseClient
from frcscout.submission import (
    delete_scouting_data,
    prepare_submission,
    submit_pit_scouting,
    submit_scouting_data,
)
from frcscout.utils import load_rows

POINTS = PointValues(**SEASON_POINT_VALUES[2026])
SCOUT = {'id': 'user-1', 'email': 'scout@example.com'}
ADMIN = {'id': 'user-2', 'email': 'lead@example.com', 'user_metadata': {'role': 'admin'}}

PAYLOAD = {
    'match_id': 'avalanche_2026_qm4',
    'team_number': 6897,
    'alliance_color': 'red',
    'alliance_position': 2,
    'autonomous': {'auto_fuel_active_hub': 6, 'auto_tower_level1': True},
    'teleop': {'teleop_fuel_shifts': [4, 7, 3], 'teleop_tower_level2': True, 'climb_sec': 2.8},
    'endgame': {'endgame_fuel': 3},
    'miscellaneous': {'defense_rating': 6, 'comments': 'fast cycles', 'broke': False},
}


def export_row(row_id, match_id, team, final, notes, created_at, **extra):
    row = {
        'id': row_id,
        'match_id': match_id,
        'team_number': team,
        'alliance_color': 'blue',
        'alliance_position': 1,
        'autonomous_points': 0.0,
        'teleop_points': final,
        'endgame_points': 0.0,
        'final_score': final,
        'defense_rating': 0,
        'comments': '',
        'average_downtime': None,
        'broke': None,
        'notes': notes,
        'created_at': created_at,
    }
    row.update(extra)
    return row


@pytest.fixture
def export_rows():
    """Rows as exported from the scouting_data table."""
    return [
        export_row('r1', 'avalanche_2026_qm1', 6897, 80.0,
                   json.dumps({'teleop_fuel_active_hub': 80}), '2026-03-06T10:00:00+00:00',
                   average_downtime=30, broke=False),
        export_row('r2', 'avalanche_2026_qm9', 6897, 120.0,
                   {'teleop': {'teleop_fuel_shifts': [60, 60]}}, '2026-03-06T14:00:00+00:00',
                   average_downtime=30, broke=True),
        export_row('r3', 'avalanche_2026_qm5', 6897, 100.0,
                   {'teleop': {'teleop_fuel_active_hub': 100}}, '2026-03-06T12:00:00+00:00',
                   average_downtime=30),
        export_row('r4', 'avalanche_2026_qm2', 254, 40.0,
                   {'teleop': {'teleop_fuel_active_hub': 40}}, '2026-03-06T10:05:00+00:00'),
        export_row('r5', 'avalanche_2025_qm2', 254, 300.0, None, '2025-03-06T10:05:00+00:00'),
        export_row('r6', 'avalanche_2026_qm3', None, 10.0, None, '2026-03-06T11:00:00+00:00'),
    ]


@pytest.fixture
def export_file(tmp_path, export_rows):
    path = tmp_path / 'scouting_data.json'
    with open(path, 'w') as f:
        json.dump({'scouting_data': export_rows}, f)
    return path


class TestExportWorkflow:
    """Tests for reading an export and aggregating per team."""

    def test_load_rows(self, export_file):
        rows = load_rows(export_file)
        assert len(rows) == 6
        assert rows[0]['id'] == 'r1'

    def test_load_rows_bare_list(self, tmp_path):
        path = tmp_path / 'rows.json'
        path.write_text(json.dumps([{'id': 'a'}, 'junk']))
        assert load_rows(path) == [{'id': 'a'}]

    def test_load_rows_without_list(self, tmp_path):
        path = tmp_path / 'rows.json'
        path.write_text(json.dumps({'teams': {}}))
        with pytest.raises(ValueError):
            load_rows(path)

    def test_frame_filters_season_and_bad_rows(self, export_rows):
        frame = build_frame(export_rows, 2026)
        assert sorted(frame.get_column('id').to_list()) == ['r1', 'r2', 'r3', 'r4']

    def test_frame_filters_event(self, export_rows):
        frame = build_frame(export_rows, 2026, event_key='avalanche_2026_qm9')
        assert frame.get_column('id').to_list() == ['r2']

    def test_team_numbers(self, export_file):
        fetcher = ScoutingDataFetcher(season=2026, rows=load_rows(export_file))
        assert fetcher.team_numbers() == [254, 6897]

    def test_records_oldest_first(self, export_file):
        fetcher = ScoutingDataFetcher(season=2026, rows=load_rows(export_file))
        records = fetcher.records_for_team(6897)
        assert [r.id for r in records] == ['r1', 'r3', 'r2']
        assert records[2].inputs.teleop.fuel_shifts == (60.0, 60.0)

    def test_team_aggregate(self, export_file):
        fetcher = ScoutingDataFetcher(season=2026, rows=load_rows(export_file))
        aggregate = fetcher.team_aggregate(6897, POINTS)
        assert aggregate.match_count == 3
        assert aggregate.avg_total_score == 100.0
        assert aggregate.consistency == 83.67
        assert aggregate.uptime_pct == 80.0
        assert aggregate.broke_rate == 50.0
        assert aggregate.avg_teleop_fuel == 100.0

    def test_unknown_team(self, export_file):
        fetcher = ScoutingDataFetcher(season=2026, rows=load_rows(export_file))
        assert fetcher.team_aggregate(1114, POINTS).match_count == 0

    def test_summary_ranking(self, export_file):
        fetcher = ScoutingDataFetcher(season=2026, rows=load_rows(export_file))
        summary = fetcher.summary_frame(POINTS)
        assert summary.get_column('team_number').to_list() == [6897, 254]

    def test_refresh_keeps_static_rows(self, export_rows):
        fetcher = ScoutingDataFetcher(season=2026, rows=export_rows)
        assert fetcher.frame.height == 4
        fetcher.refresh()
        assert fetcher.frame.height == 4

    def test_remote_rows(self, export_rows):
        client = Mock()
        client.fetch_scouting_rows.return_value = export_rows
        fetcher = ScoutingDataFetcher(season=2026, client=client)
        assert fetcher.team_numbers() == [254, 6897]
        fetcher.refresh()
        fetcher.team_numbers()
        assert client.fetch_scouting_rows.call_count == 2
        client.fetch_scouting_rows.assert_called_with(season=2026)

    def test_cleansing_columns_reach_aggregate(self):
        rows = [
            export_row('c1', 'avalanche_2026_qm1', 6897, 10.0, None, '2026-03-06T10:00:00+00:00',
                       autonomous_cleansing=4, teleop_cleansing=6),
            export_row('c2', 'avalanche_2026_qm2', 6897, 10.0, None, '2026-03-06T11:00:00+00:00',
                       autonomous_cleansing=4, teleop_cleansing=6),
        ]
        aggregate = ScoutingDataFetcher(season=2026, rows=rows).team_aggregate(6897, POINTS)
        assert aggregate.avg_autonomous_cleansing == 4.0
        assert aggregate.avg_teleop_cleansing == 6.0


class TestRowConversion:
    def test_missing_scores_are_recomputed(self):
        row = {
            'match_id': 'avalanche_2026_qm1',
            'team_number': 6897,
            'alliance_color': 'red',
            'notes': {'teleop': {'teleop_fuel_active_hub': 12, 'teleop_tower_level3': True}},
        }
        record = record_from_row(row, POINTS)
        assert record.teleop_points == 42.0
        assert record.final_score == 42.0

    def test_stored_scores_are_kept(self):
        row = export_row('r1', 'avalanche_2026_qm1', 6897, 55.0, None, None)
        record = record_from_row(row, POINTS)
        assert record.final_score == 55.0

    def test_cleansing_columns_override_notes(self):
        notes = {'autonomous': {'autonomous_cleansing': 1}, 'teleop': {'teleop_cleansing': 2}}
        row = export_row('r1', 'avalanche_2026_qm1', 6897, 55.0, notes, None,
                         autonomous_cleansing=4, teleop_cleansing='6')
        record = record_from_row(row, POINTS)
        assert record.inputs.autonomous.cleansing == 4.0
        assert record.inputs.teleop.cleansing == 6.0

    def test_cleansing_falls_back_to_notes(self):
        notes = {'autonomous': {'autonomous_cleansing': 1}, 'teleop': {'teleop_cleansing': 2}}
        row = export_row('r1', 'avalanche_2026_qm1', 6897, 55.0, notes, None, teleop_cleansing=None)
        record = record_from_row(row, POINTS)
        assert record.inputs.autonomous.cleansing == 1.0
        assert record.inputs.teleop.cleansing == 2.0

    def test_bad_identity_raises(self):
        with pytest.raises(ValidationError):
            record_from_row({'match_id': 'avalanche_2026_qm1', 'team_number': None}, POINTS)

    def test_prepared_row_reads_back(self):
        row = prepare_submission(PAYLOAD, SCOUT, POINTS)
        record = record_from_row(row, POINTS)
        assert record.final_score == row['final_score'] == 60.0
        assert record.inputs.teleop.fuel_shifts == (4.0, 7.0, 3.0)
        assert record.broke is False
        assert record_to_row(record)['notes'] == row['notes']


class TestSubmission:
    """Tests for the write side with a mocked store."""

    def test_prepare_scores_before_storing(self):
        row = prepare_submission(PAYLOAD, SCOUT, POINTS)
        assert row['autonomous_points'] == 21.0
        assert row['teleop_points'] == 36.0
        assert row['endgame_points'] == 3.0
        assert row['final_score'] == 60.0
        assert row['scout_id'] == 'user-1'
        assert row['notes']['teleop']['climb_sec'] == 2.8
        assert 'id' not in row

    def test_submit_inserts_row(self):
        client = Mock()
        client.insert_scouting_row.return_value = {'id': 'new-id'}
        created = submit_scouting_data(PAYLOAD, SCOUT, client=client, points=POINTS)
        assert created == {'id': 'new-id'}
        (row,), _ = client.insert_scouting_row.call_args
        assert row['final_score'] == 60.0

    def test_invalid_submission_not_stored(self):
        client = Mock()
        with pytest.raises(ScoutingFormError):
            submit_scouting_data({**PAYLOAD, 'team_number': None}, SCOUT, client=client, points=POINTS)
        client.insert_scouting_row.assert_not_called()

    def test_delete_requires_admin(self):
        client = Mock()
        with pytest.raises(PermissionError):
            delete_scouting_data('r1', SCOUT, client=client)
        client.delete_scouting_row.assert_not_called()

    def test_delete_as_admin(self):
        client = Mock()
        delete_scouting_data('r1', ADMIN, client=client)
        client.delete_scouting_row.assert_called_once_with('r1')

    def test_delete_anonymous(self):
        with pytest.raises(PermissionError):
            delete_scouting_data('r1', None, client=Mock())

    def test_pit_scouting(self):
        client = Mock()
        client.insert_pit_scouting.return_value = {'id': 'p1'}
        data = {
            'team_number': 6897,
            'robot_name': ' Avalanche ',
            'drive_type': 'Swerve',
            'autonomous_capabilities': ['Leave'],
            'teleop_capabilities': ['Score FUEL'],
            'endgame_capabilities': ['Level 1'],
            'overall_rating': 7,
        }
        assert submit_pit_scouting(data, SCOUT, client=client) == {'id': 'p1'}
        (row,), _ = client.insert_pit_scouting.call_args
        assert row['robot_name'] == 'Avalanche'
        assert row['submitted_by_email'] == 'scout@example.com'

    def test_invalid_pit_scouting(self):
        client = Mock()
        with pytest.raises(ValueError, match='overall_rating'):
            submit_pit_scouting({'team_number': 6897}, SCOUT, client=client)
        client.insert_pit_scouting.assert_not_called()


class TestSupabaseClient:
    """Tests for request construction against a mocked HTTP session."""

    @pytest.fixture
    def session(self):
        session = Mock()
        session.headers = {}
        return session

    def test_auth_headers(self, session):
        SupabaseClient('https://demo.supabase.co/', 'anon-key', session=session)
        assert session.headers['apikey'] == 'anon-key'
        assert session.headers['Authorization'] == 'Bearer anon-key'

    def test_fetch_scouting_rows(self, session):
        session.get.return_value.json.return_value = [{'id': 'r1'}]
        client = SupabaseClient('https://demo.supabase.co/', 'anon-key', session=session)
        assert client.fetch_scouting_rows(season=2026, team_number=6897) == [{'id': 'r1'}]
        args, kwargs = session.get.call_args
        assert args[0] == 'https://demo.supabase.co/rest/v1/scouting_data'
        assert kwargs['params'] == {
            'select': '*',
            'match_id': 'like.*2026*',
            'team_number': 'eq.6897',
            'order': 'created_at.asc',
        }

    def test_http_errors_propagate(self, session):
        session.get.return_value.raise_for_status.side_effect = requests.HTTPError('500')
        client = SupabaseClient('https://demo.supabase.co', 'anon-key', session=session)
        with pytest.raises(requests.HTTPError):
            client.fetch_scouting_rows()

    def test_rejected_token(self, session):
        session.get.return_value.status_code = 401
        client = SupabaseClient('https://demo.supabase.co', 'anon-key', session=session)
        assert client.get_user('expired') is None

    def test_insert_returns_stored_row(self, session):
        session.post.return_value.json.return_value = [{'id': 'new-id'}]
        client = SupabaseClient('https://demo.supabase.co', 'anon-key', session=session)
        assert client.insert_scouting_row({'match_id': 'qm1'}) == {'id': 'new-id'}


class TestConfig:
    """Tests for config loading and point overrides."""

    @pytest.fixture
    def config_file(self, tmp_path, monkeypatch):
        path = tmp_path / 'scouting_config.json'
        monkeypatch.setattr(config, 'CONFIG_PATH', path)
        config.clear_config_cache()
        yield path
        config.clear_config_cache()

    def test_overrides_apply_to_current_season(self, config_file):
        config_file.write_text(json.dumps({
            'current_season': 2026,
            'point_overrides': {'auto_leave': 2},
        }))
        assert config.get_current_season() == 2026
        assert config.get_point_values().auto_leave == 2.0

    def test_unknown_season(self, config_file):
        config_file.write_text(json.dumps({'current_season': 2026}))
        with pytest.raises(KeyError):
            config.get_point_values(2019)

    def test_unknown_override_rejected(self, config_file):
        config_file.write_text(json.dumps({
            'current_season': 2026,
            'point_overrides': {'coral_l4': 5},
        }))
        with pytest.raises(ValueError):
            config.get_config()

    def test_missing_file(self, config_file):
        with pytest.raises(FileNotFoundError):
            config.get_config()


class TestLogging:
    def test_console_only(self):
        logger = setup_logging(level='DEBUG', log_to_file=False)
        assert logger.name == 'frcscout'
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1
        logger.handlers = []

    def test_log_file(self, tmp_path):
        logger = setup_logging(log_dir=tmp_path, log_to_console=False)
        logger.info('hello')
        assert len(list(tmp_path.glob('frcscout_*.log'))) == 1
        for handler in logger.handlers:
            handler.close()
        logger.handlers = []

    def test_get_logger_namespace(self):
        assert get_logger('notes').name == 'frcscout.notes'
        assert get_logger('frcscout.store').name == 'frcscout.store'

    def test_report_logger_writes_to_log_file(self, tmp_path):
        logger = setup_logging(log_dir=tmp_path, log_to_console=False)
        scout_report.logger.info('Loaded 3 rows')
        for handler in logger.handlers:
            handler.close()
        logger.handlers = []

        text = next(tmp_path.glob('frcscout_*.log')).read_text()
        assert 'frcscout.report' in text
        assert 'Loaded 3 rows' in text

    def test_urllib3_held_at_warning(self):
        logger = setup_logging(level='DEBUG', log_to_file=False)
        assert logging.getLogger('urllib3').level == logging.WARNING
        logger.handlers = []
