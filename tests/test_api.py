"""Unit tests for the serverless handler."""

import io
import json
from unittest.mock import MagicMock, Mock, patch

import pytest
import requests

from api.scouting_data import bearer_token, handler
from frcscout.constants import SEASON_POINT_VALUES
from frcscout.metrics import compute_team_aggregate
from frcscout.schemas import PointValues

POINTS = PointValues(**SEASON_POINT_VALUES[2026])
SCOUT = {'id': 'user-1', 'email': 'scout@example.com'}
ADMIN = {'id': 'user-2', 'email': 'lead@example.com', 'user_metadata': {'role': 'admin'}}

PAYLOAD = {
    'match_id': 'avalanche_2026_qm4',
    'team_number': 6897,
    'alliance_color': 'red',
    'alliance_position': 2,
    'teleop': {'teleop_fuel_shifts': [4, 7, 3]},
}


def send(method, path='/api/scouting_data', body=None, token='abc.def'):
    """Run one request through the handler; returns (status, JSON body)."""
    request = handler.__new__(handler)
    if body is None:
        raw = b''
    elif isinstance(body, bytes):
        raw = body
    else:
        raw = json.dumps(body).encode()
    request.headers = {'Content-Length': str(len(raw))}
    if token:
        request.headers['Authorization'] = f'Bearer {token}'
    request.path = path
    request.rfile = io.BytesIO(raw)
    request.wfile = io.BytesIO()
    request.send_response = Mock()
    request.send_header = Mock()
    request.end_headers = Mock()

    getattr(request, f'do_{method}')()

    status = request.send_response.call_args[0][0]
    return status, json.loads(request.wfile.getvalue().decode())


class TestBearerToken:
    def test_token(self):
        assert bearer_token('Bearer abc.def') == 'abc.def'

    @pytest.mark.parametrize('header', [None, '', 'Basic abc', 'Bearer ', 'bearer abc'])
    def test_missing_or_malformed(self, header):
        assert bearer_token(header) is None


class TestGetAggregate:
    @pytest.mark.parametrize('path', [
        '/api/scouting_data',
        '/api/scouting_data?team_number=',
        '/api/scouting_data?team_number=abc',
    ])
    def test_bad_team_number(self, path):
        status, body = send('GET', path, token=None)
        assert status == 400
        assert body['error'] == 'team_number is required'

    @patch('api.scouting_data.ScoutingDataFetcher')
    def test_aggregate(self, mock_fetcher_class):
        mock_fetcher = MagicMock()
        mock_fetcher_class.return_value = mock_fetcher
        mock_fetcher.team_aggregate.return_value = compute_team_aggregate([], POINTS)

        status, body = send('GET', '/api/scouting_data?team_number=6897', token=None)

        assert status == 200
        assert body['team_number'] == 6897
        assert body['match_count'] == 0
        mock_fetcher.team_aggregate.assert_called_once_with(6897)

    @patch('api.scouting_data.ScoutingDataFetcher')
    def test_store_unreachable(self, mock_fetcher_class):
        mock_fetcher_class.return_value.team_aggregate.side_effect = requests.ConnectionError('down')
        status, body = send('GET', '/api/scouting_data?team_number=6897', token=None)
        assert status == 502

    @patch('api.scouting_data.ScoutingDataFetcher')
    def test_store_not_configured(self, mock_fetcher_class):
        mock_fetcher_class.return_value.team_aggregate.side_effect = RuntimeError('SUPABASE_URL is not set')
        status, body = send('GET', '/api/scouting_data?team_number=6897', token=None)
        assert status == 500
        assert body['error'] == 'SUPABASE_URL is not set'


class TestPostSubmission:
    def test_not_logged_in(self):
        status, body = send('POST', body=PAYLOAD, token=None)
        assert status == 401

    @patch('api.scouting_data.get_client')
    def test_invalid_session(self, mock_get_client):
        mock_get_client.return_value.get_user.return_value = None
        status, body = send('POST', body=PAYLOAD)
        assert status == 401
        assert body['error'] == 'Invalid session'

    @pytest.mark.parametrize('raw', [b'{not json', b'[1, 2, 3]'])
    def test_bad_body(self, raw):
        status, body = send('POST', body=raw)
        assert status == 400

    @patch('api.scouting_data.get_client')
    def test_invalid_form(self, mock_get_client):
        client = mock_get_client.return_value
        client.get_user.return_value = SCOUT
        status, body = send('POST', body={'team_number': 6897})
        assert status == 400
        client.insert_scouting_row.assert_not_called()

    @patch('api.scouting_data.get_client')
    def test_store_rejects(self, mock_get_client):
        client = mock_get_client.return_value
        client.get_user.return_value = SCOUT
        client.insert_scouting_row.side_effect = requests.HTTPError('409 Conflict')
        status, body = send('POST', body=PAYLOAD)
        assert status == 502

    @patch('api.scouting_data.get_client')
    def test_created(self, mock_get_client):
        client = mock_get_client.return_value
        client.get_user.return_value = SCOUT
        client.insert_scouting_row.side_effect = lambda row: {'id': 'r1', **row}

        status, body = send('POST', body=PAYLOAD)

        assert status == 201
        assert body['success'] is True
        assert body['record']['id'] == 'r1'
        assert body['record']['final_score'] == 14.0
        client.get_user.assert_called_once_with('abc.def')


class TestDeleteSubmission:
    def test_not_logged_in(self):
        status, body = send('DELETE', '/api/scouting_data?id=r1', token=None)
        assert status == 401

    def test_missing_id(self):
        status, body = send('DELETE', '/api/scouting_data')
        assert status == 400

    @patch('api.scouting_data.get_client')
    def test_invalid_session(self, mock_get_client):
        mock_get_client.return_value.get_user.return_value = None
        status, body = send('DELETE', '/api/scouting_data?id=r1')
        assert status == 401

    @patch('api.scouting_data.get_client')
    def test_scout_forbidden(self, mock_get_client):
        client = mock_get_client.return_value
        client.get_user.return_value = SCOUT
        status, body = send('DELETE', '/api/scouting_data?id=r1')
        assert status == 403
        client.delete_scouting_row.assert_not_called()

    @patch('api.scouting_data.get_client')
    def test_admin_deletes(self, mock_get_client):
        client = mock_get_client.return_value
        client.get_user.return_value = ADMIN
        status, body = send('DELETE', '/api/scouting_data?id=r1')
        assert status == 200
        client.delete_scouting_row.assert_called_once_with('r1')

    @patch('api.scouting_data.get_client')
    def test_store_rejects(self, mock_get_client):
        client = mock_get_client.return_value
        client.get_user.return_value = ADMIN
        client.delete_scouting_row.side_effect = requests.HTTPError('500 Server Error')
        status, body = send('DELETE', '/api/scouting_data?id=r1')
        assert status == 502
