"""Vercel Serverless Function for scouting submissions and team aggregates."""

import json
from http.server import BaseHTTPRequestHandler
from urllib.parse import parse_qs, urlparse

import requests

from frcscout import (
    ScoutingDataFetcher,
    ScoutingFormError,
    delete_scouting_data,
    submit_scouting_data,
)
from frcscout.logging_config import get_logger
from frcscout.store import get_client

logger = get_logger('api')


def bearer_token(authorization: str | None) -> str | None:
    """Extract the access token from an Authorization header."""
    if not authorization or not authorization.startswith('Bearer '):
        return None
    token = authorization[len('Bearer '):].strip()
    return token or None


class handler(BaseHTTPRequestHandler):  # noqa: N801
    def do_OPTIONS(self):
        """Handle CORS preflight - no auth needed."""
        self.send_response(200)
        self.send_header('Access-Control-Allow-Origin', '*')
        self.send_header('Access-Control-Allow-Methods', 'GET, POST, DELETE, OPTIONS')
        self.send_header('Access-Control-Allow-Headers', 'Content-Type, Authorization')
        self.send_header('Access-Control-Max-Age', '86400')
        self.send_header('Content-Length', '0')
        self.end_headers()

    def do_GET(self):
        """Team aggregate for ?team_number=N."""
        query = parse_qs(urlparse(self.path).query)
        team = (query.get('team_number') or [None])[0]

        try:
            team_number = int(team)
        except (TypeError, ValueError):
            return self._send_json(400, {'error': 'team_number is required'})

        try:
            fetcher = ScoutingDataFetcher()
            aggregate = fetcher.team_aggregate(team_number)
        except RuntimeError as e:
            return self._send_json(500, {'error': str(e)})
        except requests.RequestException as e:
            logger.error(f'Failed to load scouting data for team {team_number}: {e}')
            return self._send_json(502, {'error': 'Failed to load scouting data'})

        return self._send_json(200, {'team_number': team_number, **aggregate.as_dict()})

    def do_POST(self):
        """Score and store a scouting submission for the logged-in scout."""
        token = bearer_token(self.headers.get('Authorization'))
        if not token:
            return self._send_json(401, {'error': 'Not logged in'})

        try:
            content_length = int(self.headers.get('Content-Length', 0))
            body = self.rfile.read(content_length)
            data = json.loads(body.decode()) if body else {}
            if not isinstance(data, dict):
                return self._send_json(400, {'error': 'Expected a JSON object'})

            client = get_client()
            user = client.get_user(token)
            if not user:
                return self._send_json(401, {'error': 'Invalid session'})

            created = submit_scouting_data(data, user, client=client)
            return self._send_json(201, {'success': True, 'record': created})

        except json.JSONDecodeError:
            return self._send_json(400, {'error': 'Invalid JSON'})
        except ScoutingFormError as e:
            return self._send_json(400, {'error': str(e)})
        except requests.HTTPError as e:
            logger.error(f'Store rejected submission: {e}')
            return self._send_json(502, {'error': 'Failed to save scouting data'})
        except Exception as e:
            return self._send_json(500, {'error': str(e)})

    def do_DELETE(self):
        """Delete a submission by ?id= (admins only)."""
        token = bearer_token(self.headers.get('Authorization'))
        if not token:
            return self._send_json(401, {'error': 'Not logged in'})

        record_id = (parse_qs(urlparse(self.path).query).get('id') or [None])[0]
        if not record_id:
            return self._send_json(400, {'error': 'id is required'})

        try:
            client = get_client()
            user = client.get_user(token)
            if not user:
                return self._send_json(401, {'error': 'Invalid session'})

            delete_scouting_data(record_id, user, client=client)
            return self._send_json(200, {'success': True})

        except PermissionError as e:
            return self._send_json(403, {'error': str(e)})
        except requests.HTTPError as e:
            logger.error(f'Store rejected delete of {record_id}: {e}')
            return self._send_json(502, {'error': 'Failed to delete scouting data'})
        except Exception as e:
            return self._send_json(500, {'error': str(e)})

    def _send_json(self, status_code: int, data: dict):
        """Send JSON response with CORS headers."""
        self.send_response(status_code)
        self.send_header('Content-Type', 'application/json')
        self.send_header('Access-Control-Allow-Origin', '*')
        self.send_header('Access-Control-Allow-Methods', 'GET, POST, DELETE, OPTIONS')
        self.send_header('Access-Control-Allow-Headers', 'Content-Type, Authorization')
        self.end_headers()
        self.wfile.write(json.dumps(data).encode())

    def log_message(self, format, *args):
        """Suppress default logging."""
        pass
