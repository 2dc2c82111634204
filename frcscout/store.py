"""Client for the hosted Supabase database (PostgREST + auth endpoints)."""

import logging
import os
from functools import lru_cache
from typing import Optional

import requests

from .constants import PIT_SCOUTING_TABLE, SCOUTING_TABLE, season_match_pattern

logger = logging.getLogger('frcscout.store')


class SupabaseClient:
    """
    Thin wrapper over the Supabase REST API.

    One instance (and one HTTP session) serves the whole process; use
    ``get_client()`` instead of constructing it per request. HTTP errors are
    raised as ``requests.HTTPError`` and never retried here.
    """

    def __init__(
        self,
        url: str,
        key: str,
        session: Optional[requests.Session] = None,
        timeout: float = 10.0,
    ):
        self.base_url = url.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            'apikey': key,
            'Authorization': f'Bearer {key}',
            'Content-Type': 'application/json',
        })

    def _table_url(self, table: str) -> str:
        return f'{self.base_url}/rest/v1/{table}'

    def select(
        self,
        table: str,
        filters: Optional[dict[str, str]] = None,
        order: Optional[str] = None,
    ) -> list[dict]:
        """
        Fetch rows from a table.

        Args:
            table: Table name
            filters: PostgREST filters, e.g. {'team_number': 'eq.6897'}
            order: Order clause, e.g. 'created_at.asc'
        """
        params = {'select': '*'}
        params.update(filters or {})
        if order:
            params['order'] = order

        logger.debug(f'GET {table} {params}')
        response = self.session.get(self._table_url(table), params=params, timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    def insert(self, table: str, row: dict) -> dict:
        """Insert one row and return it as stored."""
        logger.debug(f'POST {table}')
        response = self.session.post(
            self._table_url(table),
            json=row,
            headers={'Prefer': 'return=representation'},
            timeout=self.timeout,
        )
        response.raise_for_status()
        created = response.json()
        return created[0] if isinstance(created, list) and created else created

    def delete(self, table: str, record_id: str) -> None:
        logger.debug(f'DELETE {table} id={record_id}')
        response = self.session.delete(
            self._table_url(table),
            params={'id': f'eq.{record_id}'},
            timeout=self.timeout,
        )
        response.raise_for_status()

    def get_user(self, access_token: str) -> Optional[dict]:
        """Resolve a session access token to its user, or None if the token is rejected."""
        response = self.session.get(
            f'{self.base_url}/auth/v1/user',
            headers={'Authorization': f'Bearer {access_token}'},
            timeout=self.timeout,
        )
        if response.status_code in (401, 403):
            return None
        response.raise_for_status()
        return response.json()

    def fetch_scouting_rows(
        self,
        season: Optional[int] = None,
        team_number: Optional[int] = None,
    ) -> list[dict]:
        """Scouting rows, optionally limited to one season's match ids and one team."""
        filters = {}
        if season is not None:
            filters['match_id'] = f'like.{season_match_pattern(season)}'
        if team_number is not None:
            filters['team_number'] = f'eq.{team_number}'
        return self.select(SCOUTING_TABLE, filters, order='created_at.asc')

    def insert_scouting_row(self, row: dict) -> dict:
        return self.insert(SCOUTING_TABLE, row)

    def delete_scouting_row(self, record_id: str) -> None:
        self.delete(SCOUTING_TABLE, record_id)

    def fetch_pit_scouting(self, team_number: Optional[int] = None) -> list[dict]:
        filters = {'team_number': f'eq.{team_number}'} if team_number is not None else None
        return self.select(PIT_SCOUTING_TABLE, filters, order='created_at.desc')

    def insert_pit_scouting(self, row: dict) -> dict:
        return self.insert(PIT_SCOUTING_TABLE, row)


@lru_cache(maxsize=1)
def get_client() -> SupabaseClient:
    """
    Process-wide Supabase client built from the environment.

    Reads SUPABASE_URL and SUPABASE_KEY (or SUPABASE_SERVICE_ROLE_KEY).

    Raises:
        RuntimeError: If the environment is not configured
    """
    url = os.environ.get('SUPABASE_URL')
    key = os.environ.get('SUPABASE_KEY') or os.environ.get('SUPABASE_SERVICE_ROLE_KEY')
    if not url or not key:
        raise RuntimeError('SUPABASE_URL and SUPABASE_KEY must be set')
    logger.info(f'Connecting to Supabase at {url}')
    return SupabaseClient(url, key)
