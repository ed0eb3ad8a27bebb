"""
Data access for planning events over the hosted database's REST API.

Rows are fetched with PostgREST query parameters and converted to `Event`
values. This is the boundary where malformed rows are rejected: an event
that ends before it starts is logged and dropped unless the configuration
explicitly allows such rows through.
"""

from collections import Counter
from datetime import datetime
from typing import Iterable, Optional

import requests

from .config import BackendConfig
from .debug_log import debug_print, warn_print
from .event_model import (
    Event, EventStatus, InvalidEventError, OwnerType, Participant, TargetRole,
    event_from_record, event_to_record, validate_time_order,
)


def _debug_print(msg: str):
    debug_print("CLIENT", msg)


class EventClientError(Exception):
    """Raised when the REST API cannot be reached or answers with an error."""


def _in_list(values: Iterable[str]) -> str:
    return "(" + ",".join(values) + ")"


class EventClient:
    """
    Client for the `events` and `event_participants` tables.

    One `requests.Session` is kept per client so the auth headers and the
    connection pool are shared between calls.
    """

    def __init__(self, config: BackendConfig, session: Optional[requests.Session] = None):
        self.config = config
        self.base_url = config.url.rstrip('/') + '/rest/v1'
        self.session = session or requests.Session()
        token = config.access_token or config.api_key
        self.session.headers.update({
            'apikey': config.api_key,
            'Authorization': f'Bearer {token}',
            'Accept': 'application/json',
            'User-Agent': 'CLAS-Planning/1.0',
        })

    def _request(self, method: str, table: str, params: Optional[dict] = None,
                 json_body=None, prefer: Optional[str] = None):
        url = f"{self.base_url}/{table}"
        headers = {'Prefer': prefer} if prefer else None
        try:
            response = self.session.request(
                method, url,
                params=params,
                json=json_body,
                headers=headers,
                timeout=self.config.timeout,
            )
            response.raise_for_status()
        except requests.HTTPError as e:
            detail = e.response.text if e.response is not None else ''
            raise EventClientError(f"{method} {table} failed: {e} {detail}".strip()) from e
        except requests.RequestException as e:
            raise EventClientError(f"Network error on {method} {table}: {e}") from e

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise EventClientError(f"Invalid JSON from {table}: {e}") from e

    def _to_events(self, rows: list) -> list[Event]:
        events = []
        for row in rows:
            try:
                event = event_from_record(row)
                if not self.config.allow_inverted_events:
                    validate_time_order(event)
            except InvalidEventError as e:
                warn_print("CLIENT", f"Skipping event row: {e}")
                continue
            events.append(event)
        return events

    # --- queries ---

    def fetch_events(self, range_start: Optional[datetime] = None,
                     range_end: Optional[datetime] = None,
                     owner_type: Optional[str] = None,
                     owner_id: Optional[str] = None,
                     target_roles: Optional[Iterable[TargetRole]] = None,
                     statuses: Optional[Iterable[EventStatus]] = None) -> list[Event]:
        """
        Events intersecting [range_start, range_end], ordered by start time.

        Either bound may be None for an open range. Role and status filters
        are applied server-side; an empty filter means no restriction.
        """
        params = {'select': '*', 'order': 'start_time.asc'}
        if range_end is not None:
            params['start_time'] = f"lte.{range_end.isoformat()}"
        if range_start is not None:
            params['end_time'] = f"gte.{range_start.isoformat()}"
        if owner_type:
            params['owner_type'] = f"eq.{OwnerType(owner_type).value}"
        if owner_id:
            params['owner_id'] = f"eq.{owner_id}"
        roles = [TargetRole(r).value for r in (target_roles or ())]
        if roles:
            params['target_roles'] = "ov.{" + ",".join(sorted(roles)) + "}"
        status_values = [EventStatus(s).value for s in (statuses or ())]
        if status_values:
            params['status'] = "in." + _in_list(sorted(status_values))

        rows = self._request('GET', 'events', params=params) or []
        events = self._to_events(rows)
        _debug_print(f"Fetched {len(events)} of {len(rows)} event rows")
        return events

    def get_event_participants(self, event_id: str) -> list[Participant]:
        params = {
            'select': 'id,profile_id,profile:profiles(id,email,first_name,last_name)',
            'event_id': f"eq.{event_id}",
        }
        rows = self._request('GET', 'event_participants', params=params) or []
        participants = []
        for row in rows:
            profile = row.get('profile') or {}
            participants.append(Participant(
                profile_id=str(row['profile_id']),
                email=profile.get('email') or '',
                first_name=profile.get('first_name'),
                last_name=profile.get('last_name'),
            ))
        return participants

    def get_participant_counts(self, event_ids: Iterable[str]) -> dict[str, int]:
        """Participant count per event id, in one request; absent ids count 0."""
        ids = list(event_ids)
        if not ids:
            return {}
        params = {'select': 'event_id', 'event_id': "in." + _in_list(ids)}
        rows = self._request('GET', 'event_participants', params=params) or []
        counts = Counter(str(row['event_id']) for row in rows)
        return {event_id: counts.get(event_id, 0) for event_id in ids}

    # --- mutations ---

    def create_event(self, event: Event) -> Event:
        record = event_to_record(validate_time_order(event))
        if not record['id']:
            del record['id']
        rows = self._request('POST', 'events', json_body=record, prefer='return=representation')
        _debug_print(f"Created event '{event.title}'")
        return self._single(rows)

    def update_event(self, event: Event) -> Event:
        record = event_to_record(validate_time_order(event))
        rows = self._request('PATCH', 'events', params={'id': f"eq.{event.id}"},
                             json_body=record, prefer='return=representation')
        _debug_print(f"Updated event {event.id}")
        return self._single(rows)

    def delete_event(self, event_id: str):
        self._request('DELETE', 'events', params={'id': f"eq.{event_id}"})
        _debug_print(f"Deleted event {event_id}")

    def set_event_participants(self, event_id: str, profile_ids: Iterable[str]):
        """Replace the participant list of an event."""
        self._request('DELETE', 'event_participants', params={'event_id': f"eq.{event_id}"})
        rows = [{'event_id': event_id, 'profile_id': pid} for pid in profile_ids]
        if rows:
            self._request('POST', 'event_participants', json_body=rows)

    def _single(self, rows) -> Event:
        if not rows:
            raise EventClientError("Mutation returned no row")
        try:
            return event_from_record(rows[0])
        except InvalidEventError as e:
            raise EventClientError(f"Mutation returned an invalid row: {e}") from e
