"""
Email notifications to event participants.

Emails go out one at a time through the transactional email HTTP API. The
provider allows two requests per second, so a fixed delay follows each
successful send, and a rate-limit answer gets exactly one retry after a
short wait. There is no other retry or backoff.

When no API key is configured, sending is disabled and every dispatch
reports success without contacting the provider.
"""

import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional, Sequence

import requests

from .config import NotificationsConfig
from .debug_log import debug_print, warn_print
from .email_templates import (
    event_created_template, event_deleted_template, event_updated_template,
    format_event_when,
)
from .event_model import Event, Participant


RATE_LIMIT_ERROR = "rate_limit_exceeded"


def _debug_print(msg: str):
    debug_print("NOTIFY", msg)


class NotificationError(Exception):
    """An email could not be delivered to the provider."""

    def __init__(self, message: str, name: str = ""):
        super().__init__(message)
        self.name = name

    @property
    def rate_limited(self) -> bool:
        return self.name == RATE_LIMIT_ERROR


@dataclass
class DispatchResult:
    sent: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)
    email_ids: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.failed == 0


def recipients_for_update(before: Sequence[Participant],
                          after: Sequence[Participant]) -> list[Participant]:
    """
    Who hears about an edit: the participants captured before the change.

    Removed participants are told about the change; participants added by
    the same edit are not.
    """
    added = {p.profile_id for p in after} - {p.profile_id for p in before}
    if added:
        _debug_print(f"Not notifying {len(added)} participant(s) added by this edit")
    return list(before)


class NotificationDispatcher:
    """Sequential sender for event notification emails."""

    def __init__(self, config: NotificationsConfig,
                 session: Optional[requests.Session] = None,
                 sleep: Callable[[float], None] = time.sleep):
        self.config = config
        self.session = session or requests.Session()
        self._sleep = sleep

    @property
    def enabled(self) -> bool:
        return self.config.enabled

    def _send_one(self, to: str, subject: str, html: str) -> str:
        """Post one email; returns the provider's id or raises NotificationError."""
        try:
            response = self.session.post(
                self.config.api_url,
                json={
                    'from': self.config.from_email,
                    'to': to,
                    'subject': subject,
                    'html': html,
                },
                headers={'Authorization': f'Bearer {self.config.api_key}'},
                timeout=self.config.timeout,
            )
        except requests.RequestException as e:
            raise NotificationError(f"Network error: {e}") from e

        try:
            body = response.json()
        except ValueError:
            body = {}

        if response.status_code == 429:
            raise NotificationError(body.get('message', 'Too many requests'), RATE_LIMIT_ERROR)
        if not response.ok:
            raise NotificationError(
                body.get('message', f"HTTP {response.status_code}"),
                body.get('name', ''),
            )
        return str(body.get('id', ''))

    def send_all(self, messages: Sequence[tuple]) -> DispatchResult:
        """
        Send (email, subject, html) messages in order.

        A failed message is logged and counted; the remaining messages are
        still sent.
        """
        result = DispatchResult()
        if not self.enabled:
            _debug_print("Email sending disabled (no API key)")
            return result

        total = len(messages)
        for index, (to, subject, html) in enumerate(messages):
            _debug_print(f"Sending email {index + 1}/{total} to {to}")
            try:
                email_id = self._send_one(to, subject, html)
            except NotificationError as e:
                if not e.rate_limited:
                    warn_print("NOTIFY", f"Email {index + 1}/{total} failed: {e}")
                    result.failed += 1
                    result.errors.append(str(e))
                    continue

                _debug_print(f"Rate limited, retrying in {self.config.retry_delay}s")
                self._sleep(self.config.retry_delay)
                try:
                    email_id = self._send_one(to, subject, html)
                except NotificationError as retry_error:
                    warn_print("NOTIFY", f"Email {index + 1}/{total} failed after retry: {retry_error}")
                    result.failed += 1
                    result.errors.append(str(retry_error))
                    continue
                result.sent += 1
                result.email_ids.append(email_id)
                continue

            result.sent += 1
            result.email_ids.append(email_id)
            if index < total - 1:
                self._sleep(self.config.send_delay)

        _debug_print(f"Sent {result.sent}/{total}, {result.failed} failed")
        return result

    # --- event notifications ---

    def _participant_messages(self, participants: Sequence[Participant], subject: str,
                              render: Callable[[str], str]) -> list[tuple]:
        messages = []
        for participant in participants:
            if not participant.email:
                warn_print("NOTIFY", f"Participant {participant.profile_id} has no email address")
                continue
            messages.append((participant.email, subject, render(participant.display_name)))
        return messages

    def notify_created(self, event: Event, participants: Sequence[Participant],
                       creator_name: str, clas_name: Optional[str] = None) -> DispatchResult:
        messages = self._participant_messages(
            participants, f"New event: {event.title}",
            lambda name: event_created_template(name, event, creator_name, clas_name),
        )
        return self.send_all(messages)

    def notify_updated(self, event: Event, recipients: Sequence[Participant],
                       updater_name: str, clas_name: Optional[str] = None) -> DispatchResult:
        messages = self._participant_messages(
            recipients, f"Event updated: {event.title}",
            lambda name: event_updated_template(name, event, updater_name, clas_name),
        )
        return self.send_all(messages)

    def notify_deleted(self, event_title: str, event_start: datetime,
                       recipients: Sequence[Participant], deleter_name: str,
                       all_day: bool = False) -> DispatchResult:
        when = format_event_when(Event(id="", title=event_title, start_time=event_start,
                                       end_time=event_start, all_day=all_day))
        messages = self._participant_messages(
            recipients, f"Event cancelled: {event_title}",
            lambda name: event_deleted_template(name, event_title, when, deleter_name),
        )
        return self.send_all(messages)


def update_event_and_notify(client, dispatcher: NotificationDispatcher, event: Event,
                            participant_ids: Optional[Sequence[str]],
                            updater_name: str) -> tuple[Event, DispatchResult]:
    """
    Save an edited event, then notify the participants it had before the edit.

    `participant_ids` None leaves the participant list unchanged.
    """
    before = client.get_event_participants(event.id)
    saved = client.update_event(event)
    if participant_ids is not None:
        client.set_event_participants(event.id, participant_ids)
    after = client.get_event_participants(event.id) if participant_ids is not None else before
    result = dispatcher.notify_updated(saved, recipients_for_update(before, after), updater_name)
    return saved, result


def create_event_and_notify(client, dispatcher: NotificationDispatcher, event: Event,
                            participant_ids: Sequence[str],
                            creator_name: str) -> tuple[Event, DispatchResult]:
    saved = client.create_event(event)
    if participant_ids:
        client.set_event_participants(saved.id, participant_ids)
    participants = client.get_event_participants(saved.id) if participant_ids else []
    return saved, dispatcher.notify_created(saved, participants, creator_name)


def delete_event_and_notify(client, dispatcher: NotificationDispatcher, event: Event,
                            deleter_name: str) -> DispatchResult:
    # Participants are gone once the event is deleted
    recipients = client.get_event_participants(event.id)
    client.delete_event(event.id)
    return dispatcher.notify_deleted(event.title, event.start_time, recipients,
                                     deleter_name, all_day=event.all_day)
