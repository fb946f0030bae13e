# backend/tutorhub/services/calendar_sync.py
"""
External calendar sync for appointments.

The scheduling core receives a CalendarSync capability at construction time.
When Google Calendar is configured it is a GoogleCalendarSync; otherwise a
NullCalendarSync whose operations are no-ops. Every operation returns
None/False on failure instead of raising.
"""

from __future__ import annotations

from datetime import datetime
import logging
from typing import Any, Dict, List, Optional, Protocol, Sequence

from google.oauth2.credentials import Credentials
from google_auth_httplib2 import AuthorizedHttp
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
import httplib2

from ..core.config import Settings, settings
from ..utils.time_ranges import localize

logger = logging.getLogger(__name__)

GOOGLE_TOKEN_URI = "https://oauth2.googleapis.com/token"
CALENDAR_SCOPES = ["https://www.googleapis.com/auth/calendar"]


class CalendarSync(Protocol):
    """Best-effort calendar operations used by the appointment lifecycle."""

    def is_enabled(self) -> bool: ...

    def create_event(
        self,
        summary: str,
        description: str,
        start: datetime,
        end: datetime,
        attendee_emails: Optional[Sequence[str]] = None,
    ) -> Optional[str]: ...

    def update_event(
        self,
        event_id: str,
        *,
        summary: Optional[str] = None,
        description: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> bool: ...

    def delete_event(self, event_id: str) -> bool: ...


class NullCalendarSync:
    """Calendar integration turned off; every call is a no-op."""

    def is_enabled(self) -> bool:
        return False

    def create_event(self, summary, description, start, end, attendee_emails=None) -> Optional[str]:
        return None

    def update_event(self, event_id, **_: Any) -> bool:
        return False

    def delete_event(self, event_id: str) -> bool:
        return False


class GoogleCalendarSync:
    """Google Calendar v3 client authenticated with an OAuth refresh token."""

    def __init__(self, config: Optional[Settings] = None, service: Any = None):
        self.config = config or settings
        self.calendar_id = self.config.google_calendar_id
        self.timezone = self.config.business_timezone
        self._service = service

    def is_enabled(self) -> bool:
        return True

    def _get_service(self) -> Any:
        if self._service is not None:
            return self._service

        credentials = Credentials(
            token=None,
            refresh_token=self.config.google_refresh_token.get_secret_value(),
            client_id=self.config.google_client_id,
            client_secret=self.config.google_client_secret.get_secret_value(),
            token_uri=GOOGLE_TOKEN_URI,
            scopes=CALENDAR_SCOPES,
        )
        # Socket-level timeout so a hung API call cannot stall the caller
        http = AuthorizedHttp(
            credentials, http=httplib2.Http(timeout=self.config.external_call_timeout_seconds)
        )
        self._service = build("calendar", "v3", http=http, cache_discovery=False)
        logger.info("Google Calendar service initialized successfully")
        return self._service

    def _event_time(self, value: datetime) -> Dict[str, str]:
        return {"dateTime": localize(value, self.timezone).isoformat(), "timeZone": self.timezone}

    def create_event(
        self,
        summary: str,
        description: str,
        start: datetime,
        end: datetime,
        attendee_emails: Optional[Sequence[str]] = None,
    ) -> Optional[str]:
        """Create an event and return its id, or None on failure."""
        body: Dict[str, Any] = {
            "summary": summary,
            "description": description,
            "start": self._event_time(start),
            "end": self._event_time(end),
        }
        attendees: List[Dict[str, str]] = [{"email": email} for email in attendee_emails or [] if email]
        if attendees:
            body["attendees"] = attendees

        try:
            event = (
                self._get_service().events().insert(calendarId=self.calendar_id, body=body).execute()
            )
            logger.info("Calendar event created: %s (%s)", event.get("id"), summary)
            return event.get("id")
        except HttpError as e:
            logger.error("Google Calendar API error creating event: %s", e)
            return None
        except Exception as e:
            logger.error("Failed to create calendar event: %s", e)
            return None

    def update_event(
        self,
        event_id: str,
        *,
        summary: Optional[str] = None,
        description: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> bool:
        """Patch the given fields of an event. Returns False on failure."""
        body: Dict[str, Any] = {}
        if summary is not None:
            body["summary"] = summary
        if description is not None:
            body["description"] = description
        if start is not None:
            body["start"] = self._event_time(start)
        if end is not None:
            body["end"] = self._event_time(end)
        if not body:
            return True

        try:
            self._get_service().events().patch(
                calendarId=self.calendar_id, eventId=event_id, body=body
            ).execute()
            logger.info("Calendar event updated: %s", event_id)
            return True
        except HttpError as e:
            logger.error("Google Calendar API error updating event %s: %s", event_id, e)
            return False
        except Exception as e:
            logger.error("Failed to update calendar event %s: %s", event_id, e)
            return False

    def delete_event(self, event_id: str) -> bool:
        try:
            self._get_service().events().delete(
                calendarId=self.calendar_id, eventId=event_id
            ).execute()
            logger.info("Calendar event deleted: %s", event_id)
            return True
        except HttpError as e:
            logger.error("Google Calendar API error deleting event %s: %s", event_id, e)
            return False
        except Exception as e:
            logger.error("Failed to delete calendar event %s: %s", event_id, e)
            return False


def get_calendar_sync(config: Optional[Settings] = None) -> CalendarSync:
    """Choose the calendar implementation once, from configuration."""
    config = config or settings
    if config.google_calendar_configured:
        return GoogleCalendarSync(config)
    if config.google_calendar_enabled:
        logger.warning("Google Calendar enabled but OAuth credentials missing; sync disabled")
    return NullCalendarSync()
