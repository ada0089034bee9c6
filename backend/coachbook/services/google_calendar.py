"""
backend/coachbook/services/google_calendar.py

Google Calendar gateway for the practitioner's calendar.

Handles:
- Free/busy queries for a precise UTC range
- Calendar event create/delete for bookings

Credentials are a long-lived refresh token configured via settings; the
gateway is "not configured" (no busy time, no events) when any of them is
missing.
"""

import logging
import uuid
from datetime import date, datetime, timezone

from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from ..config import Settings
from .slots.calculator import BusyInterval
from .slots.config import TIMEZONE_NAME, time_str_to_minutes

logger = logging.getLogger(__name__)

TOKEN_URI = "https://oauth2.googleapis.com/token"
SCOPES = [
    "https://www.googleapis.com/auth/calendar.freebusy",
    "https://www.googleapis.com/auth/calendar.events",
]


def _meeting_url(event: dict) -> str | None:
    """Meet link of a created event, from hangoutLink or the video entry point."""
    if event.get("hangoutLink"):
        return event["hangoutLink"]
    for entry in event.get("conferenceData", {}).get("entryPoints", []):
        if entry.get("entryPointType") == "video":
            return entry.get("uri")
    return None


class GoogleCalendarGateway:
    """Thin synchronous wrapper around the Calendar v3 API."""

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        refresh_token: str,
        calendar_id: str = "primary",
        service=None,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.refresh_token = refresh_token
        self.calendar_id = calendar_id
        self._service = service

    @classmethod
    def from_settings(cls, settings: Settings) -> "GoogleCalendarGateway":
        return cls(
            client_id=settings.google_client_id,
            client_secret=settings.google_client_secret,
            refresh_token=settings.google_refresh_token,
            calendar_id=settings.google_calendar_id,
        )

    @property
    def configured(self) -> bool:
        if self._service is not None:
            return True
        return bool(self.client_id and self.client_secret and self.refresh_token)

    def _get_service(self):
        """Build Google Calendar API service client."""
        if self._service is None:
            credentials = Credentials(
                token=None,
                refresh_token=self.refresh_token,
                token_uri=TOKEN_URI,
                client_id=self.client_id,
                client_secret=self.client_secret,
                scopes=SCOPES,
            )
            self._service = build("calendar", "v3", credentials=credentials, cache_discovery=False)
        return self._service

    # ── Free/busy ────────────────────────────────────────────────────────

    def get_free_busy(self, start_utc: datetime, end_utc: datetime) -> list[BusyInterval]:
        """
        Busy intervals of the practitioner's calendar in [start_utc, end_utc).

        Args:
            start_utc: Timezone-aware start instant
            end_utc: Timezone-aware end instant

        Raises:
            ValueError: On naive datetimes or a calendar-level API error
            HttpError: If the API call fails
        """
        if start_utc.tzinfo is None or end_utc.tzinfo is None:
            raise ValueError("Free/busy range must be timezone-aware UTC instants")

        if not self.configured:
            logger.debug("Calendar not configured, reporting no busy time")
            return []

        body = {
            "timeMin": start_utc.astimezone(timezone.utc).isoformat(),
            "timeMax": end_utc.astimezone(timezone.utc).isoformat(),
            "timeZone": "UTC",
            "items": [{"id": self.calendar_id}],
        }
        response = self._get_service().freebusy().query(body=body).execute()

        calendar = (response.get("calendars") or {}).get(self.calendar_id) or {}
        if calendar.get("errors"):
            raise ValueError(f"Free/busy query failed: {calendar['errors']}")

        return [
            BusyInterval(start=item["start"], end=item["end"])
            for item in calendar.get("busy", [])
        ]

    # ── Events ───────────────────────────────────────────────────────────

    def create_event(
        self,
        summary: str,
        day: date,
        start_time: str,
        end_time: str,
        client_name: str,
        client_email: str,
        description: str = "",
    ) -> dict | None:
        """
        Create a calendar event for a booking.

        Returns:
            {"event_id", "html_link", "meeting_url"} or None when not configured.

        Raises:
            HttpError: If API call fails
        """
        if not self.configured:
            return None

        start_min = time_str_to_minutes(start_time)
        end_min = time_str_to_minutes(end_time)
        event = {
            "summary": summary,
            "description": description,
            "start": {
                "dateTime": f"{day.isoformat()}T{start_min // 60:02d}:{start_min % 60:02d}:00",
                "timeZone": TIMEZONE_NAME,
            },
            "end": {
                "dateTime": f"{day.isoformat()}T{end_min // 60:02d}:{end_min % 60:02d}:00",
                "timeZone": TIMEZONE_NAME,
            },
            "attendees": [
                {"email": client_email, "displayName": client_name},
            ],
            "reminders": {
                "useDefault": False,
                "overrides": [
                    {"method": "popup", "minutes": 30},
                ],
            },
            "conferenceData": {
                "createRequest": {
                    "requestId": uuid.uuid4().hex,
                    "conferenceSolutionKey": {"type": "hangoutsMeet"},
                },
            },
        }

        try:
            created_event = self._get_service().events().insert(
                calendarId=self.calendar_id,
                body=event,
                conferenceDataVersion=1,
            ).execute()
        except HttpError as e:
            logger.error(f"Failed to create calendar event: {e}")
            raise

        logger.info(f"Created calendar event: {created_event.get('id')}")
        return {
            "event_id": created_event.get("id"),
            "html_link": created_event.get("htmlLink"),
            "meeting_url": _meeting_url(created_event),
        }

    def delete_event(self, event_id: str) -> bool:
        """
        Delete a calendar event. An already-deleted event counts as success.

        Raises:
            HttpError: If API call fails
        """
        if not self.configured:
            return False

        try:
            self._get_service().events().delete(
                calendarId=self.calendar_id,
                eventId=event_id,
            ).execute()
        except HttpError as e:
            if e.resp.status in (404, 410):
                logger.warning(f"Calendar event not found: {event_id}")
                return True
            logger.error(f"Failed to delete calendar event: {e}")
            raise

        logger.info(f"Deleted calendar event: {event_id}")
        return True
