"""Google Calendar integration for voicecal."""

import os
from typing import Any, Dict, List, Optional
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from dotenv import load_dotenv

load_dotenv()

# Google Calendar API scopes
SCOPES = ['https://www.googleapis.com/auth/calendar.events']


class CalendarError(Exception):
    """A Google Calendar API call failed."""


class GoogleCalendarClient:
    """Client for Google Calendar API integration."""

    def __init__(
        self,
        credentials: Optional[Credentials] = None,
        calendar_id: Optional[str] = None,
        credentials_path: Optional[str] = None,
        token_path: Optional[str] = None,
    ):
        """Initialize Google Calendar client.

        Args:
            credentials: Ready OAuth2 credentials. If None, they are loaded from token_path
                         (running the local OAuth flow when needed).
            calendar_id: Google Calendar ID to use.
                        If None, reads from GOOGLE_CALENDAR_ID env var (defaults to 'primary').
            credentials_path: Path to OAuth2 client secrets JSON file.
                             If None, reads from GOOGLE_CALENDAR_CREDENTIALS_PATH env var.
            token_path: Path to store OAuth2 token.
                        If None, reads from GOOGLE_CALENDAR_TOKEN_PATH env var (defaults to 'token.json').
        """
        self.credentials_path = credentials_path or os.getenv("GOOGLE_CALENDAR_CREDENTIALS_PATH", "credentials.json")
        self.token_path = token_path or os.getenv("GOOGLE_CALENDAR_TOKEN_PATH", "token.json")
        self.calendar_id = calendar_id or os.getenv("GOOGLE_CALENDAR_ID", "primary")
        self.creds = credentials or self._load_credentials()
        self.service = build('calendar', 'v3', credentials=self.creds)

    def _load_credentials(self) -> Credentials:
        """Load stored OAuth2 credentials, refreshing or re-authorizing as needed."""
        creds = None

        if os.path.exists(self.token_path):
            creds = Credentials.from_authorized_user_file(self.token_path, SCOPES)

        if not creds or not creds.valid:
            if creds and creds.expired and creds.refresh_token:
                creds.refresh(Request())
            else:
                if not os.path.exists(self.credentials_path):
                    raise FileNotFoundError(
                        f"Google Calendar credentials not found at {self.credentials_path}. "
                        "Please download OAuth2 credentials from Google Cloud Console."
                    )
                flow = InstalledAppFlow.from_client_secrets_file(self.credentials_path, SCOPES)
                creds = flow.run_local_server(port=0)

            # Save credentials for next run
            with open(self.token_path, 'w') as token:
                token.write(creds.to_json())

        return creds

    def insert_event(self, event_body: Dict[str, Any]) -> Dict[str, Any]:
        """Create an event and return the API resource."""
        try:
            return self.service.events().insert(
                calendarId=self.calendar_id,
                body=event_body
            ).execute()
        except HttpError as error:
            raise CalendarError(f"Failed to create calendar event: {error}") from error

    def list_events_in_range(
        self,
        time_min_rfc3339: str,
        time_max_rfc3339: str,
        *,
        query: Optional[str] = None,
        max_results: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """List single (expanded) events starting in a time range, ordered by start.

        Args:
            time_min_rfc3339: Lower bound, RFC3339 timestamp
            time_max_rfc3339: Upper bound, RFC3339 timestamp
            query: Optional free-text filter (matched by Google against summary/description)
            max_results: Optional cap on the number of events returned

        Returns:
            List of event resources
        """
        params: Dict[str, Any] = {
            "calendarId": self.calendar_id,
            "timeMin": time_min_rfc3339,
            "timeMax": time_max_rfc3339,
            "singleEvents": True,
            "orderBy": "startTime",
        }
        if query:
            params["q"] = query
        if max_results:
            params["maxResults"] = max_results

        events: List[Dict[str, Any]] = []
        try:
            while True:
                response = self.service.events().list(**params).execute()
                events.extend(response.get("items", []))
                page_token = response.get("nextPageToken")
                if not page_token or (max_results and len(events) >= max_results):
                    break
                params["pageToken"] = page_token
        except HttpError as error:
            raise CalendarError(f"Failed to list calendar events: {error}") from error

        return events[:max_results] if max_results else events

    def patch_event(self, event_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        try:
            return self.service.events().patch(
                calendarId=self.calendar_id,
                eventId=event_id,
                body=changes
            ).execute()
        except HttpError as error:
            raise CalendarError(f"Failed to update calendar event: {error}") from error

    def delete_event(self, event_id: str) -> None:
        try:
            self.service.events().delete(
                calendarId=self.calendar_id,
                eventId=event_id
            ).execute()
        except HttpError as error:
            raise CalendarError(f"Failed to delete calendar event: {error}") from error
