"""
Google Calendar FreeBusy client for the day planner.

Provides authenticated, read-only access to the busy times of one or more
Google calendars.
"""

import logging
from pathlib import Path
from datetime import datetime
from typing import Iterable, List, Tuple

from dateutil import parser as date_parser

from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from dayplan.core.errors import FetchError

logger = logging.getLogger(__name__)

# If modifying these scopes, delete the file token.json
SCOPES = ['https://www.googleapis.com/auth/calendar.freebusy']


class GoogleCalendarClient:
    """
    Google Calendar API client with authentication and busy-time lookup.

    Handles OAuth2 authentication and token management.
    """

    def __init__(self, credentials_dir: str):
        """
        Initialize the Google Calendar client.

        Args:
            credentials_dir: Path to directory containing credentials.json and token.json
        """
        self.credentials_dir = Path(credentials_dir)
        self.credentials_file = self.credentials_dir / "credentials.json"
        self.token_file = self.credentials_dir / "token.json"
        self.service = None

    def authenticate(self) -> bool:
        """
        Authenticate with Google Calendar API.

        Uses stored token if available, otherwise initiates OAuth flow.

        Returns:
            bool: True if authentication successful, False otherwise
        """
        creds = None

        # Load existing token
        if self.token_file.exists():
            try:
                creds = Credentials.from_authorized_user_file(str(self.token_file), SCOPES)
                logger.info("Loaded existing credentials from token.json")
            except (ValueError, OSError) as e:
                logger.warning(f"Failed to load token.json: {e}")

        # Refresh or get new credentials
        if not creds or not creds.valid:
            if creds and creds.expired and creds.refresh_token:
                try:
                    creds.refresh(Request())
                    logger.info("Refreshed expired credentials")
                except Exception as e:
                    logger.error(f"Failed to refresh credentials: {e}")
                    creds = None

            if not creds:
                # Need to run OAuth flow
                if not self.credentials_file.exists():
                    logger.error(f"Credentials file not found: {self.credentials_file}")
                    return False

                try:
                    flow = InstalledAppFlow.from_client_secrets_file(
                        str(self.credentials_file), SCOPES
                    )
                    creds = flow.run_local_server(port=0)
                    logger.info("Completed OAuth flow, obtained new credentials")
                except Exception as e:
                    logger.error(f"OAuth flow failed: {e}")
                    return False

            # Save credentials for next run
            try:
                self.credentials_dir.mkdir(parents=True, exist_ok=True)
                with open(self.token_file, 'w') as token:
                    token.write(creds.to_json())
                logger.info(f"Saved credentials to {self.token_file}")
            except OSError as e:
                logger.warning(f"Failed to save token: {e}")

        # Build service
        try:
            self.service = build('calendar', 'v3', credentials=creds)
            logger.info("Successfully built Google Calendar service")
            return True
        except Exception as e:
            logger.error(f"Failed to build Calendar service: {e}")
            return False

    def busy_times(
        self,
        start: datetime,
        end: datetime,
        calendar_ids: Iterable[str] = ('primary',)
    ) -> List[Tuple[datetime, datetime]]:
        """
        Query busy intervals across calendars.

        Args:
            start: Start of time range (timezone-aware)
            end: End of time range (timezone-aware)
            calendar_ids: Calendars to query (default: 'primary')

        Returns:
            (start, end) pairs converted to the zone of `start`

        Raises:
            FetchError: If not authenticated, or the API rejects the query
        """
        if not self.service:
            raise FetchError("calendar", "Google Calendar service not initialized; call authenticate() first")

        body = {
            'timeMin': start.isoformat(),
            'timeMax': end.isoformat(),
            'items': [{'id': calendar_id} for calendar_id in calendar_ids],
        }

        try:
            result = self.service.freebusy().query(body=body).execute()
        except HttpError as e:
            raise FetchError("calendar", f"HTTP error querying free/busy: {e}", e) from e

        busy = []
        for calendar_id, data in result.get('calendars', {}).items():
            errors = data.get('errors')
            if errors:
                reasons = ", ".join(error.get('reason', 'unknown') for error in errors)
                raise FetchError("calendar", f"free/busy failed for {calendar_id}: {reasons}")

            for period in data.get('busy', []):
                try:
                    busy.append((
                        date_parser.isoparse(period['start']).astimezone(start.tzinfo),
                        date_parser.isoparse(period['end']).astimezone(start.tzinfo),
                    ))
                except (KeyError, TypeError, ValueError) as e:
                    raise FetchError("calendar", f"malformed busy period for {calendar_id}: {period!r}", e) from e

        busy.sort()
        logger.info(f"Retrieved {len(busy)} busy times from Google Calendar")
        return busy
