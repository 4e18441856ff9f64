"""Cal.com API client for busy times, authenticated with an API key."""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

import requests
from dateutil import parser as date_parser

from dayplan.core.errors import FetchError

logger = logging.getLogger(__name__)

CALDOTCOM_API_BASE = "https://api.cal.com/v2"
DEFAULT_TIMEOUT = 30  # seconds


class CalDotComClient:
    """
    Cal.com v2 API client.

    Busy times are requested for every calendar the account has selected
    for conflict checking.
    """

    def __init__(self, token: str, session: Optional[requests.Session] = None,
                 timeout: float = DEFAULT_TIMEOUT):
        self.token = token
        self.session = session or requests.Session()
        self.timeout = timeout

    def _get(self, endpoint: str, params: Optional[List[Tuple[str, str]]] = None) -> Dict[str, Any]:
        """Make authenticated GET request to the Cal.com API."""
        url = f"{CALDOTCOM_API_BASE}/{endpoint}"
        try:
            resp = self.session.get(
                url,
                params=params,
                headers={
                    "Authorization": f"Bearer {self.token}",
                    "Accept": "application/json",
                },
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise FetchError("calendar", f"request to {endpoint} failed: {e}", e) from e

        if resp.status_code != 200:
            raise FetchError("calendar", f"Cal.com API error on {endpoint}: {resp.status_code} {resp.text}")

        try:
            payload = resp.json()
        except ValueError as e:
            raise FetchError("calendar", f"could not load {endpoint} from JSON: {e}", e) from e

        if not isinstance(payload, dict):
            raise FetchError("calendar", f"unexpected {endpoint} response: {payload!r}")
        return payload

    def calendars(self) -> List[Dict[str, Any]]:
        """List connected calendars, one entry per credential."""
        data = self._get("calendars").get("data")
        if not isinstance(data, dict):
            raise FetchError("calendar", f"malformed calendars response: data is {data!r}")

        connections = data.get("connectedCalendars", [])
        if not isinstance(connections, list):
            raise FetchError("calendar", f"malformed calendars response: connectedCalendars is {connections!r}")
        return connections

    def selected_calendars(self) -> List[Tuple[str, str]]:
        """(credential id, external id) for each calendar selected for conflict checking."""
        selected = []
        for connection in self.calendars():
            try:
                for calendar in connection.get("calendars", []):
                    if calendar.get("isSelected"):
                        selected.append((str(connection["credentialId"]), calendar["externalId"]))
            except (AttributeError, KeyError, TypeError) as e:
                raise FetchError("calendar", f"malformed connected calendar {connection!r}", e) from e
        return selected

    def busy_times(self, start: datetime, end: datetime, timezone_name: str) -> List[Tuple[datetime, datetime]]:
        """
        Get busy intervals across all selected calendars.

        Args:
            start: Start of the range (its date is sent)
            end: End of the range (its date is sent)
            timezone_name: IANA zone the account owner is in

        Returns:
            (start, end) pairs converted to the zone of `start`
        """
        params = [
            ("loggedInUsersTz", timezone_name),
            ("dateFrom", start.strftime("%Y-%m-%d")),
            ("dateTo", end.strftime("%Y-%m-%d")),
        ]
        for i, (credential_id, external_id) in enumerate(self.selected_calendars()):
            params.append((f"calendarsToLoad[{i}][credentialId]", credential_id))
            params.append((f"calendarsToLoad[{i}][externalId]", external_id))

        busy = []
        for item in self._get("calendars/busy-times", params).get("data") or []:
            try:
                busy_start = date_parser.isoparse(item["start"]).astimezone(start.tzinfo)
                busy_end = date_parser.isoparse(item["end"]).astimezone(start.tzinfo)
            except (KeyError, TypeError, ValueError) as e:
                raise FetchError("calendar", f"malformed busy time {item!r}", e) from e
            busy.append((busy_start, busy_end))

        logger.info(f"Retrieved {len(busy)} busy times from Cal.com")
        return busy
