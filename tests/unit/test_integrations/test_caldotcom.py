"""
Unit tests for the Cal.com client.
HTTP is replaced with a mocked requests session.
"""

import pytest
import requests
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent.parent.parent))

from dateutil import tz

from dayplan.core.errors import FetchError
from dayplan.integrations.caldotcom import CalDotComClient


CHICAGO = tz.gettz("America/Chicago")
START = datetime(2026, 10, 19, 8, 0, tzinfo=CHICAGO)
END = START + timedelta(days=7)

CALENDARS = {
    "status": "success",
    "data": {
        "connectedCalendars": [
            {
                "credentialId": 17,
                "calendars": [
                    {"externalId": "me@example.com", "isSelected": True},
                    {"externalId": "holidays@example.com", "isSelected": False},
                ],
            },
            {
                "credentialId": 23,
                "calendars": [{"externalId": "team@example.com", "isSelected": True}],
            },
        ]
    },
}

BUSY = {
    "status": "success",
    "data": [
        {"start": "2026-10-19T15:00:00.000Z", "end": "2026-10-19T16:00:00.000Z"},
        {"start": "2026-10-20T14:30:00.000Z", "end": "2026-10-20T15:00:00.000Z"},
    ],
}


def response(payload, status_code: int = 200) -> MagicMock:
    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = payload
    resp.text = str(payload)
    return resp


@pytest.fixture
def session():
    session = MagicMock()
    session.get.side_effect = [response(CALENDARS), response(BUSY)]
    return session


class TestBusyTimes:
    """Tests for fetching busy times."""

    def test_returns_intervals_in_start_zone(self, session):
        busy = CalDotComClient("secret", session=session).busy_times(START, END, "America/Chicago")

        assert busy == [
            (datetime(2026, 10, 19, 10, 0, tzinfo=CHICAGO), datetime(2026, 10, 19, 11, 0, tzinfo=CHICAGO)),
            (datetime(2026, 10, 20, 9, 30, tzinfo=CHICAGO), datetime(2026, 10, 20, 10, 0, tzinfo=CHICAGO)),
        ]
        assert busy[0][0].tzinfo is START.tzinfo

    def test_requests_selected_calendars(self, session):
        CalDotComClient("secret", session=session).busy_times(START, END, "America/Chicago")

        url = session.get.call_args_list[1][0][0]
        params = session.get.call_args_list[1][1]["params"]
        headers = session.get.call_args_list[1][1]["headers"]

        assert url == "https://api.cal.com/v2/calendars/busy-times"
        assert headers["Authorization"] == "Bearer secret"
        assert params == [
            ("loggedInUsersTz", "America/Chicago"),
            ("dateFrom", "2026-10-19"),
            ("dateTo", "2026-10-26"),
            ("calendarsToLoad[0][credentialId]", "17"),
            ("calendarsToLoad[0][externalId]", "me@example.com"),
            ("calendarsToLoad[1][credentialId]", "23"),
            ("calendarsToLoad[1][externalId]", "team@example.com"),
        ]

    def test_http_error_is_fetch_error(self):
        session = MagicMock()
        session.get.return_value = response({"error": "unauthorized"}, status_code=401)

        with pytest.raises(FetchError) as exc_info:
            CalDotComClient("bad", session=session).busy_times(START, END, "UTC")

        assert exc_info.value.source == "calendar"
        assert "401" in str(exc_info.value)

    def test_connection_error_is_fetch_error(self):
        session = MagicMock()
        session.get.side_effect = requests.ConnectionError("unreachable")

        with pytest.raises(FetchError):
            CalDotComClient("secret", session=session).calendars()

    def test_invalid_json_is_fetch_error(self):
        session = MagicMock()
        resp = response(None)
        resp.json.side_effect = ValueError("Expecting value")
        session.get.return_value = resp

        with pytest.raises(FetchError):
            CalDotComClient("secret", session=session).calendars()

    def test_connection_without_credential_id_is_fetch_error(self):
        session = MagicMock()
        session.get.return_value = response({
            "data": {"connectedCalendars": [
                {"calendars": [{"externalId": "me@example.com", "isSelected": True}]},
            ]}
        })

        with pytest.raises(FetchError) as exc_info:
            CalDotComClient("secret", session=session).busy_times(START, END, "UTC")
        assert exc_info.value.source == "calendar"

    @pytest.mark.parametrize("payload", [
        {"data": []},
        {"status": "success"},
        {"data": {"connectedCalendars": {"credentialId": 17}}},
        ["not", "an", "object"],
    ])
    def test_malformed_calendars_response_is_fetch_error(self, payload):
        session = MagicMock()
        session.get.return_value = response(payload)

        with pytest.raises(FetchError):
            CalDotComClient("secret", session=session).calendars()

    def test_no_connected_calendars(self):
        session = MagicMock()
        session.get.return_value = response({"data": {"connectedCalendars": []}})

        assert CalDotComClient("secret", session=session).selected_calendars() == []

    def test_malformed_busy_time_is_fetch_error(self):
        session = MagicMock()
        session.get.side_effect = [
            response(CALENDARS),
            response({"data": [{"start": "soon"}]}),
        ]

        with pytest.raises(FetchError):
            CalDotComClient("secret", session=session).busy_times(START, END, "UTC")
