"""Google Calendar integration."""

from .calendar_client import GoogleCalendarClient

__all__ = ['GoogleCalendarClient']
