"""
External data sources for the day planner: the task store and calendars.

Subpackages are imported on demand; the Google client pulls in the Google
API libraries, which are slow to import.
"""
