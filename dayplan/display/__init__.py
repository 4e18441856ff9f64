"""
Display module for the day planner.

Handles Rich-based CLI rendering of the finished plan.
"""

from .formatter import PlanFormatter, format_commitment, format_duration

__all__ = ['PlanFormatter', 'format_commitment', 'format_duration']
