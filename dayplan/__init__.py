"""
Day planner: turns Taskwarrior tasks and calendar busy times into a
minute-by-minute plan for the coming days.
"""

__version__ = "0.1.0"
