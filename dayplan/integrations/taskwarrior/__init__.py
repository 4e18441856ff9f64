"""Taskwarrior integration."""

from .client import TaskwarriorClient, ExportBuilder, run_taskwarrior

__all__ = ['TaskwarriorClient', 'ExportBuilder', 'run_taskwarrior']
