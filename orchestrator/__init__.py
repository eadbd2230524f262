"""
Orchestration package for running an export end to end.

This package wires the Notion client, listing, conversion and media
components together, runs the tree export and reports on the outcome.
"""

from .export_driver import ExportDriver
from .export_report import ExportReport

__all__ = [
    'ExportDriver',
    'ExportReport'
]
