"""Caregiver report aggregation over reconciled sessions."""

from .aggregator import (
    ChildReport,
    GameSummary,
    SessionRow,
    build_child_report,
    partition_by_game
)

__all__ = [
    'ChildReport',
    'GameSummary',
    'SessionRow',
    'build_child_report',
    'partition_by_game',
]
