"""Orchestrator module for retention runs."""

from pages_retention.orchestrator.executor import (
    DeletionExecutor,
    DeletionResult,
    DeletionStatus,
    DeletionSummary,
    ProgressCallback
)
from pages_retention.orchestrator.orchestrator import (
    RetentionOrchestrator,
    RunState,
    RunSummary
)

__all__ = [
    # Execution
    'DeletionExecutor',
    'DeletionResult',
    'DeletionStatus',
    'DeletionSummary',
    'ProgressCallback',

    # Main orchestrator
    'RetentionOrchestrator',
    'RunState',
    'RunSummary',
]
