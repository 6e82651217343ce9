"""Core functionality"""
from .store import RemoteStore
from .rclone_store import RcloneStore
from .reconcile import (
    TransferCandidate, FreshnessDecision, TransferOutcome, RetryPolicy,
    ReconcileState, ReconcileResult, LocalDestination, RemoteDestination,
    evaluate, execute, reconcile, reconcile_pattern,
)

__all__ = [
    "RemoteStore", "RcloneStore",
    "TransferCandidate", "FreshnessDecision", "TransferOutcome", "RetryPolicy",
    "ReconcileState", "ReconcileResult", "LocalDestination", "RemoteDestination",
    "evaluate", "execute", "reconcile", "reconcile_pattern",
]
