"""
Reconcile engine - freshness gate, verified transfer and the move flow

A candidate file replaces its destination only if it is strictly newer
(or nothing is there yet). After the write, the destination's reported size
is polled with a fixed delay until it matches the local size. The local
source is removed only once that match has been observed.
"""
import shutil
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Optional
from .. import config as _cfg
from ..errors import DestinationMissingError, RemeditError
from ..utils.file_utils import local_mtime, local_size, is_strictly_newer, expand_pattern
from ..utils.logging import log, vlog, warn
from .store import RemoteStore, join_remote


class FreshnessDecision(Enum):
    ACCEPT = "accept"
    REJECT = "reject"
    ACCEPT_NO_CONFLICT = "accept-no-conflict"


class ReconcileState(Enum):
    IDLE = "idle"
    GATED = "gated"
    TRANSFERRING = "transferring"
    CONFIRMED = "confirmed"
    EXHAUSTED = "exhausted"
    SKIPPED = "skipped"


# ══════════════════════════════════════════════════════════════════════════════
#  DESTINATIONS  ── chosen once per candidate, never re-derived from strings
# ══════════════════════════════════════════════════════════════════════════════

class Destination:
    """Where a candidate ends up. Subclasses: LocalDestination, RemoteDestination."""

    def describe(self, name: str) -> str:
        raise NotImplementedError

    def check(self):
        """Raise DestinationMissingError if the destination cannot be used at all."""

    def stat(self, name: str) -> tuple[Optional[bool], Optional[float]]:
        """
        Return (exists, mtime) for the file called *name* at the destination.
        exists is None when the destination could not be asked.
        """
        raise NotImplementedError

    def write(self, source: Path) -> bool:
        raise NotImplementedError

    def reported_size(self, name: str) -> Optional[int]:
        raise NotImplementedError


@dataclass(frozen=True)
class LocalDestination(Destination):
    directory: Path

    def describe(self, name: str) -> str:
        return str(self.directory / name)

    def check(self):
        if not self.directory.is_dir():
            raise DestinationMissingError(
                f"Destination directory '{self.directory}' does not exist."
            )

    def stat(self, name: str) -> tuple[bool, Optional[float]]:
        target = self.directory / name
        if not target.exists():
            return False, None
        return True, local_mtime(target)

    def write(self, source: Path) -> bool:
        try:
            shutil.copy2(source, self.directory / source.name)
        except OSError as exc:
            warn(f"Copy to '{self.directory}' failed: {exc}")
            return False
        return True

    def reported_size(self, name: str) -> Optional[int]:
        try:
            return (self.directory / name).stat().st_size
        except OSError:
            return None


@dataclass(frozen=True)
class RemoteDestination(Destination):
    store: RemoteStore
    remote_dir: str

    def describe(self, name: str) -> str:
        return self.store.describe(join_remote(self.remote_dir, name))

    def stat(self, name: str) -> tuple[Optional[bool], Optional[float]]:
        path = join_remote(self.remote_dir, name)
        present = self.store.exists(path)
        if not present:
            return present, None
        return True, self.store.modification_time(path)

    def write(self, source: Path) -> bool:
        return self.store.write_object(source, self.remote_dir)

    def reported_size(self, name: str) -> Optional[int]:
        return self.store.reported_size(join_remote(self.remote_dir, name))


# ══════════════════════════════════════════════════════════════════════════════
#  DATA
# ══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class TransferCandidate:
    source_path: Path
    destination: Destination
    destination_name: str = field(init=False)

    def __post_init__(self):
        object.__setattr__(self, "source_path", Path(self.source_path))
        object.__setattr__(self, "destination_name", Path(self.source_path).name)

    @property
    def target(self) -> str:
        return self.destination.describe(self.destination_name)


@dataclass(frozen=True)
class TransferOutcome:
    success: bool
    attempts_used: int
    local_size_bytes: int
    remote_size_bytes: int


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 5
    retry_delay_seconds: float = 2.0

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.retry_delay_seconds < 0:
            raise ValueError("retry_delay_seconds must be >= 0")

    @classmethod
    def from_config(cls) -> "RetryPolicy":
        return cls(max_attempts=_cfg.RETRY_MAX, retry_delay_seconds=_cfg.RETRY_DELAY)


@dataclass
class ReconcileResult:
    source_path: Path
    state: ReconcileState
    decision: Optional[FreshnessDecision] = None
    outcome: Optional[TransferOutcome] = None
    source_removed: bool = False
    reason: str = ""
    history: list = field(default_factory=list)


# ══════════════════════════════════════════════════════════════════════════════
#  FRESHNESS GATE
# ══════════════════════════════════════════════════════════════════════════════

def evaluate(candidate: TransferCandidate) -> FreshnessDecision:
    """
    Decide whether *candidate* may replace what is at its destination.
    Reads metadata only. Equal mtimes are rejected, and so is a destination
    whose state could not be determined.
    """
    exists, dest_mtime = candidate.destination.stat(candidate.destination_name)
    if exists is None:
        warn(f"Could not determine whether '{candidate.target}' exists.")
        return FreshnessDecision.REJECT
    if not exists:
        return FreshnessDecision.ACCEPT_NO_CONFLICT
    src_mtime = local_mtime(candidate.source_path)
    if src_mtime is not None and is_strictly_newer(src_mtime, dest_mtime):
        return FreshnessDecision.ACCEPT
    return FreshnessDecision.REJECT


# ══════════════════════════════════════════════════════════════════════════════
#  VERIFIED TRANSFER
# ══════════════════════════════════════════════════════════════════════════════

def execute(candidate: TransferCandidate, max_attempts: int,
            retry_delay_seconds: float,
            sleep: Callable[[float], None] = time.sleep) -> TransferOutcome:
    """
    Write the candidate to its destination, then poll the destination size
    up to *max_attempts* times until it is non-zero and equal to the local
    size. Never raises for a failed or empty size query.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be >= 1")

    name = candidate.destination_name
    local_bytes = local_size(candidate.source_path)

    if not candidate.destination.write(candidate.source_path):
        warn(f"Write of '{name}' to {candidate.target} failed.")
        return TransferOutcome(False, 0, local_bytes, 0)

    remote_bytes = 0
    for attempt in range(1, max_attempts + 1):
        try:
            reported = candidate.destination.reported_size(name)
        except (RemeditError, OSError) as exc:
            vlog(f"  size query failed: {exc}")
            reported = None
        remote_bytes = reported or 0

        log(f"  Local file size: {local_bytes} bytes")
        log(f"  Remote file size: {remote_bytes} bytes (check {attempt}/{max_attempts})")

        if remote_bytes > 0 and remote_bytes == local_bytes:
            return TransferOutcome(True, attempt, local_bytes, remote_bytes)

        if attempt < max_attempts:
            vlog(f"  not confirmed yet, waiting {retry_delay_seconds:g}s …")
            sleep(retry_delay_seconds)

    return TransferOutcome(False, max_attempts, local_bytes, remote_bytes)


# ══════════════════════════════════════════════════════════════════════════════
#  RECONCILE FLOW
# ══════════════════════════════════════════════════════════════════════════════

def reconcile(source: Path, destination: Destination,
              policy: Optional[RetryPolicy] = None,
              sleep: Callable[[float], None] = time.sleep) -> ReconcileResult:
    """Gate, transfer and confirm one file. Removes the source only on CONFIRMED."""
    policy = policy or RetryPolicy.from_config()
    source = Path(source)
    result = ReconcileResult(source, ReconcileState.IDLE, history=[ReconcileState.IDLE])

    def _enter(state: ReconcileState):
        result.state = state
        result.history.append(state)

    if not source.is_file():
        warn(f"Skipping '{source}': Not a regular file.")
        result.reason = "not a regular file"
        _enter(ReconcileState.SKIPPED)
        return result

    candidate = TransferCandidate(source, destination)
    decision = evaluate(candidate)
    result.decision = decision

    if decision is FreshnessDecision.REJECT:
        warn(f"'{source}' is not newer than '{candidate.target}'. Skipping.")
        result.reason = "destination is as new or newer"
        _enter(ReconcileState.SKIPPED)
        return result

    if decision is FreshnessDecision.ACCEPT:
        log(f"Moving newer '{source}' to '{candidate.target}' …")
    else:
        log(f"Destination file '{candidate.target}' does not exist. Moving '{source}'.")
    _enter(ReconcileState.GATED)

    _enter(ReconcileState.TRANSFERRING)
    outcome = execute(candidate, policy.max_attempts, policy.retry_delay_seconds, sleep)
    result.outcome = outcome

    if not outcome.success:
        warn(f"Upload verification failed for '{source.name}'. "
             f"Keeping local file as backup.")
        result.reason = ("write failed" if outcome.attempts_used == 0
                         else f"sizes did not match after {outcome.attempts_used} check(s)")
        _enter(ReconcileState.EXHAUSTED)
        return result

    log(f"[✓] '{source.name}' confirmed at {candidate.target}. Removing local file …")
    _enter(ReconcileState.CONFIRMED)
    try:
        source.unlink()
        result.source_removed = True
    except OSError as exc:
        warn(f"Could not remove '{source}': {exc}")
    return result


def reconcile_pattern(pattern: str, destination: Destination,
                      policy: Optional[RetryPolicy] = None,
                      sleep: Callable[[float], None] = time.sleep) -> list[ReconcileResult]:
    """
    Reconcile every file matching *pattern*. A missing local destination
    directory aborts before any file is touched.
    """
    destination.check()
    policy = policy or RetryPolicy.from_config()
    return [reconcile(src, destination, policy, sleep) for src in expand_pattern(pattern)]


def summarize(results: list[ReconcileResult]) -> dict[str, int]:
    """Count results by terminal state name."""
    counts = {s.value: 0 for s in
              (ReconcileState.CONFIRMED, ReconcileState.EXHAUSTED, ReconcileState.SKIPPED)}
    for r in results:
        counts[r.state.value] = counts.get(r.state.value, 0) + 1
    return counts
