from dataclasses import dataclass, field
from typing import Any, Dict, Generic, List, Optional, TypeVar

from shared.statuses import ErrorKind, ProbeStatus

T = TypeVar("T")

RESULT_COLUMNS = [
    "System",
    "Status",
    "TestCanWrite",
    "TestCanStop",
    "StopProbeStatus",
    "WriteProbeStatus",
]


class ProbeSelectionError(ValueError):
    """Raised when neither tamper probe was selected."""


@dataclass(frozen=True)
class ProbeSelection:
    """Probes requested for the whole invocation"""
    run_write_probe: bool = False
    run_stop_probe: bool = False

    def validate(self) -> None:
        if not (self.run_write_probe or self.run_stop_probe):
            raise ProbeSelectionError(
                "No probe selected: enable the write probe, the stop probe, or both"
            )


@dataclass(frozen=True)
class RemoteOutcome(Generic[T]):
    """
    Tagged result of a remote collaborator call.

    Either ``ok`` with a ``value``, or a failure carrying an ``error_kind``
    and the original exception for diagnostics.
    """
    ok: bool
    value: Optional[T] = None
    error_kind: Optional[ErrorKind] = None
    error: Optional[BaseException] = None

    @classmethod
    def success(cls, value: T) -> "RemoteOutcome[T]":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, kind: ErrorKind, error: Optional[BaseException] = None) -> "RemoteOutcome[T]":
        return cls(ok=False, error_kind=kind, error=error)

    def describe_error(self) -> str:
        if self.ok:
            return ""
        if self.error is None:
            return str(self.error_kind.value) if self.error_kind else "unknown error"
        return f"{type(self.error).__name__}: {self.error}"


@dataclass(frozen=True)
class QualificationResult:
    """Outcome of the reachability/version precheck"""
    proceed: bool
    status: ProbeStatus


@dataclass(frozen=True)
class ProbeOutcome:
    """Statuses produced by the probe runner for one qualified host"""
    status: ProbeStatus
    stop_status: Optional[ProbeStatus] = None
    write_status: Optional[ProbeStatus] = None


@dataclass(frozen=True)
class HostResult:
    """
    Final record for one input host.

    ``status`` is the combined value kept for compatibility: when both probes
    run, the write probe's result overwrites the stop probe's. The individual
    findings are kept in ``stop_status`` and ``write_status``.
    """
    host: str
    status: ProbeStatus
    tested_write: bool
    tested_stop: bool
    stop_status: Optional[ProbeStatus] = None
    write_status: Optional[ProbeStatus] = None

    def as_row(self) -> Dict[str, Any]:
        """Tabular view keyed by RESULT_COLUMNS."""
        return {
            "System": self.host,
            "Status": self.status.value,
            "TestCanWrite": self.tested_write,
            "TestCanStop": self.tested_stop,
            "StopProbeStatus": self.stop_status.value if self.stop_status else None,
            "WriteProbeStatus": self.write_status.value if self.write_status else None,
        }


@dataclass
class TamperSummary:
    """Rollup of a completed run for the summary display"""
    hosts_tested: int
    protected_hosts: int
    unprotected_hosts: int
    status_counts: Dict[str, int] = field(default_factory=dict)
    elapsed_seconds: float = 0.0
    flagged_hosts: List[str] = field(default_factory=list)


def summarize_results(results: List[HostResult], elapsed_seconds: float = 0.0) -> TamperSummary:
    """Count statuses over a result list (duplicates counted per row)."""
    counts: Dict[str, int] = {}
    flagged = []
    for result in results:
        counts[result.status.value] = counts.get(result.status.value, 0) + 1
        if result.status.requires_attention():
            flagged.append(result.host)

    return TamperSummary(
        hosts_tested=len(results),
        protected_hosts=counts.get(ProbeStatus.PROTECTED.value, 0),
        unprotected_hosts=counts.get(ProbeStatus.NOT_PROTECTED.value, 0),
        status_counts=counts,
        elapsed_seconds=elapsed_seconds,
        flagged_hosts=flagged,
    )
