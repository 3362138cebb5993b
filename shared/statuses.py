"""
Tamper Probe Status Taxonomy

Defines the per-host probe statuses and the error kinds that remote
collaborator failures are classified into.
"""

from enum import Enum
from typing import Optional


class ProbeStatus(str, Enum):
    """
    Tamper protection status recorded for a host.

    The string inheritance allows direct serialization to JSON/CSV.
    Values are rendered verbatim in result tables.
    """

    UNKNOWN = "Unknown"
    """Initial value; also kept when a failure could not be classified."""

    PROTECTED = "Protected"
    """The tampering action was blocked by the protection agent."""

    NOT_PROTECTED = "NotProtected"
    """The tampering action succeeded."""

    NOT_SUPPORTED = "NotSupported"
    """Host runs an operating system older than the supported baseline."""

    OFFLINE = "Offline"
    """Host did not answer the reachability check."""

    RPC_UNAVAILABLE = "RpcUnavailable"
    """Remote procedure call transport could not be established."""

    ACCESS_DENIED = "AccessDenied"
    """Caller lacks rights for the remote management query."""

    SERVICE_MISSING = "ServiceMissing"
    """The agent service does not exist on the host."""

    UNABLE_TO_ACCESS_REMOTE_DIRECTORY = "UnableToAccessRemoteDirectory"
    """Administrative share of the host is not reachable."""

    def requires_attention(self) -> bool:
        """Check if this status should be flagged to the auditor."""
        return self in (ProbeStatus.NOT_PROTECTED, ProbeStatus.SERVICE_MISSING)


class ErrorKind(str, Enum):
    """Classification of a failed remote collaborator call."""

    UNREACHABLE = "unreachable"
    UNSUPPORTED_VERSION = "unsupported_version"
    TRANSPORT_UNAVAILABLE = "transport_unavailable"
    AUTHORIZATION_DENIED = "authorization_denied"
    SERVICE_ABSENT = "service_absent"
    PATH_UNREACHABLE = "path_unreachable"
    UNCLASSIFIED = "unclassified"


_ERROR_KIND_STATUS = {
    ErrorKind.UNREACHABLE: ProbeStatus.OFFLINE,
    ErrorKind.UNSUPPORTED_VERSION: ProbeStatus.NOT_SUPPORTED,
    ErrorKind.TRANSPORT_UNAVAILABLE: ProbeStatus.RPC_UNAVAILABLE,
    ErrorKind.AUTHORIZATION_DENIED: ProbeStatus.ACCESS_DENIED,
    ErrorKind.SERVICE_ABSENT: ProbeStatus.SERVICE_MISSING,
    ErrorKind.PATH_UNREACHABLE: ProbeStatus.UNABLE_TO_ACCESS_REMOTE_DIRECTORY,
}


def status_for_error_kind(kind: ErrorKind) -> Optional[ProbeStatus]:
    """
    Map an error kind to its status.

    Returns:
        The matching ProbeStatus, or None for UNCLASSIFIED (which is only
        ever surfaced as a diagnostic, never recorded as a status)
    """
    return _ERROR_KIND_STATUS.get(kind)


def resolve_status(current: ProbeStatus, new: Optional[ProbeStatus]) -> ProbeStatus:
    """Return the status after a stage ran: the stage's result wins unless it produced none."""
    if new is None:
        return current
    return new


__all__ = [
    "ProbeStatus",
    "ErrorKind",
    "status_for_error_kind",
    "resolve_status",
]
