"""
Host qualification: reachability and operating system version gate.
"""

import logging

from packaging.version import InvalidVersion, Version

from shared.logging_config import log_unclassified
from shared.results import QualificationResult
from shared.statuses import ErrorKind, ProbeStatus, status_for_error_kind

logger = logging.getLogger(__name__)

# Version query failures that end qualification with their own status
VERSION_FAILURE_KINDS = frozenset({
    ErrorKind.TRANSPORT_UNAVAILABLE,
    ErrorKind.AUTHORIZATION_DENIED,
})


def parse_os_version(version_string: str) -> Version:
    """
    Parse a Windows version string such as ``10.0.19045``.

    Raises:
        InvalidVersion: If the string is not a dotted version
    """
    return Version(str(version_string).strip())


def qualify_host(host: str, collaborators, config) -> QualificationResult:
    """
    Decide whether probes may run against a host.

    Args:
        host: Hostname or address
        collaborators: Collaborators bundle
        config: TamperSeekConfig instance

    Returns:
        QualificationResult; ``proceed`` is True only for a reachable host
        running at least the configured minimum OS version
    """
    reachable = collaborators.reachability.is_reachable(host)
    if not reachable.ok or not reachable.value:
        logger.debug(f"{host} is offline")
        return QualificationResult(proceed=False, status=status_for_error_kind(ErrorKind.UNREACHABLE))

    version_outcome = collaborators.os_query.os_version(host)
    if not version_outcome.ok:
        if version_outcome.error_kind not in VERSION_FAILURE_KINDS:
            log_unclassified(logger, "OS version query", host, version_outcome.describe_error())
            return QualificationResult(proceed=False, status=ProbeStatus.UNKNOWN)
        status = status_for_error_kind(version_outcome.error_kind)
        logger.debug(f"{host} version query failed: {status.value}")
        return QualificationResult(proceed=False, status=status)

    try:
        version = parse_os_version(version_outcome.value)
    except InvalidVersion as e:
        log_unclassified(logger, "OS version parse", host, f"{type(e).__name__}: {e}")
        return QualificationResult(proceed=False, status=ProbeStatus.UNKNOWN)

    minimum = config.get_minimum_os_version()
    if version < minimum:
        logger.debug(f"{host} runs {version}, below minimum {minimum}")
        return QualificationResult(proceed=False,
                                   status=status_for_error_kind(ErrorKind.UNSUPPORTED_VERSION))

    return QualificationResult(proceed=True, status=ProbeStatus.UNKNOWN)
