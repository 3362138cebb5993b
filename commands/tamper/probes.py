"""
Tamper Probes

Two independent probes run against a qualified host:

- stop probe: does the agent service accept a remote STOP control?
- write probe: can a file be created in the agent's data directory over
  the administrative share?

IMPORTANT: the write probe creates a file under a protected directory on
the target and deletes it again when creation succeeds. If the delete
fails the file is left behind and a warning is logged.
"""

import logging
from typing import Optional

from shared.logging_config import log_unclassified
from shared.results import ProbeOutcome, ProbeSelection
from shared.statuses import ErrorKind, ProbeStatus, resolve_status, status_for_error_kind

from .remote_fs import build_unc_path

logger = logging.getLogger(__name__)

# Service query failures recorded as the stop probe result
STOP_FAILURE_KINDS = frozenset({
    ErrorKind.SERVICE_ABSENT,
    ErrorKind.AUTHORIZATION_DENIED,
})


def probe_stop(host: str, collaborators, config) -> Optional[ProbeStatus]:
    """
    Query whether the agent service may be stopped remotely.

    Returns:
        Protected / NotProtected / ServiceMissing / AccessDenied, or None
        when the failure could not be classified
    """
    display_name = config.get_service_display_name()
    outcome = collaborators.service_query.can_stop_service(display_name, host)

    if outcome.ok:
        if outcome.value:
            logger.debug(f"{host}: '{display_name}' accepts remote stop")
            return ProbeStatus.NOT_PROTECTED
        return ProbeStatus.PROTECTED

    if outcome.error_kind in STOP_FAILURE_KINDS:
        return status_for_error_kind(outcome.error_kind)

    log_unclassified(logger, f"Service query '{display_name}'", host, outcome.describe_error())
    return None


def probe_write(host: str, collaborators, config) -> Optional[ProbeStatus]:
    """
    Attempt to create (and then remove) a file in the agent's data directory.

    Returns:
        UnableToAccessRemoteDirectory / NotProtected / Protected, or None
        when the failure could not be classified
    """
    file_system = collaborators.file_system
    share = config.get_admin_share()

    share_path = build_unc_path(host, share)
    share_outcome = file_system.path_exists(share_path)
    if not share_outcome.ok or not share_outcome.value:
        logger.debug(f"{share_path} unreachable: {share_outcome.describe_error() or 'not found'}")
        return status_for_error_kind(ErrorKind.PATH_UNREACHABLE)

    target = build_unc_path(host, share, config.get_agent_data_directory(), config.get_probe_file_name())
    created = file_system.create_file(target)

    if created.ok:
        deleted = file_system.delete(created.value)
        if not deleted.ok:
            logger.warning(f"Probe file {target} could not be removed: {deleted.describe_error()}")
        return ProbeStatus.NOT_PROTECTED

    if created.error_kind == ErrorKind.AUTHORIZATION_DENIED:
        return ProbeStatus.PROTECTED

    log_unclassified(logger, f"Create {target}", host, created.describe_error())
    return None


def run_probes(host: str, selection: ProbeSelection, collaborators, config,
               initial_status: ProbeStatus = ProbeStatus.UNKNOWN) -> ProbeOutcome:
    """
    Run the selected probes in fixed order: stop probe, then write probe.

    The combined status is whatever the last probe produced (the write probe
    when both run); a probe that ends unclassified leaves it unchanged.
    """
    status = initial_status
    stop_status = None
    write_status = None

    if selection.run_stop_probe:
        stop_status = probe_stop(host, collaborators, config)
        status = resolve_status(status, stop_status)

    if selection.run_write_probe:
        write_status = probe_write(host, collaborators, config)
        status = resolve_status(status, write_status)

    return ProbeOutcome(status=status, stop_status=stop_status, write_status=write_status)
