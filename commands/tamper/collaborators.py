"""
Remote collaborators used by the qualifier and the probes.

Every call returns a RemoteOutcome instead of raising; tests replace the
bundle with fakes.
"""

from dataclasses import dataclass
from typing import Any, Optional

from shared.config import Credentials

from .reachability import ReachabilityChecker
from .remote_fs import RemoteFileSystem
from .remote_os import RemoteOSQuery
from .remote_service import RemoteServiceQuery


@dataclass
class Collaborators:
    """One instance of each remote collaborator"""
    reachability: Any
    os_query: Any
    service_query: Any
    file_system: Any


def build_collaborators(config, credentials: Optional[Credentials] = None) -> Collaborators:
    """
    Wire the real remote implementations from configuration.

    Args:
        config: TamperSeekConfig instance
        credentials: Overrides the credentials section of the config
    """
    credentials = credentials or config.get_credentials()
    timeout = config.get_connection_timeout()
    port = config.get_smb_port()

    return Collaborators(
        reachability=ReachabilityChecker(
            method=config.get_reachability_method(),
            timeout=config.get_ping_timeout(),
            port=port,
        ),
        os_query=RemoteOSQuery(credentials),
        service_query=RemoteServiceQuery(credentials, timeout=timeout, port=port),
        file_system=RemoteFileSystem(credentials, timeout=timeout, port=port),
    )
