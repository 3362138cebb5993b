"""
Fakes shared by the TamperSeek unit tests.

Remote collaborators are replaced by Mocks returning RemoteOutcome values,
so no test touches the network.
"""

import os
import sys
from unittest.mock import Mock

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from shared.config import TamperSeekConfig
from shared.results import RemoteOutcome
from shared.statuses import ErrorKind
from commands.tamper.collaborators import Collaborators
from commands.tamper.remote_fs import RemoteFileHandle


class DummyOutput:
    """Minimal output helper for operation/workflow unit tests."""

    def __init__(self):
        self.print_if_verbose = Mock()
        self.print_if_not_quiet = Mock()
        self.warning = Mock()
        self.error = Mock()
        self.info = Mock()
        self.success = Mock()
        self.subheader = Mock()
        self.header = Mock()


def ok(value):
    return RemoteOutcome.success(value)


def err(kind: ErrorKind, message: str = "remote failure"):
    return RemoteOutcome.failure(kind, RuntimeError(message))


def make_config(**overrides) -> TamperSeekConfig:
    data = {}
    for dotted, value in overrides.items():
        section, key = dotted.split("__", 1)
        data.setdefault(section, {})[key] = value
    return TamperSeekConfig(data)


def make_collaborators(reachable=True, os_version="10.0.19045", can_stop=False,
                       share_exists=True, create=None, delete=None) -> Collaborators:
    """
    Build a collaborator bundle of Mocks.

    Each argument is either a plain value (wrapped as a success) or a
    RemoteOutcome used as-is.
    """
    def outcome(value):
        return value if isinstance(value, RemoteOutcome) else ok(value)

    reachability = Mock()
    reachability.is_reachable.return_value = outcome(reachable)

    os_query = Mock()
    os_query.os_version.return_value = outcome(os_version)

    service_query = Mock()
    service_query.can_stop_service.return_value = outcome(can_stop)

    file_system = Mock()
    file_system.path_exists.return_value = outcome(share_exists)
    if create is None:
        create = ok(RemoteFileHandle("host", "C$", "probe.txt"))
    file_system.create_file.return_value = outcome(create)
    file_system.delete.return_value = outcome(True if delete is None else delete)

    return Collaborators(
        reachability=reachability,
        os_query=os_query,
        service_query=service_query,
        file_system=file_system,
    )
