"""
TamperSeek Tamper Package

Host qualification, the stop/write tamper probes and the per-host
operation that aggregates their results.
"""

from .collaborators import Collaborators, build_collaborators
from .operation import TamperOperation
from .probes import probe_stop, probe_write, run_probes
from .qualifier import qualify_host

__all__ = [
    "Collaborators",
    "build_collaborators",
    "TamperOperation",
    "probe_stop",
    "probe_write",
    "run_probes",
    "qualify_host",
]
