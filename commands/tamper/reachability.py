"""
Host reachability check.

ICMP echo through the system ``ping`` binary, or a TCP connect to the SMB
port for networks that drop ICMP.
"""

import logging
import math
import platform
import shutil
import socket
import subprocess
from typing import List

from shared.results import RemoteOutcome
from shared.statuses import ErrorKind

logger = logging.getLogger(__name__)


def build_ping_cmd(host: str, timeout: float, system: str = None) -> List[str]:
    """Build a single-echo ping command for the local platform."""
    system = (system or platform.system()).lower()
    seconds = max(1, int(math.ceil(timeout)))

    if system == "windows":
        return ["ping", "-n", "1", "-w", str(seconds * 1000), host]
    if system == "darwin":
        return ["ping", "-c", "1", "-t", str(seconds), host]
    return ["ping", "-c", "1", "-W", str(seconds), host]


def check_port(host: str, port: int, timeout: float) -> bool:
    """Check if port is open."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    try:
        sock.settimeout(timeout)
        return sock.connect_ex((host, port)) == 0
    finally:
        sock.close()


class ReachabilityChecker:
    """Answers whether a host is online; never raises."""

    def __init__(self, method: str = "icmp", timeout: float = 2, port: int = 445):
        self.method = method
        self.timeout = timeout
        self.port = port

    def is_reachable(self, host: str) -> RemoteOutcome:
        try:
            if self.method == "tcp":
                reachable = check_port(host, self.port, self.timeout)
            else:
                reachable = self._ping(host)
        except Exception as e:
            logger.debug(f"Reachability check for {host} raised {type(e).__name__}: {e}")
            return RemoteOutcome.failure(ErrorKind.UNREACHABLE, e)

        logger.debug(f"Reachability ({self.method}) for {host}: {reachable}")
        return RemoteOutcome.success(reachable)

    def _ping(self, host: str) -> bool:
        if shutil.which("ping") is None:
            raise FileNotFoundError("ping binary not found; use reachability_method 'tcp'")

        cmd = build_ping_cmd(host, self.timeout)
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=self.timeout + 5,
            stdin=subprocess.DEVNULL
        )
        return result.returncode == 0
