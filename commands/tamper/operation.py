"""
TamperSeek Tamper Operation

Qualifies each host, runs the selected probes and aggregates one result
record per input host in input order.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, Sequence

from shared.logging_config import log_unclassified
from shared.results import HostResult, ProbeSelection
from shared.statuses import ProbeStatus

from .probes import run_probes
from .qualifier import qualify_host

logger = logging.getLogger(__name__)


class TamperOperation:
    """
    Tamper protection probing across a list of hosts.

    Hosts are processed one at a time unless ``max_workers`` is greater
    than one; results are always returned in input order.
    """

    def __init__(self, config, output, collaborators, max_workers: int = 1):
        self.config = config
        self.output = output
        self.collaborators = collaborators
        self.max_workers = max(1, int(max_workers or 1))
        self.total_targets = 0

    def execute(self, hosts: Sequence[str], selection: ProbeSelection) -> List[HostResult]:
        """
        Probe every host.

        Raises:
            ProbeSelectionError: If no probe is selected (before any host runs)
        """
        selection.validate()

        host_list = list(hosts)
        self.total_targets = len(host_list)
        if not host_list:
            return []

        self.output.info(f"Testing tamper protection on {self.total_targets} hosts")

        workers = min(self.max_workers, self.total_targets)
        if workers == 1:
            return [
                self._process_safely(host, selection, position)
                for position, host in enumerate(host_list, 1)
            ]

        results_by_index = [None] * self.total_targets
        with ThreadPoolExecutor(max_workers=workers) as executor:
            future_to_index = {
                executor.submit(self._process_safely, host, selection, index + 1): index
                for index, host in enumerate(host_list)
            }
            for future, index in future_to_index.items():
                results_by_index[index] = future.result()

        return results_by_index

    def _process_safely(self, host: str, selection: ProbeSelection, host_position: int) -> HostResult:
        try:
            return self.process_host(host, selection, host_position)
        except Exception as e:
            log_unclassified(logger, "Host processing", host, f"{type(e).__name__}: {e}")
            self.output.error(f"Failed to process {host}: {e}")
            return self._build_result(host, ProbeStatus.UNKNOWN, selection)

    def process_host(self, host: str, selection: ProbeSelection, host_position: int = 1) -> HostResult:
        """Qualify one host and run the selected probes when it qualifies."""
        self.output.print_if_verbose(f"[{host_position}/{self.total_targets}] Testing {host}...")

        qualification = qualify_host(host, self.collaborators, self.config)
        if not qualification.proceed:
            self.output.print_if_verbose(f"  {host}: {qualification.status.value} (probes skipped)")
            return self._build_result(host, qualification.status, selection)

        outcome = run_probes(host, selection, self.collaborators, self.config,
                             initial_status=qualification.status)

        if (selection.run_stop_probe and selection.run_write_probe
                and outcome.stop_status is not None and outcome.write_status is not None
                and outcome.stop_status != outcome.write_status):
            logger.info(f"{host}: stop probe {outcome.stop_status.value}, write probe "
                        f"{outcome.write_status.value}; combined status uses the write probe")

        self.output.print_if_verbose(f"  {host}: {outcome.status.value}")
        return self._build_result(host, outcome.status, selection,
                                  outcome.stop_status, outcome.write_status)

    @staticmethod
    def _build_result(host: str, status: ProbeStatus, selection: ProbeSelection,
                      stop_status=None, write_status=None) -> HostResult:
        return HostResult(
            host=host,
            status=status,
            tested_write=selection.run_write_probe,
            tested_stop=selection.run_stop_probe,
            stop_status=stop_status,
            write_status=write_status,
        )
