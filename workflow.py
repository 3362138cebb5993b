"""
TamperSeek Workflow

Orchestrates configuration, qualification and probing of a host list and
produces the result rows plus a rollup summary.
"""

import logging
import sys
import os
import time
from typing import List, Sequence, Tuple

# Add project paths for imports
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from shared.config import Credentials, load_config
from shared.logging_config import setup_logging
from shared.output import create_output_manager
from shared.results import HostResult, ProbeSelection, TamperSummary, summarize_results
from commands.tamper import TamperOperation, build_collaborators

logger = logging.getLogger(__name__)


class TamperWorkflow:
    """
    TamperSeek workflow orchestrator.

    Validates the probe selection and configuration up front, then runs the
    tamper operation over all hosts.
    """

    def __init__(self, config, output, collaborators):
        """
        Initialize workflow.

        Args:
            config: TamperSeekConfig instance
            output: TamperSeekOutput instance
            collaborators: Collaborators bundle used for remote calls
        """
        self.config = config
        self.output = output
        self.collaborators = collaborators

    def run(self, hosts: Sequence[str], selection: ProbeSelection) -> Tuple[List[HostResult], TamperSummary]:
        """
        Probe all hosts.

        Raises:
            ProbeSelectionError: If no probe is selected
            RuntimeError: If configuration validation fails
        """
        selection.validate()

        if not self.config.validate_configuration():
            self.output.error("Configuration validation failed")
            raise RuntimeError("Configuration validation failed")

        self.output.header("TamperSeek Tamper Protection Audit")
        if selection.run_write_probe:
            self.output.warning(
                "Write probe creates and deletes a file under "
                f"{self.config.get_admin_share()}\\{self.config.get_agent_data_directory()} on each host"
            )

        operation = TamperOperation(
            self.config,
            self.output,
            self.collaborators,
            max_workers=self.config.get_max_concurrent_hosts(),
        )

        started = time.monotonic()
        results = operation.execute(hosts, selection)
        elapsed = time.monotonic() - started

        logger.debug(f"Probed {len(results)} hosts in {elapsed:.1f}s")
        return results, summarize_results(results, elapsed)


def apply_cli_overrides(config, args) -> None:
    """Copy CLI flags that have config counterparts into the config."""
    if getattr(args, 'workers', None):
        config.set("workflow", "max_concurrent_hosts", args.workers)
    if getattr(args, 'format', None):
        config.set("output", "format", args.format)
    if getattr(args, 'reachability', None):
        config.set("connection", "reachability_method", args.reachability)
    if getattr(args, 'timeout', None):
        config.set("connection", "timeout", args.timeout)


def resolve_credentials(config, args) -> Credentials:
    """CLI credentials win over the config file's credentials section."""
    base = config.get_credentials()
    if not any(getattr(args, name, None) for name in ('username', 'password', 'domain', 'hashes')):
        return base

    section = config.get("credentials", default={}) or {}
    return Credentials.from_hashes(
        getattr(args, 'username', None) or section.get("username", ""),
        getattr(args, 'password', None) or section.get("password", ""),
        getattr(args, 'domain', None) or section.get("domain", ""),
        getattr(args, 'hashes', None) or section.get("hashes", ""),
    )


def create_tamper_workflow(args) -> TamperWorkflow:
    """
    Build a workflow (config, logging, output, collaborators) from CLI args.
    """
    config = load_config(getattr(args, 'config', None))
    apply_cli_overrides(config, args)

    setup_logging(config.get_log_level(), verbose=getattr(args, 'verbose', False))

    output = create_output_manager(
        config,
        quiet=getattr(args, 'quiet', False),
        verbose=getattr(args, 'verbose', False),
        no_colors=getattr(args, 'no_colors', False)
    )

    collaborators = build_collaborators(config, resolve_credentials(config, args))
    return TamperWorkflow(config, output, collaborators)
