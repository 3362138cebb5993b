#!/usr/bin/env python3
"""
TamperSeek - Endpoint Tamper Protection Auditor

Checks a list of Windows hosts for endpoint-protection tamper resistance
using two probes: a remote service-stop capability check and a file write
into the agent's protected data directory.

Usage:
    tamperseek SERVER1 SERVER2 --test-stop            # Stop probe only
    tamperseek --hosts-file hosts.txt --test-write    # Write probe only
    tamperseek SERVER1 --test-stop --test-write       # Both probes
    tamperseek --help                                 # Help system
"""

import argparse
import sys
import os
from typing import List

# Add current directory to Python path for imports
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from shared.config import OUTPUT_FORMATS, REACHABILITY_METHODS
from shared.results import ProbeSelection, ProbeSelectionError

__version__ = "1.0.0"
DEFAULT_HOST = "localhost"


def validate_host(value: str) -> str:
    """
    Validate a host argument (hostname or IP address).

    Raises:
        argparse.ArgumentTypeError: If the value is empty, contains whitespace
            or a path separator, or starts with '-'
    """
    host = value.strip()
    if not host:
        raise argparse.ArgumentTypeError("host cannot be empty")
    if host.startswith("-") or any(ch.isspace() for ch in host) or "\\" in host or "/" in host:
        raise argparse.ArgumentTypeError(f"'{value}' is not a valid hostname or address")
    return host


def positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"'{value}' is not an integer")
    if number < 1:
        raise argparse.ArgumentTypeError("value must be at least 1")
    return number


def read_hosts_file(path: str) -> List[str]:
    """
    Read hosts from a file, one per line.

    Blank lines and lines starting with '#' are skipped; order and
    duplicates are preserved.
    """
    hosts = []
    with open(path, 'r', encoding='utf-8') as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith('#'):
                continue
            hosts.append(validate_host(line))
    return hosts


def collect_hosts(args) -> List[str]:
    """Positional hosts first, then hosts-file entries; localhost if none."""
    hosts = list(args.hosts or [])
    if args.hosts_file:
        hosts.extend(read_hosts_file(args.hosts_file))
    return hosts or [DEFAULT_HOST]


def create_main_parser() -> argparse.ArgumentParser:
    """
    Create the main argument parser.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        prog='tamperseek',
        description='TamperSeek - Endpoint Tamper Protection Auditor',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  tamperseek SERVER1 --test-stop                   # Can the agent service be stopped remotely?
  tamperseek SERVER1 SERVER2 --test-write          # Can the agent data directory be written?
  tamperseek --hosts-file fleet.txt --test-stop --test-write --format csv

Statuses:
  Protected, NotProtected, NotSupported, Offline, RpcUnavailable,
  AccessDenied, ServiceMissing, UnableToAccessRemoteDirectory, Unknown

When both probes run, Status holds the write probe's result; the
individual results are in StopProbeStatus and WriteProbeStatus.

WARNING: --test-write creates a file in the agent's data directory on each
target (over the C$ administrative share) and deletes it when creation
succeeds.
"""
    )

    parser.add_argument(
        'hosts',
        nargs='*',
        type=validate_host,
        metavar='HOST',
        help=f'Hosts to test, in order (default: {DEFAULT_HOST})'
    )
    parser.add_argument(
        '--hosts-file',
        type=str,
        metavar='FILE',
        help='File with one host per line (appended after positional hosts)'
    )

    # Probe selection
    parser.add_argument(
        '--test-write',
        action='store_true',
        help='Try to create a file in the agent data directory over the administrative share'
    )
    parser.add_argument(
        '--test-stop',
        action='store_true',
        help='Check whether the agent service accepts a remote stop control'
    )

    # Credentials
    parser.add_argument('--username', '-u', type=str, metavar='USER', help='Account for remote calls')
    parser.add_argument('--password', '-p', type=str, metavar='PASS', help='Password for --username')
    parser.add_argument('--domain', '-d', type=str, metavar='DOMAIN', help='Domain of --username')
    parser.add_argument('--hashes', type=str, metavar='LM:NT', help='NTLM hashes instead of a password')

    # Execution
    parser.add_argument(
        '--workers',
        type=positive_int,
        metavar='N',
        help='Probe up to N hosts in parallel (default: 1, sequential)'
    )
    parser.add_argument(
        '--reachability',
        choices=REACHABILITY_METHODS,
        help='Reachability check: icmp ping or tcp connect to the SMB port'
    )
    parser.add_argument(
        '--timeout',
        type=positive_int,
        metavar='SECONDS',
        help='Connection timeout for SMB/RPC calls'
    )

    # Output
    parser.add_argument(
        '--format',
        choices=OUTPUT_FORMATS,
        help='Result format (default: table)'
    )
    parser.add_argument(
        '--output', '-o',
        type=str,
        metavar='FILE',
        help='Write results to FILE instead of stdout'
    )

    # Global options
    parser.add_argument(
        '--config',
        type=str,
        metavar='FILE',
        help='Configuration file path (default: conf/config.json)'
    )
    parser.add_argument(
        '--quiet', '-q',
        action='store_true',
        help='Suppress progress output (results are still printed)'
    )
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable verbose output and debug diagnostics'
    )
    parser.add_argument(
        '--no-colors',
        action='store_true',
        help='Disable colored output'
    )
    parser.add_argument(
        '--version',
        action='version',
        version=f'TamperSeek {__version__}'
    )

    return parser


def main(argv=None):
    """Main entry point for TamperSeek CLI."""
    parser = create_main_parser()
    args = parser.parse_args(sys.argv[1:] if argv is None else argv)

    # Validate global argument combinations
    if args.quiet and args.verbose:
        print("Error: Cannot use both --quiet and --verbose options", file=sys.stderr)
        return 1

    selection = ProbeSelection(run_write_probe=args.test_write, run_stop_probe=args.test_stop)
    try:
        selection.validate()
    except ProbeSelectionError as e:
        print(f"Error: {e} (use --test-write and/or --test-stop)", file=sys.stderr)
        return 1

    try:
        hosts = collect_hosts(args)
    except (OSError, argparse.ArgumentTypeError) as e:
        print(f"Error: Cannot read hosts - {e}", file=sys.stderr)
        return 1

    try:
        from workflow import create_tamper_workflow

        workflow = create_tamper_workflow(args)
        results, summary = workflow.run(hosts, selection)

        workflow.output.write_results(results, workflow.config.get_output_format(), args.output)
        workflow.output.print_rollup_summary(summary)

        return 0

    except KeyboardInterrupt:
        print("\n\nOperation interrupted by user", file=sys.stderr)
        return 130
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
