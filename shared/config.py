"""
TamperSeek Configuration Management

Loads the JSON configuration file, merges it over built-in defaults and
exposes typed getters used by the workflow and the remote collaborators.
"""

import copy
import json
import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

from packaging.version import InvalidVersion, Version

logger = logging.getLogger(__name__)

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
DEFAULT_CONFIG_PATH = os.path.join(PROJECT_ROOT, "conf", "config.json")

REACHABILITY_METHODS = ("icmp", "tcp")
OUTPUT_FORMATS = ("table", "csv", "json")

DEFAULT_CONFIG: Dict[str, Dict[str, Any]] = {
    "connection": {
        "timeout": 10,
        "ping_timeout": 2,
        "reachability_method": "icmp",
        "smb_port": 445,
    },
    "credentials": {
        "username": "",
        "password": "",
        "domain": "",
        "hashes": "",
    },
    "agent": {
        "service_display_name": "Sophos Endpoint Defense Service",
        "admin_share": "C$",
        "data_directory": "ProgramData\\Sophos\\Endpoint Defense",
        "probe_file_name": "tamperseek_probe.txt",
    },
    "qualification": {
        "minimum_os_version": "6.1",
    },
    "workflow": {
        "max_concurrent_hosts": 1,
    },
    "output": {
        "format": "table",
        "colors": True,
    },
    "logging": {
        "level": "WARNING",
    },
}


@dataclass(frozen=True)
class Credentials:
    """Account used for SMB, SCMR and WMI calls"""
    username: str = ""
    password: str = ""
    domain: str = ""
    lmhash: str = ""
    nthash: str = ""

    @classmethod
    def from_hashes(cls, username: str, password: str, domain: str, hashes: str) -> "Credentials":
        """Build credentials, splitting an optional ``LM:NT`` hash pair."""
        lmhash, nthash = "", ""
        if hashes:
            if ":" in hashes:
                lmhash, nthash = hashes.split(":", 1)
            else:
                nthash = hashes
        return cls(username=username or "", password=password or "", domain=domain or "",
                   lmhash=lmhash, nthash=nthash)


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class TamperSeekConfig:
    """
    Configuration container for TamperSeek.

    Values are looked up by section and key with a caller supplied default,
    mirroring the layout of conf/config.json.
    """

    def __init__(self, config_data: Optional[Dict[str, Any]] = None, config_file: Optional[str] = None):
        self.config_file = config_file
        self.data = _deep_merge(DEFAULT_CONFIG, config_data or {})

    def get(self, section: str, key: Optional[str] = None, default: Any = None) -> Any:
        """
        Get a configuration value.

        Args:
            section: Top-level section name
            key: Key within the section (None returns the whole section)
            default: Value returned when the section or key is missing
        """
        section_data = self.data.get(section)
        if section_data is None:
            return default
        if key is None:
            return section_data
        if not isinstance(section_data, dict):
            return default
        return section_data.get(key, default)

    def set(self, section: str, key: str, value: Any) -> None:
        """Override a value at runtime (used for CLI flags)."""
        self.data.setdefault(section, {})[key] = value

    def get_connection_timeout(self) -> float:
        return self.get("connection", "timeout", 10)

    def get_ping_timeout(self) -> float:
        return self.get("connection", "ping_timeout", 2)

    def get_reachability_method(self) -> str:
        return str(self.get("connection", "reachability_method", "icmp")).lower()

    def get_smb_port(self) -> int:
        return int(self.get("connection", "smb_port", 445))

    def get_credentials(self) -> Credentials:
        section = self.get("credentials", default={}) or {}
        return Credentials.from_hashes(
            section.get("username", ""),
            section.get("password", ""),
            section.get("domain", ""),
            section.get("hashes", ""),
        )

    def get_service_display_name(self) -> str:
        return self.get("agent", "service_display_name")

    def get_admin_share(self) -> str:
        return self.get("agent", "admin_share", "C$")

    def get_agent_data_directory(self) -> str:
        return self.get("agent", "data_directory")

    def get_probe_file_name(self) -> str:
        return self.get("agent", "probe_file_name", "tamperseek_probe.txt")

    def get_minimum_os_version(self) -> Version:
        return Version(str(self.get("qualification", "minimum_os_version", "6.1")))

    def get_max_concurrent_hosts(self) -> int:
        return int(self.get("workflow", "max_concurrent_hosts", 1))

    def get_output_format(self) -> str:
        return str(self.get("output", "format", "table")).lower()

    def colors_enabled(self) -> bool:
        return bool(self.get("output", "colors", True))

    def get_log_level(self) -> str:
        return str(self.get("logging", "level", "WARNING")).upper()

    def validate_configuration(self) -> bool:
        """
        Check configuration values for consistency.

        Problems are logged individually; returns False if any was found.
        """
        valid = True

        for key in ("timeout", "ping_timeout"):
            value = self.get("connection", key)
            if not isinstance(value, (int, float)) or isinstance(value, bool) or value <= 0:
                logger.error(f"connection.{key} must be a positive number, got {value!r}")
                valid = False

        if self.get_reachability_method() not in REACHABILITY_METHODS:
            logger.error(f"connection.reachability_method must be one of {REACHABILITY_METHODS}")
            valid = False

        try:
            self.get_minimum_os_version()
        except InvalidVersion:
            logger.error(f"qualification.minimum_os_version is not a version: "
                         f"{self.get('qualification', 'minimum_os_version')!r}")
            valid = False

        try:
            if self.get_max_concurrent_hosts() < 1:
                logger.error("workflow.max_concurrent_hosts must be at least 1")
                valid = False
        except (TypeError, ValueError):
            logger.error("workflow.max_concurrent_hosts must be an integer")
            valid = False

        if self.get_output_format() not in OUTPUT_FORMATS:
            logger.error(f"output.format must be one of {OUTPUT_FORMATS}")
            valid = False

        for key in ("service_display_name", "data_directory", "admin_share"):
            if not self.get("agent", key):
                logger.error(f"agent.{key} must not be empty")
                valid = False

        return valid


def load_config(config_file: Optional[str] = None) -> TamperSeekConfig:
    """
    Load configuration from JSON file with fallback to defaults.

    Args:
        config_file: Path to config file (default: conf/config.json)

    Returns:
        TamperSeekConfig instance

    Raises:
        ValueError: If the file exists but is not valid JSON
    """
    path = config_file or DEFAULT_CONFIG_PATH

    if not os.path.exists(path):
        if config_file:
            logger.warning(f"Config file {path} not found, using defaults")
        return TamperSeekConfig(config_file=None)

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in config file {path}: {e}")

    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a JSON object")

    logger.debug(f"Loaded configuration from {path}")
    return TamperSeekConfig(data, config_file=path)
