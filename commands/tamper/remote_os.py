"""
Remote operating system version query over DCOM/WMI (impacket).
"""

import logging
import threading

from shared.config import Credentials
from shared.results import RemoteOutcome

from .error_kinds import classify_exception, describe_exception
from .smb_support import DCOMConnection, NULL, RPC_AVAILABLE, wmi

logger = logging.getLogger(__name__)

WMI_NAMESPACE = "//./root/cimv2"
OS_VERSION_QUERY = "SELECT Version FROM Win32_OperatingSystem"


class RemoteOSQuery:
    """
    Reads Win32_OperatingSystem.Version from a remote host.

    impacket's DCOMConnection keeps its ping timer and OID sets at class
    level, so queries are serialized across worker threads.
    """

    _dcom_lock = threading.Lock()

    def __init__(self, credentials: Credentials):
        self.credentials = credentials

    def os_version(self, host: str) -> RemoteOutcome:
        try:
            with self._dcom_lock:
                version = self._query_version(host)
        except Exception as e:
            kind = classify_exception(e)
            logger.debug(f"OS version query on {host} failed ({kind.value}): {describe_exception(e)}")
            return RemoteOutcome.failure(kind, e)
        return RemoteOutcome.success(version)

    def _query_version(self, host: str) -> str:
        if not RPC_AVAILABLE:
            raise RuntimeError("impacket not available. Install with: pip install impacket")

        creds = self.credentials
        dcom = DCOMConnection(
            host,
            creds.username,
            creds.password,
            creds.domain,
            creds.lmhash,
            creds.nthash,
            oxidResolver=True,
        )
        try:
            interface = dcom.CoCreateInstanceEx(wmi.CLSID_WbemLevel1Login, wmi.IID_IWbemLevel1Login)
            level1_login = wmi.IWbemLevel1Login(interface)
            services = level1_login.NTLMLogin(WMI_NAMESPACE, NULL, NULL)
            level1_login.RemRelease()

            enum = services.ExecQuery(OS_VERSION_QUERY)
            try:
                record = enum.Next(0xffffffff, 1)[0]
                version = record.getProperties()["Version"]["value"]
            finally:
                enum.RemRelease()
                services.RemRelease()
        finally:
            dcom.disconnect()

        logger.debug(f"{host} reports OS version {version}")
        return str(version)
