"""
Remote service control query over MS-SCMR (impacket).

Resolves a service by display name and reports whether it accepts a
STOP control from a remote caller.
"""

import logging

from shared.config import Credentials
from shared.results import RemoteOutcome

from .error_kinds import classify_exception, describe_exception
from .smb_support import RPC_AVAILABLE, scmr, transport

logger = logging.getLogger(__name__)

SERVICE_ACCEPT_STOP = 0x00000001
SVCCTL_BINDING = r"ncacn_np:%s[\pipe\svcctl]"


class RemoteServiceQuery:
    """Service Control Manager client used by the stop probe."""

    def __init__(self, credentials: Credentials, timeout: float = 10, port: int = 445):
        self.credentials = credentials
        self.timeout = timeout
        self.port = port

    def can_stop_service(self, display_name: str, host: str) -> RemoteOutcome:
        try:
            can_stop = self._query_can_stop(display_name, host)
        except Exception as e:
            kind = classify_exception(e)
            logger.debug(f"Service query '{display_name}' on {host} failed ({kind.value}): "
                         f"{describe_exception(e)}")
            return RemoteOutcome.failure(kind, e)
        return RemoteOutcome.success(can_stop)

    def _connect(self, host: str):
        creds = self.credentials
        rpctransport = transport.DCERPCTransportFactory(SVCCTL_BINDING % host)
        rpctransport.set_dport(self.port)
        rpctransport.set_connect_timeout(self.timeout)
        rpctransport.set_credentials(creds.username, creds.password, creds.domain,
                                     creds.lmhash, creds.nthash)
        dce = rpctransport.get_dce_rpc()
        dce.connect()
        dce.bind(scmr.MSRPC_UUID_SCMR)
        return dce

    def _query_can_stop(self, display_name: str, host: str) -> bool:
        if not RPC_AVAILABLE:
            raise RuntimeError("impacket not available. Install with: pip install impacket")

        dce = self._connect(host)
        try:
            sc_handle = scmr.hROpenSCManagerW(dce)["lpScHandle"]
            try:
                key_name = scmr.hRGetServiceKeyNameW(dce, sc_handle, display_name)["lpServiceName"]
                service_name = str(key_name).rstrip("\x00")
                logger.debug(f"'{display_name}' on {host} is service {service_name}")

                service_handle = scmr.hROpenServiceW(
                    dce, sc_handle, service_name, scmr.SERVICE_QUERY_STATUS
                )["lpServiceHandle"]
                try:
                    status = scmr.hRQueryServiceStatus(dce, service_handle)["lpServiceStatus"]
                    controls = status["dwControlsAccepted"]
                finally:
                    scmr.hRCloseServiceHandle(dce, service_handle)
            finally:
                scmr.hRCloseServiceHandle(dce, sc_handle)
        finally:
            dce.disconnect()

        return bool(controls & SERVICE_ACCEPT_STOP)
