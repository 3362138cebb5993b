"""
Classification of remote call failures.

impacket, smbprotocol and the socket layer report failures through
unrelated exception types. Everything is reduced here to an ErrorKind
using the NT status / Win32 / DCERPC code the exception carries.
"""

import re
import socket
import subprocess
from typing import Optional

from shared.statuses import ErrorKind

from .smb_support import SMBAuthenticationError

# NT status codes
STATUS_ACCESS_DENIED = 0xC0000022
STATUS_LOGON_FAILURE = 0xC000006D
STATUS_ACCOUNT_RESTRICTION = 0xC000006E
STATUS_PASSWORD_EXPIRED = 0xC0000071
STATUS_ACCOUNT_DISABLED = 0xC0000072
STATUS_ACCOUNT_LOCKED_OUT = 0xC0000234
STATUS_OBJECT_NAME_NOT_FOUND = 0xC0000034
STATUS_OBJECT_PATH_NOT_FOUND = 0xC000003A
STATUS_BAD_NETWORK_NAME = 0xC00000CC
STATUS_IO_TIMEOUT = 0xC00000B5
STATUS_NETWORK_UNREACHABLE = 0xC000023C
STATUS_HOST_UNREACHABLE = 0xC000023D
STATUS_CONNECTION_REFUSED = 0xC0000236
STATUS_PIPE_NOT_AVAILABLE = 0xC00000AC

# Win32 / RPC / COM codes
ERROR_ACCESS_DENIED = 0x00000005
ERROR_SERVICE_DOES_NOT_EXIST = 0x00000424
RPC_S_SERVER_UNAVAILABLE = 0x000006BA
EPT_S_NOT_REGISTERED = 0x16C9A0D6
E_ACCESSDENIED = 0x80070005

# WMI (WBEM_E_*) errors are management-protocol failures
WBEM_ERROR_MIN = 0x80041000
WBEM_ERROR_MAX = 0x80041FFF

AUTHORIZATION_CODES = {
    STATUS_ACCESS_DENIED,
    STATUS_LOGON_FAILURE,
    STATUS_ACCOUNT_RESTRICTION,
    STATUS_PASSWORD_EXPIRED,
    STATUS_ACCOUNT_DISABLED,
    STATUS_ACCOUNT_LOCKED_OUT,
    ERROR_ACCESS_DENIED,
    E_ACCESSDENIED,
}

TRANSPORT_CODES = {
    RPC_S_SERVER_UNAVAILABLE,
    EPT_S_NOT_REGISTERED,
    STATUS_IO_TIMEOUT,
    STATUS_NETWORK_UNREACHABLE,
    STATUS_HOST_UNREACHABLE,
    STATUS_CONNECTION_REFUSED,
    STATUS_PIPE_NOT_AVAILABLE,
}

PATH_CODES = {
    STATUS_BAD_NETWORK_NAME,
    STATUS_OBJECT_PATH_NOT_FOUND,
    STATUS_OBJECT_NAME_NOT_FOUND,
}

SERVICE_CODES = {
    ERROR_SERVICE_DOES_NOT_EXIST,
}

# Symbolic names that appear in exception messages when no code is exposed
_NAME_KINDS = [
    (re.compile(r"rpc_s_access_denied|STATUS_ACCESS_DENIED|STATUS_LOGON_FAILURE|E_ACCESSDENIED|"
                r"WBEM_E_ACCESS_DENIED", re.IGNORECASE), ErrorKind.AUTHORIZATION_DENIED),
    (re.compile(r"ERROR_SERVICE_DOES_NOT_EXIST", re.IGNORECASE), ErrorKind.SERVICE_ABSENT),
    (re.compile(r"STATUS_BAD_NETWORK_NAME|STATUS_OBJECT_PATH_NOT_FOUND|STATUS_OBJECT_NAME_NOT_FOUND",
                re.IGNORECASE), ErrorKind.PATH_UNREACHABLE),
    (re.compile(r"rpc_s_server_unavailable|ept_s_not_registered|STATUS_IO_TIMEOUT|"
                r"Failed to connect to|Connection refused|timed out", re.IGNORECASE),
     ErrorKind.TRANSPORT_UNAVAILABLE),
]


def extract_error_code(exc: BaseException) -> Optional[int]:
    """
    Return the numeric status carried by an impacket or smbprotocol exception.

    impacket SMB errors expose getErrorCode(), DCERPC errors get_error_code(),
    smbprotocol response errors a ``status`` attribute.
    """
    for getter in ("getErrorCode", "get_error_code"):
        method = getattr(exc, getter, None)
        if callable(method):
            try:
                code = method()
            except Exception:
                code = None
            if isinstance(code, int):
                return code & 0xFFFFFFFF

    for attr in ("status", "error_code"):
        code = getattr(exc, attr, None)
        if isinstance(code, int) and not isinstance(code, bool):
            return code & 0xFFFFFFFF

    return None


def classify_error_code(code: Optional[int]) -> Optional[ErrorKind]:
    if code is None:
        return None
    if code in AUTHORIZATION_CODES:
        return ErrorKind.AUTHORIZATION_DENIED
    if WBEM_ERROR_MIN <= code <= WBEM_ERROR_MAX:
        return ErrorKind.AUTHORIZATION_DENIED
    if code in SERVICE_CODES:
        return ErrorKind.SERVICE_ABSENT
    if code in PATH_CODES:
        return ErrorKind.PATH_UNREACHABLE
    if code in TRANSPORT_CODES:
        return ErrorKind.TRANSPORT_UNAVAILABLE
    return None


def classify_exception(exc: BaseException) -> ErrorKind:
    """
    Map an exception raised by a remote call to an ErrorKind.

    Args:
        exc: Exception from impacket, smbprotocol, socket or subprocess

    Returns:
        ErrorKind; UNCLASSIFIED when nothing identifies the failure
    """
    kind = classify_error_code(extract_error_code(exc))
    if kind is not None:
        return kind

    if SMBAuthenticationError is not None and isinstance(exc, SMBAuthenticationError):
        return ErrorKind.AUTHORIZATION_DENIED

    if isinstance(exc, PermissionError):
        return ErrorKind.AUTHORIZATION_DENIED

    if isinstance(exc, (socket.timeout, socket.gaierror, ConnectionError, TimeoutError,
                        subprocess.TimeoutExpired)):
        return ErrorKind.TRANSPORT_UNAVAILABLE

    message = str(exc)
    for pattern, named_kind in _NAME_KINDS:
        if pattern.search(message):
            return named_kind

    # impacket NetBIOS failures are raised while the SMB transport is set up
    if type(exc).__name__ in ("NetBIOSError", "NetBIOSTimeout"):
        return ErrorKind.TRANSPORT_UNAVAILABLE

    if isinstance(exc, OSError):
        return ErrorKind.TRANSPORT_UNAVAILABLE

    return ErrorKind.UNCLASSIFIED


def describe_exception(exc: BaseException) -> str:
    """Type and message, as written to the diagnostic channel."""
    code = extract_error_code(exc)
    if code is not None:
        return f"{type(exc).__name__} (0x{code:08X}): {exc}"
    return f"{type(exc).__name__}: {exc}"
