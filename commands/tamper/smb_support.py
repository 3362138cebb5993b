"""
Shared SMB/RPC library availability check for tamper probing.
"""

SMB_AVAILABLE = False
try:
    from smbprotocol.connection import Connection
    from smbprotocol.session import Session
    from smbprotocol.tree import TreeConnect
    from smbprotocol.open import (
        Open,
        CreateDisposition,
        CreateOptions,
        FileAttributes,
        FilePipePrinterAccessMask,
        ImpersonationLevel,
        ShareAccess,
    )
    from smbprotocol.exceptions import SMBAuthenticationError
    SMB_AVAILABLE = True
except ImportError:
    Connection = None  # type: ignore
    Session = None  # type: ignore
    TreeConnect = None  # type: ignore
    Open = None  # type: ignore
    CreateDisposition = None  # type: ignore
    CreateOptions = None  # type: ignore
    FileAttributes = None  # type: ignore
    FilePipePrinterAccessMask = None  # type: ignore
    ImpersonationLevel = None  # type: ignore
    ShareAccess = None  # type: ignore
    SMBAuthenticationError = None  # type: ignore

RPC_AVAILABLE = False
try:
    from impacket.dcerpc.v5 import scmr, transport
    from impacket.dcerpc.v5.dcom import wmi
    from impacket.dcerpc.v5.dcomrt import DCOMConnection
    from impacket.dcerpc.v5.dtypes import NULL
    RPC_AVAILABLE = True
except ImportError:
    scmr = None  # type: ignore
    transport = None  # type: ignore
    wmi = None  # type: ignore
    DCOMConnection = None  # type: ignore
    NULL = None  # type: ignore

__all__ = [
    "Connection",
    "Session",
    "TreeConnect",
    "Open",
    "CreateDisposition",
    "CreateOptions",
    "FileAttributes",
    "FilePipePrinterAccessMask",
    "ImpersonationLevel",
    "ShareAccess",
    "SMBAuthenticationError",
    "SMB_AVAILABLE",
    "scmr",
    "transport",
    "wmi",
    "DCOMConnection",
    "NULL",
    "RPC_AVAILABLE",
]
