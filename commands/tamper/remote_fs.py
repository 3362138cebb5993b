"""
Remote file system access through administrative shares (smbprotocol).

Paths are UNC style: ``\\\\host\\share`` for a share and
``\\\\host\\share\\dir\\file`` for a file.
"""

import logging
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Tuple

from shared.config import Credentials
from shared.results import RemoteOutcome

from .error_kinds import (
    STATUS_BAD_NETWORK_NAME,
    classify_exception,
    describe_exception,
    extract_error_code,
)
from .smb_support import (
    SMB_AVAILABLE,
    Connection,
    CreateDisposition,
    CreateOptions,
    FileAttributes,
    FilePipePrinterAccessMask,
    ImpersonationLevel,
    Open,
    Session,
    ShareAccess,
    TreeConnect,
)

logger = logging.getLogger(__name__)

# LM half used when only an NT hash is given
EMPTY_LM_HASH = "aad3b435b51404eeaad3b435b51404ee"


@dataclass(frozen=True)
class RemoteFileHandle:
    """Location of a file created on a remote share"""
    host: str
    share: str
    path: str

    @property
    def unc_path(self) -> str:
        return f"\\\\{self.host}\\{self.share}\\{self.path}"


def split_unc_path(unc_path: str) -> Tuple[str, str, str]:
    """
    Split ``\\\\host\\share\\rest`` into (host, share, rest).

    Forward slashes are accepted. ``rest`` is empty for a bare share path.

    Raises:
        ValueError: If the path has no host or share component
    """
    normalized = unc_path.replace("/", "\\")
    if not normalized.startswith("\\\\"):
        raise ValueError(f"Not a UNC path: {unc_path}")

    parts = [p for p in normalized[2:].split("\\") if p]
    if len(parts) < 2:
        raise ValueError(f"UNC path needs host and share: {unc_path}")

    return parts[0], parts[1], "\\".join(parts[2:])


def session_password(creds: Credentials):
    """
    Password for the SMB session.

    With no cleartext password an ``LM:NT`` hash pair is passed instead,
    which the NTLM provider in pyspnego accepts in place of a password.
    """
    if creds.password:
        return creds.password
    if creds.nthash:
        return f"{creds.lmhash or EMPTY_LM_HASH}:{creds.nthash}"
    return None


def build_unc_path(host: str, share: str, *segments: str) -> str:
    pieces = [s.strip("\\/").replace("/", "\\") for s in segments if s and s.strip("\\/")]
    return "\\".join([f"\\\\{host}", share] + pieces)


class RemoteFileSystem:
    """Creates, deletes and checks paths over SMB2/3."""

    def __init__(self, credentials: Credentials, timeout: float = 10, port: int = 445):
        self.credentials = credentials
        self.timeout = timeout
        self.port = port

    @contextmanager
    def _tree(self, host: str, share: str):
        if not SMB_AVAILABLE:
            raise RuntimeError("SMB libraries not available. Install with: pip install smbprotocol pyspnego")

        creds = self.credentials
        username = creds.username
        if creds.domain and username and "\\" not in username and "@" not in username:
            username = f"{creds.domain}\\{username}"

        connection = Connection(uuid.uuid4(), host, self.port)
        connection.connect(timeout=self.timeout)
        session = None
        tree = None
        try:
            session = Session(connection, username=username or None, password=session_password(creds))
            session.connect()
            tree = TreeConnect(session, f"\\\\{host}\\{share}")
            tree.connect()
            yield tree
        finally:
            for resource in (tree, session):
                if resource is None:
                    continue
                try:
                    resource.disconnect()
                except Exception as e:
                    logger.debug(f"SMB cleanup on {host}: {describe_exception(e)}")
            connection.disconnect(close=True)

    def path_exists(self, share_path: str) -> RemoteOutcome:
        """Check that a share (tree) can be connected."""
        try:
            host, share, _ = split_unc_path(share_path)
            with self._tree(host, share):
                pass
        except Exception as e:
            if extract_error_code(e) == STATUS_BAD_NETWORK_NAME:
                return RemoteOutcome.success(False)
            kind = classify_exception(e)
            logger.debug(f"Share check {share_path} failed ({kind.value}): {describe_exception(e)}")
            return RemoteOutcome.failure(kind, e)
        return RemoteOutcome.success(True)

    def create_file(self, unc_path: str) -> RemoteOutcome:
        """Create a new empty file; succeeds only if the write was allowed."""
        try:
            host, share, path = split_unc_path(unc_path)
            if not path:
                raise ValueError(f"UNC path has no file component: {unc_path}")
            with self._tree(host, share) as tree:
                file_open = Open(tree, path)
                file_open.create(
                    ImpersonationLevel.Impersonation,
                    FilePipePrinterAccessMask.GENERIC_WRITE,
                    FileAttributes.FILE_ATTRIBUTE_NORMAL,
                    ShareAccess.FILE_SHARE_READ,
                    CreateDisposition.FILE_OVERWRITE_IF,
                    CreateOptions.FILE_NON_DIRECTORY_FILE,
                )
                file_open.close()
        except Exception as e:
            kind = classify_exception(e)
            logger.debug(f"Create {unc_path} failed ({kind.value}): {describe_exception(e)}")
            return RemoteOutcome.failure(kind, e)

        logger.debug(f"Created {unc_path}")
        return RemoteOutcome.success(RemoteFileHandle(host, share, path))

    def delete(self, handle: RemoteFileHandle) -> RemoteOutcome:
        """Delete a previously created file (delete-on-close open)."""
        try:
            with self._tree(handle.host, handle.share) as tree:
                file_open = Open(tree, handle.path)
                file_open.create(
                    ImpersonationLevel.Impersonation,
                    FilePipePrinterAccessMask.DELETE,
                    FileAttributes.FILE_ATTRIBUTE_NORMAL,
                    ShareAccess.FILE_SHARE_DELETE,
                    CreateDisposition.FILE_OPEN,
                    CreateOptions.FILE_NON_DIRECTORY_FILE | CreateOptions.FILE_DELETE_ON_CLOSE,
                )
                file_open.close()
        except Exception as e:
            kind = classify_exception(e)
            logger.debug(f"Delete {handle.unc_path} failed ({kind.value}): {describe_exception(e)}")
            return RemoteOutcome.failure(kind, e)

        logger.debug(f"Deleted {handle.unc_path}")
        return RemoteOutcome.success(True)
