"""One-shot mailbox files read and removed by the daemon."""

import logging
import os
import tempfile
from enum import Enum
from pathlib import Path

from ..errors import MailboxWriteError

logger = logging.getLogger(__name__)


class MailboxKind(Enum):
    """Mailbox files, one fixed filename each in the runtime directory."""
    OUTPUT_MODE = "output_mode_override"
    MODEL = "model_override"
    PROFILE = "profile_override"
    CANCEL = "cancel"


def write_atomic(path: Path, content: str) -> None:
    """Replace ``path`` with ``content`` so readers never see a partial file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent))
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(content)
            handle.flush()
            os.fsync(handle.fileno())
        os.chmod(tmp_path, 0o600)
        os.replace(tmp_path, path)
    finally:
        if tmp_path.exists():
            try:
                tmp_path.unlink()
            except OSError as exc:
                logger.debug(f"Could not remove temp mailbox file {tmp_path}: {exc}")


class Mailbox:
    """Writes mailbox files into one runtime directory."""

    def __init__(self, directory: Path):
        self.directory = Path(directory)

    def path_for(self, kind: MailboxKind) -> Path:
        return self.directory / kind.value

    def post(self, kind: MailboxKind, content: str) -> Path:
        """Write one mailbox file; last writer wins.

        Raises:
            MailboxWriteError: if the file cannot be written
        """
        path = self.path_for(kind)
        try:
            write_atomic(path, content)
        except OSError as e:
            raise MailboxWriteError(f"Failed to write {kind.value} file {path}: {e}") from e
        logger.info(f"Posted {kind.value} mailbox: {content!r}")
        return path
