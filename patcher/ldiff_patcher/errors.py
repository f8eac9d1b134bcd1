# ldiff_patcher/errors.py
from __future__ import annotations


class PatcherError(Exception):
    """Base class for every error raised by ldiff_patcher."""


class FatalStartupError(PatcherError):
    """Raised before any entry is processed; aborts the whole run."""


class DecodeError(FatalStartupError):
    """The manifest bytes do not match the expected protobuf layout."""


class SegmentNotFound(PatcherError):
    """The container referenced by a patch segment is not present."""

    def __init__(self, container_id: str, container_dir: str):
        self.container_id = container_id
        self.container_dir = container_dir
        super().__init__(f"container {container_id!r} not found in {container_dir}")


class NoSegmentAvailable(PatcherError):
    """None of an entry's patch segments points at a present container."""

    def __init__(self, file_name: str, tried: int):
        self.file_name = file_name
        self.tried = tried
        super().__init__(f"no usable patch segment for {file_name} ({tried} tried)")


class ExtractionError(PatcherError):
    """A present container could not supply the requested byte range."""


class PatchProcessError(PatcherError):
    """The external patch tool could not be run."""


class PatchTimeout(PatchProcessError):
    def __init__(self, cmd: list[str], timeout: float):
        self.cmd = cmd
        self.timeout = timeout
        super().__init__(f"patch process timed out after {timeout:g}s")


class ReadError(PatcherError):
    """A file that should be hashed could not be read."""


class MoveError(PatcherError):
    """A verified file could not be moved to its published location."""


class Cancelled(PatcherError):
    """Raised when a child process is cancelled by the user."""


class UnsafePath(PatcherError):
    """A manifest file name that would land outside the staging/output folders."""

    def __init__(self, file_name: str):
        self.file_name = file_name
        super().__init__(f"unsafe file name in manifest: {file_name!r}")
