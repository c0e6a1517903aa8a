"""
Errors raised by the pipeline components.

Every error carries a FailureReason; the orchestrator copies it, plus any
tool exit code and stderr, into the FAILED report.
"""
from typing import List, Optional

from winres.policy.verdict import FailureReason


class WinresError(Exception):
    """Base class for all pipeline failures."""

    reason: FailureReason

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidField(WinresError):
    """Manifest content that cannot be written as a resource script."""

    reason = FailureReason.INVALID_FIELD

    def __init__(self, field: str, message: str):
        super().__init__(f"{field}: {message}")
        self.field = field


class ToolchainNotFound(WinresError):
    """No usable compiler (or archiver) for the resolved ABI/architecture."""

    reason = FailureReason.TOOLCHAIN_NOT_FOUND

    def __init__(self, message: str, searched: Optional[List[str]] = None):
        super().__init__(message)
        self.searched = list(searched or [])


class ToolFailed(WinresError):
    """A native tool ran and exited non-zero."""

    def __init__(self, tool: str, exit_code: int, stderr: str):
        super().__init__(f"{tool} exited with code {exit_code}")
        self.tool = tool
        self.exit_code = exit_code
        self.stderr = stderr


class CompilationFailed(ToolFailed):
    """The resource compiler ran and exited non-zero."""

    reason = FailureReason.COMPILATION_FAILED


class ArchivePackagingFailed(ToolFailed):
    """The archiver ran and exited non-zero."""

    reason = FailureReason.ARCHIVE_PACKAGING_FAILED
