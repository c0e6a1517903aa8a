"""
Schema — Pydantic models for pipeline results.

CompilationResult describes the artifact handed to the link step.
PipelineReport is the single outcome of one run (DONE or FAILED) and is
also what gets written to winres_report.json.
"""
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field, PrivateAttr

from winres import PACKAGE_NAME, PIPELINE_VERSION, SCHEMA_VERSION
from winres.policy.verdict import FailureReason, PipelineStage, PipelineStatus


class CompilationResult(BaseModel):
    """Final linkable artifact of a successful run."""

    artifact_path: str          # libresource.a (GNU) or resource.lib (MSVC)
    object_path: str
    archive_path: Optional[str] = None
    script_path: str

    abi: str                    # msvc | gnu
    arch: str                   # x86 | x64

    # stderr of the last tool invoked, kept even on success (warnings)
    stderr: str = ""

    # Link hints for the caller's link step
    link_search_dir: str
    link_lib: str
    link_kind: str              # static | dylib

    def link_directives(self, prefix: str = "cargo:") -> List[str]:
        """Search-path / link-library lines in the ``rustc-link-*`` style."""
        return [
            f"{prefix}rustc-link-search=native={self.link_search_dir}",
            f"{prefix}rustc-link-lib={self.link_kind}={self.link_lib}",
        ]


class PipelineReport(BaseModel):
    """Outcome of one pipeline run — winres_report.json."""

    package_name: str = PACKAGE_NAME
    pipeline_version: str = PIPELINE_VERSION
    schema_version: str = SCHEMA_VERSION
    profile_id: str

    target_triple: str
    output_dir: str

    status: PipelineStatus
    stage: PipelineStage             # last stage reached (FAILED on error)
    failed_after: Optional[PipelineStage] = None

    reason: Optional[FailureReason] = None
    message: Optional[str] = None
    field: Optional[str] = None      # InvalidField only
    exit_code: Optional[int] = None  # CompilationFailed / ArchivePackagingFailed
    stderr: Optional[str] = None
    searched: List[str] = Field(default_factory=list)  # ToolchainNotFound

    script_path: Optional[str] = None
    toolchain_compiler: Optional[str] = None
    result: Optional[CompilationResult] = None

    timestamp: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )

    _error: Optional[Exception] = PrivateAttr(default=None)

    @property
    def ok(self) -> bool:
        return self.status == PipelineStatus.DONE

    def raise_for_status(self) -> CompilationResult:
        """Return the result, or re-raise the error that failed the run."""
        if self.ok and self.result is not None:
            return self.result
        if self._error is not None:
            raise self._error
        raise RuntimeError(self.message or f"pipeline failed: {self.reason}")
