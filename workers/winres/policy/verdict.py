"""
Verdict — pipeline stages and failure reasons.

The orchestrator walks the stages in order and never goes back:

  IDLE → SCRIPT_GENERATED → TOOLCHAIN_LOCATED → COMPILED → [ARCHIVED] → DONE

Any failure ends the run in FAILED with exactly one FailureReason.
"""
from enum import Enum, unique


@unique
class PipelineStage(str, Enum):
    IDLE = "IDLE"
    SCRIPT_GENERATED = "SCRIPT_GENERATED"
    TOOLCHAIN_LOCATED = "TOOLCHAIN_LOCATED"
    COMPILED = "COMPILED"
    ARCHIVED = "ARCHIVED"
    DONE = "DONE"
    FAILED = "FAILED"


@unique
class PipelineStatus(str, Enum):
    DONE = "DONE"
    FAILED = "FAILED"


@unique
class FailureReason(str, Enum):
    INVALID_FIELD = "INVALID_FIELD"
    TOOLCHAIN_NOT_FOUND = "TOOLCHAIN_NOT_FOUND"
    COMPILATION_FAILED = "COMPILATION_FAILED"
    ARCHIVE_PACKAGING_FAILED = "ARCHIVE_PACKAGING_FAILED"
