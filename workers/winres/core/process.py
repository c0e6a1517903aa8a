"""
Process capability — run a native tool and collect its outcome.

Compiler and archiver calls go through ``ProcessRunner`` so pipeline
logic can be exercised with a scripted fake instead of real rc/windres/ar.
"""
import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Protocol, Sequence

from winres.config import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProcessOutcome:
    exit_code: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


class ProcessRunner(Protocol):
    def run(self, executable: Path, args: Sequence[str], working_dir: Path) -> ProcessOutcome:
        ...


class SubprocessRunner:
    """Runs tools with ``subprocess.run``; timeouts and exec errors map to exit -1."""

    def __init__(self, timeout: Optional[int] = None):
        self.timeout = settings.TOOL_TIMEOUT if timeout is None else timeout

    def run(self, executable: Path, args: Sequence[str], working_dir: Path) -> ProcessOutcome:
        cmd: List[str] = [str(executable), *args]
        logger.debug("exec %s (cwd=%s)", cmd, working_dir)
        try:
            result = subprocess.run(
                cmd,
                cwd=str(working_dir),
                capture_output=True,
                text=True,
                errors="replace",
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired:
            return ProcessOutcome(exit_code=-1, stderr=f"TIMEOUT after {self.timeout}s")
        except OSError as e:
            return ProcessOutcome(exit_code=-1, stderr=str(e))
        return ProcessOutcome(
            exit_code=result.returncode,
            stdout=result.stdout or "",
            stderr=result.stderr or "",
        )
