"""
Compiler invoker — run rc.exe / windres on a resource script.

The argument list comes from the toolchain variant; this module only
runs the tool, keeps its stderr and checks the exit code.
"""
import logging
from pathlib import Path
from typing import Optional, Sequence, Tuple

from winres.core.errors import CompilationFailed
from winres.core.process import ProcessRunner, SubprocessRunner
from winres.core.toolchain import ToolchainDescriptor
from winres.policy.profile import Profile

logger = logging.getLogger(__name__)


def compile_script(
    script_path: Path,
    toolchain: ToolchainDescriptor,
    output_dir: Path,
    runner: Optional[ProcessRunner] = None,
    include_dirs: Sequence[Path] = (),
    profile: Optional[Profile] = None,
) -> Tuple[Path, str]:
    """
    Compile *script_path* into a resource object inside *output_dir*.

    The tool runs with the script's directory as working directory so
    relative references in the script resolve next to it.

    Returns
    -------
    (object_path, stderr)

    Raises
    ------
    CompilationFailed
        If the compiler exits non-zero or produces no object.
    """
    if profile is None:
        profile = Profile.v1()
    if runner is None:
        runner = SubprocessRunner()

    script_path = Path(script_path).absolute()
    output_dir = Path(output_dir).absolute()
    output_dir.mkdir(parents=True, exist_ok=True)
    obj = output_dir / toolchain.object_name(profile)

    args = toolchain.compile_args(script_path, obj, include_dirs)
    logger.debug("%s %s", toolchain.compiler, " ".join(args))

    outcome = runner.run(toolchain.compiler, args, script_path.parent)
    if not outcome.ok:
        logger.error("%s failed (exit %d): %s",
                     toolchain.compiler.name, outcome.exit_code, outcome.stderr.strip())
        raise CompilationFailed(toolchain.compiler.name, outcome.exit_code, outcome.stderr)

    if not obj.is_file():
        raise CompilationFailed(
            toolchain.compiler.name,
            outcome.exit_code,
            outcome.stderr + f"\nexpected output {obj} was not produced",
        )

    if outcome.stderr.strip():
        logger.warning("%s: %s", toolchain.compiler.name, outcome.stderr.strip())
    logger.info("Compiled %s -> %s", script_path.name, obj)
    return obj, outcome.stderr
