"""
Archiver — wrap the windres object into libresource.a (GNU only).

The GNU linker picks up resource data from an archive member; rc.exe
output on the MSVC side goes to the linker directly and never gets here.
"""
import logging
from pathlib import Path
from typing import Optional, Tuple

from winres.core.errors import ArchivePackagingFailed
from winres.core.process import ProcessRunner, SubprocessRunner
from winres.core.toolchain import GnuToolchain, ToolchainDescriptor
from winres.policy.profile import Profile

logger = logging.getLogger(__name__)


def archive_object(
    object_path: Path,
    toolchain: ToolchainDescriptor,
    output_dir: Path,
    runner: Optional[ProcessRunner] = None,
    profile: Optional[Profile] = None,
) -> Tuple[Path, str]:
    """
    Run ``ar rcs`` to put *object_path* into a static archive.

    Returns (archive_path, stderr).  Raises ArchivePackagingFailed on a
    non-zero exit, ValueError for a toolchain without an archiver.
    """
    if not isinstance(toolchain, GnuToolchain):
        raise ValueError(f"{toolchain.abi.value} toolchain has no archiving step")
    if profile is None:
        profile = Profile.v1()
    if runner is None:
        runner = SubprocessRunner()

    output_dir = Path(output_dir).absolute()
    archive = output_dir / toolchain.archive_name(profile)
    args = toolchain.archive_args(archive, Path(object_path).absolute())
    logger.debug("%s %s", toolchain.archiver, " ".join(args))

    outcome = runner.run(toolchain.archiver, args, output_dir)
    if not outcome.ok:
        logger.error("%s failed (exit %d): %s",
                     toolchain.archiver.name, outcome.exit_code, outcome.stderr.strip())
        raise ArchivePackagingFailed(toolchain.archiver.name, outcome.exit_code, outcome.stderr)

    logger.info("Archived %s -> %s", Path(object_path).name, archive)
    return archive, outcome.stderr
