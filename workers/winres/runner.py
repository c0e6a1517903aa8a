"""
Pipeline runner — top-level orchestration: manifest → linkable artifact.

This module ties script generation, toolchain discovery, compilation
and archiving into a single ``run_pipeline`` function that a build
script can call.

Architecture:
  1. Write resource.rc from the manifest (or take a ready-made script).
  2. Locate rc.exe or windres + ar for the target triple.
  3. Compile the script into resource.lib / resource.o.
  4. GNU only: archive resource.o into libresource.a.
  5. Write winres_report.json.

Any component error ends the run in FAILED.  Nothing is retried and
intermediate files are left in place for inspection.
"""
import logging
from pathlib import Path
from typing import Optional, Sequence, Union

from winres.core.archiver import archive_object
from winres.core.compiler import compile_script
from winres.core.errors import (
    InvalidField,
    ToolFailed,
    ToolchainNotFound,
    WinresError,
)
from winres.core.manifest import Manifest
from winres.core.process import ProcessRunner, SubprocessRunner
from winres.core.script_gen import write_script
from winres.core.toolchain import SdkRegistry, ToolchainDescriptor, locate
from winres.io.schema import CompilationResult, PipelineReport
from winres.io.writer import write_report as _write_report
from winres.policy.profile import Profile
from winres.policy.verdict import PipelineStage, PipelineStatus

logger = logging.getLogger(__name__)


def _failure_report(
    error: WinresError,
    stage: PipelineStage,
    target_triple: str,
    output_dir: Path,
    profile: Profile,
    script_path: Optional[Path],
    toolchain: Optional[ToolchainDescriptor],
) -> PipelineReport:
    report = PipelineReport(
        profile_id=profile.profile_id,
        target_triple=target_triple,
        output_dir=str(output_dir),
        status=PipelineStatus.FAILED,
        stage=PipelineStage.FAILED,
        failed_after=stage,
        reason=error.reason,
        message=error.message,
        script_path=str(script_path) if script_path else None,
        toolchain_compiler=str(toolchain.compiler) if toolchain else None,
    )
    if isinstance(error, InvalidField):
        report.field = error.field
    elif isinstance(error, ToolchainNotFound):
        report.searched = error.searched
    elif isinstance(error, ToolFailed):
        report.exit_code = error.exit_code
        report.stderr = error.stderr
    report._error = error
    return report


def run_pipeline(
    manifest: Optional[Manifest],
    target_triple: str,
    output_dir: Union[str, Path],
    resource_file: Optional[Union[str, Path]] = None,
    include_dirs: Sequence[Union[str, Path]] = (),
    search_path: Optional[Union[str, Sequence[Union[str, Path]]]] = None,
    registry: Optional[SdkRegistry] = None,
    toolkit_path: Optional[Union[str, Path]] = None,
    runner: Optional[ProcessRunner] = None,
    profile: Optional[Profile] = None,
    write_report: bool = True,
) -> PipelineReport:
    """
    Compile the Windows resources for one target.

    Parameters
    ----------
    manifest : Manifest
        What to embed.  May be None when *resource_file* is given.
    target_triple : str
        e.g. ``x86_64-pc-windows-gnu`` or ``x86_64-pc-windows-msvc``.
    output_dir : str or Path
        Receives resource.rc, the object, the archive and the report.
        Concurrent runs must not share it.
    resource_file : str or Path, optional
        Existing .rc script to compile instead of generating one.  It is
        neither parsed nor modified.
    include_dirs : list, optional
        Extra include directories passed to the resource compiler.
    search_path, registry, toolkit_path
        Toolchain discovery inputs, see ``winres.core.toolchain.locate``.
    runner : ProcessRunner, optional
        Process capability.  Defaults to SubprocessRunner.
    write_report : bool
        Write winres_report.json into *output_dir* (default True).

    Returns
    -------
    PipelineReport
        status DONE with ``result`` set, or FAILED with the reason.
    """
    if profile is None:
        profile = Profile.v1()
    if runner is None:
        runner = SubprocessRunner()

    output_dir = Path(output_dir).absolute()
    includes = [Path(d).absolute() for d in include_dirs]
    stage = PipelineStage.IDLE
    script_path: Optional[Path] = None
    toolchain: Optional[ToolchainDescriptor] = None

    try:
        # ── Step 1: resource script ─────────────────────────────────────
        if resource_file is not None:
            script_path = Path(resource_file).absolute()
            if not script_path.is_file():
                raise InvalidField("resource_file", f"file not found: {script_path}")
        else:
            if manifest is None:
                raise InvalidField("manifest", "a manifest or a resource_file is required")
            script_path = write_script(manifest, output_dir / profile.script_name, profile)
        stage = PipelineStage.SCRIPT_GENERATED

        # ── Step 2: toolchain ───────────────────────────────────────────
        toolchain = locate(
            target_triple,
            search_path=search_path,
            registry=registry,
            toolkit_path=toolkit_path,
            profile=profile,
        )
        stage = PipelineStage.TOOLCHAIN_LOCATED

        # ── Step 3: compile ─────────────────────────────────────────────
        obj, stderr = compile_script(
            script_path, toolchain, output_dir,
            runner=runner, include_dirs=includes, profile=profile,
        )
        stage = PipelineStage.COMPILED

        # ── Step 4: archive (GNU) ───────────────────────────────────────
        archive: Optional[Path] = None
        if toolchain.needs_archive:
            archive, stderr = archive_object(obj, toolchain, output_dir, runner=runner, profile=profile)
            stage = PipelineStage.ARCHIVED

    except WinresError as e:
        logger.error("Resource pipeline failed after %s: %s", stage.value, e)
        report = _failure_report(e, stage, target_triple, output_dir, profile, script_path, toolchain)
    else:
        artifact = archive or obj
        result = CompilationResult(
            artifact_path=str(artifact),
            object_path=str(obj),
            archive_path=str(archive) if archive else None,
            script_path=str(script_path),
            abi=toolchain.abi.value,
            arch=toolchain.arch.value,
            stderr=stderr,
            link_search_dir=str(output_dir),
            link_lib=profile.library_name,
            link_kind=toolchain.link_kind,
        )
        report = PipelineReport(
            profile_id=profile.profile_id,
            target_triple=target_triple,
            output_dir=str(output_dir),
            status=PipelineStatus.DONE,
            stage=PipelineStage.DONE,
            script_path=str(script_path),
            toolchain_compiler=str(toolchain.compiler),
            result=result,
        )
        logger.info("Resource pipeline done: %s", artifact)

    if write_report:
        _write_report(report, output_dir)
    return report


def compile_resources(
    manifest: Optional[Manifest],
    target_triple: str,
    output_dir: Union[str, Path],
    **kwargs,
) -> CompilationResult:
    """Like ``run_pipeline`` but returns the result or raises the WinresError."""
    return run_pipeline(manifest, target_triple, output_dir, **kwargs).raise_for_status()
