"""
Toolchain locator — pick the ABI family and find rc.exe or windres + ar.

Responsibilities:
  - Parse a target triple into (AbiFamily, Arch).
  - MSVC: walk the installed Windows SDKs (newest version first) for an
    architecture-specific rc.exe.
  - GNU: search PATH for the arch-prefixed windres and require the
    matching ar next to it.
  - Return an immutable ToolchainDescriptor whose paths exist.

Discovery runs fresh on every call; nothing is cached between runs
because toolchains can be installed or removed between builds.
"""
import logging
import os
import re
import shutil
import subprocess
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import ClassVar, Iterable, List, Optional, Protocol, Sequence, Tuple, Union

from winres.config import settings
from winres.core.errors import ToolchainNotFound
from winres.policy.profile import Profile

logger = logging.getLogger(__name__)

_VERSION_DIR_RE = re.compile(r"^\d+(?:\.\d+)+$")


# ── Target description ──────────────────────────────────────────────────────

class AbiFamily(str, Enum):
    MSVC = "msvc"
    GNU = "gnu"


class Arch(str, Enum):
    """Target architecture; the value is the SDK bin subdirectory name."""
    X86 = "x86"
    X64 = "x64"

    @property
    def bits(self) -> int:
        return 64 if self is Arch.X64 else 32

    @property
    def gnu_prefix(self) -> str:
        return "x86_64-w64-mingw32-" if self is Arch.X64 else "i686-w64-mingw32-"

    @property
    def bfd_target(self) -> str:
        return "pe-x86-64" if self is Arch.X64 else "pe-i386"


_ARCH_ALIASES = {
    "x86_64": Arch.X64,
    "amd64": Arch.X64,
    "x64": Arch.X64,
    "i386": Arch.X86,
    "i486": Arch.X86,
    "i586": Arch.X86,
    "i686": Arch.X86,
    "x86": Arch.X86,
}


def parse_target_triple(triple: str) -> Tuple[AbiFamily, Arch]:
    """
    ``x86_64-pc-windows-msvc`` → (MSVC, X64); ``i686-pc-windows-gnu`` → (GNU, X86).

    Any component ending in ``msvc`` selects MSVC; everything else is GNU.
    """
    parts = [p.lower() for p in (triple or "").strip().split("-") if p]
    if not parts:
        raise ToolchainNotFound(f"empty target triple {triple!r}")

    arch = _ARCH_ALIASES.get(parts[0])
    if arch is None:
        raise ToolchainNotFound(f"unsupported target architecture {parts[0]!r} in {triple!r}")

    abi = AbiFamily.MSVC if any(p.endswith("msvc") for p in parts[1:]) else AbiFamily.GNU
    return abi, arch


# ── Descriptors ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ToolchainDescriptor:
    """Resolved tools for one pipeline run.  Subclasses carry the ABI logic."""

    arch: Arch
    compiler: Path

    abi: ClassVar[AbiFamily]
    needs_archive: ClassVar[bool] = False
    link_kind: ClassVar[str] = "static"

    def object_name(self, profile: Profile) -> str:
        raise NotImplementedError

    def compile_args(
        self, script: Path, output: Path, include_dirs: Sequence[Path] = ()
    ) -> List[str]:
        raise NotImplementedError


@dataclass(frozen=True)
class MsvcToolchain(ToolchainDescriptor):
    """Windows SDK rc.exe; its output is handed to link.exe as-is."""

    abi = AbiFamily.MSVC
    link_kind = "dylib"

    def object_name(self, profile: Profile) -> str:
        return profile.msvc_object_name

    def compile_args(self, script, output, include_dirs=()):
        args = [f"/I{d}" for d in include_dirs]
        args += [f"/fo{output}", str(script)]
        return args


@dataclass(frozen=True)
class GnuToolchain(ToolchainDescriptor):
    """MinGW windres + ar; the COFF object must be wrapped in an archive."""

    archiver: Path

    abi = AbiFamily.GNU
    needs_archive = True

    def object_name(self, profile: Profile) -> str:
        return profile.gnu_object_name

    def archive_name(self, profile: Profile) -> str:
        return f"lib{profile.library_name}.a"

    def compile_args(self, script, output, include_dirs=()):
        args = ["--input-format=rc", "--output-format=coff", f"--target={self.arch.bfd_target}"]
        for d in include_dirs:
            args += ["-I", str(d)]
        args += ["-i", str(script), "-o", str(output)]
        return args

    def archive_args(self, archive: Path, obj: Path) -> List[str]:
        return ["rcs", str(archive), str(obj)]


# ── Windows SDK registry ────────────────────────────────────────────────────

@dataclass(frozen=True)
class SdkInstall:
    """One Windows Kits root and the SDK versions installed under it."""
    root: Path
    versions: Tuple[str, ...] = ()


class SdkRegistry(Protocol):
    def installed_sdks(self) -> List[SdkInstall]:
        ...


def _version_key(version: str) -> Tuple[int, ...]:
    try:
        return tuple(int(p) for p in version.split("."))
    except ValueError:
        return (-1,)


def scan_version_dirs(root: Path) -> Tuple[str, ...]:
    """Version-named directories under ``<root>/bin`` (e.g. 10.0.19041.0)."""
    bin_dir = Path(root) / "bin"
    if not bin_dir.is_dir():
        return ()
    return tuple(sorted(
        (e.name for e in bin_dir.iterdir() if e.is_dir() and _VERSION_DIR_RE.match(e.name)),
        key=_version_key,
    ))


def parse_reg_query(text: str) -> Tuple[List[Path], List[str]]:
    """
    Parse ``reg query <Installed Roots>`` output.

    Returns (kit_roots, sdk_versions): ``KitsRoot*`` REG_SZ values, newest
    registry entry first, and the version-named sub-keys.
    """
    roots: List[Path] = []
    versions: List[str] = []
    for line in text.splitlines():
        stripped = line.strip()
        if stripped.startswith("KitsRoot") and "REG_SZ" in stripped:
            value = stripped.split("REG_SZ", 1)[1].strip()
            if value:
                roots.append(Path(value))
        elif stripped.upper().startswith("HKEY_"):
            leaf = re.split(r"[\\/]", stripped)[-1]
            if _VERSION_DIR_RE.match(leaf):
                versions.append(leaf)
    roots.reverse()
    return roots, versions


class RegQuerySdkRegistry:
    """Reads installed SDK roots with ``reg query``; no Windows API binding needed."""

    def __init__(self, key: Optional[str] = None, timeout: Optional[int] = None):
        self.key = key or settings.SDK_REGISTRY_KEY
        self.timeout = settings.REG_QUERY_TIMEOUT if timeout is None else timeout

    def installed_sdks(self) -> List[SdkInstall]:
        try:
            r = subprocess.run(
                ["reg", "query", self.key],
                capture_output=True,
                text=True,
                errors="replace",
                timeout=self.timeout,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.debug("reg query %s unavailable: %s", self.key, e)
            return []
        if r.returncode != 0:
            logger.debug("reg query %s exited %d", self.key, r.returncode)
            return []

        roots, reg_versions = parse_reg_query(r.stdout)
        sdks: List[SdkInstall] = []
        for root in roots:
            versions = set(reg_versions) | set(scan_version_dirs(root))
            sdks.append(SdkInstall(root=root, versions=tuple(sorted(versions, key=_version_key))))
        return sdks


def msvc_candidates(sdks: Iterable[SdkInstall], arch: Arch, rc_name: str = "rc.exe") -> List[Path]:
    """
    Candidate rc.exe paths in preference order.

    Versioned layouts (``bin/<version>/<arch>``) across all roots come
    first, newest version first; the unversioned ``bin/<arch>`` layout of
    older kits follows in root order.
    """
    sdks = list(sdks)
    versioned: List[Tuple[Tuple[int, ...], Path]] = []
    for sdk in sdks:
        for v in sdk.versions:
            versioned.append((_version_key(v), Path(sdk.root) / "bin" / v / arch.value / rc_name))
    versioned.sort(key=lambda t: t[0], reverse=True)

    out: List[Path] = []
    for p in [p for _, p in versioned] + [Path(s.root) / "bin" / arch.value / rc_name for s in sdks]:
        if p not in out:
            out.append(p)
    return out


def find_rc_exe(sdks: Iterable[SdkInstall], arch: Arch, rc_name: str = "rc.exe") -> Optional[Path]:
    """First existing rc.exe for *arch*, or None."""
    for candidate in msvc_candidates(sdks, arch, rc_name):
        if candidate.is_file():
            return candidate
    return None


# ── Locators ────────────────────────────────────────────────────────────────

def _locate_msvc(
    arch: Arch,
    registry: SdkRegistry,
    toolkit_path: Optional[Path],
    profile: Profile,
) -> MsvcToolchain:
    if toolkit_path is not None:
        direct = toolkit_path / profile.msvc_compiler
        if direct.is_file():
            return MsvcToolchain(arch=arch, compiler=direct.absolute())
        sdks = [SdkInstall(root=toolkit_path, versions=scan_version_dirs(toolkit_path))]
    else:
        sdks = registry.installed_sdks()

    rc = find_rc_exe(sdks, arch, profile.msvc_compiler)
    if rc is None:
        searched = [str(p) for p in msvc_candidates(sdks, arch, profile.msvc_compiler)]
        raise ToolchainNotFound(
            f"no {profile.msvc_compiler} for {arch.value} in {len(sdks)} Windows SDK root(s)",
            searched=searched,
        )
    return MsvcToolchain(arch=arch, compiler=rc.absolute())


def _beside(tool: Path, name: str) -> Optional[Path]:
    for candidate in (tool.parent / name, tool.parent / f"{name}.exe"):
        if candidate.is_file():
            return candidate
    return None


def _locate_gnu(arch: Arch, search_path: Optional[str], profile: Profile) -> GnuToolchain:
    searched: List[str] = []
    for prefix in (arch.gnu_prefix, ""):
        name = prefix + profile.gnu_compiler
        searched.append(name)
        found = shutil.which(name, path=search_path)
        if found is None:
            continue

        compiler = Path(os.path.abspath(found))
        archiver_name = prefix + profile.gnu_archiver
        archiver = _beside(compiler, archiver_name)
        if archiver is None:
            searched.append(str(compiler.parent / archiver_name))
            raise ToolchainNotFound(
                f"found {compiler} but no {archiver_name} beside it",
                searched=searched,
            )
        return GnuToolchain(arch=arch, compiler=compiler, archiver=archiver)

    raise ToolchainNotFound(
        f"no {profile.gnu_compiler} + {profile.gnu_archiver} pair for {arch.value} on the search path",
        searched=searched,
    )


def locate(
    target_triple: str,
    search_path: Optional[Union[str, Sequence[Union[str, Path]]]] = None,
    registry: Optional[SdkRegistry] = None,
    toolkit_path: Optional[Union[str, Path]] = None,
    profile: Optional[Profile] = None,
) -> ToolchainDescriptor:
    """
    Resolve the toolchain for *target_triple*.

    Parameters
    ----------
    search_path : str or list, optional
        Directories searched for windres/ar.  Defaults to ``PATH``.
    registry : SdkRegistry, optional
        Source of installed Windows SDKs.  Defaults to RegQuerySdkRegistry.
    toolkit_path : str or Path, optional
        Explicit toolkit location (``WINRES_TOOLKIT_PATH``).  GNU: the
        directory holding windres/ar.  MSVC: an SDK root or rc.exe dir.

    Raises
    ------
    ToolchainNotFound
    """
    if profile is None:
        profile = Profile.v1()
    if toolkit_path is None and settings.TOOLKIT_PATH:
        toolkit_path = settings.TOOLKIT_PATH

    abi, arch = parse_target_triple(target_triple)
    toolkit = Path(toolkit_path) if toolkit_path is not None else None

    if abi is AbiFamily.MSVC:
        toolchain = _locate_msvc(arch, registry or RegQuerySdkRegistry(), toolkit, profile)
    else:
        if toolkit is not None:
            path = str(toolkit)
        elif search_path is None or isinstance(search_path, str):
            path = search_path
        else:
            path = os.pathsep.join(str(p) for p in search_path)
        toolchain = _locate_gnu(arch, path, profile)

    logger.info("Located %s toolchain for %s: %s", abi.value, target_triple, toolchain.compiler)
    return toolchain
