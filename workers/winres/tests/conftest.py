"""
Shared pytest fixtures for winres tests.

All fixtures are pure-Python: no rc.exe, no windres, no Windows registry.
Tool invocations go through FakeRunner, which records every call and
returns canned exit codes; SDK discovery goes through InMemorySdkRegistry.
Toolchain directories are plain temp dirs with empty executable files.
"""
import os
import stat
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

import pytest

from winres.config import settings
from winres.core.manifest import Manifest, parse_version
from winres.core.process import ProcessOutcome
from winres.core.toolchain import SdkInstall

GNU_TRIPLE_64 = "x86_64-pc-windows-gnu"
GNU_TRIPLE_32 = "i686-pc-windows-gnu"
MSVC_TRIPLE_64 = "x86_64-pc-windows-msvc"
MSVC_TRIPLE_32 = "i686-pc-windows-msvc"

# Smallest thing that looks like an .ico header; content is never parsed.
ICO_BYTES = b"\x00\x00\x01\x00\x01\x00\x10\x10\x00\x00\x01\x00\x20\x00"

MANIFEST_XML = """\
<assembly xmlns="urn:schemas-microsoft-com:asm.v1" manifestVersion="1.0">
<trustInfo xmlns="urn:schemas-microsoft-com:asm.v3">
    <security>
        <requestedPrivileges>
            <requestedExecutionLevel level="requireAdministrator" uiAccess="false" />
        </requestedPrivileges>
    </security>
</trustInfo>
</assembly>
"""


class FakeRunner:
    """
    Scripted ProcessRunner.

    ``outcomes`` maps an executable file name (e.g. ``"rc.exe"``) to the
    ProcessOutcome to return.  On exit code 0 the output named by
    ``/fo<path>`` or ``-o <path>`` is created, like the real tools do.
    """

    def __init__(self, outcomes: Optional[Dict[str, ProcessOutcome]] = None):
        self.outcomes = dict(outcomes or {})
        self.calls: List[Tuple[Path, List[str], Path]] = []

    def run(self, executable, args: Sequence[str], working_dir) -> ProcessOutcome:
        args = list(args)
        self.calls.append((Path(executable), args, Path(working_dir)))
        outcome = self.outcomes.get(Path(executable).name, ProcessOutcome(exit_code=0))
        if outcome.exit_code == 0:
            out = _output_arg(args)
            if out is not None:
                out.parent.mkdir(parents=True, exist_ok=True)
                out.write_bytes(b"")
        return outcome

    def executables(self) -> List[str]:
        return [c[0].name for c in self.calls]


def _output_arg(args: List[str]) -> Optional[Path]:
    for i, a in enumerate(args):
        if a.startswith("/fo"):
            return Path(a[3:])
        if a == "-o" and i + 1 < len(args):
            return Path(args[i + 1])
    # ar rcs <archive> <object>
    if args and args[0] == "rcs" and len(args) >= 2:
        return Path(args[1])
    return None


class InMemorySdkRegistry:
    """SdkRegistry backed by a fixed list, in place of ``reg query``."""

    def __init__(self, sdks: Sequence[SdkInstall] = ()):
        self.sdks = list(sdks)
        self.queries = 0

    def installed_sdks(self) -> List[SdkInstall]:
        self.queries += 1
        return list(self.sdks)


def make_executable(path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"")
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


# ── Files ───────────────────────────────────────────────────────────────────

@pytest.fixture
def icon_file(tmp_path) -> Path:
    p = tmp_path / "assets" / "app.ico"
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_bytes(ICO_BYTES)
    return p


@pytest.fixture
def second_icon_file(tmp_path) -> Path:
    p = tmp_path / "assets" / "doc.ico"
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_bytes(ICO_BYTES)
    return p


@pytest.fixture
def manifest_xml_file(tmp_path) -> Path:
    p = tmp_path / "assets" / "app.manifest"
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(MANIFEST_XML, encoding="utf-8")
    return p


@pytest.fixture
def output_dir(tmp_path) -> Path:
    return tmp_path / "out"


# ── Manifests ───────────────────────────────────────────────────────────────

@pytest.fixture
def demo_manifest(icon_file) -> Manifest:
    """Version 1.2.3, {"ProductName": "Demo"}, one icon."""
    m = Manifest(version=parse_version("1.2.3"), string_table={"ProductName": "Demo"})
    m.add_icon(icon_file)
    return m


# ── Toolchains ──────────────────────────────────────────────────────────────

@pytest.fixture
def mingw_bin(tmp_path) -> Path:
    """Directory with both 64- and 32-bit prefixed windres + ar."""
    d = tmp_path / "mingw" / "bin"
    for name in (
        "x86_64-w64-mingw32-windres",
        "x86_64-w64-mingw32-ar",
        "i686-w64-mingw32-windres",
        "i686-w64-mingw32-ar",
    ):
        make_executable(d / name)
    return d


@pytest.fixture
def sdk_root(tmp_path) -> Path:
    """Windows Kits 10 root with two versioned SDKs; only the older one ships x86."""
    root = tmp_path / "Windows Kits" / "10"
    make_executable(root / "bin" / "10.0.17763.0" / "x64" / "rc.exe")
    make_executable(root / "bin" / "10.0.17763.0" / "x86" / "rc.exe")
    make_executable(root / "bin" / "10.0.19041.0" / "x64" / "rc.exe")
    return root


@pytest.fixture
def sdk_registry(sdk_root) -> InMemorySdkRegistry:
    return InMemorySdkRegistry([
        SdkInstall(root=sdk_root, versions=("10.0.17763.0", "10.0.19041.0")),
    ])


@pytest.fixture
def empty_path(tmp_path) -> str:
    d = tmp_path / "empty_bin"
    d.mkdir()
    return str(d)


@pytest.fixture(autouse=True)
def _no_toolkit_override(monkeypatch):
    """Keep WINRES_TOOLKIT_PATH from the developer's shell out of the tests."""
    monkeypatch.setattr(settings, "TOOLKIT_PATH", None)
    monkeypatch.delenv("WINRES_TOOLKIT_PATH", raising=False)
    yield


def path_of(*dirs) -> str:
    return os.pathsep.join(str(d) for d in dirs)
