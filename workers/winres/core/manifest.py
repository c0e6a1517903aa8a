"""
Manifest — in-memory description of everything to embed.

Responsibilities:
  - Hold the version tuple, string table, icons, locale and
    application manifest for one compilation.
  - Parse package version strings into four 16-bit components.
  - Build a Manifest from the raw metadata inputs (build_manifest).

This module does NOT render script text; see script_gen.
"""
import re
from dataclasses import dataclass, field
from enum import IntEnum
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Tuple, Union

from winres.core.errors import InvalidField
from winres.policy.profile import Profile

MAX_WORD = 0xFFFF
MAX_DWORD = 0xFFFFFFFF

ResourceId = Union[int, str]
IconSpec = Union[str, Path, Tuple[ResourceId, Union[str, Path]]]

_VERSION_RE = re.compile(r"^\s*(\d+(?:\.\d+){0,3})(?:[-+].*)?\s*$")


class FileType(IntEnum):
    """VERSIONINFO FILETYPE values we emit."""
    APP = 0x1  # VFT_APP
    DLL = 0x2  # VFT_DLL


@dataclass(frozen=True)
class FileVersion:
    """Four 16-bit version words: major.minor.patch.build."""

    major: int = 0
    minor: int = 0
    patch: int = 0
    build: int = 0

    def __post_init__(self):
        for name, value in zip(("major", "minor", "patch", "build"), self.as_tuple()):
            if not isinstance(value, int) or isinstance(value, bool):
                raise InvalidField(f"version.{name}", f"not an integer: {value!r}")
            if not 0 <= value <= MAX_WORD:
                raise InvalidField(
                    f"version.{name}", f"{value} is outside 0..{MAX_WORD}"
                )

    def as_tuple(self) -> Tuple[int, int, int, int]:
        return (self.major, self.minor, self.patch, self.build)

    def __str__(self) -> str:
        return ".".join(str(v) for v in self.as_tuple())


def parse_version(text: str) -> FileVersion:
    """
    Parse ``"MAJOR.MINOR.PATCH"`` or ``"MAJOR.MINOR.PATCH.BUILD"``.

    Missing components default to 0.  A pre-release or build-metadata
    suffix (``-beta.1``, ``+abc``) is ignored.

    Raises
    ------
    InvalidField
        If the string is not numeric or a component exceeds 65535.
    """
    m = _VERSION_RE.match(text or "")
    if not m:
        raise InvalidField("version", f"cannot parse version string {text!r}")
    parts = [int(p) for p in m.group(1).split(".")]
    parts += [0] * (4 - len(parts))
    return FileVersion(*parts)


@dataclass(frozen=True)
class FixedFileInfo:
    """Non-string VERSIONINFO fields."""

    file_os: int = 0x40004  # VOS_NT_WINDOWS32
    file_type: FileType = FileType.APP
    file_subtype: int = 0x0  # VFT2_UNKNOWN
    file_flags_mask: int = 0x3F  # VS_FFI_FILEFLAGSMASK
    file_flags: int = 0x0


@dataclass(frozen=True)
class IconEntry:
    resource_id: ResourceId
    path: Path


@dataclass
class Manifest:
    """Everything that goes into one resource script."""

    version: FileVersion = field(default_factory=FileVersion)
    string_table: Dict[str, str] = field(default_factory=dict)
    icons: List[IconEntry] = field(default_factory=list)

    language_id: int = Profile.v1().default_language_id
    codepage: int = Profile.v1().default_codepage

    manifest_file: Optional[Path] = None
    manifest_xml: Optional[str] = None

    fixed_info: FixedFileInfo = field(default_factory=FixedFileInfo)
    product_version: Optional[FileVersion] = None  # mirrors version if unset

    @property
    def effective_product_version(self) -> FileVersion:
        return self.product_version or self.version

    def add_icon(self, path: Union[str, Path], resource_id: Optional[ResourceId] = None) -> IconEntry:
        """Append an icon; without an id, take the lowest free integer id."""
        if resource_id is None:
            resource_id = _next_free_id({i.resource_id for i in self.icons})
        entry = IconEntry(resource_id=resource_id, path=Path(path))
        self.icons.append(entry)
        return entry


def _next_free_id(used) -> int:
    n = 1
    while n in used:
        n += 1
    return n


def build_manifest(
    version: str,
    properties: Optional[Mapping[str, str]] = None,
    icons: Optional[Iterable[IconSpec]] = None,
    manifest_file: Optional[Union[str, Path]] = None,
    manifest_xml: Optional[str] = None,
    language_id: Optional[int] = None,
    codepage: Optional[int] = None,
    file_type: FileType = FileType.APP,
) -> Manifest:
    """
    Build a Manifest from raw package metadata.

    ``FileVersion`` and ``ProductVersion`` string entries are seeded from
    *version*; entries in *properties* take precedence over them.  Icons
    may be given as a bare path or as ``(resource_id, path)``; bare paths
    get the lowest integer id not claimed by an explicit one.
    """
    profile = Profile.v1()
    table: Dict[str, str] = {"FileVersion": version, "ProductVersion": version}
    table.update(properties or {})

    manifest = Manifest(
        version=parse_version(version),
        string_table=table,
        language_id=profile.default_language_id if language_id is None else language_id,
        codepage=profile.default_codepage if codepage is None else codepage,
        manifest_file=Path(manifest_file) if manifest_file is not None else None,
        manifest_xml=manifest_xml,
        fixed_info=FixedFileInfo(file_type=file_type),
    )

    specs = list(icons or [])
    explicit = {s[0] for s in specs if isinstance(s, tuple)}
    used = set(explicit)
    for spec in specs:
        if isinstance(spec, tuple):
            rid, path = spec
        else:
            rid, path = _next_free_id(used), spec
            used.add(rid)
        manifest.icons.append(IconEntry(resource_id=rid, path=Path(path)))

    return manifest
