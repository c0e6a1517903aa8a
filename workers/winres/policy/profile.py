"""
Profile — fixed knobs of the resource pipeline.

File names, locale defaults and tool names live here so that core logic
contains no opinions.  Supporting another SDK layout or tool prefix is a
profile change, not a code change.
"""
from dataclasses import dataclass


@dataclass(frozen=True)
class Profile:
    """Describes the files the pipeline writes and the tools it looks for."""

    # Identity
    profile_id: str

    # Output file names (all inside the caller's output directory)
    script_name: str = "resource.rc"
    gnu_object_name: str = "resource.o"
    msvc_object_name: str = "resource.lib"
    library_name: str = "resource"  # -> libresource.a on GNU

    # Locale of the string table block
    default_language_id: int = 0x0000  # LANG_NEUTRAL
    default_codepage: int = 0x04B0  # 1200, Unicode

    # Script text is always written as UTF-8
    script_codepage: int = 65001

    # RT_MANIFEST resource type
    manifest_resource_type: int = 24

    # Tool names
    msvc_compiler: str = "rc.exe"
    gnu_compiler: str = "windres"
    gnu_archiver: str = "ar"

    @classmethod
    def v1(cls) -> "Profile":
        """The v1 profile: windows-rc-windres."""
        return cls(profile_id="windows-rc-windres")
