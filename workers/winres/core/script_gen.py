"""
Script generator — render a Manifest as resource script (.rc) text.

Output layout (fixed order, so identical input gives identical bytes):
  1. #pragma code_page(65001)
  2. VERSIONINFO with FILEVERSION / PRODUCTVERSION and the fixed fields
  3. StringFileInfo block keyed by "<language_id><codepage>", VarFileInfo
  4. one ICON statement per icon
  5. the RT_MANIFEST resource (file reference or inline lines)

Quoted strings follow the rc grammar: a quote is doubled, a backslash
starts an escape.  Anything that cannot be written that way is rejected
with InvalidField before a single line is produced.
"""
import logging
import re
import unicodedata
from pathlib import Path
from typing import List, Optional

from winres.core.errors import InvalidField
from winres.core.manifest import MAX_DWORD, MAX_WORD, FileVersion, Manifest
from winres.policy.profile import Profile

logger = logging.getLogger(__name__)

_ESCAPES = {
    "\\": "\\\\",
    '"': '""',
    "\t": "\\t",
    "\n": "\\n",
    "\r": "\\r",
}
_UNESCAPES = {"\\": "\\", "t": "\t", "n": "\n", "r": "\r"}

_NAME_ID_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


# ── Escaping ────────────────────────────────────────────────────────────────

def escape_string(value: str, field: str) -> str:
    """
    Escape *value* for use between double quotes in a resource script.

    Raises InvalidField for control characters other than tab, newline and
    carriage return, and for lone surrogates (not encodable as UTF-8).
    """
    out: List[str] = []
    for ch in value:
        if ch in _ESCAPES:
            out.append(_ESCAPES[ch])
        elif unicodedata.category(ch) == "Cc":
            raise InvalidField(field, f"control character U+{ord(ch):04X} is not representable")
        elif unicodedata.category(ch) == "Cs":
            raise InvalidField(field, f"lone surrogate U+{ord(ch):04X} is not representable")
        else:
            out.append(ch)
    return "".join(out)


def unescape(text: str) -> str:
    """Read the body of a quoted script string back the way rc does."""
    out: List[str] = []
    i = 0
    while i < len(text):
        ch = text[i]
        nxt = text[i + 1] if i + 1 < len(text) else ""
        if ch == '"' and nxt == '"':
            out.append('"')
            i += 2
        elif ch == "\\" and nxt in _UNESCAPES:
            out.append(_UNESCAPES[nxt])
            i += 2
        else:
            out.append(ch)
            i += 1
    return "".join(out)


def _quote(value: str, field: str) -> str:
    return f'"{escape_string(value, field)}"'


def _quote_path(path: Path, field: str) -> str:
    """Canonicalize an existing file path and quote it."""
    p = Path(path)
    if not p.is_file():
        raise InvalidField(field, f"file not found: {p}")
    resolved = str(p.resolve())
    if '"' in resolved:
        raise InvalidField(field, f"path contains a double quote: {resolved}")
    return _quote(resolved, field)


# ── Field checks ────────────────────────────────────────────────────────────

def _check_word(value: int, field: str, limit: int = MAX_WORD) -> int:
    if not isinstance(value, int) or isinstance(value, bool) or not 0 <= value <= limit:
        raise InvalidField(field, f"{value!r} is outside 0..{limit:#x}")
    return value


def _check_key(key: str) -> str:
    field = f"string_table[{key!r}]"
    if not isinstance(key, str) or not key:
        raise InvalidField(field, "key must be a non-empty string")
    if any(unicodedata.category(ch) in ("Cc", "Cs") for ch in key):
        raise InvalidField(field, "key contains a control character")
    return _quote(key, field)


def _format_icon_id(resource_id, field: str) -> str:
    if isinstance(resource_id, bool):
        raise InvalidField(field, f"invalid resource id {resource_id!r}")
    if isinstance(resource_id, int):
        if not 1 <= resource_id <= MAX_WORD:
            raise InvalidField(field, f"resource id {resource_id} is outside 1..{MAX_WORD}")
        return str(resource_id)
    if isinstance(resource_id, str) and _NAME_ID_RE.match(resource_id):
        return resource_id
    raise InvalidField(field, f"invalid resource id {resource_id!r}")


def _version_words(version: FileVersion) -> str:
    return ",".join(str(v) for v in version.as_tuple())


# ── Blocks ──────────────────────────────────────────────────────────────────

def _version_block(manifest: Manifest) -> List[str]:
    fixed = manifest.fixed_info
    lang = _check_word(manifest.language_id, "language_id")
    cp = _check_word(manifest.codepage, "codepage")

    lines = [
        "1 VERSIONINFO",
        f"FILEVERSION {_version_words(manifest.version)}",
        f"PRODUCTVERSION {_version_words(manifest.effective_product_version)}",
    ]
    for name, value in (
        ("FILEOS", fixed.file_os),
        ("FILETYPE", int(fixed.file_type)),
        ("FILESUBTYPE", fixed.file_subtype),
        ("FILEFLAGSMASK", fixed.file_flags_mask),
        ("FILEFLAGS", fixed.file_flags),
    ):
        lines.append(f"{name} {_check_word(value, name.lower(), MAX_DWORD):#x}")

    lines += ["{", 'BLOCK "StringFileInfo"', "{", f'BLOCK "{lang:04x}{cp:04x}"', "{"]
    for key, value in manifest.string_table.items():
        if not isinstance(value, str):
            raise InvalidField(f"string_table[{key!r}]", "value must be a string")
        name = _check_key(key)
        if not value:
            continue
        lines.append(f"VALUE {name}, {_quote(value, f'string_table[{key!r}]')}")
    lines += ["}", "}"]

    lines += [
        'BLOCK "VarFileInfo"',
        "{",
        f'VALUE "Translation", 0x{lang:04x}, 0x{cp:04x}',
        "}",
        "}",
    ]
    return lines


def _icon_lines(manifest: Manifest) -> List[str]:
    lines: List[str] = []
    seen = set()
    for n, icon in enumerate(manifest.icons):
        field = f"icons[{n}]"
        rid = _format_icon_id(icon.resource_id, field)
        key = rid.upper()
        if key in seen:
            raise InvalidField(field, f"duplicate icon resource id {icon.resource_id!r}")
        seen.add(key)
        lines.append(f"{rid} ICON {_quote_path(icon.path, field)}")
    return lines


def _manifest_lines(manifest: Manifest, profile: Profile) -> List[str]:
    if manifest.manifest_file is not None and manifest.manifest_xml is not None:
        raise InvalidField("manifest_file", "manifest_file and manifest_xml are mutually exclusive")

    header = f"{int(manifest.fixed_info.file_type)} {profile.manifest_resource_type}"

    if manifest.manifest_file is not None:
        return [f"{header} {_quote_path(manifest.manifest_file, 'manifest_file')}"]

    if manifest.manifest_xml is not None:
        lines = [header, "{"]
        for line in manifest.manifest_xml.splitlines():
            line = line.strip()
            if line:
                lines.append(_quote(line + "\n", "manifest_xml"))
        lines.append("}")
        return lines

    return []


# ── Public API ──────────────────────────────────────────────────────────────

def generate(manifest: Manifest, profile: Optional[Profile] = None) -> str:
    """
    Render *manifest* as resource script text.

    Raises
    ------
    InvalidField
        On unrepresentable characters, missing icon/manifest files,
        duplicate icon ids or out-of-range numeric fields.
    """
    if profile is None:
        profile = Profile.v1()

    lines = [f"#pragma code_page({profile.script_codepage})"]
    lines += _version_block(manifest)
    lines += _icon_lines(manifest)
    lines += _manifest_lines(manifest, profile)
    return "\n".join(lines) + "\n"


def write_script(manifest: Manifest, path: Path, profile: Optional[Profile] = None) -> Path:
    """Generate the script and write it to *path* as UTF-8."""
    text = generate(manifest, profile)
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8", newline="\n")
    logger.info("Wrote resource script %s (%d icons, %d strings)",
                path, len(manifest.icons), len(manifest.string_table))
    return path
