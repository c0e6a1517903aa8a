"""
test_manifest — version parsing and manifest construction.

Invariants:
  - "a.b.c" parses to (a, b, c, 0); missing components are 0.
  - Components above 65535 are InvalidField, never truncated or wrapped.
  - build_manifest seeds FileVersion/ProductVersion and lets explicit
    properties override them.
  - Icons without an explicit id get the lowest free integer id.
"""
import pytest

from winres.core.errors import InvalidField
from winres.core.manifest import (
    FileType,
    FileVersion,
    Manifest,
    build_manifest,
    parse_version,
)


class TestParseVersion:

    @pytest.mark.parametrize("text, expected", [
        ("1.2.3", (1, 2, 3, 0)),
        ("0.0.0", (0, 0, 0, 0)),
        ("65535.65535.65535", (65535, 65535, 65535, 0)),
        ("1.2.3.4", (1, 2, 3, 4)),
        ("7", (7, 0, 0, 0)),
        ("1.2", (1, 2, 0, 0)),
    ])
    def test_components(self, text, expected):
        assert parse_version(text).as_tuple() == expected

    def test_prerelease_suffix_ignored(self):
        assert parse_version("1.2.3-beta.1").as_tuple() == (1, 2, 3, 0)
        assert parse_version("1.2.3+build.7").as_tuple() == (1, 2, 3, 0)

    @pytest.mark.parametrize("text", ["", "abc", "1.x.3", "1.2.3.4.5", "-1.2.3"])
    def test_unparseable(self, text):
        with pytest.raises(InvalidField) as exc:
            parse_version(text)
        assert exc.value.field == "version"

    def test_component_over_65535_is_invalid_not_truncated(self):
        """Out-of-range components are rejected rather than wrapped to 16 bits."""
        with pytest.raises(InvalidField) as exc:
            parse_version("65536.0.0")
        assert exc.value.field == "version.major"

        with pytest.raises(InvalidField) as exc:
            parse_version("1.2.70000")
        assert exc.value.field == "version.patch"

    def test_file_version_rejects_out_of_range(self):
        with pytest.raises(InvalidField):
            FileVersion(1, 2, 3, 65536)
        with pytest.raises(InvalidField):
            FileVersion(-1)

    def test_str(self):
        assert str(parse_version("1.2.3")) == "1.2.3.0"


class TestBuildManifest:

    def test_version_strings_seeded(self):
        m = build_manifest("1.2.3")
        assert m.version.as_tuple() == (1, 2, 3, 0)
        assert m.string_table == {"FileVersion": "1.2.3", "ProductVersion": "1.2.3"}

    def test_properties_override_seeded_values(self):
        m = build_manifest("1.2.3", {"ProductVersion": "1.2.3 beta", "ProductName": "Demo"})
        assert m.string_table["ProductVersion"] == "1.2.3 beta"
        assert list(m.string_table) == ["FileVersion", "ProductVersion", "ProductName"]

    def test_defaults_neutral_locale(self):
        m = build_manifest("1.0.0")
        assert m.language_id == 0x0000
        assert m.codepage == 0x04B0
        assert m.icons == []
        assert m.manifest_file is None

    def test_icon_ids_auto_assigned_around_explicit(self, icon_file, second_icon_file):
        m = build_manifest("1.0.0", icons=[icon_file, (1, second_icon_file), icon_file])
        assert [i.resource_id for i in m.icons] == [2, 1, 3]

    def test_named_icon_id_kept(self, icon_file):
        m = build_manifest("1.0.0", icons=[("APPICON", icon_file)])
        assert m.icons[0].resource_id == "APPICON"

    def test_dll_file_type(self):
        m = build_manifest("1.0.0", file_type=FileType.DLL)
        assert m.fixed_info.file_type == FileType.DLL

    def test_bad_version_propagates(self):
        with pytest.raises(InvalidField):
            build_manifest("1.99999.0")


class TestManifest:

    def test_product_version_mirrors_file_version(self):
        m = Manifest(version=FileVersion(1, 2, 3))
        assert m.effective_product_version == m.version

    def test_product_version_override(self):
        m = Manifest(version=FileVersion(1, 2, 3), product_version=FileVersion(2))
        assert m.effective_product_version.as_tuple() == (2, 0, 0, 0)

    def test_add_icon_next_free_id(self, icon_file, second_icon_file):
        m = Manifest()
        m.add_icon(icon_file, 1)
        entry = m.add_icon(second_icon_file)
        assert entry.resource_id == 2
