from pathlib import Path

import pytest

import xrgen


def test_t_01_format_file_header_names_registry_and_version() -> None:
    lines = xrgen.format_file_header(xrgen.WriteConfig(registry_version="1.1.49"))

    assert lines == [
        "// x-------------------------------------------x //",
        "// | OpenXR bindings for Zig",
        "// | Generated by xrgen",
        "// | Source: xr.xml 1.1.49",
        "// x-------------------------------------------x //",
    ]


def test_t_02_format_file_header_uses_custom_registry_name() -> None:
    lines = xrgen.format_file_header(
        xrgen.WriteConfig(registry_version="1.0.34", registry_name="registry.xml")
    )

    assert lines[3] == "// | Source: registry.xml 1.0.34"
    assert lines[0] == lines[-1]


def test_t_03_format_file_header_rejects_empty_version() -> None:
    with pytest.raises(ValueError, match="registry_version"):
        xrgen.format_file_header(xrgen.WriteConfig(registry_version=""))


def test_t_04_write_output_writes_exact_content(tmp_path: Path) -> None:
    target = tmp_path / "xr.zig"
    content = "pub const Bool32 = u32;\n"

    xrgen.write_output(target, content)

    assert target.read_text(encoding="utf-8") == content


def test_t_05_write_output_returns_truthful_file_metadata(tmp_path: Path) -> None:
    content = "const a = 1;\nconst b = \"é\";\n"

    result = xrgen.write_output(tmp_path / "xr.zig", content)

    assert result.path == (tmp_path / "xr.zig").resolve()
    assert result.line_count == 2
    assert result.byte_count == len(content.encode("utf-8"))


def test_t_06_write_output_creates_parent_directories(tmp_path: Path) -> None:
    target = tmp_path / "deep" / "nested" / "xr.zig"

    xrgen.write_output(target, "\n")

    assert target.exists()


def test_t_07_write_output_propagates_oserror(tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")

    with pytest.raises(OSError):
        xrgen.write_output(blocker / "xr.zig", "\n")
