from pathlib import Path

import pytest

import xrgen


def test_t_01_generate_hands_complete_source_to_sink_once(fixture_text: str) -> None:
    received: list[str] = []

    result = xrgen.generate(fixture_text, received.append)

    assert received == [result.source]
    assert result.source == xrgen.generate_bindings(result.document)
    assert result.document.version == "1.1.49"


def test_t_02_generate_never_calls_sink_on_failure() -> None:
    received: list[str] = []
    broken = (
        "<registry><types>"
        '<type category="struct" name="XrA"><member><type>XrB</type> <name>b</name></member></type>'
        '<type category="struct" name="XrB"><member><type>XrA</type> <name>a</name></member></type>'
        "</types></registry>"
    )

    with pytest.raises(xrgen.GenerationError) as exc_info:
        xrgen.generate(broken, received.append)

    assert exc_info.value.code == "CYCLIC_TYPE_DEPENDENCY"
    assert exc_info.value.stage == "resolver"
    assert received == []


def test_t_03_generate_is_deterministic(fixture_text: str) -> None:
    first: list[str] = []
    second: list[str] = []

    xrgen.generate(fixture_text, first.append)
    xrgen.generate(fixture_text, second.append)

    assert first == second


def test_t_04_run_generate_writes_file_and_reports_progress(
    capsys: pytest.CaptureFixture[str], fixture_xml: Path, tmp_path: Path
) -> None:
    output = tmp_path / "out" / "xr.zig"

    result = xrgen.run_generate(xrgen.GenerateConfig(registry=fixture_xml, output=output))

    out = capsys.readouterr().out
    source = output.read_text(encoding="utf-8")
    assert result.path == output.resolve()
    assert result.line_count == source.count("\n")
    assert f"Parsing: {fixture_xml}" in out
    assert "  Registry: 42 types, 6 enums, 7 commands, 3 extensions" in out
    assert f"  Rendered: {source.count(chr(10)):,} lines" in out
    assert f"  Written: {output.resolve()}" in out
    assert "OpenXR bindings generated:" in out


def test_t_05_run_generate_leaves_no_file_on_generation_error(tmp_path: Path) -> None:
    registry = tmp_path / "xr.xml"
    registry.write_text(
        "<registry><types>"
        '<type category="struct" name="XrLoop"><member><type>XrLoop</type> <name>inner</name></member></type>'
        "</types></registry>",
        encoding="utf-8",
    )
    output = tmp_path / "xr.zig"

    with pytest.raises(xrgen.GenerationError):
        xrgen.run_generate(xrgen.GenerateConfig(registry=registry, output=output))

    assert not output.exists()


def test_t_06_run_generate_overwrites_previous_output(fixture_xml: Path, tmp_path: Path) -> None:
    output = tmp_path / "xr.zig"
    output.write_text("stale\n", encoding="utf-8")

    xrgen.run_generate(xrgen.GenerateConfig(registry=fixture_xml, output=output))

    assert output.read_text(encoding="utf-8") == xrgen.generate_bindings(
        xrgen.parse_registry(fixture_xml.read_text(encoding="utf-8"))
    )
