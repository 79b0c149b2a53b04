from pathlib import Path

import pytest

import xrgen


def _counts(total: int = 0, ext: int = 0) -> xrgen.CategoryCount:
    return xrgen.CategoryCount(total=total, core=total - ext, ext=ext)


def _make_summary(**overrides: object) -> xrgen.GenerationSummary:
    zero = _counts()
    base: dict[str, object] = {
        "source_label": "xr.xml 1.1.49",
        "output_path": "/tmp/out/xr.zig",
        "counts": xrgen.GenerationCounts(
            base_types=_counts(5),
            enums=_counts(3),
            bitmasks=_counts(3, 1),
            handles=zero,
            structs=zero,
            unions=zero,
            function_pointers=zero,
            commands=_counts(1200, 700),
        ),
        "line_count": 12345,
        "byte_count": 456789,
    }
    base.update(overrides)
    return xrgen.GenerationSummary(**base)  # type: ignore[arg-type]


def test_t_01_build_generation_counts_splits_core_and_extension_items(
    fixture_document: xrgen.RegistryDocument,
) -> None:
    counts = xrgen.build_generation_counts(fixture_document)

    assert counts.base_types == xrgen.CategoryCount(5, 5, 0)
    assert counts.enums == xrgen.CategoryCount(3, 3, 0)
    assert counts.bitmasks == xrgen.CategoryCount(3, 2, 1)
    assert counts.handles == xrgen.CategoryCount(4, 3, 1)
    assert counts.structs == xrgen.CategoryCount(10, 8, 2)
    assert counts.unions == xrgen.CategoryCount(1, 1, 0)
    assert counts.function_pointers == xrgen.CategoryCount(2, 1, 1)
    assert counts.commands == xrgen.CategoryCount(7, 6, 1)


def test_t_02_build_generation_counts_excludes_flag_bits_and_aliases(
    make_document,
) -> None:
    doc = make_document(
        '<types><type category="enum" name="XrThingFlagBits"/>'
        '<type category="enum" name="XrMode"/>'
        '<type category="enum" name="XrModeKHR" alias="XrMode"/></types>'
        '<enums name="XrThingFlagBits" type="bitmask"/>'
        '<enums name="XrMode" type="enum"><enum value="0" name="XR_MODE_A"/></enums>'
    )

    counts = xrgen.build_generation_counts(doc)

    assert counts.enums == xrgen.CategoryCount(1, 1, 0)


def test_t_03_build_generation_counts_empty_document_is_all_zero(make_document) -> None:
    counts = xrgen.build_generation_counts(make_document(""))

    for field_name in xrgen.GenerationCounts.__dataclass_fields__:
        assert getattr(counts, field_name) == xrgen.CategoryCount(0, 0, 0)


def test_t_04_build_generation_summary_copies_writer_metadata(
    fixture_document: xrgen.RegistryDocument, tmp_path: Path
) -> None:
    write_result = xrgen.FileWriteResult(path=tmp_path / "xr.zig", line_count=10, byte_count=99)

    summary = xrgen.build_generation_summary(fixture_document, write_result)

    assert summary.source_label == "xr.xml 1.1.49"
    assert summary.output_path == str(tmp_path / "xr.zig")
    assert (summary.line_count, summary.byte_count) == (10, 99)
    assert summary.counts == xrgen.build_generation_counts(fixture_document)


def test_t_05_format_generation_summary_emits_sections_in_order() -> None:
    lines = xrgen.format_generation_summary(_make_summary()).splitlines()

    assert lines[:6] == [
        "OpenXR bindings generated:",
        "",
        "  Source:     xr.xml 1.1.49",
        "  Output:     /tmp/out/xr.zig",
        "",
        "  Types generated:",
    ]
    labels = [line.split(":")[0].strip() for line in lines[6:14]]
    assert labels == [
        "Base types",
        "Enums",
        "Bitmasks",
        "Handles",
        "Structs",
        "Unions",
        "Function pointers",
        "Commands",
    ]


def test_t_06_split_suffix_appears_only_when_ext_positive() -> None:
    lines = xrgen.format_generation_summary(_make_summary()).splitlines()

    assert lines[6] == "    Base types:             5"
    assert lines[8] == "    Bitmasks:               3  (2 core + 1 from extensions)"


def test_t_07_totals_use_thousands_separators() -> None:
    text = xrgen.format_generation_summary(_make_summary())

    assert "    Commands:            1200  (500 core + 700 from extensions)" in text
    assert "  Total: 12,345 lines (456,789 bytes)" in text


def test_t_08_verify_line_names_output_path() -> None:
    text = xrgen.format_generation_summary(_make_summary())

    assert "  Verify: zig ast-check /tmp/out/xr.zig" in text


def test_t_09_format_generation_summary_is_deterministic_and_newline_terminated() -> None:
    summary = _make_summary()
    first = xrgen.format_generation_summary(summary)

    assert first == xrgen.format_generation_summary(summary)
    assert first.endswith("\n")
    assert not first.endswith("\n\n")


def test_t_10_print_generation_summary_prints_formatter_output_once(
    capsys: pytest.CaptureFixture[str],
) -> None:
    summary = _make_summary()

    xrgen.print_generation_summary(summary)

    assert capsys.readouterr().out == xrgen.format_generation_summary(summary)
