from pathlib import Path

import pytest

import xrgen


def _make_extension_summary(
    *,
    name: str,
    ext_type: str = "instance",
    type_count: int = 0,
    command_count: int = 0,
    depends_raw: str = "",
    promoted_to: str | None = None,
    version: int = 1,
) -> xrgen.ExtensionSummary:
    return xrgen.ExtensionSummary(
        name=name,
        vendor_tag=name.split("_")[1],
        version=version,
        ext_type=ext_type,
        type_count=type_count,
        command_count=command_count,
        depends_raw=depends_raw,
        promoted_to=promoted_to,
    )


def _discovery_config(
    registry: Path,
    command: str = "list-extensions",
    filter_text: str | None = None,
    info_extension: str | None = None,
) -> xrgen.DiscoveryConfig:
    return xrgen.DiscoveryConfig(
        command=command,
        registry=registry,
        filter_text=filter_text,
        info_extension=info_extension,
    )


def test_t_01_gather_extension_summaries_sorts_by_name(
    fixture_document: xrgen.RegistryDocument,
) -> None:
    summaries = xrgen.gather_extension_summaries(fixture_document)

    assert [s.name for s in summaries] == [
        "XR_EXT_debug_utils",
        "XR_EXT_uuid",
        "XR_FB_display_refresh_rate",
    ]


def test_t_02_gather_extension_summaries_counts_and_metadata(
    fixture_document: xrgen.RegistryDocument,
) -> None:
    by_name = {s.name: s for s in xrgen.gather_extension_summaries(fixture_document)}

    debug = by_name["XR_EXT_debug_utils"]
    assert (debug.vendor_tag, debug.version, debug.ext_type) == ("EXT", 5, "instance")
    assert (debug.type_count, debug.command_count) == (4, 0)
    assert debug.promoted_to is None

    refresh = by_name["XR_FB_display_refresh_rate"]
    assert (refresh.type_count, refresh.command_count) == (1, 2)
    assert refresh.depends_raw == "XR_VERSION_1_0"

    assert by_name["XR_EXT_uuid"].promoted_to == "XR_VERSION_1_1"


def test_t_03_disabled_extensions_are_not_listed(
    fixture_document: xrgen.RegistryDocument,
) -> None:
    names = [s.name for s in xrgen.gather_extension_summaries(fixture_document)]

    assert "XR_KHR_retired_feature" not in names


def test_t_04_filter_extensions_by_text_is_case_insensitive_and_stable() -> None:
    summaries = [
        _make_extension_summary(name="XR_EXT_debug_utils"),
        _make_extension_summary(name="XR_FB_display_refresh_rate"),
        _make_extension_summary(name="XR_EXT_uuid"),
    ]

    filtered = xrgen.filter_extensions_by_text(summaries, "ext")

    assert [s.name for s in filtered] == ["XR_EXT_debug_utils", "XR_EXT_uuid"]


def test_t_05_filter_extensions_by_text_empty_filter_is_no_op() -> None:
    summaries = [_make_extension_summary(name="XR_EXT_debug_utils")]

    filtered = xrgen.filter_extensions_by_text(summaries, "")

    assert filtered == summaries
    assert filtered is not summaries


def test_t_06_filter_extensions_by_text_no_match_returns_empty() -> None:
    summaries = [_make_extension_summary(name="XR_EXT_debug_utils")]

    assert xrgen.filter_extensions_by_text(summaries, "vulkan") == []


def test_t_07_gather_extension_detail_unknown_extension_returns_none(
    fixture_document: xrgen.RegistryDocument,
) -> None:
    assert xrgen.gather_extension_detail(fixture_document, "XR_KHR_not_here") is None


def test_t_08_gather_extension_detail_maps_categories_in_require_order(
    fixture_document: xrgen.RegistryDocument,
) -> None:
    detail = xrgen.gather_extension_detail(fixture_document, "XR_EXT_debug_utils")

    assert detail is not None
    assert detail.types == (
        xrgen.TypeEntry("XrDebugUtilsMessageSeverityFlagsEXT", "bitmask"),
        xrgen.TypeEntry("XrDebugUtilsMessageSeverityFlagBitsEXT", "enum"),
        xrgen.TypeEntry("XrDebugUtilsMessengerCallbackDataEXT", "struct"),
        xrgen.TypeEntry("PFN_xrDebugUtilsMessengerCallbackEXT", "funcpointer"),
    )
    assert detail.commands == ()


def test_t_09_gather_extension_detail_lists_commands(
    fixture_document: xrgen.RegistryDocument,
) -> None:
    detail = xrgen.gather_extension_detail(fixture_document, "XR_FB_display_refresh_rate")

    assert detail is not None
    assert detail.types == (xrgen.TypeEntry("XrAsyncRequestIdFB", "handle"),)
    assert detail.commands == (
        "xrGetDisplayRefreshRateRangeFB",
        "xrGetDisplayRefreshRateRangeKHR",
    )


def test_t_10_format_extensions_table_header_and_rows() -> None:
    summaries = [
        _make_extension_summary(name="XR_EXT_debug_utils", type_count=4, version=5),
        _make_extension_summary(name="XR_EXT_uuid", type_count=1, promoted_to="XR_VERSION_1_1"),
    ]

    text = xrgen.format_extensions_table(summaries, "1.1.49")
    lines = text.splitlines()

    assert lines[0] == "2 OpenXR extensions in xr.xml 1.1.49:"
    assert lines[1] == ""
    assert lines[2].split() == ["XR_EXT_debug_utils", "v5", "instance", "4", "types", "0", "cmds"]
    assert lines[3].startswith("  XR_EXT_uuid ")
    assert lines[3].endswith("  promoted: XR_VERSION_1_1")
    assert text.endswith("\n")


def test_t_11_format_extensions_table_annotation_precedence_is_promoted_then_depends() -> None:
    summaries = [
        _make_extension_summary(
            name="XR_EXT_both", depends_raw="XR_VERSION_1_0", promoted_to="XR_VERSION_1_1"
        ),
        _make_extension_summary(name="XR_EXT_dep", depends_raw="XR_VERSION_1_0"),
        _make_extension_summary(name="XR_EXT_long", depends_raw="XR_KHR_" + "x" * 60),
    ]

    lines = xrgen.format_extensions_table(summaries, "1.1.49").splitlines()

    assert lines[2].endswith("promoted: XR_VERSION_1_1")
    assert lines[3].endswith("depends: XR_VERSION_1_0")
    assert lines[4].endswith("...")
    assert "depends: XR_KHR_" in lines[4]


def test_t_12_format_extensions_table_empty_input() -> None:
    assert xrgen.format_extensions_table([], "1.1.49") == (
        "0 OpenXR extensions in xr.xml 1.1.49:\n\n"
    )


def test_t_13_format_extension_detail_header_and_sections(
    fixture_document: xrgen.RegistryDocument,
) -> None:
    detail = xrgen.gather_extension_detail(fixture_document, "XR_FB_display_refresh_rate")
    assert detail is not None

    text = xrgen.format_extension_detail(detail)

    assert text.splitlines() == [
        "XR_FB_display_refresh_rate (instance extension, version 1)",
        "  Vendor:   FB",
        "  Depends:  XR_VERSION_1_0",
        "  Promoted: no",
        "",
        "  Types (1):",
        "    XrAsyncRequestIdFB  handle",
        "",
        "  Commands (2):",
        "    xrGetDisplayRefreshRateRangeFB",
        "    xrGetDisplayRefreshRateRangeKHR",
    ]
    assert text.endswith("\n")


def test_t_14_format_extension_detail_promoted_extension() -> None:
    detail = xrgen.ExtensionDetail(
        summary=_make_extension_summary(name="XR_EXT_uuid", ext_type="", promoted_to="XR_VERSION_1_1"),
        types=(xrgen.TypeEntry("XrUuidEXT", ""),),
        commands=(),
    )

    lines = xrgen.format_extension_detail(detail).splitlines()

    assert lines[0] == "XR_EXT_uuid (extension, version 1)"
    assert "  Promoted: XR_VERSION_1_1" in lines
    assert "    XrUuidEXT" in lines
    assert "  Commands (0):" in lines


def test_t_15_run_discovery_list_extensions_applies_filter(
    capsys: pytest.CaptureFixture[str], fixture_xml: Path
) -> None:
    xrgen.run_discovery(_discovery_config(fixture_xml, filter_text="FB"))

    out = capsys.readouterr().out
    assert out.startswith("1 OpenXR extensions in xr.xml 1.1.49:\n")
    assert "XR_FB_display_refresh_rate" in out
    assert "XR_EXT_debug_utils" not in out


def test_t_16_run_discovery_info_prints_detail(
    capsys: pytest.CaptureFixture[str], fixture_xml: Path
) -> None:
    xrgen.run_discovery(
        _discovery_config(fixture_xml, command="info", info_extension="XR_EXT_uuid")
    )

    out = capsys.readouterr().out
    assert out.startswith("XR_EXT_uuid (instance extension, version 1)\n")
    assert "  Promoted: XR_VERSION_1_1" in out


def test_t_17_run_discovery_info_unknown_extension_exits_with_error(
    capsys: pytest.CaptureFixture[str], fixture_xml: Path
) -> None:
    with pytest.raises(SystemExit) as exc_info:
        xrgen.run_discovery(
            _discovery_config(fixture_xml, command="info", info_extension="XR_KHR_not_here")
        )

    captured = capsys.readouterr()
    assert exc_info.value.code == 1
    assert captured.out == ""
    assert captured.err == "Error: extension 'XR_KHR_not_here' not found in xr.xml 1.1.49\n"


def test_t_18_run_discovery_propagates_registry_errors(tmp_path: Path) -> None:
    registry = tmp_path / "xr.xml"
    registry.write_text("<registry><types>", encoding="utf-8")

    with pytest.raises(xrgen.GenerationError) as exc_info:
        xrgen.run_discovery(_discovery_config(registry))

    assert exc_info.value.code == "MALFORMED_DOCUMENT"


def test_t_19_run_discovery_emits_no_generation_chatter(
    capsys: pytest.CaptureFixture[str], fixture_xml: Path
) -> None:
    xrgen.run_discovery(_discovery_config(fixture_xml))

    out = capsys.readouterr().out
    assert "Parsing:" not in out
    assert "bindings generated" not in out


def test_main_discovery_dispatches_to_run_discovery(
    capsys: pytest.CaptureFixture[str], fixture_xml: Path
) -> None:
    xrgen.main([str(fixture_xml), "--list-extensions"])

    assert capsys.readouterr().out.startswith("3 OpenXR extensions in xr.xml 1.1.49:")
