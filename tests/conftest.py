import argparse
import sys
import xml.etree.ElementTree as ET
from collections.abc import Callable
from pathlib import Path

import pytest

GENERATOR_DIR = Path(__file__).resolve().parent.parent
if str(GENERATOR_DIR) not in sys.path:
    sys.path.insert(0, str(GENERATOR_DIR))

import xrgen  # noqa: E402

FIXTURE_XML = Path(__file__).resolve().parent / "fixtures" / "xr_minimal.xml"


@pytest.fixture
def existing_paths(tmp_path: Path) -> dict[str, Path]:
    registry = tmp_path / "xr.xml"
    registry.write_text("<registry />\n", encoding="utf-8")
    return {
        "registry": registry,
        "output": tmp_path / "out" / "xr.zig",
    }


@pytest.fixture
def missing_path(tmp_path: Path) -> Path:
    return tmp_path / "missing"


@pytest.fixture
def make_args(existing_paths: dict[str, Path]) -> Callable[..., argparse.Namespace]:
    def _make_args(**overrides: object) -> argparse.Namespace:
        base_args: dict[str, object] = {
            "registry": existing_paths["registry"],
            "output": existing_paths["output"],
            "list_extensions": False,
            "info": None,
            "filter": None,
        }
        base_args.update(overrides)
        return argparse.Namespace(**base_args)

    return _make_args


@pytest.fixture
def make_registry_root() -> Callable[[str], ET.Element]:
    def _make_registry_root(inner_xml: str) -> ET.Element:
        return ET.fromstring(f"<registry>{inner_xml}</registry>")

    return _make_registry_root


@pytest.fixture
def make_document() -> Callable[[str], xrgen.RegistryDocument]:
    def _make_document(inner_xml: str) -> xrgen.RegistryDocument:
        return xrgen.parse_registry(f"<registry>{inner_xml}</registry>")

    return _make_document


@pytest.fixture
def fixture_xml() -> Path:
    return FIXTURE_XML


@pytest.fixture
def fixture_text() -> str:
    return FIXTURE_XML.read_text(encoding="utf-8")


@pytest.fixture
def fixture_document(fixture_text: str) -> xrgen.RegistryDocument:
    return xrgen.parse_registry(fixture_text)


@pytest.fixture
def fixture_context(fixture_document: xrgen.RegistryDocument) -> xrgen.EmitContext:
    return xrgen.build_emit_context(fixture_document)


@pytest.fixture
def fixture_source(fixture_document: xrgen.RegistryDocument) -> str:
    return xrgen.generate_bindings(fixture_document)


@pytest.fixture
def renderer() -> xrgen.IdRenderer:
    return xrgen.IdRenderer(["KHR", "EXT", "FB", "META"])
