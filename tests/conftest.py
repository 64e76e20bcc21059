import argparse
import sys
from collections.abc import Callable
from pathlib import Path

import pytest

GENERATOR_DIR = Path(__file__).resolve().parent.parent
if str(GENERATOR_DIR) not in sys.path:
    sys.path.insert(0, str(GENERATOR_DIR))

import odata_gen  # noqa: E402

FIXTURES_DIR = Path(__file__).resolve().parent / "fixtures"


@pytest.fixture
def trippin_xml() -> Path:
    return FIXTURES_DIR / "trippin.xml"


@pytest.fixture
def existing_paths(tmp_path: Path) -> dict[str, Path]:
    metadata = tmp_path / "metadata.xml"
    metadata.write_text("<Edmx />\n", encoding="utf-8")
    output_dir = tmp_path / "out"
    return {"metadata": metadata, "output_dir": output_dir}


@pytest.fixture
def make_args(existing_paths: dict[str, Path]) -> Callable[..., argparse.Namespace]:
    def _make_args(**overrides: object) -> argparse.Namespace:
        base_args: dict[str, object] = {
            "metadata": [existing_paths["metadata"]],
            "output_dir": existing_paths["output_dir"],
        }
        base_args.update(overrides)
        return argparse.Namespace(**base_args)

    return _make_args


@pytest.fixture
def make_document() -> Callable[..., dict[str, object]]:
    """Build a generic metadata tree around the given Schema nodes."""

    def _make_document(*schemas: dict[str, object]) -> dict[str, object]:
        return {"Edmx": {"DataServices": [{"Schema": list(schemas)}]}}

    return _make_document


@pytest.fixture
def make_schema() -> Callable[..., dict[str, object]]:
    def _make_schema(namespace: str = "NS", **children: object) -> dict[str, object]:
        node: dict[str, object] = {"$": {"Namespace": namespace}}
        node.update(children)
        return node

    return _make_schema


@pytest.fixture
def make_element() -> Callable[..., dict[str, object]]:
    """Build a generic element node: attributes as kwargs, children via `children`."""

    def _make_element(
        children: dict[str, list[dict[str, object]]] | None = None, **attrs: str
    ) -> dict[str, object]:
        node: dict[str, object] = {}
        if attrs:
            node["$"] = dict(attrs)
        if children:
            node.update(children)
        return node

    return _make_element


@pytest.fixture
def decode_schema(
    make_document: Callable[..., dict[str, object]],
) -> Callable[[dict[str, object]], odata_gen.ODataSchema]:
    def _decode_schema(schema: dict[str, object]) -> odata_gen.ODataSchema:
        decoded = odata_gen.decode_metadata(make_document(schema))
        return odata_gen.transform_metadata(decoded).schemas[0]

    return _decode_schema
