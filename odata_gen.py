"""TypeScript declarations generator for OData CSDL metadata.

Decodes an EDMX/CSDL metadata document into a validated, typed model and
emits TypeScript interfaces into a namespace-derived directory tree under
the output directory.

Usage:
    python odata_gen.py metadata.xml [more.xml ...] --output-dir build
"""

import argparse
import os
import re
import shutil
import tempfile
import unicodedata
import xml.etree.ElementTree as ET
from collections.abc import Callable, Iterator, Sequence
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from dataclasses import dataclass, replace
from pathlib import Path
from typing import TypeVar

DEFAULT_OUTPUT_DIR = Path("build")

T = TypeVar("T")


# ===--- CLI config contracts ---=== #


@dataclass(frozen=True)
class GenerateConfig:
    metadata_files: tuple[Path, ...]
    output_dir: Path


VALID_ERROR_CODES = {
    "MISSING_INPUT",
    "PATH_NOT_FOUND",
    "UNSAFE_OUTPUT_DIR",
}


class ConfigError(Exception):
    def __init__(self, code: str, message: str, suggestion: str | None = None):
        if code not in VALID_ERROR_CODES:
            raise ValueError(f"Unknown config error code: {code}")
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion


def validate_path_exists(
    path: Path | None, label: str, suggestion: str | None = None
) -> Path:
    if path is None:
        raise ConfigError(
            "PATH_NOT_FOUND",
            f"{label} is required: no path provided.",
            suggestion or f"Pass the path explicitly: {label} /path/to/resource",
        )
    if path.exists():
        return path
    raise ConfigError(
        "PATH_NOT_FOUND",
        f"Path for {label} does not exist: {path}",
        suggestion or "Provide an existing path for this argument.",
    )


def validate_output_dir(output_dir: Path, metadata_files: Sequence[Path]) -> Path:
    """Reject output directories whose replacement would destroy inputs or cwd."""
    resolved = output_dir.resolve()
    if Path.cwd().resolve().is_relative_to(resolved):
        raise ConfigError(
            "UNSAFE_OUTPUT_DIR",
            f"Output directory contains the working directory: {output_dir}",
            "Pass a dedicated directory, for example --output-dir build.",
        )
    for path in metadata_files:
        if path.resolve().is_relative_to(resolved):
            raise ConfigError(
                "UNSAFE_OUTPUT_DIR",
                f"Output directory contains input file {path}: {output_dir}",
                "The output directory is replaced on every run; keep inputs elsewhere.",
            )
    return output_dir


def build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate TypeScript declarations from OData metadata"
    )
    parser.add_argument("metadata", type=Path, nargs="*")
    parser.add_argument("--output-dir", type=Path, default=DEFAULT_OUTPUT_DIR)
    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = build_argument_parser()
    return parser.parse_args(argv)


def validate_config(args: argparse.Namespace) -> GenerateConfig:
    raw_files = tuple(args.metadata or ())
    if not raw_files:
        raise ConfigError(
            "MISSING_INPUT",
            "At least one metadata file is required.",
            "Pass a path: python odata_gen.py metadata.xml",
        )

    metadata_files = tuple(
        validate_path_exists(
            path,
            "metadata",
            "Download the service document's $metadata and pass its path.",
        )
        for path in raw_files
    )
    output_dir = validate_output_dir(args.output_dir, metadata_files)

    return GenerateConfig(metadata_files=metadata_files, output_dir=output_dir)


def build_config(argv: list[str] | None = None) -> GenerateConfig:
    return validate_config(parse_args(argv))


# ===--- Lexical validators ---=== #

_IDENTIFIER_START_CATEGORIES = frozenset({"Lu", "Ll", "Lt", "Lm", "Lo", "Nl"})
_IDENTIFIER_PART_CATEGORIES = _IDENTIFIER_START_CATEGORIES | {
    "Nd",
    "Mn",
    "Mc",
    "Pc",
    "Cf",
}
_COLLECTION_TYPE_RE = re.compile(r"Collection\((.+)\)", re.DOTALL)


@dataclass(frozen=True)
class TypeReference:
    name: str
    is_collection: bool


def is_simple_identifier(value: object) -> bool:
    if not isinstance(value, str) or not value:
        return False
    first, rest = value[0], value[1:]
    if first != "_" and unicodedata.category(first) not in _IDENTIFIER_START_CATEGORIES:
        return False
    return all(unicodedata.category(ch) in _IDENTIFIER_PART_CATEGORIES for ch in rest)


def is_qualified_name(value: object) -> bool:
    if not isinstance(value, str):
        return False
    return all(is_simple_identifier(segment) for segment in value.split("."))


def parse_type_reference(raw: str) -> TypeReference:
    """Parse `NS.Type` or `Collection(NS.Type)` into a TypeReference."""
    match = _COLLECTION_TYPE_RE.fullmatch(raw)
    name = match.group(1) if match else raw
    if not is_qualified_name(name):
        raise ValueError(f"Invalid type reference: {raw!r}")
    return TypeReference(name=name, is_collection=match is not None)


def decode_simple_identifier(raw: str) -> str:
    if not is_simple_identifier(raw):
        raise ValueError(f"Invalid simple identifier: {raw!r}")
    return raw


def decode_qualified_name(raw: str) -> str:
    if not is_qualified_name(raw):
        raise ValueError(f"Invalid qualified name: {raw!r}")
    return raw


# ===--- Scalar codecs ---=== #

_BOOLEAN_LITERALS = {"true": True, "false": False}
_INTEGER_RE = re.compile(r"[+-]?[0-9]+")


def decode_boolean(raw: str) -> bool:
    """Decode an XML boolean literal.

    Args:
        raw: Attribute text; only the exact literals "true" and "false" match.

    Returns:
        The decoded bool.

    Raises:
        ValueError: Any other text, including "True", "1" or padded values.
    """
    if isinstance(raw, str) and raw in _BOOLEAN_LITERALS:
        return _BOOLEAN_LITERALS[raw]
    raise ValueError(f"Expected 'true' or 'false', got {raw!r}")


def encode_boolean(value: bool) -> str:
    return "true" if value else "false"


def decode_integer(raw: str) -> int:
    """Decode an optionally signed run of ASCII digits.

    Raises:
        ValueError: Empty, fractional, exponent, hex or non-ASCII digit text.
    """
    if isinstance(raw, str) and _INTEGER_RE.fullmatch(raw):
        return int(raw)
    raise ValueError(f"Expected a signed integer, got {raw!r}")


def encode_integer(value: int) -> str:
    # Canonical form: "+5" and "005" both re-encode as "5".
    return str(value)


def _literal_boolean(expected: bool) -> Callable[[str], bool]:
    def _decode(raw: str) -> bool:
        if decode_boolean(raw) is not expected:
            raise ValueError(f"Expected {encode_boolean(expected)!r}, got {raw!r}")
        return expected

    return _decode


# ===--- Generic XML tree ---=== #


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def element_to_tree(element: ET.Element) -> dict[str, object]:
    """Convert an element into attribute-bag/child-list generic data.

    Attributes live under "$"; each child element name maps to the list of
    child nodes carrying that name, in document order. Names are
    namespace-stripped. Text content is dropped.
    """
    node: dict[str, object] = {}
    if element.attrib:
        node["$"] = {_local_name(key): value for key, value in element.attrib.items()}
    for child in element:
        node.setdefault(_local_name(child.tag), []).append(element_to_tree(child))
    return node


def parse_xml_file(path: Path) -> dict[str, object]:
    root = ET.parse(path).getroot()
    return {_local_name(root.tag): element_to_tree(root)}


def load_documents(
    paths: Sequence[Path], max_workers: int | None = None
) -> list[tuple[Path, dict[str, object]]]:
    """Read and parse every file concurrently; results keep input order."""
    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        trees = list(pool.map(parse_xml_file, paths))
    return list(zip(paths, trees))


# ===--- Decoded tree ---=== #


@dataclass(frozen=True)
class XmlTypedElement:
    """Property, NavigationProperty or Parameter as decoded from XML."""

    name: str
    type: TypeReference
    nullable: bool | None


@dataclass(frozen=True)
class XmlReturnType:
    type: TypeReference
    nullable: bool | None


@dataclass(frozen=True)
class XmlStructuredType:
    name: str
    properties: tuple[XmlTypedElement, ...] | None
    navigation_properties: tuple[XmlTypedElement, ...] | None


@dataclass(frozen=True)
class XmlEnumMember:
    name: str
    value: int | None


@dataclass(frozen=True)
class XmlEnumType:
    name: str
    members: tuple[XmlEnumMember, ...] | None


@dataclass(frozen=True)
class XmlBoundOperation:
    """Action or Function with IsBound="true"; parameters is never empty."""

    name: str
    parameters: tuple[XmlTypedElement, ...]
    return_type: XmlReturnType | None


@dataclass(frozen=True)
class XmlUnboundOperation:
    name: str
    parameters: tuple[XmlTypedElement, ...] | None
    return_type: XmlReturnType | None


XmlOperation = XmlBoundOperation | XmlUnboundOperation


@dataclass(frozen=True)
class XmlEntitySet:
    name: str
    entity_type: str


@dataclass(frozen=True)
class XmlActionImport:
    name: str
    action: str


@dataclass(frozen=True)
class XmlFunctionImport:
    name: str
    function: str


@dataclass(frozen=True)
class XmlEntityContainer:
    name: str
    entity_sets: tuple[XmlEntitySet, ...] | None
    action_imports: tuple[XmlActionImport, ...] | None
    function_imports: tuple[XmlFunctionImport, ...] | None


@dataclass(frozen=True)
class XmlSchema:
    namespace: str
    entity_types: tuple[XmlStructuredType, ...] | None
    complex_types: tuple[XmlStructuredType, ...] | None
    enum_types: tuple[XmlEnumType, ...] | None
    actions: tuple[XmlOperation, ...] | None
    functions: tuple[XmlOperation, ...] | None
    entity_container: XmlEntityContainer | None


@dataclass(frozen=True)
class XmlMetadata:
    schemas: tuple[XmlSchema, ...]


# ===--- Structural decoder ---=== #


class _Missing:
    def __repr__(self) -> str:
        return "<missing>"


MISSING = _Missing()

SIMPLE_IDENTIFIER = "SimpleIdentifier"
QUALIFIED_NAME = "QualifiedName"
TYPE_REFERENCE = "QualifiedName or Collection(QualifiedName)"
BOOLEAN = "'true' or 'false'"
INTEGER = "integer"


def _describe_value(value: object) -> str:
    if isinstance(value, dict):
        return "<element>"
    if isinstance(value, list):
        return f"<{len(value)} elements>"
    return repr(value)


@dataclass(frozen=True)
class DecodeFailure:
    """One validation failure found while decoding the generic XML tree.

    Attributes:
        path: Element/attribute chain from the document root, e.g.
            ("Edmx", "DataServices[0]", "Schema[1]", "@Namespace").
        expected: Human-readable description of the accepted shape or value.
        actual: The offending value, or MISSING when absent.
        source: Input file the failure was found in, when known.
    """

    path: tuple[str, ...]
    expected: str
    actual: object
    source: str | None = None

    def render(self) -> str:
        location = "/".join(self.path) or "<root>"
        if self.source:
            location = f"{self.source}:{location}"
        return (
            f"Invalid value {_describe_value(self.actual)} supplied to "
            f"{location}: expected {self.expected}"
        )


class DecodeError(Exception):
    def __init__(self, failures: Sequence[DecodeFailure]):
        self.failures = tuple(failures)
        super().__init__(f"{len(self.failures)} decoding error(s)")

    def render(self) -> str:
        lines = ["Decoding errors:"]
        lines.extend(f"  {failure.render()}" for failure in self.failures)
        return "\n".join(lines)


def _cardinality(name: str, min_items: int, max_items: int | None) -> str:
    if max_items is None:
        return f"at least {min_items} {name} element(s)"
    if min_items == max_items:
        return f"exactly {min_items} {name} element(s)"
    return f"at most {max_items} {name} element(s)"


class _Decoder:
    """Accumulates failures across one traversal of the generic tree.

    Element decoders return None when anything inside them failed; the
    failures themselves are recorded on the decoder so every independent
    violation is reported, not only the first.
    """

    def __init__(self) -> None:
        self.failures: list[DecodeFailure] = []

    def fail(self, path: tuple[str, ...], expected: str, actual: object) -> None:
        self.failures.append(DecodeFailure(path=path, expected=expected, actual=actual))

    def node(self, value: object, path: tuple[str, ...]) -> dict | None:
        if isinstance(value, dict):
            return value
        self.fail(path, "element", value)
        return None

    def attributes(self, node: dict, path: tuple[str, ...]) -> dict | None:
        attrs = node.get("$", {})
        if isinstance(attrs, dict):
            return attrs
        self.fail(path + ("$",), "attribute map", attrs)
        return None

    def attribute(
        self,
        attrs: dict,
        path: tuple[str, ...],
        name: str,
        codec: Callable[[str], T],
        expected: str,
        required: bool = True,
    ) -> T | None:
        attr_path = path + (f"@{name}",)
        raw = attrs.get(name, MISSING)
        if raw is MISSING:
            if required:
                self.fail(attr_path, expected, MISSING)
            return None
        if not isinstance(raw, str):
            self.fail(attr_path, expected, raw)
            return None
        try:
            return codec(raw)
        except ValueError:
            self.fail(attr_path, expected, raw)
            return None

    def name(self, attrs: dict, path: tuple[str, ...]) -> str | None:
        return self.attribute(
            attrs, path, "Name", decode_simple_identifier, SIMPLE_IDENTIFIER
        )

    def children(
        self,
        node: dict,
        path: tuple[str, ...],
        name: str,
        decode_item: Callable[[object, tuple[str, ...]], T | None],
        min_items: int = 0,
        max_items: int | None = None,
    ) -> tuple[T, ...] | None:
        list_path = path + (name,)
        raw = node.get(name, MISSING)
        if raw is MISSING:
            if min_items:
                self.fail(list_path, _cardinality(name, min_items, max_items), MISSING)
            return None
        if not isinstance(raw, list):
            self.fail(list_path, f"list of {name} elements", raw)
            return None
        if len(raw) < min_items or (max_items is not None and len(raw) > max_items):
            self.fail(list_path, _cardinality(name, min_items, max_items), raw)
            return None

        items = [
            decode_item(item, path + (f"{name}[{index}]",))
            for index, item in enumerate(raw)
        ]
        if any(item is None for item in items):
            return None
        return tuple(items)

    # --- element shapes --- #

    def typed_element(
        self, value: object, path: tuple[str, ...]
    ) -> XmlTypedElement | None:
        mark = len(self.failures)
        node = self.node(value, path)
        attrs = self.attributes(node, path) if node is not None else None
        if attrs is None:
            return None
        name = self.name(attrs, path)
        type_ref = self.attribute(attrs, path, "Type", parse_type_reference, TYPE_REFERENCE)
        nullable = self.attribute(
            attrs, path, "Nullable", decode_boolean, BOOLEAN, required=False
        )
        if len(self.failures) > mark:
            return None
        return XmlTypedElement(name=name, type=type_ref, nullable=nullable)

    def return_type(self, value: object, path: tuple[str, ...]) -> XmlReturnType | None:
        mark = len(self.failures)
        node = self.node(value, path)
        attrs = self.attributes(node, path) if node is not None else None
        if attrs is None:
            return None
        type_ref = self.attribute(attrs, path, "Type", parse_type_reference, TYPE_REFERENCE)
        nullable = self.attribute(
            attrs, path, "Nullable", decode_boolean, BOOLEAN, required=False
        )
        if len(self.failures) > mark:
            return None
        return XmlReturnType(type=type_ref, nullable=nullable)

    def structured_type(
        self, value: object, path: tuple[str, ...]
    ) -> XmlStructuredType | None:
        mark = len(self.failures)
        node = self.node(value, path)
        attrs = self.attributes(node, path) if node is not None else None
        if attrs is None:
            return None
        name = self.name(attrs, path)
        properties = self.children(node, path, "Property", self.typed_element)
        navigation_properties = self.children(
            node, path, "NavigationProperty", self.typed_element
        )
        if len(self.failures) > mark:
            return None
        return XmlStructuredType(
            name=name,
            properties=properties,
            navigation_properties=navigation_properties,
        )

    def enum_member(self, value: object, path: tuple[str, ...]) -> XmlEnumMember | None:
        mark = len(self.failures)
        node = self.node(value, path)
        attrs = self.attributes(node, path) if node is not None else None
        if attrs is None:
            return None
        name = self.name(attrs, path)
        member_value = self.attribute(
            attrs, path, "Value", decode_integer, INTEGER, required=False
        )
        if len(self.failures) > mark:
            return None
        return XmlEnumMember(name=name, value=member_value)

    def enum_type(self, value: object, path: tuple[str, ...]) -> XmlEnumType | None:
        mark = len(self.failures)
        node = self.node(value, path)
        attrs = self.attributes(node, path) if node is not None else None
        if attrs is None:
            return None
        name = self.name(attrs, path)
        members = self.children(node, path, "Member", self.enum_member)
        if len(self.failures) > mark:
            return None
        return XmlEnumType(name=name, members=members)

    def bound_operation(
        self, value: object, path: tuple[str, ...], min_return_types: int
    ) -> XmlBoundOperation | None:
        mark = len(self.failures)
        node = self.node(value, path)
        attrs = self.attributes(node, path) if node is not None else None
        if attrs is None:
            return None
        name = self.name(attrs, path)
        self.attribute(attrs, path, "IsBound", _literal_boolean(True), "'true'")
        parameters = self.children(
            node, path, "Parameter", self.typed_element, min_items=1
        )
        return_types = self.children(
            node, path, "ReturnType", self.return_type, min_return_types, 1
        )
        if len(self.failures) > mark:
            return None
        return XmlBoundOperation(
            name=name,
            parameters=parameters,
            return_type=return_types[0] if return_types else None,
        )

    def unbound_operation(
        self, value: object, path: tuple[str, ...], min_return_types: int
    ) -> XmlUnboundOperation | None:
        mark = len(self.failures)
        node = self.node(value, path)
        attrs = self.attributes(node, path) if node is not None else None
        if attrs is None:
            return None
        name = self.name(attrs, path)
        self.attribute(
            attrs, path, "IsBound", _literal_boolean(False), "'false'", required=False
        )
        parameters = self.children(node, path, "Parameter", self.typed_element)
        return_types = self.children(
            node, path, "ReturnType", self.return_type, min_return_types, 1
        )
        if len(self.failures) > mark:
            return None
        return XmlUnboundOperation(
            name=name,
            parameters=parameters,
            return_type=return_types[0] if return_types else None,
        )

    def operation(
        self, value: object, path: tuple[str, ...], min_return_types: int
    ) -> XmlOperation | None:
        # Bound first: a present IsBound="true" must never reach the unbound shape.
        bound_branch = _Decoder()
        bound = bound_branch.bound_operation(value, path, min_return_types)
        if bound is not None:
            return bound

        unbound_branch = _Decoder()
        unbound = unbound_branch.unbound_operation(value, path, min_return_types)
        if unbound is not None:
            return unbound

        for label, branch in (("bound", bound_branch), ("unbound", unbound_branch)):
            self.failures.extend(
                replace(failure, expected=f"{failure.expected} ({label} variant)")
                for failure in branch.failures
            )
        return None

    def action(self, value: object, path: tuple[str, ...]) -> XmlOperation | None:
        return self.operation(value, path, min_return_types=0)

    def function(self, value: object, path: tuple[str, ...]) -> XmlOperation | None:
        return self.operation(value, path, min_return_types=1)

    def entity_set(self, value: object, path: tuple[str, ...]) -> XmlEntitySet | None:
        mark = len(self.failures)
        node = self.node(value, path)
        attrs = self.attributes(node, path) if node is not None else None
        if attrs is None:
            return None
        name = self.name(attrs, path)
        entity_type = self.attribute(
            attrs, path, "EntityType", decode_qualified_name, QUALIFIED_NAME
        )
        if len(self.failures) > mark:
            return None
        return XmlEntitySet(name=name, entity_type=entity_type)

    def action_import(
        self, value: object, path: tuple[str, ...]
    ) -> XmlActionImport | None:
        mark = len(self.failures)
        node = self.node(value, path)
        attrs = self.attributes(node, path) if node is not None else None
        if attrs is None:
            return None
        name = self.name(attrs, path)
        action = self.attribute(attrs, path, "Action", decode_qualified_name, QUALIFIED_NAME)
        if len(self.failures) > mark:
            return None
        return XmlActionImport(name=name, action=action)

    def function_import(
        self, value: object, path: tuple[str, ...]
    ) -> XmlFunctionImport | None:
        mark = len(self.failures)
        node = self.node(value, path)
        attrs = self.attributes(node, path) if node is not None else None
        if attrs is None:
            return None
        name = self.name(attrs, path)
        function = self.attribute(
            attrs, path, "Function", decode_qualified_name, QUALIFIED_NAME
        )
        if len(self.failures) > mark:
            return None
        return XmlFunctionImport(name=name, function=function)

    def entity_container(
        self, value: object, path: tuple[str, ...]
    ) -> XmlEntityContainer | None:
        mark = len(self.failures)
        node = self.node(value, path)
        attrs = self.attributes(node, path) if node is not None else None
        if attrs is None:
            return None
        name = self.name(attrs, path)
        entity_sets = self.children(node, path, "EntitySet", self.entity_set)
        action_imports = self.children(node, path, "ActionImport", self.action_import)
        function_imports = self.children(
            node, path, "FunctionImport", self.function_import
        )
        if len(self.failures) > mark:
            return None
        return XmlEntityContainer(
            name=name,
            entity_sets=entity_sets,
            action_imports=action_imports,
            function_imports=function_imports,
        )

    def schema(self, value: object, path: tuple[str, ...]) -> XmlSchema | None:
        mark = len(self.failures)
        node = self.node(value, path)
        attrs = self.attributes(node, path) if node is not None else None
        if attrs is None:
            return None
        namespace = self.attribute(
            attrs, path, "Namespace", decode_qualified_name, QUALIFIED_NAME
        )
        entity_types = self.children(node, path, "EntityType", self.structured_type)
        complex_types = self.children(node, path, "ComplexType", self.structured_type)
        enum_types = self.children(node, path, "EnumType", self.enum_type)
        actions = self.children(node, path, "Action", self.action)
        functions = self.children(node, path, "Function", self.function)
        containers = self.children(
            node, path, "EntityContainer", self.entity_container, max_items=1
        )
        if len(self.failures) > mark:
            return None
        return XmlSchema(
            namespace=namespace,
            entity_types=entity_types,
            complex_types=complex_types,
            enum_types=enum_types,
            actions=actions,
            functions=functions,
            entity_container=containers[0] if containers else None,
        )

    def data_services(
        self, value: object, path: tuple[str, ...]
    ) -> tuple[XmlSchema, ...] | None:
        node = self.node(value, path)
        if node is None:
            return None
        schemas = self.children(node, path, "Schema", self.schema)
        if schemas is None and "Schema" not in node:
            self.fail(path + ("Schema",), "list of Schema elements", MISSING)
        return schemas

    def metadata(self, value: object) -> XmlMetadata | None:
        mark = len(self.failures)
        document = self.node(value, ())
        if document is None:
            return None
        edmx = self.node(document.get("Edmx", MISSING), ("Edmx",))
        if edmx is None:
            return None
        data_services = self.children(
            edmx, ("Edmx",), "DataServices", self.data_services, 1, 1
        )
        if len(self.failures) > mark or data_services is None:
            return None
        return XmlMetadata(schemas=data_services[0])


def decode_metadata(value: object) -> XmlMetadata:
    """Decode a generic XML tree into an XmlMetadata tree.

    Raises:
        DecodeError: carrying every failure found; no partial tree is returned.
    """
    decoder = _Decoder()
    metadata = decoder.metadata(value)
    if decoder.failures or metadata is None:
        raise DecodeError(decoder.failures)
    return metadata


# ===--- Domain model ---=== #


@dataclass(frozen=True)
class ODataProperty:
    name: str
    type: str
    is_collection: bool
    is_nullable: bool


@dataclass(frozen=True)
class ODataParameter:
    name: str
    type: str
    is_collection: bool
    is_nullable: bool


@dataclass(frozen=True)
class ODataReturnType:
    type: str
    is_collection: bool
    is_nullable: bool


@dataclass(frozen=True)
class ODataBoundType:
    """Receiver of a bound operation; the binding parameter name is dropped."""

    type: str
    is_collection: bool
    is_nullable: bool


@dataclass(frozen=True)
class ODataEntity:
    name: str
    properties: tuple[ODataProperty, ...]
    navigation_properties: tuple[ODataProperty, ...]


@dataclass(frozen=True)
class ODataEnumMember:
    name: str
    value: int


@dataclass(frozen=True)
class ODataEnum:
    name: str
    members: tuple[ODataEnumMember, ...]


@dataclass(frozen=True)
class ODataUnboundAction:
    name: str
    parameters: tuple[ODataParameter, ...]
    return_type: ODataReturnType | None


@dataclass(frozen=True)
class ODataBoundAction:
    name: str
    bound_type: ODataBoundType
    parameters: tuple[ODataParameter, ...]
    return_type: ODataReturnType | None


@dataclass(frozen=True)
class ODataUnboundFunction:
    name: str
    parameters: tuple[ODataParameter, ...]
    return_type: ODataReturnType


@dataclass(frozen=True)
class ODataBoundFunction:
    name: str
    bound_type: ODataBoundType
    parameters: tuple[ODataParameter, ...]
    return_type: ODataReturnType


ODataAction = ODataUnboundAction | ODataBoundAction
ODataFunction = ODataUnboundFunction | ODataBoundFunction


@dataclass(frozen=True)
class ODataEntitySet:
    name: str
    type: str


@dataclass(frozen=True)
class ODataActionImport:
    name: str
    action_name: str


@dataclass(frozen=True)
class ODataFunctionImport:
    name: str
    function_name: str


@dataclass(frozen=True)
class ODataEntityContainer:
    name: str
    entity_sets: tuple[ODataEntitySet, ...]
    action_imports: tuple[ODataActionImport, ...]
    function_imports: tuple[ODataFunctionImport, ...]


@dataclass(frozen=True)
class ODataSchema:
    namespace: str
    entity_types: tuple[ODataEntity, ...]
    complex_types: tuple[ODataEntity, ...]
    enum_types: tuple[ODataEnum, ...]
    actions: tuple[ODataAction, ...]
    functions: tuple[ODataFunction, ...]
    entity_container: ODataEntityContainer | None


@dataclass(frozen=True)
class ODataMetadata:
    schemas: tuple[ODataSchema, ...]


# ===--- Transform stage ---=== #


def _map(
    items: tuple | None, transform: Callable[[object], T]
) -> tuple[T, ...]:
    return tuple(transform(item) for item in items) if items else ()


def _is_nullable(nullable: bool | None) -> bool:
    return True if nullable is None else nullable


def transform_property(element: XmlTypedElement) -> ODataProperty:
    return ODataProperty(
        name=element.name,
        type=element.type.name,
        is_collection=element.type.is_collection,
        is_nullable=_is_nullable(element.nullable),
    )


def transform_parameter(element: XmlTypedElement) -> ODataParameter:
    return ODataParameter(
        name=element.name,
        type=element.type.name,
        is_collection=element.type.is_collection,
        is_nullable=_is_nullable(element.nullable),
    )


def transform_return_type(return_type: XmlReturnType) -> ODataReturnType:
    return ODataReturnType(
        type=return_type.type.name,
        is_collection=return_type.type.is_collection,
        is_nullable=_is_nullable(return_type.nullable),
    )


def transform_entity(structured: XmlStructuredType) -> ODataEntity:
    return ODataEntity(
        name=structured.name,
        properties=_map(structured.properties, transform_property),
        navigation_properties=_map(
            structured.navigation_properties, transform_property
        ),
    )


def transform_enum(enum_type: XmlEnumType) -> ODataEnum:
    members = tuple(
        ODataEnumMember(
            name=member.name,
            value=index if member.value is None else member.value,
        )
        for index, member in enumerate(enum_type.members or ())
    )
    return ODataEnum(name=enum_type.name, members=members)


def split_binding_parameter(
    operation: XmlBoundOperation, kind: str
) -> tuple[ODataBoundType, tuple[ODataParameter, ...]]:
    """Split a bound operation's parameters into (receiver, remaining).

    The receiver follows the Property type rule: Collection(...) is unwrapped
    and an absent Nullable means nullable. Its parameter name is dropped.

    Raises:
        RuntimeError: operation.parameters is empty.
    """
    if not operation.parameters:
        # The decoder requires at least one Parameter on the bound shape.
        raise RuntimeError(f"Bound {kind} missing binding parameter.")
    binding, *remaining = operation.parameters
    bound_type = ODataBoundType(
        type=binding.type.name,
        is_collection=binding.type.is_collection,
        is_nullable=_is_nullable(binding.nullable),
    )
    return bound_type, tuple(transform_parameter(param) for param in remaining)


def transform_action(action: XmlOperation) -> ODataAction:
    """Map a decoded Action onto its bound or unbound domain variant.

    Args:
        action: Decoded operation; the bound shape carries its receiver as
            the first parameter.

    Returns:
        ODataBoundAction or ODataUnboundAction. return_type stays None when
        the Action declares no ReturnType.

    Raises:
        RuntimeError: A bound action has no binding parameter.
        TypeError: action is neither XmlBoundOperation nor XmlUnboundOperation.
    """
    return_type = (
        transform_return_type(action.return_type)
        if action.return_type is not None
        else None
    )
    if isinstance(action, XmlBoundOperation):
        bound_type, parameters = split_binding_parameter(action, "action")
        return ODataBoundAction(
            name=action.name,
            bound_type=bound_type,
            parameters=parameters,
            return_type=return_type,
        )
    if isinstance(action, XmlUnboundOperation):
        return ODataUnboundAction(
            name=action.name,
            parameters=_map(action.parameters, transform_parameter),
            return_type=return_type,
        )
    raise TypeError(f"Unexpected action variant: {type(action).__name__}")


def transform_function(function: XmlOperation) -> ODataFunction:
    """Map a decoded Function onto its bound or unbound domain variant.

    Raises:
        RuntimeError: The function has no return type, or a bound function
            has no binding parameter.
        TypeError: function is neither XmlBoundOperation nor
            XmlUnboundOperation.
    """
    if function.return_type is None:
        raise RuntimeError(f"Function {function.name} missing return type.")
    return_type = transform_return_type(function.return_type)
    if isinstance(function, XmlBoundOperation):
        bound_type, parameters = split_binding_parameter(function, "function")
        return ODataBoundFunction(
            name=function.name,
            bound_type=bound_type,
            parameters=parameters,
            return_type=return_type,
        )
    if isinstance(function, XmlUnboundOperation):
        return ODataUnboundFunction(
            name=function.name,
            parameters=_map(function.parameters, transform_parameter),
            return_type=return_type,
        )
    raise TypeError(f"Unexpected function variant: {type(function).__name__}")


def transform_entity_container(container: XmlEntityContainer) -> ODataEntityContainer:
    return ODataEntityContainer(
        name=container.name,
        entity_sets=_map(
            container.entity_sets,
            lambda s: ODataEntitySet(name=s.name, type=s.entity_type),
        ),
        action_imports=_map(
            container.action_imports,
            lambda i: ODataActionImport(name=i.name, action_name=i.action),
        ),
        function_imports=_map(
            container.function_imports,
            lambda i: ODataFunctionImport(name=i.name, function_name=i.function),
        ),
    )


def transform_schema(schema: XmlSchema) -> ODataSchema:
    return ODataSchema(
        namespace=schema.namespace,
        entity_types=_map(schema.entity_types, transform_entity),
        complex_types=_map(schema.complex_types, transform_entity),
        enum_types=_map(schema.enum_types, transform_enum),
        actions=_map(schema.actions, transform_action),
        functions=_map(schema.functions, transform_function),
        entity_container=(
            transform_entity_container(schema.entity_container)
            if schema.entity_container is not None
            else None
        ),
    )


def transform_metadata(metadata: XmlMetadata) -> ODataMetadata:
    return ODataMetadata(
        schemas=tuple(transform_schema(schema) for schema in metadata.schemas)
    )


# ===--- Document loading ---=== #


def decode_documents(
    documents: Sequence[tuple[Path, object]],
) -> ODataMetadata:
    """Decode and transform parsed documents into one merged ODataMetadata.

    Every document is decoded even after a failure so the aggregated
    DecodeError lists the violations of all inputs at once.
    """
    failures: list[DecodeFailure] = []
    schemas: list[ODataSchema] = []
    for path, tree in documents:
        try:
            decoded = decode_metadata(tree)
        except DecodeError as err:
            failures.extend(replace(f, source=str(path)) for f in err.failures)
            continue
        schemas.extend(transform_metadata(decoded).schemas)

    if failures:
        raise DecodeError(failures)
    return ODataMetadata(schemas=tuple(schemas))


def parse_metadata(path: Path) -> ODataMetadata:
    return decode_documents([(path, parse_xml_file(path))])


# ===--- TypeScript emitter constants ---=== #

CONSTANT_MODULE: str = "Constant"
EDM_MODULE: str = "Edm"
INDEX_FILENAME: str = "index.ts"
SCHEMA_FILE_SUFFIX: str = "-schema"

NAVIGATION_PROPERTIES_KEY = f"[{CONSTANT_MODULE}.navigationProperties]"
FUNCTIONS_KEY = f"[{CONSTANT_MODULE}.functions]"
ACTIONS_KEY = f"[{CONSTANT_MODULE}.actions]"

CONSTANT_SYMBOLS: tuple[str, ...] = ("navigationProperties", "functions", "actions")

EDM_TO_TS = {
    "Binary": "string",
    "Boolean": "boolean",
    "Byte": "number",
    "Date": "string",
    "DateTimeOffset": "string",
    "Decimal": "number",
    "Double": "number",
    "Duration": "string",
    "Guid": "string",
    "Int16": "number",
    "Int32": "number",
    "Int64": "number",
    "SByte": "number",
    "Single": "number",
    "Stream": "string",
    "String": "string",
    "TimeOfDay": "string",
    "Geography": "unknown",
    "GeographyPoint": "unknown",
    "Geometry": "unknown",
    "GeometryPoint": "unknown",
    "Untyped": "unknown",
}

# Reserved and strict-mode reserved words that cannot name a parameter.
TS_RESERVED = {
    "break",
    "case",
    "catch",
    "class",
    "const",
    "continue",
    "debugger",
    "default",
    "delete",
    "do",
    "else",
    "enum",
    "export",
    "extends",
    "false",
    "finally",
    "for",
    "function",
    "if",
    "implements",
    "import",
    "in",
    "instanceof",
    "interface",
    "let",
    "new",
    "null",
    "package",
    "private",
    "protected",
    "public",
    "return",
    "static",
    "super",
    "switch",
    "this",
    "throw",
    "true",
    "try",
    "typeof",
    "var",
    "void",
    "while",
    "with",
    "yield",
}

_INDENT = "  "
_HEADER_BORDER = "// x-------------------------------------------x //"


# ===--- Output plan types ---=== #


@dataclass(frozen=True)
class OutputFile:
    """One planned output file.

    Attributes:
        relative_path: Path relative to the output directory, e.g.
            Path("Microsoft/OData/OData-schema.ts").
        lines: Source lines without trailing newlines.
    """

    relative_path: Path
    lines: tuple[str, ...]


@dataclass(frozen=True)
class FileWriteResult:
    """Result of writing one generated file.

    Attributes:
        relative_path: Path of the file relative to the output directory.
        line_count: Number of newline characters in the written content.
        byte_count: Number of bytes written (UTF-8 encoded).
    """

    relative_path: Path
    line_count: int
    byte_count: int


@dataclass(frozen=True)
class PackageWriteResult:
    """Result of writing the complete output tree.

    Attributes:
        output_dir: Directory the tree now lives in.
        files: One FileWriteResult per file, in plan order.
    """

    output_dir: Path
    files: tuple[FileWriteResult, ...]

    @property
    def total_lines(self) -> int:
        """Sum of line_count across all written files."""
        return sum(f.line_count for f in self.files)


# ===--- Pure formatting functions ---=== #


def format_type(type_name: str, is_collection: bool, is_nullable: bool) -> str:
    text = f"{type_name}[]" if is_collection else type_name
    return f"{text} | null" if is_nullable else text


def _type_of(value: ODataProperty | ODataParameter | ODataReturnType) -> str:
    return format_type(value.type, value.is_collection, value.is_nullable)


def safe_parameter_name(name: str) -> str:
    if name in TS_RESERVED:
        return name + "_"
    return name


def format_file_header(title: str, namespace: str | None = None) -> list[str]:
    lines = [_HEADER_BORDER, f"// | {title}", "// | Generated by odata-ts-gen"]
    if namespace:
        lines.append(f"// | Namespace: {namespace}")
    lines.append(_HEADER_BORDER)
    return lines


def format_interface(
    name: str,
    members: Sequence[tuple[str, str]] = (),
    groups: Sequence[tuple[str, Sequence[tuple[str, str]]]] = (),
    call_signatures: Sequence[str] = (),
) -> list[str]:
    """Render an exported interface.

    Members render as `key: type;`. Each non-empty group renders as a nested
    object-typed member keyed by its (usually computed) key. Call signatures
    come first so overloads read top to bottom.
    """
    lines = [f"export interface {name} {{"]
    lines.extend(f"{_INDENT}{signature};" for signature in call_signatures)
    lines.extend(f"{_INDENT}{key}: {value};" for key, value in members)
    for key, entries in groups:
        if not entries:
            continue
        lines.append(f"{_INDENT}{key}: {{")
        lines.extend(f"{_INDENT * 2}{k}: {v};" for k, v in entries)
        lines.append(f"{_INDENT}}};")
    lines.append("}")
    return lines


def format_enum_alias(enum_type: ODataEnum) -> list[str]:
    literals = [f'"{member.name}"' for member in enum_type.members]
    union = " | ".join(literals) if literals else "string"
    return [f"export type {enum_type.name} = {union};"]


def format_call_signature(
    parameters: Sequence[ODataParameter], return_type: str
) -> str:
    params = ", ".join(
        f"{safe_parameter_name(param.name)}: {_type_of(param)}" for param in parameters
    )
    return f"({params}): {return_type}"


def format_function_interface(function: ODataFunction) -> list[str]:
    signature = format_call_signature(function.parameters, _type_of(function.return_type))
    return format_interface(function.name, call_signatures=[signature])


def format_action_interface(action: ODataAction) -> list[str]:
    return_type = _type_of(action.return_type) if action.return_type else "void"
    signature = format_call_signature(action.parameters, return_type)
    return format_interface(action.name, call_signatures=[signature])


def _bound_operation_names(
    operations: Sequence[ODataAction | ODataFunction], qualified_type: str
) -> list[tuple[str, str]]:
    names: list[str] = []
    for operation in operations:
        if not isinstance(operation, (ODataBoundAction, ODataBoundFunction)):
            continue
        # Overloads share one interface, so list each name once.
        if operation.bound_type.type == qualified_type and operation.name not in names:
            names.append(operation.name)
    return [(name, name) for name in names]


def format_entity_interface(entity: ODataEntity, schema: ODataSchema) -> list[str]:
    qualified = f"{schema.namespace}.{entity.name}"
    return format_interface(
        entity.name,
        members=[(p.name, _type_of(p)) for p in entity.properties],
        groups=[
            (
                NAVIGATION_PROPERTIES_KEY,
                [(p.name, _type_of(p)) for p in entity.navigation_properties],
            ),
            (FUNCTIONS_KEY, _bound_operation_names(schema.functions, qualified)),
            (ACTIONS_KEY, _bound_operation_names(schema.actions, qualified)),
        ],
    )


def format_container_interface(container: ODataEntityContainer) -> list[str]:
    return format_interface(
        container.name,
        members=[(s.name, f"{s.type}[]") for s in container.entity_sets],
        groups=[
            (FUNCTIONS_KEY, [(i.name, i.function_name) for i in container.function_imports]),
            (ACTIONS_KEY, [(i.name, i.action_name) for i in container.action_imports]),
        ],
    )


def collect_type_references(schema: ODataSchema) -> set[str]:
    """Qualified names a schema file refers to by their full dotted path."""
    names: set[str] = set()
    for entity in (*schema.complex_types, *schema.entity_types):
        names.update(p.type for p in entity.properties)
        names.update(p.type for p in entity.navigation_properties)
    for operation in (*schema.functions, *schema.actions):
        names.update(p.type for p in operation.parameters)
        if operation.return_type is not None:
            names.add(operation.return_type.type)
    container = schema.entity_container
    if container is not None:
        names.update(s.type for s in container.entity_sets)
        names.update(i.function_name for i in container.function_imports)
        names.update(i.action_name for i in container.action_imports)
    return names


def format_schema_imports(
    schema: ODataSchema, root_namespaces: Sequence[str]
) -> list[str]:
    depth = len(schema.namespace.split("."))
    relative_root = "/".join([".."] * depth)
    referenced_roots = {name.split(".", 1)[0] for name in collect_type_references(schema)}
    named = sorted(root for root in root_namespaces if root in referenced_roots)

    lines = [
        f'import * as {CONSTANT_MODULE} from "{relative_root}/{CONSTANT_MODULE}";',
        f'import * as {EDM_MODULE} from "{relative_root}/{EDM_MODULE}";',
    ]
    if named:
        lines.append(f'import {{ {", ".join(named)} }} from "{relative_root}/index";')
    return lines


def render_schema_file(schema: ODataSchema, root_namespaces: Sequence[str]) -> list[str]:
    """Render the declarations file of one schema.

    Order: imports, entity container, enums, complex types, entity types,
    functions, actions. Each block is separated by one blank line.
    """
    blocks: list[list[str]] = [format_schema_imports(schema, root_namespaces)]
    if schema.entity_container is not None:
        blocks.append(format_container_interface(schema.entity_container))
    blocks.extend(format_enum_alias(e) for e in schema.enum_types)
    blocks.extend(format_entity_interface(e, schema) for e in schema.complex_types)
    blocks.extend(format_entity_interface(e, schema) for e in schema.entity_types)
    blocks.extend(format_function_interface(f) for f in schema.functions)
    blocks.extend(format_action_interface(a) for a in schema.actions)

    lines = format_file_header("OData schema declarations", schema.namespace)
    for block in blocks:
        lines.append("")
        lines.extend(block)
    return lines


def render_index_file(
    namespaces: Sequence[str], schema_stems: Sequence[str], is_root: bool
) -> list[str]:
    """Render a barrel index.ts for one directory of the namespace tree."""
    exported = [*namespaces]
    lines = format_file_header("Namespace index")
    lines.append("")
    if is_root:
        exported = [CONSTANT_MODULE, EDM_MODULE, *namespaces]
    lines.extend(f'import * as {name} from "./{name}";' for name in exported)
    if exported:
        lines.append("")
        lines.append(f"export {{ {', '.join(exported)} }};")
    lines.extend(f'export * from "./{stem}";' for stem in schema_stems)
    if is_root:
        lines.append("")
        lines.extend(
            format_interface(
                "ODataEntityCollection<T>",
                members=[
                    ('"@count"?', "number"),
                    ("value", "T[]"),
                    ('"@nextLink"?', "string"),
                ],
            )
        )
    return lines


def render_constant_file() -> list[str]:
    lines = format_file_header("Symbol keys for generated declarations")
    lines.append("")
    lines.extend(
        f'export const {name}: unique symbol = Symbol("{name}");'
        for name in CONSTANT_SYMBOLS
    )
    return lines


def render_edm_file() -> list[str]:
    lines = format_file_header("Edm primitive types")
    lines.append("")
    lines.extend(f"export type {edm} = {ts};" for edm, ts in EDM_TO_TS.items())
    return lines


def schema_has_declarations(schema: ODataSchema) -> bool:
    return bool(
        schema.entity_types
        or schema.complex_types
        or schema.enum_types
        or schema.actions
        or schema.functions
        or schema.entity_container
    )


def plan_output_tree(metadata: ODataMetadata) -> tuple[OutputFile, ...]:
    """Plan every output file for the metadata without touching the disk.

    Raises:
        ValueError: If two emitted schemas share a namespace.
    """
    schemas = [s for s in metadata.schemas if schema_has_declarations(s)]
    seen: set[str] = set()
    for schema in schemas:
        if schema.namespace in seen:
            raise ValueError(f"Duplicate schema namespace: {schema.namespace}")
        seen.add(schema.namespace)

    root_namespaces: list[str] = []
    for schema in schemas:
        root = schema.namespace.split(".", 1)[0]
        if root not in root_namespaces:
            root_namespaces.append(root)

    namespace_imports: dict[Path, list[str]] = {Path(): []}
    schema_stems: dict[Path, list[str]] = {}
    files = [
        OutputFile(Path(f"{CONSTANT_MODULE}.ts"), tuple(render_constant_file())),
        OutputFile(Path(f"{EDM_MODULE}.ts"), tuple(render_edm_file())),
    ]

    for schema in schemas:
        segments = schema.namespace.split(".")
        directory = Path()
        for segment in segments:
            imports = namespace_imports.setdefault(directory, [])
            if segment not in imports:
                imports.append(segment)
            directory = directory / segment
        namespace_imports.setdefault(directory, [])

        stem = f"{segments[-1]}{SCHEMA_FILE_SUFFIX}"
        schema_stems.setdefault(directory, []).append(stem)
        files.append(
            OutputFile(
                directory / f"{stem}.ts",
                tuple(render_schema_file(schema, root_namespaces)),
            )
        )

    for directory, namespaces in namespace_imports.items():
        files.append(
            OutputFile(
                directory / INDEX_FILENAME,
                tuple(
                    render_index_file(
                        namespaces,
                        schema_stems.get(directory, ()),
                        is_root=directory == Path(),
                    )
                ),
            )
        )
    return tuple(files)


# ===--- Writer I/O functions ---=== #


def assemble_source(output_file: OutputFile) -> str:
    return "\n".join(output_file.lines) + "\n"


def write_output_file(root: Path, output_file: OutputFile) -> FileWriteResult:
    """Write one planned file under root.

    Thin I/O shell over assemble_source. Creates missing parent directories
    of the target path before writing.

    Args:
        root: Directory the relative path is resolved against.
        output_file: Planned file with its relative path and source lines.

    Returns:
        FileWriteResult with line_count (newline characters in content) and
        byte_count (UTF-8 bytes written).

    Raises:
        OSError: Propagated directly if the filesystem write fails.
    """
    content = assemble_source(output_file)
    file_path = Path(root) / output_file.relative_path
    file_path.parent.mkdir(parents=True, exist_ok=True)
    file_path.write_text(content, encoding="utf-8")
    return FileWriteResult(
        relative_path=output_file.relative_path,
        line_count=content.count("\n"),
        byte_count=len(content.encode("utf-8")),
    )


@contextmanager
def prepared_output_dir(output_dir: Path) -> Iterator[Path]:
    """Yield an empty staging directory that replaces output_dir on success.

    The staging directory is a sibling of output_dir. When the body or the
    final replace raises, the staging directory is removed.

    Raises:
        OSError: output_dir exists but is not a removable directory, or the
            rename fails.
    """
    output_dir = Path(output_dir)
    output_dir.parent.mkdir(parents=True, exist_ok=True)
    staging = Path(
        tempfile.mkdtemp(prefix=f".{output_dir.name}-", dir=output_dir.parent)
    )
    staging.chmod(0o755)
    try:
        yield staging
        if output_dir.exists() or output_dir.is_symlink():
            shutil.rmtree(output_dir)
        os.replace(staging, output_dir)
    except BaseException:
        shutil.rmtree(staging, ignore_errors=True)
        raise


def write_output_tree(
    output_dir: Path, files: Sequence[OutputFile]
) -> PackageWriteResult:
    with prepared_output_dir(output_dir) as staging:
        results = tuple(write_output_file(staging, f) for f in files)
    return PackageWriteResult(output_dir=Path(output_dir), files=results)


# ===--- Summary report ---=== #


@dataclass(frozen=True)
class OperationCount:
    """Count of actions or functions split by binding.

    Invariant: bound + unbound == total. Enforced by build_generation_counts.
    """

    total: int
    bound: int
    unbound: int


@dataclass(frozen=True)
class GenerationCounts:
    schemas: int
    entity_types: int
    complex_types: int
    enum_types: int
    entity_sets: int
    functions: OperationCount
    actions: OperationCount


@dataclass(frozen=True)
class GenerationSummary:
    """Complete data for the post-generation console report.

    Attributes:
        source_label: Comma-separated input file names.
        output_dir: Output directory path as string.
        counts: Declaration counts from build_generation_counts.
        files: Ordered write results from PackageWriteResult.files.
    """

    source_label: str
    output_dir: str
    counts: GenerationCounts
    files: tuple[FileWriteResult, ...]


def build_generation_counts(metadata: ODataMetadata) -> GenerationCounts:
    """Count declarations across every schema.

    Raises:
        AssertionError: An operation is neither the bound nor the unbound
            variant, so bound + unbound != total.
    """

    def _count(
        operations: list[object], bound_type: type, unbound_type: type
    ) -> OperationCount:
        total = len(operations)
        bound = sum(1 for op in operations if isinstance(op, bound_type))
        unbound = sum(1 for op in operations if isinstance(op, unbound_type))
        assert bound + unbound == total, (
            f"OperationCount invariant violated: {bound}+{unbound}!={total}"
        )
        return OperationCount(total=total, bound=bound, unbound=unbound)

    schemas = metadata.schemas
    return GenerationCounts(
        schemas=len(schemas),
        entity_types=sum(len(s.entity_types) for s in schemas),
        complex_types=sum(len(s.complex_types) for s in schemas),
        enum_types=sum(len(s.enum_types) for s in schemas),
        entity_sets=sum(
            len(s.entity_container.entity_sets)
            for s in schemas
            if s.entity_container is not None
        ),
        functions=_count(
            [f for s in schemas for f in s.functions],
            ODataBoundFunction,
            ODataUnboundFunction,
        ),
        actions=_count(
            [a for s in schemas for a in s.actions],
            ODataBoundAction,
            ODataUnboundAction,
        ),
    )


def build_generation_summary(
    config: GenerateConfig,
    metadata: ODataMetadata,
    write_result: PackageWriteResult,
) -> GenerationSummary:
    return GenerationSummary(
        source_label=", ".join(path.name for path in config.metadata_files),
        output_dir=str(write_result.output_dir),
        counts=build_generation_counts(metadata),
        files=write_result.files,
    )


def format_generation_summary(summary: GenerationSummary) -> str:
    """Render a GenerationSummary as the multi-section console report.

    Bound/unbound annotations appear only when an operation count is
    non-zero. Line counts use thousands separators. Ends with one newline.
    """
    counts = summary.counts
    lines: list[str] = []
    lines.append("TypeScript declarations generated:")
    lines.append("")
    lines.append(f"  Source:     {summary.source_label}")
    lines.append(f"  Output:     {summary.output_dir}")
    lines.append("")
    lines.append("  Declarations:")

    def _row(label: str, count: int) -> str:
        return f"    {label:<15}{count:>6}"

    def _operation_row(label: str, oc: OperationCount) -> str:
        if oc.total > 0:
            return f"{_row(label, oc.total)}  ({oc.bound} bound + {oc.unbound} unbound)"
        return _row(label, oc.total)

    lines.append(_row("Schemas:", counts.schemas))
    lines.append(_row("Entity types:", counts.entity_types))
    lines.append(_row("Complex types:", counts.complex_types))
    lines.append(_row("Enum types:", counts.enum_types))
    lines.append(_row("Entity sets:", counts.entity_sets))
    lines.append(_operation_row("Functions:", counts.functions))
    lines.append(_operation_row("Actions:", counts.actions))

    lines.append("")
    lines.append("  Files written:")
    for file_result in summary.files:
        line_str = f"{file_result.line_count:>6,} lines"
        lines.append(f"    {file_result.relative_path.as_posix():<40} {line_str}")

    total_lines = sum(f.line_count for f in summary.files)
    lines.append("")
    lines.append(f"  Total: {total_lines:,} lines across {len(summary.files)} files")
    lines.append("")

    return "\n".join(lines)


def print_generation_summary(summary: GenerationSummary) -> None:
    print(format_generation_summary(summary), end="")


# ===--- Pipeline ---=== #


def run_generate(config: GenerateConfig) -> PackageWriteResult:
    """Execute the complete pipeline for a GenerateConfig.

    Stages: parse -> decode -> transform -> plan -> write. The output
    directory is only replaced after every input decoded and the whole
    tree was planned.

    Raises:
        OSError: Metadata file not readable or filesystem write failure.
        ET.ParseError: Malformed XML.
        DecodeError: Any document violates the metadata grammar.
        RuntimeError: Internal invariant violated in the transform stage.
        ValueError: Two schemas share a namespace.
    """
    for path in config.metadata_files:
        print(f"Parsing: {path}")
    documents = load_documents(config.metadata_files)

    metadata = decode_documents(documents)
    print(f"  Decoded: {len(metadata.schemas)} schemas")

    files = plan_output_tree(metadata)
    print(f"  Planned: {len(files)} files")

    result = write_output_tree(config.output_dir, files)
    print(
        f"  Written: {len(result.files)} files, "
        f"{result.total_lines} lines to {result.output_dir}"
    )

    summary = build_generation_summary(config, metadata, result)
    print_generation_summary(summary)
    return result


# ===--- Main generation ---=== #


def main(argv: list[str] | None = None) -> None:
    try:
        config = build_config(argv)
    except ConfigError as err:
        print(f"Config error [{err.code}]: {err.message}")
        if err.suggestion:
            print(f"Hint: {err.suggestion}")
        raise SystemExit(1) from err

    try:
        run_generate(config)
    except DecodeError as err:
        print(err.render())
        raise SystemExit(1) from err
    except (OSError, ET.ParseError) as err:
        print(f"Error: {err}")
        raise SystemExit(1) from err
    except (RuntimeError, ValueError) as err:
        print(f"Internal error: {err}")
        raise SystemExit(1) from err


if __name__ == "__main__":
    main()
