"""OpenXR bindings generator for Zig.

Generates typed Zig bindings from the Khronos xr.xml registry.
Produces a single `xr.zig` source file.

Usage:
    python xrgen.py path/to/xr.xml path/to/xr.zig
    python xrgen.py path/to/xr.xml --list-extensions --filter khr
    python xrgen.py path/to/xr.xml --info XR_KHR_composition_layer_depth
"""

import argparse
import heapq
import re
import sys
import xml.etree.ElementTree as ET
from collections import defaultdict
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from types import MappingProxyType
from typing import ClassVar, Union


# ===--- CLI config contracts ---=== #


@dataclass(frozen=True)
class GenerateConfig:
    registry: Path
    output: Path


@dataclass(frozen=True)
class DiscoveryConfig:
    command: str
    registry: Path
    filter_text: str | None
    info_extension: str | None


VALID_ERROR_CODES = {
    "MISSING_REGISTRY",
    "MISSING_OUTPUT",
    "PATH_NOT_FOUND",
    "INVALID_EXTENSION_NAME",
    "CONFLICT_GENERATE_DISCOVERY",
    "FILTER_WITHOUT_LIST",
}
_EXT_NAME_RE = re.compile(r"XR_[A-Z0-9]+_[A-Za-z0-9_]+")

_REGISTRY_HINT = (
    "The most recent registry is published at\n"
    "  https://github.com/KhronosGroup/OpenXR-Docs/blob/main/xml/xr.xml\n"
    "and ships with the OpenXR SDK under share/openxr/registry/xr.xml."
)


class ConfigError(Exception):
    def __init__(self, code: str, message: str, suggestion: str | None = None):
        if code not in VALID_ERROR_CODES:
            raise ValueError(f"Unknown config error code: {code}")
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion


def validate_extension_name(name: str) -> str:
    if _EXT_NAME_RE.fullmatch(name):
        return name
    raise ConfigError(
        "INVALID_EXTENSION_NAME",
        f"Invalid extension name: {name}",
        "Extension names must match XR_<VENDOR>_<name> (for example XR_KHR_composition_layer_depth).",
    )


def validate_path_exists(
    path: Path | None, label: str, suggestion: str | None = None
) -> Path:
    if path is None:
        raise ConfigError(
            "MISSING_REGISTRY",
            f"{label} is required: no path provided.",
            suggestion or f"Pass the path explicitly: xrgen {label}",
        )
    if path.exists():
        return path
    raise ConfigError(
        "PATH_NOT_FOUND",
        f"Path for {label} does not exist: {path}",
        suggestion or "Provide an existing path for this argument.",
    )


def build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate Zig bindings from the OpenXR XML API registry"
    )

    parser.add_argument("registry", type=Path, nargs="?", default=None)
    parser.add_argument("output", type=Path, nargs="?", default=None)

    discovery_group = parser.add_mutually_exclusive_group()
    discovery_group.add_argument(
        "--list-extensions", action="store_true", default=False
    )
    discovery_group.add_argument("--info", type=str, default=None)

    parser.add_argument("--filter", type=str, default=None)

    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = build_argument_parser()
    return parser.parse_args(argv)


def validate_config(args: argparse.Namespace) -> GenerateConfig | DiscoveryConfig:
    has_discovery_command = bool(args.list_extensions or args.info)

    if args.filter and not args.list_extensions:
        raise ConfigError(
            "FILTER_WITHOUT_LIST",
            "--filter requires --list-extensions.",
            "Add --list-extensions or remove --filter.",
        )

    if has_discovery_command and args.output is not None:
        raise ConfigError(
            "CONFLICT_GENERATE_DISCOVERY",
            "An output path cannot be combined with discovery flags.",
            "Choose either generate mode (<registry> <output>) or one discovery command.",
        )

    registry = validate_path_exists(args.registry, "<registry xml>", _REGISTRY_HINT)

    if has_discovery_command:
        command = "list-extensions" if args.list_extensions else "info"
        info_extension = (
            validate_extension_name(args.info) if args.info is not None else None
        )
        return DiscoveryConfig(
            command=command,
            registry=registry,
            filter_text=args.filter,
            info_extension=info_extension,
        )

    if args.output is None:
        raise ConfigError(
            "MISSING_OUTPUT",
            "Generate mode requires an output path.",
            "Pass the generated source path: xrgen <registry xml> <output zig source>",
        )

    return GenerateConfig(registry=registry, output=args.output)


def build_config(argv: list[str] | None = None) -> GenerateConfig | DiscoveryConfig:
    return validate_config(parse_args(argv))


# ===--- Generation errors ---=== #

GENERATION_ERROR_STAGES: dict[str, str] = {
    "MALFORMED_DOCUMENT": "loader",
    "UNKNOWN_DECLARATION_KIND": "loader",
    "DUPLICATE_DECLARATION": "loader",
    "DANGLING_TYPE_REFERENCE": "loader",
    "CYCLIC_TYPE_DEPENDENCY": "resolver",
    "IDENTIFIER_TOO_LONG": "renderer",
    "AMBIGUOUS_LENGTH_LINK": "lowering",
    "UNHANDLED_DECLARATION_KIND": "emitter",
}
"""Closed table of engine failure codes and the stage that raises each one."""


class GenerationError(Exception):
    """Engine failure tagged with a code from GENERATION_ERROR_STAGES.

    Every stage raises immediately; nothing is emitted once one is raised.
    """

    def __init__(self, code: str, message: str):
        if code not in GENERATION_ERROR_STAGES:
            raise ValueError(f"Unknown generation error code: {code}")
        super().__init__(message)
        self.code = code
        self.stage = GENERATION_ERROR_STAGES[code]
        self.message = message


# ===--- Constants ---=== #

API_NAME = "openxr"
TYPE_PREFIX = "Xr"
COMMAND_PREFIX = "xr"
ENUM_PREFIX = "XR_"
FUNCPOINTER_PREFIX = "PFN_xr"
NEXT_CHAIN_FIELD = "next"
GET_PROC_ADDR_COMMAND = "xrGetInstanceProcAddr"
VOID_FUNCTION_TYPE = "PFN_xrVoidFunction"
VERSION_TYPE = "XrVersion"
ORIGIN_CORE = "core"

ENUM_BASE_VALUE = 1000000000
ENUM_RANGE_SIZE = 1000

FALLBACK_AUTHOR_TAG = "EXTX"
MAX_IDENTIFIER_LENGTH = 1024

PENDING_RESULT_OVERRIDES = frozenset({"XR_SESSION_LOSS_PENDING"})
"""Result values the registry reports as successful that wrappers treat as errors.

XR_SESSION_LOSS_PENDING is a success code in xr.xml, but callers must react to
it the same way they react to a lost session, so it goes through the failure
path instead of a silent success branch.
"""

C_TO_ZIG = {
    "void": "void",
    "char": "u8",
    "float": "f32",
    "double": "f64",
    "int": "c_int",
    "int8_t": "i8",
    "uint8_t": "u8",
    "int16_t": "i16",
    "uint16_t": "u16",
    "int32_t": "i32",
    "uint32_t": "u32",
    "int64_t": "i64",
    "uint64_t": "u64",
    "size_t": "usize",
    "intptr_t": "isize",
    "uintptr_t": "usize",
}

NUMERIC_C_TYPES = frozenset(
    {
        "float",
        "double",
        "int",
        "int8_t",
        "uint8_t",
        "int16_t",
        "uint16_t",
        "int32_t",
        "uint32_t",
        "int64_t",
        "uint64_t",
        "size_t",
    }
)

_ANY_PTR = "?*anyopaque"
_GET_PROC_PTR = "?*const fn ([*:0]const u8) callconv(.c) ?*const fn () callconv(.c) void"

# Platform-specific types mapped to ABI-compatible Zig types.
PLATFORM_TYPES = {
    "HDC": _ANY_PTR,
    "HGLRC": _ANY_PTR,
    "HWND": _ANY_PTR,
    "HANDLE": _ANY_PTR,
    "HINSTANCE": _ANY_PTR,
    "LARGE_INTEGER": "i64",
    "LUID": "u64",
    "D3D_FEATURE_LEVEL": "c_int",
    "DXGI_FORMAT": "c_int",
    "GLXFBConfig": _ANY_PTR,
    "GLXDrawable": "c_ulong",
    "GLXContext": _ANY_PTR,
    "xcb_glx_fbconfig_t": "u32",
    "xcb_visualid_t": "u32",
    "xcb_glx_drawable_t": "u32",
    "xcb_glx_context_t": "u32",
    "EGLDisplay": _ANY_PTR,
    "EGLConfig": _ANY_PTR,
    "EGLContext": _ANY_PTR,
    "EGLenum": "u32",
    "PFNEGLGETPROCADDRESSPROC": _GET_PROC_PTR,
    "jobject": _ANY_PTR,
    "VkInstance": _ANY_PTR,
    "VkPhysicalDevice": _ANY_PTR,
    "VkDevice": _ANY_PTR,
    "VkQueue": _ANY_PTR,
    "VkCommandBuffer": _ANY_PTR,
    "VkImage": "u64",
    "VkDeviceMemory": "u64",
    "VkFormat": "i32",
    "VkResult": "i32",
    "VkFilter": "i32",
    "VkSamplerMipmapMode": "i32",
    "VkSamplerAddressMode": "i32",
    "VkComponentSwizzle": "i32",
    "VkImageCreateFlags": "u32",
    "VkImageUsageFlags": "u32",
    "PFN_vkGetInstanceProcAddr": "?*const fn (?*anyopaque, [*:0]const u8) callconv(.c) ?*const fn () callconv(.c) void",
    "MLCoordinateFrameUID": "[2]u64",
}

ZIG_PRIMITIVES = (
    "void",
    "comptime_float",
    "comptime_int",
    "bool",
    "isize",
    "usize",
    "f16",
    "f32",
    "f64",
    "f128",
    "noreturn",
    "type",
    "anyerror",
    "c_short",
    "c_ushort",
    "c_int",
    "c_uint",
    "c_long",
    "c_ulong",
    "c_longlong",
    "c_ulonglong",
    "c_longdouble",
    # Not primitives in current Zig, but still rejected as plain identifiers.
    "undefined",
    "true",
    "false",
    "null",
)

ZIG_KEYWORDS = frozenset(
    {
        "addrspace",
        "align",
        "allowzero",
        "and",
        "anyframe",
        "anytype",
        "asm",
        "async",
        "await",
        "break",
        "callconv",
        "catch",
        "comptime",
        "const",
        "continue",
        "defer",
        "else",
        "enum",
        "errdefer",
        "error",
        "export",
        "extern",
        "fn",
        "for",
        "if",
        "inline",
        "linksection",
        "noalias",
        "noinline",
        "nosuspend",
        "opaque",
        "or",
        "orelse",
        "packed",
        "pub",
        "resume",
        "return",
        "struct",
        "suspend",
        "switch",
        "test",
        "threadlocal",
        "try",
        "union",
        "unreachable",
        "usingnamespace",
        "var",
        "volatile",
        "while",
    }
)


# ===--- Registry model ---=== #

POINTER_SINGLE = "single"
POINTER_FIXED_ARRAY = "fixed_array"
POINTER_LENGTH_LINKED = "length_linked"
POINTER_NULL_TERMINATED = "null_terminated"

DISPATCH_WIDE = "wide"
DISPATCH_NARROW = "narrow"


@dataclass(frozen=True)
class PointerInfo:
    """One level of indirection on a field or parameter.

    constant describes the pointee, so `const char*` is one level with
    constant=True. length is the raw registry length reference for
    length-linked levels.
    """

    nullable: bool
    constant: bool
    multiplicity: str = POINTER_SINGLE
    length: str | None = None


@dataclass(frozen=True)
class Field:
    """A struct/union member, command parameter or function pointer parameter.

    pointers lists indirection levels outermost first. The same record is
    used for command return values, with an empty name.
    """

    name: str
    type_name: str
    pointers: tuple[PointerInfo, ...] = ()
    is_const: bool = False
    array_size: str | None = None
    optional: bool = False
    length: str | None = None
    values: str | None = None

    @property
    def is_pointer(self) -> bool:
        return bool(self.pointers)

    @property
    def multiplicity(self) -> str:
        if self.pointers:
            return self.pointers[0].multiplicity
        if self.array_size is not None:
            return POINTER_FIXED_ARRAY
        return POINTER_SINGLE


@dataclass(frozen=True)
class AliasDecl:
    kind: ClassVar[str] = "alias"
    name: str
    target: str
    alias_category: str = ""


@dataclass(frozen=True)
class BaseTypeDecl:
    kind: ClassVar[str] = "basetype"
    name: str
    underlying: str | None


@dataclass(frozen=True)
class ExternalTypeDecl:
    kind: ClassVar[str] = "external"
    name: str
    requires: str


@dataclass(frozen=True)
class HandleDecl:
    kind: ClassVar[str] = "handle"
    name: str
    dispatch: str
    parent: str | None = None


@dataclass(frozen=True)
class BitmaskDecl:
    kind: ClassVar[str] = "bitmask"
    name: str
    width: int
    bits_enum: str | None = None


@dataclass(frozen=True)
class EnumTypeDecl:
    kind: ClassVar[str] = "enum"
    name: str


@dataclass(frozen=True)
class StructDecl:
    kind: ClassVar[str] = "struct"
    name: str
    fields: tuple[Field, ...]
    extends: tuple[str, ...] = ()
    returned_only: bool = False


@dataclass(frozen=True)
class UnionDecl:
    kind: ClassVar[str] = "union"
    name: str
    fields: tuple[Field, ...]


@dataclass(frozen=True)
class FunctionPointerDecl:
    kind: ClassVar[str] = "funcpointer"
    name: str
    returns: Field
    params: tuple[Field, ...]


TypeDecl = Union[
    AliasDecl,
    BaseTypeDecl,
    ExternalTypeDecl,
    HandleDecl,
    BitmaskDecl,
    EnumTypeDecl,
    StructDecl,
    UnionDecl,
    FunctionPointerDecl,
]

TYPE_DECL_KINDS: tuple[type, ...] = (
    AliasDecl,
    BaseTypeDecl,
    ExternalTypeDecl,
    HandleDecl,
    BitmaskDecl,
    EnumTypeDecl,
    StructDecl,
    UnionDecl,
    FunctionPointerDecl,
)


@dataclass(frozen=True)
class SizeOfConstant:
    """An API constant defined as the byte size of a registry type."""

    type_name: str


ApiConstant = Union[int, float, SizeOfConstant]


@dataclass(frozen=True)
class EnumValue:
    name: str
    value: int | None = None
    bitpos: int | None = None
    origin: str = ORIGIN_CORE
    alias: str | None = None

    @property
    def int_value(self) -> int | None:
        if self.bitpos is not None:
            return 1 << self.bitpos
        return self.value


@dataclass(frozen=True)
class EnumDecl:
    name: str
    kind: str
    values: tuple[EnumValue, ...]
    bit_width: int = 32

    @property
    def is_bitmask(self) -> bool:
        return self.kind == "bitmask"

    def find(self, name: str) -> EnumValue | None:
        for value in self.values:
            if value.name == name:
                return value
        return None


@dataclass(frozen=True)
class CommandDecl:
    name: str
    returns: Field
    params: tuple[Field, ...]
    success_codes: tuple[str, ...] = ()
    error_codes: tuple[str, ...] = ()
    origin: str = ORIGIN_CORE


@dataclass(frozen=True)
class Feature:
    name: str
    number: str
    types: tuple[str, ...]
    commands: tuple[str, ...]
    enums: tuple[str, ...]


@dataclass(frozen=True)
class Extension:
    name: str
    number: int
    vendor_tag: str
    version: int
    ext_type: str
    promoted_to: str | None
    depends: str
    types: tuple[str, ...]
    commands: tuple[str, ...]
    enums: tuple[str, ...]


@dataclass(frozen=True)
class RegistryDocument:
    """Immutable semantic model of one registry document.

    Built once by parse_registry and only read afterwards. Mappings preserve
    declaration order from the source document.
    """

    tags: tuple[str, ...]
    types: Mapping[str, TypeDecl]
    enums: Mapping[str, EnumDecl]
    commands: Mapping[str, CommandDecl]
    command_aliases: Mapping[str, AliasDecl]
    api_constants: Mapping[str, ApiConstant]
    features: tuple[Feature, ...]
    extensions: tuple[Extension, ...]
    origins: Mapping[str, str]
    version: str

    def origin_of(self, name: str) -> str:
        return self.origins.get(name, ORIGIN_CORE)

    def is_core(self, name: str) -> bool:
        return self.origin_of(name) == ORIGIN_CORE


# ===--- XML parsing ---=== #


def _supports_openxr_api(api_value: str | None) -> bool:
    """Return True if a comma-separated api/supported value includes openxr."""
    if api_value is None:
        return True
    return API_NAME in [token.strip() for token in api_value.split(",")]


def _parse_c_int(s: str) -> int:
    s = s.strip()
    while s.startswith("(") and s.endswith(")"):
        s = s[1:-1].strip()
    if s.startswith("~"):
        return ~_parse_c_int(s[1:])
    if s.startswith("-"):
        return -_parse_c_int(s[1:])
    s = re.sub(r"(?i)(ull|ul|u|ll|l)$", "", s)
    if s.startswith("0x") or s.startswith("0X"):
        return int(s, 16)
    return int(s)


def _int_attr(el: ET.Element, attr: str, default: str | None = None) -> int:
    """Read an integer attribute, raising MALFORMED_DOCUMENT when it is not one."""
    text = el.get(attr, default)
    owner = el.get("name") or f"<{el.tag}>"
    if text is None:
        raise GenerationError("MALFORMED_DOCUMENT", f"{owner} has no {attr} attribute")
    try:
        return _parse_c_int(text)
    except ValueError as exc:
        raise GenerationError(
            "MALFORMED_DOCUMENT", f"{owner} has a non-integer {attr}: {text!r}"
        ) from exc


_SIZEOF_RE = re.compile(r"\s*sizeof\(\s*([A-Za-z_][A-Za-z0-9_]*)\s*\)\s*")


def _parse_constant_value(s: str) -> ApiConstant | None:
    match = _SIZEOF_RE.fullmatch(s)
    if match:
        return SizeOfConstant(match.group(1))
    try:
        return _parse_c_int(s)
    except ValueError:
        pass
    try:
        return float(s.strip().rstrip("fF"))
    except ValueError:
        return None


def _element_name(t: ET.Element) -> str | None:
    name = t.get("name")
    if name:
        return name
    name_el = t.find("name")
    if name_el is not None and name_el.text:
        return name_el.text.strip()
    return None


def _split_attr(value: str | None) -> list[str]:
    if not value:
        return []
    return [part.strip() for part in value.split(",")]


def parse_pointer_levels(prefix: str, tail: str) -> tuple[bool, list[bool]]:
    """Read C declarator text around a type name.

    Returns whether the base type is const and, for each pointer level
    (outermost first), whether its pointee is const.
    """
    base_const = "const" in prefix.split()
    pointee_const = base_const
    innermost_first = []
    for token in re.findall(r"\*|\bconst\b", tail):
        if token == "*":
            innermost_first.append(pointee_const)
            pointee_const = False
        else:
            pointee_const = True
    return base_const, list(reversed(innermost_first))


def build_pointer_infos(
    type_name: str,
    constness: list[bool],
    length: str | None,
    optional: str | None,
) -> tuple[PointerInfo, ...]:
    length_parts = _split_attr(length)
    optional_parts = _split_attr(optional)
    levels = []
    depth = len(constness)
    for i, constant in enumerate(constness):
        entry = length_parts[i] if i < len(length_parts) else None
        nullable = i < len(optional_parts) and optional_parts[i] == "true"
        if entry == "null-terminated":
            levels.append(PointerInfo(nullable, constant, POINTER_NULL_TERMINATED))
        elif entry is None or entry == "1":
            innermost = i == depth - 1
            if entry is None and innermost and type_name == "char" and constant:
                levels.append(PointerInfo(nullable, constant, POINTER_NULL_TERMINATED))
            else:
                levels.append(PointerInfo(nullable, constant, POINTER_SINGLE))
        else:
            levels.append(PointerInfo(nullable, constant, POINTER_LENGTH_LINKED, entry))
    return tuple(levels)


def _array_size(el: ET.Element, name_tail: str) -> str | None:
    if "[" not in name_tail:
        return None
    enum_el = el.find("enum")
    if enum_el is not None and enum_el.text:
        return enum_el.text.strip()
    dims = re.findall(r"\[(\d+)\]", name_tail)
    if not dims:
        raise GenerationError(
            "MALFORMED_DOCUMENT", f"Unreadable array size: {name_tail.strip()!r}"
        )
    total = 1
    for d in dims:
        total *= int(d)
    return str(total)


def parse_field(el: ET.Element) -> Field:
    """Parse a <member>, <param> or <proto> element into a Field."""
    type_el = el.find("type")
    name_el = el.find("name")
    if type_el is None or not (type_el.text or "").strip():
        raise GenerationError(
            "MALFORMED_DOCUMENT",
            f"<{el.tag}> is missing its <type>: {ET.tostring(el, encoding='unicode').strip()}",
        )
    if name_el is None or not (name_el.text or "").strip():
        raise GenerationError(
            "MALFORMED_DOCUMENT",
            f"<{el.tag}> is missing its <name>: {ET.tostring(el, encoding='unicode').strip()}",
        )
    type_name = type_el.text.strip()
    name = name_el.text.strip()
    is_const, constness = parse_pointer_levels(el.text or "", type_el.tail or "")
    name_tail = name_el.tail or ""
    length = el.get("len")
    optional = el.get("optional")
    optional_parts = _split_attr(optional)
    return Field(
        name=name,
        type_name=type_name,
        pointers=build_pointer_infos(type_name, constness, length, optional),
        is_const=is_const,
        array_size=_array_size(el, name_tail),
        optional=bool(optional_parts) and optional_parts[0] == "true",
        length=length,
        values=el.get("values"),
    )


def parse_c_declaration(text: str, name: str = "") -> Field:
    """Parse a plain C declaration such as `const char* name`."""
    tokens = re.findall(r"\*|\w+", text)
    words = [t for t in tokens if t not in ("*", "const", "struct")]
    if not words:
        raise GenerationError("MALFORMED_DOCUMENT", f"Unreadable declaration: {text!r}")
    if not name and len(words) > 1:
        name = words[-1]
        words = words[:-1]
        text = text[: text.rfind(name)]
    type_name = words[0]
    split_at = text.find(type_name)
    prefix = text[:split_at]
    tail = text[split_at + len(type_name):]
    is_const, constness = parse_pointer_levels(prefix, tail)
    return Field(
        name=name,
        type_name=type_name,
        pointers=build_pointer_infos(type_name, constness, None, None),
        is_const=is_const,
    )


_FUNCPOINTER_RE = re.compile(
    r"typedef\s+(?P<ret>.+?)\s*\(\s*(?:XRAPI_PTR\s*)?\*\s*(?P<name>\w+)\s*\)\s*\((?P<params>.*)\)\s*;",
    re.S,
)


def parse_funcpointer(t: ET.Element) -> FunctionPointerDecl:
    proto = t.find("proto")
    if proto is not None:
        returns = parse_field(proto)
        params = tuple(parse_field(p) for p in t.findall("param"))
        return FunctionPointerDecl(returns.name, returns, params)

    text = "".join(t.itertext())
    match = _FUNCPOINTER_RE.search(text)
    if match is None:
        raise GenerationError(
            "MALFORMED_DOCUMENT", f"Unreadable function pointer typedef: {text.strip()!r}"
        )
    name = match.group("name")
    returns = parse_c_declaration(match.group("ret"))
    pieces = [p.strip() for p in match.group("params").split(",")]
    params = []
    if pieces != ["void"] and pieces != [""]:
        params = [parse_c_declaration(p) for p in pieces]
    return FunctionPointerDecl(name, returns, tuple(params))


def _handle_dispatch(t: ET.Element, name: str) -> str:
    type_el = t.find("type")
    macro = (type_el.text or "").strip() if type_el is not None else ""
    if macro == "XR_DEFINE_HANDLE":
        return DISPATCH_WIDE
    if macro == "XR_DEFINE_OPAQUE_64" or macro.endswith("NON_DISPATCHABLE_HANDLE"):
        return DISPATCH_NARROW
    raise GenerationError(
        "UNKNOWN_DECLARATION_KIND", f"Handle {name} uses unknown macro {macro!r}"
    )


def parse_type_element(t: ET.Element) -> TypeDecl | None:
    """Parse one <type> element. Returns None for declarations with no binding."""
    cat = t.get("category", "")
    name = _element_name(t)

    if cat in ("include", "define"):
        return None
    if name is None and cat != "funcpointer":
        raise GenerationError(
            "MALFORMED_DOCUMENT",
            f"<type category={cat!r}> has no name: {ET.tostring(t, encoding='unicode').strip()}",
        )

    alias = t.get("alias")
    if alias:
        return AliasDecl(name, alias, cat)

    if not cat:
        return ExternalTypeDecl(name, t.get("requires", ""))

    if cat == "basetype":
        text = "".join(t.itertext())
        if "XR_DEFINE_ATOM" in text or "XR_DEFINE_OPAQUE_64" in text:
            return BaseTypeDecl(name, "uint64_t")
        type_el = t.find("type")
        if type_el is not None and type_el.text:
            return BaseTypeDecl(name, type_el.text.strip())
        return BaseTypeDecl(name, None)

    if cat == "handle":
        return HandleDecl(name, _handle_dispatch(t, name), t.get("parent"))

    if cat == "bitmask":
        type_el = t.find("type")
        storage = (type_el.text or "").strip() if type_el is not None else ""
        width = 64 if storage in ("XrFlags64", "uint64_t") else 32
        return BitmaskDecl(name, width, t.get("bitvalues") or t.get("requires"))

    if cat == "enum":
        return EnumTypeDecl(name)

    if cat in ("struct", "union"):
        fields = tuple(
            parse_field(m)
            for m in t.findall("member")
            if _supports_openxr_api(m.get("api"))
        )
        if cat == "union":
            return UnionDecl(name, fields)
        return StructDecl(
            name,
            fields,
            tuple(_split_attr(t.get("structextends"))),
            t.get("returnedonly") == "true",
        )

    if cat == "funcpointer":
        return parse_funcpointer(t)

    raise GenerationError(
        "UNKNOWN_DECLARATION_KIND", f"Type {name} has unknown category {cat!r}"
    )


def load_types(root: ET.Element) -> dict[str, TypeDecl]:
    types: dict[str, TypeDecl] = {}
    for t in root.findall("types/type"):
        if not _supports_openxr_api(t.get("api")):
            continue
        decl = parse_type_element(t)
        if decl is None:
            continue
        if decl.name in types:
            raise GenerationError(
                "DUPLICATE_DECLARATION", f"Type {decl.name} is declared twice"
            )
        types[decl.name] = decl
    return types


def extract_registry_version(root: ET.Element) -> str:
    for t in root.findall("types/type[@category='define']"):
        name_el = t.find("name")
        if name_el is None or name_el.text != "XR_CURRENT_API_VERSION":
            continue
        text = "".join(t.itertext())
        match = re.search(r"XR_MAKE_VERSION\(\s*(\d+)\s*,\s*(\d+)\s*,\s*(\d+)\s*\)", text)
        if match:
            return ".".join(match.groups())
    numbers = [f.get("number", "") for f in root.findall("feature")]
    numbers = [n for n in numbers if n]
    if numbers:
        return max(numbers, key=lambda n: tuple(int(p) for p in n.split(".")))
    return "unknown"


def _parse_enum_value(val: ET.Element, origin: str) -> EnumValue:
    name = val.get("name")
    if not name:
        raise GenerationError("MALFORMED_DOCUMENT", "<enum> without a name attribute")
    if val.get("alias"):
        return EnumValue(name, origin=origin, alias=val.get("alias"))
    if val.get("bitpos") is not None:
        return EnumValue(name, bitpos=_int_attr(val, "bitpos"), origin=origin)
    if val.get("value") is not None:
        return EnumValue(name, value=_int_attr(val, "value"), origin=origin)
    raise GenerationError("MALFORMED_DOCUMENT", f"Enum value {name} has no value")


def load_enum_blocks(
    root: ET.Element,
) -> tuple[dict[str, list[EnumValue]], dict[str, EnumDecl], dict[str, ApiConstant]]:
    values: dict[str, list[EnumValue]] = {}
    headers: dict[str, EnumDecl] = {}
    constants: dict[str, ApiConstant] = {}

    for block in root.findall("enums"):
        block_name = block.get("name", "")
        if block_name == "API Constants":
            for val in block.findall("enum"):
                name = val.get("name")
                if not name:
                    continue
                if val.get("alias") in constants:
                    constants[name] = constants[val.get("alias")]
                elif val.get("value") is not None:
                    parsed = _parse_constant_value(val.get("value"))
                    if parsed is None:
                        raise GenerationError(
                            "MALFORMED_DOCUMENT",
                            f"API constant {name} has an unreadable value: {val.get('value')!r}",
                        )
                    constants[name] = parsed
            continue
        if block_name in headers:
            raise GenerationError(
                "DUPLICATE_DECLARATION", f"Enum block {block_name} is declared twice"
            )
        kind = block.get("type", "enum")
        headers[block_name] = EnumDecl(
            block_name, kind, (), _int_attr(block, "bitwidth", "32")
        )
        values[block_name] = []
        for val in block.findall("enum"):
            if not _supports_openxr_api(val.get("api")):
                continue
            _add_enum_value(values[block_name], block_name, _parse_enum_value(val, ORIGIN_CORE))
    return values, headers, constants


def _add_enum_value(target: list[EnumValue], enum_name: str, value: EnumValue) -> None:
    for existing in target:
        if existing.name != value.name:
            continue
        if (existing.int_value, existing.alias) == (value.int_value, value.alias):
            return
        raise GenerationError(
            "DUPLICATE_DECLARATION",
            f"Enum value {value.name} in {enum_name} is declared twice with different values",
        )
    if value.bitpos is not None:
        for existing in target:
            if existing.bitpos == value.bitpos:
                raise GenerationError(
                    "DUPLICATE_DECLARATION",
                    f"Bit {value.bitpos} of {enum_name} is claimed by both "
                    f"{existing.name} and {value.name}",
                )
    target.append(value)


def _extension_enum_value(
    val: ET.Element, default_extnumber: int | None, origin: str
) -> EnumValue:
    offset = val.get("offset")
    if offset is None:
        return _parse_enum_value(val, origin)
    extnumber = val.get("extnumber")
    number = _int_attr(val, "extnumber") if extnumber is not None else default_extnumber
    if number is None:
        raise GenerationError(
            "MALFORMED_DOCUMENT",
            f"Enum value {val.get('name')} uses an offset outside an extension",
        )
    int_val = ENUM_BASE_VALUE + (number - 1) * ENUM_RANGE_SIZE + _int_attr(val, "offset")
    if val.get("dir") == "-":
        int_val = -int_val
    return EnumValue(val.get("name"), value=int_val, origin=origin)


def _collect_requires(
    parent: ET.Element,
    origin: str,
    default_extnumber: int | None,
    enum_values: dict[str, list[EnumValue]],
) -> tuple[list[str], list[str], list[str]]:
    types, commands, enums = [], [], []
    for req in parent.findall("require"):
        if not _supports_openxr_api(req.get("api")):
            continue
        for t in req.findall("type"):
            if t.get("name"):
                types.append(t.get("name"))
        for c in req.findall("command"):
            if c.get("name"):
                commands.append(c.get("name"))
        for val in req.findall("enum"):
            extends = val.get("extends")
            if not extends:
                continue
            if extends not in enum_values:
                raise GenerationError(
                    "DANGLING_TYPE_REFERENCE",
                    f"{val.get('name')} extends unknown enum {extends}",
                )
            value = _extension_enum_value(val, default_extnumber, origin)
            _add_enum_value(enum_values[extends], extends, value)
            enums.append(value.name)
    return types, commands, enums


def load_features(
    root: ET.Element, enum_values: dict[str, list[EnumValue]]
) -> list[Feature]:
    features = []
    for feat in root.findall("feature"):
        if not _supports_openxr_api(feat.get("api", API_NAME)):
            continue
        types, commands, enums = _collect_requires(feat, ORIGIN_CORE, None, enum_values)
        features.append(
            Feature(
                feat.get("name", ""),
                feat.get("number", ""),
                tuple(types),
                tuple(commands),
                tuple(enums),
            )
        )
    return features


def _extension_version(ext: ET.Element) -> int:
    for val in ext.findall("require/enum"):
        name = val.get("name", "")
        if name.endswith("_SPEC_VERSION") and val.get("value"):
            try:
                return _parse_c_int(val.get("value"))
            except ValueError:
                return 0
    return 0


def load_extensions(
    root: ET.Element, enum_values: dict[str, list[EnumValue]]
) -> list[Extension]:
    extensions = []
    for ext in root.findall("extensions/extension"):
        supported = ext.get("supported", API_NAME)
        if supported == "disabled" or not _supports_openxr_api(supported):
            continue
        name = ext.get("name", "")
        number_text = ext.get("number")
        if not name or number_text is None:
            raise GenerationError(
                "MALFORMED_DOCUMENT", f"Extension {name or '?'} lacks a name or number"
            )
        number = _int_attr(ext, "number")
        types, commands, enums = _collect_requires(ext, name, number, enum_values)
        parts = name.split("_")
        extensions.append(
            Extension(
                name=name,
                number=number,
                vendor_tag=parts[1] if len(parts) > 2 else "",
                version=_extension_version(ext),
                ext_type=ext.get("type", ""),
                promoted_to=ext.get("promotedto"),
                depends=ext.get("depends") or ext.get("requires") or "",
                types=tuple(types),
                commands=tuple(commands),
                enums=tuple(enums),
            )
        )
    return extensions


def load_commands(root: ET.Element) -> tuple[dict[str, CommandDecl], dict[str, AliasDecl]]:
    commands: dict[str, CommandDecl] = {}
    aliases: dict[str, AliasDecl] = {}
    for cmd in root.findall("commands/command"):
        if not _supports_openxr_api(cmd.get("api")):
            continue
        alias = cmd.get("alias")
        if alias:
            name = cmd.get("name", "")
            if name in commands or name in aliases:
                raise GenerationError(
                    "DUPLICATE_DECLARATION", f"Command {name} is declared twice"
                )
            aliases[name] = AliasDecl(name, alias, "command")
            continue
        proto = cmd.find("proto")
        if proto is None:
            raise GenerationError("MALFORMED_DOCUMENT", "<command> without a <proto>")
        returns = parse_field(proto)
        name = returns.name
        if name in commands or name in aliases:
            raise GenerationError("DUPLICATE_DECLARATION", f"Command {name} is declared twice")
        params = tuple(
            parse_field(p)
            for p in cmd.findall("param")
            if _supports_openxr_api(p.get("api"))
        )
        commands[name] = CommandDecl(
            name=name,
            returns=Field("", returns.type_name, returns.pointers, returns.is_const),
            params=params,
            success_codes=tuple(_split_attr(cmd.get("successcodes"))),
            error_codes=tuple(_split_attr(cmd.get("errorcodes"))),
        )
    return commands, aliases


def _record_origins(
    features: list[Feature], extensions: list[Extension]
) -> dict[str, str]:
    origins: dict[str, str] = {}
    for feat in features:
        for name in (*feat.types, *feat.commands, *feat.enums):
            origins.setdefault(name, ORIGIN_CORE)
    for ext in extensions:
        for name in (*ext.types, *ext.commands, *ext.enums):
            origins.setdefault(name, ext.name)
    return origins


def _check_reference(name: str, known: set[str], owner: str) -> None:
    if name not in known:
        raise GenerationError(
            "DANGLING_TYPE_REFERENCE", f"{owner} refers to undeclared type {name}"
        )


def validate_references(
    types: Mapping[str, TypeDecl],
    enums: Mapping[str, EnumDecl],
    commands: Mapping[str, CommandDecl],
    command_aliases: Mapping[str, AliasDecl],
    constants: Mapping[str, ApiConstant],
) -> None:
    """Fail on any reference to a name the document never declares."""
    known = set(types) | set(enums) | set(C_TO_ZIG)

    def check_fields(fields: Iterable[Field], owner: str) -> None:
        for f in fields:
            _check_reference(f.type_name, known, owner)
            size = f.array_size
            if size is not None and not size.isdigit() and size not in constants:
                raise GenerationError(
                    "DANGLING_TYPE_REFERENCE",
                    f"{owner}.{f.name} uses undeclared array size {size}",
                )

    for decl in types.values():
        if isinstance(decl, AliasDecl):
            _check_reference(decl.target, set(types), decl.name)
        elif isinstance(decl, BaseTypeDecl) and decl.underlying is not None:
            _check_reference(decl.underlying, known, decl.name)
        elif isinstance(decl, BitmaskDecl) and decl.bits_enum is not None:
            _check_reference(decl.bits_enum, set(enums), decl.name)
        elif isinstance(decl, UnionDecl):
            check_fields(decl.fields, decl.name)
        elif isinstance(decl, StructDecl):
            check_fields(decl.fields, decl.name)
            for parent in decl.extends:
                _check_reference(parent, set(types), decl.name)
        elif isinstance(decl, FunctionPointerDecl):
            check_fields((decl.returns, *decl.params), decl.name)

    for name, value in constants.items():
        if isinstance(value, SizeOfConstant):
            _check_reference(value.type_name, known, name)

    for cmd in commands.values():
        check_fields((cmd.returns, *cmd.params), cmd.name)
    for alias in command_aliases.values():
        if alias.target not in commands and alias.target not in command_aliases:
            raise GenerationError(
                "DANGLING_TYPE_REFERENCE",
                f"Command alias {alias.name} targets undeclared command {alias.target}",
            )


def _check_bit_widths(
    types: Mapping[str, TypeDecl], enum_values: Mapping[str, list[EnumValue]]
) -> None:
    for decl in types.values():
        if not isinstance(decl, BitmaskDecl) or decl.bits_enum is None:
            continue
        for value in enum_values.get(decl.bits_enum, ()):
            if value.bitpos is not None and value.bitpos >= decl.width:
                raise GenerationError(
                    "MALFORMED_DOCUMENT",
                    f"{value.name} uses bit {value.bitpos} of {decl.width}-bit {decl.name}",
                )


def load_registry(root: ET.Element) -> RegistryDocument:
    """Build the immutable registry model from a parsed <registry> element."""
    if root.tag != "registry":
        raise GenerationError(
            "MALFORMED_DOCUMENT", f"Root element is <{root.tag}>, expected <registry>"
        )

    tags = tuple(t.get("name") for t in root.findall("tags/tag") if t.get("name"))
    types = load_types(root)
    enum_values, headers, constants = load_enum_blocks(root)

    # Enum types declared without a values block still get an (empty) enum.
    for decl in types.values():
        if isinstance(decl, EnumTypeDecl) and decl.name not in headers:
            headers[decl.name] = EnumDecl(decl.name, "enum", ())
            enum_values[decl.name] = []

    commands, command_aliases = load_commands(root)
    features = load_features(root, enum_values)
    extensions = load_extensions(root, enum_values)
    origins = _record_origins(features, extensions)

    validate_references(types, headers, commands, command_aliases, constants)
    _check_bit_widths(types, enum_values)

    enums = {
        name: EnumDecl(name, header.kind, tuple(enum_values[name]), header.bit_width)
        for name, header in headers.items()
    }

    for name, cmd in commands.items():
        if name in origins and origins[name] != ORIGIN_CORE:
            commands[name] = CommandDecl(
                cmd.name,
                cmd.returns,
                cmd.params,
                cmd.success_codes,
                cmd.error_codes,
                origins[name],
            )

    return RegistryDocument(
        tags=tags,
        types=MappingProxyType(types),
        enums=MappingProxyType(enums),
        commands=MappingProxyType(commands),
        command_aliases=MappingProxyType(command_aliases),
        api_constants=MappingProxyType(constants),
        features=tuple(features),
        extensions=tuple(extensions),
        origins=MappingProxyType(origins),
        version=extract_registry_version(root),
    )


def parse_registry(document_text: str | bytes) -> RegistryDocument:
    """Parse registry XML into a RegistryDocument.

    Raw bytes are decoded by the XML parser, honouring the document's own
    encoding declaration.

    Raises:
        GenerationError: MALFORMED_DOCUMENT when the input is not well-formed
            XML in a readable encoding, or any loader code when the document
            is inconsistent.
    """
    try:
        root = ET.fromstring(document_text)
    except ET.ParseError as exc:
        raise GenerationError("MALFORMED_DOCUMENT", f"Registry is not valid XML: {exc}") from exc
    return load_registry(root)


# ===--- Dependency ordering ---=== #


@dataclass(frozen=True)
class TypeGraph:
    """Resolved view of the registry's type declarations.

    order holds every non-alias declaration in emission order. canonical maps
    each type name taking part in an alias group to the spelling the bindings
    declare; aliases lists (alias spelling, canonical spelling) pairs.
    """

    order: tuple[TypeDecl, ...]
    canonical: Mapping[str, str]
    aliases: tuple[tuple[str, str], ...]


def resolve_alias_target(types: Mapping[str, TypeDecl], name: str) -> str:
    """Follow an alias chain to the declaration it finally names."""
    seen = [name]
    current = name
    while isinstance(types.get(current), AliasDecl):
        current = types[current].target
        if current in seen:
            chain = " -> ".join((*seen, current))
            raise GenerationError("CYCLIC_TYPE_DEPENDENCY", f"Alias cycle: {chain}")
        seen.append(current)
    if current not in types:
        raise GenerationError(
            "DANGLING_TYPE_REFERENCE", f"Alias {name} resolves to undeclared type {current}"
        )
    return current


def resolve_aliases(document: RegistryDocument) -> dict[str, str]:
    """Pick one canonical spelling per alias group.

    The terminal declaration's name wins unless it comes from an extension
    and a core name exists in the group; then the first core name wins.
    """
    groups: dict[str, list[str]] = defaultdict(list)
    for name in document.types:
        groups[resolve_alias_target(document.types, name)].append(name)

    canonical = {}
    for terminal, names in groups.items():
        preferred = terminal
        if not document.is_core(terminal):
            core_names = [n for n in names if document.is_core(n)]
            if core_names:
                preferred = core_names[0]
        for n in names:
            canonical[n] = preferred
    return canonical


def value_dependencies(
    decl: TypeDecl, types: Mapping[str, TypeDecl]
) -> set[str]:
    """Types a struct/union contains by value (fixed arrays included)."""
    if not isinstance(decl, (StructDecl, UnionDecl)):
        return set()
    deps = set()
    for f in decl.fields:
        if f.pointers or f.type_name not in types:
            continue
        deps.add(resolve_alias_target(types, f.type_name))
    return deps


def resolve_type_order(document: RegistryDocument) -> tuple[TypeDecl, ...]:
    """Order non-alias declarations so by-value dependencies come first.

    Ties are broken by position in the source document, so the same input
    always yields the same order.
    """
    types = document.types
    index = {
        name: i
        for i, name in enumerate(types)
        if not isinstance(types[name], AliasDecl)
    }
    in_degree = {name: 0 for name in index}
    dependents = defaultdict(list)
    for name in index:
        for dep in value_dependencies(types[name], types):
            dependents[dep].append(name)
            in_degree[name] += 1

    heap = [(index[name], name) for name, degree in in_degree.items() if degree == 0]
    heapq.heapify(heap)
    result = []
    while heap:
        _, name = heapq.heappop(heap)
        result.append(name)
        for dependent in dependents[name]:
            in_degree[dependent] -= 1
            if in_degree[dependent] == 0:
                heapq.heappush(heap, (index[dependent], dependent))

    if len(result) != len(index):
        remaining = sorted(set(index) - set(result), key=index.get)
        raise GenerationError(
            "CYCLIC_TYPE_DEPENDENCY",
            f"By-value dependency cycle between: {', '.join(remaining)}",
        )
    return tuple(types[name] for name in result)


def resolve(document: RegistryDocument) -> TypeGraph:
    canonical = resolve_aliases(document)
    order = resolve_type_order(document)
    aliases = []
    for name in document.types:
        target = canonical[name]
        if name != target:
            aliases.append((name, target))
    return TypeGraph(order, MappingProxyType(canonical), tuple(aliases))


# ===--- Identifier rendering ---=== #

CASE_STYLES = ("snake", "screaming_snake", "camel", "title_camel")

_VALID_ID_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_INT_TYPE_RE = re.compile(r"[iu][0-9]+")


def is_zig_primitive_type(name: str) -> bool:
    if _INT_TYPE_RE.fullmatch(name):
        return True
    return name in ZIG_PRIMITIVES


def is_valid_zig_identifier(name: str) -> bool:
    return bool(_VALID_ID_RE.fullmatch(name)) and name != "_" and name not in ZIG_KEYWORDS


def _quote_identifier(name: str) -> str:
    out = []
    for ch in name:
        if ch in ('"', "\\"):
            out.append("\\" + ch)
        elif " " <= ch <= "~":
            out.append(ch)
        else:
            out.append("".join(f"\\x{b:02x}" for b in ch.encode("utf-8")))
    return '@"' + "".join(out) + '"'


def write_identifier(name: str) -> str:
    """Render name as a Zig identifier, escaping it when needed."""
    if is_zig_primitive_type(name) or not is_valid_zig_identifier(name):
        return _quote_identifier(name)
    return name


def unwrap_identifier(name: str) -> str:
    """Strip an existing @"..." escape so it is not applied twice."""
    if name.startswith('@"') and name.endswith('"') and len(name) >= 3:
        return re.sub(r"\\(.)", r"\1", name[2:-1])
    return name


def _is_lower(ch: str) -> bool:
    return "a" <= ch <= "z"


def _is_upper(ch: str) -> bool:
    return "A" <= ch <= "Z"


def _next_boundary(text: str, offset: int) -> int:
    # Digits belong to the word around them and carry the case of the last letter.
    i = offset + 1
    letter_lower = _is_lower(text[offset])
    while True:
        if i == len(text) or text[i] == "_":
            return i
        ch = text[i]
        if _is_upper(ch) and letter_lower:
            return i
        if i != offset + 1 and _is_upper(text[i - 1]) and _is_lower(ch):
            return i - 1
        if _is_lower(ch) or _is_upper(ch):
            letter_lower = _is_lower(ch)
        i += 1


def segment_words(text: str) -> list[str]:
    """Split an identifier into words at underscores and case transitions.

    A run of capitals followed by a lowercase letter ends one letter early,
    so `OpenGLESView` splits as Open, GLES, View.
    """
    words = []
    offset = 0
    while offset < len(text):
        if text[offset] == "_":
            offset += 1
            continue
        end = _next_boundary(text, offset)
        words.append(text[offset:end])
        offset = end
    return words


class IdRenderer:
    """Renders registry names as Zig identifiers in a requested case style.

    Words are split by segment_words. A trailing vendor tag from the
    registry's tag list (or EXTX) is split off first and reattached: as
    written in the camel styles, case-matched after an underscore in the
    snake styles. render escapes the result with write_identifier when it is
    not a plain Zig identifier.

    A renderer reuses one scratch buffer, cleared on every call; results are
    copied out as new strings. It is not safe to share between threads.
    """

    def __init__(self, tags: Iterable[str]):
        self.tags = tuple(tags)
        self._buffer: list[str] = []

    def get_author_tag(self, raw_id: str) -> str | None:
        for tag in self.tags:
            if raw_id.endswith(tag):
                return tag
        if raw_id.endswith(FALLBACK_AUTHOR_TAG):
            return FALLBACK_AUTHOR_TAG
        return None

    def strip_author_tag(self, raw_id: str) -> str:
        tag = self.get_author_tag(raw_id)
        if tag is None:
            return raw_id
        return raw_id[: len(raw_id) - len(tag)].rstrip("_")

    def _render_snake(self, screaming: bool, words: list[str], tag: str | None) -> None:
        for i, word in enumerate(words):
            if i:
                self._buffer.append("_")
            self._buffer.append(word.upper() if screaming else word.lower())
        if tag:
            if words:
                self._buffer.append("_")
            self._buffer.append(tag.upper() if screaming else tag.lower())

    def _render_camel(self, title: bool, words: list[str], tag: str | None) -> None:
        lower_first = not title
        for word in words:
            i = 0
            while i < len(word) and word[i].isdigit():
                self._buffer.append(word[i])
                i += 1
            if i == len(word):
                continue
            head = word[i]
            self._buffer.append(head.lower() if i == 0 and lower_first else head.upper())
            self._buffer.append(word[i + 1:].lower())
            lower_first = False
        if tag:
            self._buffer.append(tag)

    def convert(self, raw_id: str, style: str) -> str:
        """Case-convert raw_id without escaping the result."""
        raw_id = unwrap_identifier(raw_id)
        if len(raw_id) > MAX_IDENTIFIER_LENGTH:
            raise GenerationError(
                "IDENTIFIER_TOO_LONG",
                f"Identifier of {len(raw_id)} characters exceeds "
                f"{MAX_IDENTIFIER_LENGTH}: {raw_id[:40]}...",
            )
        tag = self.get_author_tag(raw_id)
        body = raw_id[: len(raw_id) - len(tag)] if tag else raw_id
        words = segment_words(body)

        self._buffer.clear()
        if style == "snake":
            self._render_snake(False, words, tag)
        elif style == "screaming_snake":
            self._render_snake(True, words, tag)
        elif style == "camel":
            self._render_camel(False, words, tag)
        elif style == "title_camel":
            self._render_camel(True, words, tag)
        else:
            raise ValueError(f"Unknown case style: {style}")
        return "".join(self._buffer)

    def render(self, raw_id: str, style: str) -> str:
        return write_identifier(self.convert(raw_id, style))


def strip_type_prefix(name: str) -> str:
    if name.startswith(TYPE_PREFIX) and name[len(TYPE_PREFIX):][:1].isupper():
        return name[len(TYPE_PREFIX):]
    return name


def render_type_name(renderer: IdRenderer, name: str) -> str:
    """XrSessionCreateInfo -> SessionCreateInfo; PFN_xrVoidFunction -> PfnVoidFunction.

    Names outside the registry's namespace are kept verbatim.
    """
    if name.startswith(FUNCPOINTER_PREFIX):
        return write_identifier("Pfn" + renderer.convert(name[len(FUNCPOINTER_PREFIX):], "title_camel"))
    stripped = strip_type_prefix(name)
    if stripped == name:
        return write_identifier(name)
    return renderer.render(stripped, "title_camel")


def render_command_name(renderer: IdRenderer, name: str) -> str:
    """xrCreateSession -> createSession."""
    return renderer.render(name.removeprefix(COMMAND_PREFIX), "camel")


def render_pfn_name(renderer: IdRenderer, command_name: str) -> str:
    """xrCreateSession -> PfnCreateSession."""
    body = renderer.convert(command_name.removeprefix(COMMAND_PREFIX), "title_camel")
    return write_identifier("Pfn" + body)


def render_field_name(renderer: IdRenderer, name: str) -> str:
    return renderer.render(name, "snake")


def render_constant_name(renderer: IdRenderer, name: str) -> str:
    """XR_MAX_EXTENSION_NAME_SIZE -> MAX_EXTENSION_NAME_SIZE."""
    return renderer.render(name.removeprefix(ENUM_PREFIX), "screaming_snake")


def render_enum_field_name(
    renderer: IdRenderer, enum_name: str, value_name: str, is_bitmask: bool = False
) -> str:
    """Render an enum or flag value name relative to its owning type.

    Words shared with the owning type's screaming name are dropped, as is a
    trailing BIT on flag values. A vendor tag is kept only when it differs
    from the owning type's tag:

        XrReferenceSpaceType, XR_REFERENCE_SPACE_TYPE_VIEW -> view
        XrSwapchainUsageFlagBits, XR_SWAPCHAIN_USAGE_SAMPLED_BIT -> sampled
    """
    type_tag = renderer.get_author_tag(enum_name)
    value_tag = renderer.get_author_tag(value_name)

    type_words = [w.upper() for w in segment_words(renderer.strip_author_tag(enum_name))]
    if is_bitmask and type_words[-2:] == ["FLAG", "BITS"]:
        type_words = type_words[:-2]
    value_words = [w.upper() for w in segment_words(renderer.strip_author_tag(value_name))]

    shared = 0
    while (
        shared < len(type_words)
        and shared < len(value_words) - 1
        and type_words[shared] == value_words[shared]
    ):
        shared += 1
    words = value_words[shared:]
    if is_bitmask and len(words) > 1 and words[-1] == "BIT":
        words = words[:-1]

    text = "_".join(w.lower() for w in words)
    if value_tag and value_tag != type_tag:
        text = f"{text}_{value_tag.lower()}"
    return write_identifier(text)


def render_error_name(renderer: IdRenderer, value_name: str) -> str:
    """XR_ERROR_VALIDATION_FAILURE -> ValidationFailure."""
    tag = renderer.get_author_tag(value_name)
    words = segment_words(renderer.strip_author_tag(value_name))
    if words and words[0].upper() == "XR":
        words = words[1:]
    if len(words) > 1 and words[0].upper() == "ERROR":
        words = words[1:]
    body = "_".join(words) + (f"_{tag}" if tag else "")
    return write_identifier(renderer.convert(body, "title_camel"))


def render_extension_name(renderer: IdRenderer, name: str) -> str:
    """XR_KHR_composition_layer_depth -> khr_composition_layer_depth."""
    return renderer.render(name.removeprefix(ENUM_PREFIX), "snake")


# ===--- Command lowering ---=== #

DIRECTION_IN = "in"
DIRECTION_OUT = "out"
DIRECTION_IN_OUT = "in_out"
DIRECTION_ARRAY_IN_OUT = "array_in_out"

RETURN_VOID = "void"
RETURN_SINGLE = "single"
RETURN_AGGREGATE = "aggregate"

_LENGTH_PARAM_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


@dataclass(frozen=True)
class LoweredParam:
    """A command parameter as the safe wrapper sees it.

    elided parameters are length counts the wrapper derives from the slice
    named by length_of; they never appear in the wrapper's signature.
    """

    param: Field
    direction: str
    length_param: str | None = None
    elided: bool = False
    length_of: tuple[str, ...] = ()


@dataclass(frozen=True)
class ResultPartition:
    """Success and error subsets of one result enum."""

    enum_name: str
    success: tuple[str, ...]
    error: tuple[str, ...]

    def is_error(self, value_name: str) -> bool:
        return value_name in self.error


@dataclass(frozen=True)
class WrapperSignature:
    command: CommandDecl
    params: tuple[LoweredParam, ...]
    partition: ResultPartition | None

    @property
    def visible_params(self) -> tuple[LoweredParam, ...]:
        return tuple(
            p for p in self.params if not p.elided and p.direction != DIRECTION_OUT
        )

    @property
    def outputs(self) -> tuple[LoweredParam, ...]:
        return tuple(p for p in self.params if p.direction == DIRECTION_OUT)

    @property
    def return_shape(self) -> str:
        count = len(self.outputs)
        if count == 0:
            return RETURN_VOID
        if count == 1:
            return RETURN_SINGLE
        return RETURN_AGGREGATE


def resolve_length_link(
    command: CommandDecl, param: Field, params_by_name: Mapping[str, Field]
) -> str | None:
    """Name of the parameter holding param's element count, if it can be elided.

    Member paths (count->value) and expressions are passed through untouched.

    Raises:
        GenerationError: AMBIGUOUS_LENGTH_LINK when the registry names more
            length candidates than the parameter has pointer levels, names an
            unknown parameter, or names a pointer parameter.
    """
    if not param.pointers or not param.length:
        return None
    parts = _split_attr(param.length)
    if len(parts) > len(param.pointers):
        raise GenerationError(
            "AMBIGUOUS_LENGTH_LINK",
            f"{command.name}.{param.name} names several length candidates: {param.length}",
        )
    head = parts[0]
    if head in ("null-terminated", "1") or not _LENGTH_PARAM_RE.fullmatch(head):
        return None
    target = params_by_name.get(head)
    if target is None:
        raise GenerationError(
            "AMBIGUOUS_LENGTH_LINK",
            f"{command.name}.{param.name} has length {head}, which is not a parameter",
        )
    if target.pointers:
        raise GenerationError(
            "AMBIGUOUS_LENGTH_LINK",
            f"{command.name}.{param.name} has length {head}, which is a pointer parameter",
        )
    return head


def classify_parameter(param: Field, length_param: str | None = None) -> str:
    """Direction of one parameter, from its pointer metadata alone."""
    if not param.pointers:
        return DIRECTION_IN
    outer = param.pointers[0]
    if outer.constant:
        return DIRECTION_IN
    if length_param is not None or outer.multiplicity == POINTER_LENGTH_LINKED:
        return DIRECTION_ARRAY_IN_OUT
    if outer.nullable or outer.multiplicity != POINTER_SINGLE:
        return DIRECTION_IN_OUT
    # Untyped buffers stay caller-owned.
    if param.type_name == "void" and len(param.pointers) == 1:
        return DIRECTION_IN_OUT
    return DIRECTION_OUT


def lower_command(
    command: CommandDecl, partitions: Mapping[str, ResultPartition]
) -> WrapperSignature:
    params_by_name = {p.name: p for p in command.params}
    links = {}
    for p in command.params:
        length = resolve_length_link(command, p, params_by_name)
        if length is not None:
            links[p.name] = length

    arrays_by_length: dict[str, list[str]] = defaultdict(list)
    for array_name, length in links.items():
        arrays_by_length[length].append(array_name)

    lowered = []
    for p in command.params:
        if p.name in arrays_by_length:
            lowered.append(
                LoweredParam(
                    p,
                    DIRECTION_IN,
                    elided=True,
                    length_of=tuple(arrays_by_length[p.name]),
                )
            )
            continue
        length = links.get(p.name)
        lowered.append(LoweredParam(p, classify_parameter(p, length), length_param=length))

    partition = None
    if not command.returns.pointers:
        partition = partitions.get(command.returns.type_name)
    return WrapperSignature(command, tuple(lowered), partition)


def partition_results(document: RegistryDocument) -> dict[str, ResultPartition]:
    """Split every enum used as a command's return type into success and error.

    A value listed as an error code by any command is an error; otherwise a
    value listed as a success code is a success; otherwise negative values
    are errors. PENDING_RESULT_OVERRIDES always land in the error subset.
    Aliases follow their target.
    """
    listed_success = set()
    listed_error = set()
    result_enums = []
    for cmd in document.commands.values():
        listed_success.update(cmd.success_codes)
        listed_error.update(cmd.error_codes)
        name = cmd.returns.type_name
        if cmd.returns.pointers or name not in document.enums:
            continue
        if document.enums[name].is_bitmask or name in result_enums:
            continue
        result_enums.append(name)

    partitions = {}
    for enum_name in result_enums:
        decl = document.enums[enum_name]
        errors = set()
        success, error = [], []
        for value in decl.values:
            if value.alias:
                continue
            if value.name in PENDING_RESULT_OVERRIDES or value.name in listed_error:
                is_error = True
            elif value.name in listed_success:
                is_error = False
            else:
                is_error = value.int_value is not None and value.int_value < 0
            (error if is_error else success).append(value.name)
            if is_error:
                errors.add(value.name)
        for value in decl.values:
            if not value.alias:
                continue
            target = value.alias
            while target not in errors and target not in success:
                aliased = decl.find(target)
                if aliased is None or aliased.alias is None:
                    break
                target = aliased.alias
            (error if target in errors else success).append(value.name)
        partitions[enum_name] = ResultPartition(enum_name, tuple(success), tuple(error))
    return partitions


# ===--- Zig type mapping ---=== #


@dataclass(frozen=True)
class EmitContext:
    """Everything the emitter reads: the document plus derived, read-only views."""

    document: RegistryDocument
    graph: TypeGraph
    renderer: IdRenderer
    partitions: Mapping[str, ResultPartition]
    flag_owners: Mapping[str, str]
    member_cache: dict = field(default_factory=dict, compare=False, repr=False)


def build_emit_context(document: RegistryDocument) -> EmitContext:
    flag_owners: dict[str, str] = {}
    for decl in document.types.values():
        if isinstance(decl, BitmaskDecl) and decl.bits_enum:
            flag_owners.setdefault(decl.bits_enum, decl.name)
    return EmitContext(
        document=document,
        graph=resolve(document),
        renderer=IdRenderer(document.tags),
        partitions=MappingProxyType(partition_results(document)),
        flag_owners=MappingProxyType(flag_owners),
    )


def declared_name(ctx: EmitContext, name: str) -> str:
    return render_type_name(ctx.renderer, ctx.graph.canonical.get(name, name))


def zig_base_type(ctx: EmitContext, type_name: str) -> str:
    if type_name in C_TO_ZIG:
        return C_TO_ZIG[type_name]
    if type_name in PLATFORM_TYPES:
        return PLATFORM_TYPES[type_name]
    if type_name in ctx.document.types or type_name in ctx.document.enums:
        return declared_name(ctx, type_name)
    raise GenerationError(
        "DANGLING_TYPE_REFERENCE", f"No Zig type for undeclared {type_name}"
    )


def effective_pointers(f: Field) -> tuple[PointerInfo, ...]:
    """Pointer levels as emitted: the structure-chain link is always nullable."""
    if f.name == NEXT_CHAIN_FIELD and f.pointers and not f.pointers[0].nullable:
        return (replace(f.pointers[0], nullable=True), *f.pointers[1:])
    return f.pointers


def _pointer_prefix(level: PointerInfo) -> str:
    prefix = "?" if level.nullable else ""
    if level.multiplicity == POINTER_SINGLE:
        prefix += "*"
    elif level.multiplicity == POINTER_NULL_TERMINATED:
        prefix += "[*:0]"
    else:
        prefix += "[*]"
    if level.constant:
        prefix += "const "
    return prefix


def zig_pointer_type(pointee: str, levels: tuple[PointerInfo, ...]) -> str:
    text = pointee
    for i, level in enumerate(reversed(levels)):
        if i == 0 and text == "void":
            text = "anyopaque" if level.multiplicity == POINTER_SINGLE else "u8"
        text = _pointer_prefix(level) + text
    return text


def zig_array_len(ctx: EmitContext, size: str) -> str:
    if size.isdigit():
        return size
    return render_constant_name(ctx.renderer, size)


def _is_funcpointer(ctx: EmitContext, type_name: str) -> bool:
    if type_name not in ctx.document.types:
        return False
    target = resolve_alias_target(ctx.document.types, type_name)
    return isinstance(ctx.document.types[target], FunctionPointerDecl)


def zig_field_type(ctx: EmitContext, f: Field) -> str:
    base = zig_base_type(ctx, f.type_name)
    if f.pointers:
        return zig_pointer_type(base, effective_pointers(f))
    if f.array_size is not None:
        return f"[{zig_array_len(ctx, f.array_size)}]{base}"
    if f.optional and _is_funcpointer(ctx, f.type_name):
        return "?" + base
    return base


def zig_pointee_type(ctx: EmitContext, f: Field) -> str:
    """Type behind the outermost pointer of f."""
    base = zig_base_type(ctx, f.type_name)
    inner = f.pointers[1:]
    if not inner:
        return base
    return zig_pointer_type(base, inner)


def zig_fn_type(ctx: EmitContext, returns: Field, params: Iterable[Field]) -> str:
    args = ", ".join(
        f"{render_field_name(ctx.renderer, p.name)}: {zig_field_type(ctx, p)}"
        for p in params
    )
    return f"*const fn ({args}) callconv(.c) {zig_field_type(ctx, returns)}"


# ===--- Enums ---=== #


@dataclass(frozen=True)
class EnumMembers:
    """Rendered layout of one registry enum.

    fields are (zig name, value, registry name) for each distinct value.
    constants are (zig name, zig field name) for duplicates and aliases.
    tags maps every registry value name to the field it names.
    """

    fields: tuple[tuple[str, int, str], ...]
    constants: tuple[tuple[str, str], ...]
    tags: Mapping[str, str]


def _unique_name(candidate: str, fallback: str, used: set[str]) -> str:
    name = candidate
    if name in used:
        name = fallback
    suffix = 2
    while name in used:
        name = f"{fallback}_{suffix}"
        suffix += 1
    used.add(name)
    return name


def _alias_terminal(decl: EnumDecl, value: EnumValue) -> str | None:
    seen = {value.name}
    target = value.alias
    while target is not None:
        aliased = decl.find(target)
        if aliased is None or aliased.name in seen:
            return None
        if aliased.alias is None:
            return aliased.name
        seen.add(aliased.name)
        target = aliased.alias
    return None


def enum_members(ctx: EmitContext, decl: EnumDecl) -> EnumMembers:
    cached = ctx.member_cache.get(decl.name)
    if cached is not None:
        return cached
    r = ctx.renderer
    used: set[str] = set()
    fields = []
    constants = []
    tags: dict[str, str] = {}
    by_value: dict[int, str] = {}

    for value in decl.values:
        if value.alias:
            continue
        name = _unique_name(
            render_enum_field_name(r, decl.name, value.name),
            r.render(value.name, "snake"),
            used,
        )
        if value.int_value in by_value:
            constants.append((name, by_value[value.int_value]))
            tags[value.name] = by_value[value.int_value]
        else:
            fields.append((name, value.int_value, value.name))
            by_value[value.int_value] = name
            tags[value.name] = name

    for value in decl.values:
        if not value.alias:
            continue
        terminal = _alias_terminal(decl, value)
        if terminal is None:
            continue
        name = render_enum_field_name(r, decl.name, value.name)
        tags[value.name] = tags[terminal]
        if name in used:
            continue
        used.add(name)
        constants.append((name, tags[terminal]))

    members = EnumMembers(tuple(fields), tuple(constants), MappingProxyType(tags))
    ctx.member_cache[decl.name] = members
    return members


def enum_literal(ctx: EmitContext, enum_name: str, value_name: str) -> str:
    decl = ctx.document.enums.get(enum_name)
    if decl is None:
        return "." + render_enum_field_name(ctx.renderer, enum_name, value_name)
    tag = enum_members(ctx, decl).tags.get(value_name)
    if tag is None:
        raise GenerationError(
            "DANGLING_TYPE_REFERENCE", f"{value_name} is not a value of {enum_name}"
        )
    return "." + tag


def generate_enum(ctx: EmitContext, name: str, decl: EnumDecl) -> list[str]:
    members = enum_members(ctx, decl)
    values = [v for _, v, _ in members.fields]
    tag_type = "i32"
    if values and (min(values) < -(2**31) or max(values) >= 2**31):
        tag_type = "i64"
    lines = [f"pub const {name} = enum({tag_type}) {{"]
    for field_name, value, _ in members.fields:
        lines.append(f"    {field_name} = {value},")
    lines.append("    _,")
    if members.constants:
        lines.append("")
        for const_name, target in members.constants:
            lines.append(f"    pub const {const_name} = {name}.{target};")
    lines.append("};")
    return lines


# ===--- Flags ---=== #


@dataclass(frozen=True)
class FlagValue:
    """A flag-set value: named flags that are set plus any undefined bits."""

    flags: frozenset[str]
    undefined_bits: int = 0


@dataclass(frozen=True)
class FlagLayout:
    """Bit layout of one bitmask type.

    Mirrors the algebra emitted on the Zig packed struct so it can be
    checked without a Zig toolchain: merge/intersect/subtract keep
    undefined bits, complement only ever yields defined flags.
    """

    name: str
    width: int
    bits: tuple[tuple[str, int], ...]
    masks: tuple[tuple[str, int], ...] = ()

    @property
    def storage_mask(self) -> int:
        return (1 << self.width) - 1

    @property
    def defined_mask(self) -> int:
        mask = 0
        for _, position in self.bits:
            mask |= 1 << position
        return mask

    def fields(self) -> list[tuple[int, str | None]]:
        """(bit position, flag name or None for a reserved bit) for every bit."""
        named = {position: name for name, position in self.bits}
        return [(i, named.get(i)) for i in range(self.width)]

    def to_int(self, value: FlagValue) -> int:
        bits = value.undefined_bits
        positions = dict(self.bits)
        for flag in value.flags:
            if flag not in positions:
                raise KeyError(f"{self.name} has no flag {flag}")
            bits |= 1 << positions[flag]
        return bits & self.storage_mask

    def from_int(self, bits: int) -> FlagValue:
        bits &= self.storage_mask
        flags = frozenset(name for name, position in self.bits if bits >> position & 1)
        return FlagValue(flags, bits & ~self.defined_mask)

    def merge(self, lhs: FlagValue, rhs: FlagValue) -> FlagValue:
        return self.from_int(self.to_int(lhs) | self.to_int(rhs))

    def intersect(self, lhs: FlagValue, rhs: FlagValue) -> FlagValue:
        return self.from_int(self.to_int(lhs) & self.to_int(rhs))

    def subtract(self, lhs: FlagValue, rhs: FlagValue) -> FlagValue:
        return self.from_int(self.to_int(lhs) & ~self.to_int(rhs))

    def complement(self, value: FlagValue) -> FlagValue:
        return self.from_int(~self.to_int(value) & self.defined_mask)

    def contains(self, lhs: FlagValue, rhs: FlagValue) -> bool:
        return self.to_int(lhs) & self.to_int(rhs) == self.to_int(rhs)


def build_flag_layout(
    ctx: EmitContext, name: str, bits_enum: str | None, width: int
) -> FlagLayout:
    decl = ctx.document.enums.get(bits_enum) if bits_enum else None
    if decl is None:
        return FlagLayout(name, width, ())
    r = ctx.renderer
    used: set[str] = set()
    bits = []
    masks = []
    for value in decl.values:
        if value.alias:
            continue
        rendered = _unique_name(
            render_enum_field_name(r, decl.name, value.name, is_bitmask=True),
            r.render(value.name, "snake"),
            used,
        )
        int_value = value.int_value
        if value.bitpos is not None:
            bits.append((rendered, value.bitpos))
        elif int_value > 0 and int_value & (int_value - 1) == 0:
            bits.append((rendered, int_value.bit_length() - 1))
        else:
            masks.append((rendered, int_value & ((1 << width) - 1)))
    bits.sort(key=lambda item: item[1])
    return FlagLayout(name, width, tuple(bits), tuple(masks))


def generate_flags(layout: FlagLayout) -> list[str]:
    name = layout.name
    int_type = f"u{layout.width}"
    lines = [f"pub const {name} = packed struct({int_type}) {{"]
    for position, flag in layout.fields():
        field_name = flag if flag is not None else f"_reserved_bit_{position}"
        lines.append(f"    {field_name}: bool = false,")
    lines.append("")
    lines.append(f"    pub const IntType = {int_type};")
    lines.append(f"    pub const defined_mask: {int_type} = 0x{layout.defined_mask:x};")
    for mask_name, mask in layout.masks:
        lines.append(
            f"    pub const {mask_name}: {name} = @bitCast(@as({int_type}, 0x{mask:x}));"
        )
    lines.extend(
        [
            "",
            f"    pub fn toInt(self: {name}) {int_type} {{",
            "        return @bitCast(self);",
            "    }",
            "",
            f"    pub fn fromInt(bits: {int_type}) {name} {{",
            "        return @bitCast(bits);",
            "    }",
            "",
            f"    pub fn merge(lhs: {name}, rhs: {name}) {name} {{",
            "        return fromInt(toInt(lhs) | toInt(rhs));",
            "    }",
            "",
            f"    pub fn intersect(lhs: {name}, rhs: {name}) {name} {{",
            "        return fromInt(toInt(lhs) & toInt(rhs));",
            "    }",
            "",
            f"    pub fn subtract(lhs: {name}, rhs: {name}) {name} {{",
            "        return fromInt(toInt(lhs) & ~toInt(rhs));",
            "    }",
            "",
            f"    pub fn complement(self: {name}) {name} {{",
            "        return fromInt(~toInt(self) & defined_mask);",
            "    }",
            "",
            f"    pub fn contains(lhs: {name}, rhs: {name}) bool {{",
            "        return (toInt(lhs) & toInt(rhs)) == toInt(rhs);",
            "    }",
            "};",
        ]
    )
    return lines


# ===--- Structs and unions ---=== #


def is_discriminant(f: Field) -> bool:
    return f.values is not None and not f.pointers


def is_next_chain(f: Field) -> bool:
    return f.name == NEXT_CHAIN_FIELD and bool(f.pointers)


def is_numeric_field(f: Field) -> bool:
    return not f.pointers and f.array_size is None and f.type_name in NUMERIC_C_TYPES


def _discriminant_literal(ctx: EmitContext, f: Field) -> str:
    return enum_literal(ctx, f.type_name, _split_attr(f.values)[0])


def struct_defaults(ctx: EmitContext, decl: StructDecl) -> dict[str, str]:
    """Default initializers by registry field name.

    A struct with both a type discriminant and a structure-chain link
    defaults exactly those two; a struct made only of plain numbers
    defaults every field to zero; any other struct gets no defaults.
    """
    discriminant = next((f for f in decl.fields if is_discriminant(f)), None)
    chain = next((f for f in decl.fields if is_next_chain(f)), None)
    if discriminant is not None and chain is not None:
        return {
            discriminant.name: _discriminant_literal(ctx, discriminant),
            chain.name: "null",
        }
    if discriminant is None and chain is None and decl.fields:
        if all(is_numeric_field(f) for f in decl.fields):
            return {f.name: "0" for f in decl.fields}
    return {}


def has_discriminant(decl: TypeDecl) -> bool:
    return isinstance(decl, StructDecl) and any(is_discriminant(f) for f in decl.fields)


def generate_struct(ctx: EmitContext, name: str, decl: StructDecl) -> list[str]:
    r = ctx.renderer
    defaults = struct_defaults(ctx, decl)
    lines = [f"pub const {name} = extern struct {{"]
    for f in decl.fields:
        field_line = f"    {render_field_name(r, f.name)}: {zig_field_type(ctx, f)}"
        if f.name in defaults:
            field_line += f" = {defaults[f.name]}"
        lines.append(field_line + ",")

    if has_discriminant(decl):
        lines.append("")
        lines.append(f"    pub fn empty() {name} {{")
        lines.append(f"        var value: {name} = undefined;")
        for f in decl.fields:
            if is_discriminant(f):
                literal = _discriminant_literal(ctx, f)
                lines.append(f"        value.{render_field_name(r, f.name)} = {literal};")
            elif is_next_chain(f):
                lines.append(f"        value.{render_field_name(r, f.name)} = null;")
        lines.append("        return value;")
        lines.append("    }")
    lines.append("};")
    return lines


def generate_union(ctx: EmitContext, name: str, decl: UnionDecl) -> list[str]:
    lines = [f"pub const {name} = extern union {{"]
    for f in decl.fields:
        lines.append(f"    {render_field_name(ctx.renderer, f.name)}: {zig_field_type(ctx, f)},")
    lines.append("};")
    return lines


# ===--- Type declarations ---=== #


def generate_type_decl(ctx: EmitContext, decl: TypeDecl) -> list[str]:
    """Zig source lines for one non-alias declaration.

    Raises:
        GenerationError: UNHANDLED_DECLARATION_KIND for a declaration kind
            with no emission rule.
    """
    name = declared_name(ctx, decl.name)

    if isinstance(decl, BaseTypeDecl):
        if decl.underlying is None:
            return [f"pub const {name} = opaque {{}};"]
        return [f"pub const {name} = {zig_base_type(ctx, decl.underlying)};"]

    if isinstance(decl, ExternalTypeDecl):
        if decl.name in C_TO_ZIG or decl.name in PLATFORM_TYPES:
            return []
        return [f"pub const {name} = opaque {{}};"]

    if isinstance(decl, HandleDecl):
        tag_type = "usize" if decl.dispatch == DISPATCH_WIDE else "u64"
        return [f"pub const {name} = enum({tag_type}) {{ null_handle = 0, _ }};"]

    if isinstance(decl, BitmaskDecl):
        return generate_flags(build_flag_layout(ctx, name, decl.bits_enum, decl.width))

    if isinstance(decl, EnumTypeDecl):
        enum_decl = ctx.document.enums[decl.name]
        if not enum_decl.is_bitmask:
            return generate_enum(ctx, name, enum_decl)
        owner = ctx.flag_owners.get(decl.name)
        if owner is not None:
            return [f"pub const {name} = {declared_name(ctx, owner)};"]
        return generate_flags(build_flag_layout(ctx, name, decl.name, enum_decl.bit_width))

    if isinstance(decl, StructDecl):
        return generate_struct(ctx, name, decl)

    if isinstance(decl, UnionDecl):
        return generate_union(ctx, name, decl)

    if isinstance(decl, FunctionPointerDecl):
        return [f"pub const {name} = {zig_fn_type(ctx, decl.returns, decl.params)};"]

    raise GenerationError(
        "UNHANDLED_DECLARATION_KIND",
        f"No emission rule for {type(decl).__name__} {decl.name}",
    )


def generate_type_aliases(ctx: EmitContext) -> list[str]:
    lines = []
    for alias, target in ctx.graph.aliases:
        alias_name = render_type_name(ctx.renderer, alias)
        target_name = render_type_name(ctx.renderer, target)
        if alias_name != target_name:
            lines.append(f"pub const {alias_name} = {target_name};")
    return lines


def generate_api_constants(ctx: EmitContext) -> list[str]:
    lines = []
    for name, value in ctx.document.api_constants.items():
        if isinstance(value, SizeOfConstant):
            literal = f"@sizeOf({zig_base_type(ctx, value.type_name)})"
        elif isinstance(value, float):
            literal = repr(value)
        else:
            literal = str(value)
        lines.append(f"pub const {render_constant_name(ctx.renderer, name)} = {literal};")
    return lines


def generate_version_helpers(ctx: EmitContext) -> list[str]:
    if VERSION_TYPE not in ctx.document.types:
        return []
    version = declared_name(ctx, VERSION_TYPE)
    lines = [
        f"pub fn makeVersion(major: u16, minor: u16, patch: u32) {version} {{",
        "    return (@as(u64, major) << 48) | (@as(u64, minor) << 32) | patch;",
        "}",
    ]
    parts = ctx.document.version.split(".")
    if len(parts) == 3 and all(p.isdigit() for p in parts):
        lines.append("")
        lines.append(f"pub const CURRENT_API_VERSION = makeVersion({', '.join(parts)});")
    return lines


# ===--- Result checks ---=== #


def result_error_set_name(ctx: EmitContext, enum_name: str) -> str:
    return declared_name(ctx, enum_name) + "Error"


def result_check_name(ctx: EmitContext, enum_name: str) -> str:
    return "check" + declared_name(ctx, enum_name)


def generate_result_checks(ctx: EmitContext, partition: ResultPartition) -> list[str]:
    """Error set plus a check function mapping error values to Zig errors."""
    r = ctx.renderer
    enum_type = declared_name(ctx, partition.enum_name)
    members = enum_members(ctx, ctx.document.enums[partition.enum_name])

    error_names = []
    for value_name in partition.error:
        error_name = render_error_name(r, value_name)
        if error_name not in error_names:
            error_names.append(error_name)
    if "Unknown" not in error_names:
        error_names.append("Unknown")

    error_set = result_error_set_name(ctx, partition.enum_name)
    lines = [f"pub const {error_set} = error{{"]
    lines.extend(f"    {n}," for n in error_names)
    lines.append("};")
    lines.append("")
    lines.append(
        f"pub fn {result_check_name(ctx, partition.enum_name)}"
        f"(result: {enum_type}) {error_set}!void {{"
    )
    lines.append("    switch (result) {")
    success_tags = [tag for tag, _, reg in members.fields if not partition.is_error(reg)]
    if success_tags:
        lines.extend(f"        .{tag}," for tag in success_tags)
        lines.append("        => {},")
    for tag, _, reg in members.fields:
        if partition.is_error(reg):
            lines.append(f"        .{tag} => return error.{render_error_name(r, reg)},")
    lines.append("        _ => return error.Unknown,")
    lines.append("    }")
    lines.append("}")
    return lines


# ===--- Commands ---=== #


def generate_command_pfns(ctx: EmitContext, taken: set[str]) -> list[str]:
    lines = []
    for cmd in ctx.document.commands.values():
        pfn = render_pfn_name(ctx.renderer, cmd.name)
        if pfn in taken:
            continue
        taken.add(pfn)
        lines.append(f"pub const {pfn} = {zig_fn_type(ctx, cmd.returns, cmd.params)};")
    return lines


def _slice_len(ctx: EmitContext, lp: LoweredParam) -> str:
    name = render_field_name(ctx.renderer, lp.param.name)
    if lp.param.pointers[0].nullable:
        return f"(if ({name}) |items| items.len else 0)"
    return f"{name}.len"


def _slice_type(ctx: EmitContext, p: Field) -> str:
    base = zig_base_type(ctx, p.type_name)
    inner = p.pointers[1:]
    element = zig_pointer_type(base, inner) if inner else base
    if element == "void":
        element = "u8"
    outer = p.pointers[0]
    slice = f"[]{'const ' if outer.constant else ''}{element}"
    return "?" + slice if outer.nullable else slice


def generate_wrapper(ctx: EmitContext, sig: WrapperSignature) -> list[str]:
    """Safe wrapper method for one command, emitted inside Dispatch."""
    r = ctx.renderer
    cmd = sig.command
    by_name = {lp.param.name: lp for lp in sig.params}
    params = ["self: Dispatch"]
    prologue = []
    args = []

    for lp in sig.params:
        p = lp.param
        pname = render_field_name(r, p.name)
        if lp.elided:
            arrays = [by_name[n] for n in lp.length_of]
            first = arrays[0]
            first_name = render_field_name(r, first.param.name)
            if first.param.pointers[0].nullable:
                args.append(f"if ({first_name}) |items| @intCast(items.len) else 0")
            else:
                args.append(f"@intCast({first_name}.len)")
            for other in arrays[1:]:
                prologue.append(
                    f"std.debug.assert({_slice_len(ctx, first)} == {_slice_len(ctx, other)});"
                )
        elif lp.length_param is not None:
            params.append(f"{pname}: {_slice_type(ctx, p)}")
            if p.pointers[0].nullable:
                args.append(f"if ({pname}) |items| items.ptr else null")
            else:
                args.append(f"{pname}.ptr")
        elif lp.direction == DIRECTION_OUT:
            pointee = zig_pointee_type(ctx, p)
            init = "undefined"
            if len(p.pointers) == 1 and p.type_name in ctx.document.types:
                target = ctx.document.types[resolve_alias_target(ctx.document.types, p.type_name)]
                if has_discriminant(target):
                    init = f"{pointee}.empty()"
            prologue.append(f"var {pname}: {pointee} = {init};")
            args.append(f"&{pname}")
        else:
            params.append(f"{pname}: {zig_field_type(ctx, p)}")
            args.append(pname)

    raw_call = f"self.{cmd.name}.?({', '.join(args)})"
    out_names = [render_field_name(r, lp.param.name) for lp in sig.outputs]
    out_types = [zig_pointee_type(ctx, lp.param) for lp in sig.outputs]

    if sig.return_shape == RETURN_VOID:
        ok_type = "void"
        return_stmt = None
    elif sig.return_shape == RETURN_SINGLE:
        ok_type = out_types[0]
        return_stmt = f"return {out_names[0]};"
    else:
        ok_type = "struct { " + ", ".join(f"{n}: {t}" for n, t in zip(out_names, out_types)) + " }"
        return_stmt = "return .{ " + ", ".join(f".{n} = {n}" for n in out_names) + " };"

    body = list(prologue)
    if sig.partition is not None:
        return_type = f"{result_error_set_name(ctx, sig.partition.enum_name)}!{ok_type}"
        body.append(f"try {result_check_name(ctx, sig.partition.enum_name)}({raw_call});")
    else:
        raw_return = zig_field_type(ctx, cmd.returns)
        if raw_return == "void":
            return_type = ok_type
            body.append(f"{raw_call};")
        elif not out_names:
            return_type = raw_return
            return_stmt = f"return {raw_call};"
        else:
            return_type = (
                f"struct {{ result: {raw_return}, "
                + ", ".join(f"{n}: {t}" for n, t in zip(out_names, out_types))
                + " }"
            )
            body.append(f"const result = {raw_call};")
            return_stmt = (
                "return .{ .result = result, "
                + ", ".join(f".{n} = {n}" for n in out_names)
                + " };"
            )
    if return_stmt is not None:
        body.append(return_stmt)

    name = render_command_name(r, cmd.name)
    lines = [f"    pub fn {name}({', '.join(params)}) {return_type} {{"]
    lines.extend(f"        {line}" for line in body)
    lines.append("    }")
    return lines


def _command_alias_target(document: RegistryDocument, name: str) -> str | None:
    seen = {name}
    target = document.command_aliases[name].target
    while target in document.command_aliases:
        if target in seen:
            return None
        seen.add(target)
        target = document.command_aliases[target].target
    return target if target in document.commands else None


def generate_dispatch(ctx: EmitContext, signatures: list[WrapperSignature]) -> list[str]:
    r = ctx.renderer
    doc = ctx.document
    lines = ["pub const Dispatch = struct {"]
    for cmd in doc.commands.values():
        lines.append(f"    {cmd.name}: ?{render_pfn_name(r, cmd.name)} = null,")

    can_load = (
        GET_PROC_ADDR_COMMAND in doc.commands
        and VOID_FUNCTION_TYPE in doc.types
        and "XrInstance" in doc.types
        and "XrResult" in doc.enums
    )
    if can_load:
        lines.extend(
            [
                "",
                f"    pub fn load(instance: {declared_name(ctx, 'XrInstance')}, "
                f"get_proc_addr: {render_pfn_name(r, GET_PROC_ADDR_COMMAND)}) Dispatch {{",
                "        var dispatch: Dispatch = .{};",
                '        inline for (@typeInfo(Dispatch).@"struct".fields) |field| {',
                f"            var function: {declared_name(ctx, VOID_FUNCTION_TYPE)} = undefined;",
                f"            if (get_proc_addr(instance, field.name, &function) == "
                f"{enum_literal(ctx, 'XrResult', 'XR_SUCCESS')}) {{",
                "                @field(dispatch, field.name) = @ptrCast(function);",
                "            }",
                "        }",
                "        return dispatch;",
                "    }",
            ]
        )

    for sig in signatures:
        lines.append("")
        lines.extend(generate_wrapper(ctx, sig))

    alias_lines = []
    for alias in doc.command_aliases:
        target = _command_alias_target(doc, alias)
        if target is None:
            continue
        alias_name = render_command_name(r, alias)
        target_name = render_command_name(r, target)
        if alias_name != target_name:
            alias_lines.append(f"    pub const {alias_name} = {target_name};")
    if alias_lines:
        lines.append("")
        lines.extend(alias_lines)
    lines.append("};")
    return lines


def generate_extension_info(ctx: EmitContext) -> list[str]:
    if not ctx.document.extensions:
        return []
    lines = [
        "pub const ExtensionInfo = struct {",
        "    name: [:0]const u8,",
        "    version: u32,",
        "};",
        "",
        "pub const extension_info = struct {",
    ]
    for ext in ctx.document.extensions:
        lines.append(
            f"    pub const {render_extension_name(ctx.renderer, ext.name)}: ExtensionInfo = "
            f'.{{ .name = "{ext.name}", .version = {ext.version} }};'
        )
    lines.append("};")
    return lines


# ===--- Bindings assembly ---=== #


@dataclass(frozen=True)
class WriteConfig:
    """Generation metadata embedded in the generated file's preamble.

    Attributes:
        registry_version: Registry version string, e.g. "1.1.49". Taken from
            the XR_CURRENT_API_VERSION define.
        registry_name: Display name of the source registry.
    """

    registry_version: str
    registry_name: str = "xr.xml"


_HEADER_BORDER: str = "// x-------------------------------------------x //"


def format_file_header(config: WriteConfig) -> list[str]:
    """Return comment-block lines for the generated file header.

    Output format:
        // x-------------------------------------------x //
        // | OpenXR bindings for Zig
        // | Generated by xrgen
        // | Source: xr.xml 1.1.49
        // x-------------------------------------------x //

    Raises:
        ValueError: If config.registry_version is empty.
    """
    if not config.registry_version:
        raise ValueError("registry_version must not be empty")
    return [
        _HEADER_BORDER,
        "// | OpenXR bindings for Zig",
        "// | Generated by xrgen",
        f"// | Source: {config.registry_name} {config.registry_version}",
        _HEADER_BORDER,
    ]


def lower_commands(ctx: EmitContext) -> list[WrapperSignature]:
    return [
        lower_command(cmd, ctx.partitions) for cmd in ctx.document.commands.values()
    ]


def generate_bindings(document: RegistryDocument) -> str:
    """Render the complete Zig source for a document.

    Pure: the whole text is built in memory, so any GenerationError leaves
    nothing behind.
    """
    ctx = build_emit_context(document)
    signatures = lower_commands(ctx)

    sections: list[list[str]] = []
    sections.append(
        format_file_header(WriteConfig(document.version))
        + ["", 'const std = @import("std");']
    )
    sections.append(generate_api_constants(ctx))
    sections.append(generate_version_helpers(ctx))

    taken = set()
    for decl in ctx.graph.order:
        lines = generate_type_decl(ctx, decl)
        if lines:
            taken.add(declared_name(ctx, decl.name))
            sections.append(lines)
    sections.append(generate_type_aliases(ctx))

    for partition in ctx.partitions.values():
        sections.append(generate_result_checks(ctx, partition))

    sections.append(generate_command_pfns(ctx, taken))
    sections.append(generate_dispatch(ctx, signatures))
    sections.append(generate_extension_info(ctx))

    return "\n\n".join("\n".join(lines) for lines in sections if lines) + "\n"


@dataclass(frozen=True)
class GenerationResult:
    document: RegistryDocument
    source: str


def generate(document_text: str | bytes, sink: Callable[[str], None]) -> GenerationResult:
    """Transform registry text into Zig source and hand it to sink exactly once.

    sink is never called when any stage raises, so a failed run produces no
    output at all.

    Args:
        document_text: Complete xr.xml contents, as text or raw bytes.
        sink: Receives the complete generated source.

    Returns:
        GenerationResult with the parsed document and the emitted source.

    Raises:
        GenerationError: From whichever stage first rejects the input.
    """
    document = parse_registry(document_text)
    source = generate_bindings(document)
    sink(source)
    return GenerationResult(document, source)


# ===--- Discovery commands ---=== #


@dataclass(frozen=True)
class ExtensionSummary:
    """One row of the --list-extensions table.

    Attributes:
        name: Extension name, e.g. "XR_KHR_composition_layer_depth".
        vendor_tag: Author tag from the name, e.g. "KHR".
        version: Value of the extension's *_SPEC_VERSION enum.
        ext_type: "instance" or "" if unspecified in xr.xml.
        type_count: Distinct type names in the extension's require blocks.
        command_count: Distinct command names in the extension's require blocks.
        depends_raw: Raw depends= attribute value, or "" if absent.
        promoted_to: Raw promotedto= value, or None if not promoted.
    """

    name: str
    vendor_tag: str
    version: int
    ext_type: str
    type_count: int
    command_count: int
    depends_raw: str
    promoted_to: str | None


@dataclass(frozen=True)
class TypeEntry:
    name: str
    category: str


@dataclass(frozen=True)
class ExtensionDetail:
    """Full --info output for one extension.

    types and commands keep the order of the extension's require blocks.
    """

    summary: ExtensionSummary
    types: tuple[TypeEntry, ...]
    commands: tuple[str, ...]


def _unique(names: Iterable[str]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(names))


def summarize_extension(ext: Extension) -> ExtensionSummary:
    return ExtensionSummary(
        name=ext.name,
        vendor_tag=ext.vendor_tag,
        version=ext.version,
        ext_type=ext.ext_type,
        type_count=len(_unique(ext.types)),
        command_count=len(_unique(ext.commands)),
        depends_raw=ext.depends,
        promoted_to=ext.promoted_to,
    )


def gather_extension_summaries(document: RegistryDocument) -> list[ExtensionSummary]:
    """Return one ExtensionSummary per supported extension, sorted by name."""
    summaries = [summarize_extension(ext) for ext in document.extensions]
    summaries.sort(key=lambda s: s.name)
    return summaries


def filter_extensions_by_text(
    summaries: list[ExtensionSummary],
    filter_text: str,
) -> list[ExtensionSummary]:
    """Return summaries whose name contains filter_text, ignoring case.

    An empty filter_text returns every summary.
    """
    if not filter_text:
        return list(summaries)
    needle = filter_text.lower()
    return [s for s in summaries if needle in s.name.lower()]


def gather_extension_detail(
    document: RegistryDocument,
    extension_name: str,
) -> ExtensionDetail | None:
    """Return full detail for a named extension, or None if the registry lacks it."""
    for ext in document.extensions:
        if ext.name == extension_name:
            break
    else:
        return None

    type_entries = []
    for name in _unique(ext.types):
        decl = document.types.get(name)
        type_entries.append(TypeEntry(name, decl.kind if decl is not None else ""))
    return ExtensionDetail(
        summary=summarize_extension(ext),
        types=tuple(type_entries),
        commands=_unique(ext.commands),
    )


def format_extensions_table(
    summaries: list[ExtensionSummary],
    registry_version: str,
) -> str:
    """Return the complete --list-extensions output as a single string.

    Output format:

        {N} OpenXR extensions in xr.xml {registry_version}:

          XR_KHR_composition_layer_depth  v6   instance  1 types   0 cmds
          ...

    Callers pre-filter with filter_extensions_by_text.
    """
    n = len(summaries)
    lines = [f"{n} OpenXR extensions in xr.xml {registry_version}:", ""]

    if not summaries:
        lines.append("")
        return "\n".join(lines)

    name_width = max(len(s.name) for s in summaries)
    type_width = max(len(s.ext_type) for s in summaries)

    for s in summaries:
        type_col = s.ext_type.ljust(type_width) if type_width else ""
        version_col = f"v{s.version}"
        type_count_col = f"{s.type_count} types"
        cmd_count_col = f"{s.command_count} cmds"

        if s.promoted_to is not None:
            annotation = f"promoted: {s.promoted_to}"
        elif s.depends_raw:
            raw = s.depends_raw
            if len(raw) > 40:
                raw = raw[:37] + "..."
            annotation = f"depends: {raw}"
        else:
            annotation = ""

        name_col = s.name.ljust(name_width)
        row = f"  {name_col}  {version_col:<4} {type_col}  {type_count_col:<10} {cmd_count_col:<8}"
        if annotation:
            row = row.rstrip() + f"  {annotation}"
        lines.append(row.rstrip())

    lines.append("")
    return "\n".join(lines)


def format_extension_detail(detail: ExtensionDetail) -> str:
    """Return the complete --info output for one extension.

    Output format:

        XR_KHR_composition_layer_depth (instance extension, version 6)
          Vendor:   KHR
          Promoted: no

          Types (1):
            XrCompositionLayerDepthInfoKHR  struct

          Commands (0):
    """
    s = detail.summary
    ext_type_label = f"{s.ext_type} extension" if s.ext_type else "extension"
    lines = [f"{s.name} ({ext_type_label}, version {s.version})"]
    if s.vendor_tag:
        lines.append(f"  Vendor:   {s.vendor_tag}")
    if s.depends_raw:
        lines.append(f"  Depends:  {s.depends_raw}")
    promoted_label = s.promoted_to if s.promoted_to is not None else "no"
    lines.append(f"  Promoted: {promoted_label}")

    lines.append("")
    lines.append(f"  Types ({len(detail.types)}):")
    name_width = max((len(e.name) for e in detail.types), default=0)
    for entry in detail.types:
        if entry.category:
            lines.append(f"    {entry.name.ljust(name_width)}  {entry.category}")
        else:
            lines.append(f"    {entry.name}")

    lines.append("")
    lines.append(f"  Commands ({len(detail.commands)}):")
    for cmd in detail.commands:
        lines.append(f"    {cmd}")

    lines.append("")
    return "\n".join(lines)


def run_discovery(config: DiscoveryConfig) -> None:
    """Execute the discovery command specified in config.

    dispatch table:
      "list-extensions" -> gather_extension_summaries -> [filter] -> format_extensions_table
      "info"            -> gather_extension_detail -> [None check] -> format_extension_detail

    Raises:
        SystemExit(1): When config.command == "info" and the extension is not
            in the registry.
        GenerationError: When the registry itself cannot be loaded.
    """
    document = parse_registry(config.registry.read_bytes())

    if config.command == "list-extensions":
        summaries = gather_extension_summaries(document)
        if config.filter_text is not None:
            summaries = filter_extensions_by_text(summaries, config.filter_text)
        print(format_extensions_table(summaries, document.version), end="")

    elif config.command == "info":
        assert config.info_extension is not None
        detail = gather_extension_detail(document, config.info_extension)
        if detail is None:
            print(
                f"Error: extension '{config.info_extension}' not found in xr.xml {document.version}",
                file=sys.stderr,
            )
            raise SystemExit(1)
        print(format_extension_detail(detail), end="")


# ===--- Output writer ---=== #


@dataclass(frozen=True)
class FileWriteResult:
    """Result of writing the generated source file.

    Attributes:
        path: Absolute path of the written file.
        line_count: Number of newline characters in the written content.
        byte_count: Number of bytes written (UTF-8 encoded).
    """

    path: Path
    line_count: int
    byte_count: int


def write_output(path: Path, content: str) -> FileWriteResult:
    """Write generated source to path, creating parent directories first.

    Raises:
        OSError: Propagated directly if the filesystem write fails.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    resolved = path.resolve()
    return FileWriteResult(
        path=resolved,
        line_count=content.count("\n"),
        byte_count=len(resolved.read_bytes()),
    )


# ===--- Summary report ---=== #


@dataclass(frozen=True)
class CategoryCount:
    """Count of items in one category, split by core vs. extension.

    Invariant: core + ext == total. Enforced by build_generation_counts.
    """

    total: int
    core: int
    ext: int


@dataclass(frozen=True)
class GenerationCounts:
    """Per-category declaration counts. Aliases are excluded everywhere."""

    base_types: CategoryCount
    enums: CategoryCount
    bitmasks: CategoryCount
    handles: CategoryCount
    structs: CategoryCount
    unions: CategoryCount
    function_pointers: CategoryCount
    commands: CategoryCount


@dataclass(frozen=True)
class GenerationSummary:
    """Complete, immutable data for the post-generation console report."""

    source_label: str
    output_path: str
    counts: GenerationCounts
    line_count: int
    byte_count: int


def build_generation_counts(document: RegistryDocument) -> GenerationCounts:
    """Count declarations per category; an item is ext when an extension introduced it."""

    def _count(names: list[str]) -> CategoryCount:
        total = len(names)
        ext = sum(1 for n in names if not document.is_core(n))
        core = total - ext
        assert core + ext == total, (
            f"CategoryCount invariant violated: {core}+{ext}!={total}"
        )
        return CategoryCount(total=total, core=core, ext=ext)

    def _names(kind: type) -> list[str]:
        return [name for name, decl in document.types.items() if isinstance(decl, kind)]

    enum_names = [
        name
        for name in _names(EnumTypeDecl)
        if not document.enums[name].is_bitmask
    ]
    return GenerationCounts(
        base_types=_count(_names(BaseTypeDecl)),
        enums=_count(enum_names),
        bitmasks=_count(_names(BitmaskDecl)),
        handles=_count(_names(HandleDecl)),
        structs=_count(_names(StructDecl)),
        unions=_count(_names(UnionDecl)),
        function_pointers=_count(_names(FunctionPointerDecl)),
        commands=_count(list(document.commands)),
    )


def build_generation_summary(
    document: RegistryDocument, write_result: FileWriteResult
) -> GenerationSummary:
    return GenerationSummary(
        source_label=f"xr.xml {document.version}",
        output_path=str(write_result.path),
        counts=build_generation_counts(document),
        line_count=write_result.line_count,
        byte_count=write_result.byte_count,
    )


def format_generation_summary(summary: GenerationSummary) -> str:
    """Render a GenerationSummary as the console report.

    Split annotations appear only when ext > 0. Counts use thousands
    separators. Returns a string with exactly one trailing newline.
    """
    lines: list[str] = []
    lines.append("OpenXR bindings generated:")
    lines.append("")
    lines.append(f"  Source:     {summary.source_label}")
    lines.append(f"  Output:     {summary.output_path}")
    lines.append("")
    lines.append("  Types generated:")

    def _type_row(label: str, cc: CategoryCount) -> str:
        count_str = f"{cc.total:>6}"
        if cc.ext > 0:
            return f"    {label:<19}{count_str}  ({cc.core} core + {cc.ext} from extensions)"
        return f"    {label:<19}{count_str}"

    counts = summary.counts
    lines.append(_type_row("Base types:", counts.base_types))
    lines.append(_type_row("Enums:", counts.enums))
    lines.append(_type_row("Bitmasks:", counts.bitmasks))
    lines.append(_type_row("Handles:", counts.handles))
    lines.append(_type_row("Structs:", counts.structs))
    lines.append(_type_row("Unions:", counts.unions))
    lines.append(_type_row("Function pointers:", counts.function_pointers))
    lines.append(_type_row("Commands:", counts.commands))

    lines.append("")
    lines.append(
        f"  Total: {summary.line_count:,} lines ({summary.byte_count:,} bytes)"
    )
    lines.append("")
    lines.append(f"  Verify: zig ast-check {summary.output_path}")
    lines.append("")

    return "\n".join(lines)


def print_generation_summary(summary: GenerationSummary) -> None:
    print(format_generation_summary(summary), end="")


# ===--- Main generation ---=== #


def run_generate(config: GenerateConfig) -> FileWriteResult:
    """Run the generation pipeline for a GenerateConfig.

    The whole source is rendered before the output file is touched.

    Raises:
        OSError: Registry not readable or filesystem write failure.
        GenerationError: The registry was rejected by one of the stages.
    """
    print(f"Parsing: {config.registry}")
    document = parse_registry(config.registry.read_bytes())
    print(
        f"  Registry: {len(document.types)} types, {len(document.enums)} enums, "
        f"{len(document.commands)} commands, {len(document.extensions)} extensions"
    )

    source = generate_bindings(document)
    line_count = source.count("\n")
    print(f"  Rendered: {line_count:,} lines")

    result = write_output(config.output, source)
    print(f"  Written: {result.path}")

    print_generation_summary(build_generation_summary(document, result))
    return result


def main(argv: list[str] | None = None):
    try:
        config = build_config(argv)
    except ConfigError as err:
        print(f"Config error [{err.code}]: {err.message}")
        if err.suggestion:
            print(f"Hint: {err.suggestion}")
        raise SystemExit(1) from err

    try:
        if isinstance(config, DiscoveryConfig):
            run_discovery(config)
        else:
            run_generate(config)
    except GenerationError as err:
        print(f"Generation error [{err.code}] in {err.stage}: {err.message}")
        raise SystemExit(1) from err
    except OSError as err:
        print(f"Error: {err}")
        raise SystemExit(1) from err


if __name__ == "__main__":
    main()
