"""Interface parser — extracts a canonical schema from TypeScript-style declarations.

Supported subset:
- ``[export] [default] [declare] [abstract] interface|class Name[<T>] [extends X] [implements Y] { ... }``
- members ``[modifiers] [readonly] name[?|!]: <type>[ = initializer];`` at the
  block's top level; methods, constructors and index signatures are skipped
- types: primitives, ``T[]``, ``Array<T>``, ``Record<K, V>``, ``Map<K, V>``,
  unions (string-literal unions become enums), inline ``{ ... }`` literals

Blocks are cut out with brace matching, not a TypeScript grammar. The first
block (or the one named by ``options["name"]``) becomes the schema; other
blocks in the same source are kept as one-level ``definitions``.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Optional

from schema_synth.errors import InputShapeError, NoDefinitionFoundError
from schema_synth.schema.model import CanonicalSchema, FieldDefinition, FieldKind
from schema_synth.source_loader.base import BaseParser, SourceFormat

logger = logging.getLogger(__name__)

# Identifier -> (canonical kind, implied format)
TYPE_MAPPING: dict[str, tuple[FieldKind, Optional[str]]] = {
    "string": (FieldKind.STRING, None),
    "String": (FieldKind.STRING, None),
    "number": (FieldKind.NUMBER, None),
    "Number": (FieldKind.NUMBER, None),
    "bigint": (FieldKind.INTEGER, None),
    "boolean": (FieldKind.BOOLEAN, None),
    "Boolean": (FieldKind.BOOLEAN, None),
    "true": (FieldKind.BOOLEAN, None),
    "false": (FieldKind.BOOLEAN, None),
    "object": (FieldKind.OBJECT, None),
    "Object": (FieldKind.OBJECT, None),
    "any": (FieldKind.OBJECT, None),
    "unknown": (FieldKind.OBJECT, None),
    "Record": (FieldKind.OBJECT, None),
    "Map": (FieldKind.OBJECT, None),
    "Date": (FieldKind.STRING, "datetime"),
}

NULLISH = ("null", "undefined")

DEFINITION_HEADER = re.compile(
    r"(?:\bexport\s+)?(?:\bdefault\s+)?(?:\bdeclare\s+)?(?:\babstract\s+)?"
    r"\b(interface|class)\s+([A-Za-z_$][\w$]*)"
)
HERITAGE = re.compile(r"^\s*(?:extends\s+[^{]+?)?\s*(?:implements\s+[^{]+?)?\s*$", re.DOTALL)
MEMBER = re.compile(
    r"^(?:@[\w.]+(?:\([^)]*\))?\s+)*"
    r"(?:(?:public|private|protected|static|declare|abstract|override)\s+)*"
    r"(readonly\s+)?([A-Za-z_$][\w$]*)([?!])?\s*:\s*(.+)$",
    re.DOTALL,
)

NAME_FORMATS = [
    ("email", re.compile(r"email", re.IGNORECASE), None),
    ("phone", re.compile(r"phone|mobile", re.IGNORECASE), None),
    ("url", re.compile(r"^url$|website|link", re.IGNORECASE), None),
    ("uuid", re.compile(r"uuid|guid", re.IGNORECASE), None),
    ("date", re.compile(r"date", re.IGNORECASE), re.compile(r"datetime", re.IGNORECASE)),
    ("datetime", re.compile(r"datetime", re.IGNORECASE), None),
]

_OPENERS = {"{": "}", "(": ")", "[": "]", "<": ">"}


def strip_comments(code: str) -> str:
    """Remove // and /* */ comments, leaving string literals intact."""
    out: list[str] = []
    i = 0
    quote: Optional[str] = None
    while i < len(code):
        char = code[i]
        if quote:
            out.append(char)
            if char == "\\" and i + 1 < len(code):
                out.append(code[i + 1])
                i += 2
                continue
            if char == quote:
                quote = None
            i += 1
            continue
        if char in ("'", '"', "`"):
            quote = char
        elif code.startswith("//", i):
            end = code.find("\n", i)
            i = len(code) if end < 0 else end
            continue
        elif code.startswith("/*", i):
            end = code.find("*/", i + 2)
            i = len(code) if end < 0 else end + 2
            out.append(" ")
            continue
        out.append(char)
        i += 1
    return "".join(out)


def _is_arrow(text: str, i: int) -> bool:
    return text[i] == ">" and i > 0 and text[i - 1] == "="


def _matching(text: str, start: int) -> int:
    """Index of the delimiter closing the opener at ``start``, or -1.

    Only the opener's own bracket kind is counted; quoted literals are
    skipped and the ``>`` of an arrow (``=>``) is not a closer.
    """
    opener = text[start]
    closer = _OPENERS[opener]
    depth = 0
    quote: Optional[str] = None
    for i in range(start, len(text)):
        char = text[i]
        if quote:
            if char == quote and text[i - 1] != "\\":
                quote = None
            continue
        if char in ("'", '"', "`"):
            quote = char
        elif char == opener:
            depth += 1
        elif char == closer and not _is_arrow(text, i):
            depth -= 1
            if depth == 0:
                return i
    return -1


def split_top_level(text: str, separators: str) -> list[str]:
    """Split ``text`` on separator characters outside brackets and quotes.

    Angle brackets only nest outside braces and parentheses, so comparison
    operators inside method bodies do not disturb the split. An ``=`` that
    starts an arrow is never a separator.
    """
    parts: list[str] = []
    current: list[str] = []
    depth = 0
    angle = 0
    quote: Optional[str] = None
    for i, char in enumerate(text):
        if quote:
            if char == quote and text[i - 1] != "\\":
                quote = None
        elif char in ("'", '"', "`"):
            quote = char
        elif char in "{([":
            depth += 1
        elif char in "})]":
            depth = max(0, depth - 1)
        elif char == "<" and depth == 0:
            angle += 1
        elif char == ">" and depth == 0 and not _is_arrow(text, i):
            angle = max(0, angle - 1)
        elif (
            char in separators
            and depth == 0
            and angle == 0
            and not (char == "=" and text[i + 1:i + 2] == ">")
        ):
            parts.append("".join(current))
            current = []
            continue
        current.append(char)
    parts.append("".join(current))
    return parts


def _split_members(body: str) -> list[str]:
    """Split a block body into member statements.

    Statements end at ``;`` or ``,`` at the top level, or at a top-level
    newline when the statement is complete (not ending in ``:``, ``|``,
    ``&`` or ``=`` and not continued by a leading ``|``/``&``).
    """
    statements: list[str] = []
    for chunk in split_top_level(body, ";,"):
        lines = split_top_level(chunk, "\n")
        current = ""
        for line in lines:
            stripped = line.strip()
            if not stripped:
                continue
            continues = stripped[0] in "|&" or (current and current.rstrip()[-1] in ":|&=")
            if current and not continues:
                statements.append(current)
                current = stripped
            else:
                current = f"{current} {stripped}".strip()
        if current:
            statements.append(current)
    return statements


def _is_string_literal(token: str) -> bool:
    return len(token) >= 2 and token[0] in ("'", '"', "`") and token[-1] == token[0]


class InterfaceParser(BaseParser):
    """Parses interface/class declarations into a CanonicalSchema."""

    format = SourceFormat.INTERFACE

    def parse(self, content: Any, **kwargs) -> CanonicalSchema:
        options = kwargs.get("options") or {}
        if not isinstance(content, str):
            raise InputShapeError(f"Interface source must be a string, got {type(content).__name__}")
        try:
            definitions = self.extract_definitions(strip_comments(content))
            if not definitions:
                raise NoDefinitionFoundError("No interfaces or classes found")

            target_name, target_body = definitions[0]
            wanted = options.get("name")
            if wanted:
                match = next((d for d in definitions if d[0] == wanted), None)
                if match:
                    target_name, target_body = match
                else:
                    logger.warning(f"Definition {wanted!r} not found; using {target_name!r}")

            schema = CanonicalSchema(title=target_name, fields=self.parse_members(target_body))
            others = [(n, b) for n, b in definitions if n != target_name]
            if others:
                schema.definitions = {n: self.parse_members(b) for n, b in others}
        except (NoDefinitionFoundError, InputShapeError):
            raise
        except Exception as e:
            raise InputShapeError(f"Interface parsing error: {e}", cause=e) from e

        logger.info(f"Parsed {schema.title}: {len(schema.fields)} members")
        return schema

    def extract_definitions(self, code: str) -> list[tuple[str, str]]:
        """Return (name, body) for every complete interface/class block."""
        definitions = []
        for header in DEFINITION_HEADER.finditer(code):
            pos = header.end()
            while pos < len(code) and code[pos].isspace():
                pos += 1
            # One generic-parameter clause
            if pos < len(code) and code[pos] == "<":
                close = _matching(code, pos)
                if close < 0:
                    continue
                pos = close + 1

            open_brace = code.find("{", pos)
            if open_brace < 0 or not HERITAGE.match(code[pos:open_brace]):
                continue
            close_brace = _matching(code, open_brace)
            if close_brace < 0:
                logger.debug(f"Skipping unterminated {header.group(1)} {header.group(2)}")
                continue
            definitions.append((header.group(2), code[open_brace + 1:close_brace]))
        return definitions

    def parse_members(self, body: str) -> dict[str, FieldDefinition]:
        fields: dict[str, FieldDefinition] = {}
        for statement in _split_members(body):
            m = MEMBER.match(statement)
            if not m:
                continue
            name, marker, type_expr = m.group(2), m.group(3), m.group(4)
            # Drop a property initializer: `count: number = 0`
            type_expr = split_top_level(type_expr, "=")[0].strip()
            if not type_expr:
                continue

            fd = self.resolve_type(name, type_expr)
            fd.required = marker != "?"
            if fd.kind == FieldKind.STRING and not fd.format:
                fd.format = self._format_from_name(name)
            fields[name] = fd
        return fields

    def resolve_type(self, name: str, type_expr: str) -> FieldDefinition:
        """Resolve a type expression into a FieldDefinition (``required`` unset)."""
        expr = type_expr.strip()
        while expr.startswith("(") and _matching(expr, 0) == len(expr) - 1:
            expr = expr[1:-1].strip()

        members = [m.strip() for m in split_top_level(expr, "|") if m.strip()]
        if len(members) > 1:
            if all(_is_string_literal(m) for m in members):
                return FieldDefinition(name=name, kind=FieldKind.ENUM, values=[m[1:-1] for m in members])
            non_null = [m for m in members if m not in NULLISH]
            if non_null:
                return self.resolve_type(name, non_null[0])
            return FieldDefinition(name=name)
        if members:
            expr = members[0]

        if expr.endswith("[]"):
            return FieldDefinition(
                name=name, kind=FieldKind.ARRAY, items=self.resolve_type(name, expr[:-2])
            )
        generic = re.match(r"^(ReadonlyArray|Array|Set)\s*<(.*)>$", expr, re.DOTALL)
        if generic:
            return FieldDefinition(
                name=name, kind=FieldKind.ARRAY, items=self.resolve_type(name, generic.group(2))
            )
        if re.match(r"^(Record|Map)\s*<", expr):
            return FieldDefinition(name=name, kind=FieldKind.OBJECT, properties={})
        if expr.startswith("{") and expr.endswith("}"):
            return FieldDefinition(
                name=name, kind=FieldKind.OBJECT, properties=self.parse_members(expr[1:-1])
            )
        if _is_string_literal(expr):
            return FieldDefinition(name=name, kind=FieldKind.ENUM, values=[expr[1:-1]])

        base = expr.split("<")[0].strip()
        kind, fmt = TYPE_MAPPING.get(base, (FieldKind.STRING, None))
        fd = FieldDefinition(name=name, kind=kind, format=fmt)
        if kind == FieldKind.OBJECT:
            fd.properties = {}
        return fd

    def _format_from_name(self, name: str) -> Optional[str]:
        for fmt, include, exclude in NAME_FORMATS:
            if include.search(name) and not (exclude and exclude.search(name)):
                return fmt
        return None
