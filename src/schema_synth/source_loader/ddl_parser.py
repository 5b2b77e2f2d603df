"""DDL parser — extracts a canonical schema from CREATE TABLE statements.

Handles the common Oracle, SQL Server, PostgreSQL and MySQL spellings:
- Oracle: NUMBER(p,s), VARCHAR2(n), CLOB
- SQL Server: [brackets], NVARCHAR, BIT for boolean, IDENTITY
- PostgreSQL: SERIAL, TEXT, BYTEA, JSONB, multi-word types
- MySQL: backtick-quoted names, AUTO_INCREMENT, ENUM(...), SET(...)

Parsing strategy: bounded extraction over the column list, not a SQL grammar.
The table body is cut out with paren-depth matching and split on top-level
commas; each entry is either a table constraint or a column definition.
Anything that cannot be read as a column raises DdlParseError.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Optional

from schema_synth.errors import DdlParseError
from schema_synth.schema.model import CanonicalSchema, FieldDefinition, FieldKind
from schema_synth.source_loader.base import BaseParser, SourceFormat

logger = logging.getLogger(__name__)

# Vendor type -> (canonical kind, implied format)
TYPE_MAPPING: dict[str, tuple[FieldKind, Optional[str]]] = {
    # String types
    "varchar": (FieldKind.STRING, None),
    "char": (FieldKind.STRING, None),
    "text": (FieldKind.STRING, None),
    "longtext": (FieldKind.STRING, None),
    "mediumtext": (FieldKind.STRING, None),
    "tinytext": (FieldKind.STRING, None),
    "nvarchar": (FieldKind.STRING, None),
    "nchar": (FieldKind.STRING, None),
    "ntext": (FieldKind.STRING, None),
    "varchar2": (FieldKind.STRING, None),
    "nvarchar2": (FieldKind.STRING, None),
    "clob": (FieldKind.STRING, None),
    "nclob": (FieldKind.STRING, None),
    "citext": (FieldKind.STRING, None),
    "character varying": (FieldKind.STRING, None),
    "character": (FieldKind.STRING, None),
    # Integer types
    "int": (FieldKind.INTEGER, None),
    "integer": (FieldKind.INTEGER, None),
    "smallint": (FieldKind.INTEGER, None),
    "tinyint": (FieldKind.INTEGER, None),
    "mediumint": (FieldKind.INTEGER, None),
    "bigint": (FieldKind.INTEGER, None),
    "int2": (FieldKind.INTEGER, None),
    "int4": (FieldKind.INTEGER, None),
    "int8": (FieldKind.INTEGER, None),
    "serial": (FieldKind.INTEGER, None),
    "bigserial": (FieldKind.INTEGER, None),
    "smallserial": (FieldKind.INTEGER, None),
    "year": (FieldKind.INTEGER, None),
    # Decimal types
    "float": (FieldKind.NUMBER, None),
    "double": (FieldKind.NUMBER, None),
    "double precision": (FieldKind.NUMBER, None),
    "decimal": (FieldKind.NUMBER, None),
    "numeric": (FieldKind.NUMBER, None),
    "real": (FieldKind.NUMBER, None),
    "number": (FieldKind.NUMBER, None),
    "money": (FieldKind.NUMBER, None),
    "smallmoney": (FieldKind.NUMBER, None),
    # Boolean types
    "boolean": (FieldKind.BOOLEAN, None),
    "bool": (FieldKind.BOOLEAN, None),
    "bit": (FieldKind.BOOLEAN, None),
    # Calendar types
    "date": (FieldKind.STRING, "date"),
    "datetime": (FieldKind.STRING, "datetime"),
    "datetime2": (FieldKind.STRING, "datetime"),
    "datetimeoffset": (FieldKind.STRING, "datetime"),
    "timestamp": (FieldKind.STRING, "datetime"),
    "timestamptz": (FieldKind.STRING, "datetime"),
    "timestamp with time zone": (FieldKind.STRING, "datetime"),
    "timestamp without time zone": (FieldKind.STRING, "datetime"),
    "time": (FieldKind.STRING, None),
    "time with time zone": (FieldKind.STRING, None),
    "time without time zone": (FieldKind.STRING, None),
    # Binary types
    "blob": (FieldKind.STRING, None),
    "binary": (FieldKind.STRING, None),
    "varbinary": (FieldKind.STRING, None),
    "longblob": (FieldKind.STRING, None),
    "mediumblob": (FieldKind.STRING, None),
    "tinyblob": (FieldKind.STRING, None),
    "bytea": (FieldKind.STRING, None),
    "raw": (FieldKind.STRING, None),
    "image": (FieldKind.STRING, None),
    # Structured types
    "json": (FieldKind.OBJECT, None),
    "jsonb": (FieldKind.OBJECT, None),
    "geometry": (FieldKind.OBJECT, None),
    "point": (FieldKind.OBJECT, None),
    "linestring": (FieldKind.OBJECT, None),
    "polygon": (FieldKind.OBJECT, None),
    # Other types
    "uuid": (FieldKind.STRING, "uuid"),
    "uniqueidentifier": (FieldKind.STRING, "uuid"),
    "enum": (FieldKind.ENUM, None),
    "set": (FieldKind.ARRAY, None),
}

# Multi-word SQL types that should be captured as a single type token
MULTI_WORD_TYPES = sorted(
    (t for t in TYPE_MAPPING if " " in t), key=len, reverse=True
)

TABLE_CONSTRAINT = re.compile(
    r"^(PRIMARY|FOREIGN|UNIQUE|CHECK|CONSTRAINT|KEY|INDEX)\b", re.IGNORECASE
)
CREATE_TABLE_HEADER = re.compile(
    r"CREATE\s+(?:TEMP(?:ORARY)?\s+)?TABLE\s+(?:IF\s+NOT\s+EXISTS\s+)?([^\s(]+)\s*\(",
    re.IGNORECASE,
)
SIMPLE_CHECK = re.compile(r"^\s*[`\"\[]?(\w+)[`\"\]]?\s*(>=|<=|>|<)\s*(-?\d+(?:\.\d+)?)\s*$")
QUOTED_LITERAL = re.compile(r"'((?:[^']|'')*)'|\"([^\"]*)\"")
DEFAULT_CLAUSE = re.compile(
    r"\bDEFAULT\s+('(?:[^']|'')*'|\"[^\"]*\"|\(?[-+]?[\w.]+\)?)", re.IGNORECASE
)
INLINE_REFERENCES = re.compile(
    r"REFERENCES\s+([`\"\[\]\w.]+)(?:\s*\(\s*[`\"\[]?(\w+)[`\"\]]?\s*\))?",
    re.IGNORECASE,
)

NAME_FORMATS = [
    ("email", re.compile(r"email", re.IGNORECASE)),
    ("phone", re.compile(r"phone|mobile", re.IGNORECASE)),
    ("url", re.compile(r"^url$|website|link", re.IGNORECASE)),
    ("uuid", re.compile(r"uuid|guid", re.IGNORECASE)),
]


def _unquote_identifier(raw: str) -> str:
    return re.sub(r'[\[\]`"]', "", raw)


def _strip_comments(content: str) -> str:
    """Remove -- and /* */ comments, leaving quoted literals and identifiers intact."""
    out: list[str] = []
    i = 0
    quote: Optional[str] = None
    while i < len(content):
        char = content[i]
        if quote:
            # A doubled quote closes and reopens the literal
            if char == quote:
                quote = None
            out.append(char)
            i += 1
            continue
        if char in ("'", '"'):
            quote = char
        elif content.startswith("--", i):
            end = content.find("\n", i)
            i = len(content) if end < 0 else end
            continue
        elif content.startswith("/*", i):
            end = content.find("*/", i + 2)
            i = len(content) if end < 0 else end + 2
            out.append(" ")
            continue
        out.append(char)
        i += 1
    return "".join(out)


def _matching_paren(text: str, start: int) -> int:
    """Return the index of the ')' closing the '(' at ``start``, or -1.

    Parentheses inside quoted literals are ignored.
    """
    depth = 0
    quote: Optional[str] = None
    for i in range(start, len(text)):
        char = text[i]
        if quote:
            if char == quote:
                quote = None
            continue
        if char in ("'", '"'):
            quote = char
        elif char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth == 0:
                return i
    return -1


class DDLParser(BaseParser):
    """Parses SQL CREATE TABLE statements into a CanonicalSchema."""

    format = SourceFormat.DDL

    def parse(self, content: Any, **kwargs) -> CanonicalSchema:
        """Parse the first CREATE TABLE statement in ``content``."""
        options = kwargs.get("options") or {}
        tables = self._parse_tables(content, options, first_only=True)
        return tables[0]

    def parse_all(self, content: Any, **kwargs) -> list[CanonicalSchema]:
        """Parse every CREATE TABLE statement in ``content``, in source order."""
        options = kwargs.get("options") or {}
        return self._parse_tables(content, options, first_only=False)

    def _parse_tables(self, content: Any, options: dict, first_only: bool) -> list[CanonicalSchema]:
        if not isinstance(content, str):
            raise DdlParseError(f"SQL statement must be a string, got {type(content).__name__}")
        try:
            blocks = self._extract_create_tables(_strip_comments(content))
            if not blocks:
                raise DdlParseError("Could not find a CREATE TABLE statement")
            if first_only:
                blocks = blocks[:1]

            schemas = []
            for raw_name, body in blocks:
                title = self._parse_table_name(raw_name) or options.get("title") or "UnknownTable"
                schema = CanonicalSchema(title=title, fields=self._parse_table_body(body))
                logger.info(f"Parsed table {title}: {len(schema.fields)} columns")
                schemas.append(schema)
            return schemas
        except DdlParseError:
            raise
        except Exception as e:
            raise DdlParseError(f"SQL parsing error: {e}", cause=e) from e

    def _extract_create_tables(self, content: str) -> list[tuple[str, str]]:
        """Extract (table_name, body) pairs using paren-depth matching.

        Nested parentheses in types like NUMBER(10,2) and in CHECK
        constraints stay inside the body.
        """
        results = []
        for header in CREATE_TABLE_HEADER.finditer(content):
            open_idx = header.end() - 1
            close_idx = _matching_paren(content, open_idx)
            if close_idx < 0:
                raise DdlParseError(f"Unterminated column list for table {header.group(1)}")
            results.append((header.group(1), content[open_idx + 1:close_idx]))
        return results

    def _parse_table_name(self, raw_name: str) -> str:
        """Strip quoting and any schema qualifier from a table name."""
        return _unquote_identifier(raw_name).split(".")[-1]

    def _parse_table_body(self, body: str) -> dict[str, FieldDefinition]:
        fields: dict[str, FieldDefinition] = {}
        constraints: list[str] = []

        for element in self._split_column_definitions(body):
            element = element.strip()
            if not element:
                continue
            if TABLE_CONSTRAINT.match(element):
                constraints.append(element)
                continue
            fd = self._parse_column_definition(element)
            fields[fd.name] = fd

        for constraint in constraints:
            self._apply_table_constraint(constraint, fields)
        return fields

    def _split_column_definitions(self, body: str) -> list[str]:
        """Split the table body on commas outside parentheses and quotes."""
        elements = []
        current: list[str] = []
        depth = 0
        quote: Optional[str] = None
        for char in body:
            if quote:
                if char == quote:
                    quote = None
            elif char in ("'", '"'):
                quote = char
            elif char == "(":
                depth += 1
            elif char == ")":
                depth -= 1
            elif char == "," and depth == 0:
                elements.append("".join(current))
                current = []
                continue
            current.append(char)
        if current:
            elements.append("".join(current))
        return elements

    def _parse_column_definition(self, element: str) -> FieldDefinition:
        """Parse a single column definition into a FieldDefinition."""
        name_match = re.match(r'^([`"\[]?[\w$]+[`"\]]?)\s+', element)
        if not name_match:
            raise DdlParseError(f"Unsupported column definition: {element!r}")

        name = _unquote_identifier(name_match.group(1))
        rest = element[name_match.end():]

        # Type: multi-word types first
        raw_type = ""
        rest_lower = rest.lower()
        for mwt in MULTI_WORD_TYPES:
            if re.match(re.escape(mwt) + r"\b", rest_lower):
                raw_type = mwt
                rest = rest[len(mwt):]
                break
        if not raw_type:
            type_match = re.match(r"([A-Za-z_]\w*)", rest)
            if not type_match:
                raise DdlParseError(f"Column {name!r} has no readable type: {element!r}")
            raw_type = type_match.group(1).lower()
            rest = rest[type_match.end():]

        # Optional (length), (precision, scale) or ('enum', 'values')
        type_args = None
        rest = rest.lstrip()
        if rest.startswith("("):
            close_idx = _matching_paren(rest, 0)
            if close_idx < 0:
                raise DdlParseError(f"Unbalanced type parameters for column {name!r}")
            type_args = rest[1:close_idx]
            rest = rest[close_idx + 1:]

        kind, fmt = TYPE_MAPPING.get(raw_type, (FieldKind.STRING, None))
        fd = FieldDefinition(name=name, kind=kind, format=fmt)
        self._apply_type_args(fd, raw_type, type_args)
        self._apply_modifiers(fd, raw_type, rest)

        if fd.kind == FieldKind.STRING and not fd.format:
            for candidate, pattern in NAME_FORMATS:
                if pattern.search(name):
                    fd.format = candidate
                    break

        logger.debug(f"Column {name}: {raw_type} -> {fd.kind.value}")
        return fd

    def _apply_type_args(self, fd: FieldDefinition, raw_type: str, type_args: Optional[str]) -> None:
        if raw_type in ("enum", "set"):
            values = [a or b for a, b in QUOTED_LITERAL.findall(type_args or "")]
            values = [v.replace("''", "'") for v in values]
            if not values:
                raise DdlParseError(f"{raw_type.upper()} column {fd.name!r} lists no values")
            if raw_type == "enum":
                fd.values = values
            else:
                fd.items = FieldDefinition(name=fd.name, kind=FieldKind.ENUM, values=values)
                fd.min_items, fd.max_items = 0, len(values)
            return

        if fd.kind == FieldKind.OBJECT:
            fd.properties = {}

        if not type_args:
            return
        parts = [p.strip() for p in type_args.split(",")]
        if fd.kind == FieldKind.STRING and parts[0].isdigit():
            fd.max = int(parts[0])
        elif fd.kind == FieldKind.NUMBER:
            if parts[0].isdigit():
                fd.precision = int(parts[0])
            fd.scale = int(parts[1]) if len(parts) > 1 and parts[1].isdigit() else 0
        # INT(11) in MySQL is display width, ignored

    def _apply_modifiers(self, fd: FieldDefinition, raw_type: str, modifiers: str) -> None:
        """Apply trailing constraint clauses (case-insensitive keywords)."""
        upper = modifiers.upper()

        if re.search(r"\bNOT\s+NULL\b", upper):
            fd.required = True
        if re.search(r"\bUNIQUE\b", upper):
            fd.unique = True
        if (
            re.search(r"\bPRIMARY\s+KEY\b", upper)
            or re.search(r"\b(IDENTITY|AUTO_INCREMENT|AUTOINCREMENT)\b", upper)
            or raw_type in ("serial", "bigserial", "smallserial")
        ):
            fd.primary_key = True
            fd.required = True

        default_match = DEFAULT_CLAUSE.search(modifiers)
        if default_match:
            value = self._coerce_default(default_match.group(1), fd.kind)
            if value is not None:
                fd.default = value

        for check_expr in self._check_expressions(modifiers):
            self._apply_check(fd, check_expr)

        ref_match = INLINE_REFERENCES.search(modifiers)
        if ref_match:
            fd.references = {
                "table": _unquote_identifier(ref_match.group(1)).split(".")[-1],
                "column": ref_match.group(2) or "id",
            }

    def _check_expressions(self, text: str) -> list[str]:
        expressions = []
        for match in re.finditer(r"\bCHECK\s*\(", text, re.IGNORECASE):
            open_idx = match.end() - 1
            close_idx = _matching_paren(text, open_idx)
            if close_idx > 0:
                expressions.append(text[open_idx + 1:close_idx])
        return expressions

    def _apply_check(self, fd: FieldDefinition, expression: str) -> None:
        """Derive min/max from ``<column> <op> <number>``; anything else is ignored."""
        m = SIMPLE_CHECK.match(expression)
        if not m or m.group(1).lower() != fd.name.lower():
            return
        op, raw = m.group(2), m.group(3)
        value = float(raw) if "." in raw else int(raw)
        if op in (">=", ">"):
            fd.min = value
        else:
            fd.max = value

    def _coerce_default(self, literal: str, kind: FieldKind) -> Any:
        """Convert a DEFAULT literal to the field's kind; None if not a literal."""
        literal = literal.strip()
        if literal.startswith("(") and literal.endswith(")"):
            literal = literal[1:-1].strip()
        quoted = literal[:1] in ("'", '"') and literal[-1:] == literal[:1] and len(literal) >= 2
        text = literal[1:-1].replace("''", "'") if quoted else literal

        if not quoted and text.upper() == "NULL":
            return None
        if kind in (FieldKind.INTEGER, FieldKind.NUMBER):
            try:
                number = float(text)
            except ValueError:
                return None
            if kind == FieldKind.INTEGER and number.is_integer():
                return int(number)
            return number
        if kind == FieldKind.BOOLEAN:
            if text.lower() in ("true", "1", "b'1'"):
                return True
            if text.lower() in ("false", "0", "b'0'"):
                return False
            return None
        if not quoted:
            # Unquoted words are functions or keywords (CURRENT_TIMESTAMP, now)
            return None
        return text

    def _apply_table_constraint(self, element: str, fields: dict[str, FieldDefinition]) -> None:
        """Fold table-level PRIMARY KEY / FOREIGN KEY constraints into columns.

        Other table constraints (UNIQUE, CHECK, KEY, INDEX) are skipped.
        """
        body = re.sub(r"^CONSTRAINT\s+\S+\s+", "", element, flags=re.IGNORECASE)
        pk = re.match(r"PRIMARY\s+KEY\s*\(([^)]*)\)", body, re.IGNORECASE)
        if pk:
            for col in pk.group(1).split(","):
                fd = fields.get(_unquote_identifier(col.strip()))
                if fd:
                    fd.primary_key = True
                    fd.required = True
            return

        fk = re.match(
            r"FOREIGN\s+KEY\s*\(\s*([`\"\[]?\w+[`\"\]]?)\s*\)\s*REFERENCES\s+([`\"\[\]\w.]+)"
            r"(?:\s*\(\s*[`\"\[]?(\w+)[`\"\]]?\s*\))?",
            body,
            re.IGNORECASE,
        )
        if fk:
            fd = fields.get(_unquote_identifier(fk.group(1)))
            if fd:
                fd.references = {
                    "table": _unquote_identifier(fk.group(2)).split(".")[-1],
                    "column": fk.group(3) or "id",
                }
