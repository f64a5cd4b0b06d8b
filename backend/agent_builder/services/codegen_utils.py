"""Shared helpers for emitting TypeScript source text."""

import json
import re
from typing import Any, Iterable


_IDENTIFIER_RE = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")
_WORD_SPLIT_RE = re.compile(r"[^0-9A-Za-z]+")
_CONTROL_RE = re.compile(r"[\x00-\x1f\x7f\u2028\u2029]")
_MODULE_UNSAFE_RE = re.compile(r"[^0-9A-Za-z_.-]+")

# Entity kind -> suffix of its generated variable
ENTITY_ROLES = {
    "agent": "Agent",
    "tool": "Tool",
    "step": "Step",
}

_NAMED_CONTROL_ESCAPES = {
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}

_SIMPLE_UNESCAPES = {
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "b": "\b",
    "f": "\f",
    "v": "\v",
}


def to_camel_case(value: str) -> str:
    """Convert a kebab-case, snake_case or spaced identifier to camelCase.

    Characters that cannot appear in a JS identifier act as word separators,
    and a leading digit gets an underscore prefix.
    """
    parts = [part for part in _WORD_SPLIT_RE.split(value) if part]
    if not parts:
        return "_"

    head = parts[0][0].lower() + parts[0][1:]
    camel = head + "".join(part[0].upper() + part[1:] for part in parts[1:])
    if camel[0].isdigit():
        camel = f"_{camel}"
    return camel


def entity_var_name(declared_id: str, role: str) -> str:
    """Variable name for a generated entity, e.g. ('web-search', 'Tool') -> webSearchTool."""
    return f"{to_camel_case(declared_id)}{role}"


def schema_var_name(declared_id: str, direction: str) -> str:
    """Variable name for an input/output schema, e.g. ('fetch', 'input') -> fetchInputSchema."""
    return f"{to_camel_case(declared_id)}{direction.capitalize()}Schema"


def module_name(declared_id: str) -> str:
    """File stem for a generated module; keeps the id but never leaves its directory."""
    stem = _MODULE_UNSAFE_RE.sub("-", declared_id).lstrip(".")
    return stem or "_"


def _escape_control(match: re.Match) -> str:
    char = match.group(0)
    if char in _NAMED_CONTROL_ESCAPES:
        return _NAMED_CONTROL_ESCAPES[char]
    code = ord(char)
    if code > 0xFF:
        return f"\\u{code:04x}"
    return f"\\x{code:02x}"


def escape_string(value: str) -> str:
    """Escape text for a single- or double-quoted JS string literal."""
    escaped = (
        value.replace("\\", "\\\\")
        .replace("'", "\\'")
        .replace('"', '\\"')
        .replace("`", "\\`")
        .replace("$", "\\$")
    )
    return _CONTROL_RE.sub(_escape_control, escaped)


def unescape_string(literal: str) -> str:
    """Decode the body of a JS string literal back to its text.

    Inverse of :func:`escape_string`; also understands the other escapes a JS
    engine accepts in a quoted literal.
    """
    out: list[str] = []
    i = 0
    length = len(literal)
    while i < length:
        char = literal[i]
        if char != "\\" or i + 1 >= length:
            out.append(char)
            i += 1
            continue

        nxt = literal[i + 1]
        if nxt in _SIMPLE_UNESCAPES:
            out.append(_SIMPLE_UNESCAPES[nxt])
            i += 2
        elif nxt == "0" and not (i + 2 < length and literal[i + 2].isdigit()):
            out.append("\x00")
            i += 2
        elif nxt == "x":
            out.append(chr(int(literal[i + 2:i + 4], 16)))
            i += 4
        elif nxt == "u" and i + 2 < length and literal[i + 2] == "{":
            end = literal.index("}", i + 3)
            out.append(chr(int(literal[i + 3:end], 16)))
            i = end + 1
        elif nxt == "u":
            out.append(chr(int(literal[i + 2:i + 6], 16)))
            i += 6
        elif nxt == "\n":
            # Line continuation
            i += 2
        else:
            out.append(nxt)
            i += 2
    return "".join(out)


def escape_template(value: str) -> str:
    """Escape text for the body of a JS template literal."""
    return (
        value.replace("\\", "\\\\")
        .replace("`", "\\`")
        .replace("${", "\\${")
        .replace("\r", "\\r")
    )


def quote(value: str) -> str:
    """Single-quoted, escaped JS string literal."""
    return f"'{escape_string(value)}'"


def js_key(name: str) -> str:
    """Object key: bare when it is a valid identifier, quoted otherwise."""
    if _IDENTIFIER_RE.match(name):
        return name
    return quote(name)


def js_literal(value: Any) -> str:
    """Render a Python value as a JS expression."""
    if isinstance(value, str):
        return quote(value)
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, (int, float)):
        return json.dumps(value)
    return json.dumps(value, sort_keys=True)


def comment_text(value: str) -> str:
    """Flatten text so it can sit inside a single-line // comment."""
    return " ".join(value.replace("*/", "* /").split())


def unique(values: Iterable[str]) -> list[str]:
    """Stable de-duplication: first occurrence wins, order preserved."""
    seen: set[str] = set()
    result = []
    for value in values:
        if value not in seen:
            seen.add(value)
            result.append(value)
    return result


def indent_block(code: str, prefix: str) -> str:
    """Indent every line after the first so a multi-line value nests under its key."""
    lines = code.split("\n")
    return "\n".join([lines[0]] + [f"{prefix}{line}" for line in lines[1:]])


def clashing_ids(declared_ids: Iterable[str], role: str) -> dict[str, str]:
    """Find declared ids whose generated variable or file is already taken.

    ``my-tool`` and ``my_tool`` are distinct ids but both become ``myToolTool``;
    ``MyTool`` and ``mytool`` differ only in case, which some filesystems ignore.

    Returns:
        Each clashing id mapped to the earlier id that claimed the name first
    """
    owners: dict[tuple[str, str], str] = {}
    clashes: dict[str, str] = {}
    for declared_id in declared_ids:
        keys = (("var", entity_var_name(declared_id, role)), ("file", module_name(declared_id).lower()))
        owner = next((owners[key] for key in keys if key in owners and owners[key] != declared_id), None)
        if owner is not None:
            clashes.setdefault(declared_id, owner)
            continue
        for key in keys:
            owners.setdefault(key, declared_id)
    return clashes
