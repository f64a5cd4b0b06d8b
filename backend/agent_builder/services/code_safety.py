"""Static gate for user-authored execute functions.

This is a conservative allow/deny check that decides whether a function body
may be embedded verbatim in generated source. It is NOT a sandbox: nothing
here executes the code, and running generated projects safely is the job of
the preview runner.
"""

import re

import tree_sitter_typescript
from tree_sitter import Language, Node as SyntaxNode, Parser

from ..models.codegen import CodeValidationResult


DANGEROUS_PATTERNS = [
    re.compile(r"process\.env", re.IGNORECASE),  # direct environment access
    re.compile(r"require\s*\("),  # CommonJS require
    re.compile(r"import\s+.*\s+from"),  # ES module imports belong to the generator
    re.compile(r"eval\s*\("),
    re.compile(r"Function\s*\("),  # Function constructor
    re.compile(r"setTimeout|setInterval", re.IGNORECASE),
]

FUNCTION_PATTERNS = [
    re.compile(r"^\s*async\s+function"),
    re.compile(r"^\s*function"),
    re.compile(r"^\s*async\s*\([^)]*\)\s*=>"),
    re.compile(r"^\s*\([^)]*\)\s*=>"),
]

# Embedded code ends up in .ts modules
TYPESCRIPT = Language(tree_sitter_typescript.language_typescript())

_SNIPPET_LENGTH = 20


def find_dangerous_pattern(code: str) -> str | None:
    """Return the source of the first denylisted pattern found in ``code``."""
    for pattern in DANGEROUS_PATTERNS:
        if pattern.search(code):
            return pattern.pattern
    return None


def _encode(text: str) -> bytes:
    return text.encode("utf-8", "surrogatepass")


def _parse(source: bytes) -> SyntaxNode:
    return Parser(TYPESCRIPT).parse(source).root_node


def _first_error(root: SyntaxNode) -> SyntaxNode | None:
    """First ERROR or MISSING node in source order."""
    stack = [root]
    while stack:
        node = stack.pop()
        if node.is_error or node.is_missing:
            return node
        if node.has_error:
            stack.extend(reversed(node.children))
    return None


def _describe_error(node: SyntaxNode) -> str:
    line = node.start_point[0] + 1
    if node.is_missing:
        return f"Missing '{node.type}' (line {line})"

    text = (node.text or b"").decode("utf-8", "replace").strip()
    snippet = text.split("\n", 1)[0]
    if not snippet:
        return f"Unexpected end of input (line {line})"
    if len(snippet) > _SNIPPET_LENGTH:
        snippet = snippet[:_SNIPPET_LENGTH] + "..."
    return f"Unexpected token '{snippet}' (line {line})"


def check_syntax(code: str) -> str | None:
    """Parse ``(code)`` and require it to be exactly one expression.

    Returns an error description, or None when ``code`` can be placed as a
    value (an object property, an arrow body) without changing its meaning.
    """
    # The newline keeps a trailing line comment from swallowing the closing paren
    source = _encode(f"({code}\n)")
    root = _parse(source)

    error = _first_error(root)
    if error is not None:
        return _describe_error(error)

    statements = root.named_children
    if len(statements) != 1 or statements[0].type != "expression_statement":
        return "Expected a single expression"
    expression = statements[0].named_children[0] if statements[0].named_children else None
    # ``x) || (y`` parses once wrapped, but not as one parenthesized expression
    if (
        expression is None
        or expression.type != "parenthesized_expression"
        or expression.start_byte != 0
        or expression.end_byte != len(source)
        or any(child.type == "sequence_expression" for child in expression.named_children)
    ):
        return "Expected a single expression"
    return None


def validate_execute_code(code: str | None) -> CodeValidationResult:
    """Decide whether a user-supplied execute function may be embedded."""
    if not code or not code.strip():
        return CodeValidationResult(is_valid=False, error="Execute code cannot be empty")

    dangerous = find_dangerous_pattern(code)
    if dangerous:
        return CodeValidationResult(
            is_valid=False,
            error=f"Code contains potentially dangerous pattern: {dangerous}",
        )

    if not any(pattern.search(code) for pattern in FUNCTION_PATTERNS):
        return CodeValidationResult(
            is_valid=False,
            error="Execute code must be a valid function (async function, function, or arrow function)",
        )

    problem = check_syntax(code)
    if problem:
        return CodeValidationResult(is_valid=False, error=f"Invalid JavaScript syntax: {problem}")

    return CodeValidationResult(is_valid=True)


def _comment_spans(source: bytes) -> list[tuple[int, int]]:
    spans = []
    stack = [_parse(source)]
    while stack:
        node = stack.pop()
        if node.type == "comment":
            spans.append((node.start_byte, node.end_byte))
        else:
            stack.extend(node.children)
    return sorted(spans)


def _strip_comments(code: str) -> str:
    source = _encode(code)
    pieces = []
    last = 0
    for start, end in _comment_spans(source):
        if start < last:
            continue
        pieces.append(source[last:start])
        comment = source[start:end]
        # Line comments vanish; block comments keep a separator so tokens never fuse
        if comment.startswith(b"/*"):
            pieces.append(b"\n" if b"\n" in comment else b" ")
        last = end
    pieces.append(source[last:])
    return b"".join(pieces).decode("utf-8", "surrogatepass")


def _sanitize_once(code: str) -> str:
    normalized = code.replace("\r\n", "\n").replace("\r", "\n")
    stripped = _strip_comments(normalized)
    lines = (line.strip() for line in stripped.split("\n"))
    return "\n".join(line for line in lines if line)


def sanitize_code(code: str) -> str:
    """Remove comments, normalize line endings, trim lines and drop blank ones.

    Runs to a fixed point, so ``sanitize_code(sanitize_code(x)) == sanitize_code(x)``.
    """
    current = _sanitize_once(code)
    while True:
        again = _sanitize_once(current)
        if again == current:
            return current
        current = again
