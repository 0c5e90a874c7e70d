"""Deterministic lexical scanning of Dart sources.

Only what change tracking needs is extracted: the names of top-level
declarations, the top-level functions of the custom functions document,
and a canonical layout for directive-only documents such as the custom
code index files. Comments and string literals are masked before any
structural scanning so braces or semicolons inside them are ignored.
"""

import re
from dataclasses import dataclass
from typing import Optional

_IDENT = r"[A-Za-z_$][A-Za-z0-9_$]*"
_IDENT_RE = re.compile(_IDENT)
_ANNOTATION_RE = re.compile(
    r"\s*@" + _IDENT + r"(?:\." + _IDENT + r")*\s*(?:\((?:[^()]|\([^()]*\))*\))?"
)
_DIRECTIVE_RE = re.compile(r"(?:import|export|part|library)\b")
_TYPE_DECL_RE = re.compile(
    r"(?:(?:abstract|base|final|interface|sealed|macro)\s+)*(?:mixin\s+)?class\s+("
    + _IDENT
    + r")|mixin\s+("
    + _IDENT
    + r")|enum\s+("
    + _IDENT
    + r")|extension\s+type\s+(?:const\s+)?("
    + _IDENT
    + r")|extension\s+(?!on\b)("
    + _IDENT
    + r")|(extension)\b"
)
_TYPEDEF_RE = re.compile(r"typedef\s+(" + _IDENT + r")\s*(?:<[^=;]*>)?\s*=")
_GETTER_RE = re.compile(r"\bget\s+(" + _IDENT + r")")
_DIRECTIVE_PARTS_RE = re.compile(
    r"(export|import)\s+('[^']*'|\"[^\"]*\")"
    r"(\s+deferred)?(\s+as\s+" + _IDENT + r")?"
    r"((?:\s+(?:show|hide)\s+" + _IDENT + r"(?:\s*,\s*" + _IDENT + r")*)*)\s*;",
    re.DOTALL,
)
_COMBINATOR_RE = re.compile(
    r"(show|hide)\s+(" + _IDENT + r"(?:\s*,\s*" + _IDENT + r")*)"
)

_RESERVED_NAMES = frozenset(
    {
        "if",
        "for",
        "while",
        "switch",
        "return",
        "new",
        "const",
        "final",
        "var",
        "late",
        "static",
        "external",
        "operator",
        "Function",
    }
)

_STRING_QUOTES = ("'''", '"""', "'", '"')
_OPENERS = "([{"
_CLOSERS = ")]}"


@dataclass(frozen=True)
class DartDeclaration:
    """A named top-level declaration."""

    name: str
    """Declared identifier"""

    kind: str
    """One of class, mixin, enum, extension, typedef, function, getter, variable"""

    start: int
    """Offset of the declaration in the source text"""

    end: int
    """Offset just past the declaration"""


@dataclass(frozen=True)
class DartFunction:
    """A top-level function of the custom functions document."""

    name: str
    """Function name"""

    body: str
    """Declaration text with the function name cut out"""


# =============================================================================
# Masking
# =============================================================================


def _blank(chars: list[str], start: int, end: int) -> None:
    for i in range(start, end):
        if chars[i] != "\n":
            chars[i] = " "


def _string_end(text: str, start: int, quote: str, raw: bool) -> int:
    i = start
    n = len(text)
    while i < n:
        if not raw and text[i] == "\\":
            i += 2
            continue
        if text.startswith(quote, i):
            return i + len(quote)
        if len(quote) == 1 and text[i] == "\n":
            # Unterminated single line string, stop at the end of the line
            return i
        i += 1
    return n


def mask_comments_and_strings(text: str, mask_strings: bool = True) -> str:
    """Blank out comments and, optionally, string literals.

    Line breaks and offsets are preserved so positions in the masked text
    map one to one onto the original.

    Args:
        text: Dart source
        mask_strings: Whether string literals are blanked as well

    Returns:
        Masked source of the same length
    """
    chars = list(text)
    i = 0
    n = len(text)
    while i < n:
        if text.startswith("//", i):
            end = text.find("\n", i)
            end = n if end == -1 else end
            _blank(chars, i, end)
            i = end
            continue
        if text.startswith("/*", i):
            end = text.find("*/", i + 2)
            end = n if end == -1 else end + 2
            _blank(chars, i, end)
            i = end
            continue
        quote = next((q for q in _STRING_QUOTES if text.startswith(q, i)), None)
        if quote is not None:
            raw = i > 0 and text[i - 1] == "r"
            end = _string_end(text, i + len(quote), quote, raw)
            if mask_strings:
                _blank(chars, i, end)
            i = end
            continue
        i += 1
    return "".join(chars)


# =============================================================================
# Top-level structure
# =============================================================================


def _split_top_level(masked: str) -> list[tuple[int, int]]:
    """Split masked source into top-level items.

    An item ends at a semicolon outside any bracket, or at the brace that
    closes a top-level block (class body, function body). Braces that
    follow a top-level ``=`` or ``=>`` belong to an expression and do not
    end the item.
    """
    items: list[tuple[int, int]] = []
    depth = 0
    start: Optional[int] = None
    saw_equals = False

    for i, ch in enumerate(masked):
        if start is None:
            if ch.isspace():
                continue
            start = i
            saw_equals = False
        if ch in _OPENERS:
            depth += 1
        elif ch in _CLOSERS:
            depth = max(depth - 1, 0)
            if ch == "}" and depth == 0 and not saw_equals:
                items.append((start, i + 1))
                start = None
        elif ch == "=" and depth == 0:
            saw_equals = True
        elif ch == ";" and depth == 0:
            items.append((start, i + 1))
            start = None

    if start is not None and masked[start:].strip():
        items.append((start, len(masked)))
    return items


def _top_level_positions(text: str, targets: str) -> list[int]:
    positions = []
    depth = 0
    for i, ch in enumerate(text):
        if ch in targets and depth == 0:
            positions.append(i)
        if ch in _OPENERS:
            depth += 1
        elif ch in _CLOSERS:
            depth = max(depth - 1, 0)
    return positions


def _strip_trailing_generics(head: str) -> str:
    head = head.rstrip()
    if not head.endswith(">"):
        return head
    depth = 0
    for i in range(len(head) - 1, -1, -1):
        if head[i] == ">":
            depth += 1
        elif head[i] == "<":
            depth -= 1
            if depth == 0:
                return head[:i].rstrip()
    return head


def _last_identifier(head: str) -> Optional[re.Match[str]]:
    matches = list(_IDENT_RE.finditer(head))
    return matches[-1] if matches else None


def _first_assignment(text: str) -> Optional[int]:
    for pos in _top_level_positions(text, "="):
        nxt = text[pos + 1 : pos + 2]
        prev = text[pos - 1 : pos] if pos else ""
        if nxt not in (">", "=") and prev not in ("=", "!", "<", ">"):
            return pos
    return None


def _analyze_item(masked: str, offset: int) -> Optional[tuple[str, str, int, int]]:
    """Classify one top-level item.

    Returns:
        Tuple of (name, kind, name_start, name_end) with absolute offsets,
        or None for directives and unnamed declarations
    """
    pos = 0
    while True:
        annotation = _ANNOTATION_RE.match(masked, pos)
        if annotation is None or annotation.end() == pos:
            break
        pos = annotation.end()
    while pos < len(masked) and masked[pos].isspace():
        pos += 1
    body = masked[pos:]
    base = offset + pos

    if _DIRECTIVE_RE.match(body):
        return None

    type_decl = _TYPE_DECL_RE.match(body)
    if type_decl is not None:
        kinds = ("class", "mixin", "enum", "extension", "extension")
        for group, kind in enumerate(kinds, start=1):
            if type_decl.group(group):
                return (
                    type_decl.group(group),
                    kind,
                    base + type_decl.start(group),
                    base + type_decl.end(group),
                )
        return None

    if body.startswith("typedef"):
        typedef = _TYPEDEF_RE.match(body)
        if typedef is not None:
            return (
                typedef.group(1),
                "typedef",
                base + typedef.start(1),
                base + typedef.end(1),
            )
        parens = _top_level_positions(body, "(")
        head = body[: parens[0]] if parens else body
        name = _last_identifier(_strip_trailing_generics(head))
        if name is None:
            return None
        return name.group(0), "typedef", base + name.start(), base + name.end()

    boundary = min(
        [p for p in (body.find("{"), body.find("=>"), body.find(";")) if p >= 0]
        or [len(body)]
    )
    getter = _GETTER_RE.search(body, 0, boundary)
    if getter is not None:
        return getter.group(1), "getter", base + getter.start(1), base + getter.end(1)

    assignment = _first_assignment(body)
    for paren in _top_level_positions(body, "("):
        if assignment is not None and assignment < paren:
            break
        name = _last_identifier(_strip_trailing_generics(body[:paren]))
        if name is None or name.group(0) == "Function":
            continue
        if name.group(0) in _RESERVED_NAMES:
            return None
        return name.group(0), "function", base + name.start(), base + name.end()

    end = assignment if assignment is not None else len(body.rstrip().rstrip(";"))
    comma = _top_level_positions(body[:end], ",")
    if comma:
        end = comma[0]
    name = _last_identifier(body[:end])
    if name is None or name.group(0) in _RESERVED_NAMES:
        return None
    return name.group(0), "variable", base + name.start(), base + name.end()


def parse_top_level_declarations(text: str) -> list[DartDeclaration]:
    """Extract named top-level declarations in source order."""
    masked = mask_comments_and_strings(text)
    declarations: list[DartDeclaration] = []
    for start, end in _split_top_level(masked):
        result = _analyze_item(masked[start:end], start)
        if result is None:
            continue
        name, kind, _, _ = result
        declarations.append(DartDeclaration(name=name, kind=kind, start=start, end=end))
    return declarations


def get_top_level_names(text: str) -> list[str]:
    """Names of all top-level declarations in source order.

    Examples:
        >>> get_top_level_names("class A {}\\nFuture b() async {}\\nfinal c = 1;")
        ['A', 'b', 'c']
    """
    return [d.name for d in parse_top_level_declarations(text)]


def parse_top_level_functions(text: str) -> list[DartFunction]:
    """Extract top-level functions with their bodies.

    The body is the whole declaration with the function name removed, so
    two functions differing only in their name have identical bodies.
    """
    masked = mask_comments_and_strings(text)
    functions: list[DartFunction] = []
    for start, end in _split_top_level(masked):
        result = _analyze_item(masked[start:end], start)
        if result is None:
            continue
        name, kind, name_start, name_end = result
        if kind not in ("function", "getter"):
            continue
        body = text[start:name_start] + text[name_end:end]
        functions.append(DartFunction(name=name, body=body))
    return functions


# =============================================================================
# Formatting
# =============================================================================


def _format_directive(statement: str, line_length: int) -> Optional[str]:
    match = _DIRECTIVE_PARTS_RE.fullmatch(statement.strip())
    if match is None:
        return None
    keyword, uri, deferred, alias, combinator_text = match.groups()
    head = f"{keyword} {uri}"
    if deferred:
        head += " deferred"
    if alias:
        head += " " + " ".join(alias.split())
    combinators = [
        (kind, [n.strip() for n in names.split(",")])
        for kind, names in _COMBINATOR_RE.findall(combinator_text or "")
    ]

    single = head + "".join(f" {k} {', '.join(n)}" for k, n in combinators) + ";"
    if len(single) <= line_length:
        return single

    lines = [head]
    for kind, names in combinators:
        clause = f"    {kind} {', '.join(names)}"
        if len(clause) + 1 <= line_length:
            lines.append(clause)
        else:
            lines.append(f"    {kind}")
            lines.append(",\n".join(f"        {n}" for n in names))
    lines[-1] += ";"
    return "\n".join(lines)


def format_dart_code(source: str, line_length: int = 80) -> str:
    """Lay out a directive-only Dart document the way ``dart format`` does.

    Import and export directives are put on one line when they fit in
    ``line_length`` columns; otherwise each ``show``/``hide`` combinator
    moves to its own indented line, and its names are split one per line
    if the combinator still does not fit. Other statements and comments are
    kept with surrounding whitespace trimmed.

    Returns:
        Formatted text ending with a newline, or an empty string when the
        source holds no code and no comments
    """
    masked = mask_comments_and_strings(source, mask_strings=False)
    structural = mask_comments_and_strings(source)
    chunks: list[str] = []
    cursor = 0
    for start, end in _split_top_level(structural):
        gap = source[cursor:start].strip()
        if gap:
            chunks.append(gap)
        statement = masked[start:end]
        chunks.append(_format_directive(statement, line_length) or source[start:end].strip())
        cursor = end
    tail = source[cursor:].strip()
    if tail:
        chunks.append(tail)
    if not chunks:
        return ""
    return "\n".join(chunks) + "\n"
