"""Express-style path patterns.

A pattern source such as ``/users/:id/files/*`` is parsed into tokens,
compiled into a regular expression with an ordered list of capture keys,
and rendered back into an OpenAPI path template (``/users/{id}/files/{0}``).
Pre-compiled ``re.Pattern`` sources are decompiled instead.
"""

import logging
import re
from dataclasses import dataclass, field
from urllib.parse import unquote

logger = logging.getLogger(__name__)

# How a named parameter followed directly by a wildcard (":name*") renders:
#   absorb   - "{name}", the tail is still an unnamed capture key
#   separate - "{name}{0}"
#   merge    - "{name}", the tail is part of the named capture
WILDCARD_POLICIES = ("absorb", "separate", "merge")

_TOKEN_RE = re.compile(
    r"(?P<prefix>[/.])?:(?P<name>\w+)"
    r"(?P<capture>\((?:\\.|[^\\()])*\))?"
    r"(?P<repeat>\*)?(?P<optional>\?)?"
    r"|(?P<group>\((?!\?)(?:\\.|[^\\()])*\))"
    r"|(?P<wildcard>\*)"
)

_UNNAMED = ("wildcard", "group")


@dataclass(frozen=True)
class Key:
    """A capture key. Unnamed captures are named by their ordinal."""

    name: str | int
    optional: bool = False


@dataclass(frozen=True)
class Token:
    kind: str  # literal / param / wildcard / group
    value: str = ""
    prefix: str = ""  # "/" or "." before a param
    optional: bool = False
    repeat: bool = False
    capture: str | None = None


@dataclass(frozen=True)
class PathMatch:
    path: str
    params: dict = field(default_factory=dict)
    remaining: str = "/"


def parse(source: str) -> list[Token]:
    """Split a path source into literal, param, wildcard and group tokens."""
    tokens: list[Token] = []
    pos = 0
    for m in _TOKEN_RE.finditer(source):
        if m.start() > pos:
            tokens.append(Token("literal", source[pos:m.start()]))
        if m.group("name"):
            capture = m.group("capture")
            tokens.append(
                Token(
                    "param",
                    m.group("name"),
                    prefix=m.group("prefix") or "",
                    optional=bool(m.group("optional")),
                    repeat=bool(m.group("repeat")),
                    capture=_expand_stars(capture[1:-1]) if capture else None,
                )
            )
        elif m.group("group"):
            _append_unnamed(tokens, Token("group", capture=m.group("group")[1:-1]))
        else:
            _append_unnamed(tokens, Token("wildcard", capture=".*"))
        pos = m.end()
    if pos < len(source):
        tokens.append(Token("literal", source[pos:]))
    return tokens


def _append_unnamed(tokens: list[Token], token: Token) -> None:
    # Two unnamed captures with no literal between them are one capture.
    if tokens and tokens[-1].kind in _UNNAMED:
        previous = tokens.pop()
        token = Token(previous.kind, capture=previous.capture + token.capture)
    tokens.append(token)


def _expand_stars(body: str) -> str:
    """A bare ``*`` inside a custom capture means "anything"."""
    return re.sub(r"(^|[(|])\*", r"\1.*", body)


def _non_capturing(body: str) -> str:
    return re.sub(r"(?<!\\)\((?!\?)", "(?:", body)


def _compile_tokens(tokens: list[Token], wildcards: str) -> tuple[str, list[Key]]:
    parts: list[str] = []
    keys: list[Key] = []
    ordinal = 0
    for token in tokens:
        if token.kind == "literal":
            parts.append(re.escape(token.value))
            continue

        if token.kind in _UNNAMED:
            keys.append(Key(ordinal))
            ordinal += 1
            parts.append(f"({_non_capturing(token.capture)})")
            continue

        slash = "/" if token.prefix == "/" else ""
        fmt = r"\." if token.prefix == "." else ""
        capture = _non_capturing(token.capture) if token.capture else rf"[^/{fmt}]+?"
        tail = rf"(?:[/{fmt}].+?)?"
        tail_group = ""
        keys.append(Key(token.value, token.optional))
        if token.repeat and wildcards == "merge":
            capture += tail
        elif token.repeat:
            tail_group = f"({tail})"
            keys.append(Key(ordinal))
            ordinal += 1

        optional = "?" if token.optional else ""
        parts.append(
            ("" if token.optional else slash)
            + "(?:"
            + fmt
            + (slash if token.optional else "")
            + f"({capture})"
            + tail_group
            + ")"
            + optional
        )
    return "".join(parts), keys


def _regex_keys(regex: re.Pattern) -> list[Key]:
    names = {index: name for name, index in regex.groupindex.items()}
    keys = []
    ordinal = 0
    for index in range(1, regex.groups + 1):
        if index in names:
            keys.append(Key(names[index]))
        else:
            keys.append(Key(ordinal))
            ordinal += 1
    return keys


class PathPattern:
    """A compiled path source with its capture keys."""

    def __init__(
        self,
        source: str | re.Pattern,
        *,
        end: bool = True,
        strict: bool = False,
        sensitive: bool = False,
        wildcards: str = "absorb",
    ):
        if wildcards not in WILDCARD_POLICIES:
            raise ValueError(f"Unknown wildcard policy: {wildcards!r}")
        self.source = source
        self.end = end
        self.wildcards = wildcards

        if isinstance(source, re.Pattern):
            self.tokens = None
            self.keys = _regex_keys(source)
            self.regex = source
            return

        self.tokens = parse(source)
        body, self.keys = _compile_tokens(self.tokens, wildcards)
        pattern = "^" + body
        if not strict:
            pattern += "?" if source.endswith("/") else "/?"
        if end:
            pattern += "$"
        elif not source.endswith("/"):
            pattern += "(?=/|$)"
        self.regex = re.compile(pattern, 0 if sensitive else re.IGNORECASE)

    def __repr__(self):
        return f"PathPattern({self.source!r})"

    def match(self, path: str) -> PathMatch | None:
        m = self.regex.match(path)
        if m is None:
            return None

        params = {}
        for index, key in enumerate(self.keys, start=1):
            value = m.group(index)
            if value is not None:
                params[key.name] = unquote(value)

        remaining = path[m.end():]
        if not remaining.startswith("/"):
            remaining = "/" + remaining
        return PathMatch(m.group(0), params, remaining)

    def template(self) -> str:
        """Render the pattern as an OpenAPI path template."""
        if self.tokens is None:
            return decompile_regex(self.regex, [k.name for k in self.keys])

        parts = []
        ordinal = 0
        for token in self.tokens:
            if token.kind == "literal":
                parts.append(token.value)
            elif token.kind == "param":
                parts.append(f"{token.prefix}{{{token.value}}}")
                if token.repeat and self.wildcards != "merge":
                    if self.wildcards == "separate":
                        parts.append(f"{{{ordinal}}}")
                    ordinal += 1
            else:
                parts.append(f"{{{ordinal}}}")
                ordinal += 1
        return "".join(parts)


_ANCHOR_SUFFIXES = ("$", r"(?=\/|$)", "(?=/|$)", r"\/?", "/?")


def decompile_regex(regex: str | re.Pattern, names=()) -> str:
    """Turn a compiled path matcher back into a path template.

    Capture groups are replaced, in order, by ``{name}`` using ``names``.
    Constructs that have no template equivalent are kept verbatim.
    """
    source = regex.pattern if isinstance(regex, re.Pattern) else regex
    if source.startswith("^"):
        source = source[1:]
    stripped = True
    while stripped:
        stripped = False
        for suffix in _ANCHOR_SUFFIXES:
            if source.endswith(suffix) and not source.endswith("\\" + suffix):
                source = source[: -len(suffix)]
                stripped = True
    return _render(source, iter(names)) or "/"


def _render(source: str, names) -> str:
    out = []
    i = 0
    while i < len(source):
        ch = source[i]
        if ch == "\\" and i + 1 < len(source):
            escaped = source[i + 1]
            out.append(escaped if not escaped.isalnum() else ch + escaped)
            i += 2
        elif ch == "(":
            close = _closing_paren(source, i)
            inner = source[i + 1:close]
            if inner.startswith("?:"):
                out.append(_render(inner[2:], names))
            elif inner.startswith("?P<") or not inner.startswith("?"):
                out.append(f"{{{next(names, '?')}}}")
            i = _skip_quantifier(source, close + 1)
        else:
            if ch in ".*+?|[]{}":
                logger.warning("Path regex %r has no template equivalent", source)
            out.append(ch)
            i += 1
    return "".join(out)


def _closing_paren(source: str, start: int) -> int:
    depth = 0
    i = start
    while i < len(source):
        if source[i] == "\\":
            i += 2
            continue
        if source[i] == "(":
            depth += 1
        elif source[i] == ")":
            depth -= 1
            if depth == 0:
                return i
        i += 1
    raise ValueError(f"Unbalanced parenthesis in path regex: {source!r}")


def _skip_quantifier(source: str, i: int) -> int:
    if i < len(source) and source[i] in "?*+":
        i += 1
    elif i < len(source) and source[i] == "{":
        i = source.index("}", i) + 1
    if i < len(source) and source[i] == "?":
        i += 1
    return i
