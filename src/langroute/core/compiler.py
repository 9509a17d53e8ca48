"""Route template compiler.

This module turns a path template into its matching pattern:
- Parameter tokens: {name} or {name:constraint}, constraints may hold balanced braces
- Optional groups: [...] spans containing at least one parameter, nestable
- Reverse template and parameter descriptors used for URL generation
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from langroute.core.exceptions import ParserException

DEFAULT_MATCH_REGEX = "[^/]+"

_NAME_RE = re.compile(r"[a-z_][a-z0-9_-]*", re.IGNORECASE)
_SENTINEL_RE = re.compile("\x00([0-9]+)\x00")
_REGEX_META_RE = re.compile(r"[.^$*+?()\[\]{}|\\]")


def _sentinel(key: int) -> str:
    return f"\x00{key}\x00"


def group_name(key: int) -> str:
    """Name of the capture group bound to the parameter at position ``key``.

    Parameter names may contain dashes, which ``re`` rejects in group names,
    so captures are keyed by position and mapped back to names on match.
    """
    return f"_p{key}"


@dataclass
class ParamToken:
    """A parameter token located in a template."""

    start: int
    end: int
    name: str
    constraint: Optional[str]


@dataclass
class ParamSpec:
    """Descriptor of one parameter of a compiled template."""

    key: int
    name: str
    regex: str
    subject: str
    optional: str = ""

    def matches(self, value: str) -> bool:
        """Check a value against the parameter constraint (anchored, case-insensitive)."""
        return re.fullmatch(self.regex, value, re.IGNORECASE) is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "name": self.name,
            "regex": self.regex,
            "subject": self.subject,
            "optional": self.optional,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ParamSpec":
        return cls(
            key=int(data["key"]),
            name=data["name"],
            regex=data["regex"],
            subject=data["subject"],
            optional=data.get("optional", ""),
        )


@dataclass
class CompiledRoute:
    """Compiled form of one language variant of a route."""

    lang: str
    original: str
    regex: str
    rewrite: str
    params: List[ParamSpec] = field(default_factory=list)
    _pattern: Optional[re.Pattern] = field(default=None, init=False, repr=False, compare=False)

    @property
    def pattern(self) -> re.Pattern:
        """Compiled matching pattern, built on first use."""
        if self._pattern is None:
            self._pattern = re.compile(self.regex, re.IGNORECASE)
        return self._pattern

    def match(self, path: str) -> Optional[Dict[str, str]]:
        """Match a cleaned path against this route.

        Args:
            path: Cleaned request path (no surrounding slashes, no query)

        Returns:
            Dictionary of extracted parameters if matched, None otherwise
        """
        match = self.pattern.fullmatch(path)
        if not match:
            return None

        groups = match.groupdict()
        params = {}
        for param in self.params:
            value = groups.get(group_name(param.key))
            if value is not None:
                params[param.name] = value
        return params

    def to_dict(self) -> Dict[str, Any]:
        return {
            "lang": self.lang,
            "original": self.original,
            "regex": self.regex,
            "rewrite": self.rewrite,
            "params": [param.to_dict() for param in self.params],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CompiledRoute":
        return cls(
            lang=data.get("lang", ""),
            original=data["original"],
            regex=data["regex"],
            rewrite=data["rewrite"],
            params=[ParamSpec.from_dict(param) for param in data.get("params", [])],
        )


@dataclass
class _Group:
    """A balanced [...] span of the working template."""

    start: int
    end: int = -1
    children: List["_Group"] = field(default_factory=list)
    optional: bool = False


def scan_params(template: str) -> List[ParamToken]:
    """Find parameter tokens in a template, left to right.

    A constraint may contain balanced braces, e.g. ``{id:[0-9]{2,4}}``. An
    opening brace that does not start a well-formed token is literal text.

    Args:
        template: Path template

    Returns:
        List of located tokens
    """
    tokens: List[ParamToken] = []
    pos = 0
    while pos < len(template):
        if template[pos] != "{":
            pos += 1
            continue
        token = _read_token(template, pos)
        if token is None:
            pos += 1
            continue
        tokens.append(token)
        pos = token.end
    return tokens


def _read_token(template: str, start: int) -> Optional[ParamToken]:
    name_match = _NAME_RE.match(template, start + 1)
    if not name_match:
        return None

    name = name_match.group(0)
    pos = name_match.end()
    if pos >= len(template):
        return None
    if template[pos] == "}":
        return ParamToken(start, pos + 1, name, None)
    if template[pos] != ":":
        return None

    depth = 0
    for index in range(pos + 1, len(template)):
        char = template[index]
        if char == "{":
            depth += 1
        elif char == "}":
            if depth == 0:
                return ParamToken(start, index + 1, name, template[pos + 1 : index])
            depth -= 1
    return None


def scan_groups(text: str) -> List[_Group]:
    """Find balanced bracket groups, returning the outermost ones.

    Unmatched brackets are left out and treated as literal text; groups
    closed inside an unmatched bracket are promoted to its parent.
    """
    roots: List[_Group] = []
    stack: List[_Group] = []
    for index, char in enumerate(text):
        if char == "[":
            stack.append(_Group(start=index))
        elif char == "]" and stack:
            group = stack.pop()
            group.end = index + 1
            group.optional = _SENTINEL_RE.search(text, group.start, group.end) is not None
            (stack[-1].children if stack else roots).append(group)

    while stack:
        unclosed = stack.pop()
        target = stack[-1].children if stack else roots
        target.extend(unclosed.children)
        target.sort(key=lambda group: group.start)
    return roots


def _tokenize(template: str) -> Tuple[List[ParamToken], str]:
    """Locate tokens and replace them with sentinels keyed by position."""
    tokens = scan_params(template)
    parts: List[str] = []
    pos = 0
    for key, token in enumerate(tokens):
        parts.append(template[pos : token.start])
        parts.append(_sentinel(key))
        pos = token.end
    parts.append(template[pos:])
    return tokens, "".join(parts)


def render_template(template: str, values: Dict[int, str]) -> str:
    """Render a reverse template with parameter values keyed by position.

    An optional group is kept, without its brackets, when a parameter inside
    it (nested groups included) has a value, and dropped otherwise. Bracket
    spans holding no parameter are literal text. Parameters without a value
    render empty.
    """
    _, working = _tokenize(template)
    return _render_groups(working, 0, len(working), scan_groups(working), values)


def _render_groups(working: str, start: int, end: int, groups: List[_Group], values: Dict[int, str]) -> str:
    parts = []
    pos = start
    for group in groups:
        parts.append(_fill(working[pos : group.start], values))
        if not group.optional:
            parts.append(working[group.start : group.end])
        elif any(
            int(sentinel.group(1)) in values
            for sentinel in _SENTINEL_RE.finditer(working, group.start, group.end)
        ):
            parts.append(_render_groups(working, group.start + 1, group.end - 1, group.children, values))
        pos = group.end
    parts.append(_fill(working[pos:end], values))
    return "".join(parts)


def _fill(chunk: str, values: Dict[int, str]) -> str:
    return _SENTINEL_RE.sub(lambda sentinel: values.get(int(sentinel.group(1)), ""), chunk)


def delete_lost_params(url: str) -> str:
    """Remove parameter tokens and the bracket groups holding them from a URL."""
    return render_template(url, {})


class TemplateCompiler:
    """Compiles path templates into matching patterns.

    Supports:
    - Required parameters: users/{id}
    - Constrained parameters: users/{id:\\d+}
    - Optional groups: news[/page-{page:\\d+}]
    """

    def compile(self, template: str, lang: str = "") -> CompiledRoute:
        """Compile a cleaned template.

        Args:
            template: Path template without surrounding slashes or query string
            lang: Language code the template belongs to

        Returns:
            CompiledRoute for the template

        Raises:
            ParserException: If the resulting pattern is not a valid regex
        """
        tokens, working = _tokenize(template)
        if not tokens:
            route = CompiledRoute(
                lang=lang,
                original=template,
                regex=self._escape(template),
                rewrite=template,
            )
            self._validate(route)
            return route

        params = [
            ParamSpec(
                key=key,
                name=token.name,
                regex=token.constraint or DEFAULT_MATCH_REGEX,
                subject=template[token.start : token.end],
            )
            for key, token in enumerate(tokens)
        ]

        groups = scan_groups(working)
        self._assign_optionals(working, groups, params)

        route = CompiledRoute(
            lang=lang,
            original=template,
            regex=self._render_pattern(working, 0, len(working), groups, params),
            rewrite=self._restore(working, params),
            params=params,
        )
        self._validate(route)
        return route

    def _assign_optionals(self, working: str, groups: List[_Group], params: List[ParamSpec]) -> None:
        # Outer groups first so the innermost enclosing group wins
        for group in groups:
            if not group.optional:
                continue
            text = self._restore(working[group.start : group.end], params)
            for sentinel in _SENTINEL_RE.finditer(working, group.start, group.end):
                params[int(sentinel.group(1))].optional = text
            self._assign_optionals(working, group.children, params)

    def _render_pattern(
        self, working: str, start: int, end: int, groups: List[_Group], params: List[ParamSpec]
    ) -> str:
        pattern = []
        pos = start
        for group in groups:
            pattern.append(self._render_literal(working[pos : group.start], params))
            if group.optional:
                inner = self._render_pattern(
                    working, group.start + 1, group.end - 1, group.children, params
                )
                pattern.append(f"(?:{inner})?")
            else:
                pattern.append(self._escape(working[group.start : group.end]))
            pos = group.end
        pattern.append(self._render_literal(working[pos:end], params))
        return "".join(pattern)

    def _render_literal(self, chunk: str, params: List[ParamSpec]) -> str:
        pattern = []
        pos = 0
        for sentinel in _SENTINEL_RE.finditer(chunk):
            param = params[int(sentinel.group(1))]
            pattern.append(self._escape(chunk[pos : sentinel.start()]))
            pattern.append(f"(?P<{group_name(param.key)}>{param.regex})")
            pos = sentinel.end()
        pattern.append(self._escape(chunk[pos:]))
        return "".join(pattern)

    @staticmethod
    def _restore(chunk: str, params: List[ParamSpec]) -> str:
        return _SENTINEL_RE.sub(lambda sentinel: params[int(sentinel.group(1))].subject, chunk)

    @staticmethod
    def _escape(text: str) -> str:
        return _REGEX_META_RE.sub(lambda meta: "\\" + meta.group(0), text)

    @staticmethod
    def _validate(route: CompiledRoute) -> None:
        try:
            re.compile(route.regex, re.IGNORECASE)
            for param in route.params:
                re.compile(param.regex)
        except re.error as e:
            raise ParserException(f"Invalid route pattern for '{route.original}': {e}") from e


def compile_template(template: str, lang: str = "") -> CompiledRoute:
    """Compile a template (convenience function).

    Args:
        template: Cleaned path template
        lang: Language code

    Returns:
        CompiledRoute instance
    """
    return TemplateCompiler().compile(template, lang)
