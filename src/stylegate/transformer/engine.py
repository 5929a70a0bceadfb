# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Prefixer: adds vendor-prefixed declarations to a stylesheet.

Stateless after construction: the browser selection is resolved once into a
property → prefixes table, so ``process()`` is a single pass over the parsed
stylesheet. Whitespace and comments survive; every token is re-serialized by
tinycss2, so string quotes are normalized to double quotes.

    .foo { animation: bar; }
    →
    .foo { -webkit-animation: bar; animation: bar; }
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

import tinycss2
from tinycss2.ast import AtRule, Comment, IdentToken, LiteralToken, ParseError, QualifiedRule, WhitespaceToken
from tinycss2.serializer import serialize_identifier

from ..errors import CssSyntaxError
from .browsers import BrowserSelection, Version
from .config import PrefixerConfig
from .data import AT_RULES, KEYFRAMES_SINCE, PREFIX_ORDER, PROPERTIES, PrefixRule

_PREFIXED = re.compile(r"^(-webkit-|-moz-|-ms-|-o-)(.+)$")
_KEYFRAMES = re.compile(r"^(-webkit-|-moz-|-ms-|-o-)?keyframes$")

# At-rules whose block holds nested rules rather than declarations
_GROUPING_AT_RULES = frozenset({
    "container",
    "document",
    "-moz-document",
    "layer",
    "media",
    "scope",
    "starting-style",
    "supports",
})


def _position(css: str, offset: int) -> tuple[int, int]:
    line = css.count("\n", 0, offset) + 1
    column = offset - (css.rfind("\n", 0, offset) + 1) + 1
    return line, column


def check_syntax(css: str) -> None:
    """Reject unbalanced braces, unclosed strings and unclosed comments.

    tinycss2 silently closes blocks at end of input; a stylesheet served that
    way is almost certainly truncated, so it is refused instead of prefixed.
    """
    stack: list[int] = []
    i, n = 0, len(css)
    while i < n:
        ch = css[i]
        if css.startswith("/*", i):
            end = css.find("*/", i + 2)
            if end == -1:
                raise CssSyntaxError("Unclosed comment", *_position(css, i))
            i = end + 2
            continue
        if ch in "\"'":
            j = i + 1
            while j < n and css[j] != ch:
                j += 2 if css[j] == "\\" else 1
            if j >= n:
                raise CssSyntaxError("Unclosed string", *_position(css, i))
            i = j + 1
            continue
        if ch == "\\":
            i += 2
            continue
        if ch == "{":
            stack.append(i)
        elif ch == "}":
            if not stack:
                raise CssSyntaxError("Unexpected }", *_position(css, i))
            stack.pop()
        i += 1
    if stack:
        raise CssSyntaxError("Unclosed block", *_position(css, stack[-1]))


@dataclass
class _Declaration:
    """One ``;``-terminated chunk of a declaration block."""

    before: list = field(default_factory=list)
    body: list = field(default_factory=list)
    after: list = field(default_factory=list)
    terminated: bool = False

    @property
    def name(self) -> str | None:
        """Lower-cased property name, or None if the chunk isn't a declaration."""
        if not self.body or not isinstance(self.body[0], IdentToken):
            return None
        for token in self.body[1:]:
            if isinstance(token, WhitespaceToken):
                continue
            if isinstance(token, LiteralToken) and token.value == ":":
                return self.body[0].lower_value
            return None
        return None

    @property
    def whitespace(self) -> str:
        """The whitespace immediately before the property name."""
        if self.before and isinstance(self.before[-1], WhitespaceToken):
            return self.before[-1].value
        return ""

    def serialize(self) -> str:
        return tinycss2.serialize(self.before + self.body + self.after)


def _reject_parse_errors(tokens: list) -> None:
    for token in tokens:
        if isinstance(token, ParseError):
            raise CssSyntaxError(token.message, token.source_line, token.source_column)


def _split_declarations(tokens: list) -> list[_Declaration]:
    _reject_parse_errors(tokens)
    chunks: list[list] = []
    current: list = []
    for token in tokens:
        current.append(token)
        if isinstance(token, LiteralToken) and token.value == ";":
            chunks.append(current)
            current = []
    if current:
        chunks.append(current)

    declarations = []
    for chunk in chunks:
        i = 0
        while i < len(chunk) and isinstance(chunk[i], (WhitespaceToken, Comment)):
            i += 1
        before, rest = chunk[:i], chunk[i:]
        terminated = bool(rest) and isinstance(rest[-1], LiteralToken) and rest[-1].value == ";"
        j = len(rest)
        if not terminated:
            while j > 0 and isinstance(rest[j - 1], WhitespaceToken):
                j -= 1
        declarations.append(_Declaration(before, rest[:j], rest[j:], terminated))
    return declarations


class Prefixer:
    """Vendor-prefixes stylesheets for a fixed browser selection."""

    def __init__(self, config: PrefixerConfig | None = None):
        self.config = config or PrefixerConfig()
        self.selection = BrowserSelection.from_queries(self.config.browsers)
        self._properties = {name: self._needed(rule) for name, rule in PROPERTIES.items()}
        # Inside @keyframes only browsers that support keyframes matter
        self._keyframe_properties = {
            name: self._needed(rule, KEYFRAMES_SINCE) for name, rule in PROPERTIES.items()
        }
        self._keyframes = self._needed(AT_RULES["keyframes"])

    def _needed(self, rule: PrefixRule, since: dict[str, Version] | None = None) -> tuple[str, ...]:
        since = since or {}
        found = {
            prefix
            for browser, (until, prefix) in rule.items()
            if self.selection.needs(browser, until, since.get(browser, (0,)))
        }
        return tuple(p for p in PREFIX_ORDER if p in found)

    def prefixes_for(self, prop: str) -> tuple[str, ...]:
        """Prefixes the selected browsers need for ``prop``."""
        return self._properties.get(prop.lower(), ())

    def info(self) -> str:
        """Human-readable description of the effective configuration.

        Stable for a given configuration, so it doubles as fingerprint input.
        """
        lines = ["Browsers:"]
        lines.extend(f"  {entry}" for entry in self.selection.describe())

        lines.extend(["", "Properties:"])
        needed = [(name, prefixes) for name, prefixes in sorted(self._properties.items()) if prefixes]
        if needed:
            for name, prefixes in needed:
                lines.append(f"  {name}: {', '.join(p.strip('-') for p in prefixes)}")
        else:
            lines.append("  (none)")

        lines.extend(["", "At-Rules:"])
        if self._keyframes:
            lines.append(f"  @keyframes: {', '.join(p.strip('-') for p in self._keyframes)}")
        else:
            lines.append("  (none)")

        lines.extend([
            "",
            "Options:",
            f"  cascade: {str(self.config.cascade).lower()}",
            f"  remove: {str(self.config.remove).lower()}",
        ])
        return "\n".join(lines) + "\n"

    def process(self, css: str) -> str:
        """Return ``css`` with the vendor prefixes the selection requires.

        Raises:
            CssSyntaxError: If the stylesheet is malformed.
        """
        check_syntax(css)
        nodes = tinycss2.parse_stylesheet(css, skip_comments=False, skip_whitespace=False)
        return self._process_rules(nodes, only=None)

    # ------------------------------------------------------------------
    # Rule lists
    # ------------------------------------------------------------------

    def _process_rules(self, nodes: list, only: str | None, in_keyframes: bool = False) -> str:
        existing = self._prefixed_keyframes(nodes)
        out: list[str] = []
        separator = ""
        for node in nodes:
            if isinstance(node, ParseError):
                raise CssSyntaxError(node.message, node.source_line, node.source_column)
            if isinstance(node, QualifiedRule):
                _reject_parse_errors(node.prelude)
                out.append(
                    tinycss2.serialize(node.prelude)
                    + "{"
                    + self._process_declarations(node.content, only, in_keyframes)
                    + "}"
                )
            elif isinstance(node, AtRule):
                rendered = self._process_at_rule(node, only, existing, separator, in_keyframes)
                if rendered is None:
                    if out and not out[-1].strip():
                        out.pop()
                else:
                    out.append(rendered)
            else:
                out.append(node.serialize())
            separator = node.value if isinstance(node, WhitespaceToken) else ""
        return "".join(out)

    @staticmethod
    def _prefixed_keyframes(nodes: list) -> set[tuple[str, str]]:
        found = set()
        for node in nodes:
            if isinstance(node, AtRule):
                match = _KEYFRAMES.match(node.lower_at_keyword)
                if match and match.group(1):
                    found.add((match.group(1), tinycss2.serialize(node.prelude).strip()))
        return found

    def _process_at_rule(
        self,
        node: AtRule,
        only: str | None,
        existing: set[tuple[str, str]],
        separator: str,
        in_keyframes: bool,
    ) -> str | None:
        if node.content is None:
            return node.serialize()

        keyword = node.lower_at_keyword
        prelude = tinycss2.serialize(node.prelude)

        match = _KEYFRAMES.match(keyword)
        if match:
            own_prefix = match.group(1)
            if own_prefix:
                if self.config.remove and own_prefix not in self._keyframes:
                    return None
                return self._render_keyframes(node, "", prelude, own_prefix)
            twins = []
            name = prelude.strip()
            for prefix in self._keyframes:
                if (prefix, name) in existing:
                    continue
                twins.append(self._render_keyframes(node, prefix, prelude, prefix) + (separator or "\n"))
            return "".join(twins) + self._render_keyframes(node, "", prelude, only)

        head = "@" + serialize_identifier(node.at_keyword) + prelude
        if keyword in _GROUPING_AT_RULES:
            rules = tinycss2.parse_rule_list(node.content, skip_comments=False, skip_whitespace=False)
            return head + "{" + self._process_rules(rules, only, in_keyframes) + "}"
        return head + "{" + self._process_declarations(node.content, only, in_keyframes) + "}"

    def _render_keyframes(self, node: AtRule, prefix: str, prelude: str, only: str | None) -> str:
        rules = tinycss2.parse_rule_list(node.content, skip_comments=False, skip_whitespace=False)
        return (
            "@"
            + prefix
            + serialize_identifier(node.at_keyword)
            + prelude
            + "{"
            + self._process_rules(rules, only, in_keyframes=True)
            + "}"
        )

    # ------------------------------------------------------------------
    # Declaration blocks
    # ------------------------------------------------------------------

    def _allowed(self, prop: str, only: str | None, in_keyframes: bool) -> tuple[str, ...]:
        table = self._keyframe_properties if in_keyframes else self._properties
        prefixes = table.get(prop, ())
        if only is not None:
            return tuple(p for p in prefixes if p == only)
        return prefixes

    def _process_declarations(
        self, tokens: list, only: str | None, in_keyframes: bool = False
    ) -> str:
        declarations = _split_declarations(tokens)
        present = {d.name for d in declarations if d.name}
        out: list[str] = []
        for declaration in declarations:
            name = declaration.name
            if name is None:
                out.append(declaration.serialize())
                continue

            prefixed = _PREFIXED.match(name)
            if prefixed:
                prefix, unprefixed = prefixed.groups()
                if (
                    self.config.remove
                    and unprefixed in PROPERTIES
                    and prefix not in self._allowed(unprefixed, only, in_keyframes)
                ):
                    continue
                out.append(declaration.serialize())
                continue

            prefixes = [p for p in self._allowed(name, only, in_keyframes) if p + name not in present]
            if not prefixes:
                out.append(declaration.serialize())
                continue
            out.append(self._with_prefixes(declaration, prefixes))
        return "".join(out)

    def _with_prefixes(self, declaration: _Declaration, prefixes: list[str]) -> str:
        before = tinycss2.serialize(declaration.before)
        whitespace = declaration.whitespace
        body = tinycss2.serialize(declaration.body)
        copy = body if declaration.terminated else body + ";"

        cascade = self.config.cascade and "\n" in whitespace
        width = max(len(p) for p in prefixes)

        parts = []
        for index, prefix in enumerate(prefixes):
            lead = before if index == 0 else whitespace
            pad = " " * (width - len(prefix)) if cascade else ""
            parts.append(lead + pad + prefix + copy)
        pad = " " * width if cascade else ""
        parts.append(whitespace + pad + body + tinycss2.serialize(declaration.after))
        return "".join(parts)
