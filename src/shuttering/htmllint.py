"""HTML linter for rendered shuttering pages.

Two passes over the document:

- ``html5lib`` parses it with the HTML5 algorithm and reports tokenizer and tree
  construction errors (rule ``parser-error``).
- A ``html.parser.HTMLParser`` pass collects elements, attributes and text with their
  positions; the remaining rules inspect that collection.

Configuration follows an ``extends`` + ``rules`` shape: presets give every rule a
severity, per-rule overrides set ``"error"``, ``"warn"`` or ``"off"``.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from html.parser import HTMLParser

import html5lib
from html5lib.constants import E as HTML5LIB_MESSAGES

SEVERITY_ERROR = 2
SEVERITY_WARN = 1

_SEVERITIES = {"off": 0, "warn": SEVERITY_WARN, "error": SEVERITY_ERROR}

VOID_ELEMENTS = frozenset(
    {
        "area", "base", "br", "col", "embed", "hr", "img", "input",
        "link", "meta", "source", "track", "wbr",
    }
)

# Elements whose text content some rule needs.
_TEXT_ELEMENTS = frozenset({"a", "title", "h1", "h2", "h3", "h4", "h5", "h6"})

HEADINGS = {f"h{n}": n for n in range(1, 7)}

DEPRECATED_ELEMENTS = frozenset(
    {
        "acronym", "applet", "basefont", "big", "blink", "center", "dir", "font",
        "frame", "frameset", "isindex", "keygen", "listing", "marquee", "nobr",
        "noembed", "plaintext", "spacer", "strike", "tt", "xmp",
    }
)

BOOLEAN_ATTRIBUTES = frozenset(
    {
        "allowfullscreen", "async", "autofocus", "autoplay", "checked", "controls",
        "default", "defer", "disabled", "formnovalidate", "hidden", "inert", "ismap",
        "itemscope", "loop", "multiple", "muted", "nomodule", "novalidate", "open",
        "playsinline", "readonly", "required", "reversed", "selected",
    }
)

REQUIRED_ATTRIBUTES: dict[str, tuple[str, ...]] = {
    "img": ("src",),
    "link": ("href",),
    "optgroup": ("label",),
}

REFERENCE_ATTRIBUTES = ("for", "aria-labelledby", "aria-describedby", "aria-controls")


@dataclass(frozen=True, slots=True)
class Message:
    line: int
    column: int
    message: str
    rule_id: str
    severity: int


@dataclass(frozen=True, slots=True)
class Report:
    messages: tuple[Message, ...]

    @property
    def errors(self) -> list[Message]:
        return [m for m in self.messages if m.severity == SEVERITY_ERROR]

    @property
    def error_count(self) -> int:
        return len(self.errors)

    @property
    def warning_count(self) -> int:
        return sum(1 for m in self.messages if m.severity == SEVERITY_WARN)

    @property
    def valid(self) -> bool:
        return self.error_count == 0


@dataclass
class Element:
    tag: str
    attrs: list[tuple[str, str | None]]
    line: int
    column: int
    text: str = ""

    def has(self, name: str) -> bool:
        return any(k == name for k, _ in self.attrs)

    def get(self, name: str) -> str | None:
        for k, v in self.attrs:
            if k == name:
                return v
        return None


@dataclass
class Document:
    source: str
    elements: list[Element] = field(default_factory=list)

    def by_tag(self, *tags: str) -> Iterator[Element]:
        return (e for e in self.elements if e.tag in tags)

    @property
    def ids(self) -> set[str]:
        return {v for e in self.elements for k, v in e.attrs if k == "id" and v}


class _ElementCollector(HTMLParser):
    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.document_elements: list[Element] = []
        self._open: list[Element] = []

    def _element(self, tag: str, attrs: list[tuple[str, str | None]]) -> Element:
        line, offset = self.getpos()
        element = Element(tag=tag, attrs=list(attrs), line=line, column=offset + 1)
        self.document_elements.append(element)
        return element

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        element = self._element(tag, attrs)
        if tag == "img":
            # Alternative text of an image counts as text of the enclosing link.
            self._append_text(element.get("alt") or "")
        if tag not in VOID_ELEMENTS:
            self._open.append(element)

    def handle_startendtag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        element = self._element(tag, attrs)
        if tag == "img":
            self._append_text(element.get("alt") or "")

    def handle_endtag(self, tag: str) -> None:
        for index in range(len(self._open) - 1, -1, -1):
            if self._open[index].tag == tag:
                del self._open[index:]
                return

    def handle_data(self, data: str) -> None:
        self._append_text(data)

    def _append_text(self, data: str) -> None:
        for element in self._open:
            if element.tag in _TEXT_ELEMENTS:
                element.text += data


def parse_document(source: str) -> Document:
    collector = _ElementCollector()
    collector.feed(source)
    collector.close()
    return Document(source=source, elements=collector.document_elements)


Finding = tuple[int, int, str]
Rule = Callable[[Document], Iterable[Finding]]


def _parser_error(document: Document) -> Iterator[Finding]:
    parser = html5lib.HTMLParser(strict=False, namespaceHTMLElements=False)
    parser.parse(document.source)
    for (line, col), code, datavars in parser.errors:
        template = HTML5LIB_MESSAGES.get(code, code)
        try:
            message = template % (datavars or {})
        except (KeyError, TypeError, ValueError):
            message = template
        yield line, col + 1, message


def _no_dup_id(document: Document) -> Iterator[Finding]:
    seen: set[str] = set()
    for element in document.elements:
        value = element.get("id")
        if not value:
            continue
        if value in seen:
            yield element.line, element.column, f'Duplicate ID "{value}"'
        seen.add(value)


def _valid_id(document: Document) -> Iterator[Finding]:
    for element in document.elements:
        if not element.has("id"):
            continue
        value = element.get("id") or ""
        if value == "":
            yield element.line, element.column, "element id must not be empty"
        elif any(ch.isspace() for ch in value):
            yield element.line, element.column, f'element id "{value}" must not contain whitespace'


def _no_missing_references(document: Document) -> Iterator[Finding]:
    ids = document.ids
    for element in document.elements:
        for attr in REFERENCE_ATTRIBUTES:
            value = element.get(attr)
            if not value:
                continue
            for ref in value.split():
                if ref not in ids:
                    yield element.line, element.column, f'Element references missing id "{ref}"'


def _heading_level(document: Document) -> Iterator[Finding]:
    previous: int | None = None
    for element in document.by_tag(*HEADINGS):
        level = HEADINGS[element.tag]
        if previous is None:
            if level != 1:
                yield element.line, element.column, "Initial heading level must be <h1>"
        elif level > previous + 1:
            yield (
                element.line,
                element.column,
                f"Heading level can only increase by one, expected <h{previous + 1}> "
                f"but got <{element.tag}>",
            )
        previous = level


def _empty_title(document: Document) -> Iterator[Finding]:
    for element in document.by_tag("title"):
        if not element.text.strip():
            yield element.line, element.column, "<title> cannot be empty, must have text content"


def _link_text(document: Document) -> Iterator[Finding]:
    for element in document.by_tag("a"):
        if not element.has("href"):
            continue
        if element.text.strip() or (element.get("aria-label") or "").strip():
            continue
        yield element.line, element.column, "Anchor link must have a text describing its purpose"


def _img_alt(document: Document) -> Iterator[Finding]:
    for element in document.by_tag("img"):
        if not element.has("alt"):
            yield element.line, element.column, '<img> is missing required "alt" attribute'


def _required_attributes(document: Document) -> Iterator[Finding]:
    for element in document.elements:
        for attr in REQUIRED_ATTRIBUTES.get(element.tag, ()):
            if not element.has(attr):
                yield (
                    element.line,
                    element.column,
                    f'<{element.tag}> is missing required "{attr}" attribute',
                )


def _deprecated(document: Document) -> Iterator[Finding]:
    for element in document.elements:
        if element.tag in DEPRECATED_ELEMENTS:
            yield element.line, element.column, f"<{element.tag}> is deprecated"


def _no_inline_style(document: Document) -> Iterator[Finding]:
    for element in document.elements:
        if element.has("style"):
            yield element.line, element.column, "Inline style is not allowed"


def _require_sri(document: Document) -> Iterator[Finding]:
    for element in document.elements:
        if element.tag == "script":
            needs = bool(element.get("src"))
        elif element.tag == "link":
            needs = bool(element.get("href")) and "stylesheet" in (element.get("rel") or "").split()
        else:
            continue
        if needs and not element.has("integrity"):
            yield (
                element.line,
                element.column,
                f'SRI "integrity" attribute is required on <{element.tag}> element',
            )


def _attribute_boolean_style(document: Document) -> Iterator[Finding]:
    for element in document.elements:
        for name, value in element.attrs:
            if name in BOOLEAN_ATTRIBUTES and value is not None:
                yield element.line, element.column, f'Attribute "{name}" should omit value'


def _no_trailing_whitespace(document: Document) -> Iterator[Finding]:
    for lineno, line in enumerate(document.source.splitlines(), start=1):
        stripped = line.rstrip(" \t")
        if stripped != line:
            yield lineno, len(stripped) + 1, "Trailing whitespace"


RULES: dict[str, Rule] = {
    "parser-error": _parser_error,
    "no-dup-id": _no_dup_id,
    "valid-id": _valid_id,
    "no-missing-references": _no_missing_references,
    "heading-level": _heading_level,
    "empty-title": _empty_title,
    "wcag/h30": _link_text,
    "wcag/h37": _img_alt,
    "element-required-attributes": _required_attributes,
    "deprecated": _deprecated,
    "no-inline-style": _no_inline_style,
    "require-sri": _require_sri,
    "attribute-boolean-style": _attribute_boolean_style,
    "no-trailing-whitespace": _no_trailing_whitespace,
}

PRESETS: dict[str, dict[str, str]] = {
    "recommended": {rule_id: "error" for rule_id in RULES},
}


@dataclass(frozen=True, slots=True)
class LintConfig:
    extends: tuple[str, ...] = ("recommended",)
    rules: Mapping[str, str] = field(default_factory=dict)

    def severities(self) -> dict[str, int]:
        merged: dict[str, str] = {}
        for preset in self.extends:
            if preset not in PRESETS:
                raise ValueError(f"Unknown preset: {preset}")
            merged.update(PRESETS[preset])
        for rule_id, level in self.rules.items():
            if rule_id not in RULES:
                raise ValueError(f"Unknown rule: {rule_id}")
            if level not in _SEVERITIES:
                raise ValueError(f"Unknown severity {level!r} for rule {rule_id}")
            merged[rule_id] = level
        return {rule_id: _SEVERITIES[level] for rule_id, level in merged.items()}


class HtmlLinter:
    def __init__(self, config: LintConfig | None = None) -> None:
        self._severities = (config or LintConfig()).severities()

    def enabled_rules(self) -> list[str]:
        return [rule_id for rule_id, severity in self._severities.items() if severity > 0]

    def validate_string(self, source: str) -> Report:
        document = parse_document(source)
        messages: list[Message] = []
        for rule_id in self.enabled_rules():
            severity = self._severities[rule_id]
            for line, column, text in RULES[rule_id](document):
                messages.append(Message(line, column, text, rule_id, severity))
        messages.sort(key=lambda m: (m.line, m.column, m.rule_id))
        return Report(messages=tuple(messages))
