"""
Placeholder mini-language used by "format" and "template" strings.

    ${value}        the value currently being formatted
    ${1} .. ${N}    first result of the N-th entry of "jsonPaths"
    ${$.a.b}        first result of an inline JSONPath in the current scope
    ${$$.a.b}       same, evaluated against the document root

Templates are scanned once, left to right. Substituted text is never scanned
again, so values coming from the document cannot inject placeholders.
Unknown markers and an unterminated "${" are kept verbatim.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Optional, Sequence, Union

OPEN = "${"
CLOSE = "}"
VALUE_MARKER = "value"


@dataclass(frozen=True)
class Text:
    text: str


@dataclass(frozen=True)
class Placeholder:
    body: str

    @property
    def raw(self) -> str:
        return OPEN + self.body + CLOSE

    @property
    def index(self) -> Optional[int]:
        return int(self.body) if self.body.isascii() and self.body.isdigit() else None

    @property
    def is_path(self) -> bool:
        return self.body.startswith("$")


Token = Union[Text, Placeholder]


def tokenize(template: str) -> Iterator[Token]:
    start = 0
    while True:
        open_at = template.find(OPEN, start)
        if open_at < 0:
            break
        close_at = template.find(CLOSE, open_at + len(OPEN))
        if close_at < 0:
            break
        if open_at > start:
            yield Text(template[start:open_at])
        yield Placeholder(template[open_at + len(OPEN):close_at])
        start = close_at + len(CLOSE)
    if start < len(template):
        yield Text(template[start:])


def expand(
    template: Optional[str],
    finder=None,
    value: Optional[str] = None,
    indexed: Sequence[str] = (),
) -> Optional[str]:
    """
    Expand ``template`` in a single pass.

    ``value`` binds ${value} (left verbatim when None); ``indexed`` holds the
    JSONPaths behind ${1}..${N}; ``finder`` resolves indexed and inline paths.
    """
    if template is None:
        return None
    out = []
    for tok in tokenize(template):
        if isinstance(tok, Text):
            out.append(tok.text)
            continue
        out.append(_substitute(tok, finder, value, indexed))
    return "".join(out)


def _substitute(tok: Placeholder, finder, value, indexed) -> str:
    if tok.body == VALUE_MARKER:
        return tok.raw if value is None else value
    idx = tok.index
    if idx is not None:
        if finder is None or not 1 <= idx <= len(indexed):
            return tok.raw
        return finder.first(indexed[idx - 1], "")
    if tok.is_path:
        if finder is None:
            return tok.raw
        return finder.first(tok.body, "")
    return tok.raw
