"""
Rewrite embedded version tokens in file content.

Only the numeric spans of recognized tokens are replaced. Everything else,
including separators and whitespace between the numbers, is kept as-is,
which makes rewriting idempotent.
"""

import codecs
from dataclasses import dataclass
from pathlib import Path
from typing import List, Tuple

from .tokens import VERSION_TOKENS, VersionToken
from .version import Version

_BOMS = [
    (codecs.BOM_UTF8, "utf-8"),
    (codecs.BOM_UTF16_LE, "utf-16-le"),
    (codecs.BOM_UTF16_BE, "utf-16-be"),
]


def _rewrite_token(token: VersionToken, text: str, version: Version) -> str:
    spans: List[Tuple[int, int, str]] = []
    for match in token.finditer(text):
        for group, value in enumerate(version.parts, start=1):
            spans.append((match.start(group), match.end(group), str(value)))

    if not spans:
        return text

    pieces = []
    last = 0
    for start, end, value in spans:
        pieces.append(text[last:start])
        pieces.append(value)
        last = end
    pieces.append(text[last:])
    return "".join(pieces)


def rewrite(text: str, version: Version) -> str:
    """
    Set every recognized version token in ``text`` to ``version``.

    Syntaxes absent from the text stay absent. Resource records keep their
    comma-separated layout since only the numbers are substituted.

    Args:
        text: File content
        version: Version to write

    Returns:
        The rewritten content
    """
    for token in VERSION_TOKENS:
        text = _rewrite_token(token, text, version)
    return text


@dataclass
class SourceText:
    """Decoded file content together with what is needed to encode it back."""

    text: str
    encoding: str = "utf-8"
    bom: bytes = b""

    def to_bytes(self) -> bytes:
        return self.bom + self.text.encode(self.encoding)

    def with_text(self, text: str) -> "SourceText":
        return SourceText(text, self.encoding, self.bom)


def decode_source(raw: bytes) -> SourceText:
    """
    Decode file bytes, remembering the BOM and encoding.

    Resource scripts are frequently UTF-16; files without a BOM that are not
    valid UTF-8 are read as latin-1, which maps every byte one-to-one.
    """
    for bom, encoding in _BOMS:
        if raw.startswith(bom):
            return SourceText(raw[len(bom) :].decode(encoding), encoding, bom)
    try:
        return SourceText(raw.decode("utf-8"), "utf-8")
    except UnicodeDecodeError:
        return SourceText(raw.decode("latin-1"), "latin-1")


def read_source(path: Path) -> SourceText:
    return decode_source(Path(path).read_bytes())


def write_source(path: Path, source: SourceText) -> None:
    Path(path).write_bytes(source.to_bytes())
