"""String helpers shared by the parser, the environment and the executor."""

from __future__ import annotations

from collections.abc import Container

QUOTES = "\"'"
_SPACES = " \t\n\v\f\r"


def _closing_quote(text: str, index: int) -> int:
    """Index of the quote that closes the one at ``index``, or -1."""
    return text.find(text[index], index + 1)


def split_quoted(text: str, sep: str) -> list[str]:
    """Split ``text`` on ``sep``, keeping quoted sections (quotes included) intact.

    Empty fields are dropped. A quote without a closing partner is an
    ordinary character.
    """
    words: list[str] = []
    current: list[str] = []
    i = 0
    while i < len(text):
        ch = text[i]
        if ch in QUOTES:
            close = _closing_quote(text, i)
            if close >= 0:
                current.append(text[i : close + 1])
                i = close + 1
                continue
        if ch == sep:
            if current:
                words.append("".join(current))
                current = []
        else:
            current.append(ch)
        i += 1
    if current:
        words.append("".join(current))
    return words


def split_plain(text: str, sep: str) -> list[str]:
    """Split ``text`` on ``sep`` without regard to quotes, dropping empty fields."""
    return [word for word in text.split(sep) if word]


def trim(text: str, chars: str) -> str:
    """Strip every character in ``chars`` from both ends of ``text``."""
    return text.strip(chars)


def parse_int(text: str) -> int:
    """Read a leading integer: whitespace, an optional sign, then digits.

    Reading stops at the first non-digit; no digits at all gives 0.
    """
    i = 0
    while i < len(text) and text[i] in _SPACES:
        i += 1
    sign = 1
    if i < len(text) and text[i] in "+-":
        if text[i] == "-":
            sign = -1
        i += 1
    value = 0
    while i < len(text) and "0" <= text[i] <= "9":
        value = value * 10 + ord(text[i]) - ord("0")
        i += 1
    return sign * value


def is_numeric(text: str | None) -> bool:
    """True when ``text`` is an optional sign followed by one or more digits."""
    if not text:
        return False
    body = text[1:] if text[0] in "+-" else text
    return bool(body) and all("0" <= ch <= "9" for ch in body)


def remove_quotes(text: str) -> str:
    """Remove matched pairs of quotes, keeping what they enclose.

    After a pair is removed, scanning resumes one character past the end of
    the unquoted content, so a quote that immediately follows a closed pair
    is kept as it is.
    """
    i = 0
    while i < len(text):
        if text[i] in QUOTES:
            close = _closing_quote(text, i)
            if close >= 0:
                text = text[:i] + text[i + 1 : close] + text[close + 1 :]
                i = close
                continue
        i += 1
    return text


def replace_span(text: str, start: int, length: int, replacement: str | None = "") -> str:
    """Replace ``length`` characters of ``text`` from ``start`` with ``replacement``."""
    return text[:start] + (replacement or "") + text[start + length :]


def find_end(text: str, stops: Container[str], stop_at_match: bool = True) -> int:
    """Find the first position whose character is (or is not) among ``stops``.

    The end of ``text`` is seen as the character ``"\\0"``, so it can be
    named among ``stops``. With ``stop_at_match`` true the first character
    in ``stops`` is searched for, otherwise the first one outside them.
    Returns -1 when no position qualifies.
    """
    for index, ch in enumerate(text + "\0"):
        if (ch in stops) == stop_at_match:
            return index
    return -1


def filename_length(word: str, ignore: str) -> int:
    """Length of the redirection at the start of ``word``, file name included.

    Leading characters from ``ignore`` (the redirection sign and blanks) are
    skipped, then the name runs up to the next character from ``ignore``.
    Quoted sections are part of the name.
    """
    start = 0
    end = 0
    i = 0
    while i < len(word) and not (start and end):
        ch = word[i]
        if ch in QUOTES:
            close = _closing_quote(word, i)
            if close >= 0:
                i = close
                ch = word[i]
        if ch not in ignore:
            if not start:
                start = i
        elif start:
            end = i
        i += 1
    return end or i