"""Turn an input line into pipeline stages: expansion, redirections, commands."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field

from mjshell.environment import Environment
from mjshell.textutils import (
    QUOTES,
    filename_length,
    find_end,
    remove_quotes,
    replace_span,
    split_quoted,
    trim,
)

BUILTINS = frozenset({"cd", "echo", "pwd", "export", "unset", "env", "exit"})

# Builtins whose arguments keep their quotes.
_RAW_ARGUMENT_BUILTINS = frozenset({"pwd", "env"})

# A variable name runs until one of these; "\0" stands for the end of text.
_NAME_STOPS = frozenset("\0\t\n \"$?")

_REDIRECTION_SIGNS = " <>"


class RedirectKind(enum.Enum):
    """The four redirections the shell understands."""

    INPUT = "<"
    HEREDOC = "<<"
    OUTPUT = ">"
    APPEND = ">>"


@dataclass(frozen=True)
class Redirection:
    """One redirection of a stage.

    ``target`` is the file name, or for a here-document its delimiter;
    a here-document written without a blank before the delimiter has none.
    """

    kind: RedirectKind
    target: str | None


@dataclass
class Command:
    """A command word list; ``builtin`` names the builtin it runs, if any."""

    argv: list[str]
    builtin: str | None = None

    @property
    def name(self) -> str:
        return self.argv[0]


@dataclass
class Stage:
    """One part of a pipeline, numbered from 1."""

    index: int
    redirections: list[Redirection] = field(default_factory=list)
    command: Command | None = None


def _is_alpha(ch: str) -> bool:
    return "a" <= ch <= "z" or "A" <= ch <= "Z"


def expand(text: str, env: Environment, last_status: int = 0) -> str:
    """Replace ``$NAME`` and ``$?`` outside single quotes.

    After every substitution the scan starts again from the beginning, so
    values that themselves hold variables are expanded too.
    """
    i = 0
    while i < len(text):
        ch = text[i]
        if ch == "'":
            close = text.find("'", i + 1)
            if close >= 0:
                i = close + 1
                continue
        following = text[i + 1 : i + 2]
        if ch != "$" or not following or not (_is_alpha(following) or following == "?"):
            i += 1
            continue
        start = i + 1
        end = start + find_end(text[start:], _NAME_STOPS)
        if end == start:
            end += 1
        name = text[start:end]
        value = str(last_status) if name.startswith("?") else env.get(name)
        text = replace_span(text, i, end - i, value)
        i = 0
    return text


def _make_redirection(sign: str, doubled: bool, spec: str) -> Redirection:
    if sign == "<" and doubled:
        words = split_quoted(spec, " ")
        return Redirection(RedirectKind.HEREDOC, words[1] if len(words) > 1 else None)
    target = remove_quotes(trim(spec, _REDIRECTION_SIGNS))
    if sign == "<":
        return Redirection(RedirectKind.INPUT, target)
    return Redirection(RedirectKind.APPEND if doubled else RedirectKind.OUTPUT, target)


def extract_redirections(command: str, char: str) -> tuple[list[Redirection], str]:
    """Take every ``char`` redirection (``<`` or ``>``) out of ``command``.

    Returns the redirections in order and what is left of the command.
    Signs inside quotes are ignored. After a redirection is removed the
    scan resumes at the second character of the remaining text.
    """
    if char not in ("<", ">"):
        raise ValueError(f"not a redirection sign: {char!r}")
    found: list[Redirection] = []
    i = 0
    while i < len(command):
        ch = command[i]
        if ch in QUOTES:
            close = command.find(ch, i + 1)
            if close >= 0:
                i = close + 1
                continue
        if ch != char:
            i += 1
            continue
        length = filename_length(command[i:], _REDIRECTION_SIGNS)
        spec = command[i : i + length]
        doubled = command[i + 1 : i + 2] == char
        found.append(_make_redirection(char, doubled, spec))
        command = replace_span(command, i, length)
        i = 1
    return found, command


def parse_command(text: str) -> Command | None:
    """Split a command into words and see whether it names a builtin.

    Returns None when there are no words.
    """
    words = split_quoted(text, " ")
    if not words:
        return None
    builtin = words[0] if words[0] in BUILTINS else None
    if builtin not in _RAW_ARGUMENT_BUILTINS:
        words = [remove_quotes(word) for word in words]
    return Command(argv=words, builtin=builtin)


def parse_line(line: str, env: Environment, last_status: int = 0) -> list[Stage]:
    """Parse a whole input line into its pipeline stages.

    Input redirections of a stage come before its output redirections.
    """
    stages: list[Stage] = []
    for index, piece in enumerate(split_quoted(line, "|"), start=1):
        piece = expand(piece, env, last_status)
        inputs, piece = extract_redirections(piece, "<")
        outputs, piece = extract_redirections(piece, ">")
        stages.append(Stage(index=index, redirections=inputs + outputs, command=parse_command(piece)))
    return stages


def has_unclosed_quote(line: str) -> bool:
    """True when a quote in ``line`` has no closing partner."""
    i = 0
    while i < len(line):
        if line[i] in QUOTES:
            close = line.find(line[i], i + 1)
            if close < 0:
                return True
            i = close
        i += 1
    return False


def export_key(arg: str) -> str:
    """The variable name in an ``export`` argument.

    Raises ValueError when the name is not made of letters only.
    """
    error = ValueError(f"bash: export: {arg}: not a valid identifier")
    equals = arg.find("=")
    if equals < 0:
        if all(_is_alpha(ch) for ch in arg):
            return arg
        raise error
    if equals == 0:
        raise error
    if arg[equals + 1 : equals + 2] == "=":
        equals += 1
    key = arg[:equals]
    if all(_is_alpha(ch) for ch in key):
        return key
    raise error