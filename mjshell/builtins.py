"""Commands the shell runs itself, and the context they run in."""

from __future__ import annotations

import os
import sys
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import TextIO

from mjshell.environment import Environment
from mjshell.parser import export_key
from mjshell.textutils import is_numeric, parse_int


class ShellExit(Exception):
    """Raised by ``exit``: the shell should stop with ``code``."""

    def __init__(self, code: int):
        super().__init__(code)
        self.code = code


@dataclass
class ShellContext:
    """The environment and streams a command runs with."""

    env: Environment = field(default_factory=Environment)
    stdin: TextIO = field(default_factory=lambda: sys.stdin)
    stdout: TextIO = field(default_factory=lambda: sys.stdout)
    stderr: TextIO = field(default_factory=lambda: sys.stderr)

    def error(self, message: str) -> None:
        """Write ``message`` and a newline to the error stream."""
        self.stderr.write(message + "\n")
        self.stderr.flush()


Builtin = Callable[[Sequence[str], ShellContext], int]


def _getcwd() -> str:
    try:
        return os.getcwd()
    except OSError:
        return ""


def cd(args: Sequence[str], ctx: ShellContext) -> int:
    """Change directory; no argument, ``~...`` or ``$HOME`` go home, ``-...`` goes back."""
    if len(args) > 2:
        ctx.error("bash: cd : too many arguments")
        return 1
    home = ctx.env.get("HOME")
    target = args[1] if len(args) > 1 else None
    if target is None or target == home or target.startswith("~"):
        new_path = home
    elif target.startswith("-"):
        new_path = ctx.env.get("OLDPWD")
    else:
        new_path = target
    ctx.env.set("OLDPWD", _getcwd())
    try:
        os.chdir(new_path)
    except OSError:
        ctx.error(f"bash: cd: {new_path}: No such file or directory")
        return 1
    ctx.env.set("PWD", _getcwd())
    return 0


def echo(args: Sequence[str], ctx: ShellContext) -> int:
    """Print the arguments; leading words starting with ``-n`` are options."""
    i = 1
    while i < len(args) and args[i].startswith("-n"):
        i += 1
    ctx.stdout.write(" ".join(args[i:]))
    if not (len(args) > 1 and args[1] == "-n"):
        ctx.stdout.write("\n")
    ctx.stdout.flush()
    return 0


def pwd(args: Sequence[str], ctx: ShellContext) -> int:
    """Print the working directory; arguments are ignored."""
    try:
        cwd = os.getcwd()
    except OSError as exc:
        return exc.errno or 1
    ctx.stdout.write(cwd + "\n")
    ctx.stdout.flush()
    return 0


def export(args: Sequence[str], ctx: ShellContext) -> int:
    """Set variables from ``KEY=VALUE`` words, or list them all sorted."""
    if len(args) < 2:
        return env(args, ctx)
    failed = False
    for arg in args[1:]:
        try:
            key = export_key(arg)
        except ValueError as exc:
            ctx.error(str(exc))
            failed = True
            continue
        _, sep, value = arg.partition("=")
        if sep:
            ctx.env.set(key, value)
        elif key not in ctx.env:
            ctx.env.set(key, "")
    return int(failed)


def unset(args: Sequence[str], ctx: ShellContext) -> int:
    """Remove the named variables; unknown names are ignored."""
    for name in args[1:]:
        ctx.env.unset(name)
    return 0


def env(args: Sequence[str], ctx: ShellContext) -> int:
    """Print every variable; sorted by key when called as ``export``."""
    if len(args) != 1:
        extra = args[1] if len(args) > 1 else ""
        ctx.error(f"env: {extra}: No such file or directory")
        return 127
    items = ctx.env.sorted_items() if args[0] == "export" else ctx.env.items()
    for key, value in items:
        ctx.stdout.write(f"{key}={value}\n")
    ctx.stdout.flush()
    return 0


def exit_shell(args: Sequence[str], ctx: ShellContext) -> int:
    """Raise ShellExit; with too many arguments only complain and return 1."""
    if len(args) > 2:
        ctx.error("exit: too many arguments")
        return 1
    if len(args) < 2:
        raise ShellExit(0)
    if not is_numeric(args[1]):
        ctx.error(f"exit: {args[1]}: numeric argument required")
        raise ShellExit(2)
    raise ShellExit(parse_int(args[1]) % 256)


_BUILTINS: dict[str, Builtin] = {
    "cd": cd,
    "echo": echo,
    "pwd": pwd,
    "export": export,
    "unset": unset,
    "env": env,
    "exit": exit_shell,
}


def lookup(name: str) -> Builtin | None:
    """The builtin called ``name``, or None."""
    return _BUILTINS.get(name)