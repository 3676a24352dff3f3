"""The interactive shell: prompt, line reading, signals and the main loop."""

from __future__ import annotations

import os
import signal
import sys
import threading
from collections.abc import Iterator, Mapping, Sequence
from contextlib import contextmanager
from typing import TextIO

from mjshell.builtins import ShellContext, ShellExit
from mjshell.environment import Environment
from mjshell.executor import run_pipeline
from mjshell.parser import has_unclosed_quote, parse_line

try:
    import readline as _readline_module
except ImportError:  # pragma: no cover - platforms without GNU readline
    _readline_module = None

try:
    import termios as _termios
except ImportError:  # pragma: no cover - platforms without termios
    _termios = None

PROMPT = "MJ > "
CONTINUATION_PROMPT = "> "
ARGS_REFUSED = "Don't give any args"

INTERRUPTED = 130
QUIT = 131

_SIGQUIT = getattr(signal, "SIGQUIT", None)


class Shell:
    """A read-parse-run loop over the given streams and environment."""

    def __init__(
        self,
        environ: Mapping[str, str] | None = None,
        stdin: TextIO | None = None,
        stdout: TextIO | None = None,
        stderr: TextIO | None = None,
    ):
        env = Environment(os.environ if environ is None else environ)
        self.context = ShellContext(
            env=env,
            stdin=stdin if stdin is not None else sys.stdin,
            stdout=stdout if stdout is not None else sys.stdout,
            stderr=stderr if stderr is not None else sys.stderr,
        )
        self.status = 0
        self._pending_signal = 0
        self._interactive = self._is_terminal()

    @property
    def env(self) -> Environment:
        return self.context.env

    def _is_terminal(self) -> bool:
        ctx = self.context
        if ctx.stdin is not sys.stdin or ctx.stdout is not sys.stdout:
            return False
        try:
            return sys.stdin.isatty()
        except (AttributeError, ValueError):
            return False

    def _readline(self, prompt: str) -> str | None:
        """One line without its newline, or None at the end of input."""
        if self._interactive:
            while True:
                try:
                    return input(prompt)
                except EOFError:
                    return None
                except KeyboardInterrupt:
                    self.context.stdout.write("\n")
                    self.context.stdout.flush()
                    self._pending_signal = INTERRUPTED
        ctx = self.context
        ctx.stdout.write(prompt)
        ctx.stdout.flush()
        line = ctx.stdin.readline()
        if not line:
            return None
        return line[:-1] if line.endswith("\n") else line

    def read_command(self) -> str | None:
        """Read a command, asking for more lines while a quote is left open.

        Returns None at the end of input.
        """
        line = self._readline(PROMPT)
        if line is None:
            return None
        while has_unclosed_quote(line):
            more = self._readline(CONTINUATION_PROMPT)
            if more is None:
                break
            line = f"{line}\n{more}"
        return line

    def run_line(self, line: str) -> int:
        """Parse and run one line; returns and records its status.

        ``exit`` raises ShellExit out of this method.
        """
        if self._pending_signal:
            self.status = self._pending_signal
            self._pending_signal = 0
        stages = parse_line(line, self.env, self.status)
        with self._signals(self._child_handlers()):
            self.status = run_pipeline(stages, self.context, self._readline)
        if self._interactive and _readline_module is not None:
            _readline_module.add_history(line)
        return self.status

    def repl(self) -> int:
        """Run until the end of input or ``exit``; returns the exit code."""
        with self._terminal_without_echoctl():
            while True:
                with self._signals(self._prompt_handlers()):
                    line = self.read_command()
                if line is None:
                    self.context.stdout.write("exit\n")
                    self.context.stdout.flush()
                    return 0
                try:
                    self.run_line(line)
                except ShellExit as done:
                    return done.code

    def _on_child_interrupt(self, signo: int, frame: object) -> None:
        self.context.stdout.write("\n")
        self.context.stdout.flush()
        self._pending_signal = INTERRUPTED

    def _on_child_quit(self, signo: int, frame: object) -> None:
        self.context.error("Quit (core dumped)")
        self._pending_signal = QUIT

    def _prompt_handlers(self) -> dict[int, object]:
        handlers: dict[int, object] = {signal.SIGINT: signal.default_int_handler}
        if _SIGQUIT is not None:
            handlers[_SIGQUIT] = signal.SIG_IGN
        return handlers

    def _child_handlers(self) -> dict[int, object]:
        handlers: dict[int, object] = {signal.SIGINT: self._on_child_interrupt}
        if _SIGQUIT is not None:
            handlers[_SIGQUIT] = self._on_child_quit
        return handlers

    @contextmanager
    def _signals(self, handlers: dict[int, object]) -> Iterator[None]:
        """Install ``handlers`` for the duration of the block when interactive."""
        if not self._interactive or threading.current_thread() is not threading.main_thread():
            yield
            return
        previous = {signo: signal.signal(signo, handler) for signo, handler in handlers.items()}
        try:
            yield
        finally:
            for signo, handler in previous.items():
                signal.signal(signo, handler)

    @contextmanager
    def _terminal_without_echoctl(self) -> Iterator[None]:
        """Stop the terminal echoing control characters such as ``^C``."""
        echoctl = getattr(_termios, "ECHOCTL", 0) if _termios is not None else 0
        if not self._interactive or not echoctl:
            yield
            return
        fd = sys.stdin.fileno()
        try:
            saved = _termios.tcgetattr(fd)
        except _termios.error:
            yield
            return
        changed = list(saved)
        changed[3] = saved[3] & ~echoctl
        _termios.tcsetattr(fd, _termios.TCSANOW, changed)
        try:
            yield
        finally:
            _termios.tcsetattr(fd, _termios.TCSANOW, saved)


def main(argv: Sequence[str] | None = None) -> int:
    """Start the shell; it takes no arguments."""
    args = list(sys.argv[1:] if argv is None else argv)
    if args:
        sys.stdout.write(ARGS_REFUSED)
        sys.stdout.flush()
        return -1
    return Shell().repl()


if __name__ == "__main__":
    raise SystemExit(main())