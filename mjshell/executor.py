"""Run parsed pipeline stages: redirections, builtins and external programs."""

from __future__ import annotations

import os
import subprocess
import tempfile
from collections.abc import Callable, Iterable, Sequence
from dataclasses import replace
from typing import IO, TextIO

from mjshell.builtins import Builtin, ShellContext, lookup
from mjshell.environment import Environment
from mjshell.parser import Command, RedirectKind, Redirection, Stage
from mjshell.textutils import split_plain

Reader = Callable[[str], "str | None"]

HEREDOC_PROMPT = ">"
OPEN_FAILED = "bash: open: The file doesn't exists or can't be accessed"
COMMAND_NOT_FOUND = " command not found"

_REDIRECTION_FAILED = 2
_IS_DIRECTORY = 126
_NOT_FOUND = 127
_EXEC_ERRNO_OFFSET = 113

_INPUT_KINDS = (RedirectKind.INPUT, RedirectKind.HEREDOC)
_OPEN_MODES = {
    RedirectKind.INPUT: "rb",
    RedirectKind.OUTPUT: "wb",
    RedirectKind.APPEND: "ab",
}


def find_path(name: str, env: Environment) -> str | None:
    """Locate ``name`` on ``PATH``; a name holding ``/`` is used as it is."""
    if "/" in name:
        return name
    for directory in split_plain(env.get("PATH"), ":"):
        candidate = f"{directory}/{name}"
        if os.access(candidate, os.X_OK):
            return candidate
    return None


def read_heredoc(delimiter: str | None, reader: Reader) -> str:
    """Collect lines from ``reader`` up to ``delimiter`` or the end of input.

    With no delimiter, lines are read until the end of input.
    """
    lines: list[str] = []
    while True:
        line = reader(HEREDOC_PROMPT)
        if line is None or line == delimiter:
            break
        lines.append(line + "\n")
    return "".join(lines)


def open_redirection(redirection: Redirection) -> IO[bytes]:
    """Open the file of an input, output or append redirection."""
    mode = _OPEN_MODES.get(redirection.kind)
    if mode is None or redirection.target is None:
        raise ValueError("a here-document has no file to open")
    return open(redirection.target, mode)


def _fileno(stream: object) -> int | None:
    try:
        return stream.fileno()  # type: ignore[attr-defined]
    except (AttributeError, OSError, ValueError):
        return None


def _stream_reader(ctx: ShellContext) -> Reader:
    def reader(prompt: str) -> str | None:
        ctx.stdout.write(prompt)
        ctx.stdout.flush()
        line = ctx.stdin.readline()
        if not line:
            return None
        return line[:-1] if line.endswith("\n") else line

    return reader


class _PipelineRun:
    """State of one line's execution: pipes, opened files and children."""

    def __init__(self, ctx: ShellContext, reader: Reader):
        self._ctx = ctx
        self._reader = reader
        self._pipes: list[tuple[int, int]] = []
        self._fds: list[int] = []
        self._files: list[IO[bytes]] = []
        self._captures: list[tuple[IO[bytes], TextIO]] = []
        self._children: list[subprocess.Popen[bytes] | int] = []

    def start(self, stages: Iterable[Stage]) -> int:
        stages = list(stages)
        count = len(stages)
        for _ in range(count - 1):
            read_end, write_end = os.pipe()
            self._pipes.append((read_end, write_end))
            self._fds.extend((read_end, write_end))
        status = 0
        for position, stage in enumerate(stages, start=1):
            stdin, stdout = self._pipe_ends(position, count)
            status = 0
            for redirection in stage.redirections:
                try:
                    fd = self._open(redirection)
                except OSError:
                    self._ctx.error(OPEN_FAILED)
                    status = _REDIRECTION_FAILED
                    continue
                status = 0
                if redirection.kind in _INPUT_KINDS:
                    stdin = fd
                else:
                    stdout = fd
            if stage.command is not None:
                status = self._run_command(stage.command, stdin, stdout)
        return status

    def _pipe_ends(self, position: int, count: int) -> tuple[int | None, int | None]:
        if count <= 1:
            return None, None
        if position == 1:
            return None, self._pipes[0][1]
        if position == count:
            return self._pipes[position - 2][0], None
        return self._pipes[position - 2][0], self._pipes[position - 1][1]

    def _open(self, redirection: Redirection) -> int:
        if redirection.kind is RedirectKind.HEREDOC:
            text = read_heredoc(redirection.target, self._reader)
            handle: IO[bytes] = tempfile.TemporaryFile()
            handle.write(text.encode("utf-8"))
            handle.seek(0)
        else:
            handle = open_redirection(redirection)
        self._files.append(handle)
        return handle.fileno()

    def _run_command(self, command: Command, stdin: int | None, stdout: int | None) -> int:
        if command.builtin is not None:
            handler = lookup(command.builtin)
            if handler is not None:
                return self._run_builtin(handler, command.argv, stdout)
        self._launch(command.argv, stdin, stdout)
        return 0

    def _run_builtin(self, handler: Builtin, argv: Sequence[str], stdout: int | None) -> int:
        if stdout is None:
            return handler(argv, self._ctx)
        with open(stdout, "w", encoding="utf-8", closefd=False) as sink:
            return handler(argv, replace(self._ctx, stdout=sink))

    def _input_fd(self, stdin: int | None) -> int:
        if stdin is not None:
            return stdin
        fd = _fileno(self._ctx.stdin)
        if fd is not None:
            return fd
        try:
            data = self._ctx.stdin.read()
        except (AttributeError, OSError):
            data = ""
        handle: IO[bytes] = tempfile.TemporaryFile()
        handle.write(data.encode("utf-8"))
        handle.seek(0)
        self._files.append(handle)
        return handle.fileno()

    def _output_fd(self, target: int | None, stream: TextIO) -> int:
        if target is not None:
            return target
        fd = _fileno(stream)
        if fd is not None:
            stream.flush()
            return fd
        capture: IO[bytes] = tempfile.TemporaryFile()
        self._captures.append((capture, stream))
        return capture.fileno()

    def _launch(self, argv: Sequence[str], stdin: int | None, stdout: int | None) -> None:
        env = self._ctx.env
        path = find_path(argv[0], env)
        if path is None:
            self._children.append(_NOT_FOUND)
            return
        if os.path.isdir(path):
            self._children.append(_IS_DIRECTORY)
            return
        stdin_fd = self._input_fd(stdin)
        stdout_fd = self._output_fd(stdout, self._ctx.stdout)
        stderr_fd = self._output_fd(None, self._ctx.stderr)
        try:
            child = subprocess.Popen(
                list(argv),
                executable=path,
                stdin=stdin_fd,
                stdout=stdout_fd,
                stderr=stderr_fd,
                env=dict(env.items()),
            )
        except OSError as exc:
            if not os.path.exists(path):
                self._children.append(_NOT_FOUND)
            else:
                self._children.append(((exc.errno or 0) + _EXEC_ERRNO_OFFSET) & 0xFF)
            return
        self._children.append(child)

    def release(self) -> None:
        """Close the shell's copies of pipes and redirected files."""
        for fd in self._fds:
            try:
                os.close(fd)
            except OSError:
                pass
        self._fds.clear()
        for handle in self._files:
            handle.close()
        self._files.clear()

    def wait(self) -> list[int]:
        """Wait for every child and pass captured output on; return exit codes."""
        codes: list[int] = []
        for child in self._children:
            if isinstance(child, int):
                codes.append(child)
            else:
                code = child.wait()
                codes.append(code if code >= 0 else 0)
        for capture, stream in self._captures:
            capture.seek(0)
            stream.write(capture.read().decode("utf-8", "replace"))
            stream.flush()
            capture.close()
        self._captures.clear()
        return codes

    def discard(self) -> None:
        for capture, _ in self._captures:
            capture.close()
        self._captures.clear()


def run_pipeline(
    stages: Iterable[Stage], ctx: ShellContext, reader: Reader | None = None
) -> int:
    """Run the stages of one line and return the resulting status.

    The status is that of the last step carried out: a redirection that
    fails gives 2, a builtin gives its own result and starting a program
    gives 0. If the last program started ended with 126 or 127, "command
    not found" is reported and that code is the status. Here-documents
    are read with ``reader`` (by default from the context's input).
    ``exit`` raises ShellExit out of this function.
    """
    run = _PipelineRun(ctx, reader or _stream_reader(ctx))
    try:
        try:
            status = run.start(stages)
        finally:
            run.release()
        codes = run.wait()
    finally:
        run.discard()
    if codes and codes[-1] in (_IS_DIRECTORY, _NOT_FOUND):
        ctx.error(COMMAND_NOT_FOUND)
        return codes[-1]
    return status