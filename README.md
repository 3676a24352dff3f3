# mjshell

A small interactive command shell. It reads a line, expands variables, splits
the line into pipeline stages, applies each stage's redirections and runs the
stage either as a built-in command or as an external program found on `PATH`.

## Installing

```
pip install .
```

## Running

```
mjshell
```

The prompt is `MJ > `. While a line holds a quote that is not closed, the
shell asks for more with `> ` and joins the lines with a newline. At the end
of input (Ctrl+D) it prints `exit` and stops with status 0.

The command takes no arguments: given any, it prints `Don't give any args`
and returns -1.

When run on a terminal, Ctrl+C at the prompt starts a fresh line and the
next line sees `$?` as 130; Ctrl+\ is ignored at the prompt. While a command
runs, Ctrl+\ prints `Quit (core dumped)` and the next status is 131. The
terminal's echoing of control characters such as `^C` is switched off while
the shell runs, and lines are added to the `readline` history.

## What a line may hold

- Pipelines: `ls | grep .py | wc -l`
- Redirections: `< file`, `> file`, `>> file` (append). All input
  redirections of a stage are applied before its output redirections.
  A file that cannot be opened prints
  `bash: open: The file doesn't exists or can't be accessed` and gives
  status 2.
- Here-documents: `<< END` reads lines (prompt `>`) until one equals `END`
  or input ends. The delimiter must be separated from `<<` by a blank;
  written as `<<END` there is no delimiter and lines are read to the end of
  input.
- Quotes: `"..."` and `'...'` keep blanks, `|`, `<` and `>` together; the
  quotes themselves are removed from the words (except for `pwd` and `env`,
  which get their words as written).
- Variables: `$NAME` (a name starting with a letter, running up to a blank,
  tab, newline, `"`, `$` or `?`) expands to its value, empty when unset.
  `$?` expands to the last status. Nothing is expanded inside single quotes.

Not supported: `;`, `&&`, `||`, background jobs, subshells, globbing and
backslash escapes.

## Built-in commands

| command  | does |
|----------|------|
| `cd`     | change directory; no argument, an argument starting with `~`, or the value of `HOME` go to `HOME`; an argument starting with `-` goes to `OLDPWD`. Sets `OLDPWD` and `PWD`. More than one argument is an error (status 1). |
| `echo`   | print the arguments joined by blanks; leading words starting with `-n` are skipped, and the newline is left out when the first argument is exactly `-n` |
| `pwd`    | print the working directory |
| `export` | `export NAME=value` sets a variable; `export NAME` adds it empty if not set; with no arguments, list all variables sorted by name. Names must be letters only, otherwise `not a valid identifier` and status 1. |
| `unset`  | remove the named variables |
| `env`    | list the variables in the order they were set; any argument is an error with status 127 |
| `exit`   | leave the shell: no argument gives 0, a number gives that number modulo 256, anything else prints `numeric argument required` and gives 2. With more than one argument it only complains and returns 1. |

Built-ins run inside the shell; in a pipeline their output goes into the
pipe.

## Status

The status of a line (what `$?` holds next) is that of its last step: a
failed redirection gives 2, a built-in gives its own result, and starting an
external program gives 0. The exit status of external programs is not
passed on, with one exception: when the last program started could not be
found (127) or is a directory (126), ` command not found` is printed and that
code becomes the status.

## Using it from Python

```python
from mjshell.shell import Shell

shell = Shell({"PATH": "/usr/bin:/bin", "HOME": "/tmp"})
shell.run_line("export GREETING=hello")
status = shell.run_line("echo $GREETING | tr a-z A-Z")
```

`Shell(environ, stdin, stdout, stderr)` takes the starting variables
(default: the process environment) and the streams to use (default: the
process's own). `run_line` returns the line's status and raises
`mjshell.builtins.ShellExit` when `exit` is run; `read_command` reads one
command, following open quotes; `repl` loops until end of input or `exit`
and returns the exit code.

The parts can be used on their own:

- `mjshell.parser.parse_line(line, env, last_status)` returns a list of
  `Stage` objects (`index`, `redirections`, `command`), each redirection a
  `Redirection(kind, target)` with a `RedirectKind` of `INPUT`, `HEREDOC`,
  `OUTPUT` or `APPEND`. `expand`, `extract_redirections`, `parse_command`,
  `has_unclosed_quote` and `export_key` are the steps it is built from.
- `mjshell.executor.run_pipeline(stages, ctx, reader)` runs parsed stages
  in a `mjshell.builtins.ShellContext`; `find_path`, `read_heredoc` and
  `open_redirection` are its helpers.
- `mjshell.builtins` holds the built-in commands (`cd`, `echo`, `pwd`,
  `export`, `unset`, `env`, `exit_shell`) and `lookup(name)`.
- `mjshell.environment.Environment` keeps variables in the order they were
  set; `get` returns `""` for unset names.
- `mjshell.textutils` holds the quote-aware splitting, quote removal and
  number-reading helpers.

```python
from mjshell.environment import Environment
from mjshell.parser import parse_line

env = Environment.from_strings(["USER=demo"])
stages = parse_line("cat < in.txt | grep $USER > out.txt", env, 0)
```