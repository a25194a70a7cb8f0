from __future__ import annotations

import inspect
import os
import shlex
import signal
import subprocess
import threading
from dataclasses import dataclass, field
from pathlib import Path
from string import Formatter
from typing import Callable, Iterable, Sequence, Union

from .errors import (
    ActionFailed,
    CyclicDependency,
    Interrupted,
    InvalidInvocation,
    MissingParameter,
    UnknownTask,
)
from .logging import get_logger


DEFAULT_SHELL = ("sh", "-cu")


@dataclass
class Param:
    name: str
    default: str | None = None
    # Exported params are also set in the environment of the task's commands
    export: bool = False


@dataclass
class Dependency:
    name: str
    # dependency param name -> template rendered against the caller's scope
    bindings: dict[str, str] = field(default_factory=dict)


# Allow bare names wherever a Param or Dependency is expected
ParamSpec = Union[str, Param]
DepSpec = Union[str, Dependency]
CommandRunner = Callable[[Sequence[str], dict], int]


@dataclass
class TaskSpec:
    name: str
    deps: list[Dependency]
    params: list[Param]
    fn: Callable[[], Iterable[str]]

    @property
    def description(self) -> str:
        doc = inspect.getdoc(self.fn) or ""
        return doc.splitlines()[0] if doc else ""

    def commands(self) -> list[str]:
        return [str(c) for c in (self.fn() or [])]


@dataclass
class Step:
    name: str
    commands: list[str]
    env: dict[str, str]


def dep(name: str, **bindings: str) -> Dependency:
    """Declare a dependency edge that forwards values to the dependency's params.

    Binding values are templates, e.g. ``dep("sign", ACCOUNT="{ACCOUNT}")``.
    """
    return Dependency(name=name, bindings=dict(bindings))


def task(name: str, deps: Sequence[DepSpec] = (), params: Sequence[ParamSpec] = ()):
    """Decorator to declare a task on a function.

    The wrapped function takes no arguments and returns the task's command
    templates, one shell command line per entry. Placeholders use ``{name}``
    and are filled from the task's params and the pipeline variables. Literal
    braces are doubled, so shell text like ``awk '{print $1}'`` is written
    ``awk '{{print $1}}'`` and ``${HOME}`` is written ``${{HOME}}``.
    """

    def deco(fn: Callable[[], Iterable[str]]):
        spec = TaskSpec(
            name=name,
            deps=[d if isinstance(d, Dependency) else Dependency(d) for d in deps],
            params=[p if isinstance(p, Param) else Param(p) for p in params],
            fn=fn,
        )
        setattr(fn, "_task_spec", spec)
        return fn

    return deco


class _QuotingFormatter(Formatter):
    def format_field(self, value, format_spec):
        return shlex.quote(super().format_field(value, format_spec))


_plain = Formatter()
_quoting = _QuotingFormatter()


def placeholders(template: str) -> list[str]:
    names: list[str] = []
    for _, field_name, _, _ in _plain.parse(template):
        if field_name is None:
            continue
        # "{a.b}" and "{a[0]}" both look up "a"
        names.append(field_name.split(".", 1)[0].split("[", 1)[0])
    return names


def render(template: str, scope: dict, task_name: str, quote: bool = True) -> str:
    """Fill a template from scope, shell-quoting each value unless quote=False."""
    for name in placeholders(template):
        if name not in scope:
            raise MissingParameter(task_name, name)
    formatter = _quoting if quote else _plain
    return formatter.vformat(template, (), scope)


def run_command(argv: Sequence[str], env: dict) -> int:
    proc = subprocess.Popen(list(argv), env=env)
    received: list[int] = []

    def forward(signum, frame):
        received.append(signum)
        proc.send_signal(signum)

    # signal.signal only works from the main thread
    previous = None
    if threading.current_thread() is threading.main_thread():
        previous = signal.signal(signal.SIGTERM, forward)
    try:
        code = proc.wait()
    except KeyboardInterrupt:
        # Pass the interrupt on and let the child finish its own teardown
        proc.send_signal(signal.SIGINT)
        proc.wait()
        raise
    finally:
        if previous is not None:
            signal.signal(signal.SIGTERM, previous)
    if received:
        raise Interrupted(received[0])
    return code


class Pipeline:
    def __init__(
        self,
        tasks: dict[str, TaskSpec],
        variables: dict[str, str] | None = None,
        name: str = "recipes",
        shell: Sequence[str] | None = None,
        runner: CommandRunner | None = None,
        log_file: Path | None = None,
    ):
        self.name = name
        self.tasks = tasks
        self.variables = {k: str(v) for k, v in (variables or {}).items()}
        self.shell = list(shell or DEFAULT_SHELL)
        self.runner = runner or run_command
        self.logger = get_logger(f"recipe_runner.{self.name}", log_file=log_file)

    def plan(
        self,
        task_name: str,
        params: dict[str, str] | None = None,
        positional: Sequence[str] = (),
    ) -> list[Step]:
        """Resolve the execution order and render every command.

        Raises before anything runs if the task is unknown, the graph has a
        cycle, or any task in the chain lacks a parameter.
        """
        if task_name not in self.tasks:
            raise UnknownTask(task_name)
        spec = self.tasks[task_name]

        params = dict(params or {})
        variables = dict(self.variables)
        declared = {p.name for p in spec.params}
        for key in list(params):
            if key in declared:
                continue
            if key in variables:
                variables[key] = params.pop(key)
            else:
                raise InvalidInvocation(f"Task '{task_name}' has no parameter '{key}'")

        free = [p for p in spec.params if p.name not in params]
        if len(positional) > len(free):
            raise InvalidInvocation(
                f"Task '{task_name}' takes {len(free)} more argument(s), "
                f"got {len(positional)}"
            )
        for p, value in zip(free, positional):
            params[p.name] = value

        steps: list[Step] = []
        self._resolve(task_name, params, variables, steps, set(), [])
        return steps

    def _resolve(
        self,
        name: str,
        args: dict[str, str],
        variables: dict[str, str],
        steps: list[Step],
        record: set[str],
        path: list[str],
    ) -> None:
        if name not in self.tasks:
            raise UnknownTask(name, referenced_by=path[-1] if path else None)
        if name in path:
            raise CyclicDependency(path[path.index(name) :] + [name])
        if name in record:
            self.logger.debug("Already planned: %s", name)
            return

        spec = self.tasks[name]
        values = self._bind(spec, args)
        scope = {**variables, **values}

        path.append(name)
        for d in spec.deps:
            bound = {k: render(v, scope, name, quote=False) for k, v in d.bindings.items()}
            self._resolve(d.name, bound, variables, steps, record, path)
        path.pop()

        commands = [render(t, scope, name) for t in spec.commands()]
        env = {p.name: values[p.name] for p in spec.params if p.export}
        steps.append(Step(name=name, commands=commands, env=env))
        record.add(name)

    def _bind(self, spec: TaskSpec, args: dict[str, str]) -> dict[str, str]:
        declared = {p.name for p in spec.params}
        unknown = sorted(set(args) - declared)
        if unknown:
            raise InvalidInvocation(
                f"Task '{spec.name}' has no parameter '{unknown[0]}'"
            )
        values: dict[str, str] = {}
        for p in spec.params:
            if p.name in args:
                values[p.name] = str(args[p.name])
            elif p.default is not None:
                values[p.name] = str(p.default)
            else:
                raise MissingParameter(spec.name, p.name)
        return values

    def run(
        self,
        task_name: str,
        params: dict[str, str] | None = None,
        positional: Sequence[str] = (),
        dry_run: bool = False,
    ) -> list[Step]:
        steps = self.plan(task_name, params, positional)
        self.logger.info("Selected steps: %s", " → ".join(s.name for s in steps))
        if dry_run:
            return steps
        for step in steps:
            self._execute(step)
        return steps

    def _execute(self, step: Step) -> None:
        step_logger = get_logger(f"recipe_runner.{self.name}.{step.name}")
        step_logger.info("Run: %s", step.name)
        env = dict(os.environ)
        env.update(step.env)
        for command in step.commands:
            step_logger.info("$ %s", command)
            try:
                code = self.runner([*self.shell, command], env)
            except OSError as e:
                step_logger.error(
                    "Step failed (%s): cannot start %s: %s", step.name, self.shell[0], e
                )
                raise ActionFailed(step.name, 127, command) from e
            except Interrupted as e:
                step_logger.error(
                    "Step interrupted (%s) by signal %d", step.name, e.signum
                )
                raise
            if code != 0:
                # Popen reports death by signal N as -N
                exit_code = 128 - code if code < 0 else code
                step_logger.error(
                    "Step failed (%s) with exit code %d", step.name, exit_code
                )
                raise ActionFailed(step.name, exit_code, command)
