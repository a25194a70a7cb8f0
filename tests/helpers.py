from __future__ import annotations

from pathlib import Path

from recipe_runner import task


def make_task(name, deps=(), params=(), commands=None):
    """Declare a task whose default action appends its name to the trace file."""
    if commands is None:
        commands = [f"echo {name} >> {{trace}}"]

    def action():
        return list(commands)

    action.__doc__ = f"Test task {name}."
    return task(name=name, deps=deps, params=params)(action)._task_spec


def read_trace(path: Path) -> list[str]:
    if not path.exists():
        return []
    return path.read_text(encoding="utf-8").splitlines()


class RecordingRunner:
    """Stands in for run_command and records every argv it is given."""

    def __init__(self, code: int = 0) -> None:
        self.code = code
        self.calls: list[list[str]] = []
        self.envs: list[dict] = []

    def __call__(self, argv, env) -> int:
        self.calls.append(list(argv))
        self.envs.append(env)
        return self.code
