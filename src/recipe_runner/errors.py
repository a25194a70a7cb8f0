from __future__ import annotations

from typing import Sequence


class RecipeError(Exception):
    """Base for every failure that aborts a run."""

    exit_code = 1


##
## RESOLUTION
##


class UnknownTask(RecipeError):
    def __init__(self, name: str, referenced_by: str | None = None) -> None:
        self.name = name
        self.referenced_by = referenced_by
        if referenced_by:
            message = f"Unknown task '{name}' (dependency of '{referenced_by}')"
        else:
            message = f"Unknown task '{name}'"
        super().__init__(message)


class DuplicateTask(RecipeError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Task '{name}' is declared more than once")


class MissingParameter(RecipeError):
    def __init__(self, task: str, param: str) -> None:
        self.task = task
        self.param = param
        super().__init__(f"Task '{task}' requires parameter '{param}'")


class InvalidInvocation(RecipeError):
    def __init__(self, message: str) -> None:
        super().__init__(message)


class CyclicDependency(RecipeError):
    exit_code = 2

    def __init__(self, cycle: Sequence[str]) -> None:
        self.cycle = list(cycle)
        super().__init__("Cyclic dependency: " + " -> ".join(self.cycle))


##
## EXECUTION
##


class ActionFailed(RecipeError):
    def __init__(self, task: str, exit_code: int, command: str | None = None) -> None:
        self.task = task
        self.exit_code = exit_code
        self.command = command
        super().__init__(f"Task '{task}' failed with exit code {exit_code}")


class Interrupted(RecipeError):
    def __init__(self, signum: int) -> None:
        self.signum = signum
        self.exit_code = 128 + signum
        super().__init__(f"Interrupted by signal {signum}")
