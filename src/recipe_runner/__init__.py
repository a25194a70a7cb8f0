"""Small dependency-ordered task runner for release recipes.

Provides Task and Pipeline primitives, depth-first dependency resolution with
at-most-once execution, and a Typer CLI. Actions are shell commands run in
sequence; the first failure stops the run.
"""

from .core import Param, Pipeline, Step, TaskSpec, dep, task  # re-export for convenience
from .errors import (
    ActionFailed,
    CyclicDependency,
    DuplicateTask,
    Interrupted,
    InvalidInvocation,
    MissingParameter,
    RecipeError,
    UnknownTask,
)

__all__ = [
    "Param",
    "Pipeline",
    "Step",
    "TaskSpec",
    "dep",
    "task",
    "RecipeError",
    "UnknownTask",
    "DuplicateTask",
    "MissingParameter",
    "InvalidInvocation",
    "CyclicDependency",
    "ActionFailed",
    "Interrupted",
]
