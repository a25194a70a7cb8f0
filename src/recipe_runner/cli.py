from __future__ import annotations

import importlib
import pkgutil
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import typer
from dotenv import load_dotenv

from .core import Param, Pipeline, TaskSpec
from .errors import DuplicateTask, InvalidInvocation, RecipeError
from .logging import get_logger
from .utils import load_config, shell, variables


DEFAULT_CONFIG = "configs/release.yaml"

app = typer.Typer(add_completion=False, help="Run a recipe task and its dependencies")
log = get_logger("recipe_runner.cli")


def discover_tasks(tasks_pkg: str = "recipes") -> Dict[str, TaskSpec]:
    """Import all modules in the tasks package and collect decorated functions."""
    specs: Dict[str, TaskSpec] = {}
    try:
        pkg = importlib.import_module(tasks_pkg)
    except ModuleNotFoundError:
        log.warning("No tasks package found: %s", tasks_pkg)
        return specs
    modules = [pkg]
    for m in pkgutil.iter_modules(getattr(pkg, "__path__", []), prefix=f"{tasks_pkg}."):
        try:
            modules.append(importlib.import_module(m.name))
        except Exception as e:  # noqa: BLE001
            log.warning("Failed to import %s: %s", m.name, e)
    for mod in modules:
        for attr_name in dir(mod):
            obj = getattr(mod, attr_name)
            spec = getattr(obj, "_task_spec", None)
            if not isinstance(spec, TaskSpec):
                continue
            if spec.name in specs and specs[spec.name] is not spec:
                raise DuplicateTask(spec.name)
            specs[spec.name] = spec
    return specs


def package_variables(tasks_pkg: str) -> Dict[str, str]:
    try:
        pkg = importlib.import_module(tasks_pkg)
    except ModuleNotFoundError:
        return {}
    return dict(getattr(pkg, "VARIABLES", {}))


def parse_args(tokens: List[str]) -> Tuple[Dict[str, str], List[str]]:
    """Split CLI tokens into name=value pairs and positional values."""
    named: Dict[str, str] = {}
    positional: List[str] = []
    for tok in tokens:
        key, sep, value = tok.partition("=")
        if sep and key.isidentifier():
            if key in named:
                raise InvalidInvocation(f"Parameter '{key}' given twice")
            named[key] = value
        else:
            positional.append(tok)
    return named, positional


def _describe_param(p: Param) -> str:
    text = f"${p.name}" if p.export else p.name
    if p.default is not None:
        text += f"={p.default!r}"
    return text


def _print_tasks(specs: Dict[str, TaskSpec]) -> None:
    if not specs:
        typer.echo("No tasks discovered. Decorate functions with @task() in the tasks package.")
        return
    typer.echo("Available tasks:")
    for name in sorted(specs):
        spec = specs[name]
        line = " ".join([name] + [_describe_param(p) for p in spec.params])
        if spec.deps:
            line += f"  [deps: {', '.join(d.name for d in spec.deps)}]"
        if spec.description:
            line += f"  # {spec.description}"
        typer.echo(f"- {line}")


@app.command(context_settings={"ignore_unknown_options": True})
def run(
    name: Optional[str] = typer.Argument(None, help="Task to run"),
    args: Optional[List[str]] = typer.Argument(
        None,
        help="Parameters as name=value pairs or positional values. "
        "Put -- before values that look like this command's own options.",
    ),
    list_tasks: bool = typer.Option(False, "--list", help="List tasks and exit"),
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Print the planned commands without running them"
    ),
    config: str = typer.Option(DEFAULT_CONFIG, help="Path to YAML config"),
    tasks: str = typer.Option("recipes", help="Package to discover tasks in"),
    log_file: Optional[Path] = typer.Option(None, help="Also write logs to this file"),
):
    """Run TASK after its dependencies, each at most once."""
    load_dotenv(Path.cwd() / ".env")
    try:
        specs = discover_tasks(tasks)
        if list_tasks:
            _print_tasks(specs)
            raise typer.Exit(code=0)
        if not name:
            raise InvalidInvocation("No task given. Use --list to see available tasks.")

        if Path(config).exists():
            cfg = load_config(config)
        elif config != DEFAULT_CONFIG:
            raise InvalidInvocation(f"Config not found: {config}")
        else:
            cfg = {}

        pipe = Pipeline(
            tasks=specs,
            variables=variables(cfg, package_variables(tasks)),
            name=tasks,
            shell=shell(cfg),
            log_file=log_file,
        )
        named, positional = parse_args(args or [])
        steps = pipe.run(name, named, positional, dry_run=dry_run)
    except RecipeError as e:
        typer.echo(f"error: {e}", err=True)
        raise typer.Exit(code=e.exit_code)
    except KeyboardInterrupt:
        typer.echo("interrupted", err=True)
        raise typer.Exit(code=130)

    if dry_run:
        for step in steps:
            typer.echo(f"# {step.name}")
            for command in step.commands:
                typer.echo(command)


def main():  # pragma: no cover
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
