from __future__ import annotations

from pathlib import Path

import pytest

from recipe_runner import Pipeline, TaskSpec


@pytest.fixture
def trace(tmp_path: Path) -> Path:
    return tmp_path / "trace.log"


@pytest.fixture
def pipeline(trace):
    """Build a Pipeline from specs, with {trace} pointing at the trace file."""

    def build(*specs: TaskSpec, runner=None, **variables) -> Pipeline:
        return Pipeline(
            tasks={s.name: s for s in specs},
            variables={"trace": str(trace), **variables},
            name="test",
            runner=runner,
        )

    return build
