"""
Zip-safe access to files shipped inside the ramsey package.

Example:
    from ramsey.resource_utils import resource_path
    with resource_path('examples/nk/nk_commitment.yaml') as p:
        problem = read_yaml(p)
"""

from __future__ import annotations

from contextlib import contextmanager
from importlib.resources import as_file, files
from pathlib import Path
from typing import List


def _resource(rel: str):
    parts = rel.replace("\\", "/").strip("/").split("/")
    return files("ramsey").joinpath(*parts)


@contextmanager
def resource_path(rel: str):
    """Yield a real filesystem Path for a packaged resource."""
    with as_file(_resource(rel)) as p:
        yield Path(p)


def open_text(rel: str, encoding: str = "utf-8"):
    return _resource(rel).open("r", encoding=encoding)


def bundled_examples() -> List[str]:
    """Relative paths of the example problem files, e.g. 'examples/nk/nk_commitment.yaml'."""
    found = []
    for group in sorted(_resource("examples").iterdir(), key=lambda r: r.name):
        if not group.is_dir():
            continue
        for item in sorted(group.iterdir(), key=lambda r: r.name):
            if item.name.endswith(".yaml"):
                found.append(f"examples/{group.name}/{item.name}")
    return found


__all__ = ["resource_path", "open_text", "bundled_examples"]
