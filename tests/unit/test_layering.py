"""The core package depends only on itself and third-party libraries."""

import ast
from pathlib import Path

import pytest

import flakeguard.core

pytestmark = [
    pytest.mark.tier(1),
    pytest.mark.tra("Core.Layering"),
]

CORE_DIR = Path(flakeguard.core.__file__).parent

# Modules that wire core to concrete adapters and settings.
OUTER_MODULES = ("flakeguard.adapters", "flakeguard.config", "flakeguard.session")


def _imported_modules(path: Path) -> list[str]:
    names = []
    for node in ast.walk(ast.parse(path.read_text())):
        if isinstance(node, ast.Import):
            names.extend(alias.name for alias in node.names)
        elif isinstance(node, ast.ImportFrom) and node.module and node.level == 0:
            names.append(node.module)
    return names


@pytest.mark.core
@pytest.mark.parametrize(
    "path",
    sorted(CORE_DIR.rglob("*.py")),
    ids=lambda p: str(p.relative_to(CORE_DIR)),
)
def test_core_does_not_import_outer_layers(path: Path) -> None:
    outer = [
        name
        for name in _imported_modules(path)
        if any(name == o or name.startswith(f"{o}.") for o in OUTER_MODULES)
    ]
    assert outer == []


@pytest.mark.core
def test_default_log_storage_lives_in_core() -> None:
    from flakeguard import InMemoryLogStorage
    from flakeguard.core.log_store import LogStore

    assert isinstance(LogStore().storage, InMemoryLogStorage)
    assert InMemoryLogStorage.__module__ == "flakeguard.core.memory"
