"""Root conftest.py for test configuration.

Ensures local src/ directory takes priority over any installed packages.
"""

import sys
from collections.abc import Iterator
from pathlib import Path

import pytest

# Insert local src directory at the beginning of sys.path
# This ensures that the local symgraph package is used, not any installed one
_src_dir = Path(__file__).parent.parent / "src"
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

# Force reimport of symgraph modules if already imported
for module_name in list(sys.modules.keys()):
    if module_name.startswith("symgraph"):
        del sys.modules[module_name]

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture
def fixtures_dir() -> Path:
    """Directory holding the Java source fixtures."""
    return FIXTURES


@pytest.fixture
def shapes_java() -> bytes:
    """Shapes fixture: enum, abstract class, interface, generics, anonymous class."""
    return (FIXTURES / "shapes.java").read_bytes()


@pytest.fixture
def modern_java() -> bytes:
    """Records, sealed interfaces, annotation types, enum bodies, lambdas, switch expressions."""
    return (FIXTURES / "modern.java").read_bytes()


@pytest.fixture(autouse=True)
def _clear_request_id() -> Iterator[None]:
    yield
    from symgraph.core.logging import clear_request_id

    clear_request_id()
