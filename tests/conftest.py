import itertools

import pytest


@pytest.fixture
def id_factory():
    """Deterministic placement ids: pl-1, pl-2, ..."""
    counter = itertools.count(1)
    return lambda: f"pl-{next(counter)}"
