from __future__ import annotations

import pytest

from validations import use_test_mode


@pytest.fixture(autouse=True)
def test_mode():
    """Run every test with the unhandled-case warning suppressed."""
    with use_test_mode():
        yield
