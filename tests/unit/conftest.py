"""Unit test configuration.

Unit tests never touch the network: providers and completion clients are
fakes or respx-mocked.
"""

from __future__ import annotations

import pytest

from nutrition_resolver.observability.logging import clear_context


@pytest.fixture(autouse=True)
def _reset_log_context() -> None:
    """The logging context is a ContextVar shared by synchronous tests."""
    clear_context()
