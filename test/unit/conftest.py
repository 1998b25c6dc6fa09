import pytest

from trill.colors import set_color_enabled


@pytest.fixture(autouse=True)
def plain_output():
    """Compare rendered text without ANSI codes."""
    set_color_enabled(False)
    yield
