import pytest

from treeclass.conf import settings


@pytest.fixture(autouse=True)
def _reset_settings():
    """Every test starts from the default settings."""
    settings.reset()
    yield
    settings.reset()
