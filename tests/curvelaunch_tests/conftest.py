import logging
import sys
from pathlib import Path

import pytest

# Ensure the src directory (for `curvelaunch.*`) and this directory (for the
# shared `market_utils` builders) are on the Python path before collection runs.
project_root = Path(__file__).resolve().parents[2]
src_path = project_root / "src"
sys.path.insert(0, str(src_path))
sys.path.insert(0, str(Path(__file__).resolve().parent))

from market_utils import build_market  # noqa: E402


@pytest.fixture
def market():
    """A freshly wired curve with the standard launch configuration."""
    return build_market()


@pytest.fixture
def ctx(market):
    return market.ctx


@pytest.fixture
def curve(market):
    return market.curve


@pytest.fixture(autouse=True)
def _reset_package_logger():
    """Drop handlers the CLI installs so later tests don't write to closed streams."""
    yield
    package_logger = logging.getLogger("curvelaunch")
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()
    package_logger.setLevel(logging.NOTSET)
