import sys
from pathlib import Path

import pytest

# Ensure the package under src/ is importable during tests without installation.
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from battlegrid.engine import build_engine, load_config  # noqa: E402


@pytest.fixture
def config():
    return load_config(str(ROOT / "configs" / "default.yaml"))


@pytest.fixture
def scenarios_path():
    return str(ROOT / "examples" / "scenarios.yaml")


@pytest.fixture
def engine(config, tmp_path):
    return build_engine(config, str(tmp_path / "out"))
