# Makes "tests" importable as a package so conftest and tests can use `tests.helpers`.
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
