# conftest.py - percolation_engine package
#
# Puts the repository root (the directory above this package) at the front of
# sys.path so that both "import percolation_engine" and the root-level
# "runner" wrapper resolve when pytest runs without an installed package.
#
# Usage:
#   pytest percolation_engine/tests/ -v
#   PERCOLATION_EXHAUSTIVE=1 pytest percolation_engine/tests/test_random_source.py -v

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))
