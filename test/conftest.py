"""
Test configuration for Quark parser tests
"""

import pytest
import sys
from pathlib import Path

# Add the project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))


LOAN_SPEC = (
    "spec Loan L to B "
    "create Created [amount=100, currency=USD] "
    "detach Detached [reason] "
    "discharge Discharged [amount=100]"
)


@pytest.fixture
def loan_spec():
  """Canonical single-line loan specification"""
  return LOAN_SPEC


@pytest.fixture
def examples_dir():
  """Directory holding the sample .quark files"""
  return project_root / "examples"
