"""
Test configuration for Tally tests
"""

import pytest
import sys
from pathlib import Path

# Add the project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from parsing import TallyGrammar
from interpreter import create_interpreter


@pytest.fixture
def grammar():
  """Provide a fresh grammar instance for each test"""
  return TallyGrammar()


@pytest.fixture
def interpreter():
  """Provide an interpreter with an empty environment"""
  return create_interpreter()
