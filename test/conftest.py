"""
Test configuration for IMP tests
"""

import pytest
import sys
from pathlib import Path

# Add the project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from parsing import IMPGrammar, create_parser
from interpreter import make_store


@pytest.fixture
def grammar():
  """Provide a fresh grammar instance for each test"""
  return IMPGrammar()


@pytest.fixture
def parser():
  return create_parser()


@pytest.fixture
def store():
  return make_store()


@pytest.fixture(autouse=True)
def restore_recursion_limit():
  """The command line raises the interpreter's recursion limit; undo it per test"""
  limit = sys.getrecursionlimit()
  yield
  sys.setrecursionlimit(limit)
