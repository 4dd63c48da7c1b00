"""
Pytest configuration for local imports.
"""

# Standard Library
import os
import sys

# PIP3 modules
import pytest

#============================================


def _ensure_repo_on_path() -> None:
	"""
	Ensure the repository root is on sys.path.
	"""
	repo_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
	if repo_root not in sys.path:
		sys.path.insert(0, repo_root)


_ensure_repo_on_path()


#============================================
@pytest.fixture
def cairosvg_module():
	"""
	Provide cairosvg, skipping when the cairo system library is missing.
	"""
	try:
		import cairosvg
	except (ImportError, OSError) as error:
		pytest.skip(f"cairosvg unavailable: {error}")
	return cairosvg
