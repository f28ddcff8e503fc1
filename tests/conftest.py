"""
Pytest configuration for local imports and font selection.
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

import order_label_printer.render  # noqa: E402


#============================================
@pytest.fixture
def no_primary_font(monkeypatch: pytest.MonkeyPatch) -> None:
	"""
	Hide every Impact font location so renders use the fallback font.
	"""
	monkeypatch.delenv("IMPACT_FONT_PATH", raising=False)
	monkeypatch.setattr(order_label_printer.render, "FONT_CANDIDATE_PATHS", ())


#============================================
@pytest.fixture
def fallback_font() -> order_label_printer.render.LabelFont:
	"""
	The built-in fallback font.
	"""
	return order_label_printer.render.FALLBACK_FONT
