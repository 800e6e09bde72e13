#!/usr/bin/env python3

"""
Unit tests for clipgraph_tui display helpers.
"""

# Standard Library
import os
import sys
import types

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
	sys.path.insert(0, REPO_ROOT)

from clipgraph_tui import ClipgraphTuiApp

#============================================

def _make_app_stub() -> types.SimpleNamespace:
	"""
	Create a stub object for formatting helpers.
	"""
	stub = types.SimpleNamespace()
	stub.command_styles = ClipgraphTuiApp._build_command_styles(stub)
	return stub

#============================================

def test_format_duration_boundaries() -> None:
	"""
	Ensure duration formatting switches at minute/hour boundaries.
	"""
	stub = _make_app_stub()
	assert ClipgraphTuiApp._format_duration(stub, 12.4) == "12.4s"
	assert ClipgraphTuiApp._format_duration(stub, 60.0) == "1m 00.0s"
	assert ClipgraphTuiApp._format_duration(stub, 3661.2) == "1h 01m 01.2s"

#============================================

def test_highlight_keeps_command_text() -> None:
	"""
	Ensure highlighting styles the command without changing it.
	"""
	stub = _make_app_stub()
	command = "CMD: 'ffmpeg -y -i input0.mp4 -map [outv] -crf 23 output.mp4'"
	text = ClipgraphTuiApp._highlight_command(stub, command)
	assert text.plain == command
	assert len(text.spans) > 0
	assert ClipgraphTuiApp._highlight_command(stub, "") == ""
