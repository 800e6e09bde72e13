#!/usr/bin/env python3

"""
Unit tests for the clipgraph_clips merge step.
"""

# Standard Library
import io
import os
import sys

# PIP3 modules
import pytest
from rich.console import Console

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
	sys.path.insert(0, REPO_ROOT)

# local repo modules
import clipgraph_clips
from clipgraphlib.core import utils
from clipgraphlib.core.errors import EngineExecutionFailure

#============================================

class StubExtractor():
	def __init__(self, merged: bytes = None, error: Exception = None):
		self.merged = merged
		self.error = error

	def concatenate(self, outputs: list) -> bytes:
		if self.error is not None:
			raise self.error
		return self.merged

#============================================

@pytest.fixture(autouse=True)
def _quiet_logs():
	utils.set_quiet_mode(True)
	yield
	utils.set_quiet_mode(False)

#============================================

def _console() -> Console:
	return Console(file=io.StringIO(), highlight=False, width=200)

#============================================

def test_merge_failure_is_reported(tmp_path) -> None:
	error = EngineExecutionFailure("engine exited with status 1",
		log_text="merge_list.txt: Invalid data found", returncode=1)
	console = _console()
	merged_path = os.path.join(str(tmp_path), "clip_merged.mp4")
	ok = clipgraph_clips.write_merged_clip(StubExtractor(error=error), [],
		merged_path, console)
	assert ok is False
	assert not os.path.exists(merged_path)
	assert "merge failed" in console.file.getvalue()

#============================================

def test_merge_success_writes_file(tmp_path) -> None:
	console = _console()
	merged_path = os.path.join(str(tmp_path), "clip_merged.mp4")
	ok = clipgraph_clips.write_merged_clip(StubExtractor(merged=b"joined"), [],
		merged_path, console)
	assert ok is True
	with open(merged_path, "rb") as handle:
		assert handle.read() == b"joined"
	assert console.file.getvalue() == ""
