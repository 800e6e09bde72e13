#!/usr/bin/env python3

"""
Pytest coverage for relevance parsing and clip subtitles.
"""

# Standard Library
import os
import sys

# PIP3 modules
import pytest

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
	sys.path.insert(0, REPO_ROOT)

# local repo modules
from clipgraphlib.clips import relevance
from clipgraphlib.clips import subtitles
from clipgraphlib.clips.merge import MergedClip
from clipgraphlib.core import utils

#============================================

SEGMENTS = [
	{'start': 0.0, 'end': 2.0, 'text': "Hello and welcome"},
	{'start': 3.0, 'end': 5.5, 'text': "Today we cover pricing"},
	{'start': 6.0, 'end': 7.0, 'text': "  "},
	{'start': 20.0, 'end': 22.0, 'text': "Thanks"},
]

#============================================

def test_fenced_response() -> None:
	text = (
		"```json\n"
		"[{\"index\": 1, \"start\": 3, \"end\": 5.5, \"text\": \"pricing\","
		" \"relevance\": \"talks about cost\"}]\n"
		"```"
	)
	matches = relevance.parse_relevance_response(text)
	assert len(matches) == 1
	assert matches[0].index == 1
	assert matches[0].end == 5.5
	assert matches[0].relevance == "talks about cost"

#============================================

def test_plain_and_empty_responses() -> None:
	matches = relevance.parse_relevance_response('[{"start": 1, "end": 2}]')
	assert matches[0].index == 0
	assert matches[0].text == ""
	assert relevance.parse_relevance_response("") == []
	assert relevance.parse_relevance_response("```json\n```") == []
	assert relevance.parse_relevance_response("[]") == []

#============================================

@pytest.mark.parametrize("text", [
	"not json at all",
	'{"start": 1, "end": 2}',
	'[{"start": 1}]',
	'["segment"]',
])
def test_bad_responses(text) -> None:
	with pytest.raises(RuntimeError):
		relevance.parse_relevance_response(text)

#============================================

def test_transcript_segments_required() -> None:
	with pytest.raises(RuntimeError):
		relevance.parse_transcript_segments([])
	with pytest.raises(RuntimeError):
		relevance.parse_transcript_segments(None)
	with pytest.raises(RuntimeError):
		relevance.parse_transcript_segments([{'start': 1}])
	parsed = relevance.parse_transcript_segments([{'start': "1.5", 'end': 3, 'text': " hi "}])
	assert parsed == [{'start': 1.5, 'end': 3.0, 'text': "hi"}]

#============================================

def test_segments_from_indices() -> None:
	matches = relevance.segments_from_indices(SEGMENTS, [1, 3], relevance="picked")
	assert [(m.start, m.end) for m in matches] == [(3.0, 5.5), (20.0, 22.0)]
	assert matches[0].relevance == "picked"
	with pytest.raises(RuntimeError):
		relevance.segments_from_indices(SEGMENTS, [9])

#============================================

def test_clip_cues_are_clip_relative() -> None:
	clip = MergedClip(1.5, 7.0)
	cues = subtitles.clip_cues(clip, SEGMENTS)
	assert [(cue.start, cue.end, cue.text) for cue in cues] == [
		(0.0, 0.5, "Hello and welcome"),
		(1.5, 4.0, "Today we cover pricing"),
	]

#============================================

def test_format_srt() -> None:
	cues = [
		subtitles.Cue(0.0, 0.5, "Hello"),
		subtitles.Cue(61.25, 3725.0, "Later"),
	]
	assert subtitles.format_srt(cues) == (
		"1\n00:00:00,000 --> 00:00:00,500\nHello\n"
		"\n"
		"2\n00:01:01,250 --> 01:02:05,000\nLater\n"
	)
	assert subtitles.format_srt([]) == ""

#============================================

def test_time_helpers() -> None:
	assert utils.format_clock(75) == "1:15"
	assert utils.format_clock(3725) == "1:02:05"
	assert utils.format_seconds(-0.0001) == "0.000"
	assert utils.format_seconds(2) == "2.000"
	assert utils.seconds_to_milliseconds(2.5) == 2500
	assert utils.percent_of(50, 1920) == 960
	assert utils.percent_of(33.3, 1080) == 360
	assert float(utils.parse_timecode("01:02:03.5")) == 3723.5
	assert utils.is_safe_token("#FF00AA")
	assert not utils.is_safe_token("red:x=1")

#============================================

def test_quiet_mode_still_reports(capsys) -> None:
	lines = []
	was_quiet = utils.is_quiet_mode()
	utils.set_quiet_mode(True)
	utils.set_log_reporter(lines.append)
	try:
		assert utils.is_quiet_mode() is True
		utils.log("source loaded: 3.0 MB")
	finally:
		utils.clear_log_reporter()
		utils.set_quiet_mode(was_quiet)
	assert lines == ["source loaded: 3.0 MB"]
	assert capsys.readouterr().out == ""
