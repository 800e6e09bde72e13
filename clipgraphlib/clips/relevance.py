#!/usr/bin/env python3

"""
Turn the outcome of a relevance query into MatchedSegment records.

The relevance query itself runs in an external analysis service; this
module only reads what it returns.
"""

# Standard Library
import json
import re

# local repo modules
from clipgraphlib.clips.merge import MatchedSegment

#============================================

_FENCE_PATTERN = re.compile(r"```(?:json)?\s*\n?")

#============================================

def parse_transcript_segments(raw_segments) -> list:
	"""
	Validate transcript segments, a list of {start, end, text} mappings.
	"""
	if not isinstance(raw_segments, list) or len(raw_segments) == 0:
		raise RuntimeError("transcription segments with timestamps are required")
	segments = []
	for index, item in enumerate(raw_segments):
		if not isinstance(item, dict):
			raise RuntimeError(f"segment {index} must be a mapping")
		if item.get('start') is None or item.get('end') is None:
			raise RuntimeError(f"segment {index} requires start and end")
		segments.append({
			'start': float(item['start']),
			'end': float(item['end']),
			'text': str(item.get('text', '')).strip(),
		})
	return segments

#============================================

def parse_relevance_response(text: str) -> list:
	"""
	Parse a JSON array of {index, start, end, text, relevance}.

	Markdown code fences around the array are tolerated.
	"""
	if text is None:
		return []
	cleaned = _FENCE_PATTERN.sub('', text).strip()
	if cleaned == '':
		return []
	try:
		data = json.loads(cleaned)
	except json.JSONDecodeError as exc:
		raise RuntimeError(f"relevance response is not valid JSON: {exc}") from exc
	return matches_from_records(data)

#============================================

def matches_from_records(records) -> list:
	if not isinstance(records, list):
		raise RuntimeError("relevance response must be a JSON array")
	matches = []
	for position, record in enumerate(records):
		if not isinstance(record, dict):
			raise RuntimeError(f"relevance entry {position} must be an object")
		if record.get('start') is None or record.get('end') is None:
			raise RuntimeError(f"relevance entry {position} requires start and end")
		matches.append(MatchedSegment(
			int(record.get('index', position)),
			float(record['start']),
			float(record['end']),
			text=str(record.get('text', '')),
			relevance=str(record.get('relevance', '') or ''),
		))
	return matches

#============================================

def segments_from_indices(segments: list, indices: list, relevance: str = '') -> list:
	"""
	Matches for a plain selection of transcript segment indices.
	"""
	matches = []
	for index in indices:
		if index < 0 or index >= len(segments):
			raise RuntimeError(f"segment index {index} is out of range")
		segment = segments[index]
		matches.append(MatchedSegment(index, segment['start'], segment['end'],
			text=segment.get('text', ''), relevance=relevance))
	return matches
