#!/usr/bin/env python3

"""
Pytest coverage for transcript segment merging and clip extraction.
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
from clipgraphlib.clips import merge
from clipgraphlib.clips.extractor import ClipExtractor
from clipgraphlib.clips.merge import MatchedSegment
from clipgraphlib.core.errors import AssetUnavailable
from clipgraphlib.core.errors import EngineExecutionFailure
from clipgraphlib.core.timeline import SourceRef
from clipgraphlib.graph import serializer
from clipgraphlib.render.driver import RenderResult

#============================================

class FakeResolver():
	def __init__(self, data: bytes = b"recording", error: Exception = None):
		self.data = data
		self.error = error
		self.fetch_count = 0

	def fetch(self, source) -> bytes:
		self.fetch_count += 1
		if self.error is not None:
			raise self.error
		return self.data

#============================================

class RecordingDriver():
	"""
	Stand-in driver returning the serialized graph as the rendered output.
	"""
	def __init__(self, fail_on: set = None):
		self.fail_on = fail_on or set()
		self.calls = []

	def run(self, program, payloads: dict) -> RenderResult:
		self.calls.append((program, payloads))
		args = serializer.program_arguments(program)
		if len(self.calls) in self.fail_on:
			raise EngineExecutionFailure("engine exited with status 1",
				log_text="Invalid data found", returncode=1)
		output = " ".join(args).encode('utf-8')
		return RenderResult(output, program.output_name(), "ok")

#============================================

def _segments(pairs: list) -> list:
	return [MatchedSegment(i, start, end, text=f"seg {i}")
		for i, (start, end) in enumerate(pairs)]

#============================================

def test_merge_padded_end_example() -> None:
	clips = merge.merge_segments(_segments([(0, 2), (3, 5), (20, 22)]),
		padding=1, merge_gap=2)
	assert [clip.key() for clip in clips] == [(0.0, 6.0), (19.0, 23.0)]
	assert [clip.index for clip in clips] == [1, 2]
	assert clips[0].segment_count == 2
	assert clips[0].transcript == "seg 0 seg 1"

#============================================

def test_merge_default_parameters() -> None:
	clips = merge.merge_segments(_segments([(10, 12), (15, 18), (30, 31)]))
	assert [clip.key() for clip in clips] == [(8.5, 19.5), (28.5, 32.5)]

#============================================

def test_merge_sorts_unordered_input() -> None:
	clips = merge.merge_segments(_segments([(40, 41), (5, 6)]), padding=0,
		merge_gap=1)
	assert [clip.key() for clip in clips] == [(5.0, 6.0), (40.0, 41.0)]

#============================================

def test_large_padding_chains_segments() -> None:
	# each gap is 4s, larger than merge_gap, but padding bridges it
	pairs = [(0, 1), (5, 6), (10, 11), (15, 16)]
	clips = merge.merge_segments(_segments(pairs), padding=3.5, merge_gap=1)
	assert len(clips) == 1
	assert clips[0].key() == (0.0, 19.5)
	assert clips[0].segment_count == 4

#============================================

def test_contained_segment_keeps_end() -> None:
	pairs = [(0, 20), (5, 6)]
	clips = merge.merge_segments(_segments(pairs), padding=1, merge_gap=0)
	assert clips[0].key() == (0.0, 21.0)

#============================================

def test_merge_empty() -> None:
	assert merge.merge_segments([]) == []

#============================================

def test_reasons_skip_blank_relevance() -> None:
	segments = [
		MatchedSegment(0, 0, 1, relevance="mentions pricing"),
		MatchedSegment(1, 1, 2),
	]
	clips = merge.merge_segments(segments)
	assert clips[0].reasons == ["mentions pricing"]

#============================================

def test_reorder_clips() -> None:
	clips = merge.merge_segments(_segments([(0, 1), (10, 11), (20, 21)]),
		padding=0, merge_gap=1)
	reordered = merge.reorder_clips(clips, [3, 1, 2])
	assert [clip.key() for clip in reordered] == [(20.0, 21.0), (0.0, 1.0), (10.0, 11.0)]
	assert [clip.index for clip in reordered] == [1, 2, 3]

#============================================

@pytest.mark.parametrize("order", [[1, 2], [1, 1, 2], [0, 1, 2], [1, 2, 4]])
def test_reorder_rejects_bad_order(order) -> None:
	clips = merge.merge_segments(_segments([(0, 1), (10, 11), (20, 21)]),
		padding=0, merge_gap=1)
	with pytest.raises(RuntimeError):
		merge.reorder_clips(clips, order)

#============================================

def test_move_and_remove_clip() -> None:
	clips = merge.merge_segments(_segments([(0, 1), (10, 11), (20, 21)]),
		padding=0, merge_gap=1)
	moved = merge.move_clip(clips, 1, 1)
	assert [clip.start for clip in moved] == [10.0, 0.0, 20.0]
	# moving past either end leaves the order alone
	unchanged = merge.move_clip(moved, 3, 1)
	assert [clip.start for clip in unchanged] == [10.0, 0.0, 20.0]
	remaining = merge.remove_clip(moved, 2)
	assert [clip.start for clip in remaining] == [10.0, 20.0]
	assert [clip.index for clip in remaining] == [1, 2]
	with pytest.raises(RuntimeError):
		merge.remove_clip(remaining, 5)

#============================================

def test_extraction_unchanged_by_reordering() -> None:
	source = SourceRef(storage_path="talks/keynote.mp4", content_type="video/mp4")
	clips = merge.merge_segments(_segments([(3, 5), (30, 34), (60, 61)]))
	forward_driver = RecordingDriver()
	forward = ClipExtractor(forward_driver, FakeResolver()).extract(source, clips)
	by_key = {output.clip.key(): output.data for output in forward}
	reordered = merge.reorder_clips(list(clips), [3, 1, 2])
	backward_driver = RecordingDriver()
	backward = ClipExtractor(backward_driver, FakeResolver()).extract(source, reordered)
	for output in backward:
		assert output.data == by_key[output.clip.key()]
	assert [output.clip.key() for output in backward] == [clip.key() for clip in reordered]

#============================================

def test_extraction_program_shape() -> None:
	source = SourceRef(url="https://example.com/talk.mp4", content_type="video/mp4")
	clip = merge.merge_segments(_segments([(1, 2)]), padding=0.5)[0]
	extractor = ClipExtractor(RecordingDriver(), FakeResolver(), quality="low")
	program = extractor.compile_clip(source, clip)
	assert program.total_duration == 2.0
	text = serializer.graph_text(program)
	assert "color=c=black:size=1920x1080:d=2.000[base]" in text
	assert "trim=start=0.500:duration=2.000" in text
	assert program.audio_label == "outa"
	assert program.encode.preset == "fast"

#============================================

def test_extraction_fetches_source_once_and_continues_after_failure() -> None:
	source = SourceRef(storage_path="talk.mp4", content_type="video/mp4")
	clips = merge.merge_segments(_segments([(0, 1), (10, 11), (20, 21)]),
		padding=0, merge_gap=1)
	resolver = FakeResolver()
	driver = RecordingDriver(fail_on={2})
	seen = []
	outputs = ClipExtractor(driver, resolver).extract(source, clips,
		on_clip=seen.append)
	assert resolver.fetch_count == 1
	assert [output.ok for output in outputs] == [True, False, True]
	assert outputs[1].log_text == "Invalid data found"
	assert seen == outputs
	for program, payloads in driver.calls:
		assert payloads == {"input0.mp4": b"recording"}

#============================================

def test_extraction_source_failure_propagates() -> None:
	source = SourceRef(storage_path="missing.mp4", content_type="video/mp4")
	clips = merge.merge_segments(_segments([(0, 1)]))
	resolver = FakeResolver(error=AssetUnavailable("storage read failed"))
	with pytest.raises(AssetUnavailable):
		ClipExtractor(RecordingDriver(), resolver).extract(source, clips)

#============================================

def test_concatenate_follows_list_order() -> None:
	source = SourceRef(storage_path="talk.mp4", content_type="video/mp4")
	clips = merge.merge_segments(_segments([(0, 1), (10, 11)]), padding=0,
		merge_gap=1)
	driver = RecordingDriver()
	extractor = ClipExtractor(driver, FakeResolver())
	outputs = extractor.extract(source, merge.reorder_clips(clips, [2, 1]))
	extractor.concatenate(outputs)
	program, payloads = driver.calls[-1]
	assert payloads["merge_clip_0.mp4"] == outputs[0].data
	assert payloads["merge_clip_1.mp4"] == outputs[1].data
	assert program.output_name() == "merged_output.mp4"

#============================================

def test_concatenate_single_and_empty() -> None:
	source = SourceRef(storage_path="talk.mp4", content_type="video/mp4")
	clips = merge.merge_segments(_segments([(0, 1)]))
	driver = RecordingDriver()
	extractor = ClipExtractor(driver, FakeResolver())
	outputs = extractor.extract(source, clips)
	assert extractor.concatenate(outputs) == outputs[0].data
	assert len(driver.calls) == 1
	with pytest.raises(RuntimeError):
		extractor.concatenate([])
