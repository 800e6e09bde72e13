#!/usr/bin/env python3

"""
Merge relevance-tagged transcript segments into padded, non-overlapping clips.
"""

#============================================

DEFAULT_PADDING = 1.5
DEFAULT_MERGE_GAP = 3.0

#============================================

class MatchedSegment():
	def __init__(self, index: int, start: float, end: float, text: str = '',
		relevance: str = ''):
		self.index = index
		self.start = float(start)
		self.end = float(end)
		self.text = text if text is not None else ''
		self.relevance = relevance if relevance is not None else ''

#============================================

class MergedClip():
	def __init__(self, start: float, end: float, source_segments=None,
		index: int = 0):
		self.start = float(start)
		self.end = float(end)
		self.source_segments = list(source_segments or [])
		self.index = index

	#============================
	@property
	def duration(self) -> float:
		return self.end - self.start

	#============================
	@property
	def segment_count(self) -> int:
		return len(self.source_segments)

	#============================
	@property
	def transcript(self) -> str:
		return " ".join(segment.text.strip() for segment in self.source_segments)

	#============================
	@property
	def reasons(self) -> list:
		return [segment.relevance for segment in self.source_segments if segment.relevance]

	#============================
	def key(self) -> tuple:
		return (self.start, self.end)

#============================================

def merge_segments(segments: list, padding: float = DEFAULT_PADDING,
	merge_gap: float = DEFAULT_MERGE_GAP) -> list:
	"""
	Single pass merge of matched segments into clips.

	The gap to the next segment is measured from the clip's padded end,
	so padding can bridge a gap larger than merge_gap. With padding large
	relative to merge_gap this chains every segment into one clip.

	Args:
		segments: MatchedSegment list, any order.
		padding: seconds added on both sides of each segment.
		merge_gap: largest gap in seconds that still merges.

	Returns:
		list: MergedClip in ascending order, indexed from 1.
	"""
	ordered = sorted(segments, key=lambda segment: segment.start)
	clips = []
	current = None
	for segment in ordered:
		if current is None:
			current = _open_clip(segment, padding)
			continue
		if segment.start - current.end <= merge_gap:
			current.end = max(current.end, segment.end + padding)
			current.source_segments.append(segment)
			continue
		clips.append(current)
		current = _open_clip(segment, padding)
	if current is not None:
		clips.append(current)
	return renumber(clips)

#============================================

def _open_clip(segment: MatchedSegment, padding: float) -> MergedClip:
	return MergedClip(max(0.0, segment.start - padding), segment.end + padding,
		[segment])

#============================================

def renumber(clips: list) -> list:
	for position, clip in enumerate(clips, start=1):
		clip.index = position
	return clips

#============================================

def reorder_clips(clips: list, order: list) -> list:
	"""
	New clip list following `order`, a permutation of 1-based positions.
	"""
	if sorted(order) != list(range(1, len(clips) + 1)):
		raise RuntimeError("clip order must list every clip position exactly once")
	reordered = [clips[position - 1] for position in order]
	return renumber(list(reordered))

#============================================

def move_clip(clips: list, position: int, offset: int) -> list:
	"""
	Swap the clip at 1-based `position` with its neighbour `offset` away.
	"""
	target = position + offset
	if target < 1 or target > len(clips) or position < 1 or position > len(clips):
		return list(clips)
	moved = list(clips)
	moved[position - 1], moved[target - 1] = moved[target - 1], moved[position - 1]
	return renumber(moved)

#============================================

def remove_clip(clips: list, position: int) -> list:
	if position < 1 or position > len(clips):
		raise RuntimeError(f"no clip at position {position}")
	remaining = [clip for index, clip in enumerate(clips, start=1) if index != position]
	return renumber(remaining)
