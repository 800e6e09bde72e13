#!/usr/bin/env python3

from clipgraphlib.core import utils

#============================================

class Cue():
	def __init__(self, start: float, end: float, text: str):
		self.start = start
		self.end = end
		self.text = text

#============================================

def clip_cues(clip, segments: list) -> list:
	"""
	Transcript segments overlapping a clip, in clip-relative seconds.
	"""
	cues = []
	for segment in segments:
		if segment['end'] <= clip.start or segment['start'] >= clip.end:
			continue
		text = str(segment.get('text', '')).strip()
		if text == '':
			continue
		start = max(0.0, segment['start'] - clip.start)
		end = min(clip.duration, segment['end'] - clip.start)
		cues.append(Cue(start, end, text))
	return cues

#============================================

def format_srt(cues: list) -> str:
	blocks = []
	for number, cue in enumerate(cues, start=1):
		timing = (f"{utils.format_srt_timestamp(cue.start)} --> "
			f"{utils.format_srt_timestamp(cue.end)}")
		blocks.append(f"{number}\n{timing}\n{cue.text}\n")
	return "\n".join(blocks)
