#!/usr/bin/env python3

import re

#============================================

TRACK_KINDS = ('video', 'audio', 'text', 'image')
DEFAULT_MINIMUM_DURATION = 5.0

#============================================

class SourceRef():
	def __init__(self, url: str = None, storage_path: str = None,
		content_type: str = None):
		self.url = url
		self.storage_path = storage_path
		self.content_type = content_type

	#============================
	def is_image(self) -> bool:
		return isinstance(self.content_type, str) and self.content_type.startswith('image/')

	#============================
	def extension(self) -> str:
		default = 'jpg' if self.is_image() else 'mp4'
		if not isinstance(self.content_type, str) or '/' not in self.content_type:
			return default
		subtype = self.content_type.split('/', 1)[1].lower()
		subtype = subtype.split(';')[0].strip()
		if re.match(r'^[a-z0-9]+$', subtype) is None:
			return default
		return subtype

	#============================
	def describe(self) -> str:
		if self.storage_path:
			return self.storage_path
		if self.url:
			return self.url
		return '(no source)'

#============================================

class Clip():
	def __init__(self, clip_id: str, start_time: float, duration: float,
		source: SourceRef = None, trim_start: float = 0.0, trim_end: float = 0.0,
		has_audio: bool = True, name: str = None):
		self.id = clip_id
		self.source = source
		self.start_time = float(start_time)
		self.duration = float(duration)
		self.trim_start = float(trim_start)
		self.trim_end = float(trim_end)
		self.has_audio = has_audio
		self.name = name if name is not None else clip_id

	#============================
	def end_time(self) -> float:
		return self.start_time + self.duration

#============================================

class Track():
	def __init__(self, track_id: str, kind: str, clips=(), locked: bool = False,
		visible: bool = True, name: str = None):
		if kind not in TRACK_KINDS:
			raise RuntimeError(f"track kind must be one of {', '.join(TRACK_KINDS)}")
		self.id = track_id
		self._kind = kind
		self.clips = tuple(clips)
		self.locked = locked
		self.visible = visible
		self.name = name if name is not None else track_id

	#============================
	@property
	def kind(self) -> str:
		return self._kind

#============================================

class TextOverlay():
	def __init__(self, overlay_id: str, text: str, start_time: float,
		duration: float, x: float = 50.0, y: float = 50.0, font_size: int = 48,
		color: str = 'white', font: str = None):
		self.id = overlay_id
		self.text = text
		self.x = float(x)
		self.y = float(y)
		self.font_size = font_size
		self.color = color
		self.font = font
		self.start_time = float(start_time)
		self.duration = float(duration)

	#============================
	def end_time(self) -> float:
		return self.start_time + self.duration

#============================================

class Timeline():
	"""
	Read-only snapshot of an edit handed over at export time.
	"""
	def __init__(self, tracks=(), text_overlays=(),
		minimum_duration: float = DEFAULT_MINIMUM_DURATION):
		self.tracks = tuple(tracks)
		self.text_overlays = tuple(text_overlays)
		self.minimum_duration = float(minimum_duration)

	#============================
	def total_duration(self) -> float:
		duration = self.minimum_duration
		for track in self.tracks:
			for clip in track.clips:
				duration = max(duration, clip.end_time())
		for overlay in self.text_overlays:
			duration = max(duration, overlay.end_time())
		return duration

	#============================
	def tracks_of_kind(self, kind: str) -> list:
		return [track for track in self.tracks if track.kind == kind]

	#============================
	def clip_count(self) -> int:
		return sum(len(track.clips) for track in self.tracks)
