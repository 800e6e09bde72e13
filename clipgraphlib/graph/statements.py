#!/usr/bin/env python3

"""
Typed statements for the compositing graph.

A statement is one filter chain: input pad labels, an ordered list of
filters, and one output pad label. Nothing here knows the engine's text
syntax; clipgraphlib.graph.serializer owns that.
"""

#============================================

class EnableWindow():
	"""
	Global-clock interval during which a layer is active.

	Layers use a half-open window [start, end); text overlays use a
	closed window [start, end].
	"""
	def __init__(self, start: float, end: float, closed: bool = False):
		self.start = float(start)
		self.end = float(end)
		self.closed = closed

	#============================
	def contains(self, t: float) -> bool:
		if t < self.start:
			return False
		if self.closed:
			return t <= self.end
		return t < self.end

#============================================
# filters
#============================================

class Color():
	def __init__(self, color: str, width: int, height: int, duration: float):
		self.color = color
		self.width = width
		self.height = height
		self.duration = duration

class Trim():
	def __init__(self, start: float, duration: float, audio: bool = False):
		self.start = start
		self.duration = duration
		self.audio = audio

class Scale():
	def __init__(self, width: int, height: int):
		self.width = width
		self.height = height

class Shift():
	"""
	Reset timestamps to zero, then move them to `offset` seconds.
	"""
	def __init__(self, offset: float = 0.0, audio: bool = False):
		self.offset = offset
		self.audio = audio

class Delay():
	def __init__(self, milliseconds: int):
		self.milliseconds = milliseconds

class Overlay():
	def __init__(self, window: EnableWindow, x: int = 0, y: int = 0):
		self.window = window
		self.x = x
		self.y = y

class DrawText():
	def __init__(self, textfile: str, fontfile: str, anchor_x: int,
		anchor_y: int, font_size: int, color: str, window: EnableWindow):
		self.textfile = textfile
		self.fontfile = fontfile
		self.anchor_x = anchor_x
		self.anchor_y = anchor_y
		self.font_size = font_size
		self.color = color
		self.window = window

class Mix():
	def __init__(self, inputs: int):
		self.inputs = inputs

class Passthrough():
	pass

#============================================

class Statement():
	def __init__(self, inputs: list, filters: list, output: str):
		self.inputs = list(inputs)
		self.filters = list(filters)
		self.output = output

#============================================

class Encode():
	"""
	Final encoder invocation: stream mapping, codecs, quality, duration clamp.
	"""
	def __init__(self, output_name: str, video_label: str = None,
		audio_label: str = None, video_codec: str = 'libx264',
		audio_codec: str = 'aac', preset: str = None, crf: int = None,
		pixel_format: str = 'yuv420p', duration: float = None,
		stream_copy: bool = False):
		self.output_name = output_name
		self.video_label = video_label
		self.audio_label = audio_label
		self.video_codec = video_codec
		self.audio_codec = audio_codec
		self.preset = preset
		self.crf = crf
		self.pixel_format = pixel_format
		self.duration = duration
		self.stream_copy = stream_copy

#============================================

class InputSpec():
	def __init__(self, index: int, name: str, source=None, is_image: bool = False,
		loop_duration: float = None, demuxer: str = None, clip_id: str = None):
		self.index = index
		self.name = name
		self.source = source
		self.is_image = is_image
		self.loop_duration = loop_duration
		self.demuxer = demuxer
		self.clip_id = clip_id

#============================================

class SideFile():
	"""
	Engine-addressable virtual file written next to the inputs.
	"""
	def __init__(self, name: str, data: bytes):
		self.name = name
		self.data = data

#============================================

class CompiledProgram():
	def __init__(self):
		self.statements = []
		self.input_specs = []
		self.side_files = []
		self.fonts = []
		self.video_label = None
		self.audio_label = None
		self.encode = None
		self.total_duration = 0.0
		self.warnings = []
		self.payload_names = []

	#============================
	def output_name(self) -> str:
		return self.encode.output_name

	#============================
	def layer_count(self) -> int:
		return sum(1 for statement in self.statements
			if any(isinstance(item, Overlay) for item in statement.filters))
