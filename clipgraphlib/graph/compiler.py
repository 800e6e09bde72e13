#!/usr/bin/env python3

from clipgraphlib.core import utils
from clipgraphlib.core.errors import CompileInconsistency
from clipgraphlib.graph import statements

#============================================

CANVAS_WIDTH = 1920
CANVAS_HEIGHT = 1080
CANVAS_COLOR = 'black'
OUTPUT_NAME = 'output.mp4'
CONCAT_LIST_NAME = 'merge_list.txt'
CONCAT_OUTPUT_NAME = 'merged_output.mp4'

# quality selector -> (speed preset, crf); slower preset and lower crf for higher quality
QUALITY_PRESETS = {
	'high': ('slow', 18),
	'medium': ('medium', 23),
	'low': ('fast', 28),
}
DEFAULT_QUALITY = 'medium'

DEFAULT_FONT = 'Arial'
DEFAULT_TEXT_COLOR = 'white'
DEFAULT_FONT_SIZE = 48

# paint order: every video track, then every image track; audio tracks add sound only
LAYER_KINDS = ('video', 'image', 'audio')

TERMINAL_VIDEO_LABEL = 'outv'
TERMINAL_AUDIO_LABEL = 'outa'

#============================================

def quality_parameters(quality: str) -> tuple:
	if isinstance(quality, str):
		params = QUALITY_PRESETS.get(quality.strip().lower())
		if params is not None:
			return params
	return QUALITY_PRESETS[DEFAULT_QUALITY]

#============================================

class GraphCompiler():
	def __init__(self, width: int = CANVAS_WIDTH, height: int = CANVAS_HEIGHT,
		output_name: str = OUTPUT_NAME):
		self.width = width
		self.height = height
		self.output_name = output_name

	#============================
	def required_sources(self, timeline) -> list:
		"""
		Clips that need an engine input, in paint order.
		"""
		return [clip for (kind, clip) in self._ordered_layers(timeline)]

	#============================
	def _ordered_layers(self, timeline) -> list:
		layers = []
		for kind in LAYER_KINDS:
			for track in timeline.tracks_of_kind(kind):
				if not track.visible:
					continue
				for clip in track.clips:
					layers.append((kind, clip))
		return layers

	#============================
	def compile(self, timeline, quality: str = DEFAULT_QUALITY,
		assets: dict = None) -> statements.CompiledProgram:
		"""
		Compile a timeline snapshot into an engine program.

		Args:
			timeline: Timeline snapshot.
			quality: 'high', 'medium' or 'low'; anything else means medium.
			assets: optional mapping of clip id to AssetResult. Clips whose
				result is missing or failed are left out of the program.

		Returns:
			CompiledProgram
		"""
		program = statements.CompiledProgram()
		total_duration = timeline.total_duration()
		program.total_duration = total_duration
		program.statements.append(statements.Statement([], [
			statements.Color(CANVAS_COLOR, self.width, self.height, total_duration)
		], 'base'))
		for track in timeline.tracks:
			if not track.visible and track.kind != 'text':
				program.warnings.append(f"skipping hidden {track.kind} track {track.name}")
		current_label = 'base'
		audio_labels = []
		layer_number = 0
		for kind, clip in self._ordered_layers(timeline):
			problem = self._clip_problem(clip, assets)
			if problem is not None:
				program.warnings.append(f"skipping clip {clip.name}: {problem}")
				continue
			index = len(program.input_specs)
			spec = self._input_spec(index, kind, clip)
			program.input_specs.append(spec)
			if kind == 'audio':
				audio_labels.append(self._add_audio_layer(program, index, clip))
				continue
			layer_label = f"visual{index}"
			window = statements.EnableWindow(clip.start_time, clip.end_time())
			if spec.is_image:
				layer_filters = [
					statements.Scale(self.width, self.height),
					statements.Shift(clip.start_time),
				]
			else:
				layer_filters = [
					statements.Trim(clip.trim_start, clip.duration),
					statements.Scale(self.width, self.height),
					statements.Shift(clip.start_time),
				]
			program.statements.append(statements.Statement(
				[f"{index}:v"], layer_filters, layer_label))
			next_label = f"tmp{layer_number}"
			program.statements.append(statements.Statement(
				[current_label, layer_label], [statements.Overlay(window)], next_label))
			current_label = next_label
			layer_number += 1
			if kind == 'video' and clip.has_audio:
				audio_labels.append(self._add_audio_layer(program, index, clip))
		if len(audio_labels) > 0:
			program.statements.append(statements.Statement(
				audio_labels, [statements.Mix(len(audio_labels))], TERMINAL_AUDIO_LABEL))
			program.audio_label = TERMINAL_AUDIO_LABEL
		current_label = self._add_text_overlays(program, timeline, current_label)
		if current_label != TERMINAL_VIDEO_LABEL:
			program.statements.append(statements.Statement(
				[current_label], [statements.Passthrough()], TERMINAL_VIDEO_LABEL))
		self._check_terminal_labels(program)
		program.video_label = TERMINAL_VIDEO_LABEL
		(preset, crf) = quality_parameters(quality)
		program.encode = statements.Encode(self.output_name,
			video_label=program.video_label, audio_label=program.audio_label,
			preset=preset, crf=crf, duration=total_duration)
		program.payload_names = [spec.name for spec in program.input_specs]
		return program

	#============================
	def _clip_problem(self, clip, assets: dict):
		if clip.source is None:
			return "clip has no source"
		if assets is None:
			return None
		result = assets.get(clip.id)
		if result is None:
			return "asset was not resolved"
		if not result.ok:
			return str(result.error)
		return None

	#============================
	def _input_spec(self, index: int, kind: str, clip) -> statements.InputSpec:
		is_image = kind == 'image'
		loop_duration = clip.duration if is_image else None
		name = f"input{index}.{clip.source.extension()}"
		return statements.InputSpec(index, name, source=clip.source,
			is_image=is_image, loop_duration=loop_duration, clip_id=clip.id)

	#============================
	def _add_audio_layer(self, program, index: int, clip) -> str:
		label = f"audio{index}"
		delay = utils.seconds_to_milliseconds(max(0.0, clip.start_time))
		program.statements.append(statements.Statement([f"{index}:a"], [
			statements.Trim(clip.trim_start, clip.duration, audio=True),
			statements.Shift(audio=True),
			statements.Delay(delay),
		], label))
		return label

	#============================
	def _add_text_overlays(self, program, timeline, current_label: str) -> str:
		count = len(timeline.text_overlays)
		for index, overlay in enumerate(timeline.text_overlays):
			output_label = f"text{index}"
			if index == count - 1:
				output_label = TERMINAL_VIDEO_LABEL
			textfile = f"overlay_text_{index}.txt"
			text = overlay.text if overlay.text is not None else ''
			program.side_files.append(statements.SideFile(textfile, text.encode('utf-8')))
			font = self._font_token(program, overlay)
			fontfile = f"font{font}.ttf"
			if font not in program.fonts:
				program.fonts.append(font)
			window = statements.EnableWindow(overlay.start_time, overlay.end_time(),
				closed=True)
			draw = statements.DrawText(textfile, fontfile,
				utils.percent_of(overlay.x, self.width),
				utils.percent_of(overlay.y, self.height),
				self._font_size(program, overlay),
				self._color_token(program, overlay), window)
			program.statements.append(statements.Statement(
				[current_label], [draw], output_label))
			current_label = output_label
		return current_label

	#============================
	def _font_token(self, program, overlay) -> str:
		if overlay.font is None or overlay.font == '':
			return DEFAULT_FONT
		if utils.is_safe_token(overlay.font, r'^[A-Za-z0-9_-]+$'):
			return overlay.font
		program.warnings.append(
			f"text overlay {overlay.id}: unsupported font name, using {DEFAULT_FONT}")
		return DEFAULT_FONT

	#============================
	def _color_token(self, program, overlay) -> str:
		if utils.is_safe_token(overlay.color):
			return overlay.color
		program.warnings.append(
			f"text overlay {overlay.id}: unsupported color, using {DEFAULT_TEXT_COLOR}")
		return DEFAULT_TEXT_COLOR

	#============================
	def _font_size(self, program, overlay) -> int:
		try:
			size = utils.round_half_up(float(overlay.font_size))
		except (TypeError, ValueError):
			size = 0
		if size <= 0:
			program.warnings.append(
				f"text overlay {overlay.id}: invalid font size, using {DEFAULT_FONT_SIZE}")
			return DEFAULT_FONT_SIZE
		return size

	#============================
	def _check_terminal_labels(self, program) -> None:
		outputs = [statement.output for statement in program.statements]
		if TERMINAL_VIDEO_LABEL not in outputs:
			raise CompileInconsistency("terminal video label was never defined")
		if program.audio_label is not None and program.audio_label not in outputs:
			raise CompileInconsistency("terminal audio label was never defined")

	#============================
	def compile_concat(self, clip_names: list,
		output_name: str = CONCAT_OUTPUT_NAME) -> statements.CompiledProgram:
		"""
		Sequential concatenation of already encoded clips, without re-encoding.
		"""
		if len(clip_names) == 0:
			raise RuntimeError("no clips to concatenate")
		program = statements.CompiledProgram()
		lines = [f"file '{name}'" for name in clip_names]
		program.side_files.append(statements.SideFile(CONCAT_LIST_NAME,
			"\n".join(lines).encode('utf-8')))
		program.input_specs.append(statements.InputSpec(0, CONCAT_LIST_NAME,
			demuxer='concat'))
		program.encode = statements.Encode(output_name, stream_copy=True)
		program.payload_names = list(clip_names)
		return program

#============================================

def drop_font(program, font: str) -> None:
	"""
	Stop naming a font file that has no payload; drawtext then uses the
	engine's default font.
	"""
	fontfile = f"font{font}.ttf"
	for statement in program.statements:
		for item in statement.filters:
			if isinstance(item, statements.DrawText) and item.fontfile == fontfile:
				item.fontfile = None
	if font in program.fonts:
		program.fonts.remove(font)
	program.warnings.append(f"font {font} not found, using the engine default font")

#============================================

def audio_layer_inputs(program) -> list:
	"""
	Input specs whose audio stream feeds an audio layer.
	"""
	sources = set()
	for statement in program.statements:
		for label in statement.inputs:
			if label.endswith(':a'):
				sources.add(label[:-2])
	return [spec for spec in program.input_specs if str(spec.index) in sources]

#============================================

def drop_audio_layer(program, index: int) -> str:
	"""
	Remove the audio layer read from one input and rebuild the mix.

	When no audio layer is left the program encodes video only.
	"""
	source_label = f"{index}:a"
	removed = [statement.output for statement in program.statements
		if source_label in statement.inputs]
	program.statements = [statement for statement in program.statements
		if source_label not in statement.inputs]
	for statement in list(program.statements):
		if statement.output != TERMINAL_AUDIO_LABEL:
			continue
		statement.inputs = [label for label in statement.inputs if label not in removed]
		if len(statement.inputs) == 0:
			program.statements.remove(statement)
			program.audio_label = None
			if program.encode is not None:
				program.encode.audio_label = None
			continue
		statement.filters = [statements.Mix(len(statement.inputs))]
	warning = f"input {index} has no audio stream, dropping its audio"
	program.warnings.append(warning)
	return warning
