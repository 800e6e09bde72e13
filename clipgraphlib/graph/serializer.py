#!/usr/bin/env python3

"""
Serialize typed statements into ffmpeg filtergraph text and arguments.

This is the only module that writes engine syntax. User text never
reaches it; overlay text is referenced through side files by name.
"""

from clipgraphlib.core import utils
from clipgraphlib.graph import statements

#============================================

def window_text(window: statements.EnableWindow) -> str:
	start = utils.format_seconds(window.start)
	end = utils.format_seconds(window.end)
	if window.closed:
		return f"between(t,{start},{end})"
	return f"gte(t,{start})*lt(t,{end})"

#============================================

def filter_text(item) -> str:
	if isinstance(item, statements.Color):
		duration = utils.format_seconds(item.duration)
		return f"color=c={item.color}:size={item.width}x{item.height}:d={duration}"
	if isinstance(item, statements.Trim):
		name = 'atrim' if item.audio else 'trim'
		start = utils.format_seconds(item.start)
		duration = utils.format_seconds(item.duration)
		return f"{name}=start={start}:duration={duration}"
	if isinstance(item, statements.Scale):
		return f"scale={item.width}:{item.height}"
	if isinstance(item, statements.Shift):
		if item.audio:
			return "asetpts=PTS-STARTPTS"
		offset = utils.format_seconds(item.offset)
		return f"setpts=PTS-STARTPTS+{offset}/TB"
	if isinstance(item, statements.Delay):
		return f"adelay={item.milliseconds}:all=1"
	if isinstance(item, statements.Overlay):
		return f"overlay={item.x}:{item.y}:enable='{window_text(item.window)}'"
	if isinstance(item, statements.DrawText):
		parts = []
		if item.fontfile is not None:
			parts.append(f"fontfile={item.fontfile}")
		parts += [
			f"textfile={item.textfile}",
			"expansion=none",
			f"x=({item.anchor_x}-text_w/2)",
			f"y=({item.anchor_y}-text_h/2)",
			f"fontsize={item.font_size}",
			f"fontcolor={item.color}",
			f"enable='{window_text(item.window)}'",
		]
		return "drawtext=" + ":".join(parts)
	if isinstance(item, statements.Mix):
		return f"amix=inputs={item.inputs}:normalize=0"
	if isinstance(item, statements.Passthrough):
		return "null"
	raise RuntimeError(f"unsupported filter type {type(item).__name__}")

#============================================

def statement_text(statement: statements.Statement) -> str:
	pads = "".join(f"[{label}]" for label in statement.inputs)
	chain = ",".join(filter_text(item) for item in statement.filters)
	return f"{pads}{chain}[{statement.output}]"

#============================================

def graph_text(program) -> str:
	return "; ".join(statement_text(statement) for statement in program.statements)

#============================================

def input_arguments(spec: statements.InputSpec) -> list:
	args = []
	if spec.demuxer is not None:
		args += ['-f', spec.demuxer, '-safe', '0']
	if spec.loop_duration is not None:
		args += ['-loop', '1', '-t', utils.format_seconds(spec.loop_duration)]
	args += ['-i', spec.name]
	return args

#============================================

def encode_arguments(encode: statements.Encode) -> list:
	args = []
	if encode.video_label is not None:
		args += ['-map', f"[{encode.video_label}]"]
	if encode.audio_label is not None:
		args += ['-map', f"[{encode.audio_label}]"]
	if encode.stream_copy:
		args += ['-c', 'copy']
	else:
		args += ['-c:v', encode.video_codec]
		if encode.audio_label is not None:
			args += ['-c:a', encode.audio_codec]
		if encode.preset is not None:
			args += ['-preset', encode.preset]
		if encode.crf is not None:
			args += ['-crf', str(encode.crf)]
		if encode.pixel_format is not None:
			args += ['-pix_fmt', encode.pixel_format]
	if encode.duration is not None:
		args += ['-t', utils.format_seconds(encode.duration)]
	args.append(encode.output_name)
	return args

#============================================

def program_arguments(program) -> list:
	"""
	Engine argument list for one compiled program, without global flags.
	"""
	if program.encode is None:
		raise RuntimeError("compiled program has no encode statement")
	args = []
	for spec in program.input_specs:
		args += input_arguments(spec)
	if len(program.statements) > 0:
		args += ['-filter_complex', graph_text(program)]
	args += encode_arguments(program.encode)
	return args

#============================================

def describe_program(program) -> dict:
	"""
	Plain mapping of a program, for plan dumps.
	"""
	inputs = []
	for spec in program.input_specs:
		entry = {'index': spec.index, 'name': spec.name, 'image': spec.is_image}
		if spec.source is not None:
			entry['source'] = spec.source.describe()
		if spec.loop_duration is not None:
			entry['loop'] = utils.format_seconds(spec.loop_duration)
		inputs.append(entry)
	return {
		'duration': utils.format_seconds(program.total_duration),
		'inputs': inputs,
		'side_files': [side.name for side in program.side_files],
		'fonts': list(program.fonts),
		'statements': [statement_text(statement) for statement in program.statements],
		'video_label': program.video_label,
		'audio_label': program.audio_label,
		'arguments': program_arguments(program),
		'warnings': list(program.warnings),
	}
