#!/usr/bin/env python3

import os
import yaml
from clipgraphlib.clips import relevance
from clipgraphlib.core import utils
from clipgraphlib.core.timeline import Clip
from clipgraphlib.core.timeline import SourceRef
from clipgraphlib.core.timeline import TextOverlay
from clipgraphlib.core.timeline import Timeline
from clipgraphlib.core.timeline import Track
from clipgraphlib.core.timeline import TRACK_KINDS

#============================================

FORMAT_VERSION = 1
MAX_FILE_SIZE = 10 ** 7
DEFAULT_CONTENT_TYPES = {
	'video': 'video/mp4',
	'image': 'image/jpeg',
	'audio': 'audio/mpeg',
}

#============================================

class ExportSettings():
	def __init__(self):
		self.yaml_file = None
		self.output_file = None
		self.quality = 'medium'
		self.storage_root = None
		self.font_dirs = []
		self.cache_dir = None
		self.keep_temp = False
		self.dry_run = False
		self.ffmpeg = 'ffmpeg'
		self.timeout = 60
		self.timeline = None
		self.data = {}

#============================================

def load_data_file(data_file: str) -> dict:
	"""
	Read a YAML (or JSON) mapping from disk.
	"""
	file_size = os.path.getsize(data_file)
	if file_size > MAX_FILE_SIZE:
		raise RuntimeError("input file is larger than 10MB")
	with open(data_file, 'r', encoding='utf-8') as handle:
		data = yaml.safe_load(handle)
	if not isinstance(data, dict):
		raise RuntimeError("input file must be a mapping at the top level")
	return data

#============================================

class ExportLoader():
	def __init__(self, yaml_file: str, output_override: str = None,
		quality_override: str = None, dry_run: bool = False,
		keep_temp: bool = False, cache_dir: str = None):
		self.yaml_file = yaml_file
		self.output_override = output_override
		self.quality_override = quality_override
		self.dry_run = dry_run
		self.keep_temp = keep_temp
		self.cache_dir = cache_dir

	#============================
	def load(self) -> ExportSettings:
		settings = ExportSettings()
		settings.yaml_file = self.yaml_file
		settings.dry_run = self.dry_run
		settings.keep_temp = self.keep_temp
		settings.cache_dir = self.cache_dir
		settings.data = load_data_file(self.yaml_file)
		self._validate_required_keys(settings.data)
		base_dir = os.path.dirname(os.path.abspath(self.yaml_file))
		self._parse_output(settings, settings.data.get('output', {}), base_dir)
		self._parse_storage(settings, settings.data.get('storage'), base_dir)
		self._parse_fonts(settings, settings.data.get('fonts'), base_dir)
		self._parse_engine(settings, settings.data.get('engine'))
		settings.timeline = parse_timeline(settings.data.get('timeline'))
		return settings

	#============================
	def _validate_required_keys(self, data: dict) -> None:
		if data.get('clipgraph') != FORMAT_VERSION:
			raise RuntimeError(f"clipgraph must be set to {FORMAT_VERSION}")
		for key in ('timeline', 'output'):
			if key not in data:
				raise RuntimeError(f"missing required key: {key}")

	#============================
	def _parse_output(self, settings: ExportSettings, output: dict,
		base_dir: str) -> None:
		if not isinstance(output, dict):
			raise RuntimeError("output must be a mapping")
		output_file = self.output_override or output.get('file')
		if output_file is None:
			raise RuntimeError("output.file is required")
		if not os.path.isabs(output_file) and self.output_override is None:
			output_file = os.path.join(base_dir, output_file)
		settings.output_file = output_file
		settings.quality = self.quality_override or output.get('quality', 'medium')

	#============================
	def _parse_storage(self, settings: ExportSettings, storage, base_dir: str) -> None:
		if storage is None:
			return
		if not isinstance(storage, dict):
			raise RuntimeError("storage must be a mapping")
		root = storage.get('root')
		if root is None:
			raise RuntimeError("storage.root is required")
		if not os.path.isabs(root):
			root = os.path.join(base_dir, root)
		settings.storage_root = root
		if storage.get('timeout') is not None:
			settings.timeout = float(storage.get('timeout'))

	#============================
	def _parse_fonts(self, settings: ExportSettings, fonts, base_dir: str) -> None:
		if fonts is None:
			return
		if not isinstance(fonts, dict):
			raise RuntimeError("fonts must be a mapping")
		dirs = fonts.get('dirs', [])
		if fonts.get('dir') is not None:
			dirs = [fonts.get('dir')] + list(dirs)
		for font_dir in dirs:
			if not os.path.isabs(font_dir):
				font_dir = os.path.join(base_dir, font_dir)
			settings.font_dirs.append(font_dir)

	#============================
	def _parse_engine(self, settings: ExportSettings, engine) -> None:
		if engine is None:
			return
		if not isinstance(engine, dict):
			raise RuntimeError("engine must be a mapping")
		settings.ffmpeg = engine.get('binary', settings.ffmpeg)

#============================================

def parse_timeline(timeline: dict, minimum_duration: float = None) -> Timeline:
	if timeline is None:
		timeline = {}
	if not isinstance(timeline, dict):
		raise RuntimeError("timeline must be a mapping")
	tracks_data = timeline.get('tracks', [])
	if not isinstance(tracks_data, list):
		raise RuntimeError("timeline.tracks must be a list")
	overlays_data = timeline.get('text_overlays', [])
	if not isinstance(overlays_data, list):
		raise RuntimeError("timeline.text_overlays must be a list")
	tracks = []
	for index, track_data in enumerate(tracks_data, start=1):
		tracks.append(_parse_track(track_data, index))
	overlays = []
	for index, overlay_data in enumerate(overlays_data, start=1):
		overlays.append(_parse_overlay(overlay_data, index))
	if minimum_duration is None:
		minimum_duration = timeline.get('minimum_duration', 5)
	return Timeline(tracks, overlays,
		minimum_duration=float(utils.parse_timecode(minimum_duration)))

#============================================

def _parse_track(track_data: dict, index: int) -> Track:
	if not isinstance(track_data, dict):
		raise RuntimeError("timeline.tracks entries must be mappings")
	kind = track_data.get('type', track_data.get('kind'))
	if kind not in TRACK_KINDS:
		raise RuntimeError(f"track {index} type must be one of {', '.join(TRACK_KINDS)}")
	track_id = str(track_data.get('id', f"{kind}-{index}"))
	clips_data = track_data.get('clips', [])
	if not isinstance(clips_data, list):
		raise RuntimeError(f"track {track_id} clips must be a list")
	clips = []
	for clip_index, clip_data in enumerate(clips_data, start=1):
		clips.append(_parse_clip(clip_data, kind, f"{track_id}-{clip_index}"))
	return Track(track_id, kind, clips,
		locked=bool(track_data.get('locked', False)),
		visible=bool(track_data.get('visible', True)),
		name=track_data.get('name'))

#============================================

def _parse_clip(clip_data: dict, kind: str, default_id: str) -> Clip:
	if not isinstance(clip_data, dict):
		raise RuntimeError("track clips must be mappings")
	source = None
	url = clip_data.get('file_url', clip_data.get('url'))
	storage_path = clip_data.get('storage_path')
	if kind != 'text' and (url is not None or storage_path is not None):
		content_type = clip_data.get('file_type', clip_data.get('content_type'))
		if content_type is None:
			content_type = DEFAULT_CONTENT_TYPES[kind]
		source = SourceRef(url=url, storage_path=storage_path,
			content_type=content_type)
	has_audio = clip_data.get('audio', kind in ('video', 'audio'))
	return Clip(str(clip_data.get('id', default_id)),
		_parse_time(clip_data, 'start_time', 0),
		_parse_time(clip_data, 'duration', None),
		source=source,
		trim_start=_parse_time(clip_data, 'trim_start', 0),
		trim_end=_parse_time(clip_data, 'trim_end', 0),
		has_audio=bool(has_audio),
		name=clip_data.get('name', clip_data.get('file_name')))

#============================================

def _parse_overlay(overlay_data: dict, index: int) -> TextOverlay:
	if not isinstance(overlay_data, dict):
		raise RuntimeError("timeline.text_overlays entries must be mappings")
	text = overlay_data.get('text')
	if text is None:
		raise RuntimeError(f"text overlay {index} requires text")
	return TextOverlay(str(overlay_data.get('id', f"text-{index}")), str(text),
		_parse_time(overlay_data, 'start_time', 0),
		_parse_time(overlay_data, 'duration', None),
		x=float(overlay_data.get('x', 50)),
		y=float(overlay_data.get('y', 50)),
		font_size=overlay_data.get('font_size', 48),
		color=overlay_data.get('color', 'white'),
		font=overlay_data.get('font'))

#============================================

def _parse_time(data: dict, key: str, default) -> float:
	value = data.get(key, default)
	if value is None:
		raise RuntimeError(f"{key} is required")
	return float(utils.parse_timecode(value))

#============================================

class ClipSettings():
	def __init__(self):
		self.yaml_file = None
		self.source = None
		self.has_audio = True
		self.segments = []
		self.matches = []
		self.padding = 1.5
		self.merge_gap = 3.0
		self.order = None
		self.merge = False
		self.subtitles = False
		self.output_dir = None
		self.prefix = 'clip'
		self.quality = 'medium'
		self.storage_root = None
		self.timeout = 60
		self.ffmpeg = 'ffmpeg'

#============================================

class ClipLoader():
	"""
	Load a segment-clip request: source, transcript segments and matches.
	"""
	def __init__(self, yaml_file: str, output_dir_override: str = None):
		self.yaml_file = yaml_file
		self.output_dir_override = output_dir_override

	#============================
	def load(self) -> ClipSettings:
		settings = ClipSettings()
		settings.yaml_file = self.yaml_file
		data = load_data_file(self.yaml_file)
		if data.get('clipgraph') != FORMAT_VERSION:
			raise RuntimeError(f"clipgraph must be set to {FORMAT_VERSION}")
		base_dir = os.path.dirname(os.path.abspath(self.yaml_file))
		settings.source = self._parse_source(data.get('source'))
		source_data = data.get('source')
		settings.has_audio = bool(source_data.get('audio', True))
		settings.segments = relevance.parse_transcript_segments(data.get('segments'))
		if data.get('matches') is not None:
			settings.matches = relevance.matches_from_records(data.get('matches'))
		elif data.get('relevance_response') is not None:
			settings.matches = relevance.parse_relevance_response(
				str(data.get('relevance_response')))
		elif data.get('indices') is not None:
			settings.matches = relevance.segments_from_indices(settings.segments,
				[int(index) for index in data.get('indices')])
		else:
			raise RuntimeError("one of matches, relevance_response or indices is required")
		settings.padding = float(utils.parse_timecode(data.get('padding', 1.5)))
		settings.merge_gap = float(utils.parse_timecode(data.get('merge_gap', 3)))
		order = data.get('order')
		if order is not None:
			if not isinstance(order, list):
				raise RuntimeError("order must be a list of clip positions")
			settings.order = [int(position) for position in order]
		settings.merge = bool(data.get('merge', False))
		output = data.get('output', {})
		if not isinstance(output, dict):
			raise RuntimeError("output must be a mapping")
		output_dir = self.output_dir_override or output.get('dir', 'clips')
		if not os.path.isabs(output_dir) and self.output_dir_override is None:
			output_dir = os.path.join(base_dir, output_dir)
		settings.output_dir = output_dir
		settings.prefix = output.get('prefix', settings.prefix)
		settings.quality = output.get('quality', settings.quality)
		settings.subtitles = bool(output.get('subtitles', False))
		storage = data.get('storage')
		if storage is not None:
			if not isinstance(storage, dict) or storage.get('root') is None:
				raise RuntimeError("storage.root is required")
			root = storage.get('root')
			if not os.path.isabs(root):
				root = os.path.join(base_dir, root)
			settings.storage_root = root
			settings.timeout = float(storage.get('timeout', settings.timeout))
		engine = data.get('engine')
		if isinstance(engine, dict):
			settings.ffmpeg = engine.get('binary', settings.ffmpeg)
		return settings

	#============================
	def _parse_source(self, source_data) -> SourceRef:
		if not isinstance(source_data, dict):
			raise RuntimeError("source must be a mapping")
		url = source_data.get('url')
		storage_path = source_data.get('storage_path')
		if url is None and storage_path is None:
			raise RuntimeError("source requires url or storage_path")
		return SourceRef(url=url, storage_path=storage_path,
			content_type=source_data.get('content_type', 'video/mp4'))
