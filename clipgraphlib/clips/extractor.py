#!/usr/bin/env python3

from clipgraphlib.core import utils
from clipgraphlib.core.errors import EngineExecutionFailure
from clipgraphlib.core.timeline import Clip
from clipgraphlib.core.timeline import Timeline
from clipgraphlib.core.timeline import Track
from clipgraphlib.graph.compiler import GraphCompiler
from clipgraphlib.media.assets import AssetResult

#============================================

EXTRACT_CLIP_ID = 'extract'

#============================================

class ClipOutput():
	def __init__(self, clip, data: bytes = None, error: Exception = None,
		log_text: str = ''):
		self.clip = clip
		self.data = data
		self.error = error
		self.log_text = log_text

	#============================
	@property
	def ok(self) -> bool:
		return self.data is not None and self.error is None

#============================================

class ClipExtractor():
	"""
	Render merged clips of one source recording, one engine job per clip.
	"""
	def __init__(self, driver, resolver, compiler: GraphCompiler = None,
		quality: str = 'medium', has_audio: bool = True):
		self.driver = driver
		self.resolver = resolver
		self.compiler = compiler if compiler is not None else GraphCompiler()
		self.quality = quality
		self.has_audio = has_audio

	#============================
	def single_clip_timeline(self, source, clip) -> Timeline:
		"""
		One video track holding one clip cut from the source at clip.start.
		"""
		extract_clip = Clip(EXTRACT_CLIP_ID, 0.0, clip.duration, source=source,
			trim_start=clip.start, has_audio=self.has_audio)
		track = Track('extract', 'video', [extract_clip])
		return Timeline([track], minimum_duration=0.0)

	#============================
	def compile_clip(self, source, clip):
		timeline = self.single_clip_timeline(source, clip)
		assets = {EXTRACT_CLIP_ID: AssetResult(EXTRACT_CLIP_ID, source, data=b'')}
		return self.compiler.compile(timeline, quality=self.quality, assets=assets)

	#============================
	def extract(self, source, clips: list, on_clip=None) -> list:
		"""
		Render every clip; a failed clip is reported and the rest continue.

		Raises:
			AssetUnavailable: the source recording itself cannot be fetched.
		"""
		if len(clips) == 0:
			return []
		data = self.resolver.fetch(source)
		utils.log(f"source loaded: {utils.format_file_size(len(data))}")
		outputs = []
		for clip in clips:
			utils.log(f"cutting clip {clip.index}/{len(clips)} "
				f"({utils.format_clock(clip.start)} -> {utils.format_clock(clip.end)}, "
				f"{clip.duration:.1f}s)")
			program = self.compile_clip(source, clip)
			payloads = {spec.name: data for spec in program.input_specs}
			try:
				result = self.driver.run(program, payloads)
			except EngineExecutionFailure as exc:
				utils.log(f"clip {clip.index} failed: {exc.args[0]}")
				outputs.append(ClipOutput(clip, error=exc, log_text=exc.log_text))
				if on_clip is not None:
					on_clip(outputs[-1])
				continue
			utils.log(f"clip {clip.index}: {utils.format_file_size(len(result.output))}")
			outputs.append(ClipOutput(clip, data=result.output, log_text=result.log_text))
			if on_clip is not None:
				on_clip(outputs[-1])
		return outputs

	#============================
	def concatenate(self, outputs: list) -> bytes:
		"""
		Join successful clip outputs in list order without re-encoding.
		"""
		usable = [output for output in outputs if output.ok]
		if len(usable) == 0:
			raise RuntimeError("no clips to merge")
		if len(usable) == 1:
			return usable[0].data
		names = [f"merge_clip_{index}.mp4" for index in range(len(usable))]
		program = self.compiler.compile_concat(names)
		payloads = {}
		for name, output in zip(names, usable):
			payloads[name] = output.data
		utils.log(f"merging {len(usable)} clips")
		result = self.driver.run(program, payloads)
		return result.output
