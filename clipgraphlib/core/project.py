#!/usr/bin/env python3

import os
from clipgraphlib.core import utils
from clipgraphlib.core.loader import ExportLoader
from clipgraphlib.graph import compiler as compiler_module
from clipgraphlib.graph.compiler import GraphCompiler
from clipgraphlib.media.assets import AssetResolver
from clipgraphlib.media.assets import LocalStorage
from clipgraphlib.render import engine as engine_module
from clipgraphlib.render.driver import RenderDriver

#============================================

def collect_payloads(program, assets: dict, resolver) -> dict:
	"""
	Engine file name -> bytes for every input and font a program needs.

	Fonts with no file are dropped from the program, so their overlays
	fall back to the engine default font.
	"""
	payloads = {}
	for spec in program.input_specs:
		if spec.clip_id is None:
			continue
		payloads[spec.name] = assets[spec.clip_id].data
	for font in list(program.fonts):
		data = resolver.resolve_font(font)
		if data is None:
			compiler_module.drop_font(program, font)
			continue
		payloads[f"font{font}.ttf"] = data
	return payloads

#============================================

def export_timeline(timeline, quality: str, resolver, driver, compiler=None):
	"""
	Compile, resolve and render one timeline snapshot.

	Returns:
		RenderResult
	"""
	if compiler is None:
		compiler = GraphCompiler()
	clips = compiler.required_sources(timeline)
	assets = resolver.resolve_all(clips)
	program = compiler.compile(timeline, quality=quality, assets=assets)
	utils.log(f"compiled {len(program.statements)} statements, "
		f"{program.layer_count()} layers, {len(program.input_specs)} inputs, "
		f"{utils.format_seconds(program.total_duration)}s")
	payloads = collect_payloads(program, assets, resolver)
	return driver.run(program, payloads)

#============================================

class ExportJob():
	def __init__(self, yaml_file: str, output_override: str = None,
		quality_override: str = None, dry_run: bool = False,
		keep_temp: bool = False, cache_dir: str = None, on_progress=None,
		on_log=None):
		loader = ExportLoader(yaml_file, output_override=output_override,
			quality_override=quality_override, dry_run=dry_run,
			keep_temp=keep_temp, cache_dir=cache_dir)
		self.settings = loader.load()
		self.timeline = self.settings.timeline
		self.output_file = self.settings.output_file
		self.quality = self.settings.quality
		self.dry_run = self.settings.dry_run
		self.compiler = GraphCompiler()
		storage = None
		if self.settings.storage_root is not None:
			storage = LocalStorage(self.settings.storage_root)
		self.resolver = AssetResolver(storage=storage,
			timeout=self.settings.timeout, font_dirs=self.settings.font_dirs)
		self.driver = RenderDriver(engine_loader=self._load_engine,
			on_progress=on_progress, on_log=on_log,
			keep_temp=self.settings.keep_temp, cache_dir=self.settings.cache_dir)
		self.result = None

	#============================
	def _load_engine(self):
		return engine_module.get_engine(self.settings.ffmpeg)

	#============================
	def plan(self):
		"""
		Compiled program assuming every asset is available.
		"""
		return self.compiler.compile(self.timeline, quality=self.quality)

	#============================
	def run(self):
		if self.dry_run:
			program = self.plan()
			for warning in program.warnings:
				utils.log(f"warning: {warning}")
			utils.log("dry run: compile complete")
			return None
		self.result = export_timeline(self.timeline, self.quality, self.resolver,
			self.driver, compiler=self.compiler)
		output_dir = os.path.dirname(os.path.abspath(self.output_file))
		if not os.path.isdir(output_dir):
			os.makedirs(output_dir)
		with open(self.output_file, 'wb') as handle:
			handle.write(self.result.output)
		utils.log(f"wrote {self.output_file} "
			f"({utils.format_file_size(len(self.result.output))})")
		return self.result
