#!/usr/bin/env python3

from clipgraphlib.core import utils
from clipgraphlib.core.errors import EngineBusy
from clipgraphlib.core.errors import EngineExecutionFailure
from clipgraphlib.graph import compiler
from clipgraphlib.graph import serializer
from clipgraphlib.render import engine as engine_module

#============================================

class RenderResult():
	def __init__(self, output: bytes, output_name: str, log_text: str,
		progress: int = 100):
		self.output = output
		self.output_name = output_name
		self.log_text = log_text
		self.progress = progress

#============================================

class RenderDriver():
	"""
	Executes one compiled program at a time against the shared engine.
	"""
	def __init__(self, engine_loader=None, on_progress=None, on_log=None,
		keep_temp: bool = False, cache_dir: str = None):
		self.engine_loader = engine_loader or engine_module.get_engine
		self.on_progress = on_progress
		self.on_log = on_log
		self.keep_temp = keep_temp
		self.cache_dir = cache_dir
		self.exporting = False
		self.progress = 0
		self.log_lines = []

	#============================
	def log_text(self) -> str:
		return "\n".join(self.log_lines)

	#============================
	def _log(self, message: str) -> None:
		self.log_lines.append(message)
		if self.on_log is not None:
			self.on_log(message)

	#============================
	def _progress(self, fraction) -> None:
		self.progress = utils.clamp_progress(fraction)
		if self.on_progress is not None:
			self.on_progress(self.progress)

	#============================
	def run(self, program, payloads: dict) -> RenderResult:
		"""
		Write inputs, execute the program and read back its output.

		Args:
			program: CompiledProgram.
			payloads: mapping of engine file name to bytes. Every name in
				program.payload_names must be present; extra names (fonts)
				are written as well.

		Raises:
			EngineBusy: another program is running on the shared engine.
			EngineLoadFailure: the engine could not be loaded.
			EngineExecutionFailure: the engine rejected or aborted the program.
		"""
		job_lock = engine_module.job_lock()
		if not job_lock.acquire(blocking=False):
			raise EngineBusy("an export is already running")
		try:
			return self._run_locked(program, payloads)
		except Exception:
			self.progress = 0
			raise
		finally:
			self.exporting = False
			job_lock.release()

	#============================
	def _run_locked(self, program, payloads: dict) -> RenderResult:
		missing = [name for name in program.payload_names if name not in payloads]
		if len(missing) > 0:
			raise RuntimeError(f"missing input data for {', '.join(missing)}")
		self.exporting = True
		self.progress = 0
		self.log_lines = []
		for warning in program.warnings:
			self._log(f"warning: {warning}")
		engine = self.engine_loader()
		workspace = engine.new_workspace(self.cache_dir)
		try:
			for name in sorted(payloads.keys()):
				engine.write_input(workspace, name, payloads[name])
			for side_file in program.side_files:
				engine.write_input(workspace, side_file.name, side_file.data)
			self._drop_silent_inputs(engine, workspace, program)
			args = serializer.program_arguments(program)
			returncode = engine.execute(workspace, args,
				duration=program.total_duration, on_progress=self._progress,
				on_log=self._log)
			if returncode != 0:
				raise EngineExecutionFailure(
					f"engine exited with status {returncode}",
					log_text=self.log_text(), returncode=returncode)
			try:
				output = engine.read_output(workspace, program.output_name())
			except OSError as exc:
				raise EngineExecutionFailure(
					f"engine produced no output {program.output_name()}: {exc}",
					log_text=self.log_text()) from exc
		finally:
			if not self.keep_temp:
				engine.remove_workspace(workspace)
		self._progress(1.0)
		return RenderResult(output, program.output_name(), self.log_text(),
			self.progress)

	#============================
	def _drop_silent_inputs(self, engine, workspace: str, program) -> None:
		for spec in compiler.audio_layer_inputs(program):
			if engine.has_audio_stream(workspace, spec.name):
				continue
			warning = compiler.drop_audio_layer(program, spec.index)
			self._log(f"warning: {warning} ({spec.name})")
