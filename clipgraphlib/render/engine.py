#!/usr/bin/env python3

"""
ffmpeg as the external compositing engine.

The engine handle is a process-wide singleton. get_engine() loads it once;
callers arriving while a load is in flight wait on the same future instead
of starting a second load. A failed load is not memoized.
"""

# Standard Library
import concurrent.futures
import os
import re
import shlex
import shutil
import subprocess
import tempfile
import threading

# local repo modules
from clipgraphlib.core.errors import EngineLoadFailure

#============================================

DEFAULT_BINARY = 'ffmpeg'

_ENGINE_LOCK = threading.Lock()
_ENGINE_FUTURE = None
# one program at a time on the shared engine handle
_JOB_LOCK = threading.Lock()

AUDIO_STREAM_RE = re.compile(r"^\s*Stream #\d+:\d+\S*: Audio:")

#============================================

class FfmpegEngine():
	def __init__(self, binary: str = DEFAULT_BINARY):
		self.binary = binary
		self.path = None
		self.version = None

	#============================
	def load(self) -> None:
		path = shutil.which(self.binary)
		if path is None:
			raise EngineLoadFailure(f"{self.binary} not found on PATH")
		try:
			proc = subprocess.run([path, '-hide_banner', '-version'],
				stdout=subprocess.PIPE, stderr=subprocess.PIPE, timeout=60)
		except (OSError, subprocess.SubprocessError) as exc:
			raise EngineLoadFailure(f"could not start {path}: {exc}") from exc
		if proc.returncode != 0:
			raise EngineLoadFailure(f"{path} -version exited with {proc.returncode}")
		lines = proc.stdout.decode('utf-8', errors='replace').splitlines()
		self.version = lines[0] if len(lines) > 0 else 'unknown'
		self.path = path

	#============================
	def new_workspace(self, cache_dir: str = None) -> str:
		if cache_dir is not None and not os.path.exists(cache_dir):
			os.makedirs(cache_dir)
		return tempfile.mkdtemp(prefix="clipgraph-job-", dir=cache_dir)

	#============================
	def remove_workspace(self, workspace: str) -> None:
		shutil.rmtree(workspace, ignore_errors=True)

	#============================
	def _workspace_path(self, workspace: str, name: str) -> str:
		if name != os.path.basename(name) or name in ('', '.', '..'):
			raise RuntimeError(f"engine file names must be plain names: {name}")
		return os.path.join(workspace, name)

	#============================
	def write_input(self, workspace: str, name: str, data: bytes) -> None:
		with open(self._workspace_path(workspace, name), 'wb') as handle:
			handle.write(data)

	#============================
	def read_output(self, workspace: str, name: str) -> bytes:
		with open(self._workspace_path(workspace, name), 'rb') as handle:
			return handle.read()

	#============================
	def has_audio_stream(self, workspace: str, name: str) -> bool:
		"""
		True when the workspace file has at least one audio stream.

		Reads the stream listing ffmpeg prints for an input. A file with no
		stream listing at all is reported as having audio.
		"""
		if self.path is None:
			raise EngineLoadFailure("engine used before load")
		cmd = [self.path, '-hide_banner', '-nostdin', '-i',
			self._workspace_path(workspace, name)]
		proc = subprocess.run(cmd, stdout=subprocess.PIPE, stderr=subprocess.PIPE,
			timeout=60)
		return parse_has_audio(proc.stderr.decode('utf-8', errors='replace'))

	#============================
	def execute(self, workspace: str, args: list, duration: float = None,
		on_progress=None, on_log=None) -> int:
		"""
		Run one program inside the workspace.

		Progress is reported as the raw fraction out_time / duration and is
		not bounded. Every stderr line goes to on_log.

		Returns:
			int: engine exit status.
		"""
		if self.path is None:
			raise EngineLoadFailure("engine used before load")
		cmd = [self.path, '-y', '-hide_banner', '-nostdin', '-nostats',
			'-progress', 'pipe:1'] + list(args)
		if on_log is not None:
			on_log(f"CMD: '{shlex.join(cmd)}'")
		proc = subprocess.Popen(cmd, cwd=workspace, stdout=subprocess.PIPE,
			stderr=subprocess.PIPE, text=True, encoding='utf-8', errors='replace')
		stderr_thread = threading.Thread(target=self._pump_log,
			args=(proc.stderr, on_log), daemon=True)
		stderr_thread.start()
		for line in proc.stdout:
			fraction = self._parse_progress(line, duration)
			if fraction is not None and on_progress is not None:
				on_progress(fraction)
		proc.wait()
		stderr_thread.join()
		return proc.returncode

	#============================
	def _pump_log(self, stream, on_log) -> None:
		for line in stream:
			if on_log is not None:
				on_log(line.rstrip('\n'))

	#============================
	def _parse_progress(self, line: str, duration: float):
		(key, _, value) = line.strip().partition('=')
		if key == 'progress' and value == 'end':
			return 1.0
		if key not in ('out_time_us', 'out_time_ms'):
			return None
		if duration is None or duration <= 0:
			return None
		try:
			microseconds = int(value)
		except ValueError:
			return None
		return microseconds / 1000000.0 / duration

#============================================

def parse_has_audio(listing: str) -> bool:
	lines = listing.splitlines()
	if not any(line.strip().startswith('Stream #') for line in lines):
		return True
	return any(AUDIO_STREAM_RE.match(line) for line in lines)

#============================================

def job_lock() -> threading.Lock:
	"""
	Lock held while a program runs on the shared engine handle.
	"""
	return _JOB_LOCK

#============================================

def get_engine(binary: str = DEFAULT_BINARY) -> FfmpegEngine:
	"""
	Loaded engine handle, loading it on first use.

	Raises:
		EngineLoadFailure: when the engine cannot be loaded; the next call
			tries again.
	"""
	global _ENGINE_FUTURE
	owner = False
	with _ENGINE_LOCK:
		future = _ENGINE_FUTURE
		if future is None:
			future = concurrent.futures.Future()
			_ENGINE_FUTURE = future
			owner = True
	if not owner:
		return future.result()
	engine = FfmpegEngine(binary)
	try:
		engine.load()
	except Exception as exc:
		with _ENGINE_LOCK:
			_ENGINE_FUTURE = None
		if not isinstance(exc, EngineLoadFailure):
			exc = EngineLoadFailure(f"engine load failed: {exc}")
		future.set_exception(exc)
		raise exc
	future.set_result(engine)
	return engine

#============================================

def reset_engine() -> None:
	"""
	Forget the memoized engine handle.
	"""
	global _ENGINE_FUTURE
	with _ENGINE_LOCK:
		_ENGINE_FUTURE = None
