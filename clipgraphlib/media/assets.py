#!/usr/bin/env python3

"""
Asset resolution: bytes for each clip source, storage first, URL second.
"""

# Standard Library
import os

# PIP3 modules
import requests

# local repo modules
from clipgraphlib.core import utils
from clipgraphlib.core.errors import AssetUnavailable
from clipgraphlib.media import fonts

#============================================

DEFAULT_TIMEOUT = 60

#============================================

class LocalStorage():
	"""
	Storage-path tokens resolved against a base directory on disk.
	"""
	def __init__(self, base_path: str):
		self.base_path = os.path.realpath(base_path)

	#============================
	def _resolve_path(self, path: str) -> str:
		full_path = os.path.realpath(os.path.join(self.base_path, path.lstrip("/")))
		if os.path.commonpath([self.base_path, full_path]) != self.base_path:
			raise AssetUnavailable(f"storage path escapes storage root: {path}")
		return full_path

	#============================
	def path_exists(self, path: str) -> bool:
		return os.path.isfile(self._resolve_path(path))

	#============================
	def read(self, path: str) -> bytes:
		full_path = self._resolve_path(path)
		with open(full_path, 'rb') as handle:
			return handle.read()

#============================================

class AssetResult():
	def __init__(self, clip_id: str, source, data: bytes = None,
		error: AssetUnavailable = None):
		self.clip_id = clip_id
		self.source = source
		self.data = data
		self.error = error

	#============================
	@property
	def ok(self) -> bool:
		return self.data is not None and self.error is None

#============================================

class AssetResolver():
	def __init__(self, storage: LocalStorage = None, session=None,
		timeout: float = DEFAULT_TIMEOUT, font_dirs: list = None):
		self.storage = storage
		self.session = session if session is not None else requests.Session()
		self.timeout = timeout
		self.font_dirs = list(font_dirs or [])

	#============================
	def fetch(self, source) -> bytes:
		"""
		Raw bytes for a source reference.

		Raises:
			AssetUnavailable: when neither representation can be fetched.
		"""
		if source is None:
			raise AssetUnavailable("no url or storage path provided")
		problems = []
		if source.storage_path:
			if self.storage is None:
				problems.append("no storage root configured")
			else:
				try:
					return self.storage.read(source.storage_path)
				except (OSError, AssetUnavailable) as exc:
					problems.append(f"storage read failed: {exc}")
		if source.url:
			try:
				return self._fetch_url(source.url)
			except (requests.RequestException, AssetUnavailable) as exc:
				problems.append(f"download failed: {exc}")
		if len(problems) == 0:
			raise AssetUnavailable("no url or storage path provided", source)
		raise AssetUnavailable("; ".join(problems), source)

	#============================
	def _fetch_url(self, url: str) -> bytes:
		if not url.lower().startswith(('http://', 'https://')):
			raise AssetUnavailable(f"unsupported url scheme: {url}")
		response = self.session.get(url, timeout=self.timeout)
		if response.status_code != 200:
			raise AssetUnavailable(f"HTTP error status {response.status_code}")
		return response.content

	#============================
	def resolve(self, clip) -> AssetResult:
		try:
			data = self.fetch(clip.source)
		except AssetUnavailable as exc:
			return AssetResult(clip.id, clip.source, error=exc)
		return AssetResult(clip.id, clip.source, data=data)

	#============================
	def resolve_all(self, clips: list) -> dict:
		results = {}
		for clip in clips:
			result = self.resolve(clip)
			if result.ok:
				utils.log(f"fetched {clip.name}: {utils.format_file_size(len(result.data))}")
			else:
				utils.log(f"asset unavailable for {clip.name}: {result.error}")
			results[clip.id] = result
		return results

	#============================
	def resolve_font(self, name: str) -> bytes:
		"""
		Font bytes for an overlay font name, or None when no font exists.
		"""
		path = fonts.resolve_font_file(name, self.font_dirs)
		if path is None:
			utils.log(f"no font file found for {name}")
			return None
		with open(path, 'rb') as handle:
			return handle.read()
