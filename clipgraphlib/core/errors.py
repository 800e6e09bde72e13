#!/usr/bin/env python3

#============================================

class AssetUnavailable(RuntimeError):
	"""
	A clip source could not be fetched. Recoverable: the clip is dropped.
	"""
	def __init__(self, message: str, source=None):
		super().__init__(message)
		self.source = source

#============================================

class CompileInconsistency(RuntimeError):
	pass

#============================================

class EngineLoadFailure(RuntimeError):
	pass

#============================================

class EngineBusy(RuntimeError):
	pass

#============================================

class EngineExecutionFailure(RuntimeError):
	"""
	The engine rejected the program or crashed mid-run.
	"""
	def __init__(self, message: str, log_text: str = '', returncode: int = None):
		super().__init__(message)
		self.log_text = log_text
		self.returncode = returncode

	#============================
	def __str__(self) -> str:
		message = super().__str__()
		if self.log_text:
			return f"{message}\n{self.log_text}"
		return message
