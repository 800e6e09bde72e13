#!/usr/bin/env python3

import re
from decimal import Decimal
from fractions import Fraction

#============================================

_QUIET_MODE = False
_LOG_REPORTER = None

#============================================

def set_quiet_mode(quiet: bool) -> None:
	global _QUIET_MODE
	_QUIET_MODE = bool(quiet)

#============================================

def is_quiet_mode() -> bool:
	return _QUIET_MODE

#============================================

def set_log_reporter(reporter) -> None:
	"""
	Register a callable that receives every log line.
	"""
	global _LOG_REPORTER
	_LOG_REPORTER = reporter

#============================================

def clear_log_reporter() -> None:
	global _LOG_REPORTER
	_LOG_REPORTER = None

#============================================

def log(message: str) -> None:
	if _LOG_REPORTER is not None:
		_LOG_REPORTER(message)
	if not _QUIET_MODE:
		print(message)

#============================================

def parse_timecode(raw_time) -> Decimal:
	if raw_time is None:
		raise RuntimeError("time value is required")
	if isinstance(raw_time, bool):
		raise RuntimeError("time values must be int, float, or timecode string")
	if isinstance(raw_time, int):
		return Decimal(raw_time)
	if isinstance(raw_time, float):
		return Decimal(str(raw_time))
	if isinstance(raw_time, str):
		value = raw_time.strip()
		if ':' not in value:
			return Decimal(value)
		parts = value.split(':')
		seconds = Decimal(parts.pop())
		minutes = Decimal(parts.pop())
		hours = Decimal(0)
		if len(parts) > 0:
			hours = Decimal(parts.pop())
		return hours * Decimal(3600) + minutes * Decimal(60) + seconds
	raise RuntimeError("time values must be int, float, or timecode string")

#============================================

def round_half_up_fraction(value: Fraction) -> int:
	numerator = value.numerator
	denominator = value.denominator
	whole = numerator // denominator
	remainder = numerator - (whole * denominator)
	if remainder * 2 >= denominator:
		return whole + 1
	return whole

#============================================

def round_half_up(value: float) -> int:
	return round_half_up_fraction(Fraction(str(value)))

#============================================

def percent_of(percent: float, length: int) -> int:
	"""
	Pixel position for a 0-100 percentage of a canvas length.
	"""
	fraction = Fraction(str(percent)) / 100 * length
	return round_half_up_fraction(fraction)

#============================================

def seconds_to_milliseconds(seconds: float) -> int:
	return round_half_up(float(seconds) * 1000)

#============================================

def format_seconds(seconds: float) -> str:
	"""
	Fixed three-decimal rendering used in every graph statement.
	"""
	text = f"{float(seconds):.3f}"
	if text == "-0.000":
		text = "0.000"
	return text

#============================================

def format_clock(seconds: float) -> str:
	"""
	Short clock text, M:SS or H:MM:SS.
	"""
	total = int(max(0.0, float(seconds)))
	hours = total // 3600
	minutes = (total % 3600) // 60
	secs = total % 60
	if hours > 0:
		return f"{hours}:{minutes:02d}:{secs:02d}"
	return f"{minutes}:{secs:02d}"

#============================================

def format_srt_timestamp(seconds: float) -> str:
	millis = seconds_to_milliseconds(max(0.0, float(seconds)))
	hours = millis // 3600000
	minutes = (millis % 3600000) // 60000
	secs = (millis % 60000) // 1000
	remainder = millis % 1000
	return f"{hours:02d}:{minutes:02d}:{secs:02d},{remainder:03d}"

#============================================

def clamp_progress(fraction) -> int:
	"""
	Engine progress fraction as an integer percentage in [0, 100].
	"""
	if fraction is None:
		return 0
	try:
		value = float(fraction)
	except (TypeError, ValueError):
		return 0
	if value != value:
		return 0
	percent = value * 100
	if percent <= 0:
		return 0
	if percent >= 100:
		return 100
	return round_half_up(percent)

#============================================

def format_file_size(num_bytes: int) -> str:
	if num_bytes <= 0:
		return "0 B"
	units = ('B', 'KB', 'MB', 'GB')
	value = float(num_bytes)
	index = 0
	while value >= 1024 and index < len(units) - 1:
		value /= 1024
		index += 1
	return f"{value:.2f} {units[index]}"

#============================================

def is_safe_token(value, pattern: str = r'^[A-Za-z0-9_.#@-]+$') -> bool:
	"""
	True when a style value can sit inside a graph statement unquoted.
	"""
	if not isinstance(value, str) or value == '':
		return False
	return re.match(pattern, value) is not None
