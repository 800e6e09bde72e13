#!/usr/bin/env python3

"""
Font discovery for text overlays.
"""

# Standard Library
import os

# PIP3 modules
import PIL.ImageFont

#============================================

SYSTEM_FONT_CANDIDATES = [
	"/Library/Fonts/Arial.ttf",
	"/Library/Fonts/Helvetica.ttf",
	"/System/Library/Fonts/Supplemental/Arial.ttf",
	"/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
	"/usr/share/fonts/truetype/liberation/LiberationSans-Regular.ttf",
	"/usr/share/fonts/truetype/freefont/FreeSans.ttf",
	"/usr/local/share/fonts/DejaVuSans.ttf",
]

SYSTEM_FONT_DIRS = [
	"/Library/Fonts",
	"/System/Library/Fonts",
	"/usr/share/fonts",
	"/usr/local/share/fonts",
]

#============================================

def is_loadable_font(path: str) -> bool:
	if path is None or not os.path.isfile(path):
		return False
	try:
		PIL.ImageFont.truetype(path, 12)
	except OSError:
		return False
	return True

#============================================

def find_named_font(name: str, font_dirs: list) -> str:
	"""
	Look for <name>.ttf or <name>.otf in the given directories.
	"""
	for base in font_dirs:
		if base is None or not os.path.isdir(base):
			continue
		for extension in ('.ttf', '.otf', '.TTF', '.OTF'):
			path = os.path.join(base, f"{name}{extension}")
			if is_loadable_font(path):
				return path
	return None

#============================================

def find_system_font() -> str:
	for path in SYSTEM_FONT_CANDIDATES:
		if is_loadable_font(path):
			return path
	for base in SYSTEM_FONT_DIRS:
		if not os.path.isdir(base):
			continue
		for root, dirs, files in os.walk(base):
			rel = os.path.relpath(root, base)
			depth = 0 if rel == "." else rel.count(os.sep) + 1
			if depth >= 3:
				dirs[:] = []
			dirs[:] = sorted(dirs)
			for name in sorted(files):
				if name.lower().endswith((".ttf", ".otf")):
					path = os.path.join(root, name)
					if is_loadable_font(path):
						return path
	return None

#============================================

def resolve_font_file(name: str, font_dirs: list = None) -> str:
	"""
	Path for a named overlay font, falling back to any usable system font.
	"""
	path = find_named_font(name, font_dirs or [])
	if path is not None:
		return path
	return find_system_font()
