#!/usr/bin/env python3

"""
Textual TUI wrapper for clipgraph exports.
"""

# Standard Library
import argparse
import os
import re
import sys
import threading
import time
import traceback

script_dir = os.path.dirname(os.path.abspath(__file__))
repo_root = script_dir
if repo_root not in sys.path:
	sys.path.insert(0, repo_root)

# PIP3 modules
from textual.app import App, ComposeResult
from textual.containers import Horizontal, Vertical
from textual.widgets import ProgressBar, RichLog, Static
from rich.text import Text

# local repo modules
from clipgraphlib.core.project import ExportJob
from clipgraphlib.core import utils

#============================================

NORD_COLORS = {
	'background': "#2E3440",
	'foreground': "#D8DEE9",
	'dim': "#4C566A",
	'header': "#88C0D0",
	'command': "#ECEFF4",
	'flags': "#81A1C1",
	'numbers': "#B48EAD",
	'paths': "#A3BE8C",
	'strings': "#EBCB8B",
	'error': "#BF616A",
}

#============================================

def parse_args():
	"""
	Parse command-line arguments.
	"""
	parser = argparse.ArgumentParser(description="clipgraph TUI wrapper")
	parser.add_argument('-y', '--yaml', dest='yamlfile', required=True,
		help='timeline snapshot yaml (or json) file to export')
	parser.add_argument('-o', '--output', dest='output_file',
		help='override output file from yaml')
	parser.add_argument('-q', '--quality', dest='quality',
		choices=('high', 'medium', 'low'),
		help='override output quality from yaml')
	parser.add_argument('-n', '--dry-run', dest='dry_run', action='store_true',
		help='compile only, do not render')
	parser.add_argument('-c', '--cache-dir', dest='cache_dir',
		help='directory for engine working files')
	parser.add_argument('-k', '--keep-temp', dest='keep_temp',
		help='keep engine working files', action='store_true')
	parser.add_argument('-K', '--no-keep-temp', dest='keep_temp',
		help='remove engine working files', action='store_false')
	parser.set_defaults(keep_temp=False)
	args = parser.parse_args()
	return args

#============================================

class ClipgraphTuiApp(App):
	BINDINGS = [
		("q", "quit", "Quit"),
	]

	CSS = """
	#root {
		height: 1fr;
	}

	#top_row {
		height: 30%;
		min-height: 8;
	}

	#left_panel {
		width: 40%;
		height: 1fr;
		border: solid gray;
	}

	#right_panel {
		width: 60%;
		height: 1fr;
		border: solid gray;
	}

	#metrics_title {
		height: 1;
		color: #88C0D0;
	}

	#metrics {
		height: 1fr;
	}

	#project_title {
		height: 1;
		color: #88C0D0;
	}

	#project_info {
		height: 1fr;
	}

	#footer_note {
		height: 1;
		color: #4C566A;
	}

	#log {
		height: 1fr;
		border: solid gray;
	}
	"""

	def __init__(self, yaml_file: str, output_override: str = None,
		quality_override: str = None, dry_run: bool = False,
		keep_temp: bool = False, cache_dir: str = None):
		super().__init__()
		self.yaml_file = yaml_file
		self.output_override = output_override
		self.quality_override = quality_override
		self.dry_run = dry_run
		self.keep_temp = keep_temp
		self.cache_dir = cache_dir
		self.percent = 0
		self.stage = "loading"
		self.start_time = None
		self.finish_time = None
		self.error_text = None
		self.output_file = None
		self.quality = None
		self.total_duration = None
		self.metrics_widget = None
		self.project_widget = None
		self.progress_widget = None
		self.log_widget = None
		self.finished = False
		self.command_styles = self._build_command_styles()

	#============================
	def compose(self) -> ComposeResult:
		yield Static("CLIPGRAPH", id="header")
		with Vertical(id="root"):
			with Horizontal(id="top_row"):
				with Vertical(id="left_panel"):
					yield Static("Dashboard", id="metrics_title")
					yield Static("", id="metrics")
					yield ProgressBar(total=100, show_eta=False, id="progress")
					yield Static("Press q to quit", id="footer_note")
				with Vertical(id="right_panel"):
					yield Static("Project", id="project_title")
					yield Static("", id="project_info")
			yield RichLog(id="log", wrap=True, highlight=False)

	#============================
	def on_mount(self) -> None:
		self.metrics_widget = self.query_one("#metrics", Static)
		self.project_widget = self.query_one("#project_info", Static)
		self.progress_widget = self.query_one("#progress", ProgressBar)
		self.log_widget = self.query_one(RichLog)
		self.start_time = time.time()
		self._update_project_info()
		thread = threading.Thread(target=self._run_export, daemon=True)
		thread.start()
		self.set_interval(0.5, self._refresh_status)

	#============================
	def _refresh_status(self) -> None:
		self._update_metrics()

	#============================
	def _run_export(self) -> None:
		was_quiet = utils.is_quiet_mode()
		utils.set_quiet_mode(True)
		utils.set_log_reporter(self._report_log)
		try:
			job = ExportJob(self.yaml_file,
				output_override=self.output_override,
				quality_override=self.quality_override,
				dry_run=self.dry_run,
				keep_temp=self.keep_temp,
				cache_dir=self.cache_dir,
				on_progress=self._report_progress,
				on_log=self._report_engine_log)
			self.output_file = job.output_file
			self.quality = job.quality
			self.total_duration = job.timeline.total_duration()
			self.call_from_thread(self._update_project_info)
			self.call_from_thread(self._set_stage, "rendering")
			job.run()
		except Exception as exc:
			self.call_from_thread(self._set_error, str(exc), traceback.format_exc())
		finally:
			utils.clear_log_reporter()
			utils.set_quiet_mode(was_quiet)
			self.call_from_thread(self._finish)

	#============================
	def _report_log(self, message: str) -> None:
		self.call_from_thread(self._write_message, message, NORD_COLORS['foreground'])

	#============================
	def _report_engine_log(self, message: str) -> None:
		self.call_from_thread(self._write_engine_line, message)

	#============================
	def _report_progress(self, percent: int) -> None:
		self.call_from_thread(self._set_progress, percent)

	#============================
	def _set_progress(self, percent: int) -> None:
		self.percent = percent
		if self.progress_widget is not None:
			self.progress_widget.update(progress=percent)
		self._update_metrics()

	#============================
	def _set_stage(self, stage: str) -> None:
		self.stage = stage
		self._update_metrics()

	#============================
	def _write_message(self, message: str, style: str) -> None:
		if self.log_widget is None:
			return
		self.log_widget.write(Text(message, style=style))

	#============================
	def _write_engine_line(self, line: str) -> None:
		if self.log_widget is None:
			return
		if line.startswith("CMD: "):
			self.log_widget.write(self._highlight_command(line))
			return
		self.log_widget.write(Text(line, style=NORD_COLORS['dim']))

	#============================
	def _set_error(self, text: str, trace_text: str = None) -> None:
		self.error_text = text
		if self.log_widget is not None:
			if trace_text:
				self.log_widget.write(Text(trace_text, style=NORD_COLORS['dim']))
			self.log_widget.write(
				Text(f"error: {text}", style=f"bold {NORD_COLORS['error']}")
			)

	#============================
	def _finish(self) -> None:
		if self.log_widget is None or self.metrics_widget is None:
			return
		self.finished = True
		if self.start_time is not None and self.finish_time is None:
			self.finish_time = time.time() - self.start_time
		if self.error_text is None:
			if self.dry_run or self.output_file is None:
				self.log_widget.write("complete")
			else:
				self.log_widget.write(f"complete: {self.output_file}")
		else:
			self.log_widget.write("complete with errors")
		self._update_metrics()

	#============================
	def _update_metrics(self) -> None:
		if self.metrics_widget is None:
			return
		if self.start_time is None:
			elapsed = 0.0
		elif self.finished:
			elapsed = self.finish_time or (time.time() - self.start_time)
		else:
			elapsed = time.time() - self.start_time
		if self.error_text is not None:
			status = "failed"
		elif self.finished:
			status = "done"
		else:
			status = self.stage
		metrics = Text()
		status_style = NORD_COLORS['foreground']
		if status == "failed":
			status_style = NORD_COLORS['error']
		elif status == "done":
			status_style = NORD_COLORS['paths']
		metrics.append("Status: ", style=NORD_COLORS['dim'])
		metrics.append(status, style=status_style)
		metrics.append("\n")
		metrics.append("Elapsed: ", style=NORD_COLORS['dim'])
		metrics.append(self._format_duration(elapsed), style=NORD_COLORS['numbers'])
		metrics.append("\n")
		metrics.append("Progress: ", style=NORD_COLORS['dim'])
		metrics.append(f"{self.percent}%", style=NORD_COLORS['numbers'])
		self.metrics_widget.update(metrics)

	#============================
	def _update_project_info(self) -> None:
		if self.project_widget is None:
			return
		project = Text()
		project.append("YAML: ", style=NORD_COLORS['dim'])
		project.append(self.yaml_file, style=NORD_COLORS['paths'])
		project.append("\n")
		output_value = self.output_override or self.output_file or "N/A"
		project.append("Output: ", style=NORD_COLORS['dim'])
		output_style = NORD_COLORS['paths']
		if output_value == "N/A":
			output_style = NORD_COLORS['dim']
		project.append(output_value, style=output_style)
		project.append("\n")
		project.append("Quality: ", style=NORD_COLORS['dim'])
		project.append(self.quality_override or self.quality or "N/A",
			style=NORD_COLORS['foreground'])
		project.append("\n")
		if self.total_duration is not None:
			project.append("Length: ", style=NORD_COLORS['dim'])
			project.append(self._format_duration(self.total_duration),
				style=NORD_COLORS['numbers'])
			project.append("\n")
		cache_value = self.cache_dir or "default"
		project.append("Cache: ", style=NORD_COLORS['dim'])
		cache_style = NORD_COLORS['paths']
		if cache_value == "default":
			cache_style = NORD_COLORS['dim']
		project.append(cache_value, style=cache_style)
		project.append("\n")
		project.append("Keep temp: ", style=NORD_COLORS['dim'])
		project.append(
			"yes" if self.keep_temp else "no",
			style=NORD_COLORS['paths'] if self.keep_temp else NORD_COLORS['foreground'],
		)
		project.append("\n")
		project.append("Dry run: ", style=NORD_COLORS['dim'])
		project.append(
			"yes" if self.dry_run else "no",
			style=NORD_COLORS['paths'] if self.dry_run else NORD_COLORS['foreground'],
		)
		self.project_widget.update(project)

	#============================
	def _build_command_styles(self) -> list:
		return [
			(re.compile(r"\blibx264\b|\baac\b|\byuv420p\b"), NORD_COLORS['foreground']),
			(re.compile(r"--?[A-Za-z0-9][A-Za-z0-9_:-]*"), NORD_COLORS['flags']),
			(re.compile(r"\b\d+\.\d+\b"), NORD_COLORS['numbers']),
			(re.compile(r"\b\d+\b(?!\.\d)"), NORD_COLORS['numbers']),
			(re.compile(r"\[[A-Za-z0-9_:]+\]"), NORD_COLORS['strings']),
			(re.compile(r"\b[\w.-]+\.(?:mp4|mov|png|jpg|txt|ttf)\b"), NORD_COLORS['paths']),
		]

	#============================
	def _highlight_command(self, command: str):
		if command is None or command == "":
			return ""
		text = Text(command, style=f"bold {NORD_COLORS['command']}")
		for pattern, style in self.command_styles:
			for match in pattern.finditer(command):
				text.stylize(style, match.start(), match.end())
		return text

	#============================
	def _format_duration(self, seconds: float) -> str:
		if seconds < 60:
			return f"{seconds:.1f}s"
		minutes = int(seconds // 60)
		remaining = seconds - (minutes * 60)
		seconds_text = f"{remaining:04.1f}"
		if minutes < 60:
			return f"{minutes}m {seconds_text}s"
		hours = int(minutes // 60)
		minutes = minutes - (hours * 60)
		return f"{hours}h {minutes:02d}m {seconds_text}s"

#============================================

def main():
	args = parse_args()
	app = ClipgraphTuiApp(args.yamlfile,
		output_override=args.output_file,
		quality_override=args.quality,
		dry_run=args.dry_run,
		keep_temp=args.keep_temp,
		cache_dir=args.cache_dir)
	app.run()

#============================================

if __name__ == '__main__':
	main()
