#!/usr/bin/env python3

import argparse
import sys
import yaml
from rich.console import Console
from tqdm import tqdm
from clipgraphlib.core import utils
from clipgraphlib.core.errors import EngineExecutionFailure
from clipgraphlib.core.errors import EngineLoadFailure
from clipgraphlib.core.project import ExportJob
from clipgraphlib.graph import serializer

#============================================

def parse_args():
	"""
	Parse command-line arguments.
	"""
	parser = argparse.ArgumentParser(description="Timeline export to video")
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
	parser.add_argument('-p', '--dump-plan', dest='dump_plan', action='store_true',
		help='print the compiled program and exit')
	parser.add_argument('-v', '--verbose', dest='verbose', action='store_true',
		help='show the engine log while rendering')
	parser.set_defaults(keep_temp=False)
	args = parser.parse_args()
	return args

#============================================

def main():
	args = parse_args()
	console = Console(stderr=True, highlight=False)
	progress_bar = tqdm(total=100, unit='%', desc='export', disable=args.dry_run)
	state = {'last': 0}

	def _on_progress(percent: int) -> None:
		if percent > state['last']:
			progress_bar.update(percent - state['last'])
			state['last'] = percent

	def _on_log(message: str) -> None:
		if args.verbose:
			console.print(message, style="dim", markup=False)

	job = ExportJob(args.yamlfile, output_override=args.output_file,
		quality_override=args.quality, dry_run=args.dry_run,
		keep_temp=args.keep_temp, cache_dir=args.cache_dir,
		on_progress=_on_progress, on_log=_on_log)
	if args.dump_plan:
		progress_bar.close()
		program = job.plan()
		print(yaml.safe_dump(serializer.describe_program(program), sort_keys=False))
		return
	try:
		job.run()
	except EngineLoadFailure as exc:
		progress_bar.close()
		console.print(f"engine load failed: {exc}", style="bold red", markup=False)
		sys.exit(1)
	except EngineExecutionFailure as exc:
		progress_bar.close()
		console.print(exc.log_text, style="dim", markup=False)
		console.print(f"export failed: {exc.args[0]}", style="bold red", markup=False)
		sys.exit(1)
	progress_bar.close()
	if not args.dry_run:
		utils.log(f"mpv {job.output_file}")


if __name__ == '__main__':
	main()
