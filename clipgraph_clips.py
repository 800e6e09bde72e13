#!/usr/bin/env python3

import argparse
import os
import sys
from rich.console import Console
from rich.table import Table
from tqdm import tqdm
from clipgraphlib.clips import merge
from clipgraphlib.clips import subtitles
from clipgraphlib.clips.extractor import ClipExtractor
from clipgraphlib.core import utils
from clipgraphlib.core.errors import AssetUnavailable
from clipgraphlib.core.errors import EngineExecutionFailure
from clipgraphlib.core.errors import EngineLoadFailure
from clipgraphlib.core.loader import ClipLoader
from clipgraphlib.media.assets import AssetResolver
from clipgraphlib.media.assets import LocalStorage
from clipgraphlib.render import engine as engine_module
from clipgraphlib.render.driver import RenderDriver

#============================================

def parse_args():
	"""
	Parse command-line arguments.
	"""
	parser = argparse.ArgumentParser(
		description="Cut relevant transcript segments out of one recording")
	parser.add_argument('-y', '--yaml', dest='yamlfile', required=True,
		help='segment request yaml (or json) file')
	parser.add_argument('-o', '--output-dir', dest='output_dir',
		help='override output directory from yaml')
	parser.add_argument('-m', '--merge', dest='merge', action='store_true',
		help='also join the clips into one file')
	parser.add_argument('-M', '--no-merge', dest='merge', action='store_false',
		help='do not join the clips')
	parser.add_argument('-s', '--srt', dest='subtitles', action='store_true',
		help='write an srt file beside each clip')
	parser.add_argument('-n', '--dry-run', dest='dry_run', action='store_true',
		help='print the merged clips only, do not render')
	parser.add_argument('-c', '--cache-dir', dest='cache_dir',
		help='directory for engine working files')
	parser.add_argument('-k', '--keep-temp', dest='keep_temp',
		help='keep engine working files', action='store_true')
	parser.set_defaults(merge=None, keep_temp=False)
	args = parser.parse_args()
	return args

#============================================

def clip_table(clips: list) -> Table:
	table = Table(title=f"{len(clips)} clips")
	table.add_column("#", justify="right")
	table.add_column("start")
	table.add_column("end")
	table.add_column("length", justify="right")
	table.add_column("segments", justify="right")
	table.add_column("transcript")
	for clip in clips:
		transcript = clip.transcript
		if len(transcript) > 60:
			transcript = transcript[:57] + "..."
		table.add_row(str(clip.index), utils.format_clock(clip.start),
			utils.format_clock(clip.end), f"{clip.duration:.1f}s",
			str(clip.segment_count), transcript)
	return table

#============================================

def write_file(path: str, data) -> None:
	mode = 'wb' if isinstance(data, bytes) else 'w'
	with open(path, mode) as handle:
		handle.write(data)

#============================================

def write_merged_clip(extractor, outputs: list, merged_path: str, console) -> bool:
	"""
	Join the rendered clips into one file; False when the engine fails.
	"""
	try:
		merged = extractor.concatenate(outputs)
	except EngineExecutionFailure as exc:
		console.print(f"merge failed: {exc}", style="bold red", markup=False)
		return False
	write_file(merged_path, merged)
	utils.log(f"wrote {merged_path} ({utils.format_file_size(len(merged))})")
	return True

#============================================

def main():
	args = parse_args()
	console = Console(stderr=True, highlight=False)
	settings = ClipLoader(args.yamlfile, output_dir_override=args.output_dir).load()
	if args.merge is not None:
		settings.merge = args.merge
	if args.subtitles:
		settings.subtitles = True
	clips = merge.merge_segments(settings.matches, padding=settings.padding,
		merge_gap=settings.merge_gap)
	if settings.order is not None:
		clips = merge.reorder_clips(clips, settings.order)
	if len(clips) == 0:
		console.print("no matching segments, nothing to cut", style="bold red")
		sys.exit(1)
	console.print(clip_table(clips))
	if args.dry_run:
		return
	storage = None
	if settings.storage_root is not None:
		storage = LocalStorage(settings.storage_root)
	resolver = AssetResolver(storage=storage, timeout=settings.timeout)
	progress_bar = tqdm(total=len(clips), unit='clip', desc='clips')
	driver = RenderDriver(
		engine_loader=lambda: engine_module.get_engine(settings.ffmpeg),
		keep_temp=args.keep_temp, cache_dir=args.cache_dir)
	extractor = ClipExtractor(driver, resolver, quality=settings.quality,
		has_audio=settings.has_audio)
	try:
		outputs = extractor.extract(settings.source, clips,
			on_clip=lambda output: progress_bar.update(1))
	except AssetUnavailable as exc:
		progress_bar.close()
		console.print(f"source unavailable: {exc}", style="bold red", markup=False)
		sys.exit(1)
	except EngineLoadFailure as exc:
		progress_bar.close()
		console.print(f"engine load failed: {exc}", style="bold red", markup=False)
		sys.exit(1)
	progress_bar.close()
	if not os.path.isdir(settings.output_dir):
		os.makedirs(settings.output_dir)
	failed = 0
	for output in outputs:
		if not output.ok:
			failed += 1
			console.print(f"clip {output.clip.index} failed", style="bold red")
			continue
		base_name = f"{settings.prefix}_{output.clip.index}"
		clip_path = os.path.join(settings.output_dir, f"{base_name}.mp4")
		write_file(clip_path, output.data)
		utils.log(f"wrote {clip_path}")
		if settings.subtitles:
			cues = subtitles.clip_cues(output.clip, settings.segments)
			srt_path = os.path.join(settings.output_dir, f"{base_name}.srt")
			write_file(srt_path, subtitles.format_srt(cues))
			utils.log(f"wrote {srt_path} ({len(cues)} cues)")
	if settings.merge and failed < len(outputs):
		merged_path = os.path.join(settings.output_dir, f"{settings.prefix}_merged.mp4")
		if not write_merged_clip(extractor, outputs, merged_path, console):
			sys.exit(1)
	if failed > 0:
		sys.exit(1)


if __name__ == '__main__':
	main()
