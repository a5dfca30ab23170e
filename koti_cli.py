#!/usr/bin/env python3

import argparse
import sys
from kotilib import music
from kotilib import textcard
from kotilib import thumbnail
from kotilib.core import errors
from kotilib.core import utils
from kotilib.core.handoff import OneShot
from kotilib.core.loader import ConfigLoader
from kotilib.core.project import KotiProject
from kotilib.sources import ScriptSource

#============================================

def parse_args(argv: list = None):
	"""
	Parse command-line arguments.
	"""
	parser = argparse.ArgumentParser(description="Narrated video builder")
	parser.add_argument('-c', '--config', dest='config_file',
		help='koti config yaml')
	parser.add_argument('-q', '--quiet', dest='quiet', action='store_true',
		help='only print errors')
	subparsers = parser.add_subparsers(dest='command', required=True)

	run_parser = subparsers.add_parser('run', help='build and render one video')
	run_parser.add_argument('-s', '--script', dest='script_file', required=True,
		help='script yaml listing the frames')
	run_parser.add_argument('-o', '--output-dir', dest='output_dir',
		help='directory for the finished video, thumbnail and info file')
	run_parser.add_argument('-k', '--keep-temp', dest='keep_temp',
		help='keep scratch files', action='store_true')
	run_parser.add_argument('-K', '--no-keep-temp', dest='keep_temp',
		help='remove scratch files', action='store_false')
	run_parser.add_argument('-a', '--attempts', dest='attempts', type=int,
		help='how many times to try before giving up')
	run_parser.set_defaults(keep_temp=None)

	music_parser = subparsers.add_parser('music', help='manage background music')
	music_sub = music_parser.add_subparsers(dest='music_command', required=True)
	music_add = music_sub.add_parser('add', help='add a music track')
	music_add.add_argument('name')
	music_add.add_argument('path')
	music_add.add_argument('-a', '--attribution', dest='attribution',
		help='attribution text, read from stdin when omitted')

	thumb_parser = subparsers.add_parser('thumbnail', help='manage thumbnail templates')
	thumb_sub = thumb_parser.add_subparsers(dest='thumbnail_command', required=True)
	thumb_add = thumb_sub.add_parser('add', help='add a thumbnail template')
	thumb_add.add_argument('template_id')
	thumb_add.add_argument('path')
	for name in ('x', 'y', 'w', 'h'):
		thumb_add.add_argument(name, type=int)

	text_parser = subparsers.add_parser('imagetext', help='render a text card for checking')
	text_parser.add_argument('path')
	text_parser.add_argument('text')

	args = parser.parse_args(argv)
	return args

#============================================

def run_video(args, config) -> int:
	attempts = args.attempts if args.attempts is not None else config.attempts
	for attempt in range(1, attempts + 1):
		handoff = OneShot("thumbnail info")
		source = ScriptSource(args.script_file, handoff)
		project = KotiProject(config, output_dir=args.output_dir, keep_temp=args.keep_temp)
		try:
			result = project.run(source, handoff)
		except errors.KotiError as exc:
			print(f"error: attempt {attempt} of {attempts} failed: {exc}")
			continue
		print(result.video)
		return 0
	print(f"error: giving up after {attempts} attempts")
	return 1

#============================================

def add_music(args, config) -> int:
	attribution = args.attribution
	if attribution is None:
		attribution = sys.stdin.read().strip()
	utils.ensure_file_exists(args.path)
	library = music.MusicLibrary.load(config.music_file())
	library.add_track(args.name, args.path, attribution)
	library.save(config.music_file())
	print(f"added {args.name} to {config.music_file()}")
	return 0

#============================================

def add_thumbnail(args, config) -> int:
	utils.ensure_file_exists(args.path)
	thumbnail.add_template(config.thumbnail_file(), args.template_id, args.path,
		args.x, args.y, args.w, args.h)
	print(f"added {args.template_id} to {config.thumbnail_file()}")
	return 0

#============================================

def image_text(args, config) -> int:
	image, width, height = textcard.render_text(args.text, 24, 800, 600,
		font_file=config.font_file)
	image.save(args.path, "PNG")
	print(f"wrote {args.path} ({width}x{height})")
	return 0

#============================================

def main(argv: list = None) -> int:
	args = parse_args(argv)
	utils.set_quiet_mode(args.quiet)
	config = ConfigLoader(args.config_file).load()
	if args.command == 'run':
		return run_video(args, config)
	if args.command == 'music':
		return add_music(args, config)
	if args.command == 'thumbnail':
		return add_thumbnail(args, config)
	if args.command == 'imagetext':
		return image_text(args, config)
	raise RuntimeError(f"unknown command: {args.command}")


if __name__ == '__main__':
	sys.exit(main())
