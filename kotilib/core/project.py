#!/usr/bin/env python3

import collections
import concurrent.futures
import functools
import os
import shutil
import tempfile
from kotilib import music
from kotilib import thumbnail
from kotilib.core import utils
from kotilib.core.assembler import ProgramAssembler
from kotilib.core.ids import IdAllocator
from kotilib.core.renderer import Renderer
from kotilib.core.resolver import FrameResolver, OverlayRenderer
from kotilib.exporters import mlt
from kotilib.media import probe
from kotilib.media.tts import Narrator

#============================================

# files left in the output dir by one successful run
RunResult = collections.namedtuple('RunResult', ['video', 'thumbnail', 'info'])

#============================================

class KotiProject():
	def __init__(self, config, output_dir: str = None, keep_temp: bool = None):
		self.config = config
		self.output_dir = output_dir if output_dir is not None else config.output_dir
		self.keep_temp = config.keep_temp if keep_temp is None else keep_temp
		self.program = None

	#============================
	def run(self, source, handoff=None) -> RunResult:
		"""
		Build, render and collect one video from a content source.

		Args:
			source: Iterable of Frames with title and description attributes.
			handoff: OneShot the source sends its ThumbnailRequest through.
		"""
		config = self.config
		if config.work_dir is not None:
			os.makedirs(config.work_dir, exist_ok=True)
		scratch = tempfile.mkdtemp(prefix="koti-run-", dir=config.work_dir)
		utils.say(f"scratch directory {scratch}")
		try:
			with concurrent.futures.ThreadPoolExecutor(max_workers=1,
				thread_name_prefix="koti-thumbnail") as thumb_pool:
				thumb_task = None
				if handoff is not None:
					thumb_task = thumb_pool.submit(self._make_thumbnail, handoff, scratch)
				try:
					video = self._build_video(source, scratch)
				finally:
					# unblock the thumbnail thread if the source never got to it
					if handoff is not None and not handoff.is_sent():
						handoff.send(None)
				thumb_path = thumb_task.result() if thumb_task is not None else None
			return self._collect(source, video, thumb_path)
		finally:
			if self.keep_temp:
				utils.say(f"keeping scratch directory {scratch}")
			else:
				shutil.rmtree(scratch, ignore_errors=True)

	#============================
	def _build_video(self, source, scratch: str) -> str:
		config = self.config
		ids = IdAllocator()
		title = getattr(source, 'title', '') or "King of the Internet"
		composition = mlt.Composition(config.width, config.height, config.fps, ids, title)
		narrator = Narrator(scratch, config.espeak, config.tts_timeout, ids)
		overlays = OverlayRenderer(scratch, config.width, config.height,
			config.overlay_font_size, config.font_file, ids)
		probe_duration = functools.partial(probe.probe_duration, ffprobe=config.ffprobe)
		library = music.MusicLibrary.load(config.music_file())
		pick_music = functools.partial(music.select_music, library, probe_duration)
		with FrameResolver(narrator.synthesize, overlays.render,
			threads=config.threads) as resolver:
			assembler = ProgramAssembler(resolver, pick_music, probe_duration,
				intro=config.intro, outro=config.outro, threads=config.threads,
				min_duration=config.min_duration, music_gain=config.music_gain,
				fade_seconds=config.fade_seconds)
			program = assembler.assemble(source, composition)
		self.program = program
		renderer = Renderer(scratch, config.output, config.melt, config.render_timeout)
		return renderer.render(program)

	#============================
	def _make_thumbnail(self, handoff, scratch: str) -> str:
		templates = thumbnail.load_templates(self.config.thumbnail_file())
		out_path = os.path.join(scratch, "thumbnail.png")
		return thumbnail.create_thumbnail(templates, handoff, out_path,
			font_file=self.config.font_file)

	#============================
	def _collect(self, source, video: str, thumb_path: str) -> RunResult:
		os.makedirs(self.output_dir, exist_ok=True)
		stamp = utils.make_timestamp()
		base = os.path.join(self.output_dir, f"koti{stamp}")
		extension = os.path.splitext(video)[1]
		final_video = base + extension
		shutil.move(video, final_video)
		final_thumb = None
		if thumb_path is not None:
			final_thumb = base + ".png"
			shutil.move(thumb_path, final_thumb)
		info_file = base + ".txt"
		with open(info_file, 'w') as info:
			info.write(f"{getattr(source, 'title', '')}\n\n")
			description = getattr(source, 'description', '')
			if description:
				info.write(f"{description}\n\n")
			info.write(f"Music: {self.program.music.attribution}\n")
		utils.say(f"finished: {final_video}")
		return RunResult(final_video, final_thumb, info_file)
