#!/usr/bin/env python3

import concurrent.futures
import os
import queue
import threading
from tqdm import tqdm
from kotilib.core import errors
from kotilib.core import utils
from kotilib.core.frame import CompiledProgram
from kotilib.core.timeline import FADE_SECONDS, TimelineCompiler
from kotilib.exporters import mlt

#============================================

MIN_DURATION_SECONDS = 60
MUSIC_GAIN = 0.2

_END = object()

#============================================

def loop_segments(clip_length: int, total_length: int) -> list:
	"""
	Lengths of back-to-back clip repeats covering exactly total_length.

	The last repeat is cut short to the remainder; there is never an
	empty trailing segment.
	"""
	if clip_length <= 0:
		raise errors.ContractViolation("music clip must be at least one tick long")
	segments = []
	remaining = total_length
	while remaining > 0:
		if remaining < clip_length:
			segments.append(remaining)
			break
		segments.append(clip_length)
		remaining -= clip_length
	return segments

#============================================

class ProgramAssembler():
	"""
	Build the whole program: intro, every frame in source order, outro,
	and looping background music under all of it.

	Args:
		resolver: Object with resolve(frame) -> ConvertedFrame.
		pick_music: Callable returning a MusicSelection.
		probe_duration: Callable path -> seconds, for intro and outro.
		intro: Intro clip path or None.
		outro: Outro clip path or None.
		threads: Frame pool size.
		min_duration: Shortest acceptable program, in seconds.
		music_gain: Volume multiplier for the music track.
		fade_seconds: Length of the foreground fade-in.
	"""
	def __init__(self, resolver, pick_music, probe_duration, intro: str = None,
		outro: str = None, threads: int = 4,
		min_duration: float = MIN_DURATION_SECONDS, music_gain: float = MUSIC_GAIN,
		fade_seconds: float = FADE_SECONDS):
		self.resolver = resolver
		self.pick_music = pick_music
		self.probe_duration = probe_duration
		self.intro = intro
		self.outro = outro
		self.threads = max(1, threads)
		self.min_duration = min_duration
		self.music_gain = music_gain
		self.fade_seconds = fade_seconds

	#============================
	def assemble(self, frames, composition) -> CompiledProgram:
		compiler = TimelineCompiler(composition, self.fade_seconds)
		pending = queue.Queue()
		stop = threading.Event()
		with concurrent.futures.ThreadPoolExecutor(max_workers=self.threads,
			thread_name_prefix="koti-frame") as pool:
			music_task = pool.submit(self.pick_music)
			intro_task = self._submit_clip_probe(pool, self.intro, "intro")
			outro_task = self._submit_clip_probe(pool, self.outro, "outro")
			feeder = threading.Thread(target=self._feed,
				args=(frames, pool, pending, stop), name="koti-feeder", daemon=True)
			feeder.start()
			try:
				units = []
				if intro_task is not None:
					units.append(compiler.compile_clip(self.intro, intro_task.result()))
				units.extend(self._compile_in_order(compiler, pending))
				if outro_task is not None:
					units.append(compiler.compile_clip(self.outro, outro_task.result()))
				content = [mlt.entry(unit.id, unit.ticks) for unit in units]
				total_ticks = sum(mlt.entry_length(item) for item in content)
				minimum_ticks = utils.ticks_from_seconds(self.min_duration, composition.fps)
				if total_ticks < minimum_ticks:
					raise errors.DurationTooShort(total_ticks, minimum_ticks)
				music = music_task.result()
				main_tractor = self._add_master(composition, content, total_ticks, music)
			finally:
				stop.set()
				feeder.join()
				self._cancel_pending(pending)
		utils.say(f"assembled {len(units)} units, {total_ticks} ticks "
			f"({utils.seconds_from_ticks(total_ticks, composition.fps):.1f} seconds)")
		return CompiledProgram(composition, main_tractor, total_ticks, music, units)

	#============================
	def _submit_clip_probe(self, pool, mediafile: str, label: str):
		if mediafile is None:
			utils.say(f"notice: no {label} configured")
			return None
		if not os.path.isfile(mediafile):
			utils.say(f"notice: {label} not found at {mediafile}, skipping")
			return None
		return pool.submit(self.probe_duration, mediafile)

	#============================
	def _feed(self, frames, pool, pending, stop) -> None:
		"""
		Submit each frame for resolution the moment the source yields it.
		"""
		try:
			for frame in frames:
				if stop.is_set():
					break
				pending.put(pool.submit(self.resolver.resolve, frame))
		except Exception as exc:
			# handed to the assembling thread, which raises it
			pending.put(exc)
		finally:
			pending.put(_END)

	#============================
	def _compile_in_order(self, compiler, pending) -> list:
		units = []
		progress = None
		if not utils.is_quiet_mode():
			progress = tqdm(desc="frames", unit="frame")
		try:
			while True:
				item = pending.get()
				if item is _END:
					break
				if isinstance(item, Exception):
					raise item
				converted = item.result()
				units.append(compiler.compile_frame(converted))
				if progress is not None:
					progress.update(1)
		finally:
			if progress is not None:
				progress.close()
		return units

	#============================
	def _add_master(self, composition, content: list, total_ticks: int, music) -> str:
		content_id = composition.add_playlist(content)
		music_ticks = utils.ticks_from_seconds(music.duration, composition.fps)
		music_producer = composition.add_producer(music.path)
		segments = loop_segments(music_ticks, total_ticks)
		volume = mlt.Filter('volume', {'gain': self.music_gain})
		music_id = composition.add_playlist(
			[mlt.entry(music_producer, length) for length in segments], [volume])
		mix = mlt.Transition('mix', 0, 1, 0, total_ticks - 1,
			{'always_active': 1, 'sum': 1})
		return composition.add_tractor([content_id, music_id], transitions=[mix])

	#============================
	@staticmethod
	def _cancel_pending(pending) -> None:
		while True:
			try:
				item = pending.get_nowait()
			except queue.Empty:
				return
			if isinstance(item, concurrent.futures.Future):
				item.cancel()
