#!/usr/bin/env python3

import concurrent.futures
import os
from kotilib import textcard
from kotilib.core import errors
from kotilib.core import utils
from kotilib.core.frame import AudioInfo, ConvertedFrame, ImageInfo
from kotilib.core.ids import IdAllocator
from kotilib.media import probe

#============================================

FADE_IN_DELAY = 1.0
OVERLAY_COLOR = (255, 255, 255)
OVERLAY_BORDER_COLOR = (0, 0, 0)
OVERLAY_BORDER_WIDTH = 4

#============================================

class OverlayRenderer():
	"""
	Render overlay text cards sized for the output frame into PNG files.
	"""
	def __init__(self, out_dir: str, width: int, height: int, font_size: int = 48,
		font_file: str = None, ids: IdAllocator = None):
		self.out_dir = out_dir
		self.width = width
		self.height = height
		self.font_size = font_size
		self.font_file = font_file
		self.ids = ids if ids is not None else IdAllocator()

	#============================
	def render(self, text: str) -> tuple:
		image, width, height = textcard.fit_text(text, self.font_size,
			self.width, self.height, word_color=OVERLAY_COLOR,
			border_color=OVERLAY_BORDER_COLOR, border_width=OVERLAY_BORDER_WIDTH,
			font_file=self.font_file)
		outpath = os.path.join(self.out_dir, f"{self.ids.next_id('text_overlay')}.png")
		image.save(outpath, "PNG")
		return (outpath, width, height)

#============================================

class FrameResolver():
	"""
	Turn a Frame into a ConvertedFrame.

	Narration, overlay rendering and image probing for one frame run at the
	same time on the media pool. The media pool only runs leaf work, so
	frame-level tasks on another pool can block on it safely.

	Args:
		synthesize: text -> (wav path, seconds)
		render_overlay: text -> (png path, width, height)
		probe_image: path -> (width, height)
		threads: Media pool size.
	"""
	def __init__(self, synthesize, render_overlay, probe_image=probe.image_size,
		threads: int = 4):
		self.synthesize = synthesize
		self.render_overlay = render_overlay
		self.probe_image = probe_image
		self.media_pool = concurrent.futures.ThreadPoolExecutor(
			max_workers=max(1, threads), thread_name_prefix="koti-media")

	#============================
	def close(self) -> None:
		self.media_pool.shutdown(wait=True)

	#============================
	def __enter__(self):
		return self

	#============================
	def __exit__(self, exc_type, exc_value, traceback):
		self.close()
		return False

	#============================
	def resolve(self, frame) -> ConvertedFrame:
		utils.say(f"converting {frame!r}")
		if frame.image is None and frame.overlay == "":
			raise errors.ContractViolation("frame has neither an image nor overlay text")
		tasks = {}
		if frame.tts != "":
			tasks['tts'] = self.media_pool.submit(self.synthesize, frame.tts)
		if frame.overlay != "":
			tasks['overlay'] = self.media_pool.submit(self.render_overlay, frame.overlay)
		if frame.image is not None:
			tasks['image'] = self.media_pool.submit(self.probe_image, frame.image)
		# let every task finish before reporting, so nothing is left running
		concurrent.futures.wait(list(tasks.values()))
		for key in ('tts', 'overlay', 'image'):
			task = tasks.get(key)
			if task is not None and task.exception() is not None:
				raise task.exception()
		tts_audio = None
		if 'tts' in tasks:
			(audio_path, seconds) = tasks['tts'].result()
			tts_audio = AudioInfo(audio_path, float(seconds))
		text_overlay = None
		if 'overlay' in tasks:
			text_overlay = ImageInfo(*tasks['overlay'].result())
		fg_image = None
		if 'image' in tasks:
			(width, height) = tasks['image'].result()
			fg_image = ImageInfo(frame.image, width, height)
		fades_in_after = FADE_IN_DELAY if frame.fades_in else None
		converted = ConvertedFrame(fg_image=fg_image, text_overlay=text_overlay,
			tts_audio=tts_audio, fades_in_after=fades_in_after,
			persists=frame.persists)
		utils.say(f"converted frame, {converted.duration:.2f} seconds")
		return converted
