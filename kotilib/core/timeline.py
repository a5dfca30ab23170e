#!/usr/bin/env python3

from kotilib.core import errors
from kotilib.core import utils
from kotilib.core.frame import TrackUnit
from kotilib.exporters import mlt

#============================================

PAN_CENTER = "0.5"
FADE_SECONDS = 0.5

#============================================

def fit_rect(image_w: int, image_h: int, box_w: float, box_h: float,
	box_x: float = 0.0, box_y: float = 0.0) -> tuple:
	"""
	Largest aspect-preserving rect for an image inside a box, centered.

	Returns:
		tuple: (x, y, width, height) in pixels
	"""
	if image_w <= 0 or image_h <= 0:
		raise errors.ContractViolation("image size must be positive")
	if box_w <= 0 or box_h <= 0:
		return (box_x, box_y, 0.0, 0.0)
	scale = min(box_w / image_w, box_h / image_h)
	width = image_w * scale
	height = image_h * scale
	x = box_x + (box_w - width) / 2.0
	y = box_y + (box_h - height) / 2.0
	return (x, y, width, height)

#============================================

def vertical_shares(size_a: tuple, size_b: tuple, frame_w: int) -> tuple:
	"""
	Split the frame height between two stacked images.

	Each share is the image's height when scaled to the full frame width,
	over the sum of both such heights.
	"""
	(w1, h1) = size_a
	(w2, h2) = size_b
	if w1 <= 0 or h1 <= 0 or w2 <= 0 or h2 <= 0:
		raise errors.ContractViolation("image size must be positive")
	scaled_h1 = h1 * frame_w / w1
	scaled_h2 = h2 * frame_w / w2
	total = scaled_h1 + scaled_h2
	share1 = scaled_h1 / total
	return (share1, 1.0 - share1)

#============================================

def stacked_rects(size_a: tuple, size_b: tuple, frame_w: int, frame_h: int) -> tuple:
	"""
	Place image A above image B. Each image is fitted in its own band.

	Returns:
		tuple: ((x, y, w, h) for A, (x, y, w, h) for B)
	"""
	(share1, share2) = vertical_shares(size_a, size_b, frame_w)
	band1 = frame_h * share1
	band2 = frame_h * share2
	rect_a = fit_rect(size_a[0], size_a[1], frame_w, band1, 0.0, 0.0)
	rect_b = fit_rect(size_b[0], size_b[1], frame_w, band2, 0.0, band1)
	return (rect_a, rect_b)

#============================================

def format_rect(rect: tuple) -> str:
	(x, y, width, height) = [int(round(value)) for value in rect]
	return f"{x} {y} {width} {height} 1"

#============================================

class TimelineCompiler():
	"""
	Lay out one ConvertedFrame as a tractor in a Composition.

	Track 0 is a black background for the whole unit, then one track per
	image, then the narration track if there is one.
	"""
	def __init__(self, composition, fade_seconds: float = FADE_SECONDS):
		self.composition = composition
		self.fade_seconds = fade_seconds

	#============================
	def ticks(self, seconds: float) -> int:
		return utils.ticks_from_seconds(seconds, self.composition.fps)

	#============================
	def compile_frame(self, converted) -> TrackUnit:
		images = converted.images()
		if len(images) == 0:
			raise errors.ContractViolation("frame has neither a foreground image nor overlay")
		if len(images) > 2:
			raise errors.ContractViolation("a frame holds at most two images")
		duration = self.ticks(converted.duration)
		if duration <= 0:
			raise errors.ContractViolation(
				f"frame lasts {converted.duration:.3f} seconds, less than one tick")
		frame_w = self.composition.width
		frame_h = self.composition.height
		if len(images) == 1:
			rects = [fit_rect(images[0].width, images[0].height, frame_w, frame_h)]
		else:
			rects = list(stacked_rects(
				(images[0].width, images[0].height),
				(images[1].width, images[1].height),
				frame_w, frame_h))
		background = self.composition.add_color_producer(duration)
		tracks = [self.composition.add_playlist([mlt.entry(background, duration)])]
		transitions = []
		for image, rect in zip(images, rects):
			filters = []
			if image is converted.fg_image and converted.fades_in_after is not None:
				filters.append(self._fade_filter(converted.fades_in_after))
			tracks.append(self._image_track(image, duration, filters))
			transitions.append(mlt.Transition('affine', 0, len(tracks) - 1, 0,
				duration - 1, {'rect': format_rect(rect), 'distort': 0}))
		if converted.tts_audio is not None:
			tracks.append(self._audio_track(converted.tts_audio, duration))
			transitions.append(mlt.Transition('mix', 0, len(tracks) - 1, 0,
				duration - 1, {'always_active': 1, 'sum': 1}))
		tractor_id = self.composition.add_tractor(tracks, transitions=transitions)
		return TrackUnit(tractor_id, duration)

	#============================
	def _image_track(self, image, duration: int, filters: list) -> str:
		producer_id = self.composition.add_producer(image.path,
			{'length': duration})
		return self.composition.add_playlist([mlt.entry(producer_id, duration)],
			filters)

	#============================
	def _audio_track(self, audio, duration: int) -> str:
		producer_id = self.composition.add_producer(audio.path)
		audio_ticks = min(self.ticks(audio.duration), duration)
		entries = []
		if audio_ticks > 0:
			entries.append(mlt.entry(producer_id, audio_ticks))
		if audio_ticks < duration:
			entries.append(mlt.blank(duration - audio_ticks))
		pan = mlt.Filter('panner', {'start': PAN_CENTER, 'channel': -1})
		return self.composition.add_playlist(entries, [pan])

	#============================
	def _fade_filter(self, delay: float):
		start = self.ticks(delay)
		end = start + max(1, self.ticks(self.fade_seconds))
		keyframes = f"0=0;{start}=0;{end}=1"
		return mlt.Filter('brightness', {'level': keyframes, 'alpha': keyframes})

	#============================
	def compile_clip(self, mediafile: str, seconds: float) -> TrackUnit:
		"""Intro and outro clips: a single video track of the clip length."""
		duration = self.ticks(seconds)
		if duration <= 0:
			raise errors.ContractViolation(f"clip {mediafile} is shorter than one tick")
		producer_id = self.composition.add_producer(mediafile)
		playlist_id = self.composition.add_playlist([mlt.entry(producer_id, duration)])
		tractor_id = self.composition.add_tractor([playlist_id])
		return TrackUnit(tractor_id, duration)
