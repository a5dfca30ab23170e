#!/usr/bin/env python3

import collections
from kotilib.core import errors

#============================================

# one compiled unit on the master timeline
TrackUnit = collections.namedtuple('TrackUnit', ['id', 'ticks'])

# (file path, pixel width, pixel height)
ImageInfo = collections.namedtuple('ImageInfo', ['path', 'width', 'height'])

# (file path, duration in seconds)
AudioInfo = collections.namedtuple('AudioInfo', ['path', 'duration'])

# background music chosen for one run
MusicSelection = collections.namedtuple('MusicSelection',
	['path', 'attribution', 'duration'])

#============================================

class Frame():
	"""
	One content unit from the content source, before any media exists.

	Args:
		tts: Narration text, empty for no narration.
		overlay: Overlay card text, empty for no card.
		image: Source image path or None.
		fades_in: Fade the source image in.
		persists: Seconds the frame stays on screen after narration.
	"""
	__slots__ = ('tts', 'overlay', 'image', 'fades_in', 'persists')

	def __init__(self, tts: str = "", overlay: str = "", image: str = None,
		fades_in: bool = False, persists: float = 0.0):
		persists = float(persists)
		if persists < 0:
			raise errors.ContractViolation("frame persists value must not be negative")
		object.__setattr__(self, 'tts', tts or "")
		object.__setattr__(self, 'overlay', overlay or "")
		object.__setattr__(self, 'image', image)
		object.__setattr__(self, 'fades_in', bool(fades_in))
		object.__setattr__(self, 'persists', persists)

	#============================
	def __setattr__(self, name, value):
		raise AttributeError("Frame is immutable")

	#============================
	def __delattr__(self, name):
		raise AttributeError("Frame is immutable")

	#============================
	def __repr__(self) -> str:
		return (f"Frame(tts={self.tts[:30]!r}, overlay={self.overlay[:30]!r}, "
			f"image={self.image!r}, fades_in={self.fades_in}, persists={self.persists})")

#============================================

class ConvertedFrame():
	"""
	Media for one frame: images with sizes, narration audio and duration.
	"""
	def __init__(self, fg_image: ImageInfo = None, text_overlay: ImageInfo = None,
		tts_audio: AudioInfo = None, fades_in_after: float = None,
		persists: float = 0.0):
		self.fg_image = fg_image
		self.text_overlay = text_overlay
		self.tts_audio = tts_audio
		self.fades_in_after = fades_in_after
		narration = 0.0
		if tts_audio is not None:
			narration = float(tts_audio.duration)
		self.duration = narration + float(persists)

	#============================
	def images(self) -> list:
		"""Images top to bottom: overlay card first, then foreground."""
		result = []
		if self.text_overlay is not None:
			result.append(self.text_overlay)
		if self.fg_image is not None:
			result.append(self.fg_image)
		return result

	#============================
	def __repr__(self) -> str:
		return (f"ConvertedFrame(fg_image={self.fg_image}, text_overlay={self.text_overlay}, "
			f"tts_audio={self.tts_audio}, duration={self.duration:.3f})")

#============================================

class CompiledProgram():
	def __init__(self, composition, main_tractor: str, total_ticks: int,
		music: MusicSelection, units: list):
		self.composition = composition
		self.main_tractor = main_tractor
		self.total_ticks = total_ticks
		self.music = music
		self.units = units
