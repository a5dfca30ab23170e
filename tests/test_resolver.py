#!/usr/bin/env python3

"""
Pytest coverage for Frame values and FrameResolver.
"""

# Standard Library
import os
import sys
import threading

# PIP3 modules
import pytest

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
	sys.path.insert(0, REPO_ROOT)

# tests helpers
TESTS_DIR = os.path.abspath(os.path.dirname(__file__))
if TESTS_DIR not in sys.path:
	sys.path.insert(0, TESTS_DIR)
from media_utils import find_system_ttf, make_png

# local repo modules
from kotilib.core import errors
from kotilib.core.frame import AudioInfo, ConvertedFrame, Frame, ImageInfo
from kotilib.core.resolver import FrameResolver, OverlayRenderer

#============================================

def fake_synthesize(text: str) -> tuple:
	return (f"/tmp/{len(text)}.wav", 2.5)

def fake_overlay(text: str) -> tuple:
	return ("/tmp/overlay.png", 640, 120)

def fake_probe(path: str) -> tuple:
	return (800, 600)

def make_resolver(**kwargs) -> FrameResolver:
	options = {
		'synthesize': fake_synthesize,
		'render_overlay': fake_overlay,
		'probe_image': fake_probe,
		'threads': 3,
	}
	options.update(kwargs)
	return FrameResolver(**options)

#============================================

def test_frame_is_immutable() -> None:
	frame = Frame(tts="hi", image="a.png")
	with pytest.raises(AttributeError):
		frame.tts = "changed"
	with pytest.raises(AttributeError):
		del frame.tts
	assert frame.tts == "hi"

#============================================

def test_frame_rejects_negative_persists() -> None:
	with pytest.raises(errors.ContractViolation):
		Frame(overlay="title", persists=-0.5)

#============================================

def test_converted_duration_adds_persists() -> None:
	converted = ConvertedFrame(fg_image=ImageInfo("a.png", 10, 10),
		tts_audio=AudioInfo("a.wav", 3.25), persists=1.5)
	assert converted.duration == 4.75
	silent = ConvertedFrame(text_overlay=ImageInfo("t.png", 10, 10), persists=1.5)
	assert silent.duration == 1.5
	assert silent.duration >= 1.5

#============================================

def test_narration_only_frame_fails() -> None:
	"""
Ensure a frame with narration but no image is a contract violation.
	"""
	called = []

	def tracking_synthesize(text):
		called.append(text)
		return fake_synthesize(text)

	with make_resolver(synthesize=tracking_synthesize) as resolver:
		with pytest.raises(errors.ContractViolation):
			resolver.resolve(Frame(tts="Hello", persists=1.0))
	assert called == []

#============================================

def test_resolve_full_frame() -> None:
	frame = Frame(tts="Hello there", overlay="Title", image="/tmp/shot.png",
		fades_in=True, persists=0.5)
	with make_resolver() as resolver:
		converted = resolver.resolve(frame)
	assert converted.tts_audio == AudioInfo("/tmp/11.wav", 2.5)
	assert converted.text_overlay == ImageInfo("/tmp/overlay.png", 640, 120)
	assert converted.fg_image == ImageInfo("/tmp/shot.png", 800, 600)
	assert converted.fades_in_after == 1.0
	assert converted.duration == 3.0

#============================================

def test_resolve_overlay_only_frame() -> None:
	with make_resolver() as resolver:
		converted = resolver.resolve(Frame(overlay="Title", persists=1.5))
	assert converted.tts_audio is None
	assert converted.fg_image is None
	assert converted.fades_in_after is None
	assert converted.duration == 1.5

#============================================

def test_first_error_in_fixed_order_after_all_tasks() -> None:
	"""
Ensure the narration error wins and the other tasks still finish.
	"""
	finished = threading.Event()

	def failing_synthesize(text):
		raise errors.MediaGenerationFailed("espeak failed")

	def failing_overlay(text):
		raise errors.TextOverflow("too long")

	def slow_probe(path):
		finished.wait(0.2)
		finished.set()
		return (10, 10)

	with make_resolver(synthesize=failing_synthesize, render_overlay=failing_overlay,
		probe_image=slow_probe) as resolver:
		with pytest.raises(errors.MediaGenerationFailed):
			resolver.resolve(Frame(tts="x", overlay="y", image="/tmp/a.png"))
	assert finished.is_set()

#============================================

def test_image_probe_failure_propagates() -> None:
	def bad_probe(path):
		raise errors.MediaGenerationFailed("could not decode image")

	with make_resolver(probe_image=bad_probe) as resolver:
		with pytest.raises(errors.MediaGenerationFailed):
			resolver.resolve(Frame(image="/tmp/broken.png"))

#============================================

def test_resolve_probes_real_image(tmp_path) -> None:
	image_path = make_png(str(tmp_path / "shot.png"), 320, 200)
	with FrameResolver(fake_synthesize, fake_overlay) as resolver:
		converted = resolver.resolve(Frame(image=image_path, persists=2.0))
	assert converted.fg_image == ImageInfo(image_path, 320, 200)
	assert converted.duration == 2.0

#============================================

def test_overlay_renderer_writes_png(tmp_path) -> None:
	renderer = OverlayRenderer(str(tmp_path), 640, 360, font_size=48,
		font_file=find_system_ttf())
	path, width, height = renderer.render("A title card")
	assert os.path.isfile(path)
	assert os.path.basename(path) == "text_overlay_0000.png"
	assert 0 < width <= 640
	assert 0 < height <= 360
