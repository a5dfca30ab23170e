#!/usr/bin/env python3

"""
Pytest coverage for TimelineCompiler layout and track building.
"""

# Standard Library
import os
import sys
from fractions import Fraction

# PIP3 modules
import lxml.etree
import pytest

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
	sys.path.insert(0, REPO_ROOT)

# local repo modules
from kotilib.core import errors
from kotilib.core import timeline
from kotilib.core.frame import AudioInfo, ConvertedFrame, ImageInfo
from kotilib.exporters import mlt

#============================================

NTSC = Fraction(30000, 1001)

#============================================

def make_compiler(width: int = 1280, height: int = 720, fps=NTSC):
	composition = mlt.Composition(width, height, fps)
	return (composition, timeline.TimelineCompiler(composition))

def node_by_id(composition, node_id: str):
	for node in composition.nodes:
		if node.get('id') == node_id:
			return node
	raise KeyError(node_id)

def properties(element) -> dict:
	return {prop.get('name'): prop.text for prop in element.findall('property')}

def transitions(tractor) -> list:
	return [properties(item) for item in tractor.findall('transition')]

#============================================

def test_fit_rect_centers_and_keeps_aspect() -> None:
	(x, y, w, h) = timeline.fit_rect(800, 600, 1280, 720)
	assert h == pytest.approx(720)
	assert w == pytest.approx(960)
	assert x == pytest.approx(160)
	assert y == 0

#============================================

@pytest.mark.parametrize("size_a, size_b", [
	((1280, 200), (800, 600)),
	((100, 900), (1920, 1080)),
	((640, 640), (640, 640)),
	((3000, 10), (10, 3000)),
])
def test_vertical_shares_sum_to_one(size_a, size_b) -> None:
	(share1, share2) = timeline.vertical_shares(size_a, size_b, 1280)
	assert share1 + share2 == pytest.approx(1.0)
	assert share1 >= 0
	assert share2 >= 0
	(rect_a, rect_b) = timeline.stacked_rects(size_a, size_b, 1280, 720)
	assert rect_a[3] >= 0
	assert rect_b[3] >= 0
	assert rect_a[1] + rect_a[3] <= rect_b[1] + 1e-9

#============================================

def test_stacked_widths_use_own_share() -> None:
	"""
Ensure each image's width comes from its own band, not the other one's.
	"""
	(rect_a, rect_b) = timeline.stacked_rects((1280, 240), (800, 600), 1280, 720)
	assert rect_a[2] / rect_a[3] == pytest.approx(1280 / 240)
	assert rect_b[2] / rect_b[3] == pytest.approx(800 / 600)
	assert rect_a[3] == pytest.approx(144)
	assert rect_b[1] == pytest.approx(144)
	assert rect_b[3] == pytest.approx(576)

#============================================

def test_overlay_only_unit() -> None:
	"""
Overlay card, no narration, persists 1.5 seconds at 30000/1001.

The only picture track is the overlay; track 0 is the black background
every unit carries for the affine placement, so two tracks in total.
	"""
	composition, compiler = make_compiler()
	converted = ConvertedFrame(text_overlay=ImageInfo("/tmp/title.png", 640, 120),
		persists=1.5)
	unit = compiler.compile_frame(converted)
	assert unit.ticks == int(Fraction("1.5") * NTSC)
	assert unit.ticks == 44
	tractor = node_by_id(composition, unit.id)
	tracks = tractor.find('multitrack').findall('track')
	assert len(tracks) == 2
	services = [props['mlt_service'] for props in transitions(tractor)]
	assert services == ['affine']
	resources = [properties(node).get('resource') for node in composition.nodes
		if node.tag == 'producer']
	assert "/tmp/title.png" in resources
	assert all(not str(resource).endswith(".wav") for resource in resources)

#============================================

def test_image_only_unit_uses_probed_size() -> None:
	composition, compiler = make_compiler()
	converted = ConvertedFrame(fg_image=ImageInfo("/tmp/shot.png", 800, 600),
		persists=2.0)
	unit = compiler.compile_frame(converted)
	assert unit.ticks == 59
	tractor = node_by_id(composition, unit.id)
	props = transitions(tractor)
	assert len(props) == 1
	assert props[0]['rect'] == "160 0 960 720 1"
	assert props[0]['b_track'] == '1'

#============================================

def test_narrated_two_image_unit() -> None:
	composition, compiler = make_compiler(fps=Fraction(30))
	converted = ConvertedFrame(fg_image=ImageInfo("/tmp/shot.png", 800, 600),
		text_overlay=ImageInfo("/tmp/title.png", 1280, 240),
		tts_audio=AudioInfo("/tmp/tts_0000.wav", 2.0), fades_in_after=1.0,
		persists=1.0)
	unit = compiler.compile_frame(converted)
	assert unit.ticks == 90
	tractor = node_by_id(composition, unit.id)
	tracks = tractor.find('multitrack').findall('track')
	assert len(tracks) == 4
	services = [props['mlt_service'] for props in transitions(tractor)]
	assert services == ['affine', 'affine', 'mix']
	audio_playlist = node_by_id(composition, tracks[3].get('producer'))
	entry = audio_playlist.find('entry')
	assert entry.get('out') == '59'
	assert audio_playlist.find('blank').get('length') == '30'
	panner = properties(audio_playlist.find('filter'))
	assert panner['mlt_service'] == 'panner'
	assert panner['start'] == '0.5'
	fg_playlist = node_by_id(composition, tracks[2].get('producer'))
	fade = properties(fg_playlist.find('filter'))
	assert fade['mlt_service'] == 'brightness'
	assert fade['level'] == "0=0;30=0;45=1"
	overlay_playlist = node_by_id(composition, tracks[1].get('producer'))
	assert overlay_playlist.find('filter') is None

#============================================

def test_unit_without_images_is_rejected() -> None:
	_, compiler = make_compiler()
	converted = ConvertedFrame(tts_audio=AudioInfo("/tmp/a.wav", 2.0), persists=1.0)
	with pytest.raises(errors.ContractViolation):
		compiler.compile_frame(converted)

#============================================

def test_zero_tick_unit_is_rejected() -> None:
	_, compiler = make_compiler()
	converted = ConvertedFrame(fg_image=ImageInfo("/tmp/a.png", 10, 10), persists=0.0)
	with pytest.raises(errors.ContractViolation):
		compiler.compile_frame(converted)

#============================================

def test_compile_clip() -> None:
	composition, compiler = make_compiler(fps=Fraction(25))
	unit = compiler.compile_clip("/data/intro.webm", 4.0)
	assert unit.ticks == 100
	tractor = node_by_id(composition, unit.id)
	assert len(tractor.find('multitrack').findall('track')) == 1
	text = lxml.etree.tostring(composition.nodes[0]).decode()
	assert "/data/intro.webm" in text
