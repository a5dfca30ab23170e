"""
Pytest coverage for kotilib.textcard helpers.
"""

# Standard Library
import os
import sys

# PIP3 modules
import numpy
import pytest
from PIL import Image

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
	sys.path.insert(0, REPO_ROOT)

# tests helpers
TESTS_DIR = os.path.abspath(os.path.dirname(__file__))
if TESTS_DIR not in sys.path:
	sys.path.insert(0, TESTS_DIR)
from media_utils import find_system_ttf

# local repo modules
from kotilib import textcard
from kotilib.core import errors

#============================================

CUSTOM_FONT_PATH = find_system_ttf()

LONG_WORD = "abcdefghijklmnopqrstuvwxyz"

#============================================

def test_load_font_missing_raises(tmp_path) -> None:
	"""
Ensure missing font file raises a RuntimeError.
	"""
	with pytest.raises(RuntimeError):
		textcard.load_font(str(tmp_path / "missing_font.ttf"), 24)

#============================================

def test_wide_word_overflows() -> None:
	font = textcard.load_font(CUSTOM_FONT_PATH, 40)
	with pytest.raises(errors.TextOverflow):
		textcard.layout_lines(LONG_WORD, font, 50, 500)

#============================================

def test_too_many_lines_overflow() -> None:
	font = textcard.load_font(CUSTOM_FONT_PATH, 30)
	text = " ".join(["word"] * 60)
	with pytest.raises(errors.TextOverflow):
		textcard.layout_lines(text, font, 200, 40)

#============================================

def test_layout_wraps_words() -> None:
	font = textcard.load_font(CUSTOM_FONT_PATH, 20)
	lines = textcard.layout_lines("one two three four five six seven", font, 120, 1000)
	assert len(lines) > 1
	assert " ".join(lines) == "one two three four five six seven"

#============================================

def test_empty_text_is_a_media_failure() -> None:
	font = textcard.load_font(CUSTOM_FONT_PATH, 20)
	with pytest.raises(errors.MediaGenerationFailed):
		textcard.layout_lines("   ", font, 100, 100)

#============================================

def test_render_text_fits_box() -> None:
	image, width, height = textcard.render_text("hello there", 24, 800, 600,
		font_file=CUSTOM_FONT_PATH)
	assert image.mode == 'RGBA'
	assert image.size == (width, height)
	assert width <= 800
	assert height <= 600
	alpha = numpy.array(image.getchannel('A'))
	assert alpha.max() == 255

#============================================

def test_fit_text_shrinks_until_it_fits() -> None:
	image, width, height = textcard.fit_text("hello world", 200, 300, 100,
		font_file=CUSTOM_FONT_PATH)
	assert width <= 300
	assert height <= 100
	assert image.size == (width, height)

#============================================

def test_fit_text_gives_up_at_floor() -> None:
	with pytest.raises(errors.TextOverflow):
		textcard.fit_text(LONG_WORD, 24, 60, 400, min_size=20,
			font_file=CUSTOM_FONT_PATH)

#============================================

def test_border_layer_dilates_alpha() -> None:
	text_image = Image.new('RGBA', (9, 9), (0, 0, 0, 0))
	text_image.putpixel((4, 4), (255, 255, 255, 255))
	layer = textcard.border_layer(text_image, 3, (15, 15, 15))
	alpha = numpy.array(layer.getchannel('A'))
	assert int((alpha > 0).sum()) == 9
	assert layer.getpixel((3, 3)) == (15, 15, 15, 255)
