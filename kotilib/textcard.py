#!/usr/bin/env python3

###
#render word-wrapped text with a border onto a transparent image
###

import os
import numpy
from PIL import Image
from PIL import ImageDraw
from PIL import ImageFont
from scipy.ndimage import maximum_filter
from kotilib.core import errors

#===============================

TEXT_MARGIN = 0.7
IMAGE_MARGIN = 1.6

#===============================
def load_font(font_file: str, size: int):
	if font_file is not None:
		if not os.path.exists(font_file):
			raise RuntimeError(f"font file not found: {font_file}")
		return ImageFont.truetype(font_file, size)
	try:
		return ImageFont.truetype("DejaVuSans.ttf", size)
	except OSError:
		return ImageFont.load_default(size)

#===============================
def layout_lines(text: str, font, max_width: float, max_height: float) -> list:
	"""
	Greedy word wrap. Raises TextOverflow when a word or the lines do not fit.
	"""
	words = text.split()
	if len(words) == 0:
		raise errors.MediaGenerationFailed("no text to render")
	line_height = line_spacing(font)
	space_width = font.getlength(' ')
	lines = []
	current = []
	x = 0.0
	for word in words:
		word_width = font.getlength(word)
		if word_width > max_width:
			raise errors.TextOverflow(f"word does not fit in {max_width:.0f} pixels: {word}")
		if len(current) > 0 and x + word_width > max_width:
			lines.append(" ".join(current))
			current = []
			x = 0.0
		current.append(word)
		x += word_width + space_width
	lines.append(" ".join(current))
	if len(lines) * line_height > max_height:
		raise errors.TextOverflow(
			f"{len(lines)} lines do not fit in {max_height:.0f} pixels")
	return lines

#===============================
def line_spacing(font) -> int:
	ascent, descent = font.getmetrics()
	return ascent + descent

#===============================
def border_layer(text_image, border_width: int, border_color: tuple):
	"""Dilate the text alpha into a solid border image of the same size."""
	alpha = numpy.array(text_image.getchannel('A'))
	if border_width > 0:
		alpha = maximum_filter(alpha, size=border_width)
	layer = numpy.zeros((alpha.shape[0], alpha.shape[1], 4), dtype=numpy.uint8)
	layer[:, :, 0] = border_color[0]
	layer[:, :, 1] = border_color[1]
	layer[:, :, 2] = border_color[2]
	layer[:, :, 3] = alpha
	return Image.fromarray(layer)

#===============================
def render_text(text: str, font_size: int, max_width: int, max_height: int,
	word_color: tuple = (255, 255, 255), border_color: tuple = (0, 0, 0),
	border_width: int = 4, font_file: str = None) -> tuple:
	"""
	Draw text into the smallest image that holds it.

	Returns:
		tuple: (RGBA image, width, height)
	"""
	if font_size < 1:
		raise errors.TextOverflow("font size fell below one point")
	font = load_font(font_file, font_size)
	margin = int(IMAGE_MARGIN * font_size)
	lines = layout_lines(text, font, max_width - margin, max_height - margin)
	line_height = line_spacing(font)
	text_width = max(font.getlength(line) for line in lines)
	image_width = int(text_width) + margin
	image_height = line_height * len(lines) + margin
	text_image = Image.new('RGBA', (image_width, image_height), (0, 0, 0, 0))
	draw = ImageDraw.Draw(text_image)
	offset = TEXT_MARGIN * font_size
	fill = (word_color[0], word_color[1], word_color[2], 255)
	for index, line in enumerate(lines):
		draw.text((offset, offset + index * line_height), line, font=font, fill=fill)
	image = border_layer(text_image, border_width, border_color)
	image.alpha_composite(text_image)
	return (image, image_width, image_height)

#===============================
def fit_text(text: str, start_size: int, max_width: int, max_height: int,
	min_size: int = 1, **kwargs) -> tuple:
	"""
	Shrink the font one point at a time until the text fits.

	TextOverflow propagates once min_size does not fit either.
	"""
	size = start_size
	while True:
		try:
			return render_text(text, size, max_width, max_height, **kwargs)
		except errors.TextOverflow:
			size -= 1
			if size < min_size:
				raise

#===============================
#===============================
if __name__ == '__main__':
	card, width, height = fit_text("the quick brown fox jumps over the lazy dog",
		48, 800, 600)
	card.save("textcard.png")
	print(f"wrote textcard.png ({width}x{height})")
