#!/usr/bin/env python3

###
#thumbnail templates: a base image plus the box the title text goes in
###

import collections
import os
import PIL.Image
import yaml
from kotilib import textcard
from kotilib.core import utils

#===============================

THUMBNAIL_FONT_SIZE = 80
THUMBNAIL_WORD_COLOR = (255, 255, 255)
THUMBNAIL_BORDER_COLOR = (15, 15, 15)
THUMBNAIL_BORDER_WIDTH = 5

# what the content source asks for: title text and a template id
ThumbnailRequest = collections.namedtuple('ThumbnailRequest', ['text', 'template'])

#===============================

class ThumbnailTemplate():
	def __init__(self, template_id: str, path: str, rect: tuple):
		if len(rect) != 4:
			raise RuntimeError("thumbnail rect must be [x, y, w, h]")
		self.id = template_id
		self.path = path
		self.rect = tuple(utils.parse_int(value, "thumbnail rect") for value in rect)
		if self.rect[2] <= 0 or self.rect[3] <= 0:
			raise RuntimeError(f"thumbnail rect for {template_id} must have a positive size")

	#============================
	def to_dict(self) -> dict:
		return {'id': self.id, 'path': self.path, 'rect': list(self.rect)}

	#============================
	def apply(self, text: str, out_path: str, font_file: str = None) -> str:
		(x, y, width, height) = self.rect
		text_image, _, _ = textcard.fit_text(text, THUMBNAIL_FONT_SIZE, width, height,
			word_color=THUMBNAIL_WORD_COLOR, border_color=THUMBNAIL_BORDER_COLOR,
			border_width=THUMBNAIL_BORDER_WIDTH, font_file=font_file)
		with PIL.Image.open(self.path) as base:
			image = base.convert('RGBA')
		image.paste(text_image, (x, y), text_image)
		image.save(out_path, "PNG")
		return out_path

#===============================
def load_templates(yaml_file: str) -> list:
	if not os.path.exists(yaml_file):
		return []
	with open(yaml_file, 'r') as data_file:
		data = yaml.safe_load(data_file)
	if data is None:
		return []
	if not isinstance(data, list):
		raise RuntimeError(f"thumbnail templates must be a list: {yaml_file}")
	templates = []
	for item in data:
		if not isinstance(item, dict):
			raise RuntimeError(f"thumbnail template entries must be mappings: {yaml_file}")
		templates.append(ThumbnailTemplate(str(item.get('id')), str(item.get('path')),
			item.get('rect', [])))
	return templates

#===============================
def save_templates(yaml_file: str, templates: list) -> None:
	os.makedirs(os.path.dirname(os.path.abspath(yaml_file)), exist_ok=True)
	with open(yaml_file, 'w') as data_file:
		yaml.safe_dump([template.to_dict() for template in templates], data_file,
			sort_keys=False)

#===============================
def add_template(yaml_file: str, template_id: str, path: str, x: int, y: int,
	w: int, h: int) -> ThumbnailTemplate:
	templates = load_templates(yaml_file)
	template = ThumbnailTemplate(template_id, os.path.abspath(path), (x, y, w, h))
	templates.append(template)
	save_templates(yaml_file, templates)
	return template

#===============================
def find_template(templates: list, template_id: str) -> ThumbnailTemplate:
	for template in templates:
		if template.id == template_id:
			return template
	raise RuntimeError(f"no thumbnail template named: {template_id}")

#===============================
def create_thumbnail(templates: list, handoff, out_path: str, timeout: float = None,
	font_file: str = None) -> str:
	"""
	Wait for the content source to name the title and template, then render.
	"""
	utils.say("waiting for thumbnail info")
	request = handoff.receive(timeout)
	if request is None:
		utils.say("no thumbnail requested")
		return None
	template = find_template(templates, request.template)
	template.apply(request.text, out_path, font_file)
	utils.say(f"wrote thumbnail {out_path}")
	return out_path
