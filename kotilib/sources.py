#!/usr/bin/env python3

###
#content sources: anything that yields Frames in playback order
###

import os
import yaml
from kotilib.core import utils
from kotilib.core.frame import Frame
from kotilib.thumbnail import ThumbnailRequest

#===============================

SCRIPT_VERSION = 1
FRAME_KEYS = ('tts', 'overlay', 'image', 'fades_in', 'persists')

#===============================

class ScriptSource():
	"""
	Frames written out by hand in a YAML script.

	Iterating sends the thumbnail request to the handoff first, then yields
	one Frame per entry. Image paths are relative to the script file.

	Example:
		koti_script: 1
		title: Some title
		thumbnail: {template: default, text: Some title}
		frames:
		  - {overlay: "Chapter one", tts: "Chapter one.", persists: 1.0}
		  - {image: shot.png, tts: "Look at this.", fades_in: true}
	"""
	def __init__(self, script_file: str, handoff=None):
		self.script_file = script_file
		self.handoff = handoff
		self.base_dir = os.path.dirname(os.path.abspath(script_file))
		data = self._load_yaml()
		self.title = str(data.get('title', ''))
		self.description = str(data.get('description', '') or '')
		self.thumbnail = self._parse_thumbnail(data.get('thumbnail'))
		self.frame_data = data.get('frames')
		if not isinstance(self.frame_data, list) or len(self.frame_data) == 0:
			raise RuntimeError("script frames must be a non-empty list")

	#============================
	def _load_yaml(self) -> dict:
		utils.ensure_file_exists(self.script_file)
		with open(self.script_file, 'r') as data_file:
			data = yaml.safe_load(data_file)
		if not isinstance(data, dict):
			raise RuntimeError("script yaml must be a mapping at the top level")
		if data.get('koti_script') != SCRIPT_VERSION:
			raise RuntimeError(f"koti_script must be set to {SCRIPT_VERSION}")
		return data

	#============================
	def _parse_thumbnail(self, thumbnail) -> ThumbnailRequest:
		if thumbnail is None:
			return None
		if not isinstance(thumbnail, dict) or 'template' not in thumbnail:
			raise RuntimeError("script thumbnail must be a mapping with a template")
		text = thumbnail.get('text', self.title)
		return ThumbnailRequest(str(text), str(thumbnail['template']))

	#============================
	def _parse_frame(self, index: int, item) -> Frame:
		if not isinstance(item, dict):
			raise RuntimeError(f"script frame {index} must be a mapping")
		for key in item:
			if key not in FRAME_KEYS:
				raise RuntimeError(f"unknown key in script frame {index}: {key}")
		image = item.get('image')
		if image is not None:
			image = os.path.expanduser(str(image))
			if not os.path.isabs(image):
				image = os.path.join(self.base_dir, image)
		persists = utils.parse_float(item.get('persists', 0.0),
			f"persists of script frame {index}")
		fades_in = item.get('fades_in', False)
		if not isinstance(fades_in, bool):
			raise RuntimeError(f"fades_in of script frame {index} must be true or false")
		return Frame(tts=str(item.get('tts') or ''), overlay=str(item.get('overlay') or ''),
			image=image, fades_in=fades_in, persists=persists)

	#============================
	def __iter__(self):
		if self.handoff is not None and self.thumbnail is not None:
			self.handoff.send(self.thumbnail)
		for index, item in enumerate(self.frame_data, start=1):
			yield self._parse_frame(index, item)
