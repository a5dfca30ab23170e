#!/usr/bin/env python3

###
#background music library kept as music.yaml in the data dir
###

import os
import random
import yaml
from kotilib.core import utils
from kotilib.core.frame import MusicSelection
from kotilib.media import probe

#===============================

class MusicEntry():
	def __init__(self, name: str, path: str, attribution: str = ""):
		self.name = name
		self.path = path
		self.attribution = attribution

	#============================
	def to_dict(self) -> dict:
		return {'name': self.name, 'path': self.path, 'attribution': self.attribution}

#===============================

class MusicLibrary():
	def __init__(self, entries: list = None):
		self.entries = list(entries or [])

	#============================
	@classmethod
	def load(cls, yaml_file: str):
		"""
		Read a music library. A missing file is an empty library.
		"""
		if not os.path.exists(yaml_file):
			return cls()
		with open(yaml_file, 'r') as data_file:
			data = yaml.safe_load(data_file)
		if data is None:
			return cls()
		if not isinstance(data, list):
			raise RuntimeError(f"music library must be a list: {yaml_file}")
		entries = []
		for item in data:
			if not isinstance(item, dict) or 'path' not in item:
				raise RuntimeError(f"music entries need at least a path: {yaml_file}")
			entries.append(MusicEntry(str(item.get('name', '')), str(item['path']),
				str(item.get('attribution', ''))))
		return cls(entries)

	#============================
	def save(self, yaml_file: str) -> None:
		os.makedirs(os.path.dirname(os.path.abspath(yaml_file)), exist_ok=True)
		with open(yaml_file, 'w') as data_file:
			yaml.safe_dump([entry.to_dict() for entry in self.entries], data_file,
				sort_keys=False)

	#============================
	def add_track(self, name: str, path: str, attribution: str = "") -> MusicEntry:
		entry = MusicEntry(name, os.path.abspath(path), attribution)
		self.entries.append(entry)
		return entry

	#============================
	def random_track(self, rng=None) -> MusicEntry:
		if len(self.entries) == 0:
			raise RuntimeError("music library is empty, add a track with 'koti music add'")
		rng = rng if rng is not None else random
		return rng.choice(self.entries)

#===============================
def select_music(library: MusicLibrary, probe_duration=probe.probe_duration,
	rng=None) -> MusicSelection:
	entry = library.random_track(rng)
	duration = probe_duration(entry.path)
	utils.say(f"music: {entry.name} ({duration:.1f} seconds)")
	return MusicSelection(entry.path, entry.attribution, duration)
