#!/usr/bin/env python3

import os
from fractions import Fraction
import lxml.etree
from kotilib.core.ids import IdAllocator

#============================================

def reduce_fraction(num: int, den: int) -> tuple:
	if den == 0:
		return (num, den)
	a = num
	b = den
	while b != 0:
		a, b = b, a % b
	gcd = a if a != 0 else 1
	return (num // gcd, den // gcd)

#============================================

def entry(producer_id: str, length: int, start: int = 0) -> dict:
	"""Playlist entry covering `length` ticks of a producer from `start`."""
	if length <= 0:
		raise RuntimeError("playlist entry length must be positive")
	return {'type': 'entry', 'producer': producer_id,
		'in_frame': start, 'out_frame': start + length - 1}

#============================================

def blank(length: int) -> dict:
	if length <= 0:
		raise RuntimeError("blank duration must be positive")
	return {'type': 'blank', 'length': length}

#============================================

def entry_length(item: dict) -> int:
	if item['type'] == 'blank':
		return item['length']
	return item['out_frame'] - item['in_frame'] + 1

#============================================

def _set_property(parent, name: str, value) -> None:
	prop = lxml.etree.SubElement(parent, 'property')
	prop.set('name', name)
	prop.text = str(value)

#============================================

class Filter():
	def __init__(self, service: str, properties: dict = None):
		self.service = service
		self.properties = dict(properties or {})

	#============================
	def to_element(self, parent) -> None:
		filter_elem = lxml.etree.SubElement(parent, 'filter')
		_set_property(filter_elem, 'mlt_service', self.service)
		for name, value in self.properties.items():
			_set_property(filter_elem, name, value)

#============================================

class Transition():
	def __init__(self, service: str, a_track: int, b_track: int, start: int,
		end: int, properties: dict = None):
		self.service = service
		self.a_track = a_track
		self.b_track = b_track
		self.start = start
		self.end = end
		self.properties = dict(properties or {})

	#============================
	def to_element(self, parent) -> None:
		trans_elem = lxml.etree.SubElement(parent, 'transition')
		trans_elem.set('in', str(self.start))
		trans_elem.set('out', str(self.end))
		_set_property(trans_elem, 'mlt_service', self.service)
		_set_property(trans_elem, 'a_track', self.a_track)
		_set_property(trans_elem, 'b_track', self.b_track)
		for name, value in self.properties.items():
			_set_property(trans_elem, name, value)

#============================================

class Composition():
	"""
	Append-only MLT project for one run.

	Producers, playlists and tractors are emitted in the order they are
	added, so anything referenced is always defined earlier in the document.
	Only one thread should add to a composition.
	"""
	def __init__(self, width: int, height: int, fps: Fraction,
		ids: IdAllocator = None, title: str = "King of the Internet"):
		self.width = width
		self.height = height
		self.fps = Fraction(fps)
		self.ids = ids if ids is not None else IdAllocator()
		self.title = title
		self.nodes = []

	#============================
	def add_producer(self, resource: str, properties: dict = None) -> str:
		producer_id = self.ids.next_id('producer')
		producer = lxml.etree.Element('producer')
		producer.set('id', producer_id)
		_set_property(producer, 'resource', resource)
		for name, value in (properties or {}).items():
			_set_property(producer, name, value)
		self.nodes.append(producer)
		return producer_id

	#============================
	def add_color_producer(self, duration_frames: int, color: str = '#000000') -> str:
		producer_id = self.ids.next_id('producer')
		producer = lxml.etree.Element('producer')
		producer.set('id', producer_id)
		_set_property(producer, 'mlt_service', 'color')
		_set_property(producer, 'resource', color)
		_set_property(producer, 'length', duration_frames)
		_set_property(producer, 'out', duration_frames - 1)
		self.nodes.append(producer)
		return producer_id

	#============================
	def add_playlist(self, entries: list, filters: list = None) -> str:
		playlist_id = self.ids.next_id('playlist')
		playlist = lxml.etree.Element('playlist')
		playlist.set('id', playlist_id)
		for item in entries:
			self._emit_playlist_entry(playlist, item)
		for filter_obj in filters or []:
			filter_obj.to_element(playlist)
		self.nodes.append(playlist)
		return playlist_id

	#============================
	def _emit_playlist_entry(self, playlist_elem, item: dict) -> None:
		entry_type = item['type']
		if entry_type == 'entry':
			playlist_entry = lxml.etree.SubElement(playlist_elem, 'entry')
			playlist_entry.set('producer', item['producer'])
			playlist_entry.set('in', str(item['in_frame']))
			playlist_entry.set('out', str(item['out_frame']))
			return
		if entry_type == 'blank':
			blank_elem = lxml.etree.SubElement(playlist_elem, 'blank')
			blank_elem.set('length', str(item['length']))
			return
		raise RuntimeError(f"unsupported playlist entry type: {entry_type}")

	#============================
	def add_tractor(self, tracks: list, filters: list = None,
		transitions: list = None) -> str:
		tractor_id = self.ids.next_id('tractor')
		tractor = lxml.etree.Element('tractor')
		tractor.set('id', tractor_id)
		multitrack = lxml.etree.SubElement(tractor, 'multitrack')
		for track_id in tracks:
			track_elem = lxml.etree.SubElement(multitrack, 'track')
			track_elem.set('producer', track_id)
		for filter_obj in filters or []:
			filter_obj.to_element(tractor)
		for transition in transitions or []:
			transition.to_element(tractor)
		self.nodes.append(tractor)
		return tractor_id

	#============================
	def build_document(self, main_tractor: str, total_ticks: int, target: str,
		root_dir: str, output: dict = None):
		"""
		Build the full <mlt> tree: profile, consumer, then every node.

		Args:
			main_tractor: Id of the master tractor.
			total_ticks: Program length; the consumer renders [0, total_ticks).
			target: Output video path.
			root_dir: Directory relative resources resolve against.
			output: Container and codec settings.
		"""
		if total_ticks <= 0:
			raise RuntimeError("program duration must be positive")
		output = output or {}
		root = lxml.etree.Element('mlt')
		root.set('title', self.title)
		root.set('producer', main_tractor)
		root.set('root', root_dir)
		self._emit_profile(root)
		consumer = lxml.etree.SubElement(root, 'consumer')
		consumer.set('mlt_service', 'avformat')
		consumer.set('f', output.get('format', 'webm'))
		consumer.set('target', target)
		consumer.set('vcodec', output.get('vcodec', 'libvpx'))
		consumer.set('acodec', output.get('acodec', 'libvorbis'))
		consumer.set('in', '0')
		consumer.set('out', str(total_ticks - 1))
		for node in self.nodes:
			root.append(node)
		return root

	#============================
	def _emit_profile(self, root) -> None:
		(display_num, display_den) = reduce_fraction(self.width, self.height)
		profile = lxml.etree.SubElement(root, 'profile')
		profile.set('description', 'koti')
		profile.set('width', str(self.width))
		profile.set('height', str(self.height))
		profile.set('progressive', '1')
		profile.set('sample_aspect_num', '1')
		profile.set('sample_aspect_den', '1')
		profile.set('display_aspect_num', str(display_num))
		profile.set('display_aspect_den', str(display_den))
		profile.set('frame_rate_num', str(self.fps.numerator))
		profile.set('frame_rate_den', str(self.fps.denominator))
		profile.set('colorspace', '709')

	#============================
	def write(self, output_file: str, main_tractor: str, total_ticks: int,
		target: str, output: dict = None) -> str:
		root_dir = os.path.dirname(os.path.abspath(output_file))
		# build_document moves the nodes under the new root
		root = self.build_document(main_tractor, total_ticks, target, root_dir, output)
		os.makedirs(os.path.dirname(output_file) or '.', exist_ok=True)
		tree = lxml.etree.ElementTree(root)
		tree.write(output_file, encoding='utf-8', xml_declaration=True,
			pretty_print=True)
		return output_file
