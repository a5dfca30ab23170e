#!/usr/bin/env python3

import os
import yaml
from kotilib.core import utils

#============================================

CONFIG_VERSION = 1
DEFAULT_DATA_DIR = os.path.join("~", ".local", "share", "koti")

#============================================

class KotiConfig():
	def __init__(self):
		self.config_file = None
		self.fps = None
		self.width = 1280
		self.height = 720
		self.data_dir = None
		self.work_dir = None
		self.output_dir = None
		self.intro = None
		self.outro = None
		self.min_duration = 60.0
		self.music_gain = 0.2
		self.fade_seconds = 0.5
		self.font_file = None
		self.overlay_font_size = 48
		self.output = {}
		self.melt = 'melt'
		self.espeak = 'espeak'
		self.ffprobe = 'ffprobe'
		self.render_timeout = 3600.0
		self.tts_timeout = 120.0
		self.attempts = 10
		self.threads = 4
		self.keep_temp = False

	#============================
	def music_file(self) -> str:
		return os.path.join(self.data_dir, "music.yaml")

	#============================
	def thumbnail_file(self) -> str:
		return os.path.join(self.data_dir, "thumbnails.yaml")

#============================================

class ConfigLoader():
	"""
	Read a koti config YAML into a KotiConfig.

	Every section is optional; with no file at all the defaults apply.
	"""
	def __init__(self, config_file: str = None, environ: dict = None):
		self.config_file = config_file
		self.environ = environ if environ is not None else os.environ

	#============================
	def load(self) -> KotiConfig:
		config = KotiConfig()
		config.config_file = self.config_file
		data = {}
		if self.config_file is not None:
			data = self._load_yaml()
			if data.get('koti') != CONFIG_VERSION:
				raise RuntimeError(f"koti must be set to {CONFIG_VERSION} in config files")
		self._parse_profile(config, self._section(data, 'profile'))
		self._parse_paths(config, self._section(data, 'paths'))
		self._parse_media(config, self._section(data, 'media'))
		self._parse_render(config, self._section(data, 'render'))
		self._parse_run(config, self._section(data, 'run'))
		return config

	#============================
	def _load_yaml(self) -> dict:
		utils.ensure_file_exists(self.config_file)
		with open(self.config_file, 'r') as data_file:
			data = yaml.safe_load(data_file)
		if data is None:
			data = {}
		if not isinstance(data, dict):
			raise RuntimeError("config yaml must be a mapping at the top level")
		return data

	#============================
	def _section(self, data: dict, name: str) -> dict:
		section = data.get(name)
		if section is None:
			return {}
		if not isinstance(section, dict):
			raise RuntimeError(f"{name} must be a mapping")
		return section

	#============================
	def _parse_profile(self, config: KotiConfig, profile: dict) -> None:
		config.fps = utils.parse_fps(profile.get('fps', '30000/1001'))
		resolution = profile.get('resolution', [config.width, config.height])
		if not isinstance(resolution, (list, tuple)) or len(resolution) != 2:
			raise RuntimeError("profile.resolution must be [width, height]")
		config.width = utils.parse_int(resolution[0], "profile.resolution width")
		config.height = utils.parse_int(resolution[1], "profile.resolution height")
		if config.width <= 0 or config.height <= 0:
			raise RuntimeError("profile.resolution must be positive")

	#============================
	def _parse_paths(self, config: KotiConfig, paths: dict) -> None:
		data_dir = paths.get('data_dir')
		if data_dir is None:
			data_dir = self.environ.get('KOTI_DATA') or DEFAULT_DATA_DIR
		config.data_dir = self._expand(data_dir)
		config.work_dir = self._expand(paths.get('work_dir'))
		config.output_dir = self._expand(paths.get('output_dir', os.getcwd()))

	#============================
	def _parse_media(self, config: KotiConfig, media: dict) -> None:
		config.intro = self._data_path(config, media.get('intro', 'intro.webm'))
		config.outro = self._data_path(config, media.get('outro', 'outro.webm'))
		config.min_duration = utils.parse_float(media.get('min_duration',
			config.min_duration), "media.min_duration")
		config.music_gain = utils.parse_float(media.get('music_gain',
			config.music_gain), "media.music_gain")
		config.fade_seconds = utils.parse_float(media.get('fade_seconds',
			config.fade_seconds), "media.fade_seconds")
		config.font_file = self._data_path(config, media.get('font_file'))
		config.overlay_font_size = utils.parse_int(media.get('overlay_font_size',
			config.overlay_font_size), "media.overlay_font_size")

	#============================
	def _parse_render(self, config: KotiConfig, render: dict) -> None:
		config.output = {
			'format': render.get('format', 'webm'),
			'vcodec': render.get('vcodec', 'libvpx'),
			'acodec': render.get('acodec', 'libvorbis'),
		}
		config.melt = render.get('melt', config.melt)
		config.espeak = render.get('espeak', config.espeak)
		config.ffprobe = render.get('ffprobe', config.ffprobe)
		config.render_timeout = utils.parse_float(render.get('timeout',
			config.render_timeout), "render.timeout")
		config.tts_timeout = utils.parse_float(render.get('tts_timeout',
			config.tts_timeout), "render.tts_timeout")

	#============================
	def _parse_run(self, config: KotiConfig, run: dict) -> None:
		config.attempts = utils.parse_int(run.get('attempts', config.attempts),
			"run.attempts")
		config.threads = utils.parse_int(run.get('threads', config.threads),
			"run.threads")
		if config.attempts < 1 or config.threads < 1:
			raise RuntimeError("run.attempts and run.threads must be at least 1")
		config.keep_temp = bool(run.get('keep_temp', config.keep_temp))

	#============================
	def _expand(self, path: str) -> str:
		if path is None:
			return None
		return os.path.abspath(os.path.expanduser(str(path)))

	#============================
	def _data_path(self, config: KotiConfig, path: str) -> str:
		if path is None or path == "":
			return None
		path = os.path.expanduser(str(path))
		if not os.path.isabs(path):
			path = os.path.join(config.data_dir, path)
		return path
