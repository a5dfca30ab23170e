#!/usr/bin/env python3

import json
import wave
import PIL.Image
from kotilib.core import errors
from kotilib.core import utils

#============================================

def probe_duration(mediafile: str, ffprobe: str = 'ffprobe',
	timeout: float = 60) -> float:
	"""
	Return container duration in seconds from ffprobe.
	"""
	utils.ensure_file_exists(mediafile)
	cmd = [
		ffprobe, "-v", "error",
		"-show_entries", "format=duration",
		"-of", "json",
		mediafile,
	]
	proc = utils.run_process(cmd, timeout=timeout)
	if proc.returncode != 0:
		raise errors.MediaGenerationFailed(f"ffprobe failed on {mediafile}",
			returncode=proc.returncode, stdout=proc.stdout, stderr=proc.stderr)
	try:
		data = json.loads(proc.stdout)
	except ValueError as exc:
		raise errors.MediaGenerationFailed(
			f"ffprobe returned unreadable output for {mediafile}") from exc
	duration = data.get('format', {}).get('duration')
	if duration is None:
		raise errors.MediaGenerationFailed(f"no duration found for {mediafile}")
	seconds = utils.parse_float(duration, f"duration of {mediafile}")
	if seconds <= 0:
		raise errors.MediaGenerationFailed(f"duration of {mediafile} is not positive")
	return seconds

#============================================

def wav_duration(wavfile: str) -> float:
	try:
		with wave.open(wavfile, 'rb') as wav_handle:
			sample_rate = wav_handle.getframerate()
			total_frames = wav_handle.getnframes()
	except (OSError, EOFError, wave.Error) as exc:
		raise errors.MediaGenerationFailed(f"could not read wav file {wavfile}: {exc}") from exc
	if sample_rate <= 0:
		raise errors.MediaGenerationFailed(f"wav file {wavfile} has no sample rate")
	return total_frames / float(sample_rate)

#============================================

def image_size(imagefile: str) -> tuple:
	try:
		with PIL.Image.open(imagefile) as image:
			image.load()
			width, height = image.size
	except (OSError, SyntaxError, ValueError) as exc:
		raise errors.MediaGenerationFailed(f"could not decode image {imagefile}: {exc}") from exc
	if width <= 0 or height <= 0:
		raise errors.MediaGenerationFailed(f"image {imagefile} has no pixels")
	return (width, height)
