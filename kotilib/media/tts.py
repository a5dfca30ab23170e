#!/usr/bin/env python3

import os
import random
import lxml.etree
import lxml.html
from kotilib.core import errors
from kotilib.core import utils
from kotilib.core.ids import IdAllocator
from kotilib.media import probe

#============================================

WORD_GAP = "8"
AMPLITUDE = "200"

#============================================

def clean_text(text: str) -> str:
	"""
	Strip markup and any non-ASCII characters espeak trips over.
	"""
	if '<' in text and '>' in text:
		try:
			text = lxml.html.fromstring(text).text_content()
		except (lxml.etree.ParserError, ValueError) as exc:
			utils.say(f"notice: could not strip markup, narrating raw text: {exc}")
	text = "".join(char for char in text if char.isascii())
	text = " ".join(text.split())
	return text

#============================================

class Narrator():
	"""
	espeak wrapper that writes tts_NNNN.wav files into one directory.
	"""
	def __init__(self, out_dir: str, espeak: str = 'espeak', timeout: float = 120,
		ids: IdAllocator = None):
		self.out_dir = out_dir
		self.espeak = espeak
		self.timeout = timeout
		self.ids = ids if ids is not None else IdAllocator()

	#============================
	def _build_command(self, outpath: str) -> list:
		pitch = random.randrange(35, 65)
		cmd = [
			self.espeak, "--stdin",
			"-g", WORD_GAP,
			"-w", outpath,
			"-a", AMPLITUDE,
			"-p", str(pitch),
		]
		return cmd

	#============================
	def synthesize(self, text: str) -> tuple:
		"""
		Speak text into a new wav file.

		Returns:
			tuple: (wav path, duration in seconds)
		"""
		spoken = clean_text(text)
		if spoken == "":
			raise errors.MediaGenerationFailed("nothing left to narrate after cleaning text")
		outpath = os.path.join(self.out_dir, f"{self.ids.next_id('tts')}.wav")
		cmd = self._build_command(outpath)
		proc = utils.run_process(cmd, input_text=spoken, timeout=self.timeout)
		if proc.returncode != 0:
			raise errors.MediaGenerationFailed(
				f"espeak failed with code {proc.returncode}: {proc.stderr.strip()}",
				returncode=proc.returncode, stdout=proc.stdout, stderr=proc.stderr)
		if proc.stderr.strip():
			utils.say(f"espeak stderr: {proc.stderr.strip()}")
		if not os.path.isfile(outpath):
			raise errors.MediaGenerationFailed(f"espeak wrote no audio to {outpath}")
		duration = probe.wav_duration(outpath)
		return (outpath, duration)
