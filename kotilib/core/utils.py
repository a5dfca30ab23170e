#!/usr/bin/env python3

import os
import shlex
import subprocess
import threading
import time
from fractions import Fraction
from kotilib.core import errors

#============================================

_QUIET = threading.Event()
_PRINT_LOCK = threading.Lock()

#============================================

def set_quiet_mode(quiet: bool) -> None:
	if quiet:
		_QUIET.set()
	else:
		_QUIET.clear()
	return

#============================================

def is_quiet_mode() -> bool:
	return _QUIET.is_set()

#============================================

def say(text: str) -> None:
	if is_quiet_mode():
		return
	with _PRINT_LOCK:
		print(text, flush=True)
	return

#============================================

def run_process(cmd: list, cwd: str = None, input_text: str = None,
	timeout: float = None) -> subprocess.CompletedProcess:
	"""
	Run an external command and capture its output.

	The caller decides what a non-zero return code means.

	Args:
		cmd: Command list to execute.
		cwd: Working directory for the child process.
		input_text: Text piped to stdin.
		timeout: Seconds before the child is killed.

	Returns:
		subprocess.CompletedProcess: The completed process.
	"""
	showcmd = shlex.join([str(part) for part in cmd])
	say(f"CMD: '{showcmd}'")
	try:
		proc = subprocess.run(cmd, cwd=cwd, input=input_text,
			capture_output=True, text=True, timeout=timeout)
	except subprocess.TimeoutExpired as exc:
		raise errors.OperationTimeout(
			f"command timed out after {timeout} seconds: {showcmd}") from exc
	except OSError as exc:
		raise errors.ExternalFailure(f"could not start command: {showcmd}: {exc}") from exc
	return proc

#============================================

def parse_fps(raw_fps) -> Fraction:
	if raw_fps is None:
		raise RuntimeError("profile.fps is required")
	try:
		if isinstance(raw_fps, int):
			fps = Fraction(raw_fps, 1)
		elif isinstance(raw_fps, float):
			fps = Fraction(str(raw_fps))
		elif isinstance(raw_fps, str):
			if '/' in raw_fps:
				parts = raw_fps.split('/')
				fps = Fraction(int(parts[0]), int(parts[1]))
			else:
				fps = Fraction(raw_fps)
		else:
			raise RuntimeError("profile.fps must be int, float, or fraction string")
	except (ValueError, ZeroDivisionError) as exc:
		raise errors.NumParseError(f"could not parse fps: {raw_fps!r}") from exc
	if fps <= 0:
		raise RuntimeError("profile.fps must be positive")
	return fps

#============================================

def parse_int(raw_value, name: str) -> int:
	try:
		return int(str(raw_value).strip())
	except ValueError as exc:
		raise errors.NumParseError(f"{name} is not a whole number: {raw_value!r}") from exc

#============================================

def parse_float(raw_value, name: str) -> float:
	try:
		return float(str(raw_value).strip())
	except ValueError as exc:
		raise errors.NumParseError(f"{name} is not a number: {raw_value!r}") from exc

#============================================

def ticks_from_seconds(seconds: float, fps: Fraction) -> int:
	"""
	Convert seconds to frame ticks, truncating toward zero.

	The seconds value goes through its shortest decimal repr first, so
	1.5 at 30000/1001 is exactly 44.955... ticks and truncates to 44.
	"""
	seconds_fraction = Fraction(str(seconds))
	return int(seconds_fraction * fps)

#============================================

def seconds_from_ticks(ticks: int, fps: Fraction) -> float:
	seconds_fraction = Fraction(ticks, 1) / fps
	return float(seconds_fraction)

#============================================

def ensure_file_exists(filepath: str) -> None:
	if not os.path.exists(filepath):
		raise RuntimeError(f"file not found: {filepath}")
	return

#============================================

def make_timestamp() -> str:
	datestamp = time.strftime("%y%b%d").lower()
	uppercase = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
	hourstamp = uppercase[(time.localtime()[3]) % 26]
	minstamp = f"{time.localtime()[4]:02d}"
	secstamp = uppercase[(time.localtime()[5]) % 26]
	timestamp = datestamp + hourstamp + minstamp + secstamp
	return timestamp
