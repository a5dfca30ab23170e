#!/usr/bin/env python3

import threading
from kotilib.core import errors

#============================================

class OneShot():
	"""
	Single-producer, single-consumer handoff of one value between threads.
	"""
	def __init__(self, name: str = "value"):
		self.name = name
		self._lock = threading.Lock()
		self._ready = threading.Event()
		self._value = None
		self._sent = False
		self._taken = False

	#============================
	def send(self, value) -> None:
		with self._lock:
			if self._sent:
				raise RuntimeError(f"{self.name} was already sent")
			self._value = value
			self._sent = True
		self._ready.set()

	#============================
	def receive(self, timeout: float = None):
		if not self._ready.wait(timeout):
			raise errors.OperationTimeout(
				f"gave up waiting for {self.name} after {timeout} seconds")
		with self._lock:
			if self._taken:
				raise RuntimeError(f"{self.name} was already taken")
			self._taken = True
			value = self._value
			self._value = None
		return value

	#============================
	def is_sent(self) -> bool:
		return self._ready.is_set()
