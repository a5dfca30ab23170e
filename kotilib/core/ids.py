#!/usr/bin/env python3

import threading

#============================================

class IdAllocator():
	"""
	Issue unique ids per kind, e.g. producer_0000, producer_0001.

	Counters only grow and are safe to share between worker threads.
	"""
	def __init__(self):
		self._lock = threading.Lock()
		self._counters = {}

	#============================
	def next_number(self, kind: str) -> int:
		with self._lock:
			number = self._counters.get(kind, 0)
			self._counters[kind] = number + 1
		return number

	#============================
	def next_id(self, kind: str) -> str:
		return f"{kind}_{self.next_number(kind):04d}"
