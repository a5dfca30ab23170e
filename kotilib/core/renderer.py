#!/usr/bin/env python3

import os
from kotilib.core import errors
from kotilib.core import utils

#============================================

PROJECT_FILE = "project.mlt"

#============================================

class Renderer():
	"""
	Write the compiled program as an MLT document and render it with melt.

	Args:
		work_dir: Scratch directory; holds project.mlt and the rendered video.
		output: Container and codec settings (format, vcodec, acodec).
		melt: melt executable.
		timeout: Seconds melt may run.
	"""
	def __init__(self, work_dir: str, output: dict = None, melt: str = 'melt',
		timeout: float = 3600):
		self.work_dir = work_dir
		self.output = dict(output or {})
		self.output.setdefault('format', 'webm')
		self.melt = melt
		self.timeout = timeout

	#============================
	def target_path(self) -> str:
		return os.path.join(self.work_dir, f"koti.{self.output['format']}")

	#============================
	def write_project(self, program) -> str:
		project_file = os.path.join(self.work_dir, PROJECT_FILE)
		program.composition.write(project_file, program.main_tractor,
			program.total_ticks, self.target_path(), self.output)
		utils.say(f"wrote {project_file}")
		return project_file

	#============================
	def render(self, program) -> str:
		project_file = self.write_project(program)
		target = self.target_path()
		cmd = [self.melt, os.path.basename(project_file)]
		proc = utils.run_process(cmd, cwd=self.work_dir, timeout=self.timeout)
		if proc.returncode != 0:
			raise errors.RenderFailed(
				f"melt failed with code {proc.returncode}: {proc.stderr.strip()[-500:]}",
				returncode=proc.returncode, stdout=proc.stdout, stderr=proc.stderr)
		if not os.path.isfile(target):
			raise errors.RenderFailed(f"melt finished but wrote no video to {target}",
				returncode=proc.returncode, stdout=proc.stdout, stderr=proc.stderr)
		utils.say(f"rendered {target}")
		return target
