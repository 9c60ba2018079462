from __future__ import annotations

import asyncio
import traceback
from typing import Any, Awaitable, Callable


class AutoArchiveScheduler:
	"""
	Run the auto-archive sweep every `frequency_minutes`.

	At most one timer task is armed at a time; `start` and `reschedule`
	replace the previous one. Must be used from a running event loop.

	A sweep may itself reschedule or stop the timer (e.g. after reloading
	settings). The running sweep then completes and its task exits
	instead of being cancelled halfway through a move.
	"""

	def __init__(self, sweep: Callable[[], Awaitable[Any]]):
		self._sweep = sweep
		self._task: asyncio.Task | None = None
		self.frequency_minutes: float | None = None

	@property
	def active(self) -> bool:
		return self._task is not None and not self._task.done()

	def start(self, frequency_minutes: float) -> None:
		if frequency_minutes <= 0:
			raise ValueError("frequency must be positive")

		self.stop()
		self.frequency_minutes = frequency_minutes
		self._task = asyncio.get_running_loop().create_task(
			self._run(frequency_minutes * 60.0)
		)

	def reschedule(self, frequency_minutes: float) -> None:
		"""Replace the running timer with one using the new frequency."""
		self.start(frequency_minutes)

	def stop(self) -> None:
		task, self._task = self._task, None
		if task is not None and not self._is_current(task):
			task.cancel()

	@staticmethod
	def _is_current(task: asyncio.Task) -> bool:
		try:
			return asyncio.current_task() is task
		except RuntimeError:
			return False

	async def _run(self, interval_seconds: float) -> None:
		while True:
			await asyncio.sleep(interval_seconds)
			try:
				await self._sweep()
			except Exception as e:
				# Keep the timer alive; the next tick tries again.
				print(f"[ERROR] Auto-archive sweep failed: {e}")
				traceback.print_exc()

			if self._task is not asyncio.current_task():
				return
