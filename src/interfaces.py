from __future__ import annotations

from typing import Protocol, Optional, Sequence


class VaultItem(Protocol):
	path: str       # normalized vault path
	name: str       # basename
	is_folder: bool


class FileStat(Protocol):
	mtime: float    # last modification, seconds since the epoch


class Storage(Protocol):
	async def stat(self, path: str) -> Optional[FileStat]:
		"""Return modification info for a path, or None when unavailable."""
		...

	async def find_folder(self, path: str) -> Optional[VaultItem]:
		"""Return the folder at `path`, or None if it does not exist."""
		...

	async def list_children(self, folder: VaultItem) -> Sequence[VaultItem]:
		"""Return the direct children of a folder."""
		...

	async def create_folder(self, path: str) -> None:
		"""
		Create a folder (and any missing parents).
		Callers check for existence first.
		"""
		...

	async def find_item(self, path: str) -> Optional[VaultItem]:
		"""Return the file or folder at `path`, or None."""
		...

	async def move_item(self, item: VaultItem, destination: str) -> None:
		"""Move an item to `destination`. Raises OSError on failure."""
		...

	async def delete_item(self, item: VaultItem) -> None:
		"""Discard an item (the host may keep it in a trash)."""
		...


class DecisionPrompt(Protocol):
	async def prompt_user_decision(
		self,
		title: str,
		message: str,
		yes_label: str,
		no_label: str,
	) -> Optional[str]:
		"""
		Ask the user a yes/no question.
		Returns "yes", "no", or None when the prompt was dismissed.
		"""
		...


class Notifier(Protocol):
	def notify(self, message: str) -> None:
		"""Show a user-visible message. Not used for control flow."""
		...
