from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from config import ArchiverSettings
from conflicts import ConflictResolver, Decision
from interfaces import DecisionPrompt, Notifier, Storage, VaultItem
from paths import is_archived, normalize_path, parent_path, to_archive_path, to_original_path
from rules import matching_files


class FailureReason(Enum):
	ALREADY_IN_STATE = "already_in_state"
	CONFLICT_CANCELLED = "conflict_cancelled"
	STORAGE_FAILURE = "storage_failure"


@dataclass
class ArchiveResult:
	success: bool
	message: str
	reason: FailureReason | None = None


class Archiver:
	"""
	Move vault items into and out of the archive folder.

	The archive folder is read from `settings` on every call so changes made
	through the settings store apply to the next operation.
	"""

	def __init__(
		self,
		settings: ArchiverSettings,
		storage: Storage,
		prompt: DecisionPrompt,
		notifier: Notifier,
	):
		self.settings = settings
		self.storage = storage
		self.notifier = notifier
		self.conflicts = ConflictResolver(storage, prompt)

	@property
	def archive_root(self) -> str:
		return self.settings.archive_folder

	# --- single items -------------------------------------------------

	async def archive(self, item: VaultItem) -> ArchiveResult:
		root = self.archive_root
		if is_archived(item.path, root):
			return ArchiveResult(False, "Item is already archived", FailureReason.ALREADY_IN_STATE)

		# The vault root, or a folder holding the archive, cannot move into it.
		if not normalize_path(item.path) or is_archived(root, item.path):
			return ArchiveResult(
				False,
				f"Unable to archive {item.name or 'the vault root'}: it contains the archive folder",
				FailureReason.STORAGE_FAILURE,
			)

		destination = to_archive_path(item.path, root)
		try:
			decision = await self.conflicts.resolve(
				destination,
				"Replace archived item?",
				f'An item called "{item.name}" already exists in the destination folder '
				"in the archive. Would you like to replace it?",
			)
		except OSError as e:
			return ArchiveResult(False, f"Unable to archive {item.name}: {e}", FailureReason.STORAGE_FAILURE)

		if decision is Decision.CANCEL:
			return ArchiveResult(False, "Archive operation cancelled", FailureReason.CONFLICT_CANCELLED)

		try:
			await self._ensure_folder(parent_path(destination))
			await self.storage.move_item(item, destination)
		except OSError as e:
			return ArchiveResult(False, f"Unable to archive {item.name}: {e}", FailureReason.STORAGE_FAILURE)

		return ArchiveResult(True, f"{item.name} archived successfully")

	async def unarchive(self, item: VaultItem) -> ArchiveResult:
		root = self.archive_root
		try:
			destination = to_original_path(item.path, root)
		except ValueError:
			return ArchiveResult(False, "Item is not archived", FailureReason.ALREADY_IN_STATE)

		try:
			decision = await self.conflicts.resolve(
				destination,
				"Replace existing item?",
				f'An item called "{item.name}" already exists in the original location. '
				"Would you like to replace it?",
			)
		except OSError as e:
			return ArchiveResult(False, f"Unable to unarchive {item.name}: {e}", FailureReason.STORAGE_FAILURE)

		if decision is Decision.CANCEL:
			return ArchiveResult(False, "Unarchive operation cancelled", FailureReason.CONFLICT_CANCELLED)

		try:
			await self._ensure_folder(parent_path(destination))
			await self.storage.move_item(item, destination)
		except OSError as e:
			return ArchiveResult(False, f"Unable to unarchive {item.name}: {e}", FailureReason.STORAGE_FAILURE)

		return ArchiveResult(True, f"{item.name} unarchived successfully")

	async def _ensure_folder(self, path: str) -> None:
		if not path:
			return
		if await self.storage.find_folder(path) is None:
			await self.storage.create_folder(path)

	# --- batches ------------------------------------------------------

	async def archive_all(self, items: Iterable[VaultItem]) -> int:
		"""Archive items one after another; returns how many succeeded."""
		archived = 0
		for item in items:
			if (await self.archive(item)).success:
				archived += 1

		self.notifier.notify(f"{archived} files archived")
		return archived

	async def unarchive_all(self, items: Iterable[VaultItem]) -> int:
		unarchived = 0
		for item in items:
			if (await self.unarchive(item)).success:
				unarchived += 1

		self.notifier.notify(f"{unarchived} files unarchived")
		return unarchived

	# --- auto archive -------------------------------------------------

	async def run_auto_archive_sweep(self, now: float | None = None) -> int:
		"""
		Archive every file matched by an enabled rule.

		The rule list is copied up front; each rule's matches are gathered
		before any of them is moved. Rules pointing at a missing folder
		contribute nothing.
		"""
		rules = self.settings.enabled_rules()
		if not rules:
			return 0

		total = 0
		for rule in rules:
			matches = await matching_files(rule, self.storage, self.archive_root, now)
			for item in matches:
				result = await self.archive(item)
				if result.success:
					total += 1
				elif result.reason is FailureReason.STORAGE_FAILURE:
					print(f"[WARN] Auto-archive: {result.message}")

		if total > 0:
			print(f"[AUTO] {total} files archived")
		return total
