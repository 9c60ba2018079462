from __future__ import annotations

from enum import Enum

from interfaces import DecisionPrompt, Storage


class Decision(Enum):
	NO_CONFLICT = "no_conflict"   # destination is free
	REPLACE = "replace"           # existing item was discarded
	CANCEL = "cancel"             # user declined, nothing changed


REPLACE_LABEL = "Replace"
CANCEL_LABEL = "Cancel"


class ConflictResolver:
	"""
	Clear the way for a move into an occupied destination.

	An existing item is only ever discarded after the user explicitly
	chose to replace it. Any other answer, including a dismissed prompt,
	cancels without touching the vault.
	"""

	def __init__(self, storage: Storage, prompt: DecisionPrompt):
		self.storage = storage
		self.prompt = prompt

	async def resolve(self, destination: str, title: str, message: str) -> Decision:
		existing = await self.storage.find_item(destination)
		if existing is None:
			return Decision.NO_CONFLICT

		answer = await self.prompt.prompt_user_decision(
			title,
			message,
			REPLACE_LABEL,
			CANCEL_LABEL,
		)
		if answer != "yes":
			return Decision.CANCEL

		await self.storage.delete_item(existing)
		return Decision.REPLACE
