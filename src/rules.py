"""
Auto-archive rule evaluation.

A rule targets the direct children of one folder and combines its
conditions with AND or OR. Conditions that cannot be evaluated (bad age
value, broken pattern, unknown type) simply do not match, so one bad
condition never stops a sweep.
"""

from __future__ import annotations

import re
from typing import List

from config import (
	AutoArchiveCondition,
	AutoArchiveRule,
	FILE_AGE,
	LOGIC_OR,
	REGEX_PATTERN,
)
from interfaces import Storage, VaultItem
from paths import is_archived, normalize_path
from util import age_in_days


_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def parse_age_days(value: str) -> int | None:
	"""
	Read the leading integer of an age value ("7", " 7 days").
	Returns None for non-numeric or negative values.
	"""
	match = _LEADING_INT.match(value or "")
	if not match:
		return None
	days = int(match.group(1))
	if days < 0:
		return None
	return days


async def evaluate_condition(
	item: VaultItem,
	condition: AutoArchiveCondition,
	storage: Storage,
	now: float | None = None,
) -> bool:
	if condition.type == FILE_AGE:
		days = parse_age_days(condition.value)
		if days is None:
			return False

		stats = await storage.stat(item.path)
		if stats is None:
			return False

		return age_in_days(stats.mtime, now) >= days

	if condition.type == REGEX_PATTERN:
		try:
			pattern = re.compile(condition.value)
		except re.error as e:
			print(f"[WARN] Invalid regex pattern in auto-archive rule: {condition.value!r} ({e})")
			return False
		return pattern.search(item.name) is not None

	return False


async def evaluate_rule(
	item: VaultItem,
	rule: AutoArchiveRule,
	storage: Storage,
	archive_root: str,
	now: float | None = None,
) -> bool:
	"""
	Return True when `item` satisfies `rule`.

	Archived items and rules without conditions never match. OR stops at
	the first matching condition, AND at the first failing one.
	"""
	if is_archived(item.path, archive_root):
		return False

	if not rule.conditions:
		return False

	if rule.logic_operator == LOGIC_OR:
		for condition in rule.conditions:
			if await evaluate_condition(item, condition, storage, now):
				return True
		return False

	for condition in rule.conditions:
		if not await evaluate_condition(item, condition, storage, now):
			return False
	return True


async def find_candidates(rule: AutoArchiveRule, storage: Storage) -> List[VaultItem]:
	"""Direct-child files of the rule's folder (empty if the folder is gone)."""
	folder = await storage.find_folder(normalize_path(rule.folder_path))
	if folder is None:
		return []

	children = await storage.list_children(folder)
	return [child for child in children if not child.is_folder]


async def matching_files(
	rule: AutoArchiveRule,
	storage: Storage,
	archive_root: str,
	now: float | None = None,
) -> List[VaultItem]:
	candidates = await find_candidates(rule, storage)
	matches = []
	for item in candidates:
		if await evaluate_rule(item, rule, storage, archive_root, now):
			matches.append(item)
	return matches


def describe_condition(condition: AutoArchiveCondition) -> str:
	if condition.type == FILE_AGE:
		return f"File age ≥ {condition.value} days"
	if condition.type == REGEX_PATTERN:
		return f"File name matches: {condition.value}"
	return "Unknown condition"
