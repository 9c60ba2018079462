from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List
import re
import uuid
import yaml

from humanfriendly import InvalidTimespan, format_timespan, parse_timespan


FILE_AGE = "fileAge"
REGEX_PATTERN = "regexPattern"

LOGIC_AND = "AND"
LOGIC_OR = "OR"
LOGIC_OPERATORS = (LOGIC_AND, LOGIC_OR)

DEFAULT_ARCHIVE_FOLDER = "Archive"
DEFAULT_FREQUENCY_MINUTES = 60
SETTINGS_VERSION = 2

# Leading ".", a segment starting with "." or any ":".
_INVALID_FOLDER = re.compile(r"^\.|[:/\\]\.|:")


def validate_archive_folder(value: str) -> bool:
	"""
	Return True when `value` is usable as the archive folder.
	Hidden folders and names containing ":" are rejected.
	"""
	if not isinstance(value, str) or not value.strip():
		return False
	return _INVALID_FOLDER.search(value) is None


def parse_frequency(value: str | int | float) -> int:
	"""
	Normalize an auto-archive frequency into whole minutes.

	Accepts numbers (minutes) or human-friendly durations such as
	"6 hours" or "1 day".
	"""
	if isinstance(value, bool):
		raise TypeError("Boolean is not a valid frequency")

	if isinstance(value, (int, float)):
		minutes = int(value)
	elif isinstance(value, str):
		text = value.strip()
		if not text:
			raise ValueError("empty frequency")
		if text.isdigit():
			minutes = int(text)
		else:
			try:
				minutes = int(parse_timespan(text) // 60)
			except InvalidTimespan as e:
				raise ValueError(str(e)) from e
	else:
		raise TypeError(f"Unsupported frequency type: {type(value)!r}")

	if minutes <= 0:
		raise ValueError("frequency must be at least one minute")
	return minutes


def describe_frequency(minutes: int) -> str:
	return format_timespan(minutes * 60)


###############################################################################
# Rules
###############################################################################

@dataclass
class AutoArchiveCondition:
	type: str = FILE_AGE                # fileAge / regexPattern
	value: str = ""                     # days, or a regular expression


@dataclass
class AutoArchiveRule:
	id: str = field(default_factory=lambda: str(uuid.uuid4()))
	enabled: bool = True
	folder_path: str = ""
	conditions: List[AutoArchiveCondition] = field(default_factory=list)
	logic_operator: str = LOGIC_AND


###############################################################################
# Settings root
###############################################################################

@dataclass
class ArchiverSettings:
	archive_folder: str = DEFAULT_ARCHIVE_FOLDER
	auto_archive_rules: List[AutoArchiveRule] = field(default_factory=list)
	auto_archive_frequency: int = DEFAULT_FREQUENCY_MINUTES     # minutes

	def enabled_rules(self) -> List[AutoArchiveRule]:
		return [rule for rule in self.auto_archive_rules if rule.enabled]


###############################################################################
# Loader
###############################################################################

# Keys written by the host application (camelCase) map onto ours.
_KEY_ALIASES = {
	"archiveFolder": "archive_folder",
	"autoArchiveRules": "auto_archive_rules",
	"autoArchiveFrequency": "auto_archive_frequency",
	"folderPath": "folder_path",
	"logicOperator": "logic_operator",
}


def _canonical_keys(raw: Dict[str, Any]) -> Dict[str, Any]:
	return {_KEY_ALIASES.get(key, key): val for key, val in raw.items()}


def migrate_settings(raw: Dict[str, Any]) -> Dict[str, Any]:
	"""
	Upgrade a raw settings document to the current version.

	Version 1 documents predate compound rules; their rules get the
	AND operator, which is how a single-condition rule behaved.
	"""
	data = _canonical_keys(raw)
	try:
		version = int(data.get("version") or 1)
	except (TypeError, ValueError):
		raise ValueError(f"invalid settings version: {data.get('version')!r}")

	rules = data.get("auto_archive_rules") or []
	if not isinstance(rules, list) or not all(isinstance(entry, dict) for entry in rules):
		raise ValueError("auto_archive_rules must be a list of mappings")

	for entry in rules:
		if not isinstance(entry.get("conditions") or [], list) or not all(
			isinstance(cond, dict) for cond in entry.get("conditions") or []
		):
			raise ValueError(f"conditions of rule {entry.get('id')!r} must be a list of mappings")

	if version > SETTINGS_VERSION:
		raise ValueError(f"settings version {version} is newer than supported ({SETTINGS_VERSION})")

	if version < 2:
		rules = []
		for entry in data.get("auto_archive_rules") or []:
			entry = _canonical_keys(entry)
			if not entry.get("logic_operator"):
				entry["logic_operator"] = LOGIC_AND
			rules.append(entry)
		data["auto_archive_rules"] = rules

	data["version"] = SETTINGS_VERSION
	return data


def _parse_rule(entry: Dict[str, Any]) -> AutoArchiveRule:
	entry = _canonical_keys(entry)

	conditions = []
	for cond in entry.get("conditions") or []:
		value = cond.get("value")
		conditions.append(
			AutoArchiveCondition(
				type=str(cond.get("type", FILE_AGE)),
				value="" if value is None else str(value),
			)
		)

	operator = str(entry.get("logic_operator") or LOGIC_AND).upper()
	if operator not in LOGIC_OPERATORS:
		raise ValueError(f"unknown logic operator: {operator}")

	rule_id = entry.get("id") or str(uuid.uuid4())

	return AutoArchiveRule(
		id=str(rule_id),
		enabled=bool(entry.get("enabled", True)),
		folder_path=str(entry.get("folder_path") or ""),
		conditions=conditions,
		logic_operator=operator,
	)


def parse_settings(raw: Dict[str, Any]) -> ArchiverSettings:
	"""Build settings from a raw document, merged over the defaults."""
	data = migrate_settings(raw)
	settings = ArchiverSettings()

	if "archive_folder" in data:
		folder = data["archive_folder"]
		if not validate_archive_folder(folder):
			raise ValueError(f"invalid archive folder: {folder!r}")
		settings.archive_folder = folder

	if "auto_archive_frequency" in data:
		settings.auto_archive_frequency = parse_frequency(data["auto_archive_frequency"])

	settings.auto_archive_rules = [
		_parse_rule(entry) for entry in data.get("auto_archive_rules") or []
	]
	return settings


def load_settings(path: str | Path) -> ArchiverSettings:
	"""
	Read the YAML settings file. A missing file yields the defaults.
	"""
	p = Path(path)
	if not p.exists():
		return ArchiverSettings()

	with p.open("r", encoding="utf-8") as f:
		raw = yaml.safe_load(f) or {}

	if not isinstance(raw, dict):
		raise ValueError(f"settings file must contain a mapping: {p}")

	return parse_settings(raw)


def settings_to_dict(settings: ArchiverSettings) -> Dict[str, Any]:
	return {
		"version": SETTINGS_VERSION,
		"archive_folder": settings.archive_folder,
		"auto_archive_frequency": settings.auto_archive_frequency,
		"auto_archive_rules": [
			{
				"id": rule.id,
				"enabled": rule.enabled,
				"folder_path": rule.folder_path,
				"logic_operator": rule.logic_operator,
				"conditions": [
					{"type": cond.type, "value": cond.value}
					for cond in rule.conditions
				],
			}
			for rule in settings.auto_archive_rules
		],
	}


def save_settings(settings: ArchiverSettings, path: str | Path) -> None:
	p = Path(path)
	p.parent.mkdir(parents=True, exist_ok=True)
	with p.open("w", encoding="utf-8") as f:
		yaml.safe_dump(settings_to_dict(settings), f, sort_keys=False, allow_unicode=True)


###############################################################################
# Mutable store
###############################################################################

class SettingsStore:
	"""
	Owns the process-wide settings and persists every mutation.

	Frequency listeners are called after the new value was saved, which is
	how a running scheduler learns it must reschedule.
	"""

	def __init__(self, path: str | Path, settings: ArchiverSettings | None = None):
		self.path = Path(path)
		self.settings = settings if settings is not None else load_settings(self.path)
		self._frequency_listeners: List[Callable[[int], None]] = []

	def save(self) -> None:
		save_settings(self.settings, self.path)

	def on_frequency_change(self, listener: Callable[[int], None]) -> None:
		self._frequency_listeners.append(listener)

	def _frequency_changed(self, minutes: int) -> None:
		for listener in self._frequency_listeners:
			listener(minutes)

	def reload(self) -> None:
		"""
		Re-read the settings file into the existing settings object.

		Holders of `self.settings` see the new values; frequency listeners
		fire when the frequency differs.
		"""
		fresh = load_settings(self.path)
		previous = self.settings.auto_archive_frequency

		self.settings.archive_folder = fresh.archive_folder
		self.settings.auto_archive_rules = fresh.auto_archive_rules
		self.settings.auto_archive_frequency = fresh.auto_archive_frequency

		if fresh.auto_archive_frequency != previous:
			self._frequency_changed(fresh.auto_archive_frequency)

	def set_archive_folder(self, value: str) -> bool:
		"""Store a new archive folder; invalid values keep the prior one."""
		if not validate_archive_folder(value):
			return False
		self.settings.archive_folder = value
		self.save()
		return True

	def set_frequency(self, value: str | int | float) -> int:
		minutes = parse_frequency(value)
		self.settings.auto_archive_frequency = minutes
		self.save()
		self._frequency_changed(minutes)
		return minutes

	def new_rule(self, folder_path: str = "", conditions=None, logic_operator: str = LOGIC_AND,
			enabled: bool = True) -> AutoArchiveRule:
		rule = AutoArchiveRule(
			enabled=enabled,
			folder_path=folder_path,
			conditions=list(conditions or []),
			logic_operator=logic_operator,
		)
		self.add_rule(rule)
		return rule

	def add_rule(self, rule: AutoArchiveRule) -> None:
		if rule.logic_operator not in LOGIC_OPERATORS:
			raise ValueError(f"unknown logic operator: {rule.logic_operator}")
		if self.get_rule(rule.id) is not None:
			raise ValueError(f"duplicate rule id: {rule.id}")
		self.settings.auto_archive_rules.append(rule)
		self.save()

	def get_rule(self, rule_id: str) -> AutoArchiveRule | None:
		for rule in self.settings.auto_archive_rules:
			if rule.id == rule_id:
				return rule
		return None

	def update_rule(self, rule: AutoArchiveRule) -> None:
		rules = self.settings.auto_archive_rules
		for idx, existing in enumerate(rules):
			if existing.id == rule.id:
				rules[idx] = rule
				self.save()
				return
		raise KeyError(rule.id)

	def set_rule_enabled(self, rule_id: str, enabled: bool) -> None:
		rule = self.get_rule(rule_id)
		if rule is None:
			raise KeyError(rule_id)
		rule.enabled = enabled
		self.save()

	def remove_rule(self, rule_id: str) -> bool:
		before = len(self.settings.auto_archive_rules)
		self.settings.auto_archive_rules = [
			rule for rule in self.settings.auto_archive_rules if rule.id != rule_id
		]
		removed = len(self.settings.auto_archive_rules) != before
		if removed:
			self.save()
		return removed
