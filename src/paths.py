"""
Vault path helpers.

Vault paths are always `/`-separated and relative to the vault root.
Archived items mirror their original location under the archive root,
so `Notes/todo.md` is archived as `Archive/Notes/todo.md`.
"""

from __future__ import annotations

import re
import unicodedata


_SLASHES = re.compile(r"/{2,}")


def normalize_path(path: str) -> str:
	"""
	Return the canonical form of a vault path.

	Backslashes become forward slashes, duplicate separators collapse,
	`.` segments and leading/trailing separators are dropped.
	"""
	text = unicodedata.normalize("NFC", path or "")
	text = text.replace("\\", "/").replace("\u00a0", " ").replace("\u202f", " ")
	text = _SLASHES.sub("/", text)
	parts = [part for part in text.split("/") if part not in ("", ".")]
	return "/".join(parts)


def parent_path(path: str) -> str:
	"""Return the parent folder of a vault path ("" for items at the root)."""
	norm = normalize_path(path)
	idx = norm.rfind("/")
	if idx < 0:
		return ""
	return norm[:idx]


def is_archived(path: str, archive_root: str) -> bool:
	"""
	True when `path` is the archive root or lives underneath it.

	The comparison is per path segment: `ArchiveX/a.md` is not inside
	`Archive`.
	"""
	norm = normalize_path(path)
	root = normalize_path(archive_root)
	if not root:
		return False
	return norm == root or norm.startswith(root + "/")


def to_archive_path(path: str, archive_root: str) -> str:
	"""Destination of `path` inside the archive, keeping its full structure."""
	return normalize_path(f"{archive_root}/{path}")


def to_original_path(path: str, archive_root: str) -> str:
	"""
	Recover the original location of an archived path.
	Raises ValueError when `path` is not inside the archive root.
	"""
	norm = normalize_path(path)
	root = normalize_path(archive_root)
	if not is_archived(norm, root) or norm == root:
		raise ValueError(f"{path!r} is not inside archive folder {archive_root!r}")
	return norm[len(root) + 1:]
