from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import shutil
from typing import List, Optional

from paths import normalize_path


TRASH_FOLDER = ".trash"


@dataclass(frozen=True)
class VaultEntry:
	path: str
	name: str
	is_folder: bool


@dataclass(frozen=True)
class LocalStat:
	mtime: float
	size: int


class LocalVault:
	"""
	Storage backed by a directory on disk.

	Vault paths are relative to `root`. Deleted items are moved into a
	`.trash` folder inside the vault instead of being unlinked.
	"""

	def __init__(self, root: str | Path, trash: str = TRASH_FOLDER):
		self.root = Path(root).expanduser().resolve()
		if not self.root.is_dir():
			raise ValueError(f"vault must be an existing directory: {self.root}")
		self.trash = trash

	def _abs(self, path: str) -> Path:
		rel = normalize_path(path)
		target = (self.root / rel).resolve(strict=False) if rel else self.root
		if target != self.root and self.root not in target.parents:
			raise PermissionError(f"path {path!r} escapes the vault")
		return target

	def _entry(self, target: Path) -> VaultEntry:
		if target == self.root:
			return VaultEntry(path="", name="", is_folder=True)
		rel = target.relative_to(self.root).as_posix()
		return VaultEntry(path=rel, name=target.name, is_folder=target.is_dir())

	def entry(self, path: str) -> Optional[VaultEntry]:
		target = self._abs(path)
		if not target.exists():
			return None
		return self._entry(target)

	async def stat(self, path: str) -> Optional[LocalStat]:
		target = self._abs(path)
		try:
			st = target.stat()
		except FileNotFoundError:
			return None
		return LocalStat(mtime=st.st_mtime, size=st.st_size)

	async def find_folder(self, path: str) -> Optional[VaultEntry]:
		target = self._abs(path)
		if not target.is_dir():
			return None
		return self._entry(target)

	async def list_children(self, folder: VaultEntry) -> List[VaultEntry]:
		target = self._abs(folder.path)
		children = []
		for child in sorted(target.iterdir()):
			# The trash is host bookkeeping, not vault content.
			if target == self.root and child.name == self.trash:
				continue
			children.append(self._entry(child))
		return children

	async def create_folder(self, path: str) -> None:
		self._abs(path).mkdir(parents=True, exist_ok=False)

	async def find_item(self, path: str) -> Optional[VaultEntry]:
		return self.entry(path)

	async def move_item(self, item: VaultEntry, destination: str) -> None:
		source = self._abs(item.path)
		dest = self._abs(destination)
		if dest.exists():
			raise FileExistsError(f"destination already exists: {destination}")
		if not dest.parent.is_dir():
			raise FileNotFoundError(f"destination folder does not exist: {dest.parent}")
		shutil.move(str(source), str(dest))

	async def delete_item(self, item: VaultEntry) -> None:
		source = self._abs(item.path)
		trash_dir = self.root / self.trash
		trash_dir.mkdir(parents=True, exist_ok=True)

		dest = trash_dir / source.name
		counter = 1
		while dest.exists():
			dest = trash_dir / f"{source.stem} {counter}{source.suffix}"
			counter += 1
		shutil.move(str(source), str(dest))
