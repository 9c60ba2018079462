from __future__ import annotations

from dataclasses import dataclass


NOW = 1_700_000_000.0
DAY = 60 * 60 * 24


@dataclass(frozen=True)
class FakeItem:
	path: str
	name: str
	is_folder: bool = False


@dataclass(frozen=True)
class FakeStat:
	mtime: float


def _parent(path: str) -> str:
	return path.rsplit("/", 1)[0] if "/" in path else ""


def _name(path: str) -> str:
	return path.rsplit("/", 1)[-1]


class FakeVault:
	"""In-memory Storage that records every mutation."""

	def __init__(self):
		self.files: dict[str, float] = {}     # path -> mtime
		self.folders: set[str] = set()
		self.moves: list[tuple[str, str]] = []
		self.deleted: list[str] = []
		self.created: list[str] = []
		self.fail_moves: set[str] = set()

	def add_folder(self, path: str) -> None:
		while path and path not in self.folders:
			self.folders.add(path)
			path = _parent(path)

	def add_file(self, path: str, mtime: float = NOW) -> FakeItem:
		self.add_folder(_parent(path))
		self.files[path] = mtime
		return FakeItem(path, _name(path))

	def item(self, path: str) -> FakeItem | None:
		if path in self.files:
			return FakeItem(path, _name(path))
		if path in self.folders:
			return FakeItem(path, _name(path), is_folder=True)
		return None

	async def stat(self, path):
		if path in self.files:
			return FakeStat(self.files[path])
		return None

	async def find_folder(self, path):
		if path == "":
			return FakeItem("", "", is_folder=True)
		if path in self.folders:
			return FakeItem(path, _name(path), is_folder=True)
		return None

	async def list_children(self, folder):
		children = [self.item(p) for p in sorted(self.folders | set(self.files)) if _parent(p) == folder.path]
		return [child for child in children if child is not None]

	async def create_folder(self, path):
		if path in self.folders:
			raise FileExistsError(path)
		self.created.append(path)
		self.add_folder(path)

	async def find_item(self, path):
		return self.item(path)

	async def move_item(self, item, destination):
		if item.path in self.fail_moves:
			raise PermissionError(f"permission denied: {item.path}")
		if self.item(destination) is not None:
			raise FileExistsError(destination)
		if _parent(destination) and _parent(destination) not in self.folders:
			raise FileNotFoundError(_parent(destination))
		self.moves.append((item.path, destination))
		if item.is_folder:
			prefix = item.path + "/"
			self.folders = {
				destination + p[len(item.path):] if p == item.path or p.startswith(prefix) else p
				for p in self.folders
			}
			self.files = {
				(destination + p[len(item.path):] if p.startswith(prefix) else p): m
				for p, m in self.files.items()
			}
		else:
			self.files[destination] = self.files.pop(item.path)

	async def delete_item(self, item):
		self.deleted.append(item.path)
		if item.is_folder:
			prefix = item.path + "/"
			self.folders = {p for p in self.folders if p != item.path and not p.startswith(prefix)}
			self.files = {p: m for p, m in self.files.items() if not p.startswith(prefix)}
		else:
			del self.files[item.path]


class ScriptedPrompt:
	"""Answer conflict prompts from a fixed list and remember the questions."""

	def __init__(self, *answers):
		self.answers = list(answers)
		self.calls = []

	async def prompt_user_decision(self, title, message, yes_label, no_label):
		self.calls.append((title, message, yes_label, no_label))
		if not self.answers:
			raise AssertionError(f"unexpected prompt: {title}")
		return self.answers.pop(0)


class RecordingNotifier:
	def __init__(self):
		self.messages = []

	def notify(self, message):
		self.messages.append(message)
