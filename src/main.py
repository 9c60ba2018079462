#!/usr/bin/env python3
import sys
import asyncio
import traceback
import argparse

from archiver import Archiver
from config import (
	AutoArchiveCondition,
	FILE_AGE,
	LOGIC_OPERATORS,
	REGEX_PATTERN,
	SettingsStore,
	describe_frequency,
)
from fileops import LocalVault
from rules import describe_condition
from scheduler import AutoArchiveScheduler


def parse_args(argv=None):
	"""
	Build and parse the CLI.

	Returns:
		argparse.Namespace with the global options (config path, vault
		root, conflict answers) and the selected command.
	"""
	p = argparse.ArgumentParser(
		description="Move vault files into and out of an archive folder"
	)

	p.add_argument(
		"--config",
		default="archiver.yaml",
		help="Path to settings file"
	)

	p.add_argument(
		"--vault",
		default=".",
		help="Vault root directory"
	)

	answers = p.add_mutually_exclusive_group()
	answers.add_argument(
		"--yes",
		action="store_true",
		help="Replace conflicting items without asking"
	)
	answers.add_argument(
		"--no",
		action="store_true",
		help="Cancel on conflicting items without asking"
	)

	sub = p.add_subparsers(dest="command", required=True)

	cmd = sub.add_parser("archive", help="Move items into the archive")
	cmd.add_argument("paths", nargs="+", help="Vault paths (e.g. Notes/todo.md)")

	cmd = sub.add_parser("unarchive", help="Move archived items back")
	cmd.add_argument("paths", nargs="+", help="Archived vault paths (e.g. Archive/Notes/todo.md)")

	sub.add_parser("sweep", help="Run the auto-archive rules once")
	sub.add_parser("watch", help="Run the auto-archive rules on the configured schedule")

	cmd = sub.add_parser("set-folder", help="Change the archive folder")
	cmd.add_argument("folder")

	cmd = sub.add_parser("set-frequency", help="Change the auto-archive frequency")
	cmd.add_argument("frequency", help="Minutes, or a duration like '6 hours'")

	rules = sub.add_parser("rules", help="Manage auto-archive rules")
	rules_sub = rules.add_subparsers(dest="rules_command", required=True)

	rules_sub.add_parser("list", help="Show configured rules")

	cmd = rules_sub.add_parser("add", help="Add a rule")
	cmd.add_argument("--folder", required=True, help="Folder the rule applies to")
	cmd.add_argument("--age", action="append", default=[], help="Minimum file age in days")
	cmd.add_argument("--pattern", action="append", default=[], help="File name regular expression")
	cmd.add_argument("--logic", choices=LOGIC_OPERATORS, default="AND", help="How to combine conditions")
	cmd.add_argument("--disabled", action="store_true", help="Create the rule disabled")

	for name, desc in (("remove", "Delete a rule"), ("enable", "Enable a rule"), ("disable", "Disable a rule")):
		cmd = rules_sub.add_parser(name, help=desc)
		cmd.add_argument("rule_id")

	return p.parse_args(argv)


class ConsolePrompt:
	"""Ask conflict questions on stdin, unless an answer was given up front."""

	def __init__(self, answer: str | None = None):
		self.answer = answer

	async def prompt_user_decision(self, title, message, yes_label, no_label):
		if self.answer is not None:
			return self.answer

		question = f"{title}\n{message}\n[y] {yes_label} / [N] {no_label}: "
		try:
			reply = await asyncio.to_thread(input, question)
		except EOFError:
			return None
		if reply.strip().lower() in ("y", "yes"):
			return "yes"
		return "no"


class ConsoleNotifier:
	def notify(self, message: str) -> None:
		print(f"[INFO] {message}")


def _prompt_from_args(args) -> ConsolePrompt:
	if args.yes:
		return ConsolePrompt("yes")
	if args.no:
		return ConsolePrompt("no")
	return ConsolePrompt()


async def run_move(args, store: SettingsStore) -> int:
	"""Archive or unarchive the paths given on the command line."""
	vault = LocalVault(args.vault)
	archiver = Archiver(store.settings, vault, _prompt_from_args(args), ConsoleNotifier())

	items = []
	for path in args.paths:
		try:
			item = vault.entry(path)
		except OSError as e:
			print(f"[ERROR] {e}")
			continue
		if item is None:
			print(f"[WARN] Not found in vault: {path}")
			continue
		items.append(item)

	if not items:
		return 1

	if len(items) == 1:
		if args.command == "archive":
			result = await archiver.archive(items[0])
		else:
			result = await archiver.unarchive(items[0])
		tag = "OK" if result.success else "ERROR"
		print(f"[{tag}] {result.message}")
		return 0 if result.success else 1

	if args.command == "archive":
		done = await archiver.archive_all(items)
	else:
		done = await archiver.unarchive_all(items)
	return 0 if done == len(items) else 1


async def run_sweep(args, store: SettingsStore) -> int:
	vault = LocalVault(args.vault)
	archiver = Archiver(store.settings, vault, _prompt_from_args(args), ConsoleNotifier())
	total = await archiver.run_auto_archive_sweep()
	print(f"[DONE] Auto-archive sweep archived {total} files")
	return 0


async def run_watch(args, store: SettingsStore) -> int:
	"""
	Sweep on the configured schedule until interrupted.

	The settings file is re-read before every sweep, so changes made with
	other commands (rules, folder, frequency) apply without a restart.
	"""
	vault = LocalVault(args.vault)
	archiver = Archiver(store.settings, vault, _prompt_from_args(args), ConsoleNotifier())

	async def sweep():
		store.reload()
		await archiver.run_auto_archive_sweep()

	scheduler = AutoArchiveScheduler(sweep)
	store.on_frequency_change(scheduler.reschedule)

	minutes = store.settings.auto_archive_frequency
	scheduler.start(minutes)
	print(f"[OK] Auto-archive scheduled every {describe_frequency(minutes)}")

	try:
		await asyncio.Event().wait()
	finally:
		scheduler.stop()
	return 0


def run_rules(args, store: SettingsStore) -> int:
	if args.rules_command == "list":
		rules = store.settings.auto_archive_rules
		if not rules:
			print("No auto-archive rules configured yet.")
			return 0
		for rule in rules:
			state = "enabled" if rule.enabled else "disabled"
			print(f"{rule.id}  Folder: {rule.folder_path or '(not set)'}  [{state}]")
			if not rule.conditions:
				print("    No conditions set")
				continue
			if len(rule.conditions) > 1:
				print(f"    Logic: {rule.logic_operator}")
			for condition in rule.conditions:
				print(f"    • {describe_condition(condition)}")
		return 0

	if args.rules_command == "add":
		conditions = [AutoArchiveCondition(FILE_AGE, str(age)) for age in args.age]
		conditions += [AutoArchiveCondition(REGEX_PATTERN, pattern) for pattern in args.pattern]
		rule = store.new_rule(
			folder_path=args.folder,
			conditions=conditions,
			logic_operator=args.logic,
			enabled=not args.disabled,
		)
		if not conditions:
			print("[WARN] Rule has no conditions and will never match")
		print(f"[OK] Added rule {rule.id}")
		return 0

	if args.rules_command == "remove":
		if not store.remove_rule(args.rule_id):
			print(f"[ERROR] No rule with id {args.rule_id}")
			return 1
		print(f"[OK] Removed rule {args.rule_id}")
		return 0

	try:
		store.set_rule_enabled(args.rule_id, args.rules_command == "enable")
	except KeyError:
		print(f"[ERROR] No rule with id {args.rule_id}")
		return 1
	print(f"[OK] Rule {args.rule_id} {args.rules_command}d")
	return 0


def run_command(args, store: SettingsStore) -> int:
	if args.command in ("archive", "unarchive"):
		return asyncio.run(run_move(args, store))

	if args.command == "sweep":
		return asyncio.run(run_sweep(args, store))

	if args.command == "watch":
		return asyncio.run(run_watch(args, store))

	if args.command == "set-folder":
		if not store.set_archive_folder(args.folder):
			print(f"[ERROR] Invalid archive folder: {args.folder!r} (kept {store.settings.archive_folder!r})")
			return 1
		print(f"[OK] Archive folder set to {args.folder}")
		return 0

	if args.command == "set-frequency":
		minutes = store.set_frequency(args.frequency)
		print(f"[OK] Auto-archive frequency set to {describe_frequency(minutes)}")
		return 0

	return run_rules(args, store)


def main(argv=None) -> int:
	"""
	Load settings, then dispatch to the selected command.
	"""
	args = parse_args(argv)

	try:
		store = SettingsStore(args.config)
	except Exception as e:
		print(f"[ERROR] Failed to load settings: {e}")
		traceback.print_exc()
		return 1

	try:
		return run_command(args, store)
	except KeyboardInterrupt:
		print("\n[WARN] Interrupted by user")
		return 130
	except (ValueError, TypeError) as e:
		print(f"[ERROR] {e}")
		return 1


if __name__ == "__main__":
	sys.exit(main())
