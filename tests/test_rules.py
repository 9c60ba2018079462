import pytest

from config import AutoArchiveCondition, AutoArchiveRule, FILE_AGE, REGEX_PATTERN
from helpers import DAY, NOW, FakeItem, FakeVault
from rules import (
	describe_condition,
	evaluate_condition,
	evaluate_rule,
	find_candidates,
	matching_files,
	parse_age_days,
)


def age(days):
	return AutoArchiveCondition(FILE_AGE, str(days))


def pattern(expr):
	return AutoArchiveCondition(REGEX_PATTERN, expr)


def _vault_with(path, days_old):
	vault = FakeVault()
	item = vault.add_file(path, mtime=NOW - days_old * DAY)
	return vault, item


@pytest.mark.parametrize(
	"value,expected",
	[
		("7", 7),
		(" 7", 7),
		("7 days", 7),
		("0", 0),
		("abc", None),
		("", None),
		("-3", None),
	],
)
def test_parse_age_days(value, expected):
	assert parse_age_days(value) == expected


@pytest.mark.asyncio
async def test_file_age_matches_at_or_beyond_threshold():
	vault, item = _vault_with("Inbox/a.md", 7)
	assert await evaluate_condition(item, age(7), vault, now=NOW)
	assert await evaluate_condition(item, age(6), vault, now=NOW)
	assert not await evaluate_condition(item, age(8), vault, now=NOW)


@pytest.mark.asyncio
async def test_file_age_uses_fractional_days():
	vault, item = _vault_with("Inbox/a.md", 6.5)
	assert not await evaluate_condition(item, age(7), vault, now=NOW)
	assert await evaluate_condition(item, age(6), vault, now=NOW)


@pytest.mark.parametrize("value", ["abc", "", "-1"])
@pytest.mark.asyncio
async def test_non_numeric_age_never_matches(value):
	vault, item = _vault_with("Inbox/a.md", 1000)
	condition = AutoArchiveCondition(FILE_AGE, value)
	assert not await evaluate_condition(item, condition, vault, now=NOW)


@pytest.mark.asyncio
async def test_file_age_without_stat_never_matches():
	vault = FakeVault()
	ghost = FakeItem("Inbox/ghost.md", "ghost.md")
	assert not await evaluate_condition(ghost, age(0), vault, now=NOW)


@pytest.mark.asyncio
async def test_regex_is_searched_in_file_name():
	vault, item = _vault_with("Daily/2024-01-05 log.md", 0)
	assert await evaluate_condition(item, pattern(r"\d{4}-\d{2}-\d{2}"), vault)
	assert await evaluate_condition(item, pattern(r"log\.md$"), vault)
	assert not await evaluate_condition(item, pattern(r"^Daily"), vault)


@pytest.mark.asyncio
async def test_invalid_regex_never_matches_and_is_logged(capsys):
	vault, item = _vault_with("Inbox/[draft].md", 0)

	assert not await evaluate_condition(item, pattern("[draft"), vault)

	out = capsys.readouterr().out
	assert "[WARN] Invalid regex pattern" in out
	assert "[draft" in out


@pytest.mark.asyncio
async def test_unknown_condition_type_never_matches():
	vault, item = _vault_with("Inbox/a.md", 100)
	condition = AutoArchiveCondition("fileSize", "1")
	assert not await evaluate_condition(item, condition, vault, now=NOW)


@pytest.mark.parametrize("operator", ["AND", "OR"])
@pytest.mark.asyncio
async def test_rule_without_conditions_never_matches(operator):
	vault, item = _vault_with("Inbox/a.md", 100)
	rule = AutoArchiveRule(folder_path="Inbox", conditions=[], logic_operator=operator)
	assert not await evaluate_rule(item, rule, vault, "Archive", now=NOW)


@pytest.mark.parametrize(
	"conditions,operator,expected",
	[
		([age(7), pattern("^old")], "AND", True),
		([age(7), pattern("^new")], "AND", False),
		([age(30), pattern("^old")], "AND", False),
		([age(30), pattern("^old")], "OR", True),
		([age(30), pattern("^new")], "OR", False),
		([pattern("[broken"), age(7)], "OR", True),
		([pattern("[broken"), age(7)], "AND", False),
	],
)
@pytest.mark.asyncio
async def test_logic_operator_combines_conditions(conditions, operator, expected):
	vault, item = _vault_with("Inbox/old-note.md", 10)
	rule = AutoArchiveRule(folder_path="Inbox", conditions=conditions, logic_operator=operator)
	assert await evaluate_rule(item, rule, vault, "Archive", now=NOW) is expected


@pytest.mark.asyncio
async def test_archived_files_never_match():
	vault, item = _vault_with("Archive/Inbox/old.md", 100)
	rule = AutoArchiveRule(folder_path="Archive/Inbox", conditions=[age(1)])
	assert not await evaluate_rule(item, rule, vault, "Archive", now=NOW)


@pytest.mark.asyncio
async def test_or_stops_at_first_match():
	class CountingVault(FakeVault):
		stats = 0

		async def stat(self, path):
			CountingVault.stats += 1
			return await super().stat(path)

	vault = CountingVault()
	item = vault.add_file("Inbox/old.md", mtime=NOW - 10 * DAY)
	rule = AutoArchiveRule(conditions=[pattern("old"), age(1)], logic_operator="OR")

	assert await evaluate_rule(item, rule, vault, "Archive", now=NOW)
	assert CountingVault.stats == 0


@pytest.mark.asyncio
async def test_candidates_are_direct_child_files_only():
	vault = FakeVault()
	vault.add_file("Inbox/a.md")
	vault.add_file("Inbox/b.md")
	vault.add_file("Inbox/Sub/c.md")
	vault.add_file("Other/d.md")
	rule = AutoArchiveRule(folder_path="Inbox/", conditions=[age(0)])

	candidates = await find_candidates(rule, vault)

	assert [c.path for c in candidates] == ["Inbox/a.md", "Inbox/b.md"]


@pytest.mark.asyncio
async def test_missing_folder_has_no_candidates():
	vault = FakeVault()
	rule = AutoArchiveRule(folder_path="Nowhere", conditions=[age(0)])
	assert await find_candidates(rule, vault) == []


@pytest.mark.asyncio
async def test_matching_files_filters_candidates():
	vault = FakeVault()
	vault.add_file("Inbox/old.md", mtime=NOW - 10 * DAY)
	vault.add_file("Inbox/new.md", mtime=NOW - 1 * DAY)
	rule = AutoArchiveRule(folder_path="Inbox", conditions=[age(7)])

	matches = await matching_files(rule, vault, "Archive", now=NOW)

	assert [m.path for m in matches] == ["Inbox/old.md"]


def test_describe_condition():
	assert describe_condition(age(7)) == "File age ≥ 7 days"
	assert describe_condition(pattern("^tmp")) == "File name matches: ^tmp"
	assert describe_condition(AutoArchiveCondition("other", "x")) == "Unknown condition"
