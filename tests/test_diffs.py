import pytest

from scriptflow.core.diffs import DiffApplyError, apply_unified_diff, make_unified_diff


LOGIN_SCRIPT = "\n".join([
    "import { test } from '@playwright/test';",
    "",
    "test('login', async ({ page }) => {",
    "  await page.goto('/login');",
    "  await page.fill('#user', 'alice');",
    "  await page.click('#submit');",
    "});",
    "",
])


def test_identical_content_has_empty_diff():
    assert make_unified_diff(LOGIN_SCRIPT, LOGIN_SCRIPT) == ""
    assert apply_unified_diff(LOGIN_SCRIPT, "") == LOGIN_SCRIPT


def test_diff_has_file_headers():
    diff = make_unified_diff("step1", "step1\nstep2")
    lines = diff.split("\n")
    assert lines[0] == "--- a/script"
    assert lines[1] == "+++ b/script"
    assert lines[2].startswith("@@")


@pytest.mark.parametrize("updated", [
    LOGIN_SCRIPT.replace("await page.click('#submit');", "await page.getByRole('button').click();"),
    LOGIN_SCRIPT + "// trailing note",
    "// header\n" + LOGIN_SCRIPT,
    LOGIN_SCRIPT.rstrip("\n"),
    "",
])
def test_apply_reproduces_updated_content(updated):
    diff = make_unified_diff(LOGIN_SCRIPT, updated)
    assert apply_unified_diff(LOGIN_SCRIPT, diff) == updated


def test_apply_from_empty_content():
    diff = make_unified_diff("", "step1\nstep2")
    assert apply_unified_diff("", diff) == "step1\nstep2"


def test_apply_multiple_hunks():
    original = "\n".join(f"line {i}" for i in range(1, 41))
    updated = original.replace("line 3", "line three").replace("line 35", "line thirty-five")
    diff = make_unified_diff(original, updated)

    assert diff.count("@@ -") == 2
    assert apply_unified_diff(original, diff) == updated


def test_apply_to_changed_content_fails():
    diff = make_unified_diff("step1\nstep2", "step1\nstep2 improved")
    with pytest.raises(DiffApplyError):
        apply_unified_diff("step1\nsomething else", diff)


def test_apply_garbage_fails():
    with pytest.raises(DiffApplyError):
        apply_unified_diff("step1", "this is not a diff")


def test_truncated_hunk_fails():
    diff = "--- a/script\n+++ b/script\n@@ -1,2 +1,2 @@\n-step1"
    with pytest.raises(DiffApplyError):
        apply_unified_diff("step1\nstep2", diff)
