from __future__ import annotations

import io

import pytest
from rich.console import Console

import signoff.commands as commands
from signoff.commands import (
    APPROVE_COMMAND,
    CLEAR_COMMAND,
    REJECT_COMMAND,
    REQUEST_COMMAND,
    ApprovalCommands,
    RichPrompter,
)
from signoff.errors import PromptError, UnknownCommand
from signoff.store import ApprovalStore
from signoff.types import ApprovalStatus


class ScriptedPrompter:
    """Answers prompts from a fixed script and records what was asked."""

    def __init__(self, *answers: str | None) -> None:
        self.answers = list(answers)
        self.prompts: list[str] = []

    def ask(self, prompt: str, *, placeholder: str | None = None) -> str | None:
        self.prompts.append(prompt)
        return self.answers.pop(0)


def test_request_prompts_then_adds(store: ApprovalStore) -> None:
    prompter = ScriptedPrompter("Push to main", "after CI is green")
    approvals = ApprovalCommands(store, prompter)

    item = approvals.execute(REQUEST_COMMAND)

    assert item is not None
    assert prompter.prompts == ["Approval title", "Details (optional)"]
    assert store.list() == [item]
    assert item.details == "after CI is green"


def test_request_without_details(store: ApprovalStore) -> None:
    item = ApprovalCommands(store, ScriptedPrompter("run build", None)).request()

    assert item is not None
    assert item.details is None


def test_request_empty_title_aborts(store: ApprovalStore, counter) -> None:
    store.on_did_change(counter)
    prompter = ScriptedPrompter(None)

    assert ApprovalCommands(store, prompter).request() is None

    assert prompter.prompts == ["Approval title"]
    assert store.list() == []
    assert counter.calls == 0


def test_approve_and_reject_by_id(store: ApprovalStore) -> None:
    a = store.add("A")
    b = store.add("B")
    approvals = ApprovalCommands(store, ScriptedPrompter())

    approvals.execute(APPROVE_COMMAND, a.id)
    approvals.execute(REJECT_COMMAND, b.id)

    assert store.get(a.id).status is ApprovalStatus.APPROVED
    assert store.get(b.id).status is ApprovalStatus.REJECTED


@pytest.mark.parametrize("bad_id", [None, 42, ["id"]])
def test_non_string_ids_are_ignored(store: ApprovalStore, counter, bad_id: object) -> None:
    store.add("A")
    store.on_did_change(counter)

    ApprovalCommands(store, ScriptedPrompter()).approve(bad_id)

    assert store.list()[0].status is ApprovalStatus.PENDING
    assert counter.calls == 0


def test_clear_command(store: ApprovalStore) -> None:
    store.add("A")

    ApprovalCommands(store, ScriptedPrompter()).execute(CLEAR_COMMAND)

    assert store.list() == []


def test_unknown_command_raises(store: ApprovalStore) -> None:
    with pytest.raises(UnknownCommand):
        ApprovalCommands(store, ScriptedPrompter()).execute("signoff.approvals.explode")


def test_palette_lists_only_global_commands() -> None:
    assert [command.id for command in ApprovalCommands.palette()] == [
        REQUEST_COMMAND,
        CLEAR_COMMAND,
    ]


def test_rich_prompter_strips_and_maps_empty_to_none(monkeypatch: pytest.MonkeyPatch) -> None:
    answers = iter(["  Push to main  ", "   "])
    monkeypatch.setattr(commands.Prompt, "ask", lambda *args, **kwargs: next(answers))
    prompter = RichPrompter(Console(file=io.StringIO()))

    assert prompter.ask("Approval title", placeholder="e.g. Push to main") == "Push to main"
    assert prompter.ask("Details (optional)") is None


def test_rich_prompter_interrupt_raises_prompt_error(monkeypatch: pytest.MonkeyPatch) -> None:
    def _interrupt(*args, **kwargs):
        raise KeyboardInterrupt

    monkeypatch.setattr(commands.Prompt, "ask", _interrupt)

    with pytest.raises(PromptError, match="interrupted"):
        RichPrompter(Console(file=io.StringIO())).ask("Approval title")
