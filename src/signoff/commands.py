"""Command surface and input prompts for approval requests."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Protocol

from rich.console import Console
from rich.markup import escape
from rich.prompt import Prompt

from .errors import PromptError, UnknownCommand
from .store import ApprovalStore
from .types import ApprovalItem, ApprovalStatus

_logger = logging.getLogger(__name__)

REQUEST_COMMAND = "signoff.approvals.request"
APPROVE_COMMAND = "signoff.approvals.approve"
REJECT_COMMAND = "signoff.approvals.reject"
CLEAR_COMMAND = "signoff.approvals.clear"


@dataclass(frozen=True)
class CommandInfo:
    """A registered command. ``palette`` commands are invocable by name alone."""

    id: str
    title: str
    palette: bool


COMMANDS: tuple[CommandInfo, ...] = (
    CommandInfo(REQUEST_COMMAND, "Request Approval", palette=True),
    CommandInfo(APPROVE_COMMAND, "Approve", palette=False),
    CommandInfo(REJECT_COMMAND, "Reject", palette=False),
    CommandInfo(CLEAR_COMMAND, "Clear Approvals", palette=True),
)


class Prompter(Protocol):
    """Collects a line of input from a human."""

    def ask(self, prompt: str, *, placeholder: str | None = None) -> str | None:
        """Return the entered text, or None when nothing was entered."""
        ...


class RichPrompter:
    """Terminal prompter using rich."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def ask(self, prompt: str, *, placeholder: str | None = None) -> str | None:
        try:
            if placeholder:
                self.console.print(f"[dim]{escape(placeholder)}[/dim]")
            answer = Prompt.ask(
                escape(prompt), default="", show_default=False, console=self.console
            )
        except (KeyboardInterrupt, EOFError) as e:
            raise PromptError("Prompt interrupted") from e
        except Exception as e:
            raise PromptError(f"Prompt failed: {e}") from e
        answer = answer.strip()
        return answer or None


class ApprovalCommands:
    """Maps command ids onto store operations.

    ``approve`` and ``reject`` take the id of a row picked in some UI; an id
    that is not a string is ignored, the same way an unknown id is.
    """

    def __init__(self, store: ApprovalStore, prompter: Prompter) -> None:
        self.store = store
        self.prompter = prompter
        self._handlers: dict[str, Callable[..., Any]] = {
            REQUEST_COMMAND: self.request,
            APPROVE_COMMAND: self.approve,
            REJECT_COMMAND: self.reject,
            CLEAR_COMMAND: self.clear,
        }

    def request(self) -> ApprovalItem | None:
        """Prompt for a title and optional details, then add the request.

        An empty title aborts without creating anything.
        """
        title = self.prompter.ask(
            "Approval title", placeholder="e.g. Push to main, run build, edit config"
        )
        if not title:
            _logger.debug("approval request aborted: empty title")
            return None
        details = self.prompter.ask("Details (optional)")
        return self.store.add(title, details)

    def approve(self, approval_id: object) -> None:
        self._resolve(approval_id, ApprovalStatus.APPROVED)

    def reject(self, approval_id: object) -> None:
        self._resolve(approval_id, ApprovalStatus.REJECTED)

    def clear(self) -> None:
        self.store.clear()

    def execute(self, command_id: str, *args: Any) -> Any:
        handler = self._handlers.get(command_id)
        if handler is None:
            raise UnknownCommand(command_id)
        return handler(*args)

    @staticmethod
    def palette() -> list[CommandInfo]:
        return [command for command in COMMANDS if command.palette]

    def _resolve(self, approval_id: object, status: ApprovalStatus) -> None:
        if not isinstance(approval_id, str):
            _logger.debug("ignoring %s with non-string id %r", status.value, approval_id)
            return
        self.store.set_status(approval_id, status)
