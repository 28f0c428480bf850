"""Optimistic inline editing for one attribute of one column.

State machine::

    idle -> editing -> committing -> idle   (server confirmed)
                                  -> error  (rolled back, diagnostic set)

An edit is sent to the server when edit focus is released. While a commit
is outstanding the field refuses new edit gestures, so each field has at
most one commit in flight. Nothing is retried; after an error the user
starts a new edit.
"""
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

from shared.exceptions import TableDeskError

logger = logging.getLogger(__name__)

CommitFn = Callable[[Any, Any], Awaitable[None]]
SuccessFn = Callable[[Any, Any], None]
FailureMessageFn = Callable[[Any, Any, TableDeskError], str]

_UNSET = object()


class FieldStatus(str, Enum):
    IDLE = "idle"
    EDITING = "editing"
    COMMITTING = "committing"
    ERROR = "error"


def _is_blank(value: Any) -> bool:
    return isinstance(value, str) and not value.strip()


class EditableField:
    """One in-place editable value with server round-trip and rollback.

    Args:
        original_value: Value currently confirmed by the server.
        commit_fn: Coroutine ``(original, pending)`` that applies the change
            remotely; raises a TableDeskError subclass to reject it.
        on_success: Called with ``(original, pending)`` after the server
            confirms, before the field returns to idle. Dependent caches are
            updated here.
        failure_message: Builds the diagnostic shown after a rollback.
            Defaults to the exception text.
        normalize: Applied to edited content before comparison.
        log_context: `extra` passed with the rollback log record.
    """

    def __init__(
        self,
        original_value: Any,
        commit_fn: CommitFn,
        on_success: Optional[SuccessFn] = None,
        failure_message: Optional[FailureMessageFn] = None,
        normalize: Optional[Callable[[Any], Any]] = None,
        log_context: Optional[dict] = None,
    ):
        self.original_value = original_value
        self.value = original_value
        self.pending_value: Any = None
        self.status = FieldStatus.IDLE
        self.error: Optional[TableDeskError] = None
        self.diagnostic = ""
        self._commit_fn = commit_fn
        self._on_success = on_success
        self._failure_message = failure_message
        self._normalize = normalize
        self._log_context = log_context or {}

    @property
    def editable(self) -> bool:
        return self.status is FieldStatus.EDITING

    @property
    def dimmed(self) -> bool:
        """True while a save is in flight."""
        return self.status is FieldStatus.COMMITTING

    def begin_edit(self) -> bool:
        """Enter editing. Refused while a commit is outstanding."""
        if self.status is FieldStatus.COMMITTING:
            logger.debug("Edit refused, commit of %r still pending", self.pending_value)
            return False
        self.status = FieldStatus.EDITING
        self.error = None
        self.diagnostic = ""
        return True

    def input(self, value: Any) -> bool:
        """Mutate the displayed content. Only allowed while editing."""
        if self.status is not FieldStatus.EDITING:
            return False
        self.value = value
        return True

    async def commit(self, value: Any = _UNSET) -> bool:
        """Release edit focus and send the edited content to the server.

        Returns True only when a change was confirmed. An empty or
        unchanged value ends the edit without any remote call.
        """
        if self.status is not FieldStatus.EDITING:
            return False
        if value is not _UNSET:
            self.value = value
        candidate = self._normalize(self.value) if self._normalize else self.value

        if candidate == self.original_value or _is_blank(candidate):
            self.value = self.original_value
            self.status = FieldStatus.IDLE
            return False

        self.value = candidate
        self.pending_value = candidate
        self.status = FieldStatus.COMMITTING
        try:
            await self._commit_fn(self.original_value, candidate)
        except TableDeskError as e:
            self._rollback(e)
            return False
        except BaseException:
            # Cancelled or crashed: show the confirmed value again and unlock
            self._reset()
            raise

        previous = self.original_value
        self.original_value = candidate
        if self._on_success:
            self._on_success(previous, candidate)
        self.pending_value = None
        self.status = FieldStatus.IDLE
        return True

    def _reset(self) -> None:
        self.value = self.original_value
        self.pending_value = None
        self.status = FieldStatus.IDLE

    def _rollback(self, error: TableDeskError) -> None:
        pending = self.pending_value
        self._reset()
        self.status = FieldStatus.ERROR
        self.error = error
        if self._failure_message:
            self.diagnostic = self._failure_message(self.original_value, pending, error)
        else:
            self.diagnostic = str(error)
        logger.error("%s", self.diagnostic, extra=self._log_context)


class ToggleField(EditableField):
    """A checkbox: one click both starts and commits the edit.

    The new state is shown as soon as the click happens and reverted if
    the server rejects it.
    """

    async def toggle(self, checked: bool) -> bool:
        if not self.begin_edit():
            return False
        self.input(bool(checked))
        return await self.commit()
