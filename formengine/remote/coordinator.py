"""
formengine Async Validation Coordinator

Debounced remote checks with a per-field state machine:

    idle -> validating -> valid | invalid

Each new keystroke cancels the field's pending check, re-enters
``validating`` immediately and starts a new debounce window. Every check
carries a sequence stamp; a result whose stamp is not the field's current
one is discarded, so a superseded request can never settle the field.
"""

from __future__ import annotations
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional
import asyncio
import logging

from formengine.core.enums import AsyncValidationStatus, ValidWhen
from formengine.core.models import AsyncValidatorConfig, FormField
from formengine.errors import ErrorCode, FormEngineError, ErrorCategory, ErrorSeverity
from .http import REQUEST_FAILED_MESSAGE
from .protocols import RemoteValidator, RemoteVerdict

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_MS = 300
DEFAULT_INVALID_MESSAGE = "Validation failed"

Sleep = Callable[[float], Awaitable[Any]]


def interpret_response(response: Any, valid_when: str = ValidWhen.CUSTOM.value) -> RemoteVerdict:
    """
    Turn a raw payload into a verdict.

    exists:    valid when the payload is truthy
    notExists: valid when the payload is falsy
    custom:    payload must be ``{"valid": true}``; ``message`` is kept
    """
    if isinstance(response, Mapping) and response.get("requestFailed"):
        return RemoteVerdict(valid=False, message=response.get("message"), request_failed=True)

    if valid_when == ValidWhen.EXISTS.value:
        return RemoteVerdict(valid=bool(response))
    if valid_when == ValidWhen.NOT_EXISTS.value:
        return RemoteVerdict(valid=not response)

    if isinstance(response, Mapping):
        message = response.get("message")
        return RemoteVerdict(
            valid=response.get("valid") is True,
            message=message if isinstance(message, str) and message else None,
        )
    return RemoteVerdict(valid=False)


class AsyncValidationCoordinator:
    """
    Owns the async validation state and error maps of one form.

    Both maps are replaced wholesale on every transition. Must be used from
    inside a running event loop; call ``reset()`` when the form is torn down.
    """

    def __init__(
        self,
        validator: RemoteValidator,
        default_debounce_ms: int = DEFAULT_DEBOUNCE_MS,
        failure_message: str = REQUEST_FAILED_MESSAGE,
        on_change: Optional[Callable[[str, AsyncValidationStatus], None]] = None,
        sleep: Sleep = asyncio.sleep,
    ):
        self._validator = validator
        self._default_debounce_ms = default_debounce_ms
        self._failure_message = failure_message
        self._on_change = on_change
        self._sleep = sleep

        self._states: Dict[str, AsyncValidationStatus] = {}
        self._errors: Dict[str, str] = {}
        self._failed: Dict[str, bool] = {}
        self._tasks: Dict[str, asyncio.Task] = {}
        self._sequence: Dict[str, int] = {}

    # -------------------------------------------------------------------------
    # Read side
    # -------------------------------------------------------------------------

    @property
    def states(self) -> Dict[str, AsyncValidationStatus]:
        return dict(self._states)

    @property
    def errors(self) -> Dict[str, str]:
        return dict(self._errors)

    def get_state(self, field_name: str) -> AsyncValidationStatus:
        return self._states.get(field_name, AsyncValidationStatus.IDLE)

    def get_error(self, field_name: str) -> Optional[str]:
        return self._errors.get(field_name)

    def is_validating(self, field_name: str) -> bool:
        return self.get_state(field_name) == AsyncValidationStatus.VALIDATING

    @property
    def pending(self) -> List[str]:
        return [name for name, task in self._tasks.items() if not task.done()]

    @property
    def default_debounce_ms(self) -> int:
        return self._default_debounce_ms

    def error_records(self) -> Dict[str, FormEngineError]:
        """Current async errors as taxonomy records."""
        return {
            name: FormEngineError(
                code=ErrorCode.ASY_REQUEST_FAILED if self._failed.get(name) else ErrorCode.ASY_INVALID,
                category=ErrorCategory.ASYNC_VALIDATION,
                severity=ErrorSeverity.ERROR,
                message=message,
                source="async_validator",
                field_name=name,
            )
            for name, message in self._errors.items()
        }

    # -------------------------------------------------------------------------
    # Write side
    # -------------------------------------------------------------------------

    def validate_async(self, field: FormField, value: Any) -> Optional[asyncio.Task]:
        """
        Start (or restart) the debounced check for ``field``.

        No-op returning None when the field has no async validator.
        Otherwise returns the task performing the check; awaiting a task
        superseded by a later call raises CancelledError.
        """
        config = field.async_validator
        if config is None:
            return None

        previous = self._tasks.get(field.name)
        if previous is not None and not previous.done():
            previous.cancel()

        stamp = self._sequence.get(field.name, 0) + 1
        self._sequence[field.name] = stamp
        self._set_state(field.name, AsyncValidationStatus.VALIDATING)

        task = asyncio.get_running_loop().create_task(
            self._run(field.name, config, value, stamp)
        )
        self._tasks[field.name] = task
        return task

    async def _run(
        self,
        field_name: str,
        config: AsyncValidatorConfig,
        value: Any,
        stamp: int,
    ) -> None:
        debounce_ms = config.debounce_ms if config.debounce_ms else self._default_debounce_ms
        await self._sleep(debounce_ms / 1000.0)

        try:
            response = await self._validator.validate(
                config.endpoint,
                {"value": value, "fieldName": field_name},
                config.method or "POST",
            )
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(f"Remote validation for '{field_name}' raised: {e}")
            verdict = RemoteVerdict(valid=False, request_failed=True)
        else:
            verdict = interpret_response(response, config.valid_when)

        if stamp != self._sequence.get(field_name):
            logger.debug(f"Discarding superseded async result for '{field_name}'")
            return

        if verdict.valid:
            self._clear_error(field_name)
            self._set_state(field_name, AsyncValidationStatus.VALID)
            return

        if verdict.request_failed:
            message = self._failure_message
        else:
            message = verdict.message or config.error_message or DEFAULT_INVALID_MESSAGE
        self._set_error(field_name, message, verdict.request_failed)
        self._set_state(field_name, AsyncValidationStatus.INVALID)

    def reset(self) -> None:
        """Cancel every pending check and clear state and errors."""
        for task in self._tasks.values():
            if not task.done():
                task.cancel()
        self._tasks = {}
        self._sequence = {name: stamp + 1 for name, stamp in self._sequence.items()}
        self._states = {}
        self._errors = {}
        self._failed = {}
        logger.debug("Async validation coordinator reset")

    async def wait(self) -> None:
        """Wait for every pending check (cancelled ones included)."""
        pending = [t for t in self._tasks.values() if not t.done()]
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _set_state(self, field_name: str, status: AsyncValidationStatus) -> None:
        updated = dict(self._states)
        updated[field_name] = status
        self._states = updated
        if self._on_change is not None:
            self._on_change(field_name, status)

    def _set_error(self, field_name: str, message: str, failed: bool = False) -> None:
        updated = dict(self._errors)
        updated[field_name] = message
        self._errors = updated
        self._failed = {**self._failed, field_name: failed}

    def _clear_error(self, field_name: str) -> None:
        if field_name in self._errors:
            self._errors = {k: v for k, v in self._errors.items() if k != field_name}
            self._failed = {k: v for k, v in self._failed.items() if k != field_name}
