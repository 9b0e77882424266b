"""
runtime/session.py - Form session.

Rendering boundary for one live form. Accepts ``(field, value)`` and
``(field, touched)`` mutations and hands out, per evaluation tick, a
read-only snapshot of visible fields, errors, async state and resolved
values.

Synchronous evaluation runs to completion inside every mutation; remote
option loads and async validations are scheduled on the running loop and
fold their results back in when they commit.
"""

from __future__ import annotations
import asyncio
import logging
import uuid
from typing import Any, Dict, List, Mapping, Optional

import httpx

from formengine.bootstrap.config import FormEngineConfig, get_config
from formengine.core.enums import AsyncValidationStatus
from formengine.core.form_state import FormState
from formengine.core.models import FieldOption, FormField, FormSchema
from formengine.dependencies import DependencyResolver, FormSnapshot
from formengine.masks import MaskEngine, get_default_engine
from formengine.remote import (
    AsyncValidationCoordinator,
    DEFAULT_DEBOUNCE_MS,
    HttpOptionsProvider,
    HttpRemoteValidator,
    OptionsLoader,
    OptionsProvider,
    REQUEST_FAILED_MESSAGE,
    RemoteValidator,
)

logger = logging.getLogger(__name__)


class FormSession:
    """
    One form instance: state, resolver, option loader and async checks.

    The remote collaborators are optional; without a validator async
    validation is never started, without a provider remote-option fields
    keep no options.
    """

    def __init__(
        self,
        schema: FormSchema,
        validator: Optional[RemoteValidator] = None,
        options_provider: Optional[OptionsProvider] = None,
        initial_values: Optional[Mapping[str, Any]] = None,
        debounce_ms: int = DEFAULT_DEBOUNCE_MS,
        failure_message: str = REQUEST_FAILED_MESSAGE,
        masks: Optional[MaskEngine] = None,
    ):
        self.session_id = str(uuid.uuid4())
        self._schema = schema
        self._masks = masks or get_default_engine()
        self._resolver = DependencyResolver(schema, masks=self._masks)
        self._state = FormState(schema, initial_values)
        self._remote_options: Dict[str, List[FieldOption]] = {}
        self._validator = validator
        self._options_provider = options_provider
        # HTTP collaborators built by from_config, closed with the session
        self._owned: List[Any] = []

        self._fields: Dict[str, FormField] = {}
        for f in schema.all_fields():
            self._fields.setdefault(f.name, f)

        self._coordinator: Optional[AsyncValidationCoordinator] = None
        if validator is not None:
            self._coordinator = AsyncValidationCoordinator(
                validator,
                default_debounce_ms=debounce_ms,
                failure_message=failure_message,
            )

        self._loader: Optional[OptionsLoader] = None
        if options_provider is not None:
            self._loader = OptionsLoader(
                schema,
                options_provider,
                values=lambda: self._state.values,
                on_commit=self._on_options_committed,
            )

        self._snapshot = self._resolver.evaluate(self._state.values, self._state.touched)
        self._state.set_initial_values(self._snapshot.resolved_values)
        logger.debug(f"Session {self.session_id} opened for '{schema.title}'")

    @classmethod
    def from_config(
        cls,
        schema: FormSchema,
        config: Optional[FormEngineConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
        initial_values: Optional[Mapping[str, Any]] = None,
        masks: Optional[MaskEngine] = None,
    ) -> "FormSession":
        """
        Build a session with HTTP collaborators taken from configuration.

        ``async_validation`` supplies the debounce, failure message, timeout
        and base URL of the validator; ``options`` supplies the base URL,
        timeout and cache TTL of the option provider. A passed ``client`` is
        shared by both and left open when the session closes.
        """
        config = config or get_config()
        checks = config.async_validation
        validator = HttpRemoteValidator(
            client=client,
            base_url=checks.base_url,
            timeout_seconds=checks.timeout_seconds,
            failure_message=checks.failure_message,
        )
        provider = HttpOptionsProvider(
            client=client,
            base_url=config.options.base_url,
            timeout_seconds=config.options.timeout_seconds,
            cache_ttl_seconds=config.options.cache_ttl_seconds,
        )
        session = cls(
            schema,
            validator=validator,
            options_provider=provider,
            initial_values=initial_values,
            debounce_ms=checks.debounce_ms,
            failure_message=checks.failure_message,
            masks=masks,
        )
        session._owned = [validator, provider]
        return session

    # -------------------------------------------------------------------------
    # Accessors
    # -------------------------------------------------------------------------

    @property
    def schema(self) -> FormSchema:
        return self._schema

    @property
    def state(self) -> FormState:
        return self._state

    @property
    def resolver(self) -> DependencyResolver:
        return self._resolver

    @property
    def coordinator(self) -> Optional[AsyncValidationCoordinator]:
        return self._coordinator

    @property
    def options_loader(self) -> Optional[OptionsLoader]:
        return self._loader

    @property
    def validator(self) -> Optional[RemoteValidator]:
        return self._validator

    @property
    def options_provider(self) -> Optional[OptionsProvider]:
        return self._options_provider

    @property
    def current(self) -> FormSnapshot:
        """Result of the latest synchronous evaluation."""
        return self._snapshot

    @property
    def values(self) -> Dict[str, Any]:
        return self._state.values

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def set_value(self, field_name: str, value: Any) -> FormSnapshot:
        """
        Apply one user edit.

        Masked fields are formatted before storing. Returns the new
        synchronous snapshot; option loads and the async check for the
        field are scheduled and settle later.
        """
        field = self._fields.get(field_name)
        if field is not None and field.mask and isinstance(value, str):
            value = self._masks.apply_mask(value, field.mask)

        self._snapshot = self._resolver.apply_change(
            self._state.values,
            field_name,
            value,
            self._state.touched,
            self._remote_options,
        )
        self._state.replace_values(self._snapshot.resolved_values)

        if self._loader is not None and self._has_running_loop():
            for name in self._snapshot.reset_fields + [field_name]:
                self._loader.on_change(name)

        if field is not None and self._coordinator is not None and self._has_running_loop():
            self._coordinator.validate_async(field, value)

        return self._snapshot

    def set_touched(self, field_name: str, touched: bool = True) -> FormSnapshot:
        self._state.mark_touched(field_name, touched)
        return self._refresh()

    def reset(self) -> FormSnapshot:
        """Back to the initial values, discarding async state."""
        self._state.reset()
        if self._coordinator is not None:
            self._coordinator.reset()
        return self._refresh()

    def load_options(self) -> None:
        """Schedule a load for every remote-option field."""
        if self._loader is not None:
            self._loader.load_all()

    async def wait(self) -> None:
        """Wait for pending option loads and async validations."""
        if self._loader is not None:
            await self._loader.wait()
        if self._coordinator is not None:
            await self._coordinator.wait()

    async def close(self) -> None:
        """Cancel pending validations and option loads."""
        if self._coordinator is not None:
            self._coordinator.reset()
        if self._loader is not None:
            self._loader.reset()
        for collaborator in self._owned:
            await collaborator.aclose()
        self._owned = []
        logger.debug(f"Session {self.session_id} closed")

    # -------------------------------------------------------------------------
    # Read side
    # -------------------------------------------------------------------------

    def async_states(self) -> Dict[str, str]:
        if self._coordinator is None:
            return {}
        return {name: status.value for name, status in self._coordinator.states.items()}

    def async_errors(self) -> Dict[str, str]:
        return self._coordinator.errors if self._coordinator is not None else {}

    def is_field_valid(self, field_name: str) -> bool:
        """No synchronous error and no pending or failed async check."""
        if field_name in self._snapshot.errors:
            return False
        if self._coordinator is None:
            return True
        status = self._coordinator.get_state(field_name)
        return status not in (AsyncValidationStatus.VALIDATING, AsyncValidationStatus.INVALID)

    @property
    def is_valid(self) -> bool:
        return all(self.is_field_valid(name) for name in self._snapshot.visible_fields)

    def snapshot(self) -> Dict[str, Any]:
        """Read-only view for the presentation layer."""
        return {
            "visibleFields": list(self._snapshot.visible_fields),
            "errors": dict(self._snapshot.errors),
            "displayedErrors": self._snapshot.displayed_errors,
            "asyncValidationState": self.async_states(),
            "asyncErrors": self.async_errors(),
            "resolvedValues": dict(self._snapshot.resolved_values),
        }

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _refresh(self) -> FormSnapshot:
        self._snapshot = self._resolver.evaluate(
            self._state.values,
            self._state.touched,
            remote_options=self._remote_options,
        )
        self._state.replace_values(self._snapshot.resolved_values)
        return self._snapshot

    def _on_options_committed(self, field_name: str, options: List[FieldOption]) -> None:
        self._remote_options = {**self._remote_options, field_name: options}
        logger.debug(f"Options committed for '{field_name}' ({len(options)} entries)")
        self._refresh()

    @staticmethod
    def _has_running_loop() -> bool:
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return False
        return True
