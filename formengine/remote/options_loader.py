"""
formengine Options Loader

Fire-and-forget option fetches for fields with an ``optionsEndpoint``.

Each field carries a monotonically increasing sequence stamp. A fetch
result is committed only if its stamp is still the field's current one
and the parent values it was fetched for still equal the current parent
values; anything else is a superseded fetch and is discarded.
"""

from __future__ import annotations
from typing import Any, Callable, Dict, List, Mapping, Optional
import asyncio
import logging

from formengine.core.conditions import is_empty
from formengine.core.models import FieldOption, FormField, FormSchema
from formengine.errors import FormEngineError, create_transport_error
from .protocols import OptionsProvider

logger = logging.getLogger(__name__)

ValuesGetter = Callable[[], Mapping[str, Any]]
CommitCallback = Callable[[str, List[FieldOption]], None]


class OptionsLoader:
    """Loads and commits remote option lists per field."""

    def __init__(
        self,
        schema: FormSchema,
        provider: OptionsProvider,
        values: ValuesGetter,
        on_commit: Optional[CommitCallback] = None,
    ):
        self._provider = provider
        self._values = values
        self._on_commit = on_commit

        self._fields: Dict[str, FormField] = {}
        for f in schema.all_fields():
            if f.options_endpoint and f.name not in self._fields:
                self._fields[f.name] = f

        self._sequence: Dict[str, int] = {}
        self._options: Dict[str, List[FieldOption]] = {}
        self._failures: Dict[str, FormEngineError] = {}
        self._tasks: Dict[str, asyncio.Task] = {}

    @property
    def options(self) -> Dict[str, List[FieldOption]]:
        """Committed option lists by field name."""
        return dict(self._options)

    @property
    def failures(self) -> Dict[str, FormEngineError]:
        """Last provider failure per field, cleared by the next good fetch."""
        return dict(self._failures)

    @property
    def remote_fields(self) -> List[str]:
        return list(self._fields)

    def current_stamp(self, field_name: str) -> int:
        return self._sequence.get(field_name, 0)

    def is_pending(self, field_name: str) -> bool:
        task = self._tasks.get(field_name)
        return task is not None and not task.done()

    def _parent_values(self, field: FormField) -> Dict[str, Any]:
        current = self._values()
        return {p: current.get(p) for p in field.parents}

    def dependents_of(self, changed: str) -> List[str]:
        """Remote-option fields whose parents include ``changed``."""
        return [name for name, f in self._fields.items() if changed in f.parents]

    async def load(self, field_name: str) -> bool:
        """
        Fetch options for one field and commit them if still current.

        Returns True when the result was committed.
        """
        field = self._fields.get(field_name)
        if field is None:
            return False

        stamp = self._sequence.get(field_name, 0) + 1
        self._sequence[field_name] = stamp
        params = self._parent_values(field)

        if any(is_empty(v) for v in params.values()):
            return self._commit(field_name, [], stamp, params)

        try:
            options = await self._provider.fetch_options(field.options_endpoint, params)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(f"Options provider raised for '{field_name}': {e}")
            self._failures = {
                **self._failures,
                field_name: create_transport_error(
                    f"Could not load options for {field.label or field_name}",
                    field_name=field_name,
                ),
            }
            options = []
        else:
            self._failures = {k: v for k, v in self._failures.items() if k != field_name}

        return self._commit(field_name, list(options or []), stamp, params)

    def _commit(
        self,
        field_name: str,
        options: List[FieldOption],
        stamp: int,
        params: Dict[str, Any],
    ) -> bool:
        if stamp != self._sequence.get(field_name):
            logger.debug(f"Discarding superseded options for '{field_name}' (stamp {stamp})")
            return False
        if params != self._parent_values(self._fields[field_name]):
            logger.debug(f"Discarding options for '{field_name}': parent values changed")
            return False

        updated = dict(self._options)
        updated[field_name] = options
        self._options = updated

        if self._on_commit is not None:
            self._on_commit(field_name, options)
        return True

    def schedule(self, field_name: str) -> Optional[asyncio.Task]:
        """Start a background load, replacing any in-flight one for the field."""
        if field_name not in self._fields:
            return None
        previous = self._tasks.get(field_name)
        if previous is not None and not previous.done():
            previous.cancel()
        task = asyncio.get_running_loop().create_task(self.load(field_name))
        self._tasks[field_name] = task
        return task

    def on_change(self, changed: str) -> List[asyncio.Task]:
        """Schedule loads for every remote-option dependent of ``changed``."""
        tasks = []
        for name in self.dependents_of(changed):
            task = self.schedule(name)
            if task is not None:
                tasks.append(task)
        return tasks

    def load_all(self) -> List[asyncio.Task]:
        """Schedule a load for every remote-option field."""
        return [t for t in (self.schedule(name) for name in self._fields) if t is not None]

    async def wait(self) -> None:
        """Wait for every in-flight load."""
        pending = [t for t in self._tasks.values() if not t.done()]
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    def reset(self) -> None:
        """Cancel in-flight loads and drop committed options."""
        for task in self._tasks.values():
            if not task.done():
                task.cancel()
        self._tasks = {}
        # Stamps keep increasing so loads started before the reset stay stale
        self._sequence = {name: stamp + 1 for name, stamp in self._sequence.items()}
        self._options = {}
        self._failures = {}
