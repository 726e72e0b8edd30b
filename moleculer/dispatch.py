"""Middleware registration and chained invocation."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional

_VALID_HANDLERS = (
    "Config",
    "brokerStopping",
    "brokerStopped",
    "brokerStarting",
    "brokerStarted",
    "serviceStopping",
    "serviceStopped",
    "serviceStarting",
    "serviceStarted",
    "beforeLocalAction",
    "afterLocalAction",
    "beforeRemoteAction",
    "afterRemoteAction",
)

Handler = Callable[[Any, Callable[..., None]], None]


@dataclass
class AfterActionParams:
    """Parameters handed to ``afterLocalAction`` middlewares."""

    broker_context: Any
    result: Any


class Dispatch:
    """Holds middleware handlers by hook name and runs them as a chain."""

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self._handlers: dict[str, list[Handler]] = {}
        self._logger = logger or logging.getLogger("moleculer.middleware")

    def add(self, middlewares: Mapping[str, Handler]) -> None:
        """Register handlers; names that are not known hooks are ignored."""
        for name, handler in middlewares.items():
            if name in _VALID_HANDLERS:
                self._handlers.setdefault(name, []).append(handler)

    def has(self, name: str) -> bool:
        """Tell whether any handler is registered for ``name``."""
        return bool(self._handlers.get(name))

    def call_handlers(self, name: str, params: Any) -> Any:
        """Run the handlers for ``name`` in order and return the final value.

        Each handler receives the current value and a ``next`` callback.
        Calling ``next(value)`` passes a new value down the chain; calling
        ``next()`` passes the current one unchanged.
        """
        handlers = list(self._handlers.get(name, ()))
        if not handlers:
            self._logger.debug("No handlers found for -> %s", name)
            return params

        outcome: list[Any] = []

        def invoke(index: int, value: Any) -> None:
            def next_(*new_result: Any) -> None:
                result = new_result[0] if new_result else value
                if index + 1 < len(handlers):
                    invoke(index + 1, result)
                else:
                    outcome.append(result)

            handlers[index](value, next_)

        invoke(0, params)
        if not outcome:
            raise RuntimeError(f"middleware chain for {name!r} did not complete")
        return outcome[0]