"""Call contexts: the request state carried through actions and events."""

from __future__ import annotations

import logging
import random
import string
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from moleculer import convert
from moleculer import payload as _payload
from moleculer.core import BrokerDelegates, Options
from moleculer.payload import Payload

_ALPHABET = string.ascii_letters + string.digits
_ROOT_PARENT_ID = "ImGroot;)"


def _random_id(length: int = 12) -> str:
    return "".join(random.choices(_ALPHABET, k=length))


def _as_payload(value: Any) -> Payload:
    return _payload.new(value)


@dataclass(eq=False)
class Context:
    """State of one action call or event emission, linked to its parent."""

    delegates: BrokerDelegates
    id: str = ""
    request_id: str = ""
    target_node_id: str = ""
    source_node_id: str = ""
    parent_id: str = ""
    action_name: str = ""
    event_name: str = ""
    groups: Optional[list[str]] = None
    is_broadcast: bool = False
    payload: Payload = field(default_factory=lambda: _payload.new(None))
    meta: Payload = field(default_factory=_payload.empty)
    timeout: int = 0
    level: int = 0
    caller: str = ""

    # --- children ------------------------------------------------------

    def _child_fields(self) -> dict[str, Any]:
        meta = self.meta
        if self.delegates.config.metrics:
            meta = meta.add("tracing", True)
        child_id = _random_id()
        return {
            "delegates": self.delegates,
            "id": child_id,
            "request_id": self.request_id or child_id,
            "level": self.level + 1,
            "meta": meta,
            "parent_id": self.id,
            "caller": self.event_name or self.action_name,
        }

    def child_event_context(
        self,
        event_name: str,
        params: Any,
        groups: Optional[list[str]],
        broadcast: bool,
    ) -> "Context":
        """Create a child context for emitting or broadcasting an event."""
        return Context(
            event_name=event_name,
            groups=groups,
            payload=_as_payload(params),
            is_broadcast=broadcast,
            **self._child_fields(),
        )

    def child_action_context(self, action_name: str, params: Any, *opts: Options) -> "Context":
        """Create a child context for calling an action."""
        fields = self._child_fields()
        if opts and opts[0].meta is not None:
            extra = _as_payload(opts[0].meta)
            if len(extra) > 0:
                fields["meta"] = fields["meta"].add_many(extra.raw_map() or {})
        return Context(action_name=action_name, payload=_as_payload(params), **fields)

    # --- export ----------------------------------------------------------

    def as_map(self) -> dict[str, Any]:
        """Export the context as a plain dict, as sent over the wire."""
        tracing_entry = self.meta.get("tracing")
        tracing = tracing_entry.as_bool() if tracing_entry is not None and tracing_entry.exists() else False
        result: dict[str, Any] = {
            "id": self.id,
            "requestID": self.request_id,
            "level": self.level,
            "meta": self.meta.raw_map(),
            "caller": self.caller,
            "tracing": tracing,
            "parentID": self.parent_id,
        }
        if self.action_name:
            result["action"] = self.action_name
            result["timeout"] = self.timeout
            result["params"] = self.payload.value()
        if self.event_name:
            result["event"] = self.event_name
            result["groups"] = self.groups
            result["broadcast"] = self.is_broadcast
            result["data"] = self.payload.value()
        result["stream"] = False
        return result

    # --- delegation to the broker ------------------------------------------

    def mcall(self, call_maps: Mapping[str, Mapping[str, Any]]) -> Any:
        """Perform several calls at once through the broker."""
        return self.delegates.mult_action_delegate(call_maps)

    def call(self, action_name: str, params: Any, *opts: Options) -> Any:
        """Call an action in a child context."""
        child = self.child_action_context(action_name, params, *opts)
        return self.delegates.action_delegate(child, *opts)

    def emit(self, event_name: str, params: Any, *groups: str) -> None:
        """Emit a balanced event to one listener per group."""
        self.logger().debug("Context emit() eventName: %s", event_name)
        child = self.child_event_context(event_name, params, list(groups), False)
        self.delegates.emit_event(child)

    def broadcast(self, event_name: str, params: Any, *groups: str) -> None:
        """Send an event to every local and remote listener."""
        child = self.child_event_context(event_name, params, list(groups), True)
        self.delegates.broadcast_event(child)

    def wait_for(self, *services: str) -> Any:
        """Wait until the named services are known to the broker."""
        return self.delegates.wait_for(*services)

    def publish(self, *services: Any) -> None:
        """Publish services on the broker."""
        self.delegates.publish(*services)

    def update_meta(self, meta: Payload) -> None:
        """Replace the context metadata."""
        self.meta = meta

    def logger(self) -> Any:
        """Return a logger tagged with the action, event or root context."""
        if self.action_name:
            name, value = "action", self.action_name
        elif self.event_name:
            name, value = "event", self.event_name
        else:
            name, value = "context", "<root>"
        if self.delegates.logger is None:
            return logging.LoggerAdapter(logging.getLogger("moleculer"), {name: value})
        return self.delegates.logger(name, value)


def broker_context(delegates: BrokerDelegates) -> Context:
    """Create the root context of a broker."""
    node_id = delegates.local_node().get_id()
    return Context(
        delegates=delegates,
        id=f"rootContext-broker-{node_id}-{_random_id()}",
        level=1,
        parent_id=_ROOT_PARENT_ID,
        meta=_payload.empty(),
    )


def action_context(delegates: BrokerDelegates, values: Mapping[str, Any]) -> Context:
    """Create an action context from a remote request."""
    if "action" not in values:
        raise ValueError("Can't create an action context, you need a action field!")
    sender = values["sender"]
    parent = values.get("parentID")
    timeout = values.get("timeout")
    meta = values.get("meta")
    return Context(
        delegates=delegates,
        source_node_id=sender,
        target_node_id=sender,
        id=values["id"],
        action_name=values["action"],
        parent_id=parent if isinstance(parent, str) else "",
        payload=_payload.new(values.get("params")),
        meta=_payload.new(meta) if meta is not None else _payload.empty(),
        timeout=timeout if timeout is not None else 0,
        level=values["level"],
    )


def event_context(delegates: BrokerDelegates, values: Mapping[str, Any]) -> Context:
    """Create an event context from a remote event."""
    if "event" not in values:
        raise ValueError("Can't create an event context, you need an event field!")
    broadcast = values["broadcast"]
    if not isinstance(broadcast, bool):
        raise TypeError("event field 'broadcast' must be a bool")
    meta = values.get("meta")
    context = Context(
        delegates=delegates,
        source_node_id=values["sender"],
        id=values.get("id", ""),
        event_name=values["event"],
        is_broadcast=broadcast,
        payload=_payload.new(values.get("data")),
        meta=_payload.new(meta) if meta is not None else _payload.empty(),
    )
    groups = values.get("groups")
    if groups is not None and convert.is_array(groups):
        items = convert.as_list(groups)
        for item in items:
            if not isinstance(item, str):
                raise TypeError("event groups must be strings")
        context.groups = items
    return context