"""Tracing spans for local actions, emitted as metrics events."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Callable

from moleculer import convert
from moleculer.core import Config, Middlewares, default_config
from moleculer.dispatch import AfterActionParams
from moleculer.payload import Payload


def _now() -> datetime:
    return datetime.now().astimezone()


def _rfc3339(moment: datetime) -> str:
    text = moment.isoformat(timespec="seconds")
    return text[:-6] + "Z" if text.endswith("+00:00") else text


def metrics_payload(context: Any) -> dict[str, Any]:
    """Build the data of a span event from an action context."""
    result = context.as_map()
    start = context.meta.get("startTime")
    if start is not None and start.exists():
        result["startTime"] = _rfc3339(start.as_time())
    node_id = context.delegates.local_node().get_id()
    result["nodeID"] = node_id
    if context.source_node_id == node_id:
        result["remoteCall"] = False
    else:
        result["remoteCall"] = True
        result["callerNodeID"] = context.source_node_id
    if "action" in result:
        action = result["action"]
        services = context.delegates.service_for_action(action)
        result["action"] = {"name": action}
        result["service"] = {"name": services[0].name, "version": services[0].version}
    return result


def metric_start(context: Any) -> None:
    """Record the start time in the context and emit the span start event."""
    meta = context.meta.add("startTime", _now()).add("duration", 0)
    context.update_meta(meta)
    context.emit("metrics.trace.span.start", metrics_payload(context))


def metric_end(context: Any, result: Payload) -> None:
    """Emit the span finish event with duration and any error."""
    start = context.meta.get("startTime")
    if start is None or not start.exists():
        return
    start_time = start.as_time()
    data = metrics_payload(context)
    now = _now()
    data["duration"] = (now - start_time).total_seconds() * 1000
    data["endTime"] = _rfc3339(now)
    if result.is_error():
        data["error"] = {"message": str(result.error())}
    context.emit("metrics.trace.span.finish", data)


def create_should_metric(config: Config) -> Callable[[Any], bool]:
    """Return a sampler that picks traced contexts at ``config.metrics_rate``."""
    rate = convert.to_float32(config.metrics_rate)
    calls = 0.0

    def should_metric(context: Any) -> bool:
        nonlocal calls
        tracing = context.meta.get("tracing")
        if tracing is not None and tracing.as_bool():
            calls += 1
            if convert.to_float32(calls * rate) >= 1.0:
                calls = 0.0
                return True
        return False

    return should_metric


def middlewares() -> Middlewares:
    """Return the middleware handlers that trace local actions."""
    should_metric = create_should_metric(default_config())

    def on_config(params: Any, next_: Callable[..., None]) -> None:
        nonlocal should_metric
        should_metric = create_should_metric(params)
        next_()

    def after_local_action(params: AfterActionParams, next_: Callable[..., None]) -> None:
        if should_metric(params.broker_context):
            metric_end(params.broker_context, params.result)
        next_()

    def before_local_action(params: Any, next_: Callable[..., None]) -> None:
        if should_metric(params):
            metric_start(params)
        next_()

    return {
        "Config": on_config,
        "afterLocalAction": after_local_action,
        "beforeLocalAction": before_local_action,
    }