# moleculer

Building blocks for a microservice broker, with no dependencies beyond the
standard library:

- `moleculer.core`: service schema and configuration dataclasses
  (`ServiceSchema`, `Action`, `Event`, `Mixin`, `Config`, `RetryPolicy`,
  `Options`, `BrokerDelegates`), `default_config()` and `discover_node_id()`.
- `moleculer.payload`: the `Payload` wrapper for action parameters and results.
- `moleculer.convert`: the list, map and number conversions payloads use.
- `moleculer.context`: call and event contexts.
- `moleculer.dispatch`: the middleware dispatcher.
- `moleculer.metrics`: middleware handlers that emit tracing spans.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Payloads

`Payload` wraps any value (dicts, lists, numbers, strings, errors) and reads
it in typed form, by key, by dotted path or by indexed key:

```python
from moleculer.payload import new

p = new({"address": {"country": {"code": "NZ"}, "options": [{"label": "item 1"}]}})
p.get("address.country.code").string()        # "NZ"
p.get("address.options[0].label").string()    # "item 1"
p.get("missing").exists()                     # False
new("10").as_int()                            # 10
new("true").as_bool()                         # True
new({"a": 1, "b": 2}).remove("b").raw_map()   # {"a": 1}
new({"a": 1}).add("b", 2).raw_map()           # {"a": 1, "b": 2}
```

Methods such as `add`, `add_many`, `add_item`, `remove` and `sort` return a
new payload and leave the original value untouched. When they are used on a
value of the wrong shape they return an error payload rather than raise.

Errors travel as payloads too: `moleculer.payload.error("boom").is_error()`
is `True`, and `payload_error(msg, details)` builds an error whose
`error_payload()` returns `details`.

Number readers (`as_int`, `as_int64`, `as_uint`, `as_float`, `as_float32`)
accept numbers and numeric strings; a string that is not a number raises
`moleculer.convert.ConversionError`, and a value of a non-numeric type reads
as 0.

## Contexts

`moleculer.context.broker_context(delegates)` creates the root context from a
`BrokerDelegates` object whose `local_node()` returns an object with a
`get_id()` method. Child contexts come from `child_action_context` and
`child_event_context`; they inherit the metadata, add `tracing` to it when
`config.metrics` is on, and record their parent and caller.

`call`, `mcall`, `emit`, `broadcast`, `publish` and `wait_for` hand the work
to the matching callables on the delegates (`action_delegate`,
`mult_action_delegate`, `emit_event`, `broadcast_event`, `publish`,
`wait_for`). `action_context` and `event_context` rebuild a context from a
dict received from another node, and `as_map()` exports one as a dict.

## Middlewares

`moleculer.dispatch.Dispatch` holds handler chains for the hooks `Config`,
`brokerStarting`, `brokerStarted`, `brokerStopping`, `brokerStopped`,
`serviceStarting`, `serviceStarted`, `serviceStopping`, `serviceStopped`,
`beforeLocalAction`, `afterLocalAction`, `beforeRemoteAction` and
`afterRemoteAction`; handlers under other names are ignored by `add`.

```python
from moleculer.dispatch import Dispatch

dispatch = Dispatch()
dispatch.add({"Config": lambda params, next_: next_(params + 1)})
dispatch.call_handlers("Config", 1)   # 2
dispatch.has("Config")                # True
```

Each handler receives the current value and a `next` callable; `next(value)`
passes a new value down the chain, `next()` passes the current one. If no
handler is registered the params come back unchanged.

## Metrics

`moleculer.metrics.middlewares()` returns `Config`, `beforeLocalAction` and
`afterLocalAction` handlers. For contexts whose metadata has `tracing` set,
sampled at `Config.metrics_rate`, they emit `metrics.trace.span.start` and
`metrics.trace.span.finish` events through the context. The finish event
carries the duration in milliseconds, the end time and, for error results,
the error message.

## Configuration

`moleculer.core.default_config()` returns a `Config` with the default log
level and format, timeouts (in seconds), call level limit, metrics rate and
retry policy. A bare `Config()` holds empty values.

## What this package does not do

There is no broker object that publishes and starts services, no service
registry or load balancing, no network transport between nodes and no
command-line tool. The contexts and metrics handlers reach such parts only
through the callables you supply in `BrokerDelegates`.