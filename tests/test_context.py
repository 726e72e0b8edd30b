import logging

import pytest

from moleculer import payload
from moleculer.context import Context, action_context, broker_context, event_context
from moleculer.core import BrokerDelegates, Config, Options, ServiceSchema


class _Node:
    def __init__(self, node_id):
        self.node_id = node_id

    def get_id(self):
        return self.node_id


def _delegates(node_id="x", config=None):
    node = _Node(node_id)
    return BrokerDelegates(
        local_node=lambda: node,
        logger=lambda name, value: logging.LoggerAdapter(
            logging.getLogger("test"), {name: value}
        ),
        config=config if config is not None else Config(),
    )


def _action_values(**extra):
    values = {
        "sender": "test",
        "id": "id",
        "action": "action",
        "level": 2,
        "timeout": 20,
        "parentID": "parentID",
        "meta": {},
    }
    values.update(extra)
    return values


def test_broker_context_is_root():
    ctx = broker_context(_delegates("x"))
    assert ctx.id.startswith("rootContext-broker-x-")
    assert ctx.level == 1
    assert ctx.parent_id == "ImGroot;)"
    assert ctx.meta == payload.empty()


def test_action_context_created():
    ctx = action_context(_delegates(), _action_values(params={}))
    as_map = ctx.as_map()
    assert len(as_map) == 11
    assert ctx.action_name == "action"
    assert ctx.payload == payload.empty()
    assert ctx.id == "id"
    assert as_map["timeout"] == 20
    assert as_map["level"] == 2
    assert as_map["parentID"] == "parentID"
    assert as_map["stream"] is False
    assert ctx.source_node_id == "test"
    assert ctx.target_node_id == "test"
    assert ctx.logger().extra == {"action": "action"}


def test_action_context_requires_action():
    values = _action_values(params={})
    del values["action"]
    with pytest.raises(ValueError):
        action_context(_delegates(), values)


def test_action_context_without_params():
    ctx = action_context(_delegates(), _action_values())
    assert len(ctx.as_map()) == 11
    assert ctx.action_name == "action"
    assert ctx.payload == payload.new(None)
    assert ctx.id == "id"


def test_set_target_node_id():
    ctx = broker_context(_delegates())
    ctx.target_node_id = "some id"
    assert ctx.target_node_id == "some id"


def test_root_logger():
    ctx = broker_context(_delegates())
    assert ctx.logger().extra == {"context": "<root>"}


def test_root_request_id_is_empty():
    assert broker_context(_delegates()).request_id == ""


def test_event_context_created():
    ctx = event_context(
        _delegates(),
        {
            "sender": "test",
            "id": "id",
            "event": "event",
            "data": {},
            "groups": ["a", "b"],
            "broadcast": True,
        },
    )
    assert ctx.is_broadcast is True
    assert len(ctx.as_map()) == 12
    assert ctx.event_name == "event"
    assert ctx.groups == ["a", "b"]
    assert ctx.payload == payload.empty()
    assert ctx.id == "id"
    assert ctx.logger().extra == {"event": "event"}


def test_event_context_requires_event():
    with pytest.raises(ValueError):
        event_context(_delegates(), {"sender": "test", "id": "id"})


def test_child_contexts_with_tracing():
    root = broker_context(_delegates("nodex", Config(metrics=True)))
    action_ctx = root.child_action_context("actionx", None)
    assert action_ctx.meta.get("tracing").as_bool() is True
    event_ctx = root.child_event_context("eventx", None, None, False)
    assert event_ctx.request_id != ""
    assert event_ctx.meta.get("tracing").as_bool() is True
    assert event_ctx.as_map()["tracing"] is True


def test_child_contexts_without_tracing():
    root = broker_context(_delegates("nodex", Config(metrics=False)))
    action_ctx = root.child_action_context("actionx", None)
    assert action_ctx.meta.get("tracing").exists() is False
    event_ctx = root.child_event_context("eventx", None, None, False)
    assert event_ctx.meta.get("tracing").exists() is False


def test_child_links_to_parent():
    root = broker_context(_delegates())
    child = root.child_action_context("a.b", payload.new(1))
    grandchild = child.child_action_context("a.c", payload.new(2))
    assert child.parent_id == root.id
    assert child.level == 2
    assert grandchild.level == 3
    assert grandchild.request_id == child.request_id == child.id


def test_child_action_context_merges_option_meta():
    root = broker_context(_delegates())
    child = root.child_action_context(
        "a.b", payload.new(None), Options(meta=payload.new({"user": "bob"}))
    )
    assert child.meta.get("user").string() == "bob"
    assert root.meta.get("user").exists() is False


def test_mcall_delegates():
    delegates = _delegates()
    calls = []

    def mcall(call_maps):
        calls.append(call_maps)
        return {"key": payload.new("value")}

    delegates.mult_action_delegate = mcall
    result = broker_context(delegates).mcall({})
    assert len(result) == 1
    assert calls == [{}]


def test_call_delegates():
    delegates = _delegates()
    seen = []

    def action(ctx, *opts):
        seen.append(ctx)
        return payload.new("value")

    delegates.action_delegate = action
    result = broker_context(delegates).call("service.action", "param")
    assert result.string() == "value"
    assert seen[0].action_name == "service.action"
    assert seen[0].payload.string() == "param"


def test_emit_delegates():
    delegates = _delegates()
    seen = []
    delegates.emit_event = seen.append
    broker_context(delegates).emit("service.action", "param")
    assert len(seen) == 1
    assert seen[0].event_name == "service.action"
    assert seen[0].is_broadcast is False


def test_broadcast_delegates():
    delegates = _delegates()
    seen = []
    delegates.broadcast_event = seen.append
    broker_context(delegates).broadcast("service.action", "param", "g1")
    assert len(seen) == 1
    assert seen[0].is_broadcast is True
    assert seen[0].groups == ["g1"]


def test_publish_delegates():
    delegates = _delegates()
    published = []
    delegates.publish = lambda *svcs: published.extend(svcs)
    schema = ServiceSchema()
    broker_context(delegates).publish(schema)
    assert published == [schema]


def test_wait_for_delegates():
    delegates = _delegates()
    waited = []
    delegates.wait_for = lambda *svcs: waited.extend(svcs)
    broker_context(delegates).wait_for("a", "b")
    assert waited == ["a", "b"]


def test_caller_is_parent_action():
    root = broker_context(_delegates("nodex", Config(metrics=True)))
    a_ctx = root.child_action_context("servicex.action_a", None)
    b_ctx = a_ctx.child_action_context("servicex.action_b", None)
    assert b_ctx.caller == "servicex.action_a"


def test_update_meta():
    ctx = broker_context(_delegates())
    ctx.update_meta(payload.new({"a": 1}))
    assert ctx.meta.get("a").as_int() == 1
    assert isinstance(ctx, Context) and ctx.as_map()["meta"] == {"a": 1}