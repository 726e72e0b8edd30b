from unittest import mock

from moleculer.core import (
    Action,
    BrokerDelegates,
    Config,
    Event,
    Mixin,
    Options,
    RetryPolicy,
    ServiceSchema,
    default_config,
    discover_node_id,
)


def test_default_config_values():
    config = default_config()
    assert config.log_level == "INFO"
    assert config.log_format == "TEXT"
    assert config.transporter == "MEMORY"
    assert config.max_call_level == 100
    assert config.metrics is False
    assert config.metrics_rate == 1
    assert config.dont_wait_for_neighbours is True
    assert config.retry_policy.enabled is False


def test_default_config_durations_in_seconds():
    config = default_config()
    assert config.heartbeat_frequency == 5
    assert config.heartbeat_timeout == 15
    assert config.offline_check_frequency == 20
    assert config.offline_timeout == 10 * 60
    assert config.request_timeout == 3
    assert config.mcall_timeout == 5
    assert config.wait_for_dependencies_timeout == 2
    assert config.neighbours_check_timeout == 2


def test_default_config_returns_independent_copies():
    first = default_config()
    second = default_config()
    first.log_level = "DEBUG"
    first.retry_policy.enabled = True
    assert second.log_level == "INFO"
    assert second.retry_policy.enabled is False


def test_empty_config_holds_zero_values():
    config = Config()
    assert config.log_level == ""
    assert config.metrics is False
    assert config.metrics_rate == 0
    assert config.services is None
    assert config.middlewares is None
    assert config.discover_node_id is None


def test_discover_node_id_uses_hostname():
    with mock.patch("moleculer.core.socket.gethostname", return_value="host"):
        node_id = discover_node_id()
    assert node_id.startswith("host-")
    assert len(node_id) == len("host-") + 5


def test_discover_node_id_falls_back_when_hostname_fails():
    with mock.patch("moleculer.core.socket.gethostname", side_effect=OSError):
        node_id = discover_node_id()
    assert node_id.startswith("node-")
    prefix, _, suffix = node_id.rpartition("-")
    assert len(suffix) == 5
    assert len(prefix) == len("node-") + 2


def test_discover_node_id_is_random():
    with mock.patch("moleculer.core.socket.gethostname", return_value="host"):
        ids = {discover_node_id() for _ in range(20)}
    assert len(ids) > 1


def test_service_schema_lists_are_not_shared():
    first = ServiceSchema(name="a")
    second = ServiceSchema(name="b")
    first.actions.append(Action(name="x"))
    first.events.append(Event(name="y"))
    assert second.actions == []
    assert second.events == []
    assert first.actions[0].name == "x"


def test_mixin_and_retry_policy_defaults():
    mixin = Mixin(name="m", dependencies=["dep"])
    assert mixin.dependencies == ["dep"]
    assert mixin.actions == []
    policy = RetryPolicy()
    assert policy.enabled is False
    assert policy.check is None


def test_options_and_delegates_defaults():
    options = Options()
    assert options.meta is None
    assert options.node_id == ""
    delegates = BrokerDelegates(config=default_config())
    assert delegates.config.log_level == "INFO"
    assert delegates.emit_event is None
    assert BrokerDelegates().config == Config()