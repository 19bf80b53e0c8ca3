from pomolight.core.machine import StateMachine

TABLE = {
    "off": {"PRESS": "on"},
    "on": {"PRESS": "off", "BREAK": "broken"},
    "broken": {},
}


def test_actions_run_exit_then_entry():
    calls = []
    machine = StateMachine(
        "switch",
        "off",
        TABLE,
        entry_actions={"on": lambda: calls.append("enter on")},
        exit_actions={"on": lambda: calls.append("leave on")},
        final_states=("broken",),
    )
    machine.send("PRESS")
    machine.send("PRESS")
    assert calls == ["enter on", "leave on"]


def test_rejected_event_emits_nothing():
    machine = StateMachine("switch", "off", TABLE)
    seen = []
    machine.on_transition.add_listener(lambda **kw: seen.append(kw))
    assert machine.send("BREAK") is False
    assert machine.state == "off"
    assert seen == []


def test_final_state_allows_nothing():
    machine = StateMachine("switch", "on", TABLE, final_states=("broken",))
    machine.send("BREAK")
    assert machine.done
    assert machine.allowed_events() == []


def test_restore_runs_entry_action_and_notifies():
    entered = []
    seen = []
    machine = StateMachine("switch", "off", TABLE, entry_actions={"on": lambda: entered.append(True)})
    machine.on_transition.add_listener(lambda **kw: seen.append(kw))
    machine.restore("on")
    assert machine.state == "on"
    assert entered == [True]
    assert seen == [{"previous": "off", "current": "on", "event": None}]


def test_listener_errors_do_not_break_transition():
    machine = StateMachine("switch", "off", TABLE)

    def broken_listener(**kwargs):
        raise RuntimeError("boom")

    machine.on_transition.add_listener(broken_listener)
    assert machine.send("PRESS")
    assert machine.state == "on"
