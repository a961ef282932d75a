# tests/test_debounce.py
from stockroom.listing.debounce import DebouncedQueryController, QueryState


def _controller(delay_ms=300):
    calls = []
    committed = []
    ctl = DebouncedQueryController(lambda q: (calls.append(q), q.upper())[1], delay_ms)
    ctl.committed.connect(committed.append)
    return ctl, calls, committed


def test_rapid_requests_collapse_into_one_evaluation(qtbot):
    ctl, calls, committed = _controller(300)
    with qtbot.waitSignal(ctl.committed, timeout=2000):
        ctl.request("a")
        qtbot.wait(30)
        ctl.request("ab")
        qtbot.wait(30)
        ctl.request("abc")
        assert ctl.state is QueryState.PENDING
        assert calls == []
    assert calls == ["abc"]
    assert committed == ["ABC"]
    qtbot.wait(400)
    assert calls == ["abc"]
    assert ctl.state is QueryState.IDLE


def test_commit_now_skips_the_window(qtbot):
    ctl, calls, committed = _controller(300)
    ctl.request("a")
    assert ctl.commit_now("b")
    assert committed == ["B"]
    qtbot.wait(400)
    assert calls == ["b"]


def test_older_result_resolving_late_is_discarded():
    ctl, _calls, committed = _controller()
    a = ctl.begin()
    b = ctl.begin()
    assert ctl.resolve(b, "B")
    assert not ctl.resolve(a, "A")
    assert committed == ["B"]
    assert ctl.discarded == 1


def test_new_request_invalidates_an_in_flight_ticket():
    ctl, _calls, committed = _controller()
    ticket = ctl.begin()
    ctl.request("newer")
    assert not ctl.resolve(ticket, "old")
    assert committed == []


def test_teardown_stops_timer_and_commits(qtbot):
    ctl, calls, committed = _controller(50)
    ctl.request("x")
    ctl.teardown()
    qtbot.wait(150)
    assert calls == [] and committed == []
    assert not ctl.commit_now("y")
    assert ctl.is_closed


def test_cancel_drops_the_pending_request(qtbot):
    ctl, calls, committed = _controller(50)
    ctl.request("x")
    ctl.cancel()
    assert ctl.state is QueryState.IDLE
    qtbot.wait(150)
    assert calls == [] and committed == []


def test_set_delay_changes_the_window():
    ctl, _calls, _committed = _controller(300)
    ctl.set_delay(120)
    assert ctl.delay_ms == 120
    ctl.set_delay(-5)
    assert ctl.delay_ms == 0
