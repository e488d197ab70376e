"""
Tests for session.py - the session state machine and its clock.
"""

import pytest

from combo_snake.session import SessionState, SessionStateMachine, TRANSITIONS


@pytest.fixture
def machine(clock):
    return SessionStateMachine(clock)


class TestTransitions:
    """Tests for the legal-transition table."""

    def test_starts_in_menu(self, machine):
        assert machine.state is SessionState.MENU
        assert machine.history() == [SessionState.MENU]

    def test_menu_to_paused_is_rejected(self, machine, caplog):
        assert machine.transition_to(SessionState.PAUSED) is False
        assert machine.state is SessionState.MENU
        assert "Invalid state transition" in caplog.text

    def test_menu_to_playing(self, machine):
        assert machine.transition_to(SessionState.PLAYING) is True
        assert machine.state is SessionState.PLAYING
        assert machine.previous is SessionState.MENU

    @pytest.mark.parametrize("source", list(SessionState))
    def test_available_transitions_match_table(self, source, machine):
        machine.state = source
        assert machine.available_transitions() == TRANSITIONS[source]
        for target in SessionState:
            assert machine.can_transition(target) == (target in TRANSITIONS[source])

    def test_game_over_only_from_play(self, machine):
        assert not machine.can_transition(SessionState.GAME_OVER)
        machine.transition_to(SessionState.LOADING)
        assert not machine.can_transition(SessionState.GAME_OVER)

    def test_accepts_string_values(self, machine):
        assert machine.transition_to("playing")
        assert machine.state is SessionState.PLAYING

    def test_history(self, machine):
        machine.transition_to(SessionState.LOADING)
        machine.transition_to(SessionState.PLAYING)
        machine.transition_to(SessionState.PAUSED)
        assert machine.history() == [
            SessionState.MENU, SessionState.LOADING,
            SessionState.PLAYING, SessionState.PAUSED,
        ]


class TestSessionClock:
    """Tests for timing and frozen statistics."""

    def test_paused_time_is_excluded(self, machine, clock):
        machine.transition_to(SessionState.PLAYING)
        clock.advance(5000)
        machine.transition_to(SessionState.PAUSED)
        clock.advance(3000)
        machine.transition_to(SessionState.PLAYING)
        clock.advance(2000)
        assert machine.played_ms() == 7000
        machine.transition_to(SessionState.GAME_OVER)
        assert machine.data.stats.duration == 7

    def test_game_over_while_paused(self, machine, clock):
        machine.transition_to(SessionState.PLAYING)
        clock.advance(4000)
        machine.transition_to(SessionState.PAUSED)
        clock.advance(10_000)
        machine.transition_to(SessionState.GAME_OVER)
        assert machine.data.stats.duration == 4
        assert machine.data.paused_at is None

    def test_average_speed(self, machine, clock):
        machine.transition_to(SessionState.PLAYING)
        machine.data.stats.max_snake_length = 10
        clock.advance(5000)
        machine.transition_to(SessionState.GAME_OVER)
        assert machine.data.stats.average_speed == pytest.approx(2.0)

    def test_new_game_after_game_over(self, machine, clock):
        machine.transition_to(SessionState.PLAYING)
        machine.data.stats.food_consumed = 4
        machine.transition_to(SessionState.GAME_OVER)
        clock.advance(1000)
        machine.transition_to(SessionState.PLAYING)
        assert machine.data.game_start_time == clock.now
        assert machine.data.stats.food_consumed == 0

    def test_menu_resets_data(self, machine, clock):
        machine.transition_to(SessionState.PLAYING)
        machine.data.stats.food_consumed = 3
        machine.transition_to(SessionState.MENU)
        assert machine.data.stats.food_consumed == 0
        assert machine.data.game_start_time == 0.0


class TestListeners:
    """Tests for transition and per-state subscriptions."""

    def test_transition_then_state_listeners(self, machine):
        calls = []
        machine.on_state(SessionState.PLAYING, lambda data: calls.append("state"))
        machine.on_transition(lambda prev, cur: calls.append(("transition", prev, cur)))
        machine.transition_to(SessionState.PLAYING)
        assert calls == [("transition", SessionState.MENU, SessionState.PLAYING), "state"]

    def test_state_listener_gets_session_data(self, machine, clock):
        seen = []
        machine.on_state(SessionState.PLAYING, seen.append)
        machine.transition_to(SessionState.PLAYING)
        assert seen[0].game_start_time == clock.now

    def test_unsubscribe(self, machine):
        calls = []
        unsubscribe = machine.on_transition(lambda prev, cur: calls.append(cur))
        machine.transition_to(SessionState.PLAYING)
        unsubscribe()
        machine.transition_to(SessionState.PAUSED)
        assert calls == [SessionState.PLAYING]

    def test_rejected_transition_fires_nothing(self, machine):
        calls = []
        machine.on_transition(lambda prev, cur: calls.append(cur))
        machine.transition_to(SessionState.GAME_OVER)
        assert calls == []

    def test_failing_listener_does_not_block(self, machine, caplog):
        def boom(prev, cur):
            raise ValueError("bad listener")

        later = []
        machine.on_transition(boom)
        machine.on_transition(lambda prev, cur: later.append(cur))
        assert machine.transition_to(SessionState.PLAYING)
        assert later == [SessionState.PLAYING]
        assert "bad listener" in caplog.text
