"""Tests for the swipe session state machine."""

import pytest

from whatnow.services.swipe_session import (
    FALLBACK_SUGGESTIONS,
    CounterEffect,
    InvalidSessionTransitionError,
    SessionNotFoundError,
    SwipeSession,
    SwipeSessionStore,
    SwipeState,
)
from tests.unit.mocks import OTHER_USER_ID, USER_ID


@pytest.fixture
def queue(make_task):
    return [make_task("a", time=5), make_task("b", time=30, energy="high"), make_task("c")]


@pytest.mark.unit
class TestSwipeSession:
    def test_start_presents_first_card(self, queue):
        session = SwipeSession(user_id=USER_ID, queue=queue)

        effects = session.start()

        assert session.state is SwipeState.PRESENTING
        assert session.current_task.id == "a"
        assert effects == [CounterEffect("a", "times_shown")]

    def test_start_twice_does_not_reshow(self, queue):
        session = SwipeSession(user_id=USER_ID, queue=queue)
        session.start()

        assert session.start() == []
        assert session.shown == {"a"}

    def test_skip_emits_skip_then_shown_for_next(self, queue):
        session = SwipeSession(user_id=USER_ID, queue=queue)
        session.start()

        effects = session.skip()

        assert effects == [CounterEffect("a", "times_skipped"), CounterEffect("b", "times_shown")]
        assert session.current_task.id == "b"
        assert session.position == 1

    def test_skipping_every_card_exhausts(self, queue):
        session = SwipeSession(user_id=USER_ID, queue=queue)
        effects = session.start()
        for _ in queue:
            effects += session.skip()

        assert session.state is SwipeState.EXHAUSTED
        assert session.current_task is None
        shown = [e.task_id for e in effects if e.counter == "times_shown"]
        skipped = [e.task_id for e in effects if e.counter == "times_skipped"]
        assert shown == ["a", "b", "c"]
        assert skipped == ["a", "b", "c"]

    def test_accept_after_skips(self, queue):
        session = SwipeSession(user_id=USER_ID, queue=queue)
        effects = session.start()
        effects += session.skip()

        accepted = session.accept()

        assert session.state is SwipeState.ACCEPTED
        assert accepted.task.id == "b"
        # 30 min (15) + low social (5) + high energy (20)
        assert accepted.points == 40
        assert session.accepted == accepted
        assert [e.counter for e in effects].count("times_shown") == 2
        assert [e.counter for e in effects].count("times_skipped") == 1

    def test_accept_never_emits_skip(self, queue):
        session = SwipeSession(user_id=USER_ID, queue=queue)
        effects = session.start()
        session.accept()

        assert all(e.counter != "times_skipped" for e in effects)

    def test_empty_queue_is_exhausted_without_effects(self):
        session = SwipeSession(user_id=USER_ID, queue=[])

        assert session.state is SwipeState.EXHAUSTED
        assert session.start() == []
        assert session.shown == frozenset()

    @pytest.mark.parametrize("action", ["skip", "accept"])
    def test_terminal_states_reject_transitions(self, queue, action):
        accepted = SwipeSession(user_id=USER_ID, queue=queue)
        accepted.start()
        accepted.accept()
        exhausted = SwipeSession(user_id=USER_ID, queue=[])

        for session in (accepted, exhausted):
            with pytest.raises(InvalidSessionTransitionError):
                getattr(session, action)()

    def test_queue_is_fixed_at_creation(self, queue):
        session = SwipeSession(user_id=USER_ID, queue=queue)
        queue.clear()

        assert len(session.queue) == 3

    def test_duplicate_card_is_shown_once(self, make_task):
        task = make_task("dup")
        session = SwipeSession(user_id=USER_ID, queue=[task, task])

        effects = session.start() + session.skip()

        assert effects == [CounterEffect("dup", "times_shown"), CounterEffect("dup", "times_skipped")]

    def test_view_while_presenting(self, queue):
        session = SwipeSession(user_id=USER_ID, queue=queue)
        session.start()

        view = session.to_view()

        assert view.state == "presenting"
        assert view.current.task.id == "a"
        assert view.current.points == 15
        assert view.total == 3
        assert view.suggestions == []

    def test_view_when_exhausted_offers_suggestions(self):
        view = SwipeSession(user_id=USER_ID, queue=[]).to_view()

        assert view.state == "exhausted"
        assert view.current is None
        assert view.suggestions == list(FALLBACK_SUGGESTIONS)

    def test_plan_skip_leaves_session_unchanged(self, queue):
        session = SwipeSession(user_id=USER_ID, queue=queue)
        session.start()

        effects = session.plan_skip()

        assert effects == [CounterEffect("a", "times_skipped"), CounterEffect("b", "times_shown")]
        assert session.position == 0
        assert session.shown == {"a"}
        assert session.plan_skip() == effects

    def test_plan_skip_omits_effects_already_written(self, queue):
        session = SwipeSession(user_id=USER_ID, queue=queue)
        session.start()
        session.mark_written(CounterEffect("a", "times_skipped"))

        assert session.plan_skip() == [CounterEffect("b", "times_shown")]

        session.commit_skip()
        assert session.current_task.id == "b"
        assert session.shown == {"a", "b"}
        assert session.plan_skip() == [CounterEffect("b", "times_skipped"), CounterEffect("c", "times_shown")]

    def test_commit_skip_requires_presenting(self):
        session = SwipeSession(user_id=USER_ID, queue=[])
        session.start()

        with pytest.raises(InvalidSessionTransitionError):
            session.commit_skip()


@pytest.mark.unit
class TestSwipeSessionStore:
    def test_get_returns_owned_session(self, queue):
        store = SwipeSessionStore()
        session = SwipeSession(user_id=USER_ID, queue=queue)
        store.add(session)

        assert store.get(session.id, user_id=USER_ID) is session

    def test_other_users_cannot_see_session(self, queue):
        store = SwipeSessionStore()
        session = SwipeSession(user_id=USER_ID, queue=queue)
        store.add(session)

        with pytest.raises(SessionNotFoundError):
            store.get(session.id, user_id=OTHER_USER_ID)

    def test_new_session_replaces_previous_for_user(self, queue):
        store = SwipeSessionStore()
        first = SwipeSession(user_id=USER_ID, queue=queue)
        second = SwipeSession(user_id=USER_ID, queue=queue)
        store.add(first)
        store.add(second)

        assert len(store) == 1
        with pytest.raises(SessionNotFoundError):
            store.get(first.id, user_id=USER_ID)

    def test_discard(self, queue):
        store = SwipeSessionStore()
        session = SwipeSession(user_id=USER_ID, queue=queue)
        store.add(session)

        store.discard(session.id)
        store.discard(session.id)

        assert len(store) == 0
