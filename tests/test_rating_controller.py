import asyncio
import random

from client.rating_api import RatingApiError, RatingCounts
from client.rating_controller import COUNT_PLACEHOLDER, RatingController, RatingPoller
from client.vote_store import MemoryStorage, VoteStore
from models.vote import VoteState, VoteType, transition


class FakeApi:
    """In-process stand-in for the ratings server."""

    def __init__(self, likes=0, dislikes=0):
        self.likes = likes
        self.dislikes = dislikes
        self.fail_apply = False
        self.fail_get = False
        self.get_calls = 0
        self.apply_calls = []

    async def get_ratings(self, song_id):
        self.get_calls += 1
        if self.fail_get:
            raise RatingApiError("server unavailable", status_code=500)
        return RatingCounts(self.likes, self.dislikes)

    async def apply_delta(self, song_id, like_delta, dislike_delta):
        self.apply_calls.append((like_delta, dislike_delta))
        if self.fail_apply:
            raise RatingApiError("server unavailable", status_code=500)
        if like_delta == 0 and dislike_delta == 0:
            return RatingCounts(None, None)
        self.likes = max(0, self.likes + like_delta)
        self.dislikes = max(0, self.dislikes + dislike_delta)
        return RatingCounts(self.likes, self.dislikes)


def make_controller(api=None, storage=None):
    storage = storage if storage is not None else MemoryStorage()
    return RatingController("song1", api or FakeApi(), VoteStore(storage)), storage


def test_placeholder_until_loaded():
    controller, _ = make_controller()
    assert controller.view.like_label == COUNT_PLACEHOLDER
    assert controller.view.dislike_label == COUNT_PLACEHOLDER

    asyncio.run(controller.load())
    assert controller.view.like_label == "0"
    assert controller.view.dislike_label == "0"


def test_failed_load_keeps_placeholder():
    api = FakeApi()
    api.fail_get = True
    controller, _ = make_controller(api)

    asyncio.run(controller.load())
    assert controller.likes is None
    assert controller.view.like_label == COUNT_PLACEHOLDER


def test_load_reflects_stored_vote():
    controller, _ = make_controller(FakeApi(likes=3), MemoryStorage({"mediahub.vote.song1": "liked"}))
    asyncio.run(controller.load())
    assert controller.view.like_active
    assert not controller.view.dislike_active
    assert controller.likes == 3


def test_like_dislike_dislike_scenario():
    controller, storage = make_controller()
    seen = []
    controller.subscribe(lambda view: seen.append((view.likes, view.dislikes)))

    async def scenario():
        await controller.load()
        assert (controller.likes, controller.dislikes) == (0, 0)

        await controller.press(VoteType.LIKE)
        assert (controller.likes, controller.dislikes) == (1, 0)
        assert storage.get_item("mediahub.vote.song1") == "liked"

        await controller.press(VoteType.DISLIKE)
        assert (controller.likes, controller.dislikes) == (0, 1)
        assert storage.get_item("mediahub.vote.song1") == "disliked"

        await controller.press(VoteType.DISLIKE)
        assert (controller.likes, controller.dislikes) == (0, 0)
        assert storage.get_item("mediahub.vote.song1") is None

    asyncio.run(scenario())
    assert controller.vote is VoteState.NONE
    assert controller.api.apply_calls == [(1, 0), (-1, 1), (0, -1)]
    assert all(likes >= 0 and dislikes >= 0 for likes, dislikes in seen if likes is not None)


def test_optimistic_update_is_visible_before_server_answers():
    api = FakeApi(likes=2)
    controller, _ = make_controller(api)
    asyncio.run(controller.load())

    pending = controller.begin_vote(VoteType.LIKE)
    assert controller.likes == 3
    assert controller.vote is VoteState.LIKED
    assert api.apply_calls == []

    pending.confirm(RatingCounts(likes=7, dislikes=1))
    assert (controller.likes, controller.dislikes) == (7, 1)


def test_confirm_with_null_counts_keeps_display():
    controller, _ = make_controller(FakeApi(likes=4))
    asyncio.run(controller.load())

    pending = controller.begin_vote(VoteType.LIKE)
    pending.confirm(RatingCounts(None, None))
    assert controller.likes == 5


def test_failed_vote_reverts_to_server_counts():
    api = FakeApi(likes=5, dislikes=1)
    controller, storage = make_controller(api)
    seen = []
    controller.subscribe(lambda view: seen.append(view.likes))
    asyncio.run(controller.load())

    api.fail_apply = True
    asyncio.run(controller.press(VoteType.LIKE))

    assert 6 in seen
    assert (controller.likes, controller.dislikes) == (5, 1)
    # The local vote stays recorded; the next press or poll reconciles
    assert storage.get_item("mediahub.vote.song1") == "liked"


def test_revert_restores_previous_counts_when_refetch_fails():
    api = FakeApi(likes=5)
    controller, _ = make_controller(api)
    asyncio.run(controller.load())

    pending = controller.begin_vote(VoteType.DISLIKE)
    assert controller.dislikes == 1

    api.fail_get = True
    asyncio.run(pending.revert())
    assert (controller.likes, controller.dislikes) == (5, 0)

    # Settled votes ignore further outcomes
    pending.confirm(RatingCounts(99, 99))
    assert controller.likes == 5


def test_optimistic_counts_never_negative_from_placeholder():
    controller, _ = make_controller(storage=MemoryStorage({"mediahub.vote.song1": "liked"}))
    controller.vote = VoteState.LIKED

    controller.begin_vote(VoteType.DISLIKE)
    assert (controller.likes, controller.dislikes) == (0, 1)


def test_random_press_sequences_follow_transition_table():
    rng = random.Random(1234)

    for _ in range(25):
        api = FakeApi()
        controller, storage = make_controller(api)
        asyncio.run(controller.load())
        expected_state = VoteState.NONE

        for _ in range(rng.randint(1, 12)):
            pressed = rng.choice(list(VoteType))
            expected_state = transition(expected_state, pressed).new_state
            api.fail_apply = rng.random() < 0.2

            asyncio.run(controller.press(pressed))

            assert controller.vote is expected_state
            assert VoteStore(storage).get("song1") is expected_state
            assert controller.likes >= 0 and controller.dislikes >= 0


def test_unsubscribe_stops_notifications():
    controller, _ = make_controller()
    seen = []
    unsubscribe = controller.subscribe(seen.append)
    asyncio.run(controller.load())
    count = len(seen)

    unsubscribe()
    asyncio.run(controller.refresh())
    assert len(seen) == count


def test_poller_skips_hidden_ticks():
    api = FakeApi(likes=1)
    controller, _ = make_controller(api)
    visible = {"value": False}
    poller = RatingPoller([controller], interval=7, is_visible=lambda: visible["value"])

    assert asyncio.run(poller.tick()) == 0
    assert api.get_calls == 0

    visible["value"] = True
    assert asyncio.run(poller.tick()) == 1
    assert controller.likes == 1


def test_poll_overwrites_display_with_latest_counts():
    api = FakeApi(likes=1)
    controller, _ = make_controller(api)
    poller = RatingPoller([controller])
    asyncio.run(poller.tick())

    api.likes = 10
    asyncio.run(poller.tick())
    assert controller.likes == 10


def test_poller_ignores_refresh_failures():
    api = FakeApi()
    api.fail_get = True
    controller, _ = make_controller(api)
    poller = RatingPoller([controller])

    assert asyncio.run(poller.tick()) == 0


def test_poller_runs_in_background():
    api = FakeApi(likes=2)
    controller, _ = make_controller(api)
    poller = RatingPoller(interval=0.01)
    poller.register(controller)
    poller.register(controller)
    assert len(poller.controllers) == 1

    async def scenario():
        poller.start()
        assert poller.is_running
        await asyncio.sleep(0.1)
        await poller.stop()

    asyncio.run(scenario())
    assert api.get_calls >= 1
    assert not poller.is_running
    assert controller.likes == 2
