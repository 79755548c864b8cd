import pytest

from sakuracloud_plugin.infrastructure.exceptions import WaitTimeoutError
from sakuracloud_plugin.infrastructure.sakuracloud.exceptions import CopyFailedError
from sakuracloud_plugin.infrastructure.sakuracloud.waiters import (
    StateWaiter,
    wait_until_down,
    wait_until_up,
    wait_while_copying,
)


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.now += seconds


def make_waiter(states, timeout=100, interval=10):
    clock = FakeClock()
    responses = iter(states)
    waiter = StateWaiter(lambda: next(responses), timeout=timeout, interval=interval,
                         sleep=clock.sleep, clock=clock)
    return waiter, clock


def test_wait_returns_first_matching_state():
    waiter, clock = make_waiter([
        {"Availability": "migrating"},
        {"Availability": "migrating"},
        {"Availability": "available", "ID": "1"},
    ])

    result = wait_while_copying(waiter, "1")

    assert result["ID"] == "1"
    assert clock.now == 20


def test_wait_while_copying_raises_on_failed_copy():
    waiter, _ = make_waiter([{"Availability": "migrating"}, {"Availability": "failed"}])

    with pytest.raises(CopyFailedError) as exc_info:
        wait_while_copying(waiter, "42")
    assert exc_info.value.resource_id == "42"


def test_wait_times_out_with_last_state():
    waiter, _ = make_waiter([{"Instance": {"Status": "down"}}] * 20, timeout=30, interval=10)

    with pytest.raises(WaitTimeoutError) as exc_info:
        wait_until_up(waiter, "1")
    assert exc_info.value.details["last_state"] == {"Instance": {"Status": "down"}}


def test_wait_until_down_accepts_missing_instance():
    waiter, _ = make_waiter([{"Instance": {"Status": "up"}}, {}])
    assert wait_until_down(waiter, "1") == {}
