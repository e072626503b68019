from __future__ import annotations

from ecr_exporter.deadline import Deadline


def test_deadline_counts_down_with_clock():
    now = [10.0]
    deadline = Deadline(5.0, clock=lambda: now[0])

    assert deadline.remaining() == 5.0
    now[0] = 13.0
    assert deadline.remaining() == 2.0
    assert not deadline.expired
    now[0] = 15.0
    assert deadline.remaining() == 0.0
    assert deadline.expired


def test_unbounded_deadline_never_expires():
    deadline = Deadline.never()

    assert deadline.remaining() is None
    assert not deadline.expired


def test_negative_timeout_is_already_expired():
    assert Deadline(-1.0, clock=lambda: 0.0).expired
