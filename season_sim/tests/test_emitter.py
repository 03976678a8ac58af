"""
Tests for the publisher: topic and league filtering, ordering, failing subscribers.
"""
from __future__ import annotations

import logging

from season_sim.simulation.emitter import EventPublisher
from season_sim.simulation.schemas import Topic


def test_filters_by_topic_and_league():
    pub = EventPublisher()
    everything, events, alpha = [], [], []
    pub.subscribe(lambda t, p: everything.append(p))
    pub.subscribe(lambda t, p: events.append(p), topic=Topic.EVENT)
    pub.subscribe(lambda t, p: alpha.append(p), league_id="alpha")

    pub.publish(Topic.EVENT, "alpha", 1)
    pub.publish(Topic.STANDINGS, "alpha", 2)
    pub.publish(Topic.EVENT, "beta", 3)

    assert everything == [1, 2, 3]
    assert events == [1, 3]
    assert alpha == [1, 2]


def test_unsubscribe():
    pub = EventPublisher()
    got = []
    unsubscribe = pub.subscribe(lambda t, p: got.append(p))
    pub.publish(Topic.COUNTDOWN, "x", "a")
    unsubscribe()
    unsubscribe()
    pub.publish(Topic.COUNTDOWN, "x", "b")
    assert got == ["a"]
    assert pub.subscriber_count == 0


def test_failing_subscriber_does_not_block_others(caplog):
    pub = EventPublisher()
    got = []

    def broken(topic, payload):
        raise RuntimeError("subscriber bug")

    pub.subscribe(broken)
    pub.subscribe(lambda t, p: got.append(p))
    with caplog.at_level(logging.WARNING, logger="season_sim.emitter"):
        pub.publish(Topic.FIXTURE, "alpha", "payload")
    assert got == ["payload"]
    assert any("fixture" in r.getMessage() for r in caplog.records)
