"""Result channel: bounded FIFO with a single terminal sentinel."""
import logging
import threading

import pytest

from experiment_engine.channel import DONE, ChannelClosedError, ResultChannel


def test_iteration_stops_at_sentinel():
    channel = ResultChannel(3, int)
    for i in range(3):
        channel.put(i)
    channel.close()
    assert list(channel) == [0, 1, 2]


def test_empty_channel_yields_nothing():
    channel = ResultChannel(0)
    channel.close()
    assert channel.take() is DONE


def test_close_twice_raises():
    channel = ResultChannel(1)
    channel.close()
    assert channel.closed
    with pytest.raises(ChannelClosedError):
        channel.close()


def test_put_after_close_raises():
    channel = ResultChannel(2)
    channel.close()
    with pytest.raises(ChannelClosedError):
        channel.put(1)


def test_negative_capacity_rejected():
    with pytest.raises(ValueError):
        ResultChannel(-1)


def test_concurrent_producers_single_consumer():
    n_threads, per_thread = 4, 250
    channel = ResultChannel(n_threads * per_thread, int)

    def produce(offset):
        for i in range(per_thread):
            channel.put(offset + i)

    threads = [threading.Thread(target=produce, args=(k * per_thread,)) for k in range(n_threads)]
    for t in threads:
        t.start()
    collected = []
    consumer = threading.Thread(target=lambda: collected.extend(channel))
    consumer.start()
    for t in threads:
        t.join()
    channel.close()
    consumer.join(timeout=10)
    assert not consumer.is_alive()
    assert sorted(collected) == list(range(n_threads * per_thread))


def test_sentinel_repr():
    assert repr(DONE) == "DONE"


def test_result_type_mismatch_logged_once(caplog):
    channel = ResultChannel(3, bool)
    with caplog.at_level(logging.WARNING, logger="experiment_engine.channel"):
        channel.put(True)
        channel.put("heads")
        channel.put(3.5)
    channel.close()
    assert list(channel) == [True, "heads", 3.5]
    mismatches = [r for r in caplog.records if "not the declared bool" in r.getMessage()]
    assert len(mismatches) == 1
    assert "'heads'" in mismatches[0].getMessage()


def test_matching_results_log_nothing(caplog):
    channel = ResultChannel(2, int)
    with caplog.at_level(logging.WARNING, logger="experiment_engine.channel"):
        channel.put(1)
        channel.put(2)
    assert not caplog.records
