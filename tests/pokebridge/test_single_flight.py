import threading
import time

import pytest

from pokebridge.single_flight import SingleFlight


def test_concurrent_calls_share_one_execution():
    single_flight = SingleFlight()
    started = threading.Event()
    release = threading.Event()
    calls = []
    results = []

    def work():
        calls.append(1)
        started.set()
        release.wait(5)
        return "card"

    def request():
        results.append(single_flight.do("card:sv1-76", work))

    threads = [threading.Thread(target=request)]
    threads[0].start()
    assert started.wait(5)

    threads.extend(threading.Thread(target=request) for _ in range(3))
    for thread in threads[1:]:
        thread.start()
    time.sleep(0.2)
    release.set()

    for thread in threads:
        thread.join(5)

    assert len(calls) == 1
    assert results == ["card"] * 4


def test_different_keys_run_separately():
    single_flight = SingleFlight()
    assert single_flight.do("card:a", lambda: "a") == "a"
    assert single_flight.do("card:b", lambda: "b") == "b"


def test_errors_propagate_and_keys_are_released():
    single_flight = SingleFlight()

    def fail():
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        single_flight.do("card:a", fail)

    assert single_flight.do("card:a", lambda: 5) == 5
    assert single_flight._calls == {}
