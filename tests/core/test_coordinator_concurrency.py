from __future__ import annotations

import asyncio
import random
import threading
from concurrent.futures import ThreadPoolExecutor

from permgate import (
    InMemoryAuthority,
    PendingSlot,
    RequestCoordinator,
    RequestRegistry,
)

KEYS = ["CAMERA", "STORAGE", "LOCATION", "MICROPHONE"]


def _wired() -> tuple[InMemoryAuthority, RequestCoordinator]:
    authority = InMemoryAuthority()
    coordinator = RequestCoordinator(authority)
    authority.bind(coordinator.on_authority_result)
    return authority, coordinator


def test_concurrent_get_or_create_yields_single_new_slot():
    registry = RequestRegistry()
    workers = 16
    barrier = threading.Barrier(workers)

    def _attempt() -> tuple[PendingSlot, bool]:
        barrier.wait()
        return registry.get_or_create("CAMERA")

    with ThreadPoolExecutor(max_workers=workers) as pool:
        outcomes = list(pool.map(lambda _: _attempt(), range(workers)))

    assert sum(1 for _, is_new in outcomes if is_new) == 1
    assert len({id(slot) for slot, _ in outcomes}) == 1


def test_concurrent_requests_ask_each_key_once():
    authority, coordinator = _wired()
    workers = 24
    barrier = threading.Barrier(workers)
    rng = random.Random(7)
    subsets = [
        ["CAMERA"] + rng.sample(KEYS[1:], rng.randint(0, 3)) for _ in range(workers)
    ]

    def _request(keys):
        barrier.wait()
        return coordinator.request(*keys)

    with ThreadPoolExecutor(max_workers=workers) as pool:
        results = list(pool.map(_request, subsets))

    for key in KEYS:
        naming = [call for call in authority.calls if key in call.keys]
        assert len(naming) <= 1
    assert sum(1 for call in authority.calls if "CAMERA" in call.keys) == 1

    authority.complete_all({"CAMERA": True, "STORAGE": True, "LOCATION": False})
    for keys, result in zip(subsets, results):
        expected = "LOCATION" not in keys and "MICROPHONE" not in keys
        assert result.result(timeout=2) is expected
    assert coordinator.pending_keys() == []


def test_fanout_delivers_once_to_every_subscriber():
    registry = RequestRegistry()
    slot, _ = registry.get_or_create("CAMERA")
    counts = [0] * 50
    lock = threading.Lock()
    barrier = threading.Barrier(len(counts))

    def _attach(index: int) -> None:
        def _seen(granted: bool) -> None:
            assert granted is True
            with lock:
                counts[index] += 1

        barrier.wait()
        registry.subscribe(slot).add_done_callback(_seen)

    with ThreadPoolExecutor(max_workers=len(counts)) as pool:
        list(pool.map(_attach, range(len(counts))))

    registry.resolve("CAMERA", True)
    assert counts == [1] * len(counts)


def test_subscribers_racing_resolution_never_miss_the_value():
    for _ in range(200):
        registry = RequestRegistry()
        slot, _ = registry.get_or_create("CAMERA")
        barrier = threading.Barrier(2)
        holders = []

        def _resolve() -> None:
            barrier.wait()
            registry.resolve("CAMERA", False)

        def _subscribe() -> None:
            barrier.wait()
            for _ in range(5):
                holders.append(registry.subscribe(slot))

        threads = [threading.Thread(target=_resolve), threading.Thread(target=_subscribe)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert all(holder.result(timeout=1) is False for holder in holders)
        assert "CAMERA" not in registry


def test_request_racing_authority_answer_is_never_stranded():
    for _ in range(200):
        authority, coordinator = _wired()
        first = coordinator.request("CAMERA")
        (call,) = authority.calls
        barrier = threading.Barrier(2)
        late: list = []

        def _answer() -> None:
            barrier.wait()
            authority.complete(call, {"CAMERA": False})

        def _request() -> None:
            barrier.wait()
            late.append(coordinator.request("CAMERA"))

        threads = [threading.Thread(target=_answer), threading.Thread(target=_request)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert first.result(timeout=1) is False
        # The late caller either joined the answered slot or started a new ask.
        if len(authority.calls) == 2:
            authority.complete_all({"CAMERA": True})
            assert late[0].result(timeout=1) is True
        else:
            assert late[0].result(timeout=1) is False
        assert coordinator.pending_keys() == []


def test_asyncio_tasks_share_results_delivered_from_host_thread():
    async def scenario() -> list[bool]:
        authority, coordinator = _wired()

        issued: list[tuple[str, ...]] = []

        async def _caller(keys: tuple[str, ...]) -> bool:
            await asyncio.sleep(0)
            result = coordinator.request(*keys)
            issued.append(keys)
            return await result

        tasks = [
            asyncio.create_task(_caller(("CAMERA",) if i % 2 else ("CAMERA", "STORAGE")))
            for i in range(20)
        ]
        while len(issued) < len(tasks):
            await asyncio.sleep(0.001)

        host = threading.Thread(
            target=authority.complete_all,
            args=({"CAMERA": True, "STORAGE": False},),
        )
        host.start()
        results = await asyncio.wait_for(asyncio.gather(*tasks), timeout=2)
        host.join()
        assert sum(1 for call in authority.calls if "CAMERA" in call.keys) == 1
        return results

    results = asyncio.run(scenario())
    assert results == [False if i % 2 == 0 else True for i in range(20)]
