from __future__ import annotations

import pytest

from artwork import ArtworkRecord
from errors import FailureKind, FetchFailure, ObjectNotFound
from met_api import SearchResult
from met_proxy import (
    BATCH_LIMIT,
    MetProxy,
    object_cache_key,
    period_cache_key,
    search_cache_key,
)
from response_cache import SHORT_TTL, ResponseCache
from conftest import met_payload


@pytest.fixture
def proxy(fake_client, clock) -> MetProxy:
    return MetProxy(fake_client, ResponseCache(clock=clock))


def test_cache_keys_are_deterministic() -> None:
    assert search_cache_key("Monet", True) == search_cache_key("Monet", True)
    assert search_cache_key("Monet", True) != search_cache_key("Monet", False)
    assert search_cache_key("Monet", True).startswith("met_search_")
    assert period_cache_key("11", -3000, 1400, True) != period_cache_key("11", -3000, 1400, False)
    assert object_cache_key(436535) == "object:436535"


def test_get_object_twice_hits_upstream_once(proxy, fake_client) -> None:
    fake_client.payloads[436535] = met_payload(436535)

    first = proxy.get_object(436535)
    second = proxy.get_object(436535)

    assert first == second
    assert isinstance(first, ArtworkRecord)
    assert fake_client.object_calls == [436535]


def test_object_cache_expires_after_a_week(proxy, fake_client, clock) -> None:
    fake_client.payloads[1] = met_payload(1)

    proxy.get_object(1)
    clock.advance(6 * 86400)
    proxy.get_object(1)
    assert fake_client.object_calls == [1]

    clock.advance(2 * 86400)
    proxy.get_object(1)
    assert fake_client.object_calls == [1, 1]


def test_monet_search_is_served_from_cache_for_a_day(proxy, fake_client, clock) -> None:
    fake_client.search_results["Monet"] = SearchResult(total=3, object_ids=(1, 2, 3))

    first = proxy.search("Monet", has_images=True)
    clock.advance(SHORT_TTL - 1)
    second = proxy.search("Monet", has_images=True)

    assert first == second == SearchResult(total=3, object_ids=(1, 2, 3))
    assert second.to_dict() == {"total": 3, "objectIDs": [1, 2, 3]}
    assert fake_client.search_calls == [("Monet", True)]

    clock.advance(2)
    proxy.search("Monet", has_images=True)
    assert len(fake_client.search_calls) == 2


def test_search_flag_is_part_of_the_key(proxy, fake_client) -> None:
    fake_client.search_results["Monet"] = SearchResult(total=1, object_ids=(9,))

    proxy.search("Monet", has_images=True)
    proxy.search("Monet", has_images=False)

    assert fake_client.search_calls == [("Monet", True), ("Monet", False)]


def test_search_ids_degrades_to_empty_list(proxy) -> None:
    assert proxy.search_ids("nothing configured") == []


def test_missing_object_raises_not_found(proxy, fake_client) -> None:
    with pytest.raises(ObjectNotFound) as info:
        proxy.get_object(999)

    assert info.value.object_id == 999
    assert info.value.failure.kind is FailureKind.NOT_FOUND

    # negative entry: no second upstream call inside the window
    with pytest.raises(ObjectNotFound):
        proxy.get_object(999)
    assert fake_client.object_calls == [999]


def test_object_without_image_is_not_found_but_payload_is_kept(proxy, fake_client) -> None:
    fake_client.payloads[5] = met_payload(5, primaryImage="", primaryImageSmall="")

    outcome = proxy.lookup_object(5)

    assert isinstance(outcome, FetchFailure)
    assert outcome.kind is FailureKind.INVALID_RECORD
    assert proxy.get_object_payload(5)["objectID"] == 5
    assert fake_client.object_calls == [5]


def test_period_search_is_cached(proxy, fake_client) -> None:
    fake_client.period_result = SearchResult(total=2, object_ids=(7, 8))

    first = proxy.search_by_period([11, 21], -3000, 1400)
    second = proxy.search_by_period("11,21", -3000, 1400)

    assert first == second == SearchResult(total=2, object_ids=(7, 8))
    assert fake_client.period_calls == [("11,21", -3000, 1400, True)]


def test_period_search_failure_is_returned(proxy, fake_client) -> None:
    fake_client.period_result = FetchFailure(FailureKind.SERVER_ERROR, status=502)

    outcome = proxy.search_by_period("11", 1400, 1600)

    assert isinstance(outcome, FetchFailure)
    assert outcome.kind is FailureKind.SERVER_ERROR


def test_batch_is_capped_and_returns_partial_results(proxy, fake_client) -> None:
    for i in range(1, 31):
        if i % 2:
            fake_client.payloads[i] = met_payload(i)

    records = proxy.get_batch(list(range(1, 31)))

    assert len(fake_client.object_calls) == BATCH_LIMIT
    assert [r.id for r in records] == [i for i in range(1, BATCH_LIMIT + 1) if i % 2]


def test_batch_ignores_junk_ids(proxy, fake_client) -> None:
    fake_client.payloads[3] = met_payload(3)

    assert [r.id for r in proxy.get_batch(["3", "abc", None])] == [3]
    assert proxy.get_batch([]) == []
