import random
from dataclasses import replace
from datetime import datetime

import pytest

from app.numbering.domain.errors import InvalidDate, NumberCollision, OutOfRange
from app.numbering.domain.engine import (
    compute_number_for_new_request,
    fold_request,
    recalculate_all,
)


def numbers_by_id(requests):
    return {r.id: r.generated_number for r in requests}


def test_new_request_on_empty_collection(make_request):
    request = make_request("r1", "2025-10-20")

    assert compute_number_for_new_request(request, []) == "001/LHP/PM.00.02/JI-24/20/X/2025"


def test_second_request_on_same_date_gets_suffix(make_request):
    first = make_request("r1", "2025-10-20", minute=0)
    second = make_request("r2", "2025-10-20", minute=1)

    assert (
        compute_number_for_new_request(second, [first])
        == "001.1/LHP/PM.00.02/JI-24/20/X/2025"
    )


def test_new_request_already_in_collection_is_not_duplicated(make_request):
    request = make_request("r1", "2025-10-20")

    assert compute_number_for_new_request(request, [request]) == (
        "001/LHP/PM.00.02/JI-24/20/X/2025"
    )
    assert len(fold_request(request, [request])) == 1


def test_backdated_request_shifts_later_dates(make_request):
    existing = recalculate_all([make_request("r1", "2025-10-20", minute=0)])
    assert existing[0].generated_number == "001/LHP/PM.00.02/JI-24/20/X/2025"

    backdated = make_request("r2", "2025-10-15", minute=1)
    assert (
        compute_number_for_new_request(backdated, existing)
        == "001/LHP/PM.00.02/JI-24/15/X/2025"
    )

    refreshed = numbers_by_id(recalculate_all(existing + [backdated]))
    assert refreshed == {
        "r1": "002/LHP/PM.00.02/JI-24/20/X/2025",
        "r2": "001/LHP/PM.00.02/JI-24/15/X/2025",
    }


def test_recalculation_matches_incremental_numbering(make_request):
    arrivals = [
        make_request("a", "2025-10-20", minute=0),
        make_request("b", "2025-10-22", minute=1),
        make_request("c", "2025-10-20", minute=2),
        make_request("d", "2025-10-21", minute=3),
    ]
    collection = []
    for request in arrivals:
        number = compute_number_for_new_request(request, collection)
        collection.append(replace(request, generated_number=number))
    incremental_final = numbers_by_id(recalculate_all(collection))

    assert incremental_final == numbers_by_id(recalculate_all(arrivals))
    assert incremental_final == {
        "a": "001/LHP/PM.00.02/JI-24/20/X/2025",
        "b": "003/LHP/PM.00.02/JI-24/22/X/2025",
        "c": "001.1/LHP/PM.00.02/JI-24/20/X/2025",
        "d": "002/LHP/PM.00.02/JI-24/21/X/2025",
    }


def test_recalculation_is_idempotent(make_request):
    requests = [
        make_request("a", "2025-10-20", minute=5),
        make_request("b", "2025-09-01", minute=3),
        make_request("c", "2025-10-20", minute=1),
    ]
    once = recalculate_all(requests)

    assert recalculate_all(once) == once


def test_recalculation_keeps_input_order_and_leaves_input_untouched(make_request):
    requests = [
        make_request("b", "2025-10-21", minute=1),
        make_request("a", "2025-10-20", minute=0),
    ]

    refreshed = recalculate_all(requests)

    assert [r.id for r in refreshed] == ["b", "a"]
    assert all(r.generated_number is None for r in requests)


def test_recalculation_is_independent_of_insertion_order(make_request):
    requests = [
        make_request(f"r{index}", f"2025-{1 + index % 12:02d}-{1 + index % 28:02d}", minute=index)
        for index in range(40)
    ]
    expected = numbers_by_id(recalculate_all(requests))

    shuffled = list(requests)
    random.Random(7).shuffle(shuffled)

    assert numbers_by_id(recalculate_all(shuffled)) == expected


def test_numbers_are_unique_within_collection(make_request):
    requests = [
        make_request(f"r{index}", f"2025-10-{1 + index % 5:02d}", minute=index)
        for index in range(25)
    ]

    numbers = [r.generated_number for r in recalculate_all(requests)]

    assert len(set(numbers)) == len(numbers)


def test_frozen_number_survives_recalculation(make_request):
    frozen = make_request(
        "r1",
        "2025-10-20",
        generated_number="001/LHP/PM.00.02/JI-24/20/X/2025",
        frozen=True,
    )
    later = make_request("r2", "2025-10-21", minute=1)

    refreshed = numbers_by_id(recalculate_all([frozen, later]))

    assert refreshed["r1"] == "001/LHP/PM.00.02/JI-24/20/X/2025"
    assert refreshed["r2"] == "002/LHP/PM.00.02/JI-24/21/X/2025"


def test_later_request_skips_a_frozen_tie_break(make_request):
    # r1 was issued as the second request of its date and its predecessor
    # is gone, so the next request on that date must not take 001.1 again.
    frozen = make_request(
        "r1",
        "2025-10-20",
        minute=1,
        generated_number="001.1/LHP/PM.00.02/JI-24/20/X/2025",
        frozen=True,
    )
    newcomer = make_request("r2", "2025-10-20", minute=2)
    another = make_request("r3", "2025-10-20", minute=3)

    assert (
        compute_number_for_new_request(newcomer, [frozen])
        == "001.2/LHP/PM.00.02/JI-24/20/X/2025"
    )
    assert numbers_by_id(recalculate_all([another, frozen, newcomer])) == {
        "r1": "001.1/LHP/PM.00.02/JI-24/20/X/2025",
        "r2": "001.2/LHP/PM.00.02/JI-24/20/X/2025",
        "r3": "001.3/LHP/PM.00.02/JI-24/20/X/2025",
    }


def test_first_request_keeps_index_zero_next_to_a_frozen_one(make_request):
    frozen = make_request(
        "r1",
        "2025-10-20",
        minute=5,
        generated_number="001.1/LHP/PM.00.02/JI-24/20/X/2025",
        frozen=True,
    )
    earliest = make_request("r0", "2025-10-20", minute=0)

    assert numbers_by_id(recalculate_all([frozen, earliest]))["r0"] == (
        "001/LHP/PM.00.02/JI-24/20/X/2025"
    )


def test_duplicate_frozen_numbers_are_reported(make_request):
    number = "001/LHP/PM.00.02/JI-24/20/X/2025"
    first = make_request("r1", "2025-10-20", generated_number=number, frozen=True)
    second = make_request("r2", "2025-10-20", minute=1, generated_number=number, frozen=True)

    with pytest.raises(NumberCollision):
        recalculate_all([first, second])


def test_datetime_supervision_date_is_rejected(make_request):
    with pytest.raises(InvalidDate):
        make_request("r1", datetime(2025, 10, 20, 9, 0))


def test_malformed_date_next_to_a_valid_one_is_invalid_date(make_request):
    good = make_request("r1", "2025-10-20")

    with pytest.raises(InvalidDate):
        recalculate_all([good, replace(good, id="r2", supervision_date="2025-10-21")])


def test_thousandth_date_is_out_of_range(make_request):
    requests = [
        make_request(f"r{day}", f"{2000 + day // 365}-01-01", minute=day)
        for day in range(0, 1000 * 365, 365)
    ]

    with pytest.raises(OutOfRange):
        recalculate_all(requests)
