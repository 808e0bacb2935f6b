from battlegrid.allocator import ROTATION, dedupe, least_loaded, load_counts, optimize
from battlegrid.types import Mission


def mission(mid, personnel=None):
    return Mission(
        id=mid,
        title=f"Mission {mid}",
        description="",
        due="2026-10-18T12:00:00+00:00",
        priority="Medium",
        personnel=list(personnel or []),
        equipment=["Radio"],
    )


def names(missions):
    return [m.personnel for m in missions]


def test_cold_start_uses_rotation():
    missions = [mission(f"m{i}") for i in range(1, 6)]
    result = optimize(missions)
    assert names(result) == [["Alpha"], ["Bravo"], ["Charlie"], ["Delta"], ["Alpha"]]
    assert ROTATION == ("Alpha", "Bravo", "Charlie", "Delta")


def test_empty_store_is_fine():
    assert optimize([]) == []


def test_duplicates_removed_stably():
    result = optimize([mission("m1", ["Bravo", "Alpha", "Bravo", "", "Alpha"])])
    assert names(result) == [["Bravo", "Alpha"]]


def test_unassigned_mission_gets_least_loaded():
    missions = [
        mission("m1", ["Alpha"]),
        mission("m2", ["Alpha", "Bravo"]),
        mission("m3", ["Charlie", "Alpha"]),
        mission("m4"),
    ]
    result = optimize(missions)
    assert result[3].personnel == ["Bravo"]


def test_least_loaded_tie_breaks_lexicographically():
    missions = [mission("m1", ["Zulu"]), mission("m2", ["Echo"]), mission("m3")]
    assert optimize(missions)[2].personnel == ["Echo"]
    assert least_loaded({"Zulu": 1, "Echo": 1, "Kilo": 2}) == "Echo"


def test_load_snapshot_is_not_rebalanced_within_a_pass():
    missions = [mission("m1", ["Alpha"]), mission("m2", ["Alpha", "Bravo"]), mission("m3"), mission("m4")]
    result = optimize(missions)
    # Both empty missions get the same pick from the start-of-pass snapshot.
    assert result[2].personnel == ["Bravo"]
    assert result[3].personnel == ["Bravo"]


def test_load_counts_per_mission_not_per_mention():
    counts = load_counts([mission("m1", ["Alpha", "Alpha"]), mission("m2", ["Alpha"])])
    assert counts == {"Alpha": 2}


def test_fallback_when_no_candidates():
    assert least_loaded({}) == "Alpha"


def test_optimize_is_idempotent():
    cases = [
        [mission(f"m{i}") for i in range(5)],
        [mission("m1", ["Alpha", "Alpha"]), mission("m2"), mission("m3", ["Bravo"])],
        [mission("m1", ["Echo"]), mission("m2", ["", "Echo", "Delta"]), mission("m3")],
    ]
    for missions in cases:
        once = optimize(missions)
        assert optimize(once) == once


def test_input_not_modified_and_order_preserved():
    missions = [mission("m2", ["Bravo", "Bravo"]), mission("m1")]
    result = optimize(missions)
    assert [m.id for m in result] == ["m2", "m1"]
    assert missions[0].personnel == ["Bravo", "Bravo"]
    assert missions[1].personnel == []
    assert result[1].equipment is not missions[1].equipment


def test_dedupe_helper():
    assert dedupe(["a", "b", "a", "", "c", "b"]) == ["a", "b", "c"]
