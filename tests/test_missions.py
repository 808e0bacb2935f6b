import datetime

import pytest

from battlegrid.missions import MissionStore, missions_from_config


def test_create_applies_defaults():
    store = MissionStore()
    before = datetime.datetime.now(datetime.timezone.utc)
    m = store.create(title="  ", personnel="Alpha, Bravo ,Alpha", equipment="UAV,Radio")
    assert m.title == "Untitled Mission"
    assert m.personnel == ["Alpha", "Bravo"]
    assert m.equipment == ["UAV", "Radio"]
    assert m.id.startswith("mis-")
    due = datetime.datetime.fromisoformat(m.due)
    assert datetime.timedelta(hours=3.9) < due - before < datetime.timedelta(hours=4.1)


def test_create_rejects_unknown_priority():
    with pytest.raises(ValueError, match="priority"):
        MissionStore().create(title="x", priority="Urgent")


def test_list_preserves_insertion_order_and_returns_copies():
    store = MissionStore()
    store.create(title="first", priority="High")
    store.create(title="second", priority="Low")
    listed = store.list()
    assert [m.title for m in listed] == ["first", "second"]
    listed[0].personnel.append("Mallory")
    assert store.list()[0].personnel == []


def test_store_optimize_updates_in_place():
    store = MissionStore()
    for i in range(3):
        store.create(title=f"m{i}")
    result = store.optimize()
    assert [m.personnel for m in result] == [["Alpha"], ["Bravo"], ["Charlie"]]
    assert store.list() == result
    assert store.optimize() == result


def test_seed_missions_from_config(config):
    now = datetime.datetime(2026, 10, 18, 12, 0, tzinfo=datetime.timezone.utc)
    seeded = missions_from_config(config["missions"]["seed"], now=now)
    assert [m.title for m in seeded] == ["North Perimeter Watch", "Bridge Recon"]
    assert seeded[0].personnel == ["Alpha"]
    assert seeded[1].equipment == ["Truck", "FirstAid"]
    assert datetime.datetime.fromisoformat(seeded[0].due) == now + datetime.timedelta(hours=3)
