from datetime import datetime, timedelta, timezone

import pytest

from errors import InvalidTemperature
from store import LogStore, TemperatureDraft
from zones import classify

T0 = datetime(2026, 2, 1, 10, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, *times):
        self._times = list(times)

    def __call__(self):
        return self._times.pop(0)


def test_append_valid_entry():
    store = LogStore(clock=FakeClock(T0))
    entry = store.append(TemperatureDraft("98.6", feeling="fine"))
    assert len(store) == 1
    assert store.all() == (entry,)
    assert entry.temperature == pytest.approx(98.6)
    assert entry.feeling == "fine"
    assert entry.timestamp == T0
    assert classify(entry.temperature).label == "Normal"


def test_entries_are_immutable():
    store = LogStore(clock=FakeClock(T0))
    entry = store.append(TemperatureDraft("98.6"))
    with pytest.raises(AttributeError):
        entry.temperature = 100.0


def test_earlier_timestamp_sorts_first():
    store = LogStore(clock=FakeClock(T0, T0 - timedelta(hours=1)))
    late = store.append(TemperatureDraft("103.5"))
    early = store.append(TemperatureDraft("100.0"))
    assert classify(late.temperature).label == "High-grade"
    assert store.all() == (early, late)


def test_equal_timestamps_keep_insertion_order():
    store = LogStore(clock=FakeClock(T0, T0, T0))
    a = store.append(TemperatureDraft("99"))
    b = store.append(TemperatureDraft("100"))
    c = store.append(TemperatureDraft("101"))
    assert store.all() == (a, b, c)


@pytest.mark.parametrize("raw", ["", "abc", "  ", "nan", "1e999", "°F"])
def test_invalid_temperature_leaves_store_unchanged(raw):
    store = LogStore(clock=FakeClock(T0, T0))
    first = store.append(TemperatureDraft("99.5"))
    with pytest.raises(InvalidTemperature):
        store.append(TemperatureDraft(raw, feeling="bad"))
    assert store.all() == (first,)


def test_sequence_stays_sorted_and_grows():
    offsets = [5, -3, 0, 12, -7, 2]
    store = LogStore(clock=FakeClock(*[T0 + timedelta(minutes=m) for m in offsets]))
    for i, _ in enumerate(offsets):
        before = len(store)
        store.append(TemperatureDraft(str(98 + i)))
        assert len(store) == before + 1
        stamps = [e.timestamp for e in store.all()]
        assert stamps == sorted(stamps)


def test_listeners_receive_snapshot_and_can_unsubscribe():
    store = LogStore(clock=FakeClock(T0, T0 + timedelta(minutes=1)))
    seen = []
    unsubscribe = store.subscribe(seen.append)
    entry = store.append(TemperatureDraft("99"))
    assert seen == [(entry,)]
    unsubscribe()
    store.append(TemperatureDraft("100"))
    assert len(seen) == 1


def test_listeners_not_called_on_rejected_append():
    store = LogStore(clock=FakeClock(T0))
    seen = []
    store.subscribe(seen.append)
    with pytest.raises(InvalidTemperature):
        store.append(TemperatureDraft("oops"))
    assert seen == []


def test_to_frame_columns_and_zone():
    store = LogStore(clock=FakeClock(T0))
    store.append(TemperatureDraft("101.0", medicines="Ibuprofen 200mg"))
    df = store.to_frame()
    assert list(df.columns) == ["time", "temperature_f", "zone", "feeling", "medicines", "notes"]
    assert df.iloc[0]["time"] == "2026-02-01 10:00:00"
    assert df.iloc[0]["zone"] == "Moderate"
    assert df.iloc[0]["medicines"] == "Ibuprofen 200mg"


def test_to_frame_empty():
    df = LogStore().to_frame()
    assert df.empty
    assert "temperature_f" in df.columns
