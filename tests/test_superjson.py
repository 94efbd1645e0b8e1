"""Tests for the date-preserving JSON transformer."""

from datetime import date, datetime, timedelta, timezone

from app.utils.superjson import deserialize, serialize

CREATED = datetime(2024, 5, 1, 12, 30, 15, 123456, tzinfo=timezone.utc)


def test_plain_values_have_no_meta() -> None:
    payload = serialize({"a": 1, "b": ["x", None, True]})

    assert payload == {"json": {"a": 1, "b": ["x", None, True]}}


def test_dates_are_annotated_by_path() -> None:
    payload = serialize([{"post": {"createdAt": CREATED}}])

    assert payload["json"] == [{"post": {"createdAt": "2024-05-01T12:30:15.123Z"}}]
    assert payload["meta"] == {"values": {"0.post.createdAt": ["Date"]}}


def test_naive_datetime_is_treated_as_utc() -> None:
    payload = serialize({"at": datetime(2024, 1, 2, 3, 4, 5)})

    assert payload["json"]["at"] == "2024-01-02T03:04:05.000Z"


def test_offset_datetime_is_normalised_to_utc() -> None:
    plus_two = timezone(timedelta(hours=2))

    payload = serialize({"at": datetime(2024, 1, 2, 14, 0, tzinfo=plus_two)})

    assert payload["json"]["at"] == "2024-01-02T12:00:00.000Z"


def test_dates_come_back_as_datetimes() -> None:
    restored = deserialize(serialize({"items": [{"at": CREATED}, {"at": None}]}))

    assert restored["items"][0]["at"] == CREATED.replace(microsecond=123000)
    assert restored["items"][1]["at"] is None


def test_bare_date_value() -> None:
    payload = serialize(date(2024, 2, 29))

    assert payload["meta"] == {"values": {"": ["Date"]}}
    assert deserialize(payload) == datetime(2024, 2, 29, tzinfo=timezone.utc)


def test_dotted_keys_are_escaped() -> None:
    payload = serialize({"a.b": {"when": CREATED}})

    assert "a\\.b.when" in payload["meta"]["values"]
    assert isinstance(deserialize(payload)["a.b"]["when"], datetime)


def test_sets_round_trip() -> None:
    restored = deserialize(serialize({"tags": {"x"}}))

    assert restored == {"tags": {"x"}}
