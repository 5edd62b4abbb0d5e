import pytest
from video_job_client.utils import camel_to_snake, is_media_audio, to_snake_case


@pytest.mark.parametrize(
    "key, expected",
    [
        ("outputUrl", "output_url"),
        ("wordTimestamps", "word_timestamps"),
        ("streamURL", "stream_url"),
        ("video2Id", "video2_id"),
        ("already_snake", "already_snake"),
        ("id", "id"),
    ],
)
def test_camel_to_snake(key, expected):
    assert camel_to_snake(key) == expected


def test_nested_keys_are_converted():
    payload = {
        "collectionId": "c-1",
        "meta": {"streamUrl": "s", "playerUrl": "p"},
        "wordTimestamps": [{"startTime": 0.1}, "plain", 3],
    }

    assert to_snake_case(payload) == {
        "collection_id": "c-1",
        "meta": {"stream_url": "s", "player_url": "p"},
        "word_timestamps": [{"start_time": 0.1}, "plain", 3],
    }


def test_values_are_left_alone():
    assert to_snake_case({"name": "camelCaseValue"}) == {"name": "camelCaseValue"}
    assert to_snake_case("someString") == "someString"
    assert to_snake_case(None) is None


def test_canonical_payload_is_unchanged():
    payload = {"collection_id": "c-1", "word_timestamps": [{"start_time": 0}]}

    once = to_snake_case(payload)

    assert once == payload
    assert to_snake_case(once) == once


@pytest.mark.parametrize(
    "data, expected",
    [
        ({"id": "a-123"}, True),
        ({"id": "m-123"}, False),
        ({"id": None}, False),
        ({}, False),
    ],
)
def test_is_media_audio(data, expected):
    assert is_media_audio(data) is expected
