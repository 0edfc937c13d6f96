import json

import pytest

from talentgate.core.codec import CollectionDecodeError, decode_collection, encode_collection, encode_collections


def test_round_trip_preserves_well_formed_collections() -> None:
    languages = [{"name": "Arabic", "level": "Native"}, {"name": "English", "level": "Intermediate"}]
    experience = [
        {"title": "Analyst", "company": "Djezzy", "start_date": "2019-02", "end_date": "", "description": "BI"}
    ]

    assert decode_collection("languages", encode_collection("languages", languages)) == languages
    assert decode_collection("experience", encode_collection("experience", experience)) == experience


def test_empty_collection_round_trips_to_empty_list() -> None:
    for value in (None, "", [], "[]"):
        assert decode_collection("soft_skills", encode_collection("soft_skills", value)) == []


def test_unknown_keys_survive_round_trip() -> None:
    skills = [{"name": "Negotiation", "level": "Expert", "years": 4}]
    assert decode_collection("soft_skills", encode_collection("soft_skills", skills)) == skills


def test_legacy_json_text_is_accepted() -> None:
    stored = json.dumps([{"name": "French", "level": "Fluent"}])
    assert decode_collection("languages", stored) == [{"name": "French", "level": "Fluent"}]


def test_certificates_are_plain_references() -> None:
    refs = ["/uploads/applications/documents/ref-1.pdf"]
    assert encode_collection("certificates", refs) == refs


def test_malformed_json_names_the_field() -> None:
    with pytest.raises(CollectionDecodeError) as exc_info:
        decode_collection("experience", "[{not json")
    assert exc_info.value.field == "experience"


def test_unknown_level_is_rejected() -> None:
    with pytest.raises(CollectionDecodeError) as exc_info:
        encode_collection("languages", [{"name": "German", "level": "Godlike"}])
    assert exc_info.value.field == "languages"


def test_encode_collections_fills_every_field() -> None:
    encoded = encode_collections({"languages": [{"name": "Tamazight", "level": "Native"}]})
    assert set(encoded) == {"experience", "certifications", "soft_skills", "languages", "certificates"}
    assert encoded["experience"] == []
    assert encoded["languages"] == [{"name": "Tamazight", "level": "Native"}]
