import base64
import json

import pytest

from escapepod.licenseformat import InvalidLicenseKey, License, Payload


def test_empty_fields_are_omitted():
    assert License(bot="vic:1234").to_dict() == {"bot": "vic:1234"}
    assert License().to_dict() == {}


def test_canonical_json_is_compact_and_ordered():
    lic = License(email="user@example.com", version="1.0", bot="vic:1234")
    assert lic.canonical_json() == (
        b'{"email":"user@example.com","version":"1.0","bot":"vic:1234"}'
    )


def test_canonical_json_escapes_html_characters():
    lic = License(email="<a&b>")
    assert lic.canonical_json() == b'{"email":"\\u003ca\\u0026b\\u003e"}'


def test_signature_is_base64_in_dict():
    payload = Payload(license=License(bot="b"), signature=b"\x00\x01")
    assert payload.to_dict() == {"payload": {"bot": "b"}, "signature": "AAE="}


def test_empty_payload_has_empty_dict():
    assert Payload().to_dict() == {}


def test_string_round_trip():
    payload = Payload(
        license=License(email="user@example.com", version="1.0", bot="vic:1234"),
        signature=bytes(range(40)),
    )
    assert Payload.from_string(payload.to_string()) == payload


def test_string_is_base64_of_json_dict():
    payload = Payload(license=License(bot="vic:1234"), signature=b"sig")
    decoded = json.loads(base64.b64decode(payload.to_string()))
    assert decoded == payload.to_dict()


def test_dict_round_trip():
    payload = Payload(license=License(email="user@example.com"), signature=b"xyz")
    assert Payload.from_dict(payload.to_dict()) == payload


def test_invalid_key_is_rejected():
    with pytest.raises(InvalidLicenseKey):
        Payload.from_string("12314q2512525154")


def test_non_base64_is_rejected():
    with pytest.raises(InvalidLicenseKey):
        Payload.from_string("not base64 at all!")


def test_null_document_gives_empty_payload():
    text = base64.b64encode(b"null").decode()
    assert Payload.from_string(text) == Payload()


def test_wrong_field_type_is_rejected():
    with pytest.raises(InvalidLicenseKey):
        Payload.from_dict({"payload": {"bot": 5}})


def test_bad_signature_encoding_is_rejected():
    with pytest.raises(InvalidLicenseKey):
        Payload.from_dict({"signature": "***"})


def test_array_document_is_rejected():
    text = base64.b64encode(b"[]").decode()
    with pytest.raises(InvalidLicenseKey):
        Payload.from_string(text)