import pytest

from domain.common.exceptions import SignatureError
from domain.services.signature import SignatureValidator, canonicalize, generate_random_string, hash_data


@pytest.fixture
def validator():
    return SignatureValidator("test-secret-key")


def test_signature_is_order_independent(validator):
    a = validator.generate_signature({"orderId": "O1", "amount": "5000"})
    b = validator.generate_signature({"amount": "5000", "orderId": "O1"})
    assert a == b
    assert len(a) == 64 and a == a.upper()


def test_canonical_form_renders_like_the_gateway():
    assert canonicalize({"b": True, "a": None, "c": 5000.0}) == "a=null&b=true&c=5000"


def test_verify_round_trip_and_mutations(validator):
    payload = {"paymentId": "X", "orderId": "O1", "status": "2", "amount": 5000, "currency": "012"}
    sig = validator.generate_signature(payload)
    assert validator.verify_signature(payload, sig) is True
    assert validator.verify_signature({**payload, "signature": sig}, sig) is True
    assert validator.verify_signature({**payload, "amount": 5001}, sig) is False
    assert validator.verify_signature(payload, sig[:-1] + ("0" if sig[-1] != "0" else "1")) is False
    assert validator.verify_signature(payload, sig[:10]) is False
    assert validator.verify_signature(payload, None) is False


def test_different_secret_does_not_verify(validator):
    payload = {"orderId": "O1"}
    assert SignatureValidator("other").verify_signature(payload, validator.generate_signature(payload)) is False


def test_verify_callback_raises(validator):
    payload = {"paymentId": "X", "amount": 5000}
    with pytest.raises(SignatureError) as ei:
        validator.verify_callback(payload, None)
    assert "Missing signature" in ei.value.message
    with pytest.raises(SignatureError) as ei:
        validator.verify_callback(payload, "0" * 64)
    assert ei.value.message == "Invalid signature"
    assert ei.value.details == {"payload": ["paymentId", "amount"]}
    validator.verify_callback(payload, validator.generate_signature(payload))


def test_sign_request_uses_fixed_fields(validator):
    expected = validator.generate_signature({
        "terminalId": "E010900000",
        "orderId": "O1",
        "amount": "5000",
        "currency": "012",
        "timestamp": "1700000000000",
    })
    assert validator.sign_request("E010900000", "O1", 5000, "012", "1700000000000") == expected


def test_hash_and_random_helpers():
    assert hash_data("abc") == "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"
    token = generate_random_string(16)
    assert len(token) == 32
    assert token != generate_random_string(16)
