import base64
import hashlib
import hmac

import flask
import pytest

from svckit.hmac_verifier import (
    DEFAULT_SIGNATURE_HEADER,
    HmacVerifier,
    InvalidSignatureError,
)

KEYS = ("some-key", "some-other-key", "k")


def _ok():
    return "", 200


def _asset_coin(request):
    return request.args.get("asset", "") + ":" + request.args.get("coin", "")


def _client(view):
    app = flask.Flask(__name__)
    app.add_url_rule("/", "signed", view)
    return app.test_client()


def _sign(key: bytes, text: str) -> str:
    digest = hmac.new(key, text.encode(), hashlib.sha256).digest()
    return base64.b64encode(digest).decode()


@pytest.fixture
def verifier():
    return HmacVerifier(keys=KEYS)


def test_unauthorized_when_signature_not_provided(verifier):
    client = _client(verifier.signed_handler(_ok, _asset_coin))
    assert client.get("/").status_code == 401


def test_signature_verification_success_for_all_keys(verifier):
    client = _client(verifier.signed_handler(_ok, _asset_coin))
    assert len(verifier.keys) == 3
    for key in verifier.keys:
        sig = _sign(key, "123:60")
        resp = client.get("/?asset=123&coin=60", headers={"X-REQ-SIG": sig})
        assert resp.status_code == 200


def test_signature_verification_failure(verifier):
    client = _client(verifier.signed_handler(_ok, _asset_coin))
    resp = client.get(
        "/?asset=123&coin=60",
        headers={"X-REQ-SIG": "JBdWTO5yR2GB0TOT8YcM7AjWaJaMtVrAFOYUlZRNlYg="},
    )
    assert resp.status_code == 401


def test_bad_request_when_signature_cannot_be_extracted():
    def failing_signature(request):
        raise RuntimeError("some error")

    verifier = HmacVerifier(keys=KEYS, signature_fn=failing_signature)
    client = _client(verifier.signed_handler(_ok, lambda request: "whatever"))
    assert client.get("/").status_code == 400


def test_bad_request_when_plaintext_cannot_be_extracted():
    def failing_plaintext(request):
        raise RuntimeError("plaintext cannot be extracted")

    verifier = HmacVerifier(keys=KEYS)
    client = _client(verifier.signed_handler(_ok, failing_plaintext))
    assert client.get("/").status_code == 400


def test_override_signature_encoder():
    verifier = HmacVerifier(keys=KEYS, encoder=lambda digest: "some-static-sig")
    client = _client(verifier.signed_handler(_ok, lambda request: "whatever"))
    resp = client.get("/", headers={DEFAULT_SIGNATURE_HEADER: "some-static-sig"})
    assert resp.status_code == 200


def test_override_signature_location():
    verifier = HmacVerifier(keys=KEYS, signature_fn=lambda request: request.args.get("sig", ""))
    client = _client(verifier.signed_handler(_ok, lambda request: "whatever"))
    sig = _sign(b"k", "whatever")
    assert client.get("/", query_string={"sig": sig}).status_code == 200
    assert client.get("/", query_string={"sig": "nope"}).status_code == 401


def test_verify_signature_direct(verifier):
    verifier.verify_signature(b"msg", _sign(b"some-key", "msg"))
    with pytest.raises(InvalidSignatureError):
        verifier.verify_signature(b"msg", _sign(b"unknown", "msg"))


def test_no_keys_never_verifies():
    verifier = HmacVerifier()
    with pytest.raises(InvalidSignatureError):
        verifier.verify_signature("msg", "")


def test_wrapped_handler_receives_view_arguments(verifier):
    app = flask.Flask(__name__)
    view = verifier.signed_handler(lambda item: item.upper(), lambda request: "whatever")
    app.add_url_rule("/items/<item>", "item", view)
    sig = _sign(b"k", "whatever")
    resp = app.test_client().get("/items/abc", headers={"X-REQ-SIG": sig})
    assert resp.status_code == 200
    assert resp.get_data(as_text=True) == "ABC"