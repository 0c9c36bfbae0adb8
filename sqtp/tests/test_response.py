import pytest

from sqtp.errors import HttpError
from sqtp.http.response import decode_body, normalize, restore_header_case, summarize
from sqtp.models.messages import RawResponse

from conftest import RecordingTransport


def test_non_json_success_body_is_kept_as_text():
    res = normalize(RawResponse(200, {"content-type": "text/plain"}, b"not json"))
    assert res.ok
    assert res.data == "not json"


def test_json_body_is_parsed():
    res = normalize(
        RawResponse(200, {"content-type": "application/json"}, b'[{"id": 1}]', elapsed_ms=4)
    )
    assert res.status_code == 200
    assert res.data == [{"id": 1}]
    assert res.elapsed_ms == 4


def test_error_status_raises_even_with_json_body():
    raw = RawResponse(404, {"content-type": "application/json"}, b'{"error": "no such table"}')
    with pytest.raises(HttpError) as ei:
        normalize(raw)
    assert ei.value.status == 404
    assert ei.value.data == {"error": "no such table"}
    assert str(ei.value) == "HTTP 404: no such table"


def test_error_with_text_body():
    with pytest.raises(HttpError) as ei:
        normalize(RawResponse(500, {}, b"boom"))
    assert ei.value.status == 500
    assert ei.value.data == "boom"


@pytest.mark.parametrize("status", [199, 300, 301, 400, 503])
def test_any_status_outside_2xx_is_an_error(status):
    with pytest.raises(HttpError):
        normalize(RawResponse(status, {}, b""))


@pytest.mark.parametrize("body", [b"", b"  \n", None])
def test_empty_body_is_none(body):
    assert normalize(RawResponse(204, {}, body)).data is None


def test_protocol_headers_get_their_casing_back():
    raw = RawResponse(
        200,
        {
            "x-sqtp-changes": "3",
            "x-sqtp-last-insert-id": "41",
            "x-sqtp-protocol": "SQTP/1.0",
            "content-type": "application/json",
        },
        b"{}",
    )
    res = normalize(raw)
    assert res.headers["X-SQTP-Changes"] == "3"
    assert res.headers["X-SQTP-Last-Insert-Id"] == "41"
    assert res.headers["X-SQTP-Protocol"] == "SQTP/1.0"
    assert res.headers["content-type"] == "application/json"
    assert res.changes == 3
    assert res.last_insert_id == 41
    assert res.protocol == "SQTP/1.0"


def test_counters_absent_or_garbled_are_none():
    res = normalize(RawResponse(200, {"X-SQTP-Changes": "n/a"}, b"[]"))
    assert res.changes is None
    assert res.last_insert_id is None


def test_charset_from_content_type():
    body = "café".encode("latin-1")
    assert decode_body(body, {"Content-Type": "text/plain; charset=latin-1"}) == "café"


def test_unknown_charset_falls_back_to_utf8():
    body = '"ok"'.encode("utf-8")
    assert decode_body(body, {"Content-Type": "application/json; charset=bogus-42"}) == "ok"


def test_str_body_passes_through_decoder():
    assert decode_body('{"a": 1}', {}) == {"a": 1}


def test_restore_header_case_leaves_others_alone():
    assert restore_header_case({"X-Other": 1, "x-sqtp-changes": 2}) == {
        "X-Other": "1",
        "X-SQTP-Changes": "2",
    }


def test_summarize():
    assert summarize(None) is None
    assert summarize([1, 2]) == "array[2]"
    assert summarize({"a": 1}) == "object[1]"
    assert summarize("abc") == "text[3]"


def test_client_surfaces_normalized_result(client, transport):
    transport.responses.append(
        RawResponse(200, {"x-sqtp-changes": "2"}, b"plain text", elapsed_ms=7)
    )
    res = client.delete("users").where("id < 3").execute()
    assert res.data == "plain text"
    assert res.changes == 2


def test_client_raises_http_error(client):
    client.transport = RecordingTransport([RawResponse(409, {}, b'{"message": "conflict"}')])
    with pytest.raises(HttpError) as ei:
        client.insert("users").values({"id": 1}).execute()
    assert ei.value.status == 409
    assert "conflict" in str(ei.value)


def test_protocol_mismatch_is_logged_not_raised(client, transport, caplog):
    transport.responses.append(RawResponse(200, {"x-sqtp-protocol": "SQTP/2.0"}, b"[]"))
    with caplog.at_level("WARNING", logger="sqtp.client"):
        res = client.select("users").execute()
    assert res.protocol == "SQTP/2.0"
    assert "SQTP/2.0" in caplog.text
