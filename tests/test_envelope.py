"""Tests for envelope decoding and the error taxonomy."""

import json

import pytest

from vpsie_client.core import (
    APIError,
    Backup,
    BackupPolicy,
    DataShape,
    ErrorKind,
    ListOptions,
    PaginatedResponse,
    RawResponse,
    decode,
)
from vpsie_client.core.envelope import extract_message


def raw(body, status=200) -> RawResponse:
    if not isinstance(body, bytes):
        body = json.dumps(body).encode("utf-8")
    return RawResponse(status=status, body=body, content_type="application/json")


BACKUP = {"identifier": "bk-1", "name": "nightly", "state": "done", "boxId": 42, "vmIdentifier": "vm-9"}


# =============================================================================
# Success paths
# =============================================================================


class TestDecodeSuccess:
    """Successful envelopes resolve into the requested shape."""

    def test_none_shape_ignores_data(self):
        assert decode(raw({"error": False})) is None
        assert decode(raw({"error": False, "data": {"ignored": True}})) is None

    def test_empty_body_with_no_declared_type(self):
        assert decode(raw(b"")) is None
        assert decode(raw(b"", status=204)) is None

    def test_object(self):
        backup = decode(raw({"error": False, "data": BACKUP}), DataShape.OBJECT, Backup.from_dict)
        assert isinstance(backup, Backup)
        assert backup.identifier == "bk-1"
        assert backup.box_id == 42
        assert backup.vm_identifier == "vm-9"

    def test_object_under_key(self):
        backup = decode(raw({"error": False, "data": {"backup": BACKUP}}), DataShape.OBJECT, Backup.from_dict, key="backup")
        assert backup.name == "nightly"

    def test_object_without_parser_returns_dict(self):
        assert decode(raw({"error": False, "data": BACKUP}), DataShape.OBJECT) == BACKUP

    def test_list_with_total(self):
        options = ListOptions(per_page=10)
        page = decode(raw({"error": False, "data": [BACKUP], "total": 11}), DataShape.LIST, Backup.from_dict, options=options)
        assert isinstance(page, PaginatedResponse)
        assert [b.identifier for b in page] == ["bk-1"]
        assert page.total == 11
        assert page.options is options

    def test_empty_list_is_not_an_error(self):
        page = decode(raw({"error": False, "data": [], "total": 0}), DataShape.LIST, Backup.from_dict)
        assert list(page) == []
        assert len(page) == 0
        assert page.total == 0
        assert not page.has_more

    def test_null_list_data_is_empty(self):
        assert list(decode(raw({"error": False, "data": None}), DataShape.LIST)) == []

    def test_total_key_with_trailing_space(self):
        page = decode(raw({"error": False, "data": [BACKUP], "total ": 5}), DataShape.LIST)
        assert page.total == 5

    def test_rows(self):
        body = {"error": False, "data": {"rows": [{"identifier": "pol-1", "vmsCount": 3}], "count": 1}}
        page = decode(raw(body), DataShape.ROWS, BackupPolicy.from_dict)
        assert page.total == 1
        assert page.data[0].identifier == "pol-1"
        assert page.data[0].vms_count == 3

    def test_rows_boolean_count_is_not_a_total(self):
        body = {"error": False, "data": {"rows": [], "count": True}}
        page = decode(raw(body), DataShape.ROWS)
        assert page.total is None


# =============================================================================
# Failure paths
# =============================================================================


class TestDecodeErrors:
    """Every failure surfaces as exactly one APIError kind."""

    @pytest.mark.parametrize("status", [200, 201, 400, 404, 500])
    @pytest.mark.parametrize("shape", list(DataShape))
    def test_error_flag_always_wins(self, status, shape):
        with pytest.raises(APIError) as exc_info:
            decode(raw({"error": True, "data": BACKUP, "total": 1}, status=status), shape, Backup.from_dict)
        assert exc_info.value.kind is ErrorKind.ENVELOPE
        assert exc_info.value.status == status

    def test_envelope_error_keeps_body(self):
        body = {"error": True, "message": "Backup not found"}
        with pytest.raises(APIError) as exc_info:
            decode(raw(body))
        error = exc_info.value
        assert error.message == "Backup not found"
        assert json.loads(error.body) == body
        assert error.details == body

    def test_envelope_error_without_message(self):
        with pytest.raises(APIError) as exc_info:
            decode(raw({"error": True}))
        assert exc_info.value.kind is ErrorKind.ENVELOPE
        assert exc_info.value.message

    @pytest.mark.parametrize("status", [400, 403, 502])
    def test_non_json_error_status(self, status):
        with pytest.raises(APIError) as exc_info:
            decode(raw(b"<html>oops</html>", status=status))
        assert exc_info.value.kind is ErrorKind.HTTP_STATUS
        assert exc_info.value.status == status
        assert exc_info.value.body == b"<html>oops</html>"

    def test_json_without_envelope_on_error_status(self):
        with pytest.raises(APIError) as exc_info:
            decode(raw({"detail": "unauthorized"}, status=401))
        assert exc_info.value.kind is ErrorKind.HTTP_STATUS

    def test_error_status_with_clean_envelope(self):
        with pytest.raises(APIError) as exc_info:
            decode(raw({"error": False, "message": "slow down"}, status=429))
        assert exc_info.value.kind is ErrorKind.HTTP_STATUS
        assert exc_info.value.message == "slow down"

    def test_invalid_json_on_success(self):
        with pytest.raises(APIError) as exc_info:
            decode(raw(b"{not json"), DataShape.OBJECT)
        assert exc_info.value.kind is ErrorKind.DECODE

    def test_non_object_envelope(self):
        with pytest.raises(APIError) as exc_info:
            decode(raw([1, 2, 3]), DataShape.LIST)
        assert exc_info.value.kind is ErrorKind.DECODE

    def test_empty_body_when_data_expected(self):
        with pytest.raises(APIError) as exc_info:
            decode(raw(b""), DataShape.OBJECT)
        assert exc_info.value.kind is ErrorKind.DECODE

    @pytest.mark.parametrize(
        "data, shape",
        [
            ([BACKUP], DataShape.OBJECT),
            ({"identifier": "x"}, DataShape.LIST),
            ([BACKUP], DataShape.ROWS),
            ({"rows": {"not": "a list"}}, DataShape.ROWS),
        ],
    )
    def test_shape_mismatch(self, data, shape):
        with pytest.raises(APIError) as exc_info:
            decode(raw({"error": False, "data": data}), shape)
        assert exc_info.value.kind is ErrorKind.DECODE

    def test_parser_failure(self):
        with pytest.raises(APIError) as exc_info:
            decode(raw({"error": False, "data": {"name": "no identifier"}}), DataShape.OBJECT, Backup.from_dict)
        assert exc_info.value.kind is ErrorKind.DECODE

    def test_missing_key(self):
        with pytest.raises(APIError) as exc_info:
            decode(raw({"error": False, "data": {}}), DataShape.OBJECT, Backup.from_dict, key="backup")
        assert exc_info.value.kind is ErrorKind.DECODE


# =============================================================================
# Message extraction
# =============================================================================


class TestExtractMessage:
    """The message field name varies between endpoints."""

    @pytest.mark.parametrize(
        "payload, expected",
        [
            ({"error": True, "message": "a"}, "a"),
            ({"error": True, "msg": "b"}, "b"),
            ({"error": True, "errorMessage": "c"}, "c"),
            ({"error": True, "errors": ["d", "e"]}, "d; e"),
            ({"error": "f"}, "f"),
            ({"error": True, "data": {"message": "g"}}, "g"),
            ({"error": True, "message": {"message": "h"}}, "h"),
            ({"error": True, "message": ""}, "fallback"),
            ({"error": True, "data": []}, "fallback"),
        ],
    )
    def test_message_sources(self, payload, expected):
        assert extract_message(payload, default="fallback") == expected

    def test_to_dict(self):
        error = APIError("boom", kind=ErrorKind.ENVELOPE, status=200)
        assert error.to_dict() == {"error": "boom", "kind": "envelope", "status": 200}
