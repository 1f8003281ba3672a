"""
test_errors.py - 에러 코드 / 응답 매핑 테스트
"""

import pytest

from src.domain.errors import (
    HTTP_STATUS_BY_CODE,
    ErrorCodes,
    UploadRejectError,
    describe_rejection,
    http_status_for,
)
from src.domain.schemas import UploadOutcome


class TestUploadRejectError:
    """UploadRejectError 테스트."""

    def test_message_includes_context(self):
        error = UploadRejectError(ErrorCodes.PAYLOAD_TOO_LARGE, max_bytes=10, received=11)

        assert str(error) == "[PAYLOAD_TOO_LARGE] max_bytes=10, received=11"

    def test_message_without_context(self):
        assert str(UploadRejectError(ErrorCodes.MISSING_FIELD)) == "[MISSING_FIELD]"

    def test_to_dict(self):
        error = UploadRejectError(ErrorCodes.STORAGE_ERROR, operation="write")

        assert error.to_dict() == {"code": "STORAGE_ERROR", "operation": "write"}


class TestHttpStatus:
    """에러 코드 → HTTP 상태."""

    @pytest.mark.parametrize(
        "code, status",
        [
            (ErrorCodes.MISSING_FIELD, 400),
            (ErrorCodes.MALFORMED_REQUEST, 400),
            (ErrorCodes.UNSUPPORTED_MEDIA_TYPE, 400),
            (ErrorCodes.PAYLOAD_TOO_LARGE, 413),
            (ErrorCodes.STREAM_ERROR, 400),
            (ErrorCodes.STORAGE_ERROR, 500),
        ],
    )
    def test_mapping(self, code, status):
        assert http_status_for(code) == status

    def test_every_code_mapped(self):
        codes = {v for k, v in vars(ErrorCodes).items() if k.isupper()}

        assert codes == set(HTTP_STATUS_BY_CODE)

    def test_unknown_code(self):
        assert http_status_for("SOMETHING_ELSE") == 500


class TestDescribeRejection:
    """클라이언트 메시지 테스트."""

    def test_too_large_mentions_limit(self):
        message = describe_rejection(
            ErrorCodes.PAYLOAD_TOO_LARGE, {"max_bytes": 10 * 1024 * 1024}
        )

        assert message == "File too large! Max size is 10.0 MiB."

    def test_unsupported_mentions_type(self):
        message = describe_rejection(
            ErrorCodes.UNSUPPORTED_MEDIA_TYPE, {"content_type": "image/gif"}
        )

        assert "image/gif" in message

    def test_storage_hides_internals(self):
        """errno, 경로 등 내부 상세는 노출하지 않음."""
        message = describe_rejection(
            ErrorCodes.STORAGE_ERROR,
            {"operation": "write", "path": "/srv/secret/x.part", "errno": 28},
        )

        assert "/srv/secret" not in message
        assert "28" not in message

    def test_outcome_message(self):
        outcome = UploadOutcome.rejected(ErrorCodes.MISSING_FIELD, {"field_name": "meme-file"})

        assert outcome.status_code == 400
        assert "meme-file" in outcome.message
