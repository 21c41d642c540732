"""Tests for the error taxonomy and user-facing descriptions."""

from __future__ import annotations

import pytest

from wpcontent.clients.errors import (
    ErrorKind,
    HTTPStatusError,
    InvalidResponse,
    NetworkFailure,
    NotFoundError,
    RequestCancelled,
    RequestTimeout,
    ValidationError,
    WordPressAPIError,
    describe_error,
    is_retryable,
)


class TestTaxonomy:

    def test_base_error_defaults(self):
        err = WordPressAPIError("Test error", 500, "/posts")
        assert err.code == "UNKNOWN_ERROR"
        assert str(err) == "Test error"

    def test_attributes_are_read_only(self):
        err = HTTPStatusError("Bad gateway", 502, "/posts")
        with pytest.raises(AttributeError):
            err.status = 200
        with pytest.raises(AttributeError):
            err.code = "OK"

    @pytest.mark.parametrize(
        "err,kind,status,retryable",
        [
            (ValidationError("bad", field="post_id"), ErrorKind.VALIDATION, 400, False),
            (RequestTimeout("/posts", 10.0), ErrorKind.TIMEOUT, 408, True),
            (NetworkFailure("refused", "/posts", 4), ErrorKind.NETWORK, 0, True),
            (HTTPStatusError("x", 503, "/posts"), ErrorKind.HTTP_STATUS, 503, True),
            (HTTPStatusError("x", 429, "/posts"), ErrorKind.HTTP_STATUS, 429, True),
            (HTTPStatusError("x", 401, "/posts"), ErrorKind.HTTP_STATUS, 401, False),
            (NotFoundError("gone", "/posts/1"), ErrorKind.NOT_FOUND, 404, False),
            (InvalidResponse("null", "/posts"), ErrorKind.INVALID_RESPONSE, 500, False),
            (RequestCancelled("/posts"), ErrorKind.CANCELLED, 0, False),
        ],
    )
    def test_classification(self, err, kind, status, retryable):
        assert err.kind is kind
        assert err.status == status
        assert err.retryable is retryable
        assert is_retryable(err) is retryable
        assert err.to_dict()["kind"] == kind.value

    def test_unknown_exceptions_are_retryable(self):
        assert is_retryable(ConnectionError("x")) is True


class TestDescribeError:

    def test_maps_without_reading_message(self):
        assert "connection" in describe_error(NetworkFailure("ECONNREFUSED", "/posts", 1)).lower()
        assert "could not be found" in describe_error(NotFoundError("whatever", "/posts"))
        assert "server" in describe_error(HTTPStatusError("???", 502, "/posts")).lower()
        assert "too long" in describe_error(RequestTimeout("/posts", 5))

    def test_access_and_rate_limit(self):
        assert "access" in describe_error(HTTPStatusError("x", 403, "/posts"))
        assert "Too many" in describe_error(HTTPStatusError("x", 429, "/posts"))

    def test_foreign_exception(self):
        assert describe_error(RuntimeError("boom")) == "Something went wrong. Please try again."
