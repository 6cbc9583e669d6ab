"""
Tests for the enlargement HTTP client.
"""
import pytest
import requests

from enlarger.errors import EnlargeError
from enlarger.models.reflection import Direction
from enlarger.models.session_model import ErrorKind
from enlarger.services.enlarge_service import (
    CONNECTION_MESSAGE,
    SERVER_MESSAGE,
    TIMEOUT_MESSAGE,
    TOO_LARGE_MESSAGE,
    EnlargeClient,
    classify_response,
)


@pytest.fixture
def client(http):
    return EnlargeClient("http://enlarge.test/", timeout=30, session=http)


class TestClassifyResponse:
    """Test status code classification."""

    @pytest.mark.parametrize("status, kind, message", [
        (500, ErrorKind.SERVER, SERVER_MESSAGE),
        (504, ErrorKind.TIMEOUT, TIMEOUT_MESSAGE),
        (524, ErrorKind.TIMEOUT, TIMEOUT_MESSAGE),
        (413, ErrorKind.PAYLOAD_TOO_LARGE, TOO_LARGE_MESSAGE),
    ])
    def test_known_statuses(self, status, kind, message):
        assert classify_response(status) == (kind, message)

    def test_other_status_uses_reason(self):
        kind, message = classify_response(418, "I'm a teapot")
        assert kind is ErrorKind.UNKNOWN_HTTP
        assert message == "Failed to process image: I'm a teapot"

    def test_other_status_without_reason(self):
        assert classify_response(502, "")[1] == "Failed to process image: 502"


class TestEnlargeClient:
    """Test the multipart request and error mapping."""

    def test_posts_multipart_form(self, client, http, sample_asset):
        """Test the file and form fields are sent to /enlarge."""
        body = client.enlarge(sample_asset, Direction.LEFT, 3)
        call = http.calls[0]
        assert call["url"] == "http://enlarge.test/enlarge"
        assert call["files"]["file"] == ("sample.png", sample_asset.data, "image/png")
        assert call["data"] == {"reflection_actor": "Left", "enlarge_factor": "3"}
        assert call["timeout"] == 30
        assert body == http.response.content

    def test_factor_is_optional(self, client, http, sample_asset):
        client.enlarge(sample_asset, Direction.ABOVE)
        assert http.calls[0]["data"] == {"reflection_actor": "Above"}

    @pytest.mark.parametrize("error", [
        requests.ConnectionError("refused"),
        requests.Timeout("read timed out"),
    ])
    def test_transport_failure_is_connection_error(self, client, http, sample_asset, error):
        http.error = error
        with pytest.raises(EnlargeError) as exc_info:
            client.enlarge(sample_asset, Direction.ABOVE, 2)
        assert exc_info.value.kind is ErrorKind.CONNECTION
        assert exc_info.value.message == CONNECTION_MESSAGE
        assert exc_info.value.status is None

    def test_non_200_raises_with_status(self, client, http, sample_asset, response_factory):
        http.response = response_factory(413, b"", "Payload Too Large")
        with pytest.raises(EnlargeError) as exc_info:
            client.enlarge(sample_asset, Direction.ABOVE, 2)
        assert exc_info.value.kind is ErrorKind.PAYLOAD_TOO_LARGE
        assert exc_info.value.status == 413
        assert exc_info.value.to_dict()["error_code"] == "payload_too_large"
