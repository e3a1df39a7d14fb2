"""
Unit tests for the SES email sender. The boto3 client is mocked.
"""

import pytest
from unittest.mock import MagicMock, patch

from botocore.exceptions import ClientError, EndpointConnectionError

from dictation_mail.errors import DispatchFailure
from dictation_mail.services.email_sender import SesEmailSender


def _client_error(code: str = "MessageRejected") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": "nope"}}, "SendEmail")


class TestSend:
    def test_structured_send_builds_simple_content(self):
        client = MagicMock()
        client.send_email.return_value = {"MessageId": "msg-1"}

        message_id = SesEmailSender(client).send(
            "no-reply@example.com", "tester@example.com", "Subject", "text", "<p>html</p>"
        )

        assert message_id == "msg-1"
        kwargs = client.send_email.call_args.kwargs
        assert kwargs["FromEmailAddress"] == "no-reply@example.com"
        assert kwargs["Destination"] == {"ToAddresses": ["tester@example.com"]}
        simple = kwargs["Content"]["Simple"]
        assert simple["Subject"] == {"Data": "Subject", "Charset": "UTF-8"}
        assert simple["Body"]["Text"]["Data"] == "text"
        assert simple["Body"]["Html"]["Data"] == "<p>html</p>"

    def test_raw_send_passes_bytes_through(self):
        client = MagicMock()
        client.send_email.return_value = {"MessageId": "msg-raw"}
        raw = b"From: a\r\n\r\nbody\r\n"

        message_id = SesEmailSender(client).send_raw("a@example.com", "b@example.com", raw)

        assert message_id == "msg-raw"
        kwargs = client.send_email.call_args.kwargs
        assert kwargs["Content"] == {"Raw": {"Data": raw}}
        assert kwargs["Destination"] == {"ToAddresses": ["b@example.com"]}


class TestFailures:
    def test_client_error_maps_to_dispatch_failure(self):
        client = MagicMock()
        client.send_email.side_effect = _client_error("MessageRejected")

        with pytest.raises(DispatchFailure) as exc_info:
            SesEmailSender(client).send_raw("a@example.com", "b@example.com", b"x")

        assert exc_info.value.status_code == 500
        assert "MessageRejected" in exc_info.value.detail["message"]

    def test_connection_error_maps_to_dispatch_failure(self):
        client = MagicMock()
        client.send_email.side_effect = EndpointConnectionError(endpoint_url="https://email.us-west-2.amazonaws.com")

        with pytest.raises(DispatchFailure):
            SesEmailSender(client).send("a@example.com", "b@example.com", "s", "t", "h")

    def test_missing_message_id_is_a_dispatch_failure(self):
        client = MagicMock()
        client.send_email.return_value = {}

        with pytest.raises(DispatchFailure):
            SesEmailSender(client).send("a@example.com", "b@example.com", "s", "t", "h")


class TestForRegion:
    def test_creates_sesv2_client_in_region(self):
        with patch("dictation_mail.services.email_sender.boto3") as mock_boto3:
            SesEmailSender.for_region("eu-west-1")

        mock_boto3.client.assert_called_once_with("sesv2", region_name="eu-west-1")
