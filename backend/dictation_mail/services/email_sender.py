"""
Outbound email through Amazon SES v2.

Two entry points mirror the two SES content shapes:

- ``send``      structured Simple content (subject/text/html)
- ``send_raw``  a fully formed MIME message

Provider failures are surfaced as DispatchFailure and are not retried.
"""

import logging
from typing import Protocol

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from dictation_mail.errors import DispatchFailure

logger = logging.getLogger(__name__)


class EmailSink(Protocol):
    def send(self, from_addr: str, to_addr: str, subject: str, text: str, html: str) -> str: ...

    def send_raw(self, from_addr: str, to_addr: str, raw: bytes) -> str: ...


class SesEmailSender:
    def __init__(self, client):
        self._client = client

    @classmethod
    def for_region(cls, region: str) -> "SesEmailSender":
        return cls(boto3.client("sesv2", region_name=region))

    def _send(self, **kwargs) -> str:
        try:
            resp = self._client.send_email(**kwargs)
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "ClientError")
            logger.error(f"SES rejected message ({code}): {e}")
            raise DispatchFailure(f"Email provider rejected the message: {code}")
        except BotoCoreError as e:
            logger.error(f"SES request failed: {e}")
            raise DispatchFailure("Email provider request failed")

        message_id = (resp or {}).get("MessageId")
        if not message_id:
            raise DispatchFailure("Email provider returned no message id")
        return message_id

    def send(self, from_addr: str, to_addr: str, subject: str, text: str, html: str) -> str:
        return self._send(
            FromEmailAddress=from_addr,
            Destination={"ToAddresses": [to_addr]},
            Content={
                "Simple": {
                    "Subject": {"Data": subject, "Charset": "UTF-8"},
                    "Body": {
                        "Text": {"Data": text, "Charset": "UTF-8"},
                        "Html": {"Data": html, "Charset": "UTF-8"},
                    },
                }
            },
        )

    def send_raw(self, from_addr: str, to_addr: str, raw: bytes) -> str:
        return self._send(
            FromEmailAddress=from_addr,
            Destination={"ToAddresses": [to_addr]},
            Content={"Raw": {"Data": raw}},
        )
