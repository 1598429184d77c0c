import logging
from dataclasses import dataclass
from typing import Optional

from .base import Channel, SendReceipt, provider_errors

logger = logging.getLogger(__name__)

@dataclass
class EmailPayload:
    subject: str
    html_body: str
    text_body: Optional[str] = None

class EmailAdapter(Channel):
    """Transactional email through SES from a fixed sender address"""
    name = "email"

    def __init__(self, ses_client, sender_email: str):
        self.client = ses_client
        self.sender_email = sender_email

    def send(self, recipient: str, payload: EmailPayload) -> SendReceipt:
        body = {"Html": {"Charset": "UTF-8", "Data": payload.html_body}}
        if payload.text_body:
            body["Text"] = {"Charset": "UTF-8", "Data": payload.text_body}

        with provider_errors(self.name, f"sending email to {recipient}"):
            response = self.client.send_email(
                Source=self.sender_email,
                Destination={"ToAddresses": [recipient]},
                Message={
                    "Subject": {"Charset": "UTF-8", "Data": payload.subject},
                    "Body": body,
                },
            )

        logger.info(f"Email sent to {recipient} with subject {payload.subject}")
        return SendReceipt(delivered=True, provider_message_id=response.get("MessageId"))
