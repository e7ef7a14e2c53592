"""Sending e-mail: an abstract sender, an in-memory mock and a Mailgun client."""

from __future__ import annotations

import abc
from dataclasses import dataclass, field

import requests

MAILGUN_API_BASE = "https://api.mailgun.net/v3"


class MailgunError(Exception):
    """Raised when Mailgun cannot be reached or rejects a message."""


@dataclass(frozen=True)
class Email:
    """A message handed to a sender."""

    sender: str
    to: str
    subject: str
    text: str
    html: str | None = None


class SendEmailer(abc.ABC):
    """Something that can deliver an e-mail message."""

    @abc.abstractmethod
    def send_email(
        self, sender: str, to: str, subject: str, text: str, html: str | None = None
    ) -> None:
        """Deliver a message, raising on failure."""


@dataclass
class MockSendEmailer(SendEmailer):
    """A sender that delivers nothing and only remembers what it was given."""

    sent: list[Email] = field(default_factory=list)

    def send_email(
        self, sender: str, to: str, subject: str, text: str, html: str | None = None
    ) -> None:
        self.sent.append(Email(sender, to, subject, text, html))


class Mailgun(SendEmailer):
    """Sends messages through the Mailgun HTTP API."""

    def __init__(self, api_key: str, domain: str, test_mode: bool = False) -> None:
        self.api_key = api_key
        self.domain = domain
        self.test_mode = test_mode

    @property
    def endpoint(self) -> str:
        return f"{MAILGUN_API_BASE}/{self.domain}/messages"

    def send_email(
        self, sender: str, to: str, subject: str, text: str, html: str | None = None
    ) -> None:
        form = {"from": sender, "to": to, "subject": subject, "text": text}
        if html is not None:
            form["html"] = html
        if self.test_mode:
            form["o:testmode"] = "true"

        try:
            response = requests.post(
                self.endpoint,
                data=form,
                auth=("api", self.api_key),
                timeout=30,
            )
        except requests.RequestException as exc:
            raise MailgunError(f"unable to reach mailgun - {exc}") from exc

        if response.status_code != 200:
            raise MailgunError(f"mailgun non-OK response - {response.text}")