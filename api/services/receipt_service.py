"""
The gated action: render a receipt and send it by email.

Runs only after the authorization gate resolved an active API key, and writes
exactly one access log entry per attempt on both the success and error paths.
"""
from datetime import datetime, timezone
import logging
import os
from typing import Callable, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from api.errors import Internal, Unauthenticated, Upstream
from api.services.access_log_service import AccessLogService
from api.services.email_service import MailDeliveryError
from api.services.identity import Identity
from db.models.api_key import ApiKey
from db.models.log_entry import STATUS_ERROR, STATUS_SUCCESS
from db.repositories.api_key_repository import ApiKeyRepository

logger = logging.getLogger(__name__)

SEND_RECEIPT_ENDPOINT = "/api/send-receipt"
SEND_TEST_RECEIPT_ENDPOINT = "/api/send-test-receipt"

_templates = Environment(
    loader=FileSystemLoader(os.path.join(os.path.dirname(os.path.dirname(__file__)), "templates")),
    autoescape=select_autoescape(["html"]),
)


def format_price(price: str) -> str:
    """Digits string to thousands-separated form, e.g. "15000" -> "15.000"."""
    return f"{int(price):,}".replace(",", ".")


def render_receipt(item: str, price: str, recipient: str, sender: Optional[str] = None) -> str:
    template = _templates.get_template("receipt.html")
    return template.render(
        item=item,
        price=format_price(price),
        recipient=recipient,
        sender=sender,
        issued_at=datetime.now(timezone.utc).strftime("%d %B %Y, %H:%M UTC"),
    )


class ReceiptService:
    def __init__(
        self,
        mailer,
        access_log: AccessLogService,
        api_key_repo: ApiKeyRepository,
        from_email: str,
        sender_name: Optional[str] = None,
    ):
        self.mailer = mailer
        self.access_log = access_log
        self.api_key_repo = api_key_repo
        self.from_email = from_email
        self.sender_name = sender_name

    @property
    def from_address(self) -> str:
        if self.sender_name:
            return f"{self.sender_name} <{self.from_email}>"
        return self.from_email

    def send_receipt(self, identity: Identity, item: str, price: str, recipient: str) -> dict:
        api_key = self._api_key_for(identity)
        request_data = {"item": item, "price": price, "recipientEmail": recipient}
        email_id = self._deliver(
            api_key,
            SEND_RECEIPT_ENDPOINT,
            request_data,
            recipient=recipient,
            subject=f"Receipt - {item}",
            render=lambda: render_receipt(item, price, recipient),
        )
        return {"email_id": email_id, "recipient": recipient}

    def send_test_receipt(self, identity: Identity, item: str, price: str) -> dict:
        """Send a receipt to the key owner's own address."""
        api_key = self._api_key_for(identity)
        owner_email = api_key.user.email
        request_data = {
            "item": item,
            "price": price,
            "recipient": owner_email,
            "sender": owner_email,
        }
        email_id = self._deliver(
            api_key,
            SEND_TEST_RECEIPT_ENDPOINT,
            request_data,
            recipient=owner_email,
            subject=f"Receipt - {item} (test)",
            render=lambda: render_receipt(item, price, owner_email, sender=owner_email),
        )
        return {"email_id": email_id, "recipient": owner_email, "sender": owner_email}

    def _api_key_for(self, identity: Identity) -> ApiKey:
        if identity.api_key_id is None:
            raise Internal("Gated action requires an API-key identity")
        api_key = self.api_key_repo.get_by_id(identity.api_key_id)
        if api_key is None:
            # Deleted between the gate check and now
            raise Unauthenticated("Invalid API key")
        return api_key

    def _deliver(
        self,
        api_key: ApiKey,
        endpoint: str,
        request_data: dict,
        recipient: str,
        subject: str,
        render: Callable[[], str],
    ) -> str:
        """Render, send and record exactly one access log entry for the attempt."""
        # A failed log write expires api_key; only its id is needed afterwards
        api_key_id = api_key.id
        try:
            html = render()
        except Exception as e:
            logger.exception(f"Failed to render receipt for API key {api_key_id}")
            self.access_log.record(api_key, endpoint, STATUS_ERROR, request_data, {"error": str(e)})
            raise Internal("Failed to render receipt")
        try:
            email_id = self.mailer.send(self.from_address, recipient, subject, html)
        except MailDeliveryError as e:
            self.access_log.record(api_key, endpoint, STATUS_ERROR, request_data, {"error": str(e)})
            raise Upstream(str(e))
        except Exception as e:
            logger.exception(f"Unexpected mail transport failure for API key {api_key_id}")
            self.access_log.record(api_key, endpoint, STATUS_ERROR, request_data, {"error": str(e)})
            raise Upstream("Failed to send email")
        self.access_log.record(
            api_key, endpoint, STATUS_SUCCESS, request_data, {"emailId": email_id}
        )
        logger.info(f"Receipt {email_id} sent to {recipient} with API key {api_key_id}")
        return email_id
