import smtplib
import ssl
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from email.utils import make_msgid
import logging

import requests

from api.config import Settings, MAIL_PROVIDER_SMTP

logger = logging.getLogger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"


class MailDeliveryError(Exception):
    pass


class SmtpTransport:
    """
    Sends transactional emails over SMTP.
    Supports any SMTP server (Gmail, SendGrid, Mailgun, AWS SES, etc.)
    """

    def __init__(
        self,
        host: str,
        port: int,
        user: str,
        password: str,
        use_tls: bool = True,
    ):
        self.smtp_host = host
        self.smtp_port = int(port)
        self.smtp_user = user
        self.smtp_password = password
        self.use_tls = use_tls

    def send(self, from_email: str, to_email: str, subject: str, html_content: str) -> str:
        """
        Send an HTML email.

        Returns:
            str: The Message-ID assigned to the email.

        Raises:
            MailDeliveryError: if the SMTP exchange fails.
        """
        message_id = make_msgid()
        message = MIMEMultipart("alternative")
        message["Subject"] = subject
        message["From"] = from_email
        message["To"] = to_email
        message["Message-ID"] = message_id
        message.attach(MIMEText(html_content, "html"))

        try:
            context = ssl.create_default_context()
            if self.smtp_port == 465:
                # SSL connection
                with smtplib.SMTP_SSL(self.smtp_host, self.smtp_port, context=context) as server:
                    server.login(self.smtp_user, self.smtp_password)
                    server.send_message(message)
            else:
                # TLS connection (port 587)
                with smtplib.SMTP(self.smtp_host, self.smtp_port) as server:
                    if self.use_tls:
                        server.starttls(context=context)
                    server.login(self.smtp_user, self.smtp_password)
                    server.send_message(message)
        except smtplib.SMTPAuthenticationError as e:
            error_message = f"SMTP authentication failed: {str(e)}"
            logger.error(error_message)
            raise MailDeliveryError(error_message) from e
        except (smtplib.SMTPException, OSError) as e:
            error_message = f"SMTP error: {str(e)}"
            logger.error(error_message)
            raise MailDeliveryError(error_message) from e

        logger.info(f"Email sent successfully to {to_email}")
        return message_id


class ResendTransport:
    """Sends emails through the Resend HTTP API."""

    def __init__(self, api_key: str, timeout: float = 10.0, session: requests.Session = None):
        self.api_key = api_key
        self.timeout = timeout
        self.session = session or requests.Session()

    def send(self, from_email: str, to_email: str, subject: str, html_content: str) -> str:
        try:
            response = self.session.post(
                RESEND_API_URL,
                headers={"Authorization": f"Bearer {self.api_key}"},
                json={
                    "from": from_email,
                    "to": [to_email],
                    "subject": subject,
                    "html": html_content,
                },
                timeout=self.timeout,
            )
            response.raise_for_status()
            email_id = response.json().get("id")
        except requests.RequestException as e:
            error_message = f"Failed to send email: {str(e)}"
            logger.error(error_message)
            raise MailDeliveryError(error_message) from e
        except ValueError as e:
            error_message = "Failed to send email: malformed provider response"
            logger.error(error_message)
            raise MailDeliveryError(error_message) from e

        if not email_id:
            raise MailDeliveryError("Failed to send email: provider returned no message id")
        logger.info(f"Email {email_id} sent successfully to {to_email}")
        return email_id


def build_mail_transport(settings: Settings):
    if settings.mail_provider == MAIL_PROVIDER_SMTP:
        return SmtpTransport(
            host=settings.smtp_host,
            port=settings.smtp_port,
            user=settings.smtp_user,
            password=settings.smtp_password,
            use_tls=settings.smtp_use_tls,
        )
    return ResendTransport(api_key=settings.resend_api_key)
