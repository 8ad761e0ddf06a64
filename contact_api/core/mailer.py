"""
Outbound email for contact form confirmations.

The transport is plain SMTP. A named service ("gmail", "outlook", ...) is
resolved to its SMTP endpoint unless EMAIL_HOST/EMAIL_PORT are set
explicitly. Sending happens in a background task after the HTTP response has
been decided, so every failure here ends up in the log and nowhere else.
"""

import logging
import smtplib
import ssl
from email.message import EmailMessage
from typing import Optional, Tuple

from contact_api.core.exceptions import NotificationError

logger = logging.getLogger(__name__)

CONFIRMATION_SUBJECT = "Contact Form Submission Confirmation"

# Well-known providers: name -> (host, port). Port 465 means implicit TLS.
WELL_KNOWN_SERVICES = {
    "gmail": ("smtp.gmail.com", 465),
    "googlemail": ("smtp.gmail.com", 465),
    "hotmail": ("smtp-mail.outlook.com", 587),
    "outlook": ("smtp-mail.outlook.com", 587),
    "outlook365": ("smtp.office365.com", 587),
    "yahoo": ("smtp.mail.yahoo.com", 465),
    "icloud": ("smtp.mail.me.com", 587),
    "zoho": ("smtp.zoho.com", 465),
    "aol": ("smtp.aol.com", 587),
    "sendgrid": ("smtp.sendgrid.net", 587),
    "mailgun": ("smtp.mailgun.org", 465),
    "mailjet": ("in.mailjet.com", 587),
    "postmark": ("smtp.postmarkapp.com", 2525),
    "ses": ("email-smtp.us-east-1.amazonaws.com", 465),
}


def resolve_service(service: Optional[str]) -> Optional[Tuple[str, int]]:
    """Look up a provider name, ignoring case, spaces and dashes"""
    if not service:
        return None
    key = service.lower().replace(" ", "").replace("-", "").replace("_", "")
    return WELL_KNOWN_SERVICES.get(key)


class Mailer:
    def __init__(self, host: Optional[str] = None, port: Optional[int] = None,
                 user: Optional[str] = None, password: Optional[str] = None,
                 sender: Optional[str] = None, timeout: float = 20.0):
        self.host = host
        self.port = port or 587
        self.user = user
        self.password = password
        self.sender = sender or user
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings) -> "Mailer":
        host, port = settings.email_host, settings.email_port
        if not host:
            resolved = resolve_service(settings.email_service)
            if resolved:
                host, default_port = resolved
                port = port or default_port
            elif settings.email_service:
                logger.warning(f"Unknown email service '{settings.email_service}'; set EMAIL_HOST instead")
        return cls(host=host, port=port, user=settings.email_user, password=settings.email_pass)

    @property
    def configured(self) -> bool:
        return bool(self.host and self.sender)

    def send_mail(self, to: str, subject: str, text: str):
        """
        Send a plain-text message.

        Args:
            to (str): Recipient address
            subject (str): Subject line
            text (str): Message body

        Raises:
            NotificationError: when the transport is not configured or the
            SMTP exchange fails for any reason
        """
        if not self.host:
            raise NotificationError("Email transport is not configured (set EMAIL_SERVICE or EMAIL_HOST)")
        if not self.sender:
            raise NotificationError("No sending account configured (set EMAIL_USER)")

        msg = EmailMessage()
        msg["From"] = self.sender
        msg["To"] = to
        msg["Subject"] = subject
        msg.set_content(text)

        context = ssl.create_default_context()
        try:
            if self.port == 465:
                with smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout, context=context) as smtp:
                    self._login(smtp)
                    refused = smtp.send_message(msg)
            else:
                with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
                    smtp.ehlo()
                    smtp.starttls(context=context)
                    smtp.ehlo()
                    self._login(smtp)
                    refused = smtp.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            raise NotificationError(str(e)) from e

        if refused:
            raise NotificationError(f"Recipients refused: {', '.join(refused)}")

    def _login(self, smtp: smtplib.SMTP):
        if self.user and self.password:
            smtp.login(self.user, self.password)


def compose_confirmation(contact) -> str:
    """Plain-text body thanking the submitter and echoing their message"""
    return (
        f"Thank you for contacting us, {contact.name}!\n\n"
        "We have received your message and will get back to you shortly.\n\n"
        "Your message details:\n"
        f"Topic: {contact.topic or 'N/A'}\n"
        f"Message: {contact.message}\n\n"
        "Best regards,\n"
        "The Contact Us Team"
    )


def notify_submitter(mailer: Mailer, contact) -> bool:
    """
    Background task: send the confirmation for a stored contact.

    Never raises; the outcome is only logged.

    Returns:
        bool: True if the message was accepted by the SMTP server
    """
    try:
        mailer.send_mail(contact.email, CONFIRMATION_SUBJECT, compose_confirmation(contact))
    except NotificationError as e:
        logger.error(f"Error sending confirmation email for contact {contact.id}: {str(e)}")
        return False

    logger.info(f"Confirmation email sent for contact {contact.id}")
    return True
