"""
Outbound mail for the contact form.
Sends through an SMTP relay with STARTTLS (Gmail app passwords by default).
"""
import html
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr

from saavi_site.config import settings

logger = logging.getLogger(__name__)


class MailNotConfiguredError(RuntimeError):
    pass


def _create_smtp() -> smtplib.SMTP:
    server = smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=30)
    server.starttls()
    server.login(settings.EMAIL_USER, settings.EMAIL_PASS)
    return server


def build_contact_message(name: str, phone: str, message: str) -> MIMEMultipart:
    """Build the notification email for one contact form submission."""
    safe_name = html.escape(name)
    safe_phone = html.escape(phone)
    safe_message = html.escape(message).replace("\n", "<br>")

    body = f"""
    <h2>New Contact Form Submission</h2>
    <p><strong>Name:</strong> {safe_name}</p>
    <p><strong>Phone:</strong> {safe_phone}</p>
    <p><strong>Message:</strong></p>
    <p>{safe_message}</p>
    <hr>
    <p style="color:#888; font-size:12px;">Sent from {html.escape(settings.CONTACT_FROM_NAME)} contact form</p>
    """

    msg = MIMEMultipart("alternative")
    msg["Subject"] = f"New Contact Enquiry from {name}"
    msg["From"] = formataddr((settings.CONTACT_FROM_NAME, settings.EMAIL_USER))
    msg["To"] = settings.contact_recipient
    msg["Reply-To"] = settings.EMAIL_USER

    msg.attach(MIMEText(f"Name: {name}\nPhone: {phone}\n\n{message}", "plain"))
    msg.attach(MIMEText(body, "html"))
    return msg


def send_contact_notification(name: str, phone: str, message: str) -> None:
    """
    Email a contact form submission to the site owner.

    Raises:
        MailNotConfiguredError: If EMAIL_USER / EMAIL_PASS are missing
        smtplib.SMTPException, OSError: If the relay rejects or cannot be reached
    """
    if not settings.EMAIL_USER or not settings.EMAIL_PASS:
        raise MailNotConfiguredError("EMAIL_USER / EMAIL_PASS not configured")

    msg = build_contact_message(name, phone, message)

    server = _create_smtp()
    try:
        server.sendmail(settings.EMAIL_USER, [settings.contact_recipient], msg.as_string())
    finally:
        server.quit()

    logger.info(f"Contact notification sent for {name}")
