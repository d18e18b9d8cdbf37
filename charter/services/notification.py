"""
Notification Service
Templated e-mails for booking and payment lifecycle events
"""

import logging
import smtplib
import socket
from email.message import EmailMessage
from typing import Optional

from flask import render_template

from charter.errors import NotificationError, NotificationTimeout

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """Renders e-mail templates and delivers them over SMTP"""

    def __init__(self, server: str = 'localhost', port: int = 25, use_tls: bool = False,
                 username: Optional[str] = None, password: Optional[str] = None,
                 sender: str = 'bookings@localhost', timeout: float = 10,
                 suppress_send: bool = False, frontend_url: str = ''):
        self.server = server
        self.port = port
        self.use_tls = use_tls
        self.username = username
        self.password = password
        self.sender = sender
        self.timeout = timeout
        self.suppress_send = suppress_send
        self.frontend_url = frontend_url.rstrip('/')

    @classmethod
    def from_config(cls, config):
        return cls(
            server=config.get('MAIL_SERVER', 'localhost'),
            port=int(config.get('MAIL_PORT', 25)),
            use_tls=bool(config.get('MAIL_USE_TLS', False)),
            username=config.get('MAIL_USERNAME'),
            password=config.get('MAIL_PASSWORD'),
            sender=config.get('MAIL_DEFAULT_SENDER', 'bookings@localhost'),
            timeout=float(config.get('NOTIFICATION_TIMEOUT', 10)),
            suppress_send=bool(config.get('MAIL_SUPPRESS_SEND', False)),
            frontend_url=config.get('FRONTEND_URL') or '',
        )

    # ==================== DELIVERY ====================

    def send(self, to: str, subject: str, template: str, timeout: Optional[float] = None, **context) -> bool:
        """
        Render ``emails/<template>.html`` and send it to ``to``.

        Raises NotificationTimeout when the SMTP server does not answer in
        time and NotificationError for any other delivery failure.
        """
        if not to:
            logger.warning(f"Skipping '{template}' e-mail: no recipient")
            return False

        html = render_template(f'emails/{template}.html', frontend_url=self.frontend_url, **context)

        if self.suppress_send:
            logger.info(f"Email suppressed to {to}: {subject}")
            return True

        message = EmailMessage()
        message['Subject'] = subject
        message['From'] = self.sender
        message['To'] = to
        message.set_content(f"{subject}\n\nPlease view this message in an HTML-capable mail client.")
        message.add_alternative(html, subtype='html')

        timeout = timeout if timeout is not None else self.timeout
        try:
            with smtplib.SMTP(self.server, self.port, timeout=timeout) as smtp:
                if self.use_tls:
                    smtp.starttls()
                if self.username:
                    smtp.login(self.username, self.password or '')
                smtp.send_message(message)
        except socket.timeout:
            logger.error(f"SMTP server {self.server} timed out after {timeout}s sending '{template}'")
            raise NotificationTimeout(f"Mail server did not respond within {timeout} seconds")
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send '{template}' e-mail: {type(e).__name__}")
            raise NotificationError("Failed to send notification e-mail")

        logger.info(f"Email sent to {to}: {subject}")
        return True

    # ==================== LIFECYCLE E-MAILS ====================

    def booking_confirmation(self, booking, timeout=None):
        return self.send(
            booking.recipient_email,
            f"Booking Confirmed - #{booking.id}",
            'booking_confirmation',
            timeout=timeout,
            booking=booking,
        )

    def booking_cancellation(self, booking, timeout=None):
        return self.send(
            booking.recipient_email,
            f"Booking Cancelled - #{booking.id}",
            'booking_cancellation',
            timeout=timeout,
            booking=booking,
        )

    def payment_confirmation(self, intent, timeout=None):
        booking = intent.booking
        return self.send(
            booking.recipient_email,
            f"Payment Received - Booking #{booking.id}",
            'payment_confirmation',
            timeout=timeout,
            booking=booking,
            intent=intent,
        )

    def payment_failure(self, intent, timeout=None):
        booking = intent.booking
        return self.send(
            booking.recipient_email,
            f"Payment Failed - Booking #{booking.id}",
            'payment_failure',
            timeout=timeout,
            booking=booking,
            intent=intent,
            retry_url=f"{self.frontend_url}/checkout/{booking.id}",
        )

    def refund(self, intent, timeout=None):
        booking = intent.booking
        return self.send(
            booking.recipient_email,
            f"Refund Processed - Booking #{booking.id}",
            'refund',
            timeout=timeout,
            booking=booking,
            intent=intent,
        )
