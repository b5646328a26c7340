"""
Transport Courier Implementation

Builds a standard library EmailMessage and hands it to an injected mail
transport, anything with a send_message(message) method such as an
smtplib.SMTP connection. Transport exceptions propagate unchanged.
"""

import logging
import smtplib
from email.message import EmailMessage
from typing import Optional

from courier.exceptions import ValidationException
from courier.models import Attachment, Email, EmptyContent, FileAttachment, SimpleContent
from courier.providers.courier_adapter import Courier


class SMTPTransport:
    """Opens an SMTP connection per message and closes it once sent."""

    def __init__(self, host: str = 'localhost', port: int = 25, timeout: float = 30):
        self.host = host
        self.port = port
        self.timeout = timeout

    def send_message(self, message: EmailMessage) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
            smtp.send_message(message)


class TransportCourier(Courier):
    """Mail transport implementation of the Courier interface."""

    SUPPORTED_CONTENT = (EmptyContent, SimpleContent)

    def __init__(self, transport, logger: Optional[logging.Logger] = None):
        super().__init__(logger)
        self.transport = transport

    def get_provider_name(self) -> str:
        return "Transport"

    def deliver(self, email: Email) -> None:
        self.ensure_supported(email)

        message = self.build_message(email)

        self.transport.send_message(message)

    def build_message(self, email: Email) -> EmailMessage:
        message = EmailMessage()
        message['Subject'] = email.subject or ''

        self.add_recipients(email, message)
        self.add_from(email, message)

        for header in email.headers:
            message[header.field] = header.value

        self.add_body(email, message)
        self.add_attachments(email, message)

        return message

    @staticmethod
    def add_body(email: Email, message: EmailMessage) -> None:
        content = email.content
        if not isinstance(content, SimpleContent):
            return

        if content.html and content.text:
            # HTML is the preferred alternative, text the fallback
            message.set_content(content.text.body)
            message.add_alternative(content.html.body, subtype='html')
        elif content.html:
            message.set_content(content.html.body, subtype='html')
        elif content.text:
            message.set_content(content.text.body)

    @staticmethod
    def add_recipients(email: Email, message: EmailMessage) -> None:
        if email.to:
            message['To'] = ', '.join(address.to_rfc2822() for address in email.to)
        if email.cc:
            message['Cc'] = ', '.join(address.to_rfc2822() for address in email.cc)
        if email.bcc:
            message['Bcc'] = ', '.join(address.to_rfc2822() for address in email.bcc)

    @staticmethod
    def add_from(email: Email, message: EmailMessage) -> None:
        message['From'] = email.from_address.to_rfc2822()

        # Every reply to is kept, the transport has no single value limit
        if email.reply_tos:
            message['Reply-To'] = ', '.join(address.to_rfc2822() for address in email.reply_tos)

    def add_attachments(self, email: Email, message: EmailMessage) -> None:
        for attachment in email.attachments:
            self._attach(message, self._file_backed(attachment))

        for attachment in email.embedded:
            self._attach(message, self._file_backed(attachment), 'inline', f'<{attachment.content_id}>')

    @staticmethod
    def _file_backed(attachment: Attachment) -> FileAttachment:
        if not isinstance(attachment, FileAttachment):
            raise ValidationException(f'Unsupported attachment type {type(attachment).__name__}')

        return attachment

    @staticmethod
    def _attach(message: EmailMessage, attachment: FileAttachment, disposition: str = 'attachment',
                cid: Optional[str] = None) -> None:
        maintype, _, subtype = attachment.content_type.partition('/')

        message.add_attachment(
            attachment.get_content(),
            maintype=maintype,
            subtype=subtype or 'octet-stream',
            disposition=disposition,
            filename=attachment.name,
            cid=cid
        )
