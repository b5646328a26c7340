"""
Mail Courier Implementation

Delivers through a plain SMTP server with a hand-built multipart/alternative
message. Meant as a drop-in option for local development (e.g. against a
local catch-all SMTP server).

Templates are not rendered. Templated emails are still delivered, with the
template ID and data described in a plain text part.
"""

import json
import logging
import secrets
import smtplib
import textwrap
from email.header import Header
from typing import List, Optional

from courier.exceptions import TransmissionException, ValidationException
from courier.models import Address, Attachment, Email, SimpleContent, TemplatedContent
from courier.providers.courier_adapter import Courier
from courier import logger

CRLF = '\r\n'


class MailCourier(Courier):
    """SMTP implementation of the Courier interface."""

    SUPPORTED_CONTENT = (SimpleContent, TemplatedContent)

    def __init__(
        self,
        host: str = 'localhost',
        port: int = 25,
        timeout: int = 30,
        logger: Optional[logging.Logger] = None
    ):
        super().__init__(logger)
        self.host = host
        self.port = port
        self.timeout = timeout

    def get_provider_name(self) -> str:
        return "Mail"

    def deliver(self, email: Email) -> None:
        self.ensure_supported(email)

        boundary = '==Multipart_Boundary_' + secrets.token_hex(8)
        message = self.build_message(email, boundary)
        recipients = [address.email for address in email.to + email.cc + email.bcc]

        logger.debug(f'Sending email via SMTP {self.host}:{self.port}', log=self.log,
                     recipients=len(recipients))

        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
                refused = smtp.sendmail(email.from_address.email, recipients, message.encode('utf-8'))
        except (smtplib.SMTPException, OSError) as e:
            logger.error('SMTP delivery failed', err=e, log=self.log)
            raise TransmissionException(0, f'SMTP delivery failed: {e}') from e

        if refused:
            logger.error('SMTP server refused recipients', log=self.log, refused=list(refused))
            raise TransmissionException(0, f'SMTP server refused recipients: {", ".join(refused)}')

    def build_message(self, email: Email, boundary: str) -> str:
        """Build the raw message: headers, then every part separated by the boundary."""
        headers = [
            'From: ' + email.from_address.to_rfc2822(),
            'To: ' + self.map_addresses(email.to),
            'Subject: ' + self.encode_subject(email.subject),
            'MIME-Version: 1.0',
            f'Content-Type: multipart/alternative;boundary="{boundary}"',
        ]

        # Bcc recipients only travel in the SMTP envelope
        if email.cc:
            headers.append('Cc: ' + self.map_addresses(email.cc))

        if email.reply_tos:
            headers.append('Reply-To: ' + self.map_addresses(email.reply_tos))

        for header in email.headers:
            self.ensure_single_line(header.field, header.value)
            headers.append(f'{header.field}: {header.value}')

        parts = self.build_content(email) + self.build_attachments(email)
        body = f'--{boundary}{CRLF}' + f'{CRLF}--{boundary}{CRLF}'.join(parts) + f'{CRLF}--{boundary}--{CRLF}'

        return CRLF.join(headers) + CRLF + CRLF + body

    def build_content(self, email: Email) -> List[str]:
        content = email.content

        if isinstance(content, TemplatedContent):
            return self.build_templated_content(content)

        return self.build_simple_content(content)

    @staticmethod
    def build_simple_content(content: SimpleContent) -> List[str]:
        parts = []

        if content.text:
            parts.append(
                f'Content-Type: text/plain; charset={content.text.charset}{CRLF}{CRLF}{content.text.body}'
            )

        if content.html:
            parts.append(
                f'Content-Type: text/html; charset={content.html.charset}{CRLF}{CRLF}{content.html.body}'
            )

        return parts

    @staticmethod
    def build_templated_content(content: TemplatedContent) -> List[str]:
        template_data = json.dumps(content.template_data, indent=4, default=str)

        return [
            f'Content-Type: text/plain; charset=utf-8{CRLF}{CRLF}'
            f'Template ID: {content.template_id}{CRLF}'
            f'Template Data:{CRLF}{CRLF}'
            f'{template_data}'
        ]

    def build_attachments(self, email: Email) -> List[str]:
        parts = [self._attachment_part(attachment, 'attachment') for attachment in email.attachments]

        for attachment in email.embedded:
            parts.append(self._attachment_part(attachment, 'inline', attachment.content_id))

        return parts

    @staticmethod
    def _attachment_part(attachment: Attachment, disposition: str, content_id: Optional[str] = None) -> str:
        content_type = attachment.content_type
        if attachment.charset:
            content_type += f'; charset={attachment.charset}'

        lines = [
            f'Content-Type: {content_type}',
            'Content-Transfer-Encoding: base64',
            f'Content-Disposition: {disposition}; filename="{attachment.name}"',
        ]
        if content_id:
            lines.append(f'Content-ID: <{content_id}>')

        data = CRLF.join(textwrap.wrap(attachment.get_base64_content(), 76))

        return CRLF.join(lines) + CRLF + CRLF + data

    @classmethod
    def encode_subject(cls, subject: Optional[str]) -> str:
        """RFC 2047 encode the subject when it is not plain ASCII."""
        subject = subject or ''
        cls.ensure_single_line('Subject', subject)

        return Header(subject).encode(linesep=CRLF)

    @staticmethod
    def ensure_single_line(field: str, value: str) -> None:
        # A line break would start a new header
        if any(char in text for text in (field, value) for char in '\r\n'):
            raise ValidationException(f'Header {field!r} must not contain line breaks')

    @staticmethod
    def map_addresses(addresses: List[Address]) -> str:
        return ', '.join(address.to_rfc2822() for address in addresses)
