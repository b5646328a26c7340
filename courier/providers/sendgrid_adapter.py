"""
SendGrid Courier Implementation

Concrete implementation of the ConfirmingCourier for SendGrid.

While SendGrid supports sending batches of emails using personalizations, that
does not fit the transactional model, so only a single personalization with
multiple recipients is created.
"""

import json
import logging
from typing import Dict, Iterable, List, Optional
from python_http_client.exceptions import HTTPError
from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import (
    Attachment,
    Bcc,
    Cc,
    Content,
    ContentId,
    Disposition,
    FileContent,
    FileName,
    FileType,
    From,
    Header,
    Mail,
    Personalization,
    ReplyTo,
    Substitution,
    To,
)

from courier.exceptions import TransmissionException
from courier.models import Address, Email, EmptyContent, SimpleContent, TemplatedContent
from courier.providers.courier_adapter import ConfirmingCourier
from courier import logger

MESSAGE_ID_HEADER = 'X-Message-Id'


def _substitution_value(value) -> str:
    # Legacy substitutions only accept strings
    return value if isinstance(value, str) else json.dumps(value)


def distinct_addresses(addresses: Iterable[Address], existing: Iterable[Address] = ()) -> List[Address]:
    """
    Drop case-insensitive duplicates, keeping the first occurrence, and any
    address already present in existing.

    SendGrid rejects the same address appearing twice across recipient blocks.
    """
    seen = {address.email.lower() for address in existing}
    distinct = []

    for address in addresses:
        key = address.email.lower()
        if key not in seen:
            seen.add(key)
            distinct.append(address)

    return distinct


def build_headers(email: Email) -> Dict[str, str]:
    # Duplicate fields overwrite, last one wins
    return {header.field: header.value for header in email.headers}


class SendGridCourier(ConfirmingCourier):
    """SendGrid implementation of the ConfirmingCourier interface."""

    SUPPORTED_CONTENT = (EmptyContent, SimpleContent, TemplatedContent)

    def __init__(self, client: SendGridAPIClient, logger: Optional[logging.Logger] = None):
        super().__init__(logger)
        self.client = client

    def get_provider_name(self) -> str:
        return "SendGrid"

    def deliver(self, email: Email) -> None:
        self.ensure_supported(email)

        logger.debug('Sending email via SendGrid', log=self.log, subject=email.subject)

        mail = self.build_mail(email)
        response = self.send(mail)

        self.save_receipt(email, self.get_receipt(response))

    def build_mail(self, email: Email) -> Mail:
        """Build the SendGrid Mail object for the email."""
        mail = self.prepare_email(email)
        content = email.content

        if isinstance(content, TemplatedContent):
            for key, value in content.template_data.items():
                mail.personalizations[0].add_substitution(Substitution(key, _substitution_value(value)))
            mail.template_id = content.template_id
        elif isinstance(content, SimpleContent):
            if content.text is not None:
                mail.add_content(Content('text/plain', content.text.body))
            if content.html is not None:
                mail.add_content(Content('text/html', content.html.body))
            if content.text is None and content.html is None:
                mail.add_content(Content('text/plain', ''))
        else:
            mail.add_content(Content('text/plain', ''))

        return mail

    def prepare_email(self, email: Email) -> Mail:
        mail = Mail()
        if email.subject is not None:
            mail.subject = email.subject
        mail.from_email = From(email.from_address.email, email.from_address.name)

        personalization = Personalization()

        to_recipients = distinct_addresses(email.to)
        for recipient in to_recipients:
            personalization.add_to(To(recipient.email, recipient.name))

        cc_recipients = distinct_addresses(email.cc, to_recipients)
        for recipient in cc_recipients:
            personalization.add_cc(Cc(recipient.email, recipient.name))

        for recipient in distinct_addresses(email.bcc, to_recipients + cc_recipients):
            personalization.add_bcc(Bcc(recipient.email, recipient.name))

        mail.add_personalization(personalization)

        # The SendGrid API only supports one "Reply To"
        if email.reply_tos:
            first = email.reply_tos[0]
            mail.reply_to = ReplyTo(first.email, first.name)

        attachments = [
            Attachment(
                file_content=FileContent(attachment.get_base64_content()),
                file_name=FileName(attachment.name),
                file_type=FileType(attachment.content_type),
                disposition=Disposition('attachment')
            )
            for attachment in email.attachments
        ]
        attachments += [
            Attachment(
                file_content=FileContent(attachment.get_base64_content()),
                file_name=FileName(attachment.name),
                file_type=FileType(attachment.content_type),
                disposition=Disposition('inline'),
                content_id=ContentId(attachment.content_id)
            )
            for attachment in email.embedded
        ]

        # Mail.add_attachment and Mail.add_header insert at the front
        for attachment in reversed(attachments):
            mail.add_attachment(attachment)

        headers = build_headers(email)
        for field in reversed(list(headers)):
            mail.add_header(Header(field, headers[field]))

        return mail

    def send(self, mail: Mail):
        try:
            response = self.client.send(mail)
        except HTTPError as e:
            # python-http-client raises for 4xx/5xx responses
            logger.error(
                f'Received status {e.status_code} from SendGrid',
                log=self.log,
                status_code=e.status_code,
                body=e.body
            )
            raise TransmissionException(e.status_code) from e
        except Exception as e:
            logger.error('SendGrid email send failed', err=e, log=self.log)
            raise TransmissionException() from e

        if response.status_code >= 400:
            logger.error(
                f'Received status {response.status_code} from SendGrid',
                log=self.log,
                status_code=response.status_code,
                body=response.body
            )
            raise TransmissionException(response.status_code)

        return response

    def get_receipt(self, response) -> str:
        """Extract the message ID; a response without one is not a success."""
        headers = response.headers or {}
        message_id = headers.get(MESSAGE_ID_HEADER)

        if not message_id:
            logger.error('SendGrid response did not include a message ID', log=self.log,
                         status_code=response.status_code)
            raise TransmissionException(response.status_code, 'SendGrid response did not include a message ID')

        return message_id.strip()
