"""
SparkPost Courier Implementation

Concrete implementation of the ConfirmingCourier for SparkPost, using the
transmissions web API.

SparkPost does not support attachments on templated transmissions. This
courier simulates the feature by fetching the stored template and sending its
content as an inline transmission instead. All substitution data is still sent,
but tracking and reporting per template may not work as expected in SparkPost.
"""

import logging
from typing import Dict, Any, List, Optional

from courier.exceptions import TransmissionException, ValidationException
from courier.models import (
    Address,
    Attachment,
    Email,
    EmptyContent,
    Message,
    SimpleContent,
    TemplatedContent,
)
from courier.providers.courier_adapter import ConfirmingCourier
from courier.providers.sparkpost_client import SparkPostClient, SparkPostError
from courier import logger

RECIPIENTS = 'recipients'
REPLY_TO = 'reply_to'
SUBSTITUTION_DATA = 'substitution_data'

CONTENT = 'content'
FROM = 'from'
SUBJECT = 'subject'
HTML = 'html'
TEXT = 'text'
ATTACHMENTS = 'attachments'
INLINE_IMAGES = 'inline_images'
TEMPLATE_ID = 'template_id'

HEADERS = 'headers'
CC_HEADER = 'CC'

ADDRESS = 'address'
CONTACT_NAME = 'name'
CONTACT_EMAIL = 'email'
HEADER_TO = 'header_to'

PLACEHOLDER = '{{'


class SparkPostCourier(ConfirmingCourier):
    """SparkPost implementation of the ConfirmingCourier interface."""

    SUPPORTED_CONTENT = (EmptyContent, SimpleContent, TemplatedContent)

    def __init__(self, client: SparkPostClient, logger: Optional[logging.Logger] = None):
        super().__init__(logger)
        self.client = client

    def get_provider_name(self) -> str:
        return "SparkPost"

    def deliver(self, email: Email) -> None:
        self.ensure_supported(email)

        transmission = self.build_transmission(email)

        logger.debug('Sending email via SparkPost', log=self.log,
                     recipients=len(transmission[RECIPIENTS]))
        response = self.send(transmission)

        try:
            receipt = response['results']['id']
        except (KeyError, TypeError) as e:
            raise TransmissionException(message='SparkPost response did not include a transmission ID') from e

        self.save_receipt(email, receipt)

    def build_transmission(self, email: Email) -> Dict[str, Any]:
        """Build the full transmission payload: recipients, content and substitution data."""
        transmission = {RECIPIENTS: self.build_recipients(email)}
        content = email.content

        if isinstance(content, TemplatedContent):
            transmission[CONTENT] = self.build_template_content(email)
            transmission[SUBSTITUTION_DATA] = self.build_template_data(email)
        elif isinstance(content, EmptyContent):
            # Built from a derived copy so the caller's email keeps its content
            derived = email.copy()
            derived.content = SimpleContent(Message(''), Message(''))
            transmission[CONTENT] = self.build_simple_content(derived)
        else:
            transmission[CONTENT] = self.build_simple_content(email)

        return transmission

    def send(self, transmission: Dict[str, Any]) -> Dict[str, Any]:
        try:
            return self.client.post_transmission(transmission)
        except SparkPostError as e:
            logger.error(
                f'Received status {e.status_code} from SparkPost',
                log=self.log,
                status_code=e.status_code,
                body=e.body
            )
            raise TransmissionException(e.status_code) from e

    def build_recipients(self, email: Email) -> List[Dict[str, Any]]:
        """
        Flatten To, CC and BCC into one recipient list. Each entry carries
        header_to so the visible To header is the same for every recipient.
        """
        header_to = ','.join(address.to_rfc2822() for address in email.to)

        return [
            {ADDRESS: {CONTACT_EMAIL: address.email, HEADER_TO: header_to}}
            for address in email.to + email.cc + email.bcc
        ]

    def build_template_data(self, email: Email) -> Dict[str, Any]:
        """
        Add the from, subject and reply to values, which SparkPost treats as
        substitutable template content, unless the caller provided them.
        """
        template_data = dict(email.content.template_data)

        if email.reply_tos:
            template_data.setdefault('replyTo', email.reply_tos[0].to_rfc2822())

        template_data.setdefault('fromName', email.from_address.name)
        template_data.setdefault('fromEmail', email.from_address.local_part)
        template_data.setdefault('fromDomain', email.from_address.domain)
        template_data.setdefault('subject', email.subject)

        # SparkPost ignores the CC header on stored templates
        cc_header = self.build_cc_header(email)
        if cc_header:
            template_data.setdefault('ccHeader', cc_header)

        return template_data

    def build_template_content(self, email: Email) -> Dict[str, Any]:
        content = {TEMPLATE_ID: email.content.template_id}

        headers = self.build_headers(email)
        if headers:
            content[HEADERS] = headers

        if email.attachments:
            content = self.build_inline_template_content(email)

        return content

    def build_inline_template_content(self, email: Email) -> Dict[str, Any]:
        """Replace a stored template with equivalent inline content so attachments can be sent."""
        template = self.get_template(email)

        inline_email = email.copy()
        inline_email.subject = template.get(SUBJECT)
        inline_email.content = self.get_inline_content(template)
        inline_email.from_address = self.resolve_from(email, template)

        # A templated reply to must be resolved now to avoid validation errors
        template_reply_to = template.get(REPLY_TO)
        if template_reply_to:
            if PLACEHOLDER in template_reply_to:
                if not email.reply_tos:
                    raise ValidationException('Reply to is templated but no value was given')

                inline_email.reply_tos = [email.reply_tos[0]]
            else:
                inline_email.reply_tos = [Address.from_string(template_reply_to)]

        content = self.build_simple_content(inline_email)

        template_headers = template.get(HEADERS)
        if template_headers and HEADERS in content:
            content[HEADERS] = {**content[HEADERS], **template_headers}
        elif template_headers:
            content[HEADERS] = dict(template_headers)

        return content

    @staticmethod
    def resolve_from(email: Email, template: Dict[str, Any]) -> Address:
        """A templated from is replaced by the email's own from address."""
        template_from = template.get(FROM) or {}

        if isinstance(template_from, str):
            if PLACEHOLDER in template_from:
                return email.from_address
            return Address.from_string(template_from)

        template_email = template_from.get(CONTACT_EMAIL) or ''
        if not template_email or PLACEHOLDER in template_email:
            return email.from_address

        return Address(template_email, template_from.get(CONTACT_NAME) or None)

    def build_simple_content(self, email: Email) -> Dict[str, Any]:
        email_content = email.content

        # SparkPost only supports a single reply-to
        reply_to = email.reply_tos[0].to_rfc2822() if email.reply_tos else None

        content = {
            FROM: {
                CONTACT_NAME: email.from_address.name,
                CONTACT_EMAIL: email.from_address.email,
            },
            SUBJECT: email.subject,
            HTML: email_content.html.body if email_content.html is not None else None,
            TEXT: email_content.text.body if email_content.text is not None else None,
            ATTACHMENTS: [self.build_attachment(attachment) for attachment in email.attachments],
            REPLY_TO: reply_to,
        }

        if email.embedded:
            content[INLINE_IMAGES] = [
                self.build_attachment(attachment, attachment.content_id)
                for attachment in email.embedded
            ]

        headers = self.build_headers(email)
        if headers:
            content[HEADERS] = headers

        return content

    @staticmethod
    def get_inline_content(template: Dict[str, Any]) -> SimpleContent:
        """Create simple content from the stored template's bodies."""
        html = template.get(HTML)
        text = template.get(TEXT)

        return SimpleContent(
            html=Message(html) if html is not None else None,
            text=Message(text) if text is not None else None
        )

    def get_template(self, email: Email) -> Dict[str, Any]:
        """Fetch the stored template's content from SparkPost."""
        template_id = email.content.template_id

        try:
            response = self.client.get_template(template_id)
        except SparkPostError as e:
            logger.error(
                f'Received status {e.status_code} from SparkPost while retrieving template',
                log=self.log,
                status_code=e.status_code,
                body=e.body,
                template_id=template_id
            )
            raise TransmissionException(e.status_code) from e

        try:
            return response['results'][CONTENT]
        except (KeyError, TypeError) as e:
            raise TransmissionException(message=f'SparkPost template {template_id} has no content') from e

    def build_headers(self, email: Email) -> Dict[str, str]:
        headers = {header.field: header.value for header in email.headers}

        cc_header = self.build_cc_header(email)
        if cc_header:
            headers[CC_HEADER] = cc_header

        return headers

    @staticmethod
    def build_cc_header(email: Email) -> str:
        return ','.join(address.to_rfc2822() for address in email.cc)

    @staticmethod
    def build_attachment(attachment: Attachment, name: Optional[str] = None) -> Dict[str, str]:
        return {
            'name': name or attachment.name,
            'type': attachment.content_type,
            'data': attachment.get_base64_content(),
        }
