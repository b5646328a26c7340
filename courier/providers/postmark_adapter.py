"""
Postmark Courier Implementation

Concrete implementation of the ConfirmingCourier for Postmark.
"""

import logging
from typing import Dict, Any, List, Optional
import requests

from courier.exceptions import TransmissionException
from courier.models import Address, Email, EmptyContent, SimpleContent, TemplatedContent
from courier.providers.courier_adapter import ConfirmingCourier
from courier.providers.postmark_client import PostmarkClient, PostmarkError
from courier import logger

NO_MESSAGE = 'No message'


class PostmarkCourier(ConfirmingCourier):
    """Postmark implementation of the ConfirmingCourier interface."""

    SUPPORTED_CONTENT = (EmptyContent, SimpleContent, TemplatedContent)

    def __init__(self, client: PostmarkClient, logger: Optional[logging.Logger] = None):
        super().__init__(logger)
        self.client = client

    def get_provider_name(self) -> str:
        return "Postmark"

    def deliver(self, email: Email) -> None:
        """
        Send email via Postmark API.

        Templated content goes through the template endpoint, everything
        else through the plain email endpoint.
        """
        self.ensure_supported(email)

        if isinstance(email.content, TemplatedContent):
            response = self._send(self.client.send_email_with_template, self.build_template_payload(email))
        else:
            response = self._send(self.client.send_email, self.build_payload(email))

        message_id = response.get('MessageID')
        if not message_id:
            raise TransmissionException(message='Postmark response did not include a MessageID')

        self.save_receipt(email, message_id)

    def build_payload(self, email: Email) -> Dict[str, Any]:
        content = email.content
        html_body = NO_MESSAGE
        text_body = NO_MESSAGE

        if isinstance(content, SimpleContent):
            html_body = content.html.body if content.html is not None else None
            text_body = content.text.body if content.text is not None else None

        payload = self._common_payload(email)
        payload['Subject'] = email.subject
        payload['HtmlBody'] = html_body
        payload['TextBody'] = text_body

        return _without_empty(payload)

    def build_template_payload(self, email: Email) -> Dict[str, Any]:
        payload = self._common_payload(email)
        payload['TemplateId'] = int(email.content.template_id)
        payload['TemplateModel'] = self.build_template_data(email)
        payload['InlineCss'] = True

        return _without_empty(payload)

    def _common_payload(self, email: Email) -> Dict[str, Any]:
        return {
            'From': email.from_address.to_rfc2822(),
            'To': self.build_recipients(email.to),
            'Cc': self.build_recipients(email.cc),
            'Bcc': self.build_recipients(email.bcc),
            'ReplyTo': self.build_reply_to(email),
            'Headers': [
                {'Name': name, 'Value': value}
                for name, value in self.build_headers(email).items()
            ],
            'Attachments': self.build_attachments(email),
            'TrackOpens': True,
        }

    def build_reply_to(self, email: Email) -> Optional[str]:
        # The Postmark API only supports one "Reply To"
        if email.reply_tos:
            return email.reply_tos[0].to_rfc2822()

        return None

    @staticmethod
    def build_recipients(addresses: List[Address]) -> str:
        return ','.join(address.to_rfc2822() for address in addresses)

    @staticmethod
    def build_attachments(email: Email) -> List[Dict[str, Any]]:
        attachments = []

        for attachment in list(email.attachments) + list(email.embedded):
            entry = {
                'Name': attachment.name,
                'Content': attachment.get_base64_content(),
                'ContentType': attachment.content_type,
            }
            if attachment.content_id:
                entry['ContentID'] = attachment.content_id
            attachments.append(entry)

        return attachments

    @staticmethod
    def build_headers(email: Email) -> Dict[str, str]:
        # Duplicate fields overwrite, last one wins
        return {header.field: header.value for header in email.headers}

    @staticmethod
    def build_template_data(email: Email) -> Dict[str, Any]:
        data = dict(email.content.template_data)

        # Add the subject from the email for dynamic replacement
        data['subject'] = email.subject

        return data

    def _send(self, send, payload: Dict[str, Any]) -> Dict[str, Any]:
        logger.debug(f'Sending email via Postmark to {payload.get("To")}', log=self.log)

        try:
            return send(payload)
        except PostmarkError as e:
            logger.error(
                'Received error from Postmark',
                log=self.log,
                http_status=e.http_status,
                api_error_code=e.api_error_code,
                message=e.message
            )
            raise TransmissionException(e.api_error_code) from e
        except requests.RequestException as e:
            logger.error('Postmark API request failed', err=e, log=self.log)
            raise TransmissionException() from e


def _without_empty(payload: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in payload.items() if value not in (None, '', [])}
