"""
Logging Courier Implementation

Writes the email to a logger instead of delivering it. Not meant for
production, but useful locally when an email carries something the developer
needs to see, like a generated password reset token.
"""

import json
import logging
from typing import List, Optional

from courier.models import Address, Content, Email, SimpleContent, TemplatedContent
from courier.providers.courier_adapter import Courier


class LoggingCourier(Courier):
    """Logs every structural field of the email at debug level."""

    SUPPORTED_CONTENT = (Content,)

    def __init__(self, logger: Optional[logging.Logger] = None):
        super().__init__(logger)

    def get_provider_name(self) -> str:
        return "Logging"

    def deliver(self, email: Email) -> None:
        self.log.debug('Delivered email')
        self.log.debug(f'Subject: {email.subject}')
        self.log.debug(f'From: {email.from_address.to_rfc2822()}')
        self.log.debug(f'Reply To: {self._map_addresses(email.reply_tos)}')
        self.log.debug(f'To: {self._map_addresses(email.to)}')
        self.log.debug(f'CC: {self._map_addresses(email.cc)}')
        self.log.debug(f'BCC: {self._map_addresses(email.bcc)}')

        for header in email.headers:
            self.log.debug(f'{header.field}: {header.value}')

        self.log.debug('Attaching: ' + ', '.join(attachment.name for attachment in email.attachments))
        self.log.debug('Embedding IDs: ' + ', '.join(attachment.content_id or 'NA' for attachment in email.embedded))

        self._log_content(email.content)

    def _log_content(self, content: Content) -> None:
        if isinstance(content, TemplatedContent):
            self.log.debug(f'Template ID: {content.template_id}')
            self.log.debug('Template Data:\n' + json.dumps(content.template_data, indent=4, default=str))

        if isinstance(content, SimpleContent):
            self.log.debug('HTML:\n')
            self.log.debug(content.html.body if content.html else '')
            self.log.debug('Text:\n')
            self.log.debug(content.text.body if content.text else '')

    @staticmethod
    def _map_addresses(addresses: List[Address]) -> str:
        return ', '.join(address.to_rfc2822() for address in addresses)
