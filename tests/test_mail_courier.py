"""Mail (SMTP) courier tests with smtplib.SMTP patched out."""

import base64
import smtplib
from email import message_from_bytes
from email.header import decode_header, make_header
from unittest.mock import patch

import pytest

from courier.exceptions import TransmissionException, UnsupportedContentException, ValidationException
from courier.models import Address, EmptyContent, Header, SimpleContent, TemplatedContent
from courier.providers.mail_adapter import MailCourier


@pytest.fixture
def smtp():
    with patch('courier.providers.mail_adapter.smtplib.SMTP') as smtp_class:
        connection = smtp_class.return_value.__enter__.return_value
        connection.sendmail.return_value = {}
        yield smtp_class


def sent(smtp):
    connection = smtp.return_value.__enter__.return_value
    sender, recipients, raw = connection.sendmail.call_args[0]
    return sender, recipients, message_from_bytes(raw)


def test_sends_multipart_email(smtp, email_factory, attachment, embedded):
    courier = MailCourier(host='mail.test', port=1025)

    courier.deliver(email_factory(
        content=SimpleContent.from_bodies('<b>Test Email</b><img src="cid:beaker" />', 'Test Email'),
        cc=[Address('cc@test.com', 'CC Testerson')],
        bcc=[Address('bcc@test.com')],
        reply_tos=[Address('reply@test.com', 'Reply'), Address('reply2@test.com')],
        attachments=[attachment],
        embedded=[embedded],
        headers=[Header('X-Test-Header', 'present')],
    ))

    smtp.assert_called_once_with('mail.test', 1025, timeout=30)
    sender, recipients, message = sent(smtp)

    assert sender == 'sender@test.com'
    assert recipients == ['recipient@test.com', 'cc@test.com', 'bcc@test.com']
    assert message['From'] == 'Sender <sender@test.com>'
    assert message['Cc'] == 'CC Testerson <cc@test.com>'
    assert message['Bcc'] is None
    assert message['Reply-To'] == 'Reply <reply@test.com>, reply2@test.com'
    assert message['X-Test-Header'] == 'present'
    assert message.get_content_type() == 'multipart/alternative'
    assert message.get_boundary().startswith('==Multipart_Boundary_')

    text, html, regular, inline = message.get_payload()
    assert text.get_content_type() == 'text/plain'
    assert text.get_payload() == 'Test Email'
    assert html.get_content_type() == 'text/html'
    assert regular.get_filename() == 'file name.txt'
    assert regular.get_payload(decode=True) == b'Attachment file'
    assert inline['Content-ID'] == '<beaker>'
    assert inline['Content-Disposition'].startswith('inline')


def test_templated_content_is_described_as_text(smtp, email_factory):
    MailCourier().deliver(email_factory(content=TemplatedContent('1234', {'name': 'Tester'})))

    _, _, message = sent(smtp)
    (part,) = message.get_payload()
    body = part.get_payload()
    assert 'Template ID: 1234' in body
    assert '"name": "Tester"' in body


def test_long_attachments_are_chunked(smtp, email_factory):
    from courier.models import Attachment

    data = b'x' * 300
    MailCourier().deliver(email_factory(attachments=[Attachment('big.bin', data)]))

    _, _, message = sent(smtp)
    attachment_part = message.get_payload()[-1]
    lines = attachment_part.get_payload().splitlines()
    assert all(len(line) <= 76 for line in lines)
    assert base64.b64decode(''.join(lines)) == data


def test_non_ascii_subject_is_encoded(smtp, email_factory):
    MailCourier().deliver(email_factory(subject='Café résumé ✓'))

    _, _, message = sent(smtp)
    assert message['Subject'].startswith('=?utf-8?')
    assert str(make_header(decode_header(message['Subject']))) == 'Café résumé ✓'


@pytest.mark.parametrize('overrides', [
    {'headers': [Header('X-Tag', 'value\r\nBcc: hidden@test.com')]},
    {'headers': [Header('X-Tag\nBcc', 'value')]},
    {'subject': 'Hello\r\nBcc: hidden@test.com'},
])
def test_line_breaks_in_headers_are_rejected(smtp, email_factory, overrides):
    with pytest.raises(ValidationException, match='line breaks'):
        MailCourier().deliver(email_factory(**overrides))

    smtp.assert_not_called()


def test_rejects_empty_content(smtp, email_factory):
    with pytest.raises(UnsupportedContentException):
        MailCourier().deliver(email_factory(content=EmptyContent()))

    smtp.assert_not_called()


def test_smtp_failure_becomes_transmission_exception(smtp, email_factory):
    smtp.side_effect = ConnectionRefusedError('refused')

    with pytest.raises(TransmissionException) as exc_info:
        MailCourier().deliver(email_factory())

    assert isinstance(exc_info.value.__cause__, ConnectionRefusedError)


def test_refused_recipients_are_a_failure(smtp, email_factory):
    connection = smtp.return_value.__enter__.return_value
    connection.sendmail.return_value = {'recipient@test.com': (550, b'No such user')}

    with pytest.raises(TransmissionException, match='recipient@test.com'):
        MailCourier().deliver(email_factory())


def test_smtp_exception_is_translated(smtp, email_factory):
    connection = smtp.return_value.__enter__.return_value
    connection.sendmail.side_effect = smtplib.SMTPSenderRefused(553, b'denied', 'sender@test.com')

    with pytest.raises(TransmissionException):
        MailCourier().deliver(email_factory())
