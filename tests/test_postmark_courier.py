"""
Postmark courier tests.

The PostmarkClient is replaced by a mock, so these tests only cover payload
building, error translation and receipts.
"""

import logging
from unittest.mock import MagicMock

import pytest
import requests

from courier.exceptions import (
    ReceiptException,
    TransmissionException,
    UnsupportedContentException,
)
from courier.models import Address, Content, EmptyContent, Header, SimpleContent, TemplatedContent
from courier.providers.postmark_adapter import PostmarkCourier
from courier.providers.postmark_client import PostmarkClient, PostmarkError


class UnknownContent(Content):
    pass


@pytest.fixture
def client():
    client = MagicMock(spec=PostmarkClient)
    client.send_email.return_value = {'MessageID': 'pm-123', 'ErrorCode': 0}
    client.send_email_with_template.return_value = {'MessageID': 'pm-456', 'ErrorCode': 0}
    return client


@pytest.fixture
def courier(client):
    return PostmarkCourier(client)


def sent_payload(client_method):
    return client_method.call_args[0][0]


def test_sends_simple_email(courier, client, email_factory):
    email = email_factory()

    courier.deliver(email)

    assert sent_payload(client.send_email) == {
        'From': 'Sender <sender@test.com>',
        'To': 'recipient@test.com',
        'Subject': 'Subject',
        'TextBody': 'This is a test email',
        'TrackOpens': True,
    }
    client.send_email_with_template.assert_not_called()
    assert courier.receipt_for(email) == 'pm-123'


def test_empty_content_sends_placeholder_bodies(courier, client, email_factory):
    courier.deliver(email_factory(content=EmptyContent()))

    payload = sent_payload(client.send_email)
    assert payload['HtmlBody'] == 'No message'
    assert payload['TextBody'] == 'No message'


def test_sends_templated_email(courier, client, email_factory):
    email = email_factory(content=TemplatedContent('1234', {'name': 'Tester'}))

    courier.deliver(email)

    payload = sent_payload(client.send_email_with_template)
    assert payload['TemplateId'] == 1234
    assert payload['TemplateModel'] == {'name': 'Tester', 'subject': 'Subject'}
    assert payload['InlineCss'] is True
    assert 'HtmlBody' not in payload
    client.send_email.assert_not_called()
    assert courier.receipt_for(email) == 'pm-456'


def test_template_data_is_not_mutated(courier, email_factory):
    data = {'name': 'Tester'}

    courier.deliver(email_factory(content=TemplatedContent('1234', data)))

    assert data == {'name': 'Tester'}


def test_maps_all_email_values(courier, client, email_factory, attachment, embedded):
    email = email_factory(
        content=SimpleContent.from_bodies('<b>Hi</b>', 'Hi'),
        to=[Address('recipient@test.com'), Address('second@test.com', 'Second')],
        cc=[Address('cc@test.com', 'CC')],
        bcc=[Address('bcc@test.com', 'BCC')],
        reply_tos=[Address('reply@test.com', 'Reply'), Address('ignored@test.com')],
        attachments=[attachment],
        embedded=[embedded],
        headers=[Header('X-Tag', 'one'), Header('X-Tag', 'two'), Header('X-Other', 'three')],
    )

    courier.deliver(email)

    payload = sent_payload(client.send_email)
    assert payload['To'] == 'recipient@test.com,Second <second@test.com>'
    assert payload['Cc'] == 'CC <cc@test.com>'
    assert payload['Bcc'] == 'BCC <bcc@test.com>'
    assert payload['ReplyTo'] == 'Reply <reply@test.com>'
    assert payload['HtmlBody'] == '<b>Hi</b>'
    assert payload['Headers'] == [
        {'Name': 'X-Tag', 'Value': 'two'},
        {'Name': 'X-Other', 'Value': 'three'},
    ]
    assert payload['Attachments'] == [
        {
            'Name': 'file name.txt',
            'Content': attachment.get_base64_content(),
            'ContentType': 'text/plain',
        },
        {
            'Name': 'beaker.jpg',
            'Content': embedded.get_base64_content(),
            'ContentType': 'image/jpeg',
            'ContentID': 'beaker',
        },
    ]


def test_rejects_unsupported_content_before_sending(courier, client, email_factory):
    with pytest.raises(UnsupportedContentException, match='UnknownContent'):
        courier.deliver(email_factory(content=UnknownContent()))

    client.send_email.assert_not_called()
    client.send_email_with_template.assert_not_called()


@pytest.mark.parametrize('content', [
    SimpleContent.from_text('text'),
    TemplatedContent('1234', {}),
])
def test_provider_error_becomes_transmission_exception(courier, client, email_factory, content, caplog):
    error = PostmarkError(422, 300, 'Invalid email request')
    client.send_email.side_effect = error
    client.send_email_with_template.side_effect = error

    email = email_factory(content=content)

    with caplog.at_level(logging.ERROR, logger='courier'):
        with pytest.raises(TransmissionException) as exc_info:
            courier.deliver(email)

    assert exc_info.value.code == 300
    assert exc_info.value.__cause__ is error
    record = caplog.records[-1]
    assert record.extra_data['api_error_code'] == 300
    assert record.extra_data['http_status'] == 422

    with pytest.raises(ReceiptException):
        courier.receipt_for(email)


def test_connection_error_becomes_transmission_exception(courier, client, email_factory):
    client.send_email.side_effect = requests.ConnectionError('down')

    with pytest.raises(TransmissionException):
        courier.deliver(email_factory())


def test_missing_message_id_is_a_failure(courier, client, email_factory):
    client.send_email.return_value = {'ErrorCode': 0}

    with pytest.raises(TransmissionException):
        courier.deliver(email_factory())
