"""Shared fixtures for courier tests. No test touches the network."""

import pytest

from courier.models import Address, Attachment, Email, SimpleContent


def make_email(**overrides) -> Email:
    """Create a test Email with sensible defaults."""
    defaults = {
        'subject': 'Subject',
        'content': SimpleContent.from_text('This is a test email'),
        'from_address': Address('sender@test.com', 'Sender'),
        'to': [Address('recipient@test.com')],
    }
    defaults.update(overrides)
    return Email(**defaults)


@pytest.fixture
def email_factory():
    return make_email


@pytest.fixture
def attachment():
    return Attachment('file name.txt', b'Attachment file', 'text/plain')


@pytest.fixture
def embedded():
    return Attachment('beaker.jpg', b'\xff\xd8\xff\xe0jpeg', 'image/jpeg', content_id='beaker')


@pytest.fixture
def attachment_file(tmp_path):
    path = tmp_path / 'attachment_test.txt'
    path.write_text('Attachment file')
    return path
