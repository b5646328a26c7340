"""
Unified Email Model

Provider-agnostic description of an email. Every courier consumes these
objects and translates them into its provider's request format.
"""

import base64
import copy
import mimetypes
from dataclasses import dataclass, field
from email.utils import formataddr, parseaddr
from pathlib import Path
from typing import Optional, Dict, Any, List


@dataclass(frozen=True)
class Address:
    """An email address with an optional display name."""
    email: str
    name: Optional[str] = None

    @classmethod
    def from_string(cls, value: str) -> 'Address':
        """Parse an RFC 2822 address such as '"Name" <user@example.com>'."""
        name, email = parseaddr(value)
        if not email:
            raise ValueError(f'Invalid email address: {value!r}')
        return cls(email=email, name=name or None)

    @property
    def local_part(self) -> str:
        return self.email.split('@', 1)[0]

    @property
    def domain(self) -> str:
        return self.email.split('@', 1)[1] if '@' in self.email else ''

    def to_rfc2822(self) -> str:
        return formataddr((self.name or '', self.email))

    def __str__(self) -> str:
        return self.to_rfc2822()


@dataclass(frozen=True)
class Header:
    """A custom header. Fields are not required to be unique."""
    field: str
    value: str


@dataclass(frozen=True)
class Message:
    """A single body of simple content."""
    body: str
    charset: str = 'utf-8'

    def __str__(self) -> str:
        return self.body


class Content:
    """Marker base class for the three content variants."""

    @property
    def kind(self) -> str:
        return type(self).__name__


@dataclass(frozen=True)
class EmptyContent(Content):
    """An email without any body."""


@dataclass(frozen=True)
class SimpleContent(Content):
    """Direct HTML and/or text bodies."""
    html: Optional[Message] = None
    text: Optional[Message] = None

    @classmethod
    def from_text(cls, body: str, charset: str = 'utf-8') -> 'SimpleContent':
        return cls(text=Message(body, charset))

    @classmethod
    def from_html(cls, body: str, charset: str = 'utf-8') -> 'SimpleContent':
        return cls(html=Message(body, charset))

    @classmethod
    def from_bodies(cls, html: Optional[str], text: Optional[str]) -> 'SimpleContent':
        return cls(
            html=Message(html) if html is not None else None,
            text=Message(text) if text is not None else None
        )


@dataclass(frozen=True)
class TemplatedContent(Content):
    """A remote template reference and the data to render it with."""
    template_id: str
    template_data: Dict[str, Any] = field(default_factory=dict)


class Attachment:
    """
    An attachment held in memory.

    Embedded (inline) attachments must carry a content_id so the HTML body
    can reference them as cid:<content_id>.
    """

    def __init__(
        self,
        name: str,
        content: bytes,
        content_type: Optional[str] = None,
        charset: Optional[str] = None,
        content_id: Optional[str] = None
    ):
        self.name = name
        self._content = content
        self.content_type = content_type or _guess_type(name)
        self.charset = charset
        self.content_id = content_id

    def get_content(self) -> bytes:
        return self._content

    def get_base64_content(self) -> str:
        return base64.b64encode(self.get_content()).decode('ascii')

    def __repr__(self) -> str:
        return f'{type(self).__name__}(name={self.name!r}, content_type={self.content_type!r})'


class FileAttachment(Attachment):
    """An attachment backed by a file on disk, read only when needed."""

    def __init__(
        self,
        path,
        name: Optional[str] = None,
        content_type: Optional[str] = None,
        charset: Optional[str] = None,
        content_id: Optional[str] = None
    ):
        self.path = Path(path)
        super().__init__(
            name=name or self.path.name,
            content=b'',
            content_type=content_type or _guess_type(self.path.name),
            charset=charset,
            content_id=content_id
        )

    def get_content(self) -> bytes:
        return self.path.read_bytes()


def _guess_type(name: str) -> str:
    guessed, _ = mimetypes.guess_type(name)
    return guessed or 'application/octet-stream'


@dataclass(eq=False)
class Email:
    """
    A single email ready to be handed to a courier.

    Instances compare and hash by identity, so receipts are tracked per
    instance rather than per structure.
    """
    subject: Optional[str]
    content: Content
    from_address: Address
    to: List[Address] = field(default_factory=list)
    cc: List[Address] = field(default_factory=list)
    bcc: List[Address] = field(default_factory=list)
    reply_tos: List[Address] = field(default_factory=list)
    attachments: List[Attachment] = field(default_factory=list)
    embedded: List[Attachment] = field(default_factory=list)
    headers: List[Header] = field(default_factory=list)

    def __post_init__(self):
        if not isinstance(self.content, Content):
            raise TypeError(f'Email content must be a Content variant, got {type(self.content).__name__}')
        for attachment in self.embedded:
            if not attachment.content_id:
                raise ValueError(f'Embedded attachment {attachment.name!r} requires a content ID')

    def copy(self) -> 'Email':
        """Return a clone whose address, attachment and header lists are independent."""
        clone = copy.copy(self)
        for name in ('to', 'cc', 'bcc', 'reply_tos', 'attachments', 'embedded', 'headers'):
            setattr(clone, name, list(getattr(self, name)))
        return clone
