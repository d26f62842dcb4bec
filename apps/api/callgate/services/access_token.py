"""Agora "006" RTC access token encoder.

The token is an external wire contract checked by Agora's servers, so every
field below has a fixed width and byte order:

    token    = base64(version | app_id | hex(signature) | message)
    message  = u32 salt | u32 issued_at | u16 len(service) | service
    service  = u8 service_type | u16 len(channel) | channel | u32 uid
               | u16 count | count * (u16 privilege | u32 expires_at)
    signed   = app_id | channel | str(uid) | u32 salt | u32 issued_at | service

All integers are little-endian. The signature is HMAC-SHA256 keyed with the
app certificate.
"""
from __future__ import annotations

import base64
import binascii
import enum
import hashlib
import hmac
import logging
import secrets
import struct
import time
from dataclasses import dataclass, field
from typing import Callable, Iterable, Sequence

logger = logging.getLogger(__name__)

VERSION = b"006"
SIGNATURE_HEX_LENGTH = hashlib.sha256().digest_size * 2
DEFAULT_APP_ID_LENGTH = 32

MAX_UINT16 = 0xFFFF
MAX_UINT32 = 0xFFFFFFFF

SaltSource = Callable[[], int]
Clock = Callable[[], float]


class ServiceType(enum.IntEnum):
    RTC = 1


class PrivilegeKind(enum.IntEnum):
    JOIN_CHANNEL = 1
    PUBLISH_AUDIO_STREAM = 2
    PUBLISH_VIDEO_STREAM = 3
    PUBLISH_DATA_STREAM = 4


class TokenError(ValueError):
    """Base class for token construction and parsing failures."""

    code = "TOKEN_ERROR"


class MissingCredentials(TokenError):
    """Raised when the Agora app id or app certificate is not configured."""

    code = "RTC_NOT_CONFIGURED"


class InvalidUserId(TokenError):
    code = "INVALID_UID"


class InvalidChannelName(TokenError):
    code = "INVALID_CHANNEL"


class InvalidTtl(TokenError):
    code = "INVALID_TTL"


class InvalidPrivilege(TokenError):
    code = "INVALID_PRIVILEGE"


class MalformedToken(TokenError):
    code = "MALFORMED_TOKEN"


@dataclass(frozen=True, slots=True)
class Credentials:
    """Agora project identity. The certificate is kept out of ``repr``."""

    app_id: str
    app_certificate: str = field(repr=False)

    def require(self) -> None:
        if not self.app_id or not self.app_certificate:
            raise MissingCredentials("Agora app id and app certificate must both be configured")


@dataclass(frozen=True, slots=True)
class Privilege:
    kind: int
    expires_at: int


@dataclass(frozen=True, slots=True)
class ServiceBlock:
    channel_name: bytes
    user_id: int
    privileges: tuple[Privilege, ...]
    service_type: int = ServiceType.RTC


@dataclass(frozen=True, slots=True)
class MessageBlock:
    salt: int
    issued_at: int
    service: ServiceBlock


@dataclass(frozen=True, slots=True)
class DecodedToken:
    """Plaintext framing recovered from a token string."""

    version: str
    app_id: str
    signature_hex: str
    salt: int
    issued_at: int
    service: ServiceBlock
    signing_input: bytes

    @property
    def channel_name(self) -> str:
        return self.service.channel_name.decode("utf-8")

    @property
    def user_id(self) -> int:
        return self.service.user_id

    @property
    def expires_at(self) -> int:
        return min((p.expires_at for p in self.service.privileges), default=self.issued_at)


def _pack_uint8(value: int) -> bytes:
    return struct.pack("<B", value)


def _pack_uint16(value: int) -> bytes:
    return struct.pack("<H", value)


def _pack_uint32(value: int) -> bytes:
    return struct.pack("<I", value)


def default_salt() -> int:
    """Return a salt drawn uniformly from the full unsigned 32-bit range."""

    return secrets.randbits(32)


def normalize_user_id(user_id: str | int) -> int:
    """Parse a caller-supplied uid into an unsigned 32-bit integer."""

    if isinstance(user_id, bool):
        raise InvalidUserId("uid must be a number, not a boolean")
    if isinstance(user_id, int):
        value = user_id
    elif isinstance(user_id, str):
        text = user_id.strip()
        if not text.isdigit() or not text.isascii():
            raise InvalidUserId(f"uid must be a non-negative decimal integer, got {user_id!r}")
        if len(text.lstrip("0")) > len(str(MAX_UINT32)):
            raise InvalidUserId(f"uid must be between 0 and {MAX_UINT32}")
        value = int(text)
    elif isinstance(user_id, float) and user_id.is_integer():
        value = int(user_id)
    else:
        raise InvalidUserId(f"uid must be a number, got {type(user_id).__name__}")

    if not 0 <= value <= MAX_UINT32:
        raise InvalidUserId(f"uid must be between 0 and {MAX_UINT32}, got {value}")
    return value


def normalize_channel_name(channel_name: str | bytes) -> bytes:
    raw = channel_name.encode("utf-8") if isinstance(channel_name, str) else bytes(channel_name)
    if not raw:
        raise InvalidChannelName("channel name must not be empty")
    if len(raw) > MAX_UINT16:
        raise InvalidChannelName(f"channel name must be at most {MAX_UINT16} bytes, got {len(raw)}")
    return raw


def encode_service(service: ServiceBlock) -> bytes:
    """Serialize the privilege service block in caller-supplied order."""

    channel = normalize_channel_name(service.channel_name)
    if len(service.privileges) > MAX_UINT16:
        raise InvalidPrivilege("too many privileges for a single service block")
    for privilege in service.privileges:
        if not 0 <= privilege.kind <= MAX_UINT16:
            raise InvalidPrivilege(f"privilege kind {privilege.kind} does not fit in 16 bits")
        if not 0 <= privilege.expires_at <= MAX_UINT32:
            raise InvalidTtl(f"privilege expiry {privilege.expires_at} does not fit in 32 bits")

    parts = [
        _pack_uint8(service.service_type),
        _pack_uint16(len(channel)),
        channel,
        _pack_uint32(service.user_id),
        _pack_uint16(len(service.privileges)),
    ]
    for privilege in service.privileges:
        parts.append(_pack_uint16(privilege.kind))
        parts.append(_pack_uint32(privilege.expires_at))
    return b"".join(parts)


def build_message(
    service: ServiceBlock,
    *,
    salt_source: SaltSource = default_salt,
    clock: Clock = time.time,
    issued_at: int | None = None,
) -> MessageBlock:
    """Wrap a service block with a fresh salt and the issue timestamp."""

    if issued_at is None:
        issued_at = int(clock())
    return MessageBlock(salt=salt_source() & MAX_UINT32, issued_at=issued_at, service=service)


def encode_message(message: MessageBlock, service_bytes: bytes | None = None) -> bytes:
    if service_bytes is None:
        service_bytes = encode_service(message.service)
    if len(service_bytes) > MAX_UINT16:
        raise InvalidChannelName(
            f"service block of {len(service_bytes)} bytes does not fit the message length field; "
            "use a shorter channel name"
        )
    return b"".join(
        [
            _pack_uint32(message.salt),
            _pack_uint32(message.issued_at),
            _pack_uint16(len(service_bytes)),
            service_bytes,
        ]
    )


def signing_input(
    app_id: str,
    channel_name: bytes,
    user_id: int,
    salt: int,
    issued_at: int,
    service_bytes: bytes,
) -> bytes:
    # No separators between fields; the remote verifier rebuilds this exact byte string.
    return b"".join(
        [
            app_id.encode("utf-8"),
            channel_name,
            str(user_id).encode("ascii"),
            _pack_uint32(salt),
            _pack_uint32(issued_at),
            service_bytes,
        ]
    )


def sign(
    credentials: Credentials,
    channel_name: bytes,
    user_id: int,
    salt: int,
    issued_at: int,
    service_bytes: bytes,
) -> bytes:
    """Return the raw HMAC-SHA256 signature over the signing input."""

    credentials.require()
    message = signing_input(credentials.app_id, channel_name, user_id, salt, issued_at, service_bytes)
    return hmac.new(credentials.app_certificate.encode("utf-8"), message, hashlib.sha256).digest()


def assemble(app_id: str, signature: bytes, message_bytes: bytes) -> str:
    """Concatenate the token parts and base64-encode the result."""

    raw = VERSION + app_id.encode("utf-8") + signature.hex().encode("ascii") + message_bytes
    return base64.b64encode(raw).decode("ascii")


class AccessTokenEncoder:
    """Issue RTC join tokens for one Agora project.

    The encoder holds no mutable state; a single instance may be shared
    across threads and coroutines.
    """

    def __init__(
        self,
        credentials: Credentials,
        *,
        salt_source: SaltSource = default_salt,
        clock: Clock = time.time,
    ) -> None:
        self._credentials = credentials
        self._salt_source = salt_source
        self._clock = clock

    @property
    def app_id(self) -> str:
        return self._credentials.app_id

    def generate_token(
        self,
        channel_name: str,
        user_id: str | int,
        ttl_seconds: int,
        privileges: Iterable[int] | None = None,
    ) -> str:
        return self.issue(channel_name, user_id, ttl_seconds, privileges)[0]

    def issue(
        self,
        channel_name: str,
        user_id: str | int,
        ttl_seconds: int,
        privileges: Iterable[int] | None = None,
    ) -> tuple[str, MessageBlock]:
        """Return the token together with the message block it carries."""

        self._credentials.require()
        channel = normalize_channel_name(channel_name)
        uid = normalize_user_id(user_id)
        if isinstance(ttl_seconds, bool) or not isinstance(ttl_seconds, int) or ttl_seconds < 0:
            raise InvalidTtl(f"ttl_seconds must be a non-negative integer, got {ttl_seconds!r}")

        try:
            kinds: Sequence[int] = (
                tuple(int(kind) for kind in privileges) if privileges is not None else (PrivilegeKind.JOIN_CHANNEL,)
            )
        except (TypeError, ValueError) as exc:
            raise InvalidPrivilege(f"privilege kinds must be integers, got {privileges!r}") from exc
        issued_at = int(self._clock())
        expires_at = issued_at + ttl_seconds
        if expires_at > MAX_UINT32:
            raise InvalidTtl(f"expiry {expires_at} does not fit in an unsigned 32-bit timestamp")

        service = ServiceBlock(
            channel_name=channel,
            user_id=uid,
            privileges=tuple(Privilege(kind=int(kind), expires_at=expires_at) for kind in kinds),
        )
        message = build_message(service, salt_source=self._salt_source, issued_at=issued_at)
        service_bytes = encode_service(service)
        signature = sign(self._credentials, channel, uid, message.salt, issued_at, service_bytes)
        token = assemble(self._credentials.app_id, signature, encode_message(message, service_bytes))

        logger.debug("Issued RTC token channel=%s uid=%s expires_at=%s", channel_name, uid, expires_at)
        return token, message


class _Reader:
    def __init__(self, data: bytes) -> None:
        self._data = data
        self._offset = 0

    @property
    def remaining(self) -> int:
        return len(self._data) - self._offset

    def take(self, size: int) -> bytes:
        if size > self.remaining:
            raise MalformedToken(f"token truncated: wanted {size} bytes at offset {self._offset}")
        chunk = self._data[self._offset:self._offset + size]
        self._offset += size
        return chunk

    def uint(self, fmt: str) -> int:
        return struct.unpack(fmt, self.take(struct.calcsize(fmt)))[0]


def decode_service(data: bytes) -> ServiceBlock:
    reader = _Reader(data)
    service_type = reader.uint("<B")
    channel = reader.take(reader.uint("<H"))
    user_id = reader.uint("<I")
    count = reader.uint("<H")
    privileges = tuple(Privilege(kind=reader.uint("<H"), expires_at=reader.uint("<I")) for _ in range(count))
    if reader.remaining:
        raise MalformedToken(f"{reader.remaining} unexpected bytes after privileges")
    return ServiceBlock(channel_name=channel, user_id=user_id, privileges=privileges, service_type=service_type)


def decode_token(token: str, app_id_length: int = DEFAULT_APP_ID_LENGTH) -> DecodedToken:
    """Read the fixed-width framing of a token back into its fields.

    App ids are not length-prefixed in the token, so the caller supplies the
    expected length (Agora app ids are 32 characters).
    """

    try:
        raw = base64.b64decode(token, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise MalformedToken("token is not valid base64") from exc

    reader = _Reader(raw)
    version = reader.take(len(VERSION))
    if version != VERSION:
        raise MalformedToken(f"unsupported token version {version!r}")
    app_id = reader.take(app_id_length).decode("utf-8", errors="replace")
    signature_hex = reader.take(SIGNATURE_HEX_LENGTH).decode("ascii", errors="replace")
    salt = reader.uint("<I")
    issued_at = reader.uint("<I")
    service_bytes = reader.take(reader.uint("<H"))
    if reader.remaining:
        raise MalformedToken(f"{reader.remaining} unexpected bytes after message")
    service = decode_service(service_bytes)

    return DecodedToken(
        version=version.decode("ascii"),
        app_id=app_id,
        signature_hex=signature_hex,
        salt=salt,
        issued_at=issued_at,
        service=service,
        signing_input=signing_input(app_id, service.channel_name, service.user_id, salt, issued_at, service_bytes),
    )


def verify_signature(decoded: DecodedToken, app_certificate: str) -> bool:
    """Recompute the HMAC over the decoded signing input and compare."""

    expected = hmac.new(app_certificate.encode("utf-8"), decoded.signing_input, hashlib.sha256).hexdigest()
    return hmac.compare_digest(expected, decoded.signature_hex)
