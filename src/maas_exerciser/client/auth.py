from __future__ import annotations

import time
import uuid
from dataclasses import dataclass
from urllib.parse import quote

from maas_exerciser.core.errors import ValidationError


@dataclass(frozen=True)
class ApiCredentials:
    """
    OAuth 1.0 credentials taken from a MAAS API key.

    The key has three colon separated parts:
    consumer_key:token_key:token_secret

    An empty key means anonymous access, no Authorization header is sent.
    """

    consumer_key: str = ""
    token_key: str = ""
    token_secret: str = ""

    @property
    def anonymous(self) -> bool:
        return not self.consumer_key


def parse_api_key(api_key: str) -> ApiCredentials:
    """
    Parse consumer_key:token_key:token_secret.

    Raises ValidationError for any other shape.
    """
    if not api_key:
        return ApiCredentials()
    parts = api_key.split(":")
    if len(parts) != 3 or not all(parts[:2]):
        raise ValidationError("invalid API key, expected <consumer>:<token>:<secret>")
    return ApiCredentials(consumer_key=parts[0], token_key=parts[1], token_secret=parts[2])


def authorization_header(
    creds: ApiCredentials,
    *,
    timestamp: str | None = None,
    nonce: str | None = None,
) -> str:
    """
    Build an OAuth PLAINTEXT Authorization header value.

    PLAINTEXT signs with consumer_secret&token_secret. MAAS keys carry an
    empty consumer secret, so the signature is &token_secret.

    timestamp and nonce are generated per call unless given.
    """
    ts = timestamp if timestamp is not None else str(int(time.time()))
    nc = nonce if nonce is not None else uuid.uuid4().hex
    params = [
        ("oauth_version", "1.0"),
        ("oauth_signature_method", "PLAINTEXT"),
        ("oauth_consumer_key", creds.consumer_key),
        ("oauth_token", creds.token_key),
        ("oauth_signature", "&" + creds.token_secret),
        ("oauth_nonce", nc),
        ("oauth_timestamp", ts),
    ]
    rendered = ", ".join(f'{k}="{quote(v, safe="")}"' for k, v in params)
    return f'OAuth realm="", {rendered}'
