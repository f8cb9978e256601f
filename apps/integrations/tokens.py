"""
Token firmado de los enlaces de recuperación de carrito.

token = base64(json compacto {"order_id", "cart_token"})
hash  = HMAC-SHA256 hex de token con la clave secreta actual
"""
import base64
import binascii
import hashlib
import hmac
import json
from collections import namedtuple
from urllib.parse import quote

from django.urls import reverse

from .exceptions import SignatureError

RecoveryToken = namedtuple('RecoveryToken', ['token', 'hash'])
RecoveryPayload = namedtuple('RecoveryPayload', ['order_id', 'cart_token'])


def _sign(token, secret_key):
    return hmac.new(
        secret_key.encode('utf-8'), token.encode('utf-8'), hashlib.sha256
    ).hexdigest()


def encode(order_id, cart_token, secret_key):
    data = json.dumps(
        {'order_id': order_id, 'cart_token': cart_token},
        separators=(',', ':'),
    )
    token = base64.b64encode(data.encode('utf-8')).decode('ascii')
    return RecoveryToken(token=token, hash=_sign(token, secret_key))


def decode(token, hash_value, secret_key):
    """Verifica la firma y devuelve el RecoveryPayload. Lanza SignatureError."""
    if not secret_key:
        raise SignatureError('No secret key configured')
    if not token or not hash_value:
        raise SignatureError('Missing token or hash')

    expected = _sign(token, secret_key)
    if not hmac.compare_digest(expected.encode('utf-8'), hash_value.encode('utf-8')):
        raise SignatureError('Hash failed validation')

    try:
        data = json.loads(base64.b64decode(token, validate=True).decode('utf-8'))
    except (binascii.Error, UnicodeDecodeError, ValueError) as e:
        raise SignatureError(f'Malformed token: {e}') from e
    if not isinstance(data, dict) or 'order_id' not in data or 'cart_token' not in data:
        raise SignatureError('Malformed token payload')
    try:
        order_id = int(str(data['order_id']))
    except ValueError as e:
        raise SignatureError(f'Malformed order id: {data["order_id"]!r}') from e
    return RecoveryPayload(order_id=order_id, cart_token=data['cart_token'])


def build_recovery_url(base_url, order_id, cart_token, secret_key):
    signed = encode(order_id, cart_token, secret_key)
    path = reverse('integrations:recover')
    return (
        f"{base_url.rstrip('/')}{path}"
        f"?token={quote(signed.token, safe='')}&hash={signed.hash}"
    )
