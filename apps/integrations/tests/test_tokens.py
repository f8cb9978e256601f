import base64
from urllib.parse import parse_qs, urlparse

from django.test import SimpleTestCase

from apps.integrations import tokens
from apps.integrations.events import EventBus, EventKind
from apps.integrations.exceptions import SignatureError

SECRET = 'sk_test_0123456789abcdef'


class RecoveryTokenTests(SimpleTestCase):

    def test_decode_returns_signed_payload(self):
        signed = tokens.encode(555, 'cart-abc', SECRET)
        payload = tokens.decode(signed.token, signed.hash, SECRET)
        self.assertEqual(payload.order_id, 555)
        self.assertEqual(payload.cart_token, 'cart-abc')

    def test_token_is_compact_json(self):
        signed = tokens.encode(1, 'x', SECRET)
        self.assertEqual(
            base64.b64decode(signed.token),
            b'{"order_id":1,"cart_token":"x"}',
        )

    def test_tampered_hash_is_rejected(self):
        signed = tokens.encode(555, 'cart-abc', SECRET)
        flipped = ('0' if signed.hash[0] != '0' else '1') + signed.hash[1:]
        with self.assertRaises(SignatureError):
            tokens.decode(signed.token, flipped, SECRET)

    def test_other_secret_is_rejected(self):
        signed = tokens.encode(555, 'cart-abc', SECRET)
        with self.assertRaises(SignatureError):
            tokens.decode(signed.token, signed.hash, 'sk_otra_clave_1234')

    def test_missing_secret_is_rejected(self):
        signed = tokens.encode(555, 'cart-abc', SECRET)
        with self.assertRaises(SignatureError):
            tokens.decode(signed.token, signed.hash, '')

    def test_malformed_token_with_valid_signature(self):
        token = base64.b64encode(b'not json').decode('ascii')
        with self.assertRaises(SignatureError):
            tokens.decode(token, tokens._sign(token, SECRET), SECRET)

    def test_signed_non_numeric_order_id_is_rejected(self):
        for order_id in ('abc', 1.5, None):
            signed = tokens.encode(order_id, 'cart-abc', SECRET)
            with self.assertRaises(SignatureError):
                tokens.decode(signed.token, signed.hash, SECRET)

    def test_recovery_url_round_trips_through_query(self):
        url = tokens.build_recovery_url('https://tienda.test/', 9, 'tok', SECRET)
        parsed = urlparse(url)
        self.assertEqual(parsed.path, '/jilt/recuperar/')
        query = parse_qs(parsed.query)
        payload = tokens.decode(query['token'][0], query['hash'][0], SECRET)
        self.assertEqual(payload, tokens.RecoveryPayload(9, 'tok'))


class EventBusTests(SimpleTestCase):

    def test_publish_calls_handlers_in_order(self):
        bus = EventBus()
        calls = []
        bus.subscribe(EventKind.CART_MUTATED, lambda **kw: calls.append(('a', kw)))
        bus.subscribe(EventKind.CART_MUTATED, lambda **kw: calls.append(('b', kw)))

        bus.publish(EventKind.CART_MUTATED, foo=1)

        self.assertEqual(calls, [('a', {'foo': 1}), ('b', {'foo': 1})])
        self.assertTrue(bus.has_fired(EventKind.CART_MUTATED))
        self.assertFalse(bus.has_fired(EventKind.PAYMENT_INSERTED))

    def test_unknown_kind_is_rejected(self):
        with self.assertRaises(TypeError):
            EventBus().publish('cart_mutated')
