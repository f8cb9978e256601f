import json
from unittest import mock

import requests
from django.test import SimpleTestCase

from apps.integrations.client import JiltClient, mask_credential
from apps.integrations.exceptions import ErrorKind, JiltAPIError, JiltTransportError


def _response(status, payload=None, reason='OK'):
    response = requests.Response()
    response.status_code = status
    response.reason = reason
    response._content = json.dumps(payload).encode('utf-8') if payload is not None else b''
    return response


class MaskCredentialTests(SimpleTestCase):

    def test_keeps_first_two_and_last_four(self):
        self.assertEqual(mask_credential('sk_live_abcdef1234'), 'sk************1234')

    def test_short_values_are_returned_as_is(self):
        self.assertEqual(mask_credential('abc1234'), 'abc1234')
        self.assertEqual(mask_credential(''), '')
        self.assertEqual(mask_credential(None), '')


class JiltClientTests(SimpleTestCase):

    def setUp(self):
        self.session = mock.Mock(spec=requests.Session)
        self.on_cancelled = mock.Mock()
        self.client = JiltClient(
            secret_key='sk_test_0123456789',
            shop_domain='tienda.test',
            shop_id=99,
            hostname='jilt.test',
            timeout=5,
            on_account_cancelled=self.on_cancelled,
            session=self.session,
        )

    def test_request_carries_auth_and_domain_headers(self):
        self.session.request.return_value = _response(200, {'id': 1, 'cart_token': 'abc'})

        self.client.create_order({'total_price': 1250})

        args, kwargs = self.session.request.call_args
        self.assertEqual(args, ('POST', 'https://api.jilt.test/v1/shops/99/orders'))
        self.assertEqual(kwargs['headers']['Authorization'], 'Token sk_test_0123456789')
        self.assertEqual(kwargs['headers']['x-jilt-shop-domain'], 'tienda.test')
        self.assertEqual(json.loads(kwargs['data']), {'total_price': 1250})
        self.assertEqual(kwargs['timeout'], 5)

    def test_debug_log_masks_secret_key(self):
        self.session.request.return_value = _response(200, {'public_key': 'pk_1'})

        with self.assertLogs('apps.integrations.client', level='DEBUG') as logs:
            self.assertEqual(self.client.get_public_key(), 'pk_1')

        output = '\n'.join(logs.output)
        self.assertNotIn('sk_test_0123456789', output)
        self.assertIn('sk************6789', output)

    def test_empty_success_body_returns_none(self):
        self.session.request.return_value = _response(204, reason='No Content')
        self.assertIsNone(self.client.delete_order(5))

    def test_get_order_coerces_id_to_int(self):
        self.session.request.return_value = _response(200, {'id': 7})
        self.client.get_order('7')
        self.assertEqual(
            self.session.request.call_args[0][1], 'https://api.jilt.test/v1/orders/7'
        )

    def test_create_shop_adopts_returned_id(self):
        self.session.request.return_value = _response(201, {'id': 123})
        self.client.create_shop({'domain': 'tienda.test'})
        self.assertEqual(self.client.shop_id, 123)

    def test_find_shop_matches_domain(self):
        self.session.request.return_value = _response(
            200, [{'id': 1, 'domain': 'otra.test'}, {'id': 2, 'domain': 'tienda.test'}]
        )
        self.assertEqual(self.client.find_shop('tienda.test')['id'], 2)

    def test_error_message_from_body(self):
        self.session.request.return_value = _response(
            422, {'error': {'message': 'Domain has already been taken'}}, reason='Unprocessable'
        )
        with self.assertRaises(JiltAPIError) as ctx:
            self.client.create_shop({})
        self.assertEqual(ctx.exception.status, 422)
        self.assertEqual(ctx.exception.kind, ErrorKind.HTTP)
        self.assertEqual(ctx.exception.message, 'Domain has already been taken')

    def test_error_message_fallback(self):
        self.session.request.return_value = _response(500, reason='Server Error')
        with self.assertRaises(JiltAPIError) as ctx:
            self.client.update_order(1, {})
        self.assertEqual(ctx.exception.message, 'HTTP code 500 - Server Error')

    def test_gone_invokes_cancellation_callback(self):
        self.session.request.return_value = _response(410, reason='Gone')
        with self.assertRaises(JiltAPIError) as ctx:
            self.client.update_order(1, {})
        self.assertEqual(ctx.exception.kind, ErrorKind.ACCOUNT_CANCELLED)
        self.on_cancelled.assert_called_once_with()

    def test_network_failure_raises_transport_error(self):
        self.session.request.side_effect = requests.ConnectionError('dns')
        with self.assertRaises(JiltTransportError) as ctx:
            self.client.get_order(1)
        self.assertEqual(ctx.exception.kind, ErrorKind.TRANSPORT)
        self.assertIsNone(ctx.exception.status)
