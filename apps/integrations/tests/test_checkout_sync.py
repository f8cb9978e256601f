from decimal import Decimal

from django.test import SimpleTestCase, TestCase
from django.utils import timezone

from apps.integrations.checkout_sync import get_financial_status, translate_status
from apps.integrations.events import EventKind
from apps.integrations.exceptions import JiltAPIError
from apps.orders.models import Order, OrderItem

from .utils import (
    CART_TOKEN,
    REMOTE_ORDER_ID,
    attach_services,
    link_integration,
    make_product,
    make_request,
)


class FinancialStatusTests(SimpleTestCase):

    def test_completed_statuses_are_paid(self):
        now = timezone.now()
        for status in ('publish', 'revoked', 'cancelled', 'subscription'):
            self.assertEqual(get_financial_status(status, completed_at=now), 'paid')

    def test_refunds(self):
        self.assertEqual(get_financial_status('refunded', total=Decimal('0')), 'refunded')
        self.assertEqual(
            get_financial_status('refunded', total=Decimal('5.00')), 'partially_refunded'
        )

    def test_pending_statuses(self):
        for status in ('pending', 'failed', 'abandoned', 'preapproved'):
            self.assertEqual(get_financial_status(status), 'pending')

    def test_cancelled_without_completion_has_no_financial_status(self):
        self.assertIsNone(get_financial_status('cancelled'))

    def test_translate_status(self):
        self.assertEqual(translate_status('publish'), 'complete')
        self.assertEqual(translate_status('pending'), 'pending')


class CheckoutSyncTests(TestCase):

    def setUp(self):
        link_integration()
        self.request = make_request()
        self.services, self.client = attach_services(self.request)
        self.product = make_product('Cera mate', '12.50')

    def _create_order(self, **kwargs):
        order = Order.objects.create(
            email='ana@example.com', gateway='manual',
            subtotal=Decimal('12.50'), total=Decimal('12.50'), **kwargs
        )
        OrderItem.objects.create(
            order=order, product=self.product, cart_key=str(self.product.pk),
            product_name=self.product.name, quantity=1,
            price=Decimal('12.50'), total=Decimal('12.50'),
        )
        return order

    def test_payment_without_correlation_is_ignored(self):
        order = self._create_order()

        self.services.bus.publish(EventKind.PAYMENT_INSERTED, order=order)

        self.client.update_order.assert_not_called()
        order.refresh_from_db()
        self.assertIsNone(order.jilt_order_id)

    def test_payment_inserted_copies_correlation_and_clears_session(self):
        self.services.state.set_correlation(CART_TOKEN, REMOTE_ORDER_ID)
        order = self._create_order()

        self.services.bus.publish(EventKind.PAYMENT_INSERTED, order=order)

        order.refresh_from_db()
        self.assertEqual(order.jilt_order_id, REMOTE_ORDER_ID)
        self.assertEqual(order.jilt_cart_token, CART_TOKEN)
        self.assertFalse(order.jilt_recovered)

        order_id, data = self.client.update_order.call_args[0]
        self.assertEqual(order_id, REMOTE_ORDER_ID)
        self.assertEqual(data['status'], 'pending')
        self.assertEqual(data['financial_status'], 'pending')
        self.assertEqual(data['total_price'], 1250)
        self.assertEqual(data['order_id'], order.pk)
        self.assertEqual(len(data['line_items']), 1)
        self.assertIsNone(self.services.state.get_order_id())

    def test_api_error_still_clears_correlation(self):
        self.services.state.set_correlation(CART_TOKEN, REMOTE_ORDER_ID)
        self.client.update_order.side_effect = JiltAPIError('down', status=503)
        order = self._create_order()

        with self.assertLogs('apps.integrations', level='ERROR'):
            self.services.bus.publish(EventKind.PAYMENT_INSERTED, order=order)

        self.assertIsNone(self.services.state.get_cart_token())

    def test_status_change_reports_placed_at(self):
        order = self._create_order(jilt_order_id=REMOTE_ORDER_ID, jilt_cart_token=CART_TOKEN)

        order.update_status('publish', request=self.request)

        order_id, data = self.client.update_order.call_args[0]
        self.assertEqual(order_id, REMOTE_ORDER_ID)
        self.assertEqual(data['status'], 'complete')
        self.assertEqual(data['financial_status'], 'paid')
        self.assertEqual(data['placed_at'], int(order.completed_at.timestamp()))

    def test_cancellation_is_stamped_once(self):
        order = self._create_order(jilt_order_id=REMOTE_ORDER_ID)

        order.update_status('cancelled', request=self.request)
        order.refresh_from_db()
        stamped = order.jilt_cancelled_at

        self.assertIsNotNone(stamped)
        data = self.client.update_order.call_args[0][1]
        self.assertEqual(data['cancelled_at'], int(stamped.timestamp()))

    def test_status_change_without_remote_order_is_ignored(self):
        order = self._create_order()
        order.update_status('publish', request=self.request)
        self.client.update_order.assert_not_called()

    def test_unchanged_status_publishes_nothing(self):
        order = self._create_order(jilt_order_id=REMOTE_ORDER_ID)
        self.assertFalse(order.update_status('pending', request=self.request))
        self.assertFalse(self.services.bus.has_fired(EventKind.PAYMENT_STATUS_CHANGED))


class RecoveredOrderReconciliationTests(TestCase):
    """Pedido original pendiente (pasarela externa) recuperado en uno nuevo."""

    def setUp(self):
        link_integration()
        self.request = make_request()
        self.services, self.client = attach_services(self.request)
        self.product = make_product('Cera mate', '12.50')
        self.original = Order.objects.create(
            email='ana@example.com', gateway='paypal', status='pending',
            jilt_order_id=REMOTE_ORDER_ID, jilt_cart_token=CART_TOKEN,
        )

    def test_completed_recovery_retires_original(self):
        state = self.services.state
        state.set_correlation(CART_TOKEN, REMOTE_ORDER_ID, mirror=False)
        state.set_pending_recovery()
        state.set_recovered_payment_id(self.original.pk)

        order = Order.objects.create(
            email='ana@example.com', gateway='manual',
            subtotal=Decimal('12.50'), total=Decimal('12.50'),
        )
        self.services.bus.publish(EventKind.PAYMENT_INSERTED, order=order)

        order.refresh_from_db()
        self.assertTrue(order.jilt_recovered)
        self.assertEqual(order.jilt_recovered_payment_id, self.original.pk)
        self.assertIsNone(state.get_recovered_payment_id())

        order.update_status('publish', request=self.request)

        self.original.refresh_from_db()
        self.assertEqual(self.original.status, 'abandoned')
        self.assertEqual(self.original.jilt_recovered_in_payment, order.pk)
        self.assertIsNone(self.original.jilt_order_id)
        self.assertEqual(
            list(order.order_notes.values_list('content', flat=True)),
            ['Recuperado por Jilt.'],
        )
        self.assertIn(
            f'Recuperado por Jilt en el pedido {order.order_number}.',
            list(self.original.order_notes.values_list('content', flat=True)),
        )
        # Alta del pedido y cambio a completado; el original ya no se sincroniza
        self.assertEqual(self.client.update_order.call_count, 2)
        self.assertEqual(self.client.update_order.call_args[0][1]['status'], 'complete')
