"""
Sincroniza con Jilt los pedidos creados en el checkout y sus cambios de estado.
"""
import logging

from django.utils import timezone

from .base import SyncEngine, amount_to_int, build_line_item, get_client_details
from .events import EventKind
from .exceptions import JiltAPIError

logger = logging.getLogger(__name__)

PAID_STATUSES = ('publish', 'revoked', 'cancelled', 'subscription')
PENDING_STATUSES = ('pending', 'failed', 'abandoned', 'preapproved')


def get_financial_status(status, completed_at=None, total=None):
    """
    Estado financiero que Jilt espera para un estado local de pedido.

    >>> get_financial_status('refunded', total=0)
    'refunded'
    """
    if completed_at and status in PAID_STATUSES:
        return 'paid'
    if status == 'refunded':
        return 'partially_refunded' if total else 'refunded'
    if status in PENDING_STATUSES:
        return 'pending'
    return None


def translate_status(status):
    return 'complete' if status == 'publish' else status


def _timestamp(value):
    return int(value.timestamp()) if value else None


class CheckoutSyncEngine(SyncEngine):

    def register(self, bus):
        bus.subscribe(EventKind.PAYMENT_INSERTED, self.handle_payment_inserted)
        bus.subscribe(EventKind.PAYMENT_STATUS_CHANGED, self.handle_payment_status_changed)

    # ------------------------------------------------------------------
    # Pedido creado (pago pendiente)
    # ------------------------------------------------------------------

    def handle_payment_inserted(self, order, **payload):
        if not self.is_active():
            return
        order_id = self.state.get_order_id()
        if not order_id:
            # Compra sin carrito sincronizado (p. ej. compra directa)
            return

        order.jilt_order_id = order_id
        order.jilt_cart_token = self.state.get_cart_token() or ''
        if self.state.is_pending_recovery():
            order.jilt_recovered = True
            recovered_payment_id = self.state.get_recovered_payment_id()
            if recovered_payment_id:
                order.jilt_recovered_payment_id = recovered_payment_id
        order.save(update_fields=[
            'jilt_order_id', 'jilt_cart_token', 'jilt_recovered',
            'jilt_recovered_payment_id', 'updated_at',
        ])

        try:
            self.client.update_order(order_id, self.build_order_snapshot(order))
        except JiltAPIError as e:
            self.log_api_error(e)

        # Desde aquí manda la metadata del pedido.
        self.state.clear_correlation()
        self.state.clear_recovered_payment_id()

    def build_order_snapshot(self, order):
        line_items = [
            build_line_item(item.product, item.variant, item.quantity, item.price, item.cart_key)
            for item in order.items.select_related('product', 'variant')
            if item.product is not None
        ]
        return {
            'name': order.order_number,
            'order_id': order.pk,
            'status': translate_status(order.status),
            'financial_status': get_financial_status(order.status, order.completed_at, order.total),
            'total_price': amount_to_int(order.total),
            'subtotal_price': amount_to_int(order.subtotal),
            'total_tax': amount_to_int(order.tax_total),
            'total_discounts': amount_to_int(order.discount_total),
            'total_shipping': 0,
            'requires_shipping': False,
            'currency': order.currency,
            'checkout_url': self.get_checkout_recovery_url(),
            'line_items': line_items,
            'cart_token': order.jilt_cart_token,
            'client_details': get_client_details(self.request),
            'client_session': self.get_client_session(),
            'customer': {
                'customer_id': order.user_id,
                'email': order.email,
                'first_name': order.first_name,
                'last_name': order.last_name,
            },
        }

    # ------------------------------------------------------------------
    # Cambio de estado del pago
    # ------------------------------------------------------------------

    def handle_payment_status_changed(self, order, old_status=None, **payload):
        if not self.is_active() or not order.jilt_order_id:
            return

        if order.status == 'cancelled' and not order.jilt_cancelled_at:
            order.jilt_cancelled_at = timezone.now()
            order.save(update_fields=['jilt_cancelled_at', 'updated_at'])

        if order.is_complete and order.jilt_recovered:
            self.handle_completed_recovery(order)

        data = {
            'status': translate_status(order.status),
            'financial_status': get_financial_status(order.status, order.completed_at, order.total),
        }
        if order.completed_at:
            data['placed_at'] = _timestamp(order.completed_at)
        if order.jilt_cancelled_at:
            data['cancelled_at'] = _timestamp(order.jilt_cancelled_at)

        try:
            self.client.update_order(order.jilt_order_id, data)
        except JiltAPIError as e:
            self.log_api_error(e)

    def handle_completed_recovery(self, order):
        from apps.orders.models import Order

        order.add_note('Recuperado por Jilt.')
        if not order.jilt_recovered_payment_id:
            return
        original = Order.objects.filter(pk=order.jilt_recovered_payment_id).first()
        if original is None:
            logger.warning(
                "Recovered payment %s not found for order %s",
                order.jilt_recovered_payment_id, order.order_number,
            )
            return

        original.add_note(f'Recuperado por Jilt en el pedido {order.order_number}.')
        original.jilt_recovered_in_payment = order.pk
        # Sin metadata de Jilt, los cambios de estado del original no tocan el pedido remoto
        original.jilt_order_id = None
        original.jilt_cart_token = ''
        original.save(update_fields=[
            'jilt_recovered_in_payment', 'jilt_order_id', 'jilt_cart_token', 'updated_at',
        ])
        original.update_status('abandoned', request=self.request)
