"""
Mantiene el pedido remoto de Jilt al día con el carrito de la sesión.
"""
import logging
from contextlib import contextmanager

from django.conf import settings

from .base import SyncEngine, amount_to_int, build_line_item, get_client_details
from .events import EventKind
from .exceptions import JiltAPIError

logger = logging.getLogger(__name__)


class CartSyncEngine(SyncEngine):

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._suppressed = False

    def register(self, bus):
        bus.subscribe(EventKind.CART_MUTATED, self.handle_cart_mutated)
        bus.subscribe(EventKind.CART_EMPTIED, self.handle_cart_emptied)

    @contextmanager
    def suppressed(self):
        """Desactiva la sincronización mientras se reconstruye un carrito."""
        previous = self._suppressed
        self._suppressed = True
        try:
            yield
        finally:
            self._suppressed = previous

    def should_skip(self):
        return (
            self._suppressed
            or not self.is_active()
            or self.bus.has_fired(EventKind.PAYMENT_INSERTED)
        )

    def _get_cart(self):
        from apps.cart.cart import Cart
        return Cart(self.request)

    # ------------------------------------------------------------------
    # Eventos
    # ------------------------------------------------------------------

    def handle_cart_mutated(self, **payload):
        if self.request is None or self.should_skip():
            return
        cart = self._get_cart()
        if cart.is_empty():
            return self.handle_cart_emptied()

        order_id = self.state.get_order_id()
        try:
            if order_id:
                self.client.update_order(order_id, self.build_cart_snapshot(cart))
            else:
                remote = self.client.create_order(self.build_cart_snapshot(cart))
                self.state.set_correlation(remote['cart_token'], remote['id'])
                # Ahora que hay correlación ya se puede firmar la URL de recuperación
                self.client.update_order(
                    remote['id'], {'checkout_url': self.get_checkout_recovery_url()}
                )
        except JiltAPIError as e:
            self.log_api_error(e)

    def handle_cart_emptied(self, **payload):
        if self.should_skip():
            return
        order_id = self.state.get_order_id()
        if not order_id:
            return
        # Primero se limpia la correlación local, luego se borra el remoto.
        self.state.clear_correlation()
        try:
            self.client.delete_order(order_id)
        except JiltAPIError as e:
            self.log_api_error(e)

    def merge_logged_in_cart(self):
        """Une la correlación de la sesión con la del usuario registrado."""
        if self.request is None or not self.state.get_cart():
            return
        user = getattr(self.request, 'user', None)
        if not (user and user.is_authenticated) or not self.integration.is_linked():
            return
        self.state.merge_user_mirror()

    # ------------------------------------------------------------------
    # Instantánea del carrito
    # ------------------------------------------------------------------

    def build_cart_snapshot(self, cart):
        data = {
            'total_price': amount_to_int(cart.get_total()),
            'subtotal_price': amount_to_int(cart.get_subtotal()),
            'total_tax': amount_to_int(cart.get_tax()),
            'total_discounts': amount_to_int(cart.get_discounted_amount()),
            'total_shipping': 0,
            'requires_shipping': False,
            'currency': settings.STORE_CURRENCY,
            'checkout_url': self.get_checkout_recovery_url(),
            'line_items': [
                build_line_item(
                    item['product'], item['variant'], item['quantity'],
                    item['price'], item['key'],
                )
                for item in cart
            ],
            'client_details': get_client_details(self.request),
            'client_session': self.get_client_session(),
        }
        # Jilt genera el cart_token si no se envía
        cart_token = self.state.get_cart_token()
        if cart_token:
            data['cart_token'] = cart_token
        data.update(self._customer_data())
        return data

    def _customer_data(self):
        user = getattr(self.request, 'user', None)
        if user is not None and user.is_authenticated:
            contact = {
                'email': user.email,
                'first_name': user.first_name,
                'last_name': user.last_name,
            }
            return {
                'customer': {**contact, 'customer_id': user.pk},
                'billing_address': contact,
            }

        customer = self.state.get_customer()
        if not customer:
            return {}
        contact = {
            'email': customer.get('email'),
            'first_name': customer.get('first_name'),
            'last_name': customer.get('last_name'),
        }
        data = {'customer': dict(contact), 'billing_address': contact}
        if customer.get('customer_id'):
            data['customer']['customer_id'] = customer['customer_id']
        return data
