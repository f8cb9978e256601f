"""
Reconstrucción del carrito a partir de un enlace de recuperación de Jilt.

El enlace lleva token + hash firmados; si la firma es válida se trae el
pedido remoto y se restaura la sesión (carrito, cliente, cupones, pasarela)
para retomar el checkout.
"""
import hashlib
import hmac
import json
import logging
from urllib.parse import urlencode

from django.contrib.auth import login, logout
from django.urls import reverse

from apps.orders.gateways import is_gateway_active

from . import tokens
from .exceptions import SignatureError

logger = logging.getLogger(__name__)

AUTH_BACKEND = 'django.contrib.auth.backends.ModelBackend'
SAFE_REDIRECT = '/'


def _content_hash(data):
    canonical = json.dumps(data, sort_keys=True, separators=(',', ':'))
    return hashlib.md5(canonical.encode('utf-8')).hexdigest()


def _load_client_session(raw):
    """Devuelve client_session como dict, o None si no se puede leer."""
    if not raw:
        return {}
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError:
            return None
    return raw if isinstance(raw, dict) else None


def allow_recovery_login(user):
    """Solo clientes sin permisos de edición pueden entrar por un enlace."""
    return user.is_active and not user.can_edit_others_orders


class RecoveryEngine:

    def __init__(self, client, state, integration, cart_sync, request):
        self.client = client
        self.state = state
        self.integration = integration
        self.cart_sync = cart_sync
        self.request = request

    def recover(self, token, hash_value, discount=None):
        """
        Devuelve la URL a la que redirigir o None (el llamador usa el
        checkout). JiltAPIError se propaga al llamador.
        """
        with self.cart_sync.suppressed():
            return self._recover(token, hash_value, discount)

    def _recover(self, token, hash_value, discount):
        try:
            payload = tokens.decode(token, hash_value, self.integration.secret_key)
        except SignatureError as e:
            logger.warning("Recovery hash failed validation: %s", e)
            return SAFE_REDIRECT

        remote = self.client.get_order(payload.order_id)

        staged_payment_id = None
        order = self._find_order(payload.cart_token)
        if order is not None:
            if order.status in ('abandoned', 'pending'):
                # Pasarela externa: el pedido original queda enlazado al nuevo
                staged_payment_id = order.pk
                self.state.set_recovered_payment_id(order.pk)
                order.add_note('El cliente visitó la URL de recuperación de Jilt.')
            elif order.is_complete:
                return f"{reverse('orders:receipt')}?{urlencode({'payment_key': order.payment_key})}"

        owner = self.state.get_user_for_cart_token(payload.cart_token)
        if owner is not None:
            self.login_user(owner)
            if staged_payment_id:
                # logout() vacía la sesión
                self.state.set_recovered_payment_id(staged_payment_id)
            remote_token = str(remote.get('cart_token') or '')
            if not hmac.compare_digest(remote_token.encode('utf-8'), str(payload.cart_token).encode('utf-8')):
                logger.warning(
                    "Cart token failed validation: order %s token %s",
                    payload.order_id, payload.cart_token,
                )
                return SAFE_REDIRECT
        else:
            self.state.set_pending_recovery()

        options = self.recreate_cart_content(remote)

        if not self.state.get_cart():
            return None
        args = {}
        gateway = options.get('gateway')
        if gateway and is_gateway_active(gateway):
            args['payment-mode'] = gateway
        if discount:
            args['discount'] = discount
        url = reverse('orders:checkout')
        return f"{url}?{urlencode(args)}" if args else url

    @staticmethod
    def _find_order(cart_token):
        from apps.orders.models import Order
        return Order.objects.filter(jilt_cart_token=cart_token).order_by('pk').first()

    def login_user(self, user):
        """Inicia sesión como el dueño del carrito si la política lo permite."""
        current = getattr(self.request, 'user', None)
        if not (current and current.is_authenticated and current.pk == user.pk):
            if not allow_recovery_login(user):
                logger.info("Skipping recovery login for privileged user %s", user.pk)
                return
            if current and current.is_authenticated:
                logout(self.request)
            login(self.request, user, backend=AUTH_BACKEND)
            self.state.bind_user(user)
        self.state.mark_user_pending_recovery()

    def recreate_cart_content(self, remote):
        """Restaura la sesión desde client_session. Devuelve las opciones."""
        client_session = _load_client_session(remote.get('client_session'))
        if client_session is None:
            # Sesión guardada ilegible: se deja la sesión actual intacta
            logger.warning(
                "Could not recreate cart: unreadable client_session for order %s",
                remote.get('id'),
            )
            return {}

        cart = client_session.get('cart') or {}
        if not hmac.compare_digest(_content_hash(self.state.get_cart()), _content_hash(cart)):
            self.state.set_cart(cart)

        customer = {}
        session_customer = client_session.get('customer')
        # client_session.customer puede venir como false
        if isinstance(session_customer, dict):
            customer.update(session_customer)
        customer.update(remote.get('customer') or {})
        self.state.set_customer(customer)

        if client_session.get('discounts') is not None:
            self.state.set_discounts(client_session['discounts'])

        options = client_session.get('options') or {}
        for key, value in options.items():
            self.state.set_option(key, value)

        self.state.set_correlation(remote['cart_token'], remote['id'], mirror=False)
        self.state.set_pending_recovery()
        return options
