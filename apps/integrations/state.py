"""
Acceso al estado local que comparte la integración con la tienda.

Dos almacenes clave/valor inyectados:
  - SessionStore: efímero, la sesión de Django del visitante.
  - UserStore: durable, una fila CartCorrelation por usuario registrado.

StateGateway es la única pieza que lee o escribe esos almacenes.
"""
import logging

from django.conf import settings

from apps.orders.gateways import get_chosen_gateway

from .models import CartCorrelation

logger = logging.getLogger(__name__)

SESSION_CART_TOKEN = 'jilt_cart_token'
SESSION_ORDER_ID = 'jilt_order_id'
SESSION_PENDING_RECOVERY = 'jilt_pending_recovery'
SESSION_RECOVERED_PAYMENT_ID = 'jilt_recovered_payment_id'
SESSION_CUSTOMER = 'customer'
SESSION_GATEWAY = 'gateway'


class SessionStore:
    """Almacén por sesión. Acepta cualquier objeto tipo dict."""

    def __init__(self, session):
        self.session = session if session is not None else {}

    def get(self, key, default=None):
        return self.session.get(key, default)

    def set(self, key, value):
        self.session[key] = value

    def delete(self, key):
        self.session.pop(key, None)


class UserStore:
    """Almacén durable por usuario respaldado por CartCorrelation."""
    DEFAULTS = {
        'cart_token': '',
        'jilt_order_id': None,
        'pending_recovery': False,
    }

    def __init__(self, user):
        self.user = user

    def _record(self):
        return CartCorrelation.objects.filter(user=self.user).first()

    def get(self, key, default=None):
        record = self._record()
        value = getattr(record, key) if record else None
        if value in (None, ''):
            return default
        return value

    def set(self, key, value):
        if key not in self.DEFAULTS:
            raise KeyError(key)
        record, _ = CartCorrelation.objects.get_or_create(user=self.user)
        setattr(record, key, value)
        record.save(update_fields=[key, 'updated_at'])

    def delete(self, key):
        if key not in self.DEFAULTS:
            raise KeyError(key)
        CartCorrelation.objects.filter(user=self.user).update(**{key: self.DEFAULTS[key]})


class StateGateway:

    def __init__(self, session_store, user_store=None):
        self.session = session_store
        self.user_store = user_store

    def bind_user(self, user):
        """Cambia el almacén durable tras un login/logout en la petición."""
        if user is not None and user.is_authenticated:
            self.user_store = UserStore(user)
        else:
            self.user_store = None

    # ------------------------------------------------------------------
    # Correlación carrito <-> pedido remoto
    # ------------------------------------------------------------------

    def get_cart_token(self):
        return self.session.get(SESSION_CART_TOKEN) or None

    def get_order_id(self):
        return self.session.get(SESSION_ORDER_ID) or None

    def set_correlation(self, cart_token, order_id, mirror=True):
        self.session.set(SESSION_CART_TOKEN, cart_token)
        self.session.set(SESSION_ORDER_ID, order_id)
        if mirror and self.user_store:
            self.user_store.set('cart_token', cart_token)
            self.user_store.set('jilt_order_id', order_id)

    def clear_correlation(self):
        for key in (SESSION_CART_TOKEN, SESSION_ORDER_ID, SESSION_PENDING_RECOVERY):
            self.session.delete(key)
        if self.user_store:
            for key in ('cart_token', 'jilt_order_id', 'pending_recovery'):
                self.user_store.delete(key)

    def is_pending_recovery(self):
        if self.session.get(SESSION_PENDING_RECOVERY):
            return True
        return bool(self.user_store and self.user_store.get('pending_recovery'))

    def set_pending_recovery(self):
        self.session.set(SESSION_PENDING_RECOVERY, True)

    def mark_user_pending_recovery(self):
        if self.user_store:
            self.user_store.set('pending_recovery', True)

    def merge_user_mirror(self):
        """
        Sincroniza la sesión con la copia durable del usuario registrado:
        copia durable -> sesión si la sesión no tiene correlación, y
        sesión -> copia durable si el usuario aún no tiene ninguna.
        """
        if not self.user_store:
            return
        mirror_token = self.user_store.get('cart_token')
        session_token = self.get_cart_token()
        if mirror_token and not session_token:
            self.set_correlation(
                mirror_token, self.user_store.get('jilt_order_id'), mirror=False
            )
        elif session_token and not mirror_token:
            self.user_store.set('cart_token', session_token)
            self.user_store.set('jilt_order_id', self.get_order_id())

    @staticmethod
    def get_user_for_cart_token(cart_token):
        if not cart_token:
            return None
        record = (
            CartCorrelation.objects.filter(cart_token=cart_token)
            .select_related('user')
            .first()
        )
        return record.user if record else None

    # ------------------------------------------------------------------
    # Pedido original de una pasarela externa (reconciliación)
    # ------------------------------------------------------------------

    def get_recovered_payment_id(self):
        return self.session.get(SESSION_RECOVERED_PAYMENT_ID) or None

    def set_recovered_payment_id(self, order_id):
        self.session.set(SESSION_RECOVERED_PAYMENT_ID, order_id)

    def clear_recovered_payment_id(self):
        self.session.delete(SESSION_RECOVERED_PAYMENT_ID)

    # ------------------------------------------------------------------
    # Contenido de la sesión de compra
    # ------------------------------------------------------------------

    def get_cart(self):
        return self.session.get(settings.CART_SESSION_ID) or {}

    def set_cart(self, cart):
        self.session.set(settings.CART_SESSION_ID, cart)

    def get_customer(self):
        return self.session.get(SESSION_CUSTOMER)

    def set_customer(self, customer):
        self.session.set(SESSION_CUSTOMER, customer)

    def get_discounts(self):
        return self.session.get(settings.CART_DISCOUNTS_SESSION_ID)

    def set_discounts(self, discounts):
        self.session.set(settings.CART_DISCOUNTS_SESSION_ID, discounts)

    def set_option(self, key, value):
        # Las claves internas de Django (auth, csrf) no se sobrescriben.
        if key.startswith('_'):
            logger.warning("Ignoring reserved session option %s", key)
            return
        self.session.set(key, value)

    def get_client_session(self):
        """Instantánea de la sesión que Jilt devuelve al recuperar el carrito."""
        return {
            'cart': self.get_cart(),
            'customer': self.get_customer(),
            'discounts': self.get_discounts(),
            'options': {
                SESSION_GATEWAY: get_chosen_gateway(self.session.session),
            },
        }
