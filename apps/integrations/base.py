"""
Piezas comunes de los motores de sincronización con Jilt.
"""
import json
import logging
from decimal import ROUND_HALF_UP, Decimal

from django.conf import settings

from .tokens import build_recovery_url

logger = logging.getLogger(__name__)


def amount_to_int(amount):
    """Importe en unidades menores (centavos) redondeado al entero más cercano."""
    cents = Decimal(str(amount or 0)) * 100
    return int(cents.quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def absolute_url(path):
    if not path:
        return None
    if path.startswith(('http://', 'https://')):
        return path
    return f"{settings.SITE_URL}{path}"


def get_client_details(request):
    """IP, idioma y navegador del visitante, solo los que vengan informados."""
    details = {}
    if request is None:
        return details
    if request.META.get('REMOTE_ADDR'):
        details['browser_ip'] = request.META['REMOTE_ADDR']
    if request.META.get('HTTP_ACCEPT_LANGUAGE'):
        details['accept_language'] = request.META['HTTP_ACCEPT_LANGUAGE']
    if request.META.get('HTTP_USER_AGENT'):
        details['user_agent'] = request.META['HTTP_USER_AGENT']
    return details


def build_line_item(product, variant, quantity, unit_price, token):
    line_item = {
        'title': product.name,
        'product_id': product.pk,
        'quantity': quantity,
        'url': absolute_url(product.get_absolute_url()),
        'image_url': absolute_url(variant.get_image_url() if variant else product.get_image_url()),
        'price': amount_to_int(unit_price),
        'token': token,
    }
    sku = (variant.sku if variant and variant.sku else product.sku)
    if sku:
        line_item['sku'] = sku
    if variant is not None:
        line_item['variant_id'] = variant.pk
        line_item['variation'] = variant.attributes_display()
    return line_item


class SyncEngine:
    """Base de los motores: cliente remoto, estado local e integración inyectados."""

    def __init__(self, client, state, integration, bus, request=None):
        self.client = client
        self.state = state
        self.integration = integration
        self.bus = bus
        self.request = request

    def is_active(self):
        return self.client is not None and self.integration.is_active()

    def get_checkout_recovery_url(self):
        return build_recovery_url(
            settings.SITE_URL,
            self.state.get_order_id(),
            self.state.get_cart_token(),
            self.integration.secret_key,
        )

    def get_client_session(self):
        return json.dumps(self.state.get_client_session())

    def log_api_error(self, exc):
        logger.error("Error communicating with Jilt: %s", exc.message)
