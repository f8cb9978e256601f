from decimal import Decimal
from unittest import mock

from django.contrib.auth.models import AnonymousUser
from django.contrib.sessions.backends.db import SessionStore
from django.test import RequestFactory

from apps.integrations.client import JiltClient
from apps.integrations.models import IntegrationSettings
from apps.integrations.services import JiltServices
from apps.products.models import Product

SECRET_KEY = 'sk_test_0123456789abcdef'
SHOP_ID = 4321
REMOTE_ORDER_ID = 555
CART_TOKEN = 'b6b7c1de-token'


def link_integration(**overrides):
    """Integración vinculada al dominio de SITE_URL de los tests."""
    defaults = {
        'secret_key': SECRET_KEY,
        'shop_id': SHOP_ID,
        'shop_domain': 'tienda.test',
        'is_disabled': False,
    }
    defaults.update(overrides)
    config, _ = IntegrationSettings.objects.update_or_create(pk=1, defaults=defaults)
    return config


def mock_client():
    client = mock.Mock(spec=JiltClient)
    client.secret_key = SECRET_KEY
    client.shop_id = SHOP_ID
    client.create_order.return_value = {'id': REMOTE_ORDER_ID, 'cart_token': CART_TOKEN}
    client.update_order.return_value = {'id': REMOTE_ORDER_ID}
    client.delete_order.return_value = None
    return client


def make_product(name='Cera mate', price='12.50', **kwargs):
    return Product.objects.create(name=name, regular_price=Decimal(price), **kwargs)


def make_request(path='/', user=None, **meta):
    request = RequestFactory().get(path, **meta)
    request.session = SessionStore()
    request.user = user or AnonymousUser()
    return request


def attach_services(request, client=None):
    """Servicios de la petición con un cliente remoto simulado."""
    client = client or mock_client()
    services = JiltServices(request, client=client)
    request.jilt = services
    return services, client
