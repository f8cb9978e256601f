"""
API de integración: peticiones servidor a servidor desde la app de Jilt.

GET/POST/DELETE/PUT /jilt/api/?resource=<recurso>
Autenticación: header  Authorization: Token <secret_key>
"""
import hmac
import logging
from decimal import Decimal, InvalidOperation

from django.utils.dateparse import parse_datetime

from apps.coupons.models import Coupon

from .exceptions import IntegrationAPIError
from .integration import SAFE_SETTINGS

logger = logging.getLogger(__name__)

REQUIRED_DISCOUNT_PARAMS = ('code', 'discount_id', 'name', 'type', 'amount')
VALID_DISCOUNT_TYPES = ('percent', 'flat')


def check_token(request, secret_key):
    """Valida Authorization: Token <secret_key> en tiempo constante."""
    if not secret_key:
        return False
    header = request.headers.get('Authorization', '')
    scheme, _, provided = header.partition(' ')
    if scheme != 'Token' or not provided:
        return False
    return hmac.compare_digest(provided.strip().encode('utf-8'), secret_key.encode('utf-8'))


def _iso8601(value):
    return value.strftime('%Y-%m-%dT%H:%M:%SZ') if value else None


class IntegrationAPI:
    """Enruta resource + verbo HTTP al manejador correspondiente."""
    ROUTES = {
        ('GET', 'integration'): 'get_integration',
        ('POST', 'integration'): 'post_integration',
        ('PUT', 'integration'): 'put_integration',
        ('DELETE', 'integration'): 'delete_integration',
        ('GET', 'shop'): 'get_shop',
        ('GET', 'discount'): 'get_discount',
        ('POST', 'discounts'): 'post_discounts',
    }

    def __init__(self, integration):
        self.integration = integration

    def handle(self, method, resource, query=None, data=None):
        route = self.ROUTES.get((method, resource))
        handler = getattr(self, route) if route else None
        if handler is None:
            raise IntegrationAPIError(f"No route for {method} {resource}", status=404)
        if method == 'GET':
            return handler(query or {})
        if method in ('POST', 'PUT'):
            return handler(data or {})
        return handler()

    # ------------------------------------------------------------------
    # Integración
    # ------------------------------------------------------------------

    def get_integration(self, query):
        return self._safe_settings(self.integration.get_settings())

    def post_integration(self, data):
        self.integration.enable()
        return self.get_integration({})

    def delete_integration(self):
        self.integration.disable()
        return self.get_integration({})

    def put_integration(self, data):
        safe = self._safe_settings(self.integration.get_settings())
        updates = {k: v for k, v in data.items() if k in safe}
        try:
            self.integration.update_settings(updates)
        except ValueError as e:
            raise IntegrationAPIError(str(e), status=422)
        return self._safe_settings(self.integration.get_settings())

    def get_shop(self, query):
        return self.integration.get_shop_data()

    # ------------------------------------------------------------------
    # Descuentos
    # ------------------------------------------------------------------

    def get_discount(self, query):
        if not query.get('id') and not query.get('code'):
            raise IntegrationAPIError('Need either an id or code to get a discount', status=422)

        if query.get('id'):
            identifier = query['id']
            lookup = {'pk': identifier} if str(identifier).isdigit() else None
        else:
            identifier = query['code']
            lookup = {'code__iexact': identifier}
        coupon = Coupon.objects.filter(**lookup).first() if lookup else None
        if coupon is None:
            raise IntegrationAPIError(f"No such discount '{identifier}'", status=404)

        return {
            'id': coupon.pk,
            'code': coupon.code,
            'uses': coupon.uses,
            'amount': str(coupon.amount),
            'type': coupon.discount_type,
            'min_price': str(coupon.min_price),
            'use_once': coupon.use_once,
            'max': coupon.max_uses,
            'status': coupon.status,
            'expiration': _iso8601(coupon.expiration),
        }

    def post_discounts(self, data):
        self._validate_post_discounts(data)
        try:
            amount = Decimal(str(data['amount']))
            min_price = Decimal(str(data.get('min_price') or '0'))
        except InvalidOperation:
            raise IntegrationAPIError('Invalid discount amount', status=422)
        max_uses = self._parse_max_uses(data.get('max'))

        coupon = Coupon.objects.create(
            code=data['code'],
            name=data['name'],
            discount_type=data['type'],
            amount=amount,
            min_price=min_price,
            use_once=bool(data.get('use_once')),
            max_uses=max_uses,
            status=data.get('status') or 'active',
            start=parse_datetime(data['start']) if data.get('start') else None,
            expiration=parse_datetime(data['expiration']) if data.get('expiration') else None,
            jilt_discount_id=str(data['discount_id']),
        )
        logger.info("Discount %s created by Jilt", coupon.code)
        return {'id': coupon.pk, 'code': coupon.code}

    def _validate_post_discounts(self, data):
        missing = [param for param in REQUIRED_DISCOUNT_PARAMS if not data.get(param)]
        if missing:
            raise IntegrationAPIError(f"Missing required params: {', '.join(missing)}", status=422)
        if data['type'] not in VALID_DISCOUNT_TYPES:
            raise IntegrationAPIError(
                'Invalid discount type - the type must be any of these: '
                + ', '.join(VALID_DISCOUNT_TYPES),
                status=422,
            )
        if Coupon.objects.filter(code__iexact=data['code']).exists():
            raise IntegrationAPIError(f"Discount code '{data['code']}' already exists", status=422)

    @staticmethod
    def _parse_max_uses(value):
        """Límite de usos del cupón; vacío o 0 significa sin límite."""
        if value in (None, ''):
            return None
        try:
            max_uses = int(str(value))
        except ValueError:
            raise IntegrationAPIError(f'Invalid discount max: {value!r}', status=422)
        if max_uses < 0:
            raise IntegrationAPIError(f'Invalid discount max: {value!r}', status=422)
        return max_uses or None

    @staticmethod
    def _safe_settings(settings_dict):
        return {k: v for k, v in settings_dict.items() if k in SAFE_SETTINGS}
