"""
Cliente de la API REST de Jilt.

Base: https://api.{JILT_HOSTNAME}/v1
Autenticación: header  Authorization: Token <secret_key>
"""
import json
import logging

import requests
from django.conf import settings

from .exceptions import ErrorKind, JiltAPIError, JiltTransportError

logger = logging.getLogger(__name__)

API_VERSION = 'v1'


def mask_credential(value):
    """
    Oculta una credencial para los logs: conserva los 2 primeros y los 4
    últimos caracteres. Valores de 7 caracteres o menos no son claves válidas
    y se dejan tal cual.
    """
    value = value or ''
    if len(value) <= 7:
        return value
    return value[:2] + '*' * (len(value) - 6) + value[-4:]


class JiltClient:
    """Operaciones sobre tiendas y pedidos remotos de Jilt."""

    def __init__(self, secret_key, shop_domain, shop_id=None, hostname=None,
                 timeout=None, on_account_cancelled=None, session=None):
        self.secret_key = secret_key
        self.shop_domain = shop_domain
        self.shop_id = shop_id
        self.hostname = hostname or settings.JILT_HOSTNAME
        self.timeout = timeout or settings.JILT_API_TIMEOUT
        self.on_account_cancelled = on_account_cancelled
        self.session = session or requests.Session()

    @property
    def base_url(self):
        return f"https://api.{self.hostname}/{API_VERSION}"

    # ------------------------------------------------------------------
    # Tiendas
    # ------------------------------------------------------------------

    def get_public_key(self):
        """Clave pública de la cuenta (GET /user)."""
        response = self._request('GET', '/user')
        return (response or {}).get('public_key')

    def find_shop(self, domain=None):
        """Busca la tienda por dominio; None si no existe."""
        domain = domain or self.shop_domain
        shops = self._request('GET', '/shops', params={'domain': domain}) or []
        for shop in shops:
            if shop.get('domain') == domain:
                return shop
        return None

    def create_shop(self, data):
        """Crea la tienda y adopta su id como tienda actual."""
        shop = self._request('POST', '/shops', data=data)
        self.shop_id = shop['id']
        return shop

    def update_shop(self, data, shop_id=None):
        return self._request('PUT', f'/shops/{shop_id or self.shop_id}', data=data)

    def delete_shop(self):
        return self._request('DELETE', f'/shops/{self.shop_id}')

    # ------------------------------------------------------------------
    # Pedidos
    # ------------------------------------------------------------------

    def get_order(self, order_id):
        return self._request('GET', f'/orders/{int(order_id)}')

    def create_order(self, data):
        return self._request('POST', f'/shops/{self.shop_id}/orders', data=data)

    def update_order(self, order_id, data):
        return self._request('PUT', f'/orders/{order_id}', data=data)

    def delete_order(self, order_id):
        return self._request('DELETE', f'/orders/{order_id}')

    # ------------------------------------------------------------------
    # Transporte
    # ------------------------------------------------------------------

    def _headers(self):
        return {
            'Authorization': f'Token {self.secret_key}',
            'x-jilt-shop-domain': self.shop_domain,
            'Accept': 'application/json',
            'Content-Type': 'application/json',
        }

    def _request(self, method, path, data=None, params=None):
        url = f"{self.base_url}{path}"
        headers = self._headers()
        body = json.dumps(data) if data is not None else None

        logger.debug(
            "Jilt request: %s %s headers=%s body=%s",
            method, url,
            {**headers, 'Authorization': f'Token {mask_credential(self.secret_key)}'},
            body,
        )
        try:
            response = self.session.request(
                method, url, headers=headers, data=body, params=params,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.debug("Jilt request failed: %s", e)
            raise JiltTransportError(str(e)) from e

        logger.debug(
            "Jilt response: %s %s status=%s body=%s",
            method, url, response.status_code, response.text,
        )
        return self._handle_response(response)

    def _handle_response(self, response):
        status = response.status_code
        if 200 <= status < 300:
            if not response.content:
                return None
            try:
                return response.json()
            except ValueError:
                raise JiltAPIError(
                    f"Invalid JSON response - HTTP code {status}", status=status
                )

        message = self._error_message(response)
        if status == 410:
            # La cuenta de Jilt fue cancelada: la integración se desactiva
            if self.on_account_cancelled:
                self.on_account_cancelled()
            raise JiltAPIError(message, status=status, kind=ErrorKind.ACCOUNT_CANCELLED)
        raise JiltAPIError(message, status=status)

    @staticmethod
    def _error_message(response):
        try:
            payload = response.json()
        except ValueError:
            payload = None
        if isinstance(payload, dict):
            error = payload.get('error')
            if isinstance(error, dict) and error.get('message'):
                return error['message']
        return f"HTTP code {response.status_code} - {response.reason}"
