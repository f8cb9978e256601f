"""
Fachada de la configuración de la integración con Jilt: vinculación de la
tienda, activación, rotación de la clave secreta y nivel de log.
"""
import logging
from urllib.parse import urlparse

import django
from django.conf import settings
from django.utils import timezone

from .client import JiltClient
from .exceptions import JiltAPIError
from .models import IntegrationSettings

logger = logging.getLogger(__name__)

# Logger raíz de la integración; su nivel lo controla log_threshold.
INTEGRATION_LOGGER = 'apps.integrations'

LOG_LEVELS = {
    'off': logging.CRITICAL + 1,
    'debug': logging.DEBUG,
    'info': logging.INFO,
    'warning': logging.WARNING,
    'error': logging.ERROR,
}

# Ajustes que la API de integración puede leer y modificar.
SAFE_SETTINGS = ('log_threshold',)


def get_shop_domain():
    """Dominio público de la tienda, tomado de SITE_URL."""
    return urlparse(settings.SITE_URL).hostname or ''


class JiltIntegration:

    def __init__(self, config=None):
        self._config = config
        self._client = None

    @property
    def config(self):
        if self._config is None:
            self._config = IntegrationSettings.get()
        return self._config

    @property
    def secret_key(self):
        return self.config.secret_key

    @property
    def shop_id(self):
        return self.config.shop_id

    # ------------------------------------------------------------------
    # Estado
    # ------------------------------------------------------------------

    def is_configured(self):
        return bool(self.secret_key)

    def is_linked(self):
        return bool(self.shop_id)

    def is_duplicate_site(self):
        """La tienda vinculada es otra copia del sitio (staging, clon)."""
        stored = self.config.shop_domain
        return bool(stored) and stored != get_shop_domain()

    def is_disabled(self):
        return self.config.is_disabled or self.is_duplicate_site()

    def is_active(self):
        return self.is_linked() and not self.is_disabled()

    def enable(self):
        self.config.is_disabled = False
        self.config.save(update_fields=['is_disabled', 'updated_at'])

    def disable(self):
        self.config.is_disabled = True
        self.config.save(update_fields=['is_disabled', 'updated_at'])

    def handle_account_cancellation(self):
        """Jilt respondió 410: la cuenta fue cancelada."""
        logger.error("Jilt account cancelled, disabling integration")
        self.disable()

    # ------------------------------------------------------------------
    # Ajustes
    # ------------------------------------------------------------------

    def get_settings(self):
        return {
            'secret_key': self.config.secret_key,
            'log_threshold': self.config.log_threshold,
        }

    def update_settings(self, new_settings):
        if 'secret_key' in new_settings and new_settings['secret_key'] != self.secret_key:
            self.set_secret_key(new_settings['secret_key'])
        if 'log_threshold' in new_settings:
            threshold = new_settings['log_threshold']
            if threshold not in dict(IntegrationSettings.LOG_THRESHOLD_CHOICES):
                raise ValueError(f"Invalid log threshold: {threshold}")
            self.config.log_threshold = threshold
            self.config.save(update_fields=['log_threshold', 'updated_at'])
            self.apply_log_threshold()

    def set_secret_key(self, secret_key):
        """Rota la clave secreta; la anterior queda en el stash."""
        self.stash_secret_key()
        self.config.secret_key = secret_key
        self.config.save(update_fields=['secret_key', 'updated_at'])
        self._client = None

    def stash_secret_key(self):
        stash = list(self.config.secret_key_stash or [])
        if self.secret_key and self.secret_key not in stash:
            stash.append(self.secret_key)
            self.config.secret_key_stash = stash
            self.config.save(update_fields=['secret_key_stash', 'updated_at'])

    def apply_log_threshold(self):
        threshold = self.config.log_threshold
        logging.getLogger(INTEGRATION_LOGGER).setLevel(LOG_LEVELS.get(threshold, logging.INFO))

    # ------------------------------------------------------------------
    # API remota
    # ------------------------------------------------------------------

    def get_client(self):
        """Cliente para la API; None si no hay clave secreta."""
        if not self.is_configured():
            return None
        if self._client is None or self._client.secret_key != self.secret_key:
            self._client = JiltClient(
                secret_key=self.secret_key,
                shop_domain=get_shop_domain(),
                shop_id=self.shop_id,
                on_account_cancelled=self.handle_account_cancellation,
            )
        return self._client

    def get_shop_data(self):
        return {
            'domain': get_shop_domain(),
            'admin_url': f"{settings.SITE_URL}/admin/",
            'profile_type': 'django',
            'django_version': django.get_version(),
            'integration_version': settings.JILT_VERSION,
            'name': getattr(settings, 'STORE_NAME', get_shop_domain()),
            'currency': settings.STORE_CURRENCY,
            'timezone': timezone.get_default_timezone_name(),
            'supports_ssl': settings.SITE_URL.startswith('https://'),
            'integration_enabled': self.is_active(),
        }

    def _set_linked_shop(self, shop_id):
        self.config.shop_id = shop_id
        self.config.shop_domain = get_shop_domain()
        self.config.save(update_fields=['shop_id', 'shop_domain', 'updated_at'])
        self.stash_secret_key()
        if self._client is not None:
            self._client.shop_id = shop_id
        return shop_id

    def link_shop(self, owner=None):
        """
        Crea la tienda en Jilt y guarda su id. Si el dominio ya existe, la
        busca por dominio y la actualiza. Devuelve el id o None.
        """
        if not self.is_configured() or self.is_duplicate_site():
            return None
        client = self.get_client()
        data = self.get_shop_data()
        if owner is not None:
            data['shop_owner'] = f"{owner.first_name} {owner.last_name}".strip()
            data['email'] = owner.email
        try:
            shop = client.create_shop(data)
            return self._set_linked_shop(shop['id'])
        except JiltAPIError as e:
            if 'Domain has already been taken' not in e.message:
                raise
            logger.error("Error communicating with Jilt: %s", e.message)

        shop = client.find_shop(data['domain'])
        if not shop:
            return None
        try:
            client.update_shop(data, shop_id=shop['id'])
        except JiltAPIError as e:
            logger.error("Error communicating with Jilt: %s", e.message)
        return self._set_linked_shop(shop['id'])

    def unlink_shop(self):
        if self.is_duplicate_site() or not self.is_linked():
            return
        try:
            self.get_client().delete_shop()
        except JiltAPIError as e:
            logger.error("Error communicating with Jilt: %s", e.message)
        self.clear_connection_data()

    def clear_connection_data(self):
        self.config.public_key = ''
        self.config.shop_id = None
        self.config.shop_domain = ''
        self.config.is_disabled = False
        self.config.save()
        self._client = None

    def update_shop(self):
        if not self.is_linked() or self.is_duplicate_site():
            return
        try:
            self.get_client().update_shop(self.get_shop_data())
        except JiltAPIError as e:
            logger.error("Error communicating with Jilt: %s", e.message)

    def get_public_key(self, refresh=False):
        public_key = self.config.public_key
        if (refresh or not public_key) and self.is_configured():
            public_key = self.get_client().get_public_key() or ''
            self.config.public_key = public_key
            self.config.save(update_fields=['public_key', 'updated_at'])
        return public_key
