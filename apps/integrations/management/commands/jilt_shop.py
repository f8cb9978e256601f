"""
Comando: jilt_shop
Administra la vinculación de la tienda con Jilt.

Uso:
    python manage.py jilt_shop status
    python manage.py jilt_shop link --secret-key sk_... [--owner admin@tienda.com]
    python manage.py jilt_shop update
    python manage.py jilt_shop unlink
    python manage.py jilt_shop refresh-public-key
    python manage.py jilt_shop enable | disable
"""
from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError

from apps.integrations.client import mask_credential
from apps.integrations.exceptions import JiltAPIError
from apps.integrations.integration import JiltIntegration


class Command(BaseCommand):
    help = 'Vincula, actualiza o desvincula la tienda en Jilt.'

    def add_arguments(self, parser):
        parser.add_argument(
            'action',
            choices=['status', 'link', 'update', 'unlink', 'refresh-public-key', 'enable', 'disable'],
        )
        parser.add_argument(
            '--secret-key',
            default='',
            help='Nueva clave secreta de la API (la anterior queda en el stash).',
        )
        parser.add_argument(
            '--owner',
            default='',
            help='Email del usuario que figura como dueño de la tienda al vincular.',
        )

    def handle(self, *args, **options):
        integration = JiltIntegration()
        action = options['action']

        if options['secret_key']:
            integration.set_secret_key(options['secret_key'])
            self.stdout.write(f"Clave secreta actualizada: {mask_credential(options['secret_key'])}")

        try:
            if action == 'link':
                self._link(integration, options['owner'])
            elif action == 'update':
                integration.update_shop()
                self.stdout.write(self.style.SUCCESS('✓ Datos de la tienda enviados a Jilt'))
            elif action == 'unlink':
                integration.unlink_shop()
                self.stdout.write(self.style.SUCCESS('✓ Tienda desvinculada'))
            elif action == 'refresh-public-key':
                public_key = integration.get_public_key(refresh=True)
                self.stdout.write(self.style.SUCCESS(f'✓ Clave pública: {public_key or "-"}'))
            elif action == 'enable':
                integration.enable()
                self.stdout.write(self.style.SUCCESS('✓ Integración activada'))
            elif action == 'disable':
                integration.disable()
                self.stdout.write(self.style.SUCCESS('✓ Integración desactivada'))
        except JiltAPIError as exc:
            raise CommandError(f'Error communicating with Jilt: {exc.message}')

        self._status(integration)

    def _link(self, integration, owner_email):
        if not integration.is_configured():
            raise CommandError('Falta la clave secreta (--secret-key).')
        owner = None
        if owner_email:
            owner = get_user_model().objects.filter(email__iexact=owner_email).first()
            if owner is None:
                raise CommandError(f'No existe un usuario con email {owner_email}.')
        shop_id = integration.link_shop(owner)
        if not shop_id:
            raise CommandError('No se pudo vincular la tienda (¿sitio duplicado o sin acceso?).')
        self.stdout.write(self.style.SUCCESS(f'✓ Tienda vinculada (id {shop_id})'))

    def _status(self, integration):
        config = integration.config
        self.stdout.write('')
        self.stdout.write(f'  Clave secreta : {mask_credential(config.secret_key) or "-"}')
        self.stdout.write(f'  Tienda        : {config.shop_id or "sin vincular"}')
        self.stdout.write(f'  Dominio       : {config.shop_domain or "-"}')
        self.stdout.write(f'  Desactivada   : {"sí" if integration.is_disabled() else "no"}')
        if integration.is_duplicate_site():
            self.stdout.write(self.style.WARNING('  ⚠  Sitio duplicado: el dominio no coincide con SITE_URL'))
        self.stdout.write(f'  Claves en stash: {len(config.secret_key_stash or [])}')
