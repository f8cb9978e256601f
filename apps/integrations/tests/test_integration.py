import logging
from io import StringIO
from unittest import mock

from django.contrib.auth import get_user_model
from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase, override_settings
from django.urls import reverse

from apps.integrations.exceptions import ErrorKind, JiltAPIError
from apps.integrations.integration import INTEGRATION_LOGGER, JiltIntegration
from apps.integrations.models import IntegrationSettings

from .utils import SECRET_KEY, SHOP_ID, link_integration, mock_client


class JiltIntegrationTests(TestCase):

    def setUp(self):
        self.remote = mock_client()
        patcher = mock.patch(
            'apps.integrations.integration.JiltClient', return_value=self.remote
        )
        self.client_class = patcher.start()
        self.addCleanup(patcher.stop)

    def test_secret_key_is_seeded_from_settings(self):
        with override_settings(JILT_SECRET_KEY='sk_desde_env_1234'):
            self.assertEqual(IntegrationSettings.get().secret_key, 'sk_desde_env_1234')

    def test_unconfigured_integration_has_no_client(self):
        integration = JiltIntegration()
        self.assertFalse(integration.is_configured())
        self.assertIsNone(integration.get_client())
        self.assertFalse(integration.is_active())

    def test_duplicate_site_is_disabled(self):
        link_integration(shop_domain='staging.tienda.test')
        integration = JiltIntegration()
        self.assertTrue(integration.is_duplicate_site())
        self.assertTrue(integration.is_disabled())
        self.assertIsNone(integration.link_shop())

    def test_link_shop_creates_shop(self):
        IntegrationSettings.objects.create(pk=1, secret_key=SECRET_KEY)
        self.remote.create_shop.return_value = {'id': 99}
        owner = get_user_model().objects.create_user(
            username='dueno', email='dueno@example.com', first_name='Luis', last_name='Gil'
        )

        shop_id = JiltIntegration().link_shop(owner)

        self.assertEqual(shop_id, 99)
        data = self.remote.create_shop.call_args[0][0]
        self.assertEqual(data['domain'], 'tienda.test')
        self.assertEqual(data['shop_owner'], 'Luis Gil')
        config = IntegrationSettings.get()
        self.assertEqual(config.shop_id, 99)
        self.assertEqual(config.shop_domain, 'tienda.test')
        self.assertEqual(config.secret_key_stash, [SECRET_KEY])

    def test_link_shop_adopts_existing_domain(self):
        IntegrationSettings.objects.create(pk=1, secret_key=SECRET_KEY)
        self.remote.create_shop.side_effect = JiltAPIError(
            'Domain has already been taken', status=422
        )
        self.remote.find_shop.return_value = {'id': 77, 'domain': 'tienda.test'}

        with self.assertLogs('apps.integrations', level='ERROR'):
            shop_id = JiltIntegration().link_shop()

        self.assertEqual(shop_id, 77)
        self.remote.update_shop.assert_called_once()
        self.assertEqual(self.remote.update_shop.call_args[1], {'shop_id': 77})

    def test_link_shop_propagates_other_errors(self):
        IntegrationSettings.objects.create(pk=1, secret_key=SECRET_KEY)
        self.remote.create_shop.side_effect = JiltAPIError('Unauthorized', status=401)
        with self.assertRaises(JiltAPIError):
            JiltIntegration().link_shop()

    def test_secret_rotation_keeps_history(self):
        link_integration()
        integration = JiltIntegration()

        integration.set_secret_key('sk_nueva_clave_5678')
        integration.set_secret_key('sk_otra_clave_9012')

        config = IntegrationSettings.get()
        self.assertEqual(config.secret_key, 'sk_otra_clave_9012')
        self.assertEqual(config.secret_key_stash, [SECRET_KEY, 'sk_nueva_clave_5678'])

    def test_account_cancellation_disables(self):
        link_integration()
        integration = JiltIntegration()
        integration.get_client()

        on_cancelled = self.client_class.call_args[1]['on_account_cancelled']
        with self.assertLogs('apps.integrations', level='ERROR'):
            on_cancelled()

        self.assertTrue(IntegrationSettings.get().is_disabled)
        self.assertFalse(JiltIntegration().is_active())

    def test_unlink_clears_connection_data_even_on_error(self):
        link_integration(public_key='pk_1')
        self.remote.delete_shop.side_effect = JiltAPIError(
            'gone', status=410, kind=ErrorKind.ACCOUNT_CANCELLED
        )

        with self.assertLogs('apps.integrations', level='ERROR'):
            JiltIntegration().unlink_shop()

        config = IntegrationSettings.get()
        self.assertIsNone(config.shop_id)
        self.assertEqual(config.public_key, '')
        self.assertEqual(config.secret_key, SECRET_KEY)

    def test_public_key_is_cached(self):
        link_integration()
        self.remote.get_public_key.return_value = 'pk_live_1'
        integration = JiltIntegration()

        self.assertEqual(integration.get_public_key(), 'pk_live_1')
        self.assertEqual(integration.get_public_key(), 'pk_live_1')
        self.remote.get_public_key.assert_called_once_with()

    def test_log_threshold_controls_integration_logger(self):
        link_integration(log_threshold='off')
        integration = JiltIntegration()
        integration_logger = logging.getLogger(INTEGRATION_LOGGER)
        previous = integration_logger.level
        self.addCleanup(integration_logger.setLevel, previous)

        integration.apply_log_threshold()
        self.assertFalse(
            logging.getLogger('apps.integrations.client').isEnabledFor(logging.CRITICAL)
        )

        integration.update_settings({'log_threshold': 'debug'})
        self.assertTrue(
            logging.getLogger('apps.integrations.client').isEnabledFor(logging.DEBUG)
        )


class JiltShopCommandTests(TestCase):

    def setUp(self):
        self.remote = mock_client()
        patcher = mock.patch(
            'apps.integrations.integration.JiltClient', return_value=self.remote
        )
        patcher.start()
        self.addCleanup(patcher.stop)

    def test_link_with_secret_key(self):
        self.remote.create_shop.return_value = {'id': SHOP_ID}
        out = StringIO()

        call_command('jilt_shop', 'link', '--secret-key', SECRET_KEY, stdout=out)

        self.assertEqual(IntegrationSettings.get().shop_id, SHOP_ID)
        output = out.getvalue()
        self.assertIn(f'id {SHOP_ID}', output)
        self.assertNotIn(SECRET_KEY, output)

    def test_link_without_secret_key_fails(self):
        with self.assertRaises(CommandError):
            call_command('jilt_shop', 'link', stdout=StringIO())

    def test_api_errors_become_command_errors(self):
        link_integration()
        self.remote.get_public_key.side_effect = JiltAPIError('HTTP code 500 - Error', status=500)
        with self.assertRaises(CommandError):
            call_command('jilt_shop', 'refresh-public-key', stdout=StringIO())

    def test_disable(self):
        link_integration()
        call_command('jilt_shop', 'disable', stdout=StringIO())
        self.assertTrue(IntegrationSettings.get().is_disabled)


class SetCustomerViewTests(TestCase):

    def test_guest_details_are_stored_in_session(self):
        response = self.client.post(reverse('integrations:customer'), {
            'first_name': ' Ana ', 'last_name': '', 'email': 'ana@example.com',
        })

        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.client.session['customer'], {
            'first_name': 'Ana', 'last_name': None, 'email': 'ana@example.com',
        })

    def test_invalid_email_is_dropped(self):
        self.client.post(reverse('integrations:customer'), {'email': 'no-es-email'})
        self.assertIsNone(self.client.session['customer']['email'])

    def test_registered_user_cannot_change_customer(self):
        user = get_user_model().objects.create_user(
            username='ana', email='ana@example.com', password='secreto123'
        )
        self.client.force_login(user)

        response = self.client.post(reverse('integrations:customer'), {'email': 'otro@example.com'})

        self.assertEqual(response.status_code, 400)

    def test_login_stores_user_as_customer(self):
        user = get_user_model().objects.create_user(
            username='ana', email='ana@example.com', password='secreto123', first_name='Ana'
        )
        self.client.login(username='ana', password='secreto123')

        customer = self.client.session['customer']
        self.assertEqual(customer['email'], 'ana@example.com')
        self.assertEqual(customer['customer_id'], user.pk)
