from django.apps import AppConfig


class IntegrationsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.integrations'
    verbose_name = 'Integraciones'

    def ready(self):
        from django.contrib.auth.signals import user_logged_in

        from .customer import on_user_logged_in

        user_logged_in.connect(on_user_logged_in, dispatch_uid='jilt_customer_login')
