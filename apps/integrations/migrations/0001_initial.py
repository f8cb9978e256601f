import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='IntegrationSettings',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('secret_key', models.CharField(blank=True, max_length=255, verbose_name='Clave secreta')),
                ('shop_id', models.PositiveBigIntegerField(blank=True, null=True, verbose_name='ID de tienda en Jilt')),
                ('shop_domain', models.CharField(blank=True, max_length=255, verbose_name='Dominio vinculado')),
                ('public_key', models.CharField(blank=True, max_length=255, verbose_name='Clave pública')),
                ('is_disabled', models.BooleanField(default=False, verbose_name='Desactivada')),
                ('log_threshold', models.CharField(choices=[('off', 'Desactivado'), ('debug', 'Debug'), ('info', 'Info'), ('warning', 'Warning'), ('error', 'Error')], default='info', max_length=10, verbose_name='Nivel de log')),
                ('secret_key_stash', models.JSONField(blank=True, default=list)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Configuración de Jilt',
                'verbose_name_plural': 'Configuración de Jilt',
            },
        ),
        migrations.CreateModel(
            name='CartCorrelation',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('cart_token', models.CharField(blank=True, db_index=True, max_length=255)),
                ('jilt_order_id', models.PositiveBigIntegerField(blank=True, null=True)),
                ('pending_recovery', models.BooleanField(default=False)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('user', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='jilt_cart', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Correlación de carrito',
                'verbose_name_plural': 'Correlaciones de carrito',
            },
        ),
    ]
