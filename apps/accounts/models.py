import uuid

from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    """Usuario de la tienda. Los clientes pueden recuperar carritos desde Jilt."""
    ROLE_CHOICES = [
        ('client', 'Cliente'),
        ('staff', 'Staff'),
        ('admin', 'Administrador'),
    ]

    role = models.CharField(
        max_length=20, choices=ROLE_CHOICES, default='client',
        verbose_name='Tipo de usuario'
    )
    phone = models.CharField(max_length=20, blank=True)

    class Meta:
        verbose_name = 'Usuario'
        verbose_name_plural = 'Usuarios'

    def save(self, *args, **kwargs):
        # Username automático desde email (Django requiere username único).
        if not self.username and self.email:
            self.username = self.email.lower()[:150]
            if (
                not self.pk
                and User.objects.filter(username=self.username).exists()
            ):
                base = self.email.split('@')[0]
                self.username = f"{base}_{uuid.uuid4().hex[:8]}"[:150]
        if self.is_superuser and self.role == 'client':
            self.role = 'admin'
        if self.role == 'admin':
            self.is_staff = True
            self.is_superuser = True
        super().save(*args, **kwargs)

    @property
    def can_access_dashboard(self):
        return self.role in ('staff', 'admin') or self.is_staff

    @property
    def can_edit_others_orders(self):
        """
        Capacidad de edición elevada: staff, admin o permiso explícito
        sobre pedidos. Estas cuentas nunca inician sesión por un enlace
        de recuperación.
        """
        return (
            self.can_access_dashboard
            or self.is_superuser
            or self.has_perm('orders.change_order')
        )

    def get_full_name(self):
        return super().get_full_name() or self.email
