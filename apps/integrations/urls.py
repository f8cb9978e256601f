from django.urls import path

from . import views

app_name = 'integrations'

urlpatterns = [
    path('recuperar/', views.recover_view, name='recover'),
    path('api/', views.integration_api_view, name='api'),
    path('cliente/', views.set_customer_view, name='customer'),
]
