from django.urls import path

from . import views

app_name = 'orders'

urlpatterns = [
    path('checkout/', views.checkout_view, name='checkout'),
    path('recibo/', views.receipt_view, name='receipt'),
    path('notificacion/', views.payment_notification_view, name='notification'),
]
