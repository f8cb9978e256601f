from django.urls import path

from . import views

app_name = 'cart'

urlpatterns = [
    path('', views.cart_detail, name='detail'),
    path('agregar/<int:product_id>/', views.cart_add, name='add'),
    path('eliminar/<int:product_id>/', views.cart_remove, name='remove'),
    path('limpiar/', views.cart_clear, name='clear'),
    path(
        'actualizar-item/<str:item_key>/',
        views.cart_update_item,
        name='update_item'
    ),
    path('cupon/aplicar/', views.discount_apply, name='discount_apply'),
    path('cupon/quitar/', views.discount_remove, name='discount_remove'),
]
