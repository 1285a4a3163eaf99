from django.urls import path

from . import views

app_name = 'compras'

urlpatterns = [
    path('ordenes/', views.ordenes_lista, name='ordenes_lista'),
    path('ordenes/nueva/', views.orden_crear, name='orden_crear'),
    path('ordenes/<int:pk>/', views.orden_detalle, name='orden_detalle'),
    path('ordenes/<int:pk>/editar/', views.orden_editar, name='orden_editar'),
    path('ordenes/<int:pk>/estado/', views.orden_cambiar_estado, name='orden_estado'),
    path('ordenes/<int:pk>/eliminar/', views.orden_eliminar, name='orden_eliminar'),
    path('ordenes/<int:pk>/pdf/', views.orden_pdf, name='orden_pdf'),
]
