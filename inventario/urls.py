from django.urls import path

from . import views

app_name = 'inventario'

urlpatterns = [
    # Productos
    path('productos/', views.productos_lista, name='productos_lista'),
    path('productos/nuevo/', views.producto_crear, name='producto_crear'),
    path('productos/<int:pk>/editar/', views.producto_editar, name='producto_editar'),
    path('productos/<int:pk>/eliminar/', views.producto_eliminar, name='producto_eliminar'),
    path('productos/<int:pk>/estado/', views.producto_cambiar_estado, name='producto_estado'),
    path('productos/exportar/excel/', views.exportar_productos_excel, name='productos_excel'),

    # Proveedores
    path('proveedores/', views.proveedores_lista, name='proveedores_lista'),
    path('proveedores/nuevo/', views.proveedor_crear, name='proveedor_crear'),
    path('proveedores/<int:pk>/editar/', views.proveedor_editar, name='proveedor_editar'),
    path('proveedores/<int:pk>/eliminar/', views.proveedor_eliminar, name='proveedor_eliminar'),
    path('proveedores/<int:pk>/estado/', views.proveedor_cambiar_estado, name='proveedor_estado'),

    # Bodegas
    path('bodegas/', views.bodegas_lista, name='bodegas_lista'),
    path('bodegas/nueva/', views.bodega_crear, name='bodega_crear'),
    path('bodegas/<int:pk>/editar/', views.bodega_editar, name='bodega_editar'),
    path('bodegas/<int:pk>/eliminar/', views.bodega_eliminar, name='bodega_eliminar'),
    path('bodegas/<int:pk>/estado/', views.bodega_cambiar_estado, name='bodega_estado'),

    # Stock
    path('stock/', views.stock_lista, name='stock_lista'),
    path('stock/nuevo/', views.stock_crear, name='stock_crear'),
    path('stock/<int:pk>/ajustar/', views.stock_ajustar, name='stock_ajustar'),
    path('stock/<int:pk>/eliminar/', views.stock_eliminar, name='stock_eliminar'),
    path('stock/exportar/excel/', views.exportar_stock_excel, name='stock_excel'),
]
