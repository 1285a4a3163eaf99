import io
from decimal import Decimal
from unittest import mock

import openpyxl
from django.contrib.messages import get_messages
from django.test import SimpleTestCase
from django.urls import reverse

from consola.exceptions import ErrorBackend, ServicioNoDisponible
from .forms import BodegaForm, InventarioForm, ProductoForm, ProveedorForm
from .services import (
    STOCK_BAJO, STOCK_CRITICO, STOCK_NORMAL, contar_activos, enriquecer_inventario, estado_stock, filtrar,
)


def mensajes(response):
    return [str(m) for m in get_messages(response.wsgi_request)]


PRODUCTO = {
    'nombre': 'Laptop Lenovo',
    'sku': 'LAP-001',
    'descripcion': '',
    'precio': '850.50',
    'categoria': 'ELECTRÓNICA',
    'estado': 'ACTIVO',
}


class ProductoFormTestCase(SimpleTestCase):

    def test_datos_validos_se_convierten_al_formato_del_backend(self):
        form = ProductoForm(data=PRODUCTO)
        self.assertTrue(form.is_valid(), form.errors)
        data = form.a_api()
        self.assertEqual(data['precio'], 850.5)
        self.assertEqual(data['categoria'], 'ELECTRÓNICA')

    def test_sku_con_caracteres_invalidos(self):
        form = ProductoForm(data=dict(PRODUCTO, sku='LAP 001!'))
        self.assertFalse(form.is_valid())
        self.assertIn('Solo letras, números, guiones y guiones bajos', form.errors['sku'])

    def test_nombre_corto_y_precio_negativo(self):
        form = ProductoForm(data=dict(PRODUCTO, nombre='PC', precio='-1'))
        self.assertFalse(form.is_valid())
        self.assertIn('Mínimo 3 caracteres', form.errors['nombre'])
        self.assertIn('El precio no puede ser negativo', form.errors['precio'])

    def test_categoria_fuera_de_la_lista(self):
        form = ProductoForm(data=dict(PRODUCTO, categoria='JUGUETES'))
        self.assertFalse(form.is_valid())
        self.assertIn('categoria', form.errors)

    def test_inicial_desde_api(self):
        inicial = ProveedorForm.inicial_desde_api({'nombre': 'ACME', 'nitRuc': '1790012345001', 'email': None})
        self.assertEqual(inicial, {'nombre': 'ACME', 'nit_ruc': '1790012345001'})


class OtrosFormulariosTestCase(SimpleTestCase):

    def test_proveedor_telefono_solo_digitos(self):
        form = ProveedorForm(data={
            'nombre': 'ACME', 'nit_ruc': '1790012345001', 'contacto': 'Ana', 'email': 'ana@acme.ec',
            'telefono': '09-123', 'direccion': 'Quito', 'estado': 'ACTIVO',
        })
        self.assertFalse(form.is_valid())
        self.assertIn('Solo números (7-15 dígitos)', form.errors['telefono'])

    def test_proveedor_valido_usa_nit_ruc(self):
        form = ProveedorForm(data={
            'nombre': 'ACME', 'nit_ruc': '1790012345001', 'contacto': 'Ana', 'email': 'ana@acme.ec',
            'telefono': '0991234567', 'direccion': 'Quito', 'estado': 'ACTIVO',
        })
        self.assertTrue(form.is_valid(), form.errors)
        self.assertEqual(form.a_api()['nitRuc'], '1790012345001')

    def test_bodega_capacidad_positiva(self):
        form = BodegaForm(data={'nombre': 'Central', 'direccion': 'Quito', 'capacidad': '0'})
        self.assertFalse(form.is_valid())
        self.assertIn('La capacidad debe ser mayor a 0', form.errors['capacidad'])

    def test_inventario_con_opciones_del_backend(self):
        form = InventarioForm(
            data={'producto': '1', 'bodega': '2', 'cantidad': '15', 'cantidad_minima': '5'},
            productos=[{'id': 1, 'nombre': 'Laptop', 'sku': 'LAP-001'}],
            bodegas=[{'id': 2, 'nombre': 'Central'}],
        )
        self.assertTrue(form.is_valid(), form.errors)
        self.assertEqual(
            form.a_api(), {'productoId': 1, 'bodegaId': 2, 'cantidad': 15, 'cantidadMinima': 5}
        )

    def test_inventario_cantidad_negativa(self):
        form = InventarioForm(
            data={'producto': '1', 'bodega': '2', 'cantidad': '-3', 'cantidad_minima': '5'},
            productos=[{'id': 1, 'nombre': 'Laptop'}],
            bodegas=[{'id': 2, 'nombre': 'Central'}],
        )
        self.assertFalse(form.is_valid())
        self.assertIn('La cantidad no puede ser negativa', form.errors['cantidad'])


class ServiciosInventarioTestCase(SimpleTestCase):

    def test_estado_stock(self):
        self.assertEqual(estado_stock(10, 10), STOCK_CRITICO)
        self.assertEqual(estado_stock(0, 0), STOCK_CRITICO)
        self.assertEqual(estado_stock(20, 10), STOCK_BAJO)
        self.assertEqual(estado_stock(21, 10), STOCK_NORMAL)
        self.assertEqual(estado_stock(None, 5), STOCK_CRITICO)

    def test_filtrar(self):
        registros = [
            {'nombre': 'Laptop', 'sku': 'LAP-1', 'estado': 'ACTIVO'},
            {'nombre': 'Mouse', 'sku': 'MOU-1', 'estado': 'INACTIVO'},
        ]
        self.assertEqual(len(filtrar(registros, 'lap', campos=('nombre', 'sku'))), 1)
        self.assertEqual(len(filtrar(registros, 'mou-1', campos=('nombre', 'sku'))), 1)
        self.assertEqual(len(filtrar(registros, estado='TODOS')), 2)
        self.assertEqual(filtrar(registros, estado='INACTIVO')[0]['nombre'], 'Mouse')
        self.assertEqual(contar_activos(registros), 1)

    def test_enriquecer_inventario(self):
        registros = [
            {'id': 1, 'productoId': 1, 'bodegaId': 2, 'cantidad': 3, 'cantidadMinima': 10},
            {'id': 2, 'productoId': 99, 'bodegaId': 77, 'cantidad': 50, 'cantidadMinima': 10},
        ]
        enriquecidos = enriquecer_inventario(
            registros, [{'id': 1, 'nombre': 'Laptop', 'sku': 'LAP-1'}], [{'id': 2, 'nombre': 'Central'}]
        )
        self.assertEqual(enriquecidos[0]['productoNombre'], 'Laptop')
        self.assertEqual(enriquecidos[0]['bodegaNombre'], 'Central')
        self.assertEqual(enriquecidos[0]['estadoStock'], STOCK_CRITICO)
        self.assertEqual(enriquecidos[1]['productoNombre'], 'Producto 99')
        self.assertEqual(enriquecidos[1]['bodegaNombre'], 'Bodega 77')
        self.assertEqual(enriquecidos[1]['estadoStock'], STOCK_NORMAL)


@mock.patch('inventario.views.ProductoAPI')
class ProductoViewsTestCase(SimpleTestCase):

    def test_lista_filtra_por_nombre_y_categoria(self, ProductoAPI):
        ProductoAPI.return_value.listar.return_value = [
            {'id': 1, 'nombre': 'Laptop', 'sku': 'LAP-1', 'categoria': 'ELECTRÓNICA', 'estado': 'ACTIVO', 'precio': 800},
            {'id': 2, 'nombre': 'Camiseta', 'sku': 'ROP-1', 'categoria': 'ROPA', 'estado': 'ACTIVO', 'precio': 10},
        ]
        response = self.client.get(reverse('inventario:productos_lista'), {'q': 'lap', 'categoria': 'ELECTRÓNICA'})
        self.assertEqual(response.status_code, 200)
        self.assertEqual([p['id'] for p in response.context['productos']], [1])
        self.assertEqual(response.context['total_productos'], 2)
        self.assertEqual(response.context['productos_activos'], 2)

    def test_lista_con_backend_caido_muestra_tabla_vacia(self, ProductoAPI):
        ProductoAPI.return_value.listar.side_effect = ServicioNoDisponible('productos')
        response = self.client.get(reverse('inventario:productos_lista'))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.context['productos'], [])
        self.assertTrue(any('no está disponible' in m for m in mensajes(response)))

    def test_crear_producto(self, ProductoAPI):
        response = self.client.post(reverse('inventario:producto_crear'), PRODUCTO)
        self.assertRedirects(response, reverse('inventario:productos_lista'), fetch_redirect_response=False)
        data = ProductoAPI.return_value.crear.call_args[0][0]
        self.assertEqual(data['sku'], 'LAP-001')
        self.assertEqual(data['precio'], 850.5)
        self.assertIn('Producto creado exitosamente', mensajes(response))

    def test_crear_producto_invalido_no_llama_al_backend(self, ProductoAPI):
        response = self.client.post(reverse('inventario:producto_crear'), dict(PRODUCTO, sku=''))
        self.assertEqual(response.status_code, 200)
        ProductoAPI.return_value.crear.assert_not_called()
        self.assertContains(response, 'El SKU es obligatorio')

    def test_error_del_backend_vuelve_al_formulario(self, ProductoAPI):
        ProductoAPI.return_value.crear.side_effect = ErrorBackend(
            'El SKU ya existe', status=409, errores={'sku': 'SKU duplicado'}
        )
        response = self.client.post(reverse('inventario:producto_crear'), PRODUCTO)
        self.assertEqual(response.status_code, 200)
        self.assertIn('El SKU ya existe', mensajes(response))
        self.assertIn('SKU duplicado', response.context['form'].errors['sku'])

    def test_editar_producto_inexistente(self, ProductoAPI):
        ProductoAPI.return_value.obtener.side_effect = ErrorBackend('No encontrado', status=404)
        response = self.client.get(reverse('inventario:producto_editar', args=[50]))
        self.assertEqual(response.status_code, 404)

    def test_editar_producto_con_servicio_caido(self, ProductoAPI):
        ProductoAPI.return_value.obtener.side_effect = ServicioNoDisponible('productos', 'Connection refused')
        response = self.client.get(reverse('inventario:producto_editar', args=[5]))
        self.assertEqual(response.status_code, 503)

    def test_editar_producto(self, ProductoAPI):
        ProductoAPI.return_value.obtener.return_value = dict(PRODUCTO, id=5, precio=850.5)
        response = self.client.get(reverse('inventario:producto_editar', args=[5]))
        self.assertEqual(response.context['form'].initial['sku'], 'LAP-001')

        response = self.client.post(reverse('inventario:producto_editar', args=[5]), dict(PRODUCTO, precio='900'))
        self.assertEqual(response.status_code, 302)
        pk, data = ProductoAPI.return_value.actualizar.call_args[0]
        self.assertEqual(pk, 5)
        self.assertEqual(data['precio'], 900.0)

    def test_cambiar_estado(self, ProductoAPI):
        response = self.client.post(reverse('inventario:producto_estado', args=[5]), {'estado': 'INACTIVO'})
        self.assertEqual(response.status_code, 302)
        ProductoAPI.return_value.cambiar_estado.assert_called_once_with(5, 'INACTIVO')

    def test_cambiar_estado_invalido(self, ProductoAPI):
        response = self.client.post(reverse('inventario:producto_estado', args=[5]), {'estado': 'BORRADO'})
        self.assertEqual(response.status_code, 302)
        ProductoAPI.return_value.cambiar_estado.assert_not_called()
        self.assertIn('Estado no válido', mensajes(response))

    def test_cambiar_estado_solo_por_post(self, ProductoAPI):
        response = self.client.get(reverse('inventario:producto_estado', args=[5]))
        self.assertEqual(response.status_code, 405)

    def test_eliminar_pide_confirmacion(self, ProductoAPI):
        ProductoAPI.return_value.obtener.return_value = dict(PRODUCTO, id=5)
        response = self.client.get(reverse('inventario:producto_eliminar', args=[5]))
        self.assertContains(response, 'Laptop Lenovo')
        ProductoAPI.return_value.eliminar.assert_not_called()

        response = self.client.post(reverse('inventario:producto_eliminar', args=[5]))
        self.assertEqual(response.status_code, 302)
        ProductoAPI.return_value.eliminar.assert_called_once_with(5)

    def test_exportar_excel(self, ProductoAPI):
        ProductoAPI.return_value.listar.return_value = [dict(PRODUCTO, id=1, precio=850.5)]
        response = self.client.get(reverse('inventario:productos_excel'))
        self.assertEqual(
            response['Content-Type'], 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'
        )
        ws = openpyxl.load_workbook(io.BytesIO(response.content)).active
        self.assertEqual(ws['B1'].value, 'SKU')
        self.assertEqual(ws['B2'].value, 'LAP-001')

    def test_exportar_excel_con_error_del_backend(self, ProductoAPI):
        ProductoAPI.return_value.listar.side_effect = ErrorBackend('Error interno', status=500)
        response = self.client.get(reverse('inventario:productos_excel'))
        self.assertRedirects(response, reverse('inventario:productos_lista'), fetch_redirect_response=False)
        self.assertIn('Error al exportar productos: Error interno', mensajes(response))


class BodegaViewsTestCase(SimpleTestCase):

    @mock.patch('inventario.views.BodegaAPI')
    def test_bodega_nueva_siempre_activa(self, BodegaAPI):
        response = self.client.post(reverse('inventario:bodega_crear'), {
            'nombre': 'Central', 'direccion': 'Av. Amazonas', 'capacidad': '500', 'estado': 'INACTIVO',
        })
        self.assertEqual(response.status_code, 302)
        data = BodegaAPI.return_value.crear.call_args[0][0]
        self.assertEqual(data['estado'], 'ACTIVO')
        self.assertEqual(data['capacidad'], 500)

    @mock.patch('inventario.views.ProveedorAPI')
    def test_proveedores_filtrados_por_estado(self, ProveedorAPI):
        ProveedorAPI.return_value.listar.return_value = [
            {'id': 1, 'nombre': 'ACME', 'estado': 'ACTIVO'},
            {'id': 2, 'nombre': 'Globex', 'estado': 'INACTIVO'},
        ]
        response = self.client.get(reverse('inventario:proveedores_lista'), {'estado': 'INACTIVO'})
        self.assertEqual([p['nombre'] for p in response.context['proveedores']], ['Globex'])
        self.assertEqual(response.context['proveedores_activos'], 1)


@mock.patch('inventario.views.ProductoAPI')
@mock.patch('inventario.views.InventarioAPI')
class StockViewsTestCase(SimpleTestCase):

    def configurar(self, InventarioAPI, ProductoAPI):
        api = InventarioAPI.return_value
        api.listar.return_value = [
            {'id': 1, 'productoId': 1, 'bodegaId': 2, 'cantidad': 4, 'cantidadMinima': 10},
            {'id': 2, 'productoId': 1, 'bodegaId': 3, 'cantidad': 80, 'cantidadMinima': 10},
        ]
        api.bodegas.return_value = [{'id': 2, 'nombre': 'Central'}, {'id': 3, 'nombre': 'Norte'}]
        ProductoAPI.return_value.listar.return_value = [{'id': 1, 'nombre': 'Laptop', 'sku': 'LAP-1'}]
        return api

    def test_lista_con_seccion_de_stock_critico(self, InventarioAPI, ProductoAPI):
        self.configurar(InventarioAPI, ProductoAPI)
        response = self.client.get(reverse('inventario:stock_lista'))
        self.assertEqual(len(response.context['registros']), 2)
        self.assertEqual([r['id'] for r in response.context['stock_critico']], [1])
        self.assertEqual(response.context['registros'][1]['bodegaNombre'], 'Norte')

    def test_filtro_por_bodega(self, InventarioAPI, ProductoAPI):
        api = self.configurar(InventarioAPI, ProductoAPI)
        api.por_bodega.return_value = []
        self.client.get(reverse('inventario:stock_lista'), {'bodega': '3'})
        api.por_bodega.assert_called_once_with(3)
        api.listar.assert_not_called()

    def test_crear_registro(self, InventarioAPI, ProductoAPI):
        api = self.configurar(InventarioAPI, ProductoAPI)
        response = self.client.post(reverse('inventario:stock_crear'), {
            'producto': '1', 'bodega': '3', 'cantidad': '25', 'cantidad_minima': '10',
        })
        self.assertEqual(response.status_code, 302)
        api.crear.assert_called_once_with({'productoId': 1, 'bodegaId': 3, 'cantidad': 25, 'cantidadMinima': 10})

    def test_ajustar_stock(self, InventarioAPI, ProductoAPI):
        api = self.configurar(InventarioAPI, ProductoAPI)
        api.obtener.return_value = {'id': 1, 'productoId': 1, 'bodegaId': 2, 'cantidad': 4, 'cantidadMinima': 10}
        response = self.client.post(reverse('inventario:stock_ajustar', args=[1]), {'nueva_cantidad': '40'})
        self.assertRedirects(response, reverse('inventario:stock_lista'), fetch_redirect_response=False)
        api.actualizar_stock.assert_called_once_with(1, 2, 40)

    def test_ajustar_stock_con_error_del_backend(self, InventarioAPI, ProductoAPI):
        api = self.configurar(InventarioAPI, ProductoAPI)
        api.obtener.return_value = {'id': 1, 'productoId': 1, 'bodegaId': 2, 'cantidad': 4, 'cantidadMinima': 10}
        api.actualizar_stock.side_effect = ErrorBackend('Registro bloqueado', status=409)
        response = self.client.post(reverse('inventario:stock_ajustar', args=[1]), {'nueva_cantidad': '40'})
        self.assertEqual(response.status_code, 200)
        self.assertIn('Error al actualizar stock: Registro bloqueado', mensajes(response))

    def test_exportar_stock(self, InventarioAPI, ProductoAPI):
        self.configurar(InventarioAPI, ProductoAPI)
        response = self.client.get(reverse('inventario:stock_excel'))
        ws = openpyxl.load_workbook(io.BytesIO(response.content)).active
        self.assertEqual(ws['C2'].value, 'Laptop')
        self.assertEqual(ws['G2'].value, STOCK_CRITICO)
        self.assertEqual(ws['G3'].value, STOCK_NORMAL)

    def test_exportar_stock_con_error_del_backend(self, InventarioAPI, ProductoAPI):
        api = self.configurar(InventarioAPI, ProductoAPI)
        api.bodegas.side_effect = ErrorBackend('Error interno', status=500)
        response = self.client.get(reverse('inventario:stock_excel'))
        self.assertRedirects(response, reverse('inventario:stock_lista'), fetch_redirect_response=False)
        self.assertIn('Error al exportar el stock: Error interno', mensajes(response))


class FiltrosPlantillaTestCase(SimpleTestCase):

    def test_filtros(self):
        from .templatetags.inventario_filters import badge_estado, badge_stock, moneda, multiply
        self.assertEqual(badge_estado('CANCELADA'), 'danger')
        self.assertEqual(badge_stock('Bajo'), 'warning')
        self.assertEqual(multiply(3, '2.50'), Decimal('7.50'))
        self.assertEqual(moneda(10), '$10.00')
        self.assertEqual(moneda(None), '$0.00')
