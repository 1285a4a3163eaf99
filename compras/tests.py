from datetime import date, datetime
from decimal import Decimal
from unittest import mock

from django.contrib.messages import get_messages
from django.test import SimpleTestCase, override_settings
from django.urls import reverse
from django.utils import timezone

from consola.exceptions import ErrorBackend
from .estados import (
    CANCELADA, COMPLETADA, EN_PROCESO, ESTADOS_FINALES, PENDIENTE, TRANSICIONES, TransicionNoPermitida,
    puede_cambiar, transiciones_permitidas, validar_transicion,
)
from .forms import DetalleOrdenFormSet, OrdenCompraForm, fecha_a_api, fecha_desde_api, orden_a_api
from .services import calcular_totales, cambiar_estado_orden, generar_numero_factura, reducir_stock_orden


def mensajes(response):
    return [str(m) for m in get_messages(response.wsgi_request)]


PROVEEDORES = [{'id': 7, 'nombre': 'ACME', 'estado': 'ACTIVO'}]
PRODUCTOS = [
    {'id': 1, 'nombre': 'Laptop', 'sku': 'LAP-1', 'estado': 'ACTIVO'},
    {'id': 2, 'nombre': 'Mouse', 'sku': 'MOU-1', 'estado': 'ACTIVO'},
    {'id': 3, 'nombre': 'Monitor viejo', 'sku': 'MON-0', 'estado': 'INACTIVO'},
]


def datos_orden(estado=PENDIENTE, **extra):
    data = {
        'proveedor': '7',
        'numero_factura': 'FAC-001',
        'fecha_emision': '2024-03-05',
        'fecha_entrega': '',
        'estado': estado,
        'observaciones': '',
        'detalles-TOTAL_FORMS': '2',
        'detalles-INITIAL_FORMS': '0',
        'detalles-MIN_NUM_FORMS': '1',
        'detalles-MAX_NUM_FORMS': '1000',
        'detalles-0-producto': '1',
        'detalles-0-cantidad': '2',
        'detalles-0-precio_unitario': '10.50',
        'detalles-0-descuento': '0',
        'detalles-1-producto': '2',
        'detalles-1-cantidad': '1',
        'detalles-1-precio_unitario': '5',
        'detalles-1-descuento': '',
    }
    data.update(extra)
    return data


def orden(estado, **extra):
    data = {
        'id': 10,
        'proveedorId': 7,
        'numeroFactura': 'FAC-001',
        'fechaEmision': '2024-03-05T00:00:00',
        'estado': estado,
        'subtotal': 26.0,
        'iva': 3.12,
        'total': 29.12,
        'detalles': [
            {'productoId': 1, 'nombreProducto': 'Laptop', 'cantidad': 2, 'precioUnitario': 10.5, 'descuento': 0},
            {'productoId': 2, 'nombreProducto': 'Mouse', 'cantidad': 1, 'precioUnitario': 5, 'descuento': 0},
        ],
    }
    data.update(extra)
    return data


class EstadosTestCase(SimpleTestCase):

    def test_tabla_de_transiciones(self):
        self.assertEqual(TRANSICIONES[PENDIENTE], {EN_PROCESO, CANCELADA})
        self.assertEqual(TRANSICIONES[EN_PROCESO], {COMPLETADA, CANCELADA})
        self.assertEqual(ESTADOS_FINALES, {COMPLETADA, CANCELADA})

    def test_transiciones_permitidas_en_orden(self):
        self.assertEqual(transiciones_permitidas(PENDIENTE), [EN_PROCESO, CANCELADA])
        self.assertEqual(transiciones_permitidas(EN_PROCESO), [COMPLETADA, CANCELADA])
        self.assertEqual(transiciones_permitidas(COMPLETADA), [])
        self.assertEqual(transiciones_permitidas('DESCONOCIDO'), [])

    def test_puede_cambiar(self):
        self.assertTrue(puede_cambiar(PENDIENTE, EN_PROCESO))
        self.assertTrue(puede_cambiar(EN_PROCESO, CANCELADA))
        self.assertFalse(puede_cambiar(PENDIENTE, COMPLETADA))
        self.assertFalse(puede_cambiar(EN_PROCESO, PENDIENTE))
        self.assertFalse(puede_cambiar(CANCELADA, PENDIENTE))
        self.assertFalse(puede_cambiar(PENDIENTE, PENDIENTE))

    def test_pendiente_a_completada_indica_el_paso_intermedio(self):
        with self.assertRaises(TransicionNoPermitida) as ctx:
            validar_transicion(PENDIENTE, COMPLETADA)
        self.assertEqual(ctx.exception.origen, PENDIENTE)
        self.assertEqual(ctx.exception.destino, COMPLETADA)
        self.assertEqual(
            ctx.exception.mensaje,
            'No se permite cambiar el estado de PENDIENTE a COMPLETADA: primero debe pasar a EN_PROCESO',
        )

    def test_estado_final(self):
        with self.assertRaises(TransicionNoPermitida) as ctx:
            validar_transicion(COMPLETADA, CANCELADA)
        self.assertIn('COMPLETADA es un estado final', str(ctx.exception))

    def test_retroceso_desde_en_proceso(self):
        with self.assertRaises(TransicionNoPermitida) as ctx:
            validar_transicion(EN_PROCESO, PENDIENTE)
        self.assertIn('desde EN_PROCESO solo se puede cambiar a COMPLETADA o CANCELADA', ctx.exception.mensaje)

    def test_estado_desconocido(self):
        with self.assertRaises(TransicionNoPermitida) as ctx:
            validar_transicion('ARCHIVADA', EN_PROCESO)
        self.assertEqual(ctx.exception.mensaje, 'No se permite cambiar el estado de ARCHIVADA a EN_PROCESO')


class CalculosTestCase(SimpleTestCase):

    def test_numero_factura(self):
        ahora = timezone.make_aware(datetime(2024, 3, 5, 14, 7, 9, 123456))
        self.assertEqual(generar_numero_factura(ahora), 'FAC-20240305-140709123')

    def test_numero_factura_sin_fecha(self):
        self.assertRegex(generar_numero_factura(), r'^FAC-\d{8}-\d{9}$')

    def test_numero_factura_con_fecha_sin_zona(self):
        self.assertEqual(generar_numero_factura(datetime(2024, 3, 5, 14, 7, 9, 123456)), 'FAC-20240305-140709123')

    @override_settings(IVA_TASA='0.12')
    def test_totales_con_iva(self):
        detalles, subtotal, iva, total = calcular_totales([
            {'cantidad': 2, 'precio_unitario': Decimal('10.50')},
            {'cantidad': 1, 'precio_unitario': '5'},
        ])
        self.assertEqual([d['subtotal'] for d in detalles], [Decimal('21.00'), Decimal('5.00')])
        self.assertEqual(subtotal, Decimal('26.00'))
        self.assertEqual(iva, Decimal('3.12'))
        self.assertEqual(total, Decimal('29.12'))

    def test_redondeo_a_centavos(self):
        _, subtotal, iva, total = calcular_totales([{'cantidad': 3, 'precio_unitario': '0.335'}], tasa_iva='0.12')
        self.assertEqual(subtotal, Decimal('1.01'))
        self.assertEqual(iva, Decimal('0.12'))
        self.assertEqual(total, Decimal('1.13'))

    def test_orden_sin_detalles(self):
        self.assertEqual(calcular_totales([], tasa_iva='0.12'), ([], Decimal('0.00'), Decimal('0.00'), Decimal('0.00')))


class ReduccionStockTestCase(SimpleTestCase):

    def setUp(self):
        self.inventario_api = mock.Mock()
        self.inventario_api.bodegas.return_value = [{'id': 3, 'nombre': 'Central'}, {'id': 4, 'nombre': 'Norte'}]
        self.ordenes_api = mock.Mock()

    def test_usa_la_primera_bodega(self):
        resultado = reducir_stock_orden(orden(EN_PROCESO), self.inventario_api)
        self.assertEqual(
            self.inventario_api.reducir_stock.call_args_list, [mock.call(1, 3, 2), mock.call(2, 3, 1)]
        )
        self.assertEqual(resultado.exitos, 2)
        self.assertFalse(resultado.hubo_errores)
        self.assertEqual(resultado.bodega['nombre'], 'Central')

    def test_errores_por_linea_no_detienen_el_resto(self):
        self.inventario_api.reducir_stock.side_effect = [ErrorBackend('Stock insuficiente', status=400), None]
        resultado = reducir_stock_orden(orden(EN_PROCESO), self.inventario_api)
        self.assertEqual(self.inventario_api.reducir_stock.call_count, 2)
        self.assertEqual(resultado.exitos, 1)
        self.assertEqual(resultado.errores, ['Producto 1: Stock insuficiente'])

    def test_sin_detalles_no_consulta_bodegas(self):
        resultado = reducir_stock_orden(orden(EN_PROCESO, detalles=[]), self.inventario_api)
        self.inventario_api.bodegas.assert_not_called()
        self.assertEqual(resultado.exitos, 0)
        self.assertFalse(resultado.hubo_errores)

    def test_sin_bodegas(self):
        self.inventario_api.bodegas.return_value = []
        with self.assertRaisesMessage(ErrorBackend, 'No hay bodegas disponibles para reducir stock'):
            reducir_stock_orden(orden(EN_PROCESO), self.inventario_api)

    def test_bodega_sin_id(self):
        self.inventario_api.bodegas.return_value = [{'nombre': 'Sin id'}, {'id': 4}]
        with self.assertRaisesMessage(ErrorBackend, 'La bodega por defecto no tiene un ID válido'):
            reducir_stock_orden(orden(EN_PROCESO), self.inventario_api)
        self.inventario_api.reducir_stock.assert_not_called()

    def test_transicion_invalida_no_toca_el_backend(self):
        with self.assertRaises(TransicionNoPermitida):
            cambiar_estado_orden(orden(PENDIENTE), COMPLETADA, self.ordenes_api, self.inventario_api)
        self.ordenes_api.cambiar_estado.assert_not_called()
        self.inventario_api.reducir_stock.assert_not_called()

    def test_cambio_sin_efecto_sobre_stock(self):
        resultado = cambiar_estado_orden(orden(PENDIENTE), EN_PROCESO, self.ordenes_api, self.inventario_api)
        self.assertIsNone(resultado)
        self.ordenes_api.cambiar_estado.assert_called_once_with(10, EN_PROCESO)
        self.inventario_api.bodegas.assert_not_called()

    def test_completar_reduce_stock(self):
        resultado = cambiar_estado_orden(orden(EN_PROCESO), COMPLETADA, self.ordenes_api, self.inventario_api)
        self.ordenes_api.cambiar_estado.assert_called_once_with(10, COMPLETADA)
        self.assertEqual(resultado.exitos, 2)

    def test_completar_sin_bodegas_informa_el_error(self):
        self.inventario_api.bodegas.return_value = []
        resultado = cambiar_estado_orden(orden(EN_PROCESO), COMPLETADA, self.ordenes_api, self.inventario_api)
        self.ordenes_api.cambiar_estado.assert_called_once_with(10, COMPLETADA)
        self.assertEqual(resultado.errores, ['No hay bodegas disponibles para reducir stock'])


@override_settings(IVA_TASA='0.12')
class OrdenFormTestCase(SimpleTestCase):

    def formularios(self, data):
        form = OrdenCompraForm(data, proveedores=PROVEEDORES)
        formset = DetalleOrdenFormSet(data, prefix='detalles', form_kwargs={'productos': PRODUCTOS})
        return form, formset

    def test_orden_a_api(self):
        form, formset = self.formularios(datos_orden(estado=EN_PROCESO))
        self.assertTrue(form.is_valid(), form.errors)
        self.assertTrue(formset.is_valid(), formset.errors)

        data = orden_a_api(form, formset, estado=PENDIENTE)

        self.assertEqual(data['proveedorId'], 7)
        self.assertEqual(data['estado'], PENDIENTE)
        self.assertEqual(data['fechaEmision'], '2024-03-05T00:00:00')
        self.assertIsNone(data['fechaEntrega'])
        self.assertEqual((data['subtotal'], data['iva'], data['total']), (26.0, 3.12, 29.12))
        self.assertEqual(data['detalles'][0], {
            'productoId': 1, 'nombreProducto': 'Laptop', 'cantidad': 2,
            'precioUnitario': 10.5, 'descuento': 0.0, 'subtotal': 21.0,
        })

    def test_solo_productos_activos(self):
        form, formset = self.formularios(datos_orden(**{'detalles-1-producto': '3'}))
        self.assertFalse(formset.is_valid())
        self.assertIn('producto', formset.forms[1].errors)

    def test_linea_guardada_conserva_producto_inactivo(self):
        data = datos_orden(**{'detalles-TOTAL_FORMS': '1', 'detalles-0-producto': '3'})
        existentes = [{'productoId': 3, 'nombreProducto': 'Monitor viejo', 'cantidad': 2}]
        formset = DetalleOrdenFormSet(
            data, prefix='detalles', form_kwargs={'productos': PRODUCTOS, 'existentes': existentes}
        )
        self.assertTrue(formset.is_valid(), formset.errors)
        self.assertEqual(formset.detalles()[0]['nombre_producto'], 'Monitor viejo')
        opciones = [valor for valor, _ in formset.forms[0].fields['producto'].choices]
        self.assertEqual(opciones, ['', 1, 2, 3])
        nuevas = [valor for valor, _ in formset.empty_form.fields['producto'].choices]
        self.assertEqual(nuevas, ['', 1, 2])

    def test_linea_guardada_sin_catalogo_de_productos(self):
        data = datos_orden(**{'detalles-TOTAL_FORMS': '1', 'detalles-0-producto': '9'})
        existentes = [{'productoId': 9, 'nombreProducto': 'Teclado', 'cantidad': 1}]
        formset = DetalleOrdenFormSet(data, prefix='detalles', form_kwargs={'productos': [], 'existentes': existentes})
        self.assertTrue(formset.is_valid(), formset.errors)
        self.assertEqual(formset.detalles()[0]['nombre_producto'], 'Teclado')

    def test_cantidad_minima_uno(self):
        form, formset = self.formularios(datos_orden(**{'detalles-0-cantidad': '0'}))
        self.assertFalse(formset.is_valid())
        self.assertIn('La cantidad debe ser al menos 1', formset.forms[0].errors['cantidad'])

    def test_requiere_al_menos_un_detalle(self):
        data = datos_orden(**{'detalles-TOTAL_FORMS': '1', 'detalles-0-DELETE': 'on'})
        form, formset = self.formularios(data)
        self.assertFalse(formset.is_valid())
        self.assertIn('Debes agregar al menos un detalle a la orden', formset.non_form_errors())

    def test_fecha_entrega_anterior_a_emision(self):
        form, _ = self.formularios(datos_orden(fecha_entrega='2024-03-01'))
        self.assertFalse(form.is_valid())
        self.assertIn('fecha_entrega', form.errors)

    def test_fechas_del_backend(self):
        self.assertEqual(fecha_desde_api('2024-03-05T10:20:30'), date(2024, 3, 5))
        self.assertIsNone(fecha_desde_api(None))
        self.assertEqual(fecha_a_api(date(2024, 3, 5)), '2024-03-05T00:00:00')

    def test_inicial_desde_api(self):
        inicial = OrdenCompraForm.inicial_desde_api(orden(EN_PROCESO))
        self.assertEqual(inicial['proveedor'], 7)
        self.assertEqual(inicial['fecha_emision'], date(2024, 3, 5))
        self.assertIsNone(inicial['fecha_entrega'])


@override_settings(IVA_TASA='0.12')
@mock.patch('compras.views.InventarioAPI')
@mock.patch('compras.views.ProductoAPI')
@mock.patch('compras.views.ProveedorAPI')
@mock.patch('compras.views.OrdenCompraAPI')
class OrdenViewsTestCase(SimpleTestCase):

    def configurar(self, OrdenCompraAPI, ProveedorAPI, ProductoAPI, InventarioAPI, orden_actual=None):
        ProveedorAPI.return_value.listar.return_value = PROVEEDORES
        ProveedorAPI.return_value.obtener.return_value = PROVEEDORES[0]
        ProductoAPI.return_value.listar.return_value = PRODUCTOS
        InventarioAPI.return_value.bodegas.return_value = [{'id': 3, 'nombre': 'Central'}]
        OrdenCompraAPI.return_value.existe_numero_factura.return_value = False
        if orden_actual:
            OrdenCompraAPI.return_value.obtener.return_value = orden_actual
        return OrdenCompraAPI.return_value, InventarioAPI.return_value

    def test_lista_con_nombre_de_proveedor_y_filtro(self, OrdenCompraAPI, ProveedorAPI, ProductoAPI, InventarioAPI):
        ordenes_api, _ = self.configurar(OrdenCompraAPI, ProveedorAPI, ProductoAPI, InventarioAPI)
        ordenes_api.listar.return_value = [
            orden(PENDIENTE), orden(COMPLETADA, id=11), orden(PENDIENTE, id=None),
        ]
        response = self.client.get(reverse('compras:ordenes_lista'), {'estado': PENDIENTE, 'q': 'acme'})
        self.assertEqual(response.status_code, 200)
        self.assertEqual([o['id'] for o in response.context['ordenes']], [10])
        self.assertEqual(response.context['ordenes'][0]['proveedorNombre'], 'ACME')
        self.assertEqual(response.context['total_ordenes'], 2)
        self.assertEqual(response.context['por_estado'][COMPLETADA], 1)

    def test_nueva_orden_sugiere_numero_de_factura(self, OrdenCompraAPI, ProveedorAPI, ProductoAPI, InventarioAPI):
        self.configurar(OrdenCompraAPI, ProveedorAPI, ProductoAPI, InventarioAPI)
        response = self.client.get(reverse('compras:orden_crear'))
        self.assertTrue(response.context['form'].initial['numero_factura'].startswith('FAC-'))

    def test_nueva_orden_siempre_pendiente(self, OrdenCompraAPI, ProveedorAPI, ProductoAPI, InventarioAPI):
        ordenes_api, _ = self.configurar(OrdenCompraAPI, ProveedorAPI, ProductoAPI, InventarioAPI)
        ordenes_api.crear.return_value = orden(PENDIENTE)
        response = self.client.post(reverse('compras:orden_crear'), datos_orden(estado=COMPLETADA))
        self.assertRedirects(response, reverse('compras:ordenes_lista'), fetch_redirect_response=False)
        data = ordenes_api.crear.call_args[0][0]
        self.assertEqual(data['estado'], PENDIENTE)
        self.assertEqual(data['total'], 29.12)

    def test_nueva_orden_sin_proveedor(self, OrdenCompraAPI, ProveedorAPI, ProductoAPI, InventarioAPI):
        ordenes_api, _ = self.configurar(OrdenCompraAPI, ProveedorAPI, ProductoAPI, InventarioAPI)
        response = self.client.post(reverse('compras:orden_crear'), datos_orden(proveedor=''))
        self.assertEqual(response.status_code, 200)
        self.assertContains(response, 'Debes seleccionar un proveedor')
        ordenes_api.crear.assert_not_called()

    def test_nueva_orden_con_numero_de_factura_repetido(self, OrdenCompraAPI, ProveedorAPI, ProductoAPI, InventarioAPI):
        ordenes_api, _ = self.configurar(OrdenCompraAPI, ProveedorAPI, ProductoAPI, InventarioAPI)
        ordenes_api.existe_numero_factura.return_value = True
        response = self.client.post(reverse('compras:orden_crear'), datos_orden())
        self.assertEqual(response.status_code, 200)
        ordenes_api.existe_numero_factura.assert_called_once_with('FAC-001')
        ordenes_api.crear.assert_not_called()
        self.assertContains(response, 'Ya existe una orden con ese número de factura')

    def test_editar_con_numero_de_factura_de_otra_orden(self, OrdenCompraAPI, ProveedorAPI, ProductoAPI, InventarioAPI):
        ordenes_api, _ = self.configurar(
            OrdenCompraAPI, ProveedorAPI, ProductoAPI, InventarioAPI, orden_actual=orden(PENDIENTE)
        )
        ordenes_api.existe_numero_factura.return_value = True
        response = self.client.post(reverse('compras:orden_editar', args=[10]), datos_orden(numero_factura='FAC-002'))
        self.assertEqual(response.status_code, 200)
        ordenes_api.actualizar.assert_not_called()
        self.assertContains(response, 'Ya existe una orden con ese número de factura')

    def test_editar_completa_orden_con_producto_inactivo(self, OrdenCompraAPI, ProveedorAPI, ProductoAPI, InventarioAPI):
        actual = orden(EN_PROCESO, detalles=[
            {'productoId': 3, 'nombreProducto': 'Monitor viejo', 'cantidad': 2, 'precioUnitario': 10.5, 'descuento': 0},
        ])
        ordenes_api, inventario_api = self.configurar(
            OrdenCompraAPI, ProveedorAPI, ProductoAPI, InventarioAPI, orden_actual=actual
        )
        data = datos_orden(estado=COMPLETADA, **{'detalles-TOTAL_FORMS': '1', 'detalles-0-producto': '3'})
        response = self.client.post(reverse('compras:orden_editar', args=[10]), data)
        self.assertRedirects(response, reverse('compras:ordenes_lista'), fetch_redirect_response=False)
        self.assertEqual(ordenes_api.actualizar.call_args[0][1]['detalles'][0]['nombreProducto'], 'Monitor viejo')
        ordenes_api.cambiar_estado.assert_called_once_with(10, COMPLETADA)
        inventario_api.reducir_stock.assert_called_once_with(3, 3, 2)

    def test_editar_guarda_datos_aunque_falle_el_cambio_de_estado(
        self, OrdenCompraAPI, ProveedorAPI, ProductoAPI, InventarioAPI
    ):
        ordenes_api, inventario_api = self.configurar(
            OrdenCompraAPI, ProveedorAPI, ProductoAPI, InventarioAPI, orden_actual=orden(PENDIENTE)
        )
        ordenes_api.cambiar_estado.side_effect = ErrorBackend('Orden bloqueada', status=409)
        response = self.client.post(reverse('compras:orden_editar', args=[10]), datos_orden(estado=EN_PROCESO))
        self.assertRedirects(response, reverse('compras:orden_detalle', args=[10]), fetch_redirect_response=False)
        ordenes_api.actualizar.assert_called_once()
        self.assertEqual(mensajes(response), [
            'Los datos de la orden se guardaron, pero no se pudo cambiar el estado a EN_PROCESO: Orden bloqueada',
        ])

    def test_editar_con_transicion_invalida_no_guarda(self, OrdenCompraAPI, ProveedorAPI, ProductoAPI, InventarioAPI):
        ordenes_api, inventario_api = self.configurar(
            OrdenCompraAPI, ProveedorAPI, ProductoAPI, InventarioAPI, orden_actual=orden(PENDIENTE)
        )
        response = self.client.post(reverse('compras:orden_editar', args=[10]), datos_orden(estado=COMPLETADA))
        self.assertEqual(response.status_code, 200)
        ordenes_api.actualizar.assert_not_called()
        ordenes_api.cambiar_estado.assert_not_called()
        inventario_api.reducir_stock.assert_not_called()
        self.assertIn(
            'No se permite cambiar el estado de PENDIENTE a COMPLETADA: primero debe pasar a EN_PROCESO',
            mensajes(response),
        )

    def test_editar_a_completada_reduce_stock(self, OrdenCompraAPI, ProveedorAPI, ProductoAPI, InventarioAPI):
        ordenes_api, inventario_api = self.configurar(
            OrdenCompraAPI, ProveedorAPI, ProductoAPI, InventarioAPI, orden_actual=orden(EN_PROCESO)
        )
        response = self.client.post(reverse('compras:orden_editar', args=[10]), datos_orden(estado=COMPLETADA))
        self.assertRedirects(response, reverse('compras:ordenes_lista'), fetch_redirect_response=False)

        pk, data = ordenes_api.actualizar.call_args[0]
        self.assertEqual(pk, 10)
        self.assertEqual(data['estado'], EN_PROCESO)
        ordenes_api.cambiar_estado.assert_called_once_with(10, COMPLETADA)
        self.assertEqual(
            inventario_api.reducir_stock.call_args_list, [mock.call(1, 3, 2), mock.call(2, 3, 1)]
        )
        self.assertIn('Stock reducido para 2 producto(s) en la bodega Central', mensajes(response))

    def test_editar_sin_cambio_de_estado(self, OrdenCompraAPI, ProveedorAPI, ProductoAPI, InventarioAPI):
        ordenes_api, _ = self.configurar(
            OrdenCompraAPI, ProveedorAPI, ProductoAPI, InventarioAPI, orden_actual=orden(COMPLETADA)
        )
        response = self.client.post(
            reverse('compras:orden_editar', args=[10]), datos_orden(estado=COMPLETADA, observaciones='Revisada')
        )
        self.assertEqual(response.status_code, 302)
        self.assertEqual(ordenes_api.actualizar.call_args[0][1]['observaciones'], 'Revisada')
        ordenes_api.cambiar_estado.assert_not_called()

    def test_cambio_rapido_de_estado_rechazado(self, OrdenCompraAPI, ProveedorAPI, ProductoAPI, InventarioAPI):
        ordenes_api, _ = self.configurar(
            OrdenCompraAPI, ProveedorAPI, ProductoAPI, InventarioAPI, orden_actual=orden(CANCELADA)
        )
        response = self.client.post(reverse('compras:orden_estado', args=[10]), {'estado': EN_PROCESO})
        self.assertRedirects(response, reverse('compras:orden_detalle', args=[10]), fetch_redirect_response=False)
        ordenes_api.cambiar_estado.assert_not_called()
        self.assertIn(
            'No se permite cambiar el estado de CANCELADA a EN_PROCESO: CANCELADA es un estado final',
            mensajes(response),
        )

    def test_cambio_rapido_con_errores_de_stock(self, OrdenCompraAPI, ProveedorAPI, ProductoAPI, InventarioAPI):
        ordenes_api, inventario_api = self.configurar(
            OrdenCompraAPI, ProveedorAPI, ProductoAPI, InventarioAPI, orden_actual=orden(EN_PROCESO)
        )
        inventario_api.reducir_stock.side_effect = [None, ErrorBackend('Stock insuficiente')]
        response = self.client.post(reverse('compras:orden_estado', args=[10]), {'estado': COMPLETADA})
        self.assertEqual(response.status_code, 302)
        ordenes_api.cambiar_estado.assert_called_once_with(10, COMPLETADA)
        self.assertTrue(any('Producto 2: Stock insuficiente' in m for m in mensajes(response)))

    def test_detalle_muestra_transiciones(self, OrdenCompraAPI, ProveedorAPI, ProductoAPI, InventarioAPI):
        self.configurar(OrdenCompraAPI, ProveedorAPI, ProductoAPI, InventarioAPI, orden_actual=orden(PENDIENTE))
        response = self.client.get(reverse('compras:orden_detalle', args=[10]))
        self.assertEqual(response.context['transiciones'], [EN_PROCESO, CANCELADA])
        self.assertEqual(response.context['proveedor_nombre'], 'ACME')

    def test_solo_se_eliminan_pendientes(self, OrdenCompraAPI, ProveedorAPI, ProductoAPI, InventarioAPI):
        ordenes_api, _ = self.configurar(
            OrdenCompraAPI, ProveedorAPI, ProductoAPI, InventarioAPI, orden_actual=orden(EN_PROCESO)
        )
        response = self.client.post(reverse('compras:orden_eliminar', args=[10]))
        self.assertEqual(response.status_code, 302)
        ordenes_api.eliminar.assert_not_called()
        self.assertIn('Solo se pueden eliminar órdenes en estado PENDIENTE', mensajes(response))

    def test_eliminar_pendiente(self, OrdenCompraAPI, ProveedorAPI, ProductoAPI, InventarioAPI):
        ordenes_api, _ = self.configurar(
            OrdenCompraAPI, ProveedorAPI, ProductoAPI, InventarioAPI, orden_actual=orden(PENDIENTE)
        )
        response = self.client.post(reverse('compras:orden_eliminar', args=[10]))
        self.assertEqual(response.status_code, 302)
        ordenes_api.eliminar.assert_called_once_with(10)

    def test_pdf(self, OrdenCompraAPI, ProveedorAPI, ProductoAPI, InventarioAPI):
        self.configurar(OrdenCompraAPI, ProveedorAPI, ProductoAPI, InventarioAPI, orden_actual=orden(COMPLETADA))
        response = self.client.get(reverse('compras:orden_pdf', args=[10]))
        self.assertEqual(response['Content-Type'], 'application/pdf')
        self.assertTrue(response.content.startswith(b'%PDF'))
