# compras/views.py
import logging

from django.contrib import messages
from django.http import Http404, HttpResponse
from django.shortcuts import redirect, render
from django.views.decorators.http import require_POST

from consola.api import InventarioAPI, OrdenCompraAPI, ProductoAPI, ProveedorAPI
from consola.exceptions import ErrorBackend
from inventario.services import filtrar
from .estados import ESTADOS, PENDIENTE, TransicionNoPermitida, transiciones_permitidas, validar_transicion
from .forms import DetalleOrdenFormSet, OrdenCompraForm, detalles_iniciales, orden_a_api
from .pdf import generar_pdf_orden
from .services import cambiar_estado_orden, generar_numero_factura

logger = logging.getLogger(__name__)


def _obtener_orden(pk):
    try:
        orden = OrdenCompraAPI().obtener(pk)
    except ErrorBackend as e:
        if e.status == 404:
            raise Http404(f'Orden {pk} no encontrada') from e
        raise
    if not orden:
        raise Http404(f'Orden {pk} no encontrada')
    return orden


def _cargar(request, llamada, mensaje):
    try:
        return llamada()
    except ErrorBackend as e:
        messages.error(request, f'{mensaje}: {e.mensaje}')
        return []


def _nombre_proveedor(proveedor_id):
    try:
        proveedor = ProveedorAPI().obtener(proveedor_id)
    except ErrorBackend as e:
        logger.warning("No se pudo obtener el proveedor %s: %s", proveedor_id, e.mensaje)
        proveedor = None
    return (proveedor or {}).get('nombre') or f'Proveedor {proveedor_id}'


def _informar_reduccion(request, resultado):
    """Traduce el resultado del descuento de stock a mensajes para el usuario."""
    if resultado is None:
        return
    if resultado.hubo_errores:
        messages.warning(
            request,
            'La orden se completó pero hubo errores al reducir el stock: ' + '; '.join(resultado.errores),
        )
    elif resultado.exitos:
        bodega = (resultado.bodega or {}).get('nombre', '')
        messages.success(request, f'Stock reducido para {resultado.exitos} producto(s) en la bodega {bodega}')
    else:
        messages.info(request, 'La orden no tiene detalles, no se redujo stock')


def _formularios(request, proveedores, productos, orden=None, inicial=None):
    detalles = None
    existentes = ()
    if orden is not None:
        inicial = OrdenCompraForm.inicial_desde_api(orden)
        detalles = detalles_iniciales(orden)
        existentes = orden.get('detalles') or []
    form = OrdenCompraForm(request.POST or None, proveedores=proveedores, initial=inicial)
    formset = DetalleOrdenFormSet(
        request.POST or None, initial=detalles, prefix='detalles',
        form_kwargs={'productos': productos, 'existentes': existentes},
    )
    return form, formset


def _numero_factura_repetido(form, ordenes_api, numero_actual=None):
    """Marca el error en el formulario si otra orden ya usa ese número de factura."""
    numero = form.cleaned_data['numero_factura']
    if numero == numero_actual or not ordenes_api.existe_numero_factura(numero):
        return False
    form.add_error('numero_factura', 'Ya existe una orden con ese número de factura')
    return True


def ordenes_lista(request):
    """Muestra las órdenes de compra con el nombre del proveedor y filtros."""
    ordenes = _cargar(request, OrdenCompraAPI().listar, 'Error al cargar órdenes de compra')
    proveedores = _cargar(request, ProveedorAPI().listar, 'Error al cargar proveedores')
    nombres = {p.get('id'): p.get('nombre') for p in proveedores}

    # Órdenes sin id no se pueden editar ni eliminar
    ordenes = [
        dict(o, proveedorNombre=nombres.get(o.get('proveedorId')) or f"Proveedor {o.get('proveedorId')}")
        for o in ordenes if o.get('id') is not None
    ]

    q = request.GET.get('q', '')
    estado = request.GET.get('estado', 'TODOS')
    filtradas = filtrar(ordenes, q, campos=('id', 'proveedorNombre', 'numeroFactura'), estado=estado)

    context = {
        'ordenes': filtradas,
        'total_ordenes': len(ordenes),
        'por_estado': {valor: sum(1 for o in ordenes if o.get('estado') == valor) for valor, _ in ESTADOS},
        'estados': ESTADOS,
        'q': q,
        'estado': estado,
    }
    return render(request, 'compras/ordenes_lista.html', context)


def orden_crear(request):
    """Crea una orden de compra. Las órdenes nuevas siempre nacen PENDIENTE."""
    proveedores = _cargar(request, ProveedorAPI().listar, 'Error al cargar proveedores')
    productos = _cargar(request, ProductoAPI().listar, 'Error al cargar productos')
    form, formset = _formularios(
        request, proveedores, productos,
        inicial={'numero_factura': generar_numero_factura(), 'estado': PENDIENTE},
    )
    form.fields['estado'].disabled = True

    if request.method == 'POST':
        if form.is_valid() and formset.is_valid():
            ordenes_api = OrdenCompraAPI()
            try:
                repetido = _numero_factura_repetido(form, ordenes_api)
                orden = None if repetido else ordenes_api.crear(orden_a_api(form, formset, estado=PENDIENTE))
            except ErrorBackend as e:
                messages.error(request, f'Error al crear la orden: {e.mensaje}')
            else:
                if not repetido:
                    logger.info("Orden creada: %s", (orden or {}).get('id'))
                    messages.success(request, 'Orden creada exitosamente')
                    return redirect('compras:ordenes_lista')
                messages.error(request, 'Por favor corrige los errores en el formulario')
        else:
            messages.error(request, 'Por favor corrige los errores en el formulario')

    return render(request, 'compras/orden_form.html', {
        'form': form,
        'formset': formset,
        'titulo': 'Nueva Orden de Compra',
    })


def orden_editar(request, pk):
    """
    Edita una orden. Si cambia el estado, la transición se valida antes de
    guardar nada; al pasar a COMPLETADA se descuenta el stock.
    """
    orden = _obtener_orden(pk)
    proveedores = _cargar(request, ProveedorAPI().listar, 'Error al cargar proveedores')
    productos = _cargar(request, ProductoAPI().listar, 'Error al cargar productos')
    form, formset = _formularios(request, proveedores, productos, orden=orden)

    if request.method == 'POST':
        if form.is_valid() and formset.is_valid():
            estado_actual = orden.get('estado')
            nuevo_estado = form.cleaned_data['estado']
            ordenes_api = OrdenCompraAPI()
            guardada = False
            try:
                if nuevo_estado != estado_actual:
                    validar_transicion(estado_actual, nuevo_estado)
                if not _numero_factura_repetido(form, ordenes_api, orden.get('numeroFactura')):
                    # El estado se cambia aparte, por su propio endpoint
                    data = orden_a_api(form, formset, estado=estado_actual)
                    ordenes_api.actualizar(pk, data)
                    guardada = True
            except TransicionNoPermitida as e:
                messages.error(request, e.mensaje)
            except ErrorBackend as e:
                messages.error(request, f'Error al actualizar la orden: {e.mensaje}')
            else:
                if not guardada:
                    messages.error(request, 'Por favor corrige los errores en el formulario')

            if guardada:
                if nuevo_estado != estado_actual:
                    try:
                        resultado = cambiar_estado_orden(dict(data, id=pk), nuevo_estado, ordenes_api, InventarioAPI())
                    except ErrorBackend as e:
                        messages.warning(
                            request,
                            f'Los datos de la orden se guardaron, pero no se pudo cambiar el estado a {nuevo_estado}: '
                            f'{e.mensaje}',
                        )
                        return redirect('compras:orden_detalle', pk=pk)
                    _informar_reduccion(request, resultado)
                messages.success(request, 'Orden actualizada exitosamente')
                return redirect('compras:ordenes_lista')
        else:
            messages.error(request, 'Por favor corrige los errores en el formulario')

    return render(request, 'compras/orden_form.html', {
        'form': form,
        'formset': formset,
        'orden': orden,
        'titulo': f'Editar Orden #{pk}',
        'transiciones': transiciones_permitidas(orden.get('estado')),
    })


def orden_detalle(request, pk):
    orden = _obtener_orden(pk)
    context = {
        'orden': orden,
        'proveedor_nombre': _nombre_proveedor(orden.get('proveedorId')),
        'transiciones': transiciones_permitidas(orden.get('estado')),
    }
    return render(request, 'compras/orden_detalle.html', context)


@require_POST
def orden_cambiar_estado(request, pk):
    """Cambio rápido de estado desde el detalle de la orden."""
    orden = _obtener_orden(pk)
    nuevo_estado = request.POST.get('estado', '')
    try:
        resultado = cambiar_estado_orden(orden, nuevo_estado, OrdenCompraAPI(), InventarioAPI())
    except TransicionNoPermitida as e:
        messages.error(request, e.mensaje)
    except ErrorBackend as e:
        messages.error(request, f'Error al cambiar el estado de la orden: {e.mensaje}')
    else:
        messages.success(request, f'Estado de la orden cambiado a {nuevo_estado}')
        _informar_reduccion(request, resultado)
    return redirect('compras:orden_detalle', pk=pk)


def orden_eliminar(request, pk):
    """Solo se pueden eliminar órdenes en estado PENDIENTE."""
    orden = _obtener_orden(pk)
    if orden.get('estado') != PENDIENTE:
        messages.warning(request, 'Solo se pueden eliminar órdenes en estado PENDIENTE')
        return redirect('compras:ordenes_lista')

    if request.method == 'POST':
        try:
            OrdenCompraAPI().eliminar(pk)
        except ErrorBackend as e:
            messages.error(request, f'Error al eliminar la orden: {e.mensaje}')
        else:
            messages.success(request, 'Orden eliminada exitosamente')
        return redirect('compras:ordenes_lista')

    return render(request, 'confirmar_eliminar.html', {
        'registro': orden,
        'nombre': f"orden de compra {orden.get('numeroFactura', '')}",
        'url_cancelar': 'compras:ordenes_lista',
    })


def orden_pdf(request, pk):
    orden = _obtener_orden(pk)
    pdf = generar_pdf_orden(orden, _nombre_proveedor(orden.get('proveedorId')))
    response = HttpResponse(pdf, content_type='application/pdf')
    response['Content-Disposition'] = f'attachment; filename="ORDEN_COMPRA_{pk}.pdf"'
    return response
