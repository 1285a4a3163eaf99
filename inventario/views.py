# inventario/views.py
import logging

import openpyxl
from django.contrib import messages
from django.http import Http404, HttpResponse
from django.shortcuts import redirect, render
from django.views.decorators.http import require_POST

from consola.api import BodegaAPI, InventarioAPI, ProductoAPI, ProveedorAPI
from consola.exceptions import ErrorBackend
from .forms import (
    CATEGORIAS, ESTADOS, AjusteStockForm, BodegaForm, InventarioForm, ProductoForm, ProveedorForm,
)
from .services import contar_activos, enriquecer_inventario, es_critico, filtrar

logger = logging.getLogger(__name__)

ESTADOS_VALIDOS = {valor for valor, _ in ESTADOS}
CONTENT_TYPE_XLSX = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'


# --- Utilidades comunes ---

def _cargar_lista(request, llamada, mensaje):
    """Ejecuta una consulta de lista; si el backend falla, avisa y devuelve []."""
    try:
        return llamada()
    except ErrorBackend as e:
        logger.warning("%s: %s", mensaje, e.mensaje)
        messages.error(request, f'{mensaje}: {e.mensaje}')
        return []


def _obtener(api, pk):
    """Obtiene un registro del backend; 404 si el backend no lo encuentra."""
    try:
        registro = api.obtener(pk)
    except ErrorBackend as e:
        if e.status == 404:
            raise Http404(f'Registro {pk} no encontrado') from e
        raise
    if not registro:
        raise Http404(f'Registro {pk} no encontrado')
    return registro


def _agregar_errores_backend(form, error):
    """Copia al formulario los errores por campo que devolvió el backend."""
    campo_por_clave = {clave: campo for campo, clave in getattr(form, 'campos_api', {}).items()}
    for clave, detalle in error.errores.items():
        campo = campo_por_clave.get(clave)
        if campo in form.fields:
            form.add_error(campo, str(detalle))


def _guardar(request, form, guardar, mensaje_ok, url_ok):
    """
    Valida el formulario y lo envía al backend.
    Devuelve la redirección en caso de éxito, o None para volver a mostrar el formulario.
    """
    if not form.is_valid():
        messages.error(request, 'Por favor corrige los errores en el formulario')
        return None
    try:
        guardar(form.a_api())
    except ErrorBackend as e:
        _agregar_errores_backend(form, e)
        messages.error(request, e.mensaje)
        return None
    messages.success(request, mensaje_ok)
    return redirect(url_ok)


def _eliminar(request, api, pk, plantilla, nombre, mensaje_ok, url_ok, mensaje_error):
    registro = _obtener(api, pk)
    if request.method == 'POST':
        try:
            api.eliminar(pk)
        except ErrorBackend as e:
            messages.error(request, f'{mensaje_error}: {e.mensaje}')
        else:
            messages.success(request, mensaje_ok)
        return redirect(url_ok)
    return render(request, plantilla, {'registro': registro, 'nombre': nombre, 'url_cancelar': url_ok})


def _cambiar_estado(request, api, pk, url_ok):
    estado = request.POST.get('estado')
    if estado not in ESTADOS_VALIDOS:
        messages.error(request, 'Estado no válido')
        return redirect(url_ok)
    try:
        api.cambiar_estado(pk, estado)
    except ErrorBackend as e:
        messages.error(request, f'Error al cambiar estado: {e.mensaje}')
    else:
        messages.success(request, f'Estado cambiado a {estado}')
    return redirect(url_ok)


def _excel(nombre_archivo, titulo, encabezados, filas):
    response = HttpResponse(content_type=CONTENT_TYPE_XLSX)
    response['Content-Disposition'] = f'attachment; filename="{nombre_archivo}"'
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = titulo
    ws.append(encabezados)
    for fila in filas:
        ws.append(fila)
    wb.save(response)
    return response


# --- Productos ---

def productos_lista(request):
    """Muestra la lista de productos con búsqueda y filtros."""
    productos = _cargar_lista(request, ProductoAPI().listar, 'Error al cargar productos')
    q = request.GET.get('q', '')
    categoria = request.GET.get('categoria', '')
    estado = request.GET.get('estado', '')
    filtrados = filtrar(productos, q, campos=('nombre', 'sku'), categoria=categoria, estado=estado)

    context = {
        'productos': filtrados,
        'total_productos': len(productos),
        'productos_activos': contar_activos(productos),
        'categorias': CATEGORIAS,
        'estados': ESTADOS,
        'q': q,
        'categoria': categoria,
        'estado': estado,
    }
    return render(request, 'inventario/productos_lista.html', context)


def producto_crear(request):
    """Permite crear un nuevo producto."""
    form = ProductoForm(request.POST or None)
    if request.method == 'POST':
        respuesta = _guardar(request, form, ProductoAPI().crear,
                             'Producto creado exitosamente', 'inventario:productos_lista')
        if respuesta:
            return respuesta
    return render(request, 'formulario.html', {'form': form, 'titulo': 'Nuevo Producto',
                                                          'url_cancelar': 'inventario:productos_lista'})


def producto_editar(request, pk):
    """Permite editar un producto existente."""
    api = ProductoAPI()
    producto = _obtener(api, pk)
    form = ProductoForm(request.POST or None, initial=ProductoForm.inicial_desde_api(producto))
    if request.method == 'POST':
        respuesta = _guardar(request, form, lambda data: api.actualizar(pk, data),
                             'Producto actualizado exitosamente', 'inventario:productos_lista')
        if respuesta:
            return respuesta
    return render(request, 'formulario.html', {'form': form, 'titulo': f"Editar Producto: {producto.get('nombre', '')}",
                                                          'url_cancelar': 'inventario:productos_lista'})


def producto_eliminar(request, pk):
    return _eliminar(request, ProductoAPI(), pk, 'confirmar_eliminar.html', 'producto',
                     'Producto eliminado exitosamente', 'inventario:productos_lista', 'Error al eliminar producto')


@require_POST
def producto_cambiar_estado(request, pk):
    return _cambiar_estado(request, ProductoAPI(), pk, 'inventario:productos_lista')


def exportar_productos_excel(request):
    """Exporta la lista de productos a un archivo Excel."""
    try:
        productos = ProductoAPI().listar()
    except ErrorBackend as e:
        logger.warning("No se pudo exportar productos: %s", e.mensaje)
        messages.error(request, f'Error al exportar productos: {e.mensaje}')
        return redirect('inventario:productos_lista')
    filas = [
        [p.get('id'), p.get('sku'), p.get('nombre'), p.get('descripcion'), p.get('precio'),
         p.get('categoria'), p.get('estado')]
        for p in productos
    ]
    return _excel('productos.xlsx', 'Productos',
                  ['ID', 'SKU', 'Nombre', 'Descripción', 'Precio', 'Categoría', 'Estado'], filas)


# --- Proveedores ---

def proveedores_lista(request):
    """Muestra la lista de proveedores."""
    proveedores = _cargar_lista(request, ProveedorAPI().listar, 'Error al cargar proveedores')
    q = request.GET.get('q', '')
    estado = request.GET.get('estado', '')
    context = {
        'proveedores': filtrar(proveedores, q, campos=('nombre', 'nitRuc', 'email'), estado=estado),
        'total_proveedores': len(proveedores),
        'proveedores_activos': contar_activos(proveedores),
        'estados': ESTADOS,
        'q': q,
        'estado': estado,
    }
    return render(request, 'inventario/proveedores_lista.html', context)


def proveedor_crear(request):
    """Permite crear un nuevo proveedor."""
    form = ProveedorForm(request.POST or None)
    if request.method == 'POST':
        respuesta = _guardar(request, form, ProveedorAPI().crear,
                             'Proveedor creado exitosamente', 'inventario:proveedores_lista')
        if respuesta:
            return respuesta
    return render(request, 'formulario.html', {'form': form, 'titulo': 'Nuevo Proveedor',
                                                          'url_cancelar': 'inventario:proveedores_lista'})


def proveedor_editar(request, pk):
    """Permite editar un proveedor existente."""
    api = ProveedorAPI()
    proveedor = _obtener(api, pk)
    form = ProveedorForm(request.POST or None, initial=ProveedorForm.inicial_desde_api(proveedor))
    if request.method == 'POST':
        respuesta = _guardar(request, form, lambda data: api.actualizar(pk, data),
                             'Proveedor actualizado exitosamente', 'inventario:proveedores_lista')
        if respuesta:
            return respuesta
    return render(request, 'formulario.html', {'form': form, 'titulo': f"Editar Proveedor: {proveedor.get('nombre', '')}",
                                                          'url_cancelar': 'inventario:proveedores_lista'})


def proveedor_eliminar(request, pk):
    return _eliminar(request, ProveedorAPI(), pk, 'confirmar_eliminar.html', 'proveedor',
                     'Proveedor eliminado exitosamente', 'inventario:proveedores_lista', 'Error al eliminar proveedor')


@require_POST
def proveedor_cambiar_estado(request, pk):
    return _cambiar_estado(request, ProveedorAPI(), pk, 'inventario:proveedores_lista')


# --- Bodegas ---

def bodegas_lista(request):
    """Muestra la lista de bodegas."""
    bodegas = _cargar_lista(request, BodegaAPI().listar, 'Error al cargar bodegas')
    q = request.GET.get('q', '')
    estado = request.GET.get('estado', '')
    context = {
        'bodegas': filtrar(bodegas, q, campos=('nombre', 'direccion'), estado=estado),
        'total_bodegas': len(bodegas),
        'bodegas_activas': contar_activos(bodegas),
        'estados': ESTADOS,
        'q': q,
        'estado': estado,
    }
    return render(request, 'inventario/bodegas_lista.html', context)


def bodega_crear(request):
    """Permite crear una nueva bodega. Las bodegas nuevas siempre nacen ACTIVO."""
    form = BodegaForm(request.POST or None)
    form.fields['estado'].disabled = True

    def crear(data):
        data['estado'] = 'ACTIVO'
        return BodegaAPI().crear(data)

    if request.method == 'POST':
        respuesta = _guardar(request, form, crear, 'Bodega creada exitosamente', 'inventario:bodegas_lista')
        if respuesta:
            return respuesta
    return render(request, 'formulario.html', {'form': form, 'titulo': 'Nueva Bodega',
                                                          'url_cancelar': 'inventario:bodegas_lista'})


def bodega_editar(request, pk):
    """Permite editar una bodega existente."""
    api = BodegaAPI()
    bodega = _obtener(api, pk)
    form = BodegaForm(request.POST or None, initial=BodegaForm.inicial_desde_api(bodega))

    def actualizar(data):
        data['estado'] = data.get('estado') or bodega.get('estado', 'ACTIVO')
        return api.actualizar(pk, data)

    if request.method == 'POST':
        respuesta = _guardar(request, form, actualizar, 'Bodega actualizada exitosamente', 'inventario:bodegas_lista')
        if respuesta:
            return respuesta
    return render(request, 'formulario.html', {'form': form, 'titulo': f"Editar Bodega: {bodega.get('nombre', '')}",
                                                          'url_cancelar': 'inventario:bodegas_lista'})


def bodega_eliminar(request, pk):
    return _eliminar(request, BodegaAPI(), pk, 'confirmar_eliminar.html', 'bodega',
                     'Bodega eliminada exitosamente', 'inventario:bodegas_lista', 'Error al eliminar la bodega')


@require_POST
def bodega_cambiar_estado(request, pk):
    return _cambiar_estado(request, BodegaAPI(), pk, 'inventario:bodegas_lista')


# --- Registros de stock ---

def stock_lista(request):
    """Stock por producto y bodega, con la sección de stock crítico aparte."""
    inventario_api = InventarioAPI()
    bodega_id = request.GET.get('bodega', '')

    if bodega_id.isdigit():
        registros = _cargar_lista(request, lambda: inventario_api.por_bodega(int(bodega_id)), 'Error al cargar inventario')
    else:
        bodega_id = ''
        registros = _cargar_lista(request, inventario_api.listar, 'Error al cargar inventario')
    productos = _cargar_lista(request, ProductoAPI().listar, 'Error al cargar productos')
    bodegas = _cargar_lista(request, inventario_api.bodegas, 'Error al cargar bodegas')

    registros = enriquecer_inventario(registros, productos, bodegas)
    context = {
        'registros': registros,
        'stock_critico': [r for r in registros if es_critico(r)],
        'bodegas': bodegas,
        'bodega': bodega_id,
    }
    return render(request, 'inventario/stock_lista.html', context)


def stock_crear(request):
    """Registra un producto en una bodega con su cantidad inicial."""
    inventario_api = InventarioAPI()
    productos = _cargar_lista(request, ProductoAPI().listar, 'Error al cargar productos')
    bodegas = _cargar_lista(request, inventario_api.bodegas, 'Error al cargar bodegas')
    form = InventarioForm(request.POST or None, productos=productos, bodegas=bodegas)
    if request.method == 'POST':
        respuesta = _guardar(request, form, inventario_api.crear,
                             'Inventario creado exitosamente', 'inventario:stock_lista')
        if respuesta:
            return respuesta
    return render(request, 'formulario.html', {'form': form, 'titulo': 'Nuevo Registro de Inventario',
                                                          'url_cancelar': 'inventario:stock_lista'})


def stock_ajustar(request, pk):
    """Fija la cantidad de un registro de stock."""
    inventario_api = InventarioAPI()
    registro = _obtener(inventario_api, pk)
    form = AjusteStockForm(request.POST or None, initial={'nueva_cantidad': registro.get('cantidad')})
    if request.method == 'POST':
        if form.is_valid():
            try:
                inventario_api.actualizar_stock(
                    registro['productoId'], registro['bodegaId'], form.cleaned_data['nueva_cantidad']
                )
            except ErrorBackend as e:
                messages.error(request, f'Error al actualizar stock: {e.mensaje}')
            else:
                messages.success(request, 'Stock actualizado exitosamente')
                return redirect('inventario:stock_lista')
        else:
            messages.error(request, 'Por favor corrige los errores en el formulario')
    return render(request, 'formulario.html', {
        'form': form,
        'titulo': f"Ajustar stock (producto {registro.get('productoId')}, bodega {registro.get('bodegaId')})",
        'url_cancelar': 'inventario:stock_lista',
    })


def stock_eliminar(request, pk):
    return _eliminar(request, InventarioAPI(), pk, 'confirmar_eliminar.html', 'registro de inventario',
                     'Registro eliminado exitosamente', 'inventario:stock_lista', 'Error al eliminar el registro')


def exportar_stock_excel(request):
    """Exporta el stock actual (con nombres de producto y bodega) a Excel."""
    inventario_api = InventarioAPI()
    try:
        registros = enriquecer_inventario(inventario_api.listar(), ProductoAPI().listar(), inventario_api.bodegas())
    except ErrorBackend as e:
        logger.warning("No se pudo exportar el stock: %s", e.mensaje)
        messages.error(request, f'Error al exportar el stock: {e.mensaje}')
        return redirect('inventario:stock_lista')
    filas = [
        [r.get('id'), r['productoSku'], r['productoNombre'], r['bodegaNombre'],
         r.get('cantidad'), r.get('cantidadMinima'), r['estadoStock']]
        for r in registros
    ]
    return _excel('inventario_stock.xlsx', 'Stock',
                  ['ID', 'SKU', 'Producto', 'Bodega', 'Cantidad', 'Cantidad Mínima', 'Estado'], filas)
