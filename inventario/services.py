"""Funciones de apoyo para las pantallas de inventario (sin acceso a red)."""

STOCK_CRITICO = 'Crítico'
STOCK_BAJO = 'Bajo'
STOCK_NORMAL = 'Normal'


def estado_stock(cantidad, cantidad_minima):
    """
    Clasifica un registro de stock.
    Crítico: cantidad <= mínima. Bajo: cantidad <= 2 x mínima. Normal: el resto.
    """
    cantidad = cantidad or 0
    cantidad_minima = cantidad_minima or 0
    if cantidad <= cantidad_minima:
        return STOCK_CRITICO
    if cantidad <= cantidad_minima * 2:
        return STOCK_BAJO
    return STOCK_NORMAL


def es_critico(registro):
    return estado_stock(registro.get('cantidad'), registro.get('cantidadMinima')) == STOCK_CRITICO


def filtrar(registros, q='', campos=('nombre',), **exactos):
    """
    Filtra una lista de diccionarios del backend.

    `q` se busca sin distinguir mayúsculas en `campos`; cada argumento
    adicional exige igualdad exacta, salvo que su valor sea vacío o 'TODOS'.
    """
    q = (q or '').strip().lower()
    resultado = []
    for registro in registros:
        if q and not any(q in str(registro.get(campo) or '').lower() for campo in campos):
            continue
        if any(valor not in ('', None, 'TODOS') and registro.get(clave) != valor for clave, valor in exactos.items()):
            continue
        resultado.append(registro)
    return resultado


def contar_activos(registros):
    return sum(1 for r in registros if r.get('estado') == 'ACTIVO')


def enriquecer_inventario(registros, productos, bodegas):
    """Agrega nombre/SKU del producto, nombre de bodega y estado de stock a cada registro."""
    productos_por_id = {p.get('id'): p for p in productos}
    bodegas_por_id = {b.get('id'): b for b in bodegas}
    enriquecidos = []
    for registro in registros:
        producto = productos_por_id.get(registro.get('productoId'))
        bodega = bodegas_por_id.get(registro.get('bodegaId'))
        enriquecidos.append(dict(
            registro,
            productoNombre=producto['nombre'] if producto else f"Producto {registro.get('productoId')}",
            productoSku=producto.get('sku', '') if producto else '',
            bodegaNombre=bodega['nombre'] if bodega else f"Bodega {registro.get('bodegaId')}",
            estadoStock=estado_stock(registro.get('cantidad'), registro.get('cantidadMinima')),
        ))
    return enriquecidos
