import io

from django.utils.html import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import letter
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from .forms import fecha_desde_api


def _moneda(valor):
    return f'${float(valor or 0):,.2f}'


def _fecha(valor):
    fecha = fecha_desde_api(valor)
    return fecha.strftime('%d/%m/%Y') if fecha else '-'


def generar_pdf_orden(orden, proveedor_nombre=''):
    """Devuelve los bytes de un PDF con la cabecera, los detalles y los totales de la orden."""
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=letter, topMargin=0.5*inch, bottomMargin=0.5*inch)
    elements = []
    styles = getSampleStyleSheet()

    title_style = ParagraphStyle(
        'TituloOrden',
        parent=styles['Heading1'],
        fontSize=14,
        textColor=colors.HexColor('#1f3864'),
        spaceAfter=8,
        alignment=TA_CENTER,
        fontName='Helvetica-Bold'
    )

    elements.append(Paragraph(f"ORDEN DE COMPRA #{orden.get('id', '')}", title_style))
    elements.append(Spacer(1, 0.15*inch))

    cabecera = [
        ['Proveedor:', proveedor_nombre or f"Proveedor {orden.get('proveedorId', '')}"],
        ['Número de factura:', orden.get('numeroFactura') or '-'],
        ['Fecha de emisión:', _fecha(orden.get('fechaEmision'))],
        ['Fecha de entrega:', _fecha(orden.get('fechaEntrega'))],
        ['Estado:', orden.get('estado') or '-'],
    ]
    cabecera_table = Table(cabecera, colWidths=[1.8*inch, 4.5*inch])
    cabecera_table.setStyle(TableStyle([
        ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
        ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 4),
    ]))
    elements.append(cabecera_table)
    elements.append(Spacer(1, 0.25*inch))

    filas = [['Producto', 'Cantidad', 'Precio unit.', 'Descuento', 'Subtotal']]
    for detalle in orden.get('detalles') or []:
        filas.append([
            Paragraph(escape(detalle.get("nombreProducto") or f"Producto {detalle.get('productoId')}"), styles['Normal']),
            str(detalle.get('cantidad', 0)),
            _moneda(detalle.get('precioUnitario')),
            _moneda(detalle.get('descuento')),
            _moneda(detalle.get('subtotal')),
        ])
    filas.append(['', '', '', 'Subtotal:', _moneda(orden.get('subtotal'))])
    filas.append(['', '', '', 'IVA:', _moneda(orden.get('iva'))])
    filas.append(['', '', '', 'Total:', _moneda(orden.get('total'))])

    n_detalles = len(filas) - 4
    detalle_table = Table(filas, colWidths=[2.6*inch, 0.9*inch, 1.1*inch, 1*inch, 1.1*inch])
    detalle_table.setStyle(TableStyle([
        ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor('#1f3864')),
        ('TEXTCOLOR', (0, 0), (-1, 0), colors.white),
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('GRID', (0, 0), (-1, n_detalles), 0.5, colors.grey),
        ('ALIGN', (1, 1), (-1, -1), 'RIGHT'),
        ('FONTNAME', (3, n_detalles + 1), (-1, -1), 'Helvetica-Bold'),
        ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
    ]))
    elements.append(detalle_table)

    if orden.get('observaciones'):
        elements.append(Spacer(1, 0.25*inch))
        elements.append(Paragraph(f"<b>Observaciones:</b> {escape(orden['observaciones'])}", styles['Normal']))

    doc.build(elements)
    return buffer.getvalue()
