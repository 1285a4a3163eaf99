# compras/forms.py
from datetime import datetime, time

from django import forms
from django.utils import timezone
from django.utils.dateparse import parse_date

from inventario.forms import mensajes_obligatorio
from .estados import ESTADOS, PENDIENTE
from .services import calcular_totales


def fecha_desde_api(valor):
    """Fecha (date) a partir del 'yyyy-MM-ddTHH:mm:ss' del backend."""
    if not valor:
        return None
    return parse_date(str(valor)[:10])


def fecha_a_api(fecha):
    if not fecha:
        return None
    return datetime.combine(fecha, time.min).isoformat()


class OrdenCompraForm(forms.Form):
    proveedor = forms.TypedChoiceField(
        coerce=int,
        error_messages=mensajes_obligatorio('Debes seleccionar un proveedor'),
        widget=forms.Select(attrs={'class': 'form-control'}),
    )
    numero_factura = forms.CharField(
        label='Número de factura',
        max_length=50,
        error_messages=mensajes_obligatorio('El número de factura es obligatorio'),
        widget=forms.TextInput(attrs={'class': 'form-control'}),
    )
    fecha_emision = forms.DateField(
        label='Fecha de emisión',
        error_messages=mensajes_obligatorio('La fecha de emisión es obligatoria', invalid='Fecha inválida'),
        widget=forms.DateInput(attrs={'class': 'form-control', 'type': 'date'}, format='%Y-%m-%d'),
    )
    fecha_entrega = forms.DateField(
        label='Fecha de entrega',
        required=False,
        error_messages={'invalid': 'Fecha inválida'},
        widget=forms.DateInput(attrs={'class': 'form-control', 'type': 'date'}, format='%Y-%m-%d'),
    )
    estado = forms.ChoiceField(
        choices=ESTADOS,
        initial=PENDIENTE,
        widget=forms.Select(attrs={'class': 'form-control'}),
    )
    observaciones = forms.CharField(
        required=False,
        max_length=500,
        error_messages={'max_length': 'Máximo 500 caracteres'},
        widget=forms.Textarea(attrs={'class': 'form-control', 'rows': 2}),
    )

    def __init__(self, *args, proveedores=(), **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['proveedor'].choices = [('', '---------')] + [
            (p['id'], p.get('nombre', '')) for p in proveedores
        ]
        self.fields['fecha_emision'].initial = timezone.localdate

    def clean_numero_factura(self):
        numero = self.cleaned_data.get('numero_factura', '').strip()
        if not numero:
            raise forms.ValidationError('El número de factura es obligatorio')
        return numero

    def clean(self):
        cleaned_data = super().clean()
        emision = cleaned_data.get('fecha_emision')
        entrega = cleaned_data.get('fecha_entrega')
        if emision and entrega and entrega < emision:
            self.add_error('fecha_entrega', 'La fecha de entrega no puede ser anterior a la emisión')
        return cleaned_data

    @classmethod
    def inicial_desde_api(cls, orden):
        return {
            'proveedor': orden.get('proveedorId'),
            'numero_factura': orden.get('numeroFactura'),
            'fecha_emision': fecha_desde_api(orden.get('fechaEmision')),
            'fecha_entrega': fecha_desde_api(orden.get('fechaEntrega')),
            'estado': orden.get('estado', PENDIENTE),
            'observaciones': orden.get('observaciones') or '',
        }


class DetalleOrdenForm(forms.Form):
    producto = forms.TypedChoiceField(
        coerce=int,
        error_messages=mensajes_obligatorio('Selecciona un producto'),
        widget=forms.Select(attrs={'class': 'form-control'}),
    )
    cantidad = forms.IntegerField(
        min_value=1,
        initial=1,
        error_messages=mensajes_obligatorio('La cantidad es obligatoria', min_value='La cantidad debe ser al menos 1'),
        widget=forms.NumberInput(attrs={'class': 'form-control', 'min': '1'}),
    )
    precio_unitario = forms.DecimalField(
        label='Precio unitario',
        min_value=0,
        max_digits=12,
        decimal_places=2,
        error_messages=mensajes_obligatorio('El precio es obligatorio', min_value='El precio no puede ser negativo'),
        widget=forms.NumberInput(attrs={'class': 'form-control', 'step': '0.01', 'min': '0'}),
    )
    descuento = forms.DecimalField(
        min_value=0,
        max_digits=12,
        decimal_places=2,
        required=False,
        initial=0,
        error_messages={'min_value': 'El descuento no puede ser negativo'},
        widget=forms.NumberInput(attrs={'class': 'form-control', 'step': '0.01', 'min': '0'}),
    )

    def __init__(self, *args, productos=(), existentes=(), **kwargs):
        """
        `existentes` son los detalles ya guardados de la orden: sus productos
        siguen disponibles aunque hoy estén inactivos o no se hayan podido
        cargar. Para líneas nuevas solo se ofrecen productos activos.
        """
        super().__init__(*args, **kwargs)
        todos = {p['id']: p for p in productos}
        self.productos = {pk: p for pk, p in todos.items() if p.get('estado', 'ACTIVO') == 'ACTIVO'}
        for detalle in existentes:
            producto_id = detalle.get('productoId')
            if producto_id is None or producto_id in self.productos:
                continue
            self.productos[producto_id] = todos.get(producto_id) or {
                'id': producto_id,
                'nombre': detalle.get('nombreProducto') or f'Producto {producto_id}',
            }
        self.fields['producto'].choices = [('', '---------')] + [
            (pk, self._etiqueta(p)) for pk, p in self.productos.items()
        ]

    @staticmethod
    def _etiqueta(producto):
        nombre = producto.get('nombre', '')
        return f"{nombre} ({producto['sku']})" if producto.get('sku') else nombre

    def nombre_producto(self, producto_id):
        producto = self.productos.get(producto_id)
        return producto.get('nombre') if producto else f'Producto {producto_id}'


class BaseDetalleOrdenFormSet(forms.BaseFormSet):

    def get_form_kwargs(self, index):
        kwargs = super().get_form_kwargs(index)
        # empty_form es la plantilla de las líneas nuevas
        if index is None:
            kwargs.pop('existentes', None)
        return kwargs

    def clean(self):
        if any(self.errors):
            return
        if not self.detalles():
            raise forms.ValidationError('Debes agregar al menos un detalle a la orden')

    def detalles(self):
        """Líneas completas, con el nombre del producto, listas para calcular totales."""
        lineas = []
        for form in self.forms:
            data = getattr(form, 'cleaned_data', None)
            if not data or data.get('DELETE') or data.get('producto') is None:
                continue
            lineas.append({
                'producto_id': data['producto'],
                'nombre_producto': form.nombre_producto(data['producto']),
                'cantidad': data['cantidad'],
                'precio_unitario': data['precio_unitario'],
                'descuento': data.get('descuento') or 0,
            })
        return lineas


DetalleOrdenFormSet = forms.formset_factory(
    DetalleOrdenForm,
    formset=BaseDetalleOrdenFormSet,
    extra=0,
    min_num=1,
    can_delete=True,
)


def detalles_iniciales(orden):
    return [
        {
            'producto': d.get('productoId'),
            'cantidad': d.get('cantidad'),
            'precio_unitario': d.get('precioUnitario'),
            'descuento': d.get('descuento') or 0,
        }
        for d in orden.get('detalles') or []
    ]


def orden_a_api(form, formset, estado=None, tasa_iva=None):
    """
    Arma el JSON de la orden con totales recalculados.
    `estado` reemplaza al elegido en el formulario (altas siempre PENDIENTE).
    """
    data = form.cleaned_data
    lineas, subtotal, iva, total = calcular_totales(formset.detalles(), tasa_iva)
    return {
        'proveedorId': data['proveedor'],
        'numeroFactura': data['numero_factura'],
        'fechaEmision': fecha_a_api(data['fecha_emision']),
        'fechaEntrega': fecha_a_api(data.get('fecha_entrega')),
        'subtotal': float(subtotal),
        'iva': float(iva),
        'total': float(total),
        'estado': estado or data['estado'],
        'observaciones': data.get('observaciones') or '',
        'detalles': [
            {
                'productoId': linea['producto_id'],
                'nombreProducto': linea['nombre_producto'],
                'cantidad': linea['cantidad'],
                'precioUnitario': float(linea['precio_unitario']),
                'descuento': float(linea['descuento']),
                'subtotal': float(linea['subtotal']),
            }
            for linea in lineas
        ],
    }
