# inventario/forms.py
import re

from django import forms

ESTADOS = [
    ('ACTIVO', 'Activo'),
    ('INACTIVO', 'Inactivo'),
]

CATEGORIAS = [
    ('ELECTRÓNICA', 'Electrónica'),
    ('ALIMENTOS', 'Alimentos'),
    ('ROPA', 'Ropa'),
    ('HOGAR', 'Hogar'),
    ('DEPORTES', 'Deportes'),
    ('OTROS', 'Otros'),
]

SKU_RE = re.compile(r'^[A-Za-z0-9_-]+$')
TELEFONO_RE = re.compile(r'^[0-9]{7,15}$')


def mensajes_obligatorio(mensaje, **extra):
    errores = {'required': mensaje}
    errores.update(extra)
    return errores


class FormularioAPI(forms.Form):
    """
    Formulario cuyos datos viajan a un microservicio.

    `campos_api` relaciona cada campo del formulario con su clave JSON.
    """
    campos_api = {}

    @classmethod
    def inicial_desde_api(cls, data):
        """Valores iniciales del formulario a partir del JSON del backend."""
        return {campo: data.get(clave) for campo, clave in cls.campos_api.items() if data.get(clave) is not None}

    def a_api(self):
        """Diccionario listo para enviar al backend (requiere is_valid())."""
        return {clave: self._valor_api(self.cleaned_data.get(campo)) for campo, clave in self.campos_api.items()}

    @staticmethod
    def _valor_api(valor):
        # Decimal no es serializable a JSON
        if hasattr(valor, 'as_tuple'):
            return float(valor)
        return valor


class ProductoForm(FormularioAPI):
    campos_api = {
        'nombre': 'nombre',
        'sku': 'sku',
        'descripcion': 'descripcion',
        'precio': 'precio',
        'categoria': 'categoria',
        'estado': 'estado',
    }

    nombre = forms.CharField(
        label='Nombre del Producto',
        min_length=3,
        max_length=100,
        error_messages=mensajes_obligatorio(
            'El nombre es obligatorio',
            min_length='Mínimo 3 caracteres',
            max_length='Máximo 100 caracteres',
        ),
        widget=forms.TextInput(attrs={'class': 'form-control', 'placeholder': 'Nombre del producto'}),
    )
    sku = forms.CharField(
        label='SKU',
        min_length=3,
        max_length=50,
        help_text='Código único del producto',
        error_messages=mensajes_obligatorio('El SKU es obligatorio', min_length='Mínimo 3 caracteres'),
        widget=forms.TextInput(attrs={'class': 'form-control', 'placeholder': 'Ej: PROD-001'}),
    )
    descripcion = forms.CharField(
        label='Descripción',
        required=False,
        widget=forms.Textarea(attrs={'class': 'form-control', 'rows': 3, 'placeholder': 'Descripción detallada...'}),
    )
    precio = forms.DecimalField(
        label='Precio',
        max_digits=12,
        decimal_places=2,
        error_messages=mensajes_obligatorio('El precio es obligatorio'),
        widget=forms.NumberInput(attrs={'class': 'form-control', 'step': '0.01', 'placeholder': '0.00'}),
    )
    categoria = forms.ChoiceField(
        label='Categoría',
        choices=[('', '---------')] + CATEGORIAS,
        error_messages=mensajes_obligatorio('La categoría es obligatoria'),
        widget=forms.Select(attrs={'class': 'form-control'}),
    )
    estado = forms.ChoiceField(
        label='Estado',
        choices=ESTADOS,
        initial='ACTIVO',
        widget=forms.Select(attrs={'class': 'form-control'}),
    )

    def clean_sku(self):
        sku = self.cleaned_data.get('sku', '').strip()
        if not SKU_RE.match(sku):
            raise forms.ValidationError("Solo letras, números, guiones y guiones bajos")
        return sku

    def clean_precio(self):
        precio = self.cleaned_data.get('precio')
        if precio is not None and precio < 0:
            raise forms.ValidationError("El precio no puede ser negativo")
        return precio


class ProveedorForm(FormularioAPI):
    campos_api = {
        'nombre': 'nombre',
        'nit_ruc': 'nitRuc',
        'contacto': 'contacto',
        'email': 'email',
        'telefono': 'telefono',
        'direccion': 'direccion',
        'estado': 'estado',
        'observaciones': 'observaciones',
    }

    nombre = forms.CharField(
        max_length=100,
        error_messages=mensajes_obligatorio('El nombre es obligatorio', max_length='Máximo 100 caracteres'),
        widget=forms.TextInput(attrs={'class': 'form-control'}),
    )
    nit_ruc = forms.CharField(
        label='NIT/RUC',
        max_length=20,
        error_messages=mensajes_obligatorio('El NIT/RUC es obligatorio', max_length='Máximo 20 caracteres'),
        widget=forms.TextInput(attrs={'class': 'form-control'}),
    )
    contacto = forms.CharField(
        max_length=100,
        error_messages=mensajes_obligatorio('El contacto es obligatorio', max_length='Máximo 100 caracteres'),
        widget=forms.TextInput(attrs={'class': 'form-control'}),
    )
    email = forms.EmailField(
        max_length=100,
        error_messages=mensajes_obligatorio(
            'El email es obligatorio',
            invalid='Formato de email inválido',
            max_length='Máximo 100 caracteres',
        ),
        widget=forms.EmailInput(attrs={'class': 'form-control'}),
    )
    telefono = forms.CharField(
        label='Teléfono',
        error_messages=mensajes_obligatorio('El teléfono es obligatorio'),
        widget=forms.TextInput(attrs={'class': 'form-control'}),
    )
    direccion = forms.CharField(
        label='Dirección',
        max_length=200,
        error_messages=mensajes_obligatorio('La dirección es obligatoria', max_length='Máximo 200 caracteres'),
        widget=forms.TextInput(attrs={'class': 'form-control'}),
    )
    estado = forms.ChoiceField(
        choices=ESTADOS,
        initial='ACTIVO',
        error_messages=mensajes_obligatorio('El estado es obligatorio'),
        widget=forms.Select(attrs={'class': 'form-control'}),
    )
    observaciones = forms.CharField(
        required=False,
        max_length=500,
        error_messages={'max_length': 'Máximo 500 caracteres'},
        widget=forms.Textarea(attrs={'class': 'form-control', 'rows': 3}),
    )

    def clean_telefono(self):
        telefono = self.cleaned_data.get('telefono', '').strip()
        if not TELEFONO_RE.match(telefono):
            raise forms.ValidationError("Solo números (7-15 dígitos)")
        return telefono


class BodegaForm(FormularioAPI):
    campos_api = {
        'nombre': 'nombre',
        'direccion': 'direccion',
        'capacidad': 'capacidad',
        'estado': 'estado',
    }

    nombre = forms.CharField(
        max_length=100,
        error_messages=mensajes_obligatorio('El nombre es obligatorio', max_length='Máximo 100 caracteres'),
        widget=forms.TextInput(attrs={'class': 'form-control'}),
    )
    direccion = forms.CharField(
        label='Dirección',
        max_length=200,
        error_messages=mensajes_obligatorio('La dirección es obligatoria', max_length='Máximo 200 caracteres'),
        widget=forms.TextInput(attrs={'class': 'form-control'}),
    )
    capacidad = forms.IntegerField(
        error_messages=mensajes_obligatorio('La capacidad debe ser mayor a 0'),
        widget=forms.NumberInput(attrs={'class': 'form-control', 'min': '1'}),
    )
    estado = forms.ChoiceField(
        choices=ESTADOS,
        initial='ACTIVO',
        required=False,
        widget=forms.Select(attrs={'class': 'form-control'}),
    )

    def clean_capacidad(self):
        capacidad = self.cleaned_data.get('capacidad')
        if capacidad is not None and capacidad <= 0:
            raise forms.ValidationError("La capacidad debe ser mayor a 0")
        return capacidad


class InventarioForm(FormularioAPI):
    """Alta de un registro de stock: un producto en una bodega."""
    campos_api = {
        'producto': 'productoId',
        'bodega': 'bodegaId',
        'cantidad': 'cantidad',
        'cantidad_minima': 'cantidadMinima',
    }

    producto = forms.TypedChoiceField(
        coerce=int,
        error_messages=mensajes_obligatorio('Debe seleccionar un producto'),
        widget=forms.Select(attrs={'class': 'form-control'}),
    )
    bodega = forms.TypedChoiceField(
        coerce=int,
        error_messages=mensajes_obligatorio('Debe seleccionar una bodega'),
        widget=forms.Select(attrs={'class': 'form-control'}),
    )
    cantidad = forms.IntegerField(
        min_value=0,
        initial=0,
        error_messages=mensajes_obligatorio('La cantidad es obligatoria', min_value='La cantidad no puede ser negativa'),
        widget=forms.NumberInput(attrs={'class': 'form-control', 'min': '0'}),
    )
    cantidad_minima = forms.IntegerField(
        label='Cantidad mínima',
        min_value=0,
        initial=10,
        error_messages=mensajes_obligatorio(
            'La cantidad mínima es obligatoria',
            min_value='La cantidad mínima no puede ser negativa',
        ),
        widget=forms.NumberInput(attrs={'class': 'form-control', 'min': '0'}),
    )

    def __init__(self, *args, productos=(), bodegas=(), **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['producto'].choices = [('', '---------')] + [
            (p['id'], f"{p.get('nombre', '')} ({p.get('sku', '')})") for p in productos
        ]
        self.fields['bodega'].choices = [('', '---------')] + [
            (b['id'], b.get('nombre', '')) for b in bodegas
        ]


class AjusteStockForm(forms.Form):
    nueva_cantidad = forms.IntegerField(
        label='Nueva cantidad',
        min_value=0,
        error_messages=mensajes_obligatorio('La cantidad es obligatoria', min_value='La cantidad no puede ser negativa'),
        widget=forms.NumberInput(attrs={'class': 'form-control', 'min': '0'}),
    )
