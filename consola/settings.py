"""
Configuración de la Consola de Inventario.

La consola no guarda datos propios: todo se consulta a los microservicios
REST configurados abajo. Los valores se leen del entorno (archivo .env).
"""
import os
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent

load_dotenv(BASE_DIR / '.env')

# SECURITY WARNING: keep the secret key used in production secret!
SECRET_KEY = os.getenv('SECRET_KEY', 'django-insecure-consola-inventario-cambiar-en-produccion')

# SECURITY WARNING: don't run with debug turned on in production!
DEBUG = os.getenv('DEBUG', 'True').lower() in ('1', 'true', 'yes')

ALLOWED_HOSTS = [h.strip() for h in os.getenv('ALLOWED_HOSTS', '*').split(',') if h.strip()]

INSTALLED_APPS = [
    'django.contrib.messages',
    'django.contrib.staticfiles',
    'django.contrib.humanize',
    'consola',
    'inventario',
    'compras',
    'reportes',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
    'consola.middleware.ErrorBackendMiddleware',
]

ROOT_URLCONF = 'consola.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [BASE_DIR / 'templates'],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.debug',
                'django.template.context_processors.request',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

WSGI_APPLICATION = 'consola.wsgi.application'

# Sin base de datos: los mensajes viajan en una cookie firmada
DATABASES = {}
MESSAGE_STORAGE = 'django.contrib.messages.storage.cookie.CookieStorage'

# Microservicios REST
PRODUCTOS_API_URL = os.getenv('PRODUCTOS_API_URL', 'http://localhost:8081/api/productos')
PROVEEDORES_API_URL = os.getenv('PROVEEDORES_API_URL', 'http://localhost:8082/api/proveedores')
INVENTARIO_API_URL = os.getenv('INVENTARIO_API_URL', 'http://localhost:8083/api/inventario')
INVENTARIO_BODEGAS_API_URL = os.getenv('INVENTARIO_BODEGAS_API_URL', 'http://localhost:8083/api/bodegas')
ORDENES_API_URL = os.getenv('ORDENES_API_URL', 'http://localhost:8084/api/ordenes-compra')
BODEGAS_API_URL = os.getenv('BODEGAS_API_URL', 'http://localhost:8085/api/bodegas')

# Segundos de espera por cada llamada a un microservicio
API_TIMEOUT = float(os.getenv('API_TIMEOUT', '10'))

# Tarifa de IVA aplicada a las órdenes de compra
IVA_TASA = os.getenv('IVA_TASA', '0.12')

# Internacionalización
LANGUAGE_CODE = 'es-ec'
TIME_ZONE = 'America/Guayaquil'
USE_I18N = True
USE_TZ = True

STATIC_URL = '/static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'

# Logging
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'simple': {
            'format': '[{asctime}] {levelname} {name}: {message}',
            'style': '{',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'simple',
        },
    },
    'loggers': {
        'django': {
            'handlers': ['console'],
            'level': 'INFO',
            'propagate': False,
        },
        'consola': {
            'handlers': ['console'],
            'level': LOG_LEVEL,
            'propagate': False,
        },
        'inventario': {
            'handlers': ['console'],
            'level': LOG_LEVEL,
            'propagate': False,
        },
        'compras': {
            'handlers': ['console'],
            'level': LOG_LEVEL,
            'propagate': False,
        },
        'reportes': {
            'handlers': ['console'],
            'level': LOG_LEVEL,
            'propagate': False,
        },
    },
}
