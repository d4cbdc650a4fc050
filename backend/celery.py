import logging
import os
from celery import Celery

# Establece el módulo de configuración de Django
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'backend.settings')

logger = logging.getLogger(__name__)

app = Celery('backend')

# Cargar configuración desde Django (prefijadas con CELERY_)
app.config_from_object('django.conf:settings', namespace='CELERY')

# Autodescubre tareas de todos los apps
app.autodiscover_tasks()


@app.task(bind=True)
def debug_task(self):
    logger.info('Request: %r', self.request)
