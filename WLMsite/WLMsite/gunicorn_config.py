# WLMsite/gunicorn_config.py
import os

bind = f"0.0.0.0:{os.environ.get('PORT', '8000')}"

# Timeout settings
# ต้องมากกว่า AGGREGATION_TIMEOUT เพื่อให้ view ตอบ error เองก่อน worker ถูก kill
timeout = int(os.environ.get('GUNICORN_TIMEOUT', '60'))
graceful_timeout = timeout
keepalive = 5

# Worker settings
workers = int(os.environ.get('WEB_CONCURRENCY', '2'))
worker_class = 'sync'
max_requests = 1000
max_requests_jitter = 50

preload_app = True

# Logging
accesslog = '-'
errorlog = '-'
loglevel = os.environ.get('GUNICORN_LOG_LEVEL', 'info')


def when_ready(server):
    # pandas/numpy: one BLAS thread per worker
    os.environ['OPENBLAS_NUM_THREADS'] = '1'
    os.environ['MKL_NUM_THREADS'] = '1'
    os.environ['OMP_NUM_THREADS'] = '1'
