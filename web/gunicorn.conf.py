import os


def cpu():
    return max(1, (os.cpu_count() or 1))


wsgi_app = "config.wsgi:application"
bind = f"0.0.0.0:{os.getenv('PORT', '8000')}"

# Checkout is I/O bound (database, optional catalog calls): threaded workers
workers = int(os.getenv("WEB_WORKERS", str(min(max(2, cpu() * 2), 8))))
worker_class = "gthread"
threads = int(os.getenv("GTHREADS", "4"))

timeout = int(os.getenv("GUNI_TIMEOUT", "60"))
graceful_timeout = int(os.getenv("GUNI_GRACEFUL_TIMEOUT", "30"))
keepalive = int(os.getenv("GUNI_KEEPALIVE", "5"))

# Recycle workers periodically
preload_app = True
max_requests = int(os.getenv("GUNI_MAX_REQUESTS", "2000"))
max_requests_jitter = int(os.getenv("GUNI_MAX_REQUESTS_JITTER", "200"))

# Application logs are JSON via settings.LOGGING; gunicorn writes its own to stdout
accesslog = None
errorlog = "-"
loglevel = os.getenv("GUNI_LOGLEVEL", "info")
