"""
Gunicorn Configuration for Production Deployment
Shift Coverage Planner

Planning sessions live in process memory, so the server runs a single worker
process and scales with threads. Every request for a session must reach the
process that created it.

Usage:
    gunicorn --config gunicorn_config.py wsgi:app
"""
import os

# Server Socket
bind = os.getenv('GUNICORN_BIND', '0.0.0.0:8000')
backlog = int(os.getenv('GUNICORN_BACKLOG', '2048'))

# Worker Processes
workers = 1
worker_class = 'gthread'
threads = int(os.getenv('GUNICORN_THREADS', '8'))
max_requests = 0  # recycling the worker would drop every open planning session
timeout = int(os.getenv('GUNICORN_TIMEOUT', '120'))
keepalive = int(os.getenv('GUNICORN_KEEPALIVE', '5'))

# Server Mechanics
daemon = False
pidfile = os.getenv('GUNICORN_PIDFILE', None)
user = os.getenv('GUNICORN_USER', None)
group = os.getenv('GUNICORN_GROUP', None)

# Logging
accesslog = os.getenv('GUNICORN_ACCESS_LOG', '-')  # '-' for stdout
errorlog = os.getenv('GUNICORN_ERROR_LOG', '-')    # '-' for stderr
loglevel = os.getenv('GUNICORN_LOG_LEVEL', 'info')
access_log_format = '%(h)s %(l)s %(u)s %(t)s "%(r)s" %(s)s %(b)s "%(f)s" "%(a)s" %(D)s'

# Process Naming
proc_name = 'shift_coverage_planner'


# Server Hooks
def on_starting(server):
    """Called just before the master process is initialized."""
    server.log.info("Starting Shift Coverage Planner")


def when_ready(server):
    """Called just after the server is started."""
    server.log.info("Shift Coverage Planner is ready. Listening on: %s", bind)


def worker_abort(worker):
    """Called when a worker receives the SIGABRT signal."""
    worker.log.info("Worker received SIGABRT; open planning sessions are lost")


# Security
limit_request_line = int(os.getenv('GUNICORN_LIMIT_REQUEST_LINE', '4096'))
limit_request_fields = int(os.getenv('GUNICORN_LIMIT_REQUEST_FIELDS', '100'))
limit_request_field_size = int(os.getenv('GUNICORN_LIMIT_REQUEST_FIELD_SIZE', '8190'))

# Graceful Timeout
graceful_timeout = int(os.getenv('GUNICORN_GRACEFUL_TIMEOUT', '30'))

# Environment Variables
raw_env = [
    f"FLASK_ENV={os.getenv('FLASK_ENV', 'production')}",
]
