"""
Gunicorn configuration for the K-Dle API.

Run with: gunicorn kdle.main:app -c gunicorn.conf.py

Env vars that override defaults:
  PORT     - TCP port to bind
  WORKERS  - number of worker processes (default: 1)
"""
import os

bind = f"0.0.0.0:{os.environ.get('PORT', '8000')}"

# Rate limit counters live in process memory, so more workers means
# looser per-client limits.
workers = int(os.environ.get("WORKERS", "1"))

worker_class = "uvicorn.workers.UvicornWorker"

keepalive = 5

# Catalog lookups can be slow; leave room for the token fetch plus a search.
timeout = 60

loglevel = os.environ.get("LOG_LEVEL", "info").lower()
accesslog = "-"
errorlog = "-"
access_log_format = '%(h)s "%(r)s" %(s)s %(b)sB %(D)sus'

graceful_timeout = 30
