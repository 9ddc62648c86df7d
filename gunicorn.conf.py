"""
Gunicorn configuration for StatClash application.
Optimized for Socket.IO with eventlet workers.
"""

import sys
import logging
import yaml
from config_factory import load_config
from src.card_provider import YamlCardProvider, ContentValidationError

# Load configuration (renamed to avoid conflicts with gunicorn's internal 'config')
app_config = load_config()


def on_starting(server):
    """
    Server hook that runs when the master process is starting.
    Validates the card deck before workers are forked when the YAML source is used.
    """
    logger = logging.getLogger(__name__)
    if app_config.card_source != 'yaml':
        logger.info(f"Card source is {app_config.card_source}, skipping deck validation")
        return

    logger.info(f"Validating {app_config.cards_file} before starting workers...")
    try:
        provider = YamlCardProvider(app_config.cards_file)
        provider.load_cards_from_yaml()
        logger.info(f"Successfully validated and loaded {provider.get_card_count()} cards.")
    except (FileNotFoundError, yaml.YAMLError, ContentValidationError) as e:
        logger.critical(f"FATAL: Card file validation failed. Server shutting down. Error: {e}")
        sys.exit(1)


# Server socket
bind = f"{app_config.host}:{app_config.port}"
backlog = 2048

# Worker processes
workers = 1  # Must be 1 for Socket.IO with eventlet
worker_class = "eventlet"
worker_connections = app_config.worker_connections
timeout = app_config.timeout
keepalive = app_config.keepalive

# Restart workers after this many requests, to help prevent memory leaks
max_requests = 2000
max_requests_jitter = 100

# Logging
accesslog = "-"
errorlog = "-"
loglevel = app_config.log_level
access_log_format = '%(h)s %(l)s %(u)s %(t)s "%(r)s" %(s)s %(b)s "%(f)s" "%(a)s"'

# Process naming
proc_name = "statclash"

# Server mechanics
preload_app = False  # Don't preload for Socket.IO
daemon = False
pidfile = None
user = None
group = None
tmp_upload_dir = None

# SSL (for production)
keyfile = None
certfile = None
