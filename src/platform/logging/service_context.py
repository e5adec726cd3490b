"""
Service context extraction for log traceability.

Identifies the process emitting a log line when several API workers and
sweeper workers run side by side.
"""

import os
from functools import lru_cache
import socket


@lru_cache(maxsize=1)
def get_service_context() -> str:
    service_name = os.getenv('SERVICE_NAME', 'elite-slot')
    deploy_env = os.getenv('DEPLOY_ENV', 'local_dev')

    # Containers expose a short hostname; locally the PID is more useful
    hostname = os.getenv('HOSTNAME') or socket.gethostname()
    worker = hostname[:12] if deploy_env != 'local_dev' else str(os.getpid())

    return f'{service_name}@{deploy_env}:{worker}'
