"""
Log record identity

Every record carries ``SERVICE_NAME@DEPLOY_ENV:instance`` so lines from the
API workers and the expiry sweeper of several replicas can be told apart.
"""

from functools import lru_cache
import os
import threading


@lru_cache(maxsize=1)
def get_service_context() -> str:
    service_name = os.getenv('SERVICE_NAME', 'ferry-booking')
    deploy_env = os.getenv('DEPLOY_ENV', 'local_dev')
    instance_id = os.getenv('INSTANCE_ID') or str(os.getpid())
    return f'{service_name}@{deploy_env}:{instance_id}'


def get_thread_label() -> str:
    """``expiry-sweeper``, ``AnyIO worker thread`` or ``MainThread``"""
    return threading.current_thread().name
