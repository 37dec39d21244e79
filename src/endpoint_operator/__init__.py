from .logging_ import get_logger
from .config import Config, load_from_env
from .endpoint import Endpoint, Skip
from .changes import create_delta, delete_delta
from .resource import EndpointResource, Patch
from .framework import Framework
from .orchestrator import Operator

__version__ = '0.1.0'
__description__ = 'The endpoint-operator handles IPs inside of endpoints based on pod annotations.'


def setup_logging(name: str = __name__):
    """Returns a configured structured logger."""
    return get_logger(name)


__all__ = ['Operator', 'Framework', 'EndpointResource', 'Patch', 'Endpoint', 'Skip', 'Config', 'load_from_env',
           'setup_logging', 'create_delta', 'delete_delta']
