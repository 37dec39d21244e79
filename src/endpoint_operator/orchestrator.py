import enum
import sys
import threading
from typing import Optional

from .config import load_from_env
from .exceptions import InvalidConfigError
from .framework import Framework
from .informer import PodInformer
from .kube import KubeClient, build_core_api
from .logging_ import get_logger
from .metrics import BOOT_RETRIES
from .resource import EndpointResource
from .utils import ExponentialBackoff, retry_notify


class OperatorState(enum.Enum):
    IDLE = 'idle'
    STARTING = 'starting'
    WATCHING = 'watching'
    FAILED = 'failed'
    TERMINATED = 'terminated'


class Operator:
    """Boots the pod informer and keeps it running for the process lifetime.

    Startup is retried with exponential backoff; once the backoff budget is
    used up the process exits with status 1 so the supervisor restarts it.
    """
    def __init__(self, informer: PodInformer, backoff: Optional[ExponentialBackoff] = None, logger=None,
                 stop: Optional[threading.Event] = None, kube: Optional[KubeClient] = None):
        if informer is None:
            raise InvalidConfigError('informer must not be empty')
        self.informer = informer
        self.kube = kube
        self.backoff = backoff or ExponentialBackoff(max_elapsed=300.0)
        self.logger = logger or get_logger('endpoint-operator')
        self.stop = stop or threading.Event()
        self.state = OperatorState.IDLE
        self._boot_lock = threading.Lock()
        self._booted = False

    @classmethod
    def from_config(cls, cfg=None, api=None, logger=None) -> 'Operator':
        cfg = (cfg or load_from_env()).validate()
        logger = logger or get_logger('endpoint-operator')
        kube = KubeClient(api if api is not None else build_core_api(cfg))
        resource = EndpointResource.from_config(kube, cfg, logger=logger)
        framework = Framework([resource], logger=logger, retries=cfg.resource_retries)
        informer = PodInformer(kube, framework, resync_period=cfg.resync_period, namespace=cfg.watch_namespace,
                               logger=logger)
        return cls(informer, backoff=ExponentialBackoff(max_elapsed=cfg.boot_max_elapsed), logger=logger, kube=kube)

    def boot(self):
        """Start the operator. Only the first call per instance does anything."""
        with self._boot_lock:
            if self._booted:
                return
            self._booted = True

        try:
            retry_notify(self._boot_with_error, self.backoff, notify=self._notify)
        except Exception as e:
            self.state = OperatorState.TERMINATED
            self.logger.error("Stop operator boot retries due to too many errors", error=str(e),
                              error_type=type(e).__name__)
            sys.exit(1)

        self.state = OperatorState.WATCHING
        self.informer.run(self.stop)

    def _boot_with_error(self):
        self.state = OperatorState.STARTING
        self.logger.debug("Starting list/watch")
        synced = self.informer.start()
        self.logger.info("Initial pod list processed", pod_count=synced)

    def _notify(self, e: Exception, delay: float):
        self.state = OperatorState.FAILED
        BOOT_RETRIES.inc()
        self.logger.warning("Retrying operator boot due to error", error=str(e), error_type=type(e).__name__,
                            retry_in=round(delay, 2))
