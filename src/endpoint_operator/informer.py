import random
import threading
from typing import Optional

from kubernetes import watch
from kubernetes.client.rest import ApiException

from .logging_ import get_logger

UPDATE_EVENTS = ('ADDED', 'MODIFIED')
DELETE_EVENTS = ('DELETED',)


class PodInformer:
    """Lists and watches pods, feeding every event to the framework.

    A watch stream is opened with timeout_seconds=resync_period; when it
    ends every pod is listed and dispatched again, which heals missed events.
    """
    def __init__(self, kube, framework, resync_period: int = 300, namespace: str = '', logger=None,
                 watch_factory=watch.Watch, max_backoff: float = 30.0):
        self.kube = kube
        self.framework = framework
        self.resync_period = resync_period
        self.namespace = namespace
        self.logger = logger or get_logger('pod-informer')
        self.watch_factory = watch_factory
        self.max_backoff = max_backoff
        self.resource_version: Optional[str] = None

    def start(self) -> int:
        """List pods and dispatch them as updates. Errors propagate to the caller."""
        return self.resync()

    def resync(self) -> int:
        pods = self.kube.list_pods(self.namespace)
        self.resource_version = getattr(getattr(pods, 'metadata', None), 'resource_version', None)
        items = pods.items or []
        self.logger.debug("Resyncing pods", pod_count=len(items), resource_version=self.resource_version)
        for pod in items:
            self.framework.process_update(pod)
        return len(items)

    def dispatch(self, event: dict):
        event_type = str(event.get('type', ''))
        pod = event.get('object')
        if pod is None:
            return
        metadata = getattr(pod, 'metadata', None)
        if metadata is not None and metadata.resource_version:
            self.resource_version = metadata.resource_version
        if event_type in UPDATE_EVENTS:
            self.framework.process_update(pod)
        elif event_type in DELETE_EVENTS:
            self.framework.process_delete(pod)
        elif event_type == 'ERROR':
            self.logger.warning("Watch returned an error event", event_object=str(pod))

    def run(self, stop: Optional[threading.Event] = None):
        """Watch until stop is set."""
        stop = stop or threading.Event()
        backoff_seconds = 1.0
        while not stop.is_set():
            watcher = self.watch_factory()
            list_fn, kwargs = self.kube.pod_list_call(self.namespace)
            try:
                self.logger.debug("Starting pod watch", resource_version=self.resource_version)
                for event in watcher.stream(list_fn, resource_version=self.resource_version,
                                            timeout_seconds=self.resync_period, **kwargs):
                    if stop.is_set():
                        watcher.stop()
                        break
                    self.dispatch(event)
                backoff_seconds = 1.0
                if not stop.is_set():
                    self.resync()
            except ApiException as e:
                if e.status == 410:
                    self.logger.warning("Watch resource version expired, re-listing")
                    self.resource_version = None
                    self._resync_or_backoff(stop, backoff_seconds)
                    continue
                self.logger.exception("Kubernetes API watch error", status=e.status)
                stop.wait(timeout=self._jitter(backoff_seconds))
                backoff_seconds = min(backoff_seconds * 2, self.max_backoff)
            except Exception:
                self.logger.exception("Unexpected watch error")
                stop.wait(timeout=self._jitter(backoff_seconds))
                backoff_seconds = min(backoff_seconds * 2, self.max_backoff)

    def _resync_or_backoff(self, stop: threading.Event, backoff_seconds: float):
        try:
            self.resync()
        except Exception:
            self.logger.exception("Failed to re-list pods")
            stop.wait(timeout=self._jitter(backoff_seconds))

    @staticmethod
    def _jitter(seconds: float) -> float:
        return seconds * (0.5 + random.random())
