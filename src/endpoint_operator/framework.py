from typing import List

from .annotations import pod_metadata
from .endpoint import Skip
from .exceptions import EndpointOperatorError, InvalidConfigError, RETRYABLE_ERRORS
from .logging_ import get_logger
from .metrics import RECONCILE_DURATION, RECONCILE_RETRIES, RECONCILE_TOTAL
from .utils import retry_with_backoff

RESOURCE_RETRIES = 3


class Framework:
    """Runs reconciliation passes of every resource for pod events.

    A pass reads current and desired state, computes a patch and applies
    it. Passes failing with a cluster API error are re-run from scratch,
    so each attempt works on freshly read state.
    """
    def __init__(self, resources: List, logger=None, retries: int = RESOURCE_RETRIES, retry_delay: float = 0.2):
        if not resources:
            raise InvalidConfigError('resources must not be empty')
        if retries < 1:
            raise InvalidConfigError('retries must be at least 1')
        self.resources = resources
        self.retries = retries
        self.retry_delay = retry_delay
        self.logger = logger or get_logger('framework')

    def process_update(self, pod) -> bool:
        return self._process('update', pod, self._update_pass)

    def process_delete(self, pod) -> bool:
        return self._process('delete', pod, self._delete_pass)

    def _process(self, event: str, pod, run_pass) -> bool:
        try:
            metadata = pod_metadata(pod)
        except EndpointOperatorError as e:
            self.logger.error("Reconciliation failed", event=event, error=str(e), error_type=type(e).__name__)
            for resource in self.resources:
                RECONCILE_TOTAL.labels(resource.name, event, 'error').inc()
            return False

        ok = True
        for resource in self.resources:
            log = self.logger.bind(resource=resource.name, event=event, pod=metadata.name, namespace=metadata.namespace)

            def notify(e, attempt, log=log, resource=resource):
                RECONCILE_RETRIES.labels(resource.name, event, str(e.is_conflict).lower()).inc()
                log.warning("Retrying reconciliation", attempt=attempt, conflict=e.is_conflict, error=str(e),
                            error_type=type(e).__name__)

            attempt_pass = retry_with_backoff(attempts=self.retries, delay=self.retry_delay,
                                              retry_on=RETRYABLE_ERRORS, notify=notify)(run_pass)
            with RECONCILE_DURATION.labels(resource.name, event).time():
                try:
                    applied = attempt_pass(resource, pod, log)
                except EndpointOperatorError as e:
                    log.error("Reconciliation failed", error=str(e), error_type=type(e).__name__)
                    RECONCILE_TOTAL.labels(resource.name, event, 'error').inc()
                    ok = False
                    continue
            RECONCILE_TOTAL.labels(resource.name, event, 'changed' if applied else 'unchanged').inc()
            log.debug("Reconciliation finished", changed=applied)
        return ok

    def _update_pass(self, resource, pod, log) -> bool:
        current = resource.get_current_state(pod)
        if isinstance(current, Skip):
            log.debug("Skipping pod", reason=current.reason)
            return False
        desired = resource.get_desired_state(pod)
        patch = resource.new_update_patch(pod, current, desired)
        if patch.is_empty():
            return False
        return resource.apply_patch(pod, patch)

    def _delete_pass(self, resource, pod, log) -> bool:
        current = resource.get_current_state(pod)
        if isinstance(current, Skip):
            log.debug("Skipping pod", reason=current.reason)
            return False
        if current is None:
            return False
        desired = resource.get_desired_state(pod)
        patch = resource.new_delete_patch(pod, current, desired)
        if patch.is_empty():
            return False
        return resource.apply_patch(pod, patch)
