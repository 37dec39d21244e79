from typing import Optional, Union

from .annotations import IP_ANNOTATION, SERVICE_ANNOTATION, SKIP_LABEL, pod_metadata, read_annotations, should_skip
from .endpoint import Endpoint, Skip
from .exceptions import MissingAnnotationError
from .logging_ import get_logger


class StateResolver:
    """Resolves the current and desired Endpoint for a pod."""
    def __init__(self, kube, ip_annotation: str = IP_ANNOTATION, service_annotation: str = SERVICE_ANNOTATION,
                 skip_label: str = SKIP_LABEL, logger=None):
        self.kube = kube
        self.ip_annotation = ip_annotation
        self.service_annotation = service_annotation
        self.skip_label = skip_label
        self.logger = logger or get_logger('state-resolver')

    def get_current_state(self, pod) -> Union[Endpoint, Skip, None]:
        """Read the live Endpoints object for the service the pod declares.

        Returns Skip when the pod is not annotated (or opted out through the
        skip label) and None when the Endpoints object does not exist yet.
        """
        metadata = pod_metadata(pod)
        namespace = metadata.namespace
        try:
            _, service = read_annotations(pod, self.ip_annotation, self.service_annotation)
        except MissingAnnotationError as e:
            self.logger.debug("Canceling reconciliation for pod", pod=metadata.name, namespace=namespace, reason=str(e))
            return Skip(str(e))

        if should_skip(pod, self.skip_label):
            self.logger.debug("Canceling reconciliation for pod due to skip label", pod=metadata.name,
                              namespace=namespace, label=self.skip_label)
            return Skip(f"label '{self.skip_label}' is set")

        live = self.kube.read_endpoints(namespace, service)
        if live is None:
            return None
        return Endpoint.of(service, namespace, live_ips(live))

    def get_desired_state(self, pod) -> Endpoint:
        metadata = pod_metadata(pod)
        ip, service = read_annotations(pod, self.ip_annotation, self.service_annotation)
        return Endpoint.of(service, metadata.namespace, [ip])


def live_ips(endpoints) -> set:
    """Addresses across every subset of a V1Endpoints, deduplicated."""
    ips = set()
    for subset in endpoints.subsets or []:
        for address in subset.addresses or []:
            if address.ip:
                ips.add(address.ip)
    return ips


def current_or_empty(current: Optional[Endpoint], desired: Endpoint) -> Endpoint:
    """Treat a missing Endpoints object as one with no addresses."""
    if current is None:
        return Endpoint.of(desired.service_name, desired.service_namespace)
    return current
