from typing import Tuple

from .exceptions import MissingAnnotationError, WrongTypeError

IP_ANNOTATION = 'endpoint.kvm.giantswarm.io/ip'
SERVICE_ANNOTATION = 'endpoint.kvm.giantswarm.io/service'
SKIP_LABEL = 'kvm-operator.giantswarm.io/pod-watcher'


def pod_metadata(pod):
    """Return the pod's metadata, raising WrongTypeError for anything that is not pod-shaped."""
    metadata = getattr(pod, 'metadata', None)
    if metadata is None:
        raise WrongTypeError('V1Pod', pod)
    return metadata


def read_annotations(pod, ip_key: str = IP_ANNOTATION, service_key: str = SERVICE_ANNOTATION) -> Tuple[str, str]:
    """Return the (ip, service) pair a pod declares.

    Absent keys and empty values both raise MissingAnnotationError.
    """
    metadata = pod_metadata(pod)
    annotations = metadata.annotations or {}
    ip = (annotations.get(ip_key) or '').strip()
    if not ip:
        raise MissingAnnotationError(ip_key, pod=metadata.name)
    service = (annotations.get(service_key) or '').strip()
    if not service:
        raise MissingAnnotationError(service_key, pod=metadata.name)
    return ip, service


def should_skip(pod, label: str = SKIP_LABEL) -> bool:
    """True when the pod opted out of reconciliation through the skip label."""
    if not label:
        return False
    labels = pod_metadata(pod).labels or {}
    return label in labels
