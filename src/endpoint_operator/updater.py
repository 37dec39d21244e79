from typing import List

from kubernetes import client

from .endpoint import Endpoint
from .logging_ import get_logger
from .state import live_ips


def build_addresses(ips) -> List[client.V1EndpointAddress]:
    return [client.V1EndpointAddress(ip=ip) for ip in sorted(ips)]


def service_ports(service) -> List[client.CoreV1EndpointPort]:
    """Endpoint ports mirroring the ports a service exposes."""
    ports = []
    for port in (service.spec.ports or []) if service.spec else []:
        ports.append(client.CoreV1EndpointPort(name=port.name, port=port.port, protocol=port.protocol))
    return ports


class EndpointUpdater:
    """Applies create and delete changes to live Endpoints objects.

    Every call re-reads the object right before writing it.
    """
    def __init__(self, kube_client, logger=None):
        self.kube = kube_client
        self.logger = logger or get_logger('endpoint-updater')

    def build_endpoints(self, endpoint: Endpoint, service) -> client.V1Endpoints:
        return client.V1Endpoints(
            api_version='v1',
            kind='Endpoints',
            metadata=client.V1ObjectMeta(name=endpoint.service_name, namespace=endpoint.service_namespace),
            subsets=[client.V1EndpointSubset(ports=service_ports(service), addresses=build_addresses(endpoint.ips))],
        )

    def apply_create(self, change: Endpoint) -> bool:
        """Make the Endpoints object hold change.ips.

        Addresses found in the freshly read object are kept next to the
        change, so registrations made since the current state was read
        survive the write. Returns True when a write was issued.
        """
        if not change.ips:
            return False
        namespace, name = change.service_namespace, change.service_name

        live = self.kube.read_endpoints(namespace, name)
        if live is None:
            service = self.kube.read_service(namespace, name)
            body = self.build_endpoints(change, service)
            self.kube.create_endpoints(namespace, body)
            self.logger.info("Endpoints created", service=name, namespace=namespace, ips=change.sorted_ips())
            return True

        ips = live_ips(live) | change.ips
        addresses = build_addresses(ips)
        if not live.subsets:
            service = self.kube.read_service(namespace, name)
            live.subsets = [client.V1EndpointSubset(ports=service_ports(service), addresses=addresses)]
        for subset in live.subsets:
            subset.addresses = addresses
        self.kube.replace_endpoints(namespace, name, live)
        self.logger.info("Endpoints updated", service=name, namespace=namespace, ips=sorted(ips),
                         endpoint_count=len(ips))
        return True

    def apply_delete(self, change: Endpoint) -> bool:
        """Remove change.ips from the Endpoints object.

        The object is deleted when no address would remain. Returns True
        when a write was issued.
        """
        if change.is_zero() or not change.ips:
            return False
        namespace, name = change.service_namespace, change.service_name

        live = self.kube.read_endpoints(namespace, name)
        if live is None:
            self.logger.debug("Endpoints already gone", service=name, namespace=namespace)
            return False

        current = live_ips(live)
        remaining = current - change.ips
        if remaining == current:
            self.logger.debug("Nothing to remove", service=name, namespace=namespace, removed=change.sorted_ips())
            return False
        if not remaining:
            self.kube.delete_endpoints(namespace, name)
            self.logger.info("Endpoints deleted", service=name, namespace=namespace, removed=change.sorted_ips())
            return True

        addresses = build_addresses(remaining)
        for subset in live.subsets or []:
            subset.addresses = addresses
        self.kube.replace_endpoints(namespace, name, live)
        self.logger.info("Endpoints updated", service=name, namespace=namespace, removed=change.sorted_ips(),
                         ips=sorted(remaining), endpoint_count=len(remaining))
        return True
