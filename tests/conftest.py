from unittest.mock import Mock

import pytest
from kubernetes import client
from kubernetes.client.rest import ApiException

from endpoint_operator.annotations import IP_ANNOTATION, SERVICE_ANNOTATION
from endpoint_operator.kube import KubeClient

MUTATIONS = ('create_namespaced_endpoints', 'replace_namespaced_endpoints', 'delete_namespaced_endpoints')


class FakeCoreV1Api:
    """In-memory stand-in for the CoreV1Api calls the operator makes.

    Objects are stored as plain data and rebuilt on every read, so callers
    never share model instances with the store. `fail` maps a method name
    to a list of exceptions raised (and consumed) on the next calls.
    """

    def __init__(self):
        self.endpoints = {}
        self.services = {}
        self.pods = []
        self.calls = []
        self.fail = {}

    def _call(self, method, *args):
        self.calls.append((method,) + args)
        errors = self.fail.get(method)
        if errors:
            raise errors.pop(0)

    @property
    def mutations(self):
        return [c for c in self.calls if c[0] in MUTATIONS]

    # setup helpers

    def add_service(self, namespace, name, ports=((None, 1234, 'TCP'),)):
        self.services[(namespace, name)] = list(ports)

    def add_endpoints(self, namespace, name, subsets):
        """subsets: list of (ports, ips) tuples."""
        self.endpoints[(namespace, name)] = [{'ports': list(p), 'ips': list(ips)} for p, ips in subsets]

    def ips(self, namespace, name):
        stored = self.endpoints.get((namespace, name))
        if stored is None:
            return None
        return [ip for subset in stored for ip in subset['ips']]

    # CoreV1Api surface

    def read_namespaced_endpoints(self, name, namespace):
        self._call('read_namespaced_endpoints', namespace, name)
        stored = self.endpoints.get((namespace, name))
        if stored is None:
            raise ApiException(status=404, reason='Not Found')
        return client.V1Endpoints(
            api_version='v1',
            kind='Endpoints',
            metadata=client.V1ObjectMeta(name=name, namespace=namespace, resource_version='1'),
            subsets=[
                client.V1EndpointSubset(
                    ports=[client.CoreV1EndpointPort(name=n, port=p, protocol=proto) for n, p, proto in s['ports']],
                    addresses=[client.V1EndpointAddress(ip=ip) for ip in s['ips']],
                )
                for s in stored
            ],
        )

    def read_namespaced_service(self, name, namespace):
        self._call('read_namespaced_service', namespace, name)
        ports = self.services.get((namespace, name))
        if ports is None:
            raise ApiException(status=404, reason='Not Found')
        return client.V1Service(
            metadata=client.V1ObjectMeta(name=name, namespace=namespace),
            spec=client.V1ServiceSpec(ports=[client.V1ServicePort(name=n, port=p, protocol=proto)
                                             for n, p, proto in ports]),
        )

    def _store(self, namespace, name, body):
        self.endpoints[(namespace, name)] = [
            {
                'ports': [(p.name, p.port, p.protocol) for p in (s.ports or [])],
                'ips': [a.ip for a in (s.addresses or [])],
            }
            for s in (body.subsets or [])
        ]

    def create_namespaced_endpoints(self, namespace, body):
        self._call('create_namespaced_endpoints', namespace, body.metadata.name)
        if (namespace, body.metadata.name) in self.endpoints:
            raise ApiException(status=409, reason='AlreadyExists')
        self._store(namespace, body.metadata.name, body)
        return body

    def replace_namespaced_endpoints(self, name, namespace, body):
        self._call('replace_namespaced_endpoints', namespace, name)
        if (namespace, name) not in self.endpoints:
            raise ApiException(status=404, reason='Not Found')
        self._store(namespace, name, body)
        return body

    def delete_namespaced_endpoints(self, name, namespace):
        self._call('delete_namespaced_endpoints', namespace, name)
        if self.endpoints.pop((namespace, name), None) is None:
            raise ApiException(status=404, reason='Not Found')

    def get_api_resources(self):
        self._call('get_api_resources')
        return client.V1APIResourceList(group_version='v1', resources=[])

    def list_pod_for_all_namespaces(self, **kwargs):
        self._call('list_pod_for_all_namespaces')
        return client.V1PodList(items=list(self.pods), metadata=client.V1ListMeta(resource_version='100'))

    def list_namespaced_pod(self, namespace, **kwargs):
        self._call('list_namespaced_pod', namespace)
        items = [p for p in self.pods if p.metadata.namespace == namespace]
        return client.V1PodList(items=items, metadata=client.V1ListMeta(resource_version='100'))


def make_pod(name='pod-a', namespace='TestNamespace', ip='1.1.1.1', service='TestService', labels=None,
             annotations=None):
    if annotations is None:
        annotations = {}
        if ip is not None:
            annotations[IP_ANNOTATION] = ip
        if service is not None:
            annotations[SERVICE_ANNOTATION] = service
    return client.V1Pod(metadata=client.V1ObjectMeta(name=name, namespace=namespace, annotations=annotations,
                                                     labels=labels or {}, resource_version='5'))


@pytest.fixture
def api():
    return FakeCoreV1Api()


@pytest.fixture
def kube(api):
    return KubeClient(api)


@pytest.fixture
def logger():
    return Mock()
