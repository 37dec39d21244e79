from typing import Optional

from kubernetes import client, config
from kubernetes.client.rest import ApiException

from .exceptions import ClusterAPIError, ServiceLookupError


def build_core_api(cfg) -> client.CoreV1Api:
    """Build a CoreV1Api from the operator's connection settings.

    In-cluster credentials win; an explicit address uses the TLS files from
    cfg; otherwise the local kubeconfig is loaded.
    """
    if cfg.kubernetes_in_cluster:
        config.load_incluster_config()
        return client.CoreV1Api()
    if cfg.kubernetes_address:
        configuration = client.Configuration()
        configuration.host = cfg.kubernetes_address
        if cfg.tls_ca_file:
            configuration.ssl_ca_cert = cfg.tls_ca_file
        if cfg.tls_crt_file:
            configuration.cert_file = cfg.tls_crt_file
            configuration.key_file = cfg.tls_key_file
        return client.CoreV1Api(client.ApiClient(configuration))
    config.load_kube_config()
    return client.CoreV1Api()


def _api_error(operation: str, namespace: str, name: str, e: ApiException) -> ClusterAPIError:
    return ClusterAPIError(operation, namespace, name, status=e.status, reason=e.reason or '')


class KubeClient:
    """Thin wrapper around CoreV1Api for the calls the operator makes.

    Not-found on reads comes back as None; every other ApiException is
    re-raised as ClusterAPIError carrying the operation and object.
    """
    def __init__(self, api: client.CoreV1Api):
        self.v1 = api

    def read_endpoints(self, namespace: str, name: str) -> Optional[client.V1Endpoints]:
        try:
            return self.v1.read_namespaced_endpoints(name=name, namespace=namespace)
        except ApiException as e:
            if e.status == 404:
                return None
            raise _api_error('read endpoints', namespace, name, e) from e

    def read_service(self, namespace: str, name: str) -> client.V1Service:
        try:
            return self.v1.read_namespaced_service(name=name, namespace=namespace)
        except ApiException as e:
            raise ServiceLookupError(namespace, name, status=e.status, reason=e.reason or '') from e

    def create_endpoints(self, namespace: str, body: client.V1Endpoints):
        try:
            return self.v1.create_namespaced_endpoints(namespace=namespace, body=body)
        except ApiException as e:
            raise _api_error('create endpoints', namespace, body.metadata.name, e) from e

    def replace_endpoints(self, namespace: str, name: str, body: client.V1Endpoints):
        try:
            return self.v1.replace_namespaced_endpoints(name=name, namespace=namespace, body=body)
        except ApiException as e:
            raise _api_error('replace endpoints', namespace, name, e) from e

    def delete_endpoints(self, namespace: str, name: str):
        try:
            return self.v1.delete_namespaced_endpoints(name=name, namespace=namespace)
        except ApiException as e:
            raise _api_error('delete endpoints', namespace, name, e) from e

    def list_pods(self, namespace: str = ''):
        try:
            if namespace:
                return self.v1.list_namespaced_pod(namespace=namespace)
            return self.v1.list_pod_for_all_namespaces()
        except ApiException as e:
            raise _api_error('list pods', namespace or '*', '', e) from e

    def pod_list_call(self, namespace: str = ''):
        """Return (list function, kwargs) for streaming pods with watch.Watch."""
        if namespace:
            return self.v1.list_namespaced_pod, {'namespace': namespace}
        return self.v1.list_pod_for_all_namespaces, {}

    def ping(self):
        """Cheap call proving the API server is reachable and we are authorized."""
        try:
            return self.v1.get_api_resources()
        except ApiException as e:
            raise _api_error('get api resources', '', '', e) from e
