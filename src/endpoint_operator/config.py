from dataclasses import dataclass
import os

from .annotations import IP_ANNOTATION, SERVICE_ANNOTATION, SKIP_LABEL
from .exceptions import InvalidConfigError


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.environ.get(name)
    if raw is None or raw == '':
        return default
    return raw.strip().lower() in ('1', 'true', 'yes', 'on')


@dataclass
class Config:
    kubernetes_address: str
    kubernetes_in_cluster: bool
    tls_ca_file: str
    tls_crt_file: str
    tls_key_file: str
    ip_annotation: str
    service_annotation: str
    skip_label: str
    watch_namespace: str
    resync_period: int
    boot_max_elapsed: float
    resource_retries: int
    metrics_port: int
    health_port: int

    def validate(self) -> 'Config':
        if not self.ip_annotation or not self.service_annotation:
            raise InvalidConfigError('ip and service annotation keys must not be empty')
        if self.ip_annotation == self.service_annotation:
            raise InvalidConfigError('ip and service annotation keys must differ')
        if self.resync_period <= 0:
            raise InvalidConfigError('resync period must be greater than zero')
        if self.resource_retries < 1:
            raise InvalidConfigError('resource retries must be at least 1')
        if bool(self.tls_crt_file) != bool(self.tls_key_file):
            raise InvalidConfigError('TLS certificate and key files must be given together')
        for name in ('metrics_port', 'health_port'):
            if not 0 <= getattr(self, name) <= 65535:
                raise InvalidConfigError(f"{name} must be between 0 and 65535")
        if self.metrics_port and self.metrics_port == self.health_port:
            raise InvalidConfigError('metrics and health ports must differ')
        return self


def load_from_env() -> Config:
    """Load configuration from environment variables with sensible defaults."""
    return Config(
        kubernetes_address=os.environ.get('KUBERNETES_ADDRESS', ''),
        kubernetes_in_cluster=_env_bool('KUBERNETES_IN_CLUSTER'),
        tls_ca_file=os.environ.get('KUBERNETES_TLS_CA_FILE', ''),
        tls_crt_file=os.environ.get('KUBERNETES_TLS_CRT_FILE', ''),
        tls_key_file=os.environ.get('KUBERNETES_TLS_KEY_FILE', ''),
        ip_annotation=os.environ.get('IP_ANNOTATION', IP_ANNOTATION),
        service_annotation=os.environ.get('SERVICE_ANNOTATION', SERVICE_ANNOTATION),
        skip_label=os.environ.get('SKIP_LABEL', SKIP_LABEL),
        watch_namespace=os.environ.get('WATCH_NAMESPACE', ''),
        resync_period=int(os.environ.get('RESYNC_PERIOD', '300')),
        boot_max_elapsed=float(os.environ.get('BOOT_MAX_ELAPSED', '300')),
        resource_retries=int(os.environ.get('RESOURCE_RETRIES', '3')),
        metrics_port=int(os.environ.get('METRICS_PORT', '9090')),
        health_port=int(os.environ.get('HEALTH_PORT', '8080')),
    )
