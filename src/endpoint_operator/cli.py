import sys
import argparse

from . import __description__, __version__, load_from_env, metrics, setup_logging
from .health import HealthChecker, start_health_server
from .orchestrator import Operator

NAME = 'endpoint-operator'


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog=NAME, description=__description__)
    commands = parser.add_subparsers(dest='command')

    commands.add_parser('version', help='Print version information')

    daemon = commands.add_parser('daemon', help='Run the operator')
    daemon.add_argument('--service.kubernetes.address', dest='kubernetes_address',
                        help='Address used to connect to Kubernetes. When empty in-cluster config or kubeconfig is used.')
    daemon.add_argument('--service.kubernetes.incluster', dest='kubernetes_in_cluster', action='store_true', default=None,
                        help='Whether to use the in-cluster config to authenticate with Kubernetes.')
    daemon.add_argument('--service.kubernetes.tls.cafile', dest='tls_ca_file',
                        help='Certificate authority file path to use to authenticate with Kubernetes.')
    daemon.add_argument('--service.kubernetes.tls.crtfile', dest='tls_crt_file',
                        help='Certificate file path to use to authenticate with Kubernetes.')
    daemon.add_argument('--service.kubernetes.tls.keyfile', dest='tls_key_file',
                        help='Key file path to use to authenticate with Kubernetes.')
    daemon.add_argument('--ip-annotation', dest='ip_annotation', help='Pod annotation holding the IP to register.')
    daemon.add_argument('--service-annotation', dest='service_annotation',
                        help='Pod annotation holding the target service name.')
    daemon.add_argument('--skip-label', dest='skip_label', help='Pod label opting a pod out of reconciliation.')
    daemon.add_argument('--namespace', dest='watch_namespace', help='Only watch pods in this namespace.')
    daemon.add_argument('--resync-period', dest='resync_period', type=int, help='Seconds between full pod re-lists.')
    daemon.add_argument('--metrics-port', dest='metrics_port', type=int,
                        help='Port serving Prometheus metrics, 0 disables.')
    daemon.add_argument('--health-port', dest='health_port', type=int, help='Port serving /healthz, 0 disables.')
    return parser


def config_from_args(args):
    """Environment configuration with every flag given on the command line applied on top."""
    cfg = load_from_env()
    for field in ('kubernetes_address', 'kubernetes_in_cluster', 'tls_ca_file', 'tls_crt_file', 'tls_key_file',
                  'ip_annotation', 'service_annotation', 'skip_label', 'watch_namespace', 'resync_period',
                  'metrics_port', 'health_port'):
        value = getattr(args, field, None)
        if value is not None:
            setattr(cfg, field, value)
    return cfg.validate()


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(sys.argv[1:] if argv is None else argv)

    if args.command == 'version':
        print(f"{NAME} {__version__}: {__description__}")
        return 0
    if args.command != 'daemon':
        parser.print_help()
        return 2

    cfg = config_from_args(args)
    logger = setup_logging(NAME)
    logger.info("Starting operator", namespace=cfg.watch_namespace or '*', ip_annotation=cfg.ip_annotation,
                service_annotation=cfg.service_annotation, resync_period=cfg.resync_period)
    operator = Operator.from_config(cfg, logger=logger)
    metrics.serve(cfg.metrics_port, logger=logger)
    if cfg.health_port:
        start_health_server(HealthChecker(operator.kube, logger=logger), cfg.health_port)
    operator.boot()
    return 0


if __name__ == '__main__':
    sys.exit(main())
