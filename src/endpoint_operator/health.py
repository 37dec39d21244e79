import json
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Tuple

from .exceptions import EndpointOperatorError
from .logging_ import get_logger

HEALTHZ_PATH = '/healthz'


class HealthChecker:
    """Reports healthy while the Kubernetes API answers."""
    def __init__(self, kube, logger=None):
        self.kube = kube
        self.logger = logger or get_logger('healthz')

    def check(self) -> Tuple[bool, str]:
        try:
            self.kube.ping()
        except EndpointOperatorError as e:
            self.logger.warning("Health check failed", error=str(e), error_type=type(e).__name__)
            return False, str(e)
        return True, 'ok'


def _handler_for(checker: HealthChecker):
    class HealthHandler(BaseHTTPRequestHandler):
        def do_GET(self):
            if self.path.rstrip('/') != HEALTHZ_PATH:
                self.send_error(404)
                return
            healthy, message = checker.check()
            body = json.dumps({'healthy': healthy, 'message': message}).encode()
            self.send_response(200 if healthy else 503)
            self.send_header('Content-Type', 'application/json')
            self.send_header('Content-Length', str(len(body)))
            self.end_headers()
            self.wfile.write(body)

        def log_message(self, format, *args):
            checker.logger.debug("Health request", request=format % args)

    return HealthHandler


def start_health_server(checker: HealthChecker, port: int, host: str = '') -> ThreadingHTTPServer:
    """Serve /healthz on a daemon thread. Port 0 binds an ephemeral port."""
    server = ThreadingHTTPServer((host, port), _handler_for(checker))
    thread = threading.Thread(target=server.serve_forever, name='healthz', daemon=True)
    thread.start()
    checker.logger.info("Health server started", port=server.server_address[1])
    return server
