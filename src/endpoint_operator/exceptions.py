from typing import Optional


class EndpointOperatorError(Exception):
    """Base error for the endpoint operator."""


class InvalidConfigError(EndpointOperatorError):
    pass


class MissingAnnotationError(EndpointOperatorError):
    """A pod does not carry the annotations the operator reconciles on."""

    def __init__(self, key: str, pod: Optional[str] = None):
        self.key = key
        self.pod = pod
        where = f" on pod '{pod}'" if pod else ''
        super().__init__(f"expected annotation '{key}' to be set{where}")


class WrongTypeError(EndpointOperatorError):
    """An object handed to the resource does not have the expected shape."""

    def __init__(self, expected: str, got: object):
        self.expected = expected
        self.got = type(got).__name__
        super().__init__(f"expected '{expected}', got '{self.got}'")


class ClusterAPIError(EndpointOperatorError):
    """A Kubernetes API call failed with something other than not-found."""

    def __init__(self, operation: str, namespace: str, name: str = '', status: Optional[int] = None, reason: str = ''):
        self.operation = operation
        self.namespace = namespace
        self.name = name
        self.status = status
        self.reason = reason
        target = f"{namespace}/{name}" if name else namespace
        super().__init__(f"{operation} {target} failed (status={status}): {reason}")

    @property
    def is_conflict(self) -> bool:
        return self.status == 409


class ServiceLookupError(ClusterAPIError):
    """The service backing a new Endpoints object could not be read."""

    def __init__(self, namespace: str, name: str, status: Optional[int] = None, reason: str = ''):
        super().__init__('read service', namespace, name, status=status, reason=reason)


# Errors worth re-running a whole reconciliation pass for.
RETRYABLE_ERRORS = (ClusterAPIError,)
