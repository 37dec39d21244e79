from typing import Optional

from .endpoint import Endpoint


def create_delta(current: Optional[Endpoint], desired: Endpoint) -> Endpoint:
    """Addresses the Endpoints object must hold: current ∪ desired.

    The union keeps every address other pods registered earlier.
    """
    current_ips = current.ips if current is not None else frozenset()
    return Endpoint(desired.service_name, desired.service_namespace, current_ips | desired.ips)


def delete_delta(current: Optional[Endpoint], desired: Endpoint) -> Endpoint:
    """Addresses to take out of the Endpoints object: current \\ desired.

    An empty result means there is nothing to remove.
    """
    if current is None:
        return Endpoint()
    return Endpoint(current.service_name, current.service_namespace, current.ips - desired.ips)


def retained_after_withdrawal(current: Endpoint, withdrawn: Endpoint) -> Endpoint:
    """State the service is left in once a pod stops declaring its addresses."""
    return current.with_ips(current.ips - withdrawn.ips)
