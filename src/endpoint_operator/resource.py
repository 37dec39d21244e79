from dataclasses import dataclass
from typing import Optional, Union

from .changes import create_delta, delete_delta, retained_after_withdrawal
from .endpoint import Endpoint, Skip
from .exceptions import InvalidConfigError
from .logging_ import get_logger
from .state import StateResolver, current_or_empty
from .updater import EndpointUpdater

NAME = 'endpoint'


@dataclass(frozen=True)
class Patch:
    create_change: Optional[Endpoint] = None
    delete_change: Optional[Endpoint] = None

    def is_empty(self) -> bool:
        return self.create_change is None and self.delete_change is None


class EndpointResource:
    """Keeps service Endpoints in line with the IPs pods declare in annotations."""
    name = NAME

    def __init__(self, resolver: StateResolver, updater: EndpointUpdater, logger=None):
        if resolver is None:
            raise InvalidConfigError('resolver must not be empty')
        if updater is None:
            raise InvalidConfigError('updater must not be empty')
        self.resolver = resolver
        self.updater = updater
        self.logger = logger or get_logger('endpoint-resource')

    @classmethod
    def from_config(cls, kube, cfg, logger=None) -> 'EndpointResource':
        resolver = StateResolver(kube, ip_annotation=cfg.ip_annotation, service_annotation=cfg.service_annotation,
                                 skip_label=cfg.skip_label, logger=logger)
        return cls(resolver, EndpointUpdater(kube, logger=logger), logger=logger)

    def get_current_state(self, pod) -> Union[Endpoint, Skip, None]:
        return self.resolver.get_current_state(pod)

    def get_desired_state(self, pod) -> Endpoint:
        return self.resolver.get_desired_state(pod)

    def new_update_patch(self, pod, current: Optional[Endpoint], desired: Endpoint) -> Patch:
        """Patch registering the pod's IP next to whatever is already there."""
        current = current_or_empty(current, desired)
        if desired.ips <= current.ips:
            return Patch()
        return Patch(create_change=create_delta(current, desired))

    def new_delete_patch(self, pod, current: Optional[Endpoint], desired: Endpoint) -> Patch:
        """Patch removing the addresses a deleted pod declared."""
        if current is None:
            return Patch()
        change = delete_delta(current, retained_after_withdrawal(current, desired))
        if not change.ips:
            return Patch()
        return Patch(delete_change=change)

    def apply_create_change(self, pod, change: Optional[Endpoint]) -> bool:
        if change is None:
            return False
        return self.updater.apply_create(change)

    def apply_delete_change(self, pod, change: Optional[Endpoint]) -> bool:
        if change is None:
            return False
        return self.updater.apply_delete(change)

    def apply_patch(self, pod, patch: Patch) -> bool:
        created = self.apply_create_change(pod, patch.create_change)
        deleted = self.apply_delete_change(pod, patch.delete_change)
        return created or deleted
