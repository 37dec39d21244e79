from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, List


@dataclass(frozen=True)
class Endpoint:
    """IP membership of one service's Endpoints object.

    Values are never mutated; every derived state (current, desired and the
    create/delete changes) is a new instance.
    """
    service_name: str = ''
    service_namespace: str = ''
    ips: FrozenSet[str] = field(default_factory=frozenset)

    def __post_init__(self):
        # accept any iterable of addresses, store it as a set
        if not isinstance(self.ips, frozenset):
            object.__setattr__(self, 'ips', frozenset(self.ips))

    @classmethod
    def of(cls, service_name: str, service_namespace: str, ips: Iterable[str] = ()) -> 'Endpoint':
        return cls(service_name=service_name, service_namespace=service_namespace, ips=frozenset(ips))

    def with_ips(self, ips: Iterable[str]) -> 'Endpoint':
        return Endpoint(self.service_name, self.service_namespace, frozenset(ips))

    def is_zero(self) -> bool:
        return self == Endpoint()

    def sorted_ips(self) -> List[str]:
        return sorted(self.ips)


@dataclass(frozen=True)
class Skip:
    """Current-state outcome telling the caller to stop reconciling a pod."""
    reason: str
