import pytest
from kubernetes.client.rest import ApiException

from endpoint_operator.endpoint import Endpoint
from endpoint_operator.exceptions import ClusterAPIError, ServiceLookupError
from endpoint_operator.updater import EndpointUpdater

NS, SVC = 'TestNamespace', 'TestService'


def ep(*ips):
    return Endpoint.of(SVC, NS, ips)


@pytest.fixture
def updater(kube, logger):
    return EndpointUpdater(kube, logger=logger)


class TestApplyCreate:
    def test_creates_object_with_service_ports(self, api, updater):
        api.add_service(NS, SVC, ports=[('http', 1234, 'TCP')])
        assert updater.apply_create(ep('1.1.1.1'))
        assert api.endpoints[(NS, SVC)] == [{'ports': [('http', 1234, 'TCP')], 'ips': ['1.1.1.1']}]
        assert [c[0] for c in api.mutations] == ['create_namespaced_endpoints']

    def test_missing_service(self, api, updater):
        with pytest.raises(ServiceLookupError) as exc:
            updater.apply_create(ep('1.1.1.1'))
        assert exc.value.status == 404
        assert api.mutations == []

    def test_replaces_addresses_keeping_ports(self, api, updater):
        api.add_endpoints(NS, SVC, [
            ((('http', 80, 'TCP'),), ['1.2.3.4']),
            ((('dns', 53, 'UDP'),), ['1.2.3.4']),
        ])
        assert updater.apply_create(ep('1.2.3.4', '1.1.1.1'))
        assert api.endpoints[(NS, SVC)] == [
            {'ports': [('http', 80, 'TCP')], 'ips': ['1.1.1.1', '1.2.3.4']},
            {'ports': [('dns', 53, 'UDP')], 'ips': ['1.1.1.1', '1.2.3.4']},
        ]
        assert [c[0] for c in api.mutations] == ['replace_namespaced_endpoints']

    def test_keeps_live_addresses_missing_from_change(self, api, updater):
        api.add_endpoints(NS, SVC, [((), ['1.2.3.4', '9.9.9.9'])])
        updater.apply_create(ep('1.2.3.4', '1.1.1.1'))
        assert api.ips(NS, SVC) == ['1.1.1.1', '1.2.3.4', '9.9.9.9']

    def test_object_without_subsets_gets_one(self, api, updater):
        api.add_service(NS, SVC, ports=[('http', 8080, 'TCP')])
        api.add_endpoints(NS, SVC, [])
        updater.apply_create(ep('1.1.1.1'))
        assert api.endpoints[(NS, SVC)] == [{'ports': [('http', 8080, 'TCP')], 'ips': ['1.1.1.1']}]

    def test_idempotent(self, api, updater):
        api.add_endpoints(NS, SVC, [((), ['1.2.3.4'])])
        updater.apply_create(ep('1.1.1.1', '1.2.3.4'))
        once = api.ips(NS, SVC)
        updater.apply_create(ep('1.1.1.1', '1.2.3.4'))
        assert api.ips(NS, SVC) == once

    def test_empty_change_is_noop(self, api, updater):
        assert not updater.apply_create(ep())
        assert api.calls == []

    def test_read_error_propagates(self, api, updater):
        api.fail['read_namespaced_endpoints'] = [ApiException(status=503, reason='Unavailable')]
        with pytest.raises(ClusterAPIError) as exc:
            updater.apply_create(ep('1.1.1.1'))
        assert exc.value.operation == 'read endpoints'
        assert api.mutations == []


class TestApplyDelete:
    def test_removes_address_and_updates(self, api, updater):
        api.add_endpoints(NS, SVC, [((('http', 80, 'TCP'),), ['1.1.1.1', '1.2.3.4'])])
        assert updater.apply_delete(ep('1.2.3.4'))
        assert api.endpoints[(NS, SVC)] == [{'ports': [('http', 80, 'TCP')], 'ips': ['1.1.1.1']}]
        assert [c[0] for c in api.mutations] == ['replace_namespaced_endpoints']

    def test_deletes_object_when_nothing_remains(self, api, updater):
        api.add_endpoints(NS, SVC, [((), ['1.1.1.1']), ((), ['1.1.1.1'])])
        assert updater.apply_delete(ep('1.1.1.1'))
        assert (NS, SVC) not in api.endpoints
        assert [c[0] for c in api.mutations] == ['delete_namespaced_endpoints']

    @pytest.mark.parametrize('change', [Endpoint(), Endpoint.of(SVC, NS)])
    def test_empty_change_makes_no_calls(self, api, updater, change):
        api.add_endpoints(NS, SVC, [((), ['1.2.3.4'])])
        assert not updater.apply_delete(change)
        assert api.calls == []

    def test_object_already_gone(self, api, updater):
        assert not updater.apply_delete(ep('1.1.1.1'))
        assert api.mutations == []

    def test_address_not_present_makes_no_write(self, api, updater):
        api.add_endpoints(NS, SVC, [((), ['5.5.5.5'])])
        assert not updater.apply_delete(ep('1.1.1.1'))
        assert api.ips(NS, SVC) == ['5.5.5.5']
        assert api.mutations == []

    def test_conflict_surfaces(self, api, updater):
        api.add_endpoints(NS, SVC, [((), ['1.1.1.1', '1.2.3.4'])])
        api.fail['replace_namespaced_endpoints'] = [ApiException(status=409, reason='Conflict')]
        with pytest.raises(ClusterAPIError) as exc:
            updater.apply_delete(ep('1.2.3.4'))
        assert exc.value.is_conflict
