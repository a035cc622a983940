"""Tests for the merchant operations facade."""

from concurrent.futures import ThreadPoolExecutor

import pytest

from huifu_gateway.config import ProviderSettings
from huifu_gateway.errors import NotFoundError, ValidationError
from huifu_gateway.gateway.clients.base import (
    MERCHANT_BASICDATA_QUERY,
    MERCHANT_BUSI_CONFIG,
    MERCHANT_BUSI_CONFIG_QUERY,
)
from huifu_gateway.gateway.facade import (
    CONFIGURE_MERCHANT,
    QUERY_MERCHANT_CONFIG,
    MerchantOperations,
    build_params,
)
from huifu_gateway.gateway.factory import ClientFactory
from huifu_gateway.gateway.registry import TenantRegistry


@pytest.fixture
def registry(recording_builder) -> TenantRegistry:
    return TenantRegistry(ClientFactory(provider_builder=recording_builder))


@pytest.fixture
def ops(registry) -> MerchantOperations:
    return MerchantOperations(registry)


CONFIG_FIELDS = {
    "huifu_id": "6666000456",
    "wx_woa_app_id": "wxabc",
    "wx_woa_path": "pages/index/index",
    "fee_type": "01",
}


class TestBuildParams:
    """Test parameter assembly."""

    def test_required_fields_and_generated_ids(self):
        """Required fields are copied; req_seq_id and req_date are generated."""
        params = build_params(CONFIGURE_MERCHANT, CONFIG_FIELDS)

        for name, value in CONFIG_FIELDS.items():
            assert params[name] == value
        assert params["req_seq_id"]
        assert len(params["req_date"]) == 8
        assert params["req_date"].isdigit()

    def test_req_seq_id_unique_per_call(self):
        """Every call gets a fresh request sequence id."""
        first = build_params(QUERY_MERCHANT_CONFIG, {"huifu_id": "X"})
        second = build_params(QUERY_MERCHANT_CONFIG, {"huifu_id": "X"})

        assert first["req_seq_id"] != second["req_seq_id"]

    def test_missing_field_names_every_gap(self):
        """All missing fields are reported together."""
        with pytest.raises(ValidationError) as exc_info:
            build_params(CONFIGURE_MERCHANT, {"huifu_id": "X", "fee_type": ""})

        assert exc_info.value.operation == "configure_merchant"
        assert exc_info.value.missing == ["wx_woa_app_id", "wx_woa_path", "fee_type"]

    def test_extensions_merged(self):
        """Extension fields are added to the request."""
        params = build_params(QUERY_MERCHANT_CONFIG, {"huifu_id": "X"}, {"remark": "r"})

        assert params["remark"] == "r"

    def test_extensions_never_overwrite(self):
        """Extensions cannot replace required or generated fields."""
        params = build_params(
            QUERY_MERCHANT_CONFIG,
            {"huifu_id": "X"},
            {"huifu_id": "EVIL", "req_seq_id": "fixed", "req_date": "19700101"},
        )

        assert params["huifu_id"] == "X"
        assert params["req_seq_id"] != "fixed"
        assert params["req_date"] != "19700101"

    def test_unlisted_fields_dropped(self):
        """Only required fields travel from the field mapping."""
        params = build_params(QUERY_MERCHANT_CONFIG, {"huifu_id": "X", "stray": 1})

        assert "stray" not in params


class TestMerchantOperations:
    """Test named operations through the registry."""

    def test_configure_merchant(self, ops, registry, make_bundle, recording_clients):
        """configure_merchant calls busi/config with all fields."""
        registry.register(make_bundle(tenant_id="T1"))

        result = ops.configure_merchant("T1", **CONFIG_FIELDS)

        assert result.succeeded is True
        endpoint, params = recording_clients[0].calls[-1]
        assert endpoint == MERCHANT_BUSI_CONFIG
        assert params["wx_woa_app_id"] == "wxabc"
        assert params["fee_type"] == "01"

    def test_configure_merchant_defaults_from_bundle(
        self, ops, registry, make_bundle, recording_clients
    ):
        """WeChat fields default to the tenant's registered values."""
        registry.register(
            make_bundle(tenant_id="T1", wx_woa_app_id="wx-reg", wx_woa_path="pages/reg")
        )

        ops.configure_merchant("T1", huifu_id="X", fee_type="02")

        _, params = recording_clients[0].calls[-1]
        assert params["wx_woa_app_id"] == "wx-reg"
        assert params["wx_woa_path"] == "pages/reg"

    def test_configure_merchant_missing_wechat_fields(
        self, ops, registry, make_bundle, recording_clients
    ):
        """Without registered defaults, omitted WeChat fields fail validation."""
        registry.register(make_bundle(tenant_id="T1"))

        with pytest.raises(ValidationError) as exc_info:
            ops.configure_merchant("T1", huifu_id="X", fee_type="01")

        assert exc_info.value.missing == ["wx_woa_app_id", "wx_woa_path"]
        assert recording_clients[0].calls == []

    def test_configure_merchant_extend_infos(self, ops, registry, make_bundle, recording_clients):
        """extend_infos travel with the request."""
        registry.register(make_bundle(tenant_id="T1"))

        ops.configure_merchant("T1", extend_infos={"bind_type": "1"}, **CONFIG_FIELDS)

        _, params = recording_clients[0].calls[-1]
        assert params["bind_type"] == "1"

    def test_query_merchant_config(self, ops, registry, make_bundle, recording_clients):
        """query_merchant_config calls busi/config/query."""
        registry.register(make_bundle(tenant_id="T1"))

        ops.query_merchant_config("T1", "X")

        endpoint, params = recording_clients[0].calls[-1]
        assert endpoint == MERCHANT_BUSI_CONFIG_QUERY
        assert params["huifu_id"] == "X"

    def test_verify_credentials(self, ops, registry, make_bundle, recording_clients):
        """verify_credentials queries basicdata with the tenant's own id."""
        registry.register(make_bundle(tenant_id="T1"))

        ops.verify_credentials("T1")

        endpoint, params = recording_clients[0].calls[-1]
        assert endpoint == MERCHANT_BASICDATA_QUERY
        assert params["huifu_id"] == "T1"

    def test_execute_by_name(self, ops, registry, make_bundle, recording_clients):
        """Operations can be named by string."""
        registry.register(make_bundle(tenant_id="T1"))

        ops.execute("T1", "query_merchant_config", {"huifu_id": "X"})

        assert recording_clients[0].calls[-1][0] == MERCHANT_BUSI_CONFIG_QUERY

    def test_unknown_operation(self, ops, registry, make_bundle):
        """Unknown operation names fail validation."""
        registry.register(make_bundle(tenant_id="T1"))

        with pytest.raises(ValidationError):
            ops.execute("T1", "refund_everything", {})

    def test_unregistered_tenant(self, ops):
        """Operations on unknown tenants raise NotFoundError."""
        with pytest.raises(NotFoundError):
            ops.query_merchant_config("ghost", "X")

        with pytest.raises(NotFoundError):
            ops.configure_merchant("ghost", **CONFIG_FIELDS)

    def test_simulated_end_to_end(self, make_bundle):
        """With the default factory and no platform key, calls are simulated."""
        registry = TenantRegistry(ClientFactory(ProviderSettings(public_key=None)))
        registry.register(make_bundle(tenant_id="T1"))

        result = MerchantOperations(registry).configure_merchant("T1", **CONFIG_FIELDS)

        assert result.succeeded is True
        assert result.payload["huifu_id"] == CONFIG_FIELDS["huifu_id"]
        assert result.payload["req_seq_id"]


class TestFacadeAcrossReRegistration:
    """Defaults and client always come from one registry entry."""

    def test_reregistration_between_reads(
        self, make_bundle, recording_builder, recording_clients
    ):
        """A re-registration right after the read does not mix entries."""

        class SwappingRegistry(TenantRegistry):
            swapped = False

            def get_entry(self, tenant_id):
                entry = super().get_entry(tenant_id)
                if not self.swapped:
                    self.swapped = True
                    self.register(
                        make_bundle(
                            tenant_id=tenant_id, wx_woa_app_id="wx-new", wx_woa_path="p/new"
                        )
                    )
                return entry

        registry = SwappingRegistry(ClientFactory(provider_builder=recording_builder))
        registry.register(
            make_bundle(tenant_id="T1", wx_woa_app_id="wx-old", wx_woa_path="p/old")
        )

        MerchantOperations(registry).configure_merchant("T1", huifu_id="X", fee_type="01")

        old_client, new_client = recording_clients
        _, params = old_client.calls[-1]
        assert params["wx_woa_app_id"] == "wx-old"
        assert params["wx_woa_path"] == "p/old"
        assert new_client.calls == []

    def test_concurrent_reregistration(self, registry, ops, make_bundle, recording_clients):
        """Every call's WeChat defaults match the bundle of the client that sent it."""
        registry.register(make_bundle(tenant_id="T1", wx_woa_app_id="wx-0", wx_woa_path="p/0"))

        def reregister(i: int) -> None:
            registry.register(
                make_bundle(tenant_id="T1", wx_woa_app_id=f"wx-{i}", wx_woa_path=f"p/{i}")
            )

        def configure(_: int) -> None:
            ops.configure_merchant("T1", huifu_id="X", fee_type="01")

        with ThreadPoolExecutor(max_workers=8) as pool:
            futures = [pool.submit(reregister, i) for i in range(1, 40)]
            futures += [pool.submit(configure, i) for i in range(80)]
            for future in futures:
                future.result()

        calls = 0
        for client in list(recording_clients):
            for _, params in client.calls:
                calls += 1
                assert params["wx_woa_app_id"] == client.bundle.wx_woa_app_id
                assert params["wx_woa_path"] == client.bundle.wx_woa_path
        assert calls == 80
