import pytest
from eth_utils import to_checksum_address

from tests.conftest import (
    GATEWAY,
    GATEWAY_ADMIN,
    PROXY,
    SERVICE_FEE_RECIPIENT,
    Reverted,
    accept,
    decline,
)
from xterio_deployment.recipes import ContractKind
from xterio_deployment.runner import Outcome, RunConfig, run_recipe, run_upgrade

EXISTING = to_checksum_address("0x" + "3c" * 20)


def test_declined_confirmation_sends_nothing(fake_chain, deployer, verifier):
    result = run_recipe(
        ContractKind.DISTRIBUTOR,
        deployer,
        RunConfig(),
        arguments={"admin": GATEWAY_ADMIN},
        confirm=decline,
        verifier=verifier,
    )
    assert Outcome.ABORTED == result.outcome
    assert result.address is None
    assert [] == fake_chain.transactions
    assert [] == verifier.requests


def test_confirmation_shows_resolved_parameters(deployer, verifier, other_account):
    shown = dict()

    def confirm(label, params):
        shown[label] = params
        return False

    run_recipe(
        ContractKind.MARKETPLACE,
        deployer,
        RunConfig(),
        settings={"gateway": GATEWAY, "service_fee_recipient": other_account},
        confirm=confirm,
        verifier=verifier,
    )
    expected = {"gateway": GATEWAY, "service_fee_recipient": other_account.address}
    assert {"MarketplaceV2": expected} == shown


def test_deploy_and_verify(fake_chain, deployer, verifier):
    result = run_recipe(
        ContractKind.DISTRIBUTOR,
        deployer,
        RunConfig(),
        arguments={"admin": GATEWAY_ADMIN},
        confirm=accept,
        verifier=verifier,
    )
    assert Outcome.COMPLETED == result.outcome
    assert fake_chain.transactions[0].address == result.address
    assert (True,) == result.verified

    request = verifier.requests[0]
    assert result.address == request.address
    assert "contracts/Distribute.sol:Distribute" == request.contract_id
    assert (GATEWAY_ADMIN,) == request.constructor_args


def test_proxy_verification_has_no_constructor_arguments(fake_chain, deployer, verifier):
    result = run_recipe(
        ContractKind.GATEWAY,
        deployer,
        RunConfig(),
        arguments={"gateway_admin": GATEWAY_ADMIN},
        confirm=accept,
        verifier=verifier,
    )
    proxy = fake_chain.of_kind("deploy")[-1]
    assert PROXY == proxy.contract
    request = verifier.requests[0]
    assert proxy.address == request.address == result.address
    assert "TokenGateway" == request.contract_name
    assert () == request.constructor_args


def test_verification_failure_is_not_fatal(fake_chain, deployer, failing_verifier):
    result = run_recipe(
        ContractKind.FORWARDER, deployer, RunConfig(), confirm=accept, verifier=failing_verifier
    )
    assert Outcome.COMPLETED == result.outcome
    assert (False,) == result.verified
    assert 1 == len(failing_verifier.requests)
    assert 1 == len(fake_chain.transactions)


def test_skip_verify(deployer, verifier):
    result = run_recipe(
        ContractKind.FORWARDER,
        deployer,
        RunConfig(skip_verify=True),
        confirm=accept,
        verifier=verifier,
    )
    assert Outcome.COMPLETED == result.outcome
    assert () == result.verified
    assert [] == verifier.requests


def test_existing_address_is_only_verified(fake_chain, verifier):
    def confirm(label, params):
        raise AssertionError("no confirmation is needed without a deployment")

    result = run_recipe(
        ContractKind.DISTRIBUTOR,
        None,
        RunConfig(verify_address=EXISTING),
        arguments={"admin": GATEWAY_ADMIN},
        confirm=confirm,
        verifier=verifier,
    )
    assert Outcome.COMPLETED == result.outcome
    assert EXISTING == result.address
    assert () == result.deployments
    assert [] == fake_chain.transactions

    request = verifier.requests[0]
    assert EXISTING == request.address
    assert (GATEWAY_ADMIN,) == request.constructor_args


def test_existing_address_with_skip_verify_does_nothing(fake_chain, verifier):
    result = run_recipe(
        ContractKind.FORWARDER,
        None,
        RunConfig(skip_verify=True, verify_address=EXISTING),
        verifier=verifier,
    )
    assert Outcome.COMPLETED == result.outcome
    assert [] == fake_chain.transactions
    assert [] == verifier.requests


def test_failed_deployment_is_raised_and_not_verified(fake_chain, deployer, verifier):
    fake_chain.reverts.add("setServiceFeeRecipient")
    with pytest.raises(Reverted):
        run_recipe(
            ContractKind.MARKETPLACE,
            deployer,
            RunConfig(),
            settings={"gateway": GATEWAY, "service_fee_recipient": SERVICE_FEE_RECIPIENT},
            confirm=accept,
            verifier=verifier,
        )
    assert [] == verifier.requests


def test_upgrade(fake_chain, deployer, verifier):
    proxy_address = run_recipe(
        ContractKind.GATEWAY,
        deployer,
        RunConfig(skip_verify=True),
        arguments={"gateway_admin": GATEWAY_ADMIN},
        confirm=accept,
    ).address

    declined = run_upgrade(
        ContractKind.GATEWAY, deployer, proxy_address, RunConfig(), decline, verifier
    )
    assert Outcome.ABORTED == declined.outcome
    assert "upgradeAndCall" not in [tx.method for tx in fake_chain.transactions]

    result = run_upgrade(
        ContractKind.GATEWAY, deployer, proxy_address, RunConfig(), accept, verifier
    )
    assert Outcome.COMPLETED == result.outcome
    assert proxy_address == result.address
    assert "upgradeAndCall" == fake_chain.transactions[-1].method
    assert proxy_address == verifier.requests[0].address
