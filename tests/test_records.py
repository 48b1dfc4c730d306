import pytest

from proxy_deployment.exceptions import DeploymentError, VerificationMismatchError
from proxy_deployment.records import DeploymentRecord, VerificationResult
from tests.conftest import ADMIN_ADDRESS, IMPLEMENTATION_ADDRESS, PROXY_ADDRESS

CHAIN_ID = 1337


def test_create_record():
    record = DeploymentRecord.create(
        contract_name="Box",
        chain_id=str(CHAIN_ID),
        proxy_address=PROXY_ADDRESS,
        implementation_address=IMPLEMENTATION_ADDRESS,
        admin_address=ADMIN_ADDRESS,
    )
    assert record.chain_id == CHAIN_ID
    assert record.proxy_address == "0x1111111111111111111111111111111111111111"
    assert record.implementation_address == "0x2222222222222222222222222222222222222222"
    assert "proxy=0x1111111111111111111111111111111111111111" in record.pretty()


@pytest.mark.parametrize(
    "proxy, implementation, admin",
    [
        (PROXY_ADDRESS, PROXY_ADDRESS, ADMIN_ADDRESS),
        (PROXY_ADDRESS, IMPLEMENTATION_ADDRESS, PROXY_ADDRESS),
        (PROXY_ADDRESS, ADMIN_ADDRESS, ADMIN_ADDRESS),
    ],
)
def test_record_addresses_must_be_distinct(proxy, implementation, admin):
    with pytest.raises(DeploymentError, match="must be distinct"):
        DeploymentRecord.create(
            contract_name="Box",
            chain_id=CHAIN_ID,
            proxy_address=proxy,
            implementation_address=implementation,
            admin_address=admin,
        )


def test_record_is_immutable():
    record = DeploymentRecord.create(
        contract_name="Box",
        chain_id=CHAIN_ID,
        proxy_address=PROXY_ADDRESS,
        implementation_address=IMPLEMENTATION_ADDRESS,
        admin_address=ADMIN_ADDRESS,
    )
    with pytest.raises(AttributeError):
        record.proxy_address = ADMIN_ADDRESS


def test_verification_result_confirm():
    result = VerificationResult(
        proxy_address=PROXY_ADDRESS,
        implementation_address=IMPLEMENTATION_ADDRESS,
        method="retrieve",
        value=42,
    )
    assert result.confirm(42) is result
    with pytest.raises(VerificationMismatchError, match="expected 41"):
        result.confirm(41)
    assert "retrieve() through proxy" in result.pretty()


def test_confirm_decoded_tuples():
    result = VerificationResult(
        proxy_address=PROXY_ADDRESS,
        implementation_address=None,
        method="status",
        value=(ADMIN_ADDRESS, 5, (True, [1, 2])),
    )
    result.confirm([ADMIN_ADDRESS, 5, [True, (1, 2)]])
    with pytest.raises(VerificationMismatchError):
        result.confirm([ADMIN_ADDRESS, 5, [False, [1, 2]]])
    assert "implementation unknown" in result.pretty()
