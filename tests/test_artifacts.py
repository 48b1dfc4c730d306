import json

import pytest
from ape import project

from proxy_deployment.artifacts import ContractArtifact, build_contract_type, load_artifact
from proxy_deployment.exceptions import ArtifactError
from tests.conftest import BOX_ABI, DUMMY_BYTECODE


def test_create_artifact(box_abi):
    artifact = ContractArtifact.create(name="Box", abi=box_abi, bytecode=DUMMY_BYTECODE[2:])
    assert artifact.bytecode == DUMMY_BYTECODE
    assert artifact.contract_type.name == "Box"

    retrieve_abis = artifact.method_abis("retrieve")
    assert len(retrieve_abis) == 1
    assert retrieve_abis[0].stateMutability == "view"
    assert artifact.method_abis("missing") == []


def test_bytecode_forms(box_abi):
    from_bytes = ContractArtifact.create(
        name="Box", abi=box_abi, bytecode=bytes.fromhex(DUMMY_BYTECODE[2:])
    )
    from_foundry = ContractArtifact.create(
        name="Box", abi=box_abi, bytecode={"object": DUMMY_BYTECODE}
    )
    assert from_bytes.bytecode == from_foundry.bytecode == DUMMY_BYTECODE


@pytest.mark.parametrize("bytecode", [None, "", "0x", "  0x ", "0xzz", "0x608", 1234])
def test_unusable_bytecode(box_abi, bytecode):
    with pytest.raises(ArtifactError):
        ContractArtifact.create(name="Box", abi=box_abi, bytecode=bytecode)


@pytest.mark.parametrize(
    "abi",
    [
        None,
        {"type": "function", "name": "retrieve"},
        ["retrieve()"],
        [{"type": "function", "inputs": []}],
        [{"type": "modifier", "name": "onlyOwner"}],
        [{"type": "function", "name": "store", "inputs": [{"name": "newValue"}]}],
        [{"type": "function", "name": "retrieve", "inputs": [], "outputs": "uint256"}],
    ],
)
def test_malformed_abi(abi):
    with pytest.raises(ArtifactError):
        ContractArtifact.create(name="Box", abi=abi, bytecode=DUMMY_BYTECODE)


def test_artifact_requires_name(box_abi):
    with pytest.raises(ArtifactError, match="requires a name"):
        ContractArtifact.create(name="", abi=box_abi, bytecode=DUMMY_BYTECODE)


def test_build_contract_type_without_bytecode():
    contract_type = build_contract_type(name="Box", abi=BOX_ABI)
    assert contract_type.deployment_bytecode is None
    assert {abi.name for abi in contract_type.methods} == {"initialize", "store", "retrieve"}
    assert [abi.name for abi in contract_type.events] == ["ValueChanged"]


def test_hardhat_artifact_file(tmp_path, box_abi):
    filepath = tmp_path / "artifact.json"
    data = {"contractName": "Box", "abi": box_abi, "bytecode": DUMMY_BYTECODE}
    filepath.write_text(json.dumps(data))

    artifact = ContractArtifact.from_file(filepath)
    assert artifact.name == "Box"
    assert artifact.bytecode == DUMMY_BYTECODE


def test_foundry_artifact_file(tmp_path, box_abi):
    filepath = tmp_path / "Box.json"
    data = {"abi": box_abi, "bytecode": {"object": DUMMY_BYTECODE, "linkReferences": {}}}
    filepath.write_text(json.dumps(data))

    artifact = load_artifact(artifact_filepath=filepath)
    assert artifact.name == "Box"
    assert artifact.bytecode == DUMMY_BYTECODE


def test_unusable_artifact_files(tmp_path, box_abi):
    with pytest.raises(ArtifactError, match="No contract artifact"):
        ContractArtifact.from_file(tmp_path / "missing.json")

    not_json = tmp_path / "not_json.json"
    not_json.write_text("abi: []")
    with pytest.raises(ArtifactError, match="not valid JSON"):
        ContractArtifact.from_file(not_json)

    no_abi = tmp_path / "no_abi.json"
    no_abi.write_text(json.dumps({"bytecode": DUMMY_BYTECODE}))
    with pytest.raises(ArtifactError, match="no 'abi'"):
        ContractArtifact.from_file(no_abi)

    no_bytecode = tmp_path / "Interface.json"
    no_bytecode.write_text(json.dumps({"abi": box_abi, "bytecode": "0x"}))
    with pytest.raises(ArtifactError, match="empty"):
        ContractArtifact.from_file(no_bytecode)


def test_load_artifact_requires_one_source(tmp_path):
    with pytest.raises(ArtifactError):
        load_artifact()
    with pytest.raises(ArtifactError):
        load_artifact(contract_name="Box", artifact_filepath=tmp_path / "Box.json")


def test_artifact_from_project_container():
    artifact = ContractArtifact.from_container(project.Box)
    assert artifact.name == "Box"
    assert artifact.bytecode.startswith("0x")
    assert len(artifact.bytecode) > 2
    assert artifact.method_abis("initialize")[0].inputs[0].type == "uint256"

    loaded = load_artifact(contract_name="Box")
    assert loaded.bytecode == artifact.bytecode
    assert loaded.to_container().contract_type.name == "Box"


def test_unknown_project_contract():
    with pytest.raises(ArtifactError, match="No project or dependency contract"):
        load_artifact(contract_name="NotAContract")


def test_dependency_contract_artifact():
    artifact = load_artifact(contract_name="ProxyAdmin")
    assert artifact.method_abis("upgradeAndCall")
