from typing import Any, Sequence

from ape.utils import ZERO_ADDRESS


def _abort() -> None:
    print("Aborting deployment!")
    exit(-1)


def _confirm_deployment(contract_name: str) -> None:
    """Asks the user to confirm the deployment of a single contract."""
    answer = input(f"Deploy {contract_name} Y/N? ")
    if answer.lower().strip() == "n":
        _abort()


def _continue() -> None:
    """Asks the user to continue."""
    answer = input("Continue Y/N? ")
    if answer.lower().strip() == "n":
        _abort()


def _confirm_zero_address() -> None:
    answer = input("Zero Address detected for deployment parameter; Continue? Y/N? ")
    if answer.lower().strip() == "n":
        _abort()


def _confirm_resolution(
    contract_name: str, method_name: str, names: Sequence[str], values: Sequence[Any]
) -> None:
    """Asks the user to confirm the resolved arguments of a deployment call."""
    if len(values) == 0:
        print(f"\n(i) No {method_name} arguments for {contract_name}")
        _confirm_deployment(contract_name)
        return

    print(f"\n{method_name} arguments for {contract_name}")
    for name, resolved_value in zip(names, values):
        print(f"\t{name}={resolved_value}")
    _confirm_deployment(contract_name)
    if ZERO_ADDRESS in values:
        _confirm_zero_address()
