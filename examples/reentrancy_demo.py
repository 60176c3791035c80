#!/usr/bin/env python3
"""
Example: a hostile target tries to execute its own payment twice
"""

from shared_custody.errors import CustodyError
from shared_custody.host.environment import HostEnvironment
from shared_custody.host.identity import PrincipalKey, make_address
from shared_custody.vault import MultiSigVault


def main():
    print("=== Reentrancy Demo ===")
    print()

    host = HostEnvironment()
    keys = [PrincipalKey(), PrincipalKey()]
    alice, bob = (host.caller_for(k) for k in keys)

    # The attacker is a contract that is also an owner
    attacker = make_address("attacker")
    vault = MultiSigVault.create([k.address for k in keys] + [attacker], 2, host=host)
    vault.receive(1_000)

    attempts = []

    def drain(ctx):
        try:
            vault.execute(0, ctx.as_caller())
            attempts.append("re-executed")
        except CustodyError as e:
            attempts.append(e.kind)

    host.deploy(attacker, drain)

    tx_id = vault.submit(attacker, 400, b"", alice)
    vault.confirm(tx_id, alice)
    vault.confirm(tx_id, bob)

    print(f"🏗️  Vault balance before: {vault.balance():,}")
    vault.execute(tx_id, alice)

    print(f"🔁 Re-entry attempts: {attempts}")
    print(f"💰 Vault balance after: {vault.balance():,}")
    print(f"💰 Attacker balance: {host.ledger.balance_of(attacker):,}")


if __name__ == "__main__":
    main()
