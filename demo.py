#!/usr/bin/env python3
"""
Complete demo of the Shared-Custody Vault
"""

import logging

from shared_custody.errors import CustodyError
from shared_custody.host.environment import HostEnvironment
from shared_custody.host.identity import PrincipalKey, make_address
from shared_custody.vault import MultiSigVault


def main():
    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")

    print("=" * 60)
    print("🏦 SHARED-CUSTODY VAULT - COMPLETE DEMO")
    print("=" * 60)
    print()

    host = HostEnvironment()

    # Step 1: Setup
    print("🔧 STEP 1: Setting up owners")
    print("-" * 40)

    participants = []
    for name in ["Alice", "Bob", "Carol"]:
        key = PrincipalKey()
        participants.append({
            'name': name,
            'key': key,
            'caller': host.caller_for(key)
        })
        print(f"✅ {name}: {key.address}")

    print()

    # Step 2: Create Vault
    print("🏗️  STEP 2: Creating 2-of-3 vault")
    print("-" * 40)

    vault = MultiSigVault.create([p['key'].address for p in participants], 2, host=host)
    vault.receive(100_000_000)

    print(f"✅ Vault ID: {vault.vault_id}")
    print(f"✅ Address: {vault.address}")
    print(f"✅ Balance: {vault.balance():,}")
    print(f"✅ Threshold: {vault.threshold}-of-{len(vault.owners)}")
    print()

    alice, bob, carol = (p['caller'] for p in participants)
    payee = make_address("payee")

    # Step 3: Proposal lifecycle
    print("💰 STEP 3: Proposing a payment")
    print("-" * 40)

    tx_id = vault.submit(payee, 5_000_000, b"", alice)
    print(f"✅ Alice proposed transaction {tx_id}: 5,000,000 to {payee[:12]}...")

    try:
        vault.execute(tx_id, alice)
        print("   ❌ UNEXPECTED: executed without confirmations")
    except CustodyError as e:
        print(f"   ✅ EXPECTED FAILURE: {e.kind}: {e}")

    vault.confirm(tx_id, bob)
    print(f"   Bob confirms: {vault.transaction(tx_id).confirmations_count}/{vault.threshold}")
    vault.confirm(tx_id, alice)
    print(f"   Alice confirms: {vault.transaction(tx_id).confirmations_count}/{vault.threshold}")

    result = vault.execute(tx_id, carol)
    print(f"   ✅ Carol executed: success={result.success}, gas={result.gas_used}")
    print(f"   💰 Remaining balance: {vault.balance():,}")
    print()

    # Step 4: Threshold amendment
    print("🗳️  STEP 4: Raising the threshold")
    print("-" * 40)

    tx_id = vault.submit(payee, 1_000_000, b"", bob)
    vault.confirm(tx_id, alice)
    vault.confirm(tx_id, bob)
    vault.amend_threshold(3, carol)
    print(f"✅ Threshold now {vault.threshold}-of-{len(vault.owners)}")

    try:
        vault.execute(tx_id, alice)
    except CustodyError as e:
        print(f"   ✅ EXPECTED FAILURE: {e.kind}")

    vault.confirm(tx_id, carol)
    vault.execute(tx_id, alice)
    print(f"   ✅ Executed with 3 confirmations, status={vault.status(tx_id).value}")
    print()

    # Step 5: Summary
    print("📈 STEP 5: Event stream")
    print("-" * 40)

    for record in vault.events.records():
        print(f"   #{record.sequence:<3} {record.kind.value}")

    print()
    print("📊 Final Statistics:")
    print(f"   Vault balance: {vault.balance():,}")
    print(f"   Payee balance: {host.ledger.balance_of(payee):,}")
    print(f"   Transactions: {vault.transaction_count()}")


if __name__ == "__main__":
    main()
