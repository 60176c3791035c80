#!/usr/bin/env python3
"""
Example: a failing target leaves the transaction executable for a retry
"""

from shared_custody.config import EngineConfig
from shared_custody.errors import ExecutionFailed
from shared_custody.host.environment import HostEnvironment
from shared_custody.host.identity import PrincipalKey, make_address
from shared_custody.vault import MultiSigVault


def main():
    print("=== Failed Call and Retry ===")
    print()

    host = HostEnvironment()
    keys = [PrincipalKey() for _ in range(3)]
    callers = [host.caller_for(k) for k in keys]

    vault = MultiSigVault.create([k.address for k in keys], 2, host=host,
                                 config=EngineConfig.from_env())
    vault.receive(10_000)

    service = make_address("service")
    state = {'open': False}

    def handler(ctx):
        if not state['open']:
            raise RuntimeError("service closed")
        return b"accepted"

    host.deploy(service, handler)

    tx_id = vault.submit(service, 2_500, b"\x01", callers[0])
    vault.confirm(tx_id, callers[0])
    vault.confirm(tx_id, callers[1])

    print("Attempt 1: service closed")
    try:
        vault.execute(tx_id, callers[2])
    except ExecutionFailed as e:
        print(f"   ❌ {e.details['reason']}")
    print(f"   Status: {vault.status(tx_id).value}, vault balance {vault.balance():,}")
    print()

    state['open'] = True
    print("Attempt 2: service open")
    result = vault.execute(tx_id, callers[2])
    print(f"   ✅ returned {result.return_data!r}")
    print(f"   Status: {vault.status(tx_id).value}, vault balance {vault.balance():,}")


if __name__ == "__main__":
    main()
