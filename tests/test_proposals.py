import unittest

from shared_custody.errors import (
    AlreadyConfirmed, AlreadyExecuted, CancelUnauthorized, InsufficientFunds,
    InvalidAmount, InvalidDestination, NotConfirmed, NotFound, Unauthorized
)
from shared_custody.events import EventKind
from shared_custody.host.environment import HostEnvironment
from shared_custody.host.identity import NULL_ADDRESS, PrincipalKey, make_address
from shared_custody.proposals import TransactionStatus
from shared_custody.vault import MultiSigVault


class TestProposalStore(unittest.TestCase):

    def setUp(self):
        """Set up test fixtures"""
        self.host = HostEnvironment()
        self.keys = [PrincipalKey() for _ in range(3)]
        self.callers = [self.host.caller_for(k) for k in self.keys]
        self.vault = MultiSigVault.create([k.address for k in self.keys], 2, host=self.host)
        self.vault.receive(1_000)
        self.target = make_address("target")

    def test_submit_assigns_sequential_ids(self):
        first = self.vault.submit(self.target, 10, b"", self.callers[0])
        second = self.vault.submit(self.target, 20, b"\xaa", self.callers[1])

        self.assertEqual((first, second), (0, 1))
        tx = self.vault.transaction(1)
        self.assertEqual(tx.value, 20)
        self.assertEqual(tx.payload, b"\xaa")
        self.assertEqual(tx.proposer, self.keys[1].address)
        self.assertEqual(tx.confirmations_count, 0)
        self.assertFalse(tx.executed)

    def test_submit_does_not_auto_confirm(self):
        tx_id = self.vault.submit(self.target, 0, b"", self.callers[0])
        self.assertEqual(self.vault.confirmations(tx_id), [])
        self.assertEqual(self.vault.status(tx_id), TransactionStatus.PENDING)

    def test_submit_validation(self):
        """Test destination, value and balance checks at submission"""
        with self.assertRaises(InvalidDestination):
            self.vault.submit(NULL_ADDRESS, 0, b"", self.callers[0])
        with self.assertRaises(InvalidDestination):
            self.vault.submit("nowhere", 0, b"", self.callers[0])
        with self.assertRaises(InvalidAmount):
            self.vault.submit(self.target, -5, b"", self.callers[0])
        with self.assertRaises(InsufficientFunds):
            self.vault.submit(self.target, 1_001, b"", self.callers[0])
        with self.assertRaises(TypeError):
            self.vault.submit(self.target, 0, "text", self.callers[0])

        self.assertEqual(self.vault.transaction_count(), 0)
        self.assertEqual(self.vault.events.records(EventKind.PROPOSED), [])

    def test_confirm_and_revoke_keep_count_in_step(self):
        tx_id = self.vault.submit(self.target, 0, b"", self.callers[0])

        self.assertEqual(self.vault.confirm(tx_id, self.callers[1]), 1)
        self.assertEqual(self.vault.confirm(tx_id, self.callers[0]), 2)
        tx = self.vault.transaction(tx_id)
        self.assertEqual(tx.confirmations_count, len(tx.confirmed_by))
        self.assertTrue(self.vault.is_confirmed(tx_id))
        # registry order, not confirmation order
        self.assertEqual(self.vault.confirmations(tx_id), [self.keys[0].address, self.keys[1].address])

        self.assertEqual(self.vault.revoke(tx_id, self.callers[1]), 1)
        tx = self.vault.transaction(tx_id)
        self.assertEqual(tx.confirmations_count, len(tx.confirmed_by))
        self.assertFalse(self.vault.is_confirmed(tx_id))

        with self.assertRaises(NotConfirmed):
            self.vault.revoke(tx_id, self.callers[1])

    def test_double_confirm_rejected(self):
        tx_id = self.vault.submit(self.target, 0, b"", self.callers[0])
        self.vault.confirm(tx_id, self.callers[0])

        with self.assertRaises(AlreadyConfirmed):
            self.vault.confirm(tx_id, self.callers[0])
        self.assertEqual(self.vault.transaction(tx_id).confirmations_count, 1)
        self.assertEqual(len(self.vault.events.records(EventKind.CONFIRMED)), 1)

    def test_unknown_transaction(self):
        for tx_id in (0, -1, 5, "0", True):
            with self.assertRaises(NotFound):
                self.vault.confirm(tx_id, self.callers[0])
        with self.assertRaises(NotFound):
            self.vault.transaction(3)
        with self.assertRaises(NotFound):
            self.vault.status(0)

    def test_cancel_requires_prior_confirmation(self):
        tx_id = self.vault.submit(self.target, 0, b"", self.callers[0])

        # the proposer has not confirmed, so cannot cancel
        with self.assertRaises(CancelUnauthorized):
            self.vault.cancel(tx_id, self.callers[0])

        self.vault.confirm(tx_id, self.callers[2])
        self.vault.cancel(tx_id, self.callers[2])

        tx = self.vault.transaction(tx_id)
        self.assertTrue(tx.executed)
        self.assertTrue(tx.cancelled)
        self.assertEqual(tx.confirmations_count, 1)
        self.assertEqual(self.vault.status(tx_id), TransactionStatus.CANCELLED)

    def test_cancelled_transaction_is_terminal(self):
        tx_id = self.vault.submit(self.target, 0, b"", self.callers[0])
        self.vault.confirm(tx_id, self.callers[0])
        self.vault.confirm(tx_id, self.callers[1])
        self.vault.cancel(tx_id, self.callers[0])

        with self.assertRaises(AlreadyExecuted):
            self.vault.confirm(tx_id, self.callers[2])
        with self.assertRaises(AlreadyExecuted):
            self.vault.execute(tx_id, self.callers[0])
        with self.assertRaises(AlreadyExecuted):
            self.vault.cancel(tx_id, self.callers[1])
        with self.assertRaises(AlreadyExecuted):
            self.vault.revoke(tx_id, self.callers[1])

    def test_transaction_is_defensive_copy(self):
        tx_id = self.vault.submit(self.target, 0, b"", self.callers[0])
        snapshot = self.vault.transaction(tx_id)
        snapshot.confirmed_by.add(self.keys[2].address)
        snapshot.executed = True

        tx = self.vault.transaction(tx_id)
        self.assertEqual(tx.confirmed_by, set())
        self.assertFalse(tx.executed)

    def test_counts_and_id_filters(self):
        ids = [self.vault.submit(self.target, 0, b"", self.callers[0]) for _ in range(4)]
        self.vault.confirm(ids[1], self.callers[0])
        self.vault.confirm(ids[1], self.callers[1])
        self.vault.execute(ids[1], self.callers[0])

        self.assertEqual(self.vault.transaction_count(), 4)
        self.assertEqual(self.vault.transaction_count(pending=True, executed=False), 3)
        self.assertEqual(self.vault.transaction_count(pending=False, executed=True), 1)
        self.assertEqual(self.vault.transaction_ids(executed=False), [0, 2, 3])
        self.assertEqual(self.vault.transaction_ids(1, 3), [1, 2])

        # ids are creation indices, never counted from the end
        self.assertEqual(self.vault.transaction_ids(-2), [0, 1, 2, 3])
        self.assertEqual(self.vault.transaction_ids(0, -1), [])

    def test_non_owner_rejected(self):
        outsider = self.host.caller_for(PrincipalKey())
        with self.assertRaises(Unauthorized):
            self.vault.submit(self.target, 0, b"", outsider)

        tx_id = self.vault.submit(self.target, 0, b"", self.callers[0])
        for operation in (self.vault.confirm, self.vault.revoke, self.vault.cancel):
            with self.assertRaises(Unauthorized):
                operation(tx_id, outsider)

        self.assertEqual(self.vault.transaction(tx_id).confirmations_count, 0)


if __name__ == '__main__':
    unittest.main()
