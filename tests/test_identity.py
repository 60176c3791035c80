import unittest

from shared_custody.errors import Unauthorized
from shared_custody.host.identity import (
    NULL_ADDRESS, AttestedCaller, CallerAttestor, PrincipalKey,
    is_address, make_address, normalize_address
)


class TestPrincipalKey(unittest.TestCase):

    def test_key_pair_generation(self):
        """Test key pair produces a well-formed address"""
        private_hex, address = PrincipalKey.generate_key_pair()
        self.assertEqual(len(private_hex), 64)
        self.assertTrue(is_address(address))

        restored = PrincipalKey(bytes.fromhex(private_hex))
        self.assertEqual(restored.address, address)

    def test_compressed_public_key(self):
        key = PrincipalKey()
        pubkey = bytes.fromhex(key.get_public_key_hex())
        self.assertEqual(len(pubkey), 33)
        self.assertIn(pubkey[0], (2, 3))

    def test_sign_and_verify(self):
        key = PrincipalKey()
        signature = key.sign_message(b"hello")
        self.assertTrue(PrincipalKey.verify_signature(b"hello", signature, key.get_public_key_hex()))
        self.assertFalse(PrincipalKey.verify_signature(b"other", signature, key.get_public_key_hex()))
        self.assertFalse(PrincipalKey.verify_signature(b"hello", "zz", key.get_public_key_hex()))

    def test_address_helpers(self):
        self.assertTrue(is_address(NULL_ADDRESS))
        self.assertFalse(is_address("0x1234"))
        self.assertFalse(is_address(None))
        self.assertFalse(is_address("1x" + "00" * 20))
        self.assertEqual(normalize_address("0x" + "AB" * 20), "0x" + "ab" * 20)
        self.assertEqual(make_address("target"), make_address("target"))
        self.assertNotEqual(make_address("a"), make_address("b"))


class TestCallerAttestor(unittest.TestCase):

    def setUp(self):
        """Set up test fixtures"""
        self.attestor = CallerAttestor()
        self.key = PrincipalKey()

    def _sign_challenge(self, key=None):
        key = key or self.key
        challenge = self.attestor.challenge(key.address)
        return key.sign_message(CallerAttestor.challenge_message(challenge))

    def test_attestation_roundtrip(self):
        """Test signed challenge yields a verifiable caller"""
        signature = self._sign_challenge()
        caller = self.attestor.attest(self.key.get_public_key_hex(), signature)

        self.assertEqual(caller.address, self.key.address)
        self.assertEqual(self.attestor.verify(caller), self.key.address)

    def test_challenge_is_single_use(self):
        signature = self._sign_challenge()
        self.attestor.attest(self.key.get_public_key_hex(), signature)

        with self.assertRaises(Unauthorized):
            self.attestor.attest(self.key.get_public_key_hex(), signature)

    def test_wrong_signer_rejected(self):
        other = PrincipalKey()
        self.attestor.challenge(self.key.address)
        challenge = self.attestor.challenge(other.address)
        # signed by self.key, presented with other's public key
        signature = self.key.sign_message(CallerAttestor.challenge_message(challenge))

        with self.assertRaises(Unauthorized):
            self.attestor.attest(other.get_public_key_hex(), signature)

    def test_forged_caller_rejected(self):
        forged = AttestedCaller(self.key.address, b"\x00" * 32)
        with self.assertRaises(Unauthorized):
            self.attestor.verify(forged)

        with self.assertRaises(Unauthorized):
            self.attestor.verify(self.key.address)

    def test_other_attestor_rejected(self):
        caller = CallerAttestor().vouch(self.key.address)
        with self.assertRaises(Unauthorized):
            self.attestor.verify(caller)

    def test_token_roundtrip(self):
        caller = self.attestor.vouch(self.key.address)
        parsed = AttestedCaller.from_token(caller.token())
        self.assertEqual(parsed, caller)

        with self.assertRaises(Unauthorized):
            AttestedCaller.from_token("no-separator")
        with self.assertRaises(Unauthorized):
            AttestedCaller.from_token(self.key.address + ".nothex")


if __name__ == '__main__':
    unittest.main()
