import unittest

from shared_custody.config import EngineConfig
from shared_custody.errors import InvalidConfiguration


class TestEngineConfig(unittest.TestCase):

    def test_default_config(self):
        """Test default config parameters"""
        config = EngineConfig.default()

        self.assertEqual(config.call_gas_limit, 3_000_000)
        self.assertEqual(config.call_base_gas, 700)
        self.assertEqual(config.payload_byte_gas, 16)

    def test_constrained_config(self):
        config = EngineConfig.constrained()
        self.assertEqual(config.call_gas_limit, 2_300)

    def test_intrinsic_gas(self):
        config = EngineConfig.default()
        self.assertEqual(config.intrinsic_gas(b""), 700)
        self.assertEqual(config.intrinsic_gas(b"\x00" * 10), 860)

    def test_from_env(self):
        config = EngineConfig.from_env({
            'CUSTODY_CALL_GAS_LIMIT': '50000',
            'CUSTODY_PAYLOAD_BYTE_GAS': '4'
        })
        self.assertEqual(config.call_gas_limit, 50_000)
        self.assertEqual(config.call_base_gas, 700)
        self.assertEqual(config.payload_byte_gas, 4)

    def test_invalid_values(self):
        with self.assertRaises(InvalidConfiguration):
            EngineConfig(call_gas_limit=0)
        with self.assertRaises(InvalidConfiguration):
            EngineConfig(call_base_gas=-1)
        with self.assertRaises(InvalidConfiguration):
            EngineConfig.from_env({'CUSTODY_CALL_GAS_LIMIT': 'lots'})


if __name__ == '__main__':
    unittest.main()
