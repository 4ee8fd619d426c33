import unittest

import numpy as np

from distnet.config import Combination, SuiteConfig
from distnet.core.structure import KeyKind, PayloadKind, PropertyKind
from distnet.errors import ConfigurationError, DistnetError, VerificationError


class TestSuiteConfig(unittest.TestCase):

    def test_default_sweep(self):
        cfg = SuiteConfig()
        combos = cfg.combinations()
        self.assertEqual(len(combos), 18)
        widths = {(str(c.vertex_dtype), str(c.edge_dtype)) for c in combos}
        self.assertEqual(widths, {("int32", "int32"), ("int32", "int64"), ("int64", "int64")})
        self.assertTrue(cfg.needs_tags)

    def test_coercion(self):
        cfg = SuiteConfig(key_kinds=["plain"], payload_kinds=["pair"], vertex_dtypes=[np.int64], property_kind="pair")
        self.assertEqual(cfg.key_kinds, (KeyKind.PLAIN,))
        self.assertEqual(cfg.payload_kinds, (PayloadKind.PAIR,))
        self.assertEqual(cfg.property_kind, PropertyKind.PAIR)
        self.assertFalse(cfg.needs_tags)
        self.assertEqual(str(cfg.combinations()[0]), "plain/pair/int64/int64")

    def test_invalid(self):
        bad = [
            {"bucket_count": 0},
            {"tag_count": 0},
            {"root": -1},
            {"key_kinds": ()},
            {"key_kinds": ("weird",)},
            {"vertex_dtypes": ("int16",)},
            {"vertex_dtypes": ("int64",), "edge_dtypes": ("int32",)},
            {"property_kind": "triple"},
        ]
        for kwargs in bad:
            with self.assertRaises(ConfigurationError, msg=str(kwargs)):
                SuiteConfig(**kwargs)

    def test_combination_dict(self):
        combo = Combination(KeyKind.TAGGED, PayloadKind.NONE, np.dtype("int32"), np.dtype("int64"))
        self.assertEqual(combo.as_dict(), {"key": "tagged", "payload": "none", "vertex": "int32", "edge": "int64"})


class TestErrors(unittest.TestCase):

    def test_hierarchy(self):
        self.assertTrue(issubclass(ConfigurationError, ValueError))
        self.assertTrue(issubclass(VerificationError, DistnetError))

    def test_verification_message(self):
        err = VerificationError("differ", {"key": "plain"}, {"len_a": 1})
        self.assertEqual(str(err), "differ [key=plain]")
        self.assertEqual(err.details, {"len_a": 1})
        self.assertEqual(str(VerificationError("plain message")), "plain message")


if __name__ == "__main__":
    unittest.main()
