"""Tests for affaire identifier validation."""
import unittest

from cetieflow.core.identifier import is_valid_identifier, normalize_identifier, validate_identifier
from cetieflow.utils.exceptions import IdentifierValidationError, ValidationError


class TestValidateIdentifier(unittest.TestCase):
    def test_trims_and_uppercases(self):
        self.assertEqual(validate_identifier(" ab12cd34 "), "AB12CD34")

    def test_seven_characters_rejected(self):
        with self.assertRaises(IdentifierValidationError) as ctx:
            validate_identifier("AB12CD3")
        self.assertEqual(str(ctx.exception), "Numéro invalide")

    def test_symbol_rejected(self):
        with self.assertRaises(IdentifierValidationError):
            validate_identifier("AB12CD3#")

    def test_nine_characters_rejected_when_typed(self):
        self.assertFalse(is_valid_identifier("AB12CD345"))

    def test_scan_keeps_leading_eight(self):
        self.assertEqual(validate_identifier("ab12cd34-2024-XYZ", scanned=True), "AB12CD34")

    def test_short_scan_has_scan_message(self):
        with self.assertRaises(IdentifierValidationError) as ctx:
            validate_identifier("AB12", scanned=True)
        self.assertIn("Code39", str(ctx.exception))

    def test_is_a_validation_error(self):
        self.assertTrue(issubclass(IdentifierValidationError, ValidationError))

    def test_none_normalizes_to_empty(self):
        self.assertEqual(normalize_identifier(None), "")
        self.assertFalse(is_valid_identifier(""))


if __name__ == "__main__":
    unittest.main()
