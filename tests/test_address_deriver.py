"""
Tests for object address derivation and address normalization.
"""
import hashlib

import pytest
from aptos_sdk.account_address import AccountAddress

from DecibelOnboard.address_deriver import (
    PRIMARY_SUBACCOUNT_SEED,
    USDC_METADATA_SEED,
    addresses_equal,
    derive_object_address,
    normalize_address,
)
from DecibelOnboard.exceptions import InvalidInputError

PACKAGE = "0xb8a5788314451ce4d2fbbad32e1bad88d4184b73943b7fe5166eab93cf1a5a95"
OWNER = "0xb540c13b3aab3966fd4c505bfd3851aed2f9983938ed4e89570a5234db65ff2"


class TestNormalizeAddress:

    def test_short_form_is_left_padded(self):
        assert normalize_address("0x1") == "0x" + "0" * 63 + "1"

    def test_uppercase_and_missing_prefix(self):
        assert normalize_address(PACKAGE.upper()[2:]) == PACKAGE

    def test_odd_length_address_is_padded(self):
        # 63 hex digits, as printed by some explorers
        assert normalize_address(OWNER) == "0x0" + OWNER[2:]

    @pytest.mark.parametrize("bad", ["", "0x", "0xzz", "0x" + "1" * 65, "not an address"])
    def test_malformed_addresses_raise(self, bad):
        with pytest.raises(InvalidInputError):
            normalize_address(bad)

    def test_uppercase_prefix(self):
        assert normalize_address("0X1") == "0x" + "0" * 63 + "1"

    def test_agrees_with_sdk_relaxed_parsing(self):
        assert normalize_address("0x1") == "0x" + AccountAddress.from_str_relaxed("0x1").address.hex()

    def test_non_string_raises(self):
        with pytest.raises(InvalidInputError):
            normalize_address(1234)

    def test_addresses_equal_ignores_case_and_padding(self):
        assert addresses_equal("0xABC", "0x0000abc")
        assert addresses_equal(PACKAGE, PACKAGE.upper().replace("0X", "0x"))
        assert not addresses_equal("0x1", "0x2")


class TestDeriveObjectAddress:

    def test_deterministic(self):
        first = derive_object_address(PACKAGE, USDC_METADATA_SEED)
        second = derive_object_address(PACKAGE, USDC_METADATA_SEED)
        assert first == second
        assert first.startswith("0x")
        assert len(first) == 66

    def test_matches_sha3_construction(self):
        creator = bytes.fromhex(PACKAGE[2:])
        expected = "0x" + hashlib.sha3_256(creator + b"USDC" + b"\xfe").hexdigest()
        assert derive_object_address(PACKAGE, "USDC") == expected

    def test_agrees_with_sdk_named_object(self):
        expected = AccountAddress.for_named_object(AccountAddress.from_str(PACKAGE), b"USDC")
        assert derive_object_address(PACKAGE, "USDC") == "0x" + expected.address.hex()

    def test_short_and_long_creator_forms_agree(self):
        assert derive_object_address("0x1", "seed") == derive_object_address("0x" + "0" * 63 + "1", "seed")

    def test_creator_case_does_not_matter(self):
        assert derive_object_address(PACKAGE.upper().replace("0X", "0x"), "seed") == derive_object_address(PACKAGE, "seed")

    def test_bytes_seed_equals_utf8_seed(self):
        assert derive_object_address(OWNER, PRIMARY_SUBACCOUNT_SEED.encode()) == derive_object_address(
            OWNER, PRIMARY_SUBACCOUNT_SEED
        )

    def test_different_seeds_give_different_addresses(self):
        assert derive_object_address(OWNER, PRIMARY_SUBACCOUNT_SEED) != derive_object_address(OWNER, USDC_METADATA_SEED)

    def test_different_creators_give_different_addresses(self):
        assert derive_object_address("0x1", "seed") != derive_object_address("0x2", "seed")

    def test_empty_seed_raises(self):
        with pytest.raises(InvalidInputError):
            derive_object_address(OWNER, "")

    def test_wrong_seed_type_raises(self):
        with pytest.raises(InvalidInputError):
            derive_object_address(OWNER, 42)

    def test_malformed_creator_raises(self):
        with pytest.raises(InvalidInputError):
            derive_object_address("0xnothex", "seed")
