import pytest
from eth_account import Account
from eth_account.messages import encode_defunct
from eth_utils import keccak

from webdav_gateway.core.service.auth.errors import (
    InvalidAddress,
    InvalidSignature,
    InvalidSignatureLength,
    SignatureMismatch,
)
from webdav_gateway.core.service.auth.signature_verification import EthereumSigner

from conftest import ALICE, ALICE_KEY, BOB, sign_message

MESSAGE = "Welcome to WebDAV!\n\nSign this message to authenticate.\n\nNonce: 0x1234"


@pytest.fixture
def signer():
    return EthereumSigner()


def _with_v(signature: str, v: int) -> str:
    raw = bytearray(bytes.fromhex(signature[2:]))
    raw[64] = v
    return "0x" + raw.hex()


class TestEthereumSigner:
    def test_hash_message_matches_personal_sign_prefix(self, signer):
        data = MESSAGE.encode()
        expected = keccak(b"\x19Ethereum Signed Message:\n" + str(len(data)).encode() + data)
        assert signer.hash_message(MESSAGE) == expected

    def test_hash_counts_bytes_not_characters(self, signer):
        message = "héllo"
        expected = keccak(b"\x19Ethereum Signed Message:\n6" + message.encode())
        assert signer.hash_message(message) == expected

    def test_valid_signature(self, signer):
        signature = sign_message(MESSAGE, ALICE_KEY)
        signer.verify_signature(MESSAGE, signature, ALICE.address)

    def test_address_compared_case_insensitively(self, signer):
        signature = sign_message(MESSAGE, ALICE_KEY)
        signer.verify_signature(MESSAGE, signature, ALICE.address.lower())

    def test_prefix_is_optional(self, signer):
        signature = sign_message(MESSAGE, ALICE_KEY)
        signer.verify_signature(MESSAGE, signature[2:], ALICE.address)

    def test_v_encoding_invariant(self, signer):
        signature = sign_message(MESSAGE, ALICE_KEY)
        v = int(signature[-2:], 16)
        assert v in (27, 28)

        signer.verify_signature(MESSAGE, _with_v(signature, v), ALICE.address)
        signer.verify_signature(MESSAGE, _with_v(signature, v - 27), ALICE.address)
        assert (
            signer.recover_address(MESSAGE, _with_v(signature, v))
            == signer.recover_address(MESSAGE, _with_v(signature, v - 27))
        )

    def test_signature_for_other_address_rejected(self, signer):
        signature = sign_message(MESSAGE, ALICE_KEY)
        with pytest.raises(SignatureMismatch):
            signer.verify_signature(MESSAGE, signature, BOB.address)

    def test_signature_for_other_message_rejected(self, signer):
        signature = sign_message("a different message", ALICE_KEY)
        with pytest.raises(SignatureMismatch):
            signer.verify_signature(MESSAGE, signature, ALICE.address)

    def test_recovers_same_address_as_eth_account(self, signer):
        signature = sign_message(MESSAGE, ALICE_KEY)
        expected = Account.recover_message(encode_defunct(text=MESSAGE), signature=signature)
        assert signer.recover_address(MESSAGE, signature) == expected

    def test_invalid_hex(self, signer):
        with pytest.raises(InvalidSignature):
            signer.verify_signature(MESSAGE, "0xzz" + "00" * 64, ALICE.address)

    @pytest.mark.parametrize("length", [0, 64, 66])
    def test_wrong_length(self, signer, length):
        with pytest.raises(InvalidSignatureLength):
            signer.verify_signature(MESSAGE, "0x" + "01" * length, ALICE.address)

    def test_wrong_length_is_an_invalid_signature(self):
        assert issubclass(InvalidSignatureLength, InvalidSignature)

    def test_bad_recovery_id(self, signer):
        signature = sign_message(MESSAGE, ALICE_KEY)
        with pytest.raises(InvalidSignature):
            signer.verify_signature(MESSAGE, _with_v(signature, 5), ALICE.address)

    def test_invalid_expected_address(self, signer):
        signature = sign_message(MESSAGE, ALICE_KEY)
        with pytest.raises(InvalidAddress):
            signer.verify_signature(MESSAGE, signature, "not-an-address")

    @pytest.mark.parametrize("address,valid", [
        ("0x" + "a" * 40, True),
        ("0x" + "A" * 40, True),
        ("a" * 40, False),
        ("0x" + "a" * 39, False),
        ("0x" + "g" * 40, False),
        ("", False),
    ])
    def test_is_valid_address(self, signer, address, valid):
        assert signer.is_valid_address(address) is valid
