import binascii
import re

from eth_keys.datatypes import Signature
from eth_keys.exceptions import BadSignature, ValidationError
from eth_typing import ChecksumAddress
from eth_utils import keccak
from hexbytes import HexBytes
from web3 import Web3

from webdav_gateway.core.logger.logger import logger
from webdav_gateway.core.service.auth.errors import (
    InvalidAddress,
    InvalidSignature,
    InvalidSignatureLength,
    SignatureMismatch,
)

SIGNATURE_LENGTH = 65
PERSONAL_MESSAGE_PREFIX = b"\x19Ethereum Signed Message:\n"

_ADDRESS_PATTERN = re.compile(r"^0x[0-9a-fA-F]{40}$")


class EthereumSigner:
    """Verifies EIP-191 personal_sign signatures"""

    @staticmethod
    def hash_message(message: str) -> bytes:
        """keccak256("\\x19Ethereum Signed Message:\\n" + len(message) + message)"""
        data = message.encode("utf-8")
        return keccak(PERSONAL_MESSAGE_PREFIX + str(len(data)).encode("ascii") + data)

    @staticmethod
    def is_valid_address(address: str) -> bool:
        return bool(address) and _ADDRESS_PATTERN.match(address) is not None

    @staticmethod
    def to_checksum_address(address: str) -> ChecksumAddress:
        try:
            return Web3.to_checksum_address(address.strip().lower())
        except (ValueError, TypeError) as e:
            raise InvalidAddress(details={"address": address}) from e

    @staticmethod
    def _decode_signature(signature: str) -> bytearray:
        if signature.startswith(("0x", "0X")):
            signature = signature[2:]
        try:
            raw = bytearray(HexBytes("0x" + signature))
        except (ValueError, binascii.Error) as e:
            raise InvalidSignature("Signature is not valid hex") from e

        if len(raw) != SIGNATURE_LENGTH:
            raise InvalidSignatureLength(
                f"Signature must be {SIGNATURE_LENGTH} bytes, got {len(raw)}"
            )

        # Wallets such as MetaMask encode the recovery id as 27/28
        if raw[64] >= 27:
            raw[64] -= 27
        return raw

    def recover_address(self, message: str, signature: str) -> ChecksumAddress:
        """Recover the checksummed address that signed ``message``"""
        raw = self._decode_signature(signature)
        try:
            public_key = Signature(signature_bytes=bytes(raw)).recover_public_key_from_msg_hash(
                self.hash_message(message)
            )
        except (BadSignature, ValidationError) as e:
            raise InvalidSignature("Failed to recover public key from signature") from e
        return public_key.to_checksum_address()

    def verify_signature(self, message: str, signature: str, expected_address: str) -> None:
        """
        Verify that ``signature`` over ``message`` was produced by ``expected_address``.

        Raises:
            InvalidSignature: hex could not be decoded or no key could be recovered
            InvalidSignatureLength: decoded signature is not 65 bytes
            InvalidAddress: expected_address is not an Ethereum address
            SignatureMismatch: recovered address differs from the expected one
        """
        checksum_address = self.to_checksum_address(expected_address)
        recovered_address = self.recover_address(message, signature)

        if recovered_address != checksum_address:
            logger.warning(
                "Recovered address does not match claimed address",
                extra={
                    "wallet_address": expected_address,
                    "recovered_address": recovered_address
                }
            )
            raise SignatureMismatch(
                details={"expected": expected_address.lower(), "recovered": recovered_address.lower()}
            )
