"""
Tests for transaction assembly, signing and broadcasting.
"""

from __future__ import annotations

import struct
from unittest.mock import AsyncMock

import base58
import pytest
from coincurve import PrivateKey

from mayazcash.address import pubkey_to_address
from mayazcash.builder import (
    build_transaction,
    build_tx,
    send_to_vault,
    sign_and_finalize,
    sign_transaction,
    validate_request,
)
from mayazcash.constants import MAX_AMOUNT
from mayazcash.errors import (
    AmountTooLarge,
    InsufficientFunds,
    InvalidAddress,
    InvalidAmount,
    InvalidSecretKey,
    MemoTooLong,
    ZcashError,
)
from mayazcash.models import (
    DataCarrierOutput,
    NetworkParams,
    PKHOutput,
    UnspentOutput,
)
from mayazcash.serializer import deserialize_transaction
from mayazcash.sighash import SighashEngine
from mayazcash.signer import is_low_s, verify_digest


class TestValidateRequest:
    def test_valid(self, from_address: str, to_address: str, testnet: NetworkParams) -> None:
        validate_request(from_address, to_address, 1_000_000, "MEMO", testnet)

    def test_from_address_wrong_network(
        self, from_address: str, to_address: str, mainnet: NetworkParams
    ) -> None:
        with pytest.raises(InvalidAddress) as exc_info:
            validate_request(from_address, to_address, 1_000_000, "MEMO", mainnet)
        assert exc_info.value.address == from_address

    def test_to_address_invalid(self, from_address: str, testnet: NetworkParams) -> None:
        with pytest.raises(InvalidAddress) as exc_info:
            validate_request(from_address, "tmInvalid", 1_000_000, "MEMO", testnet)
        assert exc_info.value.address == "tmInvalid"

    def test_amount_at_limit(
        self, from_address: str, to_address: str, testnet: NetworkParams
    ) -> None:
        validate_request(from_address, to_address, MAX_AMOUNT, "", testnet)

    def test_amount_over_limit(
        self, from_address: str, to_address: str, testnet: NetworkParams
    ) -> None:
        with pytest.raises(AmountTooLarge):
            validate_request(from_address, to_address, MAX_AMOUNT + 1, "", testnet)

    @pytest.mark.parametrize("amount", [0, -5])
    def test_non_positive_amount(
        self, from_address: str, to_address: str, testnet: NetworkParams, amount: int
    ) -> None:
        with pytest.raises(InvalidAmount):
            validate_request(from_address, to_address, amount, "", testnet)

    def test_memo_at_limit(
        self, from_address: str, to_address: str, testnet: NetworkParams
    ) -> None:
        validate_request(from_address, to_address, 1, "m" * 80, testnet)

    def test_memo_over_limit(
        self, from_address: str, to_address: str, testnet: NetworkParams
    ) -> None:
        with pytest.raises(MemoTooLong):
            validate_request(from_address, to_address, 1, "m" * 81, testnet)


class TestBuildTransaction:
    def test_scenario(
        self,
        from_address: str,
        to_address: str,
        three_utxos: list[UnspentOutput],
        testnet: NetworkParams,
    ) -> None:
        tx = build_transaction(
            200, from_address, to_address, 1_000_000, "MEMO", three_utxos, testnet
        )

        assert tx.fee == 15_000
        assert tx.height == 200
        assert tx.inputs == tuple(three_utxos)
        assert tx.outputs == (
            PKHOutput(address=from_address, amount=185_000),
            PKHOutput(address=to_address, amount=1_000_000),
            DataCarrierOutput(memo="MEMO"),
        )

    def test_overshoot_goes_to_change(
        self, from_address: str, to_address: str, testnet: NetworkParams, make_utxo
    ) -> None:
        """Whatever the last selected input overshoots is returned as change."""
        utxos = [make_utxo(from_address, 5_000_000, seed=1)]
        tx = build_transaction(200, from_address, to_address, 1_000_000, "", utxos, testnet)

        assert tx.outputs[0].amount == 5_000_000 - 1_000_000 - 15_000
        assert tx.total_input == tx.total_output + tx.fee

    def test_fee_follows_selected_input_count(
        self, from_address: str, to_address: str, testnet: NetworkParams, make_utxo
    ) -> None:
        utxos = [make_utxo(from_address, 300_000, seed=i) for i in range(6)]
        tx = build_transaction(200, from_address, to_address, 1_000_000, "", utxos, testnet)

        assert len(tx.inputs) == 4
        assert tx.fee == 20_000
        assert tx.outputs[0].amount == 1_200_000 - 1_000_000 - 20_000

    def test_exact_amount_leaves_zero_change(
        self, from_address: str, to_address: str, testnet: NetworkParams, make_utxo
    ) -> None:
        utxos = [make_utxo(from_address, 1_015_000, seed=1)]
        tx = build_transaction(200, from_address, to_address, 1_000_000, "", utxos, testnet)
        assert tx.outputs[0].amount == 0

    def test_insufficient_funds(
        self, from_address: str, to_address: str, testnet: NetworkParams, make_utxo
    ) -> None:
        utxos = [make_utxo(from_address, 500_000, seed=1), make_utxo(from_address, 500_000, seed=2)]
        with pytest.raises(InsufficientFunds) as exc_info:
            build_transaction(200, from_address, to_address, 1_000_000, "", utxos, testnet)
        assert exc_info.value.available == 1_000_000
        assert exc_info.value.required == 1_015_000

    def test_max_amount(
        self, from_address: str, to_address: str, testnet: NetworkParams, make_utxo
    ) -> None:
        utxos = [make_utxo(from_address, 2 * MAX_AMOUNT, seed=1)]
        tx = build_transaction(200, from_address, to_address, MAX_AMOUNT, "", utxos, testnet)
        assert tx.outputs[1].amount == MAX_AMOUNT

    def test_amount_too_large_before_selection(
        self, from_address: str, to_address: str, testnet: NetworkParams, make_utxo
    ) -> None:
        utxos = [make_utxo(from_address, 2 * MAX_AMOUNT, seed=1)]
        with pytest.raises(AmountTooLarge):
            build_transaction(200, from_address, to_address, MAX_AMOUNT + 1, "", utxos, testnet)

    def test_change_over_limit(
        self, from_address: str, to_address: str, testnet: NetworkParams, make_utxo
    ) -> None:
        """A large UTXO spent for a small payment leaves change above MAX_AMOUNT."""
        utxos = [make_utxo(from_address, 2 * MAX_AMOUNT, seed=1)]

        with pytest.raises(AmountTooLarge) as exc_info:
            build_transaction(200, from_address, to_address, 1_000_000, "MEMO", utxos, testnet)

        assert isinstance(exc_info.value, ZcashError)
        assert exc_info.value.amount == 2 * MAX_AMOUNT - 1_000_000 - 15_000

    def test_memo_boundaries(
        self,
        from_address: str,
        to_address: str,
        three_utxos: list[UnspentOutput],
        testnet: NetworkParams,
    ) -> None:
        tx = build_transaction(
            200, from_address, to_address, 1_000_000, "m" * 80, three_utxos, testnet
        )
        assert tx.outputs[2] == DataCarrierOutput(memo="m" * 80)

        with pytest.raises(MemoTooLong):
            build_transaction(
                200, from_address, to_address, 1_000_000, "m" * 81, three_utxos, testnet
            )

    def test_idempotent(
        self,
        from_address: str,
        to_address: str,
        three_utxos: list[UnspentOutput],
        testnet: NetworkParams,
    ) -> None:
        args = (200, from_address, to_address, 1_000_000, "MEMO", three_utxos, testnet)
        first = build_transaction(*args)
        second = build_transaction(*args)

        assert first == second
        assert SighashEngine(first, testnet).signature_digests() == (
            SighashEngine(second, testnet).signature_digests()
        )

    def test_utxo_on_other_network_rejected(
        self,
        from_address: str,
        to_address: str,
        pubkey: bytes,
        mainnet: NetworkParams,
        testnet: NetworkParams,
        make_utxo,
    ) -> None:
        foreign = pubkey_to_address(pubkey, mainnet.address_prefix)
        utxos = [make_utxo(foreign, 5_000_000, seed=1)]
        with pytest.raises(InvalidAddress):
            build_transaction(200, from_address, to_address, 1_000_000, "", utxos, testnet)


class TestSigning:
    @pytest.fixture
    def scenario_tx(
        self,
        from_address: str,
        to_address: str,
        three_utxos: list[UnspentOutput],
        testnet: NetworkParams,
    ):
        return build_transaction(
            200, from_address, to_address, 1_000_000, "MEMO", three_utxos, testnet
        )

    def test_end_to_end(self, scenario_tx, secret_key_hex: str, pubkey: bytes, testnet) -> None:
        raw = sign_and_finalize(
            200, secret_key_hex, scenario_tx.inputs, scenario_tx.outputs, testnet
        )

        digests = SighashEngine(scenario_tx, testnet).signature_digests()
        parsed = deserialize_transaction(raw)
        assert len(parsed.inputs) == 3
        for inp, digest in zip(parsed.inputs, digests):
            sig_len = inp.script_sig[0]
            signature = inp.script_sig[1:sig_len]
            assert inp.script_sig[sig_len] == 0x01
            assert verify_digest(signature, digest, pubkey)

    def test_scenario_raw_layout(
        self,
        scenario_tx,
        secret_key_hex: str,
        pubkey: bytes,
        from_address: str,
        to_address: str,
        testnet: NetworkParams,
    ) -> None:
        """Every byte of the signed scenario outside the signatures is fixed."""
        raw = sign_and_finalize(
            200, secret_key_hex, scenario_tx.inputs, scenario_tx.outputs, testnet
        )
        digests = SighashEngine(scenario_tx, testnet).signature_digests()

        head = bytes.fromhex("05000080" "0a27a726" "5510e7c8" "00000000" "c8000000" "03")
        assert raw[: len(head)] == head
        offset = len(head)

        for (seed, index), digest in zip([(1, 0), (2, 1), (3, 7)], digests):
            outpoint = bytes.fromhex("ab" + f"{seed:02x}" * 31) + struct.pack("<I", index)
            assert raw[offset : offset + 36] == outpoint
            offset += 36

            script_len = raw[offset]
            script = raw[offset + 1 : offset + 1 + script_len]
            offset += 1 + script_len
            sig_len = script[0]
            der = script[1:sig_len]
            assert script[sig_len:] == b"\x01" + b"\x21" + pubkey
            assert script_len == sig_len + 1 + 34
            assert is_low_s(der)
            assert verify_digest(der, digest, pubkey)

            assert raw[offset : offset + 4] == b"\xff\xff\xff\xff"
            offset += 4

        change_pkh = base58.b58decode_check(from_address)[2:]
        dest_pkh = base58.b58decode_check(to_address)[2:]
        tail = (
            bytes.fromhex("03" "a8d2020000000000" "1976a914")
            + change_pkh
            + bytes.fromhex("88ac" "40420f0000000000" "1976a914")
            + dest_pkh
            + bytes.fromhex("88ac" "0000000000000000" "066a04")
            + b"MEMO"
            + bytes.fromhex("000000")
        )
        assert raw[offset:] == tail

    def test_sign_and_finalize_is_deterministic(
        self, scenario_tx, secret_key_hex: str, testnet: NetworkParams
    ) -> None:
        first = sign_and_finalize(
            200, secret_key_hex, scenario_tx.inputs, scenario_tx.outputs, testnet
        )
        second = sign_and_finalize(
            200, secret_key_hex, scenario_tx.inputs, scenario_tx.outputs, testnet
        )
        assert first == second

    def test_sign_and_finalize_matches_sign_transaction(
        self, scenario_tx, secret_key_hex: str, private_key: PrivateKey, testnet: NetworkParams
    ) -> None:
        assert sign_and_finalize(
            200, secret_key_hex, scenario_tx.inputs, scenario_tx.outputs, testnet
        ) == sign_transaction(scenario_tx, private_key, testnet)

    def test_sign_and_finalize_rejects_other_network_wif(
        self, scenario_tx, private_key: PrivateKey, testnet: NetworkParams
    ) -> None:
        mainnet_wif = base58.b58encode_check(b"\x80" + private_key.secret + b"\x01").decode()
        with pytest.raises(InvalidSecretKey, match="WIF version"):
            sign_and_finalize(200, mainnet_wif, scenario_tx.inputs, scenario_tx.outputs, testnet)

    def test_sign_and_finalize_accepts_network_wif(
        self, scenario_tx, private_key: PrivateKey, testnet: NetworkParams, secret_key_hex: str
    ) -> None:
        testnet_wif = base58.b58encode_check(b"\xef" + private_key.secret + b"\x01").decode()
        assert sign_and_finalize(
            200, testnet_wif, scenario_tx.inputs, scenario_tx.outputs, testnet
        ) == sign_and_finalize(
            200, secret_key_hex, scenario_tx.inputs, scenario_tx.outputs, testnet
        )

    def test_outputs_exceeding_inputs(
        self,
        to_address: str,
        three_utxos: list[UnspentOutput],
        secret_key_hex: str,
        testnet: NetworkParams,
    ) -> None:
        outputs = [PKHOutput(address=to_address, amount=1_300_000)]
        with pytest.raises(InsufficientFunds):
            sign_and_finalize(200, secret_key_hex, three_utxos, outputs, testnet)

    def test_unbalanced_transaction_rejected(
        self, scenario_tx, private_key: PrivateKey, testnet: NetworkParams
    ) -> None:
        unbalanced = scenario_tx.model_copy(update={"fee": scenario_tx.fee + 1})
        with pytest.raises(ValueError, match="Unbalanced"):
            sign_transaction(unbalanced, private_key, testnet)

    def test_wrong_key(self, scenario_tx, testnet: NetworkParams) -> None:
        with pytest.raises(InvalidSecretKey, match="does not control"):
            sign_transaction(scenario_tx, PrivateKey(bytes([9]) * 32), testnet)


class TestAsyncHelpers:
    @pytest.mark.asyncio
    async def test_build_tx_fetches_utxos(
        self,
        from_address: str,
        to_address: str,
        three_utxos: list[UnspentOutput],
        testnet: NetworkParams,
    ) -> None:
        backend = AsyncMock()
        backend.get_utxos = AsyncMock(return_value=three_utxos)

        tx = await build_tx(200, from_address, to_address, 1_000_000, "MEMO", backend, testnet)

        backend.get_utxos.assert_awaited_once_with(from_address)
        assert tx.fee == 15_000

    @pytest.mark.asyncio
    async def test_build_tx_validates_before_fetching(
        self, from_address: str, to_address: str, testnet: NetworkParams
    ) -> None:
        backend = AsyncMock()
        backend.get_utxos = AsyncMock(return_value=[])

        with pytest.raises(MemoTooLong):
            await build_tx(200, from_address, to_address, 1_000, "m" * 81, backend, testnet)
        backend.get_utxos.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_send_to_vault_broadcasts(
        self,
        from_address: str,
        to_address: str,
        three_utxos: list[UnspentOutput],
        secret_key_hex: str,
        testnet: NetworkParams,
    ) -> None:
        backend = AsyncMock()
        backend.get_utxos = AsyncMock(return_value=three_utxos)
        backend.broadcast_transaction = AsyncMock(return_value="txid123")

        result = await send_to_vault(
            200, secret_key_hex, from_address, to_address, 1_000_000, "MEMO", backend, testnet
        )

        assert result.txid == "txid123"
        backend.broadcast_transaction.assert_awaited_once_with(result.data.hex())

    @pytest.mark.asyncio
    async def test_send_to_vault_without_broadcast(
        self,
        from_address: str,
        to_address: str,
        three_utxos: list[UnspentOutput],
        secret_key_hex: str,
        testnet: NetworkParams,
    ) -> None:
        backend = AsyncMock()
        backend.get_utxos = AsyncMock(return_value=three_utxos)
        backend.broadcast_transaction = AsyncMock()

        result = await send_to_vault(
            200,
            secret_key_hex,
            from_address,
            to_address,
            1_000_000,
            "MEMO",
            backend,
            testnet,
            broadcast=False,
        )

        backend.broadcast_transaction.assert_not_awaited()
        assert len(result.txid) == 64
        assert deserialize_transaction(result.data).expiry_height == 200

    @pytest.mark.asyncio
    async def test_insufficient_funds_never_signs(
        self,
        from_address: str,
        to_address: str,
        secret_key_hex: str,
        testnet: NetworkParams,
        make_utxo,
    ) -> None:
        backend = AsyncMock()
        backend.get_utxos = AsyncMock(return_value=[make_utxo(from_address, 10_000, seed=1)])
        backend.broadcast_transaction = AsyncMock()

        with pytest.raises(InsufficientFunds):
            await send_to_vault(
                200, secret_key_hex, from_address, to_address, 1_000_000, "", backend, testnet
            )
        backend.broadcast_transaction.assert_not_awaited()
