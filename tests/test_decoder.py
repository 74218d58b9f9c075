"""Tests for account state decoding."""

import pytest
from helpers import (
    encode_delegated,
    encode_initialized,
    encode_rewards_pool,
    encode_stake_history,
    encode_uninitialized,
    encode_vote_state,
    history_account,
    stake_account,
    system_account,
    vote_account,
)
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from scilla.accounts import (
    Delegated,
    Initialized,
    RewardsPool,
    Uninitialized,
    decode_stake_account,
    decode_stake_history,
    decode_vote_account,
    state_label,
)
from scilla.constants import DEACTIVATION_EPOCH_SENTINEL, STAKE_PROGRAM_ID, VOTE_PROGRAM_ID
from scilla.errors import MalformedAccountDataError, WrongOwnerError
from scilla.rpc import Account


@pytest.fixture
def keys():
    return [Keypair().pubkey() for _ in range(5)]


class TestStakeDecoding:
    """Tests for decode_stake_account."""

    def test_all_variants(self, keys):
        """Should decode each StakeStateV2 variant."""
        staker, withdrawer, voter, address, _ = keys
        assert isinstance(decode_stake_account(address, stake_account(encode_uninitialized())), Uninitialized)
        assert isinstance(decode_stake_account(address, stake_account(encode_rewards_pool())), RewardsPool)

        initialized = decode_stake_account(address, stake_account(encode_initialized(staker, withdrawer)))
        assert isinstance(initialized, Initialized)
        assert initialized.meta.authorized.staker == staker
        assert initialized.meta.authorized.withdrawer == withdrawer

    def test_delegated(self, keys):
        """Should decode the delegation and detect the sentinel."""
        staker, withdrawer, voter, address, _ = keys
        data = encode_delegated(staker, withdrawer, voter, stake=42, activation_epoch=7, credits_observed=9)
        state = decode_stake_account(address, stake_account(data))

        assert isinstance(state, Delegated)
        assert state.delegation.voter_pubkey == voter
        assert state.delegation.stake == 42
        assert state.delegation.activation_epoch == 7
        assert state.delegation.deactivation_epoch == DEACTIVATION_EPOCH_SENTINEL
        assert not state.delegation.is_deactivating
        assert state.credits_observed == 9
        assert state_label(state) == "stake"

    def test_deactivating_label(self, keys):
        """Should describe a deactivating stake with its epoch."""
        staker, withdrawer, voter, address, _ = keys
        state = decode_stake_account(
            address, stake_account(encode_delegated(staker, withdrawer, voter, deactivation_epoch=12))
        )
        assert state.delegation.is_deactivating
        assert state.delegation.is_fully_deactivated(13)
        assert not state.delegation.is_fully_deactivated(12)
        assert "deactivating since epoch 12" in state_label(state)

    def test_wrong_owner_checked_first(self, keys):
        """Should report the owner mismatch even when the bytes are garbage."""
        address = keys[0]
        account = Account(lamports=1, owner=VOTE_PROGRAM_ID, data=b"\xff" * 3)
        with pytest.raises(WrongOwnerError) as exc:
            decode_stake_account(address, account)
        assert exc.value.expected == STAKE_PROGRAM_ID
        assert exc.value.actual == VOTE_PROGRAM_ID

    def test_system_account_is_wrong_owner(self, keys):
        """Should treat a plain wallet as the wrong owner."""
        with pytest.raises(WrongOwnerError):
            decode_stake_account(keys[0], system_account())

    @pytest.mark.parametrize(
        "data",
        [
            b"",
            b"\x01\x00",
            b"\x09\x00\x00\x00",
            b"\x01\x00\x00\x00" + b"\x00" * 20,
        ],
    )
    def test_malformed(self, keys, data):
        """Should fail cleanly on truncated or unknown payloads."""
        with pytest.raises(MalformedAccountDataError):
            decode_stake_account(keys[0], stake_account(data))

    def test_oversized(self, keys):
        """Should refuse payloads larger than a stake account."""
        with pytest.raises(MalformedAccountDataError, match="exceeds limit"):
            decode_stake_account(keys[0], stake_account(encode_uninitialized() + b"\0"))


class TestVoteDecoding:
    """Tests for decode_vote_account."""

    @pytest.mark.parametrize("version", [1, 2, 3])
    def test_versions(self, keys, version):
        """Should decode every layout into the same VoteState."""
        node, withdrawer, voter_a, voter_b, address = keys
        data = encode_vote_state(
            node,
            withdrawer,
            {5: voter_a, 9: voter_b},
            version=version,
            commission=7,
            votes=[(100, 2), (101, 1)],
            root_slot=99,
            epoch_credits=[(8, 50, 0), (9, 80, 50)],
            timestamp=(101, 1_700_000_000),
        )
        state = decode_vote_account(address, vote_account(data))

        assert state.node_pubkey == node
        assert state.authorized_withdrawer == withdrawer
        assert state.authorized_voters == {5: voter_a, 9: voter_b}
        assert state.commission == 7
        assert [v.slot for v in state.votes] == [100, 101]
        assert state.root_slot == 99
        assert state.credits == 80
        assert state.last_timestamp.timestamp == 1_700_000_000

    def test_v0_23_5(self, keys):
        """Should decode the oldest layout's single authorized voter."""
        node, withdrawer, voter, _, address = keys
        data = encode_vote_state(node, withdrawer, {3: voter}, version=0, commission=100)
        state = decode_vote_account(address, vote_account(data))
        assert state.version == "0.23.5"
        assert state.authorized_voters == {3: voter}
        assert state.commission == 100
        assert state.root_slot is None

    def test_v4_collectors(self, keys):
        """Should expose the V4 collectors and basis-point commission."""
        node, withdrawer, voter, collector, address = keys
        data = encode_vote_state(node, withdrawer, {0: voter}, version=3, commission=5, collector=collector)
        state = decode_vote_account(address, vote_account(data))
        assert state.version == "v4"
        assert state.commission_bps == 500
        assert state.inflation_rewards_collector == collector
        assert state.block_revenue_commission_bps == 10_000

    def test_authorized_voter_by_epoch(self, keys):
        """Should resolve the voter in effect for an epoch, not the newest entry."""
        node, withdrawer, old_voter, new_voter, address = keys
        data = encode_vote_state(node, withdrawer, {10: old_voter, 12: new_voter})
        state = decode_vote_account(address, vote_account(data))

        assert state.authorized_voter_for(9) is None
        assert state.authorized_voter_for(10) == old_voter
        assert state.authorized_voter_for(11) == old_voter
        assert state.authorized_voter_for(12) == new_voter
        assert state.latest_authorized_voter == new_voter

    def test_wrong_owner(self, keys):
        """Should reject stake accounts passed as vote accounts."""
        with pytest.raises(WrongOwnerError):
            decode_vote_account(keys[0], stake_account(encode_uninitialized()))

    def test_unknown_version(self, keys):
        """Should reject unknown layout tags."""
        with pytest.raises(MalformedAccountDataError, match="unknown vote state version"):
            decode_vote_account(keys[0], vote_account(b"\x07\x00\x00\x00" + b"\x00" * 100))

    def test_hostile_length_prefix(self, keys):
        """Should bound length prefixes before reading items."""
        node, withdrawer = keys[0], keys[1]
        data = b"\x02\x00\x00\x00" + bytes(node) + bytes(withdrawer) + b"\x05" + b"\xff" * 8
        with pytest.raises(MalformedAccountDataError, match="exceeds maximum"):
            decode_vote_account(keys[2], vote_account(data))

    def test_truncated(self, keys):
        """Should fail cleanly on a truncated account."""
        node, withdrawer, voter = keys[0], keys[1], keys[2]
        data = encode_vote_state(node, withdrawer, {0: voter}).rstrip(b"\0")[:90]
        with pytest.raises(MalformedAccountDataError):
            decode_vote_account(keys[3], vote_account(data))


class TestStakeHistoryDecoding:
    """Tests for decode_stake_history."""

    def test_decodes_entries(self):
        """Should decode entries newest first."""
        entries = decode_stake_history(history_account([(11, 300, 20, 10), (10, 290, 15, 5)]))
        assert [e.epoch for e in entries] == [11, 10]
        assert entries[0].effective == 300
        assert entries[0].activating == 20
        assert entries[0].deactivating == 10

    def test_requires_sysvar_owner(self):
        """Should reject a history account not owned by the sysvar program."""
        account = Account(lamports=1, owner=Pubkey.default(), data=encode_stake_history([]))
        with pytest.raises(WrongOwnerError):
            decode_stake_history(account)

    def test_rejects_too_many_entries(self):
        """Should reject an entry count beyond the sysvar's capacity."""
        data = (513).to_bytes(8, "little") + b"\0" * 32
        account = Account(lamports=1, owner=history_account([]).owner, data=data)
        with pytest.raises(MalformedAccountDataError, match="exceeds maximum"):
            decode_stake_history(account)
