"""Transaction assembly: sign, send and confirm a validated instruction list.

This is the common tail of every state-changing command. It performs no
validation of account state; by the time instructions reach it, the
lifecycle checks have passed.
"""

from collections.abc import Sequence

from solders.instruction import Instruction
from solders.keypair import Keypair
from solders.message import Message
from solders.signature import Signature
from solders.transaction import Transaction

from .errors import SigningError
from .logging import get_logger
from .rpc import RpcClient

logger = get_logger("transaction")


def _unique_signers(fee_payer: Keypair, signers: Sequence[Keypair]) -> list[Keypair]:
    unique: dict = {fee_payer.pubkey(): fee_payer}
    for signer in signers:
        unique.setdefault(signer.pubkey(), signer)
    return list(unique.values())


def check_signers(message: Message, signers: Sequence[Keypair]) -> None:
    """
    Ensure `signers` are exactly the accounts `message` requires to sign.

    Raises:
        SigningError: If a required signer is missing or an extra one is given
    """
    required = list(message.account_keys[: message.header.num_required_signatures])
    provided = [s.pubkey() for s in signers]

    missing = [p for p in required if p not in provided]
    if missing:
        raise SigningError(
            f"Missing signature for {', '.join(str(p) for p in missing)}", missing=missing
        )
    unexpected = [p for p in provided if p not in required]
    if unexpected:
        raise SigningError(
            f"Keypair {', '.join(str(p) for p in unexpected)} is not a signer of this transaction",
            unexpected=unexpected,
        )


async def build_and_send_tx(
    rpc: RpcClient,
    instructions: Sequence[Instruction],
    fee_payer: Keypair,
    signers: Sequence[Keypair] = (),
) -> Signature:
    """
    Sign `instructions` and submit them, waiting for confirmation.

    Signers are matched by public key, so order and duplicates do not matter.
    The fee payer always signs.

    Args:
        rpc: Client to submit through
        instructions: Ordered instruction list
        fee_payer: Pays fees and signs first
        signers: Any other keypairs the instructions require

    Returns:
        The confirmed transaction signature

    Raises:
        SigningError: Before anything is sent, if the signer set is wrong
        SubmissionError: If the cluster rejects, fails or never confirms it
    """
    keypairs = _unique_signers(fee_payer, signers)
    message = Message(list(instructions), fee_payer.pubkey())
    check_signers(message, keypairs)

    latest = await rpc.get_latest_blockhash()
    transaction = Transaction(keypairs, message, latest.blockhash)
    logger.debug(
        "Submitting %d instruction(s) with %d signer(s)", len(instructions), len(keypairs)
    )
    return await rpc.send_and_confirm_transaction(transaction, latest.last_valid_block_height)
