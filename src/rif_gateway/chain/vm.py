"""
Single-writer transactional state store that executes contract calls.

The Chain plays the role of the ledger: it owns native balances, the
deployed contracts, the event log and the receipts, and it serializes
every call behind one re-entrant lock. Each top-level call is one
transaction mined in its own block.

Every external call opens a savepoint. If the call raises, all contract
storage, balances, deployment nonces and events written since the
savepoint are restored before the exception propagates, so a failed
transaction is never partially observable. Nested calls open nested
savepoints: a caller that catches a nested revert only loses the nested
frame's effects, the way a low-level call behaves on the EVM.
"""
from __future__ import annotations

import logging
import threading
from contextlib import nullcontext
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Set, Tuple, Type, TypeVar

from eth_utils import keccak

from ..config import GatewaySettings, load_settings
from ..exceptions import (
    ChainError,
    ContractAlreadyDeployed,
    ContractNotFound,
    GatewayException,
    InsufficientBalance,
    InvalidAmount,
    NoActiveCall,
)
from ..logging_config import LogContext
from .primitives import compute_create2_address, compute_create_address, normalize_address

if TYPE_CHECKING:
    from .contract import Contract

logger = logging.getLogger(__name__)

C = TypeVar("C", bound="Contract")
T = TypeVar("T")


@dataclass(frozen=True)
class Event:
    """A log entry emitted by a contract."""
    address: str
    name: str
    args: Tuple[Any, ...]
    block_number: int
    log_index: int


@dataclass(frozen=True)
class CallFrame:
    """msg context of the call currently executing."""
    sender: str
    to: str
    value: int
    function: str
    depth: int


@dataclass
class Receipt:
    """Outcome of one top-level transaction."""
    tx_hash: str
    block_number: int
    sender: str
    to: str
    function: str
    status: str
    events: Tuple[Event, ...] = ()
    error: Optional[GatewayException] = None

    @property
    def succeeded(self) -> bool:
        return self.status == "success"

    def events_named(self, name: str) -> List[Event]:
        return [e for e in self.events if e.name == name]


@dataclass
class _Savepoint:
    balances: Dict[str, int]
    storage: Dict[str, Dict[str, Any]]
    contracts: Set[str]
    deploy_nonces: Dict[str, int]
    event_count: int


@dataclass
class _PendingBlock:
    number: int
    tx_hash: str
    events_start: int = 0
    log_index: int = field(default=0)


class Chain:
    """In-process ledger that runs contract calls as atomic transactions."""

    def __init__(
        self,
        chain_id: Optional[int] = None,
        settings: Optional[GatewaySettings] = None,
    ):
        self.settings = settings or load_settings()
        self.chain_id = self.settings.chain_id if chain_id is None else chain_id
        self.block_number = 0
        self.receipts: List[Receipt] = []

        self._lock = threading.RLock()
        self._balances: Dict[str, int] = {}
        self._contracts: Dict[str, "Contract"] = {}
        self._deploy_nonces: Dict[str, int] = {}
        self._events: List[Event] = []
        self._frames: List[CallFrame] = []
        self._pending: Optional[_PendingBlock] = None

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def current_frame(self) -> CallFrame:
        if not self._frames:
            raise NoActiveCall()
        return self._frames[-1]

    @property
    def last_receipt(self) -> Optional[Receipt]:
        return self.receipts[-1] if self.receipts else None

    def get_balance(self, address: str) -> int:
        return self._balances.get(normalize_address(address), 0)

    def is_contract(self, address: str) -> bool:
        return normalize_address(address) in self._contracts

    def get_contract(self, address: str) -> "Contract":
        address = normalize_address(address)
        contract = self._contracts.get(address)
        if contract is None:
            raise ContractNotFound(address)
        return contract

    def get_events(
        self,
        name: Optional[str] = None,
        address: Optional[str] = None,
    ) -> List[Event]:
        """Committed and in-flight events, optionally filtered."""
        address = normalize_address(address) if address else None
        return [
            e
            for e in self._events
            if (name is None or e.name == name) and (address is None or e.address == address)
        ]

    # ------------------------------------------------------------------
    # Account funding (the local-node setBalance analogue)
    # ------------------------------------------------------------------

    def set_balance(self, address: str, amount: int) -> None:
        if amount < 0:
            raise InvalidAmount(amount)
        with self._lock:
            self._balances[normalize_address(address)] = amount

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    def execute(
        self,
        contract: "Contract",
        function: str,
        sender: str,
        value: int,
        body: Callable[[], T],
    ) -> T:
        """Run body as a call into contract from sender carrying value."""
        return self._run(contract.address, function, sender, value, body)

    def transfer(self, to: str, *, sender: str, value: int) -> None:
        """Plain value transfer sent as its own call."""
        to = normalize_address(to)
        target = self._contracts.get(to)
        if target is None:
            self._run(to, "transfer", sender, value, lambda: None)
            return
        receive = getattr(target, "receive", None)
        if receive is None:
            raise ChainError(f"Contract {to} cannot receive value")
        receive(sender=sender, value=value)

    def send_value(self, sender: str, to: str, amount: int) -> bool:
        """Low-level value call from a contract: reports failure instead of raising."""
        if amount < 0:
            raise InvalidAmount(amount)
        sender = normalize_address(sender)
        to = normalize_address(to)
        with self._lock:
            if self._balances.get(sender, 0) < amount:
                logger.debug(f"send_value {sender} -> {to} failed: insufficient balance")
                return False
            target = self._contracts.get(to)
            if target is None:
                self._move(sender, to, amount)
                return True
            receive = getattr(target, "receive", None)
            if receive is None:
                logger.debug(f"send_value {sender} -> {to} failed: recipient cannot receive value")
                return False
            try:
                receive(sender=sender, value=amount)
            except Exception as e:
                logger.info(f"send_value {sender} -> {to} reverted: {e}")
                return False
            return True

    def deploy(self, contract_cls: Type[C], *args: Any, sender: str, value: int = 0, **kwargs: Any) -> C:
        """Deploy with CREATE semantics: the address depends on the deployer's nonce."""
        deployer = normalize_address(sender)
        with self._lock:
            address = compute_create_address(deployer, self._deploy_nonces.get(deployer, 0))

            def construct() -> C:
                self._deploy_nonces[deployer] = self._deploy_nonces.get(deployer, 0) + 1
                return self._construct(contract_cls, address, args, kwargs)

            return self._run(address, f"{contract_cls.__name__}.constructor", deployer, value, construct)

    def deploy_deterministic(
        self,
        contract_cls: Type[C],
        *args: Any,
        sender: str,
        salt: bytes,
        constructor_data: bytes = b"",
        value: int = 0,
        **kwargs: Any,
    ) -> C:
        """Deploy with CREATE2 semantics: the address is fixed by deployer, salt and init code."""
        deployer = normalize_address(sender)
        init_code_hash = keccak(contract_cls.creation_code() + constructor_data)
        address = compute_create2_address(deployer, salt, init_code_hash)
        with self._lock:
            return self._run(
                address,
                f"{contract_cls.__name__}.constructor",
                deployer,
                value,
                lambda: self._construct(contract_cls, address, args, kwargs),
            )

    def emit(self, address: str, name: str, args: Tuple[Any, ...]) -> Event:
        if self._pending is None:
            raise NoActiveCall()
        event = Event(
            address=address,
            name=name,
            args=args,
            block_number=self._pending.number,
            log_index=self._pending.log_index,
        )
        self._pending.log_index += 1
        self._events.append(event)
        logger.debug(f"Event {name}{args} from {address}")
        return event

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _construct(self, contract_cls: Type[C], address: str, args: Tuple[Any, ...], kwargs: Dict[str, Any]) -> C:
        if address in self._contracts:
            raise ContractAlreadyDeployed(address)
        contract = contract_cls(self, address, *args, **kwargs)
        self._contracts[address] = contract
        logger.info(f"Deployed {contract_cls.__name__} at {address}")
        return contract

    def _run(self, to: str, function: str, sender: str, value: int, body: Callable[[], T]) -> T:
        sender = normalize_address(sender)
        if value < 0:
            raise InvalidAmount(value)

        with self._lock:
            outermost = not self._frames
            if outermost:
                number = self.block_number + 1
                tx_hash = "0x" + keccak(
                    text=f"{self.chain_id}:{number}:{sender}:{to}:{function}:{len(self.receipts)}"
                ).hex()
                self._pending = _PendingBlock(number=number, tx_hash=tx_hash, events_start=len(self._events))
                context = LogContext(tx_hash=tx_hash, sender=sender, contract=to)
            else:
                context = nullcontext()

            with context:
                savepoint = self._savepoint()
                self._frames.append(
                    CallFrame(sender=sender, to=to, value=value, function=function, depth=len(self._frames))
                )
                try:
                    if value:
                        self._move(sender, to, value)
                    result = body()
                except Exception as e:
                    self._rollback(savepoint)
                    if outermost:
                        self._seal(sender, to, function, "reverted", e)
                        logger.info(f"{function} on {to} reverted: {e}")
                    raise
                finally:
                    self._frames.pop()

                if outermost:
                    self._seal(sender, to, function, "success", None)
                return result

    def _seal(self, sender: str, to: str, function: str, status: str, error: Optional[Exception]) -> None:
        pending = self._pending
        self._pending = None
        self.block_number = pending.number
        self.receipts.append(
            Receipt(
                tx_hash=pending.tx_hash,
                block_number=pending.number,
                sender=sender,
                to=to,
                function=function,
                status=status,
                events=tuple(self._events[pending.events_start:]),
                error=error if isinstance(error, GatewayException) else None,
            )
        )

    def _move(self, sender: str, to: str, amount: int) -> None:
        available = self._balances.get(sender, 0)
        if available < amount:
            raise InsufficientBalance(sender, amount, available)
        self._balances[sender] = available - amount
        self._balances[to] = self._balances.get(to, 0) + amount

    def _savepoint(self) -> _Savepoint:
        return _Savepoint(
            balances=dict(self._balances),
            storage={address: c._snapshot() for address, c in self._contracts.items()},
            contracts=set(self._contracts),
            deploy_nonces=dict(self._deploy_nonces),
            event_count=len(self._events),
        )

    def _rollback(self, savepoint: _Savepoint) -> None:
        for address in list(self._contracts):
            if address not in savepoint.contracts:
                del self._contracts[address]
        for address, state in savepoint.storage.items():
            self._contracts[address]._restore(state)
        self._balances = savepoint.balances
        self._deploy_nonces = savepoint.deploy_nonces
        del self._events[savepoint.event_count:]
        if self._pending is not None:
            self._pending.log_index = len(self._events) - self._pending.events_start
