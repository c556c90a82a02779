"""
Sequential transaction runtime.

Stands in for the transaction-ordering layer the pool depends on:

- one call at a time (a lock serializes concurrent callers),
- no suspension points inside a call,
- all-or-nothing: every registered contract is snapshotted before the call and
  restored if anything propagates out of it.

Contracts are plain objects exposing `address`, `snapshot()` and `restore()`.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Protocol, TypeVar

from ..fhe.backend import CiphertextBackend
from ..state.accounts import Address, canonical_address, contract_address


logger = logging.getLogger(__name__)

DEFAULT_CHAIN_ID = "confidential-cfmm-local"


class Contract(Protocol):
    address: Address

    def snapshot(self) -> Any: ...

    def restore(self, snap: Any) -> None: ...


C = TypeVar("C", bound=Contract)


@dataclass(frozen=True)
class CallContext:
    sender: Address
    contract: Address
    runtime: "Runtime"
    depth: int = 0

    @property
    def chain_id(self) -> str:
        return self.runtime.chain_id

    @property
    def backend(self) -> CiphertextBackend:
        return self.runtime.backend

    def subcall(self, target: Address) -> "CallContext":
        """Context for a call from the current contract into `target`."""
        return CallContext(sender=self.contract, contract=target, runtime=self.runtime, depth=self.depth + 1)

    def emit(self, event: str, **data: Any) -> None:
        self.runtime._record_event(Event(contract=self.contract, name=event, sender=self.sender, data=dict(data)))


@dataclass(frozen=True)
class Event:
    contract: Address
    name: str
    sender: Address
    data: Dict[str, Any] = field(default_factory=dict)


class Runtime:
    def __init__(self, backend: CiphertextBackend, *, chain_id: str = DEFAULT_CHAIN_ID) -> None:
        if not isinstance(chain_id, str) or not chain_id:
            raise ValueError("chain_id must be a non-empty string")
        self.backend = backend
        self.chain_id = chain_id
        self._contracts: Dict[Address, Contract] = {}
        self._nonces: Dict[Address, int] = {}
        self._events: List[Event] = []
        self._lock = threading.Lock()
        self._tx_count = 0

    # -- registry -----------------------------------------------------------

    def deploy(self, deployer: Address, factory: Callable[[CallContext], C]) -> C:
        """Create a contract at the next address of `deployer`."""
        deployer = canonical_address(deployer, name="deployer")
        with self._lock:
            nonce = self._nonces.get(deployer, 0)
            address = contract_address(deployer, nonce)
            ctx = CallContext(sender=deployer, contract=address, runtime=self)
            contract = factory(ctx)
            if contract.address != address:
                raise ValueError("factory must build the contract at ctx.contract")
            self._nonces[deployer] = nonce + 1
            self._contracts[address] = contract
        logger.info("deployed %s at %s (deployer=%s)", type(contract).__name__, address, deployer)
        return contract

    def contract_at(self, address: Address) -> Contract:
        try:
            return self._contracts[canonical_address(address)]
        except KeyError:
            raise KeyError(f"no contract at {address}") from None

    @property
    def events(self) -> List[Event]:
        return list(self._events)

    def _record_event(self, event: Event) -> None:
        self._events.append(event)

    # -- execution ----------------------------------------------------------

    def transact(self, sender: Address, method: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        """
        Execute `method(ctx, *args, **kwargs)` atomically.

        `method` must be a bound method of a deployed contract. Any exception
        restores every contract and drops the events of the call, then propagates.
        """
        target = getattr(method, "__self__", None)
        address: Optional[Address] = getattr(target, "address", None)
        if address is None or self._contracts.get(address) is not target:
            raise ValueError("method must be bound to a deployed contract")
        sender = canonical_address(sender, name="sender")

        with self._lock:
            self._tx_count += 1
            tx_id = self._tx_count
            snapshots = {addr: c.snapshot() for addr, c in self._contracts.items()}
            events_mark = len(self._events)
            ctx = CallContext(sender=sender, contract=address, runtime=self)
            try:
                result = method(ctx, *args, **kwargs)
            except Exception as exc:
                for addr, snap in snapshots.items():
                    self._contracts[addr].restore(snap)
                del self._events[events_mark:]
                logger.debug(
                    "tx %d %s.%s from %s aborted: %s",
                    tx_id, type(target).__name__, method.__name__, sender, type(exc).__name__,
                )
                raise
        logger.debug("tx %d %s.%s from %s committed", tx_id, type(target).__name__, method.__name__, sender)
        return result

    # Read-only queries follow the same path: an aborted query must not leave state behind either.
    call = transact
