"""
Base class for contracts and the decorator that turns methods into transactions.

A contract's storage is its instance ``__dict__`` minus the ``chain`` and
``address`` fields. Storage must only hold plain data (ints, strings,
containers, dataclasses); other contracts are referenced by address and
resolved through ``self.chain.get_contract`` at call time.
"""
from __future__ import annotations

import copy
import functools
from typing import TYPE_CHECKING, Any, Callable, Dict, TypeVar

from eth_utils import keccak

if TYPE_CHECKING:
    from .vm import CallFrame, Chain

F = TypeVar("F", bound=Callable[..., Any])

_RUNTIME_FIELDS = frozenset(("chain", "address"))


def external(func: F) -> F:
    """Mark a state-changing entry point.

    The decorated method takes two extra keyword-only arguments: ``sender``
    (msg.sender, required) and ``value`` (msg.value in wei, default 0).
    The body runs as a call frame of the owning chain and is rolled back
    entirely if it raises.
    """

    @functools.wraps(func)
    def wrapper(self, *args: Any, sender: str, value: int = 0, **kwargs: Any) -> Any:
        return self.chain.execute(
            self,
            func.__name__,
            sender,
            value,
            lambda: func(self, *args, **kwargs),
        )

    wrapper.is_external = True
    return wrapper  # type: ignore[return-value]


class Contract:
    """An object with an address whose state lives on a Chain."""

    def __init__(self, chain: "Chain", address: str):
        self.chain = chain
        self.address = address

    @classmethod
    def creation_code(cls) -> bytes:
        """Stand-in for deployment bytecode: stable per contract class."""
        return keccak(text=f"{cls.__module__}.{cls.__qualname__}")

    @property
    def msg(self) -> "CallFrame":
        return self.chain.current_frame

    def emit(self, name: str, *args: Any) -> None:
        self.chain.emit(self.address, name, args)

    def send_value(self, to: str, amount: int) -> bool:
        return self.chain.send_value(self.address, to, amount)

    def _snapshot(self) -> Dict[str, Any]:
        return {
            key: copy.deepcopy(value)
            for key, value in vars(self).items()
            if key not in _RUNTIME_FIELDS
        }

    def _restore(self, state: Dict[str, Any]) -> None:
        for key in [k for k in vars(self) if k not in _RUNTIME_FIELDS]:
            delattr(self, key)
        for key, value in state.items():
            setattr(self, key, value)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.address})"
