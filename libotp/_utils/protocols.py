from __future__ import annotations

from typing import Callable, Protocol

from typing_extensions import Buffer, Self


class HashLike(Protocol):
    """Lifted from hashlib.pyi"""

    @property
    def digest_size(self) -> int: ...

    @property
    def block_size(self) -> int: ...

    @property
    def name(self) -> str: ...

    def copy(self) -> Self: ...

    def digest(self) -> bytes: ...

    def update(self, data: Buffer, /) -> None: ...


HashConstructor = Callable[..., HashLike]
