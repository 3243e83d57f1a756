from __future__ import annotations

from dataclasses import dataclass, replace


@dataclass
class IdSequence:
    """Monotonic identifier issuer (ENT-00001, PER-00001, ...).

    Seeded from the number of items already checkpointed, so ids never collide
    across resumed runs. Ids depend on assignment order, not on content.
    """

    prefix: str
    issued: int = 0
    width: int = 5

    def next_id(self) -> str:
        self.issued += 1
        return f"{self.prefix}-{self.issued:0{self.width}d}"

    def fork(self) -> "IdSequence":
        """Independent copy; commit it back only once its ids are persisted."""
        return replace(self)
