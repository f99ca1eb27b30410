"""
看板领域实体 - Subject / Question
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping


@dataclass
class Subject:
    """讨论主题"""

    id: int
    title: str
    enabled: bool = True

    @classmethod
    def zero(cls) -> "Subject":
        """Record returned by lookups that match no row."""
        return cls(id=0, title="", enabled=False)

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Subject":
        return cls(id=int(row["id"]), title=row["title"], enabled=bool(row["enabled"]))

    @property
    def exists(self) -> bool:
        return self.id != 0


@dataclass
class Question:
    """主题下的问题，携带点赞计数"""

    id: int
    question: str
    likes: int = 0
    subject_id: int = 0

    @classmethod
    def zero(cls) -> "Question":
        return cls(id=0, question="", likes=0, subject_id=0)

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Question":
        return cls(
            id=int(row["id"]),
            question=row["question"],
            likes=int(row["likes"] or 0),
            subject_id=int(row.get("subject_id") or 0),
        )

    @property
    def exists(self) -> bool:
        return self.id != 0
