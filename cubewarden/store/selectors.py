"""
Equality and existence based label selectors.

Supported requirements, comma joined:
    key          label present
    !key         label absent
    key=value    label equals value (also key==value)
    key!=value   label absent or not equal to value
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class SelectorOperator(Enum):
    EXISTS = "exists"
    NOT_EXISTS = "!"
    EQUALS = "="
    NOT_EQUALS = "!="


@dataclass(frozen=True, slots=True)
class Requirement:
    key: str
    operator: SelectorOperator
    value: str | None = None

    def matches(self, labels: dict[str, str]) -> bool:
        match self.operator:
            case SelectorOperator.EXISTS:
                return self.key in labels
            case SelectorOperator.NOT_EXISTS:
                return self.key not in labels
            case SelectorOperator.EQUALS:
                return labels.get(self.key) == self.value
            case SelectorOperator.NOT_EQUALS:
                return labels.get(self.key) != self.value


class LabelSelector:
    def __init__(self, requirements: list[Requirement] | None = None) -> None:
        self.requirements = requirements or []

    @classmethod
    def parse(cls, selector: str) -> LabelSelector:
        requirements: list[Requirement] = []

        for raw in selector.split(","):
            term = raw.strip()
            if not term:
                continue

            if "!=" in term:
                key, value = term.split("!=", 1)
                requirements.append(
                    Requirement(key.strip(), SelectorOperator.NOT_EQUALS, value.strip())
                )

            elif "==" in term:
                key, value = term.split("==", 1)
                requirements.append(
                    Requirement(key.strip(), SelectorOperator.EQUALS, value.strip())
                )

            elif "=" in term:
                key, value = term.split("=", 1)
                requirements.append(
                    Requirement(key.strip(), SelectorOperator.EQUALS, value.strip())
                )

            elif term.startswith("!"):
                requirements.append(
                    Requirement(term[1:].strip(), SelectorOperator.NOT_EXISTS)
                )

            else:
                requirements.append(
                    Requirement(term, SelectorOperator.EXISTS)
                )

        for requirement in requirements:
            if not requirement.key:
                raise ValueError(f"invalid label selector: {selector!r}")

        return cls(requirements)

    def matches(self, labels: dict[str, str]) -> bool:
        return all(
            requirement.matches(labels) for requirement in self.requirements
        )

    def empty(self) -> bool:
        return len(self.requirements) == 0
