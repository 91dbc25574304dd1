"""
Ordered fragment accumulation for the generated function body
"""

from typing import List


class FragmentBuilder:
    """
    Collects emitted code fragments in order and joins them at the end

    Literal spans are already escaped and go in unchanged; directive
    fragments close and reopen the surrounding string literal themselves.
    """

    def __init__(self) -> None:
        self.fragments: List[str] = []

    def literal_add(self, text: str) -> None:
        self.fragments.append(text)

    def directive_add(self, fragment: str) -> None:
        self.fragments.append(fragment)

    def build(self) -> str:
        return "".join(self.fragments)
