"""
Text primitives shared by the noise filters and the cleaning pipeline
"""

import re
from dataclasses import dataclass
from typing import Callable, List, Optional, Pattern, Sequence, Tuple, Union

# Fenced blocks (``` or ~~~, closed by the same fence or end of text) and
# runs of indented lines following a blank line. The newline after an
# indented run is not part of it, so its placeholder keeps a line of its own.
_FENCED_BLOCK = re.compile(
    r'^[ \t]*(?P<fence>`{3,}|~{3,})[^\n]*\n.*?(?:^[ \t]*(?P=fence)[ \t]*$|\Z)',
    re.MULTILINE | re.DOTALL,
)
_INDENTED_BLOCK = re.compile(r'(?:(?<=\n\n)|\A)(?: {4}|\t)[^\n]*(?:\n(?: {4}|\t)[^\n]*)*')

_PLACEHOLDER = 'LLMFUELCODEBLOCK{}END'
_PLACEHOLDER_PATTERN = re.compile(r'LLMFUELCODEBLOCK(\d+)END')


def count_words(text: Optional[str]) -> int:
    if not text:
        return 0
    return len(text.split())


class CodeBlockGuard:
    """Swaps code blocks for placeholder tokens and restores them afterwards

    Anything run between ``protect`` and ``restore`` cannot see, and so cannot
    alter, the bytes of a code block.
    """

    def __init__(self):
        self.blocks: List[str] = []

    def _stash(self, match) -> str:
        self.blocks.append(match.group(0))
        return _PLACEHOLDER.format(len(self.blocks) - 1)

    def protect(self, text: str) -> str:
        text = _FENCED_BLOCK.sub(self._stash, text)
        return _INDENTED_BLOCK.sub(self._stash, text)

    def _unstash(self, match) -> str:
        # Lookalike tokens in the page text itself are left alone
        index = int(match.group(1))
        return self.blocks[index] if index < len(self.blocks) else match.group(0)

    def restore(self, text: str) -> str:
        # Indented blocks can wrap a fenced placeholder, so two passes
        for _ in range(2):
            text = _PLACEHOLDER_PATTERN.sub(self._unstash, text)
        return text


@dataclass(frozen=True)
class TextRule:
    """One ``(pattern, replacement)`` rewrite

    ``option`` names the ContentFilters switch that enables the rule; rules
    without one always run.
    """
    name: str
    pattern: Pattern
    replacement: Union[str, Callable] = ''
    option: Optional[str] = None

    def apply(self, text: str) -> str:
        return self.pattern.sub(self.replacement, text)


def rule(name: str, pattern: str, replacement: Union[str, Callable] = '',
         flags: int = 0, option: Optional[str] = None) -> TextRule:
    return TextRule(name=name, pattern=re.compile(pattern, flags), replacement=replacement, option=option)


def apply_rules(text: str, rules: Sequence[Union[TextRule, Tuple[str, Callable[[str], str]]]],
                enabled: Callable[[Optional[str]], bool] = lambda option: True) -> str:
    """Run rules in order with code blocks held out of reach

    Entries are either TextRule objects or ``(name, function)`` pairs.
    """
    guard = CodeBlockGuard()
    text = guard.protect(text)
    for entry in rules:
        if isinstance(entry, TextRule):
            if enabled(entry.option):
                text = entry.apply(text)
        else:
            _, step = entry
            text = step(text)
    return guard.restore(text.strip())
