"""
Corpus generation: re-fetch indexed pages and assemble llms.txt files
"""

from .batch import BatchResult, CleanedDocument, CorpusProcessor, FilteredDocument
from .assembler import CorpusAssembler
from .generator import CorpusGenerator

__all__ = [
    'BatchResult',
    'CleanedDocument',
    'CorpusProcessor',
    'FilteredDocument',
    'CorpusAssembler',
    'CorpusGenerator',
]
