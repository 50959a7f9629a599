# envbind/preprocess.py
"""
envbind.preprocess
------------------

The value pre-processor capability.

A pre-processor is called by ``Builder.merge`` once for every merged
key/value pair and returns the value to store. Implementations decide for
themselves, by looking at the value, whether to transform it or return it
unchanged. Exceptions raised by a pre-processor abort the merge.
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class ValuePreProcessor(Protocol):
    """Anything with a ``pre_process_value(key, value) -> str`` method."""

    def pre_process_value(self, key: str, value: str) -> str:
        ...
