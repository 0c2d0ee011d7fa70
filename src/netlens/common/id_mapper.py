"""
ID mapping between node identifiers and dense integer indices.

Node identifiers are opaque, case-sensitive strings. Every algorithm in the
library works on dense integer indices (0, 1, 2, ...) so that adjacency can be
stored in contiguous arrays. IDMapper is the arena that owns this mapping; the
order in which identifiers are added defines the node enumeration order used
for tie-breaking throughout the library.
"""

from typing import Dict, Iterable, Iterator, List


class IDMapper:
    """
    Bidirectional mapping between node identifiers and dense indices.

    Attributes
    ----------
    original_to_internal : Dict[str, int]
        Maps node identifiers to indices (0, 1, 2, ...)
    internal_to_original : List[str]
        Maps indices back to node identifiers; position is the index

    Examples
    --------
    >>> mapper = IDMapper()
    >>> mapper.add("alice")
    0
    >>> mapper.add("bob")
    1
    >>> mapper.add("alice")
    0
    >>> mapper.get_original(1)
    'bob'

    Notes
    -----
    - Identifiers are compared as strings; "01" and "1" are different nodes
    - Indices are always consecutive and assigned in insertion order
    - Thread-safe for read operations, not thread-safe for modifications
    """

    def __init__(self) -> None:
        self.original_to_internal: Dict[str, int] = {}
        self.internal_to_original: List[str] = []

    @classmethod
    def from_nodes(cls, nodes: Iterable[str]) -> 'IDMapper':
        """
        Create a mapper from an iterable of identifiers.

        Duplicates are ignored; the first occurrence fixes the index.
        """
        mapper = cls()
        for node in nodes:
            mapper.add(node)
        return mapper

    def add(self, original_id: str) -> int:
        """
        Return the index of an identifier, assigning the next free one if new.

        Parameters
        ----------
        original_id : str
            Node identifier

        Returns
        -------
        int
            Index of the identifier

        Raises
        ------
        TypeError
            If original_id is not a string
        """
        if not isinstance(original_id, str):
            raise TypeError(f"Node identifiers must be strings, got {type(original_id)}")

        internal_id = self.original_to_internal.get(original_id)
        if internal_id is None:
            internal_id = len(self.internal_to_original)
            self.original_to_internal[original_id] = internal_id
            self.internal_to_original.append(original_id)
        return internal_id

    def add_mapping(self, original_id: str, internal_id: int) -> None:
        """
        Add an explicit identifier/index pair.

        The index must be the next free one so that indices stay dense.

        Raises
        ------
        ValueError
            If the identifier is already mapped or the index is not the next free index
        TypeError
            If internal_id is not an integer
        """
        if not isinstance(internal_id, int):
            raise TypeError(f"Internal ID must be integer, got {type(internal_id)}")

        if original_id in self.original_to_internal:
            existing_internal = self.original_to_internal[original_id]
            raise ValueError(
                f"Original ID '{original_id}' already mapped to internal ID {existing_internal}"
            )
        if internal_id != len(self.internal_to_original):
            raise ValueError(
                f"Internal IDs must be consecutive: expected {len(self.internal_to_original)}, "
                f"got {internal_id}"
            )

        self.add(original_id)

    def get_internal(self, original_id: str) -> int:
        """
        Get the index of a node identifier.

        Raises
        ------
        KeyError
            If original_id is not found in the mapping
        """
        try:
            return self.original_to_internal[original_id]
        except KeyError:
            raise KeyError(f"Original ID '{original_id}' not found in mapping")

    def get_original(self, internal_id: int) -> str:
        """
        Get the node identifier stored at an index.

        Raises
        ------
        KeyError
            If internal_id is out of range
        TypeError
            If internal_id is not an integer
        """
        if not isinstance(internal_id, int):
            raise TypeError(f"Internal ID must be integer, got {type(internal_id)}")

        if 0 <= internal_id < len(self.internal_to_original):
            return self.internal_to_original[internal_id]
        raise KeyError(f"Internal ID {internal_id} not found in mapping")

    def get_internal_batch(self, original_ids: List[str]) -> List[int]:
        """Get indices for a batch of identifiers."""
        result = []
        for original_id in original_ids:
            try:
                result.append(self.original_to_internal[original_id])
            except KeyError:
                raise KeyError(f"Original ID '{original_id}' not found in mapping")
        return result

    def get_original_batch(self, internal_ids: Iterable[int]) -> List[str]:
        """Get identifiers for a batch of indices."""
        return [self.get_original(int(internal_id)) for internal_id in internal_ids]

    def has_original(self, original_id: str) -> bool:
        """Check if an identifier exists in the mapping."""
        return original_id in self.original_to_internal

    def nodes(self) -> List[str]:
        """Return all identifiers in enumeration order."""
        return list(self.internal_to_original)

    def size(self) -> int:
        """Get the number of mapped identifiers."""
        return len(self.internal_to_original)

    def is_empty(self) -> bool:
        """Check if the mapper is empty."""
        return not self.internal_to_original

    def __len__(self) -> int:
        return len(self.internal_to_original)

    def __contains__(self, original_id: object) -> bool:
        return original_id in self.original_to_internal

    def __iter__(self) -> Iterator[str]:
        return iter(self.internal_to_original)

    def __repr__(self) -> str:
        return f"IDMapper(size={self.size()})"
