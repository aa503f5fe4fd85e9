from typing import Hashable, Iterable, Iterator, Sequence

import numpy as np


def _index_keys(keys: Sequence[Hashable]) -> dict:
    index = {}
    for position, key in enumerate(keys):
        if key in index:
            raise ValueError(f'Duplicate key {key!r}.')
        index[key] = position
    return index


class KeyedVector:
    """A dense vector whose entries are addressed by keys instead of integer
    positions.

    Parameters
    ----------
    keys : iterable of hashable
        Unique keys in the order of the vector entries.
    initial_value : :any:`float`, default=0.0
        Value every entry is initialized with.

    Raises
    ------
    ValueError
        :py:attr:`keys` contains duplicates.

    Examples
    --------
    >>> from sfem.core.keyed import KeyedVector
    >>> v = KeyedVector(['a', 'b'])
    >>> v['b'] = 3.0
    >>> v.to_array()
    array([0., 3.])
    """

    def __init__(self, keys: Iterable[Hashable], initial_value: float = 0.0):
        self._keys = tuple(keys)
        self._index = _index_keys(self._keys)
        self._values = np.full(len(self._keys), float(initial_value))

    @classmethod
    def from_array(cls, keys: Iterable[Hashable], values) -> 'KeyedVector':
        vector = cls(keys)
        values = np.asarray(values, dtype=float).reshape(-1)
        if values.shape != vector._values.shape:
            raise ValueError(
                f'Expected {len(vector)} values, got {values.shape[0]}.'
            )
        vector._values = values.copy()
        return vector

    @property
    def keys(self) -> tuple:
        return self._keys

    def _position(self, key) -> int:
        try:
            return self._index[key]
        except (KeyError, TypeError):
            raise ValueError(f'{key!s} is not a key of this vector.') from None

    def __getitem__(self, key) -> float:
        return float(self._values[self._position(key)])

    def __setitem__(self, key, value: float):
        self._values[self._position(key)] = value

    def __contains__(self, key) -> bool:
        return key in self._index

    def __len__(self) -> int:
        return len(self._keys)

    def items(self) -> Iterator[tuple]:
        for key, value in zip(self._keys, self._values):
            yield key, float(value)

    def to_array(self) -> np.ndarray:
        return self._values.copy()

    def __eq__(self, other):
        if not isinstance(other, KeyedVector):
            return NotImplemented
        return (self._keys == other._keys and
                np.array_equal(self._values, other._values))

    __hash__ = None

    def __repr__(self):
        entries = ', '.join(f'{key!s}: {value:g}' for key, value in
                            self.items())
        return f'{self.__class__.__name__}({{{entries}}})'


class KeyedSquareMatrix:
    """A dense square matrix whose rows and columns share one ordered set of
    keys.

    Entries are read with :py:meth:`get` and written with :py:meth:`set`.
    Products require both operands to use identical keys in identical
    order. After :py:meth:`freeze` the matrix is read-only.

    Parameters
    ----------
    keys : iterable of hashable
        Unique row (and column) keys.
    values : array_like, optional
        Initial values of shape ``(len(keys), len(keys))``. Zeros if
        omitted.

    Raises
    ------
    ValueError
        :py:attr:`keys` contains duplicates or :py:attr:`values` has the
        wrong shape.
    """

    def __init__(self, keys: Iterable[Hashable], values=None):
        self._keys = tuple(keys)
        self._index = _index_keys(self._keys)
        n = len(self._keys)
        if values is None:
            self._values = np.zeros((n, n))
        else:
            self._values = np.array(values, dtype=float)
            if self._values.shape != (n, n):
                raise ValueError(
                    f'values must have shape ({n}, {n}), got '
                    f'{self._values.shape}.'
                )
        self._frozen = False

    @property
    def keys(self) -> tuple:
        return self._keys

    @property
    def shape(self) -> tuple[int, int]:
        return self._values.shape

    @property
    def frozen(self) -> bool:
        return self._frozen

    def _position(self, key) -> int:
        try:
            return self._index[key]
        except (KeyError, TypeError):
            raise ValueError(f'{key!s} is not a key of this matrix.') from None

    def get(self, row, column) -> float:
        return float(self._values[self._position(row), self._position(column)])

    def set(self, row, column, value: float):
        if self._frozen:
            raise ValueError('This matrix is read-only.')
        self._values[self._position(row), self._position(column)] = value

    def freeze(self):
        """Make the matrix read-only. Subsequent writes raise
        :any:`ValueError`."""
        self._frozen = True
        self._values.flags.writeable = False
        return self

    def __contains__(self, key) -> bool:
        return key in self._index

    def __len__(self) -> int:
        return len(self._keys)

    def _check_same_keys(self, other_keys):
        if tuple(other_keys) != self._keys:
            raise ValueError(
                'Keyed operands need identical keys in identical order.'
            )

    def multiply(self, other):
        """Matrix product ``self · other``.

        Parameters
        ----------
        other : :any:`KeyedSquareMatrix` | :any:`KeyedVector`

        Returns
        -------
        :any:`KeyedSquareMatrix` | :any:`KeyedVector`
            Same type of object as :py:attr:`other`, keyed like ``self``.
        """
        if isinstance(other, KeyedVector):
            self._check_same_keys(other.keys)
            return KeyedVector.from_array(
                self._keys, self._values @ other.to_array()
            )
        self._check_same_keys(other.keys)
        return KeyedSquareMatrix(self._keys, self._values @ other._values)

    __matmul__ = multiply

    def transpose(self) -> 'KeyedSquareMatrix':
        return KeyedSquareMatrix(self._keys, self._values.T)

    def determinant(self) -> float:
        return float(np.linalg.det(self._values))

    def rank(self, rtol: float | None = None) -> int:
        """Numerical rank via singular value decomposition.

        Singular values below ``rtol * max(singular values)`` count as zero.
        Without :py:attr:`rtol` NumPy's default tolerance is used.
        """
        if len(self) == 0:
            return 0
        tol = None
        if rtol is not None:
            tol = rtol * np.linalg.norm(self._values, ord=2)
        return int(np.linalg.matrix_rank(self._values, tol=tol))

    def is_singular(self, rtol: float | None = None) -> bool:
        """Whether the matrix is rank deficient (zero determinant up to
        numerical tolerance)."""
        return self.rank(rtol) < len(self)

    def is_symmetric(self, rtol: float = 1e-9, atol: float = 0.0) -> bool:
        return bool(np.allclose(self._values, self._values.T,
                                rtol=rtol, atol=atol))

    def submatrix(self, row_keys: Iterable, column_keys: Iterable
                  ) -> np.ndarray:
        rows = [self._position(key) for key in row_keys]
        columns = [self._position(key) for key in column_keys]
        return self._values[np.ix_(rows, columns)].copy()

    def to_array(self) -> np.ndarray:
        return np.array(self._values)

    def __eq__(self, other):
        if not isinstance(other, KeyedSquareMatrix):
            return NotImplemented
        return (self._keys == other._keys and
                np.array_equal(self._values, other._values))

    __hash__ = None

    def __repr__(self):
        return (f'{self.__class__.__name__}(keys={len(self._keys)}, '
                f'shape={self._values.shape})')
