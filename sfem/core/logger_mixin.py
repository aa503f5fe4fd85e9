import logging
from typing import Any

import numpy as np
from tabulate import tabulate


class LoggerMixin:
    """
    A mixin class giving every subclass instance its own configurable logger.

    The logger is named after the module and class of the instance and
    stays silent (``WARNING`` level, :class:`logging.NullHandler`) unless the
    instance was created with ``debug=True``. In debug mode a single
    :class:`logging.StreamHandler` is attached and the level is lowered to
    ``DEBUG``.

    Dataclasses declaring a ``debug`` field are wired up through their
    ``__post_init__``; plain classes through their ``__init__``.

    Parameters
    ----------
    *args : Any
        Positional arguments passed to the parent class (if any).
    debug : bool, optional
        Enables debug-level logging output if True. Default is False.
    **kwargs : Any
        Additional keyword arguments passed to the parent class (if any).

    Attributes
    ----------
    logger : logging.Logger
        A logger instance configured for the specific subclass.
    """

    _formatter = logging.Formatter(
        fmt=(
            "%(asctime)s [%(levelname)s] %(name)s.%(funcName)s():%(lineno)d "
            "- %(message)s"
        ),
        datefmt="%H:%M:%S",
    )

    def __init__(self, *args: Any, debug: bool = False, **kwargs: Any):
        self._logger = logging.getLogger(
            f"{self.__class__.__module__}.{self.__class__.__name__}"
        )
        self._logger.propagate = False

        if not self._logger.handlers:
            self._logger.addHandler(logging.NullHandler())

        self._logger.setLevel(logging.WARNING)

        if debug:
            if not any(isinstance(h, logging.StreamHandler)
                       for h in self._logger.handlers):
                sh = logging.StreamHandler()
                sh.setFormatter(self._formatter)
                self._logger.addHandler(sh)
            self._logger.setLevel(logging.DEBUG)

        self._logger.debug(
            "Instantiated %s(debug=%s)", self.__class__.__name__, debug
        )

    @property
    def logger(self) -> logging.Logger:
        """The logger instance associated with this object."""
        if not hasattr(self, "_logger"):
            LoggerMixin.__init__(self)
        return self._logger

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)

        has_debug = "debug" in getattr(cls, "__annotations__", {})

        # dataclass with a debug field: hook into __post_init__
        orig_post = cls.__dict__.get("__post_init__")
        if orig_post is not None and has_debug:
            def wrapped_post(self, *a, **k):
                LoggerMixin.__init__(self, debug=getattr(self, "debug", False))
                return orig_post(self, *a, **k)

            cls.__post_init__ = wrapped_post
            return

        # plain class: only wrap an __init__ defined on this very class
        orig_init = cls.__dict__.get("__init__")
        if orig_init is None:
            return

        def wrapped_init(self, *a, **k):
            LoggerMixin.__init__(self, debug=k.get("debug", False))
            return orig_init(self, *a, **k)

        cls.__init__ = wrapped_init


def _key_label(key) -> str:
    return str(key)


def table_matrix(matrix, decimals: int = 6) -> str:
    """Render a keyed square matrix as a grid table.

    Rows and columns are labelled with the string form of the matrix keys.
    """
    keys = matrix.keys
    labels = [_key_label(key) for key in keys]
    values = matrix.to_array()
    data = [[label] + values[i].tolist() for i, label in enumerate(labels)]
    return tabulate(data, headers=[""] + labels, tablefmt="grid",
                    floatfmt=f".{decimals}g")


def table_vector(vector, header: str = "value", decimals: int = 6) -> str:
    """Render a keyed vector as a two column grid table."""
    data = [[_key_label(key), value] for key, value in vector.items()]
    return tabulate(data, headers=["DOF", header], tablefmt="grid",
                    floatfmt=f".{decimals}g")


def table_rotation(rotation: np.ndarray, decimals: int = 6) -> str:
    """Render a 3x3 direction cosine matrix with local/global labels."""
    rotation = np.asarray(rotation)
    data = [
        [f"local {axis}"] + rotation[i].tolist()
        for i, axis in enumerate(("x", "y", "z"))
    ]
    return tabulate(data, headers=["", "X", "Y", "Z"], tablefmt="grid",
                    floatfmt=f".{decimals}f")
