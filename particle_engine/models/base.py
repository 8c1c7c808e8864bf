"""
State vector contract and caller-supplied model signatures.

The filter is generic over the state representation. Any value supporting
fixed-size indexed access, a length and element-wise addition can be used,
e.g. a 1-D NumPy array or a small user class.
"""

import copy
import numpy as np
from typing import Callable, Protocol, TypeVar, runtime_checkable


@runtime_checkable
class StateVector(Protocol):
    """
    Structural contract for a particle state.

    Requirements:
        len(x)      -> D, constant for every state used by one filter
        x[i]        -> scalar component, i in [0, D)
        x[i] = v    -> component assignment
        x + y       -> new state, element-wise sum
    """

    def __len__(self) -> int:
        ...

    def __getitem__(self, i: int) -> float:
        ...

    def __setitem__(self, i: int, value: float) -> None:
        ...

    def __add__(self, other):
        ...


T = TypeVar("T", bound=StateVector)

# predict: x_t = f(x_{t-1})
MotionModel = Callable[[T], T]

# measure: p(y | x) >= 0
Likelihood = Callable[[T], float]


def state_size(x: StateVector) -> int:
    """Dimension D of a state."""
    return len(x)


def zeros_like(x: T) -> T:
    """
    Return a copy of x with every component set to zero.

    Args:
        x: Template state

    Returns:
        z: State of the same type and size as x (float64 for
           integer arrays)
    """
    z = float_copy(x)
    for i in range(len(z)):
        z[i] = 0.0
    return z


def float_copy(x: T) -> T:
    """
    Deep copy of a state that can hold real-valued components.

    Integer and boolean NumPy arrays are promoted to float64. Any other
    state type is deep-copied unchanged.
    """
    if isinstance(x, np.ndarray) and x.dtype.kind not in "fc":
        return np.array(x, dtype=np.float64)
    return copy.deepcopy(x)
