import numpy as np
from typing import Union, List, Sequence, Tuple

ArrayLike = Union[np.ndarray, List[List[float]], Sequence[Sequence[float]]]
Numerical = Union[float, int]
Color = Tuple[float, float, float]
