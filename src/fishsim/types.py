import numpy as np
import numpy.typing as npt

from fishsim.models import MassPoint, Spring

FACE = npt.NDArray[np.int32]
VEC3 = npt.NDArray[np.float64]
INDEX = npt.NDArray[np.int64]
MATRIX = npt.NDArray[np.float64]
GEN_CHAIN = tuple[list[MassPoint], list[Spring]]
MUSCLE_SIDES = dict[str, list[int]]
GEN_FISH = tuple[list[MassPoint], list[Spring], FACE, MUSCLE_SIDES]
