from ._config import config
from ._dataset import Dataset
from ._errors import FailedPreconditionError, InvalidArgumentError, OpError, OutOfRangeError
from ._graph import Iterator, Operation, Output, Session
from ._structure import TensorSpec
