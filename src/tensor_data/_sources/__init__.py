from ._concatenate import ConcatenateDataSource
from ._generator import GeneratorDataSource
from ._range import RangeDataSource
from ._tensor_slices import TensorSlicesDataSource
from ._tensors import TensorsDataSource
