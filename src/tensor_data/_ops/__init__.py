from ._batch import BatchDataOperation
from ._filter import FilterDataOperation
from ._map import MapDataOperation
from ._prefetch import PrefetchDataOperation
from ._repeat import RepeatDataOperation
from ._shuffle import ShuffleDataOperation
from ._skip import SkipDataOperation
from ._take import TakeDataOperation
from ._unbatch import UnBatchDataOperation
