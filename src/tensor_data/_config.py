"""Handle tensor_data config options.

Config options can be set via flags starting with '--tensor_data_' or by
calling `tensor_data.config.update(name, value)`.
"""
from absl import flags

_MAP_START_METHOD = flags.DEFINE_enum(
    'tensor_data_map_start_method', 'spawn', ['spawn', 'fork', 'forkserver'],
    'Multiprocessing start method of the worker pool used by '
    '`Dataset.map(..., num_parallel_calls=N)`.')
_MAP_MAX_WORKERS = flags.DEFINE_integer(
    'tensor_data_map_max_workers', 0,
    'Size of the worker pool used by parallel map. 0 means os.cpu_count().')
_DEBUG_MODE = flags.DEFINE_bool(
    'tensor_data_debug_mode', False,
    'If enabled, iterator creation and every Session.run call are logged.')

_FLAGS = (_MAP_START_METHOD, _MAP_MAX_WORKERS, _DEBUG_MODE)


class Config:
    """Class for holding current tensor_data configuration."""

    def __getattr__(self, name):
        flag_name = f'tensor_data_{name}'
        if any(f.name == flag_name for f in _FLAGS):
            return flags.FLAGS[flag_name].value
        raise ValueError(f'Unrecognized config option: {name}')

    def __setattr__(self, name, value):
        raise ValueError('Please use update().')

    def update(self, name, value):
        flag_name = f'tensor_data_{name}'
        if any(f.name == flag_name for f in _FLAGS):
            try:
                flags.FLAGS[flag_name].parse(value)
            except flags.Error as e:
                raise ValueError(f'Invalid value for config option {name}: {value!r}') from e
            return
        raise ValueError(f'Unrecognized config option: {name}')


config = Config()
