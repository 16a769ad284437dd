import uuid

import aioitertools
from absl import logging

from ._config import config
from ._errors import InvalidArgumentError
from ._runner import EventLoopRunner
from ._structure import (TensorSpec, as_tensor, batched, flatten, is_compatible_structure, make_specs,
                         most_specific_compatible_shape, spec_for, unbatched)

from ._sources import (ConcatenateDataSource, GeneratorDataSource, RangeDataSource,
                       TensorSlicesDataSource, TensorsDataSource)

from ._ops import (BatchDataOperation, FilterDataOperation, MapDataOperation, PrefetchDataOperation,
                   RepeatDataOperation, ShuffleDataOperation, SkipDataOperation, TakeDataOperation,
                   UnBatchDataOperation)


class _DatasetIterator:
    def __init__(self, session_id, source):
        self._session_id = session_id
        self._runner = EventLoopRunner()
        self._source_iter = source.get_iter(session_id)

        if config.debug_mode:
            logging.info('Started eager iterator %s', session_id)

    def __del__(self):
        self.close()

    def __iter__(self):
        return self

    def __next__(self):
        if self._source_iter is None:
            raise StopIteration()

        try:
            return self._runner.run(aioitertools.next(self._source_iter))
        except StopAsyncIteration:
            self.close()
            raise StopIteration()
        except BaseException:
            self.close()
            raise

    def close(self):
        self._source_iter = None
        runner = getattr(self, '_runner', None)
        if runner is not None and not runner.closed:
            runner.close()


def _convert(components, output_types):
    if output_types is None:
        return tuple(as_tensor(t) for t in components)

    output_types = flatten(output_types)
    if len(output_types) != len(components):
        raise InvalidArgumentError(
            f'Got {len(output_types)} type tags for {len(components)} components')

    return tuple(as_tensor(t, dtype) for t, dtype in zip(components, output_types))


class Dataset:
    """A lazily evaluated sequence of elements, each a tuple of tensors.

    Datasets are built from tensors or generators and chained with
    transformations. Nothing runs until the dataset is iterated, either
    eagerly (`for components in dataset`) or through a graph-mode
    `Iterator` driven by a `Session`.
    """

    @staticmethod
    def from_tensor_slices(tensors, output_types=None):
        """Slices `tensors` along their first dimension.

        `output_types` is an optional list of type tags, one per component.
        """
        components = _convert(flatten(tensors), output_types)
        assert len(components), 'tensors: at least one component is required'

        if any(t.dim() == 0 for t in components):
            raise InvalidArgumentError('Cannot slice a rank-0 tensor')

        sizes = set(len(t) for t in components)
        if len(sizes) != 1:
            raise InvalidArgumentError(
                f'All components must have the same size in the first dimension, got {sorted(sizes)}')

        source = TensorSlicesDataSource(tensors=components)
        return Dataset(_source=source, _spec=tuple(unbatched(spec_for(t)) for t in components))

    @staticmethod
    def from_tensors(tensors, output_types=None):
        components = _convert(flatten(tensors), output_types)
        assert len(components), 'tensors: at least one component is required'

        source = TensorsDataSource(tensors=components)
        return Dataset(_source=source, _spec=tuple(spec_for(t) for t in components))

    @staticmethod
    def from_generator(generator, output_types, output_shapes=None, args=None):
        assert callable(generator), 'generator: Must be callable'
        assert args is None or isinstance(args, (list, tuple)), 'args: Must be None or a tuple'

        specs = make_specs(output_types, output_shapes)
        source = GeneratorDataSource(generator=generator, args=args, specs=specs)
        return Dataset(_source=source, _spec=specs)

    @staticmethod
    def range(*args):
        assert 1 <= len(args) <= 3, 'range: expected 1 to 3 arguments'
        assert all(isinstance(a, int) for a in args), 'range: all arguments must be integers'

        start, stop, step = (0, args[0], 1) if len(args) == 1 else (tuple(args) + (1,))[:3]
        assert step != 0, 'step: must not be zero'

        source = RangeDataSource(start=start, stop=stop, step=step)
        return Dataset(_source=source, _spec=(TensorSpec('int64', ()),))

    #
    # operations

    def batch(self, batch_size, drop_remainder=False):
        assert isinstance(batch_size, int), 'batch_size: must be an integer'
        assert batch_size > 0, 'batch_size: must be positive'
        assert isinstance(drop_remainder, bool), 'drop_remainder: must be a boolean'

        dim = batch_size if drop_remainder else None
        op = BatchDataOperation(source=self.__source, batch_size=batch_size, drop_remainder=drop_remainder)
        return Dataset(_source=op, _spec=lambda: tuple(batched(s, dim) for s in self.element_spec))

    def unbatch(self):
        op = UnBatchDataOperation(source=self.__source)
        return Dataset(_source=op, _spec=lambda: tuple(unbatched(s) for s in self.element_spec))

    def skip(self, count):
        assert isinstance(count, int), 'count: must be an integer'
        assert count >= -1, 'count: must be -1 or non-negative'

        op = SkipDataOperation(source=self.__source, count=count)
        return Dataset(_source=op, _spec=lambda: self.element_spec)

    def take(self, count):
        assert isinstance(count, int), 'count: must be an integer'
        assert count >= -1, 'count: must be -1 or non-negative'

        op = TakeDataOperation(source=self.__source, count=count)
        return Dataset(_source=op, _spec=lambda: self.element_spec)

    def map(self, map_func, num_parallel_calls=None, ordered=True, ignore_errors=False, output_types=None):
        """Applies `map_func` to the components of each element.

        Without `output_types` the resulting structure is taken from the
        first mapped element the first time it is needed.
        """
        assert callable(map_func), 'map_func: Must be callable'
        assert num_parallel_calls is None or isinstance(num_parallel_calls, int), \
            'num_parallel_calls: Must be None or integer'

        specs = None if output_types is None else make_specs(output_types)
        op = MapDataOperation(source=self.__source, map_func=map_func,
                              num_parallel_calls=num_parallel_calls, specs=specs,
                              ordered=ordered, ignore_errors=ignore_errors)

        if specs is None:
            return Dataset(_source=op, _spec=lambda: _infer_specs(op))
        return Dataset(_source=op, _spec=specs)

    def map_one_component(self, index, map_func, num_parallel_calls=None):
        assert isinstance(index, int), 'index: must be an integer'
        assert callable(map_func), 'map_func: Must be callable'

        def _map_component(*components):
            components = list(components)
            components[index] = map_func(components[index])
            return tuple(components)

        return self.map(_map_component, num_parallel_calls=num_parallel_calls)

    def filter(self, predicate):
        assert callable(predicate), 'predicate: Must be callable'

        op = FilterDataOperation(source=self.__source, predicate=predicate)
        return Dataset(_source=op, _spec=lambda: self.element_spec)

    def filter_on_component(self, index, predicate):
        assert isinstance(index, int), 'index: must be an integer'
        assert callable(predicate), 'predicate: Must be callable'

        return self.filter(lambda *components: predicate(components[index]))

    def shuffle(self, buffer_size, seed=None, reshuffle_each_iteration=True):
        assert isinstance(buffer_size, int), 'buffer_size: must be an integer'
        assert buffer_size > 1, 'buffer_size: must be greater than 1'

        op = ShuffleDataOperation(source=self.__source, buffer_size=buffer_size, seed=seed,
                                  reshuffle_each_iteration=reshuffle_each_iteration)
        return Dataset(_source=op, _spec=lambda: self.element_spec)

    def repeat(self, count=None):
        assert count is None or isinstance(count, int), 'count: must be None or an integer'

        op = RepeatDataOperation(source=self.__source, count=-1 if count is None else count)
        return Dataset(_source=op, _spec=lambda: self.element_spec)

    def prefetch(self, buffer_size):
        assert isinstance(buffer_size, int), 'buffer_size: must be an integer'
        assert buffer_size > 0, 'buffer_size: must be positive'

        op = PrefetchDataOperation(source=self.__source, buffer_size=buffer_size)
        return Dataset(_source=op, _spec=lambda: self.element_spec)

    def concatenate(self, dataset):
        assert isinstance(dataset, Dataset), 'dataset: must be an instance of Dataset class'

        def concatenated_spec():
            a, b = self.element_spec, dataset.element_spec
            if len(a) != len(b) or any(x.dtype != y.dtype for x, y in zip(a, b)):
                raise InvalidArgumentError(f'Incompatible structures: {a} and {b}')
            return tuple(TensorSpec(x.dtype, most_specific_compatible_shape(x.shape, y.shape))
                         for x, y in zip(a, b))

        source = ConcatenateDataSource(dataset_sources=[self.__source, dataset.__source])
        if callable(self.__spec) or callable(dataset.__spec):
            return Dataset(_source=source, _spec=concatenated_spec)
        return Dataset(_source=source, _spec=concatenated_spec())

    #
    # graph mode

    def make_one_shot_iterator(self):
        from ._graph import Iterator

        return Iterator(_specs=self.element_spec, _one_shot_dataset=self)

    def make_initializable_iterator(self):
        from ._graph import Iterator

        iterator = Iterator(_specs=self.element_spec)
        iterator.initializer = iterator.make_initializer(self)
        return iterator

    #
    #
    #

    def __init__(self, *, _source, _spec):
        self.__source = _source
        self.__spec = _spec

    @property
    def element_spec(self):
        if callable(self.__spec):
            self.__spec = self.__spec()
        return self.__spec

    @property
    def output_types(self):
        return tuple(s.dtype for s in self.element_spec)

    @property
    def output_shapes(self):
        return tuple(s.shape for s in self.element_spec)

    def is_compatible_with(self, specs):
        return is_compatible_structure(specs, self.element_spec)

    def _get_iter(self, session_id):
        return self.__source.get_iter(session_id)

    def __iter__(self):
        return _DatasetIterator(uuid.uuid4().hex, self.__source)

    def __aiter__(self):
        return self.__source.get_iter(uuid.uuid4().hex)

    def as_numpy_iterator(self):
        for components in self:
            yield tuple(t.detach().cpu().numpy() for t in components)

    def __repr__(self):
        spec = '<unknown>' if callable(self.__spec) else self.__spec
        return f'<Dataset element_spec={spec}>'


def _infer_specs(source):
    iterator = _DatasetIterator(uuid.uuid4().hex, source)
    try:
        element = next(iterator)
    except StopIteration:
        raise InvalidArgumentError(
            'Cannot infer the structure of an empty mapped dataset, pass output_types') from None
    finally:
        iterator.close()

    return tuple(TensorSpec(t.dtype, (None,) * t.dim()) for t in element)
