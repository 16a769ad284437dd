import itertools
import uuid

import aioitertools
from absl import logging

from ._config import config
from ._errors import FailedPreconditionError, InvalidArgumentError, OutOfRangeError
from ._runner import EventLoopRunner
from ._structure import check_element, is_compatible_structure, make_specs


class Operation:
    """A node a `Session` can run.

    `run_fn(session)` returns a tuple with one value per output, or None for
    operations without outputs.
    """

    def __init__(self, name, run_fn, specs=()):
        self.name = name
        self._run_fn = run_fn
        self.outputs = [Output(self, i, spec) for i, spec in enumerate(specs)]

    def _run(self, session):
        return self._run_fn(session)

    def __repr__(self):
        return f'<Operation {self.name!r}>'


class Output:
    """One symbolic component produced by an `Operation`."""

    def __init__(self, op, index, spec):
        self.op = op
        self.index = index
        self.spec = spec

    @property
    def dtype(self):
        return self.spec.dtype

    @property
    def shape(self):
        return self.spec.shape

    @property
    def name(self):
        return f'{self.op.name}:{self.index}'

    def __repr__(self):
        return f'<Output {self.name!r} {self.spec}>'


class _IteratorResource:
    """One pass of an iterator within a session.

    Tasks and async generators of the pass live on its own event loop, so
    closing the pass releases them.
    """

    def __init__(self, source_iter):
        self.source_iter = source_iter
        self._runner = EventLoopRunner()

    def next(self):
        return self._runner.run(aioitertools.next(self.source_iter))

    def close(self):
        self.source_iter = None
        self._runner.close()


class Iterator:
    _ids = itertools.count()

    @staticmethod
    def from_structure(output_types, output_shapes=None):
        """Creates an iterator that can be initialised with any compatible dataset."""
        return Iterator(_specs=make_specs(output_types, output_shapes))

    def __init__(self, *, _specs, _one_shot_dataset=None):
        self._id = next(Iterator._ids)
        self._specs = tuple(_specs)
        self._one_shot_dataset = _one_shot_dataset

        self._get_next_op = Operation(f'IteratorGetNext_{self._id}', self._get_next, self._specs)
        self.initializer = None

    @property
    def element_spec(self):
        return self._specs

    @property
    def output_types(self):
        return tuple(s.dtype for s in self._specs)

    @property
    def output_shapes(self):
        return tuple(s.shape for s in self._specs)

    def make_initializer(self, dataset):
        if not is_compatible_structure(self._specs, dataset.element_spec):
            raise InvalidArgumentError(
                f'Dataset structure {dataset.element_spec} is not compatible with {self._specs}')

        def _initialize(session):
            session._set_resource(self._id, _IteratorResource(dataset._get_iter(session.session_id)))

        return Operation(f'MakeIterator_{self._id}', _initialize)

    def get_next(self):
        """Returns the symbolic components of the next element.

        Fetching any subset of them in one `Session.run` pulls one element.
        """
        return list(self._get_next_op.outputs)

    def _get_next(self, session):
        resource = session._get_resource(self._id)
        if resource is None:
            if self._one_shot_dataset is None:
                raise FailedPreconditionError(
                    f'Iterator {self._id} has not been initialized, run its initializer first')

            resource = _IteratorResource(self._one_shot_dataset._get_iter(session.session_id))
            session._set_resource(self._id, resource)

        if resource.source_iter is None:
            raise OutOfRangeError()

        try:
            element = resource.next()
        except StopAsyncIteration:
            resource.close()
            raise OutOfRangeError() from None

        check_element(element, self._specs)
        return element

    def __repr__(self):
        return f'<Iterator {self._id} element_spec={self._specs}>'


class Session:
    """Runs operations and owns the iterator state they create.

    Two sessions over the same iterator progress independently.
    """

    def __init__(self):
        self.session_id = uuid.uuid4().hex
        self._resources = {}
        self._closed = False

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __del__(self):
        if not getattr(self, '_closed', True):
            self.close()

    @property
    def closed(self):
        return self._closed

    def run(self, fetches):
        """Runs `fetches`: an `Operation`, an `Output`, or a list/tuple of them.

        Each distinct operation runs once per call. Returns None for an
        operation, a tensor for an output, and a list for a list of fetches.
        """
        if self.closed:
            raise FailedPreconditionError('Attempted to use a closed Session')

        single = not isinstance(fetches, (list, tuple))
        fetch_list = [fetches] if single else list(fetches)

        ops = []
        for fetch in fetch_list:
            op = fetch.op if isinstance(fetch, Output) else fetch
            assert isinstance(op, Operation), f'fetches: cannot fetch {fetch!r}'
            if op not in ops:
                ops.append(op)

        if config.debug_mode:
            logging.info('Session %s running %s', self.session_id, [op.name for op in ops])

        results = {op: op._run(self) for op in ops}

        values = [results[f.op][f.index] if isinstance(f, Output) else None for f in fetch_list]
        return values[0] if single else values

    def close(self):
        self._closed = True
        while self._resources:
            _, resource = self._resources.popitem()
            resource.close()

    def _get_resource(self, key):
        return self._resources.get(key)

    def _set_resource(self, key, resource):
        previous = self._resources.pop(key, None)
        if previous is not None:
            previous.close()
        self._resources[key] = resource
