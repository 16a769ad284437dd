import asyncio
import atexit
import functools
import inspect
import multiprocessing as mp
import os
from concurrent.futures import ProcessPoolExecutor

import aioitertools
import dill
from absl import logging

from .._config import config
from .._structure import to_element


@functools.lru_cache(maxsize=32)
def _load_func(map_func_dump):
    return dill.loads(map_func_dump)


def _invoke(map_func_dump, sample):
    # Runs inside a worker process
    return _load_func(map_func_dump)(*sample)


class MetaSingleton(type):
    def __call__(cls, *args, **kwargs):
        if not hasattr(cls, 'instance'):
            cls.instance = super(MetaSingleton, cls).__call__(*args, **kwargs)

        return cls.instance


class ProcessPool(metaclass=MetaSingleton):
    def __init__(self):
        self._executor = None
        atexit.register(self.shutdown)

    @property
    def executor(self):
        if self._executor is None:
            n_workers = config.map_max_workers or os.cpu_count()
            start_method = config.map_start_method

            logging.info('Starting a pool of %d %r map workers', n_workers, start_method)
            self._executor = ProcessPoolExecutor(max_workers=n_workers, mp_context=mp.get_context(start_method))

        return self._executor

    def submit(self, map_func_dump, sample):
        loop = asyncio.get_running_loop()
        return loop.run_in_executor(self.executor, _invoke, map_func_dump, sample)

    def shutdown(self):
        if self._executor is not None:
            logging.info('Shutting down the map worker pool')
            self._executor.shutdown(wait=True, cancel_futures=True)
            self._executor = None


def _log_skipped(exc):
    logging.warning('map_func failed, the element is skipped', exc_info=(type(exc), exc, exc.__traceback__))


class _SerialIterator:
    def __init__(self, source_iter, map_func, specs, *, ignore_errors=False):
        self._source_iter = source_iter

        if inspect.iscoroutinefunction(map_func):
            self._map_func = map_func
        else:
            async def _wrapper(*args, **kwargs):
                return map_func(*args, **kwargs)

            self._map_func = _wrapper

        self._specs = specs
        self._ignore_errors = ignore_errors

    def __aiter__(self):
        return self

    async def __anext__(self):
        while self._source_iter is not None:
            try:
                sample = await aioitertools.next(self._source_iter)
            except StopAsyncIteration:
                self._source_iter = None
                raise

            try:
                return to_element(await self._map_func(*sample), self._specs)
            except Exception as e:
                if not self._ignore_errors:
                    raise
                _log_skipped(e)
        else:
            raise StopAsyncIteration()


class _ParallelIterator:
    def __init__(self, source_iter, map_func_dump, specs, n_workers, ordered, *, ignore_errors=False):
        self._pool = ProcessPool()

        self._source_iter = source_iter
        self._map_func_dump = map_func_dump
        self._specs = specs
        self._n_workers = n_workers
        self._ordered = ordered
        self._ignore_errors = ignore_errors

        self._in_process = []

    def __aiter__(self):
        return self

    async def _fill(self):
        while self._source_iter is not None and len(self._in_process) < self._n_workers:
            try:
                sample = await aioitertools.next(self._source_iter)
            except StopAsyncIteration:
                self._source_iter = None
            else:
                self._in_process.append(self._pool.submit(self._map_func_dump, sample))

    async def _next_done(self):
        if self._ordered:
            return self._in_process.pop(0)

        done, _ = await asyncio.wait(self._in_process, return_when=asyncio.FIRST_COMPLETED)
        fut = next(f for f in self._in_process if f in done)
        self._in_process.remove(fut)
        return fut

    async def __anext__(self):
        while True:
            await self._fill()
            if not self._in_process:
                raise StopAsyncIteration()

            fut = await self._next_done()
            try:
                return to_element(await fut, self._specs)
            except Exception as e:
                if not self._ignore_errors:
                    for f in self._in_process:
                        f.cancel()
                    self._in_process.clear()
                    self._source_iter = None
                    raise
                _log_skipped(e)


class MapDataOperation:
    def __init__(self, *, source, map_func, num_parallel_calls, specs=None, ordered=True, ignore_errors=False):
        if not num_parallel_calls:
            self._get_iterator = lambda sid: _SerialIterator(
                source.get_iter(sid), map_func, specs, ignore_errors=ignore_errors)
        else:
            assert not inspect.iscoroutinefunction(map_func), \
                'map_func: coroutine functions can not run in parallel'

            map_func_dump = dill.dumps(map_func, recurse=True)
            self._get_iterator = lambda sid: _ParallelIterator(source.get_iter(sid), map_func_dump, specs,
                                                               n_workers=num_parallel_calls,
                                                               ordered=ordered,
                                                               ignore_errors=ignore_errors)

    def get_iter(self, session_id):
        return self._get_iterator(session_id)
