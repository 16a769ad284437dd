import unittest

import torch

import tensor_data


def _drain(session, components):
    out = []
    while True:
        try:
            out.append(session.run(components))
        except tensor_data.OutOfRangeError:
            break
    return out


class TestGraphIteration(unittest.TestCase):
    def setUp(self):
        self.x = torch.arange(20, dtype=torch.float32).reshape(10, 2)
        self.y = torch.arange(10)
        self.ds = tensor_data.Dataset.from_tensor_slices([self.x, self.y],
                                                         output_types=[torch.float32, torch.int64])

    def test_initializable_iterator(self):
        iterator = self.ds.batch(3).make_initializable_iterator()
        components = iterator.get_next()

        self.assertEqual(len(components), 2)
        self.assertEqual(components[0].dtype, torch.float32)
        self.assertEqual(components[0].shape, (None, 2))

        with tensor_data.Session() as session:
            session.run(iterator.initializer)
            out = _drain(session, components)

        self.assertEqual(len(out), 4)
        self.assertTrue(torch.equal(out[0][0], self.x[:3]))
        self.assertEqual(out[3][1].tolist(), [9])

    def test_fetching_all_components_pulls_one_element(self):
        iterator = self.ds.make_initializable_iterator()
        x, y = iterator.get_next()

        with tensor_data.Session() as session:
            session.run(iterator.initializer)

            first = session.run([x, y])
            second = session.run([y, x, y])
            third = session.run(y)

        self.assertEqual(first[1].item(), 0)
        self.assertEqual(second[0].item(), 1)
        self.assertEqual(second[2].item(), 1)
        self.assertTrue(torch.equal(second[1], self.x[1]))
        self.assertEqual(third.item(), 2)

    def test_out_of_range_is_sticky(self):
        iterator = tensor_data.Dataset.range(1).make_initializable_iterator()
        (value,) = iterator.get_next()

        with tensor_data.Session() as session:
            session.run(iterator.initializer)
            self.assertEqual(session.run(value).item(), 0)
            self.assertRaises(tensor_data.OutOfRangeError, session.run, value)
            self.assertRaises(tensor_data.OutOfRangeError, session.run, value)

            # re-initializing restarts the pass
            session.run(iterator.initializer)
            self.assertEqual(session.run(value).item(), 0)

    def test_uninitialized_iterator(self):
        iterator = self.ds.make_initializable_iterator()
        components = iterator.get_next()

        with tensor_data.Session() as session:
            self.assertRaises(tensor_data.FailedPreconditionError, session.run, components)

    def test_one_shot_iterator(self):
        iterator = self.ds.skip(7).make_one_shot_iterator()
        components = iterator.get_next()

        with tensor_data.Session() as session:
            out = _drain(session, components)

        self.assertEqual([o[1].item() for o in out], [7, 8, 9])

    def test_sessions_are_independent(self):
        iterator = tensor_data.Dataset.range(5).make_one_shot_iterator()
        (value,) = iterator.get_next()

        with tensor_data.Session() as s1, tensor_data.Session() as s2:
            self.assertEqual(s1.run(value).item(), 0)
            self.assertEqual(s1.run(value).item(), 1)
            self.assertEqual(s2.run(value).item(), 0)
            self.assertEqual(s1.run(value).item(), 2)

    def test_reinitializable_iterator(self):
        iterator = tensor_data.Iterator.from_structure([torch.int64], [()])
        (value,) = iterator.get_next()

        train_init = iterator.make_initializer(tensor_data.Dataset.range(3))
        eval_init = iterator.make_initializer(tensor_data.Dataset.range(10, 12))

        with tensor_data.Session() as session:
            session.run(train_init)
            self.assertEqual([v.item() for v in _drain(session, value)], [0, 1, 2])

            session.run(eval_init)
            self.assertEqual([v.item() for v in _drain(session, value)], [10, 11])

    def test_from_structure_single_component(self):
        iterator = tensor_data.Iterator.from_structure(torch.float32, (2,))

        self.assertEqual(iterator.output_types, (torch.float32,))
        self.assertEqual(iterator.output_shapes, ((2,),))

        init = iterator.make_initializer(tensor_data.Dataset.from_tensor_slices(torch.zeros(3, 2)))
        (value,) = iterator.get_next()
        with tensor_data.Session() as session:
            session.run(init)
            self.assertEqual(len(_drain(session, value)), 3)

    def test_reinitializing_closes_previous_pass(self):
        closed = []

        async def gen():
            try:
                for i in range(100):
                    yield i
            finally:
                closed.append(True)

        ds = tensor_data.Dataset.from_generator(gen, output_types=torch.int64).prefetch(4)
        iterator = ds.make_initializable_iterator()
        (value,) = iterator.get_next()

        with tensor_data.Session() as session:
            for _ in range(5):
                session.run(iterator.initializer)
                self.assertEqual(session.run(value).item(), 0)

            self.assertEqual(len(closed), 4)

        self.assertEqual(len(closed), 5)

    def test_incompatible_initializer(self):
        iterator = tensor_data.Iterator.from_structure([torch.int64, torch.float32])
        self.assertRaises(tensor_data.InvalidArgumentError, iterator.make_initializer,
                          tensor_data.Dataset.range(3))

        iterator = tensor_data.Iterator.from_structure([torch.float32], [(3,)])
        self.assertRaises(tensor_data.InvalidArgumentError, iterator.make_initializer,
                          tensor_data.Dataset.from_tensor_slices(torch.zeros(4, 2)))

    def test_element_checked_against_structure(self):
        def gen():
            yield [1.0, 2.0]
            yield [1.0, 2.0, 3.0]

        ds = tensor_data.Dataset.from_generator(lambda: (torch.tensor(v) for v in gen()),
                                                output_types=torch.float32)
        iterator = tensor_data.Iterator.from_structure([torch.float32], [(2,)])
        (value,) = iterator.get_next()
        init = iterator.make_initializer(ds)

        with tensor_data.Session() as session:
            session.run(init)
            self.assertEqual(session.run(value).tolist(), [1.0, 2.0])
            self.assertRaises(tensor_data.InvalidArgumentError, session.run, value)

    def test_map_pipeline(self):
        ds = self.ds.filter(lambda x, y: y % 2 == 0).map(lambda x, y: (x.sum(), y * 10))
        iterator = ds.make_initializable_iterator()
        total, label = iterator.get_next()

        self.assertEqual(total.dtype, torch.float32)

        with tensor_data.Session() as session:
            session.run(iterator.initializer)
            out = _drain(session, [total, label])

        self.assertEqual([o[1].item() for o in out], [0, 20, 40, 60, 80])
        self.assertEqual(out[1][0].item(), 9.0)

    def test_closed_session(self):
        iterator = tensor_data.Dataset.range(3).make_initializable_iterator()

        session = tensor_data.Session()
        session.close()

        self.assertTrue(session.closed)
        self.assertRaises(tensor_data.FailedPreconditionError, session.run, iterator.initializer)

    def test_run_rejects_unknown_fetches(self):
        with tensor_data.Session() as session:
            self.assertRaises(AssertionError, session.run, 'IteratorGetNext')
            self.assertEqual(session.run([]), [])

    def test_operation_names(self):
        iterator = tensor_data.Dataset.range(3).make_initializable_iterator()
        (value,) = iterator.get_next()

        self.assertTrue(value.name.startswith('IteratorGetNext_'))
        self.assertTrue(value.name.endswith(':0'))
        self.assertTrue(iterator.initializer.name.startswith('MakeIterator_'))


if __name__ == '__main__':
    unittest.main()
