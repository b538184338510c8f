import unittest
from threading import Barrier, Thread
from time import sleep

from functoys.memo import Memoizer, memoize, CacheInfo, SelfInvalidation, UnhashableArguments


class Counting:
	""" A pure function that keeps score of how often it runs. """
	def __init__(self, fn):
		self.fn = fn
		self.calls = []
	def __call__(self, *args, **kwargs):
		self.calls.append((args, kwargs))
		return self.fn(*args, **kwargs)

class AtMostOnce(unittest.TestCase):

	def test_square_ignoring_second_argument(self):
		f = Counting(lambda x, y: x * x)
		memo = Memoizer(f)
		self.assertEqual(16, memo.compute(4, 5))
		self.assertEqual(16, memo.compute(4, 5))
		self.assertEqual(1, len(f.calls))

	def test_distinct_arguments_are_distinct_keys(self):
		f = Counting(lambda x, y: x * x)
		memo = Memoizer(f)
		for args in [(4, 5), (4, 6), (5, 5), (4, 5)]:
			with self.subTest(args):
				self.assertEqual(args[0] ** 2, memo(*args))
		self.assertEqual(3, len(f.calls))
		self.assertEqual(CacheInfo(hits=1, misses=3, size=3), memo.info())

	def test_keywords_do_not_collide_with_positionals(self):
		f = Counting(lambda *args, **kwargs: (args, kwargs))
		memo = Memoizer(f)
		memo(1, ("a", 2))
		memo(1, a=2)
		memo(1, a=2)
		self.assertEqual(2, len(f.calls))

	def test_cached_none_is_still_cached(self):
		f = Counting(lambda: None)
		memo = Memoizer(f)
		memo()
		memo()
		self.assertEqual(1, len(f.calls))

	def test_custom_key(self):
		f = Counting(str.lower)
		memo = Memoizer(f, key=str.casefold)
		self.assertEqual("hello", memo("Hello"))
		self.assertEqual("hello", memo("HELLO"))
		self.assertEqual(1, len(f.calls))
		self.assertIn("hello", memo)

class Failures(unittest.TestCase):

	def test_failure_propagates_and_is_not_cached(self):
		outcomes = iter([ZeroDivisionError("first"), "fine"])
		def sometimes(x):
			outcome = next(outcomes)
			if isinstance(outcome, Exception): raise outcome
			return outcome
		memo = Memoizer(sometimes)
		with self.assertRaises(ZeroDivisionError):
			memo(1)
		self.assertNotIn((1,), memo)
		self.assertEqual("fine", memo(1))
		self.assertEqual("fine", memo(1))

	def test_failed_keys_leave_no_gates_behind(self):
		memo = Memoizer(lambda x: 1 / x)
		for x in range(-50, 50):
			if x:
				memo(x)
			else:
				with self.assertRaises(ZeroDivisionError):
					memo(x)
		self.assertEqual({}, memo._gates)
		memo.clear()
		self.assertEqual({}, memo._gates)

	def test_unhashable_arguments(self):
		f = Counting(len)
		memo = Memoizer(f)
		with self.assertRaises(UnhashableArguments):
			memo([1, 2, 3])
		with self.assertRaises(TypeError):
			memo({})
		self.assertEqual([], f.calls)

	def test_no_self_invalidation(self):
		memo = None
		def treacherous(x):
			memo.clear()
			return x
		memo = Memoizer(treacherous)
		with self.assertRaises(SelfInvalidation):
			memo(1)
		self.assertEqual(0, len(memo))

	def test_clear_from_outside_is_fine(self):
		f = Counting(abs)
		memo = Memoizer(f)
		memo(-3)
		memo.clear()
		self.assertEqual(0, len(memo))
		memo(-3)
		self.assertEqual(2, len(f.calls))

class Recursion(unittest.TestCase):

	def test_fibonacci(self):
		seen = []
		@memoize
		def fib(n):
			""" The usual. """
			seen.append(n)
			return n if n < 2 else fib(n - 1) + fib(n - 2)
		self.assertEqual(12586269025, fib(50))
		self.assertEqual(sorted(seen), list(range(51)))
		self.assertEqual("fib", fib.__name__)

	def test_decorator_with_key(self):
		@memoize(key=lambda n, verbose=False: n)
		def double(n, verbose=False): return 2 * n
		self.assertEqual(4, double(2))
		self.assertEqual(4, double(2, verbose=True))
		self.assertEqual(1, double.info().misses)

class Concurrency(unittest.TestCase):

	def test_concurrent_first_access_computes_once(self):
		nr_threads = 16
		def slow_square(x):
			sleep(0.01)
			return x * x
		f = Counting(slow_square)
		memo = Memoizer(f)
		barrier = Barrier(nr_threads)
		results = []
		def worker():
			barrier.wait()
			results.append(memo(9))
		threads = [Thread(target=worker) for _ in range(nr_threads)]
		for t in threads: t.start()
		for t in threads: t.join()
		self.assertEqual([81] * nr_threads, results)
		self.assertEqual(1, len(f.calls))

	def test_failed_keys_leave_no_gates_behind_under_threads(self):
		def flaky(x):
			sleep(0.001)
			raise OSError(x)
		memo = Memoizer(flaky)
		def worker(x):
			for _ in range(5):
				try: memo(x % 3)
				except OSError: pass
		threads = [Thread(target=worker, args=(i,)) for i in range(12)]
		for t in threads: t.start()
		for t in threads: t.join()
		self.assertEqual({}, memo._gates)
		self.assertEqual(0, len(memo))

	def test_different_keys_proceed_independently(self):
		f = Counting(lambda x: x + 1)
		memo = Memoizer(f)
		threads = [Thread(target=memo, args=(i % 4,)) for i in range(20)]
		for t in threads: t.start()
		for t in threads: t.join()
		self.assertEqual(4, len(f.calls))
		self.assertEqual({(0,): 1, (1,): 2, (2,): 3, (3,): 4}, dict(memo.cache))


if __name__ == '__main__':
	unittest.main()
