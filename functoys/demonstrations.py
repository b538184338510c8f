"""
The classic textbook scenarios, each checked against what the textbook says should happen.

A demonstration is any function in this module named `_demo_<something>`.
Its docstring's first line is the description `functoys --list` shows.
Each one narrates through the report (visible with -v) and calls `expect`
for every claim it makes; a false claim fails the demonstration.
"""
from threading import Barrier, Thread
from traceback import TracebackException, extract_tb
from typing import Callable, Iterable, Optional

from .closures import Cell, ClosureFactory, CaptureError
from .currying import curry, uncurry, ArityError
from .diagnostics import Report, Annotation
from .lazy import Thunk, FailurePolicy, force, delay
from .memo import Memoizer, memoize
from .rendering import render

class DemonstrationFailed(AssertionError):
	pass

def expect(claim:bool, message:str):
	if not claim:
		raise DemonstrationFailed(message)

###############################################################################

def _demo_closures(report:Report):
	""" A closure keeps what it captured after its scope is gone. """
	def make_adder(x):
		return ClosureFactory.from_caller().close(lambda env, y: env.x + y, "x")
	add5 = make_adder(5)
	report.info("  make_adder(5) ->", render(add5))
	expect(add5(0) == 5, "the captured x should still be 5")
	expect(add5(10) == 15, "add5(10) should be 15")

	def make_counter():
		count = Cell(0)
		def tick(env):
			env.count += 1
			return env.count
		return ClosureFactory({"count": count}).close(tick, by_reference=["count"]), count
	counter, cell = make_counter()
	results = [counter(), counter(), counter()]
	report.info("  three ticks ->", results, "with", render(cell))
	expect(results == [1, 2, 3], "a by-reference capture should accumulate")
	expect(cell.value == 3, "the enclosing scope should see the writes")

	try: ClosureFactory({}).close(lambda env: None, "nowhere")
	except CaptureError as ex: report.info("  capturing an undefined name:", ex)
	else: expect(False, "capturing an undefined name should fail at construction")

def _demo_first_class(report:Report):
	""" Functions are values: stored, passed, and returned. """
	def compose(f, g): return lambda x: f(g(x))
	def twice(f): return compose(f, f)
	operations = {"inc": lambda x: x + 1, "dbl": lambda x: x * 2}
	pipeline = compose(operations["dbl"], twice(operations["inc"]))
	result = list(map(pipeline, [0, 1, 2]))
	report.info("  dbl . inc . inc over [0, 1, 2] ->", result)
	expect(result == [4, 6, 8], "composition should apply right to left")

def _demo_memoization(report:Report):
	""" A memoized pure function is called once per distinct argument tuple. """
	calls = []
	def f(x, y):
		calls.append((x, y))
		return x * x
	memo = Memoizer(f)
	first, second = memo.compute(4, 5), memo.compute(4, 5)
	report.info("  compute(4, 5) twice ->", first, second, "via", render(memo))
	expect(first == second == 16, "f(4, 5) should be 16")
	expect(len(calls) == 1, "f should have been invoked exactly once")

def _demo_failures_are_not_cached(report:Report):
	""" A memoized function that fails is tried afresh next time. """
	attempts = []
	@memoize
	def flaky(x):
		attempts.append(x)
		if len(attempts) == 1: raise ValueError("first attempt fails")
		return x
	try: flaky(7)
	except ValueError: report.info("  first call raised, as planned")
	else: expect(False, "the failure should propagate")
	expect((7,) not in flaky, "nothing should be cached after a failure")
	expect(flaky(7) == 7, "the retry should succeed")
	expect(len(attempts) == 2, "the retry should invoke the function again")

def _demo_fibonacci(report:Report):
	""" Memoized recursion computes each Fibonacci number just once. """
	seen = []
	@memoize
	def fib(n):
		seen.append(n)
		return n if n < 2 else fib(n - 1) + fib(n - 2)
	answer = fib(80)
	report.info("  fib(80) =", answer, "via", render(fib))
	expect(answer == 23416728348467685, "fib(80) is a known number")
	expect(sorted(seen) == list(range(81)), "each n should be computed once")

def _demo_referential_transparency(report:Report):
	""" A pure call can be swapped for its value without changing anything. """
	square = memoize(lambda n: n * n)
	by_call = square(12) + square(12)
	value = square(12)
	by_value = value + value
	report.info("  square(12) + square(12) =", by_call, "; v + v =", by_value)
	expect(by_call == by_value == 288, "replacing the call by its value should change nothing")
	expect(square.info().misses == 1, "the function should run once")

def _demo_laziness(report:Report):
	""" A thunk evaluates on first demand and never again. """
	evaluations = []
	def expensive():
		evaluations.append(None)
		return sum(range(1000))
	thunk = Thunk(expensive)
	report.info("  before forcing:", render(thunk))
	expect(not evaluations, "nothing should be evaluated before demand")
	values = [thunk.force() for _ in range(3)]
	report.info("  after forcing thrice:", render(thunk))
	expect(values == [499500] * 3, "every force should give the same value")
	expect(len(evaluations) == 1, "the expression should be evaluated exactly once")

def _demo_non_strict_arguments(report:Report):
	""" add x y = x + x never looks at y, so y may as well be 1/0. """
	def add(x:Thunk, y:Thunk):
		return force(x) + force(x)
	boom = delay(lambda: 1 / 0)
	result = add(Thunk(lambda: 21), boom)
	report.info("  add 21 (1/0) =", result, "and y is still", render(boom))
	expect(result == 42, "x + x should be 42")
	expect(not boom.is_evaluated, "the unused argument should never be evaluated")

def _demo_tail_recursion(report:Report):
	""" Thunks returning thunks run in constant stack. """
	def count_down(n, total):
		if n == 0: return total
		return Thunk(lambda: count_down(n - 1, total + n))
	result = force(count_down(100000, 0))
	report.info("  sum of 1..100000 by lazy tail recursion =", result)
	expect(result == 5000050000, "the sum should be right")

def _demo_failure_policies(report:Report):
	""" A failing thunk can retry next time or remember its failure. """
	attempts = []
	def shaky():
		attempts.append(None)
		if len(attempts) == 1: raise LookupError("not yet")
		return "ready"
	retry = Thunk(shaky, FailurePolicy.RETRY)
	try: retry.force()
	except LookupError: pass
	expect(retry.force() == "ready", "RETRY should re-evaluate after a failure")

	remember = Thunk(lambda: {}["missing"], FailurePolicy.CACHE)
	errors = []
	for _ in range(2):
		try: remember.force()
		except KeyError as ex: errors.append(ex)
	report.info("  CACHE thunk:", render(remember))
	expect(len(errors) == 2 and errors[0] is errors[1], "CACHE should re-raise the same failure")

def _demo_concurrent_first_access(report:Report):
	""" Many threads demanding the same thing still compute it once. """
	nr_threads = 8
	calls = []
	memo = Memoizer(lambda k: calls.append(k) or k * 3)
	thunk = Thunk(lambda: calls.append("thunk") or "once")
	barrier = Barrier(nr_threads)
	def worker():
		barrier.wait()
		memo(14)
		thunk.force()
	threads = [Thread(target=worker) for _ in range(nr_threads)]
	for t in threads: t.start()
	for t in threads: t.join()
	report.info("  calls after %d threads:" % nr_threads, calls)
	expect(sorted(calls, key=str) == [14, "thunk"], "each should have been computed exactly once")

def _demo_currying(report:Report):
	""" curry(add3)(1)(2)(3) == add3(1, 2, 3), and partial applications are reusable. """
	def add3(a, b, c): return a + b + c
	add = curry(add3)
	expect(add(1)(2)(3) == 6, "curry(add3)(1)(2)(3) should be 6")
	one = add(1)
	report.info("  one =", render(one))
	expect(one(2)(3) == 6, "the partial application should give 6")
	expect(one(10)(20) == 31, "and be reusable to give 31")
	try: one(2, 3, 4)
	except ArityError as ex: report.info("  over-application:", ex)
	else: expect(False, "supplying too many arguments should be invalid usage")
	expect(uncurry(add, 3)(1, 2, 3) == 6, "uncurry should undo curry")

###############################################################################

DEMONSTRATIONS : dict[str, Callable[[Report], None]] = {}

def collect_demonstrations(python_scope):
	for _k, _v in list(python_scope.items()):
		if _k.startswith("_demo_"):
			DEMONSTRATIONS[_k[len("_demo_"):]] = _v

collect_demonstrations(globals())

def describe(name:str) -> str:
	doc = DEMONSTRATIONS[name].__doc__ or ""
	return doc.strip().splitlines()[0] if doc.strip() else ""

def run_demonstration(name:str, report:Report) -> bool:
	""" Run one demonstration, filing an issue with the report if it goes wrong. """
	try: demo = DEMONSTRATIONS[name]
	except KeyError:
		report.no_such_demonstration(name, DEMONSTRATIONS)
		return False
	report.info(name + ":", describe(name))
	try:
		demo(report)
	except DemonstrationFailed as ex:
		report.demonstration_failed(name, str(ex), _site(ex, "claimed here"))
		return False
	except Exception as ex:
		tbx = TracebackException.from_exception(ex)
		report.demonstration_raised(name, tbx, _site(ex, type(ex).__name__))
		return False
	return True

def run_demonstrations(names:Iterable[str], report:Report) -> int:
	""" Returns how many passed. """
	return sum(run_demonstration(name, report) for name in names)

def _site(ex:BaseException, caption:str) -> Optional[Annotation]:
	# The innermost frame belonging to this module is the most telling.
	for frame in reversed(extract_tb(ex.__traceback__)):
		if frame.filename == __file__ and frame.name != expect.__name__:
			return Annotation(frame.filename, frame.lineno, caption)
	return None
