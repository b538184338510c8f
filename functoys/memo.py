"""
Memoization for pure functions.

The cache is keyed by the argument tuple. A mutex guards the table itself,
and each key in the middle of its first computation gets a gate, so that
concurrent callers asking for the same thing wait for one answer rather
than each working it out.

Failures are never cached: the exception goes back to the caller and
the next caller to ask gets a fresh attempt.
"""
from functools import update_wrapper
from threading import Lock, RLock, local
from types import MappingProxyType
from typing import Any, Callable, Hashable, Mapping, NamedTuple, Optional


class UnhashableArguments(TypeError):
	""" The arguments cannot serve as a cache key. """

class SelfInvalidation(RuntimeError):
	""" A memoized function tried to clear its own cache mid-computation. """


class CacheInfo(NamedTuple):
	hits: int
	misses: int
	size: int


class Memoizer:
	"""
	Wrap a function assumed pure. Through any one Memoizer,
	each key causes at most one successful call to that function.
	"""
	_cache: dict[Hashable, Any]
	_gates: dict[Hashable, "_Gate"]

	def __init__(self, fn: Callable, key: Optional[Callable[..., Hashable]] = None):
		assert callable(fn), type(fn)
		self._fn = fn
		self._key = key or _argument_key
		self._cache = {}
		self._gates = {}
		self._mutex = Lock()
		self._depth = local()
		self._hits = 0
		self._misses = 0

	def __repr__(self):
		return "<Memoizer %s: %d cached>" % (getattr(self._fn, "__qualname__", self._fn), len(self._cache))

	def __call__(self, *args, **kwargs):
		return self.compute(*args, **kwargs)

	def __len__(self): return len(self._cache)

	def __contains__(self, key): return key in self._cache

	@property
	def function(self) -> Callable: return self._fn

	@property
	def cache(self) -> Mapping[Hashable, Any]:
		return MappingProxyType(self._cache)

	def compute(self, *args, **kwargs):
		key = self._key(*args, **kwargs)
		try: hash(key)
		except TypeError as ex: raise UnhashableArguments(*ex.args) from ex
		with self._mutex:
			if key in self._cache:
				self._hits += 1
				return self._cache[key]
			gate = self._gates.get(key)
			if gate is None: gate = self._gates[key] = _Gate()
			gate.waiting += 1
		try:
			with gate.lock:
				with self._mutex:
					if key in self._cache:
						self._hits += 1
						return self._cache[key]
					self._misses += 1
				self._enter()
				try: value = self._fn(*args, **kwargs)
				finally: self._leave()
				with self._mutex:
					self._cache[key] = value
			return value
		finally:
			with self._mutex:
				# The last one out, whether it succeeded or failed, takes the gate away.
				gate.waiting -= 1
				if not gate.waiting and self._gates.get(key) is gate:
					del self._gates[key]

	def info(self) -> CacheInfo:
		with self._mutex:
			return CacheInfo(self._hits, self._misses, len(self._cache))

	def clear(self):
		if self._computing():
			raise SelfInvalidation(repr(self))
		with self._mutex:
			self._cache.clear()
			self._hits = self._misses = 0

	# Per-thread count of computations in progress through this memoizer:
	def _computing(self) -> int: return getattr(self._depth, "n", 0)
	def _enter(self): self._depth.n = self._computing() + 1
	def _leave(self): self._depth.n -= 1


class _Gate:
	""" Serializes first computations of one key, and counts who is queued for it. """
	__slots__ = ("lock", "waiting")

	def __init__(self):
		self.lock = RLock()
		self.waiting = 0


_KEYWORDS = object()  # Keeps f(1, ("a", 2)) apart from f(1, a=2).

def _argument_key(*args, **kwargs):
	if kwargs:
		return args + (_KEYWORDS,) + tuple(sorted(kwargs.items()))
	return args

def memoize(fn: Callable=None, *, key: Callable[..., Hashable] = None):
	""" Decorator form. The result keeps the wrapped function's name and docstring. """
	def decorate(fn):
		return update_wrapper(Memoizer(fn, key), fn)
	return decorate if fn is None else decorate(fn)
