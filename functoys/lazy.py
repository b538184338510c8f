"""
Call-by-need, one thunk at a time.

Python evaluates eagerly, so laziness here is explicit: a Thunk wraps a
zero-argument expression and a state which is one of Unevaluated, Evaluated
or (if you ask for it) Failed. The first force moves it along; after that
the thunk plays its value.

An expression may promptly return another thunk instead of a value.
Forcing then carries on down the chain in a loop rather than by recursion,
which is what lets tail-recursive lazy definitions run in constant stack.
"""
from enum import Enum
from functools import wraps
from threading import RLock, get_ident
from types import TracebackType
from typing import Any, Callable, NamedTuple, Optional, Union


class CircularEvaluation(RuntimeError):
	""" A thunk's expression demanded the thunk itself. """


class FailurePolicy(Enum):
	RETRY = "retry"  # Propagate and stay unevaluated.
	CACHE = "cache"  # Remember the exception and raise it on every force.


DEFAULT_POLICY = FailurePolicy.RETRY


class Unevaluated(NamedTuple):
	expression: Callable[[], Any]

class Evaluated(NamedTuple):
	value: Any

class Failed(NamedTuple):
	error: BaseException
	traceback: Optional[TracebackType]

STATE = Union[Unevaluated, Evaluated, Failed]


class Thunk:
	""" A kind of not-yet-value which can be forced. """
	_state: STATE

	def __init__(self, expression: Callable[[], Any], policy: FailurePolicy = None):
		assert callable(expression), type(expression)
		self._state = Unevaluated(expression)
		self._policy = policy or DEFAULT_POLICY
		self._lock = RLock()
		self._owner = None

	def __str__(self):
		state = self._state
		if self.is_evaluated:
			return str(state.value)
		if isinstance(state, Failed):
			return "<Thunk failed: %r>" % state.error
		if isinstance(state, Evaluated):
			return "<Thunk: part way along a chain>"
		return "<Thunk: %s>" % getattr(state.expression, "__qualname__", state.expression)

	__repr__ = __str__

	@property
	def state(self) -> STATE: return self._state

	@property
	def policy(self) -> FailurePolicy: return self._policy

	@property
	def is_evaluated(self) -> bool:
		""" True once there is a final value; a link to some other thunk does not count. """
		state = self._state
		return isinstance(state, Evaluated) and not isinstance(state.value, Thunk)

	def step(self):
		"""
		Evaluate this thunk's own expression at most once and return whatever it produced,
		which might itself be a thunk. The check-and-set happens under the lock,
		so concurrent callers see exactly one evaluation.
		"""
		state = self._state
		if isinstance(state, Evaluated): return state.value
		with self._lock:
			state = self._state
			if isinstance(state, Evaluated): return state.value
			if isinstance(state, Failed): raise state.error.with_traceback(state.traceback)
			if self._owner == get_ident():
				raise CircularEvaluation(str(self))
			self._owner = get_ident()
			try:
				value = state.expression()
				if value is self: raise CircularEvaluation(str(self))
			except BaseException as ex:
				if self._policy is FailurePolicy.CACHE:
					# Raising again from here puts this frame back on the front.
					self._state = Failed(ex, ex.__traceback__.tb_next)
				raise
			else:
				# Dropping the expression lets go of everything it referenced.
				self._state = Evaluated(value)
				return value
			finally:
				self._owner = None

	def force(self):
		"""
		Force this thunk and any chain of thunks it evaluates to, then remember the end result.
		If the chain fails further along, that is this thunk's failure too under the CACHE policy.
		Under RETRY it keeps the link it already has, so the next force resumes from there.
		"""
		it, seen = self.step(), {self}
		try:
			while isinstance(it, Thunk):
				if it in seen: raise CircularEvaluation(str(self))
				seen.add(it)
				it = it.step()
		except BaseException as ex:
			if self._policy is FailurePolicy.CACHE:
				with self._lock:
					if not isinstance(self._state, Failed):
						self._state = Failed(ex, ex.__traceback__)
			raise
		with self._lock:
			self._state = Evaluated(it)
		return it


def force(it):
	"""
	Force repeatedly until the result is no longer a thunk, then return that result.
	This simulates tail-call elimination for expressions that promptly return thunks.
	"""
	if isinstance(it, Thunk): return it.force()
	return it

def delay(fn: Callable, *args, **kwargs) -> Thunk:
	""" Defer the call fn(*args, **kwargs) until demanded. """
	return Thunk(lambda: fn(*args, **kwargs))

def lazy(fn: Callable=None, *, policy: FailurePolicy = None):
	""" Decorator: calling the result returns a thunk of the call instead of its value. """
	def decorate(fn):
		@wraps(fn)
		def deferred(*args, **kwargs):
			return Thunk(lambda: fn(*args, **kwargs), policy)
		return deferred
	return decorate if fn is None else decorate(fn)
