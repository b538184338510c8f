"""
Currying: an n-ary function becomes a chain of partial applications.

Each link in the chain is a small immutable object holding the arguments
so far. Applying a link never changes it; it makes a new one. So the same
partial application can be reused from any number of places.
"""
import inspect
from typing import Any, Callable, Optional

class ArityError(TypeError):
	""" A curried function was applied to the wrong number of arguments. """

_POSITIONAL = (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)

def arity_of(fn: Callable) -> int:
	""" The number of required positional parameters, or ArityError if that's not a fixed number. """
	try: sig = inspect.signature(fn)
	except (TypeError, ValueError) as ex:
		raise ArityError("Cannot see the parameters of %r; give an arity." % (fn,)) from ex
	arity = 0
	for p in sig.parameters.values():
		if p.kind is inspect.Parameter.VAR_POSITIONAL:
			raise ArityError("%s takes *%s; give an arity." % (_name(fn), p.name))
		if p.kind is inspect.Parameter.KEYWORD_ONLY and p.default is inspect.Parameter.empty:
			raise ArityError("%s needs keyword %r, which a curried call cannot supply." % (_name(fn), p.name))
		if p.kind in _POSITIONAL and p.default is inspect.Parameter.empty:
			arity += 1
	return arity

def _name(fn) -> str:
	return getattr(fn, "__name__", None) or repr(fn)


class Curried:
	""" One link in a chain of partial applications. """
	__slots__ = ("_fn", "_arity", "_args")

	def __init__(self, fn: Callable, arity: int, args: tuple = ()):
		object.__setattr__(self, "_fn", fn)
		object.__setattr__(self, "_arity", arity)
		object.__setattr__(self, "_args", args)

	def __setattr__(self, key, value):
		raise AttributeError("Curried applications are immutable.")

	def __delattr__(self, key):
		raise AttributeError("Curried applications are immutable.")

	def __repr__(self):
		return "curry(%s)%s" % (_name(self._fn), ''.join('(%r)' % a for a in self._args))

	@property
	def function(self) -> Callable: return self._fn

	@property
	def arity(self) -> int: return self._arity

	@property
	def arguments(self) -> tuple: return self._args

	@property
	def remaining(self) -> int: return self._arity - len(self._args)

	def __call__(self, *args, **kwargs) -> Any:
		if kwargs:
			raise ArityError("%r takes no keyword arguments." % self)
		if not args:
			raise ArityError("%r needs an argument." % self)
		if len(args) > self.remaining:
			pattern = "%r takes %d more argument%s, but got %d."
			plural = '' if self.remaining == 1 else 's'
			raise ArityError(pattern % (self, self.remaining, plural, len(args)))
		accumulated = self._args + args
		if len(accumulated) == self._arity:
			return self._fn(*accumulated)
		return Curried(self._fn, self._arity, accumulated)


def curry(fn: Callable, arity: Optional[int] = None) -> Curried:
	"""
	curry(f)(a1)(a2)...(aN) == f(a1, a2, ..., aN)

	The arity comes from the signature unless you say otherwise.
	You must say otherwise for functions taking *args, or for builtins
	which do not publish a signature.
	"""
	if isinstance(fn, Curried) and arity is None:
		return fn
	if arity is None:
		arity = arity_of(fn)
	if arity < 1:
		raise ArityError("Nothing to curry: %s takes no arguments." % _name(fn))
	return Curried(fn, arity)

def uncurry(fn: Callable, arity: int) -> Callable:
	""" The inverse of curry: uncurry(curry(f), n)(a1, ..., an) == f(a1, ..., an) """
	if arity < 1:
		raise ArityError("Nothing to uncurry.")
	def uncurried(*args):
		if len(args) != arity:
			raise ArityError("Expected %d arguments, got %d." % (arity, len(args)))
		result = fn
		for a in args: result = result(a)
		return result
	uncurried.__name__ = "uncurried_" + getattr(fn, "__name__", "function")
	return uncurried
