"""
Closures with an explicit captured environment.

Rather than lean on Python's own cell machinery, a Closure here carries
a snapshot dictionary made at construction time, name by name. Each name
is captured either by value (a copy of whatever the scope held) or by
reference (a Cell shared with the scope). That choice is spelled out
by whoever builds the closure.
"""
import sys
from types import MappingProxyType
from typing import Any, Callable, Iterable, Mapping


class CaptureError(NameError):
	""" Something went wrong capturing or writing a name. """


class Cell:
	""" A shared mutable box: whoever holds it sees the same contents. """
	__slots__ = ("value",)
	def __init__(self, value): self.value = value
	def __repr__(self): return "Cell(%r)" % (self.value,)


class Environment:
	"""
	What a closure's body sees: reads go through cells transparently;
	writes are allowed only for names captured by reference.
	"""
	def __init__(self, captures: Mapping[str, Any], by_reference: frozenset):
		object.__setattr__(self, "_captures", captures)
		object.__setattr__(self, "_by_reference", by_reference)

	def __getitem__(self, name: str):
		try: entry = self._captures[name]
		except KeyError: raise CaptureError("%r was not captured." % name) from None
		return entry.value if name in self._by_reference else entry

	def __setitem__(self, name: str, value):
		if name not in self._by_reference:
			if name in self._captures:
				raise CaptureError("%r was captured by value and cannot be written." % name)
			raise CaptureError("%r was not captured." % name)
		self._captures[name].value = value

	def __getattr__(self, name: str):
		if name.startswith("_"): raise AttributeError(name)
		return self[name]

	def __setattr__(self, name: str, value):
		self[name] = value

	def __contains__(self, name): return name in self._captures

	def __iter__(self): return iter(self._captures)

	def __repr__(self):
		return "<Environment %s>" % ', '.join("%s=%r" % (k, self[k]) for k in self._captures)


class Closure:
	""" A callable value tied to the environment it was born into. """
	_captures: Mapping[str, Any]

	def __init__(self, body: Callable, captures: Mapping[str, Any], by_reference: Iterable[str] = ()):
		assert callable(body), type(body)
		self._body = body
		self._captures = MappingProxyType(dict(captures))
		self._by_reference = frozenset(by_reference)
		assert self._by_reference <= self._captures.keys()
		self._env = Environment(self._captures, self._by_reference)

	def __repr__(self):
		return "<Closure %s over %s>" % (_name(self._body), ', '.join(self._captures) or "nothing")

	def __call__(self, *args, **kwargs):
		return self._body(self._env, *args, **kwargs)

	@property
	def captures(self) -> Mapping[str, Any]:
		""" The raw captured entries: plain values, or Cells for names captured by reference. """
		return self._captures

	@property
	def names(self) -> tuple[str, ...]: return tuple(self._captures)

	@property
	def by_reference(self) -> frozenset: return self._by_reference

	def rebind(self, **values) -> "Closure":
		""" A new closure over the same body with some by-value captures replaced. """
		for name in values:
			if name not in self._captures:
				raise CaptureError("%r was not captured." % name)
			if name in self._by_reference:
				raise CaptureError("%r was captured by reference; write through the cell instead." % name)
		captures = dict(self._captures)
		captures.update(values)
		return Closure(self._body, captures, self._by_reference)


class ClosureFactory:
	""" Makes closures over one particular scope. """
	def __init__(self, scope: Mapping[str, Any]):
		self._scope = scope

	@classmethod
	def from_caller(cls, depth: int = 1) -> "ClosureFactory":
		""" A factory over the calling function's globals overlaid by its locals. """
		frame = sys._getframe(depth)
		scope = dict(frame.f_globals)
		scope.update(frame.f_locals)
		return cls(scope)

	def close(self, body: Callable, *by_value: str, by_reference: Iterable[str] = ()) -> Closure:
		by_reference = tuple(by_reference)
		both = set(by_value) & set(by_reference)
		if both:
			raise CaptureError("Captured both by value and by reference: %s" % ', '.join(sorted(both)))
		captures = {}
		for name in by_value:
			entry = self._lookup(name)
			captures[name] = entry.value if isinstance(entry, Cell) else entry
		for name in by_reference:
			entry = self._lookup(name)
			if not isinstance(entry, Cell):
				raise CaptureError("%r must hold a Cell to be captured by reference." % name)
			captures[name] = entry
		return Closure(body, captures, by_reference)

	def _lookup(self, name: str):
		try: return self._scope[name]
		except KeyError: raise CaptureError("%r is not defined in the constructing scope." % name) from None


def _name(fn) -> str:
	return getattr(fn, "__name__", None) or repr(fn)
