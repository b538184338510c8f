"""
Human-readable text for the library's values, for verbose narration.
Anything this visitor does not know about just gets its repr.
"""
from boozetools.support.foundation import Visitor
from .closures import Closure, Cell, Environment
from .currying import Curried
from .lazy import Thunk, Failed
from .memo import Memoizer

class Render(Visitor):

	def visit_Thunk(self, thunk:Thunk):
		state = thunk.state
		if thunk.is_evaluated:
			return "thunk(evaluated: %s)" % render(state.value)
		if isinstance(state, Failed):
			return "thunk(failed: %s)" % type(state.error).__name__
		return "thunk(pending)"

	def visit_Curried(self, curried:Curried):
		return "%r awaiting %d more" % (curried, curried.remaining)

	def visit_Closure(self, closure:Closure):
		parts = []
		for name, entry in closure.captures.items():
			if name in closure.by_reference:
				parts.append("&%s=%s" % (name, render(entry.value)))
			else:
				parts.append("%s=%s" % (name, render(entry)))
		return "closure{%s}" % ', '.join(parts)

	def visit_Cell(self, cell:Cell):
		return "cell(%s)" % render(cell.value)

	def visit_Environment(self, env:Environment):
		return "{%s}" % ', '.join("%s: %s" % (name, render(env[name])) for name in env)

	def visit_Memoizer(self, memo:Memoizer):
		hits, misses, size = memo.info()
		return "memo(%s: %d hits, %d misses, %d cached)" % (getattr(memo.function, "__name__", "?"), hits, misses, size)

RENDER = Render()
_KNOWN = frozenset({Thunk, Curried, Closure, Cell, Environment, Memoizer})

def render(value) -> str:
	if type(value) in _KNOWN:
		return RENDER.visit(value)
	return repr(value)
