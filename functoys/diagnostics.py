"""
Everything that talks to a human about how the demonstrations went.
Nothing in the library proper prints; it raises. The demonstration
runner catches, and this module explains.
"""
import sys, random
from functools import lru_cache
from pathlib import Path
from traceback import TracebackException
from typing import Optional
from boozetools.support.failureprone import SourceText, illustration

MAX_ISSUES = 5

class TooManyIssues(Exception):
	pass

def _outburst():
	particle = ["Oh, ", "Well, ", "Hmm, ", "", ""]

	exclamations = [
		'Bother', 'Drat', 'Fiddlesticks', 'Goodness', 'Gosh',
		'Jiminy', 'Mercy', 'Oops', 'Phooey', 'Rats', 'Shucks',
		'Thunks and Closures', 'Lambda Lambda Lambda',
	]

	resignations = [
		'Something is not as pure as advertised.',
		'The textbook would disagree.',
		'That was supposed to be referentially transparent.',
		'Somebody check the cache.',
	]

	return "%s%s! %s"%tuple(map(random.choice, (particle, exclamations, resignations)))

class Report:
	""" Collects issues and, when asked to be verbose, narrates along the way. """
	_issues : list["Pic"]

	def __init__(self, *, verbose:int, max_issues:int=None):
		self._verbose = verbose or 0   # Because None is incomparable.
		self._issues = []
		self._max_issues = max_issues or MAX_ISSUES

	def ok(self): return not self._issues
	def sick(self): return bool(self._issues)

	@property
	def issues(self): return tuple(self._issues)

	def issue(self, it:"Pic"):
		self._issues.append(it)
		if len(self._issues) == self._max_issues:
			raise TooManyIssues(self)

	def reset(self):
		self._issues.clear()

	def info(self, *args):
		if self._verbose:
			print(*args, file=sys.stderr)

	def complain_to_console(self):
		""" Emit all the issues to the console. """
		_bemoan(self._issues)

	def assert_no_issues(self, message):
		""" Does what it says on the tin """
		if self._issues:
			self.complain_to_console()
			raise AssertionError(_outburst()+" "+message)

	# Methods the demonstration runner calls:

	def no_such_demonstration(self, name:str, known):
		intro = "There's no demonstration called %r." % name
		footer = ["Try one of: " + ', '.join(known)]
		self.issue(Pic(intro, [], footer))

	def demonstration_failed(self, name:str, message:str, site:Optional["Annotation"]):
		intro = "Demonstration %r did not turn out as expected." % name
		problem = [site] if site else []
		self.issue(Pic(intro, problem, [message]))

	def demonstration_raised(self, name:str, tbx:TracebackException, site:Optional["Annotation"]):
		intro = "Demonstration %r raised an exception nobody expected." % name
		problem = [site] if site else []
		footer = ["", *''.join(tbx.format()).rstrip().splitlines()]
		self.issue(Pic(intro, problem, footer))

class Annotation:
	""" Points at one line of Python source, with an optional caption. """
	path: Path
	lineno: int
	caption: str
	def __init__(self, path, lineno:int, caption:str=""):
		self.path = Path(path)
		self.lineno = lineno
		self.caption = caption

	def illustrate(self):
		lines, source = _fetch(self.path)
		if not 0 < self.lineno <= len(lines):
			return '% 6d | (source unavailable)' % self.lineno
		text = lines[self.lineno - 1]
		indent = len(text) - len(text.lstrip())
		offset = sum(map(len, lines[:self.lineno - 1])) + indent
		row, col = source.find_row_col(offset)
		single_line = source.line_of_text(row)
		width = max(1, len(text.strip()))
		return illustration(single_line, col, width, prefix='% 6d |' % self.lineno, caption=self.caption)

class Pic:
	def __init__(self, intro:str, anns:list[Annotation], footer=()):
		self._intro, self._anns, self._footer = intro, anns, footer

	@property
	def intro(self): return self._intro

	def as_text(self):
		lines = [self._intro, ""]
		path = None
		for ann in self._anns:
			if ann.path != path:
				path = ann.path
				lines.append(str(path))
			lines.append(ann.illustrate())
		lines.extend(self._footer)
		return '\n'.join(lines)

@lru_cache(5)
def _fetch(path:Path) -> tuple[list[str], SourceText]:
	try:
		with open(path, "r", encoding="utf-8") as fh:
			text = fh.read()
	except OSError:
		text = ""
	return text.splitlines(keepends=True), SourceText(text, filename=str(path))

def _bemoan(issues):
	""" Emit all the issues to the console. """
	if issues:
		print("*"*60, file=sys.stderr)
		print(_outburst(), file=sys.stderr)
	for i in issues:
		print("  -"*20, file=sys.stderr)
		print(i.as_text(), file=sys.stderr)
	sys.stderr.flush()
