"""
Demonstrations of closures, memoization, laziness and currying.

{0}

For example:

    functoys all

will run every demonstration and complain about any that misbehave.

    functoys -v currying laziness

will run just those two, narrating as they go.

    functoys -h

will explain all the arguments.
"""
import sys, argparse

parser = argparse.ArgumentParser(
	prog="functoys",
	description="Run the functional-programming demonstrations and check they behave as documented.",
)
parser.add_argument("demonstration", nargs="*", help="names of demonstrations to run, or 'all'.")
parser.add_argument('-l', "--list", action="store_true", help="List the demonstrations and stop.")
parser.add_argument('-v', "--verbose", action="count", help="Narrate each demonstration on the way through.")

def run(args):
	from .diagnostics import Report, TooManyIssues
	from .demonstrations import DEMONSTRATIONS, describe, run_demonstrations
	if args.list:
		width = max(map(len, DEMONSTRATIONS))
		for name in DEMONSTRATIONS:
			print(name.ljust(width), " ", describe(name))
		return 0
	names = list(DEMONSTRATIONS) if "all" in args.demonstration else args.demonstration
	if not names:
		parser.print_usage(sys.stderr)
		return 1
	report = Report(verbose=args.verbose)
	try:
		passed = run_demonstrations(names, report)
	except TooManyIssues:
		report.complain_to_console()
		print(" *"*35, file=sys.stderr)
		print("Giving up after a few issues. One crisis at a time, eh?", file=sys.stderr)
		return 1
	if report.sick():
		report.complain_to_console()
		return 1
	print("%d of %d demonstrations behaved as documented." % (passed, len(names)), file=sys.stderr)
	return 0

def main():
	if len(sys.argv) > 1:
		sys.exit(run(parser.parse_args()))
	else:
		print(__doc__.strip().format(parser.format_usage()))
