import sys
import unittest

USAGE = "Usage: python -m sfem test [-v]"


def run_tests(verbosity: int = 0):
    try:
        # 'sfem' has to be importable, i.e. installed or run from the
        # project's root directory.
        from sfem import tests
    except ImportError:
        print("Error: Could not find the tests module.")
        print("Make sure you are running the command in the project's root "
              "directory.")
        sys.exit(1)

    suite = unittest.TestLoader().loadTestsFromModule(tests)
    result = unittest.TextTestRunner(verbosity=verbosity).run(suite)
    sys.exit(not result.wasSuccessful())


def main(argv: list[str]):
    if not argv or argv[0] != 'test':
        print("Unknown command.")
        print(USAGE)
        sys.exit(2)
    options = argv[1:]
    if any(option not in ('-v', '--verbose') for option in options):
        print(USAGE)
        sys.exit(2)
    # -v lists every test, otherwise only the summary is printed
    run_tests(verbosity=2 if options else 0)


if __name__ == '__main__':
    main(sys.argv[1:])
