import sys

from dkmeans.main import main

if __name__ == "__main__":
    sys.exit(main())
