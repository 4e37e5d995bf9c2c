import sys

from read_adviser.app import main

sys.exit(main())
