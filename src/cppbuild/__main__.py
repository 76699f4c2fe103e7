import sys

from cppbuild import main

sys.exit(main())
