import sys

from fishsim.sim import main

sys.exit(main())
